"""Evaluation contexts for expressions.

EvaluationContext provides a uniform interface for expression evaluation that
works on whole columns (returns arrays) and on single rows (returns scalars).
The same expression tree is used in both contexts thanks to galois
broadcasting.

Example:
    expr = meta.query_advice(a) * meta.query_advice(b) - meta.query_advice(c)

    # Every row at once (checker)
    values = expr.evaluate(ColumnContext(witness))

    # One row (debugging, per-row checks)
    value = expr.evaluate(RowContext(witness, row=3))
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

import numpy as np

from constraints.errors import UnassignedCellError
from constraints.system import ColumnKind
from primitives.field import to_field

if TYPE_CHECKING:
    from constraints.expression import Expression
    from constraints.system import Column, Selector
    from protocol.data import WitnessData


class EvaluationContext(ABC):
    """Supplies leaf values; internal nodes use the values' own field operators."""

    @abstractmethod
    def constant(self, value: int):
        """Field element for an integer constant."""
        pass

    @abstractmethod
    def selector(self, selector: "Selector"):
        """Selector flag (0 or 1) at the current row(s)."""
        pass

    @abstractmethod
    def query(self, column: "Column", rotation: int):
        """Column value at the current row(s) shifted by ``rotation``."""
        pass


class ColumnContext(EvaluationContext):
    """Whole-column implementation - returns arrays of length n.

    Rotations are circular, as on the evaluation domain. Unassigned cells
    read as zero; the checker reports them separately.
    """

    def __init__(self, data: "WitnessData"):
        self._data = data

    def constant(self, value: int):
        return to_field(self._data.field, value)

    def selector(self, selector: "Selector"):
        return self._data.selector_column(selector)

    def query(self, column: "Column", rotation: int):
        # Row i reads row i + rotation, so shift left by rotation
        return np.roll(self._data.column(column), -rotation)


class RowContext(EvaluationContext):
    """Single-row implementation - returns scalars.

    A query on a witness cell that was never assigned raises
    UnassignedCellError.
    """

    def __init__(self, data: "WitnessData", row: int):
        self._data = data
        self.row = row

    def constant(self, value: int):
        return to_field(self._data.field, value)

    def selector(self, selector: "Selector"):
        return self._data.field(1 if self._data.is_enabled(selector, self.row) else 0)

    def query(self, column: "Column", rotation: int):
        row = (self.row + rotation) % self._data.n
        if column.kind is ColumnKind.ADVICE and not self._data.is_assigned(column, row):
            raise UnassignedCellError(column, row)
        return self._data.column(column)[row]


def evaluate_columns(expr: "Expression", data: "WitnessData"):
    """Evaluate ``expr`` on every row, always returning an array of length n."""
    values = expr.evaluate(ColumnContext(data))
    return data.field.Zeros(data.n) + values


def evaluate_row(expr: "Expression", data: "WitnessData", row: int):
    """Evaluate ``expr`` at a single row."""
    return expr.evaluate(RowContext(data, row))
