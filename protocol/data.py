"""Witness data for one circuit instance.

Architecture Overview:
    A circuit is handled in two stages:

    1. ConstraintSystem (constraints/system.py)
       - Columns, selectors, gates, lookups
       - Built once per circuit shape and shared by every instance

    2. WitnessData (this module)
       - Column values, assignment masks, selector flags, regions, copies
       - Created fresh for each instance, filled by the Layouter
         (witness/layouter.py), read by the checker (protocol/mock_prover.py)

    Columns are galois arrays of length n = 2^k keyed by Column handle.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from constraints.errors import AssignmentError, ConfigurationError
from constraints.system import Column, ColumnKind, ConstraintSystem, Selector
from primitives.field import to_field
from witness.layouter import RegionInfo

CellRef = Tuple[Column, int]


@dataclass
class WitnessData:
    """Concrete assignment of every cell of a circuit instance.

    Attributes:
        field: galois field class
        n: Number of rows
        columns: Column values keyed by Column
        assigned: Boolean masks of written cells, keyed by Column
        selectors: Boolean masks of enabled rows, keyed by Selector
        regions: Regions in allocation order
        copies: Pairs of cells constrained to be equal
    """
    field: type
    n: int
    columns: Dict[Column, object] = field(default_factory=dict)
    assigned: Dict[Column, np.ndarray] = field(default_factory=dict)
    selectors: Dict[Selector, np.ndarray] = field(default_factory=dict)
    regions: List[RegionInfo] = field(default_factory=list)
    copies: List[Tuple[CellRef, CellRef]] = field(default_factory=list)

    @classmethod
    def empty(cls, cs: ConstraintSystem, k: int,
              instances: Optional[Sequence[Sequence]] = None) -> 'WitnessData':
        """Allocate zeroed columns for ``cs`` with 2^k rows.

        Args:
            cs: Constraint system describing the columns
            k: log2 of the number of rows
            instances: Public values, one sequence per instance column
        """
        n = 1 << k
        data = cls(field=cs.field, n=n)
        for column in cs.columns:
            data.columns[column] = cs.field.Zeros(n)
            data.assigned[column] = np.zeros(n, dtype=bool)
        for selector in cs.selectors:
            data.selectors[selector] = np.zeros(n, dtype=bool)

        instance_columns = cs.columns_of(ColumnKind.INSTANCE)
        instances = list(instances or [])
        if len(instances) != len(instance_columns):
            raise ConfigurationError(
                f"Expected {len(instance_columns)} instance columns, got {len(instances)}"
            )
        for column, values in zip(instance_columns, instances):
            if len(values) > n:
                raise ConfigurationError(f"{len(values)} public values do not fit in {n} rows")
            for row, value in enumerate(values):
                data.write(column, row, value)
        return data

    # --- Reads ---

    def column(self, column: Column):
        return self.columns[column]

    def value(self, column: Column, row: int):
        return self.columns[column][row]

    def is_assigned(self, column: Column, row: int) -> bool:
        return bool(self.assigned[column][row])

    def is_enabled(self, selector: Selector, row: int) -> bool:
        return bool(self.selectors[selector][row])

    def selector_column(self, selector: Selector):
        """Selector flags as a 0/1 field array."""
        values = self.field.Zeros(self.n)
        values[self.selectors[selector]] = 1
        return values

    def region_at(self, row: int) -> Optional[RegionInfo]:
        for region in self.regions:
            if region.contains(row):
                return region
        return None

    def used_rows(self) -> np.ndarray:
        """Mask of rows covered by some region."""
        mask = np.zeros(self.n, dtype=bool)
        for region in self.regions:
            mask[region.start:region.end] = True
        return mask

    # --- Writes ---

    def write(self, column: Column, row: int, value, overwrite_same: bool = False) -> None:
        """Store ``value`` at (column, row).

        Raises:
            AssignmentError: If the row is out of range, or the cell already
                holds a value (unless ``overwrite_same`` and the value matches)
        """
        if not 0 <= row < self.n:
            raise AssignmentError(f"Row {row} of {column} is outside the circuit (n={self.n})")
        value = to_field(self.field, value)
        if self.assigned[column][row]:
            if overwrite_same and self.columns[column][row] == value:
                return
            raise AssignmentError(
                f"{column} at row {row} already assigned "
                f"({int(self.columns[column][row])}), cannot write {int(value)}"
            )
        self.columns[column][row] = value
        self.assigned[column][row] = True

    def enable(self, selector: Selector, row: int) -> None:
        if not 0 <= row < self.n:
            raise AssignmentError(f"Row {row} for {selector} is outside the circuit (n={self.n})")
        self.selectors[selector][row] = True

    # --- Export ---

    def cells(self) -> List[Tuple[str, int, int, int]]:
        """Sorted (kind, column index, row, value) for every assigned cell."""
        cells = []
        for column, mask in self.assigned.items():
            values = self.columns[column]
            for row in np.nonzero(mask)[0]:
                cells.append((column.kind.value, column.index, int(row), int(values[row])))
        return sorted(cells)

    def to_dict(self) -> dict:
        """JSON-serialisable snapshot of the assignment."""
        return {
            "n": self.n,
            "cells": [list(c) for c in self.cells()],
            "selectors": {
                str(s): [int(r) for r in np.nonzero(mask)[0]]
                for s, mask in sorted(self.selectors.items(), key=lambda kv: kv[0].index)
            },
            "regions": [
                {"index": r.index, "name": r.name, "start": r.start, "height": r.height}
                for r in self.regions
            ],
        }
