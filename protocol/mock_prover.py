"""Satisfiability checking of an assigned circuit.

The checker evaluates every gate and every lookup of a ConstraintSystem over
a finished WitnessData and collects every violation. It never stops at the
first failure, so one run surfaces all broken constraints.

Gates are evaluated column-wise (ColumnContext) over all rows at once; rows
are independent, so the report is the concatenation of per-row findings and
its order carries no meaning.

Usage:
    prover = MockProver.run(k=4, circuit=MyCircuit(x=3))
    prover.assert_satisfied()

    # Reuse one configuration across instances
    shape = keygen(MyCircuit(x=0))
    for x in values:
        report = MockProver.run(4, MyCircuit(x=x), shape=shape).report
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional, Sequence, Tuple

import numpy as np

from constraints.base import evaluate_columns
from constraints.system import ColumnKind, ConstraintSystem, Lookup
from protocol.circuit import Circuit
from protocol.data import WitnessData
from witness.layouter import Layouter

logger = logging.getLogger(__name__)


# --- Configuration and synthesis ---

@dataclass
class CircuitShape:
    """Configured schema of a circuit, shared by all of its instances."""
    cs: ConstraintSystem
    config: Any


def keygen(circuit: Circuit) -> CircuitShape:
    """Run ``circuit.configure`` on a fresh ConstraintSystem."""
    cs = ConstraintSystem(field=circuit.field)
    config = circuit.configure(cs)
    return CircuitShape(cs, config)


def synthesize(k: int, circuit: Circuit, shape: CircuitShape,
               instances: Optional[Sequence[Sequence]] = None) -> WitnessData:
    """Assign the witness of ``circuit`` on 2^k rows."""
    data = WitnessData.empty(shape.cs, k, instances)
    circuit.synthesize(shape.config, Layouter(shape.cs, data))
    return data


# --- Failures ---

class FailureKind(Enum):
    CONSTRAINT_NOT_SATISFIED = "constraint not satisfied"
    CELL_NOT_ASSIGNED = "cell not assigned"
    LOOKUP = "lookup input not in table"
    PERMUTATION = "copy constraint not satisfied"


@dataclass(frozen=True)
class FailureLocation:
    """Absolute row plus the enclosing region, if any."""
    row: int
    region_index: Optional[int] = None
    region_name: Optional[str] = None
    offset: Optional[int] = None

    @classmethod
    def at(cls, data: WitnessData, row: int) -> "FailureLocation":
        region = data.region_at(row)
        if region is None:
            return cls(row)
        return cls(row, region.index, region.name, row - region.start)

    @property
    def in_region(self) -> bool:
        return self.region_index is not None

    def __str__(self) -> str:
        if self.in_region:
            return f"region {self.region_index} '{self.region_name}' offset {self.offset}"
        return f"row {self.row} (outside any region)"


@dataclass(frozen=True)
class VerifyFailure:
    """One violation found by the checker.

    Attributes:
        kind: What failed
        name: Gate or lookup name ('' for copy constraints)
        location: Where it failed
        constraint: Constraint name within the gate, if applicable
        cell_values: (cell label, value) pairs useful for debugging
    """
    kind: FailureKind
    name: str
    location: FailureLocation
    constraint: Optional[str] = None
    cell_values: Tuple[Tuple[str, int], ...] = ()

    def __str__(self) -> str:
        what = self.name if self.constraint is None else f"{self.name}/{self.constraint}"
        cells = ", ".join(f"{label}={value}" for label, value in self.cell_values)
        suffix = f" [{cells}]" if cells else ""
        return f"{self.kind.value}: {what} at {self.location}{suffix}"


@dataclass
class SatisfiabilityReport:
    failures: List[VerifyFailure] = field(default_factory=list)

    @property
    def is_satisfied(self) -> bool:
        return not self.failures

    def of_kind(self, kind: FailureKind) -> List[VerifyFailure]:
        return [f for f in self.failures if f.kind is kind]


# --- Checker ---

def _active_rows(data: WitnessData, selectors, used: np.ndarray) -> np.ndarray:
    """Rows where any of ``selectors`` is on, or every used row when there are none.

    Without selectors only rows covered by a region are checked, not all n rows.
    """
    if not selectors:
        return used
    active = np.zeros(data.n, dtype=bool)
    for selector in selectors:
        active |= data.selectors[selector]
    return active


def _check_gates(cs: ConstraintSystem, data: WitnessData, used: np.ndarray) -> List[VerifyFailure]:
    failures = []
    for gate in cs.gates:
        active = _active_rows(data, gate.selectors, used)
        if not active.any():
            continue

        # Every witness cell a constraint queries must be assigned on active rows
        seen = set()
        for constraint in gate.constraints:
            failures += _unassigned_cells(
                data, active, gate.name, constraint.name, constraint.expression.queries(), seen,
            )

        for constraint in gate.constraints:
            values = evaluate_columns(constraint.expression, data)
            for row in np.nonzero(active & (np.asarray(values) != 0))[0]:
                row = int(row)
                cells = tuple(
                    (str(q), int(data.value(q.column, (row + q.rotation) % data.n)))
                    for q in _distinct(constraint.expression.queries())
                )
                failures.append(VerifyFailure(
                    FailureKind.CONSTRAINT_NOT_SATISFIED, gate.name,
                    FailureLocation.at(data, row), constraint.name, cells,
                ))
    return failures


def _unassigned_cells(data: WitnessData, active: np.ndarray, name: str,
                      constraint: Optional[str], queries, seen: set) -> List[VerifyFailure]:
    """CELL_NOT_ASSIGNED failures for advice ``queries`` that hit unwritten cells on active rows."""
    failures = []
    for query in queries:
        if query.column.kind is not ColumnKind.ADVICE:
            continue
        rolled = np.roll(data.assigned[query.column], -query.rotation)
        for row in np.nonzero(active & ~rolled)[0]:
            row = int(row)
            cell_row = (row + query.rotation) % data.n
            key = (query.column, cell_row, row)
            if key in seen:
                continue
            seen.add(key)
            failures.append(VerifyFailure(
                FailureKind.CELL_NOT_ASSIGNED, name, FailureLocation.at(data, row),
                constraint, ((str(query), cell_row),),
            ))
    return failures


def _distinct(queries):
    seen, result = set(), []
    for q in queries:
        key = (q.column, q.rotation)
        if key not in seen:
            seen.add(key)
            result.append(q)
    return result


def _as_ints(values) -> List[int]:
    return [int(v) for v in np.asarray(values)]


def _table_rows(data: WitnessData, lookup: Lookup) -> set:
    """Tuples of the table columns over rows where all of them are assigned."""
    columns = [t.column for t in lookup.table]
    mask = np.ones(data.n, dtype=bool)
    for column in columns:
        mask &= data.assigned[column]
    values = [_as_ints(data.column(c)) for c in columns]
    return {tuple(col[row] for col in values) for row in np.nonzero(mask)[0]}


def _check_lookups(cs: ConstraintSystem, data: WitnessData, used: np.ndarray) -> List[VerifyFailure]:
    failures = []
    for lookup in cs.lookups:
        active = _active_rows(data, lookup.selectors, used)
        if not active.any():
            continue
        table = _table_rows(data, lookup)
        if not table:
            logger.warning("lookup %r: table columns are empty; was the table loaded?", lookup.name)
        seen = set()
        for expr in lookup.inputs:
            failures += _unassigned_cells(data, active, lookup.name, None, expr.queries(), seen)
        inputs = [_as_ints(evaluate_columns(e, data)) for e in lookup.inputs]
        for row in np.nonzero(active)[0]:
            row = int(row)
            entry = tuple(col[row] for col in inputs)
            if entry not in table:
                cells = tuple((str(e), v) for e, v in zip(lookup.inputs, entry))
                failures.append(VerifyFailure(
                    FailureKind.LOOKUP, lookup.name, FailureLocation.at(data, row), None, cells,
                ))
    return failures


def _check_copies(data: WitnessData) -> List[VerifyFailure]:
    failures = []
    for (left_col, left_row), (right_col, right_row) in data.copies:
        left = data.value(left_col, left_row)
        right = data.value(right_col, right_row)
        if left != right:
            failures.append(VerifyFailure(
                FailureKind.PERMUTATION, "", FailureLocation.at(data, left_row), None,
                ((f"{left_col}@{left_row}", int(left)), (f"{right_col}@{right_row}", int(right))),
            ))
    return failures


def check(cs: ConstraintSystem, data: WitnessData) -> SatisfiabilityReport:
    """Evaluate every gate, lookup and copy constraint and collect all violations."""
    used = data.used_rows()
    failures = _check_gates(cs, data, used)
    failures += _check_lookups(cs, data, used)
    failures += _check_copies(data)
    logger.info(
        "checked %d gates, %d lookups, %d copies over %d rows: %d failures",
        len(cs.gates), len(cs.lookups), len(data.copies), data.n, len(failures),
    )
    return SatisfiabilityReport(failures)


# --- Mock prover ---

class MockProver:
    """Runs configuration, synthesis and the satisfiability check for a circuit.

    Attributes:
        k: log2 of the number of rows
        shape: Configured circuit schema
        data: Assigned witness
        report: Result of the satisfiability check
    """

    def __init__(self, k: int, shape: CircuitShape, data: WitnessData):
        self.k = k
        self.shape = shape
        self.data = data
        self.report = check(shape.cs, data)

    @classmethod
    def run(cls, k: int, circuit: Circuit, instances: Optional[Sequence[Sequence]] = None,
            shape: Optional[CircuitShape] = None) -> "MockProver":
        """Configure (unless ``shape`` is given), synthesize and check ``circuit``.

        Raises:
            ConfigurationError: If the circuit schema is invalid
            AssignmentError: If synthesis violates assignment bookkeeping
        """
        if shape is None:
            shape = keygen(circuit)
        data = synthesize(k, circuit, shape, instances)
        return cls(k, shape, data)

    def verify(self) -> List[VerifyFailure]:
        """All failures; empty when the witness satisfies the circuit."""
        return list(self.report.failures)

    def assert_satisfied(self) -> None:
        failures = self.verify()
        if failures:
            lines = "\n".join(f"  {f}" for f in failures)
            raise AssertionError(f"Circuit is not satisfied ({len(failures)} failures):\n{lines}")
