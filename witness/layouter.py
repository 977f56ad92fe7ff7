"""Region-based witness assignment.

The Layouter hands out regions: contiguous blocks of rows in which a gadget
enables selectors and writes cells. Regions are placed one after another on a
shared row cursor and never reuse rows. Writes are staged inside the region
and committed when it closes, so a failed assignment leaves no partial state.

Example:
    with layouter.region("add") as region:
        q_add.enable(region, 0)
        a = region.assign_advice("a", config.a, 0, 3)
        b = region.assign_advice("b", config.b, 0, 4)
        region.assign_advice("c", config.c, 0, a.value + b.value)

Lookup tables are filled through assign_table, which writes table columns
from row 0 and accepts repeated identical writes so loading twice is harmless.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple, TypeVar

from constraints.errors import AssignmentError
from constraints.system import Column, ColumnKind, ConstraintSystem, Selector, TableColumn
from primitives.field import to_field

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class AssignedCell:
    """A written cell. Pass it to copy_advice/constrain_equal to chain gadgets."""
    column: Column
    row: int
    value: object
    name: str = ""

    def __str__(self) -> str:
        return f"{self.name or self.column}@{self.row}={int(self.value)}"


@dataclass
class RegionInfo:
    """Rows claimed by one region.

    Attributes:
        index: Allocation order
        name: Diagnostic label
        start: First absolute row
        height: Number of rows (max used offset + 1)
    """
    index: int
    name: str
    start: int
    height: int = 0

    @property
    def end(self) -> int:
        return self.start + self.height

    def contains(self, row: int) -> bool:
        return self.start <= row < self.end


class Region:
    """Handle to one open region. Offsets are relative to the region start."""

    def __init__(self, layouter: "Layouter", info: RegionInfo):
        self._layouter = layouter
        self._data = layouter.data
        self._cs = layouter.cs
        self.info = info
        self._cells: Dict[Tuple[Column, int], object] = {}
        self._enabled: List[Tuple[Selector, int]] = []
        self._copies: List[Tuple[Tuple[Column, int], Tuple[Column, int]]] = []
        self._height = 0
        self._open = True

    @property
    def name(self) -> str:
        return self.info.name

    @property
    def field(self):
        return self._data.field

    def _row(self, offset: int) -> int:
        if not self._open:
            raise AssignmentError(f"Region '{self.name}' is closed")
        if offset < 0:
            raise AssignmentError(f"Negative offset {offset} in region '{self.name}'")
        row = self.info.start + offset
        if row >= self._data.n:
            raise AssignmentError(
                f"Region '{self.name}' needs row {row} but the circuit has {self._data.n} rows"
            )
        self._height = max(self._height, offset + 1)
        return row

    def enable_selector(self, selector: Selector, offset: int) -> None:
        row = self._row(offset)
        self._enabled.append((selector, row))

    def _assign(self, name: str, column: Column, offset: int, value) -> AssignedCell:
        row = self._row(offset)
        key = (column, row)
        if key in self._cells or self._data.is_assigned(column, row):
            raise AssignmentError(
                f"Cell {name or column} at row {row} in region '{self.name}' already assigned"
            )
        value = to_field(self._data.field, value)
        self._cells[key] = value
        return AssignedCell(column, row, value, self._layouter.label(name))

    def assign_advice(self, name: str, column: Column, offset: int, value) -> AssignedCell:
        if column.kind is not ColumnKind.ADVICE:
            raise AssignmentError(f"{column} is not an advice column")
        return self._assign(name, column, offset, value)

    def assign_fixed(self, name: str, column: Column, offset: int, value) -> AssignedCell:
        if column.kind is not ColumnKind.FIXED:
            raise AssignmentError(f"{column} is not a fixed column")
        if self._cs.is_table_column(column):
            raise AssignmentError(f"{column} is a lookup table column; use assign_table")
        return self._assign(name, column, offset, value)

    def constrain_equal(self, left: AssignedCell, right: AssignedCell) -> None:
        """Require two cells to hold the same value."""
        if not self._open:
            raise AssignmentError(f"Region '{self.name}' is closed")
        for cell in (left, right):
            if cell.column not in self._cs.equality_columns:
                raise AssignmentError(f"{cell.column} does not have equality enabled")
        self._copies.append(((left.column, left.row), (right.column, right.row)))

    def copy_advice(self, name: str, cell: AssignedCell, column: Column, offset: int) -> AssignedCell:
        """Write ``cell``'s value into ``column`` and constrain the two equal."""
        copied = self.assign_advice(name, column, offset, cell.value)
        self.constrain_equal(cell, copied)
        return copied

    def _commit(self) -> None:
        # Check every staged cell before writing any of them
        for column, row in self._cells:
            if self._data.is_assigned(column, row):
                raise AssignmentError(
                    f"{column} at row {row} in region '{self.name}' was assigned elsewhere"
                )
        for (column, row), value in self._cells.items():
            self._data.write(column, row, value)
        for selector, row in self._enabled:
            self._data.enable(selector, row)
        self._data.copies.extend(self._copies)
        self.info.height = self._height
        self._open = False

    def _discard(self) -> None:
        self._open = False


class TableLayouter:
    """Writes lookup table columns from row 0. Identical rewrites are no-ops."""

    def __init__(self, layouter: "Layouter", name: str):
        self._data = layouter.data
        self._cs = layouter.cs
        self.name = name
        self._cells: Dict[Tuple[Column, int], object] = {}
        self._open = True

    def assign_cell(self, name: str, column: TableColumn, offset: int, value) -> None:
        if not self._open:
            raise AssignmentError(f"Table '{self.name}' is closed")
        if not isinstance(column, TableColumn):
            raise AssignmentError(f"{column} is not a lookup table column")
        if not 0 <= offset < self._data.n:
            raise AssignmentError(
                f"Table '{self.name}' row {offset} does not fit in {self._data.n} rows"
            )
        key = (column.column, offset)
        value = to_field(self._data.field, value)
        previous = self._cells.get(key)
        if previous is not None and previous != value:
            raise AssignmentError(
                f"Table '{self.name}' {name} at row {offset}: conflicting values "
                f"{int(previous)} and {int(value)}"
            )
        self._cells[key] = value

    def _commit(self) -> None:
        for (column, row), value in self._cells.items():
            if self._data.is_assigned(column, row) and self._data.value(column, row) != value:
                raise AssignmentError(
                    f"Table '{self.name}' {column} at row {row} already holds "
                    f"{int(self._data.value(column, row))}, cannot load {int(value)}"
                )
        for (column, row), value in self._cells.items():
            self._data.write(column, row, value, overwrite_same=True)
        self._open = False


class Layouter:
    """Allocates regions over a WitnessData and records their placement.

    Args:
        cs: Constraint system of the circuit
        data: Witness data being filled
        prefix: Namespace labels (diagnostic only)

    Regions do not nest: opening a region while another one is open, through
    this layouter or any namespace of it, raises AssignmentError.
    """

    def __init__(self, cs: ConstraintSystem, data, prefix: Tuple[str, ...] = (),
                 open_regions: Optional[List[RegionInfo]] = None):
        self.cs = cs
        self.data = data
        self._prefix = prefix
        self._open_regions = open_regions if open_regions is not None else []

    def label(self, name: str) -> str:
        return "/".join(self._prefix + (name,)) if name else "/".join(self._prefix)

    def namespace(self, name: str) -> "Layouter":
        """Child layouter sharing the same witness and row cursor."""
        return Layouter(self.cs, self.data, self._prefix + (name,), self._open_regions)

    def next_free_row(self) -> int:
        return max((r.end for r in self.data.regions), default=0)

    @contextmanager
    def region(self, name: str):
        """Open a region at the next free row; commit it on exit."""
        if self._open_regions:
            raise AssignmentError(
                f"Cannot open region '{self.label(name)}' inside region "
                f"'{self._open_regions[-1].name}'"
            )
        info = RegionInfo(index=len(self.data.regions), name=self.label(name),
                          start=self.next_free_row())
        region = Region(self, info)
        self._open_regions.append(info)
        try:
            yield region
            region._commit()
        except Exception:
            region._discard()
            raise
        finally:
            self._open_regions.remove(info)
        self.data.regions.append(info)
        logger.debug("region %d %r: rows [%d, %d)", info.index, info.name, info.start, info.end)

    def assign_region(self, name: str, assignment: Callable[[Region], T]) -> T:
        """Run ``assignment`` inside a fresh region and return its result."""
        with self.region(name) as region:
            return assignment(region)

    def assign_table(self, name: str, assignment: Callable[[TableLayouter], None]) -> None:
        """Fill lookup table columns. Safe to call more than once with the same contents."""
        table = TableLayouter(self, self.label(name))
        assignment(table)
        table._commit()
        logger.debug("table %r: %d cells", table.name, len(table._cells))

    def constrain_instance(self, cell: AssignedCell, column: Column, row: int) -> None:
        """Require ``cell`` to equal the public value at ``row`` of ``column``."""
        if column.kind is not ColumnKind.INSTANCE:
            raise AssignmentError(f"{column} is not an instance column")
        for c in (cell.column, column):
            if c not in self.cs.equality_columns:
                raise AssignmentError(f"{c} does not have equality enabled")
        if not 0 <= row < self.data.n:
            raise AssignmentError(f"Instance row {row} is outside the circuit (n={self.data.n})")
        self.data.copies.append(((cell.column, cell.row), (column, row)))
