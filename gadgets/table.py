"""Range-check lookup tables.

RangeTable: one column holding 0, 1, ..., range - 1.

TaggedRangeTable: two columns (num_bits, value). Row 0 is (1, 0): zero is
tagged as a 1-bit value. Then for every width b in 1..=num_bits the rows
(b, v) for v in [2^(b-1), 2^b). A value matches only under its exact minimal
bit-length tag, so (4, 8) is present and (3, 8) is not. The table has
2^num_bits rows in total, the zero row included.

Both tables are loaded through Layouter.assign_table before checking; loading
twice writes identical cells and leaves the contents unchanged.
"""

from dataclasses import dataclass
from typing import Iterator, Tuple

from constraints.errors import ConfigurationError
from constraints.system import ConstraintSystem, TableColumn
from witness.layouter import Layouter


@dataclass(frozen=True)
class RangeTable:
    """Flat table of values 0..range-1."""
    value: TableColumn
    range: int

    @classmethod
    def configure(cls, meta: ConstraintSystem, range: int) -> "RangeTable":
        if range < 1:
            raise ConfigurationError(f"Range table needs a positive range, got {range}")
        return cls(meta.lookup_table_column(), range)

    def rows(self) -> Iterator[int]:
        return iter(range(self.range))

    def load(self, layouter: Layouter) -> None:
        def assignment(table):
            for offset, value in enumerate(self.rows()):
                table.assign_cell("value", self.value, offset, value)

        layouter.assign_table("load range-check table", assignment)


@dataclass(frozen=True)
class TaggedRangeTable:
    """(num_bits, value) table covering every value below 2^num_bits."""
    num_bits_column: TableColumn
    value: TableColumn
    num_bits: int
    range: int

    @classmethod
    def configure(cls, meta: ConstraintSystem, num_bits: int, range: int) -> "TaggedRangeTable":
        """Allocate the two table columns.

        Raises:
            ConfigurationError: If 2^num_bits != range
        """
        if num_bits < 1 or (1 << num_bits) != range:
            raise ConfigurationError(
                f"Tagged range table needs 2^num_bits == range, got num_bits={num_bits}, range={range}"
            )
        value = meta.lookup_table_column()
        num_bits_column = meta.lookup_table_column()
        return cls(num_bits_column, value, num_bits, range)

    def rows(self) -> Iterator[Tuple[int, int]]:
        yield (1, 0)
        for bits in range(1, self.num_bits + 1):
            for value in range(1 << (bits - 1), 1 << bits):
                yield (bits, value)

    def load(self, layouter: Layouter) -> None:
        def assignment(table):
            for offset, (bits, value) in enumerate(self.rows()):
                table.assign_cell("num_bits", self.num_bits_column, offset, bits)
                table.assign_cell("value", self.value, offset, value)

        layouter.assign_table("load tagged range-check table", assignment)
