"""Range-check gadgets.

Three variants, each checking that a witnessed value lies in [0, R):

1. PolyRangeCheckConfig: the gate

       q_range_check * (0 - v) * (1 - v) * ... * (R - 1 - v) = 0

   vanishes iff v is in [0, R). Its degree grows with R, so it only suits
   small ranges.

2. LookupRangeCheckConfig: adds a RangeTable of size lookup_range and the
   lookup (q_lookup * v) in table. Degree stays constant whatever the range.

3. TaggedRangeCheckConfig: additionally witnesses a claimed bit-length and
   looks up (q_lookup * v, q_lookup * num_bits) in a TaggedRangeTable, so one
   table serves every width up to lookup_num_bits.

For 2 and 3, ``assign`` picks the polynomial gate when the claimed range is
below RangeCheckParams.range and the lookup otherwise. A claimed range larger
than the table is a configuration error.

Layout (variant 3):

    value | num_bits | q_range_check | q_lookup | table_num_bits | table_value
    v     | b        | 1             | 0        | 1              | 0
    v'    | b'       | 0             | 1        | 1              | 1
"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from constraints.errors import ConfigurationError
from constraints.expression import Constant, Expression
from constraints.system import Column, Constraints, ConstraintSystem, Selector
from gadgets.table import RangeTable, TaggedRangeTable
from witness.layouter import AssignedCell, Layouter


# --- Configuration ---

@dataclass
class RangeCheckParams:
    """Range-check sizing.

    Attributes:
        range: Polynomial gate covers [0, range); claimed ranges below it use the gate
        lookup_range: Table capacity; claimed ranges up to it use the lookup
        lookup_num_bits: Bit width of a tagged table (2^lookup_num_bits == lookup_range)
    """
    range: int
    lookup_range: int
    lookup_num_bits: Optional[int] = None

    def validate(self) -> None:
        if self.range < 1:
            raise ConfigurationError(f"range must be positive, got {self.range}")
        if self.lookup_range < self.range:
            raise ConfigurationError(
                f"lookup_range ({self.lookup_range}) must be at least range ({self.range})"
            )
        if self.lookup_num_bits is not None and (1 << self.lookup_num_bits) != self.lookup_range:
            raise ConfigurationError(
                f"2^lookup_num_bits ({1 << self.lookup_num_bits}) != lookup_range ({self.lookup_range})"
            )

    @classmethod
    def from_dict(cls, raw: dict) -> "RangeCheckParams":
        params = cls(
            range=int(raw["range"]),
            lookup_range=int(raw["lookup_range"]),
            lookup_num_bits=raw.get("lookup_num_bits"),
        )
        params.validate()
        return params

    @classmethod
    def from_json(cls, path: Union[str, Path]) -> "RangeCheckParams":
        with open(path) as f:
            return cls.from_dict(json.load(f))


@dataclass(frozen=True)
class RangeConstrained:
    """A cell whose value has been range-checked against [0, range)."""
    cell: AssignedCell
    range: int

    @property
    def value(self):
        return self.cell.value


def range_check_expr(value: Expression, size: int) -> Expression:
    """Product of (i - value) for i in [0, size)."""
    expr = Constant(0) - value
    for i in range(1, size):
        expr = expr * (Constant(i) - value)
    return expr


def _configure_gate(meta: ConstraintSystem, value: Column, size: int) -> Selector:
    q_range_check = meta.selector()
    meta.create_gate("range check", lambda vc: Constraints.with_selector(
        vc.query_selector(q_range_check),
        [("range check", range_check_expr(vc.query_advice(value), size))],
    ))
    return q_range_check


def _check_claim(claimed: int, capacity: int) -> None:
    if claimed > capacity:
        raise ConfigurationError(
            f"Claimed range {claimed} exceeds the lookup table capacity {capacity}"
        )


# --- Variant 1: polynomial ---

@dataclass
class PolyRangeCheckConfig:
    value: Column
    q_range_check: Selector
    range: int

    @classmethod
    def configure(cls, meta: ConstraintSystem, value: Column, range: int) -> "PolyRangeCheckConfig":
        if range < 1:
            raise ConfigurationError(f"range must be positive, got {range}")
        return cls(value, _configure_gate(meta, value, range), range)

    def assign(self, layouter: Layouter, value) -> RangeConstrained:
        def assignment(region):
            self.q_range_check.enable(region, 0)
            return region.assign_advice("value", self.value, 0, value)

        cell = layouter.assign_region("Assign value", assignment)
        return RangeConstrained(cell, self.range)


# --- Variant 2: flat lookup ---

@dataclass
class LookupRangeCheckConfig:
    value: Column
    q_range_check: Selector
    q_lookup: Selector
    table: RangeTable
    params: RangeCheckParams

    @classmethod
    def configure(cls, meta: ConstraintSystem, value: Column,
                  params: RangeCheckParams) -> "LookupRangeCheckConfig":
        params.validate()
        q_range_check = _configure_gate(meta, value, params.range)
        # Simple selectors cannot appear in lookup arguments
        q_lookup = meta.complex_selector()
        table = RangeTable.configure(meta, params.lookup_range)

        meta.lookup("range check lookup", lambda vc: [
            (vc.query_selector(q_lookup) * vc.query_advice(value), table.value),
        ])
        return cls(value, q_range_check, q_lookup, table, params)

    def assign(self, layouter: Layouter, value, range: int) -> RangeConstrained:
        """Range-check ``value`` against [0, range) using the cheaper applicable variant.

        Raises:
            ConfigurationError: If ``range`` exceeds the table capacity. The claim
                is only known here, so the check runs at assignment time.
        """
        _check_claim(range, self.params.lookup_range)
        if range < self.params.range:
            selector, name = self.q_range_check, "Assign value"
        else:
            selector, name = self.q_lookup, "Assign value for lookup range check"

        def assignment(region):
            selector.enable(region, 0)
            return region.assign_advice("value", self.value, 0, value)

        cell = layouter.assign_region(name, assignment)
        return RangeConstrained(cell, range)


# --- Variant 3: tagged lookup ---

@dataclass
class TaggedRangeCheckConfig:
    value: Column
    num_bits: Column
    q_range_check: Selector
    q_lookup: Selector
    table: TaggedRangeTable
    params: RangeCheckParams

    @classmethod
    def configure(cls, meta: ConstraintSystem, value: Column, num_bits: Column,
                  params: RangeCheckParams) -> "TaggedRangeCheckConfig":
        params.validate()
        if params.lookup_num_bits is None:
            raise ConfigurationError("Tagged range check needs lookup_num_bits")
        q_range_check = _configure_gate(meta, value, params.range)
        q_lookup = meta.complex_selector()
        table = TaggedRangeTable.configure(meta, params.lookup_num_bits, params.lookup_range)

        def lookup(vc):
            q = vc.query_selector(q_lookup)
            return [
                (q * vc.query_advice(value), table.value),
                (q * vc.query_advice(num_bits), table.num_bits_column),
            ]

        meta.lookup("tagged range check lookup", lookup)
        return cls(value, num_bits, q_range_check, q_lookup, table, params)

    def assign(self, layouter: Layouter, value, num_bits: int, range: int) -> RangeConstrained:
        """Range-check ``value`` with claimed bit-length ``num_bits`` against [0, range).

        Raises:
            ConfigurationError: If ``range`` exceeds the table capacity (checked
                here, since the claim is an argument of this call)
        """
        _check_claim(range, self.params.lookup_range)
        if range < self.params.range:
            selector, name = self.q_range_check, "Assign value"
        else:
            selector, name = self.q_lookup, "Assign value for lookup range check"

        def assignment(region):
            selector.enable(region, 0)
            region.assign_advice("num_bits", self.num_bits, 0, num_bits)
            return region.assign_advice("value", self.value, 0, value)

        cell = layouter.assign_region(name, assignment)
        return RangeConstrained(cell, range)
