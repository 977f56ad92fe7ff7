"""f(a, b, c) = c if a == b else a - b, built on IsZero.

Layout (one row per call):

    a  | b  | c  | s | value_inv      | output
    10 | 12 | 15 | 1 | 1/(10 - 12)    | -2
    10 | 10 | 15 | 1 | 0              | 15

The gate holds two constraints, one per branch. On every enabled row exactly
one of them is exercised; the other vanishes through a zero factor:

    s * a_equals_b       * (output - c)
    s * (1 - a_equals_b) * (output - (a - b))
"""

from dataclasses import dataclass

from constraints.expression import Constant
from constraints.system import Column, ConstraintSystem, Selector
from gadgets.is_zero import IsZeroChip, IsZeroConfig
from primitives.field import to_field
from witness.base import Chip
from witness.layouter import AssignedCell, Layouter

GATE_NAME = "f(a, b, c) = if a == b {c} else {a - b}"


@dataclass
class IfEqualConfig:
    selector: Selector
    a: Column
    b: Column
    c: Column
    a_equals_b: IsZeroConfig
    output: Column


class IfEqualChip(Chip[IfEqualConfig]):

    @staticmethod
    def configure(meta: ConstraintSystem) -> IfEqualConfig:
        selector = meta.selector()
        a = meta.advice_column()
        b = meta.advice_column()
        c = meta.advice_column()
        output = meta.advice_column()
        value_inv = meta.advice_column()

        a_equals_b = IsZeroChip.configure(
            meta,
            lambda vc: vc.query_selector(selector),
            lambda vc: vc.query_advice(a) - vc.query_advice(b),
            value_inv,
        )

        def gate(vc):
            s = vc.query_selector(selector)
            a_ = vc.query_advice(a)
            b_ = vc.query_advice(b)
            c_ = vc.query_advice(c)
            out = vc.query_advice(output)
            is_eq = a_equals_b.expr()
            return [
                ("output == c", s * (is_eq * (out - c_))),
                ("output == a - b", s * ((Constant(1) - is_eq) * (out - (a_ - b_)))),
            ]

        meta.create_gate(GATE_NAME, gate)
        return IfEqualConfig(selector, a, b, c, a_equals_b, output)

    def assign(self, layouter: Layouter, a, b, c) -> AssignedCell:
        """Assign one row and return the output cell."""
        is_zero_chip = IsZeroChip.construct(self.config.a_equals_b)
        config = self.config

        def assignment(region):
            a_val = to_field(region.field, a)
            b_val = to_field(region.field, b)
            c_val = to_field(region.field, c)
            config.selector.enable(region, 0)
            region.assign_advice("a", config.a, 0, a_val)
            region.assign_advice("b", config.b, 0, b_val)
            region.assign_advice("c", config.c, 0, c_val)
            is_zero_chip.assign(region, 0, a_val - b_val)
            output = c_val if a_val == b_val else a_val - b_val
            return region.assign_advice("output", config.output, 0, output)

        return layouter.assign_region(GATE_NAME, assignment)
