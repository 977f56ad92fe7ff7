"""IsZero gadget.

Given an expression ``value`` and an auxiliary witness column ``value_inv``,
the indicator

    is_zero = 1 - value * value_inv

is 1 when value = 0 and 0 otherwise, provided the gate enforces

    q_enable * value * is_zero = 0

When value != 0 the constraint forces value_inv = 1/value, making the
indicator 0; when value = 0 the indicator is 1 whatever value_inv holds.
Assignment writes value_inv = 1/value, or 0 when value is 0.

The enable and value builders are supplied by the caller, so the indicator
composes into any enclosing gate through ``IsZeroConfig.expr()``. With an
``indicator`` column the indicator is also materialised as a cell and
constrained to equal the expression.
"""

from dataclasses import dataclass
from typing import Callable, Optional

from constraints.expression import Constant, Expression
from constraints.system import Column, ConstraintSystem, VirtualCells
from primitives.field import invert_or_zero, to_field
from witness.base import Chip
from witness.layouter import AssignedCell, Region

ExprBuilder = Callable[[VirtualCells], Expression]


@dataclass
class IsZeroConfig:
    """Column handles and the indicator expression of one IsZero instance."""
    value_inv: Column
    is_zero_expr: Expression
    indicator: Optional[Column] = None

    def expr(self) -> Expression:
        return self.is_zero_expr


@dataclass(frozen=True)
class IsZeroAssignment:
    value_inv: AssignedCell
    indicator: Optional[AssignedCell] = None


class IsZeroChip(Chip[IsZeroConfig]):

    @staticmethod
    def configure(
        meta: ConstraintSystem,
        q_enable: ExprBuilder,
        value: ExprBuilder,
        value_inv: Column,
        indicator: Optional[Column] = None,
    ) -> IsZeroConfig:
        """Register the is_zero gate.

        Args:
            meta: Constraint system
            q_enable: Builder for the enable condition (usually a selector query)
            value: Builder for the expression tested against zero
            value_inv: Advice column holding the inverse witness
            indicator: Optional advice column exposing the indicator as a cell
        """
        config = IsZeroConfig(value_inv, Constant(0), indicator)

        def gate(vc: VirtualCells):
            q = q_enable(vc)
            v = value(vc)
            inv = vc.query_advice(value_inv)
            config.is_zero_expr = Constant(1) - v * inv

            constraints = [("value * is_zero", q * (v * config.is_zero_expr))]
            if indicator is not None:
                out = vc.query_advice(indicator)
                constraints.insert(0, ("indicator", q * (out - config.is_zero_expr)))
            return constraints

        meta.create_gate("is_zero", gate)
        return config

    def assign(self, region: Region, offset: int, value) -> IsZeroAssignment:
        """Write value_inv (and the indicator cell, if configured) for ``value``."""
        value = to_field(region.field, value)
        inv = invert_or_zero(value)
        inv_cell = region.assign_advice("value inv", self.config.value_inv, offset, inv)
        indicator_cell = None
        if self.config.indicator is not None:
            indicator_cell = region.assign_advice(
                "is_zero", self.config.indicator, offset, 1 if value == 0 else 0,
            )
        return IsZeroAssignment(inv_cell, indicator_cell)
