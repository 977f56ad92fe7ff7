"""Configure-time registry of columns, selectors, gates and lookups.

A ConstraintSystem is built once per circuit shape. Gadgets receive it during
configuration, allocate their columns and selectors, and register gates and
lookup arguments through builder functions. Builders see a VirtualCells query
context and return expression trees; they never see witness values.

Example:
    meta = ConstraintSystem()
    a = meta.advice_column()
    q = meta.selector()
    meta.create_gate("boolean", lambda vc: [
        vc.query_selector(q) * vc.query_advice(a) * (1 - vc.query_advice(a)),
    ])
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Sequence, Tuple, Union

from constraints.errors import ConfigurationError
from constraints.expression import Expression, Query, SelectorExpr, as_expression
from primitives.field import FF

logger = logging.getLogger(__name__)


# --- Columns and selectors ---

class ColumnKind(Enum):
    ADVICE = "advice"
    FIXED = "fixed"
    INSTANCE = "instance"


@dataclass(frozen=True)
class Column:
    """Column handle. Witness columns are ``ADVICE``, public ones ``INSTANCE``."""
    kind: ColumnKind
    index: int

    def __str__(self) -> str:
        return f"{self.kind.value}[{self.index}]"


@dataclass(frozen=True)
class TableColumn:
    """Fixed column reserved for lookup tables, filled via Layouter.assign_table."""
    column: Column

    def __str__(self) -> str:
        return f"table[{self.column.index}]"


@dataclass(frozen=True)
class Selector:
    """Per-row boolean flag.

    Simple selectors may appear at most once in a gate constraint and never in
    a lookup input. Complex selectors have no such restriction.
    """
    index: int
    simple: bool = True

    def is_simple(self) -> bool:
        return self.simple

    def enable(self, region, offset: int) -> None:
        """Set this selector to 1 at ``offset`` within ``region``."""
        region.enable_selector(self, offset)

    def __str__(self) -> str:
        return f"{'s' if self.simple else 'q'}[{self.index}]"


# --- Gates and lookups ---

@dataclass
class Constraint:
    name: str
    expression: Expression

    def degree(self) -> int:
        return self.expression.degree()


@dataclass
class Gate:
    """Named set of constraints that must vanish on every row where a queried selector is on.

    Attributes:
        name: Diagnostic label
        constraints: Expressions that must evaluate to zero
        selectors: Selectors queried by the builder; empty means every used row
    """
    name: str
    constraints: List[Constraint]
    selectors: List[Selector] = field(default_factory=list)

    def degree(self) -> int:
        return max(c.degree() for c in self.constraints)


@dataclass
class Lookup:
    """Exact-tuple membership of input expressions in table columns.

    Attributes:
        name: Diagnostic label
        inputs: One expression per table column
        table: Target table columns, same order as inputs
        selectors: Complex selectors found in the inputs; gate the checked rows
    """
    name: str
    inputs: List[Expression]
    table: List[TableColumn]
    selectors: List[Selector] = field(default_factory=list)

    def degree(self) -> int:
        return max(max(e.degree() for e in self.inputs) + 1, 2)


class Constraints:
    """Helpers for gate builders."""

    @staticmethod
    def with_selector(selector: Expression, constraints) -> List[Tuple[str, Expression]]:
        """Multiply every constraint by ``selector``.

        Args:
            selector: Usually ``meta.query_selector(q)``
            constraints: Expressions or (name, expression) pairs
        """
        return [(name, selector * expr) for name, expr in _named(constraints)]


def _named(constraints) -> List[Tuple[str, Expression]]:
    named = []
    for i, item in enumerate(constraints):
        if isinstance(item, tuple):
            name, expr = item
        else:
            name, expr = str(i), item
        named.append((name, as_expression(expr)))
    return named


class VirtualCells:
    """Query context handed to gate and lookup builders.

    Records which selectors the builder queried so the checker knows on which
    rows the gate or lookup is active.
    """

    def __init__(self, meta: "ConstraintSystem"):
        self._meta = meta
        self.queried_selectors: List[Selector] = []

    def query_selector(self, selector: Selector) -> Expression:
        if selector not in self.queried_selectors:
            self.queried_selectors.append(selector)
        return SelectorExpr(selector)

    def query_advice(self, column: Column, rotation: int = 0) -> Expression:
        return self._query(column, rotation, ColumnKind.ADVICE)

    def query_fixed(self, column: Column, rotation: int = 0) -> Expression:
        return self._query(column, rotation, ColumnKind.FIXED)

    def query_instance(self, column: Column, rotation: int = 0) -> Expression:
        return self._query(column, rotation, ColumnKind.INSTANCE)

    def query_any(self, column: Column, rotation: int = 0) -> Expression:
        return self._query(column, rotation, column.kind)

    def _query(self, column: Column, rotation: int, kind: ColumnKind) -> Expression:
        if column.kind is not kind:
            raise ConfigurationError(f"Cannot query {column} as a {kind.value} column")
        if column not in self._meta.columns:
            raise ConfigurationError(f"{column} was not allocated by this constraint system")
        return Query(column, int(rotation))


GateBuilder = Callable[[VirtualCells], Sequence[Union[Expression, Tuple[str, Expression]]]]
LookupBuilder = Callable[[VirtualCells], Sequence[Tuple[Expression, TableColumn]]]


class ConstraintSystem:
    """Schema of a circuit: columns, selectors, gates, lookups, equality columns.

    Args:
        field: galois field class used to evaluate the circuit (default FF)
    """

    def __init__(self, field=FF):
        self.field = field
        self.columns: List[Column] = []
        self.table_columns: List[TableColumn] = []
        self.selectors: List[Selector] = []
        self.gates: List[Gate] = []
        self.lookups: List[Lookup] = []
        self.equality_columns: List[Column] = []

    # --- Allocation ---

    def _column(self, kind: ColumnKind) -> Column:
        index = sum(1 for c in self.columns if c.kind is kind)
        column = Column(kind, index)
        self.columns.append(column)
        return column

    def advice_column(self) -> Column:
        return self._column(ColumnKind.ADVICE)

    def fixed_column(self) -> Column:
        return self._column(ColumnKind.FIXED)

    def instance_column(self) -> Column:
        return self._column(ColumnKind.INSTANCE)

    def lookup_table_column(self) -> TableColumn:
        table = TableColumn(self._column(ColumnKind.FIXED))
        self.table_columns.append(table)
        return table

    def selector(self) -> Selector:
        selector = Selector(len(self.selectors), simple=True)
        self.selectors.append(selector)
        return selector

    def complex_selector(self) -> Selector:
        selector = Selector(len(self.selectors), simple=False)
        self.selectors.append(selector)
        return selector

    def enable_equality(self, column: Column) -> None:
        """Allow cells of ``column`` to take part in copy constraints."""
        if isinstance(column, TableColumn):
            raise ConfigurationError("Lookup table columns cannot take part in copy constraints")
        if column not in self.equality_columns:
            self.equality_columns.append(column)

    def is_table_column(self, column: Column) -> bool:
        return any(t.column == column for t in self.table_columns)

    # --- Registration ---

    def create_gate(self, name: str, builder: GateBuilder) -> Gate:
        """Register a custom gate.

        Raises:
            ConfigurationError: If the builder returns no constraints, or a
                constraint uses a simple selector more than once
        """
        cells = VirtualCells(self)
        constraints = [Constraint(n, e) for n, e in _named(builder(cells))]
        if not constraints:
            raise ConfigurationError(f"Gate '{name}' has no constraints")

        for constraint in constraints:
            occurrences = sum(
                1 for node in constraint.expression.walk()
                if isinstance(node, SelectorExpr) and node.selector.is_simple()
            )
            if occurrences > 1:
                raise ConfigurationError(
                    f"Constraint '{constraint.name}' of gate '{name}' uses simple selectors "
                    f"{occurrences} times; simple selectors must appear linearly"
                )

        gate = Gate(name, constraints, list(cells.queried_selectors))
        self.gates.append(gate)
        logger.debug("gate %r: %d constraints, degree %d", name, len(constraints), gate.degree())
        return gate

    def lookup(self, name: str, builder: LookupBuilder) -> Lookup:
        """Register a lookup argument.

        Raises:
            ConfigurationError: If the builder returns no pairs, targets a column
                that is not a lookup table column, or uses a simple selector
        """
        cells = VirtualCells(self)
        pairs = list(builder(cells))
        if not pairs:
            raise ConfigurationError(f"Lookup '{name}' has no input/table pairs")

        inputs, table = [], []
        for expr, table_column in pairs:
            if not isinstance(table_column, TableColumn) or table_column not in self.table_columns:
                raise ConfigurationError(
                    f"Lookup '{name}' targets {table_column}, which is not a lookup table column"
                )
            expr = as_expression(expr)
            for selector in expr.selectors():
                if selector.is_simple():
                    raise ConfigurationError(
                        f"Lookup '{name}' uses simple selector {selector}; "
                        f"lookup inputs require a complex selector"
                    )
            inputs.append(expr)
            table.append(table_column)

        selectors = []
        for expr in inputs:
            for selector in expr.selectors():
                if selector not in selectors:
                    selectors.append(selector)

        lookup = Lookup(name, inputs, table, selectors)
        self.lookups.append(lookup)
        logger.debug("lookup %r: %d columns, degree %d", name, len(inputs), lookup.degree())
        return lookup

    # --- Introspection ---

    def degree(self) -> int:
        """Maximum degree over all gate constraints and lookups."""
        degrees = [g.degree() for g in self.gates] + [l.degree() for l in self.lookups]
        return max(degrees, default=0)

    def columns_of(self, kind: ColumnKind) -> List[Column]:
        return [c for c in self.columns if c.kind is kind]
