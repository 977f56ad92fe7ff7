"""Constraint system and expression engine.

This package provides the configure-time half of a circuit: column and
selector allocation, custom gates, lookup arguments, and the expression trees
they are built from. Expressions are evaluated against a witness through the
contexts in constraints.base, so the checker evaluates exactly the trees that
gadgets registered.
"""

from .base import (
    ColumnContext,
    EvaluationContext,
    RowContext,
    evaluate_columns,
    evaluate_row,
)
from .errors import AssignmentError, ConfigurationError, UnassignedCellError
from .expression import (
    Constant,
    Expression,
    Negated,
    Product,
    Query,
    Scaled,
    SelectorExpr,
    Sum,
    as_expression,
)
from .system import (
    Column,
    ColumnKind,
    Constraint,
    Constraints,
    ConstraintSystem,
    Gate,
    Lookup,
    Selector,
    TableColumn,
    VirtualCells,
)

__all__ = [
    # Errors
    "ConfigurationError",
    "AssignmentError",
    "UnassignedCellError",
    # Expressions
    "Expression",
    "Constant",
    "SelectorExpr",
    "Query",
    "Sum",
    "Product",
    "Negated",
    "Scaled",
    "as_expression",
    # Evaluation
    "EvaluationContext",
    "ColumnContext",
    "RowContext",
    "evaluate_columns",
    "evaluate_row",
    # Schema
    "ColumnKind",
    "Column",
    "TableColumn",
    "Selector",
    "Constraint",
    "Constraints",
    "Gate",
    "Lookup",
    "VirtualCells",
    "ConstraintSystem",
]
