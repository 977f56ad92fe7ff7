"""Polynomial expressions over column queries.

Expressions are immutable trees. Leaves are constants, selector flags and
column queries at a row offset (rotation); internal nodes are sum, product,
negation and scalar multiplication. Python operators build the trees:

    q = meta.query_selector(q_range_check)
    v = meta.query_advice(value)
    expr = q * (Constant(1) - v) * 3

The same tree is evaluated at configuration-checking time and at witness
time through an EvaluationContext (constraints.base), so the arithmetic is
shared by per-row and whole-column evaluation.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterator, List, Union

import galois
import numpy as np

if TYPE_CHECKING:
    from constraints.base import EvaluationContext
    from constraints.system import Column, Selector


class Expression(ABC):
    """Base class for all expression nodes."""

    @abstractmethod
    def evaluate(self, ctx: "EvaluationContext"):
        """Reduce the tree using the field operations of ``ctx``."""

    @abstractmethod
    def degree(self) -> int:
        """Polynomial degree in the queried cells and selectors."""

    def children(self) -> tuple:
        return ()

    def walk(self) -> Iterator["Expression"]:
        """Pre-order traversal of the tree."""
        yield self
        for child in self.children():
            yield from child.walk()

    def queries(self) -> List["Query"]:
        """Column queries appearing in the tree, in traversal order."""
        return [node for node in self.walk() if isinstance(node, Query)]

    def selectors(self) -> List["Selector"]:
        """Distinct selectors appearing in the tree."""
        found = []
        for node in self.walk():
            if isinstance(node, SelectorExpr) and node.selector not in found:
                found.append(node.selector)
        return found

    # --- Operators ---

    def __add__(self, other) -> "Expression":
        return Sum(self, as_expression(other))

    def __radd__(self, other) -> "Expression":
        return Sum(as_expression(other), self)

    def __sub__(self, other) -> "Expression":
        return Sum(self, Negated(as_expression(other)))

    def __rsub__(self, other) -> "Expression":
        return Sum(as_expression(other), Negated(self))

    def __mul__(self, other) -> "Expression":
        if _is_scalar(other):
            return Scaled(self, int(other))
        return Product(self, as_expression(other))

    def __rmul__(self, other) -> "Expression":
        if _is_scalar(other):
            return Scaled(self, int(other))
        return Product(as_expression(other), self)

    def __neg__(self) -> "Expression":
        return Negated(self)


def _is_scalar(value) -> bool:
    return isinstance(value, (int, np.integer, galois.FieldArray)) and not isinstance(value, Expression)


def as_expression(value: Union[Expression, int, galois.FieldArray]) -> Expression:
    """Coerce ints and field elements to Constant; pass expressions through."""
    if isinstance(value, Expression):
        return value
    if _is_scalar(value):
        return Constant(int(value))
    raise TypeError(f"Cannot build an expression from {type(value).__name__}")


# --- Leaves ---

@dataclass(frozen=True, eq=False)
class Constant(Expression):
    """Field constant, stored as an int and reduced by the evaluating field."""
    value: int

    def evaluate(self, ctx):
        return ctx.constant(self.value)

    def degree(self) -> int:
        return 0

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True, eq=False)
class SelectorExpr(Expression):
    """Per-row 0/1 flag of a selector."""
    selector: "Selector"

    def evaluate(self, ctx):
        return ctx.selector(self.selector)

    def degree(self) -> int:
        return 1

    def __str__(self) -> str:
        return str(self.selector)


@dataclass(frozen=True, eq=False)
class Query(Expression):
    """Value of ``column`` at ``row + rotation``."""
    column: "Column"
    rotation: int = 0

    def evaluate(self, ctx):
        return ctx.query(self.column, self.rotation)

    def degree(self) -> int:
        return 1

    def __str__(self) -> str:
        if self.rotation == 0:
            return str(self.column)
        return f"{self.column}@{self.rotation:+d}"


# --- Internal nodes ---

@dataclass(frozen=True, eq=False)
class Sum(Expression):
    left: Expression
    right: Expression

    def evaluate(self, ctx):
        return self.left.evaluate(ctx) + self.right.evaluate(ctx)

    def degree(self) -> int:
        return max(self.left.degree(), self.right.degree())

    def children(self) -> tuple:
        return (self.left, self.right)

    def __str__(self) -> str:
        if isinstance(self.right, Negated):
            return f"({self.left} - {self.right.inner})"
        return f"({self.left} + {self.right})"


@dataclass(frozen=True, eq=False)
class Product(Expression):
    left: Expression
    right: Expression

    def evaluate(self, ctx):
        return self.left.evaluate(ctx) * self.right.evaluate(ctx)

    def degree(self) -> int:
        return self.left.degree() + self.right.degree()

    def children(self) -> tuple:
        return (self.left, self.right)

    def __str__(self) -> str:
        return f"{self.left} * {self.right}"


@dataclass(frozen=True, eq=False)
class Negated(Expression):
    inner: Expression

    def evaluate(self, ctx):
        return -self.inner.evaluate(ctx)

    def degree(self) -> int:
        return self.inner.degree()

    def children(self) -> tuple:
        return (self.inner,)

    def __str__(self) -> str:
        return f"-{self.inner}"


@dataclass(frozen=True, eq=False)
class Scaled(Expression):
    inner: Expression
    factor: int

    def evaluate(self, ctx):
        return self.inner.evaluate(ctx) * ctx.constant(self.factor)

    def degree(self) -> int:
        return self.inner.degree()

    def children(self) -> tuple:
        return (self.inner,)

    def __str__(self) -> str:
        return f"{self.inner} * {self.factor}"
