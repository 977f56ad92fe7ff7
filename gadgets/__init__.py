"""Worked gadgets built on the constraint system.

- IsZero: zero-test indicator usable inside any enclosing gate
- IfEqual: f(a, b, c) = c if a == b else a - b, composed from IsZero
- Range checks: polynomial gate, flat lookup table, bit-length tagged table
"""

from .if_equal import IfEqualChip, IfEqualConfig
from .is_zero import IsZeroAssignment, IsZeroChip, IsZeroConfig
from .range_check import (
    LookupRangeCheckConfig,
    PolyRangeCheckConfig,
    RangeCheckParams,
    RangeConstrained,
    TaggedRangeCheckConfig,
    range_check_expr,
)
from .table import RangeTable, TaggedRangeTable

__all__ = [
    "IsZeroChip",
    "IsZeroConfig",
    "IsZeroAssignment",
    "IfEqualChip",
    "IfEqualConfig",
    "RangeTable",
    "TaggedRangeTable",
    "RangeCheckParams",
    "RangeConstrained",
    "range_check_expr",
    "PolyRangeCheckConfig",
    "LookupRangeCheckConfig",
    "TaggedRangeCheckConfig",
]
