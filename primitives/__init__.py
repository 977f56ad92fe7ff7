"""Primitives - field construction and conversions."""

from primitives.field import (
    FF,
    GOLDILOCKS_PRIME,
    PALLAS_PRIME,
    invert_or_zero,
    pallas_base_field,
    to_field,
)

__all__ = [
    "FF",
    "GOLDILOCKS_PRIME",
    "PALLAS_PRIME",
    "pallas_base_field",
    "to_field",
    "invert_or_zero",
]
