"""Prime fields for circuit evaluation.

Uses galois library for all field arithmetic. FF is the default field type;
every component takes the field class as a parameter so the Pallas base field
can be swapped in.

The Pallas field is built on first use. galois would otherwise factor p - 1
to find a primitive element, so the known generator is passed explicitly.
"""

from functools import lru_cache

import galois

# --- Field Construction ---

GOLDILOCKS_PRIME = 0xFFFFFFFF00000001

FF = galois.GF(GOLDILOCKS_PRIME)
"""Base field GF(p) - Goldilocks prime field."""

PALLAS_PRIME = 0x40000000000000000000000000000000224698FC094CF91B992D30ED00000001
PALLAS_GENERATOR = 5


@lru_cache(maxsize=None)
def pallas_base_field():
    """Return GF(p) for the Pallas base field prime."""
    return galois.GF(PALLAS_PRIME, primitive_element=PALLAS_GENERATOR, verify=False)


# --- Conversions ---

def to_field(field, value):
    """Convert an int or field element into an element of ``field``.

    Negative ints are reduced modulo the field order, so ``to_field(FF, -2)``
    is ``p - 2``.
    """
    if isinstance(value, field):
        return value
    return field(int(value) % field.order)


def invert_or_zero(value):
    """Return value^(-1), or zero when value is zero."""
    field = type(value)
    if value == 0:
        return field(0)
    return value ** -1
