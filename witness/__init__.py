"""Witness assignment.

This package provides the witness-time half of a circuit: the Layouter that
places regions on rows, the Region and TableLayouter handles gadgets write
through, and the Chip base class pairing a gadget configuration with its
assignment logic.
"""

from .base import Chip
from .layouter import AssignedCell, Layouter, Region, RegionInfo, TableLayouter

__all__ = [
    'Chip',
    'AssignedCell',
    'Layouter',
    'Region',
    'RegionInfo',
    'TableLayouter',
]
