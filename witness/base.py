"""Base class for gadget chips."""

from abc import ABC, abstractmethod
from typing import Generic, TypeVar

C = TypeVar("C")


class Chip(ABC, Generic[C]):
    """Per-gadget witness assignment.

    A chip pairs a configuration (column and selector handles produced once by
    ``configure`` at schema time) with assignment logic run for every circuit
    instance. ``construct`` is cheap, so one configuration serves any number of
    instances.
    """

    def __init__(self, config: C):
        self.config = config

    @classmethod
    def construct(cls, config: C) -> "Chip[C]":
        return cls(config)

    @staticmethod
    @abstractmethod
    def configure(meta, *args, **kwargs) -> C:
        """Allocate columns/selectors and register gates and lookups on ``meta``."""
        pass
