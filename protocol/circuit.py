"""Circuit base class.

A circuit is configured once per shape and synthesized once per witness:

    class SquareCircuit(Circuit):
        def __init__(self, x):
            self.x = x

        def configure(self, meta):
            ...                      # allocate columns, register gates
            return config

        def synthesize(self, config, layouter):
            ...                      # open regions, assign cells

``configure`` must not read witness fields: keygen() calls it once and the
resulting CircuitShape is reused for every instance of the same shape.
"""

from abc import ABC, abstractmethod

from primitives.field import FF


class Circuit(ABC):
    """Schema (``configure``) plus witness assignment (``synthesize``)."""

    field = FF

    @abstractmethod
    def configure(self, meta):
        """Build the circuit schema on ``meta`` and return a config object."""
        pass

    @abstractmethod
    def synthesize(self, config, layouter) -> None:
        """Assign the witness for this instance through ``layouter``."""
        pass
