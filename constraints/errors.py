"""Error taxonomy for circuit configuration and witness assignment.

Satisfiability failures are not errors: the checker returns them as data
(see protocol.mock_prover.VerifyFailure).
"""


class ConfigurationError(ValueError):
    """Schema-time invariant violated; the circuit cannot be built."""


class AssignmentError(ValueError):
    """Witness-time bookkeeping violated (double write, closed region, bad offset)."""


class UnassignedCellError(KeyError):
    """A query resolved to a witness cell that was never assigned."""

    def __init__(self, column, row: int):
        super().__init__(f"{column} at row {row} is not assigned")
        self.column = column
        self.row = row
