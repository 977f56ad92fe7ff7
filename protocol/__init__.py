"""Protocol - witness data, circuits and satisfiability checking."""

from protocol.circuit import Circuit
from protocol.data import WitnessData
from protocol.mock_prover import (
    CircuitShape,
    FailureKind,
    FailureLocation,
    MockProver,
    SatisfiabilityReport,
    VerifyFailure,
    check,
    keygen,
    synthesize,
)

__all__ = [
    # Circuits
    "Circuit",
    "CircuitShape",
    "keygen",
    "synthesize",
    # Data
    "WitnessData",
    # Checking
    "check",
    "MockProver",
    "SatisfiabilityReport",
    "VerifyFailure",
    "FailureKind",
    "FailureLocation",
]
