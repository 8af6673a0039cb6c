"""Exceptions raised by the FDC client."""

from typing import Optional


class FlareError(Exception):
    """Base class for every error raised by this package."""


class FlareTxError(FlareError):
    """A transaction could not be built, signed or sent."""


class FdcError(FlareError):
    """An FDC workflow phase failed.

    Attributes:
        phase: Name of the phase that failed (``encoding``, ``submission``, ...).
    """

    phase = "fdc"

    def __init__(self, message: str, phase: Optional[str] = None) -> None:
        if phase is not None:
            self.phase = phase
        super().__init__(f"[{self.phase}] {message}")
        self.detail = message


class EncodingError(FdcError):
    """The verifier refused or failed to encode an attestation request."""

    phase = "encoding"

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


class SubmissionError(FdcError):
    """An on-chain submission was rejected."""

    phase = "submission"


class FinalityTimeout(FdcError):
    """A caller-imposed bound on round finalization elapsed."""

    phase = "finality"

    def __init__(self, round_id: int, timeout: float) -> None:
        super().__init__(f"round {round_id} not finalized within {timeout}s")
        self.round_id = round_id
        self.timeout = timeout


class DALayerError(FdcError):
    """A single request to the Data Availability Layer failed."""

    phase = "proof_retrieval"

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


class ProofRetrievalError(FdcError):
    """The proof could not be retrieved within the retry budget."""

    phase = "proof_retrieval"

    def __init__(self, round_id: int, attempts: int, last_error: Optional[BaseException] = None) -> None:
        message = f"failed to retrieve proof for round {round_id} after {attempts} attempts"
        if last_error is not None:
            message += f": {last_error}"
        super().__init__(message)
        self.round_id = round_id
        self.attempts = attempts
        self.last_error = last_error


class ProofNotReadyError(FdcError):
    """The proof payload has not been populated yet."""

    phase = "proof_consumption"
