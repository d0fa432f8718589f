"""
Error taxonomy for the attestation pipeline.

Each stage raises its own error class. ProofUnavailableError (and its
FinalizationTimeout subclass) is retryable: the round may still finalize,
so callers re-enter the search later instead of re-submitting. So is a
VerificationFailed raised because the chain could not be read.
"""

from typing import Any, List, Optional


class AttestationError(Exception):
    """Base class for every pipeline failure."""

    retryable = False


class EncodingError(AttestationError):
    """The encoding service was unreachable or rejected the request."""


class SubmissionError(AttestationError):
    """The hub submission reverted or could not be sent. Never auto-retried."""


class SubmissionReverted(SubmissionError):
    """The hub transaction was mined with a failed status."""


class ProofUnavailableError(AttestationError):
    """No candidate round produced a proof within max_attempts rounds."""

    retryable = True

    def __init__(self, message: str, attempts: Optional[List[Any]] = None):
        super().__init__(message)
        self.attempts = list(attempts or [])


class FinalizationTimeout(ProofUnavailableError):
    """The assigned round was not observed finalized within finalization_poll_attempts checks."""


class VerificationFailed(AttestationError):
    """
    A proof did not reconstruct the round's published Merkle root.

    Retryable when the chain could not be read and the proof was never checked.
    """

    def __init__(self, message: str, record: Any = None, retryable: bool = False):
        super().__init__(message)
        self.record = record
        self.retryable = retryable


class DecodeError(AttestationError):
    """Response bytes do not match the declared ABI shape."""


class BusinessRuleViolation(AttestationError):
    """Raised by consumers when a decoded payload breaks a business rule."""
