"""
Flare attestation client

Requests attestations from the Flare Data Connector, waits for the voting
round to finalize, retrieves the Merkle proof from the DA layer, verifies it
against the round's published root and decodes the attested payload.

Usage:
    flare-attest --feed FLR/USD          # Feed value with proof
    flare-attest --evm-tx <HASH>         # EVM transaction attestation
"""

from .config import PipelineConfig, BackoffPolicy
from .errors import (
    AttestationError,
    EncodingError,
    SubmissionError,
    SubmissionReverted,
    ProofUnavailableError,
    FinalizationTimeout,
    VerificationFailed,
    DecodeError,
    BusinessRuleViolation,
)
from .models import (
    AttestationType,
    AttestationSpec,
    EncodedRequest,
    VotingRound,
    ProofRecord,
    FeedDataPayload,
    EVMTransactionPayload,
    Web2JsonPayload,
    RetryOutcome,
)
from .pipeline import AttestationPipeline, AttestationLifecycle, LifecycleState

__version__ = "0.1.0"
__all__ = [
    "PipelineConfig",
    "BackoffPolicy",
    "AttestationError",
    "EncodingError",
    "SubmissionError",
    "SubmissionReverted",
    "ProofUnavailableError",
    "FinalizationTimeout",
    "VerificationFailed",
    "DecodeError",
    "BusinessRuleViolation",
    "AttestationType",
    "AttestationSpec",
    "EncodedRequest",
    "VotingRound",
    "ProofRecord",
    "FeedDataPayload",
    "EVMTransactionPayload",
    "Web2JsonPayload",
    "RetryOutcome",
    "AttestationPipeline",
    "AttestationLifecycle",
    "LifecycleState",
]
