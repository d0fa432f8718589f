"""
Data model for one attestation lifecycle.

AttestationSpec -> EncodedRequest -> (VotingRound) -> ProofRecord -> DecodedPayload
"""

from dataclasses import dataclass, field, replace
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from .utils.abi import hex_to_bytes, normalize_hex, to_utf8_hex32


FDC_PROTOCOL_ID = 200
FTSO_PROTOCOL_ID = 100


class AttestationType(Enum):
    """Tagged kind of attestation."""
    EVM_TRANSACTION = "EVMTransaction"
    WEB2JSON = "Web2Json"
    FEED_DATA = "FeedData"

    @property
    def protocol_id(self) -> int:
        """Relay protocol id whose Merkle roots cover this type."""
        return FTSO_PROTOCOL_ID if self is AttestationType.FEED_DATA else FDC_PROTOCOL_ID

    @property
    def uses_hub(self) -> bool:
        """FDC requests go through the hub; FTSO feeds are published every round."""
        return self is not AttestationType.FEED_DATA


def _freeze(value: Any) -> Any:
    if isinstance(value, Mapping):
        return MappingProxyType({k: _freeze(v) for k, v in value.items()})
    if isinstance(value, list):
        return tuple(_freeze(v) for v in value)
    return value


def _thaw(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {k: _thaw(v) for k, v in value.items()}
    if isinstance(value, tuple):
        return [_thaw(v) for v in value]
    return value


@dataclass(frozen=True)
class AttestationSpec:
    """
    Typed description of one attestation request. Immutable once built.

    response_signature is the declared response shape: the JSON abiSignature
    for Web2Json, None for types whose response struct is fixed.
    """
    attestation_type: AttestationType
    source_id: str
    request_body: Mapping[str, Any]
    response_signature: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "request_body", _freeze(self.request_body))

    @classmethod
    def evm_transaction(
        cls,
        transaction_hash: str,
        source_id: str = "testETH",
        required_confirmations: int = 1,
        provide_input: bool = True,
        list_events: bool = True,
        log_indices: Sequence[int] = (),
    ) -> "AttestationSpec":
        return cls(
            attestation_type=AttestationType.EVM_TRANSACTION,
            source_id=source_id,
            request_body={
                "transactionHash": normalize_hex(transaction_hash),
                "requiredConfirmations": str(required_confirmations),
                "provideInput": provide_input,
                "listEvents": list_events,
                "logIndices": list(log_indices),
            },
        )

    @classmethod
    def web2json(
        cls,
        url: str,
        post_process_jq: str,
        abi_signature: str,
        source_id: str = "PublicWeb2",
        http_method: str = "GET",
        headers: str = "{}",
        query_params: str = "{}",
        body: str = "{}",
    ) -> "AttestationSpec":
        return cls(
            attestation_type=AttestationType.WEB2JSON,
            source_id=source_id,
            request_body={
                "url": url,
                "httpMethod": http_method,
                "headers": headers,
                "queryParams": query_params,
                "body": body,
                "postProcessJq": post_process_jq,
                "abiSignature": abi_signature,
            },
            response_signature=abi_signature,
        )

    @classmethod
    def feed_data(cls, feed_ids: Sequence[str]) -> "AttestationSpec":
        if not feed_ids:
            raise ValueError("At least one feed id is required")
        return cls(
            attestation_type=AttestationType.FEED_DATA,
            source_id="FTSO",
            request_body={"feed_ids": [normalize_hex(f) for f in feed_ids]},
        )

    @property
    def feed_ids(self) -> List[str]:
        return list(self.request_body.get("feed_ids", ()))

    def body_dict(self) -> Dict[str, Any]:
        """Request body as plain JSON-serializable types."""
        return _thaw(self.request_body)

    def to_service_payload(self) -> Dict[str, Any]:
        """Payload for the encoding service's prepareRequest endpoint."""
        return {
            "attestationType": to_utf8_hex32(self.attestation_type.value),
            "sourceId": to_utf8_hex32(self.source_id),
            "requestBody": self.body_dict(),
        }


@dataclass(frozen=True)
class EncodedRequest:
    """Canonical ABI-encoded request; submitted on chain and used as the proof lookup key."""
    hex_data: str

    def __post_init__(self):
        object.__setattr__(self, "hex_data", normalize_hex(self.hex_data))

    def as_bytes(self) -> bytes:
        return hex_to_bytes(self.hex_data)

    def __str__(self) -> str:
        return self.hex_data


class RoundStatus(Enum):
    PENDING = "pending"
    FINALIZED = "finalized"


@dataclass(frozen=True)
class VotingRound:
    """A voting round as observed through the DA layer's latest-round query."""
    id: int
    status: RoundStatus = RoundStatus.PENDING
    latest_round_id: Optional[int] = None

    @classmethod
    def observe(cls, round_id: int, latest_round_id: int) -> "VotingRound":
        """
        The latest reported round may still be in its dispute window, so only
        rounds strictly older than it are treated as finalized.
        """
        status = RoundStatus.FINALIZED if round_id < latest_round_id else RoundStatus.PENDING
        return cls(id=round_id, status=status, latest_round_id=latest_round_id)

    @property
    def is_finalized(self) -> bool:
        return self.status is RoundStatus.FINALIZED


@dataclass(frozen=True)
class ProofRecord:
    """Proof for one response in one round. Not persisted; discarded after use."""
    attestation_type: AttestationType
    round_id: int
    merkle_path: Tuple[str, ...]
    raw_response: bytes
    verified: bool = False
    request: Optional[EncodedRequest] = None

    def __post_init__(self):
        object.__setattr__(
            self, "merkle_path", tuple(normalize_hex(p) for p in self.merkle_path)
        )

    def path_bytes(self) -> List[bytes]:
        return [hex_to_bytes(p) for p in self.merkle_path]

    def mark_verified(self) -> "ProofRecord":
        return replace(self, verified=True)


# ============================================================================
# Decoded payloads (one variant per attestation type)
# ============================================================================

@dataclass(frozen=True)
class FeedDataPayload:
    voting_round_id: int
    feed_id: str
    value: int
    turnout_bips: int
    decimals: int
    raw: Tuple[Any, ...] = field(default=(), compare=False, repr=False)

    @property
    def price(self) -> Decimal:
        return Decimal(self.value).scaleb(-self.decimals)


@dataclass(frozen=True)
class EVMEvent:
    log_index: int
    emitter_address: str
    topics: Tuple[str, ...]
    data: bytes
    removed: bool


@dataclass(frozen=True)
class EVMTransactionPayload:
    attestation_type: str
    source_id: str
    voting_round: int
    lowest_used_timestamp: int
    transaction_hash: str
    required_confirmations: int
    provide_input: bool
    list_events: bool
    log_indices: Tuple[int, ...]
    block_number: int
    timestamp: int
    source_address: str
    is_deployment: bool
    receiving_address: str
    value: int
    input: bytes
    status: int
    events: Tuple[EVMEvent, ...]
    raw: Tuple[Any, ...] = field(default=(), compare=False, repr=False)


@dataclass(frozen=True)
class Web2JsonPayload:
    attestation_type: str
    source_id: str
    voting_round: int
    lowest_used_timestamp: int
    url: str
    http_method: str
    post_process_jq: str
    abi_signature: str
    abi_encoded_data: bytes
    data: Mapping[str, Any]
    raw: Tuple[Any, ...] = field(default=(), compare=False, repr=False)

    def __post_init__(self):
        object.__setattr__(self, "data", MappingProxyType(dict(self.data)))


DecodedPayload = Union[FeedDataPayload, EVMTransactionPayload, Web2JsonPayload]


# ============================================================================
# Retrieval attempts
# ============================================================================

class AttemptStatus(Enum):
    SUCCESS = "success"
    NOT_READY = "not_ready"
    FAILED = "failed"


@dataclass(frozen=True)
class AttemptResult:
    """Outcome of querying the DA layer for one candidate round."""
    round_id: int
    status: AttemptStatus
    record: Optional[ProofRecord] = None
    http_status: Optional[int] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status is AttemptStatus.SUCCESS


@dataclass(frozen=True)
class RetryOutcome:
    """Aggregate of a round search: a proof, or exhaustion."""
    record: Optional[ProofRecord]
    attempts: Tuple[AttemptResult, ...]

    @property
    def succeeded(self) -> bool:
        return self.record is not None

    @property
    def exhausted(self) -> bool:
        return self.record is None

    @property
    def rounds_queried(self) -> List[int]:
        return [a.round_id for a in self.attempts]
