"""
Attestation lifecycle.

    Building -> Submitted -> Searching -> Verified -> Decoded

start() covers Building and Submitted and touches the chain at most once.
resume() covers the rest and may be called again after a retryable
error; it never submits.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional, Tuple

from .config.settings import PipelineConfig
from .errors import AttestationError, SubmissionError, SubmissionReverted
from .models import (
    AttestationSpec,
    DecodedPayload,
    EncodedRequest,
    ProofRecord,
    RetryOutcome,
)
from .services.decoder import PayloadDecoder
from .services.encoder import RequestEncoder
from .services.hub import HubSubmitter, Submission
from .services.retriever import ProofRetriever
from .services.verifier import require_verified
from .utils.store import STATUS_FAILED, STATUS_PROVED, STATUS_SENT, STATUS_SUBMITTED, SubmissionStore


class LifecycleState(Enum):
    BUILDING = "building"
    SUBMITTED = "submitted"
    SEARCHING = "searching"
    VERIFIED = "verified"
    DECODED = "decoded"
    FAILED = "failed"


@dataclass
class AttestationLifecycle:
    """State of one attestation flow. Owned by a single caller; never shared."""
    spec: AttestationSpec
    state: LifecycleState = LifecycleState.BUILDING
    request: Optional[EncodedRequest] = None
    submission: Optional[Submission] = None
    assigned_round_id: Optional[int] = None
    outcome: Optional[RetryOutcome] = None
    proof: Optional[ProofRecord] = None
    payload: Optional[DecodedPayload] = None
    error: Optional[AttestationError] = None
    history: List[Tuple[str, str]] = field(default_factory=list)

    def transition(self, state: LifecycleState):
        self.state = state
        self.history.append((state.value, datetime.now(timezone.utc).isoformat()))
        print(f"[...] {self.spec.attestation_type.value}: {state.value.upper()}")

    def fail(self, error: AttestationError):
        self.error = error
        self.transition(LifecycleState.FAILED)
        print(f"[!] {type(error).__name__}: {error}")

    @property
    def can_resume(self) -> bool:
        """Searching may be re-entered after submission or a retryable failure."""
        if self.state in (LifecycleState.SUBMITTED, LifecycleState.SEARCHING):
            return True
        return (
            self.state is LifecycleState.FAILED
            and self.error is not None
            and self.error.retryable
            and self.request is not None
        )


class AttestationPipeline:
    """Drives AttestationSpecs through encoding, submission, proof search, verification and decoding."""

    def __init__(
        self,
        config: PipelineConfig,
        encoder: RequestEncoder,
        retriever: ProofRetriever,
        verifier,
        decoder: PayloadDecoder = None,
        submitter: HubSubmitter = None,
        store: SubmissionStore = None,
    ):
        self.config = config
        self.encoder = encoder
        self.retriever = retriever
        self.verifier = verifier
        self.decoder = decoder or PayloadDecoder()
        self.submitter = submitter
        self.store = store

    @classmethod
    def from_config(
        cls,
        config: PipelineConfig,
        w3=None,
        local_verification: bool = False,
        store: SubmissionStore = None,
    ) -> "AttestationPipeline":
        """
        Wire a pipeline against live endpoints.

        Args:
            config: Pipeline configuration
            w3: Web3 instance (connected from config.rpc_url if omitted)
            local_verification: Rebuild Merkle roots locally against Relay roots
                instead of calling the verifier contracts
            store: Submission ledger (created under config.cache_dir if omitted)
        """
        from .services.contracts import FlareContracts, connect
        from .services.verifier import MerkleProofVerifier, OnChainProofVerifier, RelayRootProvider

        w3 = w3 or connect(config)
        contracts = FlareContracts(w3)
        if local_verification:
            verifier = MerkleProofVerifier(RelayRootProvider(contracts))
        else:
            verifier = OnChainProofVerifier(contracts)

        return cls(
            config=config,
            encoder=RequestEncoder(config),
            retriever=ProofRetriever(config),
            verifier=verifier,
            submitter=HubSubmitter(config, w3, contracts) if config.private_key else None,
            store=store or SubmissionStore(cache_dir=config.cache_dir),
        )

    def start(self, spec: AttestationSpec) -> AttestationLifecycle:
        """
        Encode and (for FDC types) submit a spec.

        A request already recorded in the store is not submitted again: its
        recorded round is reused, or recovered from the recorded transaction
        if it was broadcast but never confirmed. Only a failed entry is
        submitted afresh.

        Raises:
            EncodingError, SubmissionError
        """
        lifecycle = AttestationLifecycle(spec=spec)
        lifecycle.transition(LifecycleState.BUILDING)

        try:
            lifecycle.request = self.encoder.encode(spec)

            if spec.attestation_type.uses_hub:
                lifecycle.assigned_round_id = self._submit_once(lifecycle)
        except AttestationError as e:
            lifecycle.fail(e)
            raise

        lifecycle.transition(LifecycleState.SUBMITTED)
        return lifecycle

    def _submit_once(self, lifecycle: AttestationLifecycle) -> int:
        request = lifecycle.request
        attestation_type = lifecycle.spec.attestation_type.value
        existing = self.store.get_submission(request.hex_data) if self.store is not None else None

        if existing and existing["status"] in (STATUS_SUBMITTED, STATUS_PROVED):
            print(f"[SKIP] Request already submitted in round {existing['round_id']} "
                  f"({existing['tx_hash']}), resuming search")
            return int(existing["round_id"])
        if existing and existing["status"] == STATUS_FAILED:
            print(f"[...] Previous attempt failed ({existing['error']}), submitting again")

        if self.submitter is None:
            raise SubmissionError("Hub submission requires a submitter (PRIVATE_KEY not configured)")

        def record_sent(tx_hash: str, fee_wei: int):
            if self.store is not None:
                self.store.save_sent(request.hex_data, attestation_type, tx_hash, fee_wei)

        try:
            if existing and existing["status"] == STATUS_SENT:
                print(f"[SKIP] Request already sent ({existing['tx_hash']}), recovering its round")
                submission = self.submitter.recover(
                    request, existing["tx_hash"], fee_wei=int(existing["fee_wei"] or 0)
                )
            else:
                submission = self.submitter.submit(request, on_sent=record_sent)
        except SubmissionReverted as e:
            if self.store is not None and self.store.exists(request.hex_data):
                self.store.mark_failed(request.hex_data, str(e))
            raise

        lifecycle.submission = submission
        if self.store is not None:
            self.store.save_submission(
                request.hex_data,
                attestation_type,
                submission.round_id,
                tx_hash=submission.tx_hash,
                fee_wei=submission.fee_wei,
            )
        return submission.round_id

    def resume(self, lifecycle: AttestationLifecycle) -> AttestationLifecycle:
        """
        Search, verify and decode. Safe to call again after any retryable error.

        Raises:
            ProofUnavailableError (retryable), VerificationFailed, DecodeError
        """
        if not lifecycle.can_resume:
            raise ValueError(f"Cannot resume a lifecycle in state {lifecycle.state.value}")

        spec = lifecycle.spec
        lifecycle.error = None
        lifecycle.transition(LifecycleState.SEARCHING)

        try:
            if spec.attestation_type.uses_hub:
                latest = self.retriever.wait_for_finalization(lifecycle.assigned_round_id)
                outcome = self.retriever.search_request(
                    lifecycle.request,
                    spec.attestation_type,
                    assigned_round_id=lifecycle.assigned_round_id,
                    latest_round_id=latest,
                )
            else:
                outcome = self.retriever.search_feeds(spec.feed_ids)
            lifecycle.outcome = outcome
            record = self.retriever.unwrap(outcome)

            lifecycle.proof = require_verified(self.verifier, record)
            lifecycle.transition(LifecycleState.VERIFIED)

            lifecycle.payload = self.decoder.decode(spec, lifecycle.proof)
        except AttestationError as e:
            lifecycle.fail(e)
            if self.store is not None and spec.attestation_type.uses_hub and not e.retryable:
                self.store.mark_failed(lifecycle.request.hex_data, str(e))
            raise

        lifecycle.transition(LifecycleState.DECODED)
        if self.store is not None and spec.attestation_type.uses_hub:
            self.store.mark_proved(lifecycle.request.hex_data, lifecycle.proof.round_id)
        return lifecycle

    def run(self, spec: AttestationSpec) -> AttestationLifecycle:
        """start() then resume()."""
        return self.resume(self.start(spec))
