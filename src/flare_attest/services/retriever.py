"""
Proof retrieval.

Candidates are queried one at a time; the first success ends the search.
"Not ready" and per-attempt failures both move on to the next (older) round,
and only exhaustion of every candidate is surfaced, as ProofUnavailableError.
"""

import time
from typing import Callable, List, Optional

from ..config.settings import PipelineConfig
from ..errors import FinalizationTimeout, ProofUnavailableError
from ..models import (
    AttemptResult,
    AttemptStatus,
    AttestationType,
    EncodedRequest,
    ProofRecord,
    RetryOutcome,
)
from .da_layer import DALayerClient
from .rounds import RoundSearchPolicy


class ProofRetriever:
    """Polls the DA layer across candidate rounds with a configurable backoff."""

    def __init__(
        self,
        config: PipelineConfig,
        da_client: DALayerClient = None,
        policy: RoundSearchPolicy = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.config = config
        self.da = da_client or DALayerClient(config)
        self.policy = policy or RoundSearchPolicy(config.max_attempts)
        self.sleep = sleep

    def _search(self, candidates: List[int], fetch: Callable[[int], AttemptResult]) -> RetryOutcome:
        attempts: List[AttemptResult] = []

        for index, round_id in enumerate(candidates):
            print(f"\n[...] Attempting to fetch proof for voting round: {round_id}")
            result = fetch(round_id)
            attempts.append(result)

            if result.status is AttemptStatus.SUCCESS:
                print(f"[OK] Successfully fetched proof for round {round_id}.")
                return RetryOutcome(record=result.record, attempts=tuple(attempts))

            if result.status is AttemptStatus.NOT_READY:
                print(f"[SKIP] Round {round_id} not yet available. Trying older round...")
            else:
                print(f"[!] Error fetching proof for round {round_id}: {result.error}")

            if index < len(candidates) - 1:
                delay = self.config.backoff.delay(index)
                if delay > 0:
                    self.sleep(delay)

        print(f"[!] Failed to fetch proof after {len(attempts)} attempts.")
        return RetryOutcome(record=None, attempts=tuple(attempts))

    def search_feeds(self, feed_ids: List[str], latest_round_id: Optional[int] = None) -> RetryOutcome:
        """
        Search backward from the round before the latest one for a feed proof.

        The latest round's feed set may not be sealed yet, so it is never queried.
        """
        if latest_round_id is None:
            latest_round_id = self.da.latest_round_id()
        candidates = self.policy.candidates(latest_round_id)
        return self._search(candidates, lambda r: self.da.fetch_feed_proof(feed_ids, r))

    def search_request(
        self,
        request: EncodedRequest,
        attestation_type: AttestationType,
        assigned_round_id: Optional[int] = None,
        latest_round_id: Optional[int] = None,
    ) -> RetryOutcome:
        """Search for an FDC request's proof, never newer than its assigned round."""
        if latest_round_id is None:
            latest_round_id = self.da.latest_round_id()
        candidates = self.policy.candidates(latest_round_id, ceiling=assigned_round_id)
        return self._search(
            candidates,
            lambda r: self.da.fetch_request_proof(request, r, attestation_type),
        )

    @staticmethod
    def unwrap(outcome: RetryOutcome) -> ProofRecord:
        """
        Record of a successful outcome.

        Raises:
            ProofUnavailableError if the search was exhausted
        """
        if outcome.succeeded:
            return outcome.record
        rounds = ", ".join(str(r) for r in outcome.rounds_queried) or "none"
        raise ProofUnavailableError(
            f"No proof available after {len(outcome.attempts)} attempts (rounds: {rounds})",
            attempts=list(outcome.attempts),
        )

    def retrieve_feed_proof(self, feed_ids: List[str], latest_round_id: Optional[int] = None) -> ProofRecord:
        return self.unwrap(self.search_feeds(feed_ids, latest_round_id))

    def retrieve_request_proof(
        self,
        request: EncodedRequest,
        attestation_type: AttestationType,
        assigned_round_id: Optional[int] = None,
        latest_round_id: Optional[int] = None,
    ) -> ProofRecord:
        return self.unwrap(
            self.search_request(request, attestation_type, assigned_round_id, latest_round_id)
        )

    def wait_for_finalization(self, round_id: int) -> int:
        """
        Poll the latest round until `round_id` is observed finalized.

        Returns:
            The latest round id at the time the round was seen finalized

        Raises:
            FinalizationTimeout if the round is still pending after the last check
        """
        attempts = self.config.finalization_poll_attempts
        for attempt in range(attempts):
            observed = self.da.observe_round(round_id)
            if observed.is_finalized:
                print(f"[OK] Round {round_id} finalized (latest: {observed.latest_round_id})")
                return observed.latest_round_id
            print(f"[...] Round {round_id} not finalized yet (latest: {observed.latest_round_id}), "
                  f"check {attempt + 1}/{attempts}")
            if attempt < attempts - 1:
                self.sleep(self.config.finalization_poll_seconds)

        raise FinalizationTimeout(
            f"Round {round_id} was not finalized after {attempts} checks"
        )
