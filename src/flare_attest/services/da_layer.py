"""
Data Availability layer client.

Every proof query returns an AttemptResult instead of raising: the retriever
decides what a failed attempt means for the search.
"""

from typing import Any, Dict, List, Optional

import requests
from eth_abi import encode

from ..config.settings import PipelineConfig
from ..errors import ProofUnavailableError
from ..models import (
    AttemptResult,
    AttemptStatus,
    AttestationType,
    EncodedRequest,
    ProofRecord,
    VotingRound,
)
from ..utils.abi import FEED_DATA_TYPE, hex_to_bytes, normalize_hex


LATEST_ROUND_PATH = "api/v0/fsp/latest-voting-round"
FEEDS_WITH_PROOF_PATH = "api/v0/ftso/anchor-feeds-with-proof"
PROOF_BY_REQUEST_ROUND_PATH = "api/v1/fdc/proof-by-request-round-raw"


def encode_feed_body(body: Dict[str, Any]) -> bytes:
    """ABI-encode a DA layer feed body exactly as FtsoV2 hashes it."""
    return encode([FEED_DATA_TYPE], [(
        int(body["votingRoundId"]),
        hex_to_bytes(body["id"]),
        int(body["value"]),
        int(body["turnoutBIPS"]),
        int(body["decimals"]),
    )])


class DALayerClient:
    """HTTP client for the DA layer's round and proof endpoints."""

    def __init__(self, config: PipelineConfig, session: requests.Session = None):
        self.config = config
        self.base_url = config.da_layer_url if config.da_layer_url.endswith("/") else config.da_layer_url + "/"
        self.session = session or requests.Session()

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.config.da_api_key:
            headers["X-API-KEY"] = self.config.da_api_key
        return headers

    def latest_round_id(self) -> int:
        """
        Latest voting round reported by the DA layer.

        Raises:
            ProofUnavailableError if the DA layer cannot be queried; the
            search can be retried later
        """
        try:
            response = self.session.get(
                f"{self.base_url}{LATEST_ROUND_PATH}",
                headers=self._headers(),
                timeout=self.config.request_timeout,
            )
            response.raise_for_status()
            round_id = int(response.json()["voting_round_id"])
        except (requests.RequestException, KeyError, TypeError, ValueError) as e:
            raise ProofUnavailableError(f"Failed to fetch latest voting round: {e}") from e

        print(f"[OK] Latest voting round: {round_id}")
        return round_id

    def observe_round(self, round_id: int) -> VotingRound:
        """Status of a round relative to the latest reported one."""
        return VotingRound.observe(round_id, self.latest_round_id())

    def _classify_failure(self, round_id: int, response) -> AttemptResult:
        if response.status_code in self.config.not_ready_statuses:
            return AttemptResult(round_id, AttemptStatus.NOT_READY, http_status=response.status_code)
        return AttemptResult(
            round_id,
            AttemptStatus.FAILED,
            http_status=response.status_code,
            error=f"Server responded with status: {response.status_code}",
        )

    def fetch_feed_proof(self, feed_ids: List[str], round_id: int) -> AttemptResult:
        """Anchor feed values with proof for one round."""
        try:
            response = self.session.post(
                f"{self.base_url}{FEEDS_WITH_PROOF_PATH}",
                params={"voting_round_id": round_id},
                json={"feed_ids": list(feed_ids)},
                headers=self._headers(),
                timeout=self.config.request_timeout,
            )
            if response.status_code != 200:
                return self._classify_failure(round_id, response)

            data = response.json()
            if not isinstance(data, list):
                return AttemptResult(
                    round_id,
                    AttemptStatus.FAILED,
                    http_status=200,
                    error=f"Malformed feed proof: expected a list, got {type(data).__name__}",
                )

            entry = self._select_feed(data, feed_ids)
            if entry is None:
                return AttemptResult(round_id, AttemptStatus.NOT_READY, http_status=200)

            record = ProofRecord(
                attestation_type=AttestationType.FEED_DATA,
                round_id=int(entry["body"]["votingRoundId"]),
                merkle_path=tuple(entry["proof"]),
                raw_response=encode_feed_body(entry["body"]),
            )
        except requests.RequestException as e:
            return AttemptResult(round_id, AttemptStatus.FAILED, error=str(e))
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            return AttemptResult(round_id, AttemptStatus.FAILED, http_status=200, error=f"Malformed feed proof: {e}")

        return AttemptResult(round_id, AttemptStatus.SUCCESS, record=record, http_status=200)

    @staticmethod
    def _select_feed(data: List[Dict[str, Any]], feed_ids: List[str]) -> Optional[Dict[str, Any]]:
        """
        Entry for the first requested feed, or None unless the round carries
        every requested feed.
        """
        by_id = {normalize_hex(entry["body"]["id"]): entry for entry in data}
        wanted = [normalize_hex(f) for f in feed_ids]
        if not wanted or any(f not in by_id for f in wanted):
            return None
        return by_id[wanted[0]]

    def fetch_request_proof(
        self,
        request: EncodedRequest,
        round_id: int,
        attestation_type: AttestationType,
    ) -> AttemptResult:
        """Proof and raw response for an FDC request in one round."""
        try:
            response = self.session.post(
                f"{self.base_url}{PROOF_BY_REQUEST_ROUND_PATH}",
                json={"votingRoundId": round_id, "requestBytes": request.hex_data},
                headers=self._headers(),
                timeout=self.config.request_timeout,
            )
            if response.status_code != 200:
                return self._classify_failure(round_id, response)

            data = response.json()
            response_hex: Optional[str] = data.get("response_hex") if data else None
            if not response_hex:
                return AttemptResult(round_id, AttemptStatus.NOT_READY, http_status=200)

            record = ProofRecord(
                attestation_type=attestation_type,
                round_id=round_id,
                merkle_path=tuple(data.get("proof") or ()),
                raw_response=hex_to_bytes(response_hex),
                request=request,
            )
        except requests.RequestException as e:
            return AttemptResult(round_id, AttemptStatus.FAILED, error=str(e))
        except (AttributeError, TypeError, ValueError) as e:
            return AttemptResult(round_id, AttemptStatus.FAILED, http_status=200, error=f"Malformed proof: {e}")

        return AttemptResult(round_id, AttemptStatus.SUCCESS, record=record, http_status=200)
