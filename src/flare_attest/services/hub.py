"""
FDC hub submission.

Submitting is an irreversible, fee-charging transaction. HubSubmitter never
retries: a failure surfaces as SubmissionError and the caller decides.
A request that was broadcast but whose round is unknown is picked up again
with recover(), which reads the existing receipt instead of sending.
"""

from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from web3 import Web3

from ..config.settings import PipelineConfig
from ..errors import SubmissionError, SubmissionReverted
from ..models import EncodedRequest
from .contracts import FlareContracts
from .transactions import load_account, send_transaction


@dataclass(frozen=True)
class Submission:
    """A request accepted by the hub and the voting round it landed in."""
    request: EncodedRequest
    round_id: int
    tx_hash: str
    fee_wei: int
    block_number: int
    block_timestamp: int


class HubSubmitter:
    """Submits encoded requests to FdcHub and derives the assigned voting round."""

    def __init__(
        self,
        config: PipelineConfig,
        w3: Web3,
        contracts: FlareContracts = None,
        account=None,
    ):
        self.config = config
        self.w3 = w3
        self.contracts = contracts or FlareContracts(w3)
        self._account = account
        self._round_timing: Optional[Tuple[int, int]] = None

    @property
    def account(self):
        if self._account is None:
            self._account = load_account(self.config.private_key)
        return self._account

    def request_fee(self, request: EncodedRequest) -> int:
        """Fee in wei the hub charges for this request."""
        return self.contracts.fee_configurations.functions.getRequestFee(request.as_bytes()).call()

    def round_timing(self) -> Tuple[int, int]:
        """(firstVotingRoundStartTs, votingEpochDurationSeconds), read once."""
        if self._round_timing is None:
            manager = self.contracts.systems_manager
            first_start = manager.functions.firstVotingRoundStartTs().call()
            duration = manager.functions.votingEpochDurationSeconds().call()
            self._round_timing = (int(first_start), int(duration))
        return self._round_timing

    def round_id_for_timestamp(self, timestamp: int) -> int:
        """Voting round containing an on-chain timestamp."""
        first_start, duration = self.round_timing()
        if duration <= 0:
            raise SubmissionError(f"Invalid voting epoch duration: {duration}")
        return (int(timestamp) - first_start) // duration

    def submit(
        self,
        request: EncodedRequest,
        on_sent: Optional[Callable[[str, int], None]] = None,
    ) -> Submission:
        """
        Submit a request once, paying the required fee.

        Args:
            request: Encoded request
            on_sent: Called with (tx_hash, fee_wei) as soon as the transaction
                is broadcast, before the receipt arrives

        Returns:
            Submission with the assigned round id

        Raises:
            SubmissionReverted if the transaction was mined but failed
            SubmissionError on any other failure (fee lookup, signing, receipt wait)
        """
        try:
            fee = self.request_fee(request)
            print(f"[...] Submitting attestation request (fee: {Web3.from_wei(fee, 'ether')} native)")

            tx_hash, receipt = send_transaction(
                self.w3,
                self.contracts.fdc_hub.functions.requestAttestation(request.as_bytes()),
                self.account,
                value=fee,
                on_sent=(lambda sent_hash: on_sent(sent_hash, int(fee))) if on_sent else None,
            )
        except SubmissionError:
            raise
        except Exception as e:
            raise SubmissionError(f"Attestation request submission failed: {e}") from e

        return self._from_receipt(request, tx_hash, receipt, int(fee))

    def recover(self, request: EncodedRequest, tx_hash: str, fee_wei: int = 0) -> Submission:
        """
        Submission for a request that was already broadcast but whose round
        was never derived. Nothing is sent.

        Raises:
            SubmissionReverted if the recorded transaction failed
            SubmissionError if the receipt or block cannot be read
        """
        print(f"[...] Recovering round of sent request {tx_hash}")
        try:
            receipt = self.w3.eth.wait_for_transaction_receipt(tx_hash)
        except Exception as e:
            raise SubmissionError(f"No receipt for {tx_hash}: {e}") from e
        return self._from_receipt(request, tx_hash, receipt, fee_wei)

    def _from_receipt(self, request: EncodedRequest, tx_hash: str, receipt, fee_wei: int) -> Submission:
        if receipt["status"] != 1:
            raise SubmissionReverted(f"Attestation request reverted: {tx_hash}")

        try:
            block = self.w3.eth.get_block(receipt["blockNumber"])
            round_id = self.round_id_for_timestamp(block["timestamp"])
        except SubmissionError:
            raise
        except Exception as e:
            # The request is on chain; only the round lookup failed.
            raise SubmissionError(f"Submitted {tx_hash} but could not derive its round: {e}") from e

        print(f"[OK] Submitted: {tx_hash}")
        print(f"    Round: {round_id}")
        if self.config.explorer_url:
            print(f"    Explorer: {self.config.round_explorer_url(round_id)}")

        return Submission(
            request=request,
            round_id=round_id,
            tx_hash=tx_hash,
            fee_wei=fee_wei,
            block_number=int(receipt["blockNumber"]),
            block_timestamp=int(block["timestamp"]),
        )
