"""
On-chain consumer entry points.

Consumer contracts take {merkleProof, data} and apply their own state
transition, reverting on any business-rule violation. A revert leaves the
contract unchanged and is raised here as BusinessRuleViolation.
"""

from web3 import Web3

from ..errors import BusinessRuleViolation
from ..models import AttestationType, DecodedPayload, ProofRecord
from ..services.abis import RESPONSE_COMPONENTS, consumer_entry_abi
from ..services.transactions import load_account, send_transaction


class ConsumerContract:
    """Sends verified proofs to a consumer contract (e.g. SportsMarket.resolveMarket)."""

    def __init__(
        self,
        w3: Web3,
        address: str,
        function_name: str,
        attestation_type: AttestationType,
        private_key: str = None,
        account=None,
        abi: list = None,
    ):
        self.w3 = w3
        self.function_name = function_name
        self.attestation_type = attestation_type
        self.contract = w3.eth.contract(
            address=Web3.to_checksum_address(address),
            abi=abi or consumer_entry_abi(function_name, RESPONSE_COMPONENTS[attestation_type.value]),
        )
        self.account = account or load_account(private_key)

    def apply(self, record: ProofRecord, payload: DecodedPayload) -> str:
        """
        Submit {merkleProof, data} to the consumer entry point.

        Returns:
            Transaction hash

        Raises:
            BusinessRuleViolation if the proof is unverified or the call reverts
        """
        if not record.verified:
            raise BusinessRuleViolation("Consumers only accept verified proofs")
        if record.attestation_type is not self.attestation_type:
            raise BusinessRuleViolation(
                f"{self.function_name} expects {self.attestation_type.value}, "
                f"got {record.attestation_type.value}"
            )

        fn = getattr(self.contract.functions, self.function_name)
        try:
            tx_hash, receipt = send_transaction(
                self.w3, fn((record.path_bytes(), payload.raw)), self.account
            )
        except BusinessRuleViolation:
            raise
        except Exception as e:
            raise BusinessRuleViolation(f"{self.function_name} rejected: {e}") from e

        if receipt["status"] != 1:
            raise BusinessRuleViolation(f"{self.function_name} reverted: {tx_hash}")

        print(f"[OK] {self.function_name}: {tx_hash}")
        return tx_hash
