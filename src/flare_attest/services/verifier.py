"""
Proof verification.

Two verifiers share one interface, verify(record) -> bool:

- OnChainProofVerifier calls the type's verification entry point
  (FdcVerification / FtsoV2), which rebuilds the root on chain.
- MerkleProofVerifier rebuilds the root locally and compares it with the
  root the Relay contract published for the round.

require_verified() is the gate: nothing unverified reaches the decoder.
"""

from typing import Callable

from ..errors import DecodeError, VerificationFailed
from ..models import AttestationType, ProofRecord
from ..utils.merkle import leaf_hash, verify_proof
from .contracts import FlareContracts
from .decoder import decode_response_tuple


class OnChainProofVerifier:
    """Delegates verification to the on-chain verifier contracts."""

    def __init__(self, contracts: FlareContracts):
        self.contracts = contracts

    def verify(self, record: ProofRecord) -> bool:
        try:
            data = decode_response_tuple(record.attestation_type, record.raw_response)
        except DecodeError as e:
            print(f"[!] Cannot build verification call: {e}")
            return False

        proof = record.path_bytes()
        if record.attestation_type is AttestationType.FEED_DATA:
            call = self.contracts.ftso_v2.functions.verifyFeedData((proof, data))
        elif record.attestation_type is AttestationType.EVM_TRANSACTION:
            call = self.contracts.fdc_verification.functions.verifyEVMTransaction((proof, data))
        else:
            call = self.contracts.fdc_verification.functions.verifyWeb2Json((proof, data))

        try:
            return bool(call.call())
        except Exception as e:
            raise VerificationFailed(
                f"Verification call for round {record.round_id} failed: {e}",
                record=record,
                retryable=True,
            ) from e


class RelayRootProvider:
    """Published Merkle roots read from the Relay contract."""

    def __init__(self, contracts: FlareContracts):
        self.contracts = contracts

    def __call__(self, protocol_id: int, round_id: int) -> bytes:
        try:
            return bytes(self.contracts.relay.functions.merkleRoots(protocol_id, round_id).call())
        except Exception as e:
            raise VerificationFailed(
                f"Failed to read Merkle root for round {round_id}: {e}", retryable=True
            ) from e


class MerkleProofVerifier:
    """Rebuilds the Merkle root from the path and the response leaf."""

    def __init__(self, root_provider: Callable[[int, int], bytes]):
        self.root_provider = root_provider

    def verify(self, record: ProofRecord) -> bool:
        root = self.root_provider(record.attestation_type.protocol_id, record.round_id)
        if not root or int.from_bytes(root, "big") == 0:
            print(f"[!] No Merkle root published for round {record.round_id}")
            return False
        return verify_proof(record.path_bytes(), root, leaf_hash(record.raw_response))


def require_verified(verifier, record: ProofRecord) -> ProofRecord:
    """
    Verify a record and return it marked verified.

    Raises:
        VerificationFailed if the verifier rejects the proof
    """
    print(f"[...] Verifying {record.attestation_type.value} proof for round {record.round_id}")
    if not verifier.verify(record):
        raise VerificationFailed(
            f"Proof for round {record.round_id} does not match the published root",
            record=record,
        )
    print(f"[OK] Proof verified (round {record.round_id})")
    return record.mark_verified()
