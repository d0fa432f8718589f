"""
Proof verification

A proof is accepted only when the path rebuilds the round's published root.
Anything else raises VerificationFailed and never reaches the decoder.
"""

from dataclasses import replace
from unittest.mock import Mock

import pytest

from flare_attest.errors import VerificationFailed
from flare_attest.models import FTSO_PROTOCOL_ID, AttestationType, ProofRecord
from flare_attest.services.verifier import (
    MerkleProofVerifier,
    OnChainProofVerifier,
    RelayRootProvider,
    require_verified,
)
from flare_attest.utils.abi import keccak
from flare_attest.utils.merkle import hash_pair, leaf_hash, merkle_proof, merkle_root, verify_proof


def _roots(root, protocol_id=FTSO_PROTOCOL_ID, round_id=47):
    def provider(p, r):
        return root if (p, r) == (protocol_id, round_id) else b"\x00" * 32
    return provider


def test_merkle_pairs_are_sorted():
    a, b = keccak(b"a"), keccak(b"b")
    assert hash_pair(a, b) == hash_pair(b, a)


@pytest.mark.parametrize("count", [1, 2, 3, 5, 8])
def test_every_leaf_proves_against_root(count):
    leaves = [keccak(bytes([i])) for i in range(count)]
    root = merkle_root(leaves)
    for i, leaf in enumerate(leaves):
        assert verify_proof(merkle_proof(leaves, i), root, leaf)


def test_valid_proof_is_marked_verified(feed_record):
    record, root = feed_record(round_id=47)

    verified = require_verified(MerkleProofVerifier(_roots(root)), record)

    assert verified.verified
    assert not record.verified
    assert verified.raw_response == record.raw_response


def test_tampered_response_is_rejected(feed_record):
    record, root = feed_record(round_id=47)
    tampered = replace(record, raw_response=record.raw_response[:-1] + b"\x01")

    with pytest.raises(VerificationFailed) as exc:
        require_verified(MerkleProofVerifier(_roots(root)), tampered)
    assert exc.value.record is tampered
    assert not exc.value.retryable


def test_tampered_path_is_rejected(feed_record):
    record, root = feed_record(round_id=47)
    tampered = replace(record, merkle_path=record.merkle_path[:-1] + ("0x" + "00" * 32,))

    assert not MerkleProofVerifier(_roots(root)).verify(tampered)


def test_root_of_another_round_is_rejected(feed_record):
    record, root = feed_record(round_id=47)
    wrong_round = replace(record, round_id=46)

    assert not MerkleProofVerifier(_roots(root)).verify(wrong_round)


def test_leaf_is_keccak_of_encoded_response(feed_record):
    record, _ = feed_record()
    assert leaf_hash(record.raw_response) == keccak(record.raw_response)


def test_relay_root_provider_reads_merkle_roots():
    contracts = Mock()
    contracts.relay.functions.merkleRoots.return_value.call.return_value = b"\x11" * 32

    assert RelayRootProvider(contracts)(200, 20) == b"\x11" * 32
    contracts.relay.functions.merkleRoots.assert_called_once_with(200, 20)


def test_on_chain_verifier_calls_feed_entry_point(feed_record):
    record, _ = feed_record(round_id=47, value=123)
    contracts = Mock()
    contracts.ftso_v2.functions.verifyFeedData.return_value.call.return_value = True

    assert OnChainProofVerifier(contracts).verify(record)

    ((proof, data),) = contracts.ftso_v2.functions.verifyFeedData.call_args.args
    assert proof == record.path_bytes()
    assert data[0] == 47
    assert data[2] == 123


def test_on_chain_verifier_routes_fdc_types(evm_response):
    record = ProofRecord(AttestationType.EVM_TRANSACTION, 20, (), evm_response())
    contracts = Mock()
    contracts.fdc_verification.functions.verifyEVMTransaction.return_value.call.return_value = False

    assert not OnChainProofVerifier(contracts).verify(record)
    contracts.fdc_verification.functions.verifyEVMTransaction.assert_called_once()
    contracts.ftso_v2.functions.verifyFeedData.assert_not_called()


def test_on_chain_verifier_rejects_undecodable_response():
    record = ProofRecord(AttestationType.FEED_DATA, 20, (), b"\x01\x02")
    contracts = Mock()

    assert not OnChainProofVerifier(contracts).verify(record)
    contracts.ftso_v2.functions.verifyFeedData.assert_not_called()


def test_on_chain_call_failure_is_retryable_verification_failure(feed_record):
    record, _ = feed_record(round_id=47)
    contracts = Mock()
    contracts.ftso_v2.functions.verifyFeedData.return_value.call.side_effect = ConnectionError("rpc down")

    with pytest.raises(VerificationFailed) as exc:
        require_verified(OnChainProofVerifier(contracts), record)

    assert exc.value.retryable
    assert exc.value.record is record
