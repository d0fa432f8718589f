"""Shared fixtures: a zero-backoff config and builders for ABI-encoded responses."""

import pytest
from eth_abi import encode
from web3 import Web3

from flare_attest.config import BackoffPolicy, PipelineConfig
from flare_attest.consumers.sports_market import MATCH_RESULT_JQ, MATCH_RESULT_SIGNATURE, match_lookup_url
from flare_attest.models import AttestationType, ProofRecord
from flare_attest.services.da_layer import encode_feed_body
from flare_attest.services.decoder import encode_web2json_data
from flare_attest.utils.abi import (
    EVM_TRANSACTION_RESPONSE_TYPE,
    WEB2JSON_RESPONSE_TYPE,
    hex_to_bytes,
    keccak,
    to_utf8_hex32,
)
from flare_attest.utils.feeds import KNOWN_FEEDS
from flare_attest.utils.merkle import leaf_hash, merkle_proof, merkle_root


FLR_USD = KNOWN_FEEDS["FLR/USD"]
POOL = Web3.to_checksum_address("0x" + "ab" * 20)
SENDER = Web3.to_checksum_address("0x" + "11" * 20)
RECIPIENT = Web3.to_checksum_address("0x" + "22" * 20)


@pytest.fixture
def config(tmp_path):
    return PipelineConfig.for_network(
        "coston2",
        backoff=BackoffPolicy(initial_seconds=0),
        finalization_poll_seconds=0,
        finalization_poll_attempts=3,
        cache_dir=str(tmp_path / "cache"),
    )


@pytest.fixture
def feed_body():
    def build(round_id=47, value=2_150_000, feed_id=FLR_USD, decimals=7, turnout=5000):
        return {
            "votingRoundId": round_id,
            "id": feed_id,
            "value": value,
            "turnoutBIPS": turnout,
            "decimals": decimals,
        }
    return build


@pytest.fixture
def evm_response():
    """ABI-encoded IEVMTransaction.Response with one Uniswap V3 Swap event."""
    def build(voting_round=20, status=1, tx_hash="0x" + "4e" * 32):
        from flare_attest.consumers.swap_monitor import SWAP_TOPIC

        swap_data = encode(
            ["int256", "int256", "uint160", "uint128", "int24"],
            [-1000, 2000, 2 ** 96, 10 ** 18, -5],
        )
        event = (
            3,
            POOL,
            [
                hex_to_bytes(SWAP_TOPIC),
                b"\x00" * 12 + hex_to_bytes(SENDER),
                b"\x00" * 12 + hex_to_bytes(RECIPIENT),
            ],
            swap_data,
            False,
        )
        response = (
            hex_to_bytes(to_utf8_hex32("EVMTransaction")),
            hex_to_bytes(to_utf8_hex32("testETH")),
            voting_round,
            1700000000,
            (hex_to_bytes(tx_hash), 1, True, True, []),
            (123456, 1700000100, SENDER, False, POOL, 0, b"\x12\x34", status, [event]),
        )
        return encode([EVM_TRANSACTION_RESPONSE_TYPE], [response])
    return build


@pytest.fixture
def web2json_response():
    """ABI-encoded IWeb2Json.Response carrying a match result DTO."""
    def build(match_id=1, home=2, away=2, status="Match Finished", voting_round=20):
        data = encode_web2json_data(MATCH_RESULT_SIGNATURE, {
            "matchId": match_id,
            "homeScore": home,
            "awayScore": away,
            "status": status,
        })
        response = (
            hex_to_bytes(to_utf8_hex32("Web2Json")),
            hex_to_bytes(to_utf8_hex32("PublicWeb2")),
            voting_round,
            1700000000,
            (match_lookup_url(match_id), "GET", "{}", "{}", "{}", MATCH_RESULT_JQ, MATCH_RESULT_SIGNATURE),
            (data,),
        )
        return encode([WEB2JSON_RESPONSE_TYPE], [response])
    return build


@pytest.fixture
def merkle_tree():
    """
    Build a small tree around a response.

    Returns (root, path) for the response placed among `others` filler leaves.
    """
    def build(raw_response, others=4, index=1):
        leaves = [keccak(f"filler-{i}".encode()) for i in range(others)]
        leaves.insert(index, leaf_hash(raw_response))
        return merkle_root(leaves), merkle_proof(leaves, index)
    return build


@pytest.fixture
def feed_record(feed_body, merkle_tree):
    """Unverified FeedData record and the root that proves it."""
    def build(round_id=47, value=2_150_000):
        raw = encode_feed_body(feed_body(round_id=round_id, value=value))
        root, path = merkle_tree(raw)
        record = ProofRecord(
            attestation_type=AttestationType.FEED_DATA,
            round_id=round_id,
            merkle_path=tuple(path),
            raw_response=raw,
        )
        return record, root
    return build
