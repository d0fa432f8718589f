"""
End-to-end attestation flows against a fake DA layer and Relay roots

Verifies that:
1. A feed proof found after two not-ready rounds is verified, decoded and settles a market
2. A Web2Json match result that ends in a tie cancels the sports market
3. A retryable search failure resumes without submitting again
4. A proof that fails verification never reaches the decoder
5. The ledger only lets a failed request reach the hub again, and a broadcast
   request whose round was never recorded is recovered instead of resent
"""

from unittest.mock import Mock

import pytest

from flare_attest.consumers import PredictionMarket, Position, SportsMarket
from flare_attest.consumers.sports_market import MATCH_RESULT_JQ, MATCH_RESULT_SIGNATURE, MarketStatus, Team, match_lookup_url
from flare_attest.errors import ProofUnavailableError, SubmissionError, SubmissionReverted, VerificationFailed
from flare_attest.models import (
    FDC_PROTOCOL_ID,
    FTSO_PROTOCOL_ID,
    AttemptResult,
    AttemptStatus,
    AttestationSpec,
    AttestationType,
    EncodedRequest,
    ProofRecord,
    VotingRound,
)
from flare_attest.pipeline import AttestationPipeline, LifecycleState
from flare_attest.services.encoder import RequestEncoder
from flare_attest.services.hub import Submission
from flare_attest.services.retriever import ProofRetriever
from flare_attest.services.verifier import MerkleProofVerifier, RelayRootProvider
from flare_attest.utils.feeds import KNOWN_FEEDS
from flare_attest.utils.store import STATUS_FAILED, STATUS_PROVED, STATUS_SENT, STATUS_SUBMITTED, SubmissionStore

FLR_USD = KNOWN_FEEDS["FLR/USD"]
REQUEST = EncodedRequest("0x" + "57" * 64)


def _roots(expected):
    """Relay stand-in: {(protocol_id, round_id): root}."""
    return lambda protocol_id, round_id: expected.get((protocol_id, round_id), b"\x00" * 32)


def _match_spec(match_id=1):
    return AttestationSpec.web2json(match_lookup_url(match_id), MATCH_RESULT_JQ, MATCH_RESULT_SIGNATURE)


# ============================================================================
# Feed flow
# ============================================================================

def test_feed_flow_settles_prediction_market(config, feed_record):
    record, root = feed_record(round_id=47, value=2_150_000)

    da = Mock()
    da.latest_round_id.return_value = 50

    def fetch(feed_ids, round_id):
        if round_id == 47:
            return AttemptResult(round_id, AttemptStatus.SUCCESS, record=record, http_status=200)
        return AttemptResult(round_id, AttemptStatus.NOT_READY, http_status=404)

    da.fetch_feed_proof.side_effect = fetch

    pipeline = AttestationPipeline(
        config,
        encoder=RequestEncoder(config, session=Mock()),
        retriever=ProofRetriever(config, da_client=da, sleep=Mock()),
        verifier=MerkleProofVerifier(_roots({(FTSO_PROTOCOL_ID, 47): root})),
    )

    lifecycle = pipeline.run(AttestationSpec.feed_data([FLR_USD]))

    assert lifecycle.state is LifecycleState.DECODED
    assert lifecycle.outcome.rounds_queried == [49, 48, 47]
    assert lifecycle.proof.verified
    assert lifecycle.payload.value == 2_150_000
    assert [state for state, _ in lifecycle.history] == [
        "building", "submitted", "searching", "verified", "decoded",
    ]

    market = PredictionMarket(FLR_USD, target_price=2_000_000, settlement_time=0)
    assert market.settle(lifecycle.payload, now=1) is Position.ABOVE


def test_unverified_proof_never_reaches_decoder(config, feed_record):
    record, _ = feed_record(round_id=47)
    da = Mock()
    da.latest_round_id.return_value = 48
    da.fetch_feed_proof.return_value = AttemptResult(47, AttemptStatus.SUCCESS, record=record, http_status=200)
    decoder = Mock()

    pipeline = AttestationPipeline(
        config,
        encoder=RequestEncoder(config, session=Mock()),
        retriever=ProofRetriever(config, da_client=da, sleep=Mock()),
        verifier=MerkleProofVerifier(_roots({(FTSO_PROTOCOL_ID, 47): b"\x42" * 32})),
        decoder=decoder,
    )
    lifecycle = pipeline.start(AttestationSpec.feed_data([FLR_USD]))

    with pytest.raises(VerificationFailed):
        pipeline.resume(lifecycle)

    decoder.decode.assert_not_called()
    assert lifecycle.state is LifecycleState.FAILED
    assert lifecycle.payload is None
    assert not lifecycle.can_resume


# ============================================================================
# FDC flow (Web2Json)
# ============================================================================

class FakeDA:
    """DA layer that reports round 21 and serves the proof once `ready` is set."""

    def __init__(self, record):
        self.record = record
        self.ready = True
        self.queried = []

    def latest_round_id(self):
        return 21

    def observe_round(self, round_id):
        return VotingRound.observe(round_id, self.latest_round_id())

    def fetch_request_proof(self, request, round_id, attestation_type):
        self.queried.append(round_id)
        if self.ready and round_id == self.record.round_id:
            return AttemptResult(round_id, AttemptStatus.SUCCESS, record=self.record, http_status=200)
        return AttemptResult(round_id, AttemptStatus.NOT_READY, http_status=425)


@pytest.fixture
def fdc_setup(config, web2json_response, merkle_tree, tmp_path):
    raw = web2json_response(match_id=1, home=2, away=2)
    root, path = merkle_tree(raw)
    record = ProofRecord(AttestationType.WEB2JSON, 20, tuple(path), raw, request=REQUEST)

    encoder = Mock()
    encoder.encode.return_value = REQUEST
    submitter = Mock()
    submitter.submit.return_value = Submission(
        request=REQUEST, round_id=20, tx_hash="0xfeed", fee_wei=10 ** 15, block_number=1, block_timestamp=1,
    )
    da = FakeDA(record)
    store = SubmissionStore(cache_dir=str(tmp_path / "ledger"))

    def build(verifier=None):
        return AttestationPipeline(
            config,
            encoder=encoder,
            retriever=ProofRetriever(config, da_client=da, sleep=Mock()),
            verifier=verifier or MerkleProofVerifier(_roots({(FDC_PROTOCOL_ID, 20): root})),
            submitter=submitter,
            store=store,
        )

    return build, da, submitter, store


def test_tied_match_cancels_sports_market(fdc_setup):
    build, da, submitter, store = fdc_setup

    lifecycle = build().run(_match_spec())

    assert lifecycle.state is LifecycleState.DECODED
    assert lifecycle.assigned_round_id == 20
    assert da.queried == [20]
    assert dict(lifecycle.payload.data)["status"] == "Match Finished"
    submitter.submit.assert_called_once()
    assert submitter.submit.call_args.args[0] == REQUEST
    assert store.get_submission(REQUEST.hex_data)["status"] == STATUS_PROVED

    market = SportsMarket(1, "Home FC", "Away United")
    assert market.resolve(lifecycle.payload) is MarketStatus.CANCELED
    assert market.winning_team is Team.NONE


def test_retryable_failure_resumes_without_resubmitting(fdc_setup):
    build, da, submitter, store = fdc_setup
    da.ready = False
    pipeline = build()

    lifecycle = pipeline.start(_match_spec())
    with pytest.raises(ProofUnavailableError) as exc:
        pipeline.resume(lifecycle)

    assert exc.value.retryable
    assert da.queried == [20, 19, 18, 17, 16]
    assert lifecycle.can_resume
    assert store.get_submission(REQUEST.hex_data)["status"] == STATUS_SUBMITTED

    da.ready = True
    lifecycle = pipeline.resume(lifecycle)
    assert lifecycle.state is LifecycleState.DECODED

    # A fresh run of the same spec finds the ledger entry and skips the hub
    again = build().start(_match_spec())
    assert again.assigned_round_id == 20
    assert again.submission is None
    assert submitter.submit.call_count == 1


def test_fdc_spec_without_submitter(config, tmp_path):
    encoder = Mock()
    encoder.encode.return_value = REQUEST
    pipeline = AttestationPipeline(
        config,
        encoder=encoder,
        retriever=Mock(),
        verifier=Mock(),
        store=SubmissionStore(cache_dir=str(tmp_path)),
    )

    with pytest.raises(SubmissionError, match="PRIVATE_KEY"):
        pipeline.start(_match_spec())


def test_failed_entry_is_submitted_again(fdc_setup):
    build, da, submitter, store = fdc_setup
    store.save_submission(REQUEST.hex_data, "Web2Json", 12, tx_hash="0xold")
    store.mark_failed(REQUEST.hex_data, "Proof for round 12 does not match the published root")

    lifecycle = build().start(_match_spec())

    assert submitter.submit.call_count == 1
    assert lifecycle.assigned_round_id == 20
    entry = store.get_submission(REQUEST.hex_data)
    assert entry["status"] == STATUS_SUBMITTED
    assert entry["tx_hash"] == "0xfeed"


def test_broadcast_without_round_is_recovered_not_resent(fdc_setup):
    build, da, submitter, store = fdc_setup

    def broadcast_then_lose_receipt(request, on_sent=None):
        on_sent("0xfeed", 10 ** 15)
        raise SubmissionError("Attestation request submission failed: receipt timeout")

    submitter.submit.side_effect = broadcast_then_lose_receipt
    submitter.recover.return_value = Submission(
        request=REQUEST, round_id=20, tx_hash="0xfeed", fee_wei=10 ** 15, block_number=1, block_timestamp=1,
    )

    with pytest.raises(SubmissionError):
        build().start(_match_spec())
    entry = store.get_submission(REQUEST.hex_data)
    assert entry["status"] == STATUS_SENT
    assert entry["round_id"] is None

    lifecycle = build().run(_match_spec())

    assert lifecycle.state is LifecycleState.DECODED
    assert submitter.submit.call_count == 1
    submitter.recover.assert_called_once_with(REQUEST, "0xfeed", fee_wei=10 ** 15)
    assert store.get_submission(REQUEST.hex_data)["status"] == STATUS_PROVED


def test_reverted_submission_is_marked_failed(fdc_setup):
    build, da, submitter, store = fdc_setup

    def broadcast_then_revert(request, on_sent=None):
        on_sent("0xdead", 10 ** 15)
        raise SubmissionReverted("Attestation request reverted: 0xdead")

    submitter.submit.side_effect = broadcast_then_revert

    with pytest.raises(SubmissionReverted):
        build().start(_match_spec())

    assert store.get_submission(REQUEST.hex_data)["status"] == STATUS_FAILED
    submitter.recover.assert_not_called()


def test_unreadable_chain_during_verification_is_resumable(fdc_setup):
    build, da, submitter, store = fdc_setup
    contracts = Mock()
    contracts.relay.functions.merkleRoots.return_value.call.side_effect = ConnectionError("rpc down")
    pipeline = build(verifier=MerkleProofVerifier(RelayRootProvider(contracts)))

    lifecycle = pipeline.start(_match_spec())
    with pytest.raises(VerificationFailed) as exc:
        pipeline.resume(lifecycle)

    assert exc.value.retryable
    assert lifecycle.state is LifecycleState.FAILED
    assert lifecycle.can_resume
    assert store.get_submission(REQUEST.hex_data)["status"] == STATUS_SUBMITTED
