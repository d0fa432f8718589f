"""Submission ledger (SQLite)."""

from flare_attest.utils.store import STATUS_FAILED, STATUS_PROVED, STATUS_SENT, STATUS_SUBMITTED, SubmissionStore


def test_save_and_get(tmp_path):
    store = SubmissionStore(cache_dir=str(tmp_path))
    store.save_submission("0x1234", "EVMTransaction", 20, tx_hash="0xfeed", fee_wei=10 ** 18)

    entry = store.get_submission("0x1234")
    assert entry["round_id"] == 20
    assert entry["tx_hash"] == "0xfeed"
    assert entry["fee_wei"] == str(10 ** 18)
    assert entry["status"] == STATUS_SUBMITTED
    assert store.exists("0x1234")
    assert not store.exists("0x5678")
    assert (tmp_path / "submissions.db").exists()


def test_status_transitions(tmp_path):
    store = SubmissionStore(db_path=str(tmp_path / "ledger.db"))
    store.save_submission("0xaa", "EVMTransaction", 20)
    store.save_submission("0xbb", "Web2Json", 21)
    store.save_submission("0xcc", "Web2Json", 22)

    store.mark_proved("0xaa", 19)
    store.mark_failed("0xbb", "Proof for round 21 does not match the published root")

    assert store.get_submission("0xaa")["proved_round_id"] == 19
    assert store.get_submission("0xbb")["error"].startswith("Proof for round 21")
    assert [h["request_hex"] for h in store.get_history(status=STATUS_PROVED)] == ["0xaa"]
    assert [h["request_hex"] for h in store.get_history(status=STATUS_FAILED)] == ["0xbb"]

    stats = store.get_stats()
    assert stats["total_submitted"] == 3
    assert stats["pending"] == 1
    assert stats["proved"] == 1
    assert stats["failed"] == 1
    assert abs(stats["proof_rate"] - 1 / 3) < 1e-9


def test_history_limit(tmp_path):
    store = SubmissionStore(cache_dir=str(tmp_path))
    for i in range(5):
        store.save_submission(f"0x{i:02x}", "EVMTransaction", i)

    assert len(store.get_history(limit=3)) == 3


def test_empty_stats(tmp_path):
    stats = SubmissionStore(cache_dir=str(tmp_path)).get_stats()
    assert stats["total_submitted"] == 0
    assert stats["proof_rate"] == 0


def test_sent_entry_has_no_round_until_confirmed(tmp_path):
    store = SubmissionStore(cache_dir=str(tmp_path))
    store.save_sent("0x1234", "Web2Json", "0xfeed", fee_wei=10 ** 15)

    entry = store.get_submission("0x1234")
    assert entry["status"] == STATUS_SENT
    assert entry["round_id"] is None
    assert store.get_stats()["unconfirmed"] == 1

    store.save_submission("0x1234", "Web2Json", 20, tx_hash="0xfeed", fee_wei=10 ** 15)
    assert store.get_submission("0x1234")["round_id"] == 20
    assert store.get_stats()["unconfirmed"] == 0
