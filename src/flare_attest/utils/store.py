"""
Persistent ledger of hub submissions.

The hub charges a fee on every submission and is not idempotent, so the
pipeline records each request here as soon as its transaction is broadcast
(status "sent", round unknown), then with its assigned round ("submitted").
A known request re-enters the proof search instead of being submitted again;
only a "failed" entry is submitted afresh.
"""

import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional


STATUS_SENT = "sent"
STATUS_SUBMITTED = "submitted"
STATUS_PROVED = "proved"
STATUS_FAILED = "failed"


class SubmissionStore:
    """SQLite-based persistent storage for submitted attestation requests."""

    def __init__(self, db_path: str = None, cache_dir: str = "cache"):
        if db_path is None:
            cache_path = Path(cache_dir)
            cache_path.mkdir(parents=True, exist_ok=True)
            db_path = str(cache_path / "submissions.db")

        self.db_path = db_path
        self._init_db()

    def _init_db(self):
        """Initialize database tables."""
        with sqlite3.connect(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS submissions (
                    request_hex TEXT PRIMARY KEY,
                    attestation_type TEXT NOT NULL,
                    round_id INTEGER,
                    tx_hash TEXT,
                    fee_wei TEXT,
                    status TEXT NOT NULL,
                    proved_round_id INTEGER,
                    error TEXT,
                    submitted_at TEXT,
                    updated_at TEXT
                )
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_submitted_at ON submissions(submitted_at DESC)
            """)
            conn.commit()

    def save_submission(
        self,
        request_hex: str,
        attestation_type: str,
        round_id: int,
        tx_hash: str = None,
        fee_wei: int = None,
    ):
        """Record a request that was accepted by the hub."""
        now = datetime.now(timezone.utc).isoformat()
        with sqlite3.connect(self.db_path) as conn:
            conn.execute("""
                INSERT OR REPLACE INTO submissions
                (request_hex, attestation_type, round_id, tx_hash, fee_wei,
                 status, proved_round_id, error, submitted_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, NULL, NULL, ?, ?)
            """, (
                request_hex,
                attestation_type,
                round_id,
                tx_hash,
                str(fee_wei) if fee_wei is not None else None,
                STATUS_SUBMITTED,
                now,
                now,
            ))
            conn.commit()

    def save_sent(self, request_hex: str, attestation_type: str, tx_hash: str, fee_wei: int = None):
        """Record a broadcast request whose round is not known yet."""
        now = datetime.now(timezone.utc).isoformat()
        with sqlite3.connect(self.db_path) as conn:
            conn.execute("""
                INSERT OR REPLACE INTO submissions
                (request_hex, attestation_type, round_id, tx_hash, fee_wei,
                 status, proved_round_id, error, submitted_at, updated_at)
                VALUES (?, ?, NULL, ?, ?, ?, NULL, NULL, ?, ?)
            """, (
                request_hex,
                attestation_type,
                tx_hash,
                str(fee_wei) if fee_wei is not None else None,
                STATUS_SENT,
                now,
                now,
            ))
            conn.commit()

    def mark_proved(self, request_hex: str, proved_round_id: int):
        self._update_status(request_hex, STATUS_PROVED, proved_round_id=proved_round_id)

    def mark_failed(self, request_hex: str, error: str):
        self._update_status(request_hex, STATUS_FAILED, error=error)

    def _update_status(self, request_hex: str, status: str, proved_round_id: int = None, error: str = None):
        with sqlite3.connect(self.db_path) as conn:
            conn.execute("""
                UPDATE submissions
                SET status = ?, proved_round_id = COALESCE(?, proved_round_id),
                    error = ?, updated_at = ?
                WHERE request_hex = ?
            """, (status, proved_round_id, error, datetime.now(timezone.utc).isoformat(), request_hex))
            conn.commit()

    def get_submission(self, request_hex: str) -> Optional[Dict[str, Any]]:
        """Get the submission entry for an encoded request."""
        with sqlite3.connect(self.db_path) as conn:
            conn.row_factory = sqlite3.Row
            cursor = conn.execute(
                "SELECT * FROM submissions WHERE request_hex = ?",
                (request_hex,)
            )
            row = cursor.fetchone()
            return dict(row) if row else None

    def exists(self, request_hex: str) -> bool:
        return self.get_submission(request_hex) is not None

    def get_history(self, limit: int = 50, status: str = None) -> List[Dict[str, Any]]:
        """
        Get recent submissions, newest first.

        Args:
            limit: Maximum number of entries
            status: Only entries with this status
        """
        with sqlite3.connect(self.db_path) as conn:
            conn.row_factory = sqlite3.Row

            query = "SELECT * FROM submissions WHERE 1=1"
            params: List[Any] = []

            if status:
                query += " AND status = ?"
                params.append(status)

            query += " ORDER BY submitted_at DESC LIMIT ?"
            params.append(limit)

            cursor = conn.execute(query, params)
            return [dict(row) for row in cursor.fetchall()]

    def get_stats(self) -> Dict[str, Any]:
        """Get submission statistics."""
        with sqlite3.connect(self.db_path) as conn:
            total = conn.execute("SELECT COUNT(*) FROM submissions").fetchone()[0]
            counts = {
                status: conn.execute(
                    "SELECT COUNT(*) FROM submissions WHERE status = ?", (status,)
                ).fetchone()[0]
                for status in (STATUS_SENT, STATUS_SUBMITTED, STATUS_PROVED, STATUS_FAILED)
            }

            return {
                "total_submitted": total,
                "unconfirmed": counts[STATUS_SENT],
                "pending": counts[STATUS_SUBMITTED],
                "proved": counts[STATUS_PROVED],
                "failed": counts[STATUS_FAILED],
                "proof_rate": counts[STATUS_PROVED] / total if total > 0 else 0,
            }
