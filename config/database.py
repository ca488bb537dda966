"""
FairSpin — Persistence Layer

SQLite store for the two things that outlive the in-memory ledger:
  - the last jackpot claim date per user (gates the one-jackpot-per-day rule
    across restarts)
  - the spin audit trail (seed, nonce, hash, grid, outcome) for verification

Usage:
    from config.database import JackpotStore
    store = JackpotStore("fairspin.db")
    store.save_last_win_date("u1", date(2026, 10, 18))
    store.load_last_win_date("u1")
"""

import json
import logging
import sqlite3
from datetime import date
from typing import Optional

logger = logging.getLogger("fairspin.db")


SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS jackpot_claims (
    user_id TEXT PRIMARY KEY,
    last_win_date TEXT NOT NULL,
    updated_at TEXT DEFAULT (datetime('now'))
);

CREATE TABLE IF NOT EXISTS spin_rounds (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id TEXT NOT NULL,
    seed TEXT NOT NULL,
    nonce INTEGER NOT NULL,
    catalog_size INTEGER NOT NULL,
    combined_hash TEXT NOT NULL,
    grid_json TEXT NOT NULL,
    outcome_json TEXT NOT NULL,
    bet TEXT NOT NULL,
    payout TEXT NOT NULL,
    credit_after TEXT NOT NULL,
    jackpot_after TEXT NOT NULL,
    created_at TEXT DEFAULT (datetime('now'))
);

CREATE INDEX IF NOT EXISTS idx_rounds_user ON spin_rounds(user_id);
"""


def _dict_factory(cursor, row):
    return {col[0]: row[idx] for idx, col in enumerate(cursor.description)}


class JackpotStore:
    """SQLite-backed claim dates and spin history."""

    def __init__(self, db_path: str = "fairspin.db"):
        self.db_path = db_path
        self._init_db()

    def _init_db(self):
        db = sqlite3.connect(self.db_path)
        db.executescript(SCHEMA_SQL)
        db.commit()
        db.close()

    def _db(self) -> sqlite3.Connection:
        db = sqlite3.connect(self.db_path, timeout=10)
        db.row_factory = _dict_factory
        return db

    # ─── Jackpot claims ───────────────────────────────────────

    def load_last_win_date(self, user_id: str) -> Optional[date]:
        db = self._db()
        row = db.execute("SELECT last_win_date FROM jackpot_claims WHERE user_id=?",
                         (user_id,)).fetchone()
        db.close()
        if not row:
            return None
        return date.fromisoformat(row["last_win_date"])

    def save_last_win_date(self, user_id: str, win_date: date):
        db = self._db()
        db.execute(
            """INSERT INTO jackpot_claims (user_id, last_win_date, updated_at)
               VALUES (?, ?, datetime('now'))
               ON CONFLICT(user_id) DO UPDATE SET
                   last_win_date=excluded.last_win_date,
                   updated_at=excluded.updated_at""",
            (user_id, win_date.isoformat()),
        )
        db.commit()
        db.close()
        logger.info(f"Jackpot claim recorded: user={user_id} date={win_date}")

    # ─── Spin audit trail ─────────────────────────────────────

    def record_round(self, user_id: str, result) -> int:
        """Persist a SpinResult. Returns the round id."""
        grid = result.grid
        db = self._db()
        cur = db.execute(
            """INSERT INTO spin_rounds
               (user_id, seed, nonce, catalog_size, combined_hash, grid_json,
                outcome_json, bet, payout, credit_after, jackpot_after)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (user_id, grid.seed, grid.nonce, grid.catalog_size,
             grid.combined_hash, json.dumps(grid.as_lists()),
             json.dumps(result.outcome.to_dict()), str(result.bet),
             str(result.payout), str(result.credit_after),
             str(result.jackpot_after)),
        )
        round_id = cur.lastrowid
        db.commit()
        db.close()
        return round_id

    def get_round(self, round_id: int) -> Optional[dict]:
        db = self._db()
        row = db.execute("SELECT * FROM spin_rounds WHERE id=?",
                         (round_id,)).fetchone()
        db.close()
        if not row:
            return None
        row["grid"] = json.loads(row.pop("grid_json"))
        row["outcome"] = json.loads(row.pop("outcome_json"))
        return row

    def recent_rounds(self, user_id: str, limit: int = 20) -> list[dict]:
        db = self._db()
        rows = db.execute(
            """SELECT id, nonce, outcome_json, bet, payout, credit_after, created_at
               FROM spin_rounds WHERE user_id=?
               ORDER BY id DESC LIMIT ?""",
            (user_id, limit),
        ).fetchall()
        db.close()
        for r in rows:
            r["outcome"] = json.loads(r.pop("outcome_json"))
        return rows
