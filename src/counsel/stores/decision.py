"""SQLite-backed decision store."""

from __future__ import annotations

import sqlite3
import threading
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from counsel.errors import PersistenceError
from counsel.stores.base import DecisionStore
from counsel.types import DecisionStatus

_COLUMNS = (
    "id, conversation_id, title, status, summary_json, user_choice, "
    "user_choice_reasoning, outcome, outcome_date, created_at, updated_at"
)


def _now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class SqliteDecisionStore(DecisionStore):
    """Decision records in a single ``decisions`` table.

    The connection is shared between worker threads, so every statement
    runs under ``self._db_lock``.
    """

    def __init__(self, db_path: str = "~/.counsel/counsel.db") -> None:
        super().__init__()
        if db_path == ":memory:":
            target = db_path
        else:
            path = Path(db_path).expanduser()
            path.parent.mkdir(parents=True, exist_ok=True)
            target = str(path)
        self._conn = sqlite3.connect(target, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._db_lock = threading.Lock()
        self._init_schema()

    def _init_schema(self) -> None:
        self._conn.executescript("""
            CREATE TABLE IF NOT EXISTS decisions (
                id TEXT PRIMARY KEY,
                conversation_id TEXT NOT NULL,
                title TEXT NOT NULL,
                status TEXT NOT NULL DEFAULT 'exploring',
                summary_json TEXT,
                user_choice TEXT,
                user_choice_reasoning TEXT,
                outcome TEXT,
                outcome_date TEXT,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            );
            CREATE INDEX IF NOT EXISTS idx_decision_conv ON decisions(conversation_id);
        """)
        self._conn.commit()

    def _execute(self, sql: str, params: tuple[Any, ...] = ()) -> int:
        """Run a write statement; return the affected row count."""
        try:
            with self._db_lock:
                cur = self._conn.execute(sql, params)
                self._conn.commit()
                return cur.rowcount
        except sqlite3.Error as e:
            raise PersistenceError(str(e)) from e

    def _fetchone(self, sql: str, params: tuple[Any, ...]) -> sqlite3.Row | None:
        try:
            with self._db_lock:
                return self._conn.execute(sql, params).fetchone()
        except sqlite3.Error as e:
            raise PersistenceError(str(e)) from e

    def _update(self, decision_id: str, assignments: str, params: tuple[Any, ...]) -> None:
        rowcount = self._execute(
            f"UPDATE decisions SET {assignments}, updated_at = ? WHERE id = ?",
            (*params, _now(), decision_id),
        )
        if rowcount == 0:
            raise PersistenceError(f"Decision not found: {decision_id}")

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------

    def create_decision(self, conversation_id: str, title: str) -> dict[str, Any]:
        """Create an empty decision record in ``exploring`` state."""
        decision_id = str(uuid.uuid4())
        now = _now()
        self._execute(
            "INSERT INTO decisions (id, conversation_id, title, status, summary_json, "
            "created_at, updated_at) VALUES (?, ?, ?, ?, ?, ?, ?)",
            (decision_id, conversation_id, title, DecisionStatus.EXPLORING.value,
             None, now, now),
        )
        decision = self.get_decision(decision_id)
        if decision is None:
            raise PersistenceError(f"Decision {decision_id} vanished after insert")
        return decision

    def get_decision(self, decision_id: str) -> dict[str, Any] | None:
        row = self._fetchone(
            f"SELECT {_COLUMNS} FROM decisions WHERE id = ?", (decision_id,),
        )
        return dict(row) if row else None

    def get_decision_by_conversation(self, conversation_id: str) -> dict[str, Any] | None:
        row = self._fetchone(
            f"SELECT {_COLUMNS} FROM decisions WHERE conversation_id = ?",
            (conversation_id,),
        )
        return dict(row) if row else None

    # ------------------------------------------------------------------
    # DecisionStore contract
    # ------------------------------------------------------------------

    def get_summary(self, decision_id: str) -> str | None:
        row = self._fetchone(
            "SELECT summary_json FROM decisions WHERE id = ?", (decision_id,),
        )
        return row["summary_json"] if row else None

    def save_summary(self, decision_id: str, summary_json: str) -> None:
        self._update(decision_id, "summary_json = ?", (summary_json,))

    def set_status(self, decision_id: str, status: str) -> None:
        try:
            DecisionStatus(status)
        except ValueError:
            raise PersistenceError(f"Invalid decision status: {status}") from None
        self._update(decision_id, "status = ?", (status,))

    # ------------------------------------------------------------------
    # User-driven transitions
    # ------------------------------------------------------------------

    def record_choice(self, decision_id: str, choice: str, reasoning: str | None = None) -> None:
        self._update(
            decision_id,
            "status = ?, user_choice = ?, user_choice_reasoning = ?",
            (DecisionStatus.DECIDED.value, choice, reasoning),
        )

    def record_outcome(self, decision_id: str, outcome: str) -> None:
        self._update(
            decision_id,
            "status = ?, outcome = ?, outcome_date = ?",
            (DecisionStatus.REVIEWED.value, outcome, _now()),
        )

    def close(self) -> None:
        self._conn.close()
