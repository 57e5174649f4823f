# src/storage/sqlite_repository.py — v2
"""SQLite-backed repository (STORAGE_BACKEND=sqlite).

Uses stdlib sqlite3. Every write is a single statement committed
immediately, so each row update is durable on its own.
"""

from __future__ import annotations

import logging
import sqlite3
import uuid
from datetime import datetime, timezone
from pathlib import Path

from modelplayground.storage.base_repository import BaseRepository, RecordNotFoundError
from modelplayground.storage.models import (
    ModelResponse,
    ResponseStatus,
    Session,
    SessionAggregates,
    SessionStatus,
)

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS comparison_sessions (
    id TEXT PRIMARY KEY,
    prompt TEXT NOT NULL,
    status TEXT NOT NULL DEFAULT 'pending',
    total_tokens INTEGER NOT NULL DEFAULT 0,
    total_cost REAL NOT NULL DEFAULT 0,
    average_response_time REAL NOT NULL DEFAULT 0,
    user_id TEXT NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    seq INTEGER
);
CREATE INDEX IF NOT EXISTS idx_sessions_user ON comparison_sessions(user_id, created_at);

CREATE TABLE IF NOT EXISTS model_responses (
    id TEXT PRIMARY KEY,
    session_id TEXT NOT NULL REFERENCES comparison_sessions(id) ON DELETE CASCADE,
    model_id TEXT NOT NULL,
    provider TEXT NOT NULL,
    response TEXT,
    status TEXT NOT NULL DEFAULT 'pending',
    input_tokens INTEGER,
    output_tokens INTEGER,
    cost REAL,
    response_time_ms INTEGER,
    error_message TEXT,
    created_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_responses_session ON model_responses(session_id);
"""

_SESSION_COLUMNS = (
    "id, prompt, status, total_tokens, total_cost, average_response_time, "
    "user_id, created_at, updated_at"
)
_RESPONSE_COLUMNS = (
    "id, session_id, model_id, provider, response, status, input_tokens, "
    "output_tokens, cost, response_time_ms, error_message, created_at"
)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class SqliteRepository(BaseRepository):
    """SQLite repository; ``:memory:`` gives a throwaway database."""

    def __init__(self, db_path: Path | str) -> None:
        if str(db_path) == ":memory:":
            target = ":memory:"
        else:
            path = Path(db_path).expanduser()
            path.parent.mkdir(parents=True, exist_ok=True)
            target = str(path)
        self._conn = sqlite3.connect(target, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA foreign_keys=ON")
        if target != ":memory:":
            self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.executescript(_SCHEMA)
        logger.debug("Opened session database at %s", target)

    # --- Sessions ---

    async def create_session(self, prompt: str, user_id: str) -> Session:
        now = _now()
        session_id = str(uuid.uuid4())
        self._conn.execute(
            f"""INSERT INTO comparison_sessions ({_SESSION_COLUMNS}, seq)
                VALUES (?, ?, 'pending', 0, 0, 0, ?, ?, ?,
                        (SELECT COALESCE(MAX(seq), 0) + 1 FROM comparison_sessions))""",
            (session_id, prompt, user_id, now, now),
        )
        self._conn.commit()
        session = await self.get_session(session_id)
        if session is None:
            raise RecordNotFoundError(f"Session {session_id} not found")
        return session

    async def get_session(
        self, session_id: str, user_id: str | None = None
    ) -> Session | None:
        query = f"SELECT {_SESSION_COLUMNS} FROM comparison_sessions WHERE id = ?"
        params: tuple[str, ...] = (session_id,)
        if user_id is not None:
            query += " AND user_id = ?"
            params = (session_id, user_id)
        row = self._conn.execute(query, params).fetchone()
        if row is None:
            return None
        return self._row_to_session(row)

    async def list_sessions(
        self, user_id: str, limit: int = 20, offset: int = 0
    ) -> list[Session]:
        rows = self._conn.execute(
            f"""SELECT {_SESSION_COLUMNS} FROM comparison_sessions
                WHERE user_id = ?
                ORDER BY created_at DESC, seq DESC
                LIMIT ? OFFSET ?""",
            (user_id, limit, offset),
        ).fetchall()
        return [self._row_to_session(r) for r in rows]

    async def update_session_status(
        self, session_id: str, status: SessionStatus
    ) -> None:
        self._execute_update(
            "UPDATE comparison_sessions SET status = ?, updated_at = ? WHERE id = ?",
            (status, _now(), session_id),
            f"Session {session_id} not found",
        )

    async def update_session_metrics(
        self, session_id: str, aggregates: SessionAggregates
    ) -> None:
        self._execute_update(
            """UPDATE comparison_sessions
               SET total_tokens = ?, total_cost = ?, average_response_time = ?,
                   updated_at = ?
               WHERE id = ?""",
            (
                aggregates.total_tokens,
                aggregates.total_cost,
                aggregates.average_response_time,
                _now(),
                session_id,
            ),
            f"Session {session_id} not found",
        )

    # --- Model responses ---

    async def create_response(
        self, session_id: str, model_id: str, provider: str
    ) -> ModelResponse:
        response = ModelResponse(
            session_id=session_id, model_id=model_id, provider=provider,
        )
        try:
            self._conn.execute(
                f"""INSERT INTO model_responses ({_RESPONSE_COLUMNS})
                    VALUES (?, ?, ?, ?, '', 'pending', NULL, NULL, NULL, NULL, NULL, ?)""",
                (
                    response.id, session_id, model_id, provider,
                    response.created_at.isoformat(),
                ),
            )
        except sqlite3.IntegrityError as e:
            raise RecordNotFoundError(f"Session {session_id} not found") from e
        self._conn.commit()
        return response

    async def update_response_text(
        self, response_id: str, text: str, status: ResponseStatus = "streaming"
    ) -> None:
        self._execute_update(
            "UPDATE model_responses SET response = ?, status = ? WHERE id = ?",
            (text, status, response_id),
            f"Model response {response_id} not found",
        )

    async def finalize_response(
        self,
        response_id: str,
        input_tokens: int,
        output_tokens: int,
        cost: float,
        response_time_ms: int,
    ) -> None:
        self._execute_update(
            """UPDATE model_responses
               SET input_tokens = ?, output_tokens = ?, cost = ?,
                   response_time_ms = ?, status = 'completed'
               WHERE id = ?""",
            (input_tokens, output_tokens, cost, response_time_ms, response_id),
            f"Model response {response_id} not found",
        )

    async def mark_response_error(self, response_id: str, error_message: str) -> None:
        self._execute_update(
            "UPDATE model_responses SET status = 'error', error_message = ? WHERE id = ?",
            (error_message, response_id),
            f"Model response {response_id} not found",
        )

    async def list_responses(
        self, session_id: str, status: ResponseStatus | None = None
    ) -> list[ModelResponse]:
        query = (
            f"SELECT {_RESPONSE_COLUMNS} FROM model_responses "
            "WHERE session_id = ?"
        )
        params: tuple[str, ...] = (session_id,)
        if status is not None:
            query += " AND status = ?"
            params = (session_id, status)
        query += " ORDER BY created_at, rowid"
        rows = self._conn.execute(query, params).fetchall()
        return [self._row_to_response(r) for r in rows]

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()

    # --- Internal helpers ---

    def _execute_update(self, sql: str, params: tuple, missing: str) -> None:
        cursor = self._conn.execute(sql, params)
        self._conn.commit()
        if cursor.rowcount == 0:
            raise RecordNotFoundError(missing)

    def _row_to_session(self, row: sqlite3.Row) -> Session:
        responses_rows = self._conn.execute(
            f"""SELECT {_RESPONSE_COLUMNS} FROM model_responses
                WHERE session_id = ? ORDER BY created_at, rowid""",
            (row["id"],),
        ).fetchall()
        return Session(
            id=row["id"],
            prompt=row["prompt"],
            status=row["status"],
            total_tokens=row["total_tokens"],
            total_cost=row["total_cost"],
            average_response_time=row["average_response_time"],
            user_id=row["user_id"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
            responses=[self._row_to_response(r) for r in responses_rows],
        )

    @staticmethod
    def _row_to_response(row: sqlite3.Row) -> ModelResponse:
        return ModelResponse(
            id=row["id"],
            session_id=row["session_id"],
            model_id=row["model_id"],
            provider=row["provider"],
            response=row["response"] or "",
            status=row["status"],
            input_tokens=row["input_tokens"],
            output_tokens=row["output_tokens"],
            cost=row["cost"],
            response_time_ms=row["response_time_ms"],
            error_message=row["error_message"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )
