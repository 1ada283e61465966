"""SQLite-backed signal store for local runs and tests."""

import sqlite3
import threading
import uuid
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable, Optional

import orjson

from ..errors import PersistenceError
from ..logging.config import get_logger
from ..models.signal import NewSignal, Signal, SignalStatus
from ..utils.time import Clock, format_timestamp, utc_now
from .base import SignalQuery, SignalStore, SortOrder, check_terminal, row_to_signal


class SQLiteSignalStore(SignalStore):
    """SQLite-based signal persistence layer."""

    def __init__(
        self,
        db_path: str = "agent_signals.db",
        table: str = "agent_signals",
        clock: Clock = utc_now
    ):
        self.db_path = Path(db_path)
        self.table = table
        self.clock = clock
        self.logger = get_logger("signal.store.sqlite")
        self._lock = threading.Lock()

        self._init_database()

    def _init_database(self) -> None:
        """Initialize database schema."""
        try:
            with self._get_connection() as conn:
                conn.execute(f"""
                    CREATE TABLE IF NOT EXISTS {self.table} (
                        id TEXT PRIMARY KEY,
                        source_agent TEXT NOT NULL,
                        target_agent TEXT,
                        signal_type TEXT NOT NULL,
                        priority INTEGER NOT NULL DEFAULT 3,
                        payload TEXT NOT NULL DEFAULT '{{}}',
                        message TEXT NOT NULL,
                        status TEXT NOT NULL DEFAULT 'active'
                            CHECK(status IN ('active','consumed','dismissed')),
                        consumed_by TEXT,
                        consumed_at TEXT,
                        expires_at TEXT NOT NULL,
                        created_at TEXT NOT NULL
                    )
                """)

                for column in ("status", "signal_type", "created_at", "target_agent"):
                    conn.execute(f"""
                        CREATE INDEX IF NOT EXISTS idx_{self.table}_{column}
                        ON {self.table}({column})
                    """)

                conn.commit()
        except sqlite3.Error as e:
            raise PersistenceError(
                f"Failed to initialize signal table: {e}",
                operation="init",
                target=str(self.db_path)
            ) from e

    @contextmanager
    def _get_connection(self):
        """Get database connection with proper error handling."""
        conn = None
        try:
            conn = sqlite3.connect(self.db_path, timeout=30.0)
            conn.row_factory = sqlite3.Row
            yield conn
        except sqlite3.Error as e:
            if conn:
                conn.rollback()
            self.logger.error("Database error", db_path=str(self.db_path), error=str(e))
            raise
        finally:
            if conn:
                conn.close()

    def _fail(self, operation: str, error: Exception) -> PersistenceError:
        return PersistenceError(
            f"SQLite {operation} failed: {error}",
            operation=operation,
            target=f"{self.db_path}:{self.table}"
        )

    def insert(self, new_signal: NewSignal) -> Signal:
        """Insert a new active signal."""
        signal_id = str(uuid.uuid4())

        with self._lock:
            try:
                with self._get_connection() as conn:
                    conn.execute(f"""
                        INSERT INTO {self.table} (
                            id, source_agent, target_agent, signal_type, priority,
                            payload, message, status, expires_at, created_at
                        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """, (
                        signal_id,
                        new_signal.source_agent,
                        new_signal.target_agent,
                        new_signal.signal_type,
                        new_signal.priority,
                        orjson.dumps(new_signal.payload).decode("utf-8"),
                        new_signal.message,
                        SignalStatus.ACTIVE.value,
                        format_timestamp(new_signal.expires_at),
                        format_timestamp(self.clock()),
                    ))
                    conn.commit()

                    row = conn.execute(
                        f"SELECT * FROM {self.table} WHERE id = ?", (signal_id,)
                    ).fetchone()

            except (sqlite3.Error, TypeError, orjson.JSONEncodeError) as e:
                raise self._fail("insert", e) from e

        return row_to_signal(row)

    def select(self, query: SignalQuery) -> list[Signal]:
        """Select signals matching a query."""
        clauses: list[str] = []
        params: list[Any] = []

        if query.status is not None:
            clauses.append("status = ?")
            params.append(SignalStatus(query.status).value)

        if query.audience is not None:
            clauses.append("(target_agent = ? OR target_agent IS NULL)")
            params.append(query.audience)

        if query.signal_types:
            placeholders = ", ".join("?" for _ in query.signal_types)
            clauses.append(f"signal_type IN ({placeholders})")
            params.extend(query.signal_types)

        if query.max_priority is not None:
            clauses.append("priority <= ?")
            params.append(query.max_priority)

        if query.source_agent is not None:
            clauses.append("source_agent = ?")
            params.append(query.source_agent)

        if query.created_since is not None:
            clauses.append("created_at >= ?")
            params.append(format_timestamp(query.created_since))

        sql = f"SELECT * FROM {self.table}"
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)

        # rowid breaks ties between rows created within the same microsecond
        if query.order == SortOrder.RECENT:
            sql += " ORDER BY created_at DESC, rowid DESC"
        else:
            sql += " ORDER BY priority ASC, created_at DESC, rowid DESC"

        if query.limit is not None:
            sql += " LIMIT ?"
            params.append(query.limit)

        try:
            with self._get_connection() as conn:
                rows = conn.execute(sql, params).fetchall()
        except sqlite3.Error as e:
            raise self._fail("select", e) from e

        return [row_to_signal(row) for row in rows]

    def update_status(
        self,
        signal_ids: Iterable[str],
        status: SignalStatus,
        consumed_by: Optional[str] = None,
        consumed_at: Optional[datetime] = None
    ) -> list[str]:
        """Transition active signals to a terminal status."""
        check_terminal(status)
        ids = [str(i) for i in signal_ids if i]
        if not ids:
            return []

        placeholders = ", ".join("?" for _ in ids)
        where = f"id IN ({placeholders}) AND status = ?"
        where_params = [*ids, SignalStatus.ACTIVE.value]

        with self._lock:
            try:
                with self._get_connection() as conn:
                    matched = [
                        row["id"] for row in conn.execute(
                            f"SELECT id FROM {self.table} WHERE {where}", where_params
                        ).fetchall()
                    ]

                    if matched:
                        conn.execute(f"""
                            UPDATE {self.table} SET
                                status = ?,
                                consumed_by = ?,
                                consumed_at = ?
                            WHERE {where}
                        """, (
                            SignalStatus(status).value,
                            consumed_by,
                            format_timestamp(consumed_at) if consumed_at else None,
                            *where_params,
                        ))
                        conn.commit()

            except sqlite3.Error as e:
                raise self._fail("update_status", e) from e

        return matched

    def get(self, signal_id: str) -> Optional[Signal]:
        """Get a signal by ID."""
        try:
            with self._get_connection() as conn:
                row = conn.execute(
                    f"SELECT * FROM {self.table} WHERE id = ?", (signal_id,)
                ).fetchone()
        except sqlite3.Error as e:
            raise self._fail("get", e) from e

        if row:
            return row_to_signal(row)
        return None

    def delete_before(
        self,
        cutoff: datetime,
        statuses: Optional[Iterable[SignalStatus]] = None
    ) -> int:
        """Remove signals that expired before the cutoff."""
        sql = f"DELETE FROM {self.table} WHERE expires_at < ?"
        params: list[Any] = [format_timestamp(cutoff)]

        if statuses is not None:
            values = [SignalStatus(s).value for s in statuses]
            if not values:
                return 0
            sql += f" AND status IN ({', '.join('?' for _ in values)})"
            params.extend(values)

        with self._lock:
            try:
                with self._get_connection() as conn:
                    cursor = conn.execute(sql, params)
                    conn.commit()
                    deleted_count = cursor.rowcount
            except sqlite3.Error as e:
                raise self._fail("delete_before", e) from e

        self.logger.info("Deleted old signals", deleted=deleted_count)
        return deleted_count

    def count_by_status(self) -> dict[str, int]:
        """Row counts grouped by status."""
        try:
            with self._get_connection() as conn:
                return {
                    row[0]: row[1] for row in conn.execute(
                        f"SELECT status, COUNT(*) FROM {self.table} GROUP BY status"
                    )
                }
        except sqlite3.Error as e:
            raise self._fail("count_by_status", e) from e
