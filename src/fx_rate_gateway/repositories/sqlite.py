"""SQLite implementations of repository interfaces."""

from __future__ import annotations

import sqlite3
from collections.abc import Iterable
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path

from fx_rate_gateway.domain.rates import RateLimitRecord, RateRecord
from fx_rate_gateway.repositories.interfaces import (
    RateLimitRepository,
    RateRepository,
)


def _timestamp(value: datetime) -> str:
    # Fixed width so ISO strings compare in chronological order
    return value.isoformat(timespec="microseconds")


class SQLiteDatabase:
    """SQLite database connection manager."""

    errors: tuple[type[Exception], ...] = (sqlite3.Error,)

    def __init__(
        self, path: str | Path = ":memory:", check_same_thread: bool = True
    ) -> None:
        self._path = str(path)
        self._check_same_thread = check_same_thread
        self._connection: sqlite3.Connection | None = None

    @property
    def path(self) -> str:
        return self._path

    def get_connection(self) -> sqlite3.Connection:
        """Get or create the database connection."""
        if self._connection is None:
            self._connection = sqlite3.connect(
                self._path, check_same_thread=self._check_same_thread
            )
            self._connection.row_factory = sqlite3.Row
        return self._connection

    def initialize(self) -> None:
        """Create all database tables. Safe to call repeatedly."""
        conn = self.get_connection()
        conn.executescript(
            """
            -- Cached exchange rates, one row per pair and date
            CREATE TABLE IF NOT EXISTS exchange_rates (
                from_currency TEXT NOT NULL,
                to_currency TEXT NOT NULL,
                rate_date TEXT NOT NULL,
                rate TEXT NOT NULL,
                source TEXT NOT NULL,
                updated_at TEXT NOT NULL,
                PRIMARY KEY (from_currency, to_currency, rate_date)
            );

            -- Request limiter log
            CREATE TABLE IF NOT EXISTS rate_limits (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                client_id TEXT NOT NULL,
                request_time TEXT NOT NULL
            );

            CREATE INDEX IF NOT EXISTS idx_rate_limits_client_time ON rate_limits(client_id, request_time);
            CREATE INDEX IF NOT EXISTS idx_rate_limits_time ON rate_limits(request_time);
            """
        )
        conn.commit()

    def close(self) -> None:
        """Close the database connection."""
        if self._connection is not None:
            self._connection.close()
            self._connection = None


class SQLiteRateRepository(RateRepository):
    """SQLite implementation of RateRepository."""

    def __init__(self, db: SQLiteDatabase) -> None:
        self._db = db

    def get_rate(
        self,
        from_currency: str,
        to_currency: str,
        rate_date: date,
    ) -> RateRecord | None:
        conn = self._db.get_connection()
        row = conn.execute(
            """
            SELECT * FROM exchange_rates
            WHERE from_currency = ? AND to_currency = ? AND rate_date = ?
            """,
            (from_currency, to_currency, rate_date.isoformat()),
        ).fetchone()
        if row is None:
            return None
        return self._row_to_record(row)

    def upsert(self, record: RateRecord) -> None:
        conn = self._db.get_connection()
        conn.execute(
            """
            INSERT INTO exchange_rates (from_currency, to_currency, rate_date,
                                        rate, source, updated_at)
            VALUES (?, ?, ?, ?, ?, ?)
            ON CONFLICT (from_currency, to_currency, rate_date)
            DO UPDATE SET rate = excluded.rate,
                          source = excluded.source,
                          updated_at = excluded.updated_at
            """,
            (
                record.from_currency,
                record.to_currency,
                record.rate_date.isoformat(),
                str(record.rate),
                record.source,
                _timestamp(record.updated_at),
            ),
        )
        conn.commit()

    def delete(self, from_currency: str, to_currency: str, rate_date: date) -> bool:
        conn = self._db.get_connection()
        cursor = conn.execute(
            """
            DELETE FROM exchange_rates
            WHERE from_currency = ? AND to_currency = ? AND rate_date = ?
            """,
            (from_currency, to_currency, rate_date.isoformat()),
        )
        conn.commit()
        return cursor.rowcount > 0

    def list_by_pair(
        self,
        from_currency: str,
        to_currency: str,
    ) -> Iterable[RateRecord]:
        conn = self._db.get_connection()
        rows = conn.execute(
            """
            SELECT * FROM exchange_rates
            WHERE from_currency = ? AND to_currency = ?
            ORDER BY rate_date
            """,
            (from_currency, to_currency),
        ).fetchall()
        return [self._row_to_record(row) for row in rows]

    def _row_to_record(self, row: sqlite3.Row) -> RateRecord:
        return RateRecord(
            from_currency=row["from_currency"],
            to_currency=row["to_currency"],
            rate=Decimal(row["rate"]),
            rate_date=date.fromisoformat(row["rate_date"]),
            source=row["source"],
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )


class SQLiteRateLimitRepository(RateLimitRepository):
    """SQLite implementation of RateLimitRepository."""

    def __init__(self, db: SQLiteDatabase) -> None:
        self._db = db

    def add(self, record: RateLimitRecord) -> None:
        conn = self._db.get_connection()
        conn.execute(
            "INSERT INTO rate_limits (client_id, request_time) VALUES (?, ?)",
            (record.client_id, _timestamp(record.request_time)),
        )
        conn.commit()

    def count_since(self, client_id: str, since: datetime) -> int:
        conn = self._db.get_connection()
        row = conn.execute(
            """
            SELECT COUNT(*) AS count FROM rate_limits
            WHERE client_id = ? AND request_time > ?
            """,
            (client_id, _timestamp(since)),
        ).fetchone()
        return int(row["count"])

    def delete_before(self, cutoff: datetime) -> int:
        conn = self._db.get_connection()
        cursor = conn.execute(
            "DELETE FROM rate_limits WHERE request_time < ?",
            (_timestamp(cutoff),),
        )
        conn.commit()
        return cursor.rowcount
