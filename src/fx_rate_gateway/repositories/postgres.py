"""PostgreSQL implementations of repository interfaces."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from datetime import date, datetime
from decimal import Decimal
from typing import Any

import psycopg2
import psycopg2.extras

from fx_rate_gateway.domain.rates import RateLimitRecord, RateRecord
from fx_rate_gateway.repositories.interfaces import (
    RateLimitRepository,
    RateRepository,
)


class PostgresDatabase:
    """PostgreSQL database connection manager."""

    errors: tuple[type[Exception], ...] = (psycopg2.Error,)

    def __init__(self, connection_string: str) -> None:
        self._connection_string = connection_string
        self._connection: psycopg2.extensions.connection | None = None

    def get_connection(self) -> psycopg2.extensions.connection:
        """Get or create the database connection."""
        if self._connection is None or self._connection.closed:
            self._connection = psycopg2.connect(
                self._connection_string,
                cursor_factory=psycopg2.extras.RealDictCursor,
            )
        return self._connection

    @contextmanager
    def cursor(self) -> Iterator[Any]:
        """Yield a cursor; commit on success, roll back on failure."""
        conn = self.get_connection()
        try:
            with conn.cursor() as cur:
                yield cur
            conn.commit()
        except psycopg2.Error:
            conn.rollback()
            raise

    def initialize(self) -> None:
        """Create all database tables. Safe to call repeatedly."""
        with self.cursor() as cur:
            cur.execute(
                """
                -- Cached exchange rates, one row per pair and date
                CREATE TABLE IF NOT EXISTS exchange_rates (
                    from_currency CHAR(3) NOT NULL,
                    to_currency CHAR(3) NOT NULL,
                    rate_date DATE NOT NULL,
                    rate NUMERIC(24, 12) NOT NULL CHECK (rate > 0),
                    source TEXT NOT NULL,
                    updated_at TIMESTAMPTZ NOT NULL,
                    PRIMARY KEY (from_currency, to_currency, rate_date)
                );

                -- Request limiter log
                CREATE TABLE IF NOT EXISTS rate_limits (
                    id BIGSERIAL PRIMARY KEY,
                    client_id TEXT NOT NULL,
                    request_time TIMESTAMPTZ NOT NULL
                );

                CREATE INDEX IF NOT EXISTS idx_rate_limits_client_time ON rate_limits(client_id, request_time);
                CREATE INDEX IF NOT EXISTS idx_rate_limits_time ON rate_limits(request_time);
                """
            )

    def close(self) -> None:
        """Close the database connection."""
        if self._connection is not None and not self._connection.closed:
            self._connection.close()
        self._connection = None


class PostgresRateRepository(RateRepository):
    """PostgreSQL implementation of RateRepository."""

    def __init__(self, database: PostgresDatabase) -> None:
        self._db = database

    def get_rate(
        self,
        from_currency: str,
        to_currency: str,
        rate_date: date,
    ) -> RateRecord | None:
        with self._db.cursor() as cur:
            cur.execute(
                """
                SELECT * FROM exchange_rates
                WHERE from_currency = %s AND to_currency = %s AND rate_date = %s
                """,
                (from_currency, to_currency, rate_date),
            )
            row = cur.fetchone()
        if row is None:
            return None
        return self._row_to_record(row)

    def upsert(self, record: RateRecord) -> None:
        with self._db.cursor() as cur:
            cur.execute(
                """
                INSERT INTO exchange_rates (from_currency, to_currency, rate_date,
                                            rate, source, updated_at)
                VALUES (%s, %s, %s, %s, %s, %s)
                ON CONFLICT (from_currency, to_currency, rate_date)
                DO UPDATE SET rate = EXCLUDED.rate,
                              source = EXCLUDED.source,
                              updated_at = EXCLUDED.updated_at
                """,
                (
                    record.from_currency,
                    record.to_currency,
                    record.rate_date,
                    record.rate,
                    record.source,
                    record.updated_at,
                ),
            )

    def delete(self, from_currency: str, to_currency: str, rate_date: date) -> bool:
        with self._db.cursor() as cur:
            cur.execute(
                """
                DELETE FROM exchange_rates
                WHERE from_currency = %s AND to_currency = %s AND rate_date = %s
                """,
                (from_currency, to_currency, rate_date),
            )
            removed = cur.rowcount
        return removed > 0

    def list_by_pair(
        self,
        from_currency: str,
        to_currency: str,
    ) -> Iterable[RateRecord]:
        with self._db.cursor() as cur:
            cur.execute(
                """
                SELECT * FROM exchange_rates
                WHERE from_currency = %s AND to_currency = %s
                ORDER BY rate_date
                """,
                (from_currency, to_currency),
            )
            rows = cur.fetchall()
        return [self._row_to_record(row) for row in rows]

    def _row_to_record(self, row: dict[str, Any]) -> RateRecord:
        # NUMERIC(24, 12) pads with trailing zeros
        rate = Decimal(row["rate"]).normalize()
        return RateRecord(
            from_currency=row["from_currency"].strip(),
            to_currency=row["to_currency"].strip(),
            rate=rate,
            rate_date=row["rate_date"],
            source=row["source"],
            updated_at=row["updated_at"],
        )


class PostgresRateLimitRepository(RateLimitRepository):
    """PostgreSQL implementation of RateLimitRepository."""

    def __init__(self, database: PostgresDatabase) -> None:
        self._db = database

    def add(self, record: RateLimitRecord) -> None:
        with self._db.cursor() as cur:
            cur.execute(
                "INSERT INTO rate_limits (client_id, request_time) VALUES (%s, %s)",
                (record.client_id, record.request_time),
            )

    def count_since(self, client_id: str, since: datetime) -> int:
        with self._db.cursor() as cur:
            cur.execute(
                """
                SELECT COUNT(*) AS count FROM rate_limits
                WHERE client_id = %s AND request_time > %s
                """,
                (client_id, since),
            )
            row = cur.fetchone()
        return int(row["count"])

    def delete_before(self, cutoff: datetime) -> int:
        with self._db.cursor() as cur:
            cur.execute("DELETE FROM rate_limits WHERE request_time < %s", (cutoff,))
            removed = cur.rowcount
        return int(removed)
