from collections.abc import Callable
from datetime import UTC, date, datetime, timedelta
from decimal import Decimal

import pytest

from fx_rate_gateway.exceptions import RateNotFoundError
from fx_rate_gateway.providers.base import ExchangeRateProvider
from fx_rate_gateway.repositories.sqlite import (
    SQLiteDatabase,
    SQLiteRateLimitRepository,
    SQLiteRateRepository,
)
from fx_rate_gateway.services.rate_store import RateStore

FROZEN_NOW = datetime(2024, 3, 15, 12, 0, 0, tzinfo=UTC)


class FrozenClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime = FROZEN_NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


class FakeProvider(ExchangeRateProvider):
    """In-memory provider that records every call."""

    name = "fake"

    def __init__(
        self,
        rates: dict[tuple[str, str, date | None], Decimal] | None = None,
        error: Exception | None = None,
    ) -> None:
        self.rates = dict(rates or {})
        self.error = error
        self.calls: list[tuple[str, str, date | None]] = []

    def fetch_rate(
        self, from_currency: str, to_currency: str, rate_date: date | None = None
    ) -> Decimal:
        self.calls.append((from_currency, to_currency, rate_date))
        if self.error is not None:
            raise self.error
        key = (from_currency, to_currency, rate_date)
        if key not in self.rates:
            raise RateNotFoundError(
                from_currency,
                to_currency,
                rate_date.isoformat() if rate_date else None,
            )
        return self.rates[key]

    def get_supported_currencies(self) -> list[str]:
        return ["USD", "EUR", "GBP"]


@pytest.fixture
def db() -> SQLiteDatabase:
    """Create an in-memory SQLite database for testing."""
    database = SQLiteDatabase(":memory:", check_same_thread=False)
    database.initialize()
    return database


@pytest.fixture
def rate_repo(db: SQLiteDatabase) -> SQLiteRateRepository:
    return SQLiteRateRepository(db)


@pytest.fixture
def limit_repo(db: SQLiteDatabase) -> SQLiteRateLimitRepository:
    return SQLiteRateLimitRepository(db)


@pytest.fixture
def store(db: SQLiteDatabase, rate_repo: SQLiteRateRepository) -> RateStore:
    return RateStore(db, rate_repo)


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def make_provider() -> Callable[..., FakeProvider]:
    return FakeProvider
