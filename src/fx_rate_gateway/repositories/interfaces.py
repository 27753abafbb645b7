from abc import ABC, abstractmethod
from collections.abc import Iterable
from datetime import date, datetime
from typing import Protocol

from fx_rate_gateway.domain.rates import RateLimitRecord, RateRecord


class Database(Protocol):
    """Connection manager shared by the SQLite and PostgreSQL backends."""

    errors: tuple[type[Exception], ...]

    def initialize(self) -> None: ...

    def close(self) -> None: ...


class RateRepository(ABC):
    """Repository interface for cached exchange rates."""

    @abstractmethod
    def get_rate(
        self,
        from_currency: str,
        to_currency: str,
        rate_date: date,
    ) -> RateRecord | None:
        """Get the rate stored for exactly this pair and date."""
        pass

    @abstractmethod
    def upsert(self, record: RateRecord) -> None:
        """Insert the record, or overwrite the rate stored under its key."""
        pass

    @abstractmethod
    def delete(self, from_currency: str, to_currency: str, rate_date: date) -> bool:
        """Delete one cached rate. Returns True if a row was removed."""
        pass

    @abstractmethod
    def list_by_pair(
        self,
        from_currency: str,
        to_currency: str,
    ) -> Iterable[RateRecord]:
        """List cached rates for a pair ordered by date."""
        pass


class RateLimitRepository(ABC):
    """Repository interface for the request limiter's log."""

    @abstractmethod
    def add(self, record: RateLimitRecord) -> None:
        pass

    @abstractmethod
    def count_since(self, client_id: str, since: datetime) -> int:
        """Count requests logged for a client strictly after ``since``."""
        pass

    @abstractmethod
    def delete_before(self, cutoff: datetime) -> int:
        """Remove records older than ``cutoff``. Returns rows removed."""
        pass
