"""Persistent cache of historical exchange rates.

RateStore is the single writer of RateRecords. It wraps a RateRepository,
applies the global caching switch and the optional cache allow-list, and
translates driver failures into CacheError so callers can degrade instead
of failing.
"""

from collections.abc import Iterable
from datetime import date
from decimal import Decimal

from fx_rate_gateway.domain.rates import RateRecord
from fx_rate_gateway.exceptions import CacheError, CacheUnavailableError
from fx_rate_gateway.logging_config import get_logger
from fx_rate_gateway.repositories.interfaces import Database, RateRepository

logger = get_logger(__name__)


class RateStore:
    def __init__(
        self,
        database: Database,
        repository: RateRepository,
        *,
        caching_enabled: bool = True,
        allowed_currencies: Iterable[str] = (),
    ) -> None:
        """Create the store and provision its schema.

        Raises:
            CacheUnavailableError: caching is enabled and the database cannot
                be reached. This is fatal for the component.
        """
        self._database = database
        self._repo = repository
        self._caching_enabled = caching_enabled
        self._allowed = frozenset(code.upper() for code in allowed_currencies)

        if caching_enabled:
            try:
                database.initialize()
            except database.errors as exc:
                logger.error("rate_store_init_failed", error=str(exc))
                raise CacheUnavailableError(str(exc)) from exc

    def is_caching_enabled(self) -> bool:
        return self._caching_enabled

    def is_cacheable(self, to_currency: str) -> bool:
        """True if results for this target currency may be persisted."""
        return not self._allowed or to_currency in self._allowed

    def get(
        self, from_currency: str, to_currency: str, rate_date: date
    ) -> RateRecord | None:
        """Exact-match lookup. Inverse lookups are the caller's job."""
        if not self._caching_enabled:
            return None
        try:
            return self._repo.get_rate(from_currency, to_currency, rate_date)
        except (*self._database.errors, ValueError) as exc:
            raise CacheError(
                f"Cache lookup failed for {from_currency}/{to_currency}: {exc}",
                context={"operation": "get", "date": rate_date.isoformat()},
            ) from exc

    def save(
        self,
        from_currency: str,
        to_currency: str,
        rate: Decimal,
        rate_date: date,
        source: str = "provider",
    ) -> bool:
        """Upsert a rate (last write wins).

        Returns False when nothing was written because caching is off or
        the target currency is outside the allow-list.

        Raises:
            ValueError: rate is not a positive number.
            CacheError: the write failed.
        """
        if not self._caching_enabled:
            return False
        record = RateRecord(
            from_currency=from_currency,
            to_currency=to_currency,
            rate=rate,
            rate_date=rate_date,
            source=source,
        )
        if not self.is_cacheable(to_currency):
            logger.debug("rate_not_cacheable", pair=record.pair)
            return False
        try:
            self._repo.upsert(record)
        except self._database.errors as exc:
            raise CacheError(
                f"Cache write failed for {record.pair}: {exc}",
                context={"operation": "save", "date": rate_date.isoformat()},
            ) from exc
        logger.debug("rate_cached", pair=record.pair, date=rate_date.isoformat())
        return True

    def delete(self, from_currency: str, to_currency: str, rate_date: date) -> bool:
        try:
            return self._repo.delete(from_currency, to_currency, rate_date)
        except self._database.errors as exc:
            raise CacheError(f"Cache delete failed: {exc}") from exc

    def list_by_pair(self, from_currency: str, to_currency: str) -> list[RateRecord]:
        try:
            return list(self._repo.list_by_pair(from_currency, to_currency))
        except (*self._database.errors, ValueError) as exc:
            raise CacheError(f"Cache listing failed: {exc}") from exc
