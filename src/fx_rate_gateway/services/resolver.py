"""Rate resolution pipeline.

resolve() returns a Quote or raises exactly one member of the closed
taxonomy in fx_rate_gateway.exceptions:

1. identical currencies short-circuit to 1 without touching store or provider;
2. dated requests consult the cache, first directly, then inverted;
3. on a miss the provider is asked once, and a dated result is written back.

"Latest" requests are never read from or written to the cache. Cache
failures never fail a resolution; they are logged and reported as warnings
on the returned Quote.
"""

from collections.abc import Callable
from datetime import UTC, date, datetime
from decimal import Decimal

from fx_rate_gateway.domain.rates import (
    Quote,
    QuoteSource,
    normalize_currency,
    parse_rate_date,
)
from fx_rate_gateway.exceptions import CacheError, InvalidDateError
from fx_rate_gateway.logging_config import get_logger
from fx_rate_gateway.providers.base import ExchangeRateProvider
from fx_rate_gateway.services.rate_store import RateStore

logger = get_logger(__name__)

CACHE_READ_WARNING = "Rate cache unavailable; rate served from provider"
CACHE_WRITE_WARNING = "Rate cache unavailable; rate was not cached"


def _utc_now() -> datetime:
    return datetime.now(UTC)


class RateResolver:
    def __init__(
        self,
        store: RateStore,
        provider: ExchangeRateProvider,
        *,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._store = store
        self._provider = provider
        self._clock = clock

    def _today(self) -> date:
        return self._clock().date()

    def _parse_date(self, rate_date: str | date | None) -> date | None:
        today = self._today()
        if isinstance(rate_date, date):
            if rate_date > today:
                raise InvalidDateError(rate_date.isoformat(), "date is in the future")
            return rate_date
        return parse_rate_date(rate_date, today=today)

    def resolve(
        self,
        from_currency: str,
        to_currency: str,
        rate_date: str | date | None = None,
    ) -> Quote:
        """Resolve the rate for one unit of ``from_currency`` in ``to_currency``.

        Args:
            from_currency: base currency code, any casing.
            to_currency: quote currency code, any casing.
            rate_date: a date, a ``YYYY-MM-DD`` string, or None/"latest".

        Raises:
            ValidationError: malformed currency code or date, or a future date.
            RateNotFoundError: no rate exists for the pair and date.
            ProviderError: the upstream call failed.
        """
        base = normalize_currency(from_currency)
        quote = normalize_currency(to_currency)
        day = self._parse_date(rate_date)

        if base == quote:
            return Quote(
                from_currency=base,
                to_currency=quote,
                rate=Decimal("1"),
                rate_date=day or self._today(),
                source=QuoteSource.CACHE,
                is_identity=True,
            )

        warnings: list[str] = []
        if day is not None and self._store.is_caching_enabled():
            cached = self._from_cache(base, quote, day, warnings)
            if cached is not None:
                return cached

        rate = self._provider.fetch_rate(base, quote, day)
        logger.info(
            "rate_fetched",
            from_currency=base,
            to_currency=quote,
            date=day.isoformat() if day else "latest",
            provider=self._provider.name,
        )

        if day is not None and self._store.is_caching_enabled():
            self._write_back(base, quote, rate, day, warnings)

        return Quote(
            from_currency=base,
            to_currency=quote,
            rate=rate,
            rate_date=day or self._today(),
            source=QuoteSource.PROVIDER,
            warnings=tuple(warnings),
        )

    def _from_cache(
        self, base: str, quote: str, day: date, warnings: list[str]
    ) -> Quote | None:
        try:
            record = self._store.get(base, quote, day)
            if record is not None:
                rate = record.rate
            else:
                inverse = self._store.get(quote, base, day)
                if inverse is None:
                    return None
                rate = inverse.inverse_rate
        except CacheError as exc:
            logger.warning("cache_lookup_failed", error=exc.message)
            warnings.append(CACHE_READ_WARNING)
            return None

        logger.info(
            "rate_cache_hit",
            from_currency=base,
            to_currency=quote,
            date=day.isoformat(),
            inverted=record is None,
        )
        return Quote(
            from_currency=base,
            to_currency=quote,
            rate=rate,
            rate_date=day,
            source=QuoteSource.CACHE,
        )

    def _write_back(
        self, base: str, quote: str, rate: Decimal, day: date, warnings: list[str]
    ) -> None:
        try:
            self._store.save(base, quote, rate, day, source=self._provider.name)
        except CacheError as exc:
            logger.warning("cache_write_failed", error=exc.message)
            warnings.append(CACHE_WRITE_WARNING)
