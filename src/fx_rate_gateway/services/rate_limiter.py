"""Sliding-window request limiter backed by the request log table.

Per-client state is derived entirely from logged timestamps; there are no
counters to keep in sync. Concurrent requests from one client near a
threshold can both pass before either is recorded, so the budget may be
slightly over-admitted.
"""

from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from fx_rate_gateway.domain.rates import RateLimitRecord
from fx_rate_gateway.exceptions import CacheUnavailableError, RateLimitRejectedError
from fx_rate_gateway.logging_config import get_logger
from fx_rate_gateway.repositories.interfaces import Database, RateLimitRepository

logger = get_logger(__name__)

HOUR = timedelta(hours=1)
SECOND = timedelta(seconds=1)


def _utc_now() -> datetime:
    return datetime.now(UTC)


class RequestLimiter:
    def __init__(
        self,
        database: Database,
        repository: RateLimitRepository,
        *,
        requests_per_hour: int = 100,
        requests_per_second: int = 5,
        enabled: bool = True,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        if requests_per_hour < 1 or requests_per_second < 1:
            raise ValueError("request budgets must be positive")
        self._database = database
        self._repo = repository
        self.requests_per_hour = requests_per_hour
        self.requests_per_second = requests_per_second
        self._enabled = enabled
        self._clock = clock

        if enabled:
            try:
                database.initialize()
            except database.errors as exc:
                logger.error("rate_limiter_init_failed", error=str(exc))
                raise CacheUnavailableError(f"request log: {exc}") from exc

    def check_limit(self, client_id: str) -> bool:
        """Accept or reject one request from ``client_id``.

        Order: purge records older than an hour, reject on the hourly
        budget, reject on the per-second budget, otherwise log the request
        and accept. Rejected requests are not logged.

        Raises:
            CacheUnavailableError: the request log cannot be read or written.
        """
        if not self._enabled:
            return True

        now = self._clock()
        try:
            self._repo.delete_before(now - HOUR)

            if self._repo.count_since(client_id, now - HOUR) >= self.requests_per_hour:
                logger.info("rate_limit_hourly_exceeded", client_id=client_id)
                return False

            if (
                self._repo.count_since(client_id, now - SECOND)
                >= self.requests_per_second
            ):
                logger.info("rate_limit_per_second_exceeded", client_id=client_id)
                return False

            self._repo.add(RateLimitRecord(client_id=client_id, request_time=now))
        except self._database.errors as exc:
            logger.error("rate_limit_storage_failed", error=str(exc))
            raise CacheUnavailableError(f"request log: {exc}") from exc
        return True

    def enforce(self, client_id: str) -> None:
        """Like check_limit, but raise RateLimitRejectedError on rejection."""
        if not self.check_limit(client_id):
            raise RateLimitRejectedError(client_id)
