"""Upstream exchange rate provider contract and shared HTTP plumbing."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date
from decimal import Decimal
from typing import Any

import httpx

from fx_rate_gateway.domain.rates import to_decimal
from fx_rate_gateway.exceptions import (
    DateOutOfRangeError,
    InvalidProviderResponseError,
    ProviderApiError,
    ProviderNetworkError,
    UnsupportedCurrencyError,
    UpstreamRateLimitError,
)
from fx_rate_gateway.logging_config import get_logger

logger = get_logger(__name__)

PROBE_PAIR = ("USD", "EUR")


class ExchangeRateProvider(ABC):
    """Source of live and historical rates for a currency pair.

    Implementations are independent of each other; they share no mutable
    state and are picked by name from the registry.
    """

    name: str = "provider"

    @abstractmethod
    def fetch_rate(
        self, from_currency: str, to_currency: str, rate_date: date | None = None
    ) -> Decimal:
        """Return units of ``to_currency`` per one ``from_currency``.

        ``rate_date`` of None means the latest rate. Raises a ProviderError
        subclass or RateNotFoundError on failure.
        """
        raise NotImplementedError

    def is_available(self) -> bool:
        """Best-effort liveness probe. Never raises."""
        try:
            self.fetch_rate(*PROBE_PAIR)
        except Exception as exc:
            logger.info("provider_unavailable", provider=self.name, error=str(exc))
            return False
        return True

    @abstractmethod
    def get_supported_currencies(self) -> list[str]:
        """Static reference list; fetch_rate does not enforce it."""
        raise NotImplementedError


class HttpRateProvider(ExchangeRateProvider):
    """Base for providers speaking the apilayer JSON dialect over HTTP.

    One outbound GET per call, bounded by ``timeout``, no retries.
    """

    default_host: str = ""
    earliest_date: date = date(1999, 1, 1)
    supported_currencies: tuple[str, ...] = ()

    # apilayer error codes shared by currencylayer and exchangeratesapi
    RATE_LIMIT_CODES = frozenset({104})
    INVALID_CURRENCY_CODES = frozenset({201, 202})

    def __init__(
        self,
        api_key: str,
        *,
        use_https: bool = True,
        timeout: float = 10.0,
        base_url: str | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        if not api_key:
            msg = "api_key must be provided"
            raise ValueError(msg)
        scheme = "https" if use_https else "http"
        self._api_key = api_key
        self.base_url = (base_url or f"{scheme}://{self.default_host}").rstrip("/")
        self.timeout = timeout
        self._client = client or httpx.Client(
            timeout=timeout,
            headers={"Accept": "application/json"},
        )

    def close(self) -> None:
        self._client.close()

    def get_supported_currencies(self) -> list[str]:
        return list(self.supported_currencies)

    def _check_date(self, rate_date: date | None) -> None:
        if rate_date is not None and rate_date < self.earliest_date:
            raise DateOutOfRangeError(
                rate_date.isoformat(), self.earliest_date.isoformat()
            )

    def _get_json(self, path: str, params: dict[str, Any]) -> dict[str, Any]:
        url = f"{self.base_url}{path}"
        query = {k: v for k, v in params.items() if v is not None}
        logger.debug(
            "provider_request",
            provider=self.name,
            url=url,
            params={k: ("***" if k == "access_key" else v) for k, v in query.items()},
        )
        try:
            response = self._client.get(url, params=query, timeout=self.timeout)
        except httpx.TimeoutException as exc:
            raise ProviderNetworkError(
                f"{self.name} request timed out after {self.timeout}s"
            ) from exc
        except httpx.TransportError as exc:
            raise ProviderNetworkError(f"{self.name} request failed: {exc}") from exc

        # Error bodies carry the provider's error code, so read them
        # regardless of HTTP status.
        try:
            payload = response.json()
        except ValueError as exc:
            raise InvalidProviderResponseError(
                f"{self.name} returned invalid JSON",
                context={"status_code": response.status_code},
            ) from exc

        if not isinstance(payload, dict):
            raise InvalidProviderResponseError(
                f"{self.name} returned unexpected payload type",
                context={"status_code": response.status_code},
            )
        logger.debug(
            "provider_response",
            provider=self.name,
            status_code=response.status_code,
            success=payload.get("success"),
        )
        return payload

    def _raise_for_error(self, payload: dict[str, Any]) -> None:
        """Map an explicit failure flag to the error taxonomy."""
        if payload.get("success", True) and "error" not in payload:
            return
        error = payload.get("error")
        if not isinstance(error, dict):
            error = {"info": str(error) if error else None}
        info = error.get("info") or error.get("type") or "Unknown API error"
        try:
            code = int(error.get("code") or 0)
        except (TypeError, ValueError):
            code = 0

        logger.warning("provider_error", provider=self.name, code=code, info=info)
        context = {"provider": self.name, "code": code}
        if code in self.RATE_LIMIT_CODES:
            raise UpstreamRateLimitError(info, context=context)
        if code in self.INVALID_CURRENCY_CODES:
            raise UnsupportedCurrencyError(info, context=context)
        raise ProviderApiError(info, context=context)

    def _parse_rate(self, value: Any) -> Decimal:
        try:
            rate = to_decimal(value)
        except ValueError as exc:
            raise InvalidProviderResponseError(
                f"{self.name} returned a non-numeric rate: {value!r}"
            ) from exc
        if not rate.is_finite() or rate <= 0:
            raise InvalidProviderResponseError(
                f"{self.name} returned a non-positive rate: {value!r}"
            )
        return rate


__all__ = [
    "ExchangeRateProvider",
    "HttpRateProvider",
]
