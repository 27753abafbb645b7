"""exchangeratesapi.io provider.

Dated and latest rates share one route, ``/{YYYY-MM-DD|latest}``, with
``base`` and ``symbols`` query parameters; the answer is
``{"rates": {"EUR": 0.934}}``.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from fx_rate_gateway.domain.rates import LATEST
from fx_rate_gateway.exceptions import RateNotFoundError
from fx_rate_gateway.providers.base import HttpRateProvider


class ExchangeRatesApiProvider(HttpRateProvider):
    name = "exchangeratesapi"
    default_host = "api.exchangeratesapi.io"
    earliest_date = date(1999, 1, 1)
    supported_currencies = ("EUR", "USD", "GBP", "JPY", "BTC", "ETH")

    def fetch_rate(
        self, from_currency: str, to_currency: str, rate_date: date | None = None
    ) -> Decimal:
        if from_currency == to_currency:
            return Decimal("1")
        self._check_date(rate_date)

        segment = rate_date.isoformat() if rate_date is not None else LATEST
        payload = self._get_json(
            f"/{segment}",
            {
                "access_key": self._api_key,
                "base": from_currency,
                "symbols": to_currency,
            },
        )
        self._raise_for_error(payload)

        rates = payload.get("rates")
        if not isinstance(rates, dict) or rates.get(to_currency) is None:
            raise RateNotFoundError(
                from_currency,
                to_currency,
                rate_date.isoformat() if rate_date is not None else None,
            )
        return self._parse_rate(rates[to_currency])


__all__ = ["ExchangeRatesApiProvider"]
