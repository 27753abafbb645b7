"""currencylayer.com provider.

API docs: https://currencylayer.com/documentation
Latest rates come from ``/live``, dated rates from ``/historical``. Quotes
are keyed by the concatenated pair, e.g. ``{"USDEUR": 0.934}``.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from fx_rate_gateway.exceptions import RateNotFoundError
from fx_rate_gateway.providers.base import HttpRateProvider


class CurrencyLayerProvider(HttpRateProvider):
    name = "currencylayer"
    default_host = "api.currencylayer.com"
    earliest_date = date(1999, 1, 1)
    supported_currencies = ("USD", "EUR", "GBP", "JPY", "CHF", "AUD", "CAD")

    def fetch_rate(
        self, from_currency: str, to_currency: str, rate_date: date | None = None
    ) -> Decimal:
        if from_currency == to_currency:
            return Decimal("1")
        self._check_date(rate_date)

        endpoint = "/historical" if rate_date is not None else "/live"
        payload = self._get_json(
            endpoint,
            {
                "access_key": self._api_key,
                "source": from_currency,
                "currencies": to_currency,
                "date": rate_date.isoformat() if rate_date is not None else None,
            },
        )
        self._raise_for_error(payload)

        quotes = payload.get("quotes")
        quote_name = f"{from_currency}{to_currency}"
        if not isinstance(quotes, dict) or quotes.get(quote_name) is None:
            raise RateNotFoundError(
                from_currency,
                to_currency,
                rate_date.isoformat() if rate_date is not None else None,
            )
        return self._parse_rate(quotes[quote_name])


__all__ = ["CurrencyLayerProvider"]
