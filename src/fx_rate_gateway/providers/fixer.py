"""fixer.io provider.

Same apilayer dialect and route layout as exchangeratesapi.io, served from
``data.fixer.io/api``.
"""

from __future__ import annotations

from fx_rate_gateway.providers.exchange_rates_api import ExchangeRatesApiProvider


class FixerProvider(ExchangeRatesApiProvider):
    name = "fixer"
    default_host = "data.fixer.io/api"
    supported_currencies = ("EUR", "USD", "GBP", "JPY", "CHF", "AUD", "CAD")


__all__ = ["FixerProvider"]
