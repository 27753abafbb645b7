"""Provider registry."""

from __future__ import annotations

import httpx

from fx_rate_gateway.config import ProviderName, Settings
from fx_rate_gateway.providers.base import ExchangeRateProvider, HttpRateProvider
from fx_rate_gateway.providers.currency_layer import CurrencyLayerProvider
from fx_rate_gateway.providers.exchange_rates_api import ExchangeRatesApiProvider
from fx_rate_gateway.providers.fixer import FixerProvider

_PROVIDER_REGISTRY: dict[ProviderName, type[HttpRateProvider]] = {
    ProviderName.CURRENCYLAYER: CurrencyLayerProvider,
    ProviderName.EXCHANGERATESAPI: ExchangeRatesApiProvider,
    ProviderName.FIXER: FixerProvider,
}


def make_provider(
    settings: Settings, client: httpx.Client | None = None
) -> ExchangeRateProvider:
    """Build the provider selected by ``settings.provider``."""
    cls = _PROVIDER_REGISTRY.get(settings.provider)
    if cls is None:
        raise ValueError(f"Unknown rate provider '{settings.provider}'")
    return cls(
        settings.provider_api_key,
        use_https=settings.provider_use_https,
        timeout=settings.provider_timeout_seconds,
        base_url=settings.provider_base_url,
        client=client,
    )


__all__ = [
    "CurrencyLayerProvider",
    "ExchangeRateProvider",
    "ExchangeRatesApiProvider",
    "FixerProvider",
    "HttpRateProvider",
    "make_provider",
]
