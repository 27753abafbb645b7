"""API routes for the FX rate gateway."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request

from fx_rate_gateway.api.schemas import (
    CurrenciesResponse,
    ErrorResponse,
    HealthResponse,
    RateData,
    RateResponse,
)
from fx_rate_gateway.config import Settings
from fx_rate_gateway.container import (
    get_active_settings,
    get_authenticator,
    get_provider,
    get_request_limiter,
    get_resolver,
)
from fx_rate_gateway.domain.rates import Quote, normalize_currency
from fx_rate_gateway.exceptions import MissingParameterError
from fx_rate_gateway.logging_config import bind_context, get_logger
from fx_rate_gateway.providers.base import ExchangeRateProvider
from fx_rate_gateway.services.auth import Authenticator
from fx_rate_gateway.services.rate_limiter import RequestLimiter
from fx_rate_gateway.services.resolver import RateResolver

logger = get_logger(__name__)

CLIENT_ID_HEADER = "X-Client-Id"

health_router = APIRouter(tags=["health"])
rate_router = APIRouter(tags=["rates"])

_ERROR_RESPONSES = {
    code: {"model": ErrorResponse} for code in (400, 401, 404, 429, 500, 503)
}


def client_id_for(request: Request, trust_header: bool = False) -> str:
    """Identify the caller for rate limiting.

    The peer address is authoritative. ``X-Client-Id`` is only honored when
    ``trust_header`` is set, i.e. behind a proxy that overwrites it.
    """
    if trust_header:
        explicit = request.headers.get(CLIENT_ID_HEADER, "").strip()
        if explicit:
            return explicit
    if request.client is not None:
        return request.client.host
    return "unknown"


def _quote_to_response(quote: Quote) -> RateResponse:
    return RateResponse(
        data=RateData(
            from_currency=quote.from_currency,
            to_currency=quote.to_currency,
            rate=quote.display_rate,
            date=quote.rate_date.isoformat(),
            timestamp=int(quote.resolved_at.timestamp()),
            source=quote.source.value,
        ),
        warning=quote.warning,
    )


@health_router.get("/health", response_model=HealthResponse)
def health_check(
    settings: Annotated[Settings, Depends(get_active_settings)],
) -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(
        status="healthy",
        version=settings.app_version,
        caching_enabled=settings.caching_enabled,
        provider=settings.provider.value,
    )


@rate_router.get(
    "/rates",
    response_model=RateResponse,
    response_model_exclude_none=True,
    responses=_ERROR_RESPONSES,
)
def get_rate(
    request: Request,
    authenticator: Annotated[Authenticator, Depends(get_authenticator)],
    limiter: Annotated[RequestLimiter, Depends(get_request_limiter)],
    resolver: Annotated[RateResolver, Depends(get_resolver)],
    settings: Annotated[Settings, Depends(get_active_settings)],
    from_currency: Annotated[str | None, Query(alias="from")] = None,
    to_currency: Annotated[str | None, Query(alias="to")] = None,
    rate_date: Annotated[str | None, Query(alias="date")] = None,
) -> RateResponse:
    """Resolve the exchange rate for a currency pair on a date.

    Order: required parameters, currency shape, credential, request budget,
    then resolution (which validates the date).
    """
    missing = [
        name
        for name, value in (("from", from_currency), ("to", to_currency))
        if not value or not value.strip()
    ]
    if missing:
        raise MissingParameterError(*missing)

    base = normalize_currency(from_currency or "")
    quote_currency = normalize_currency(to_currency or "")

    client_id = client_id_for(request, settings.trust_client_id_header)
    bind_context(client_id=client_id)

    authenticator.authenticate(request.headers, base, quote_currency)
    limiter.enforce(client_id)

    quote = resolver.resolve(base, quote_currency, rate_date)
    logger.info(
        "rate_served",
        from_currency=quote.from_currency,
        to_currency=quote.to_currency,
        source=quote.source.value,
        degraded=bool(quote.warnings),
    )
    return _quote_to_response(quote)


@rate_router.get("/currencies", response_model=CurrenciesResponse)
def list_currencies(
    provider: Annotated[ExchangeRateProvider, Depends(get_provider)],
) -> CurrenciesResponse:
    """Reference list of currencies the active provider advertises."""
    return CurrenciesResponse(
        provider=provider.name,
        currencies=provider.get_supported_currencies(),
    )
