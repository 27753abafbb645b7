from fx_rate_gateway.domain.rates import (
    LATEST,
    Quote,
    QuoteSource,
    RateLimitRecord,
    RateRecord,
    format_rate,
    normalize_currency,
    parse_rate_date,
)

__all__ = [
    "LATEST",
    "Quote",
    "QuoteSource",
    "RateLimitRecord",
    "RateRecord",
    "format_rate",
    "normalize_currency",
    "parse_rate_date",
]
