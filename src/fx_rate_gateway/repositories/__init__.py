from fx_rate_gateway.repositories.interfaces import (
    RateLimitRepository,
    RateRepository,
)
from fx_rate_gateway.repositories.sqlite import (
    SQLiteDatabase,
    SQLiteRateLimitRepository,
    SQLiteRateRepository,
)

__all__ = [
    "RateLimitRepository",
    "RateRepository",
    "SQLiteDatabase",
    "SQLiteRateLimitRepository",
    "SQLiteRateRepository",
]
