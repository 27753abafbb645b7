from fx_rate_gateway.services.auth import Authenticator, extract_bearer_token
from fx_rate_gateway.services.rate_limiter import RequestLimiter
from fx_rate_gateway.services.rate_store import RateStore
from fx_rate_gateway.services.resolver import RateResolver

__all__ = [
    "Authenticator",
    "RateResolver",
    "RateStore",
    "RequestLimiter",
    "extract_bearer_token",
]
