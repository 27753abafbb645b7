from fx_rate_gateway.domain.rates import Quote, QuoteSource, RateRecord
from fx_rate_gateway.exceptions import RateGatewayError

__all__ = [
    "Quote",
    "QuoteSource",
    "RateGatewayError",
    "RateRecord",
]

__version__ = "0.1.0"
