"""Exception hierarchy for the FX rate gateway.

All errors inherit from RateGatewayError and carry a stable ``error_code``
plus the HTTP ``status_code`` class they map to. The set below is closed:
a resolution either returns a Quote or raises exactly one of these, so
clients can branch on ``error_code`` rather than on message text.
"""

from typing import Any


class RateGatewayError(Exception):
    """Base exception for all gateway errors."""

    error_code: str = "GATEWAY_ERROR"
    status_code: int = 500

    def __init__(
        self,
        message: str,
        *,
        error_code: str | None = None,
        status_code: int | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if error_code:
            self.error_code = error_code
        if status_code:
            self.status_code = status_code
        self.context = context or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.error_code,
            "message": self.message,
            "context": self.context,
        }


# =============================================================================
# Validation Errors
# =============================================================================


class ValidationError(RateGatewayError):
    """Base exception for malformed or missing input."""

    error_code = "VALIDATION_ERROR"
    status_code = 400


class MissingParameterError(ValidationError):
    """Raised when a required request parameter is absent."""

    error_code = "MISSING_PARAMETER"

    def __init__(self, *names: str) -> None:
        super().__init__(
            f"Missing required parameters: {', '.join(names)}",
            context={"parameters": list(names)},
        )


class InvalidCurrencyCodeError(ValidationError):
    """Raised when a currency code is not three letters."""

    error_code = "INVALID_CURRENCY_CODE"

    def __init__(self, currency_code: str) -> None:
        super().__init__(
            f"Invalid currency code: {currency_code!r}",
            context={"currency_code": currency_code},
        )


class InvalidDateError(ValidationError):
    """Raised when a date is malformed or lies in the future."""

    error_code = "INVALID_DATE"

    def __init__(self, value: str, reason: str) -> None:
        super().__init__(
            f"Invalid date {value!r}: {reason}",
            context={"date": value, "reason": reason},
        )


# =============================================================================
# Access Errors
# =============================================================================


class AuthenticationError(RateGatewayError):
    """Raised when the bearer credential is missing or invalid."""

    error_code = "AUTHENTICATION_ERROR"
    status_code = 401

    def __init__(self, message: str = "Invalid or missing credentials") -> None:
        super().__init__(message)


class RateLimitRejectedError(RateGatewayError):
    """Raised when a client exceeds its local request budget."""

    error_code = "RATE_LIMIT_REJECTED"
    status_code = 429

    def __init__(self, client_id: str) -> None:
        super().__init__(
            "Request budget exceeded, retry later",
            context={"client_id": client_id},
        )


# =============================================================================
# Resolution Errors
# =============================================================================


class RateNotFoundError(RateGatewayError):
    """Raised when neither cache nor provider can supply a rate."""

    error_code = "RATE_NOT_FOUND"
    status_code = 404

    def __init__(
        self, from_currency: str, to_currency: str, rate_date: str | None = None
    ) -> None:
        super().__init__(
            f"Exchange rate not available for {from_currency}/{to_currency}"
            f" on {rate_date or 'latest'}",
            context={
                "from": from_currency,
                "to": to_currency,
                "date": rate_date or "latest",
            },
        )


# =============================================================================
# Provider Errors
# =============================================================================


class ProviderError(RateGatewayError):
    """Base exception for upstream provider failures."""

    error_code = "PROVIDER_ERROR"
    status_code = 500


class ProviderNetworkError(ProviderError):
    """Raised when the provider cannot be reached or times out."""

    error_code = "NETWORK_ERROR"


class InvalidProviderResponseError(ProviderError):
    """Raised when the provider answers with something that is not JSON."""

    error_code = "INVALID_RESPONSE"


class UpstreamRateLimitError(ProviderError):
    """Raised when the provider reports our account is over its quota."""

    error_code = "UPSTREAM_RATE_LIMIT_EXCEEDED"


class UnsupportedCurrencyError(ProviderError):
    """Raised when the provider rejects a currency code."""

    error_code = "INVALID_CURRENCY"


class DateOutOfRangeError(ProviderError):
    """Raised for dates earlier than the provider's history."""

    error_code = "DATE_OUT_OF_RANGE"
    status_code = 400

    def __init__(self, requested: str, earliest: str) -> None:
        super().__init__(
            f"Date {requested} is before earliest available date {earliest}",
            context={"date": requested, "earliest": earliest},
        )


class ProviderApiError(ProviderError):
    """Raised for any other failure flagged by the provider."""

    error_code = "API_ERROR"


# =============================================================================
# Cache Errors
# =============================================================================


class CacheError(RateGatewayError):
    """Raised by the rate store when a read or write fails.

    The resolver recovers from this locally; it is never the final outcome
    of a request.
    """

    error_code = "CACHE_ERROR"
    status_code = 500


class CacheUnavailableError(CacheError):
    """Raised when the store cannot connect while caching is required."""

    error_code = "CACHE_UNAVAILABLE"
    status_code = 503

    def __init__(self, message: str) -> None:
        super().__init__(f"Rate cache unavailable: {message}")
