"""Tests for upstream rate providers, using httpx.MockTransport."""

from collections.abc import Callable
from datetime import date
from decimal import Decimal

import httpx
import pytest

from fx_rate_gateway.config import ProviderName, Settings
from fx_rate_gateway.exceptions import (
    DateOutOfRangeError,
    InvalidProviderResponseError,
    ProviderApiError,
    ProviderNetworkError,
    RateNotFoundError,
    UnsupportedCurrencyError,
    UpstreamRateLimitError,
)
from fx_rate_gateway.providers import (
    CurrencyLayerProvider,
    ExchangeRatesApiProvider,
    FixerProvider,
    make_provider,
)

Handler = Callable[[httpx.Request], httpx.Response]


class RecordingTransport(httpx.MockTransport):
    def __init__(self, handler: Handler) -> None:
        self.requests: list[httpx.Request] = []

        def record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(record)


def json_handler(payload: object, status_code: int = 200) -> Handler:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, json=payload)

    return handler


def make_currencylayer(handler: Handler) -> tuple[CurrencyLayerProvider, RecordingTransport]:
    transport = RecordingTransport(handler)
    provider = CurrencyLayerProvider("test-key", client=httpx.Client(transport=transport))
    return provider, transport


def make_exchangeratesapi(
    handler: Handler,
) -> tuple[ExchangeRatesApiProvider, RecordingTransport]:
    transport = RecordingTransport(handler)
    provider = ExchangeRatesApiProvider(
        "test-key", client=httpx.Client(transport=transport)
    )
    return provider, transport


class TestCurrencyLayerProvider:
    def test_live_rate(self) -> None:
        provider, transport = make_currencylayer(
            json_handler({"success": True, "source": "USD", "quotes": {"USDEUR": 0.934}})
        )

        assert provider.fetch_rate("USD", "EUR") == Decimal("0.934")

        request = transport.requests[0]
        assert request.url.host == "api.currencylayer.com"
        assert request.url.path == "/live"
        assert request.url.params["access_key"] == "test-key"
        assert request.url.params["source"] == "USD"
        assert request.url.params["currencies"] == "EUR"
        assert "date" not in request.url.params

    def test_historical_rate(self) -> None:
        provider, transport = make_currencylayer(
            json_handler({"success": True, "quotes": {"USDGBP": "0.82"}})
        )

        assert provider.fetch_rate("USD", "GBP", date(2023, 1, 1)) == Decimal("0.82")

        request = transport.requests[0]
        assert request.url.path == "/historical"
        assert request.url.params["date"] == "2023-01-01"

    def test_identity_makes_no_request(self) -> None:
        provider, transport = make_currencylayer(json_handler({}))
        assert provider.fetch_rate("USD", "USD") == Decimal("1")
        assert transport.requests == []

    def test_http_scheme_when_https_disabled(self) -> None:
        transport = RecordingTransport(
            json_handler({"success": True, "quotes": {"USDEUR": 0.9}})
        )
        provider = CurrencyLayerProvider(
            "k", use_https=False, client=httpx.Client(transport=transport)
        )
        provider.fetch_rate("USD", "EUR")
        assert transport.requests[0].url.scheme == "http"

    def test_base_url_override(self) -> None:
        transport = RecordingTransport(
            json_handler({"success": True, "quotes": {"USDEUR": 0.9}})
        )
        provider = CurrencyLayerProvider(
            "k",
            base_url="http://localhost:9999/",
            client=httpx.Client(transport=transport),
        )
        provider.fetch_rate("USD", "EUR")
        assert str(transport.requests[0].url).startswith("http://localhost:9999/live")

    def test_upstream_rate_limit(self) -> None:
        provider, _ = make_currencylayer(
            json_handler(
                {
                    "success": False,
                    "error": {"code": 104, "info": "Monthly usage limit reached"},
                }
            )
        )
        with pytest.raises(UpstreamRateLimitError) as exc_info:
            provider.fetch_rate("USD", "EUR")
        assert exc_info.value.error_code == "UPSTREAM_RATE_LIMIT_EXCEEDED"
        assert exc_info.value.status_code == 500

    def test_invalid_currency(self) -> None:
        provider, _ = make_currencylayer(
            json_handler(
                {
                    "success": False,
                    "error": {"code": 202, "info": "invalid currency codes"},
                }
            )
        )
        with pytest.raises(UnsupportedCurrencyError) as exc_info:
            provider.fetch_rate("USD", "XXX")
        assert exc_info.value.error_code == "INVALID_CURRENCY"

    def test_other_error_codes_are_api_errors(self) -> None:
        provider, _ = make_currencylayer(
            json_handler(
                {"success": False, "error": {"code": 101, "info": "invalid access key"}}
            )
        )
        with pytest.raises(ProviderApiError) as exc_info:
            provider.fetch_rate("USD", "EUR")
        assert exc_info.value.message == "invalid access key"
        assert exc_info.value.context["code"] == 101

    def test_error_body_read_even_with_http_error_status(self) -> None:
        provider, _ = make_currencylayer(
            json_handler(
                {"success": False, "error": {"code": 104, "info": "limit"}},
                status_code=429,
            )
        )
        with pytest.raises(UpstreamRateLimitError):
            provider.fetch_rate("USD", "EUR")

    def test_invalid_json(self) -> None:
        provider, _ = make_currencylayer(
            lambda request: httpx.Response(502, text="<html>Bad Gateway</html>")
        )
        with pytest.raises(InvalidProviderResponseError) as exc_info:
            provider.fetch_rate("USD", "EUR")
        assert exc_info.value.error_code == "INVALID_RESPONSE"

    def test_non_object_json(self) -> None:
        provider, _ = make_currencylayer(json_handler([1, 2, 3]))
        with pytest.raises(InvalidProviderResponseError):
            provider.fetch_rate("USD", "EUR")

    def test_timeout(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        provider, _ = make_currencylayer(handler)
        with pytest.raises(ProviderNetworkError) as exc_info:
            provider.fetch_rate("USD", "EUR")
        assert exc_info.value.error_code == "NETWORK_ERROR"

    def test_connection_failure(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        provider, _ = make_currencylayer(handler)
        with pytest.raises(ProviderNetworkError):
            provider.fetch_rate("USD", "EUR")

    def test_missing_quote(self) -> None:
        provider, _ = make_currencylayer(
            json_handler({"success": True, "quotes": {"USDGBP": 0.8}})
        )
        with pytest.raises(RateNotFoundError) as exc_info:
            provider.fetch_rate("USD", "EUR", date(2023, 1, 1))
        assert exc_info.value.status_code == 404
        assert exc_info.value.context["date"] == "2023-01-01"

    @pytest.mark.parametrize("value", ["abc", 0, -1.5])
    def test_unusable_rate_value(self, value: object) -> None:
        provider, _ = make_currencylayer(
            json_handler({"success": True, "quotes": {"USDEUR": value}})
        )
        with pytest.raises(InvalidProviderResponseError):
            provider.fetch_rate("USD", "EUR")

    def test_date_before_history_makes_no_request(self) -> None:
        provider, transport = make_currencylayer(json_handler({}))
        with pytest.raises(DateOutOfRangeError) as exc_info:
            provider.fetch_rate("USD", "EUR", date(1998, 12, 31))
        assert exc_info.value.status_code == 400
        assert exc_info.value.context["earliest"] == "1999-01-01"
        assert transport.requests == []

    def test_earliest_date_is_accepted(self) -> None:
        provider, _ = make_currencylayer(
            json_handler({"success": True, "quotes": {"USDEUR": 1.17}})
        )
        assert provider.fetch_rate("USD", "EUR", date(1999, 1, 1)) == Decimal("1.17")

    def test_supported_currencies(self) -> None:
        provider, _ = make_currencylayer(json_handler({}))
        assert provider.get_supported_currencies() == [
            "USD", "EUR", "GBP", "JPY", "CHF", "AUD", "CAD",
        ]

    def test_is_available_true(self) -> None:
        provider, _ = make_currencylayer(
            json_handler({"success": True, "quotes": {"USDEUR": 0.9}})
        )
        assert provider.is_available() is True

    def test_is_available_never_raises(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("down", request=request)

        provider, _ = make_currencylayer(handler)
        assert provider.is_available() is False

    def test_requires_api_key(self) -> None:
        with pytest.raises(ValueError):
            CurrencyLayerProvider("")


class TestExchangeRatesApiProvider:
    def test_latest_rate(self) -> None:
        provider, transport = make_exchangeratesapi(
            json_handler({"success": True, "base": "EUR", "rates": {"USD": 1.07}})
        )

        assert provider.fetch_rate("EUR", "USD") == Decimal("1.07")

        request = transport.requests[0]
        assert request.url.host == "api.exchangeratesapi.io"
        assert request.url.path == "/latest"
        assert request.url.params["base"] == "EUR"
        assert request.url.params["symbols"] == "USD"

    def test_dated_rate_uses_date_path(self) -> None:
        provider, transport = make_exchangeratesapi(
            json_handler({"success": True, "rates": {"BTC": 0.0000601}})
        )

        rate = provider.fetch_rate("USD", "BTC", date(2023, 1, 1))

        assert rate == Decimal("0.0000601")
        assert transport.requests[0].url.path == "/2023-01-01"

    def test_error_mapping_matches_currencylayer(self) -> None:
        provider, _ = make_exchangeratesapi(
            json_handler({"success": False, "error": {"code": 104, "type": "usage_limit"}})
        )
        with pytest.raises(UpstreamRateLimitError) as exc_info:
            provider.fetch_rate("EUR", "USD")
        assert exc_info.value.message == "usage_limit"

    def test_missing_symbol(self) -> None:
        provider, _ = make_exchangeratesapi(json_handler({"success": True, "rates": {}}))
        with pytest.raises(RateNotFoundError):
            provider.fetch_rate("EUR", "USD")

    def test_supported_currencies(self) -> None:
        provider, _ = make_exchangeratesapi(json_handler({}))
        assert "BTC" in provider.get_supported_currencies()
        assert "ETH" in provider.get_supported_currencies()


class TestFixerProvider:
    def test_dated_rate_under_api_prefix(self) -> None:
        transport = RecordingTransport(
            json_handler({"success": True, "rates": {"CHF": 0.98}})
        )
        provider = FixerProvider("test-key", client=httpx.Client(transport=transport))

        assert provider.fetch_rate("EUR", "CHF", date(2023, 1, 1)) == Decimal("0.98")

        request = transport.requests[0]
        assert request.url.host == "data.fixer.io"
        assert request.url.path == "/api/2023-01-01"
        assert request.url.params["symbols"] == "CHF"

    def test_shares_error_mapping(self) -> None:
        transport = RecordingTransport(
            json_handler({"success": False, "error": {"code": 202, "type": "invalid"}})
        )
        provider = FixerProvider("test-key", client=httpx.Client(transport=transport))
        with pytest.raises(UnsupportedCurrencyError):
            provider.fetch_rate("EUR", "ZZZ")

    def test_supported_currencies(self) -> None:
        provider = FixerProvider("test-key", client=httpx.Client())
        assert "CHF" in provider.get_supported_currencies()
        assert "BTC" not in provider.get_supported_currencies()


class TestRegistry:
    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            (ProviderName.CURRENCYLAYER, CurrencyLayerProvider),
            (ProviderName.EXCHANGERATESAPI, ExchangeRatesApiProvider),
            (ProviderName.FIXER, FixerProvider),
        ],
    )
    def test_make_provider_selects_by_name(
        self, name: ProviderName, expected: type
    ) -> None:
        settings = Settings(provider=name, provider_api_key="k")
        provider = make_provider(settings, client=httpx.Client())
        assert isinstance(provider, expected)
        assert provider.name == name.value

    def test_make_provider_applies_settings(self) -> None:
        settings = Settings(
            provider_api_key="k",
            provider_use_https=False,
            provider_timeout_seconds=2.5,
        )
        provider = make_provider(settings)
        assert isinstance(provider, CurrencyLayerProvider)
        assert provider.base_url == "http://api.currencylayer.com"
        assert provider.timeout == 2.5
        provider.close()
