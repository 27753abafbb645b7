"""Tests for settings and the DI container."""

import pytest
from pydantic import ValidationError

from fx_rate_gateway.config import (
    DEFAULT_SECRET,
    DatabaseType,
    Environment,
    ProviderName,
    Settings,
)
from fx_rate_gateway.container import Container
from fx_rate_gateway.exceptions import CacheUnavailableError
from fx_rate_gateway.providers import CurrencyLayerProvider, ExchangeRatesApiProvider
from fx_rate_gateway.repositories.sqlite import SQLiteDatabase


class TestSettings:
    def test_defaults(self) -> None:
        settings = Settings()
        assert settings.provider == ProviderName.CURRENCYLAYER
        assert settings.requests_per_hour == 100
        assert settings.requests_per_second == 5
        assert settings.caching_enabled is True
        assert settings.cache_allowed_currencies == []
        assert settings.use_hash_validation is False

    def test_reads_prefixed_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("FXG_PROVIDER", "exchangeratesapi")
        monkeypatch.setenv("FXG_REQUESTS_PER_HOUR", "20")
        monkeypatch.setenv("FXG_CACHE_ALLOWED_CURRENCIES", '["eur", " usd", "BTC"]')

        settings = Settings()

        assert settings.provider == ProviderName.EXCHANGERATESAPI
        assert settings.requests_per_hour == 20
        assert settings.cache_allowed_currencies == ["EUR", "USD", "BTC"]

    def test_default_secret_rejected_in_production(self) -> None:
        with pytest.raises(ValidationError, match="Default secret"):
            Settings(environment=Environment.PRODUCTION)

    def test_default_secret_allowed_in_development(self) -> None:
        settings = Settings(environment=Environment.DEVELOPMENT)
        assert settings.api_secret == DEFAULT_SECRET
        assert settings.debug is True

    def test_empty_secret_rejected_when_auth_enabled(self) -> None:
        with pytest.raises(ValidationError):
            Settings(api_secret="")

    def test_empty_secret_allowed_when_auth_disabled(self) -> None:
        assert Settings(api_secret="", auth_enabled=False).api_secret == ""

    def test_budgets_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            Settings(requests_per_second=0)

    def test_effective_database_url(self) -> None:
        assert Settings(sqlite_path="x.db").effective_database_url == "sqlite:///x.db"
        postgres = Settings(
            database_type=DatabaseType.POSTGRES, database_url="postgresql://h/db"
        )
        assert postgres.effective_database_url == "postgresql://h/db"


class TestContainer:
    @pytest.fixture
    def settings(self) -> Settings:
        return Settings(sqlite_path=":memory:", provider_api_key="k")

    def test_builds_components_once(self, settings: Settings) -> None:
        with Container(settings) as container:
            assert container.resolver is container.resolver
            assert container.rate_store is container.resolver._store
            assert isinstance(container.database, SQLiteDatabase)

    def test_store_and_limiter_share_database(self, settings: Settings) -> None:
        with Container(settings) as container:
            assert container.rate_store._database is container.request_limiter._database

    def test_provider_follows_settings(self) -> None:
        settings = Settings(
            sqlite_path=":memory:",
            provider=ProviderName.EXCHANGERATESAPI,
            provider_api_key="k",
        )
        with Container(settings) as container:
            assert isinstance(container.provider, ExchangeRatesApiProvider)

    def test_default_provider(self, settings: Settings) -> None:
        with Container(settings) as container:
            assert isinstance(container.provider, CurrencyLayerProvider)

    def test_authenticator_follows_settings(self) -> None:
        settings = Settings(
            sqlite_path=":memory:", api_secret="abc", use_hash_validation=True
        )
        with Container(settings) as container:
            assert container.authenticator.uses_hash_validation is True
            assert container.authenticator.generate_token("USD", "EUR") != "abc"

    def test_missing_api_key_fails_on_first_use(self) -> None:
        with Container(Settings(sqlite_path=":memory:")) as container:
            with pytest.raises(ValueError):
                _ = container.provider

    def test_unreachable_sqlite_path_is_cache_unavailable(self, tmp_path) -> None:
        settings = Settings(sqlite_path=tmp_path / "missing" / "rates.db")
        with Container(settings) as container:
            with pytest.raises(CacheUnavailableError):
                _ = container.rate_store

    def test_postgres_requires_url(self) -> None:
        settings = Settings(database_type=DatabaseType.POSTGRES, database_url=None)
        with Container(settings) as container:
            with pytest.raises(ValueError):
                _ = container.database
