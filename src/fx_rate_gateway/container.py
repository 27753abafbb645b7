"""Dependency injection container for the FX rate gateway.

Builds every component once from a finished Settings value, so nothing
below this module reads the environment.

Usage:
    from fx_rate_gateway.container import get_container

    container = get_container()
    quote = container.resolver.resolve("USD", "EUR", "2023-01-01")
"""

from functools import cached_property, lru_cache
from typing import TYPE_CHECKING

from fx_rate_gateway.config import DatabaseType, Settings, get_settings
from fx_rate_gateway.logging_config import get_logger

if TYPE_CHECKING:
    from fx_rate_gateway.providers.base import ExchangeRateProvider
    from fx_rate_gateway.repositories.interfaces import (
        Database,
        RateLimitRepository,
        RateRepository,
    )
    from fx_rate_gateway.services.auth import Authenticator
    from fx_rate_gateway.services.rate_limiter import RequestLimiter
    from fx_rate_gateway.services.rate_store import RateStore
    from fx_rate_gateway.services.resolver import RateResolver

logger = get_logger(__name__)


class Container:
    """Dependency injection container.

    Components are instantiated on first access and cached for reuse.
    For tests, build one directly with custom settings:

        test_settings = Settings(sqlite_path=":memory:", provider_api_key="k")
        container = Container(settings=test_settings)
    """

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or get_settings()
        logger.debug(
            "container_created",
            database_type=self._settings.database_type.value,
            environment=self._settings.environment.value,
        )

    @property
    def settings(self) -> Settings:
        return self._settings

    @cached_property
    def database(self) -> "Database":
        """Connection manager for the configured backend (not yet initialized)."""
        if self._settings.database_type == DatabaseType.POSTGRES:
            return self._create_postgres_database()
        return self._create_sqlite_database()

    def _create_sqlite_database(self) -> "Database":
        from fx_rate_gateway.repositories.sqlite import SQLiteDatabase

        db_path = str(self._settings.sqlite_path)
        logger.info("using_sqlite_database", path=db_path)
        # FastAPI runs sync endpoints in a thread pool
        return SQLiteDatabase(db_path, check_same_thread=False)

    def _create_postgres_database(self) -> "Database":
        from fx_rate_gateway.repositories.postgres import PostgresDatabase

        url = self._settings.database_url
        if not url:
            raise ValueError("database_url must be set when database_type is postgres")

        logger.info(
            "using_postgres_database",
            # Don't log the full URL as it may contain credentials
            host=url.split("@")[-1].split("/")[0] if "@" in url else "localhost",
        )
        return PostgresDatabase(url)

    @cached_property
    def rate_repository(self) -> "RateRepository":
        if self._settings.database_type == DatabaseType.POSTGRES:
            from fx_rate_gateway.repositories.postgres import PostgresRateRepository

            return PostgresRateRepository(self.database)  # type: ignore[arg-type]
        from fx_rate_gateway.repositories.sqlite import SQLiteRateRepository

        return SQLiteRateRepository(self.database)  # type: ignore[arg-type]

    @cached_property
    def rate_limit_repository(self) -> "RateLimitRepository":
        if self._settings.database_type == DatabaseType.POSTGRES:
            from fx_rate_gateway.repositories.postgres import (
                PostgresRateLimitRepository,
            )

            return PostgresRateLimitRepository(self.database)  # type: ignore[arg-type]
        from fx_rate_gateway.repositories.sqlite import SQLiteRateLimitRepository

        return SQLiteRateLimitRepository(self.database)  # type: ignore[arg-type]

    @cached_property
    def rate_store(self) -> "RateStore":
        """Rate cache. Raises CacheUnavailableError if caching is on and the
        database is unreachable."""
        from fx_rate_gateway.services.rate_store import RateStore

        return RateStore(
            self.database,
            self.rate_repository,
            caching_enabled=self._settings.caching_enabled,
            allowed_currencies=self._settings.cache_allowed_currencies,
        )

    @cached_property
    def provider(self) -> "ExchangeRateProvider":
        from fx_rate_gateway.providers import make_provider

        logger.info("using_rate_provider", provider=self._settings.provider.value)
        return make_provider(self._settings)

    @cached_property
    def authenticator(self) -> "Authenticator":
        from fx_rate_gateway.services.auth import Authenticator

        return Authenticator(
            self._settings.api_secret,
            use_hash_validation=self._settings.use_hash_validation,
            enabled=self._settings.auth_enabled,
        )

    @cached_property
    def request_limiter(self) -> "RequestLimiter":
        from fx_rate_gateway.services.rate_limiter import RequestLimiter

        return RequestLimiter(
            self.database,
            self.rate_limit_repository,
            requests_per_hour=self._settings.requests_per_hour,
            requests_per_second=self._settings.requests_per_second,
            enabled=self._settings.rate_limit_enabled,
        )

    @cached_property
    def resolver(self) -> "RateResolver":
        from fx_rate_gateway.services.resolver import RateResolver

        return RateResolver(self.rate_store, self.provider)

    def close(self) -> None:
        """Close all resources held by the container."""
        if "database" in self.__dict__:
            logger.info("closing_database_connection")
            self.database.close()
        if "provider" in self.__dict__ and hasattr(self.provider, "close"):
            self.provider.close()

    def __enter__(self) -> "Container":
        return self

    def __exit__(self, *args: object) -> None:
        self.close()


@lru_cache
def get_container() -> Container:
    """Get the global container singleton, built from default settings."""
    return Container()


def reset_container() -> None:
    """Close and forget the global container (tests, shutdown)."""
    if get_container.cache_info().currsize:
        get_container().close()
    get_container.cache_clear()


# FastAPI dependency functions
def get_resolver() -> "RateResolver":
    return get_container().resolver


def get_authenticator() -> "Authenticator":
    return get_container().authenticator


def get_request_limiter() -> "RequestLimiter":
    return get_container().request_limiter


def get_provider() -> "ExchangeRateProvider":
    return get_container().provider


def get_active_settings() -> Settings:
    return get_container().settings
