"""Command-line interface for the FX rate gateway."""

import argparse
import sys
from pathlib import Path

from fx_rate_gateway import __version__
from fx_rate_gateway.config import DatabaseType, Settings, get_settings
from fx_rate_gateway.container import Container
from fx_rate_gateway.domain.rates import normalize_currency, parse_rate_date
from fx_rate_gateway.exceptions import RateGatewayError
from fx_rate_gateway.logging_config import configure_logging


def load_settings(args: argparse.Namespace) -> Settings:
    """Environment settings, with ``--database`` overriding the SQLite path."""
    settings = get_settings()
    if getattr(args, "database", None):
        return settings.model_copy(
            update={
                "sqlite_path": Path(args.database),
                "database_type": DatabaseType.SQLITE,
            }
        )
    return settings


def cmd_init(args: argparse.Namespace) -> int:
    """Create the rate cache and request log tables."""
    settings = load_settings(args)
    if settings.database_type == DatabaseType.SQLITE:
        Path(settings.sqlite_path).parent.mkdir(parents=True, exist_ok=True)

    with Container(settings) as container:
        database = container.database
        try:
            database.initialize()
        except database.errors as e:
            print(f"Error: {e}")
            return 1

    print(f"Initialized database at {settings.effective_database_url}")
    return 0


def cmd_version(args: argparse.Namespace) -> int:
    """Show version information."""
    print(f"FX Rate Gateway v{__version__}")
    return 0


def cmd_token(args: argparse.Namespace) -> int:
    """Print the bearer token a client should send for a pair."""
    settings = load_settings(args)
    try:
        from_currency = normalize_currency(args.from_currency)
        to_currency = normalize_currency(args.to_currency)
    except RateGatewayError as e:
        print(f"Error: {e.message}")
        return 1

    with Container(settings) as container:
        authenticator = container.authenticator
        if not authenticator.enabled:
            print("Authentication is disabled; no token required")
            return 0
        print(authenticator.generate_token(from_currency, to_currency))
    return 0


def cmd_rate(args: argparse.Namespace) -> int:
    """Resolve a rate through the cache and provider."""
    settings = load_settings(args)
    with Container(settings) as container:
        try:
            quote = container.resolver.resolve(
                args.from_currency, args.to_currency, args.date
            )
        except RateGatewayError as e:
            print(f"Error [{e.error_code}]: {e.message}")
            return 1
        except ValueError as e:
            # Provider misconfiguration, e.g. an empty API key
            print(f"Error: {e}")
            return 1

    print(f"{quote.from_currency}/{quote.to_currency}: {quote.display_rate}")
    print(f"  Date: {quote.rate_date.isoformat()}")
    print(f"  Source: {quote.source.value}")
    if quote.warning:
        print(f"  Warning: {quote.warning}")
    return 0


def cmd_cache_list(args: argparse.Namespace) -> int:
    """List cached rates for a pair."""
    settings = load_settings(args)
    with Container(settings) as container:
        try:
            from_currency = normalize_currency(args.from_currency)
            to_currency = normalize_currency(args.to_currency)
            records = container.rate_store.list_by_pair(from_currency, to_currency)
        except RateGatewayError as e:
            print(f"Error: {e.message}")
            return 1

    if not records:
        print(f"No cached rates for {from_currency}/{to_currency}")
        return 0

    print(f"Cached rates for {from_currency}/{to_currency}:")
    print("-" * 50)
    for record in records:
        print(f"  {record.rate_date}: {record.rate} (source: {record.source})")
    return 0


def cmd_cache_delete(args: argparse.Namespace) -> int:
    """Remove one cached rate."""
    settings = load_settings(args)
    with Container(settings) as container:
        try:
            from_currency = normalize_currency(args.from_currency)
            to_currency = normalize_currency(args.to_currency)
            day = parse_rate_date(args.date)
            if day is None:
                print("Error: a concrete YYYY-MM-DD date is required")
                return 1
            deleted = container.rate_store.delete(from_currency, to_currency, day)
        except RateGatewayError as e:
            print(f"Error: {e.message}")
            return 1

    if not deleted:
        print(f"No cached rate for {from_currency}/{to_currency} on {day}")
        return 1
    print(f"Deleted {from_currency}/{to_currency} on {day}")
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    """Run the HTTP API with uvicorn."""
    try:
        import uvicorn
    except ImportError:
        print("Error: uvicorn is not installed. Run: pip install uvicorn")
        return 1

    settings = get_settings()
    uvicorn.run(
        "fx_rate_gateway.api.app:app",
        host=args.host or settings.api_host,
        port=args.port or settings.api_port,
        reload=args.reload,
    )
    return 0


def _add_pair_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("from_currency", metavar="FROM", help="Base currency (e.g., USD)")
    parser.add_argument("to_currency", metavar="TO", help="Quote currency (e.g., EUR)")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="fxg",
        description="FX Rate Gateway - cached exchange rate lookups",
    )
    parser.add_argument(
        "--database",
        "-d",
        help="Path to SQLite database file",
        default=None,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    init_parser = subparsers.add_parser("init", help="Create database tables")
    init_parser.set_defaults(func=cmd_init)

    version_parser = subparsers.add_parser("version", help="Show version")
    version_parser.set_defaults(func=cmd_version)

    token_parser = subparsers.add_parser(
        "token", help="Print the bearer token for a currency pair"
    )
    _add_pair_arguments(token_parser)
    token_parser.set_defaults(func=cmd_token)

    rate_parser = subparsers.add_parser("rate", help="Resolve an exchange rate")
    _add_pair_arguments(rate_parser)
    rate_parser.add_argument(
        "--date",
        default=None,
        help="Rate date (YYYY-MM-DD); latest if omitted",
    )
    rate_parser.set_defaults(func=cmd_rate)

    # cache command group
    cache_parser = subparsers.add_parser("cache", help="Inspect the rate cache")
    cache_subparsers = cache_parser.add_subparsers(
        dest="cache_command", help="Cache subcommands"
    )

    cache_list_parser = cache_subparsers.add_parser(
        "list", help="List cached rates for a pair"
    )
    _add_pair_arguments(cache_list_parser)
    cache_list_parser.set_defaults(func=cmd_cache_list)

    cache_delete_parser = cache_subparsers.add_parser(
        "delete", help="Delete one cached rate"
    )
    _add_pair_arguments(cache_delete_parser)
    cache_delete_parser.add_argument("date", metavar="DATE", help="YYYY-MM-DD")
    cache_delete_parser.set_defaults(func=cmd_cache_delete)

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default=None, help="Bind address")
    serve_parser.add_argument("--port", type=int, default=None, help="Bind port")
    serve_parser.add_argument(
        "--reload", action="store_true", help="Enable auto-reload for development"
    )
    serve_parser.set_defaults(func=cmd_serve)

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    if args.command == "cache" and (
        not hasattr(args, "cache_command") or args.cache_command is None
    ):
        cache_parser.print_help()
        return 0

    configure_logging(load_settings(args))

    result: int = args.func(args)
    return result


if __name__ == "__main__":
    sys.exit(main())
