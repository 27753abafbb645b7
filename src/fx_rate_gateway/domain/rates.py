"""Exchange rate domain model: currency codes, cached records and quotes."""

import re
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext
from enum import Enum

from fx_rate_gateway.exceptions import InvalidCurrencyCodeError, InvalidDateError

LATEST = "latest"

_CURRENCY_RE = re.compile(r"^[A-Z]{3}$")
_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

SMALL_RATE_THRESHOLD = Decimal("0.01")
SMALL_RATE_PLACES = Decimal("1e-10")
RATE_PLACES = Decimal("1e-8")
IDENTITY_DISPLAY = "1.00"


class QuoteSource(str, Enum):
    """Where a resolved rate came from."""

    CACHE = "cache"
    PROVIDER = "provider"


def _utc_now() -> datetime:
    """Return current UTC datetime."""
    return datetime.now(UTC)


def normalize_currency(value: str) -> str:
    """Uppercase and shape-check a currency code.

    Only the three-letter format is enforced; codes are not checked
    against an ISO list.
    """
    code = (value or "").strip().upper()
    if not _CURRENCY_RE.match(code):
        raise InvalidCurrencyCodeError(value)
    return code


def parse_rate_date(value: str | None, today: date | None = None) -> date | None:
    """Parse a ``YYYY-MM-DD`` request date.

    Returns None for "latest" (absent, empty or the literal ``latest``).
    Dates after ``today`` (UTC by default) are rejected.
    """
    if value is None:
        return None
    raw = value.strip()
    if not raw or raw.lower() == LATEST:
        return None
    if not _DATE_RE.match(raw):
        raise InvalidDateError(raw, "expected YYYY-MM-DD")
    try:
        parsed = date.fromisoformat(raw)
    except ValueError as exc:
        raise InvalidDateError(raw, "not a calendar date") from exc
    if parsed > (today or _utc_now().date()):
        raise InvalidDateError(raw, "date is in the future")
    return parsed


def to_decimal(value: object) -> Decimal:
    """Coerce a provider or database number to Decimal via its string form."""
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except InvalidOperation as exc:
        raise ValueError(f"Not a number: {value!r}") from exc


def format_rate(rate: Decimal) -> str:
    """Render a rate as a fixed-point string.

    Rates below 0.01 keep 10 fractional digits so small cross rates do not
    collapse to zero; everything else uses 8.
    """
    places = SMALL_RATE_PLACES if rate < SMALL_RATE_THRESHOLD else RATE_PLACES
    with localcontext() as ctx:
        # quantize needs room for every integer digit plus the fraction
        ctx.prec = max(ctx.prec, rate.adjusted() + 1 + abs(places.as_tuple().exponent))
        return f"{rate.quantize(places, rounding=ROUND_HALF_UP):f}"


@dataclass(frozen=True, slots=True)
class RateRecord:
    """A cached rate for one currency pair on one calendar date.

    Identified by (from_currency, to_currency, rate_date). The reverse pair
    is never stored alongside it; callers invert on read instead.
    """

    from_currency: str
    to_currency: str
    rate: Decimal
    rate_date: date
    source: str = "provider"
    updated_at: datetime = field(default_factory=_utc_now)

    def __post_init__(self) -> None:
        """Validate and coerce rate to Decimal."""
        if not isinstance(self.rate, Decimal):
            object.__setattr__(self, "rate", to_decimal(self.rate))
        if not self.rate.is_finite() or self.rate <= 0:
            raise ValueError(f"Exchange rate must be positive, got {self.rate}")

    @property
    def inverse_rate(self) -> Decimal:
        """Return 1 / rate, the value for the (to, from) direction."""
        return Decimal("1") / self.rate

    @property
    def pair(self) -> str:
        """Return currency pair string like 'USD/EUR'."""
        return f"{self.from_currency}/{self.to_currency}"


@dataclass(frozen=True, slots=True)
class Quote:
    """Result of a resolution. Ephemeral, never persisted as such."""

    from_currency: str
    to_currency: str
    rate: Decimal
    rate_date: date
    source: QuoteSource
    is_identity: bool = False
    warnings: tuple[str, ...] = ()
    resolved_at: datetime = field(default_factory=_utc_now)

    @property
    def display_rate(self) -> str:
        """Rate string as emitted to clients."""
        if self.is_identity:
            return IDENTITY_DISPLAY
        return format_rate(self.rate)

    @property
    def warning(self) -> str | None:
        """Combined non-fatal warning text, if any."""
        if not self.warnings:
            return None
        return "; ".join(self.warnings)


@dataclass(frozen=True, slots=True)
class RateLimitRecord:
    """One evaluated request in a client's sliding window."""

    client_id: str
    request_time: datetime = field(default_factory=_utc_now)
