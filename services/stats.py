"""Rate, average and calendar primitives shared by every analytics builder.

Rates round half up (``floor(x + 0.5)``) rather than Python's banker's
rounding, so 12.5% of something is reported as 13 and not 12.
All calendar math is done in UTC.
"""
import math
import re
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable, Optional

from models.decision import RESOLVED_RESULTS, DecisionResult

_WEEK_START_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_FRACTION_PATTERN = re.compile(r"([T ]\d{2}:\d{2}:\d{2})\.(\d+)")


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def round1(value: float) -> float:
    return math.floor(value * 10 + 0.5) / 10


def percent(numerator: float, denominator: float) -> int:
    """Whole-number percentage, 0 when the denominator is not positive."""
    if denominator <= 0:
        return 0
    return round_half_up((numerator / denominator) * 100)


def rate1(numerator: float, denominator: float) -> float:
    """Percentage with one decimal place, 0 when the denominator is not positive."""
    if denominator <= 0:
        return 0
    return round1((numerator / denominator) * 100)


def average1(values: Iterable[float]) -> float:
    values = list(values)
    if not values:
        return 0
    return round1(sum(values) / len(values))


def safe_int(value: Any, fallback: int = 0) -> int:
    """Floor a finite number to int; anything else (bools, strings, None, nan) gives fallback."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return fallback
    if not math.isfinite(value):
        return fallback
    return int(math.floor(value))


def clamp_int(value: int, minimum: int, maximum: int) -> int:
    return max(minimum, min(maximum, value))


def parse_int(raw: Any, default: int) -> int:
    """Lenient query-parameter parsing: ints pass through, numeric strings are parsed."""
    if raw is None:
        return default
    if isinstance(raw, bool):
        return default
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        return int(raw) if math.isfinite(raw) else default
    try:
        return int(str(raw).strip())
    except ValueError:
        pass
    try:
        parsed = float(str(raw).strip())
    except ValueError:
        return default
    return int(parsed) if math.isfinite(parsed) else default


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_iso(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 string (or pass a datetime through) as an aware UTC datetime.

    Naive timestamps are read as UTC. Returns None for anything unparseable.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        text = value.isoformat()
    elif isinstance(value, str):
        text = value.strip()
    else:
        return None
    if not text:
        return None
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    # fromisoformat before 3.11 only takes 3 or 6 fractional digits
    text = _FRACTION_PATTERN.sub(lambda m: f"{m.group(1)}.{m.group(2)[:6].ljust(6, '0')}", text, count=1)
    try:
        return ensure_utc(datetime.fromisoformat(text))
    except (ValueError, OverflowError):
        return None


def iso_to_epoch_ms(value: Any) -> int:
    """Epoch milliseconds, or 0 for absent/unparseable input (0 means "no time")."""
    parsed = parse_iso(value)
    if parsed is None:
        return 0
    return int(math.floor(parsed.timestamp() * 1000))


def epoch_ms_to_datetime(ms: int) -> datetime:
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc)


def effective_resolution_ms(decision) -> int:
    resolved = iso_to_epoch_ms(decision.resolved_at)
    if resolved:
        return resolved
    return iso_to_epoch_ms(decision.created_at)


def effective_resolution_time(decision) -> Optional[datetime]:
    """resolvedAt when present and parseable, otherwise createdAt."""
    ms = effective_resolution_ms(decision)
    if not ms:
        return None
    try:
        return epoch_ms_to_datetime(ms)
    except (OverflowError, OSError, ValueError):
        return None


def is_completed(decision) -> bool:
    return decision.result != DecisionResult.PENDING.value


def is_resolved_result(result: Any) -> bool:
    return result in RESOLVED_RESULTS


def is_positive(decision) -> bool:
    return decision.result == DecisionResult.POSITIVE.value


def utc_weekday(moment: datetime) -> int:
    """0=Sunday .. 6=Saturday."""
    return (moment.weekday() + 1) % 7


def start_of_day_utc(moment: datetime) -> datetime:
    moment = ensure_utc(moment)
    return datetime(moment.year, moment.month, moment.day, tzinfo=timezone.utc)


def start_of_week_utc(moment: datetime) -> datetime:
    """Monday 00:00 UTC on or before the given instant."""
    day = start_of_day_utc(moment)
    return day - timedelta(days=day.weekday())


def add_days(moment: datetime, days: int) -> datetime:
    return moment + timedelta(days=days)


def to_iso_date(moment: datetime) -> str:
    return ensure_utc(moment).date().isoformat()


def to_iso_timestamp(moment: datetime) -> str:
    return ensure_utc(moment).replace(tzinfo=None).isoformat(timespec="milliseconds") + "Z"


def parse_week_start(raw: Optional[str], now: Optional[datetime] = None) -> datetime:
    """Monday of the week named by a YYYY-MM-DD string; the current week when missing or malformed."""
    fallback = start_of_week_utc(now or utc_now())
    if not raw or not isinstance(raw, str):
        return fallback
    raw = raw.strip()
    if not _WEEK_START_PATTERN.match(raw):
        return fallback
    try:
        parsed = datetime.strptime(raw, "%Y-%m-%d").replace(tzinfo=timezone.utc)
    except ValueError:
        return fallback
    start = start_of_week_utc(parsed)
    # the report also needs the previous and the following Monday
    try:
        add_days(start, -7)
        add_days(start, 7)
    except OverflowError:
        return fallback
    return start
