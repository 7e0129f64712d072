import logging
from datetime import datetime
from typing import Dict, List, Optional, Any, Sequence

from models.decision import Decision
from .stats import (
    rate1, clamp_int, parse_int, utc_now, ensure_utc, start_of_week_utc,
    add_days, to_iso_date, effective_resolution_time, is_completed, is_positive
)

logger = logging.getLogger("analytics")

DEFAULT_WEEKS = 8
MIN_WEEKS = 4
MAX_WEEKS = 24
ALL_CATEGORIES = "all"


def normalize_category_filter(category_id: Optional[str]) -> Optional[str]:
    if not category_id or category_id == ALL_CATEGORIES:
        return None
    return category_id


def normalize_weeks(raw: Any) -> int:
    return clamp_int(parse_int(raw, DEFAULT_WEEKS), MIN_WEEKS, MAX_WEEKS)


def build_weekly_trend(
    decisions: Sequence[Decision],
    weeks: Any = DEFAULT_WEEKS,
    category_id: Optional[str] = None,
    now: Optional[datetime] = None
) -> List[Dict[str, Any]]:
    """Dense series of Monday-start UTC weeks ending with the current one.

    Completed decisions land in the week of their effective resolution time;
    weeks with nothing in them still appear with zeros.
    """
    weeks_count = normalize_weeks(weeks)
    category_filter = normalize_category_filter(category_id)
    now = ensure_utc(now) if now else utc_now()

    current_week_start = start_of_week_utc(now)
    first_week_start = add_days(current_week_start, -7 * (weeks_count - 1))
    end_exclusive = add_days(current_week_start, 7)

    buckets: Dict[str, List[int]] = {}
    series = []
    for i in range(weeks_count):
        start = add_days(first_week_start, i * 7)
        key = to_iso_date(start)
        buckets[key] = [0, 0]
        series.append({"weekStart": key, "weekEnd": to_iso_date(add_days(start, 6))})

    for d in decisions:
        if not is_completed(d):
            continue
        if category_filter and d.category_id != category_filter:
            continue
        moment = effective_resolution_time(d)
        if moment is None or moment < first_week_start or moment >= end_exclusive:
            continue
        bucket = buckets.get(to_iso_date(start_of_week_utc(moment)))
        if bucket is None:
            continue
        bucket[0] += 1
        if is_positive(d):
            bucket[1] += 1

    logger.debug(
        "Weekly trend %s..%s over %d decisions",
        series[0]["weekStart"], series[-1]["weekEnd"], len(decisions)
    )

    for week in series:
        total, positive = buckets[week["weekStart"]]
        week["total"] = total
        week["positiveRate"] = rate1(positive, total)
    return series
