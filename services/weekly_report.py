"""Calendar-week report with a comparison against the week before.

Decisions belong to the week they were *created* in, not the week they
resolved in; the report answers "what did I log this week".
"""
import logging
from datetime import datetime
from typing import Dict, List, Optional, Any, Sequence

from models.decision import Decision, CONFIDENCE_LEVELS
from .breakdowns import (
    completed_only, count_results, positive_confidences, confidence_stats, category_key
)
from .stats import (
    rate1, round1, average1, safe_int, iso_to_epoch_ms, add_days, to_iso_date,
    parse_week_start, is_positive
)

logger = logging.getLogger("analytics")

INSIGHT_MESSAGES = {
    "ko": {
        "no_positive": "이번 주는 긍정 결과가 없었어요.",
        "best_confidence": "확신도 {confidence}에서 성과가 가장 좋았어요.",
    },
    "en": {
        "no_positive": "No positive outcomes this week.",
        "best_confidence": "Confidence level {confidence} performed best this week.",
    },
}
DEFAULT_LOCALE = "ko"

COUNT_FIELDS = ("total", "completed", "pending")
RESULT_FIELDS = ("positive", "negative", "neutral", "pending")


def _messages(locale: str) -> Dict[str, str]:
    return INSIGHT_MESSAGES.get(locale, INSIGHT_MESSAGES[DEFAULT_LOCALE])


def decisions_created_between(
    decisions: Sequence[Decision],
    start: datetime,
    end_exclusive: datetime
) -> List[Decision]:
    start_ms = int(start.timestamp() * 1000)
    end_ms = int(end_exclusive.timestamp() * 1000)
    return [
        d for d in decisions
        if start_ms <= iso_to_epoch_ms(d.created_at) < end_ms
    ]


def top_category(decisions: Sequence[Decision]) -> Optional[Dict[str, Any]]:
    counts: Dict[str, int] = {}
    for d in decisions:
        key = category_key(d)
        counts[key] = counts.get(key, 0) + 1

    top = None
    for category_id, total in counts.items():
        if top is None or total > top["total"]:
            top = {"categoryId": category_id, "total": total}
    return top


def build_insight(
    completed: Sequence[Decision],
    by_level: List[Dict[str, Any]],
    locale: str = DEFAULT_LOCALE
) -> Optional[str]:
    if not completed:
        return None
    messages = _messages(locale)
    if not any(is_positive(d) for d in completed):
        return messages["no_positive"]

    candidates = [level for level in by_level if level["total"] > 0]
    if not candidates:
        return None
    best = sorted(candidates, key=lambda level: level["positiveRate"], reverse=True)[0]
    return messages["best_confidence"].format(confidence=best["confidence"])


def build_week_summary(
    decisions: Sequence[Decision],
    week_start: datetime,
    locale: str = DEFAULT_LOCALE
) -> Dict[str, Any]:
    """Summary of one Monday-to-Sunday week; decisions must already be filtered to it."""
    completed = completed_only(decisions)
    pending = len(decisions) - len(completed)
    results = count_results(completed)
    by_level = confidence_stats(completed)

    return {
        "period": {
            "start": to_iso_date(week_start),
            "end": to_iso_date(add_days(week_start, 6)),
        },
        "counts": {
            "total": len(decisions),
            "completed": len(completed),
            "pending": pending,
        },
        "resultCounts": {**results, "pending": pending},
        "confidence": {
            "average": average1(positive_confidences(completed)),
            "byLevel": by_level,
        },
        "topCategory": top_category(decisions),
        "insight": build_insight(completed, by_level, locale),
    }


def _level_row(summary: Dict[str, Any], level: int) -> Dict[str, Any]:
    for row in summary.get("confidence", {}).get("byLevel", []):
        if row.get("confidence") == level:
            return row
    return {}


def build_delta(current: Dict[str, Any], previous: Dict[str, Any]) -> Dict[str, Any]:
    """Signed current-minus-previous differences for every metric of two week summaries.

    Result rates use each week's own total as the denominator.
    """
    current_total = current["counts"]["total"]
    previous_total = previous["counts"]["total"]

    result_rates = {}
    for name in RESULT_FIELDS:
        result_rates[name] = round1(
            rate1(current["resultCounts"][name], current_total)
            - rate1(previous["resultCounts"][name], previous_total)
        )

    by_level = []
    for level in CONFIDENCE_LEVELS:
        cur = _level_row(current, level)
        prev = _level_row(previous, level)
        by_level.append({
            "confidence": level,
            "total": safe_int(cur.get("total")) - safe_int(prev.get("total")),
            "positiveRate": safe_int(cur.get("positiveRate")) - safe_int(prev.get("positiveRate")),
        })

    return {
        "counts": {
            name: current["counts"][name] - previous["counts"][name] for name in COUNT_FIELDS
        },
        "resultCounts": {
            name: current["resultCounts"][name] - previous["resultCounts"][name]
            for name in RESULT_FIELDS
        },
        "resultRates": result_rates,
        "confidence": {
            "average": round1(current["confidence"]["average"] - previous["confidence"]["average"]),
            "byLevel": by_level,
        },
    }


def build_weekly_report(
    decisions: Sequence[Decision],
    week_start: Optional[str] = None,
    now: Optional[datetime] = None,
    locale: str = DEFAULT_LOCALE
) -> Dict[str, Any]:
    start = parse_week_start(week_start, now)
    previous_start = add_days(start, -7)

    current_list = decisions_created_between(decisions, start, add_days(start, 7))
    previous_list = decisions_created_between(decisions, previous_start, start)
    logger.debug(
        "Weekly report for %s: %d current, %d previous",
        to_iso_date(start), len(current_list), len(previous_list)
    )

    current = build_week_summary(current_list, start, locale)
    previous = build_week_summary(previous_list, previous_start, locale)

    return {
        **current,
        "previous": previous,
        "delta": build_delta(current, previous),
    }
