import logging
from typing import Dict, List, Optional, Any, Callable, Sequence
from collections import defaultdict

from models.decision import (
    Decision, DecisionResult, CONFIDENCE_LEVELS, INVEST_CATEGORY, INVEST_ACTIONS
)
from .stats import (
    percent, average1, safe_int, is_completed, is_positive,
    effective_resolution_time, utc_weekday
)

logger = logging.getLogger("analytics")

DEFAULT_TOP_TAGS = 20
UNKNOWN_CATEGORY = "unknown"


def completed_only(decisions: Sequence[Decision]) -> List[Decision]:
    return [d for d in decisions if is_completed(d)]


def count_results(decisions: Sequence[Decision]) -> Dict[str, int]:
    counts = {"positive": 0, "negative": 0, "neutral": 0}
    for d in decisions:
        if d.result in counts:
            counts[d.result] += 1
    return counts


def positive_confidences(decisions: Sequence[Decision]) -> List[int]:
    """Floored confidence values, dropping anything missing or not positive."""
    values = [safe_int(d.confidence) for d in decisions]
    return [v for v in values if v > 0]


def category_key(decision: Decision) -> str:
    return decision.category_id or UNKNOWN_CATEGORY


def group_by_category(completed: Sequence[Decision]) -> List[Dict[str, Any]]:
    groups: Dict[str, List[Decision]] = {}
    for d in completed:
        groups.setdefault(category_key(d), []).append(d)

    rows = []
    for category_id, members in groups.items():
        counts = count_results(members)
        rows.append({
            "categoryId": category_id,
            "total": len(members),
            "positiveRate": percent(counts["positive"], len(members)),
            "resultCounts": counts,
            "avgConfidenceCompleted": average1(positive_confidences(members)),
        })

    # sorted() is stable, so equal totals keep first-seen order
    return sorted(rows, key=lambda r: r["total"], reverse=True)


def invest_action_stats(completed: Sequence[Decision], action: str) -> Dict[str, Any]:
    members = [
        d for d in completed
        if d.category_id == INVEST_CATEGORY and (d.meta or {}).get("action") == action
    ]
    positive = sum(1 for d in members if is_positive(d))
    return {
        "total": len(members),
        "positiveRate": percent(positive, len(members)),
        "avgConfidenceCompleted": average1(positive_confidences(members)),
    }


def group_by_action(completed: Sequence[Decision]) -> Dict[str, Dict[str, Any]]:
    """Buy/sell split of completed invest decisions; other actions are dropped."""
    return {action: invest_action_stats(completed, action) for action in INVEST_ACTIONS}


def confidence_level(decision: Decision) -> Optional[int]:
    value = decision.confidence
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if value in CONFIDENCE_LEVELS:
        return int(value)
    return None


def confidence_stats(completed: Sequence[Decision]) -> List[Dict[str, Any]]:
    buckets = {level: [0, 0] for level in CONFIDENCE_LEVELS}
    for d in completed:
        level = confidence_level(d)
        if level is None:
            continue
        buckets[level][0] += 1
        if is_positive(d):
            buckets[level][1] += 1

    return [
        {"confidence": level, "total": total, "positiveRate": percent(positive, total)}
        for level, (total, positive) in buckets.items()
    ]


def normalize_tag(raw: Any) -> Optional[str]:
    if not isinstance(raw, str):
        return None
    tag = raw.strip()
    return tag or None


def _iter_tags(decision: Decision):
    tags = decision.tags if isinstance(decision.tags, (list, tuple)) else []
    for raw in tags:
        tag = normalize_tag(raw)
        if tag is not None:
            yield tag


def top_tags(
    decisions: Sequence[Decision],
    completed: Sequence[Decision],
    limit: int = DEFAULT_TOP_TAGS
) -> List[Dict[str, Any]]:
    """Rank tags by raw occurrence over every decision, with completed-positive stats attached.

    Repeated tags on one decision count once per occurrence.
    """
    occurrences: Dict[str, int] = defaultdict(int)
    for d in decisions:
        for tag in _iter_tags(d):
            occurrences[tag] += 1

    outcome: Dict[str, List[int]] = defaultdict(lambda: [0, 0])
    for d in completed:
        for tag in _iter_tags(d):
            outcome[tag][0] += 1
            if is_positive(d):
                outcome[tag][1] += 1

    rows = []
    for tag, count in occurrences.items():
        done, positive = outcome.get(tag, (0, 0))
        rows.append({
            "tag": tag,
            "count": count,
            "completed": done,
            "positiveRate": percent(positive, done),
        })

    rows.sort(key=lambda r: r["count"], reverse=True)
    return rows[:max(0, limit)]


def _bucket_by_time(
    completed: Sequence[Decision],
    size: int,
    key: Callable,
    label: str
) -> List[Dict[str, Any]]:
    buckets = [[0, 0] for _ in range(size)]
    skipped = 0
    for d in completed:
        moment = effective_resolution_time(d)
        if moment is None:
            skipped += 1
            continue
        bucket = buckets[key(moment)]
        bucket[0] += 1
        if is_positive(d):
            bucket[1] += 1

    if skipped:
        logger.debug("Skipped %d decisions without a usable timestamp for %s buckets", skipped, label)

    return [
        {label: index, "total": total, "positiveRate": percent(positive, total)}
        for index, (total, positive) in enumerate(buckets)
    ]


def group_by_weekday(completed: Sequence[Decision]) -> List[Dict[str, Any]]:
    """Seven buckets, 0=Sunday, keyed on the UTC weekday of the effective resolution time."""
    return _bucket_by_time(completed, 7, utc_weekday, "weekday")


def group_by_hour(completed: Sequence[Decision]) -> List[Dict[str, Any]]:
    return _bucket_by_time(completed, 24, lambda moment: moment.hour, "hour")
