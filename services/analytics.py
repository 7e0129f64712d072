import logging
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Any, Sequence

from models.decision import Decision
from .breakdowns import (
    completed_only, count_results, positive_confidences, group_by_category,
    group_by_action, confidence_stats, top_tags, group_by_weekday, group_by_hour,
    DEFAULT_TOP_TAGS
)
from .stats import (
    percent, average1, safe_int, clamp_int, parse_int, iso_to_epoch_ms, utc_now,
    ensure_utc, is_resolved_result
)
from .weekly_trend import build_weekly_trend, normalize_category_filter, DEFAULT_WEEKS
from .weekly_report import build_weekly_report, DEFAULT_LOCALE

logger = logging.getLogger("analytics")

DEFAULT_DAYS = 90
MIN_DAYS, MAX_DAYS = 1, 3650
DEFAULT_LIMIT = 10
MIN_LIMIT, MAX_LIMIT = 5, 50
RECENT_COMPLETED_CAP = 10


def summary_counts(decisions: Sequence[Decision]) -> Dict[str, Any]:
    completed = completed_only(decisions)
    results = count_results(completed)
    return {
        "total": len(decisions),
        "completed": len(completed),
        "pending": len(decisions) - len(completed),
        "resultCounts": results,
        "positiveRate": percent(results["positive"], len(completed)),
        "avgConfidenceCompleted": average1(positive_confidences(completed)),
    }


def has_reflection(decision: Decision) -> bool:
    reflection = (decision.meta or {}).get("reflection")
    return isinstance(reflection, str) and bool(reflection.strip())


def recent_completed(
    completed: Sequence[Decision],
    limit: int,
    cap: int = RECENT_COMPLETED_CAP
) -> List[Dict[str, Any]]:
    """Most recently resolved decisions.

    The fixed cap is applied before the caller's limit, so a limit above the
    cap is never honoured.
    """
    resolved = [d for d in completed if is_resolved_result(d.result)]
    resolved = sorted(resolved, key=lambda d: iso_to_epoch_ms(d.resolved_at), reverse=True)
    rows = resolved[:cap][:limit]
    return [
        {
            "id": d.id,
            "categoryId": d.category_id,
            "title": d.title,
            "result": d.result,
            "confidence": safe_int(d.confidence),
            "resolvedAt": d.resolved_at or "",
            "tags": list(d.tags) if isinstance(d.tags, (list, tuple)) else [],
            "hasReflection": has_reflection(d),
        }
        for d in rows
    ]


def filter_window(
    decisions: Sequence[Decision],
    days: int,
    category_id: Optional[str],
    now: datetime
) -> List[Decision]:
    since_ms = int((now - timedelta(days=days)).timestamp() * 1000)
    return [
        d for d in decisions
        if (not category_id or d.category_id == category_id)
        and iso_to_epoch_ms(d.created_at) >= since_ms
    ]


def build_summary(
    decisions: Sequence[Decision],
    days: Any = DEFAULT_DAYS,
    category_id: Optional[str] = None,
    limit: Any = DEFAULT_LIMIT,
    now: Optional[datetime] = None,
    top_tags_limit: int = DEFAULT_TOP_TAGS,
    recent_cap: int = RECENT_COMPLETED_CAP
) -> Dict[str, Any]:
    """Point-in-time summary over decisions created in the last ``days`` days."""
    days = clamp_int(parse_int(days, DEFAULT_DAYS), MIN_DAYS, MAX_DAYS)
    limit = clamp_int(parse_int(limit, DEFAULT_LIMIT), MIN_LIMIT, MAX_LIMIT)
    now = ensure_utc(now) if now else utc_now()

    filtered = filter_window(decisions, days, normalize_category_filter(category_id), now)
    completed = completed_only(filtered)
    logger.debug(
        "Summary over %d days: %d of %d decisions in window", days, len(filtered), len(decisions)
    )

    return {
        "summary": summary_counts(filtered),
        "byCategory": group_by_category(completed),
        "byAction": group_by_action(completed),
        "confidenceStats": confidence_stats(completed),
        "topTags": top_tags(filtered, completed, top_tags_limit),
        "byWeekday": group_by_weekday(completed),
        "byHour": group_by_hour(completed),
        "recentCompleted": recent_completed(completed, limit, recent_cap),
    }


def build_overview(decisions: Sequence[Decision]) -> Dict[str, Any]:
    """All-time totals without any window or category filter."""
    completed = completed_only(decisions)
    counts = summary_counts(decisions)
    return {
        "total": counts["total"],
        "completed": counts["completed"],
        "pending": counts["pending"],
        "resultCounts": counts["resultCounts"],
        "positiveRate": counts["positiveRate"],
        "byAction": group_by_action(completed),
        "confidenceStats": confidence_stats(completed),
        "byCategory": group_by_category(completed),
    }


class AnalyticsService:
    """Loads one user's decisions from the store and runs a builder over them.

    Holds no per-call state; every report is recomputed from the store.
    """

    def __init__(
        self,
        store,
        top_tags_limit: int = DEFAULT_TOP_TAGS,
        recent_cap: int = RECENT_COMPLETED_CAP,
        locale: str = DEFAULT_LOCALE
    ):
        self.store = store
        self.top_tags_limit = top_tags_limit
        self.recent_cap = recent_cap
        self.locale = locale

    @classmethod
    def from_settings(cls, store, settings) -> "AnalyticsService":
        return cls(
            store,
            top_tags_limit=settings.TOP_TAGS_LIMIT,
            recent_cap=settings.RECENT_COMPLETED_CAP,
            locale=settings.INSIGHT_LOCALE
        )

    def overview(self, user_id: str) -> Dict[str, Any]:
        return build_overview(self.store.list(user_id))

    def pending(self, user_id: str) -> List[Decision]:
        return self.store.list_pending(user_id)

    def summary(
        self,
        user_id: str,
        days: Any = DEFAULT_DAYS,
        category_id: Optional[str] = None,
        limit: Any = DEFAULT_LIMIT,
        now: Optional[datetime] = None
    ) -> Dict[str, Any]:
        return build_summary(
            self.store.list(user_id),
            days=days,
            category_id=category_id,
            limit=limit,
            now=now,
            top_tags_limit=self.top_tags_limit,
            recent_cap=self.recent_cap
        )

    def weekly_trend(
        self,
        user_id: str,
        weeks: Any = DEFAULT_WEEKS,
        category_id: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> Dict[str, Any]:
        return {"weeks": build_weekly_trend(self.store.list(user_id), weeks, category_id, now)}

    def weekly_report(
        self,
        user_id: str,
        week_start: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> Dict[str, Any]:
        return build_weekly_report(self.store.list(user_id), week_start, now, self.locale)
