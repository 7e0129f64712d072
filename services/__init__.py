from .stats import (
    percent, rate1, average1, round1, safe_int, iso_to_epoch_ms, parse_iso,
    effective_resolution_time, start_of_week_utc, to_iso_date, parse_week_start
)
from .breakdowns import (
    group_by_category, group_by_action, confidence_stats, top_tags,
    group_by_weekday, group_by_hour
)
from .weekly_trend import build_weekly_trend
from .weekly_report import build_week_summary, build_delta, build_weekly_report
from .analytics import AnalyticsService, build_summary, build_overview
from .decision_store import (
    DecisionStore, FileDecisionStore, DatabaseDecisionStore,
    create_decision_store, MISSING
)
from .decision_service import DecisionService, merge_meta, calc_return_rate

__all__ = [
    "percent", "rate1", "average1", "round1", "safe_int", "iso_to_epoch_ms", "parse_iso",
    "effective_resolution_time", "start_of_week_utc", "to_iso_date", "parse_week_start",
    "group_by_category", "group_by_action", "confidence_stats", "top_tags",
    "group_by_weekday", "group_by_hour",
    "build_weekly_trend",
    "build_week_summary", "build_delta", "build_weekly_report",
    "AnalyticsService", "build_summary", "build_overview",
    "DecisionStore", "FileDecisionStore", "DatabaseDecisionStore",
    "create_decision_store", "MISSING",
    "DecisionService", "merge_meta", "calc_return_rate"
]
