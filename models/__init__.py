from .decision import (
    Decision, DecisionResult, RESULT_VALUES, RESOLVED_RESULTS,
    CONFIDENCE_LEVELS, WELL_KNOWN_CATEGORIES, INVEST_CATEGORY, INVEST_ACTIONS,
    is_valid_result
)
from .database import Base, DecisionRow, init_db, get_session, get_engine

__all__ = [
    "Decision", "DecisionResult", "RESULT_VALUES", "RESOLVED_RESULTS",
    "CONFIDENCE_LEVELS", "WELL_KNOWN_CATEGORIES", "INVEST_CATEGORY", "INVEST_ACTIONS",
    "is_valid_result",
    "Base", "DecisionRow", "init_db", "get_session", "get_engine"
]
