from typing import Dict, List, Optional, Any, Union
from dataclasses import dataclass, field
from enum import Enum

MetaValue = Union[str, int, float, bool, None]

class DecisionResult(str, Enum):
    PENDING = "pending"
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"

RESULT_VALUES = tuple(r.value for r in DecisionResult)
RESOLVED_RESULTS = ("positive", "negative", "neutral")
CONFIDENCE_LEVELS = (1, 2, 3, 4, 5)

WELL_KNOWN_CATEGORIES = (
    "invest", "health", "study", "shopping", "career", "daily", "relationship"
)
INVEST_CATEGORY = "invest"
INVEST_ACTIONS = ("buy", "sell")

def is_valid_result(value: Any) -> bool:
    return isinstance(value, str) and value in RESULT_VALUES

@dataclass
class Decision:
    """One logged judgment, possibly resolved with an outcome.

    Values are kept as the store handed them over, except that an unknown
    result decodes as pending. The analytics functions tolerate malformed
    confidence, tags and timestamps.
    """

    id: str
    user_id: str
    category_id: Optional[str]
    title: str
    result: str = DecisionResult.PENDING.value
    confidence: Any = 3
    tags: List[Any] = field(default_factory=list)
    notes: Optional[str] = None
    meta: Optional[Dict[str, MetaValue]] = None
    created_at: Optional[str] = None
    resolved_at: Optional[str] = None

    @property
    def is_completed(self) -> bool:
        return self.result != DecisionResult.PENDING.value

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Decision":
        """Unknown result values are read as pending."""
        meta = data.get("meta")
        result = data.get("result")
        return cls(
            id=str(data.get("id", "")),
            user_id=str(data.get("userId", "")),
            category_id=data.get("categoryId"),
            title=data.get("title") or "",
            result=result if is_valid_result(result) else DecisionResult.PENDING.value,
            confidence=data.get("confidence"),
            tags=data.get("tags") if isinstance(data.get("tags"), list) else [],
            notes=data.get("notes"),
            meta=meta if isinstance(meta, dict) else None,
            created_at=data.get("createdAt"),
            resolved_at=data.get("resolvedAt"),
        )

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "id": self.id,
            "userId": self.user_id,
            "categoryId": self.category_id,
            "title": self.title,
            "tags": list(self.tags),
            "confidence": self.confidence,
            "result": self.result,
            "createdAt": self.created_at,
        }
        if self.notes is not None:
            result["notes"] = self.notes
        if self.meta is not None:
            result["meta"] = dict(self.meta)
        if self.resolved_at is not None:
            result["resolvedAt"] = self.resolved_at
        return result
