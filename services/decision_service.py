import math
from typing import Dict, List, Optional, Any

from models.decision import Decision, DecisionResult, RESULT_VALUES, is_valid_result
from .decision_store import DecisionStore, MISSING
from .stats import round1


def merge_meta(prev: Optional[Dict[str, Any]], patch: Optional[Dict[str, Any]]):
    """None deletes the meta, an empty patch keeps it, anything else is merged over it."""
    if patch is None:
        return None
    if not patch:
        return prev
    return {**(prev or {}), **patch}


def _finite_number(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def calc_return_rate(entry_price: Any, exit_price: Any, action: Any) -> Optional[float]:
    """Percent return of a trade with one decimal; sells profit when the price falls."""
    if not _finite_number(entry_price) or not _finite_number(exit_price):
        return None
    if entry_price <= 0:
        return None
    if action == "sell":
        raw = (entry_price - exit_price) / entry_price
    else:
        raw = (exit_price - entry_price) / entry_price
    return round1(raw * 100)


def with_return_rate(meta: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if not meta:
        return meta
    rate = calc_return_rate(meta.get("entryPrice"), meta.get("exitPrice"), meta.get("action"))
    if rate is None:
        return meta
    return {**meta, "returnRate": rate}


class DecisionService:
    """Validation and meta handling in front of a DecisionStore."""

    def __init__(self, store: DecisionStore):
        self.store = store

    def list(self, user_id: str) -> List[Decision]:
        return self.store.list(user_id)

    def get(self, user_id: str, decision_id: str) -> Optional[Decision]:
        return self.store.get(user_id, decision_id)

    def create(
        self,
        user_id: str,
        category_id: str,
        title: str,
        notes: Optional[str] = None,
        tags: Optional[List[str]] = None,
        confidence: Any = 3,
        result: str = DecisionResult.PENDING.value,
        meta: Optional[Dict[str, Any]] = None
    ) -> Decision:
        if not isinstance(category_id, str) or not category_id:
            raise ValueError("categoryId is required")
        if not isinstance(title, str) or not title.strip():
            raise ValueError("title is required")
        return self.store.create(
            user_id, category_id, title,
            notes=notes, tags=tags or [], confidence=confidence,
            result=result, meta=meta
        )

    def _resolve_meta(self, prev: Decision, meta: Any):
        if meta is MISSING:
            return MISSING
        if meta is None:
            return None
        return with_return_rate(merge_meta(prev.meta, meta))

    def resolve(
        self,
        user_id: str,
        decision_id: str,
        result: Any,
        confidence: Any = None,
        meta: Any = MISSING
    ) -> Optional[Decision]:
        if not is_valid_result(result):
            raise ValueError(f"result must be one of: {', '.join(RESULT_VALUES)}")
        prev = self.store.get(user_id, decision_id)
        if prev is None:
            return None
        return self.store.update_result(
            user_id, decision_id, result,
            confidence=confidence,
            meta=self._resolve_meta(prev, meta)
        )

    def edit(
        self,
        user_id: str,
        decision_id: str,
        category_id: Optional[str] = None,
        title: Optional[str] = None,
        notes: Any = MISSING,
        tags: Optional[List[str]] = None,
        confidence: Any = None,
        meta: Any = MISSING
    ) -> Optional[Decision]:
        prev = self.store.get(user_id, decision_id)
        if prev is None:
            return None
        return self.store.update(
            user_id, decision_id,
            category_id=category_id,
            title=title,
            notes=notes,
            tags=tags,
            confidence=confidence,
            meta=self._resolve_meta(prev, meta)
        )

    def remove(self, user_id: str, decision_id: str) -> bool:
        return self.store.remove(user_id, decision_id)
