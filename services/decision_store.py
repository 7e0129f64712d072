"""Decision persistence: a JSON-file backend and a SQLAlchemy backend behind one interface.

Both backends keep ``resolvedAt`` set exactly when the result is not pending.
"""
import json
import logging
import os
import uuid
from abc import ABC, abstractmethod
from threading import Lock
from typing import Dict, List, Optional, Any

from models.decision import Decision, DecisionResult, is_valid_result
from models.database import DecisionRow, init_db, get_session
from .stats import utc_now, to_iso_timestamp, parse_iso

logger = logging.getLogger("decision_store")

MISSING = object()
DEFAULT_CONFIDENCE = 3


def normalize_tags(tags: Any) -> List[str]:
    if not isinstance(tags, (list, tuple)):
        return []
    cleaned = (str(t).strip() for t in tags if t is not None)
    return [t for t in cleaned if t]


def is_valid_confidence(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return 1 <= value <= 5


def _clean_notes(notes: Optional[str]) -> Optional[str]:
    if not isinstance(notes, str):
        return None
    notes = notes.strip()
    return notes or None


def new_decision(
    user_id: str,
    category_id: str,
    title: str,
    notes: Optional[str] = None,
    tags: Optional[List[str]] = None,
    confidence: Any = DEFAULT_CONFIDENCE,
    result: Any = DecisionResult.PENDING.value,
    meta: Optional[Dict[str, Any]] = None
) -> Decision:
    user_id = user_id.strip() if isinstance(user_id, str) else ""
    if not user_id:
        raise ValueError("userId is required")

    title = title.strip() if isinstance(title, str) else ""
    if not title:
        raise ValueError("title is required")

    now = to_iso_timestamp(utc_now())
    result = result if is_valid_result(result) else DecisionResult.PENDING.value

    return Decision(
        id=str(uuid.uuid4()),
        user_id=user_id,
        category_id=category_id,
        title=title,
        notes=_clean_notes(notes),
        tags=normalize_tags(tags),
        confidence=confidence if is_valid_confidence(confidence) else DEFAULT_CONFIDENCE,
        result=result,
        meta=meta or None,
        created_at=now,
        resolved_at=None if result == DecisionResult.PENDING.value else now,
    )


def apply_result(decision: Decision, result: str, confidence: Any = None, meta: Any = MISSING) -> Decision:
    decision.result = result
    if is_valid_confidence(confidence):
        decision.confidence = confidence
    decision.resolved_at = (
        None if result == DecisionResult.PENDING.value else to_iso_timestamp(utc_now())
    )
    if meta is not MISSING:
        decision.meta = meta or None
    return decision


def apply_edit(
    decision: Decision,
    category_id: Optional[str] = None,
    title: Optional[str] = None,
    notes: Any = MISSING,
    tags: Optional[List[str]] = None,
    confidence: Any = None,
    meta: Any = MISSING
) -> Decision:
    if isinstance(category_id, str):
        decision.category_id = category_id
    if isinstance(title, str) and title.strip():
        decision.title = title.strip()
    if notes is None:
        decision.notes = None
    elif notes is not MISSING and _clean_notes(notes):
        decision.notes = _clean_notes(notes)
    if isinstance(tags, (list, tuple)):
        decision.tags = normalize_tags(tags)
    if is_valid_confidence(confidence):
        decision.confidence = confidence
    if meta is not MISSING:
        decision.meta = meta or None
    return decision


class DecisionStore(ABC):
    """Per-user decision storage. Every read and write is scoped by user id."""

    backend = "abstract"

    @abstractmethod
    def list(self, user_id: str) -> List[Decision]:
        ...

    def list_pending(self, user_id: str) -> List[Decision]:
        return [d for d in self.list(user_id) if not d.is_completed]

    @abstractmethod
    def get(self, user_id: str, decision_id: str) -> Optional[Decision]:
        ...

    @abstractmethod
    def insert(self, decision: Decision) -> Decision:
        """Store an already-built decision as is (timestamps included)."""

    def create(self, user_id: str, category_id: str, title: str, **fields) -> Decision:
        decision = self.insert(new_decision(user_id, category_id, title, **fields))
        logger.info("Created decision %s in %s", decision.id, decision.category_id)
        return decision

    @abstractmethod
    def update_result(
        self,
        user_id: str,
        decision_id: str,
        result: str,
        confidence: Any = None,
        meta: Any = MISSING
    ) -> Optional[Decision]:
        ...

    @abstractmethod
    def update(self, user_id: str, decision_id: str, **fields) -> Optional[Decision]:
        ...

    @abstractmethod
    def remove(self, user_id: str, decision_id: str) -> bool:
        ...


def _newest_first(decisions: List[Decision]) -> List[Decision]:
    return sorted(decisions, key=lambda d: d.created_at or "", reverse=True)


class FileDecisionStore(DecisionStore):
    backend = "file"

    def __init__(self, path: str):
        self.path = path
        self._lock = Lock()

    def _ensure_file(self):
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        if not os.path.exists(self.path):
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump([], f)

    def _read_all(self) -> List[Decision]:
        self._ensure_file()
        with open(self.path, "r", encoding="utf-8") as f:
            raw = f.read()
        try:
            parsed = json.loads(raw) if raw.strip() else []
        except json.JSONDecodeError:
            logger.warning("Unreadable decision file %s, treating it as empty", self.path)
            return []
        if not isinstance(parsed, list):
            logger.warning("Decision file %s does not hold a list, treating it as empty", self.path)
            return []
        return [Decision.from_dict(item) for item in parsed if isinstance(item, dict)]

    def _write_all(self, decisions: List[Decision]):
        self._ensure_file()
        tmp_path = self.path + ".tmp"
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump([d.to_dict() for d in decisions], f, ensure_ascii=False, indent=2)
        os.replace(tmp_path, self.path)

    def list(self, user_id: str) -> List[Decision]:
        with self._lock:
            decisions = self._read_all()
        return _newest_first([d for d in decisions if d.user_id == user_id])

    def get(self, user_id: str, decision_id: str) -> Optional[Decision]:
        with self._lock:
            decisions = self._read_all()
        for d in decisions:
            if d.id == decision_id and d.user_id == user_id:
                return d
        return None

    def insert(self, decision: Decision) -> Decision:
        with self._lock:
            decisions = self._read_all()
            decisions.insert(0, decision)
            self._write_all(decisions)
        return decision

    def _modify(self, user_id: str, decision_id: str, change) -> Optional[Decision]:
        with self._lock:
            decisions = self._read_all()
            for d in decisions:
                if d.id == decision_id and d.user_id == user_id:
                    change(d)
                    self._write_all(decisions)
                    return d
        return None

    def update_result(self, user_id, decision_id, result, confidence=None, meta=MISSING):
        updated = self._modify(
            user_id, decision_id, lambda d: apply_result(d, result, confidence, meta)
        )
        if updated:
            logger.info("Decision %s resolved as %s", decision_id, result)
        return updated

    def update(self, user_id: str, decision_id: str, **fields) -> Optional[Decision]:
        return self._modify(user_id, decision_id, lambda d: apply_edit(d, **fields))

    def remove(self, user_id: str, decision_id: str) -> bool:
        with self._lock:
            decisions = self._read_all()
            remaining = [
                d for d in decisions if not (d.id == decision_id and d.user_id == user_id)
            ]
            if len(remaining) == len(decisions):
                return False
            self._write_all(remaining)
        logger.info("Removed decision %s", decision_id)
        return True


def _naive_utc(value: Optional[str]):
    parsed = parse_iso(value)
    return parsed.replace(tzinfo=None) if parsed else None


class DatabaseDecisionStore(DecisionStore):
    backend = "database"

    def __init__(self, database_url: str):
        self.database_url = database_url
        init_db(database_url)

    def _session(self):
        return get_session(self.database_url)

    @staticmethod
    def _to_decision(row: DecisionRow) -> Decision:
        return Decision(
            id=row.id,
            user_id=row.user_id,
            category_id=row.category_id,
            title=row.title,
            notes=row.notes,
            tags=list(row.tags) if isinstance(row.tags, list) else [],
            confidence=row.confidence,
            result=row.result if is_valid_result(row.result) else DecisionResult.PENDING.value,
            meta=row.meta if isinstance(row.meta, dict) else None,
            created_at=to_iso_timestamp(row.created_at) if row.created_at else None,
            resolved_at=to_iso_timestamp(row.resolved_at) if row.resolved_at else None,
        )

    @staticmethod
    def _copy_to_row(decision: Decision, row: DecisionRow):
        row.category_id = decision.category_id
        row.title = decision.title
        row.notes = decision.notes
        row.tags = list(decision.tags)
        row.confidence = decision.confidence
        row.result = decision.result
        row.meta = dict(decision.meta) if decision.meta else None
        row.resolved_at = _naive_utc(decision.resolved_at)

    def list(self, user_id: str) -> List[Decision]:
        with self._session() as session:
            rows = (
                session.query(DecisionRow)
                .filter(DecisionRow.user_id == user_id)
                .order_by(DecisionRow.created_at.desc())
                .all()
            )
            return [self._to_decision(r) for r in rows]

    def list_pending(self, user_id: str) -> List[Decision]:
        with self._session() as session:
            rows = (
                session.query(DecisionRow)
                .filter(
                    DecisionRow.user_id == user_id,
                    DecisionRow.result == DecisionResult.PENDING.value
                )
                .order_by(DecisionRow.created_at.desc())
                .all()
            )
            return [self._to_decision(r) for r in rows]

    def _find(self, session, user_id: str, decision_id: str) -> Optional[DecisionRow]:
        return (
            session.query(DecisionRow)
            .filter(DecisionRow.id == decision_id, DecisionRow.user_id == user_id)
            .first()
        )

    def get(self, user_id: str, decision_id: str) -> Optional[Decision]:
        with self._session() as session:
            row = self._find(session, user_id, decision_id)
            return self._to_decision(row) if row else None

    def insert(self, decision: Decision) -> Decision:
        with self._session() as session:
            row = DecisionRow(
                id=decision.id,
                user_id=decision.user_id,
                created_at=_naive_utc(decision.created_at),
            )
            self._copy_to_row(decision, row)
            session.add(row)
            session.commit()
        return decision

    def _modify(self, user_id: str, decision_id: str, change) -> Optional[Decision]:
        with self._session() as session:
            row = self._find(session, user_id, decision_id)
            if row is None:
                return None
            decision = change(self._to_decision(row))
            self._copy_to_row(decision, row)
            session.commit()
            return decision

    def update_result(self, user_id, decision_id, result, confidence=None, meta=MISSING):
        updated = self._modify(
            user_id, decision_id, lambda d: apply_result(d, result, confidence, meta)
        )
        if updated:
            logger.info("Decision %s resolved as %s", decision_id, result)
        return updated

    def update(self, user_id: str, decision_id: str, **fields) -> Optional[Decision]:
        return self._modify(user_id, decision_id, lambda d: apply_edit(d, **fields))

    def remove(self, user_id: str, decision_id: str) -> bool:
        with self._session() as session:
            row = self._find(session, user_id, decision_id)
            if row is None:
                return False
            session.delete(row)
            session.commit()
        logger.info("Removed decision %s", decision_id)
        return True


def create_decision_store(settings) -> DecisionStore:
    if settings.DECISION_STORE == "database":
        return DatabaseDecisionStore(settings.DATABASE_URL)
    return FileDecisionStore(settings.decisions_path)
