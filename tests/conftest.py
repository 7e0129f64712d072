import pytest
from datetime import datetime, timezone
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from models.decision import Decision

# Monday 2026-01-19 12:00 UTC
FIXED_NOW = datetime(2026, 1, 19, 12, 0, tzinfo=timezone.utc)

@pytest.fixture
def sample_user_id():
    return "test_user_123"

@pytest.fixture
def fixed_now():
    return FIXED_NOW

@pytest.fixture
def make_decision(sample_user_id):
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        fields = {
            "id": f"d{counter['n']}",
            "user_id": sample_user_id,
            "category_id": "daily",
            "title": f"Decision {counter['n']}",
            "result": "pending",
            "confidence": 3,
            "tags": [],
            "created_at": "2026-01-15T09:00:00.000Z",
            "resolved_at": None,
        }
        fields.update(overrides)
        return Decision(**fields)

    return _make

@pytest.fixture
def scenario_decisions(make_decision):
    return [
        make_decision(
            result="positive", confidence=4,
            created_at="2026-01-10T10:00:00Z", resolved_at="2026-01-10T12:00:00Z"
        ),
        make_decision(result="pending", confidence=3, created_at="2026-01-11T09:00:00Z"),
    ]

@pytest.fixture
def decisions_path(tmp_path):
    return str(tmp_path / "data" / "decisions.json")
