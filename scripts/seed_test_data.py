#!/usr/bin/env python3
"""
Seed a user's journal with sample decisions for trying out the analysis views.

Removes previously seeded decisions (matched by title prefix), then writes
five decisions per well-known category: three resolved, two pending.
"""

import argparse
import os
import random
import sys
import uuid
from datetime import datetime, timedelta, timezone
from typing import Dict, List

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import settings
from models.decision import Decision, WELL_KNOWN_CATEGORIES
from services.decision_store import create_decision_store
from services.decision_service import with_return_rate
from services.stats import to_iso_timestamp

TITLE_PREFIX = "Test decision"
FIXED_NOW = datetime(2026, 1, 19, 12, 0, tzinfo=timezone.utc)
PER_CATEGORY = 5
COMPLETED_PER_CATEGORY = 3

TAGS_BY_CATEGORY = {
    "invest": ["risk", "entry", "stop-loss", "timing", "indicator", "position"],
    "health": ["routine", "sleep", "exercise", "diet", "recovery", "energy"],
    "study": ["focus", "plan", "review", "flow", "notes", "goal"],
    "shopping": ["price", "comparison", "need", "impulse", "reviews", "value"],
    "career": ["priority", "feedback", "performance", "leadership", "teamwork", "growth"],
    "daily": ["habit", "tidying", "journaling", "schedule", "slack", "productivity"],
    "relationship": ["talk", "care", "conflict", "listening", "promise", "emotion"],
}

NOTES_BY_CATEGORY = {
    "invest": [
        "Wrote down the entry reason and the stop-loss level.",
        "Considered the risk, but volatility was high.",
        "Followed the market trend.",
    ],
    "health": [
        "Adjusted intensity to how I felt.",
        "Something got in the way of the routine.",
        "Kept up a small habit.",
    ],
    "study": [
        "Used the hours I focus best.",
        "Left enough time for review.",
        "Progress was slower than planned.",
    ],
    "shopping": [
        "Compared before buying, still not what I expected.",
        "Feelings came before need.",
        "Chose based on reviews.",
    ],
    "career": [
        "Re-ordered priorities before deciding.",
        "Took feedback on board.",
        "Collaboration brought surprises.",
    ],
    "daily": [
        "Cleared the schedule to make some room.",
        "An unexpected change came up.",
        "Checked the flow by keeping notes.",
    ],
    "relationship": [
        "Listened to their side and adjusted.",
        "Reacted emotionally, which I regret.",
        "Cleared up a misunderstanding by talking.",
    ],
}

RESULT_WEIGHTS = {
    "invest": [("positive", 45), ("neutral", 25), ("negative", 30)],
    "health": [("positive", 55), ("neutral", 25), ("negative", 20)],
    "study": [("positive", 50), ("neutral", 30), ("negative", 20)],
    "shopping": [("positive", 40), ("neutral", 25), ("negative", 35)],
    "career": [("positive", 45), ("neutral", 35), ("negative", 20)],
    "daily": [("positive", 50), ("neutral", 30), ("negative", 20)],
    "relationship": [("positive", 45), ("neutral", 30), ("negative", 25)],
}


def weighted_pick(rng: random.Random, items: List[tuple]):
    values = [value for value, _ in items]
    weights = [weight for _, weight in items]
    return rng.choices(values, weights=weights, k=1)[0]


def pick_recent_offset(rng: random.Random) -> int:
    """Days back from the reference time, biased towards the last few days."""
    low, high = weighted_pick(rng, [
        ((0, 2), 45),
        ((3, 6), 35),
        ((7, 14), 15),
        ((15, 28), 5),
    ])
    return rng.randint(low, high)


def invest_meta(rng: random.Random) -> Dict:
    entry = round(rng.uniform(50, 150), 2)
    exit_price = round(entry * rng.uniform(0.85, 1.15), 2)
    return with_return_rate({
        "action": rng.choice(["buy", "sell"]),
        "entryPrice": entry,
        "exitPrice": exit_price,
    })


def build_decisions(user_id: str, rng: random.Random, now: datetime = FIXED_NOW) -> List[Decision]:
    decisions = []
    for idx, category_id in enumerate(WELL_KNOWN_CATEGORIES):
        offsets = [n + pick_recent_offset(rng) for n in range(PER_CATEGORY)]
        for i in range(PER_CATEGORY):
            completed = i < COMPLETED_PER_CATEGORY
            day = now - timedelta(days=offsets[i] + idx)
            created = day.replace(hour=rng.randint(7, 22), minute=rng.randint(0, 59), second=0, microsecond=0)
            resolved = created + timedelta(hours=rng.randint(2, 48)) if completed else None

            meta = invest_meta(rng) if category_id == "invest" else {}
            if completed and rng.random() > 0.25:
                meta["reflection"] = "Sample reflection."
                meta["reflectionPrompt"] = "Was the reasoning solid enough?"

            tags = rng.sample(TAGS_BY_CATEGORY[category_id], 2 + (i % 2))
            decisions.append(Decision(
                id=str(uuid.uuid4()),
                user_id=user_id,
                category_id=category_id,
                title=f"{TITLE_PREFIX} - {category_id} {i + 1}",
                notes=rng.choice(NOTES_BY_CATEGORY[category_id]),
                tags=tags,
                confidence=rng.randint(2, 5) if completed else rng.randint(2, 4),
                result=weighted_pick(rng, RESULT_WEIGHTS[category_id]) if completed else "pending",
                meta=meta or None,
                created_at=to_iso_timestamp(created),
                resolved_at=to_iso_timestamp(resolved) if resolved else None,
            ))
    return decisions


def clear_seeded(store, user_id: str) -> int:
    removed = 0
    for decision in store.list(user_id):
        if decision.title.startswith(TITLE_PREFIX):
            store.remove(user_id, decision.id)
            removed += 1
    return removed


def main():
    parser = argparse.ArgumentParser(description="Seed sample decisions for one user")
    parser.add_argument("user_id", help="User id the decisions belong to")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for repeatable data")
    args = parser.parse_args()

    store = create_decision_store(settings)
    rng = random.Random(args.seed)

    removed = clear_seeded(store, args.user_id)
    decisions = build_decisions(args.user_id, rng)
    for decision in decisions:
        store.insert(decision)

    print(f"Removed {removed} previously seeded decisions")
    print(f"Inserted {len(decisions)} decisions for {args.user_id} ({store.backend} store)")


if __name__ == "__main__":
    main()
