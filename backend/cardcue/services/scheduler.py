"""
Fixed-table spaced repetition.

The next interval is looked up by the card's current streak instead of growing
with an ease factor: a miss drops the card back to the 1-day step, and a streak
of 3 or more always lands on the last step.
"""
from __future__ import annotations

from datetime import datetime, timezone

from cardcue.models.card import Card

STEPS: tuple[int, ...] = (1, 3, 7, 14)  # days
DAY_MS = 86_400_000


def now_ms() -> int:
    return int(datetime.now(timezone.utc).timestamp() * 1000)


def interval_for_streak(streak: int) -> int:
    return STEPS[min(max(streak, 0), len(STEPS) - 1)]


def apply_grade(card: Card, is_correct: bool, now: datetime | None = None) -> Card:
    """Record one graded attempt on ``card`` and reschedule it, in place."""
    now = now or datetime.now(timezone.utc)
    stats = card.stats
    stats.seen += 1
    if is_correct:
        stats.correct += 1
        stats.streak += 1
    else:
        stats.streak = 0
    stats.last_seen = now.isoformat(timespec="milliseconds").replace("+00:00", "Z")

    days = interval_for_streak(stats.streak)
    reviewed_ms = int(now.timestamp() * 1000)
    card.sr.interval_days = days
    card.sr.last_reviewed = reviewed_ms
    card.sr.next_due = reviewed_ms + days * DAY_MS
    return card


def is_due(card: Card, at_ms: int | None = None) -> bool:
    return card.sr.next_due <= (now_ms() if at_ms is None else at_ms)
