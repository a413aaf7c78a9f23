"""
Deck Store: the in-memory deck plus its durable snapshot.

All mutations go through ``mutate()`` so that they are serialised by one lock,
followed by a topic index rebuild and a single whole-deck write. A failed write
never raises: the in-memory deck stays authoritative and the caller gets a
``PersistResult`` to decide whether to show a notice.
"""
from __future__ import annotations

import asyncio
import json
import logging
import math
from collections.abc import Callable
from datetime import datetime
from typing import TypeVar

import aiosqlite

from cardcue.config import settings
from cardcue.db.sqlite import get_db, get_record, set_record
from cardcue.models.card import Card, CardType, utc_now_iso
from cardcue.models.deck import (
    Deck,
    DeckOverview,
    PersistResult,
    ReviewRow,
    TopicCount,
)
from cardcue.services.scheduler import apply_grade, is_due, now_ms

logger = logging.getLogger(__name__)

T = TypeVar("T")
ChangeListener = Callable[[Deck], None]

PROMPT_PREVIEW_CHARS = 160


def new_deck() -> Deck:
    return Deck()


def build_topic_index(deck: Deck) -> dict[str, list[str]]:
    index: dict[str, list[str]] = {}
    for card in deck.cards:
        for topic in card.topics:
            index.setdefault(topic, []).append(card.id)
    deck.topic_index = index
    return index


def accuracy_pct(correct: int, seen: int) -> int:
    return math.floor(100 * correct / seen + 0.5) if seen else 0


class DeckStore:
    def __init__(self, key: str | None = None) -> None:
        self.key = key or settings.deck_key
        self.deck: Deck = new_deck()
        self._lock = asyncio.Lock()
        self._listeners: list[ChangeListener] = []

    @property
    def cards(self) -> list[Card]:
        return self.deck.cards

    # --- Durable snapshot ---

    async def load(self) -> Deck:
        """Read the durable deck. Missing or corrupt snapshots yield an empty deck."""
        try:
            async for db in get_db():
                raw = await get_record(db, self.key)
            if raw is None:
                deck = new_deck()
            else:
                deck = Deck.model_validate(json.loads(raw))
        except (ValueError, TypeError, OverflowError, aiosqlite.Error) as e:
            logger.warning("Stored deck %s unreadable, starting empty: %s", self.key, e)
            deck = new_deck()
        build_topic_index(deck)
        self.deck = deck
        return deck

    async def persist(self) -> PersistResult:
        async with self._lock:
            return await self._persist()

    async def _persist(self) -> PersistResult:
        self.deck.updated_at = utc_now_iso()
        payload = json.dumps(self.deck.model_dump(mode="json", by_alias=True), ensure_ascii=False)
        try:
            async for db in get_db():
                await set_record(db, self.key, payload)
            result = PersistResult.success()
        except (aiosqlite.Error, OSError) as e:
            logger.warning("Deck write failed; keeping in-memory state: %s", e)
            result = PersistResult.failure(str(e))
        self._notify()
        return result

    # --- Mutation ---

    async def mutate(self, change: Callable[[Deck], T]) -> tuple[T, PersistResult]:
        """Apply ``change`` to the deck, rebuild the topic index and persist once."""
        async with self._lock:
            value = change(self.deck)
            build_topic_index(self.deck)
            return value, await self._persist()

    async def replace(self, deck: Deck) -> PersistResult:
        async with self._lock:
            self.deck = deck
            build_topic_index(self.deck)
            logger.info("Deck replaced (%d cards)", len(deck.cards))
            return await self._persist()

    async def clear(self) -> PersistResult:
        return await self.replace(new_deck())

    async def record_result(
        self, card: Card, is_correct: bool, now: datetime | None = None
    ) -> PersistResult:
        _, result = await self.mutate(lambda _deck: apply_grade(card, is_correct, now))
        return result

    async def reset_progress(self) -> PersistResult:
        def _reset(deck: Deck) -> None:
            for card in deck.cards:
                card.stats = type(card.stats)()
                card.sr = type(card.sr)()

        _, result = await self.mutate(_reset)
        return result

    # --- Change notification ---

    def subscribe(self, listener: ChangeListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self.deck)
            except Exception:
                logger.exception("Deck change listener failed")

    # --- Read-only views ---

    def get_card(self, card_id: str) -> Card | None:
        return next((c for c in self.deck.cards if c.id == card_id), None)

    def topics_list(self) -> list[str]:
        return sorted({t for c in self.deck.cards for t in c.topics})

    def overview(self, at_ms: int | None = None) -> DeckOverview:
        at = now_ms() if at_ms is None else at_ms
        cards = self.deck.cards
        seen = sum(c.stats.seen for c in cards)
        correct = sum(c.stats.correct for c in cards)
        return DeckOverview(
            total_cards=len(cards),
            seen=seen,
            correct=correct,
            accuracy_pct=accuracy_pct(correct, seen),
            wrong_cards=sum(1 for c in cards if c.stats.seen > c.stats.correct),
            due_now=sum(1 for c in cards if is_due(c, at)),
            topics=[
                TopicCount(topic=t, count=len(self.deck.topic_index.get(t, [])))
                for t in self.topics_list()
            ],
        )

    def review_rows(self) -> list[ReviewRow]:
        return [
            ReviewRow(
                id=c.id,
                type=CardType(c.type),
                prompt=c.prompt[:PROMPT_PREVIEW_CHARS],
                topics=c.topics,
                seen=c.stats.seen,
                correct=c.stats.correct,
                accuracy_pct=accuracy_pct(c.stats.correct, c.stats.seen),
                streak=c.stats.streak,
            )
            for c in self.deck.cards
        ]
