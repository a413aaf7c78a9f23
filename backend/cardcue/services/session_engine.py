"""
Study session state machine.

    idle --start(pool)--> active --advance() at last card--> complete
    complete --redo_wrongs()--> active (pool = previous wrongs)
    complete --start(pool)--> active

Completion is ``idx == len(pool)``: one past the last card, where a summary is
shown instead of a card. ``requeue`` may grow the pool while a session runs.
"""
from __future__ import annotations

import logging
from enum import Enum

from cardcue.models.card import LETTERS, Card, McqCard
from cardcue.models.deck import PersistResult
from cardcue.models.preferences import StudySettings
from cardcue.models.session import SessionStatus
from cardcue.services.deck_store import DeckStore
from cardcue.services.preferences import PreferencesStore

logger = logging.getLogger(__name__)


class SessionError(Exception):
    pass


class EmptyPoolError(SessionError):
    def __init__(self) -> None:
        super().__init__("No cards match your filters.")


class SessionState(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"
    COMPLETE = "complete"


class StudySession:
    def __init__(
        self, store: DeckStore, preferences: PreferencesStore | None = None
    ) -> None:
        self.store = store
        self.preferences = preferences
        self.pool: list[Card] = []
        self.idx = 0
        self.correct = 0
        self.wrongs: list[Card] = []
        self._started = False

    @property
    def state(self) -> SessionState:
        if not self._started:
            return SessionState.IDLE
        if self.idx >= len(self.pool):
            return SessionState.COMPLETE
        return SessionState.ACTIVE

    def _begin(self, pool: list[Card]) -> None:
        self.pool = list(pool)
        self.idx = 0
        self.correct = 0
        self.wrongs = []
        self._started = True

    def _require(self, *states: SessionState) -> None:
        if self.state not in states:
            raise SessionError(f"not allowed while session is {self.state.value}")

    def _require_in_pool(self, card: Card) -> None:
        if not any(c.id == card.id for c in self.pool):
            raise SessionError(f"card {card.id} is not in this session")

    async def start(self, pool: list[Card]) -> None:
        if not pool:
            raise EmptyPoolError()
        self._begin(pool)
        if self.preferences is not None:
            await self.preferences.increment_session_count()
        logger.debug("Session started with %d cards", len(pool))

    def redo_wrongs(self) -> None:
        self._require(SessionState.COMPLETE)
        if not self.wrongs:
            raise SessionError("no missed cards to redo")
        self._begin(self.wrongs)

    def current(self) -> Card | None:
        if self.state is not SessionState.ACTIVE:
            return None
        return self.pool[self.idx]

    async def grade(self, card: Card, is_correct: bool) -> PersistResult:
        """Schedule ``card`` and update the run's score. Does not move ``idx``."""
        self._require(SessionState.ACTIVE)
        self._require_in_pool(card)
        result = await self.store.record_result(card, is_correct)
        if is_correct:
            self.correct += 1
        else:
            self.wrongs.append(card)
        return result

    async def grade_choice(self, card: McqCard, letter: str) -> tuple[bool, PersistResult]:
        letter = letter.strip().upper()
        if letter not in LETTERS:
            raise ValueError(f"choice must be one of {', '.join(LETTERS)}")
        is_correct = LETTERS.index(letter) == card.correct
        return is_correct, await self.grade(card, is_correct)

    async def miss(self, card: Card) -> PersistResult:
        """Flashcard "missed": grade wrong, see it again at the end, move on."""
        result = await self.grade(card, False)
        self.requeue(card)
        self.advance()
        return result

    def advance(self) -> None:
        self._require(SessionState.ACTIVE, SessionState.COMPLETE)
        if self.idx < len(self.pool) - 1:
            self.idx += 1
        else:
            self.idx = len(self.pool)

    def previous(self) -> None:
        self._require(SessionState.ACTIVE, SessionState.COMPLETE)
        if self.idx > 0:
            self.idx -= 1

    def end(self) -> None:
        self._require(SessionState.ACTIVE, SessionState.COMPLETE)
        self.idx = len(self.pool)

    def requeue(self, card: Card) -> None:
        self._require(SessionState.ACTIVE)
        self._require_in_pool(card)
        self.pool.append(card)

    def should_auto_advance(self, is_correct: bool, prefs: StudySettings) -> bool:
        return (
            prefs.auto_advance_on_correct
            and is_correct
            and self.idx < len(self.pool) - 1
        )

    def summary(self) -> SessionStatus:
        return SessionStatus(
            state=self.state.value,
            idx=self.idx,
            total=len(self.pool),
            correct=self.correct,
            wrongs=len(self.wrongs),
            card=self.current(),
        )
