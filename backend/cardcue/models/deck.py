from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, Field, field_validator

from cardcue.models.card import (
    Card,
    CamelModel,
    CardType,
    Flashcard,
    McqCard,
    hydrate,
    utc_now_iso,
)

DECK_VERSION = 1


class Deck(CamelModel):
    version: int = DECK_VERSION
    created_at: str = Field(default_factory=utc_now_iso)
    updated_at: str = Field(default_factory=utc_now_iso)
    cards: list[Card] = Field(default_factory=list)
    topic_index: dict[str, list[str]] = Field(default_factory=dict)

    @field_validator("version", mode="before")
    @classmethod
    def _version(cls, v: Any) -> int:
        return v if isinstance(v, int) and not isinstance(v, bool) else DECK_VERSION

    @field_validator("created_at", "updated_at", mode="before")
    @classmethod
    def _stamp(cls, v: Any) -> str:
        if v is None or v == "":
            return utc_now_iso()
        return v if isinstance(v, str) else str(v)

    @field_validator("cards", mode="before")
    @classmethod
    def _hydrate_cards(cls, v: Any) -> list[Card]:
        if not isinstance(v, (list, tuple)):
            return []
        by_id: dict[str, Card] = {}
        for raw in v:
            if isinstance(raw, (Mapping, Flashcard, McqCard)):
                card = hydrate(raw)
                by_id[card.id] = card
        return list(by_id.values())

    @field_validator("topic_index", mode="before")
    @classmethod
    def _index(cls, v: Any) -> Any:
        # Derived data; rebuilt by the store after every load.
        return v if isinstance(v, Mapping) else {}


class PersistResult(BaseModel):
    ok: bool
    error: str | None = None

    @classmethod
    def success(cls) -> PersistResult:
        return cls(ok=True)

    @classmethod
    def failure(cls, error: str) -> PersistResult:
        return cls(ok=False, error=error)


class DeckFilter(BaseModel):
    ids: list[str] | None = None
    type: CardType | None = None
    topic: str | None = None
    topics: list[str] | None = None  # any-of
    search: str | None = None
    wrong_only: bool = False
    due_only: bool = False
    shuffle: bool = False
    limit: int | None = Field(default=None, ge=0)


class ImportSummary(BaseModel):
    added: int
    updated: int
    total: int
    skipped_files: list[str] = Field(default_factory=list)
    persisted: bool = True


class TopicCount(BaseModel):
    topic: str
    count: int


class DeckOverview(BaseModel):
    total_cards: int
    seen: int
    correct: int
    accuracy_pct: int
    wrong_cards: int
    due_now: int
    topics: list[TopicCount]


class ReviewRow(BaseModel):
    id: str
    type: CardType
    prompt: str
    topics: list[str]
    seen: int
    correct: int
    accuracy_pct: int
    streak: int
