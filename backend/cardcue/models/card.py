from __future__ import annotations

import uuid
from collections.abc import Mapping
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

LETTERS = ("A", "B", "C", "D")
LETTER_TO_INDEX = {letter: i for i, letter in enumerate(LETTERS)}


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def new_card_id() -> str:
    return uuid.uuid4().hex[:8]


def letter_to_index(letter: Any) -> int:
    """Map ``A``-``D`` (any case, surrounding blanks ignored) to 0-3; anything else is 0."""
    if not isinstance(letter, str):
        return 0
    return LETTER_TO_INDEX.get(letter.strip().upper(), 0)


def split_topics(value: str) -> list[str]:
    return [t.strip() for t in value.replace(";", ",").split(",") if t.strip()]


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _as_count(value: Any) -> int:
    try:
        n = int(value)
    except (TypeError, ValueError, OverflowError):
        return 0
    return max(0, n)


class CardType(str, Enum):
    FLASHCARD = "flashcard"
    MCQ = "mcq"


class CamelModel(BaseModel):
    """Base for records stored verbatim in the durable deck (camelCase keys)."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="ignore"
    )


class CardStats(CamelModel):
    seen: int = 0
    correct: int = 0
    streak: int = 0
    last_seen: str | None = None

    @field_validator("seen", "correct", "streak", mode="before")
    @classmethod
    def _counts(cls, v: Any) -> int:
        return _as_count(v)

    @field_validator("last_seen", mode="before")
    @classmethod
    def _timestamp(cls, v: Any) -> str | None:
        return None if v in (None, "") else _as_text(v)

    @model_validator(mode="after")
    def _correct_not_above_seen(self) -> CardStats:
        if self.correct > self.seen:
            self.correct = self.seen
        return self


class CardSchedule(CamelModel):
    interval_days: int = 0
    next_due: int = 0       # epoch ms; 0 = due immediately
    last_reviewed: int = 0  # epoch ms

    @field_validator("interval_days", "next_due", "last_reviewed", mode="before")
    @classmethod
    def _ints(cls, v: Any) -> int:
        return _as_count(v)


class CardBase(CamelModel):
    id: str
    topics: list[str] = Field(default_factory=list)
    explanation: str = ""
    stats: CardStats = Field(default_factory=CardStats)
    sr: CardSchedule = Field(default_factory=CardSchedule)

    @field_validator("id", "explanation", mode="before")
    @classmethod
    def _text(cls, v: Any) -> str:
        return _as_text(v)

    @field_validator("topics", mode="before")
    @classmethod
    def _topics(cls, v: Any) -> list[str]:
        if isinstance(v, str):
            raw = split_topics(v)
        elif isinstance(v, (list, tuple, set, frozenset)):
            raw = [_as_text(t).strip() for t in v]
        else:
            raw = []
        return list(dict.fromkeys(t for t in raw if t))

    @field_validator("stats", "sr", mode="before")
    @classmethod
    def _substructure(cls, v: Any) -> Any:
        return v if isinstance(v, (Mapping, BaseModel)) else {}


class Flashcard(CardBase):
    type: Literal["flashcard"] = "flashcard"
    front: str = ""
    back: str = ""

    @field_validator("front", "back", mode="before")
    @classmethod
    def _sides(cls, v: Any) -> str:
        return _as_text(v)

    @property
    def prompt(self) -> str:
        return self.front


class McqCard(CardBase):
    type: Literal["mcq"] = "mcq"
    question: str = ""
    choices: list[str] = Field(default_factory=lambda: [""] * 4)
    correct: int = 0
    answer: str | None = None  # legacy letter, kept only for export fidelity

    @field_validator("question", mode="before")
    @classmethod
    def _question(cls, v: Any) -> str:
        return _as_text(v)

    @field_validator("choices", mode="before")
    @classmethod
    def _four_choices(cls, v: Any) -> list[str]:
        items = [_as_text(c) for c in v] if isinstance(v, (list, tuple)) else []
        return (items + [""] * 4)[:4]

    @field_validator("correct", mode="before")
    @classmethod
    def _index(cls, v: Any) -> int:
        if isinstance(v, str) and v.strip().upper() in LETTER_TO_INDEX:
            return letter_to_index(v)
        n = _as_count(v)
        return n if n < len(LETTERS) else 0

    @field_validator("answer", mode="before")
    @classmethod
    def _answer(cls, v: Any) -> str | None:
        return None if v is None else _as_text(v)

    @property
    def prompt(self) -> str:
        return self.question

    @property
    def correct_letter(self) -> str:
        return LETTERS[self.correct]


Card = Annotated[Union[Flashcard, McqCard], Field(discriminator="type")]

_card_adapter: TypeAdapter[Card] = TypeAdapter(Card)


def _migrate_legacy_answer(data: dict[str, Any]) -> None:
    # One-way shim: old MCQ records only carried the letter in ``answer``.
    if data.get("correct") is None and isinstance(data.get("answer"), str):
        data["correct"] = letter_to_index(data["answer"])


def hydrate(raw: Any) -> Card:
    """Return a fully populated card from a partial, legacy or hand-built record.

    Already-hydrated cards are returned as-is, so the function is idempotent.
    Malformed optional fields fall back to empty values instead of raising.
    """
    if isinstance(raw, (Flashcard, McqCard)):
        return raw

    data: dict[str, Any] = dict(raw) if isinstance(raw, Mapping) else {}
    if not data.get("id"):
        data["id"] = new_card_id()

    kind = data.get("type")
    if isinstance(kind, CardType):
        kind = kind.value
    data["type"] = kind if kind in (CardType.FLASHCARD.value, CardType.MCQ.value) else CardType.FLASHCARD.value

    _migrate_legacy_answer(data)
    return _card_adapter.validate_python(data)


def card_to_dict(card: Card) -> dict[str, Any]:
    return card.model_dump(mode="json", by_alias=True)
