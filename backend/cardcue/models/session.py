from __future__ import annotations

from pydantic import BaseModel, Field

from cardcue.models.card import Card
from cardcue.models.deck import DeckFilter


class SessionStatus(BaseModel):
    state: str              # idle | active | complete
    idx: int
    total: int
    correct: int
    wrongs: int
    card: Card | None = None


class StartRequest(DeckFilter):
    size: int | None = Field(default=None, ge=1)


class GradeRequest(BaseModel):
    card_id: str
    is_correct: bool


class AnswerRequest(BaseModel):
    card_id: str
    letter: str = Field(pattern=r"^[A-Da-d]$")


class CardRef(BaseModel):
    card_id: str


class GradeResult(BaseModel):
    card_id: str
    is_correct: bool
    interval_days: int
    next_due: int
    auto_advance: bool
    persisted: bool
    session: SessionStatus
