"""
Study session router.

Endpoints:
  GET  /study/             - current session state
  POST /study/start        - build a pool from filters and start a session
  POST /study/redo-wrongs  - restart with the cards missed in the last run
  POST /study/grade        - record a correct/incorrect attempt
  POST /study/answer       - grade an MCQ by chosen letter
  POST /study/miss         - flashcard missed: grade wrong, requeue, advance
  POST /study/advance      - next card (or the summary)
  POST /study/previous     - back one card
  POST /study/requeue      - show a card again at the end of the pool
  POST /study/end          - jump to the summary
"""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from cardcue.config import settings
from cardcue.dependencies import get_deck_store, get_preferences, get_session
from cardcue.models.card import Card, McqCard
from cardcue.models.deck import PersistResult
from cardcue.models.session import (
    AnswerRequest,
    CardRef,
    GradeRequest,
    GradeResult,
    SessionStatus,
    StartRequest,
)
from cardcue.services.deck_store import DeckStore
from cardcue.services.filter_engine import filter_deck
from cardcue.services.preferences import PreferencesStore
from cardcue.services.session_engine import SessionError, StudySession

logger = logging.getLogger(__name__)
router = APIRouter()


def _card_or_404(store: DeckStore, card_id: str) -> Card:
    card = store.get_card(card_id)
    if not card:
        raise HTTPException(status_code=404, detail="Card not found")
    return card


def _grade_result(
    card: Card,
    is_correct: bool,
    persisted: PersistResult,
    session: StudySession,
    preferences: PreferencesStore,
) -> GradeResult:
    if not persisted.ok:
        logger.warning("Grade for %s not saved: %s", card.id, persisted.error)
    return GradeResult(
        card_id=card.id,
        is_correct=is_correct,
        interval_days=card.sr.interval_days,
        next_due=card.sr.next_due,
        auto_advance=session.should_auto_advance(is_correct, preferences.settings),
        persisted=persisted.ok,
        session=session.summary(),
    )


@router.get("/", response_model=SessionStatus)
async def session_status(session: StudySession = Depends(get_session)) -> SessionStatus:
    return session.summary()


@router.post("/start", response_model=SessionStatus)
async def start_session(
    body: StartRequest,
    store: DeckStore = Depends(get_deck_store),
    session: StudySession = Depends(get_session),
) -> SessionStatus:
    criteria = body.model_copy(
        update={"limit": body.limit or body.size or settings.default_session_size}
    )
    pool = filter_deck(store.cards, criteria)
    try:
        await session.start(pool)
    except SessionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return session.summary()


@router.post("/redo-wrongs", response_model=SessionStatus)
async def redo_wrongs(session: StudySession = Depends(get_session)) -> SessionStatus:
    try:
        session.redo_wrongs()
    except SessionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return session.summary()


@router.post("/grade", response_model=GradeResult)
async def grade_card(
    body: GradeRequest,
    store: DeckStore = Depends(get_deck_store),
    session: StudySession = Depends(get_session),
    preferences: PreferencesStore = Depends(get_preferences),
) -> GradeResult:
    card = _card_or_404(store, body.card_id)
    try:
        persisted = await session.grade(card, body.is_correct)
    except SessionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return _grade_result(card, body.is_correct, persisted, session, preferences)


@router.post("/answer", response_model=GradeResult)
async def answer_mcq(
    body: AnswerRequest,
    store: DeckStore = Depends(get_deck_store),
    session: StudySession = Depends(get_session),
    preferences: PreferencesStore = Depends(get_preferences),
) -> GradeResult:
    card = _card_or_404(store, body.card_id)
    if not isinstance(card, McqCard):
        raise HTTPException(status_code=422, detail="Card is not a multiple-choice question")
    try:
        is_correct, persisted = await session.grade_choice(card, body.letter)
    except SessionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return _grade_result(card, is_correct, persisted, session, preferences)


@router.post("/miss", response_model=GradeResult)
async def miss_card(
    body: CardRef,
    store: DeckStore = Depends(get_deck_store),
    session: StudySession = Depends(get_session),
    preferences: PreferencesStore = Depends(get_preferences),
) -> GradeResult:
    card = _card_or_404(store, body.card_id)
    try:
        persisted = await session.miss(card)
    except SessionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return _grade_result(card, False, persisted, session, preferences)


@router.post("/advance", response_model=SessionStatus)
async def advance(session: StudySession = Depends(get_session)) -> SessionStatus:
    try:
        session.advance()
    except SessionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return session.summary()


@router.post("/previous", response_model=SessionStatus)
async def previous(session: StudySession = Depends(get_session)) -> SessionStatus:
    try:
        session.previous()
    except SessionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return session.summary()


@router.post("/requeue", response_model=SessionStatus)
async def requeue(
    body: CardRef,
    store: DeckStore = Depends(get_deck_store),
    session: StudySession = Depends(get_session),
) -> SessionStatus:
    card = _card_or_404(store, body.card_id)
    try:
        session.requeue(card)
    except SessionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return session.summary()


@router.post("/end", response_model=SessionStatus)
async def end_session(session: StudySession = Depends(get_session)) -> SessionStatus:
    try:
        session.end()
    except SessionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return session.summary()
