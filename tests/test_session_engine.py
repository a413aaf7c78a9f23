"""Tests for the study session state machine."""

import pytest

from cardcue.models.deck import Deck
from cardcue.models.preferences import StudySettings
from cardcue.services.session_engine import (
    EmptyPoolError,
    SessionError,
    SessionState,
    StudySession,
)
from tests.factories import make_flashcard, make_mcq


@pytest.fixture
async def deck_cards(store):
    cards = [make_flashcard("f1"), make_flashcard("f2"), make_mcq("q1", correct=1)]
    await store.replace(Deck(cards=cards))
    return cards


@pytest.fixture
def session(store, preferences):
    return StudySession(store, preferences)


async def test_new_session_is_idle(session):
    assert session.state is SessionState.IDLE
    assert session.current() is None


async def test_empty_pool_fails_without_state_change(session, preferences):
    with pytest.raises(EmptyPoolError, match="No cards match"):
        await session.start([])
    assert session.state is SessionState.IDLE
    assert await preferences.get_session_count() == 0


async def test_start_resets_run_and_counts_session(session, deck_cards, preferences):
    await session.start(deck_cards)
    assert session.state is SessionState.ACTIVE
    assert (session.idx, session.correct, session.wrongs) == (0, 0, [])
    assert session.current() is deck_cards[0]
    await session.start(deck_cards[:1])
    assert await preferences.get_session_count() == 2


async def test_advance_lands_on_completion_sentinel(session, deck_cards):
    await session.start(deck_cards)
    for _ in range(3):
        session.advance()
    assert session.idx == 3
    assert session.state is SessionState.COMPLETE
    assert session.current() is None
    session.advance()
    assert session.idx == 3


async def test_grade_updates_score_without_advancing(session, deck_cards):
    await session.start(deck_cards)
    result = await session.grade(deck_cards[0], True)
    assert result.ok
    await session.grade(deck_cards[0], False)
    assert session.idx == 0
    assert session.correct == 1
    assert session.wrongs == [deck_cards[0]]
    assert deck_cards[0].stats.seen == 2


async def test_grade_while_idle_is_rejected(session, deck_cards):
    with pytest.raises(SessionError):
        await session.grade(deck_cards[0], True)


async def test_requeue_appends_at_end(session, deck_cards):
    await session.start(deck_cards)
    session.advance()
    session.requeue(deck_cards[1])
    assert len(session.pool) == 4
    assert session.pool[-1] is deck_cards[1]
    assert session.pool[:3] == deck_cards
    assert session.summary().total == 4


async def test_start_copies_the_pool(session, deck_cards):
    pool = list(deck_cards)
    await session.start(pool)
    session.requeue(deck_cards[0])
    assert len(pool) == 3


async def test_miss_grades_requeues_and_advances(session, deck_cards):
    await session.start(deck_cards)
    await session.miss(deck_cards[0])
    assert session.idx == 1
    assert session.pool[-1] is deck_cards[0]
    assert session.wrongs == [deck_cards[0]]


async def test_redo_wrongs_starts_from_missed_cards(session, deck_cards):
    await session.start(deck_cards)
    await session.grade(deck_cards[0], False)
    session.advance()
    await session.grade(deck_cards[1], True)
    session.end()
    assert session.state is SessionState.COMPLETE

    session.redo_wrongs()
    assert session.state is SessionState.ACTIVE
    assert session.pool == [deck_cards[0]]
    assert (session.idx, session.correct, session.wrongs) == (0, 0, [])


async def test_redo_wrongs_requires_completion_and_misses(session, deck_cards):
    await session.start(deck_cards)
    await session.grade(deck_cards[0], False)
    with pytest.raises(SessionError):
        session.redo_wrongs()
    await session.start(deck_cards)
    session.end()
    with pytest.raises(SessionError):
        session.redo_wrongs()


async def test_previous_steps_back(session, deck_cards):
    await session.start(deck_cards)
    session.previous()
    assert session.idx == 0
    session.end()
    session.previous()
    assert session.idx == 2
    assert session.state is SessionState.ACTIVE


async def test_grade_choice_uses_numeric_index(session, deck_cards):
    mcq = deck_cards[2]
    await session.start([mcq])
    is_correct, _ = await session.grade_choice(mcq, "b")
    assert is_correct
    is_correct, _ = await session.grade_choice(mcq, "A")
    assert not is_correct
    with pytest.raises(ValueError):
        await session.grade_choice(mcq, "E")


async def test_should_auto_advance(session, deck_cards):
    await session.start(deck_cards)
    on = StudySettings(auto_advance_on_correct=True)
    assert session.should_auto_advance(True, on)
    assert not session.should_auto_advance(False, on)
    assert not session.should_auto_advance(True, StudySettings())
    session.advance()
    session.advance()
    assert not session.should_auto_advance(True, on)


async def test_cards_outside_the_pool_are_rejected(session, deck_cards):
    await session.start(deck_cards[:1])
    with pytest.raises(SessionError, match="not in this session"):
        await session.grade(deck_cards[1], True)
    with pytest.raises(SessionError):
        session.requeue(deck_cards[2])
    assert session.correct == 0
    assert deck_cards[1].stats.seen == 0
    assert session.summary().total == 1
