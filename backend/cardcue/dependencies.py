from fastapi import Request

from cardcue.services.deck_store import DeckStore
from cardcue.services.preferences import PreferencesStore
from cardcue.services.session_engine import StudySession


def get_deck_store(request: Request) -> DeckStore:
    return request.app.state.deck_store


def get_preferences(request: Request) -> PreferencesStore:
    return request.app.state.preferences


def get_session(request: Request) -> StudySession:
    return request.app.state.session
