from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cardcue.config import settings
from cardcue.db import init_all_databases


@asynccontextmanager
async def lifespan(app: FastAPI):
    from cardcue.services.deck_store import DeckStore
    from cardcue.services.preferences import PreferencesStore
    from cardcue.services.session_engine import StudySession

    await init_all_databases(settings.data_dir)

    store = DeckStore()
    await store.load()
    preferences = PreferencesStore()
    await preferences.load_settings()

    app.state.deck_store = store
    app.state.preferences = preferences
    app.state.session = StudySession(store, preferences)
    yield


def create_app() -> FastAPI:
    application = FastAPI(title="CardCue Backend", version="0.1.0", lifespan=lifespan)

    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from cardcue.routers import deck, health, preferences, study

    application.include_router(health.router)
    application.include_router(deck.router, prefix="/deck", tags=["deck"])
    application.include_router(study.router, prefix="/study", tags=["study"])
    application.include_router(
        preferences.router, prefix="/settings", tags=["settings"]
    )

    return application


app = create_app()
