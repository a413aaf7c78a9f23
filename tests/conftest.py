import pytest
from fastapi.testclient import TestClient

from cardcue import create_app
from cardcue.config import settings
from cardcue.db import init_all_databases
from cardcue.services.deck_store import DeckStore
from cardcue.services.preferences import PreferencesStore


@pytest.fixture
def data_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "data_dir", tmp_path)
    return tmp_path


@pytest.fixture
async def db_ready(data_dir):
    await init_all_databases(data_dir)
    return data_dir


@pytest.fixture
async def store(db_ready):
    s = DeckStore()
    await s.load()
    return s


@pytest.fixture
async def preferences(db_ready):
    p = PreferencesStore()
    await p.load_settings()
    return p


@pytest.fixture
def client(data_dir):
    with TestClient(create_app()) as c:
        yield c
