from __future__ import annotations

import json
import logging

import aiosqlite
from pydantic.alias_generators import to_camel

from cardcue.config import settings
from cardcue.db.sqlite import get_db, get_record, set_record
from cardcue.models.deck import PersistResult
from cardcue.models.preferences import DEFAULT_VIEW_MODE, StudySettings

logger = logging.getLogger(__name__)


class PreferencesStore:
    """Study settings, view mode and the session counter, each its own record."""

    def __init__(self) -> None:
        self.settings = StudySettings()

    async def _read(self, key: str) -> str | None:
        value = None
        try:
            async for db in get_db():
                value = await get_record(db, key)
        except aiosqlite.Error as e:
            logger.warning("Failed to read %s: %s", key, e)
        return value

    async def _write(self, key: str, value: str) -> PersistResult:
        try:
            async for db in get_db():
                await set_record(db, key, value)
        except (aiosqlite.Error, OSError) as e:
            logger.warning("Failed to write %s: %s", key, e)
            return PersistResult.failure(str(e))
        return PersistResult.success()

    # --- Study settings ---

    async def load_settings(self) -> StudySettings:
        raw = await self._read(settings.settings_key)
        stored: dict = {}
        if raw:
            try:
                loaded = json.loads(raw)
                stored = loaded if isinstance(loaded, dict) else {}
            except ValueError:
                logger.warning("Stored settings unreadable, using defaults")
        merged = StudySettings().model_dump(by_alias=True)
        merged.update(
            {k: bool(v) for k, v in stored.items() if k in merged}
        )
        self.settings = StudySettings.model_validate(merged)
        return self.settings

    async def set_setting(self, key: str, value: object) -> PersistResult:
        """Set one boolean setting by its stored (camelCase) or field name."""
        name = next(
            (n for n in StudySettings.model_fields if key in (n, to_camel(n))),
            None,
        )
        if name is None:
            raise KeyError(key)
        setattr(self.settings, name, bool(value))
        return await self._write(
            settings.settings_key, json.dumps(self.settings.model_dump(by_alias=True))
        )

    # --- View mode ---

    async def get_view_mode(self) -> str:
        return (await self._read(settings.view_mode_key)) or DEFAULT_VIEW_MODE

    async def set_view_mode(self, mode: str) -> PersistResult:
        return await self._write(settings.view_mode_key, mode)

    # --- Session counter ---

    async def get_session_count(self) -> int:
        raw = await self._read(settings.sessions_key)
        try:
            return int(raw or 0)
        except ValueError:
            return 0

    async def increment_session_count(self) -> int:
        count = await self.get_session_count() + 1
        await self._write(settings.sessions_key, str(count))
        return count
