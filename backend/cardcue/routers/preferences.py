from fastapi import APIRouter, Depends, HTTPException

from cardcue.dependencies import get_preferences
from cardcue.models.preferences import (
    SessionCount,
    SettingUpdate,
    StudySettings,
    ViewModeUpdate,
)
from cardcue.services.preferences import PreferencesStore

router = APIRouter()


@router.get("/", response_model=StudySettings, response_model_by_alias=True)
async def get_settings(prefs: PreferencesStore = Depends(get_preferences)):
    return prefs.settings


@router.put("/", response_model=StudySettings, response_model_by_alias=True)
async def update_setting(
    body: SettingUpdate, prefs: PreferencesStore = Depends(get_preferences)
):
    try:
        await prefs.set_setting(body.key, body.value)
    except KeyError:
        raise HTTPException(404, f"Unknown setting: {body.key}")
    return prefs.settings


@router.get("/view-mode", response_model=ViewModeUpdate)
async def get_view_mode(prefs: PreferencesStore = Depends(get_preferences)):
    return ViewModeUpdate(mode=await prefs.get_view_mode())


@router.put("/view-mode", response_model=ViewModeUpdate)
async def set_view_mode(
    body: ViewModeUpdate, prefs: PreferencesStore = Depends(get_preferences)
):
    await prefs.set_view_mode(body.mode)
    return body


@router.get("/sessions", response_model=SessionCount)
async def session_count(prefs: PreferencesStore = Depends(get_preferences)):
    return SessionCount(count=await prefs.get_session_count())
