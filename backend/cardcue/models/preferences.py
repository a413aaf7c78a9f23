from pydantic import BaseModel

from cardcue.models.card import CamelModel

DEFAULT_VIEW_MODE = "single"


class StudySettings(CamelModel):
    show_explanation_by_default: bool = False
    auto_advance_on_correct: bool = False


class SettingUpdate(BaseModel):
    key: str
    value: bool


class ViewModeUpdate(BaseModel):
    mode: str


class SessionCount(BaseModel):
    count: int
