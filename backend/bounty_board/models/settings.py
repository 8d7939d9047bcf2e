"""Typed variants for the values stored in ``user_settings``.

Each known setting key maps to exactly one pydantic model. Values read from
or written to the store go through :func:`decode_setting`, which rejects
unknown keys and malformed shapes instead of passing raw JSON around.
"""
from __future__ import annotations

from typing import Any, Union

from pydantic import BaseModel, ConfigDict, ValidationError

SEARCH_QUERY_KEY = "search_query"
HIDDEN_REPOSITORIES_KEY = "hidden_repositories"
DISPLAY_PREFERENCES_KEY = "display_preferences"


class SettingDecodeError(ValueError):
    def __init__(self, key: str, message: str) -> None:
        super().__init__(f"{key}: {message}")
        self.key = key
        self.message = message


class SearchQuerySetting(BaseModel):
    model_config = ConfigDict(extra="forbid")

    query: str


class HiddenRepositoriesSetting(BaseModel):
    model_config = ConfigDict(extra="forbid")

    repositories: list[str]
    repository_name: str | None = None


class DisplayPreferencesSetting(BaseModel):
    # Free-form UI preferences; only the top-level object shape is enforced.
    model_config = ConfigDict(extra="allow")


Setting = Union[SearchQuerySetting, HiddenRepositoriesSetting, DisplayPreferencesSetting]

SETTING_TYPES: dict[str, type[BaseModel]] = {
    SEARCH_QUERY_KEY: SearchQuerySetting,
    HIDDEN_REPOSITORIES_KEY: HiddenRepositoriesSetting,
    DISPLAY_PREFERENCES_KEY: DisplayPreferencesSetting,
}


def decode_setting(key: str, value: Any) -> Setting:
    model = SETTING_TYPES.get(key)
    if model is None:
        allowed = ", ".join(sorted(SETTING_TYPES))
        raise SettingDecodeError(key, f"unknown setting key (allowed: {allowed})")
    if not isinstance(value, dict):
        raise SettingDecodeError(key, "setting value must be a JSON object")
    try:
        return model.model_validate(value)
    except ValidationError as exc:
        raise SettingDecodeError(key, str(exc)) from exc
