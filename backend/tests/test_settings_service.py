import pytest

from bounty_board.config import DEFAULT_SEARCH_QUERY
from bounty_board.db import queries
from bounty_board.models.settings import (
    DisplayPreferencesSetting,
    SearchQuerySetting,
    SettingDecodeError,
    decode_setting,
)
from bounty_board.services import settings_service


def test_decode_known_settings():
    assert decode_setting("search_query", {"query": "label:bounty"}) == SearchQuerySetting(
        query="label:bounty"
    )
    prefs = decode_setting("display_preferences", {"theme": "dark", "compact": True})
    assert isinstance(prefs, DisplayPreferencesSetting)
    assert prefs.model_dump() == {"theme": "dark", "compact": True}


@pytest.mark.parametrize(
    "key, value",
    [
        ("favourite_color", {"value": "blue"}),
        ("search_query", "label:bounty"),
        ("search_query", {"query": "x", "extra": 1}),
        ("search_query", {}),
        ("hidden_repositories", {"repositories": "acme/widgets"}),
    ],
)
def test_decode_rejects_bad_settings(key, value):
    with pytest.raises(SettingDecodeError) as exc_info:
        decode_setting(key, value)
    assert exc_info.value.key == key


@pytest.mark.asyncio
async def test_search_query_default_and_override(db):
    assert await settings_service.get_search_query() == DEFAULT_SEARCH_QUERY

    await settings_service.set_search_query("label:reward")
    assert await settings_service.get_search_query() == "label:reward"

    await settings_service.set_search_query("")
    assert await settings_service.get_search_query() == DEFAULT_SEARCH_QUERY


@pytest.mark.asyncio
async def test_update_setting_stores_value(db):
    success, message = await settings_service.update_setting(
        "display_preferences", {"theme": "dark"}
    )
    assert success is True
    assert message is None
    assert await queries.get_user_setting("display_preferences") == {"theme": "dark"}


@pytest.mark.asyncio
async def test_update_setting_rejects_unknown_key(db):
    with pytest.raises(SettingDecodeError):
        await settings_service.update_setting("nope", {"a": 1})
    assert await queries.get_all_user_settings() == {}


@pytest.mark.asyncio
async def test_hide_single_repository(seeded_db):
    success, _ = await settings_service.update_setting(
        "hidden_repositories",
        {"repositories": ["acme/widgets"], "repository_name": "acme/widgets"},
    )
    assert success is True
    assert await queries.get_hidden_repositories() == ["acme/secret", "acme/widgets"]

    success, message = await settings_service.update_setting(
        "hidden_repositories", {"repositories": [], "repository_name": "ghost/repo"}
    )
    assert success is False
    assert message == "Repository not found"


@pytest.mark.asyncio
async def test_hidden_repositories_bulk_replace(seeded_db):
    success, _ = await settings_service.update_setting(
        "hidden_repositories", {"repositories": ["acme/widgets"]}
    )
    assert success is True
    assert await queries.get_hidden_repositories() == ["acme/widgets"]

    all_settings = await settings_service.get_all_settings()
    assert all_settings["hidden_repositories"] == {"repositories": ["acme/widgets"]}
