from __future__ import annotations

import logging
from typing import Any

from bounty_board.config import DEFAULT_SEARCH_QUERY
from bounty_board.db import queries
from bounty_board.models.settings import (
    HIDDEN_REPOSITORIES_KEY,
    SEARCH_QUERY_KEY,
    HiddenRepositoriesSetting,
    SearchQuerySetting,
    SettingDecodeError,
    decode_setting,
)

logger = logging.getLogger(__name__)


async def get_search_query() -> str:
    """The stored GitHub search query, or the default when unset or malformed."""
    raw = await queries.get_user_setting(SEARCH_QUERY_KEY)
    if raw is None:
        return DEFAULT_SEARCH_QUERY
    try:
        setting = decode_setting(SEARCH_QUERY_KEY, raw)
    except SettingDecodeError as exc:
        logger.warning("Ignoring stored search query: %s", exc)
        return DEFAULT_SEARCH_QUERY
    return setting.query or DEFAULT_SEARCH_QUERY


async def set_search_query(query: str) -> None:
    await queries.upsert_user_setting(
        SEARCH_QUERY_KEY, SearchQuerySetting(query=query).model_dump()
    )


async def get_all_settings() -> dict[str, Any]:
    stored = await queries.get_all_user_settings()
    # Visibility lives on the repositories table, not in user_settings.
    stored[HIDDEN_REPOSITORIES_KEY] = {
        "repositories": await queries.get_hidden_repositories()
    }
    return stored


async def update_setting(key: str, value: Any) -> tuple[bool, str | None]:
    """Validate and apply one setting. Raises SettingDecodeError on a bad key or shape.

    Returns ``(success, message)``.
    """
    setting = decode_setting(key, value)

    if isinstance(setting, HiddenRepositoriesSetting):
        return await _apply_hidden_repositories(setting)

    await queries.upsert_user_setting(key, setting.model_dump())
    return True, None


async def _apply_hidden_repositories(
    setting: HiddenRepositoriesSetting,
) -> tuple[bool, str | None]:
    hidden = set(setting.repositories)
    if setting.repository_name:
        found = await queries.update_repository_hidden_status(
            setting.repository_name, setting.repository_name in hidden
        )
        if not found:
            return False, "Repository not found"
        return True, None

    available = await queries.get_available_repositories()
    await queries.update_multiple_repositories_hidden_status(
        [(name, name in hidden) for name in available]
    )
    logger.info("Updated hidden status for %d repositories", len(available))
    return True, None
