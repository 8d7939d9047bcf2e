from __future__ import annotations

import logging
from pathlib import Path

import aiosqlite

from bounty_board.config import settings

logger = logging.getLogger(__name__)

MEMORY = ":memory:"

_db: aiosqlite.Connection | None = None
_SCHEMA_PATH = Path(__file__).parent / "schema.sql"


async def init_db(db_path: str | None = None) -> None:
    """Open the shared connection and apply ``schema.sql``.

    ``db_path`` overrides ``settings.db_path``; pass ``":memory:"`` for a
    throwaway store.
    """
    global _db
    if _db is not None:
        await close_db()

    path = db_path or settings.db_path
    if path != MEMORY:
        Path(path).parent.mkdir(parents=True, exist_ok=True)

    _db = await aiosqlite.connect(path)
    _db.row_factory = aiosqlite.Row
    if path != MEMORY:
        await _db.execute("PRAGMA journal_mode=WAL")
    await _db.execute("PRAGMA foreign_keys=ON")
    await _db.executescript(_SCHEMA_PATH.read_text())
    await _db.commit()
    logger.info("Bounty store ready at %s", path)


async def get_db() -> aiosqlite.Connection:
    if _db is None:
        raise RuntimeError("Bounty store not initialized. Call init_db() first.")
    return _db


async def close_db() -> None:
    global _db
    if _db is None:
        return
    await _db.close()
    _db = None
