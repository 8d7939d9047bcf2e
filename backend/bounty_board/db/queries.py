from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any

import aiosqlite

from bounty_board.db.connection import get_db
from bounty_board.models.issues import RankedIssue

MIN_SCORE_THRESHOLD = 30


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


# Repositories


async def get_or_create_repository(
    name: str, url: str, language: str | None = None
) -> int:
    """Return the id of the repository called ``name``, creating it if needed.

    An existing repository has its language refreshed when a non-empty
    ``language`` is supplied.
    """
    db = await get_db()
    parts = name.split("/")
    owner = parts[0] or "unknown"
    repo_name = parts[1] if len(parts) > 1 and parts[1] else name

    cursor = await db.execute("SELECT id FROM repositories WHERE name = ?", (name,))
    row = await cursor.fetchone()
    now = _now()
    if row is not None:
        if language:
            await db.execute(
                "UPDATE repositories SET language = ?, updated_at = ? WHERE id = ?",
                (language, now, row["id"]),
            )
            await db.commit()
        return row["id"]

    cursor = await db.execute(
        """INSERT INTO repositories (name, owner, repo_name, language, url,
                                     is_active, created_at, updated_at)
           VALUES (?, ?, ?, ?, ?, 1, ?, ?)""",
        (name, owner, repo_name, language or None, url, now, now),
    )
    await db.commit()
    return cursor.lastrowid


async def get_repository_by_name(name: str) -> aiosqlite.Row | None:
    db = await get_db()
    cursor = await db.execute("SELECT * FROM repositories WHERE name = ?", (name,))
    return await cursor.fetchone()


async def get_all_repositories() -> list[aiosqlite.Row]:
    db = await get_db()
    cursor = await db.execute(
        "SELECT * FROM repositories WHERE is_active = 1 ORDER BY name"
    )
    return await cursor.fetchall()


async def get_available_repositories() -> list[str]:
    db = await get_db()
    cursor = await db.execute(
        "SELECT DISTINCT name FROM repositories WHERE is_active = 1 ORDER BY name"
    )
    return [row["name"] for row in await cursor.fetchall()]


async def get_hidden_repositories() -> list[str]:
    db = await get_db()
    cursor = await db.execute(
        "SELECT name FROM repositories WHERE is_hidden = 1 ORDER BY name"
    )
    return [row["name"] for row in await cursor.fetchall()]


async def update_repository_hidden_status(name: str, is_hidden: bool) -> bool:
    """Returns False when no repository with that name exists."""
    db = await get_db()
    cursor = await db.execute(
        "UPDATE repositories SET is_hidden = ?, updated_at = ? WHERE name = ?",
        (int(is_hidden), _now(), name),
    )
    await db.commit()
    return cursor.rowcount > 0


async def update_multiple_repositories_hidden_status(
    updates: list[tuple[str, bool]],
) -> None:
    db = await get_db()
    now = _now()
    await db.executemany(
        "UPDATE repositories SET is_hidden = ?, updated_at = ? WHERE name = ?",
        [(int(is_hidden), now, name) for name, is_hidden in updates],
    )
    await db.commit()


# Bounty issues


def _issue_params(issue: RankedIssue, repository_id: int, now: str) -> dict[str, Any]:
    return {
        "github_id": issue.id,
        "repository_id": repository_id,
        "number": issue.number or 0,
        "title": issue.title or "Untitled Issue",
        "html_url": issue.html_url or "",
        "body": issue.body or "",
        "state": issue.state or "open",
        "comments": issue.comments or 0,
        "created_at": issue.created_at or now,
        "updated_at": issue.updated_at or now,
        "score": issue.score,
        "has_bounty_label": int(issue.has_bounty_label),
        "has_bounty_comment": int(issue.has_bounty_comment),
        "has_payout_comment": int(issue.has_payout_comment),
        "has_assignment_comment": int(issue.has_assignment_comment),
        "comment_count": issue.comment_count or 0,
        "has_implementation_details": int(issue.has_implementation_details),
        "bounty_value": issue.bounty_value or 0,
        "labels": json.dumps(issue.labels or []),
        "now": now,
    }


async def get_issue_by_github_id(github_id: int) -> aiosqlite.Row | None:
    db = await get_db()
    cursor = await db.execute(
        "SELECT * FROM bounty_issues WHERE github_id = ?", (github_id,)
    )
    return await cursor.fetchone()


async def insert_issue(issue: RankedIssue, repository_id: int) -> None:
    db = await get_db()
    await db.execute(
        """INSERT INTO bounty_issues (
               github_id, repository_id, number, title, html_url, body, state,
               comments, created_at, updated_at, score, has_bounty_label,
               has_bounty_comment, has_payout_comment, has_assignment_comment,
               comment_count, has_implementation_details, bounty_value, labels,
               last_fetched_at, created_local_at, updated_local_at)
           VALUES (
               :github_id, :repository_id, :number, :title, :html_url, :body, :state,
               :comments, :created_at, :updated_at, :score, :has_bounty_label,
               :has_bounty_comment, :has_payout_comment, :has_assignment_comment,
               :comment_count, :has_implementation_details, :bounty_value, :labels,
               :now, :now, :now)""",
        _issue_params(issue, repository_id, _now()),
    )
    await db.commit()


async def update_issue(issue: RankedIssue, repository_id: int) -> None:
    db = await get_db()
    await db.execute(
        """UPDATE bounty_issues SET
               repository_id=:repository_id, number=:number, title=:title,
               html_url=:html_url, body=:body, state=:state, comments=:comments,
               created_at=:created_at, updated_at=:updated_at, score=:score,
               has_bounty_label=:has_bounty_label,
               has_bounty_comment=:has_bounty_comment,
               has_payout_comment=:has_payout_comment,
               has_assignment_comment=:has_assignment_comment,
               comment_count=:comment_count,
               has_implementation_details=:has_implementation_details,
               bounty_value=:bounty_value, labels=:labels,
               last_fetched_at=:now, updated_local_at=:now
           WHERE github_id=:github_id""",
        _issue_params(issue, repository_id, _now()),
    )
    await db.commit()


async def delete_issue_by_github_id(github_id: int) -> int:
    db = await get_db()
    cursor = await db.execute(
        "DELETE FROM bounty_issues WHERE github_id = ?", (github_id,)
    )
    await db.commit()
    return cursor.rowcount


async def remove_low_ranking_issues(min_score: int = MIN_SCORE_THRESHOLD) -> int:
    """Delete every stored issue scoring below ``min_score``. Returns rows deleted."""
    db = await get_db()
    cursor = await db.execute("DELETE FROM bounty_issues WHERE score < ?", (min_score,))
    await db.commit()
    return cursor.rowcount


async def count_issues() -> int:
    db = await get_db()
    cursor = await db.execute("SELECT COUNT(*) FROM bounty_issues")
    row = await cursor.fetchone()
    return row[0] if row else 0


async def search_issues(
    text: str = "",
    repo_filters: list[str] | None = None,
    status_filter: str | None = None,
    limit: int = 30,
    offset: int = 0,
) -> tuple[list[aiosqlite.Row], int]:
    """Search open, visible issues ordered by score.

    ``status_filter`` is ``None`` (hide unwanted), ``"all"``, ``"no_status"``
    or one of the status values.
    """
    db = await get_db()

    where_clauses = ["i.state = 'open'", "r.is_hidden = 0"]
    params: list = []

    if text:
        term = f"%{text}%"
        where_clauses.append(
            "(i.title LIKE ? OR i.body LIKE ? OR r.name LIKE ? OR r.description LIKE ?)"
        )
        params.extend([term, term, term, term])
    if repo_filters:
        placeholders = ", ".join("?" for _ in repo_filters)
        where_clauses.append(f"r.name IN ({placeholders})")
        params.extend(repo_filters)

    if status_filter is None:
        where_clauses.append("(s.status IS NULL OR s.status != 'unwanted')")
    elif status_filter == "no_status":
        where_clauses.append("s.status IS NULL")
    elif status_filter != "all":
        where_clauses.append("s.status = ?")
        params.append(status_filter)

    where = " AND ".join(where_clauses)
    joins = """FROM bounty_issues i
        JOIN repositories r ON i.repository_id = r.id
        LEFT JOIN issue_status s ON i.github_id = s.github_id"""

    cursor = await db.execute(f"SELECT COUNT(*) {joins} WHERE {where}", params)
    row = await cursor.fetchone()
    total_count = row[0] if row else 0

    cursor = await db.execute(
        f"""SELECT i.*, r.name AS repository_name, r.url AS repository_url,
                   r.language AS language, s.status AS user_status
            {joins}
            WHERE {where}
            ORDER BY i.score DESC, i.id ASC
            LIMIT ? OFFSET ?""",
        [*params, limit, offset],
    )
    rows = await cursor.fetchall()
    return rows, total_count


async def get_data_freshness() -> dict:
    db = await get_db()
    cursor = await db.execute("SELECT MAX(last_fetched_at) FROM bounty_issues")
    row = await cursor.fetchone()
    last_fetch = row[0] if row else None
    if not last_fetch:
        return {"last_fetch": None, "hours_ago": None}
    fetched = datetime.fromisoformat(last_fetch.replace("Z", "+00:00"))
    if fetched.tzinfo is None:
        fetched = fetched.replace(tzinfo=timezone.utc)
    hours = (datetime.now(timezone.utc) - fetched).total_seconds() / 3600
    return {"last_fetch": last_fetch, "hours_ago": round(hours, 2)}


# Issue status


async def update_issue_status(github_id: int, status: str | None) -> bool:
    """Set or clear the user status. Returns False when the issue is unknown."""
    db = await get_db()
    issue = await get_issue_by_github_id(github_id)
    if issue is None:
        return False

    if status is None:
        await db.execute("DELETE FROM issue_status WHERE github_id = ?", (github_id,))
    else:
        now = _now()
        await db.execute(
            """INSERT INTO issue_status (issue_id, github_id, status, created_at, updated_at)
               VALUES (?, ?, ?, ?, ?)
               ON CONFLICT(github_id) DO UPDATE SET
                   status=excluded.status, updated_at=excluded.updated_at""",
            (issue["id"], github_id, status, now, now),
        )
    await db.commit()
    return True


async def get_issue_status(github_id: int) -> aiosqlite.Row | None:
    db = await get_db()
    cursor = await db.execute(
        "SELECT * FROM issue_status WHERE github_id = ?", (github_id,)
    )
    return await cursor.fetchone()


async def get_issue_status_counts() -> dict[str, int]:
    db = await get_db()
    cursor = await db.execute(
        "SELECT status, COUNT(*) AS n FROM issue_status GROUP BY status"
    )
    counts = {"interested": 0, "in_progress": 0, "unwanted": 0}
    for row in await cursor.fetchall():
        if row["status"] in counts:
            counts[row["status"]] = row["n"]
    return counts


# User settings


async def upsert_user_setting(key: str, value: Any) -> None:
    db = await get_db()
    now = _now()
    await db.execute(
        """INSERT INTO user_settings (setting_key, setting_value, created_at, updated_at)
           VALUES (?, ?, ?, ?)
           ON CONFLICT(setting_key) DO UPDATE SET
               setting_value=excluded.setting_value, updated_at=excluded.updated_at""",
        (key, json.dumps(value), now, now),
    )
    await db.commit()


async def get_user_setting(key: str) -> Any:
    """Return the decoded JSON value for ``key``, or None if unset."""
    db = await get_db()
    cursor = await db.execute(
        "SELECT setting_value FROM user_settings WHERE setting_key = ?", (key,)
    )
    row = await cursor.fetchone()
    if row is None:
        return None
    return json.loads(row["setting_value"])


async def get_all_user_settings() -> dict[str, Any]:
    db = await get_db()
    cursor = await db.execute("SELECT setting_key, setting_value FROM user_settings")
    result: dict[str, Any] = {}
    for row in await cursor.fetchall():
        try:
            result[row["setting_key"]] = json.loads(row["setting_value"])
        except json.JSONDecodeError:
            result[row["setting_key"]] = None
    return result
