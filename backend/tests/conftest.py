import json

import pytest_asyncio

from bounty_board.db.connection import init_db, close_db, get_db
from bounty_board.models.issues import RankedIssue


@pytest_asyncio.fixture
async def db():
    """Initialize an in-memory SQLite DB for tests."""
    await init_db(":memory:")
    conn = await get_db()
    yield conn
    await close_db()


@pytest_asyncio.fixture
async def seeded_db(db):
    """DB with two repositories (one hidden), three issues and one status."""
    await db.execute(
        """INSERT INTO repositories (id, name, owner, repo_name, language, description, url, is_hidden)
           VALUES (1, 'acme/widgets', 'acme', 'widgets', 'Python', 'Widget toolkit',
                   'https://api.github.com/repos/acme/widgets', 0)"""
    )
    await db.execute(
        """INSERT INTO repositories (id, name, owner, repo_name, language, url, is_hidden)
           VALUES (2, 'acme/secret', 'acme', 'secret', 'Go',
                   'https://api.github.com/repos/acme/secret', 1)"""
    )

    issues = [
        (1001, 1, 7, "Add CSV export", "Implementation: write a CSV exporter.", 95.0),
        (1002, 1, 8, "Fix crash on startup", "Crash when config missing.", 75.0),
        (1003, 2, 3, "Hidden repo task", "Should never show up.", 100.0),
    ]
    for github_id, repo_id, number, title, body, score in issues:
        await db.execute(
            """INSERT INTO bounty_issues (github_id, repository_id, number, title, html_url,
                                          body, state, comments, created_at, updated_at,
                                          score, has_bounty_label, labels, last_fetched_at)
               VALUES (?, ?, ?, ?, ?, ?, 'open', 1, '2026-02-01T00:00:00Z',
                       '2026-02-10T00:00:00Z', ?, 1, ?, '2026-02-10T00:00:00+00:00')""",
            (github_id, repo_id, number, title,
             f"https://github.com/acme/repo/issues/{number}", body, score,
             json.dumps(["bounty", "$100"])),
        )

    await db.execute(
        """INSERT INTO issue_status (issue_id, github_id, status)
           VALUES (2, 1002, 'unwanted')"""
    )
    await db.commit()
    yield db


def make_raw_issue(issue_id: int = 1, **overrides) -> dict:
    """A GitHub search API issue item."""
    issue = {
        "id": issue_id,
        "number": issue_id,
        "title": f"Issue {issue_id}",
        "html_url": f"https://github.com/acme/widgets/issues/{issue_id}",
        "body": "",
        "state": "open",
        "comments": 0,
        "labels": [],
        "repository_url": "https://api.github.com/repos/acme/widgets",
        "comments_url": f"https://api.github.com/repos/acme/widgets/issues/{issue_id}/comments",
        "created_at": "2026-02-01T00:00:00Z",
        "updated_at": "2026-02-10T00:00:00Z",
        "user": {"login": "alice", "avatar_url": ""},
    }
    issue.update(overrides)
    return issue


def make_ranked_issue(issue_id: int = 1, score: int = 75, **overrides) -> RankedIssue:
    fields = {
        "id": issue_id,
        "number": issue_id,
        "title": f"Issue {issue_id}",
        "html_url": f"https://github.com/acme/widgets/issues/{issue_id}",
        "repository_url": "https://api.github.com/repos/acme/widgets",
        "repository": "acme/widgets",
        "labels": ["bounty"],
        "score": score,
        "has_bounty_label": True,
        "language": "Python",
    }
    fields.update(overrides)
    return RankedIssue(**fields)


class FakeSource:
    """Stands in for GitHubClient in ranking and refresh tests."""

    def __init__(
        self, issues=None, languages=None, comments=None, fail_languages=(), fail_comments=()
    ):
        self.issues = issues or []
        self.languages = languages or {}
        self.comments = comments or {}
        self.fail_languages = set(fail_languages)
        self.fail_comments = set(fail_comments)
        self.language_calls: list[str] = []
        self.fetch_calls: list[dict] = []

    async def fetch_all_issues(self, query, sort="created", order="desc", per_page=None, max_pages=None):
        self.fetch_calls.append(
            {"query": query, "sort": sort, "order": order, "per_page": per_page, "max_pages": max_pages}
        )
        return list(self.issues)

    async def get_repository_language(self, repository_url):
        self.language_calls.append(repository_url)
        if repository_url in self.fail_languages:
            raise RuntimeError("boom")
        return self.languages.get(repository_url, "Unknown")

    async def get_comments(self, comments_url):
        if comments_url in self.fail_comments:
            raise RuntimeError("comments unavailable")
        return self.comments.get(comments_url, [])
