from __future__ import annotations

import json
import logging
import math
import re

from bounty_board.db import queries
from bounty_board.models.schemas import IssueResult, Pagination, SearchResponse

logger = logging.getLogger(__name__)

DEFAULT_PER_PAGE = 30
MAX_PER_PAGE = 100
STATUS_FILTERS = {"all", "interested", "in_progress", "unwanted", "no_status"}

# Whitespace-separated terms, keeping double-quoted runs together.
_TERMS = re.compile(r'(?:[^\s"]+|"[^"]*")+')


def parse_search_query(query: str | None) -> tuple[list[str], str]:
    """Split ``repo:owner/name`` filters from the free-text part of a query."""
    repo_filters: list[str] = []
    text_terms: list[str] = []
    for term in _TERMS.findall(query or ""):
        if term.startswith("repo:"):
            name = term[len("repo:"):].strip('"')
            if name:
                repo_filters.append(name)
        else:
            text_terms.append(term.strip('"'))
    return repo_filters, " ".join(t for t in text_terms if t)


def _parse_int(value: int | str | None) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def normalize_paging(
    page: int | str | None, per_page: int | str | None
) -> tuple[int, int]:
    """Clamp paging input; anything unparseable falls back to the defaults."""
    page, per_page = _parse_int(page), _parse_int(per_page)
    if per_page is None or per_page < 1 or per_page > MAX_PER_PAGE:
        per_page = DEFAULT_PER_PAGE
    if page is None or page < 1:
        page = 1
    return page, per_page


def _row_to_issue(row) -> IssueResult:
    labels = json.loads(row["labels"]) if row["labels"] else []
    return IssueResult(
        id=row["github_id"],
        number=row["number"],
        title=row["title"],
        html_url=row["html_url"],
        body=row["body"] or "",
        state=row["state"],
        comments=row["comments"],
        labels=labels,
        repository_url=row["repository_url"] or "",
        created_at=row["created_at"] or "",
        updated_at=row["updated_at"] or "",
        score=row["score"],
        repository=row["repository_name"] or "unknown",
        has_bounty_label=bool(row["has_bounty_label"]),
        has_bounty_comment=bool(row["has_bounty_comment"]),
        has_payout_comment=bool(row["has_payout_comment"]),
        has_assignment_comment=bool(row["has_assignment_comment"]),
        comment_count=row["comment_count"],
        has_implementation_details=bool(row["has_implementation_details"]),
        bounty_value=row["bounty_value"] or 0,
        language=row["language"] or "Unknown",
        user_status=row["user_status"],
    )


async def search_issues(
    query: str = "",
    page: int | str | None = 1,
    per_page: int | str | None = DEFAULT_PER_PAGE,
    status: str | None = None,
) -> SearchResponse:
    page, per_page = normalize_paging(page, per_page)
    if status is not None and status not in STATUS_FILTERS:
        logger.warning("Unknown status filter %r, using default", status)
        status = None
    repo_filters, text = parse_search_query(query)

    try:
        rows, total_count = await queries.search_issues(
            text=text,
            repo_filters=repo_filters,
            status_filter=status,
            limit=per_page,
            offset=(page - 1) * per_page,
        )
    except Exception:
        logger.exception("Search failed for query: %s", query)
        rows, total_count = [], 0

    issues = [_row_to_issue(row) for row in rows]
    total_pages = math.ceil(total_count / per_page)
    return SearchResponse(
        issues=issues,
        pagination=Pagination(
            current_page=page,
            has_next=page < total_pages,
            has_prev=page > 1,
            per_page=per_page,
            actual_result_count=len(issues),
            total_count=total_count,
            total_pages=total_pages,
        ),
    )
