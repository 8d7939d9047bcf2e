from __future__ import annotations

import asyncio
import logging
from typing import Protocol
from urllib.parse import urlparse

from bounty_board.config import settings
from bounty_board.models.issues import RankedIssue, ScoreFactors
from bounty_board.services.language_cache import LanguageCache
from bounty_board.services.score_engine import calculate_score
from bounty_board.utils.text_analysis import (
    extract_bounty_value,
    has_assignment_statement,
    has_bounty_mention,
    has_implementation_details,
    has_payout_statement,
)

logger = logging.getLogger(__name__)

UNKNOWN_LANGUAGE = "Unknown"
UNKNOWN_REPOSITORY = "unknown/repository"


class IssueSource(Protocol):
    async def get_repository_language(self, repository_url: str) -> str: ...

    async def get_comments(self, comments_url: str) -> list[dict]: ...


def normalize_repository(repository_url: str | None) -> str:
    """Last two path segments of the repository URL as ``owner/name``."""
    try:
        parts = [p for p in urlparse(repository_url or "").path.split("/") if p]
    except (TypeError, ValueError):
        return UNKNOWN_REPOSITORY
    if len(parts) < 2:
        return UNKNOWN_REPOSITORY
    return f"{parts[-2]}/{parts[-1]}"


def label_names(raw_labels) -> list[str]:
    if not isinstance(raw_labels, list):
        return []
    names = []
    for label in raw_labels:
        if isinstance(label, dict):
            name = label.get("name")
        else:
            name = label
        if isinstance(name, str) and name:
            names.append(name)
    return names


class RankingEngine:
    def __init__(
        self,
        source: IssueSource,
        cache: LanguageCache | None = None,
        fetch_comments: bool | None = None,
        language_lookup_delay: float | None = None,
    ) -> None:
        self._source = source
        self.cache = cache if cache is not None else LanguageCache(settings.language_cache_ttl_seconds)
        self.fetch_comments = settings.fetch_comments if fetch_comments is None else fetch_comments
        self.language_lookup_delay = (
            settings.language_lookup_delay
            if language_lookup_delay is None
            else language_lookup_delay
        )

    async def rank(self, issues: list[dict]) -> list[RankedIssue]:
        """Score every issue and return them sorted by score, highest first.

        Malformed issues are logged and dropped; this never raises for bad input.
        """
        total = len(issues)
        logger.info("Ranking %d issues", total)
        await self.prefetch_languages(issues)

        ranked: list[RankedIssue] = []
        for index, issue in enumerate(issues, start=1):
            try:
                result = await self.rank_issue(issue)
            except Exception:
                issue_id = issue.get("id") if isinstance(issue, dict) else None
                logger.exception("[%d/%d] Error ranking issue %s", index, total, issue_id)
                continue
            if result is None:
                continue
            ranked.append(result)

        ranked.sort(key=lambda item: item.score, reverse=True)
        logger.info("Ranked %d/%d issues", len(ranked), total)
        if ranked:
            logger.info("Top issue: %r (score %d)", ranked[0].title[:60], ranked[0].score)
        return ranked

    async def prefetch_languages(self, issues: list[dict]) -> None:
        urls: list[str] = []
        for issue in issues:
            url = issue.get("repository_url") if isinstance(issue, dict) else None
            if url and url not in urls and url not in self.cache:
                urls.append(url)
        if not urls:
            return

        logger.info("Looking up languages for %d repositories", len(urls))
        await asyncio.gather(
            *(self._lookup_language(url, index) for index, url in enumerate(urls))
        )

    async def _lookup_language(self, repository_url: str, index: int) -> None:
        if self.language_lookup_delay > 0 and index:
            await asyncio.sleep(index * self.language_lookup_delay)
        try:
            language = await self._source.get_repository_language(repository_url)
        except Exception as exc:
            logger.warning("Language lookup failed for %s: %s", repository_url, exc)
            language = UNKNOWN_LANGUAGE
        self.cache.set(repository_url, language or UNKNOWN_LANGUAGE)

    async def _fetch_comments(self, issue: dict) -> list[dict]:
        try:
            return await self._source.get_comments(issue.get("comments_url") or "")
        except Exception as exc:
            logger.warning("Comment fetch failed for issue %s: %s", issue.get("id"), exc)
            return []

    async def rank_issue(self, issue: dict) -> RankedIssue | None:
        if not issue.get("id") or not issue.get("repository_url") or not issue.get("html_url"):
            logger.warning("Skipping issue with missing required fields: %s", issue.get("id"))
            return None

        labels = label_names(issue.get("labels"))
        title = issue.get("title") or ""
        body = issue.get("body") or ""
        comment_count = issue.get("comments") or 0

        has_bounty_label = any("bounty" in name.lower() for name in labels)
        has_bounty_comment = False
        has_payout_comment = False
        has_assignment_comment = False
        bounty_value = max(
            [extract_bounty_value(name) for name in labels]
            + [extract_bounty_value(title), extract_bounty_value(body)]
        )

        if self.fetch_comments:
            comments = await self._fetch_comments(issue)
            for comment in comments:
                text = comment.get("body") or ""
                has_bounty_comment = has_bounty_comment or has_bounty_mention(text)
                has_payout_comment = has_payout_comment or has_payout_statement(text)
                has_assignment_comment = has_assignment_comment or has_assignment_statement(text)
                bounty_value = max(bounty_value, extract_bounty_value(text))

        factors = ScoreFactors(
            has_bounty_label=has_bounty_label,
            has_bounty_comment=has_bounty_comment,
            has_implementation_details=has_implementation_details(body),
            has_payout_comment=has_payout_comment,
            has_assignment_comment=has_assignment_comment,
            comment_count=comment_count,
        )
        language = self.cache.get(issue["repository_url"]) or UNKNOWN_LANGUAGE
        score = calculate_score(factors)
        logger.debug(
            "Issue %s scored %d (bounty=%s impl=%s lang=%s)",
            issue["id"], score, has_bounty_label, factors.has_implementation_details, language,
        )

        return RankedIssue(
            id=issue["id"],
            number=issue.get("number") or 0,
            title=title,
            html_url=issue["html_url"],
            repository_url=issue["repository_url"],
            body=body,
            state=issue.get("state") or "open",
            comments=comment_count,
            labels=labels,
            created_at=issue.get("created_at"),
            updated_at=issue.get("updated_at"),
            comments_url=issue.get("comments_url") or "",
            user_login=(issue.get("user") or {}).get("login", ""),
            score=score,
            repository=normalize_repository(issue["repository_url"]),
            has_bounty_label=has_bounty_label,
            has_bounty_comment=has_bounty_comment,
            has_payout_comment=has_payout_comment,
            has_assignment_comment=has_assignment_comment,
            comment_count=comment_count,
            has_implementation_details=factors.has_implementation_details,
            bounty_value=bounty_value,
            language=language,
        )
