from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from urllib.parse import urlparse

import httpx

from bounty_board.config import settings

logger = logging.getLogger(__name__)


class GitHubAPIError(Exception):
    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(f"GitHub API error: {status_code} {message}")
        self.status_code = status_code


class RateLimitTracker:
    def __init__(self) -> None:
        self.remaining: int = -1
        self.limit: int = -1
        self.reset_at: datetime | None = None

    def update(self, headers: httpx.Headers) -> None:
        if "x-ratelimit-remaining" in headers:
            self.remaining = int(headers["x-ratelimit-remaining"])
        if "x-ratelimit-limit" in headers:
            self.limit = int(headers["x-ratelimit-limit"])
        if "x-ratelimit-reset" in headers:
            ts = int(headers["x-ratelimit-reset"])
            self.reset_at = datetime.fromtimestamp(ts, tz=timezone.utc)

    def is_low(self, watermark: int) -> bool:
        return 0 <= self.remaining < watermark

    def to_dict(self) -> dict:
        return {
            "remaining": self.remaining,
            "limit": self.limit,
            "reset_at": self.reset_at.isoformat() if self.reset_at else None,
        }


def repository_key(repository_url: str) -> str | None:
    """``https://api.github.com/repos/owner/name`` -> ``owner/name``."""
    parts = [p for p in urlparse(repository_url).path.split("/") if p]
    if len(parts) >= 3 and parts[-3] == "repos":
        return f"{parts[-2]}/{parts[-1]}"
    return None


class GitHubClient:
    def __init__(
        self,
        token: str | None = None,
        base_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        page_delay: float | None = None,
        low_watermark: int | None = None,
        backoff: float | None = None,
    ) -> None:
        self.token = settings.github_token if token is None else token
        headers: dict[str, str] = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": "bounty-board",
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        self._client = httpx.AsyncClient(
            base_url=base_url or settings.github_api_base,
            headers=headers,
            timeout=30.0,
            transport=transport,
        )
        self.rate_limit = RateLimitTracker()
        self.page_delay = settings.page_delay if page_delay is None else page_delay
        self.low_watermark = (
            settings.rate_limit_low_watermark if low_watermark is None else low_watermark
        )
        self.backoff = settings.rate_limit_backoff if backoff is None else backoff

    async def get(self, url: str, params: dict | None = None) -> httpx.Response:
        resp = await self._client.get(url, params=params)
        self.rate_limit.update(resp.headers)
        if resp.is_error:
            raise GitHubAPIError(resp.status_code, resp.text[:200])
        if self.rate_limit.is_low(self.low_watermark):
            logger.warning(
                "GitHub rate limit low: %d requests remaining", self.rate_limit.remaining
            )
            await asyncio.sleep(self.backoff)
        return resp

    async def search_issues(
        self,
        query: str,
        sort: str = "created",
        order: str = "desc",
        per_page: int = 100,
        page: int = 1,
    ) -> list[dict]:
        resp = await self.get(
            "/search/issues",
            params={
                "q": query,
                "sort": sort,
                "order": order,
                "per_page": per_page,
                "page": page,
            },
        )
        data = resp.json()
        if not isinstance(data, dict) or not isinstance(data.get("items"), list):
            raise GitHubAPIError(resp.status_code, "malformed search response")
        return data["items"]

    async def fetch_all_issues(
        self,
        query: str,
        sort: str = "created",
        order: str = "desc",
        per_page: int | None = None,
        max_pages: int | None = None,
    ) -> list[dict]:
        """Walk search result pages until a short or empty page, or the page cap.

        A failed page is logged and skipped.
        """
        per_page = per_page or settings.fetch_per_page
        max_pages = max_pages or settings.fetch_max_pages
        logger.info(
            "Fetching issues: query=%r sort=%s order=%s per_page=%d max_pages=%d",
            query, sort, order, per_page, max_pages,
        )

        issues: list[dict] = []
        for page in range(1, max_pages + 1):
            try:
                items = await self.search_issues(query, sort, order, per_page, page)
            except Exception:
                logger.exception("Failed to fetch search page %d", page)
                continue

            if not items:
                logger.info("No more issues at page %d", page)
                break
            issues.extend(items)
            logger.info("Page %d: %d issues (total %d)", page, len(items), len(issues))
            if len(items) < per_page:
                break
            if page < max_pages and self.page_delay > 0:
                await asyncio.sleep(self.page_delay)

        logger.info("Fetched %d issues", len(issues))
        return issues

    async def get_repository_language(self, repository_url: str) -> str:
        """Primary language by bytes of code, or ``"Unknown"``."""
        key = repository_key(repository_url)
        if key is None:
            return "Unknown"
        resp = await self.get(f"/repos/{key}/languages")
        languages = resp.json()
        if not isinstance(languages, dict) or not languages:
            return "Unknown"
        return max(languages.items(), key=lambda item: item[1])[0]

    async def get_comments(self, comments_url: str) -> list[dict]:
        if not comments_url:
            return []
        resp = await self.get(comments_url, params={"per_page": 100})
        comments = resp.json()
        return comments if isinstance(comments, list) else []

    async def get_rate_limit(self) -> dict:
        resp = await self.get("/rate_limit")
        return resp.json()

    async def close(self) -> None:
        await self._client.aclose()


# Singleton
github_client = GitHubClient()
