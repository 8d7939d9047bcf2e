from __future__ import annotations

import asyncio
import enum
import logging
import time
from datetime import datetime, timezone
from typing import Protocol

from bounty_board.config import DEFAULT_SEARCH_QUERY, settings
from bounty_board.models.issues import RefreshReport
from bounty_board.services import settings_service
from bounty_board.services.language_cache import LanguageCache
from bounty_board.services.ranking_service import IssueSource, RankingEngine
from bounty_board.services.sync_service import SyncService

logger = logging.getLogger(__name__)

SORT = "created"
ORDER = "desc"


class RefreshState(str, enum.Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    RANKING = "ranking"
    SYNCING = "syncing"


class IssueFetcher(IssueSource, Protocol):
    async def fetch_all_issues(
        self,
        query: str,
        sort: str = SORT,
        order: str = ORDER,
        per_page: int | None = None,
        max_pages: int | None = None,
    ) -> list[dict]: ...


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class RefreshService:
    """Fetch -> rank -> sync, bounded by a timeout, at most one run at a time.

    ``refresh`` never raises: every outcome is described by the returned
    :class:`RefreshReport`.
    """

    def __init__(
        self,
        client: IssueFetcher,
        token: str | None = None,
        timeout_seconds: float | None = None,
        per_page: int | None = None,
        max_pages: int | None = None,
        language_cache: LanguageCache | None = None,
        ranking: RankingEngine | None = None,
        sync: SyncService | None = None,
    ) -> None:
        self.client = client
        self.token = settings.github_token if token is None else token
        self.timeout_seconds = (
            settings.refresh_timeout_seconds if timeout_seconds is None else timeout_seconds
        )
        self.per_page = per_page or settings.fetch_per_page
        self.max_pages = max_pages or settings.fetch_max_pages
        self.language_cache = language_cache or LanguageCache(settings.language_cache_ttl_seconds)
        self.ranking = ranking or RankingEngine(client, cache=self.language_cache)
        self.sync = sync or SyncService()
        self.state = RefreshState.IDLE
        self.last_report: RefreshReport | None = None
        self._lock = asyncio.Lock()

    @property
    def running(self) -> bool:
        return self._lock.locked()

    async def refresh(self, trigger: str = "manual") -> RefreshReport:
        if self._lock.locked():
            logger.warning("Refresh (%s) skipped: another refresh is running", trigger)
            return RefreshReport(
                status="skipped",
                trigger=trigger,
                started_at=_now_iso(),
                finished_at=_now_iso(),
                error="refresh already in progress",
            )

        async with self._lock:
            report = RefreshReport(status="running", trigger=trigger, started_at=_now_iso())
            started = time.monotonic()
            logger.info("Refresh started (%s)", trigger)
            try:
                if not self.token:
                    report.status = "failed"
                    report.error = "GITHUB_TOKEN is not set"
                    logger.error("Refresh aborted: GITHUB_TOKEN is not set")
                else:
                    await asyncio.wait_for(self._run(report), timeout=self.timeout_seconds)
            except asyncio.TimeoutError:
                report.status = "timeout"
                report.error = f"refresh timed out after {self.timeout_seconds}s"
                logger.error(
                    "Refresh timed out after %dms in state %s",
                    int((time.monotonic() - started) * 1000), self.state.value,
                )
            except Exception as exc:
                report.status = "failed"
                report.error = str(exc)
                logger.exception(
                    "Refresh failed after %dms", int((time.monotonic() - started) * 1000)
                )
            finally:
                self.state = RefreshState.IDLE
                report.duration_ms = int((time.monotonic() - started) * 1000)
                report.finished_at = _now_iso()
                self.last_report = report

            logger.info("Refresh %s in %dms", report.status, report.duration_ms)
            return report

    async def _run(self, report: RefreshReport) -> None:
        self.state = RefreshState.FETCHING
        query = await self._search_query()
        issues = await self.client.fetch_all_issues(
            query, SORT, ORDER, per_page=self.per_page, max_pages=self.max_pages
        )
        report.fetched = len(issues)
        if not issues:
            logger.info("No issues fetched for query %r", query)
            report.status = "empty"
            return

        self.state = RefreshState.RANKING
        ranked = await self.ranking.rank(issues)
        report.ranked = len(ranked)

        self.state = RefreshState.SYNCING
        report.sync = await self.sync.sync(ranked)
        report.status = "completed"

    async def _search_query(self) -> str:
        try:
            return await settings_service.get_search_query()
        except Exception:
            logger.exception("Could not read search query; using default")
            return DEFAULT_SEARCH_QUERY


_service: RefreshService | None = None


def get_refresh_service() -> RefreshService:
    global _service
    if _service is None:
        from bounty_board.services.github_client import github_client
        _service = RefreshService(github_client)
    return _service
