from __future__ import annotations

import asyncio
import logging

from bounty_board.config import settings
from bounty_board.db import queries
from bounty_board.models.issues import RankedIssue, SyncReport

logger = logging.getLogger(__name__)


class SyncService:
    """Upserts ranked issues by GitHub id and prunes those below the score threshold."""

    def __init__(
        self,
        min_score: int | None = None,
        batch_size: int | None = None,
        batch_delay: float | None = None,
    ) -> None:
        self.min_score = settings.min_score_threshold if min_score is None else min_score
        self.batch_size = batch_size or settings.sync_batch_size
        self.batch_delay = settings.sync_batch_delay if batch_delay is None else batch_delay

    async def sync(self, issues: list[RankedIssue]) -> SyncReport:
        report = SyncReport(received=len(issues))
        qualifying = [i for i in issues if i.score >= self.min_score]
        below = [i for i in issues if i.score < self.min_score]
        report.qualifying = len(qualifying)
        report.skipped = len(below)
        logger.info(
            "Syncing %d/%d qualifying issues (min score %d)",
            len(qualifying), len(issues), self.min_score,
        )

        # Issues re-scored below the threshold lose their stored row.
        for issue in below:
            try:
                report.pruned += await asyncio.shield(queries.delete_issue_by_github_id(issue.id))
            except Exception:
                report.errors += 1
                logger.exception("Failed to remove low-scoring issue %s", issue.id)

        total_batches = (len(qualifying) + self.batch_size - 1) // self.batch_size
        for start in range(0, len(qualifying), self.batch_size):
            batch = qualifying[start:start + self.batch_size]
            batch_num = start // self.batch_size + 1
            logger.info("Batch %d/%d (%d issues)", batch_num, total_batches, len(batch))

            for issue in batch:
                try:
                    # A timeout may abandon the sync, but never a half-written upsert.
                    if await asyncio.shield(self.upsert_issue(issue)):
                        report.updated += 1
                    else:
                        report.inserted += 1
                except Exception:
                    report.errors += 1
                    logger.exception("Error storing issue %s", issue.id)

            if start + self.batch_size < len(qualifying) and self.batch_delay > 0:
                await asyncio.sleep(self.batch_delay)

        logger.info(
            "Stored issues: inserted=%d updated=%d errors=%d",
            report.inserted, report.updated, report.errors,
        )
        report.pruned += await self.prune()
        return report

    async def upsert_issue(self, issue: RankedIssue) -> bool:
        """Insert or update one issue. Returns True when a row already existed."""
        if not issue.id or not issue.html_url:
            raise ValueError(f"Invalid issue data for issue {issue.id or 'unknown'}")

        repository_id = await queries.get_or_create_repository(
            issue.repository or "unknown/repository",
            issue.repository_url or "",
            issue.language if issue.language and issue.language != "Unknown" else None,
        )
        existing = await queries.get_issue_by_github_id(issue.id)
        if existing is not None:
            await queries.update_issue(issue, repository_id)
            return True
        await queries.insert_issue(issue, repository_id)
        return False

    async def prune(self) -> int:
        try:
            removed = await queries.remove_low_ranking_issues(self.min_score)
        except Exception:
            logger.exception("Failed to remove low-ranking issues")
            return 0
        if removed:
            logger.info("Removed %d issues scoring below %d", removed, self.min_score)
        return removed
