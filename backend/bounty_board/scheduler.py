"""Interval trigger for the refresh job."""

from __future__ import annotations

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from bounty_board.config import settings
from bounty_board.services.refresh_service import RefreshService

logger = logging.getLogger(__name__)

REFRESH_JOB_ID = "bounty_refresh"


class RefreshScheduler:
    def __init__(self, service: RefreshService, interval_minutes: int | None = None) -> None:
        self.service = service
        self.interval_minutes = interval_minutes or settings.refresh_interval_minutes
        self.scheduler = AsyncIOScheduler(timezone="UTC")

    async def _run(self) -> None:
        report = await self.service.refresh(trigger="scheduled")
        logger.info("Scheduled refresh finished: %s", report.status)

    def start(self) -> None:
        self.scheduler.add_job(
            self._run,
            trigger=IntervalTrigger(minutes=self.interval_minutes),
            id=REFRESH_JOB_ID,
            name="Refresh bounty issues",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self.scheduler.start()
        logger.info("Refresh scheduled every %d minutes", self.interval_minutes)

    def shutdown(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
