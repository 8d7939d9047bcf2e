import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from bounty_board.config import settings
from bounty_board.db.connection import init_db, close_db
from bounty_board.routers import jobs, rate_limit, search, settings as settings_router, status
from bounty_board.scheduler import RefreshScheduler
from bounty_board.services.github_client import github_client
from bounty_board.services.refresh_service import get_refresh_service

logging.basicConfig(level=settings.log_level, format="%(levelname)s: %(message)s")


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    scheduler = None
    if settings.scheduler_enabled:
        scheduler = RefreshScheduler(get_refresh_service())
        scheduler.start()
    yield
    if scheduler is not None:
        scheduler.shutdown()
    await close_db()
    await github_client.close()


app = FastAPI(title="Bounty Board", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(search.router, prefix="/api")
app.include_router(status.router, prefix="/api")
app.include_router(settings_router.router, prefix="/api")
app.include_router(jobs.router, prefix="/api")
app.include_router(rate_limit.router, prefix="/api")
