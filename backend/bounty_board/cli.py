from __future__ import annotations

import asyncio
import json
import logging

import typer

from bounty_board.config import settings

app = typer.Typer(help="Bounty Board batch jobs")
logging.basicConfig(level=settings.log_level, format="%(levelname)s: %(message)s")


async def _init() -> None:
    from bounty_board.db.connection import init_db
    await init_db()


async def _close() -> None:
    from bounty_board.db.connection import close_db
    from bounty_board.services.github_client import github_client
    await close_db()
    await github_client.close()


@app.command()
def refresh() -> None:
    """Fetch, rank and store bounty issues once."""
    async def _run() -> int:
        await _init()
        from bounty_board.services.refresh_service import get_refresh_service
        report = await get_refresh_service().refresh(trigger="cli")
        typer.echo(json.dumps(report.to_dict(), indent=2))
        await _close()
        return 0 if report.succeeded else 1

    raise typer.Exit(code=asyncio.run(_run()))


@app.command()
def rank(pages: int = 1, top: int = 10) -> None:
    """Fetch and rank issues without storing them."""
    async def _run() -> None:
        await _init()
        from bounty_board.services.github_client import github_client
        from bounty_board.services.ranking_service import RankingEngine
        from bounty_board.services.score_engine import score_reasons
        from bounty_board.services.settings_service import get_search_query

        query = await get_search_query()
        issues = await github_client.fetch_all_issues(query, max_pages=pages)
        ranked = await RankingEngine(github_client).rank(issues)
        for issue in ranked[:top]:
            typer.echo(
                f"{issue.score:>4}  {issue.repository}#{issue.number}  "
                f"${issue.bounty_value}  {issue.language}  {issue.title[:60]}"
            )
            typer.echo(f"      {', '.join(score_reasons(issue.score_factors()))}")
        await _close()

    asyncio.run(_run())


@app.command()
def prune() -> None:
    """Delete stored issues scoring below the minimum threshold."""
    async def _run() -> None:
        await _init()
        from bounty_board.services.sync_service import SyncService
        removed = await SyncService().prune()
        typer.echo(f"Removed {removed} issues")
        await _close()

    asyncio.run(_run())


@app.command("set-query")
def set_query(query: str) -> None:
    """Store the GitHub search query used by refresh."""
    async def _run() -> None:
        await _init()
        from bounty_board.services.settings_service import set_search_query
        await set_search_query(query)
        typer.echo(f"Search query set to: {query}")
        await _close()

    asyncio.run(_run())


if __name__ == "__main__":
    app()
