from fastapi import APIRouter

from bounty_board.models.schemas import SearchResponse
from bounty_board.services.search_service import search_issues

router = APIRouter()


@router.get("/search", response_model=SearchResponse)
async def search(
    query: str = "",
    page: str | None = None,
    per_page: str | None = None,
    status: str | None = None,
) -> SearchResponse:
    # Raw strings; unparseable paging falls back to the defaults.
    return await search_issues(query=query, page=page, per_page=per_page, status=status)
