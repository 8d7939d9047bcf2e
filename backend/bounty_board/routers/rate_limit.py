from fastapi import APIRouter

from bounty_board.services.github_client import github_client

router = APIRouter()


def _bucket(resources: dict, name: str) -> dict:
    bucket = resources.get(name, {})
    return {
        "remaining": bucket.get("remaining", -1),
        "limit": bucket.get("limit", -1),
        "reset": bucket.get("reset"),
    }


@router.get("/rate-limit")
async def rate_limit() -> dict:
    try:
        data = await github_client.get_rate_limit()
        resources = data.get("resources", {})
        return {
            "core": _bucket(resources, "core"),
            "search": _bucket(resources, "search"),
            "tracked": github_client.rate_limit.to_dict(),
        }
    except Exception as e:
        return {"error": str(e), "tracked": github_client.rate_limit.to_dict()}
