import httpx
import pytest

from bounty_board.services.github_client import GitHubAPIError, GitHubClient, repository_key


def _client(handler, **kwargs):
    kwargs.setdefault("page_delay", 0)
    kwargs.setdefault("backoff", 0)
    return GitHubClient(
        token="t0ken",
        base_url="https://api.github.test",
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


def _items(start, count):
    return [{"id": i} for i in range(start, start + count)]


def test_repository_key():
    assert repository_key("https://api.github.com/repos/acme/widgets") == "acme/widgets"
    assert repository_key("https://github.com/acme") is None


@pytest.mark.asyncio
async def test_pagination_stops_on_short_page():
    pages = []

    def handler(request):
        page = int(request.url.params["page"])
        pages.append(page)
        assert request.headers["Authorization"] == "Bearer t0ken"
        assert request.url.params["sort"] == "created"
        count = 2 if page == 1 else 1
        return httpx.Response(200, json={"items": _items(page * 10, count)})

    client = _client(handler)
    issues = await client.fetch_all_issues("label:bounty", per_page=2, max_pages=5)
    await client.close()

    assert pages == [1, 2]
    assert len(issues) == 3


@pytest.mark.asyncio
async def test_pagination_respects_page_cap_and_empty_page():
    def handler(request):
        return httpx.Response(200, json={"items": _items(0, 2)})

    client = _client(handler)
    issues = await client.fetch_all_issues("q", per_page=2, max_pages=3)
    await client.close()
    assert len(issues) == 6

    client = _client(lambda request: httpx.Response(200, json={"items": []}))
    assert await client.fetch_all_issues("q", per_page=2, max_pages=3) == []
    await client.close()


@pytest.mark.asyncio
async def test_failed_page_is_skipped():
    def handler(request):
        page = int(request.url.params["page"])
        if page == 1:
            return httpx.Response(502, text="bad gateway")
        if page == 2:
            return httpx.Response(200, json={"message": "no items key"})
        return httpx.Response(200, json={"items": _items(0, 1)})

    client = _client(handler)
    issues = await client.fetch_all_issues("q", per_page=2, max_pages=3)
    await client.close()
    assert issues == [{"id": 0}]


@pytest.mark.asyncio
async def test_rate_limit_headers_tracked_and_backoff(monkeypatch):
    slept = []

    async def fake_sleep(seconds):
        slept.append(seconds)

    monkeypatch.setattr("bounty_board.services.github_client.asyncio.sleep", fake_sleep)

    def handler(request):
        return httpx.Response(
            200,
            json={"items": []},
            headers={"x-ratelimit-remaining": "3", "x-ratelimit-limit": "30"},
        )

    client = _client(handler, backoff=1.5, low_watermark=10)
    await client.search_issues("q")
    await client.close()

    assert client.rate_limit.remaining == 3
    assert client.rate_limit.limit == 30
    assert slept == [1.5]


@pytest.mark.asyncio
async def test_repository_language_picks_most_bytes():
    def handler(request):
        assert request.url.path == "/repos/acme/widgets/languages"
        return httpx.Response(200, json={"Python": 1000, "Rust": 5000, "Shell": 10})

    client = _client(handler)
    language = await client.get_repository_language("https://api.github.com/repos/acme/widgets")
    await client.close()
    assert language == "Rust"


@pytest.mark.asyncio
async def test_repository_language_errors():
    client = _client(lambda request: httpx.Response(404, text="Not Found"))
    with pytest.raises(GitHubAPIError):
        await client.get_repository_language("https://api.github.com/repos/acme/gone")
    assert await client.get_repository_language("garbage") == "Unknown"
    await client.close()
