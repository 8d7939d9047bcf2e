import pytest

from bounty_board.services.language_cache import LanguageCache
from bounty_board.services.ranking_service import RankingEngine, normalize_repository

from conftest import FakeSource, make_raw_issue

REPO_URL = "https://api.github.com/repos/acme/widgets"


def _engine(source, **kwargs):
    kwargs.setdefault("language_lookup_delay", 0)
    kwargs.setdefault("fetch_comments", False)
    return RankingEngine(source, cache=kwargs.pop("cache", LanguageCache()), **kwargs)


def test_normalize_repository():
    assert normalize_repository("https://api.example.com/repos/facebook/react") == "facebook/react"
    assert normalize_repository("not-a-url") == "unknown/repository"
    assert normalize_repository("") == "unknown/repository"
    assert normalize_repository(None) == "unknown/repository"


@pytest.mark.asyncio
async def test_rank_annotates_issue():
    issue = make_raw_issue(
        1,
        title="[Bounty $250] Add dark mode",
        body="Steps to reproduce: open settings. Reward $300",
        labels=[{"name": "Bounty"}, {"name": "$100"}],
        comments=2,
    )
    source = FakeSource(languages={REPO_URL: "TypeScript"})
    ranked = await _engine(source).rank([issue])

    assert len(ranked) == 1
    result = ranked[0]
    assert result.repository == "acme/widgets"
    assert result.has_bounty_label is True
    assert result.has_implementation_details is True
    assert result.bounty_value == 300
    assert result.language == "TypeScript"
    assert result.labels == ["Bounty", "$100"]
    assert result.user_login == "alice"
    assert result.score == 100


@pytest.mark.asyncio
async def test_rank_sorts_descending():
    low = make_raw_issue(1, comments=50)
    high = make_raw_issue(2, labels=[{"name": "bounty"}])
    ranked = await _engine(FakeSource()).rank([low, high])
    assert [r.id for r in ranked] == [2, 1]
    assert ranked[0].score > ranked[1].score


@pytest.mark.asyncio
async def test_invalid_issue_is_dropped():
    valid = make_raw_issue(1)
    missing_url = make_raw_issue(2, html_url=None)
    ranked = await _engine(FakeSource()).rank([valid, missing_url])
    assert [r.id for r in ranked] == [1]


@pytest.mark.asyncio
async def test_malformed_record_does_not_abort_batch():
    ranked = await _engine(FakeSource()).rank([None, "garbage", make_raw_issue(3)])
    assert [r.id for r in ranked] == [3]


@pytest.mark.asyncio
async def test_language_failure_degrades_to_unknown_and_is_cached():
    cache = LanguageCache()
    source = FakeSource(fail_languages={REPO_URL})
    engine = _engine(source, cache=cache)

    ranked = await engine.rank([make_raw_issue(1), make_raw_issue(2)])
    assert all(r.language == "Unknown" for r in ranked)
    assert source.language_calls == [REPO_URL]
    assert cache.get(REPO_URL) == "Unknown"


@pytest.mark.asyncio
async def test_language_cache_reused_across_runs():
    cache = LanguageCache()
    source = FakeSource(languages={REPO_URL: "Rust"})
    engine = _engine(source, cache=cache)

    await engine.rank([make_raw_issue(1)])
    ranked = await engine.rank([make_raw_issue(2)])
    assert ranked[0].language == "Rust"
    assert source.language_calls == [REPO_URL]


def test_language_cache_ttl_expires():
    now = [0.0]
    cache = LanguageCache(ttl_seconds=10, clock=lambda: now[0])
    cache.set(REPO_URL, "Go")
    assert cache.get(REPO_URL) == "Go"
    now[0] = 11.0
    assert cache.get(REPO_URL) is None
    assert REPO_URL not in cache


@pytest.mark.asyncio
async def test_comment_signals_disabled_by_default():
    issue = make_raw_issue(1, labels=[{"name": "bounty"}])
    comments = {issue["comments_url"]: [{"body": "I'll take this"}]}
    ranked = await _engine(FakeSource(comments=comments)).rank([issue])
    assert ranked[0].has_assignment_comment is False
    assert ranked[0].has_bounty_comment is False


@pytest.mark.asyncio
async def test_comment_signals_when_enabled():
    issue = make_raw_issue(1, comments=3)
    comments = {
        issue["comments_url"]: [
            {"body": "Adding a $800 bounty on this"},
            {"body": "I'll take this"},
            {"body": "Bounty was paid"},
        ]
    }
    engine = _engine(FakeSource(comments=comments), fetch_comments=True)
    ranked = await engine.rank([issue])

    result = ranked[0]
    assert result.has_bounty_comment is True
    assert result.has_assignment_comment is True
    assert result.has_payout_comment is True
    assert result.bounty_value == 800
    # 30 (bounty comment) + 25 (few comments) - 30 (claimed)
    assert result.score == 25


@pytest.mark.asyncio
async def test_comment_fetch_failure_keeps_issue():
    issue = make_raw_issue(1, labels=[{"name": "bounty"}])
    source = FakeSource(fail_comments={issue["comments_url"]})
    ranked = await _engine(source, fetch_comments=True).rank([issue])

    assert [r.id for r in ranked] == [1]
    result = ranked[0]
    assert result.has_assignment_comment is False
    assert result.has_payout_comment is False
    assert result.score == 75
