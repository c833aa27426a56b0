"""
Tests for the scan pipeline with the GitHub scanner replaced by a fake.
"""

from datetime import datetime, timedelta, timezone

import pytest

from signal_rank import repository, scanner
from signal_rank.core.clients import github
from signal_rank.core.models import GitHubScanResult, IOModality, ScanType, Tier, Track


@pytest.fixture
def fake_github(monkeypatch):
    """Replace the GitHub API scan with a canned result and count calls."""
    calls: list = []

    async def fake_scan(owner, repo, token=None, client=None):
        calls.append((owner, repo))
        if repo == "ghost":
            return None
        return GitHubScanResult(
            owner=owner,
            repo=repo,
            stars=15_000,
            forks=2_000,
            last_commit_date=datetime.now(timezone.utc) - timedelta(days=2),
            has_license=True,
            has_dockerfile=True,
            has_mcp=True,
            description="An MCP server that accepts text prompts",
            homepage="https://acme.ai",
            readme="Send a text query and it will return JSON data.",
        )

    monkeypatch.setattr(github, "scan_github_repo", fake_scan)
    return calls


def test_new_scan_is_scored_and_stored(run_db, fake_github) -> None:
    async def run():
        response = await scanner.scan_url("https://github.com/Acme/Agent")
        history = await repository.get_scan_history(response.agent.slug)
        return response, history

    response, history = run_db(run)
    agent = response.agent

    # stars 1.5 + forks 1.0 + vitality 2.0 + readiness 0.5 + protocol 2.0
    assert agent.slug == "acme-agent"
    assert agent.name == "Agent"
    assert agent.github_url == "https://github.com/Acme/Agent"
    assert agent.homepage_url == "https://acme.ai"
    assert agent.sr_score == 7.0
    assert agent.sr_tier == Tier.B
    assert agent.sr_track == Track.OPEN_SOURCE
    assert agent.is_mcp is True
    assert IOModality.TEXT in agent.input_types
    assert response.is_new is True
    assert response.is_cached is False
    assert len(response.diagnostics) == 8
    assert len(history) == 1
    assert history[0].scan_type == ScanType.MANUAL


def test_rescan_within_window_is_cached(run_db, fake_github) -> None:
    async def run():
        await scanner.scan_url("https://github.com/acme/agent")
        return await scanner.scan_url("https://github.com/acme/agent")

    response = run_db(run)

    assert response.is_cached is True
    assert response.is_new is False
    assert response.cache_age_minutes == 0
    assert response.diagnostics
    assert len(fake_github) == 1


def test_force_rescan_bypasses_cache(run_db, fake_github) -> None:
    async def run():
        await scanner.scan_url("https://github.com/acme/agent")
        response = await scanner.scan_url("https://github.com/acme/agent", force_rescan=True)
        history = await repository.get_scan_history("acme-agent")
        return response, history

    response, history = run_db(run)

    assert response.is_cached is False
    assert response.is_new is False
    assert len(fake_github) == 2
    assert len(history) == 2


@pytest.mark.parametrize("url", ["not a url", "https://acme.ai", "https://github.com/settings/profile"])
def test_non_github_urls_are_rejected(run_db, fake_github, url) -> None:
    with pytest.raises(ValueError):
        run_db(lambda: scanner.scan_url(url))
    assert fake_github == []


def test_unfetchable_repository_raises(run_db, fake_github) -> None:
    with pytest.raises(scanner.ScanError):
        run_db(lambda: scanner.scan_url("https://github.com/acme/ghost"))


def test_failed_history_write_leaves_no_agent(run_db, fake_github, monkeypatch) -> None:
    """The agent upsert and its history row commit together or not at all."""

    def broken_history(*args, **kwargs):
        raise RuntimeError("disk full")

    monkeypatch.setattr(repository, "_write_history", broken_history)

    async def run():
        with pytest.raises(RuntimeError):
            await scanner.scan_url("https://github.com/acme/agent")
        return await repository.find_agent_by_slug("acme-agent")

    assert run_db(run) is None


def test_refresh_rescans_stale_agents(run_db, fake_github, make_agent) -> None:
    old = datetime.now(timezone.utc) - timedelta(days=2)

    async def run():
        await repository.upsert_agent(make_agent(
            slug="acme-bot", name="Acme Bot", github_url="https://github.com/acme/bot", last_scanned_at=old,
        ))
        refreshed = await scanner.run_refresh()
        agent = await repository.get_agent_by_slug("acme-bot")
        history = await repository.get_scan_history("acme-bot")
        return refreshed, agent, history

    refreshed, agent, history = run_db(run)

    assert refreshed == 1
    assert agent.name == "Acme Bot"
    assert agent.sr_score == 7.0
    assert [h.scan_type for h in history] == [ScanType.SCHEDULED]


def test_refresh_with_nothing_stale(run_db, fake_github) -> None:
    assert run_db(scanner.run_refresh) == 0


def test_cache_freshness(make_agent) -> None:
    now = datetime(2026, 6, 1, 12, tzinfo=timezone.utc)

    assert scanner.is_cache_fresh(make_agent(last_scanned_at=now - timedelta(hours=23)), now)
    assert not scanner.is_cache_fresh(make_agent(last_scanned_at=now - timedelta(hours=24)), now)
    assert not scanner.is_cache_fresh(make_agent(), now)
    assert scanner.cache_age_minutes(make_agent(last_scanned_at=now - timedelta(minutes=90)), now) == 90
