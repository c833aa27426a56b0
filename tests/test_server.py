"""
Tests for the MCP tool functions, called directly.
"""

import asyncio

import pytest

from signal_rank import repository, server
from signal_rank.core.models import Track
from signal_rank.repository import AgentNotFoundError


@pytest.fixture
def stored_agent(run_db, make_agent):
    agent = make_agent(
        slug="devin",
        name="Devin",
        description="Autonomous AI software engineer",
        homepage_url="https://www.devin.ai",
        api_docs_url="https://docs.devin.ai",
        sr_score=9.1,
        sr_track=Track.SAAS,
    )
    run_db(lambda: repository.upsert_agent(agent))
    return agent


@pytest.mark.parametrize("score,tier,color", [(9.0, "S", "#00FF94"), (7.5, "A", "#3B82F6"), (4.9, "C", "#6B7280")])
def test_sr_tier(score: float, tier: str, color: str) -> None:
    result = asyncio.run(server.sr_tier(score))
    assert result["tier"] == tier
    assert result["color"] == color
    assert result["label"] == f"Signal Rank: {tier} ({score:.1f})"


def test_generate_prompt_for_stored_agent(run_db, stored_agent) -> None:
    result = run_db(lambda: server.sr_generate("devin", "prompt"))

    assert result["type"] == "prompt"
    assert result["agent"]["sr_tier"] == "S"
    assert result["template"] == "structured_api"
    assert "Devin" in result["system_prompt"]


def test_generate_badge_uses_site_url(run_db, stored_agent, monkeypatch) -> None:
    monkeypatch.setenv("SITE_URL", "https://signals.example.com/")
    result = run_db(lambda: server.sr_generate("devin", "badge"))

    assert result["svg_url"] == "https://signals.example.com/api/badge/devin.svg"
    assert "#00FF94" in result["svg_content"]


def test_generate_unknown_type(run_db, stored_agent) -> None:
    with pytest.raises(ValueError):
        run_db(lambda: server.sr_generate("devin", "pdf"))


def test_generate_unknown_agent(run_db) -> None:
    with pytest.raises(AgentNotFoundError):
        run_db(lambda: server.sr_generate("ghost", "badge"))


def test_blank_slug_rejected() -> None:
    with pytest.raises(ValueError):
        asyncio.run(server.sr_agent("  "))


def test_sr_agent_profile(run_db, stored_agent) -> None:
    result = run_db(lambda: server.sr_agent("devin"))

    assert result["agent"]["slug"] == "devin"
    assert result["agent"]["sr_tier"] == "S"
    assert result["summary"] == "Devin: Signal Rank: S (9.1) [SaaS]"


def test_badge_resource(run_db, stored_agent) -> None:
    svg = run_db(lambda: server.badge_svg("devin"))
    assert svg.startswith("<svg")
    assert "#00FF94" in svg


def test_history_limits_validated() -> None:
    with pytest.raises(ValueError):
        asyncio.run(server.sr_scan_history("devin", limit=0))
    with pytest.raises(ValueError):
        asyncio.run(server.sr_score_trend("devin", days=400))


def test_empty_history_and_trend(run_db, stored_agent) -> None:
    async def run():
        history = await server.sr_scan_history("devin")
        trend = await server.sr_score_trend("devin")
        return history, trend

    history, trend = run_db(run)

    assert history["scans"] == []
    assert history["total"] == 0
    assert trend["points"] == []
    assert "not enough data" in trend["summary"]
