"""Signal Rank MCP Server.

FastMCP server exposing Signal Rank scanning, score history, and artifact
generation (JSON-LD, SVG badges, interface prompts) for AI agents.
Run: signal-rank-mcp
"""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from typing import AsyncIterator

from mcp.server.fastmcp import FastMCP
from mcp.types import ToolAnnotations

from .core.generators.badge import DEFAULT_BASE_URL, badge_label, generate_svg_content
from .core.generators.dispatch import generate_artifact
from .core.scoring import format_score, get_tier_color, tier_from_score
from .db import close_db, init_db
from .repository import get_agent_by_slug, get_scan_history, get_score_trend
from .scanner import scan_url
from .scheduler import ScanScheduler

logger = logging.getLogger(__name__)

SVG_MIME = "image/svg+xml"

READ_ONLY = ToolAnnotations(readOnlyHint=True, destructiveHint=False, idempotentHint=True, openWorldHint=False)
SCAN = ToolAnnotations(readOnlyHint=False, destructiveHint=False, idempotentHint=False, openWorldHint=True)

MAX_HISTORY_LIMIT = 100
MAX_TREND_DAYS = 365

scheduler = ScanScheduler()


@asynccontextmanager
async def lifespan(server: FastMCP) -> AsyncIterator[None]:
    """Initialize database and start the rescan scheduler."""
    logging.basicConfig(
        level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    await init_db()
    await scheduler.start()
    try:
        yield
    finally:
        await scheduler.stop()
        await close_db()


mcp = FastMCP(
    "Signal Rank",
    instructions="Score AI agents by machine readiness and generate artifacts for them: Schema.org JSON-LD, embeddable SVG badges, and system prompts for other AI systems.",
    lifespan=lifespan,
)


def _site_url() -> str:
    return os.environ.get("SITE_URL", DEFAULT_BASE_URL).rstrip("/")


def _require_slug(agent_slug: str) -> str:
    slug = (agent_slug or "").strip()
    if not slug:
        raise ValueError("agent_slug is required")
    return slug


# ─── Badge Resource ──────────────────────────────────────────────────────────


@mcp.resource("badge://{slug}", mime_type=SVG_MIME)
async def badge_svg(slug: str) -> str:
    """Signal Rank badge SVG for an agent."""
    agent = await get_agent_by_slug(_require_slug(slug))
    return generate_svg_content(agent.sr_tier, agent.sr_score, agent.name)


# ─── Tool 1: Generate ────────────────────────────────────────────────────────


@mcp.tool(annotations=READ_ONLY)
async def sr_generate(agent_slug: str, type: str) -> dict:
    """Generate an artifact for an agent: JSON-LD structured data, an SVG badge, or an interface prompt.

    Args:
        agent_slug: Agent identifier, e.g. 'openai-swarm'.
        type: One of 'jsonld', 'badge', 'prompt'.
    """
    agent = await get_agent_by_slug(_require_slug(agent_slug))
    return generate_artifact(agent, type, _site_url())


# ─── Tool 2: Agent ───────────────────────────────────────────────────────────


@mcp.tool(annotations=READ_ONLY)
async def sr_agent(agent_slug: str) -> dict:
    """Stored Signal Rank profile for an agent: score, tier, track, sub-scores and I/O modalities.

    Args:
        agent_slug: Agent identifier.
    """
    agent = await get_agent_by_slug(_require_slug(agent_slug))
    return {
        "agent": agent.model_dump(mode="json"),
        "summary": f"{agent.name}: {badge_label(agent.sr_tier, agent.sr_score)} [{agent.sr_track.value}]",
    }


# ─── Tool 3: Scan ────────────────────────────────────────────────────────────


@mcp.tool(annotations=SCAN)
async def sr_scan(url: str, force_rescan: bool = False) -> dict:
    """Scan a GitHub repository and compute its Signal Rank, with improvement diagnostics.

    Results are cached for 24 hours.

    Args:
        url: GitHub repository URL, e.g. 'https://github.com/openai/swarm'.
        force_rescan: Ignore the cached result and scan again. Default False.
    """
    response = await scan_url(url, force_rescan=force_rescan)
    agent = response.agent
    failing = [d.metric for d in response.diagnostics if d.suggestion]
    if failing:
        summary = f"{agent.name} scored {format_score(agent.sr_score)} ({agent.sr_tier.value}). Improve: {', '.join(failing)}."
    else:
        summary = f"{agent.name} scored {format_score(agent.sr_score)} ({agent.sr_tier.value}). All checks pass."
    return {**response.model_dump(mode="json"), "summary": summary}


# ─── Tool 4: Scan History ────────────────────────────────────────────────────


@mcp.tool(annotations=READ_ONLY)
async def sr_scan_history(agent_slug: str, limit: int = 30) -> dict:
    """Past scans for an agent, newest first.

    Args:
        agent_slug: Agent identifier.
        limit: Maximum number of scans to return (1-100). Default 30.
    """
    if not 1 <= limit <= MAX_HISTORY_LIMIT:
        raise ValueError(f"limit must be between 1 and {MAX_HISTORY_LIMIT}")
    slug = _require_slug(agent_slug)
    history = await get_scan_history(slug, limit)
    return {
        "agent_slug": slug,
        "scans": [h.model_dump(mode="json") for h in history],
        "total": len(history),
    }


# ─── Tool 5: Score Trend ─────────────────────────────────────────────────────


@mcp.tool(annotations=READ_ONLY)
async def sr_score_trend(agent_slug: str, days: int = 30) -> dict:
    """Signal Rank trend over time for an agent, oldest point first.

    Args:
        agent_slug: Agent identifier.
        days: Lookback window in days (1-365). Default 30.
    """
    if not 1 <= days <= MAX_TREND_DAYS:
        raise ValueError(f"days must be between 1 and {MAX_TREND_DAYS}")
    trend = await get_score_trend(_require_slug(agent_slug), days)
    points = trend["points"]
    if len(points) < 2:
        trend["summary"] = f"{len(points)} scan(s) in the last {days} days, not enough data for a trend."
    else:
        direction = "up" if trend["change"] > 0 else "down" if trend["change"] < 0 else "flat"
        trend["summary"] = f"Score {direction} {abs(trend['change']):.1f} over {len(points)} scans in the last {days} days."
    return trend


# ─── Tool 6: Tier ────────────────────────────────────────────────────────────


@mcp.tool(annotations=READ_ONLY)
async def sr_tier(score: float) -> dict:
    """Map a Signal Rank score to its tier and display color.

    Tiers: S (9.0+), A (7.5+), B (5.0+), C (below 5.0).

    Args:
        score: Signal Rank score, 0-10.
    """
    tier = tier_from_score(score)
    return {
        "score": score,
        "tier": tier.value,
        "color": get_tier_color(tier),
        "label": badge_label(tier, score),
    }


def main():
    """Entry point for the CLI command."""
    mcp.run()


if __name__ == "__main__":
    main()
