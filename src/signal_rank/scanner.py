"""Scan pipeline: URL in, scored and persisted agent out.

Scanning a GitHub URL fetches repository facts, computes the Signal Rank,
extracts I/O modalities from the description and README, upserts the agent
and records a scan history row. Agents scanned within the cache window are
returned as-is unless a rescan is forced.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import httpx

from .core.clients import github
from .core.diagnostics import generate_diagnostics
from .core.io_extractor import extract_io_modalities
from .core.models import Agent, GitHubScanResult, ScanResponse, ScanType, SRResult, Track, URLType
from .core.scoring import as_utc, calculate_sr_score
from .core.urls import detect_url, name_from_url, slug_from_url
from .repository import find_agent_by_slug, list_stale_github_agents, save_scan

logger = logging.getLogger(__name__)

CACHE_TTL_HOURS = 24


class ScanError(Exception):
    """Raised when a URL cannot be scanned."""


def cache_age_minutes(agent: Agent, now: Optional[datetime] = None) -> Optional[int]:
    if agent.last_scanned_at is None:
        return None
    now = as_utc(now or datetime.now(timezone.utc))
    return int((now - as_utc(agent.last_scanned_at)).total_seconds() // 60)


def is_cache_fresh(agent: Agent, now: Optional[datetime] = None, ttl_hours: int = CACHE_TTL_HOURS) -> bool:
    age = cache_age_minutes(agent, now)
    return age is not None and age < ttl_hours * 60


def github_result_from_agent(agent: Agent) -> Optional[GitHubScanResult]:
    """Approximate the scan facts of a cached agent from its stored sub-scores."""
    if agent.sr_track not in (Track.OPEN_SOURCE, Track.HYBRID) or not agent.github_url:
        return None
    info = detect_url(agent.github_url)
    readiness = agent.score_breakdown.readiness_score
    return GitHubScanResult(
        owner=info.github_owner or "",
        repo=info.github_repo or "",
        stars=agent.github_stars,
        forks=agent.github_forks,
        last_commit_date=agent.github_last_commit,
        has_license=agent.score_breakdown.vitality_score >= 1.0,
        has_openapi=readiness >= 1.5,
        has_dockerfile=readiness >= 2.0,
        readme_length=250 if readiness >= 3.0 else 100,
        has_usage_code_block=readiness >= 3.0,
        has_mcp=agent.is_mcp,
        has_standard_interface=agent.score_breakdown.protocol_score >= 1.0,
        homepage=agent.homepage_url,
        description=agent.description or "",
    )


def build_agent(url: str, scan: GitHubScanResult, now: datetime, existing: Optional[Agent] = None) -> tuple[Agent, SRResult]:
    """Score a GitHub scan and assemble the agent to store."""
    is_claimed = existing.is_claimed if existing else False
    sr = calculate_sr_score(github=scan, is_claimed=is_claimed, now=now)
    io = extract_io_modalities(" ".join(filter(None, [scan.description, scan.readme])))

    agent = Agent(
        slug=slug_from_url(url, scan.owner, scan.repo),
        name=existing.name if existing else name_from_url(url, scan.repo),
        description=scan.description or (existing.description if existing else None),
        github_url=url,
        homepage_url=scan.homepage or (existing.homepage_url if existing else None),
        api_docs_url=existing.api_docs_url if existing else None,
        sr_score=sr.final_score,
        sr_track=sr.track,
        score_github=sr.score_a,
        score_saas=sr.score_b,
        score_breakdown=sr.breakdown,
        is_mcp=sr.is_mcp,
        is_claimed=is_claimed,
        is_verified=existing.is_verified if existing else False,
        input_types=io.inputs,
        output_types=io.outputs,
        github_stars=scan.stars,
        github_forks=scan.forks,
        github_last_commit=scan.last_commit_date,
        last_scanned_at=now,
    )
    return agent, sr


async def scan_url(
    url: str,
    force_rescan: bool = False,
    scan_type: ScanType = ScanType.MANUAL,
    client: Optional[httpx.AsyncClient] = None,
) -> ScanResponse:
    """Scan a GitHub repository URL and persist its Signal Rank.

    Args:
        url: GitHub repository URL.
        force_rescan: Ignore a fresh cached result.
        scan_type: Recorded in the scan history.
        client: Optional pre-configured httpx client for the GitHub API.

    Raises:
        ValueError: The URL is invalid or is not a GitHub repository.
        ScanError: The repository could not be fetched.
    """
    detected = detect_url(url)
    if detected.type == URLType.INVALID:
        raise ValueError(f"Invalid URL: {url!r}. Provide a full http(s) URL.")
    if detected.type != URLType.GITHUB:
        raise ValueError(f"Only GitHub repository URLs can be scanned, got {detected.normalized_url}")

    now = datetime.now(timezone.utc)
    slug = slug_from_url(detected.normalized_url, detected.github_owner, detected.github_repo)
    existing = await find_agent_by_slug(slug)

    if existing and not force_rescan and is_cache_fresh(existing, now):
        logger.info("Cache hit for %s (%s minutes old)", slug, cache_age_minutes(existing, now))
        cached_scan = github_result_from_agent(existing)
        return ScanResponse(
            agent=existing,
            is_new=False,
            is_cached=True,
            cache_age_minutes=cache_age_minutes(existing, now),
            diagnostics=generate_diagnostics(cached_scan, None, existing.score_breakdown, now),
        )

    scan = await github.scan_github_repo(detected.github_owner, detected.github_repo, client=client)
    if scan is None:
        raise ScanError(f"Could not fetch GitHub repository {detected.github_owner}/{detected.github_repo}")

    agent, sr = build_agent(detected.normalized_url, scan, now, existing)
    stored, is_new = await save_scan(agent, sr, scan_type)

    logger.info("Scanned %s: SR %.1f (%s)", stored.slug, sr.final_score, sr.tier.value)
    return ScanResponse(
        agent=stored,
        is_new=is_new,
        is_cached=False,
        diagnostics=generate_diagnostics(scan, None, sr.breakdown, now),
    )


async def run_refresh(
    older_than: timedelta = timedelta(hours=CACHE_TTL_HOURS),
    limit: int = 50,
    client: Optional[httpx.AsyncClient] = None,
) -> int:
    """Rescan stale GitHub agents. Returns the number refreshed."""
    stale = await list_stale_github_agents(older_than, limit)
    if not stale:
        logger.info("No stale agents to refresh")
        return 0

    logger.info("Refreshing %d stale agents...", len(stale))
    count = 0
    for agent in stale:
        try:
            await scan_url(agent.github_url, force_rescan=True, scan_type=ScanType.SCHEDULED, client=client)
            count += 1
        except (ScanError, ValueError) as exc:
            logger.warning("Refresh of %s failed: %s", agent.slug, exc)

    logger.info("Refresh complete: %d of %d agents rescanned", count, len(stale))
    return count
