"""Agent and scan history persistence.

Reads and writes scored agents and their scan history in the local SQLite
store. Rows are converted to pydantic models at this boundary so callers
never see ORM objects.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import select

from .core.models import (
    Agent,
    IOModality,
    ScanHistoryRecord,
    ScanType,
    ScoreBreakdown,
    SRResult,
    Tier,
    Track,
)
from .db import get_session_factory, session_scope
from .sqlmodels import AgentRecord, ScanHistory

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 30


class AgentNotFoundError(LookupError):
    """Raised when no agent exists for a slug."""

    def __init__(self, slug: str):
        super().__init__(f"Agent not found: {slug}")
        self.slug = slug


def _naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite DateTime columns store naive UTC
    if value is None or value.tzinfo is None:
        return value
    return value.replace(tzinfo=None) - value.utcoffset()


def _io_list(raw) -> list[IOModality]:
    if not isinstance(raw, list) or not raw:
        return [IOModality.UNKNOWN]
    modalities = []
    for value in raw:
        try:
            modalities.append(IOModality(value))
        except ValueError:
            continue
    return modalities or [IOModality.UNKNOWN]


def _breakdown(raw) -> ScoreBreakdown:
    if not isinstance(raw, dict):
        return ScoreBreakdown()
    known = {k: v for k, v in raw.items() if k in ScoreBreakdown.model_fields and v is not None}
    return ScoreBreakdown(**known)


def record_to_agent(row: AgentRecord) -> Agent:
    """Convert a database row into an Agent, filling defaults for missing data."""
    return Agent(
        slug=row.slug,
        name=row.name,
        description=row.description,
        github_url=row.github_url,
        homepage_url=row.homepage_url,
        api_docs_url=row.api_docs_url,
        sr_score=row.sr_score or 0.0,
        sr_track=Track(row.sr_track) if row.sr_track in Track._value2member_map_ else Track.SAAS,
        score_github=row.score_github or 0.0,
        score_saas=row.score_saas or 0.0,
        score_breakdown=_breakdown(row.score_breakdown),
        is_mcp=bool(row.is_mcp),
        is_claimed=bool(row.is_claimed),
        is_verified=bool(row.is_verified),
        input_types=_io_list(row.input_types),
        output_types=_io_list(row.output_types),
        meta_title=row.meta_title,
        meta_description=row.meta_description,
        og_image=row.og_image,
        github_stars=row.github_stars or 0,
        github_forks=row.github_forks or 0,
        github_last_commit=row.github_last_commit,
        last_scanned_at=row.last_scanned_at,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _history_to_record(row: ScanHistory, slug: str) -> ScanHistoryRecord:
    return ScanHistoryRecord(
        agent_slug=slug,
        sr_score=row.sr_score or 0.0,
        sr_tier=Tier(row.sr_tier) if row.sr_tier in Tier._value2member_map_ else Tier.C,
        sr_track=Track(row.sr_track) if row.sr_track in Track._value2member_map_ else Track.SAAS,
        score_github=row.score_github or 0.0,
        score_saas=row.score_saas or 0.0,
        score_breakdown=_breakdown(row.score_breakdown),
        scan_type=ScanType(row.scan_type) if row.scan_type in ScanType._value2member_map_ else ScanType.MANUAL,
        scanned_at=row.scanned_at,
    )


async def _get_record(session, slug: str) -> Optional[AgentRecord]:
    result = await session.execute(select(AgentRecord).where(AgentRecord.slug == slug))
    return result.scalar_one_or_none()


async def get_agent_by_slug(slug: str) -> Agent:
    """Load an agent by slug.

    Raises:
        AgentNotFoundError: No agent has this slug.
    """
    session_factory = get_session_factory()
    async with session_factory() as session:
        row = await _get_record(session, slug)
    if row is None:
        raise AgentNotFoundError(slug)
    return record_to_agent(row)


async def find_agent_by_slug(slug: str) -> Optional[Agent]:
    try:
        return await get_agent_by_slug(slug)
    except AgentNotFoundError:
        return None


async def _write_agent(session, agent: Agent) -> tuple[AgentRecord, bool]:
    now = datetime.utcnow()
    values = agent.model_dump(
        mode="json",
        exclude={"sr_tier", "created_at", "updated_at", "is_claimed", "is_verified",
                 "github_last_commit", "last_scanned_at"},
    )
    values["sr_tier"] = agent.sr_tier.value
    values["github_last_commit"] = _naive_utc(agent.github_last_commit)
    values["last_scanned_at"] = _naive_utc(agent.last_scanned_at) or now
    values["updated_at"] = now

    row = await _get_record(session, agent.slug)
    is_new = row is None
    if is_new:
        row = AgentRecord(
            created_at=now,
            is_claimed=agent.is_claimed,
            is_verified=agent.is_verified,
            **values,
        )
        session.add(row)
    else:
        for key, value in values.items():
            setattr(row, key, value)
    await session.flush()
    return row, is_new


def _write_history(session, agent_row: AgentRecord, sr: SRResult, scan_type: ScanType) -> ScanHistory:
    row = ScanHistory(
        agent_id=agent_row.id,
        sr_score=sr.final_score,
        sr_tier=sr.tier.value,
        sr_track=sr.track.value,
        score_github=sr.score_a,
        score_saas=sr.score_b,
        score_breakdown=sr.breakdown.model_dump(),
        scan_type=scan_type.value,
        scanned_at=datetime.utcnow(),
    )
    session.add(row)
    return row


async def upsert_agent(agent: Agent) -> tuple[Agent, bool]:
    """Insert or update an agent keyed on slug.

    Returns:
        The stored agent and whether it was newly created. Claimed and
        verified flags of an existing row are kept.
    """
    async with session_scope() as session:
        row, is_new = await _write_agent(session, agent)

    logger.info("%s agent %s (SR %.1f)", "Created" if is_new else "Updated", agent.slug, agent.sr_score)
    return record_to_agent(row), is_new


async def save_scan(agent: Agent, sr: SRResult, scan_type: ScanType = ScanType.MANUAL) -> tuple[Agent, bool]:
    """Upsert the agent and record its scan in one transaction.

    Either both writes land or neither does.
    """
    async with session_scope() as session:
        row, is_new = await _write_agent(session, agent)
        _write_history(session, row, sr, scan_type)
        await session.flush()

    logger.info("%s agent %s (SR %.1f)", "Created" if is_new else "Updated", agent.slug, agent.sr_score)
    return record_to_agent(row), is_new


async def list_stale_github_agents(older_than: timedelta, limit: int = 50) -> list[Agent]:
    """GitHub-backed agents whose last scan is older than the given age."""
    cutoff = datetime.utcnow() - older_than
    session_factory = get_session_factory()
    async with session_factory() as session:
        result = await session.execute(
            select(AgentRecord)
            .where(AgentRecord.github_url.is_not(None))
            .where((AgentRecord.last_scanned_at.is_(None)) | (AgentRecord.last_scanned_at < cutoff))
            .order_by(AgentRecord.last_scanned_at.asc())
            .limit(limit)
        )
        rows = result.scalars().all()
    return [record_to_agent(r) for r in rows]


async def create_scan_history(
    slug: str,
    sr: SRResult,
    scan_type: ScanType = ScanType.MANUAL,
) -> ScanHistoryRecord:
    """Record a scan result for an agent.

    Raises:
        AgentNotFoundError: No agent has this slug.
    """
    async with session_scope() as session:
        agent_row = await _get_record(session, slug)
        if agent_row is None:
            raise AgentNotFoundError(slug)
        row = _write_history(session, agent_row, sr, scan_type)
    return _history_to_record(row, slug)


async def get_scan_history(slug: str, limit: int = DEFAULT_HISTORY_LIMIT) -> list[ScanHistoryRecord]:
    """Most recent scans first.

    Raises:
        AgentNotFoundError: No agent has this slug.
    """
    session_factory = get_session_factory()
    async with session_factory() as session:
        agent_row = await _get_record(session, slug)
        if agent_row is None:
            raise AgentNotFoundError(slug)
        result = await session.execute(
            select(ScanHistory)
            .where(ScanHistory.agent_id == agent_row.id)
            .order_by(ScanHistory.scanned_at.desc(), ScanHistory.id.desc())
            .limit(limit)
        )
        rows = result.scalars().all()
    return [_history_to_record(r, slug) for r in rows]


async def get_score_trend(slug: str, days: int = 30) -> dict:
    """Score points for the last N days in chronological order, plus the change.

    Raises:
        AgentNotFoundError: No agent has this slug.
    """
    cutoff = datetime.utcnow() - timedelta(days=days)
    session_factory = get_session_factory()
    async with session_factory() as session:
        agent_row = await _get_record(session, slug)
        if agent_row is None:
            raise AgentNotFoundError(slug)
        result = await session.execute(
            select(ScanHistory)
            .where(ScanHistory.agent_id == agent_row.id)
            .where(ScanHistory.scanned_at >= cutoff)
            .order_by(ScanHistory.scanned_at.asc(), ScanHistory.id.asc())
        )
        rows = result.scalars().all()

    points = [
        {
            "date": r.scanned_at.isoformat(),
            "sr_score": r.sr_score,
            "sr_tier": r.sr_tier,
            "score_github": r.score_github,
            "score_saas": r.score_saas,
        }
        for r in rows
    ]
    change = round(points[-1]["sr_score"] - points[0]["sr_score"], 1) if len(points) >= 2 else 0.0
    return {"agent_slug": slug, "days": days, "points": points, "change": change}
