"""SQLAlchemy models for the local agent store.

Stores scored agent records keyed by slug, plus a scan history row for every
scan so score trends can be shown over time.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class AgentRecord(Base):
    """A scanned agent listing."""

    __tablename__ = "agents"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    slug: Mapped[str] = mapped_column(String(200), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    github_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    homepage_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    api_docs_url: Mapped[str | None] = mapped_column(String(500), nullable=True)

    sr_score: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    sr_tier: Mapped[str] = mapped_column(String(1), nullable=False, default="C")
    sr_track: Mapped[str] = mapped_column(String(20), nullable=False, default="SaaS")
    score_github: Mapped[float] = mapped_column(Float, default=0.0)
    score_saas: Mapped[float] = mapped_column(Float, default=0.0)
    score_breakdown: Mapped[dict | None] = mapped_column(JSON, nullable=True)

    is_mcp: Mapped[bool] = mapped_column(Boolean, default=False)
    is_claimed: Mapped[bool] = mapped_column(Boolean, default=False)
    is_verified: Mapped[bool] = mapped_column(Boolean, default=False)

    input_types: Mapped[list | None] = mapped_column(JSON, nullable=True)
    output_types: Mapped[list | None] = mapped_column(JSON, nullable=True)

    meta_title: Mapped[str | None] = mapped_column(String(500), nullable=True)
    meta_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    og_image: Mapped[str | None] = mapped_column(String(500), nullable=True)

    github_stars: Mapped[int] = mapped_column(Integer, default=0)
    github_forks: Mapped[int] = mapped_column(Integer, default=0)
    github_last_commit: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    last_scanned_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (
        Index("ix_agents_github_url", "github_url"),
        Index("ix_agents_last_scanned", "last_scanned_at"),
    )


class ScanHistory(Base):
    """A point-in-time snapshot of an agent's Signal Rank."""

    __tablename__ = "scan_history"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    agent_id: Mapped[int] = mapped_column(ForeignKey("agents.id", ondelete="CASCADE"), nullable=False)
    sr_score: Mapped[float] = mapped_column(Float, nullable=False)
    sr_tier: Mapped[str] = mapped_column(String(1), nullable=False)
    sr_track: Mapped[str] = mapped_column(String(20), nullable=False)
    score_github: Mapped[float] = mapped_column(Float, default=0.0)
    score_saas: Mapped[float] = mapped_column(Float, default=0.0)
    score_breakdown: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    scan_type: Mapped[str] = mapped_column(String(20), nullable=False, default="manual")
    scanned_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (
        Index("ix_scan_history_agent_scanned", "agent_id", "scanned_at"),
    )
