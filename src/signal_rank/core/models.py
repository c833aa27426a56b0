"""Pydantic data models shared by the server, the store and the generators.

Both the FastMCP server and the local agent store use these models as the
common interface for scanning, scoring, and artifact generation.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class Tier(str, Enum):
    """Signal Rank tier: S (9.0-10.0), A (7.5-8.9), B (5.0-7.4), C (<5.0)."""

    S = "S"
    A = "A"
    B = "B"
    C = "C"


class Track(str, Enum):
    """Provenance track of an agent."""

    OPEN_SOURCE = "OpenSource"
    SAAS = "SaaS"
    HYBRID = "Hybrid"


class IOModality(str, Enum):
    """Input/output modality tags."""

    TEXT = "Text"
    IMAGE = "Image"
    AUDIO = "Audio"
    JSON = "JSON"
    CODE = "Code"
    FILE = "File"
    VIDEO = "Video"
    UNKNOWN = "Unknown"


class GeneratorType(str, Enum):
    """Artifacts that can be generated for an agent."""

    JSONLD = "jsonld"
    BADGE = "badge"
    PROMPT = "prompt"


class ScanType(str, Enum):
    """What triggered a scan."""

    MANUAL = "manual"
    SCHEDULED = "scheduled"
    API = "api"


class URLType(str, Enum):
    GITHUB = "github"
    SAAS = "saas"
    INVALID = "invalid"


class DiagnosticStatus(str, Enum):
    PASS = "pass"
    FAIL = "fail"
    WARNING = "warning"


class PromptTemplate(str, Enum):
    """Interface prompt templates, in selection priority order."""

    MCP = "mcp"
    STRUCTURED_API = "structured_api"
    NATURAL_LANGUAGE = "natural_language"


class ScoreBreakdown(BaseModel):
    """Per-metric Signal Rank sub-scores for both tracks."""

    # Track A (GitHub)
    stars_score: float = Field(0.0, ge=0.0, description="Star ladder, max 2.0")
    forks_score: float = Field(0.0, ge=0.0, description="Fork ratio, max 1.0")
    vitality_score: float = Field(0.0, ge=0.0, description="Recent commits + license, max 2.0")
    readiness_score: float = Field(0.0, ge=0.0, description="OpenAPI + Dockerfile + README, max 3.0")
    protocol_score: float = Field(0.0, ge=0.0, description="MCP or standard interface, max 2.0")
    # Track B (SaaS)
    trust_score: float = Field(0.0, ge=0.0, description="HTTPS + social + claimed, max 3.0")
    aeo_score: float = Field(0.0, ge=0.0, description="Meta + JSON-LD + OG, max 4.0")
    interop_score: float = Field(0.0, ge=0.0, description="API docs + integrations + login, max 3.0")


def _coerce_datetime(value: Any) -> Optional[datetime]:
    """Parse a timestamp leniently. Unparseable values become None."""
    if value is None or isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    return None


class Agent(BaseModel):
    """A scored agent listing. Read-only input to every generator."""

    slug: str = Field(min_length=1, description="URL-safe unique identifier")
    name: str = Field(min_length=1, description="Display name")
    description: Optional[str] = None

    github_url: Optional[str] = None
    homepage_url: Optional[str] = None
    api_docs_url: Optional[str] = None

    sr_score: float = Field(0.0, ge=0.0, le=10.0, description="Signal Rank score, 0-10")
    sr_tier: Tier = Field(Tier.C, description="Always derived from sr_score")
    sr_track: Track = Track.SAAS
    score_github: float = 0.0
    score_saas: float = 0.0
    score_breakdown: ScoreBreakdown = Field(default_factory=ScoreBreakdown)

    is_mcp: bool = False
    is_claimed: bool = False
    is_verified: bool = False

    input_types: list[IOModality] = Field(default_factory=list)
    output_types: list[IOModality] = Field(default_factory=list)

    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    og_image: Optional[str] = None

    github_stars: int = 0
    github_forks: int = 0
    github_last_commit: Optional[datetime] = None

    last_scanned_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("github_last_commit", "last_scanned_at", "created_at", "updated_at", mode="before")
    @classmethod
    def _lenient_timestamp(cls, value: Any) -> Optional[datetime]:
        return _coerce_datetime(value)

    @model_validator(mode="after")
    def _derive_tier(self) -> "Agent":
        from .scoring import tier_from_score

        self.sr_tier = tier_from_score(self.sr_score)
        return self


# ─── Scanner inputs ──────────────────────────────────────────────────────────


class GitHubScanResult(BaseModel):
    """Facts collected from a GitHub repository."""

    owner: str
    repo: str
    stars: int = 0
    forks: int = 0
    last_commit_date: Optional[datetime] = None
    has_license: bool = False
    has_openapi: bool = False
    has_dockerfile: bool = False
    has_manifest: bool = False
    readme_length: int = Field(0, description="README line count")
    has_usage_code_block: bool = False
    has_mcp: bool = False
    has_standard_interface: bool = Field(False, description="LangChain, Vercel AI SDK, etc.")
    homepage: Optional[str] = None
    description: str = ""
    topics: list[str] = Field(default_factory=list)
    readme: str = Field("", exclude=True)


class SaaSScanResult(BaseModel):
    """Facts collected from a SaaS homepage by an external crawler."""

    https_valid: bool = False
    ssl_valid_months: int = 0
    social_links: list[str] = Field(default_factory=list)
    has_json_ld: bool = False
    json_ld_content: Optional[dict] = None
    has_basic_meta: bool = False
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    has_h1: bool = False
    has_og_tags: bool = False
    og_image: Optional[str] = None
    og_title: Optional[str] = None
    has_api_docs_path: bool = False
    api_docs_url: Optional[str] = None
    has_integration_keywords: bool = False
    integration_keywords: list[str] = Field(default_factory=list)
    has_login_button: bool = False
    page_content: str = ""


class SRResult(BaseModel):
    """Outcome of a Signal Rank calculation."""

    final_score: float = Field(ge=0.0, le=10.0)
    tier: Tier
    track: Track
    score_a: float = Field(description="Track A (GitHub) score")
    score_b: float = Field(description="Track B (SaaS) score")
    breakdown: ScoreBreakdown
    is_mcp: bool = False
    is_verified: bool = False


class URLDetectorResult(BaseModel):
    type: URLType
    normalized_url: str = ""
    github_owner: Optional[str] = None
    github_repo: Optional[str] = None


class IOResult(BaseModel):
    inputs: list[IOModality]
    outputs: list[IOModality]


class DiagnosticItem(BaseModel):
    """A single red/amber/green check with an improvement hint."""

    metric: str
    status: DiagnosticStatus
    score: float
    max_score: float
    suggestion: Optional[str] = None


class DiagnosticsSummary(BaseModel):
    total: int
    passed: int
    failed: int
    warnings: int
    pass_rate: int = Field(description="Percentage of passing checks, 0-100")


# ─── Generator outputs ───────────────────────────────────────────────────────


class BadgeOutput(BaseModel):
    svg_url: str
    svg_content: str
    embed_code: str
    tier: Tier
    color: str


class JSONLDOutput(BaseModel):
    json_ld: dict
    json_ld_string: str
    deployment_instructions: str


class PromptOutput(BaseModel):
    system_prompt: str
    has_structured_api: bool
    api_endpoint: Optional[str] = None
    template: PromptTemplate


# ─── Scan history ────────────────────────────────────────────────────────────


class ScanHistoryRecord(BaseModel):
    """A point-in-time record of an agent's score."""

    agent_slug: str
    sr_score: float
    sr_tier: Tier
    sr_track: Track
    score_github: float = 0.0
    score_saas: float = 0.0
    score_breakdown: ScoreBreakdown = Field(default_factory=ScoreBreakdown)
    scan_type: ScanType = ScanType.MANUAL
    scanned_at: datetime


class ScanResponse(BaseModel):
    """Result of scanning a URL."""

    agent: Agent
    is_new: bool
    is_cached: bool
    cache_age_minutes: Optional[int] = None
    diagnostics: list[DiagnosticItem] = Field(default_factory=list)
