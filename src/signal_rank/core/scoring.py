"""Signal Rank scoring engine.

Turns scanner facts into per-metric sub-scores, combines them per track, and
maps the final 0-10 score onto a tier. Track A scores GitHub repositories,
Track B scores SaaS homepages, and agents with both get the better of the two
plus a hybrid bonus.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime, timedelta, timezone
from decimal import ROUND_HALF_UP, Context, Decimal
from typing import Optional, Union

from .models import (
    GitHubScanResult,
    SaaSScanResult,
    ScoreBreakdown,
    SRResult,
    Tier,
    Track,
)

logger = logging.getLogger(__name__)

# Lower bounds, inclusive
TIER_THRESHOLDS: list[tuple[float, Tier]] = [
    (9.0, Tier.S),
    (7.5, Tier.A),
    (5.0, Tier.B),
]

TIER_COLORS: dict[Tier, str] = {
    Tier.S: "#00FF94",
    Tier.A: "#3B82F6",
    Tier.B: "#EAB308",
    Tier.C: "#6B7280",
}

STARS_SCORE_LADDER: list[tuple[int, float]] = [
    (20_000, 2.0),
    (10_000, 1.5),
    (5_000, 1.0),
    (1_000, 0.5),
]

MAX_SCORE = 10.0
HYBRID_BONUS = 0.5
RECENT_COMMIT_DAYS = 30
README_MIN_LINES = 200

_ONE_DECIMAL = Decimal("0.1")
_FIXED_CONTEXT = Context(prec=400, rounding=ROUND_HALF_UP)


def tier_from_score(score: float) -> Tier:
    """Map a score onto a tier. Total over all floats; NaN and negatives are C, +inf is S."""
    if math.isnan(score):
        return Tier.C
    for threshold, tier in TIER_THRESHOLDS:
        if score >= threshold:
            return tier
    return Tier.C


def get_tier_color(tier: Union[Tier, str]) -> str:
    """Display color for a tier. Unknown tiers raise ValueError."""
    return TIER_COLORS[Tier(tier)]


# ─── Track A (GitHub) ────────────────────────────────────────────────────────


def calculate_stars_score(stars: int) -> float:
    if stars < 0:
        return 0.0
    for threshold, score in STARS_SCORE_LADDER:
        if stars >= threshold:
            return score
    return 0.0


def calculate_forks_score(forks: int, stars: int) -> float:
    """1.0 when forks exceed 10% of stars."""
    if forks < 0 or stars < 0:
        return 0.0
    if stars == 0:
        return 1.0 if forks > 0 else 0.0
    return 1.0 if forks > stars * 0.1 else 0.0


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def calculate_vitality_score(
    last_commit_date: Optional[datetime],
    has_license: bool,
    now: Optional[datetime] = None,
) -> float:
    """+1.0 for a commit in the last 30 days, +1.0 for a license."""
    now = as_utc(now or datetime.now(timezone.utc))
    score = 0.0
    if last_commit_date and as_utc(last_commit_date) >= now - timedelta(days=RECENT_COMMIT_DAYS):
        score += 1.0
    if has_license:
        score += 1.0
    return score


def calculate_readiness_score(
    has_openapi: bool,
    has_dockerfile: bool,
    readme_length: int,
    has_usage_code_block: bool,
) -> float:
    """Machine readiness: OpenAPI 1.5, Dockerfile 0.5, substantial README 1.0."""
    score = 0.0
    if has_openapi:
        score += 1.5
    if has_dockerfile:
        score += 0.5
    if readme_length > README_MIN_LINES and has_usage_code_block:
        score += 1.0
    return score


def calculate_protocol_score(has_mcp: bool, has_standard_interface: bool) -> float:
    if has_mcp:
        return 2.0
    if has_standard_interface:
        return 1.0
    return 0.0


def calculate_track_a(scan: GitHubScanResult, now: Optional[datetime] = None) -> ScoreBreakdown:
    return ScoreBreakdown(
        stars_score=calculate_stars_score(scan.stars),
        forks_score=calculate_forks_score(scan.forks, scan.stars),
        vitality_score=calculate_vitality_score(scan.last_commit_date, scan.has_license, now),
        readiness_score=calculate_readiness_score(
            scan.has_openapi, scan.has_dockerfile, scan.readme_length, scan.has_usage_code_block,
        ),
        protocol_score=calculate_protocol_score(scan.has_mcp, scan.has_standard_interface),
    )


# ─── Track B (SaaS) ──────────────────────────────────────────────────────────


def calculate_trust_score(https_valid: bool, social_links_count: int, is_claimed: bool) -> float:
    score = 0.0
    if https_valid:
        score += 1.0
    if social_links_count >= 2:
        score += 1.0
    if is_claimed:
        score += 1.0
    return score


def calculate_aeo_score(has_basic_meta: bool, has_json_ld: bool, has_og_tags: bool) -> float:
    """Answer-engine visibility: meta 1.0, JSON-LD 2.0, Open Graph 1.0."""
    score = 0.0
    if has_basic_meta:
        score += 1.0
    if has_json_ld:
        score += 2.0
    if has_og_tags:
        score += 1.0
    return score


def calculate_interop_score(has_api_docs_path: bool, has_integration_keywords: bool, has_login_button: bool) -> float:
    score = 0.0
    if has_api_docs_path:
        score += 1.5
    if has_integration_keywords:
        score += 1.0
    if has_login_button:
        score += 0.5
    return score


def calculate_track_b(scan: SaaSScanResult, is_claimed: bool = False) -> ScoreBreakdown:
    return ScoreBreakdown(
        trust_score=calculate_trust_score(scan.https_valid, len(scan.social_links), is_claimed),
        aeo_score=calculate_aeo_score(scan.has_basic_meta, scan.has_json_ld, scan.has_og_tags),
        interop_score=calculate_interop_score(
            scan.has_api_docs_path, scan.has_integration_keywords, scan.has_login_button,
        ),
    )


# ─── Aggregation ─────────────────────────────────────────────────────────────


def track_a_total(breakdown: ScoreBreakdown) -> float:
    return (
        breakdown.stars_score
        + breakdown.forks_score
        + breakdown.vitality_score
        + breakdown.readiness_score
        + breakdown.protocol_score
    )


def track_b_total(breakdown: ScoreBreakdown) -> float:
    return breakdown.trust_score + breakdown.aeo_score + breakdown.interop_score


def normalize_score(score: float) -> float:
    """Clamp to [0, 10]. Non-finite scores become 0."""
    if not math.isfinite(score):
        return 0.0
    return max(0.0, min(score, MAX_SCORE))


def round_score(score: float) -> float:
    """Round half-up to one decimal place."""
    if not math.isfinite(score) or score < 0:
        return 0.0
    return math.floor(score * 10 + 0.5) / 10


def format_score(score: float) -> str:
    """One-decimal display string. Exact binary ties round away from zero, so 8.25 is "8.3" and 0.15 is "0.1"."""
    if not math.isfinite(score):
        return str(score)
    if score == 0:
        return "0.0"
    return str(Decimal(score).quantize(_ONE_DECIMAL, context=_FIXED_CONTEXT))


def calculate_hybrid_score(score_a: float, score_b: float) -> float:
    """max(A, B) + 0.5, capped at 10."""
    safe_a = score_a if math.isfinite(score_a) and score_a >= 0 else 0.0
    safe_b = score_b if math.isfinite(score_b) and score_b >= 0 else 0.0
    return min(max(safe_a, safe_b) + HYBRID_BONUS, MAX_SCORE)


def determine_track(has_github: bool, has_saas: bool) -> Track:
    if has_github and has_saas:
        return Track.HYBRID
    if has_github:
        return Track.OPEN_SOURCE
    return Track.SAAS


def score_from_breakdown(breakdown: ScoreBreakdown, track: Track) -> float:
    """Recompute the final rounded score from stored sub-scores."""
    score_a = track_a_total(breakdown)
    score_b = track_b_total(breakdown)
    if track == Track.HYBRID:
        raw = calculate_hybrid_score(score_a, score_b)
    elif track == Track.OPEN_SOURCE:
        raw = score_a
    else:
        raw = score_b
    return round_score(normalize_score(raw))


def calculate_sr_score(
    github: Optional[GitHubScanResult] = None,
    saas: Optional[SaaSScanResult] = None,
    is_claimed: bool = False,
    now: Optional[datetime] = None,
) -> SRResult:
    """Combine GitHub and SaaS scan facts into a final Signal Rank."""
    breakdown = ScoreBreakdown()
    is_mcp = False

    if github:
        track_a = calculate_track_a(github, now)
        breakdown = breakdown.model_copy(update=track_a.model_dump(include={
            "stars_score", "forks_score", "vitality_score", "readiness_score", "protocol_score",
        }))
        is_mcp = github.has_mcp

    if saas:
        track_b = calculate_track_b(saas, is_claimed)
        breakdown = breakdown.model_copy(update=track_b.model_dump(include={
            "trust_score", "aeo_score", "interop_score",
        }))

    track = determine_track(github is not None, saas is not None)
    final_score = score_from_breakdown(breakdown, track)
    tier = tier_from_score(final_score)

    logger.debug("Computed SR %.1f (%s, %s)", final_score, tier.value, track.value)

    return SRResult(
        final_score=final_score,
        tier=tier,
        track=track,
        score_a=round_score(normalize_score(track_a_total(breakdown))),
        score_b=round_score(normalize_score(track_b_total(breakdown))),
        breakdown=breakdown,
        is_mcp=is_mcp,
        is_verified=is_claimed,
    )
