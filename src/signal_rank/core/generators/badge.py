"""SVG badge generator.

Badges are plain string templates in the shields.io style: a gray name
segment next to a tier-colored score segment. Widths are estimated from
character counts, so no font metrics or image library are involved.
"""

from __future__ import annotations

from typing import Optional, Union
from xml.sax.saxutils import escape, quoteattr

from ..models import BadgeOutput, Tier
from ..scoring import format_score, get_tier_color

DEFAULT_BASE_URL = "https://agentsignals.ai"
DEFAULT_BADGE_NAME = "Agent"

NAME_MAX_CHARS = 12
CHAR_WIDTH_PX = 7
NAME_MIN_WIDTH_PX = 50
SCORE_WIDTH_PX = 55
NAME_FILL = "#555"

# Darker backdrop behind the colored score label
TIER_BG_COLORS: dict[Tier, str] = {
    Tier.S: "#064E3B",
    Tier.A: "#1E3A5F",
    Tier.B: "#713F12",
    Tier.C: "#374151",
}


def is_valid_tier(value: object) -> bool:
    return isinstance(value, str) and value in {t.value for t in Tier}


def truncate_name(name: str, max_length: int = NAME_MAX_CHARS) -> str:
    if len(name) <= max_length:
        return name
    return name[: max_length - 2] + ".."


def badge_label(tier: Union[Tier, str], score: float) -> str:
    return f"Signal Rank: {Tier(tier).value} ({format_score(score)})"


def generate_svg_content(
    tier: Union[Tier, str],
    score: float,
    agent_name: Optional[str] = None,
    default_name: str = DEFAULT_BADGE_NAME,
) -> str:
    tier = Tier(tier)
    color = get_tier_color(tier)
    bg_color = TIER_BG_COLORS[tier]
    display_score = format_score(score)
    display_name = truncate_name(agent_name) if agent_name else default_name
    label = badge_label(tier, score)

    name_width = max(len(display_name) * CHAR_WIDTH_PX, NAME_MIN_WIDTH_PX)
    total_width = name_width + SCORE_WIDTH_PX + 10
    name_center = (name_width + 5) / 2
    score_center = name_width + 5 + (SCORE_WIDTH_PX + 5) / 2
    score_text = f"SR {tier.value} {display_score}"
    name_text = escape(display_name)

    return f"""<svg xmlns="http://www.w3.org/2000/svg" width="{total_width}" height="20" role="img" aria-label={quoteattr(label)}>
  <title>{escape(label)}</title>
  <linearGradient id="s" x2="0" y2="100%">
    <stop offset="0" stop-color="#bbb" stop-opacity=".1"/>
    <stop offset="1" stop-opacity=".1"/>
  </linearGradient>
  <clipPath id="r">
    <rect width="{total_width}" height="20" rx="3" fill="#fff"/>
  </clipPath>
  <g clip-path="url(#r)">
    <rect width="{name_width + 5}" height="20" fill="{NAME_FILL}"/>
    <rect x="{name_width + 5}" width="{SCORE_WIDTH_PX + 5}" height="20" fill="{bg_color}"/>
    <rect width="{total_width}" height="20" fill="url(#s)"/>
  </g>
  <g fill="#fff" text-anchor="middle" font-family="Verdana,Geneva,DejaVu Sans,sans-serif" font-size="11">
    <text x="{name_center:g}" y="15" fill="#010101" fill-opacity=".3">{name_text}</text>
    <text x="{name_center:g}" y="14">{name_text}</text>
    <text x="{score_center:g}" y="15" fill="#010101" fill-opacity=".3">{score_text}</text>
    <text x="{score_center:g}" y="14" fill="{color}">{score_text}</text>
  </g>
</svg>"""


def generate_embed_code(svg_url: str, report_url: str, tier: Union[Tier, str], score: float) -> str:
    return f"""<a href="{report_url}" target="_blank" rel="noopener noreferrer">
  <img src="{svg_url}" alt="{badge_label(tier, score)}" />
</a>"""


def generate_markdown_embed(svg_url: str, report_url: str, tier: Union[Tier, str], score: float) -> str:
    return f"[![{badge_label(tier, score)}]({svg_url})]({report_url})"


def badge_svg_url(slug: str, base_url: str = DEFAULT_BASE_URL) -> str:
    return f"{base_url}/api/badge/{slug}.svg"


def report_url(slug: str, base_url: str = DEFAULT_BASE_URL) -> str:
    return f"{base_url}/agents/{slug}"


def generate_badge(
    agent_slug: str,
    tier: Union[Tier, str],
    score: float,
    agent_name: Optional[str] = None,
    base_url: str = DEFAULT_BASE_URL,
) -> BadgeOutput:
    """Build the badge SVG plus its hosted URL and HTML embed snippet."""
    tier = Tier(tier)
    svg_url = badge_svg_url(agent_slug, base_url)
    return BadgeOutput(
        svg_url=svg_url,
        svg_content=generate_svg_content(tier, score, agent_name),
        embed_code=generate_embed_code(svg_url, report_url(agent_slug, base_url), tier, score),
        tier=tier,
        color=get_tier_color(tier),
    )
