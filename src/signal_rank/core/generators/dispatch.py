"""Route a generator request to the matching artifact generator."""

from __future__ import annotations

import logging
from typing import Union

from ..models import Agent, GeneratorType
from .badge import DEFAULT_BASE_URL, generate_badge, generate_markdown_embed, report_url
from .jsonld import generate_jsonld
from .prompt import generate_prompt

logger = logging.getLogger(__name__)


def parse_generator_type(value: Union[GeneratorType, str]) -> GeneratorType:
    try:
        return GeneratorType(value)
    except ValueError:
        valid = ", ".join(t.value for t in GeneratorType)
        raise ValueError(f"Unsupported generator type '{value}'. Must be one of: {valid}") from None


def _agent_summary(agent: Agent) -> dict:
    return {
        "slug": agent.slug,
        "name": agent.name,
        "sr_score": agent.sr_score,
        "sr_tier": agent.sr_tier.value,
    }


def generate_artifact(
    agent: Agent,
    generator_type: Union[GeneratorType, str],
    base_url: str = DEFAULT_BASE_URL,
) -> dict:
    """Run one generator and return a JSON-ready payload."""
    kind = parse_generator_type(generator_type)

    if kind == GeneratorType.JSONLD:
        payload = generate_jsonld(agent, base_url).model_dump(mode="json")
    elif kind == GeneratorType.BADGE:
        badge = generate_badge(agent.slug, agent.sr_tier, agent.sr_score, agent.name, base_url)
        payload = badge.model_dump(mode="json")
        payload["markdown_embed"] = generate_markdown_embed(
            badge.svg_url, report_url(agent.slug, base_url), agent.sr_tier, agent.sr_score,
        )
    else:
        payload = generate_prompt(agent).model_dump(mode="json")

    logger.info("generate %s for %s", kind.value, agent.slug)
    return {"type": kind.value, "agent": _agent_summary(agent), **payload}
