"""Interface prompt generator.

Writes a system prompt that tells an LLM how to call or use an agent. One of
three templates is chosen by detected capabilities, in priority order:
MCP, structured API, then a natural-language fallback for agents that can
only be used through their website.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional, Sequence

from ..models import Agent, IOModality, PromptOutput, PromptTemplate, Tier, Track
from ..scoring import format_score

logger = logging.getLogger(__name__)

API_KEY_PLACEHOLDER = "<PASTE_YOUR_KEY_HERE>"

# Plain substring matches; marketing copy like "sign up" counts
API_KEY_INDICATORS: tuple[str, ...] = (
    "api key",
    "api_key",
    "apikey",
    "api-key",
    "authentication",
    "auth token",
    "access token",
    "bearer token",
    "secret key",
    "credentials",
    "sign up",
    "register",
    "get started",
)

STRUCTURED_API_READINESS = 1.5

TIER_RELIABILITY: dict[Tier, str] = {
    Tier.S: "Top-tier reliability and AI integration (Signal Rank S)",
    Tier.A: "Production-ready with excellent AI visibility (Signal Rank A)",
    Tier.B: "Functional with moderate AI visibility (Signal Rank B)",
    Tier.C: "Experimental or limited AI visibility (Signal Rank C)",
}

TIER_READINESS: dict[Tier, str] = {
    Tier.S: "excellent",
    Tier.A: "very good",
    Tier.B: "moderate",
    Tier.C: "basic",
}

TRACK_CAPABILITY: dict[Track, str] = {
    Track.OPEN_SOURCE: "Open source project available on GitHub",
    Track.SAAS: "Cloud-based SaaS service",
    Track.HYBRID: "Available as both open source and cloud service",
}


def detect_requires_api_key(agent: Agent, indicators: Sequence[str] = API_KEY_INDICATORS) -> bool:
    content = " ".join([
        agent.description or "",
        agent.meta_description or "",
        agent.api_docs_url or "",
    ]).lower()
    return any(indicator in content for indicator in indicators)


def has_structured_api(agent: Agent) -> bool:
    return (
        bool(agent.api_docs_url)
        or agent.score_breakdown.readiness_score >= STRUCTURED_API_READINESS
        or agent.is_mcp
    )


def get_api_endpoint(agent: Agent) -> Optional[str]:
    return agent.api_docs_url or agent.homepage_url or agent.github_url or None


def select_template(agent: Agent) -> PromptTemplate:
    if agent.is_mcp:
        return PromptTemplate.MCP
    if has_structured_api(agent):
        return PromptTemplate.STRUCTURED_API
    return PromptTemplate.NATURAL_LANGUAGE


def format_modalities(modalities: list[IOModality]) -> str:
    known = [m.value for m in modalities if m != IOModality.UNKNOWN]
    return ", ".join(known) if known else "various formats"


def build_capabilities_description(agent: Agent) -> str:
    """Bullet body shared by the structured and natural-language templates."""
    capabilities = []
    inputs = [m.value for m in agent.input_types if m != IOModality.UNKNOWN]
    outputs = [m.value for m in agent.output_types if m != IOModality.UNKNOWN]
    if inputs:
        capabilities.append(f"Accepts input in: {', '.join(inputs)}")
    if outputs:
        capabilities.append(f"Produces output in: {', '.join(outputs)}")
    if agent.is_mcp:
        capabilities.append("Supports Model Context Protocol (MCP) for standardized AI integration")
    capabilities.append(TRACK_CAPABILITY[agent.sr_track])
    capabilities.append(TIER_RELIABILITY[agent.sr_tier])
    return "\n- ".join(capabilities)


def _rank(agent: Agent) -> str:
    return f"{agent.sr_tier.value} ({format_score(agent.sr_score)}/10)"


def build_mcp_prompt(agent: Agent, requires_api_key: bool) -> str:
    endpoint = get_api_endpoint(agent)
    env_block = f'\n        "API_KEY": "{API_KEY_PLACEHOLDER}"' if requires_api_key else ""

    prompt = f"""You are an AI assistant configured to use "{agent.name}" via Model Context Protocol (MCP).

## MCP Server: {agent.name}
{agent.description or f"{agent.name} is an MCP-compatible AI agent."}

## MCP Configuration
This agent supports the Model Context Protocol, enabling standardized communication between AI systems.

```json
{{
  "mcpServers": {{
    "{agent.slug}": {{
      "command": "npx",
      "args": ["-y", "{agent.slug}"],
      "env": {{{env_block}
      }}
    }}
  }}
}}
```
"""

    if endpoint:
        prompt += f"""
## Documentation
For detailed setup and usage instructions, visit: {endpoint}
"""

    prompt += f"""
## Capabilities
- Input formats: {format_modalities(agent.input_types)}
- Output formats: {format_modalities(agent.output_types)}

## Signal Rank: {_rank(agent)}
This MCP server has excellent AI integration readiness."""
    return prompt


def build_structured_prompt(agent: Agent, requires_api_key: bool) -> str:
    endpoint = get_api_endpoint(agent)

    prompt = f"""You are an AI assistant that helps users interact with "{agent.name}".

## About {agent.name}
{agent.description or f"{agent.name} is an AI agent available on Agent Signals."}

## Capabilities
- {build_capabilities_description(agent)}

## API Integration
"""

    if endpoint:
        prompt += f"- Documentation: {endpoint}\n"

    if agent.is_mcp:
        prompt += """- Protocol: Model Context Protocol (MCP)
- This agent supports standardized MCP communication for seamless AI integration.
"""

    if requires_api_key:
        prompt += f"""
## Authentication
This agent requires an API key for access.
API Key: {API_KEY_PLACEHOLDER}

When making requests, include the API key in the appropriate header or parameter as specified in the documentation.
"""

    key_step = (
        f"Replace {API_KEY_PLACEHOLDER} with your actual API key"
        if requires_api_key
        else "No authentication required for basic usage"
    )
    prompt += f"""
## Usage Instructions
1. Review the agent's documentation for available endpoints and parameters
2. {key_step}
3. Format your requests according to the agent's API specification
4. Handle responses based on the output format ({format_modalities(agent.output_types)})

## Signal Rank
This agent has a Signal Rank of {_rank(agent)}, indicating {TIER_READINESS[agent.sr_tier]} AI integration readiness."""
    return prompt


def build_natural_language_prompt(agent: Agent, requires_api_key: bool) -> str:
    prompt = f"""You are an AI assistant helping users understand and use "{agent.name}".

## About {agent.name}
{agent.description or f"{agent.name} is a service available on Agent Signals."}

## What This Agent Does
- {build_capabilities_description(agent)}

## How to Use
Since this agent doesn't have a structured API, here's how you can interact with it:

1. **Visit the Website**: Go to {agent.homepage_url or "the agent's homepage"}
2. **Explore Features**: Look for the main functionality described above
3. **Follow On-Screen Instructions**: The service will guide you through its features
"""

    if requires_api_key:
        prompt += f"""
## Authentication Required
This service requires you to create an account or obtain access credentials.
- Sign up at the service's website
- Look for API access or developer options
- Your API Key: {API_KEY_PLACEHOLDER}
"""

    if agent.sr_tier in (Tier.B, Tier.C):
        outlook = "The lower rank may indicate limited API access or AI integration options."
    else:
        outlook = "This indicates good reliability and potential for AI integration."

    prompt += f"""
## Integration Tips
- Check if the service offers browser extensions or plugins
- Look for export/import features to work with your data
- Consider using web automation tools if direct API isn't available

## Signal Rank
This agent has a Signal Rank of {_rank(agent)}.
{outlook}"""
    return prompt


TEMPLATE_BUILDERS: dict[PromptTemplate, Callable[[Agent, bool], str]] = {
    PromptTemplate.MCP: build_mcp_prompt,
    PromptTemplate.STRUCTURED_API: build_structured_prompt,
    PromptTemplate.NATURAL_LANGUAGE: build_natural_language_prompt,
}


def generate_prompt(agent: Agent) -> PromptOutput:
    """Generate the interface prompt for an agent."""
    requires_api_key = detect_requires_api_key(agent)
    template = select_template(agent)
    logger.debug("Prompt template %s for %s (api key: %s)", template.value, agent.slug, requires_api_key)

    return PromptOutput(
        system_prompt=TEMPLATE_BUILDERS[template](agent, requires_api_key),
        has_structured_api=has_structured_api(agent),
        api_endpoint=get_api_endpoint(agent),
        template=template,
    )


def validate_prompt_content(prompt: str, agent_name: str) -> bool:
    return agent_name in prompt and bool(prompt.strip())


def has_api_key_placeholder(prompt: str) -> bool:
    return API_KEY_PLACEHOLDER in prompt


def is_valid_natural_language_fallback(prompt: str) -> bool:
    if not prompt.strip():
        return False
    return any(marker in prompt for marker in ("How to Use", "Usage", "Instructions"))
