"""Schema.org JSON-LD generator.

Produces a SoftwareApplication block an agent owner can paste into their
site's <head>, along with Markdown deployment steps. Every optional field is
a plain presence check on the agent record.
"""

from __future__ import annotations

import json
import re
from datetime import datetime, timezone
from typing import Optional
from urllib.parse import urlparse

from ..models import Agent, IOModality, JSONLDOutput, Tier, Track
from ..scoring import format_score

DEFAULT_BASE_URL = "https://agentsignals.ai"

REQUIRED_FIELDS = ("@context", "@type", "name", "description", "url", "provider")

TIER_EMOJI: dict[Tier, str] = {
    Tier.S: "🏆",
    Tier.A: "⭐",
    Tier.B: "📊",
    Tier.C: "📈",
}
DEFAULT_TIER_EMOJI = "📊"

TRACK_KEYWORDS: dict[Track, list[str]] = {
    Track.OPEN_SOURCE: ["Open Source", "GitHub"],
    Track.SAAS: ["SaaS", "Cloud Service"],
    Track.HYBRID: ["Hybrid", "Open Source", "SaaS"],
}

_GITHUB_OWNER_RE = re.compile(r"github\.com/([^/]+)")
_SCRIPT_BODY_RE = re.compile(r"<script[^>]*>([\s\S]*?)</script>")


def _known(modalities: list[IOModality]) -> list[str]:
    return [m.value for m in modalities if m != IOModality.UNKNOWN]


def get_agent_url(agent: Agent, base_url: str = DEFAULT_BASE_URL) -> str:
    return agent.homepage_url or agent.github_url or f"{base_url}/agents/{agent.slug}"


def build_provider(agent: Agent) -> dict:
    """Organization from the GitHub owner, else the homepage host, else the agent name."""
    if agent.github_url:
        match = _GITHUB_OWNER_RE.search(agent.github_url)
        if match:
            owner = match.group(1)
            return {"@type": "Organization", "name": owner, "url": f"https://github.com/{owner}"}

    if agent.homepage_url:
        try:
            hostname = urlparse(agent.homepage_url).hostname
        except ValueError:
            hostname = None
        if hostname:
            return {"@type": "Organization", "name": hostname.removeprefix("www."), "url": agent.homepage_url}

    return {"@type": "Organization", "name": agent.name}


def build_feature_list(agent: Agent) -> list[str]:
    features = []
    inputs = _known(agent.input_types)
    if inputs:
        features.append(f"Accepts: {', '.join(inputs)}")
    outputs = _known(agent.output_types)
    if outputs:
        features.append(f"Outputs: {', '.join(outputs)}")
    if agent.is_mcp:
        features.append("MCP (Model Context Protocol) Support")
    if agent.api_docs_url:
        features.append("API Documentation Available")
    features.append(f"Signal Rank: {agent.sr_tier.value} ({format_score(agent.sr_score)}/10)")
    return features


def build_keywords(agent: Agent) -> str:
    keywords = ["AI Agent", "AI Tool"]
    keywords.extend(TRACK_KEYWORDS[agent.sr_track])
    if agent.is_mcp:
        keywords.extend(["MCP", "Model Context Protocol"])
    modalities = dict.fromkeys(_known(agent.input_types) + _known(agent.output_types))
    keywords.extend(modalities)
    return ", ".join(keywords)


def _iso_date(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.date().isoformat()


def build_jsonld_schema(agent: Agent, base_url: str = DEFAULT_BASE_URL) -> dict:
    schema: dict = {
        "@context": "https://schema.org",
        "@type": "SoftwareApplication",
        "name": agent.name,
        "description": agent.description or f"{agent.name} - AI Agent",
        "url": get_agent_url(agent, base_url),
        "provider": build_provider(agent),
        "applicationCategory": "AI Agent",
        "operatingSystem": "Web",
        # Always advertised as free, regardless of the listing's pricing
        "offers": {"@type": "Offer", "price": "0", "priceCurrency": "USD"},
    }

    if agent.sr_score > 0:
        schema["aggregateRating"] = {
            "@type": "AggregateRating",
            "ratingValue": format_score(agent.sr_score),
            "bestRating": "10",
            "worstRating": "0",
        }

    if agent.og_image:
        schema["image"] = agent.og_image
        schema["screenshot"] = agent.og_image

    schema["featureList"] = build_feature_list(agent)
    schema["keywords"] = build_keywords(agent)

    if agent.github_url:
        schema["codeRepository"] = agent.github_url
        schema["isAccessibleForFree"] = True

    date_modified = _iso_date(agent.updated_at)
    if date_modified:
        schema["dateModified"] = date_modified
    date_published = _iso_date(agent.created_at)
    if date_published:
        schema["datePublished"] = date_published

    return schema


def format_jsonld_string(json_ld: dict) -> str:
    # A "</script>" inside a string value must not close the tag
    body = json.dumps(json_ld, indent=2, ensure_ascii=False).replace("</", "<\\/")
    return f'<script type="application/ld+json">\n{body}\n</script>'


def generate_deployment_instructions(agent: Agent) -> str:
    emoji = TIER_EMOJI.get(agent.sr_tier, DEFAULT_TIER_EMOJI)
    return f"""## Deploy JSON-LD Structured Data

{emoji} Your agent "{agent.name}" currently has Signal Rank: {agent.sr_tier.value} ({format_score(agent.sr_score)}/10)

### Step 1: Copy the code
Copy the JSON-LD block above.

### Step 2: Add it to your site
Paste the code inside your site's `<head>` tag:

```html
<head>
  <!-- other meta tags -->

  <!-- Agent Signals JSON-LD -->
  <script type="application/ld+json">
    {{ ... }}
  </script>
</head>
```

### Step 3: Verify the deployment
1. Deploy the updated site
2. Return to Agent Signals and click "Verify Deployment"
3. The site will be rescanned and your Signal Rank updated

### Tips
- Deploying JSON-LD raises your AEO score by 2.0 points
- Make sure the URL in the JSON-LD matches your live site URL
- Use Google's [Rich Results Test](https://search.google.com/test/rich-results) to validate the structured data

### Need help?
Visit the [Agent Signals docs](https://agentsignals.ai/docs) for more information."""


def generate_jsonld(agent: Agent, base_url: str = DEFAULT_BASE_URL) -> JSONLDOutput:
    """Generate the JSON-LD object, its <script> embedding, and deployment steps."""
    json_ld = build_jsonld_schema(agent, base_url)
    return JSONLDOutput(
        json_ld=json_ld,
        json_ld_string=format_jsonld_string(json_ld),
        deployment_instructions=generate_deployment_instructions(agent),
    )


def validate_jsonld_fields(json_ld: dict) -> bool:
    """True iff every required top-level field is present and not None."""
    return all(json_ld.get(field) is not None for field in REQUIRED_FIELDS)


def is_valid_jsonld_string(json_ld_string: str) -> bool:
    """True iff the string wraps a parseable JSON body in a <script> tag."""
    match = _SCRIPT_BODY_RE.search(json_ld_string)
    if not match:
        return False
    try:
        json.loads(match.group(1))
    except json.JSONDecodeError:
        return False
    return True
