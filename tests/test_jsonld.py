"""
Tests for the Schema.org JSON-LD generator.
"""

import json
import re
from datetime import datetime, timedelta, timezone

from hypothesis import given, settings
from hypothesis import strategies as st

from signal_rank.core.generators.jsonld import (
    build_keywords,
    build_provider,
    generate_jsonld,
    is_valid_jsonld_string,
    validate_jsonld_fields,
)
from signal_rank.core.models import Agent, IOModality, Track

_text = st.characters(blacklist_categories=("Cs",))

agents = st.builds(
    Agent,
    slug=st.from_regex(r"[a-z0-9][a-z0-9-]{0,30}", fullmatch=True),
    name=st.text(_text, min_size=1, max_size=50),
    description=st.one_of(st.none(), st.text(_text, max_size=200)),
    github_url=st.one_of(st.none(), st.just("https://github.com/acme/agent")),
    homepage_url=st.one_of(st.none(), st.just("https://www.acme.ai")),
    sr_score=st.floats(min_value=0, max_value=10, allow_nan=False),
    sr_track=st.sampled_from(list(Track)),
    is_mcp=st.booleans(),
    input_types=st.lists(st.sampled_from(list(IOModality)), max_size=4),
    output_types=st.lists(st.sampled_from(list(IOModality)), max_size=4),
)


@given(agent=agents)
@settings(max_examples=100)
def test_jsonld_is_complete_and_parseable(agent: Agent) -> None:
    """Generated JSON-LD always has the required fields and round-trips through JSON."""
    output = generate_jsonld(agent)

    assert validate_jsonld_fields(output.json_ld)
    assert is_valid_jsonld_string(output.json_ld_string)

    body = re.search(r"<script[^>]*>([\s\S]*?)</script>", output.json_ld_string).group(1)
    assert json.loads(body) == output.json_ld
    assert output.json_ld["name"] == agent.name
    assert agent.name in output.deployment_instructions


def test_devin_example(make_agent) -> None:
    agent = make_agent(
        slug="devin",
        name="Devin",
        description="Autonomous AI software engineer",
        homepage_url="https://www.devin.ai",
        api_docs_url="https://docs.devin.ai",
        sr_score=9.1,
    )
    json_ld = generate_jsonld(agent).json_ld

    assert json_ld["@type"] == "SoftwareApplication"
    assert json_ld["url"] == "https://www.devin.ai"
    assert json_ld["provider"] == {"@type": "Organization", "name": "devin.ai", "url": "https://www.devin.ai"}
    assert json_ld["aggregateRating"]["ratingValue"] == "9.1"
    assert json_ld["offers"] == {"@type": "Offer", "price": "0", "priceCurrency": "USD"}
    assert "API Documentation Available" in json_ld["featureList"]
    assert "Signal Rank: S (9.1/10)" in json_ld["featureList"]


def test_zero_score_has_no_rating(make_agent) -> None:
    json_ld = generate_jsonld(make_agent(sr_score=0)).json_ld
    assert "aggregateRating" not in json_ld


def test_url_falls_back_to_listing_page(make_agent) -> None:
    json_ld = generate_jsonld(make_agent(slug="bare"), base_url="https://example.org").json_ld
    assert json_ld["url"] == "https://example.org/agents/bare"
    assert json_ld["description"] == "Test Agent - AI Agent"


def test_provider_prefers_github_owner(make_agent) -> None:
    agent = make_agent(github_url="https://github.com/openai/swarm", homepage_url="https://openai.com")
    assert build_provider(agent) == {
        "@type": "Organization",
        "name": "openai",
        "url": "https://github.com/openai",
    }


def test_provider_falls_back_to_name(make_agent) -> None:
    assert build_provider(make_agent()) == {"@type": "Organization", "name": "Test Agent"}


def test_github_agents_are_free_code(make_agent) -> None:
    json_ld = generate_jsonld(make_agent(github_url="https://github.com/acme/bot")).json_ld
    assert json_ld["codeRepository"] == "https://github.com/acme/bot"
    assert json_ld["isAccessibleForFree"] is True


def test_keywords_deduplicate_modalities(make_agent) -> None:
    agent = make_agent(
        sr_track=Track.HYBRID,
        is_mcp=True,
        input_types=[IOModality.TEXT, IOModality.UNKNOWN],
        output_types=[IOModality.TEXT, IOModality.IMAGE],
    )
    assert build_keywords(agent) == (
        "AI Agent, AI Tool, Hybrid, Open Source, SaaS, MCP, Model Context Protocol, Text, Image"
    )


def test_dates_are_iso_days(make_agent) -> None:
    agent = make_agent(
        created_at=datetime(2024, 1, 2, 15, 30, tzinfo=timezone.utc),
        updated_at="2025-03-04T08:00:00Z",
    )
    json_ld = generate_jsonld(agent).json_ld
    assert json_ld["datePublished"] == "2024-01-02"
    assert json_ld["dateModified"] == "2025-03-04"


def test_og_image_sets_image_and_screenshot(make_agent) -> None:
    json_ld = generate_jsonld(make_agent(og_image="https://acme.ai/og.png")).json_ld
    assert json_ld["image"] == json_ld["screenshot"] == "https://acme.ai/og.png"


def test_invalid_jsonld_strings() -> None:
    assert not is_valid_jsonld_string('{"a": 1}')
    assert not is_valid_jsonld_string('<script type="application/ld+json">{broken</script>')


def test_missing_required_field_fails_validation() -> None:
    assert not validate_jsonld_fields({"@context": "https://schema.org", "@type": "SoftwareApplication"})


def test_malformed_homepage_falls_back_to_name(make_agent) -> None:
    """An unparseable homepage URL never breaks generation."""
    agent = make_agent(homepage_url="http://[oops")
    assert build_provider(agent) == {"@type": "Organization", "name": "Test Agent"}
    assert validate_jsonld_fields(generate_jsonld(agent).json_ld)


def test_script_close_in_text_stays_inside_block(make_agent) -> None:
    agent = make_agent(name="</script><b>x</b>", description="Embed with </script> tags")
    output = generate_jsonld(agent)

    assert output.json_ld_string.count("</script>") == 1
    assert is_valid_jsonld_string(output.json_ld_string)
    body = re.search(r"<script[^>]*>([\s\S]*?)</script>", output.json_ld_string).group(1)
    assert json.loads(body)["description"] == "Embed with </script> tags"


def test_aware_dates_use_utc_day(make_agent) -> None:
    tokyo = timezone(timedelta(hours=9))
    agent = make_agent(created_at=datetime(2024, 1, 2, 3, 0, tzinfo=tokyo))
    assert generate_jsonld(agent).json_ld["datePublished"] == "2024-01-01"


def test_rating_rounds_ties_up(make_agent) -> None:
    json_ld = generate_jsonld(make_agent(sr_score=8.25)).json_ld
    assert json_ld["aggregateRating"]["ratingValue"] == "8.3"
    assert "Signal Rank: A (8.3/10)" in json_ld["featureList"]
