"""Per-metric diagnostics with actionable improvement suggestions."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

from .models import (
    DiagnosticItem,
    DiagnosticsSummary,
    DiagnosticStatus,
    GitHubScanResult,
    SaaSScanResult,
    ScoreBreakdown,
)
from .scoring import RECENT_COMMIT_DAYS, README_MIN_LINES, as_utc

SUGGESTIONS: dict[str, str] = {
    # Track A (GitHub)
    "GitHub Stars": "Grow visibility: share the project on social media, submit it to Awesome lists, and write about it.",
    "Fork Ratio": "Encourage contributions: add a CONTRIBUTING.md, label good first issues, and respond to pull requests.",
    "Recent Commits": "Keep the project active: commit regularly, fix issues, and publish releases.",
    "License": "Add an open source license: create a LICENSE file in the repository root (MIT or Apache 2.0).",
    "OpenAPI/Swagger": "Document the API: add an openapi.json or swagger.yaml describing the endpoints.",
    "Dockerfile": "Add container support: provide a Dockerfile so users can deploy the agent easily.",
    "README Quality": "Improve the README: add usage instructions, code examples, and install steps (200+ lines).",
    "MCP Support": "Support MCP: implement a Model Context Protocol server to improve agent interoperability.",
    # Track B (SaaS)
    "HTTPS": "Enable HTTPS: configure a valid TLS certificate for the site.",
    "Social Links": "Add social links: link Twitter/X, GitHub, Discord or LinkedIn from the site.",
    "JSON-LD": "Add JSON-LD: include SoftwareApplication structured data in the page <head>.",
    "Meta Tags": "Complete meta tags: make sure title, description and an H1 are present and meaningful.",
    "Open Graph": "Add Open Graph: include og:title and og:image tags for social sharing.",
    "API Documentation": "Publish API docs: expose a /docs or /api page describing how to use the API.",
    "Integration Keywords": "Show integrations: mention SDKs, webhooks, Zapier, or plugins on the site.",
    "Login Button": "Provide an entry point: add a sign in / sign up button for users.",
}

WARNING_RATIO = 0.5


def get_status(score: float, max_score: float, threshold: float = WARNING_RATIO) -> DiagnosticStatus:
    ratio = score / max_score
    if ratio >= 1:
        return DiagnosticStatus.PASS
    if ratio >= threshold:
        return DiagnosticStatus.WARNING
    return DiagnosticStatus.FAIL


def _item(metric: str, score: float, max_score: float) -> DiagnosticItem:
    return DiagnosticItem(
        metric=metric,
        status=get_status(score, max_score),
        score=score,
        max_score=max_score,
        suggestion=SUGGESTIONS[metric] if score < max_score else None,
    )


def github_diagnostics(
    result: GitHubScanResult,
    breakdown: ScoreBreakdown,
    now: Optional[datetime] = None,
) -> list[DiagnosticItem]:
    now = as_utc(now or datetime.now(timezone.utc))
    recent = (
        result.last_commit_date is not None
        and now - as_utc(result.last_commit_date) < timedelta(days=RECENT_COMMIT_DAYS)
    )
    if result.has_mcp:
        protocol = 2.0
    elif result.has_standard_interface:
        protocol = 1.0
    else:
        protocol = 0.0

    return [
        _item("GitHub Stars", breakdown.stars_score, 2.0),
        _item("Fork Ratio", breakdown.forks_score, 1.0),
        _item("Recent Commits", 1.0 if recent else 0.0, 1.0),
        _item("License", 1.0 if result.has_license else 0.0, 1.0),
        _item("OpenAPI/Swagger", 1.5 if result.has_openapi else 0.0, 1.5),
        _item("Dockerfile", 0.5 if result.has_dockerfile else 0.0, 0.5),
        _item(
            "README Quality",
            1.0 if result.readme_length > README_MIN_LINES and result.has_usage_code_block else 0.0,
            1.0,
        ),
        _item("MCP Support", protocol, 2.0),
    ]


def saas_diagnostics(result: SaaSScanResult) -> list[DiagnosticItem]:
    return [
        _item("HTTPS", 1.0 if result.https_valid else 0.0, 1.0),
        _item("Social Links", 1.0 if len(result.social_links) >= 2 else 0.0, 1.0),
        _item("JSON-LD", 2.0 if result.has_json_ld else 0.0, 2.0),
        _item("Meta Tags", 1.0 if result.has_basic_meta else 0.0, 1.0),
        _item("Open Graph", 1.0 if result.has_og_tags else 0.0, 1.0),
        _item("API Documentation", 1.5 if result.has_api_docs_path else 0.0, 1.5),
        _item("Integration Keywords", 1.0 if result.has_integration_keywords else 0.0, 1.0),
        _item("Login Button", 0.5 if result.has_login_button else 0.0, 0.5),
    ]


def generate_diagnostics(
    github: Optional[GitHubScanResult],
    saas: Optional[SaaSScanResult],
    breakdown: ScoreBreakdown,
    now: Optional[datetime] = None,
) -> list[DiagnosticItem]:
    """Diagnostics for every track that was scanned."""
    diagnostics: list[DiagnosticItem] = []
    if github:
        diagnostics.extend(github_diagnostics(github, breakdown, now))
    if saas:
        diagnostics.extend(saas_diagnostics(saas))
    return diagnostics


def get_diagnostic_suggestion(metric: str, status: DiagnosticStatus) -> Optional[str]:
    """Suggestion for a failing metric; None unless the status is fail."""
    if status != DiagnosticStatus.FAIL:
        return None
    return SUGGESTIONS.get(metric, f"Improve {metric} to raise the Signal Rank score.")


def get_diagnostics_summary(diagnostics: list[DiagnosticItem]) -> DiagnosticsSummary:
    total = len(diagnostics)
    passed = sum(1 for d in diagnostics if d.status == DiagnosticStatus.PASS)
    failed = sum(1 for d in diagnostics if d.status == DiagnosticStatus.FAIL)
    warnings = sum(1 for d in diagnostics if d.status == DiagnosticStatus.WARNING)
    pass_rate = round(passed / total * 100) if total else 0
    return DiagnosticsSummary(total=total, passed=passed, failed=failed, warnings=warnings, pass_rate=pass_rate)
