"""URL validation, normalization, and GitHub repository detection."""

from __future__ import annotations

import re
from typing import Optional
from urllib.parse import urlparse

from .models import URLDetectorResult, URLType

VALID_SCHEMES = ("http", "https")

_OWNER_RE = re.compile(r"^[a-zA-Z0-9](?:[a-zA-Z0-9]|-(?=[a-zA-Z0-9])){0,38}$")
_REPO_RE = re.compile(r"^[a-zA-Z0-9._-]+$")

# Top-level github.com paths that are never a user or organization
RESERVED_GITHUB_PATHS = frozenset({
    "settings", "explore", "topics", "trending", "collections",
    "events", "sponsors", "login", "signup", "pricing",
    "features", "enterprise", "team", "marketplace", "pulls",
    "issues", "notifications", "new", "organizations", "orgs",
    "about", "security", "contact", "support", "blog", "apps",
    "codespaces", "copilot", "actions", "packages", "discussions",
})


def _parse(url: str):
    try:
        return urlparse(url.strip())
    except ValueError:
        return None


def is_valid_url(url: Optional[str]) -> bool:
    """http(s) URL whose host has a dot, or localhost."""
    if not url or not url.strip():
        return False
    parsed = _parse(url)
    if parsed is None or parsed.scheme not in VALID_SCHEMES:
        return False
    hostname = parsed.hostname
    if not hostname:
        return False
    return "." in hostname or hostname == "localhost"


def normalize_url(url: str) -> str:
    """Upgrade to https (except localhost) and drop trailing slashes, query and fragment."""
    trimmed = url.strip()
    parsed = _parse(trimmed)
    if parsed is None or not parsed.hostname:
        return trimmed

    scheme = parsed.scheme
    if scheme == "http" and parsed.hostname != "localhost":
        scheme = "https"

    try:
        port = parsed.port
    except ValueError:
        port = None

    normalized = f"{scheme}://{parsed.hostname}"
    if port:
        normalized += f":{port}"

    path = parsed.path.rstrip("/")
    if path:
        normalized += path
    return normalized


def _github_path_parts(url: str) -> Optional[list[str]]:
    parsed = _parse(url)
    if parsed is None or parsed.scheme not in VALID_SCHEMES:
        return None
    hostname = (parsed.hostname or "").lower()
    if hostname not in ("github.com", "www.github.com"):
        return None
    return [p for p in parsed.path.split("/") if p]


def is_github_url(url: Optional[str]) -> bool:
    if not url:
        return False
    parts = _github_path_parts(url)
    if not parts or len(parts) < 2:
        return False
    owner, repo = parts[0], parts[1]
    if owner.lower() in RESERVED_GITHUB_PATHS:
        return False
    return bool(_OWNER_RE.match(owner)) and bool(_REPO_RE.match(repo))


def extract_github_info(url: str) -> Optional[tuple[str, str]]:
    """(owner, repo) for a GitHub repository URL, with any .git suffix removed."""
    if not is_github_url(url):
        return None
    parts = _github_path_parts(url)
    owner, repo = parts[0], parts[1]
    return owner, repo.removesuffix(".git")


def normalize_github_url(url: str) -> str:
    info = extract_github_info(url)
    if info is None:
        return normalize_url(url)
    owner, repo = info
    return f"https://github.com/{owner}/{repo}"


def detect_url_type(url: str) -> URLType:
    if not is_valid_url(url):
        return URLType.INVALID
    if is_github_url(url):
        return URLType.GITHUB
    return URLType.SAAS


def detect_url(url: Optional[str]) -> URLDetectorResult:
    """Validate a URL and classify it as a GitHub repository or a SaaS site."""
    if not url or not is_valid_url(url):
        return URLDetectorResult(type=URLType.INVALID)

    trimmed = url.strip()
    if detect_url_type(trimmed) == URLType.GITHUB:
        owner, repo = extract_github_info(trimmed)
        return URLDetectorResult(
            type=URLType.GITHUB,
            normalized_url=normalize_github_url(trimmed),
            github_owner=owner,
            github_repo=repo,
        )

    return URLDetectorResult(type=URLType.SAAS, normalized_url=normalize_url(trimmed))


def slug_from_url(url: str, owner: Optional[str] = None, repo: Optional[str] = None) -> str:
    if owner and repo:
        return f"{owner}-{repo}".lower()
    hostname = (_parse(url) or urlparse("")).hostname or ""
    return hostname.removeprefix("www.").replace(".", "-").lower()


def name_from_url(url: str, repo: Optional[str] = None) -> str:
    if repo:
        return repo
    hostname = (_parse(url) or urlparse("")).hostname
    if not hostname:
        return "Unknown Agent"
    return hostname.removeprefix("www.")
