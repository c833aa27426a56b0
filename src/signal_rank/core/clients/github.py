"""GitHub REST API scanner (Track A).

API docs: https://docs.github.com/en/rest
Rate limit: 60 requests/hour unauthenticated, 5,000/hour with GITHUB_TOKEN.
"""

from __future__ import annotations

import asyncio
import base64
import logging
import os
import re
import time
from datetime import datetime
from typing import Any, Optional

import httpx

from ..models import GitHubScanResult

logger = logging.getLogger(__name__)

API_BASE = "https://api.github.com"

MAX_RETRIES = 3
RETRY_BASE_DELAY = 1.0
MAX_RATE_LIMIT_WAIT = 60.0

MCP_KEYWORDS = ("mcp", "model context protocol", "mcp server", "mcp-server", "modelcontextprotocol")

STANDARD_INTERFACE_KEYWORDS = (
    "langchain",
    "vercel ai",
    "ai sdk",
    "openai",
    "anthropic",
    "llama-index",
    "llamaindex",
    "autogen",
    "crewai",
    "semantic-kernel",
)

USAGE_KEYWORDS = ("usage", "example", "getting started", "quick start", "how to use", "installation")

OPENAPI_FILES = ("openapi.json", "openapi.yaml", "openapi.yml", "swagger.json", "swagger.yaml", "swagger.yml")
MANIFEST_FILES = ("manifest.json", "package.json")
DOCKER_FILES = ("dockerfile", "docker-compose.yml", "docker-compose.yaml")

_CODE_BLOCK_RE = re.compile(r"```[\s\S]*?```")


def build_headers(token: Optional[str] = None) -> dict[str, str]:
    headers = {
        "Accept": "application/vnd.github+json",
        "X-GitHub-Api-Version": "2022-11-28",
    }
    token = token or os.environ.get("GITHUB_TOKEN", "")
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


def detect_mcp(content: str) -> bool:
    lowered = content.lower()
    return any(keyword in lowered for keyword in MCP_KEYWORDS)


def detect_standard_interface(content: str) -> bool:
    lowered = content.lower()
    return any(keyword in lowered for keyword in STANDARD_INTERFACE_KEYWORDS)


def has_usage_code_block(readme: str) -> bool:
    """A fenced code block plus a usage-style heading or phrase."""
    if not _CODE_BLOCK_RE.search(readme):
        return False
    lowered = readme.lower()
    return any(keyword in lowered for keyword in USAGE_KEYWORDS)


def _has_any_file(contents: list[dict], targets: tuple[str, ...]) -> bool:
    names = {item.get("name", "").lower() for item in contents if item.get("type") == "file"}
    return any(target.lower() in names for target in targets)


def _rate_limit_wait(response: httpx.Response, attempt: int) -> Optional[float]:
    """Seconds to wait when the response is a primary rate-limit rejection."""
    if response.status_code != 403 or response.headers.get("x-ratelimit-remaining") != "0":
        return None
    reset_at = int(response.headers.get("x-ratelimit-reset", "0"))
    return min(max(reset_at - time.time(), RETRY_BASE_DELAY * 2 ** attempt), MAX_RATE_LIMIT_WAIT)


async def _get_json(client: httpx.AsyncClient, path: str) -> Optional[Any]:
    """GET a GitHub API path with retries. Returns None for 404 or exhausted retries."""
    url = f"{API_BASE}{path}"
    for attempt in range(1, MAX_RETRIES + 1):
        try:
            response = await client.get(url)

            wait = _rate_limit_wait(response, attempt)
            if wait is not None:
                if attempt == MAX_RETRIES:
                    logger.error("GitHub API rate limit still exhausted for %s after %d attempts", url, MAX_RETRIES)
                    return None
                logger.warning("GitHub API rate limit reached, waiting %.0fs", wait)
                await asyncio.sleep(wait)
                continue

            if response.status_code == 404:
                return None

            response.raise_for_status()
            return response.json()
        except (httpx.HTTPError, ValueError) as exc:
            if attempt == MAX_RETRIES:
                logger.error("Failed to fetch %s after %d attempts: %s", url, MAX_RETRIES, exc)
                return None
            delay = RETRY_BASE_DELAY * 2 ** (attempt - 1)
            logger.warning("Fetch attempt %d for %s failed (%s), retrying in %.1fs", attempt, url, exc, delay)
            await asyncio.sleep(delay)
    return None


async def fetch_latest_commit(client: httpx.AsyncClient, owner: str, repo: str, branch: str) -> Optional[datetime]:
    data = await _get_json(client, f"/repos/{owner}/{repo}/commits/{branch}")
    try:
        raw = data["commit"]["committer"]["date"]
    except (KeyError, TypeError):
        return None
    try:
        return datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        return None


async def fetch_repo_contents(client: httpx.AsyncClient, owner: str, repo: str) -> list[dict]:
    data = await _get_json(client, f"/repos/{owner}/{repo}/contents")
    return data if isinstance(data, list) else []


async def fetch_readme(client: httpx.AsyncClient, owner: str, repo: str) -> str:
    data = await _get_json(client, f"/repos/{owner}/{repo}/readme")
    if not isinstance(data, dict) or data.get("encoding") != "base64" or not data.get("content"):
        return ""
    try:
        return base64.b64decode(data["content"]).decode("utf-8", errors="replace")
    except ValueError:
        return ""


async def scan_github_repo(
    owner: str,
    repo: str,
    token: Optional[str] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> Optional[GitHubScanResult]:
    """Collect the Track A facts for a repository.

    Args:
        owner: Repository owner (user or organization).
        repo: Repository name.
        token: GitHub token. Falls back to the GITHUB_TOKEN environment variable.
        client: Optional pre-configured client, mainly for tests.

    Returns:
        GitHubScanResult, or None when the repository does not exist or
        could not be fetched.
    """
    if client is None:
        async with httpx.AsyncClient(
            headers=build_headers(token),
            timeout=httpx.Timeout(30.0, connect=10.0),
        ) as owned_client:
            return await scan_github_repo(owner, repo, token, owned_client)

    info = await _get_json(client, f"/repos/{owner}/{repo}")
    if not isinstance(info, dict):
        logger.info("GitHub repository %s/%s not found", owner, repo)
        return None

    last_commit, contents, readme = await asyncio.gather(
        fetch_latest_commit(client, owner, repo, info.get("default_branch") or "main"),
        fetch_repo_contents(client, owner, repo),
        fetch_readme(client, owner, repo),
    )

    description = info.get("description") or ""
    topics = info.get("topics") or []
    combined = " ".join([description, readme, " ".join(topics)])

    return GitHubScanResult(
        owner=owner,
        repo=repo,
        stars=info.get("stargazers_count", 0),
        forks=info.get("forks_count", 0),
        last_commit_date=last_commit,
        has_license=info.get("license") is not None,
        has_openapi=_has_any_file(contents, OPENAPI_FILES),
        has_dockerfile=_has_any_file(contents, DOCKER_FILES),
        has_manifest=_has_any_file(contents, MANIFEST_FILES),
        readme_length=len(readme.split("\n")) if readme else 0,
        has_usage_code_block=has_usage_code_block(readme),
        has_mcp=detect_mcp(combined),
        has_standard_interface=detect_standard_interface(combined),
        homepage=info.get("homepage") or None,
        description=description,
        topics=topics,
        readme=readme,
    )
