"""
Tests for the GitHub scanner, with the REST API stubbed by httpx.MockTransport.
"""

import asyncio
import base64

import httpx
import pytest

from signal_rank.core.clients import github

README = "\n".join(
    ["# Acme Agent", "An MCP server for documents.", "## Usage", "```bash", "pip install acme", "```"]
    + ["filler line"] * 250
)


def repo_routes(readme: str = README) -> dict:
    return {
        "/repos/acme/agent": {
            "stargazers_count": 12_000,
            "forks_count": 2_000,
            "license": {"key": "mit"},
            "default_branch": "trunk",
            "description": "Document agent",
            "homepage": "https://acme.ai",
            "topics": ["ai"],
        },
        "/repos/acme/agent/commits/trunk": {"commit": {"committer": {"date": "2026-05-30T12:00:00Z"}}},
        "/repos/acme/agent/contents": [
            {"name": "Dockerfile", "type": "file"},
            {"name": "openapi.yaml", "type": "file"},
            {"name": "src", "type": "dir"},
        ],
        "/repos/acme/agent/readme": {
            "encoding": "base64",
            "content": base64.b64encode(readme.encode()).decode(),
        },
    }


def mock_client(routes: dict, calls: list | None = None) -> httpx.AsyncClient:
    def handler(request: httpx.Request) -> httpx.Response:
        if calls is not None:
            calls.append(request.url.path)
        if request.url.path in routes:
            return httpx.Response(200, json=routes[request.url.path])
        return httpx.Response(404, json={"message": "Not Found"})

    return httpx.AsyncClient(transport=httpx.MockTransport(handler), headers=github.build_headers("test-token"))


def scan(client: httpx.AsyncClient, owner: str = "acme", repo: str = "agent"):
    async def run():
        async with client:
            return await github.scan_github_repo(owner, repo, client=client)

    return asyncio.run(run())


def test_scan_collects_repository_facts() -> None:
    result = scan(mock_client(repo_routes()))

    assert result is not None
    assert result.stars == 12_000
    assert result.forks == 2_000
    assert result.has_license is True
    assert result.has_dockerfile is True
    assert result.has_openapi is True
    assert result.has_manifest is False
    assert result.last_commit_date.year == 2026
    assert result.readme_length == len(README.split("\n"))
    assert result.has_usage_code_block is True
    assert result.has_mcp is True
    assert result.homepage == "https://acme.ai"
    assert result.readme == README


def test_readme_is_excluded_from_dumps() -> None:
    result = scan(mock_client(repo_routes()))
    assert "readme" not in result.model_dump()


def test_missing_repository_returns_none() -> None:
    assert scan(mock_client({}), "acme", "ghost") is None


def test_missing_readme_and_commit() -> None:
    routes = repo_routes()
    del routes["/repos/acme/agent/readme"]
    del routes["/repos/acme/agent/commits/trunk"]
    result = scan(mock_client(routes))

    assert result.readme_length == 0
    assert result.last_commit_date is None
    assert result.has_usage_code_block is False


def test_server_errors_are_retried_then_give_up(monkeypatch) -> None:
    monkeypatch.setattr(github, "RETRY_BASE_DELAY", 0)
    calls: list = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url.path)
        return httpx.Response(500)

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    assert scan(client) is None
    assert len(calls) == github.MAX_RETRIES


def test_transient_error_recovers(monkeypatch) -> None:
    monkeypatch.setattr(github, "RETRY_BASE_DELAY", 0)
    routes = repo_routes()
    failures = {"/repos/acme/agent": 1}

    def handler(request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if failures.get(path):
            failures[path] -= 1
            return httpx.Response(502)
        if path in routes:
            return httpx.Response(200, json=routes[path])
        return httpx.Response(404)

    result = scan(httpx.AsyncClient(transport=httpx.MockTransport(handler)))
    assert result is not None
    assert result.stars == 12_000


def test_rate_limit_exhaustion_is_logged(monkeypatch, caplog) -> None:
    """A rate limit that never resets gives up with an error after capped waits."""
    monkeypatch.setattr(github, "MAX_RATE_LIMIT_WAIT", 0)
    calls: list = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url.path)
        return httpx.Response(
            403,
            headers={"x-ratelimit-remaining": "0", "x-ratelimit-reset": str(2**31)},
            json={"message": "API rate limit exceeded"},
        )

    with caplog.at_level("ERROR", logger=github.__name__):
        assert scan(httpx.AsyncClient(transport=httpx.MockTransport(handler))) is None

    assert len(calls) == github.MAX_RETRIES
    assert "rate limit still exhausted" in caplog.text


def test_build_headers(monkeypatch) -> None:
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    assert "Authorization" not in github.build_headers()
    assert github.build_headers("abc")["Authorization"] == "Bearer abc"

    monkeypatch.setenv("GITHUB_TOKEN", "from-env")
    assert github.build_headers()["Authorization"] == "Bearer from-env"


@pytest.mark.parametrize(
    "content,expected",
    [
        ("A Model Context Protocol server", True),
        ("Built on modelcontextprotocol", True),
        ("A plain CLI tool", False),
    ],
)
def test_detect_mcp(content: str, expected: bool) -> None:
    assert github.detect_mcp(content) is expected


def test_detect_standard_interface() -> None:
    assert github.detect_standard_interface("Works with LangChain")
    assert not github.detect_standard_interface("Standalone binary")


def test_usage_code_block_needs_both_parts() -> None:
    assert github.has_usage_code_block("## Usage\n```\nrun\n```")
    assert not github.has_usage_code_block("## Usage\nrun it")
    assert not github.has_usage_code_block("```\nrun\n```")

