"""Shared fixtures for the Signal Rank test suite."""

import asyncio

import pytest

from signal_rank import db
from signal_rank.core.models import Agent


@pytest.fixture
def make_agent():
    """Factory for Agent instances with sensible defaults."""

    def factory(**overrides) -> Agent:
        fields = {"slug": "test-agent", "name": "Test Agent"}
        fields.update(overrides)
        return Agent(**fields)

    return factory


@pytest.fixture
def data_dir(tmp_path, monkeypatch):
    """Point the SQLite store at a temporary directory."""
    monkeypatch.setenv("DATA_DIR", str(tmp_path))
    return tmp_path


@pytest.fixture
def run_db(data_dir):
    """Run an async callable against a freshly initialized database.

    The engine is created and disposed inside the same event loop.
    """

    def run(fn):
        async def wrapper():
            await db.init_db()
            try:
                return await fn()
            finally:
                await db.close_db()

        return asyncio.run(wrapper())

    return run
