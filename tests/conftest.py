"""Shared pytest fixtures for the plinth test suite.

Provides reusable fixtures for:
- Temporary target project directories and configuration
- A ``CliService`` with the built-in commands registered
- Mocked npm registry responses
"""

from __future__ import annotations

from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from plinth.commands import GenerateCmd, InitCmd
from plinth.config import Config
from plinth.core.lifecycle import CliService


# ---------------------------------------------------------------------------
# Paths & configuration
# ---------------------------------------------------------------------------

@pytest.fixture
def tmp_project_dir(tmp_path: Path) -> Path:
    """Temporary directory for the generated project (auto-cleanup)."""
    project_dir = tmp_path / "test-project"
    project_dir.mkdir()
    yield project_dir


@pytest.fixture
def config(tmp_project_dir: Path) -> Config:
    """Configuration pointing at the temporary project, never installing."""
    return Config(project_dir=tmp_project_dir, skip_install=True)


@pytest.fixture
def cli(config: Config) -> CliService:
    """A quiet ``CliService`` with ``init`` and ``generate`` registered."""
    service = CliService(config, quiet=True)
    service.register_command(InitCmd)
    service.register_command(GenerateCmd)
    return service


# ---------------------------------------------------------------------------
# Mock npm registry
# ---------------------------------------------------------------------------

def _make_search_response() -> dict[str, Any]:
    """Build a realistic ``/-/v1/search`` response."""
    return {
        "objects": [
            {"package": {"name": "passport-local", "version": "1.0.0",
                         "description": "Local username and password authentication strategy"}},
            {"package": {"name": "passport-jwt", "version": "4.0.1",
                         "description": "Passport authentication strategy using JSON Web Tokens"}},
            {"package": {"name": "passport-http", "version": "0.3.0",
                         "description": "HTTP Basic and Digest authentication strategies"}},
            {"package": {"name": "passport", "version": "0.7.0",
                         "description": "Simple, unobtrusive authentication for Node.js."}},
        ],
        "total": 4,
    }


def _make_info_response(name: str) -> dict[str, Any]:
    """Build a realistic package document response."""
    return {
        "name": name,
        "description": f"{name} package",
        "dist-tags": {"latest": "2.3.4", "next": "3.0.0-rc.1"},
    }


@pytest.fixture
def sample_search_response() -> dict[str, Any]:
    return _make_search_response()


@pytest.fixture
def mock_npm():
    """Mocked npm registry responses.

    Patches ``httpx.AsyncClient`` so that search and package document
    requests receive realistic payloads.

    Usage:
        def test_something(mock_npm):
            with mock_npm as client_cls:
                ...
                assert client_cls.return_value.get.await_count == 1
    """

    async def mock_get(url: str, **kwargs: Any) -> MagicMock:
        response = MagicMock()
        response.status_code = 200
        response.raise_for_status = MagicMock()
        if url.startswith("/-/v1/search"):
            response.json.return_value = _make_search_response()
        else:
            response.json.return_value = _make_info_response(url.lstrip("/").replace("%2F", "/"))
        return response

    mock_client = AsyncMock()
    mock_client.get = AsyncMock(side_effect=mock_get)
    mock_client.__aenter__ = AsyncMock(return_value=mock_client)
    mock_client.__aexit__ = AsyncMock(return_value=False)

    return patch("httpx.AsyncClient", return_value=mock_client)
