"""Async client for the npm package registry.

Wraps the two registry endpoints plinth needs, package search
(``/-/v1/search``) and package metadata (``/<name>``), with timeout handling
and structured responses.

Typical usage::

    client = NpmClient()
    packages = await client.search("passport-")
    info = await client.info("passport-local")
    print(info.latest)
"""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ConfigDict, Field


class PackageIndexError(RuntimeError):
    """Raised when the registry cannot be reached or answers with an error."""


class PackageInfo(BaseModel):
    """Metadata of one npm package."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    description: str = Field(default="")
    version: str | None = Field(default=None, description="Version reported by search results")
    dist_tags: dict[str, str] = Field(default_factory=dict, alias="dist-tags")

    @property
    def latest(self) -> str | None:
        return self.dist_tags.get("latest") or self.version


class NpmClient:
    """Async client for an npm-compatible registry.

    Every call opens a short-lived ``httpx.AsyncClient``; failures are raised
    as :class:`PackageIndexError` so a prompt or task depending on registry
    data aborts the command.
    """

    def __init__(self, base_url: str = "https://registry.npmjs.org", timeout: int = 30) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def _client(self) -> httpx.AsyncClient:
        """Return a fresh ``AsyncClient`` configured with our base URL and timeout."""
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(self.timeout, connect=10.0),
            headers={"Accept": "application/json"},
        )

    async def _get_json(self, path: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        try:
            async with self._client() as client:
                response = await client.get(path, params=params)
                response.raise_for_status()
                return response.json()
        except httpx.ConnectError as exc:
            raise PackageIndexError(f"Cannot connect to registry at {self.base_url}") from exc
        except httpx.TimeoutException as exc:
            raise PackageIndexError(
                f"Request to registry timed out after {self.timeout}s"
            ) from exc
        except httpx.HTTPStatusError as exc:
            raise PackageIndexError(
                f"Registry returned HTTP {exc.response.status_code} for {path}"
            ) from exc

    async def search(self, text: str, size: int = 100) -> list[PackageInfo]:
        """Search packages matching *text*.

        Returns:
            Packages in registry ranking order.
        """
        data = await self._get_json("/-/v1/search", params={"text": text, "size": size})
        packages: list[PackageInfo] = []
        for entry in data.get("objects", []):
            pkg = entry.get("package") or {}
            if pkg.get("name"):
                packages.append(
                    PackageInfo(
                        name=pkg["name"],
                        description=pkg.get("description") or "",
                        version=pkg.get("version"),
                    )
                )
        return packages

    async def info(self, name: str) -> PackageInfo:
        """Fetch registry metadata (including ``dist-tags``) for *name*."""
        data = await self._get_json(f"/{quote(name, safe='@')}")
        return PackageInfo(
            name=data.get("name", name),
            description=data.get("description") or "",
            dist_tags=data.get("dist-tags") or {},
        )
