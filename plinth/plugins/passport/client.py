"""Lookup of Passport.js strategy packages on the npm registry."""

from __future__ import annotations

from plinth.services.npm_client import NpmClient, PackageInfo


class PassportClient:
    def __init__(self, npm_client: NpmClient) -> None:
        self.npm_client = npm_client

    async def get_packages(self) -> list[PackageInfo]:
        """Return ``passport-*`` strategy packages, sorted by name."""
        packages = await self.npm_client.search("passport-", size=250)
        strategies = {p.name: p for p in packages if p.name.startswith("passport-")}
        return sorted(strategies.values(), key=lambda p: p.name)
