"""Unit tests for NpmClient (plinth.services.npm_client).

Tests cover:
- PackageInfo parsing (dist-tags alias, latest fallback)
- NpmClient.search / NpmClient.info
- Error mapping (connect error, timeout, HTTP error)
- PassportClient.get_packages filtering and ordering
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from plinth.plugins.passport.client import PassportClient
from plinth.services.npm_client import NpmClient, PackageIndexError, PackageInfo


def _failing_client(error: Exception) -> AsyncMock:
    mock_client = AsyncMock()
    mock_client.get = AsyncMock(side_effect=error)
    mock_client.__aenter__ = AsyncMock(return_value=mock_client)
    mock_client.__aexit__ = AsyncMock(return_value=False)
    return mock_client


# ---------------------------------------------------------------------------
# PackageInfo
# ---------------------------------------------------------------------------


class TestPackageInfo:
    @pytest.mark.unit
    def test_dist_tags_alias(self):
        info = PackageInfo.model_validate({"name": "passport", "dist-tags": {"latest": "0.7.0"}})
        assert info.dist_tags == {"latest": "0.7.0"}
        assert info.latest == "0.7.0"

    @pytest.mark.unit
    def test_latest_falls_back_to_version(self):
        assert PackageInfo(name="passport-local", version="1.0.0").latest == "1.0.0"
        assert PackageInfo(name="passport-local").latest is None


# ---------------------------------------------------------------------------
# NpmClient
# ---------------------------------------------------------------------------


class TestNpmClientInit:
    @pytest.mark.unit
    def test_defaults(self):
        client = NpmClient()
        assert client.base_url == "https://registry.npmjs.org"
        assert client.timeout == 30

    @pytest.mark.unit
    def test_trailing_slash_stripped(self):
        assert NpmClient(base_url="http://localhost:4873/").base_url == "http://localhost:4873"


class TestNpmClientRequests:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_search(self, mock_npm):
        with mock_npm as client_cls:
            packages = await NpmClient().search("passport-", size=250)

        assert [p.name for p in packages] == [
            "passport-local", "passport-jwt", "passport-http", "passport",
        ]
        assert packages[0].version == "1.0.0"
        get = client_cls.return_value.get
        get.assert_awaited_once_with("/-/v1/search", params={"text": "passport-", "size": 250})

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_info(self, mock_npm):
        with mock_npm as client_cls:
            info = await NpmClient().info("passport-local")

        assert info.name == "passport-local"
        assert info.latest == "2.3.4"
        client_cls.return_value.get.assert_awaited_once_with("/passport-local", params=None)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_info_scoped_package_quoted(self, mock_npm):
        with mock_npm as client_cls:
            await NpmClient().info("@tsed/passport")
        client_cls.return_value.get.assert_awaited_once_with("/@tsed%2Fpassport", params=None)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_search_skips_entries_without_name(self):
        response = MagicMock()
        response.raise_for_status = MagicMock()
        response.json.return_value = {"objects": [{"package": {}}, {"package": {"name": "passport-x"}}]}
        mock_client = AsyncMock()
        mock_client.get = AsyncMock(return_value=response)
        mock_client.__aenter__ = AsyncMock(return_value=mock_client)
        mock_client.__aexit__ = AsyncMock(return_value=False)

        with patch("httpx.AsyncClient", return_value=mock_client):
            packages = await NpmClient().search("passport-")

        assert [p.name for p in packages] == ["passport-x"]


class TestNpmClientErrors:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_connect_error(self):
        with patch("httpx.AsyncClient", return_value=_failing_client(httpx.ConnectError("refused"))):
            with pytest.raises(PackageIndexError, match="Cannot connect"):
                await NpmClient().search("passport-")

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_timeout(self):
        with patch("httpx.AsyncClient", return_value=_failing_client(httpx.TimeoutException("slow"))):
            with pytest.raises(PackageIndexError, match="timed out"):
                await NpmClient(timeout=5).info("passport")

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_http_error(self):
        error = httpx.HTTPStatusError(
            "Not Found",
            request=httpx.Request("GET", "https://registry.npmjs.org/nope"),
            response=httpx.Response(404),
        )
        with patch("httpx.AsyncClient", return_value=_failing_client(error)):
            with pytest.raises(PackageIndexError, match="HTTP 404"):
                await NpmClient().info("nope")


# ---------------------------------------------------------------------------
# PassportClient
# ---------------------------------------------------------------------------


class TestPassportClient:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_only_strategies_sorted_by_name(self, mock_npm):
        with mock_npm:
            packages = await PassportClient(NpmClient()).get_packages()
        assert [p.name for p in packages] == ["passport-http", "passport-jwt", "passport-local"]
