"""Integration tests for project creation followed by generation.

These tests run the real commands end-to-end against a temporary directory
and verify that the generated project contains valid, well-formed
configuration files.  The npm registry is mocked and package installation is
skipped, so no network or Node.js toolchain is required.
"""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
import yaml

from plinth.commands import COMMANDS
from plinth.config import Config
from plinth.core.lifecycle import CliService, CommandState
from plinth.core.prompts import ScriptedPrompter
from plinth.plugins.passport import PassportGenerateHook


@pytest.fixture
def passport_entry_point():
    entry_point = MagicMock()
    entry_point.name = "passport"
    entry_point.load.return_value = PassportGenerateHook
    with patch("plinth.services.plugins.entry_points", return_value=[entry_point]):
        yield


def _service(project_dir: Path) -> CliService:
    cli = CliService(Config(project_dir=project_dir, skip_install=True), quiet=True)
    for command_cls in COMMANDS:
        cli.register_command(command_cls)
    return cli


@pytest.mark.integration
@pytest.mark.asyncio
async def test_init_project_files_are_valid(tmp_path: Path, passport_entry_point):
    cli = _service(tmp_path)
    prompter = ScriptedPrompter(
        {"features": ["db", "passport", "testing"], "features_db": "db:mongoose"}
    )
    run = await cli.run_command("init", {"root": "shop-api"}, prompter)

    project = tmp_path / "shop-api"
    assert run.state == CommandState.DONE

    compose = yaml.safe_load((project / "docker-compose.yml").read_text(encoding="utf-8"))
    assert compose["services"]["server"]["image"] == "shop-api/server:latest"
    assert compose["services"]["server"]["depends_on"] == ["mongodb"]
    assert "mongodb" in compose["services"]

    for name in ("tsconfig.json", "tsconfig.compile.json"):
        data = json.loads((project / name).read_text(encoding="utf-8"))
        assert "compilerOptions" in data

    package = json.loads((project / "package.json").read_text(encoding="utf-8"))
    assert package["name"] == "shop-api"
    assert "@tsed/mongoose" in package["dependencies"]
    assert "@tsed/passport" in package["dependencies"]
    assert "jest" in package["devDependencies"]

    server = (project / "src" / "Server.ts").read_text(encoding="utf-8")
    assert 'import "@tsed/mongoose";' in server
    assert 'import "@tsed/passport";' in server


@pytest.mark.integration
@pytest.mark.asyncio
async def test_generate_protocol_after_init(tmp_path: Path, passport_entry_point, mock_npm):
    cli = _service(tmp_path)
    await cli.run_command("init", {"root": ".", "features": ["passport"]})

    # A new invocation of the CLI loads plugins at start-up.
    cli = _service(tmp_path)
    cli.plugins.load_plugins()
    with mock_npm:
        await cli.run_command(
            "generate",
            {"type": "protocol", "name": "Login"},
            ScriptedPrompter({"passport_package": "passport-local"}),
        )

    protocol = tmp_path / "src" / "protocols" / "login.protocol.ts"
    assert "export class LoginProtocol" in protocol.read_text(encoding="utf-8")

    package = json.loads((tmp_path / "package.json").read_text(encoding="utf-8"))
    assert "@tsed/passport" in package["dependencies"]
    assert package["dependencies"]["passport-local"] == "1.0.0"
