"""In-memory ``package.json`` of the generated project.

Commands and hooks declare dependencies and scripts here; :meth:`install`
writes the manifest and runs the configured package manager.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any

from jinja2 import Environment

from plinth.utils import print_warning, run_command


class InstallError(RuntimeError):
    """Raised when the package manager exits with a non-zero status."""

    def __init__(self, command: list[str], returncode: int, stderr: str) -> None:
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(
            f"'{' '.join(command)}' exited with status {returncode}: {stderr[:500]}"
        )


class ProjectPackageJson:
    """Dependency manifest of the target project."""

    def __init__(
        self,
        dir: str | Path,
        package_manager: str = "yarn",
        skip_install: bool = False,
    ) -> None:
        self.dir = Path(dir)
        self.package_manager = package_manager
        self.skip_install = skip_install
        self._raw: dict[str, Any] | None = None
        self.changed = False
        self._versions = Environment()

    # ------------------------------------------------------------------
    # Raw manifest access
    # ------------------------------------------------------------------

    @property
    def path(self) -> Path:
        return self.dir / "package.json"

    @property
    def raw(self) -> dict[str, Any]:
        if self._raw is None:
            self._raw = self._read()
        return self._raw

    def _read(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.path.is_file():
            data = json.loads(self.path.read_text(encoding="utf-8"))
        data.setdefault("name", self.dir.name)
        data.setdefault("version", "1.0.0")
        data.setdefault("description", "")
        for section in ("scripts", "dependencies", "devDependencies"):
            data.setdefault(section, {})
        return data

    @property
    def name(self) -> str:
        return self.raw["name"]

    @name.setter
    def name(self, value: str) -> None:
        self.raw["name"] = value
        self.changed = True

    @property
    def dependencies(self) -> dict[str, str]:
        return self.raw["dependencies"]

    @property
    def dev_dependencies(self) -> dict[str, str]:
        return self.raw["devDependencies"]

    @property
    def scripts(self) -> dict[str, str]:
        return self.raw["scripts"]

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def add_dependency(self, name: str, version: str | None = None) -> "ProjectPackageJson":
        self.dependencies[name] = version or "latest"
        self.changed = True
        return self

    def add_dev_dependency(self, name: str, version: str | None = None) -> "ProjectPackageJson":
        self.dev_dependencies[name] = version or "latest"
        self.changed = True
        return self

    def add_dependencies(
        self, modules: dict[str, str | None], ctx: dict[str, Any] | None = None
    ) -> "ProjectPackageJson":
        """Add several dependencies; versions may reference *ctx* (``{{ tsed_version }}``)."""
        for name, version in modules.items():
            self.add_dependency(name, self._render_version(version, ctx))
        return self

    def add_dev_dependencies(
        self, modules: dict[str, str | None], ctx: dict[str, Any] | None = None
    ) -> "ProjectPackageJson":
        for name, version in modules.items():
            self.add_dev_dependency(name, self._render_version(version, ctx))
        return self

    def add_scripts(self, scripts: dict[str, str]) -> "ProjectPackageJson":
        self.scripts.update(scripts)
        self.changed = True
        return self

    def _render_version(self, version: str | None, ctx: dict[str, Any] | None) -> str | None:
        if version and "{{" in version:
            return self._versions.from_string(version).render(ctx or {}) or None
        return version

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        data = dict(self.raw)
        for section in ("dependencies", "devDependencies"):
            data[section] = dict(sorted(data[section].items()))
        return data

    async def write(self) -> Path:
        content = json.dumps(self.to_dict(), indent=2, ensure_ascii=False) + "\n"
        self.dir.mkdir(parents=True, exist_ok=True)
        await asyncio.to_thread(self.path.write_text, content, "utf-8")
        self.changed = False
        return self.path

    async def install(self) -> None:
        """Write ``package.json`` then run ``<package_manager> install``.

        Raises:
            InstallError: If the package manager fails.
        """
        await self.write()
        if self.skip_install:
            print_warning(f"Skipping '{self.package_manager} install' in {self.dir}")
            return

        cmd = [self.package_manager, "install"]
        returncode, _stdout, stderr = await run_command(cmd, cwd=self.dir)
        if returncode != 0:
            raise InstallError(cmd, returncode, stderr)
