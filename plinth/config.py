"""plinth configuration.

Centralised, typed configuration for the CLI. All settings use Pydantic v2
models so they can be validated at construction time and serialised to/from
JSON or environment variables without boiler-plate.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field


class RegistryConfig(BaseModel):
    """Settings for the npm package index client."""

    url: str = Field(default="https://registry.npmjs.org")
    timeout: int = Field(default=30, ge=1, description="Per-request timeout in seconds")


class Config(BaseModel):
    """Global plinth configuration.

    Instances are created once by the CLI entry point (usually through
    :meth:`from_env`) and handed to ``CliService``, which passes the relevant
    pieces to every command, hook and collaborator.
    """

    project_dir: Path = Field(default_factory=Path.cwd)
    src_dir: str = Field(default="src")
    template_dir: Path | None = Field(
        default=None, description="Override for the bundled template directory"
    )
    package_manager: Literal["npm", "yarn"] = Field(default="yarn")
    tsed_version: str = Field(default="latest")
    strict_providers: bool = Field(
        default=False,
        description="Reject a provider registered twice by different owners",
    )
    skip_install: bool = Field(
        default=False, description="Write package.json without running the package manager"
    )
    verbose: bool = Field(default=False)
    registry: RegistryConfig = Field(default_factory=RegistryConfig)

    plinth_dir: str = Field(default=".plinth")

    # ------------------------------------------------------------------
    # Derived paths
    # ------------------------------------------------------------------

    @property
    def plinth_path(self) -> Path:
        """Root of the ``.plinth/`` metadata directory inside the project."""
        return self.project_dir / self.plinth_dir

    @property
    def src_path(self) -> Path:
        """Absolute source directory of the target project."""
        return self.project_dir / self.src_dir

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def save(self, path: Path | None = None) -> Path:
        """Persist the configuration to a JSON file.

        Args:
            path: Destination file. Defaults to ``<plinth_path>/config.json``.

        Returns:
            The resolved path where the file was written.
        """
        target = path or (self.plinth_path / "config.json")
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        return target

    @classmethod
    def load(cls, path: Path) -> "Config":
        """Load a previously-saved configuration from JSON."""
        raw = Path(path).read_text(encoding="utf-8")
        return cls.model_validate_json(raw)

    @classmethod
    def from_env(cls, **overrides: Any) -> "Config":
        """Build a ``Config`` from environment variables.

        Recognised variables (all optional):
            PLINTH_PROJECT_DIR, PLINTH_SRC_DIR, PLINTH_TEMPLATE_DIR,
            PLINTH_PACKAGE_MANAGER, PLINTH_TSED_VERSION, PLINTH_STRICT_PROVIDERS,
            PLINTH_SKIP_INSTALL, PLINTH_REGISTRY_URL, PLINTH_REGISTRY_TIMEOUT.

        Keyword *overrides* win over the environment (the CLI passes its
        parsed flags this way).
        """
        kwargs: dict[str, Any] = {}
        if os.environ.get("PLINTH_PROJECT_DIR"):
            kwargs["project_dir"] = Path(os.environ["PLINTH_PROJECT_DIR"])
        if os.environ.get("PLINTH_SRC_DIR"):
            kwargs["src_dir"] = os.environ["PLINTH_SRC_DIR"]
        if os.environ.get("PLINTH_TEMPLATE_DIR"):
            kwargs["template_dir"] = Path(os.environ["PLINTH_TEMPLATE_DIR"])
        if os.environ.get("PLINTH_PACKAGE_MANAGER"):
            kwargs["package_manager"] = os.environ["PLINTH_PACKAGE_MANAGER"]
        if os.environ.get("PLINTH_TSED_VERSION"):
            kwargs["tsed_version"] = os.environ["PLINTH_TSED_VERSION"]
        if os.environ.get("PLINTH_STRICT_PROVIDERS"):
            kwargs["strict_providers"] = _env_flag(os.environ["PLINTH_STRICT_PROVIDERS"])
        if os.environ.get("PLINTH_SKIP_INSTALL"):
            kwargs["skip_install"] = _env_flag(os.environ["PLINTH_SKIP_INSTALL"])

        registry_kwargs: dict[str, Any] = {}
        if os.environ.get("PLINTH_REGISTRY_URL"):
            registry_kwargs["url"] = os.environ["PLINTH_REGISTRY_URL"]
        if os.environ.get("PLINTH_REGISTRY_TIMEOUT"):
            registry_kwargs["timeout"] = int(os.environ["PLINTH_REGISTRY_TIMEOUT"])

        kwargs["registry"] = RegistryConfig(**registry_kwargs)
        kwargs.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**kwargs)


def _env_flag(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")
