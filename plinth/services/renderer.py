"""Jinja2 template rendering for generated projects.

Loads ``.j2`` templates from the bundled ``plinth/templates/`` directory (or a
plugin's own template directory) and writes the rendered files under an output
root.  The root is resolved on every render, so a renderer created before the
project directory is known still writes to the right place.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, select_autoescape

from plinth.utils import camel_case, kebab_case, pascal_case

# ---------------------------------------------------------------------------
# Template directory discovery
# ---------------------------------------------------------------------------

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"


class TemplateRenderer:
    """Renders Jinja2 templates into an output directory.

    Args:
        template_dir: Default template directory (bundled templates if
            ``None``).
        root: Output root, either a path or a callable returning one.
    """

    def __init__(
        self,
        template_dir: str | Path | None = None,
        root: Path | Callable[[], Path] | None = None,
    ) -> None:
        self.template_dir = Path(template_dir) if template_dir else TEMPLATE_DIR
        self._root = root
        self._envs: dict[Path, Environment] = {}

    @property
    def root(self) -> Path:
        if callable(self._root):
            return Path(self._root())
        return Path(self._root) if self._root else Path.cwd()

    def _env(self, template_dir: str | Path | None) -> Environment:
        directory = Path(template_dir) if template_dir else self.template_dir
        env = self._envs.get(directory)
        if env is None:
            env = Environment(
                loader=FileSystemLoader(str(directory)),
                autoescape=select_autoescape([]),
                keep_trailing_newline=True,
                trim_blocks=True,
                lstrip_blocks=True,
            )
            env.filters["kebab_case"] = kebab_case
            env.filters["pascal_case"] = pascal_case
            env.filters["camel_case"] = camel_case
            self._envs[directory] = env
        return env

    # -- Lookup ------------------------------------------------------------

    def exists(self, template: str, template_dir: str | Path | None = None) -> bool:
        directory = Path(template_dir) if template_dir else self.template_dir
        return (directory / template).is_file()

    # -- Rendering ---------------------------------------------------------

    def render_string(self, template: str, data: dict[str, Any], template_dir: str | Path | None = None) -> str:
        """Render *template* to a string without writing it."""
        return self._env(template_dir).get_template(template).render(**data)

    async def render(
        self,
        template: str,
        data: dict[str, Any],
        *,
        output: str | Path | None = None,
        template_dir: str | Path | None = None,
    ) -> Path:
        """Render *template* and write the result to *output*.

        *output* is relative to :attr:`root` (absolute paths are kept).  It
        defaults to the template path without its ``.j2`` suffix.  Parent
        directories are created automatically.
        """
        content = self.render_string(template, data, template_dir)
        target = Path(output) if output is not None else Path(_strip_suffix(template))
        if not target.is_absolute():
            target = self.root / target
        await asyncio.to_thread(_write_file, target, content)
        return target

    async def render_all(
        self,
        templates: list[str],
        data: dict[str, Any],
        *,
        template_dir: str | Path | None = None,
    ) -> list[Path]:
        """Render several templates, dropping each one's leading directory.

        ``init/tsconfig.json.j2`` is written to ``<root>/tsconfig.json``.
        """
        written: list[Path] = []
        for template in templates:
            parts = Path(template).parts
            output = Path(*parts[1:]) if len(parts) > 1 else Path(parts[0])
            written.append(
                await self.render(
                    template, data, output=_strip_suffix(str(output)), template_dir=template_dir
                )
            )
        return written


def _strip_suffix(name: str) -> str:
    return name[: -len(".j2")] if name.endswith(".j2") else name


def _write_file(path: Path, content: str) -> None:
    """Synchronous helper: create parent dirs and write content."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
