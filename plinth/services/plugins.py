"""Plugin discovery and loading.

Third-party packages extend plinth by declaring an entry point in the
``plinth.plugins`` group.  The target is either a :class:`~plinth.core.hooks.Hook`
subclass, which is instantiated against the running ``CliService``, or a
callable ``register(cli)`` that adds its own hooks::

    [project.entry-points."plinth.plugins"]
    passport = "plinth.plugins.passport:PassportGenerateHook"

Loading is idempotent: an entry point already loaded is skipped.
"""

from __future__ import annotations

from importlib.metadata import EntryPoint, entry_points
from typing import TYPE_CHECKING, Any

from plinth.core.hooks import Hook
from plinth.utils import console

if TYPE_CHECKING:
    from plinth.core.lifecycle import CliService

ENTRY_POINT_GROUP = "plinth.plugins"


class CliPlugins:
    """Discovers, loads and tracks plugins for one ``CliService``."""

    def __init__(self, cli: "CliService", group: str = ENTRY_POINT_GROUP) -> None:
        self.cli = cli
        self.group = group
        self.loaded: dict[str, list[Any]] = {}

    def discover(self) -> list[EntryPoint]:
        return list(entry_points(group=self.group))

    def load_plugins(self) -> list[str]:
        """Load every discovered plugin not loaded yet.

        Returns:
            Names of the plugins loaded by this call.
        """
        newly_loaded: list[str] = []
        for entry_point in self.discover():
            if entry_point.name in self.loaded:
                continue
            self.register(entry_point.name, entry_point.load())
            newly_loaded.append(entry_point.name)
        return newly_loaded

    def register(self, name: str, target: Any) -> list[Any]:
        """Register a plugin *target* under *name* and return its hooks."""
        if name in self.loaded:
            return self.loaded[name]

        before = list(self.cli.hooks)
        if isinstance(target, type) and issubclass(target, Hook):
            self.cli.add_hook(target)
        else:
            target(self.cli)
        hooks = [hook for hook in self.cli.hooks if hook not in before]

        self.loaded[name] = hooks
        if self.cli.config.verbose:
            console.print(f"  [dim]Loaded plugin {name} ({len(hooks)} hook(s))[/dim]")
        return hooks

    def add_plugins_dependencies(self, ctx: dict[str, Any] | None = None) -> None:
        """Declare the npm dependencies of every loaded plugin in the manifest.

        A plugin tied to an init feature only contributes when that feature is
        enabled in *ctx*.
        """
        ctx = ctx or {}
        package_json = self.cli.package_json
        for hooks in self.loaded.values():
            for hook in hooks:
                feature = getattr(hook, "feature", None)
                if feature and not ctx.get(feature):
                    continue
                package_json.add_dependencies(getattr(hook, "dependencies", {}), ctx)
                package_json.add_dev_dependencies(getattr(hook, "dev_dependencies", {}), ctx)
