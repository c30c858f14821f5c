"""Task collection.

For a command and a finalised context, gathers the tasks contributed by every
hook's exec callback, in hook-registration order.

Hooks that declare providers are dispatched through a :class:`DispatchTable`:
only the hook owning ``ctx["type"]`` is called, the others contribute nothing.
Hooks without provider declarations are called for every invocation, and so
is every hook when the context carries no ``type`` (``init`` for instance).
"""

from __future__ import annotations

import inspect
from typing import Any

from plinth.core.hooks import HookRegistry
from plinth.core.registry import ProvidersRegistry, UnknownProviderError, name_of
from plinth.core.tasks import Task, TaskList


class DispatchTable:
    """Maps a provider value to the hook instance that owns it.

    Values owned by something that is not a registered hook (a command, for
    instance) map to ``None``.
    """

    def __init__(self, handlers: dict[str, Any], signature: tuple[int, int]) -> None:
        self._handlers = handlers
        self.signature = signature

    @classmethod
    def build(cls, registry: ProvidersRegistry, hooks: HookRegistry) -> "DispatchTable":
        by_owner = {name_of(hook): hook for hook in hooks}
        handlers = {info.value: by_owner.get(info.owner or "") for info in registry.list_all()}
        return cls(handlers, (registry.revision, len(hooks)))

    def resolve(self, value: str) -> Any:
        """Return the owning hook for *value* (``None`` if not a hook).

        Raises:
            UnknownProviderError: If *value* was never registered.
        """
        if value not in self._handlers:
            raise UnknownProviderError(value)
        return self._handlers[value]

    def __contains__(self, value: object) -> bool:
        return value in self._handlers


class TaskCollector:
    """Collects exec tasks from hooks for a command."""

    def __init__(self, hooks: HookRegistry, registry: ProvidersRegistry) -> None:
        self.hooks = hooks
        self.registry = registry
        self._table: DispatchTable | None = None

    @property
    def table(self) -> DispatchTable:
        """The dispatch table, rebuilt when providers or hooks changed."""
        signature = (self.registry.revision, len(self.hooks))
        if self._table is None or self._table.signature != signature:
            self._table = DispatchTable.build(self.registry, self.hooks)
        return self._table

    async def collect(self, command: str, ctx: dict[str, Any]) -> list[Task | TaskList]:
        callbacks = self.hooks.exec_callbacks(command)
        dispatched = ctx.get("type") is not None
        owner = None
        if dispatched and any(_declares_providers(h) for h, _ in callbacks):
            owner = self.table.resolve(ctx["type"])

        tasks: list[Task | TaskList] = []
        for hook, callback in callbacks:
            if dispatched and _declares_providers(hook) and hook is not owner:
                continue
            contributed = callback(ctx)
            if inspect.isawaitable(contributed):
                contributed = await contributed
            tasks.extend(contributed or [])
        return tasks


def _declares_providers(hook: Any) -> bool:
    return bool(getattr(hook, "providers", None))
