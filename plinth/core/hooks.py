"""Hook contribution protocol.

A hook is a plugin component that contributes questions and/or tasks to one or
more commands.  Methods are marked with :func:`on_prompt` / :func:`on_exec`::

    class PassportGenerateHook(Hook):
        providers = [{"name": "Protocol", "value": "protocol"}]

        @on_prompt("generate")
        def on_generate_prompt(self, initial): ...

        @on_exec("generate")
        def on_generate_exec(self, ctx): ...

Provider declarations are registered against the hook class while the hook is
constructed, so the same hook class always resolves to the same owner.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any, ClassVar

from plinth.core.registry import ProviderInfo, name_of

if TYPE_CHECKING:
    from plinth.core.lifecycle import CliService

_PROMPT_ATTR = "__plinth_on_prompt__"
_EXEC_ATTR = "__plinth_on_exec__"


def on_prompt(*commands: str) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Mark a method as the prompt contribution for *commands*."""

    def decorator(fn: Callable[..., Any]) -> Callable[..., Any]:
        setattr(fn, _PROMPT_ATTR, (*getattr(fn, _PROMPT_ATTR, ()), *commands))
        return fn

    return decorator


def on_exec(*commands: str) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Mark a method as the task contribution for *commands*."""

    def decorator(fn: Callable[..., Any]) -> Callable[..., Any]:
        setattr(fn, _EXEC_ATTR, (*getattr(fn, _EXEC_ATTR, ()), *commands))
        return fn

    return decorator


class Hook:
    """Base class for plugin hooks.

    Class attributes:
        providers: ``{name, value, ...}`` dicts this hook owns.
        feature: Init feature flag that enables this plugin's dependencies
            (``None`` means always).
        dependencies / dev_dependencies: npm packages the plugin needs in the
            generated project, added by ``CliPlugins.add_plugins_dependencies``.
    """

    providers: ClassVar[list[dict[str, Any]]] = []
    feature: ClassVar[str | None] = None
    dependencies: ClassVar[dict[str, str]] = {}
    dev_dependencies: ClassVar[dict[str, str]] = {}

    def __init__(self, cli: "CliService") -> None:
        self.cli = cli
        for provider in self.providers:
            cli.providers.register(ProviderInfo(**provider), type(self))

    @property
    def provider_values(self) -> list[str]:
        return [p["value"] for p in self.providers]


class HookRegistry:
    """Holds hook instances in registration order, at most one per hook class."""

    def __init__(self) -> None:
        self._hooks: list[Any] = []

    def add(self, hook: Any) -> Any:
        """Register *hook* and return the instance kept for its class."""
        existing = self.get(name_of(hook))
        if existing is not None:
            return existing
        self._hooks.append(hook)
        return hook

    def get(self, name: str) -> Any:
        for hook in self._hooks:
            if name_of(hook) == name:
                return hook
        return None

    def __iter__(self):
        return iter(list(self._hooks))

    def __len__(self) -> int:
        return len(self._hooks)

    def prompt_callbacks(self, command: str) -> list[tuple[Any, Callable[..., Any]]]:
        return self._callbacks(_PROMPT_ATTR, command)

    def exec_callbacks(self, command: str) -> list[tuple[Any, Callable[..., Any]]]:
        return self._callbacks(_EXEC_ATTR, command)

    def _callbacks(self, attr: str, command: str) -> list[tuple[Any, Callable[..., Any]]]:
        found: list[tuple[Any, Callable[..., Any]]] = []
        for hook in self._hooks:
            for name in _member_names(type(hook)):
                fn = getattr(type(hook), name, None)
                if command in getattr(fn, attr, ()):
                    found.append((hook, getattr(hook, name)))
        return found


def _member_names(cls: type) -> list[str]:
    """Attribute names in definition order, base classes first."""
    names: dict[str, None] = {}
    for klass in reversed(cls.__mro__):
        for name in vars(klass):
            names[name] = None
    return list(names)
