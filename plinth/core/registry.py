"""Provider registry.

A *provider* is a generation type (``"controller"``, ``"protocol"`` ...) that
exactly one component owns at a time.  Components register the providers they
own while they are constructed; later, anyone can ask who owns a given type.

Quick usage::

    registry = ProvidersRegistry()
    registry.register(ProviderInfo(name="Protocol", value="protocol"), PassportGenerateHook)
    registry.is_owned_by("protocol", PassportGenerateHook)   # True
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

from pydantic import BaseModel, Field

from plinth.utils import print_warning


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class UnknownProviderError(LookupError):
    """Raised when an ownership query names a provider nobody registered."""

    def __init__(self, value: str) -> None:
        self.value = value
        super().__init__(f"No provider registered for type '{value}'")


class ProviderConflictError(ValueError):
    """Raised in strict mode when two owners register the same provider."""

    def __init__(self, value: str, current_owner: str, new_owner: str) -> None:
        self.value = value
        self.current_owner = current_owner
        self.new_owner = new_owner
        super().__init__(
            f"Provider '{value}' is already owned by {current_owner}; "
            f"{new_owner} cannot register it"
        )


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


class ProviderInfo(BaseModel):
    """Metadata describing one provider."""

    value: str = Field(..., min_length=1, description="Unique provider key")
    name: str = Field(..., description="Display label")
    owner: str | None = Field(default=None, description="Identity of the registering component")
    model: str | None = Field(default=None)
    base_dir: str | None = Field(default=None)


def name_of(owner: Any) -> str:
    """Return the stable identity of *owner*.

    Classes and instances resolve to ``module.QualifiedName`` of the class, so
    a hook is identified the same way whether it passes ``self`` or its type.
    Strings are taken as-is.
    """
    if owner is None:
        return ""
    if isinstance(owner, str):
        return owner
    cls = owner if isinstance(owner, type) else type(owner)
    return f"{cls.__module__}.{cls.__qualname__}"


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class ProvidersRegistry:
    """Maps a provider ``value`` to its :class:`ProviderInfo`.

    Registering the same ``value`` again replaces the stored info (last writer
    wins) while keeping its original position in :meth:`list_all`.  When the
    replacing owner differs from the current one a warning is printed, or
    :class:`ProviderConflictError` is raised if the registry is ``strict``.
    """

    def __init__(self, strict: bool = False) -> None:
        self.strict = strict
        self._providers: dict[str, ProviderInfo] = {}
        self.revision = 0

    def register(self, info: ProviderInfo | dict[str, Any], owner: Any = None) -> "ProvidersRegistry":
        if isinstance(info, dict):
            info = ProviderInfo(**info)
        owner_name = name_of(owner)

        current = self._providers.get(info.value)
        if current is not None and current.owner != owner_name:
            if self.strict:
                raise ProviderConflictError(info.value, current.owner or "?", owner_name)
            print_warning(
                f"Provider '{info.value}' re-registered by {owner_name} "
                f"(was {current.owner})"
            )

        self._providers[info.value] = info.model_copy(update={"owner": owner_name})
        self.revision += 1
        return self

    add = register

    def lookup(self, value: str) -> ProviderInfo | None:
        return self._providers.get(value)

    get = lookup

    def is_owned_by(self, value: str, owner: Any) -> bool:
        """Return ``True`` if the latest registration of *value* came from *owner*.

        Raises:
            UnknownProviderError: If *value* was never registered.
        """
        info = self._providers.get(value)
        if info is None:
            raise UnknownProviderError(value)
        return info.owner == name_of(owner)

    def list_all(self) -> list[ProviderInfo]:
        return list(self._providers.values())

    to_list = list_all

    def choices(self) -> list[dict[str, str]]:
        """``{name, value}`` pairs suitable for a list question."""
        return [{"name": info.name, "value": info.value} for info in self._providers.values()]

    def __contains__(self, value: object) -> bool:
        return value in self._providers

    def __len__(self) -> int:
        return len(self._providers)

    def __iter__(self) -> Iterator[ProviderInfo]:
        return iter(list(self._providers.values()))
