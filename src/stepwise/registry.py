"""Generic named-item registry with source tracking.

Backs both the tool dispatcher and the agent registry.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class RegistrySource(Enum):
    """Where a registered item came from."""

    BUILTIN = "builtin"
    USER = "user"
    INTERNAL = "internal"  # Usable by agents, hidden from top-level listings
    AGENT = "agent"


@dataclass(frozen=True, slots=True)
class RegisteredItem(Generic[T]):
    """An item together with its registration metadata."""

    definition: T
    source: RegistrySource
    metadata: dict[str, Any] = field(default_factory=dict)


class Registry(Generic[T]):
    """Registers items by name and remembers their source.

    Subclasses override :meth:`_key` and :meth:`_describe` when items do
    not expose ``name`` / ``description`` directly.
    """

    def __init__(self) -> None:
        self._items: dict[str, RegisteredItem[T]] = {}

    # ------------------------------------------------------------------
    # Item protocol
    # ------------------------------------------------------------------

    def _key(self, item: T) -> str:
        return item.name  # type: ignore[attr-defined]

    def _describe(self, item: T) -> str:
        return getattr(item, "description", "")

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(
        self,
        item: T,
        source: RegistrySource = RegistrySource.BUILTIN,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        """Add an item, replacing any previous item with the same name."""
        self._items[self._key(item)] = RegisteredItem(item, source, dict(metadata or {}))

    def register_builtin(self, item: T) -> None:
        self.register(item, RegistrySource.BUILTIN)

    def register_user(self, item: T) -> None:
        self.register(item, RegistrySource.USER)

    def register_internal(self, item: T) -> None:
        self.register(item, RegistrySource.INTERNAL)

    def unregister(self, name: str) -> bool:
        """Remove an item. Returns True if it existed."""
        return self._items.pop(name, None) is not None

    def unregister_where(self, predicate: Callable[[str, RegisteredItem[T]], bool]) -> int:
        """Remove every item matching *predicate*. Returns the count removed."""
        doomed = [name for name, reg in self._items.items() if predicate(name, reg)]
        for name in doomed:
            del self._items[name]
        return len(doomed)

    def clear(self) -> None:
        self._items.clear()

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get(self, name: str) -> T | None:
        reg = self._items.get(name)
        return reg.definition if reg is not None else None

    def get_registered(self, name: str) -> RegisteredItem[T] | None:
        return self._items.get(name)

    def names(self) -> list[str]:
        return list(self._items)

    def all(self) -> list[T]:
        return [reg.definition for reg in self._items.values()]

    def by_source(self, source: RegistrySource) -> list[T]:
        return [reg.definition for reg in self._items.values() if reg.source is source]

    def descriptions(self) -> dict[str, str]:
        return {name: self._describe(reg.definition) for name, reg in self._items.items()}

    def source_of(self, name: str) -> RegistrySource | None:
        reg = self._items.get(name)
        return reg.source if reg is not None else None

    def is_user_defined(self, name: str) -> bool:
        return self.source_of(name) is RegistrySource.USER

    def is_internal(self, name: str) -> bool:
        return self.source_of(name) is RegistrySource.INTERNAL

    # ------------------------------------------------------------------
    # Dunder helpers
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, name: object) -> bool:
        return name in self._items

    def __repr__(self) -> str:
        return f"{type(self).__name__}(items={sorted(self._items)})"
