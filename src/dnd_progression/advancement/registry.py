"""Registry mapping advancement kinds to their behavior classes.

Built-in kinds register themselves on import of ``dnd_progression.advancement``.
Custom kinds register at startup, before any item data is validated:

    >>> @advancement_registry.register
    ... class TrinketAdvancement(Advancement):
    ...     kind = "Trinket"
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, TypeVar

from dnd_progression.core.exceptions import ConfigurationError
from dnd_progression.core.logging import get_logger
from dnd_progression.models.advancement import AdvancementData


if TYPE_CHECKING:
    from dnd_progression.advancement.base import Advancement, ItemSource
    from dnd_progression.models.documents import Actor, Item
    from dnd_progression.rules.registry import RulesConfig


logger = get_logger(__name__)

A = TypeVar("A", bound="type[Advancement]")


class AdvancementRegistry:
    """Kind to behavior mapping with data dispatch for stored records."""

    def __init__(self) -> None:
        self._behaviors: dict[str, type[Advancement]] = {}

    def __contains__(self, kind: object) -> bool:
        return kind in self._behaviors

    def __len__(self) -> int:
        return len(self._behaviors)

    @property
    def kinds(self) -> list[str]:
        """Registered kinds in registration order."""
        return list(self._behaviors)

    def register(self, behavior: A) -> A:
        """Register a behavior class; usable as a class decorator.

        Raises:
            ConfigurationError: If the class has no kind, or another class
                already claims its kind.
        """
        kind = getattr(behavior, "kind", None)
        if not kind:
            raise ConfigurationError(
                f"Advancement class {behavior.__name__} does not declare a kind",
                config_key="kind",
            )
        existing = self._behaviors.get(kind)
        if existing is not None and existing is not behavior:
            raise ConfigurationError(
                f"Advancement kind '{kind}' is already registered to {existing.__name__}",
                config_key=kind,
            )
        self._behaviors[kind] = behavior
        logger.debug("Advancement kind registered", kind=kind, behavior=behavior.__name__)
        return behavior

    def unregister(self, kind: str) -> None:
        self._behaviors.pop(kind, None)

    def get(self, kind: str) -> type[Advancement] | None:
        """Behavior class registered for ``kind``."""
        return self._behaviors.get(kind)

    def data_model(self, kind: str) -> type[AdvancementData]:
        """Stored record schema for ``kind``; unknown kinds use the generic one."""
        behavior = self._behaviors.get(kind)
        return behavior.data_model if behavior is not None else AdvancementData

    def validate_data(self, entry: AdvancementData | Mapping[str, Any]) -> AdvancementData:
        """Validate a stored record against the schema of its kind."""
        if isinstance(entry, AdvancementData):
            if type(entry) is self.data_model(entry.type):
                return entry
            entry = entry.model_dump()
        model = self.data_model(str(entry.get("type", "")))
        return model.model_validate(entry)

    def create(
        self,
        data: AdvancementData,
        *,
        item: Item,
        actor: Actor,
        rules: RulesConfig | None = None,
        source: ItemSource | None = None,
    ) -> Advancement:
        """Bind a stored record to a behavior instance.

        Raises:
            ConfigurationError: If the kind is not registered or the item
                type cannot declare it.
        """
        behavior = self._behaviors.get(data.type)
        if behavior is None:
            raise ConfigurationError(
                f"Unknown advancement kind '{data.type}'",
                config_key=data.type,
                details={"advancement_id": data.id, "item_id": item.id},
            )
        if item.type not in behavior.item_types:
            raise ConfigurationError(
                f"Advancement kind '{data.type}' cannot be declared on {item.type} items",
                config_key=data.type,
                details={"advancement_id": data.id, "item_id": item.id},
            )
        return behavior(self.validate_data(data), item=item, actor=actor, rules=rules, source=source)


advancement_registry = AdvancementRegistry()


__all__ = [
    "AdvancementRegistry",
    "advancement_registry",
]
