"""Advancement behavior interface.

An advancement behavior binds one stored ``AdvancementData`` record to the
item that declares it and the actor that owns the item. Every kind exposes
the same operations:

- ``apply(level, data)``: validate player input, mutate the actor, record ``value``
- ``restore(level, data)``: re-apply a recorded value without prompting
- ``reverse(level)``: undo exactly one level, returning a ``ReversalRecord``
- ``title_for_level`` / ``summary_for_level``: side-effect free display text

Behaviors never hold on to the stored record itself; item updates rebuild
advancement records, so the current record is looked up by id on access.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, ClassVar, Protocol, runtime_checkable

from dnd_progression.core.constants import ADVANCEMENT_ORIGIN_SEPARATOR
from dnd_progression.core.exceptions import ReversalError, ValidationError
from dnd_progression.core.logging import get_logger
from dnd_progression.models.advancement import AdvancementData
from dnd_progression.models.base import random_id


if TYPE_CHECKING:
    from dnd_progression.models.documents import Actor, Item
    from dnd_progression.rules.registry import RulesConfig


logger = get_logger(__name__)


# =============================================================================
# Collaborators
# =============================================================================


@runtime_checkable
class ItemSource(Protocol):
    """Lookup of source items (compendium entries) by uuid."""

    def get_source_item(self, uuid: str) -> Item | None:
        """Return the source item for ``uuid``, or None if it does not exist."""
        ...


@dataclass
class ReversalRecord:
    """Result of reversing one advancement at one level.

    Attributes:
        level: Level that was reversed.
        value: Recorded value before the reversal, for ``restore``.
        retained_items: Data of removed granted items keyed by source uuid,
            so that restoring recreates them with their original ids.
        orphaned: Ids of granted items that were already gone.
        error: Reversal problem that was worked around, if any.
    """

    level: int
    value: dict[str, Any] = field(default_factory=dict)
    retained_items: dict[str, dict[str, Any]] = field(default_factory=dict)
    orphaned: list[str] = field(default_factory=list)
    error: ReversalError | None = None

    @property
    def is_complete(self) -> bool:
        """Whether everything recorded could be undone."""
        return self.error is None


# =============================================================================
# Advancement
# =============================================================================


class Advancement(ABC):
    """Behavior of one advancement record on one item.

    Attributes:
        kind: Stored ``type`` tag this behavior handles.
        data_model: Schema of the stored record.
        default_title: Title used when the record has none.
        item_types: Item types the kind may be declared on.
        records_value: Whether applying records a value; stateless kinds
            take part in every plan.
    """

    kind: ClassVar[str]
    data_model: ClassVar[type[AdvancementData]] = AdvancementData
    default_title: ClassVar[str] = ""
    item_types: ClassVar[frozenset[str]] = frozenset({"class", "subclass", "feat"})
    records_value: ClassVar[bool] = True

    def __init__(
        self,
        data: AdvancementData,
        *,
        item: Item,
        actor: Actor,
        rules: RulesConfig | None = None,
        source: ItemSource | None = None,
    ) -> None:
        """Bind a stored advancement to its item and actor.

        Args:
            data: Stored advancement record.
            item: Item declaring the advancement; must be embedded in ``actor``.
            actor: Actor the advancement applies to.
            rules: Rules snapshot; defaults to the process-wide one.
            source: Source item lookup for kinds that grant items.
        """
        if rules is None:
            from dnd_progression.rules.registry import get_rules_config

            rules = get_rules_config()
        self.id = data.id
        self.item = item
        self.actor = actor
        self.rules = rules
        self.source = source
        self._initial = data

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r}, item={self.item.id!r})"

    # -------------------------------------------------------------------------
    # Stored data
    # -------------------------------------------------------------------------

    @property
    def data(self) -> AdvancementData:
        """Current stored record."""
        return self.item.get_advancement(self.id) or self._initial

    @property
    def configuration(self) -> Any:
        return self.data.configuration

    @property
    def value(self) -> Any:
        return self.data.value

    @property
    def title(self) -> str:
        return self.data.title or self.default_title

    @property
    def origin(self) -> str:
        """Origin tag written on items this advancement grants."""
        return f"{self.item.id}{ADVANCEMENT_ORIGIN_SEPARATOR}{self.id}"

    def update_value(self, value: Mapping[str, Any] | Any) -> None:
        """Replace the recorded value on the owning item."""
        entries = []
        for advancement in self.item.advancement:
            entry = advancement.model_dump()
            if advancement.id == self.id:
                entry["value"] = value
            entries.append(entry)
        self.item.update_source({"system.advancement": entries}, rules=self.rules)

    def dump_value(self) -> dict[str, Any]:
        """Plain copy of the recorded value."""
        value = self.value
        if hasattr(value, "model_dump"):
            return value.model_dump()
        return dict(value) if isinstance(value, Mapping) else {}

    # -------------------------------------------------------------------------
    # Planning
    # -------------------------------------------------------------------------

    def levels(self) -> list[int]:
        """Levels at which this advancement has something to do."""
        return [self.data.level]

    def applies_at(self, level: int) -> bool:
        return level in self.levels()

    def is_applied(self, level: int) -> bool:
        """Whether a value has been recorded for ``level``."""
        return False

    def needs_input(self, level: int) -> bool:
        """Whether applying at ``level`` requires a player decision."""
        return True

    def default_input(self, level: int) -> dict[str, Any]:
        """Input used when the step applies without prompting."""
        return {}

    # -------------------------------------------------------------------------
    # Display
    # -------------------------------------------------------------------------

    def title_for_level(self, level: int) -> str:
        return self.title

    def summary_for_level(self, level: int) -> str:
        return ""

    # -------------------------------------------------------------------------
    # Application
    # -------------------------------------------------------------------------

    @abstractmethod
    def apply(self, level: int, data: Mapping[str, Any]) -> None:
        """Apply player input at ``level`` and record the resulting value.

        Raises:
            ValidationError: If the input violates the configuration. Raised
                before the actor is mutated.
        """

    def restore(
        self,
        level: int,
        data: Mapping[str, Any],
        retained_items: Mapping[str, Mapping[str, Any]] | None = None,
    ) -> None:
        """Re-apply a recorded value without prompting.

        Restoring a value that is already applied replaces it, so restoring
        twice leaves the same state as restoring once.
        """
        restored_input = self.restore_input(level, data, retained_items or {})
        if self.is_applied(level):
            # Items removed here come back with the same ids
            reversal = self.reverse(level)
            restored_input["retained_items"] = {
                **reversal.retained_items,
                **restored_input.get("retained_items", {}),
            }
        self.apply(level, restored_input)

    def restore_input(
        self,
        level: int,
        data: Mapping[str, Any],
        retained_items: Mapping[str, Mapping[str, Any]],
    ) -> dict[str, Any]:
        """Translate a recorded value back into ``apply`` input."""
        return {**data, "retained_items": dict(retained_items)}

    @abstractmethod
    def reverse(self, level: int) -> ReversalRecord:
        """Undo the effect of ``apply`` at ``level``.

        Never raises for items removed out-of-band; the missing portion is
        reported on the returned record.
        """

    # -------------------------------------------------------------------------
    # Granted items
    # -------------------------------------------------------------------------

    def fetch_source_items(
        self,
        uuids: Iterable[str],
        retained_items: Mapping[str, Mapping[str, Any]] | None = None,
    ) -> dict[str, Item]:
        """Resolve source items for ``uuids`` without touching the actor.

        Retained item data takes precedence over the source lookup.

        Raises:
            ValidationError: If a uuid cannot be resolved.
        """
        from dnd_progression.models.documents import Item

        retained_items = retained_items or {}
        resolved: dict[str, Item] = {}
        for uuid in uuids:
            if uuid in retained_items:
                resolved[uuid] = Item.model_validate(retained_items[uuid])
                continue
            item = self.source.get_source_item(uuid) if self.source is not None else None
            if item is None:
                raise ValidationError(
                    f"Source item '{uuid}' could not be found",
                    field_name="uuid",
                    invalid_value=uuid,
                    details={"advancement_id": self.id},
                )
            resolved[uuid] = item.clone(id=random_id())
        return resolved

    def grant_items(self, items: Mapping[str, Item]) -> dict[str, str]:
        """Embed resolved items tagged with this advancement's origin.

        Returns:
            Granted items as ``{item_id: source_uuid}``.
        """
        added: dict[str, str] = {}
        tagged = []
        for uuid, item in items.items():
            item.flags.source_id = uuid
            item.flags.advancement_origin = self.origin
            tagged.append(item)
            added[item.id] = uuid
        self.actor.create_items(tagged)
        if added:
            logger.debug("Items granted", advancement_id=self.id, items=list(added))
        return added

    def remove_granted_items(
        self,
        added: Mapping[str, str],
        level: int,
    ) -> tuple[dict[str, dict[str, Any]], list[str], ReversalError | None]:
        """Delete granted items, keeping their data for a later restore.

        Returns:
            Retained item data keyed by source uuid, ids that were already
            gone, and the reversal error describing them.
        """
        retained: dict[str, dict[str, Any]] = {}
        orphaned: list[str] = []
        for item_id, uuid in added.items():
            item = self.actor.get_item(item_id)
            if item is None:
                orphaned.append(item_id)
            else:
                retained[uuid] = item.model_dump()
        self.actor.delete_items(added)

        error = None
        if orphaned:
            error = ReversalError(
                "Granted items were removed outside the advancement",
                advancement_id=self.id,
                level=level,
                details={"orphaned": orphaned},
            )
            logger.warning(
                "Orphaned advancement items",
                advancement_id=self.id,
                level=level,
                orphaned=orphaned,
            )
        return retained, orphaned, error


__all__ = [
    "ItemSource",
    "ReversalRecord",
    "Advancement",
]
