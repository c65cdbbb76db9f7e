"""Grant a fixed set of items at one level.

Non-optional grants apply without prompting. Optional grants take
``{"uuids": [...]}`` naming the subset of configured items to add.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from dnd_progression.advancement.base import Advancement, ReversalRecord
from dnd_progression.advancement.registry import advancement_registry
from dnd_progression.core.exceptions import ValidationError
from dnd_progression.core.logging import get_logger
from dnd_progression.models.advancement import ItemGrantData


logger = get_logger(__name__)


@advancement_registry.register
class ItemGrantAdvancement(Advancement):
    """Items granted when the level is reached."""

    kind = "ItemGrant"
    data_model = ItemGrantData
    default_title = "Features"

    def is_applied(self, level: int) -> bool:
        return self.value.added is not None

    def needs_input(self, level: int) -> bool:
        return self.configuration.optional

    def default_input(self, level: int) -> dict[str, Any]:
        return {"uuids": list(self.configuration.items)}

    def summary_for_level(self, level: int) -> str:
        added = self.value.added or {}
        names = [item.name for item_id in added if (item := self.actor.get_item(item_id))]
        return ", ".join(names)

    def _selected(self, data: Mapping[str, Any]) -> list[str]:
        configured = list(self.configuration.items)
        if not self.configuration.optional:
            return configured
        uuids = data.get("uuids")
        if uuids is None:
            return configured
        unknown = [uuid for uuid in uuids if uuid not in configured]
        if unknown:
            raise ValidationError(
                "Items outside the grant were selected",
                field_name="uuids",
                invalid_value=unknown,
                details={"advancement_id": self.id},
            )
        # Configured order, duplicates dropped
        return [uuid for uuid in configured if uuid in set(uuids)]

    def apply(self, level: int, data: Mapping[str, Any]) -> None:
        items = self.fetch_source_items(self._selected(data), data.get("retained_items"))
        added = self.grant_items(items)
        self.update_value({"added": added})
        logger.debug("Item grant applied", advancement_id=self.id, level=level, added=added)

    def restore_input(
        self,
        level: int,
        data: Mapping[str, Any],
        retained_items: Mapping[str, Mapping[str, Any]],
    ) -> dict[str, Any]:
        added = data.get("added") or {}
        return {"uuids": list(added.values()), "retained_items": dict(retained_items)}

    def reverse(self, level: int) -> ReversalRecord:
        record = ReversalRecord(level=level, value=self.dump_value())
        record.retained_items, record.orphaned, record.error = self.remove_granted_items(
            self.value.added or {}, level
        )
        self.update_value({})
        return record


__all__ = ["ItemGrantAdvancement"]
