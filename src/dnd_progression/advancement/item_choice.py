"""Choose items from a pool at specific levels.

Input: ``{"uuids": [...]}``. At most the configured number of items may be
chosen at a level. Items outside the pool are accepted only when drops are
allowed, and then must match the configured item type.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from dnd_progression.advancement.base import Advancement, ReversalRecord
from dnd_progression.advancement.registry import advancement_registry
from dnd_progression.core.exceptions import ValidationError
from dnd_progression.core.logging import get_logger
from dnd_progression.models.advancement import ItemChoiceData


logger = get_logger(__name__)


@advancement_registry.register
class ItemChoiceAdvancement(Advancement):
    """Player-chosen items at one or more levels."""

    kind = "ItemChoice"
    data_model = ItemChoiceData
    default_title = "Choose Items"

    def levels(self) -> list[int]:
        return sorted(level for level, count in self.configuration.choices.items() if count > 0)

    def is_applied(self, level: int) -> bool:
        return level in self.value.added

    def choices_at(self, level: int) -> int:
        return self.configuration.choices.get(level, 0)

    def chosen(self) -> set[str]:
        """Source uuids chosen at any level."""
        return {uuid for added in self.value.added.values() for uuid in added.values()}

    def summary_for_level(self, level: int) -> str:
        added = self.value.added.get(level, {})
        return ", ".join(item.name for item_id in added if (item := self.actor.get_item(item_id)))

    def _validate(self, level: int, uuids: Any) -> list[str]:
        if not isinstance(uuids, list | tuple) or not all(isinstance(uuid, str) for uuid in uuids):
            raise ValidationError("Choices must be a list of uuids", field_name="uuids", invalid_value=uuids)
        if len(set(uuids)) != len(uuids):
            raise ValidationError("The same item was chosen twice", field_name="uuids", invalid_value=uuids)
        if len(uuids) > self.choices_at(level):
            raise ValidationError(
                f"Chose {len(uuids)} items but only {self.choices_at(level)} are allowed at level {level}",
                field_name="uuids",
                invalid_value=len(uuids),
                details={"advancement_id": self.id, "level": level},
            )
        earlier = {
            uuid for chosen_at, added in self.value.added.items() if chosen_at != level for uuid in added.values()
        }
        repeated = [uuid for uuid in uuids if uuid in earlier]
        if repeated:
            raise ValidationError(
                "Items were already chosen at another level",
                field_name="uuids",
                invalid_value=repeated,
            )
        return list(uuids)

    def _validate_items(self, items: Mapping[str, Any]) -> None:
        pool = set(self.configuration.pool)
        for uuid, item in items.items():
            if uuid in pool:
                continue
            if not self.configuration.allow_drops:
                raise ValidationError(
                    f"Item '{uuid}' is not in the choice pool",
                    field_name="uuids",
                    invalid_value=uuid,
                )
            if self.configuration.type and item.type != self.configuration.type:
                raise ValidationError(
                    f"Item '{uuid}' must be of type {self.configuration.type}",
                    field_name="uuids",
                    invalid_value=uuid,
                    details={"item_type": item.type},
                )

    def apply(self, level: int, data: Mapping[str, Any]) -> None:
        uuids = self._validate(level, data.get("uuids", []))
        items = self.fetch_source_items(uuids, data.get("retained_items"))
        self._validate_items(items)
        added = self.grant_items(items)
        self.update_value({"added": {**self.value.added, level: added}})
        logger.debug("Item choice applied", advancement_id=self.id, level=level, added=added)

    def restore_input(
        self,
        level: int,
        data: Mapping[str, Any],
        retained_items: Mapping[str, Mapping[str, Any]],
    ) -> dict[str, Any]:
        added = (data.get("added") or {}).get(level, {})
        return {"uuids": list(added.values()), "retained_items": dict(retained_items)}

    def reverse(self, level: int) -> ReversalRecord:
        added = self.value.added.get(level, {})
        record = ReversalRecord(level=level, value={"added": {level: dict(added)}})
        if level not in self.value.added:
            return record
        record.retained_items, record.orphaned, record.error = self.remove_granted_items(added, level)
        self.update_value({"added": {key: items for key, items in self.value.added.items() if key != level}})
        return record


__all__ = ["ItemChoiceAdvancement"]
