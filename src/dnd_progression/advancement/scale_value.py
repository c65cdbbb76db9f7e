"""A value that scales with class level, exposed to formulas.

Scale values record nothing on the actor; their current value is looked up
from the class level whenever roll data is built. They still occupy a step
in every flight plan so that planning stays symmetric.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from dnd_progression.advancement.base import Advancement, ReversalRecord
from dnd_progression.advancement.registry import advancement_registry
from dnd_progression.models.advancement import ScaleEntry, ScaleValueData, slugify


@advancement_registry.register
class ScaleValueAdvancement(Advancement):
    """Level-indexed value such as a sneak attack die or a rage count."""

    kind = "ScaleValue"
    data_model = ScaleValueData
    default_title = "Scale Value"
    item_types = frozenset({"class", "subclass"})
    records_value = False

    @property
    def identifier(self) -> str:
        return self.configuration.identifier or slugify(self.title)

    def levels(self) -> list[int]:
        return sorted(self.configuration.scale)

    def needs_input(self, level: int) -> bool:
        return False

    def value_for_level(self, level: int) -> ScaleEntry | None:
        """Entry for the nearest defined level at or below ``level``."""
        defined = [key for key in self.configuration.scale if key <= level]
        if not defined:
            return None
        return self.configuration.scale[max(defined)]

    def formatted_value(self, level: int) -> str:
        value = self.value_for_level(level)
        if value is None:
            return ""
        if self.configuration.type == "distance":
            return f"{value} ft."
        return str(value)

    def summary_for_level(self, level: int) -> str:
        return self.formatted_value(level)

    def apply(self, level: int, data: Mapping[str, Any]) -> None:
        """Nothing to record."""

    def restore_input(
        self,
        level: int,
        data: Mapping[str, Any],
        retained_items: Mapping[str, Mapping[str, Any]],
    ) -> dict[str, Any]:
        return {}

    def reverse(self, level: int) -> ReversalRecord:
        return ReversalRecord(level=level)


__all__ = ["ScaleValueAdvancement"]
