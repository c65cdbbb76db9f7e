"""Hit points gained with each class level.

Input: ``{"value": "max" | "avg" | "roll" | <int>}``. A roll is made with the
class hit die and recorded as the rolled number. The first level of the
character's original class always takes the maximum without prompting.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from dnd_progression.advancement.base import Advancement, ReversalRecord
from dnd_progression.advancement.registry import advancement_registry
from dnd_progression.core.exceptions import ValidationError
from dnd_progression.core.logging import get_logger
from dnd_progression.models.advancement import HitPointsData


logger = get_logger(__name__)


@advancement_registry.register
class HitPointsAdvancement(Advancement):
    """Per-level hit point choice on a class."""

    kind = "HitPoints"
    data_model = HitPointsData
    default_title = "Hit Points"
    item_types = frozenset({"class"})

    @property
    def hit_die(self) -> int:
        """Faces of the class hit die."""
        return self.item.system.hit_die_faces

    @property
    def is_original_class(self) -> bool:
        return getattr(self.actor.system.details, "original_class", "") == self.item.id

    def levels(self) -> list[int]:
        return list(range(1, self.rules.max_level + 1))

    def is_applied(self, level: int) -> bool:
        return level in self.value

    def needs_input(self, level: int) -> bool:
        return not (level == 1 and self.is_original_class)

    def default_input(self, level: int) -> dict[str, Any]:
        return {"value": "max"}

    # -------------------------------------------------------------------------
    # Hit point arithmetic
    # -------------------------------------------------------------------------

    @property
    def average(self) -> int:
        """Fixed hit points taken instead of rolling."""
        return self.hit_die // 2 + 1

    def value_for_level(self, level: int) -> int | None:
        """Hit points (before Constitution) recorded for ``level``."""
        choice = self.value.get(level)
        if choice == "max":
            return self.hit_die
        if choice == "avg":
            return self.average
        if isinstance(choice, int):
            return choice
        return None

    def total(self) -> int:
        """Hit points (before Constitution) across all recorded levels."""
        return sum(self.value_for_level(level) or 0 for level in self.value)

    def _con_mod(self) -> int:
        ability = self.actor.system.abilities.get(self.rules.hit_points_ability)
        return (ability.value - 10) // 2 if ability is not None else 0

    def _roll(self) -> int:
        import d20

        return d20.roll(f"1d{self.hit_die}").total

    def _resolve_choice(self, choice: Any) -> str | int:
        if choice == "roll":
            return self._roll()
        if choice in ("max", "avg"):
            return choice
        if isinstance(choice, int) and not isinstance(choice, bool) and 1 <= choice <= self.hit_die:
            return choice
        raise ValidationError(
            f"Hit points must be 'max', 'avg', 'roll', or a roll between 1 and {self.hit_die}",
            field_name="value",
            invalid_value=choice,
            details={"advancement_id": self.id},
        )

    # -------------------------------------------------------------------------
    # Display
    # -------------------------------------------------------------------------

    def summary_for_level(self, level: int) -> str:
        choice = self.value.get(level)
        if choice == "max":
            return f"Max HP: {self.hit_die}"
        if choice == "avg":
            return f"Average HP: {self.average}"
        if isinstance(choice, int):
            return f"Rolled HP: {choice}"
        return ""

    # -------------------------------------------------------------------------
    # Application
    # -------------------------------------------------------------------------

    def _gain(self, level: int) -> int:
        # A level never lowers current hit points
        return max(self.value_for_level(level) + self._con_mod(), 0)

    def _adjust_current(self, amount: int) -> None:
        hp = self.actor.system.attributes.hp
        self.actor.update_source(
            {"system.attributes.hp.value": max((hp.value or 0) + amount, 0)},
            rules=self.rules,
        )

    def apply(self, level: int, data: Mapping[str, Any]) -> None:
        choice = self._resolve_choice(data.get("value"))
        value = {**self.value, level: choice}
        self.update_value(value)
        self._adjust_current(self._gain(level))
        logger.debug("Hit points applied", advancement_id=self.id, level=level, choice=choice)

    def restore_input(
        self,
        level: int,
        data: Mapping[str, Any],
        retained_items: Mapping[str, Mapping[str, Any]],
    ) -> dict[str, Any]:
        # Accepts either the whole recorded mapping or a single choice
        choice = data.get(level, data.get("value"))
        return {"value": choice}

    def reverse(self, level: int) -> ReversalRecord:
        record = ReversalRecord(level=level, value={level: self.value[level]} if level in self.value else {})
        if self.value_for_level(level) is None:
            return record
        self._adjust_current(-self._gain(level))
        self.update_value({key: choice for key, choice in self.value.items() if key != level})
        return record


__all__ = ["HitPointsAdvancement"]
