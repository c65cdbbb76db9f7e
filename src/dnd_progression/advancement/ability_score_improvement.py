"""Ability score improvement: raise scores or take a feat.

Input:
    ``{"type": "asi", "assignments": {"str": 2}}`` or
    ``{"type": "feat", "feat_uuid": "<source uuid>"}``

Requested increases are merged over the configured fixed grants and each
one is clamped to the room left below the ability's maximum. Clamping is
silent; only assigning more free points than configured is rejected.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from dnd_progression.advancement.base import Advancement, ReversalRecord
from dnd_progression.advancement.registry import advancement_registry
from dnd_progression.core.exceptions import ValidationError
from dnd_progression.core.logging import get_logger
from dnd_progression.models.advancement import AbilityScoreImprovementData


logger = get_logger(__name__)


@advancement_registry.register
class AbilityScoreImprovementAdvancement(Advancement):
    """Ability score improvement or feat selection."""

    kind = "AbilityScoreImprovement"
    data_model = AbilityScoreImprovementData
    default_title = "Ability Score Improvement"
    item_types = frozenset({"class", "feat"})

    @property
    def allow_feat(self) -> bool:
        """Feats are offered on class advancements when the rules allow them."""
        return self.item.type == "class" and self.rules.allow_feats

    def can_improve(self, ability: str) -> bool:
        return self.rules.can_improve(ability)

    @property
    def points(self) -> dict[str, int]:
        """Points assigned so far and points available in total."""
        assignments = self.value.assignments
        fixed = self.configuration.fixed
        return {
            "assigned": sum(n for key, n in assignments.items() if self.can_improve(key)),
            "total": self.configuration.points
            + sum(n for key, n in fixed.items() if self.can_improve(key)),
        }

    def is_applied(self, level: int) -> bool:
        return self.value.type is not None

    # -------------------------------------------------------------------------
    # Display
    # -------------------------------------------------------------------------

    def title_for_level(self, level: int) -> str:
        if self.value.type == "feat":
            return "Feat"
        return self.title

    def summary_for_level(self, level: int) -> str:
        if self.value.type == "feat" and self.value.feat:
            item = self.actor.get_item(next(iter(self.value.feat)))
            return item.name if item is not None else ""
        if self.value.type == "asi":
            return ", ".join(
                f"{self.rules.abilities[key].label if key in self.rules.abilities else key} {n:+d}"
                for key, n in self.value.assignments.items()
            )
        return ""

    # -------------------------------------------------------------------------
    # Application
    # -------------------------------------------------------------------------

    def _validate_assignments(self, requested: Mapping[str, Any]) -> dict[str, int]:
        assignments: dict[str, int] = {}
        for key, amount in requested.items():
            if not isinstance(amount, int) or isinstance(amount, bool) or amount < 0:
                raise ValidationError(
                    f"Assignment for '{key}' must be a non-negative integer",
                    field_name=f"assignments.{key}",
                    invalid_value=amount,
                )
            assignments[key] = amount

        # Requests on fixed abilities include the fixed grant
        fixed = self.configuration.fixed
        free = sum(
            max(n - fixed.get(key, 0), 0) for key, n in assignments.items() if self.can_improve(key)
        )
        if free > self.configuration.points:
            raise ValidationError(
                f"Assigned {free} points but only {self.configuration.points} are available",
                field_name="assignments",
                invalid_value=free,
                details={"advancement_id": self.id},
            )
        return assignments

    def _apply_assignments(self, requested: Mapping[str, Any]) -> dict[str, Any]:
        assignments = dict(self.configuration.fixed)
        for key, amount in self._validate_assignments(requested).items():
            assignments[key] = max(amount, assignments.get(key, 0))
        abilities = self.actor.system.abilities
        changes: dict[str, int] = {}
        for key in list(assignments):
            ability = abilities.get(key)
            if ability is None or not self.can_improve(key):
                del assignments[key]
                continue
            maximum = ability.max if ability.max is not None else self.rules.max_ability_score
            assignments[key] = min(assignments[key], max(maximum - ability.value, 0))
            if assignments[key]:
                changes[f"system.abilities.{key}.value"] = ability.value + assignments[key]
            else:
                del assignments[key]

        self.actor.update_source(changes, rules=self.rules)
        return {"type": "asi", "assignments": assignments, "feat": {}}

    def _apply_feat(self, uuid: Any, retained_items: Mapping[str, Any]) -> dict[str, Any]:
        if not self.allow_feat:
            raise ValidationError(
                "Feats cannot be chosen for this improvement",
                field_name="type",
                invalid_value="feat",
                details={"advancement_id": self.id},
            )
        if not isinstance(uuid, str) or not uuid:
            raise ValidationError("A feat must be chosen", field_name="feat_uuid", invalid_value=uuid)

        items = self.fetch_source_items([uuid], retained_items)
        if items[uuid].type != "feat":
            raise ValidationError(
                f"Item '{uuid}' is not a feat",
                field_name="feat_uuid",
                invalid_value=uuid,
            )
        return {"type": "feat", "assignments": {}, "feat": self.grant_items(items)}

    def apply(self, level: int, data: Mapping[str, Any]) -> None:
        choice = data.get("type")
        if choice == "asi":
            value = self._apply_assignments(data.get("assignments") or {})
        elif choice == "feat":
            value = self._apply_feat(
                data.get("feat_uuid") or data.get("featUuid"),
                data.get("retained_items") or {},
            )
        else:
            raise ValidationError(
                "Improvement type must be 'asi' or 'feat'",
                field_name="type",
                invalid_value=choice,
            )
        self.update_value(value)
        logger.debug("Ability score improvement applied", advancement_id=self.id, value=value)

    def restore_input(
        self,
        level: int,
        data: Mapping[str, Any],
        retained_items: Mapping[str, Mapping[str, Any]],
    ) -> dict[str, Any]:
        feat = data.get("feat") or {}
        return {
            "type": data.get("type"),
            "assignments": dict(data.get("assignments") or {}),
            "feat_uuid": next(iter(feat.values()), None),
            "retained_items": dict(retained_items),
        }

    def reverse(self, level: int) -> ReversalRecord:
        record = ReversalRecord(level=level, value=self.dump_value())

        if self.value.type == "asi":
            abilities = self.actor.system.abilities
            changes = {}
            for key, amount in self.value.assignments.items():
                ability = abilities.get(key)
                if ability is None or not self.can_improve(key):
                    continue
                changes[f"system.abilities.{key}.value"] = max(ability.value - amount, 0)
            self.actor.update_source(changes, rules=self.rules)

        elif self.value.type == "feat":
            record.retained_items, record.orphaned, record.error = self.remove_granted_items(
                self.value.feat, level
            )

        self.update_value({})
        return record


__all__ = ["AbilityScoreImprovementAdvancement"]
