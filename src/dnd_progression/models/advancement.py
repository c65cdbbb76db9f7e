"""Advancement definition schemas.

Each advancement stored on an item is a tagged record: ``type`` names the
kind, ``configuration`` holds author-time settings, and ``value`` holds the
choices recorded when it was applied to an actor. The kind-specific data
classes here only describe shape; behavior lives in
``dnd_progression.advancement``.
"""

from __future__ import annotations

import re
from typing import Any, Literal

from pydantic import Field, field_validator

from dnd_progression.core.constants import DEFAULT_ASI_POINTS
from dnd_progression.models.base import DataModel, random_id


IDENTIFIER_PATTERN = re.compile(r"^[a-z0-9_-]+$")


def slugify(text: str) -> str:
    """Lower-case identifier slug for a title."""
    return re.sub(r"[^a-z0-9_-]+", "-", text.strip().lower()).strip("-")


class AdvancementData(DataModel):
    """Stored advancement of any kind.

    Unregistered kinds validate against this base with free-form
    ``configuration`` and ``value`` mappings.

    Attributes:
        id: Identifier unique within the owning item.
        type: Advancement kind.
        level: Level at which single-level kinds apply.
        title: Display title.
        configuration: Author-time settings.
        value: Applied choices.
    """

    id: str = Field(default_factory=random_id)
    type: str
    level: int = Field(default=1, ge=0)
    title: str = ""
    configuration: Any = Field(default_factory=dict)
    value: Any = Field(default_factory=dict)


# =============================================================================
# Ability Score Improvement
# =============================================================================


class AbilityScoreImprovementConfiguration(DataModel):
    """Points to distribute freely and points granted to fixed abilities."""

    points: int = Field(default=DEFAULT_ASI_POINTS, ge=0)
    fixed: dict[str, int] = Field(default_factory=dict)


class AbilityScoreImprovementValue(DataModel):
    """Whether the player improved scores or took a feat, and the result.

    Attributes:
        type: ``asi`` or ``feat``; None until applied.
        assignments: Clamped increase per ability, fixed points included.
        feat: Granted feat as ``{item_id: source_uuid}``.
    """

    type: Literal["asi", "feat"] | None = None
    assignments: dict[str, int] = Field(default_factory=dict)
    feat: dict[str, str] = Field(default_factory=dict)


class AbilityScoreImprovementData(AdvancementData):
    type: Literal["AbilityScoreImprovement"] = "AbilityScoreImprovement"
    configuration: AbilityScoreImprovementConfiguration = Field(
        default_factory=AbilityScoreImprovementConfiguration
    )
    value: AbilityScoreImprovementValue = Field(default_factory=AbilityScoreImprovementValue)


# =============================================================================
# Hit Points
# =============================================================================


HitPointsChoice = Literal["max", "avg"] | int


class HitPointsData(AdvancementData):
    """Hit points gained per class level; value maps level to the choice made."""

    type: Literal["HitPoints"] = "HitPoints"
    configuration: dict[str, Any] = Field(default_factory=dict)
    value: dict[int, HitPointsChoice] = Field(default_factory=dict)


# =============================================================================
# Item Grant
# =============================================================================


class ItemGrantConfiguration(DataModel):
    """Items to grant; ``optional`` lets the player pick a subset."""

    items: list[str] = Field(default_factory=list)
    optional: bool = False


class ItemGrantValue(DataModel):
    """Granted items as ``{item_id: source_uuid}``; None until applied."""

    added: dict[str, str] | None = None


class ItemGrantData(AdvancementData):
    type: Literal["ItemGrant"] = "ItemGrant"
    configuration: ItemGrantConfiguration = Field(default_factory=ItemGrantConfiguration)
    value: ItemGrantValue = Field(default_factory=ItemGrantValue)


# =============================================================================
# Item Choice
# =============================================================================


class ItemChoiceConfiguration(DataModel):
    """Items the player chooses from at specific levels.

    Attributes:
        hint: Guidance shown with the choice.
        choices: Number of picks per level.
        allow_drops: Accept items outside the pool.
        type: Item type that dropped items must have.
        pool: Source uuids offered.
    """

    hint: str = ""
    choices: dict[int, int] = Field(default_factory=dict)
    allow_drops: bool = True
    type: str | None = None
    pool: list[str] = Field(default_factory=list)

    @field_validator("choices")
    @classmethod
    def validate_choices(cls, value: dict[int, int]) -> dict[int, int]:
        """Choice counts must be non-negative."""
        for level, count in value.items():
            if count < 0:
                msg = f"Choice count for level {level} must not be negative"
                raise ValueError(msg)
        return value


class ItemChoiceValue(DataModel):
    """Chosen items per level as ``{level: {item_id: source_uuid}}``."""

    added: dict[int, dict[str, str]] = Field(default_factory=dict)


class ItemChoiceData(AdvancementData):
    type: Literal["ItemChoice"] = "ItemChoice"
    configuration: ItemChoiceConfiguration = Field(default_factory=ItemChoiceConfiguration)
    value: ItemChoiceValue = Field(default_factory=ItemChoiceValue)


# =============================================================================
# Scale Value
# =============================================================================


ScaleEntry = int | float | str


class ScaleValueConfiguration(DataModel):
    """A value that changes as the class gains levels.

    Attributes:
        identifier: Key exposed in roll data as ``@scale.<class>.<identifier>``.
        type: ``string``, ``number``, ``dice``, or ``distance``.
        scale: Value per level; levels in between use the nearest lower entry.
    """

    identifier: str = ""
    type: Literal["string", "number", "dice", "distance"] = "string"
    scale: dict[int, ScaleEntry] = Field(default_factory=dict)

    @field_validator("identifier")
    @classmethod
    def validate_identifier(cls, value: str) -> str:
        """Identifiers are lower-case slugs."""
        if value and not IDENTIFIER_PATTERN.match(value):
            msg = f"Identifier must be a lower-case slug, got {value!r}"
            raise ValueError(msg)
        return value


class ScaleValueData(AdvancementData):
    type: Literal["ScaleValue"] = "ScaleValue"
    configuration: ScaleValueConfiguration = Field(default_factory=ScaleValueConfiguration)
    value: dict[str, Any] = Field(default_factory=dict)


__all__ = [
    "IDENTIFIER_PATTERN",
    "slugify",
    "AdvancementData",
    "AbilityScoreImprovementConfiguration",
    "AbilityScoreImprovementValue",
    "AbilityScoreImprovementData",
    "HitPointsChoice",
    "HitPointsData",
    "ItemGrantConfiguration",
    "ItemGrantValue",
    "ItemGrantData",
    "ItemChoiceConfiguration",
    "ItemChoiceValue",
    "ItemChoiceData",
    "ScaleValueConfiguration",
    "ScaleValueData",
]
