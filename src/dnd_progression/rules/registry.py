"""Immutable rules configuration snapshot.

The rules registry is assembled exactly once from the static base tables
and the ``RulesSettings`` feature flags. Optional content (the Honor and
Sanity abilities) is omitted when its flag is off instead of being deleted
from a shared table afterwards. Every consumer receives the same frozen
``RulesConfig`` by reference.

Example:
    >>> from dnd_progression.rules import get_rules_config
    >>> rules = get_rules_config()
    >>> rules.spell_slot_table[4]
    (4, 3, 2)
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from dnd_progression.core.config import RulesSettings, get_settings
from dnd_progression.core.logging import get_logger
from dnd_progression.rules import tables


logger = get_logger(__name__)


# =============================================================================
# Configuration Records
# =============================================================================


class FrozenRecord(BaseModel):
    """Base for immutable configuration records."""

    model_config = ConfigDict(frozen=True, extra="forbid")


class AbilityConfig(FrozenRecord):
    """Configuration of a single ability score.

    Attributes:
        label: Display name.
        abbreviation: Short key shown on sheets.
        type: "physical" or "mental".
        defaults: Initial value per actor type; a string copies that
            ability's value instead.
        improvement: Whether ability score improvements may raise it.
    """

    label: str
    abbreviation: str
    type: str = "physical"
    defaults: dict[str, int | str] = Field(default_factory=dict)
    improvement: bool = True


class SkillConfig(FrozenRecord):
    """Skill label and its default ability."""

    label: str
    ability: str


class ArmorClassConfig(FrozenRecord):
    """Named armor class calculation; ``custom`` has no fixed formula."""

    label: str
    formula: str | None = None


class SpellProgressionConfig(FrozenRecord):
    """How class levels convert into leveled spellcasting levels."""

    label: str
    divisor: int = Field(default=1, ge=1)
    round_up: bool = False


class ActorSizeConfig(FrozenRecord):
    """Creature size with its carrying capacity multiplier."""

    label: str
    capacity_multiplier: float = 1


class CreatureTypeConfig(FrozenRecord):
    """Creature type labels."""

    label: str
    plural: str


class CurrencyConfig(FrozenRecord):
    """Coin denomination and its conversion rate relative to gold."""

    label: str
    conversion: float


class EncumbranceConfig(FrozenRecord):
    """Encumbrance multipliers resolved for the active unit system.

    Attributes:
        currency_per_weight: Coins per unit of weight.
        str_multiplier: Carrying capacity per point of Strength.
        vehicle_weight_multiplier: Weight units per ton of vehicle cargo.
        thresholds: Capacity fractions where encumbrance states begin.
        units: "imperial" or "metric".
    """

    currency_per_weight: float
    str_multiplier: float
    vehicle_weight_multiplier: float
    thresholds: dict[str, float]
    units: str


# =============================================================================
# Rules Snapshot
# =============================================================================


class RulesConfig(FrozenRecord):
    """Read-only, process-wide vocabulary consumed by schemas and calculators.

    Never mutated after construction; build a new snapshot with
    ``build_rules_config`` to change feature flags.
    """

    abilities: dict[str, AbilityConfig]
    skills: dict[str, SkillConfig]
    tool_proficiencies: dict[str, str]
    tool_ids: dict[str, str]
    proficiency_levels: dict[float, str]
    armor_classes: dict[str, ArmorClassConfig]
    armor_types: dict[str, str]
    spell_slot_table: tuple[tuple[int, ...], ...]
    pact_progression: dict[int, tuple[int, int]]
    leveled_progressions: dict[str, SpellProgressionConfig]
    spell_progression: dict[str, str]
    spell_levels: int
    spell_preparation_modes: dict[str, str]
    encumbrance: EncumbranceConfig
    actor_sizes: dict[str, ActorSizeConfig]
    creature_types: dict[str, CreatureTypeConfig]
    senses: dict[str, str]
    damage_types: dict[str, str]
    item_rarity: dict[str, str]
    hit_die_types: tuple[str, ...]
    currencies: dict[str, CurrencyConfig]
    character_exp_levels: tuple[int, ...]
    proficiency_breakpoints: tuple[tuple[int, int], ...]
    initiative_ability: str
    hit_points_ability: str
    encumbrance_ability: str
    allow_feats: bool
    currency_weight: bool
    disable_advancements: bool
    max_level: int
    max_ability_score: int

    def can_improve(self, ability: str) -> bool:
        """Whether an ability exists and may be raised by improvements."""
        config = self.abilities.get(ability)
        return config is not None and config.improvement

    def armor_formula(self, calc: str) -> str | None:
        """Formula of a named armor class calculation, if it has one."""
        config = self.armor_classes.get(calc)
        return config.formula if config else None

    def proficiency_bonus(self, level: float) -> int:
        """Proficiency bonus for a character level or challenge rating.

        Levels below the first breakpoint use the first bonus.
        """
        bonus = self.proficiency_breakpoints[0][1]
        for minimum, value in self.proficiency_breakpoints:
            if level >= minimum:
                bonus = value
        return bonus


def build_rules_config(settings: RulesSettings | None = None) -> RulesConfig:
    """Build an immutable rules snapshot from base tables and feature flags.

    Args:
        settings: Feature flags; defaults to the cached application settings.

    Returns:
        A new ``RulesConfig`` instance.
    """
    if settings is None:
        settings = get_settings().rules

    abilities: dict[str, Any] = dict(tables.BASE_ABILITIES)
    if settings.honor_score:
        abilities["hon"] = tables.OPTIONAL_ABILITIES["hon"]
    if settings.sanity_score:
        abilities["san"] = tables.OPTIONAL_ABILITIES["san"]

    units = "metric" if settings.metric_weight_units else "imperial"
    encumbrance = EncumbranceConfig(
        currency_per_weight=tables.ENCUMBRANCE["currency_per_weight"][units],
        str_multiplier=tables.ENCUMBRANCE["str_multiplier"][units],
        vehicle_weight_multiplier=tables.ENCUMBRANCE["vehicle_weight_multiplier"][units],
        thresholds=dict(tables.ENCUMBRANCE_THRESHOLDS),
        units=units,
    )

    rules = RulesConfig(
        abilities=abilities,
        skills=tables.SKILLS,
        tool_proficiencies=tables.TOOL_PROFICIENCIES,
        tool_ids=tables.TOOL_IDS,
        proficiency_levels=tables.PROFICIENCY_LEVELS,
        armor_classes=tables.ARMOR_CLASSES,
        armor_types=tables.ARMOR_TYPES,
        spell_slot_table=tuple(tuple(row) for row in tables.SPELL_SLOT_TABLE),
        pact_progression=tables.PACT_CASTING_PROGRESSION,
        leveled_progressions=tables.LEVELED_PROGRESSIONS,
        spell_progression=tables.SPELL_PROGRESSION,
        spell_levels=tables.SPELL_LEVELS,
        spell_preparation_modes=tables.SPELL_PREPARATION_MODES,
        encumbrance=encumbrance,
        actor_sizes=tables.ACTOR_SIZES,
        creature_types=tables.CREATURE_TYPES,
        senses=tables.SENSES,
        damage_types=tables.DAMAGE_TYPES,
        item_rarity=tables.ITEM_RARITY,
        hit_die_types=tuple(tables.HIT_DIE_TYPES),
        currencies=tables.CURRENCIES,
        character_exp_levels=tuple(tables.CHARACTER_EXP_LEVELS),
        proficiency_breakpoints=tuple(tables.PROFICIENCY_BREAKPOINTS),
        initiative_ability=tables.INITIATIVE_ABILITY,
        hit_points_ability=tables.HIT_POINTS_ABILITY,
        encumbrance_ability=tables.ENCUMBRANCE_ABILITY,
        allow_feats=settings.allow_feats,
        currency_weight=settings.currency_weight,
        disable_advancements=settings.disable_advancements,
        max_level=settings.max_level,
        max_ability_score=settings.max_ability_score,
    )
    logger.debug(
        "Rules configuration built",
        abilities=list(rules.abilities),
        units=units,
        max_level=rules.max_level,
    )
    return rules


@lru_cache(maxsize=1)
def get_rules_config() -> RulesConfig:
    """Get the process-wide rules snapshot.

    Returns:
        The cached RulesConfig built from the current settings.
    """
    return build_rules_config()


def clear_rules_cache() -> None:
    """Clear the cached rules snapshot, forcing a rebuild on next access."""
    get_rules_config.cache_clear()


__all__ = [
    "AbilityConfig",
    "SkillConfig",
    "ArmorClassConfig",
    "SpellProgressionConfig",
    "ActorSizeConfig",
    "CreatureTypeConfig",
    "CurrencyConfig",
    "EncumbranceConfig",
    "RulesConfig",
    "build_rules_config",
    "get_rules_config",
    "clear_rules_cache",
]
