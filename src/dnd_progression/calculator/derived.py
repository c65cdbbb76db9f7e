"""Derived actor statistics.

Derived values are never stored; ``prepare_derived_data`` recomputes all of
them from the current raw data and is safe to call after every mutation.
The only write is the one-time armor class correction made by
``recompute`` when the stored calculation no longer exists.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from dnd_progression.calculator.abilities import (
    SkillTotal,
    ability_modifier,
    ability_modifiers,
    character_level,
    proficiency_bonus,
    saving_throws,
    skill_totals,
    tool_totals,
)
from dnd_progression.calculator.armor import FALLBACK_CALCULATION, ArmorClass, armor_class
from dnd_progression.calculator.encumbrance import Encumbrance, encumbrance
from dnd_progression.calculator.roll_data import get_roll_data
from dnd_progression.calculator.spellcasting import SpellSlot, spell_dc, spell_slots
from dnd_progression.core.logging import get_logger
from dnd_progression.rules.formula import simplify_bonus


if TYPE_CHECKING:
    from dnd_progression.models.documents import Actor
    from dnd_progression.rules.registry import RulesConfig
    from dnd_progression.storage.memory_store import DocumentStore


logger = get_logger(__name__)


@dataclass(frozen=True)
class ExperienceProgress:
    """Experience points relative to the current level's thresholds."""

    value: int
    min: int
    max: int

    @property
    def pct(self) -> float:
        span = self.max - self.min
        if span <= 0:
            return 100.0
        return round(min(max((self.value - self.min) / span, 0), 1) * 100, 2)


@dataclass(frozen=True)
class DerivedStats:
    """Every derived value of an actor.

    Attributes:
        level: Character level, or 0 for NPCs and vehicles.
        proficiency_bonus: Proficiency bonus.
        abilities: Ability modifiers.
        saves: Saving throw bonuses.
        skills: Skill totals and passives.
        tools: Tool check bonuses.
        armor_class: Armor class breakdown.
        initiative: Initiative bonus.
        spell_slots: Slots per slot key.
        spell_dc: Spell save DC.
        encumbrance: Carried weight against capacity.
        hit_points_max: Maximum hit points.
        scale: Scale values per class.
        experience: Experience progress for characters.
    """

    level: int
    proficiency_bonus: int
    abilities: dict[str, int]
    saves: dict[str, int]
    skills: dict[str, SkillTotal]
    tools: dict[str, int]
    armor_class: ArmorClass
    initiative: int
    spell_slots: dict[str, SpellSlot]
    spell_dc: int
    encumbrance: Encumbrance
    hit_points_max: int | None
    scale: dict[str, dict[str, Any]] = field(default_factory=dict)
    experience: ExperienceProgress | None = None


# =============================================================================
# Individual Calculations
# =============================================================================


def initiative(
    actor: Actor,
    rules: RulesConfig,
    roll_data: Mapping[str, Any] | None = None,
) -> int:
    """Initiative bonus: ability modifier + bonus formula + global check bonus."""
    init = actor.system.attributes.init
    ability = actor.system.abilities.get(init.ability or rules.initiative_ability)
    total = ability_modifier(ability.value) if ability is not None else 0
    total += simplify_bonus(init.bonus, roll_data)
    bonuses = getattr(actor.system, "bonuses", None)
    if bonuses is not None:
        total += simplify_bonus(bonuses.abilities.check, roll_data)
    return total


def hit_points_max(
    actor: Actor,
    rules: RulesConfig,
    roll_data: Mapping[str, Any] | None = None,
) -> int | None:
    """Maximum hit points.

    Characters sum their recorded HitPoints advancements, add Constitution
    per level and the level and overall bonuses, unless ``hp.max`` is set.
    """
    hp = getattr(actor.system.attributes, "hp", None)
    if hp is None:
        return None
    if actor.type != "character" or hp.max is not None:
        return hp.max

    from dnd_progression.advancement.hit_points import HitPointsAdvancement
    from dnd_progression.advancement.registry import advancement_registry

    base = 0
    for item in actor.items_of_type("class"):
        for data in item.advancement:
            if data.type == HitPointsAdvancement.kind:
                base += advancement_registry.create(data, item=item, actor=actor, rules=rules).total()

    level = character_level(actor)
    con = actor.system.abilities.get(rules.hit_points_ability)
    con_mod = ability_modifier(con.value) if con is not None else 0
    level_bonus = simplify_bonus(hp.bonuses.level, roll_data) * level
    overall_bonus = simplify_bonus(hp.bonuses.overall, roll_data)
    return max(base + con_mod * level + level_bonus + overall_bonus, 0)


def experience_progress(actor: Actor, rules: RulesConfig) -> ExperienceProgress | None:
    """Experience thresholds around the character's level."""
    if actor.type != "character":
        return None
    thresholds = rules.character_exp_levels
    level = min(max(character_level(actor), 1), len(thresholds))
    minimum = thresholds[level - 1]
    maximum = thresholds[level] if level < len(thresholds) else minimum
    return ExperienceProgress(value=actor.system.details.xp.value, min=minimum, max=maximum)


# =============================================================================
# Preparation
# =============================================================================


def prepare_derived_data(actor: Actor, rules: RulesConfig | None = None) -> DerivedStats:
    """Compute every derived value of ``actor`` without modifying it.

    Args:
        actor: Actor to compute for.
        rules: Rules snapshot; defaults to the process-wide one.

    Returns:
        The derived statistics.
    """
    if rules is None:
        from dnd_progression.rules.registry import get_rules_config

        rules = get_rules_config()

    roll_data = get_roll_data(actor, rules)
    return DerivedStats(
        level=character_level(actor) if actor.type == "character" else 0,
        proficiency_bonus=proficiency_bonus(actor, rules),
        abilities=ability_modifiers(actor),
        saves=saving_throws(actor, rules, roll_data),
        skills=skill_totals(actor, rules, roll_data),
        tools=tool_totals(actor, rules, roll_data),
        armor_class=armor_class(actor, rules, roll_data),
        initiative=initiative(actor, rules, roll_data),
        spell_slots=spell_slots(actor, rules),
        spell_dc=spell_dc(actor, rules, roll_data) if actor.type != "vehicle" else 0,
        encumbrance=encumbrance(actor, rules),
        hit_points_max=hit_points_max(actor, rules, roll_data),
        scale=roll_data["scale"],
        experience=experience_progress(actor, rules),
    )


def recompute(
    actor: Actor,
    rules: RulesConfig | None = None,
    store: DocumentStore | None = None,
) -> DerivedStats:
    """Recompute derived data, storing the armor class fallback if one was needed.

    An unknown armor class calculation is replaced with ``flat`` on the
    actor and, when given, in the store. Later recomputations find a valid
    calculation and write nothing.

    Args:
        actor: Actor to compute for; corrected in place.
        rules: Rules snapshot; defaults to the process-wide one.
        store: Store that receives the correction.

    Returns:
        The derived statistics.
    """
    stats = prepare_derived_data(actor, rules)
    if stats.armor_class.fallback:
        changes = {"system.attributes.ac.calc": FALLBACK_CALCULATION}
        actor.update_source(changes, rules=rules)
        if store is not None:
            from dnd_progression.storage.memory_store import ActorUpdate

            store.apply_update(actor.id, ActorUpdate(changes=changes))
        logger.info("Armor class calculation corrected", actor_id=actor.id, calc=FALLBACK_CALCULATION)
    return stats


__all__ = [
    "DerivedStats",
    "ExperienceProgress",
    "initiative",
    "hit_points_max",
    "experience_progress",
    "prepare_derived_data",
    "recompute",
]
