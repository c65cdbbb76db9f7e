"""Ability modifiers, proficiency, saving throws, skills, and tools.

All functions are total: unknown proficiency multipliers count as no
proficiency and missing abilities count as a score of 10.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from dnd_progression.core.constants import DEFAULT_ABILITY_SCORE, PASSIVE_CHECK_BASE
from dnd_progression.rules.formula import simplify_bonus


if TYPE_CHECKING:
    from dnd_progression.models.documents import Actor
    from dnd_progression.rules.registry import RulesConfig


def ability_modifier(score: int) -> int:
    """Calculate the ability modifier from an ability score.

    The modifier is calculated as: (score - 10) // 2

    Args:
        score: The ability score.

    Returns:
        The ability modifier.

    Example:
        >>> ability_modifier(10)
        0
        >>> ability_modifier(7)
        -2
    """
    return (score - 10) // 2


def character_level(actor: Actor) -> int:
    """Total class levels of an actor."""
    return sum(item.system.levels for item in actor.items_of_type("class"))


def proficiency_bonus(actor: Actor, rules: RulesConfig) -> int:
    """Proficiency bonus from character level, or challenge rating for NPCs."""
    if actor.type == "npc":
        return rules.proficiency_bonus(max(actor.system.details.cr, 1))
    if actor.type == "vehicle":
        return 0
    return rules.proficiency_bonus(max(character_level(actor), 1))


def proficiency_value(multiplier: float, bonus: int, rules: RulesConfig) -> int:
    """Proficiency contribution for a multiplier; unknown multipliers give 0."""
    if multiplier not in rules.proficiency_levels:
        return 0
    return math.floor(multiplier * bonus)


def ability_modifiers(actor: Actor) -> dict[str, int]:
    return {key: ability_modifier(ability.value) for key, ability in actor.system.abilities.items()}


def _modifier(modifiers: Mapping[str, int], ability: str) -> int:
    return modifiers.get(ability, ability_modifier(DEFAULT_ABILITY_SCORE))


# =============================================================================
# Saves, Skills, Tools
# =============================================================================


@dataclass(frozen=True)
class SkillTotal:
    """Computed skill values.

    Attributes:
        ability: Ability used.
        proficiency: Proficiency contribution.
        total: Check bonus.
        passive: Passive score.
    """

    ability: str
    proficiency: int
    total: int
    passive: int


def saving_throws(
    actor: Actor,
    rules: RulesConfig,
    roll_data: Mapping[str, Any] | None = None,
) -> dict[str, int]:
    """Saving throw bonus per ability: mod + proficiency + save bonuses."""
    modifiers = ability_modifiers(actor)
    prof = proficiency_bonus(actor, rules)
    bonuses = getattr(actor.system, "bonuses", None)
    global_save = simplify_bonus(bonuses.abilities.save, roll_data) if bonuses else 0
    return {
        key: modifiers[key]
        + proficiency_value(ability.proficient, prof, rules)
        + simplify_bonus(ability.bonuses.save, roll_data)
        + global_save
        for key, ability in actor.system.abilities.items()
    }


def skill_totals(
    actor: Actor,
    rules: RulesConfig,
    roll_data: Mapping[str, Any] | None = None,
) -> dict[str, SkillTotal]:
    """Skill check bonuses and passive scores."""
    skills = getattr(actor.system, "skills", None)
    if not skills:
        return {}
    modifiers = ability_modifiers(actor)
    prof = proficiency_bonus(actor, rules)
    bonuses = actor.system.bonuses.abilities
    global_bonus = simplify_bonus(bonuses.check, roll_data) + simplify_bonus(bonuses.skill, roll_data)

    totals: dict[str, SkillTotal] = {}
    for key, skill in skills.items():
        ability = skill.ability or rules.skills[key].ability
        proficiency = proficiency_value(skill.value, prof, rules)
        total = (
            _modifier(modifiers, ability)
            + proficiency
            + simplify_bonus(skill.bonuses.check, roll_data)
            + global_bonus
        )
        totals[key] = SkillTotal(
            ability=ability,
            proficiency=proficiency,
            total=total,
            passive=PASSIVE_CHECK_BASE + total + simplify_bonus(skill.bonuses.passive, roll_data),
        )
    return totals


def tool_totals(
    actor: Actor,
    rules: RulesConfig,
    roll_data: Mapping[str, Any] | None = None,
) -> dict[str, int]:
    """Tool check bonuses for the actor's tool proficiencies."""
    tools = getattr(actor.system, "tools", None)
    if not tools:
        return {}
    modifiers = ability_modifiers(actor)
    prof = proficiency_bonus(actor, rules)
    global_check = simplify_bonus(actor.system.bonuses.abilities.check, roll_data)
    return {
        key: _modifier(modifiers, tool.ability)
        + proficiency_value(tool.value, prof, rules)
        + simplify_bonus(tool.bonuses.check, roll_data)
        + global_check
        for key, tool in tools.items()
    }


__all__ = [
    "ability_modifier",
    "ability_modifiers",
    "character_level",
    "proficiency_bonus",
    "proficiency_value",
    "saving_throws",
    "SkillTotal",
    "skill_totals",
    "tool_totals",
]
