"""Spell slot and spell save DC calculation.

Leveled casters combine their class levels, each divided by the divisor
of its progression, into one spellcasting level looked up in the slot
table. Pact casters use a separate table keyed by pact caster level.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from dnd_progression.calculator.abilities import ability_modifier, proficiency_bonus
from dnd_progression.core.constants import BASE_SPELL_DC
from dnd_progression.rules.formula import simplify_bonus


if TYPE_CHECKING:
    from dnd_progression.models.documents import Actor
    from dnd_progression.rules.registry import RulesConfig


@dataclass(frozen=True)
class SpellSlot:
    """Slots of one spell level.

    Attributes:
        value: Slots remaining.
        max: Slots available after overrides.
        level: Spell level the slots are cast at.
    """

    value: int
    max: int
    level: int


def class_progressions(actor: Actor) -> dict[str, tuple[str, int]]:
    """Spellcasting progression and class levels per class identifier.

    A class without a progression uses its subclass's progression.
    """
    subclasses = actor.subclasses
    progressions: dict[str, tuple[str, int]] = {}
    for identifier, item in actor.classes.items():
        progression = item.system.spellcasting.progression
        subclass = subclasses.get(identifier)
        if progression == "none" and subclass is not None:
            progression = subclass.system.spellcasting.progression
        if progression != "none" and item.system.levels > 0:
            progressions[identifier] = (progression, item.system.levels)
    return progressions


def leveled_caster_level(actor: Actor, rules: RulesConfig) -> int:
    """Combined spellcasting level for the leveled slot table."""
    if actor.type == "npc":
        return actor.system.details.spell_level

    casters = [
        (rules.leveled_progressions[progression], levels)
        for progression, levels in class_progressions(actor).values()
        if progression in rules.leveled_progressions
    ]
    total = 0
    for config, levels in casters:
        rounding = math.ceil if config.round_up else math.floor
        contribution = rounding(levels / config.divisor)
        # A single non-full caster rounds up
        if len(casters) == 1 and config.divisor > 1 and contribution:
            contribution = math.ceil(levels / config.divisor)
        total += contribution
    return total


def pact_caster_level(actor: Actor) -> int:
    return sum(levels for progression, levels in class_progressions(actor).values() if progression == "pact")


def leveled_slots(level: int, rules: RulesConfig) -> list[int]:
    """Slots per spell level for a spellcasting level.

    Levels past the end of the table use its last row.

    Example:
        >>> leveled_slots(5, rules)
        [4, 3, 2]
    """
    if level <= 0:
        return []
    table = rules.spell_slot_table
    return list(table[min(level, len(table)) - 1])


def pact_slots(level: int, rules: RulesConfig) -> tuple[int, int]:
    """Pact slots and their spell level, from the nearest defined level at or below."""
    defined = [key for key in rules.pact_progression if key <= level]
    if not defined:
        return (0, 0)
    return rules.pact_progression[max(defined)]


def spell_slots(actor: Actor, rules: RulesConfig) -> dict[str, SpellSlot]:
    """Spell slots by slot key (``spell1``..``spell9`` and ``pact``).

    A stored ``override`` replaces the computed maximum.
    """
    spells = getattr(actor.system, "spells", None)
    if spells is None:
        return {}

    table = leveled_slots(leveled_caster_level(actor, rules), rules)
    slots: dict[str, SpellSlot] = {}
    for level in range(1, rules.spell_levels + 1):
        key = f"spell{level}"
        stored = spells.get(key)
        maximum = table[level - 1] if level <= len(table) else 0
        if stored is not None and stored.override is not None:
            maximum = stored.override
        slots[key] = SpellSlot(value=stored.value if stored else 0, max=maximum, level=level)

    count, pact_level = pact_slots(pact_caster_level(actor), rules)
    pact = spells.get("pact")
    if pact is not None and pact.override is not None:
        count = pact.override
    slots["pact"] = SpellSlot(value=pact.value if pact else 0, max=count, level=pact_level)
    return slots


def spell_dc(
    actor: Actor,
    rules: RulesConfig,
    roll_data: Mapping[str, Any] | None = None,
) -> int:
    """Spell save DC: 8 + proficiency + spellcasting modifier + DC bonus."""
    attributes = actor.system.attributes
    ability = actor.system.abilities.get(getattr(attributes, "spellcasting", ""))
    modifier = ability_modifier(ability.value) if ability is not None else 0
    bonuses = getattr(actor.system, "bonuses", None)
    bonus = simplify_bonus(bonuses.spell.dc, roll_data) if bonuses is not None else 0
    return BASE_SPELL_DC + proficiency_bonus(actor, rules) + modifier + bonus


__all__ = [
    "SpellSlot",
    "class_progressions",
    "leveled_caster_level",
    "pact_caster_level",
    "leveled_slots",
    "pact_slots",
    "spell_slots",
    "spell_dc",
]
