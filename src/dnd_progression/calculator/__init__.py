"""Derived stats calculator.

Pure functions of a validated actor snapshot: ability modifiers,
proficiency, saves, skills, armor class, initiative, spell slots,
encumbrance, and maximum hit points.
"""

from __future__ import annotations

from dnd_progression.calculator.abilities import (
    SkillTotal,
    ability_modifier,
    character_level,
    proficiency_bonus,
    proficiency_value,
    saving_throws,
    skill_totals,
    tool_totals,
)
from dnd_progression.calculator.armor import ArmorClass, armor_class, preview_armor_class
from dnd_progression.calculator.derived import (
    DerivedStats,
    hit_points_max,
    initiative,
    prepare_derived_data,
    recompute,
)
from dnd_progression.calculator.encumbrance import Encumbrance, EncumbranceState, encumbrance
from dnd_progression.calculator.roll_data import get_roll_data, scale_values
from dnd_progression.calculator.spellcasting import (
    SpellSlot,
    leveled_caster_level,
    leveled_slots,
    pact_slots,
    spell_dc,
    spell_slots,
)


__all__ = [
    # Abilities
    "ability_modifier",
    "character_level",
    "proficiency_bonus",
    "proficiency_value",
    "saving_throws",
    "SkillTotal",
    "skill_totals",
    "tool_totals",
    # Armor
    "ArmorClass",
    "armor_class",
    "preview_armor_class",
    # Spellcasting
    "SpellSlot",
    "leveled_caster_level",
    "leveled_slots",
    "pact_slots",
    "spell_slots",
    "spell_dc",
    # Encumbrance
    "Encumbrance",
    "EncumbranceState",
    "encumbrance",
    # Derived
    "DerivedStats",
    "get_roll_data",
    "scale_values",
    "initiative",
    "hit_points_max",
    "prepare_derived_data",
    "recompute",
]
