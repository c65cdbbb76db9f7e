"""Tests for spell slot and spell save DC calculation."""

from __future__ import annotations

from typing import Any

import pytest

from dnd_progression.calculator.spellcasting import (
    class_progressions,
    leveled_caster_level,
    leveled_slots,
    pact_caster_level,
    pact_slots,
    spell_dc,
    spell_slots,
)
from dnd_progression.models.documents import Actor
from dnd_progression.rules.registry import RulesConfig


def caster(rules: RulesConfig, *classes: tuple[str, str, int], **system: Any) -> Actor:
    """Character with one class item per (identifier, progression, levels)."""
    items = [
        {
            "name": identifier.title(),
            "type": "class",
            "system": {
                "identifier": identifier,
                "levels": levels,
                "spellcasting": {"progression": progression, "ability": "int"},
            },
        }
        for identifier, progression, levels in classes
    ]
    return Actor.model_validate(
        {"name": "Caster", "type": "character", "system": system, "items": items},
        context={"rules": rules},
    )


class TestSlotTables:
    """Tests for table lookups."""

    @pytest.mark.parametrize(
        ("level", "expected"),
        [(0, []), (1, [2]), (3, [4, 2]), (5, [4, 3, 2]), (20, [4, 3, 3, 3, 3, 2, 2, 1, 1])],
    )
    def test_leveled_slots(self, rules: RulesConfig, level: int, expected: list[int]) -> None:
        assert leveled_slots(level, rules) == expected

    def test_levels_past_table_use_last_row(self, rules: RulesConfig) -> None:
        assert leveled_slots(25, rules) == leveled_slots(20, rules)

    @pytest.mark.parametrize(("level", "expected"), [(0, (0, 0)), (1, (1, 1)), (4, (2, 2)), (10, (2, 5)), (20, (4, 5))])
    def test_pact_slots(self, rules: RulesConfig, level: int, expected: tuple[int, int]) -> None:
        assert pact_slots(level, rules) == expected


class TestCasterLevel:
    """Tests for combining class progressions."""

    def test_full_caster(self, rules: RulesConfig) -> None:
        assert leveled_caster_level(caster(rules, ("wizard", "full", 5)), rules) == 5

    def test_single_half_caster_rounds_up(self, rules: RulesConfig) -> None:
        assert leveled_caster_level(caster(rules, ("paladin", "half", 5)), rules) == 3

    def test_third_caster_below_threshold(self, rules: RulesConfig) -> None:
        assert leveled_caster_level(caster(rules, ("rogue", "third", 2)), rules) == 0
        assert leveled_caster_level(caster(rules, ("rogue", "third", 3)), rules) == 1

    def test_multiclass_rounds_down(self, rules: RulesConfig) -> None:
        """Test each non-full class contributes its levels rounded down."""
        actor = caster(rules, ("wizard", "full", 3), ("paladin", "half", 3), ("rogue", "third", 5))
        assert leveled_caster_level(actor, rules) == 3 + 1 + 1

    def test_artificer_rounds_up(self, rules: RulesConfig) -> None:
        actor = caster(rules, ("artificer", "artificer", 3), ("wizard", "full", 1))
        assert leveled_caster_level(actor, rules) == 2 + 1

    def test_subclass_progression(self, rules: RulesConfig) -> None:
        actor = caster(rules, ("fighter", "none", 3))
        actor.create_items(
            [
                {
                    "name": "Eldritch Knight",
                    "type": "subclass",
                    "system": {
                        "identifier": "eldritch-knight",
                        "class_identifier": "fighter",
                        "spellcasting": {"progression": "third", "ability": "int"},
                    },
                }
            ]
        )

        assert class_progressions(actor) == {"fighter": ("third", 3)}
        assert leveled_caster_level(actor, rules) == 1

    def test_pact_levels_kept_apart(self, rules: RulesConfig) -> None:
        actor = caster(rules, ("warlock", "pact", 5), ("wizard", "full", 2))

        assert pact_caster_level(actor) == 5
        assert leveled_caster_level(actor, rules) == 2

    def test_npc_spell_level(self, rules: RulesConfig) -> None:
        npc = Actor(name="Mage", type="npc", system={"details": {"spell_level": 9}})
        assert leveled_caster_level(npc, rules) == 9


class TestSpellSlots:
    """Tests for the computed slots."""

    def test_full_caster_slots(self, rules: RulesConfig) -> None:
        slots = spell_slots(caster(rules, ("wizard", "full", 5)), rules)

        assert [slots[f"spell{level}"].max for level in range(1, 10)] == [4, 3, 2, 0, 0, 0, 0, 0, 0]
        assert slots["pact"].max == 0

    def test_pact_slots(self, rules: RulesConfig) -> None:
        slots = spell_slots(caster(rules, ("warlock", "pact", 5)), rules)

        assert slots["pact"].max == 2
        assert slots["pact"].level == 3
        assert slots["spell1"].max == 0

    def test_override_and_remaining(self, rules: RulesConfig) -> None:
        actor = caster(
            rules,
            ("wizard", "full", 5),
            spells={"spell1": {"value": 1, "override": 5}, "pact": {"override": 1}},
        )

        slots = spell_slots(actor, rules)

        assert slots["spell1"].max == 5
        assert slots["spell1"].value == 1
        assert slots["spell2"].max == 3
        assert slots["pact"].max == 1

    def test_non_caster(self, character: Actor, rules: RulesConfig) -> None:
        assert all(slot.max == 0 for slot in spell_slots(character, rules).values())

    def test_vehicle_has_no_slots(self, rules: RulesConfig) -> None:
        assert spell_slots(Actor(name="Galley", type="vehicle", system={}), rules) == {}


class TestSpellDC:
    """Tests for the spell save DC."""

    def test_spell_dc(self, character: Actor, rules: RulesConfig) -> None:
        assert spell_dc(character, rules) == 8 + 2 + 0

    def test_spellcasting_ability_and_bonus(self, character: Actor, rules: RulesConfig) -> None:
        character.update_source({"system.attributes.spellcasting": "wis", "system.bonuses.spell.dc": "2"})
        assert spell_dc(character, rules) == 8 + 2 + 1 + 2
