"""Tests for system data composition and schema migrations."""

from __future__ import annotations

import pytest
from pydantic import Field

from dnd_progression.core.exceptions import ConfigurationError, MigrationWarning
from dnd_progression.models.actor import CharacterData, NPCData, VehicleData
from dnd_progression.models.base import FieldGroup, SystemDataModel
from dnd_progression.models.item import ClassData, EquipmentData, LootData
from dnd_progression.rules.registry import RulesConfig


class TestCompose:
    """Tests for composing schemas from field groups."""

    def test_fields_are_merged(self) -> None:
        class NameFields(FieldGroup):
            label: str = ""

        class CountFields(FieldGroup):
            count: int = Field(default=0, ge=0)

        model = SystemDataModel.compose(NameFields, CountFields)

        data = model.model_validate({"label": "x", "count": 2})
        assert data.label == "x"
        assert data.count == 2
        assert model.__field_groups__ == (NameFields, CountFields)

    def test_duplicate_field_rejected(self) -> None:
        """Test two groups may not declare the same field."""

        class FirstFields(FieldGroup):
            value: int = 0

        class SecondFields(FieldGroup):
            value: str = ""

        with pytest.raises(ConfigurationError) as exc_info:
            SystemDataModel.compose(FirstFields, SecondFields)
        assert exc_info.value.details["config_key"] == "value"


class TestPreparation:
    """Tests for configuration-driven defaults."""

    def test_character_abilities_seeded(self, rules: RulesConfig) -> None:
        data = CharacterData.model_validate({}, context={"rules": rules})

        assert set(data.abilities) == set(rules.abilities)
        assert data.abilities["str"].value == 10
        assert data.abilities["str"].max == rules.max_ability_score

    def test_vehicle_mental_abilities_zero(self, rules: RulesConfig) -> None:
        data = VehicleData.model_validate({}, context={"rules": rules})

        assert data.abilities["int"].value == 0
        assert data.abilities["str"].value == 10

    def test_skills_and_slots_seeded(self, rules: RulesConfig) -> None:
        """Test every configured skill and slot key is present."""
        data = NPCData.model_validate({}, context={"rules": rules})

        assert set(data.skills) == set(rules.skills)
        assert data.skills["ath"].ability == "str"
        assert "spell9" in data.spells
        assert "pact" in data.spells

    def test_unknown_tools_dropped(self, rules: RulesConfig) -> None:
        data = CharacterData.model_validate(
            {"tools": {"thief": {"value": 1}, "nonsense": {"value": 1}}},
            context={"rules": rules},
        )
        assert "nonsense" not in data.tools


class TestActorMigrations:
    """Tests for legacy actor data upgrades."""

    def test_numeric_armor_class(self) -> None:
        """Test a numeric AC value becomes a flat calculation."""
        character = CharacterData.model_validate({"attributes": {"ac": {"value": "15"}}})
        npc = NPCData.model_validate({"attributes": {"ac": {"value": 13}}})

        assert character.attributes.ac.flat == 15
        assert character.attributes.ac.calc == "flat"
        assert npc.attributes.ac.calc == "natural"

    def test_armor_formula_reference(self) -> None:
        data = CharacterData.model_validate(
            {"attributes": {"ac": {"calc": "custom", "formula": "@attributes.ac.base + 1"}}}
        )
        assert data.attributes.ac.formula == "@attributes.ac.armor + 1"

    def test_speed_string(self) -> None:
        data = CharacterData.model_validate({"attributes": {"speed": {"value": "40 ft."}}})
        assert data.attributes.movement.walk == 40

    def test_initiative_value_folded_into_bonus(self) -> None:
        """Test a legacy initiative value joins the bonus formula."""
        plain = CharacterData.model_validate({"attributes": {"init": {"value": 2}}})
        combined = CharacterData.model_validate(
            {"attributes": {"init": {"value": -1, "bonus": "@prof"}}}
        )

        assert plain.attributes.init.bonus == "2"
        assert combined.attributes.init.bonus == "@prof - 1"

    def test_senses_string(self) -> None:
        data = NPCData.model_validate({"traits": {"senses": "Darkvision 60 ft., tremorsense 30 ft"}})

        assert data.attributes.senses.darkvision == 60
        assert data.attributes.senses.tremorsense == 30

    def test_unparsed_senses_kept_as_special(self) -> None:
        data = NPCData.model_validate({"traits": {"senses": "keen smell"}})
        assert data.attributes.senses.special == "keen smell"

    def test_tool_proficiencies(self) -> None:
        data = CharacterData.model_validate({"traits": {"toolProf": {"value": ["thief"]}}})
        assert data.tools["thief"].value == 1

    def test_migration_is_idempotent(self) -> None:
        """Test validating migrated data again changes nothing."""
        once = NPCData.model_validate(
            {"attributes": {"ac": {"value": 13}, "speed": "30 ft."}, "details": {"type": "beast"}}
        )
        twice = NPCData.model_validate(once.model_dump())

        assert twice.model_dump() == once.model_dump()


class TestCreatureTypeMigration:
    """Tests for free-text creature types."""

    def test_known_type_with_subtype(self) -> None:
        data = NPCData.model_validate({"details": {"type": "Humanoid (goblinoid)"}})

        assert data.details.type.value == "humanoid"
        assert data.details.type.subtype == "Goblinoid"

    def test_swarm(self) -> None:
        data = NPCData.model_validate({"details": {"type": "swarm of Tiny beasts"}})

        assert data.details.type.value == "beast"
        assert data.details.type.swarm == "tiny"

    def test_unknown_type_warns(self) -> None:
        """Test an unknown type is stored as custom with a warning."""
        with pytest.warns(MigrationWarning):
            data = NPCData.model_validate({"details": {"type": "robot"}})

        assert data.details.type.value == "custom"
        assert data.details.type.custom == "Robot"


class TestItemMigrations:
    """Tests for legacy item data upgrades."""

    def test_class_levels_string(self, rules: RulesConfig) -> None:
        assert ClassData.model_validate({"levels": ""}, context={"rules": rules}).levels == 1
        assert ClassData.model_validate({"levels": "3"}, context={"rules": rules}).levels == 3

    def test_spellcasting_string(self) -> None:
        data = ClassData.model_validate({"spellcasting": "half"})
        assert data.spellcasting.progression == "half"

    def test_class_levels_bounded(self, rules: RulesConfig) -> None:
        with pytest.raises(ValueError):
            ClassData.model_validate({"levels": rules.max_level + 1}, context={"rules": rules})

    def test_hit_dice_format(self) -> None:
        with pytest.raises(ValueError):
            ClassData.model_validate({"hit_dice": "10"})

    def test_price_and_rarity(self) -> None:
        data = LootData.model_validate({"price": "25", "rarity": "Very Rare", "weight": None})

        assert data.price.value == 25
        assert data.price.denomination == "gp"
        assert data.rarity == "veryRare"
        assert data.weight == 0

    def test_attuned_flag(self) -> None:
        data = EquipmentData.model_validate({"attuned": True, "equipped": None})

        assert data.attunement == 2
        assert data.equipped is False
