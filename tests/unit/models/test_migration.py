"""Tests for document-level migrations."""

from __future__ import annotations

from typing import Any

from dnd_progression.models.documents import Actor
from dnd_progression.models.migration import migrate_actor, migrate_actor_data, repair_armor_class
from dnd_progression.rules.registry import RulesConfig


def legacy_npc() -> dict[str, Any]:
    return {
        "id": "goblin000000001",
        "name": "Goblin",
        "type": "npc",
        "system": {
            "attributes": {"ac": {"flat": "15", "calc": "custom", "formula": "10 + * @abilities.dex.mod"}},
            "details": {"type": "Humanoid (goblinoid)", "cr": 0.25},
            "tools": {"thief": {"value": 1}},
        },
        "items": [
            {
                "id": "leather00000001",
                "name": "Leather Armor",
                "type": "equipment",
                "system": {"equipped": None, "armor": {"value": 11, "type": "light"}},
            },
            {
                "id": "thievestools001",
                "name": "Thieves' Tools",
                "type": "tool",
                "system": {"base_item": "thief", "proficient": 2},
            },
            {
                "id": "firebolt0000001",
                "name": "Fire Bolt",
                "type": "spell",
                "system": {"level": 0, "preparation": {"mode": "prepared"}},
            },
        ],
    }


class TestMigrateActorData:
    """Tests for computing migration updates."""

    def test_armor_class_updates(self) -> None:
        update = migrate_actor_data(legacy_npc())

        assert update["system.attributes.ac.flat"] == 15
        assert update["system.attributes.ac.formula"] == ""

    def test_tool_expertise_moves_to_actor(self) -> None:
        update = migrate_actor_data(legacy_npc())
        assert update["system.tools.thief.value"] == 2

    def test_npc_items_prepared_and_equipped(self) -> None:
        """Test NPC spells are prepared and equipment equipped."""
        items = {entry["id"]: entry for entry in migrate_actor_data(legacy_npc())["items"]}

        assert items["leather00000001"]["system.equipped"] is True
        assert items["firebolt0000001"]["system.preparation.prepared"] is True
        assert items["thievestools001"]["system.equipped"] is True

    def test_unequipped_npc_items_kept(self) -> None:
        """Test items with an explicit equipped state are left alone."""
        source = legacy_npc()
        source["items"][0]["system"]["equipped"] = False
        source["items"][1]["system"]["equipped"] = True
        source["items"][2]["system"]["preparation"]["prepared"] = False

        items = {entry["id"] for entry in migrate_actor_data(source).get("items", [])}

        assert items == set()

    def test_npc_feats_not_equipped(self) -> None:
        source = legacy_npc()
        source["items"] = [{"id": "pack00000000001", "name": "Pack Tactics", "type": "feat", "system": {}}]

        assert "items" not in migrate_actor_data(source)

    def test_current_data_needs_nothing(self, character_data: dict[str, Any]) -> None:
        assert migrate_actor_data(character_data) == {}


class TestMigrateActor:
    """Tests for loading legacy actors."""

    def test_migrated_actor(self, rules: RulesConfig) -> None:
        actor = migrate_actor(legacy_npc(), rules=rules)

        assert actor.system.attributes.ac.flat == 15
        assert actor.system.attributes.ac.formula == ""
        assert actor.system.details.type.value == "humanoid"
        assert actor.system.tools["thief"].value == 2
        assert actor.get_item("leather00000001").system.equipped is True

    def test_migration_is_idempotent(self, rules: RulesConfig) -> None:
        """Test migrating already migrated data is a no-op."""
        actor = migrate_actor(legacy_npc(), rules=rules)
        again = migrate_actor(actor.snapshot(), rules=rules)

        assert migrate_actor_data(actor.snapshot()) == {}
        assert again.snapshot() == actor.snapshot()

    def test_items_without_equipped_state_migrate_once(self, rules: RulesConfig) -> None:
        source = legacy_npc()
        source["items"] = [source["items"][1]]

        actor = migrate_actor(source, rules=rules)

        assert actor.get_item("thievestools001").system.equipped is True
        assert migrate_actor_data(actor.snapshot()) == {}

    def test_input_not_modified(self, rules: RulesConfig) -> None:
        source = legacy_npc()
        migrate_actor(source, rules=rules)
        assert source["system"]["attributes"]["ac"]["flat"] == "15"


class TestRepairArmorClass:
    """Tests for the one-shot armor class repair."""

    def test_equipped_armor_uses_default(self, rules: RulesConfig) -> None:
        actor = migrate_actor(legacy_npc(), rules=rules)

        update = repair_armor_class(actor, rules=rules)

        assert update == {"system.attributes.ac.calc": "default"}
        assert actor.system.attributes.ac.calc == "default"

    def test_unarmored_npc_uses_natural(self, rules: RulesConfig) -> None:
        actor = Actor(name="Wolf", type="npc", system={"attributes": {"ac": {"calc": "flat", "flat": 13}}})

        repair_armor_class(actor, rules=rules)

        assert actor.system.attributes.ac.calc == "natural"

    def test_unarmored_character_untouched(self, character: Actor, rules: RulesConfig) -> None:
        assert repair_armor_class(character, rules=rules) == {}
        assert character.system.attributes.ac.calc == "default"
