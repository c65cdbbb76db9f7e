"""Tests for Actor and Item documents."""

from __future__ import annotations

from typing import Any

import pytest
from pydantic import ValidationError as PydanticValidationError

from dnd_progression.core.exceptions import ValidationError
from dnd_progression.models.actor import CharacterData
from dnd_progression.models.advancement import (
    AbilityScoreImprovementData,
    AdvancementData,
    HitPointsData,
    ItemGrantData,
    ScaleValueData,
)
from dnd_progression.models.documents import Actor, Item
from dnd_progression.rules.registry import RulesConfig


class TestActor:
    """Tests for actor validation and batch updates."""

    def test_system_dispatched_by_type(self, character: Actor) -> None:
        assert isinstance(character.system, CharacterData)
        assert character.system.abilities["str"].value == 15

    def test_unknown_type(self) -> None:
        with pytest.raises(PydanticValidationError):
            Actor(name="Cart", type="wagon")

    def test_update_source(self, character: Actor) -> None:
        """Test dotted-path changes are applied and re-validated."""
        applied = character.update_source({"system.abilities.str.value": 16, "name": "Tam"})

        assert applied == {"system.abilities.str.value": 16, "name": "Tam"}
        assert character.system.abilities["str"].value == 16
        assert character.name == "Tam"

    def test_update_source_rejects_invalid_values(self, character: Actor) -> None:
        """Test an invalid change leaves the actor untouched."""
        with pytest.raises(ValidationError):
            character.update_source({"system.abilities.str.value": -1})

        assert character.system.abilities["str"].value == 15

    def test_update_source_rejects_foreign_paths(self, character: Actor) -> None:
        with pytest.raises(ValidationError) as exc_info:
            character.update_source({"items": []})
        assert exc_info.value.details["field_name"] == "items"

    def test_update_keeps_item_instances(self, character: Actor) -> None:
        fighter = character.get_item("fighter00000001")
        character.update_source({"system.attributes.hp.value": 30})
        assert character.get_item("fighter00000001") is fighter

    def test_classes_and_subclasses(self, character: Actor) -> None:
        character.create_items(
            [{"name": "Champion", "type": "subclass", "system": {"identifier": "champion", "class_identifier": "fighter"}}]
        )

        assert list(character.classes) == ["fighter"]
        assert character.subclasses["fighter"].name == "Champion"

    def test_items_with_origin(self, character: Actor) -> None:
        granted = character.items_with_origin("fighter00000001", "grant1")
        assert [item.id for item in granted] == ["secondwind00001"]

    def test_create_items_keeps_ids(self, character: Actor) -> None:
        created = character.create_items([Item(id="sword0000000001", name="Sword", type="loot", system={})])

        assert created[0].id == "sword0000000001"
        assert character.get_item("sword0000000001") is created[0]

    def test_create_duplicate_id(self, character: Actor) -> None:
        with pytest.raises(ValidationError):
            character.create_items([{"id": "secondwind00001", "name": "Copy", "type": "feat", "system": {}}])

    def test_delete_items(self, character: Actor) -> None:
        removed = character.delete_items(["secondwind00001", "missing"])

        assert [item.id for item in removed] == ["secondwind00001"]
        assert character.get_item("secondwind00001") is None

    def test_clone_is_independent(self, character: Actor) -> None:
        clone = character.clone()
        clone.update_source({"system.abilities.str.value": 18})
        clone.delete_items(["secondwind00001"])

        assert character.system.abilities["str"].value == 15
        assert character.get_item("secondwind00001") is not None
        assert clone.snapshot() != character.snapshot()


class TestItem:
    """Tests for item documents and their advancement lists."""

    def test_advancement_dispatch(self, fighter: Item) -> None:
        """Test each stored advancement validates against its kind's schema."""
        kinds = {adv.id: type(adv) for adv in fighter.advancement}

        assert kinds["hitpoints"] is HitPointsData
        assert kinds["actionsurge"] is ScaleValueData
        assert kinds["grant5"] is ItemGrantData
        assert kinds["asi6"] is AbilityScoreImprovementData

    def test_unknown_kind_kept_generic(self, rules: RulesConfig) -> None:
        item = Item.model_validate(
            {
                "name": "Odd Feat",
                "type": "feat",
                "system": {"advancement": [{"id": "x", "type": "Trinket", "configuration": {"a": 1}}]},
            },
            context={"rules": rules},
        )

        assert type(item.advancement[0]) is AdvancementData
        assert item.advancement[0].configuration == {"a": 1}

    def test_advancement_order_preserved(self, fighter: Item) -> None:
        assert [adv.id for adv in fighter.advancement] == [
            "hitpoints",
            "actionsurge",
            "grant1",
            "grant5",
            "asi4",
            "asi6",
        ]

    def test_inventory_items_have_no_advancement(self) -> None:
        item = Item(name="Rope", type="loot", system={})
        assert item.advancement == []

    def test_get_advancement(self, fighter: Item) -> None:
        assert fighter.get_advancement("grant5").level == 5
        assert fighter.get_advancement("missing") is None

    def test_identifier_falls_back_to_name(self) -> None:
        item = Item(name="Eldritch Knight", type="feat", system={})
        assert item.identifier == "eldritch-knight"

    def test_update_source_rebuilds_advancement(self, fighter: Item) -> None:
        entries: list[dict[str, Any]] = [adv.model_dump() for adv in fighter.advancement]
        entries[0]["value"] = {**entries[0]["value"], 5: "max"}

        fighter.update_source({"system.advancement": entries})

        assert fighter.get_advancement("hitpoints").value[5] == "max"

    def test_identifier_validation(self) -> None:
        with pytest.raises(PydanticValidationError):
            Item(name="Fighter", type="class", system={"identifier": "Not A Slug"})
