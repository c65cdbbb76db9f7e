"""Tests for the item grant advancement."""

from __future__ import annotations

from typing import Any

import pytest

from dnd_progression.advancement import ItemGrantAdvancement, advancement_registry
from dnd_progression.core.exceptions import ReversalError, ValidationError
from dnd_progression.models.documents import Actor
from dnd_progression.rules.registry import RulesConfig
from dnd_progression.storage.memory_store import InMemoryDocumentStore


ALERT_UUID = "Compendium.feats.alert"
TOUGH_UUID = "Compendium.feats.tough"
EXTRA_ATTACK_UUID = "Compendium.classfeatures.extra-attack"
SECOND_WIND_UUID = "Compendium.classfeatures.second-wind"


def grant(
    actor: Actor,
    rules: RulesConfig,
    store: InMemoryDocumentStore,
    advancement_id: str,
    *,
    item_id: str = "fighter00000001",
) -> ItemGrantAdvancement:
    item = actor.get_item(item_id)
    return advancement_registry.create(
        item.get_advancement(advancement_id), item=item, actor=actor, rules=rules, source=store
    )


def add_feat_grant(actor: Actor, configuration: dict[str, Any]) -> None:
    actor.create_items(
        [
            {
                "id": "boon00000000001",
                "name": "Boon of Fortitude",
                "type": "feat",
                "system": {
                    "advancement": [
                        {"id": "boongrant", "type": "ItemGrant", "level": 1, "configuration": configuration}
                    ]
                },
            }
        ]
    )


class TestItemGrantApply:
    """Tests for granting items."""

    def test_automatic_grant(
        self,
        character: Actor,
        rules: RulesConfig,
        store: InMemoryDocumentStore,
    ) -> None:
        """Test a fixed grant embeds the item tagged with its origin."""
        advancement = grant(character, rules, store, "grant5")
        assert not advancement.needs_input(5)
        assert advancement.default_input(5) == {"uuids": [EXTRA_ATTACK_UUID]}

        advancement.apply(5, advancement.default_input(5))

        (item_id,) = advancement.value.added
        item = character.get_item(item_id)
        assert item.name == "Extra Attack"
        assert item.flags.source_id == EXTRA_ATTACK_UUID
        assert item.flags.advancement_origin == "fighter00000001.grant5"
        assert advancement.value.added == {item_id: EXTRA_ATTACK_UUID}
        assert advancement.is_applied(5)
        assert advancement.summary_for_level(5) == "Extra Attack"

    def test_missing_source_item(
        self,
        character: Actor,
        rules: RulesConfig,
        store: InMemoryDocumentStore,
    ) -> None:
        """Test nothing is granted when any source item is missing."""
        add_feat_grant(character, {"items": [TOUGH_UUID, "Compendium.feats.missing"]})
        advancement = grant(character, rules, store, "boongrant", item_id="boon00000000001")
        count = len(character.items)

        with pytest.raises(ValidationError) as exc_info:
            advancement.apply(1, {})

        assert exc_info.value.details["field_name"] == "uuid"
        assert len(character.items) == count
        assert not advancement.is_applied(1)

    def test_optional_subset(
        self,
        character: Actor,
        rules: RulesConfig,
        store: InMemoryDocumentStore,
    ) -> None:
        add_feat_grant(character, {"items": [ALERT_UUID, TOUGH_UUID], "optional": True})
        advancement = grant(character, rules, store, "boongrant", item_id="boon00000000001")
        assert advancement.needs_input(1)

        advancement.apply(1, {"uuids": [TOUGH_UUID]})

        assert list(advancement.value.added.values()) == [TOUGH_UUID]

    def test_optional_empty_selection_is_applied(
        self,
        character: Actor,
        rules: RulesConfig,
        store: InMemoryDocumentStore,
    ) -> None:
        """Test choosing no items still records the grant as applied."""
        add_feat_grant(character, {"items": [ALERT_UUID, TOUGH_UUID], "optional": True})
        advancement = grant(character, rules, store, "boongrant", item_id="boon00000000001")
        assert not advancement.is_applied(1)
        count = len(character.items)

        advancement.apply(1, {"uuids": []})

        assert advancement.is_applied(1)
        assert advancement.value.added == {}
        assert len(character.items) == count

        record = advancement.reverse(1)

        assert record.value == {"added": {}}
        assert record.is_complete
        assert not advancement.is_applied(1)

    def test_optional_selection_outside_grant(
        self,
        character: Actor,
        rules: RulesConfig,
        store: InMemoryDocumentStore,
    ) -> None:
        add_feat_grant(character, {"items": [ALERT_UUID], "optional": True})
        advancement = grant(character, rules, store, "boongrant", item_id="boon00000000001")

        with pytest.raises(ValidationError):
            advancement.apply(1, {"uuids": [EXTRA_ATTACK_UUID]})


class TestItemGrantReverse:
    """Tests for reversing and restoring grants."""

    def test_reverse_removes_items(
        self,
        character: Actor,
        rules: RulesConfig,
        store: InMemoryDocumentStore,
    ) -> None:
        advancement = grant(character, rules, store, "grant1")

        record = advancement.reverse(1)

        assert character.get_item("secondwind00001") is None
        assert record.retained_items[SECOND_WIND_UUID]["id"] == "secondwind00001"
        assert record.value == {"added": {"secondwind00001": SECOND_WIND_UUID}}
        assert record.is_complete
        assert not advancement.is_applied(1)

    def test_reverse_with_orphaned_item(
        self,
        character: Actor,
        rules: RulesConfig,
        store: InMemoryDocumentStore,
    ) -> None:
        """Test items deleted out-of-band are reported rather than raised."""
        character.delete_items(["secondwind00001"])
        advancement = grant(character, rules, store, "grant1")

        record = advancement.reverse(1)

        assert record.orphaned == ["secondwind00001"]
        assert isinstance(record.error, ReversalError)
        assert not record.is_complete
        assert not advancement.is_applied(1)

    def test_restore_keeps_ids(
        self,
        character: Actor,
        rules: RulesConfig,
        store: InMemoryDocumentStore,
    ) -> None:
        advancement = grant(character, rules, store, "grant1")
        before = character.snapshot()
        record = advancement.reverse(1)

        advancement.restore(1, record.value, record.retained_items)

        assert character.snapshot() == before

    def test_restore_twice_is_idempotent(
        self,
        character: Actor,
        rules: RulesConfig,
        store: InMemoryDocumentStore,
    ) -> None:
        """Test restoring an applied grant does not duplicate its items."""
        advancement = grant(character, rules, store, "grant1")
        record = advancement.reverse(1)

        advancement.restore(1, record.value, record.retained_items)
        advancement.restore(1, record.value, record.retained_items)

        granted = character.items_with_origin("fighter00000001", "grant1")
        assert [item.id for item in granted] == ["secondwind00001"]
        assert advancement.value.added == {"secondwind00001": SECOND_WIND_UUID}
