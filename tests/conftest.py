"""Pytest configuration and shared fixtures.

This module provides common fixtures and configuration for all tests
in the character progression engine test suite.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pytest


if TYPE_CHECKING:
    from collections.abc import Generator

    from dnd_progression.models.documents import Actor, Item
    from dnd_progression.rules.registry import RulesConfig
    from dnd_progression.storage.memory_store import InMemoryDocumentStore


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Generator[None, None, None]:
    """Reset the settings and rules caches before and after each test."""
    from dnd_progression.core.config import clear_settings_cache
    from dnd_progression.rules.registry import clear_rules_cache

    clear_settings_cache()
    clear_rules_cache()
    yield
    clear_settings_cache()
    clear_rules_cache()


@pytest.fixture
def mock_env_vars(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Set up mock environment variables for testing.

    Returns:
        Dictionary of environment variables that were set.
    """
    env_vars = {
        "DND_PROGRESSION_DEBUG": "true",
        "DND_PROGRESSION_LOG_LEVEL": "WARNING",
        "DND_PROGRESSION_RULES_ALLOW_FEATS": "false",
        "DND_PROGRESSION_RULES_MAX_LEVEL": "12",
    }
    for key, value in env_vars.items():
        monkeypatch.setenv(key, value)
    return env_vars


@pytest.fixture
def rules() -> RulesConfig:
    """Rules snapshot built from default feature flags."""
    from dnd_progression.core.config import RulesSettings
    from dnd_progression.rules.registry import build_rules_config

    return build_rules_config(RulesSettings())


# =============================================================================
# Source Item Fixtures
# =============================================================================


EXTRA_ATTACK_UUID = "Compendium.classfeatures.extra-attack"
SECOND_WIND_UUID = "Compendium.classfeatures.second-wind"
ALERT_UUID = "Compendium.feats.alert"
TOUGH_UUID = "Compendium.feats.tough"
LONGSWORD_UUID = "Compendium.items.longsword"


@pytest.fixture
def source_items() -> dict[str, Item]:
    """Compendium entries keyed by uuid."""
    from dnd_progression.models.documents import Item

    return {
        EXTRA_ATTACK_UUID: Item(name="Extra Attack", type="feat", system={}),
        SECOND_WIND_UUID: Item(name="Second Wind", type="feat", system={}),
        ALERT_UUID: Item(name="Alert", type="feat", system={"requirements": ""}),
        TOUGH_UUID: Item(name="Tough", type="feat", system={}),
        LONGSWORD_UUID: Item(name="Longsword", type="loot", system={"weight": 3}),
    }


@pytest.fixture
def store(rules: RulesConfig, source_items: dict[str, Item]) -> InMemoryDocumentStore:
    """Empty actor store holding the compendium entries."""
    from dnd_progression.storage.memory_store import InMemoryDocumentStore

    document_store = InMemoryDocumentStore(rules=rules)
    for uuid, item in source_items.items():
        document_store.add_source_item(uuid, item)
    return document_store


# =============================================================================
# Actor Fixtures
# =============================================================================


@pytest.fixture
def fighter_data() -> dict[str, Any]:
    """Level 4 fighter class with its advancements.

    Levels 1-4 are already applied: maximum hit points at 1, average after,
    and +2 Dexterity from the level 4 improvement.
    """
    return {
        "id": "fighter00000001",
        "name": "Fighter",
        "type": "class",
        "system": {
            "identifier": "fighter",
            "levels": 4,
            "hit_dice": "d10",
            "saves": ["str", "con"],
            "advancement": [
                {
                    "id": "hitpoints",
                    "type": "HitPoints",
                    "value": {1: "max", 2: "avg", 3: "avg", 4: "avg"},
                },
                {
                    "id": "actionsurge",
                    "type": "ScaleValue",
                    "title": "Action Surge",
                    "configuration": {
                        "identifier": "action-surge",
                        "type": "number",
                        "scale": {2: 1, 17: 2},
                    },
                },
                {
                    "id": "grant1",
                    "type": "ItemGrant",
                    "level": 1,
                    "configuration": {"items": [SECOND_WIND_UUID]},
                    "value": {"added": {"secondwind00001": SECOND_WIND_UUID}},
                },
                {
                    "id": "grant5",
                    "type": "ItemGrant",
                    "level": 5,
                    "configuration": {"items": [EXTRA_ATTACK_UUID]},
                },
                {
                    "id": "asi4",
                    "type": "AbilityScoreImprovement",
                    "level": 4,
                    "value": {"type": "asi", "assignments": {"dex": 2}},
                },
                {
                    "id": "asi6",
                    "type": "AbilityScoreImprovement",
                    "level": 6,
                },
            ],
        },
    }


@pytest.fixture
def character_data(fighter_data: dict[str, Any]) -> dict[str, Any]:
    """Level 4 fighter character."""
    return {
        "id": "tamsin000000001",
        "name": "Tamsin",
        "type": "character",
        "system": {
            "abilities": {
                "str": {"value": 15, "proficient": 1},
                "dex": {"value": 14},
                "con": {"value": 14, "proficient": 1},
                "int": {"value": 10},
                "wis": {"value": 12},
                "cha": {"value": 8},
            },
            "attributes": {"hp": {"value": 36}},
            "details": {"original_class": fighter_data["id"]},
        },
        "items": [
            fighter_data,
            {
                "id": "secondwind00001",
                "name": "Second Wind",
                "type": "feat",
                "system": {},
                "flags": {
                    "source_id": SECOND_WIND_UUID,
                    "advancement_origin": f"{fighter_data['id']}.grant1",
                },
            },
        ],
    }


@pytest.fixture
def character(character_data: dict[str, Any], rules: RulesConfig) -> Actor:
    """Validated level 4 fighter."""
    from dnd_progression.models.documents import Actor

    return Actor.model_validate(character_data, context={"rules": rules})


@pytest.fixture
def stored_character(character: Actor, store: InMemoryDocumentStore) -> Actor:
    """The level 4 fighter, also saved in the store."""
    store.add_actor(character)
    return character


@pytest.fixture
def fighter(character: Actor) -> Item:
    """The character's fighter class item."""
    return character.get_item("fighter00000001")
