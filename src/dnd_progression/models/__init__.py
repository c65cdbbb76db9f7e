"""Document schemas: actors, items, advancement records, and migrations."""

from __future__ import annotations

from dnd_progression.models.actor import (
    ACTOR_TYPES,
    AbilityData,
    CharacterData,
    CommonFields,
    CreatureFields,
    NPCData,
    VehicleData,
)
from dnd_progression.models.advancement import (
    AbilityScoreImprovementData,
    AdvancementData,
    HitPointsData,
    ItemChoiceData,
    ItemGrantData,
    ScaleValueData,
)
from dnd_progression.models.base import DataModel, FieldGroup, SystemDataModel, random_id
from dnd_progression.models.documents import Actor, Item, ItemFlags
from dnd_progression.models.item import (
    ITEM_TYPES,
    ClassData,
    ConsumableData,
    EquipmentData,
    FeatData,
    LootData,
    SpellData,
    SubclassData,
    ToolItemData,
)
from dnd_progression.models.migration import migrate_actor, migrate_actor_data, repair_armor_class


__all__ = [
    # Composition
    "DataModel",
    "FieldGroup",
    "SystemDataModel",
    "random_id",
    # Actors
    "AbilityData",
    "CommonFields",
    "CreatureFields",
    "CharacterData",
    "NPCData",
    "VehicleData",
    "ACTOR_TYPES",
    # Items
    "ClassData",
    "SubclassData",
    "FeatData",
    "EquipmentData",
    "LootData",
    "ConsumableData",
    "ToolItemData",
    "SpellData",
    "ITEM_TYPES",
    # Advancement records
    "AdvancementData",
    "AbilityScoreImprovementData",
    "HitPointsData",
    "ItemGrantData",
    "ItemChoiceData",
    "ScaleValueData",
    # Documents
    "Actor",
    "Item",
    "ItemFlags",
    # Migrations
    "migrate_actor",
    "migrate_actor_data",
    "repair_armor_class",
]
