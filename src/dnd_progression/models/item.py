"""Item system data schemas.

Item payloads are composed from field groups:
- ``ItemDescriptionFields``: description text and source book
- ``PhysicalItemFields``: quantity, weight, price, rarity
- ``EquippableItemFields``: attunement and equipped state
- ``AdvancementFields``: the ordered advancement list of classes,
  subclasses, and features
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any, ClassVar

from pydantic import Field, SerializeAsAny, ValidationInfo, field_validator

from dnd_progression.models.advancement import IDENTIFIER_PATTERN, AdvancementData
from dnd_progression.models.base import (
    DataModel,
    FieldGroup,
    SystemDataModel,
    is_numeric,
    rules_from_context,
)
from dnd_progression.rules import tables


if TYPE_CHECKING:
    from dnd_progression.rules.registry import RulesConfig


HIT_DIE_PATTERN = re.compile(r"^d\d+$")

ATTUNEMENT_NONE = 0
ATTUNEMENT_REQUIRED = 1
ATTUNEMENT_ATTUNED = 2


def _validate_identifier(value: str) -> str:
    if value and not IDENTIFIER_PATTERN.match(value):
        msg = f"Identifier must be a lower-case slug, got {value!r}"
        raise ValueError(msg)
    return value


# =============================================================================
# Field Groups
# =============================================================================


class DescriptionData(DataModel):
    """Item description texts."""

    value: str | None = ""
    chat: str | None = ""


class ItemDescriptionFields(FieldGroup):
    """Description and source book."""

    description: DescriptionData = Field(default_factory=DescriptionData)
    source: str = ""

    @classmethod
    def migrate_data(cls, source: dict[str, Any], *, document_type: str) -> None:
        if "source" in source and source["source"] is None:
            source["source"] = ""


class PriceData(DataModel):
    """Item price in a coin denomination."""

    value: float = Field(default=0, ge=0)
    denomination: str = "gp"


class PhysicalItemFields(FieldGroup):
    """Fields of items that exist physically in an inventory."""

    quantity: int = Field(default=1, ge=0)
    weight: float = Field(default=0, ge=0)
    price: PriceData = Field(default_factory=PriceData)
    rarity: str = ""
    identified: bool = True

    @classmethod
    def migrate_data(cls, source: dict[str, Any], *, document_type: str) -> None:
        if "price" in source and not isinstance(source["price"], dict):
            price = source["price"]
            source["price"] = {
                "value": float(price) if is_numeric(price) else 0,
                "denomination": "gp",
            }

        rarity = source.get("rarity")
        if isinstance(rarity, str) and rarity not in tables.ITEM_RARITY:
            source["rarity"] = next(
                (key for key, label in tables.ITEM_RARITY.items() if label.lower() == rarity.lower()),
                "",
            )

        if "weight" in source and source["weight"] is None:
            source["weight"] = 0


class EquippableItemFields(FieldGroup):
    """Attunement and equipped state.

    Attributes:
        attunement: 0 not required, 1 required, 2 attuned.
        equipped: Whether the owning actor has it equipped.
    """

    attunement: int = Field(default=ATTUNEMENT_NONE, ge=0, le=2)
    equipped: bool = False

    @classmethod
    def migrate_data(cls, source: dict[str, Any], *, document_type: str) -> None:
        if "attuned" in source and "attunement" not in source:
            source["attunement"] = ATTUNEMENT_ATTUNED if source.pop("attuned") else ATTUNEMENT_NONE
        if "equipped" in source and source["equipped"] is None:
            source["equipped"] = False


class AdvancementFields(FieldGroup):
    """Ordered advancement definitions; order is significant."""

    advancement: list[SerializeAsAny[AdvancementData]] = Field(default_factory=list)

    @classmethod
    def prepare_data(
        cls,
        source: dict[str, Any],
        *,
        rules: RulesConfig,
        document_type: str,
    ) -> None:
        entries = source.get("advancement")
        if not isinstance(entries, list):
            return
        from dnd_progression.advancement.registry import advancement_registry

        # Each entry validates against the data model registered for its kind
        source["advancement"] = [advancement_registry.validate_data(entry) for entry in entries]


class SpellcastingData(DataModel):
    """Spellcasting progression and ability granted by a class."""

    progression: str = "none"
    ability: str = ""


def _migrate_spellcasting(source: dict[str, Any]) -> None:
    spellcasting = source.get("spellcasting")
    if isinstance(spellcasting, str):
        source["spellcasting"] = {"progression": spellcasting or "none", "ability": ""}
    elif isinstance(spellcasting, dict) and spellcasting.get("progression") == "":
        spellcasting["progression"] = "none"


# =============================================================================
# Class & Subclass
# =============================================================================


class ClassSkillsData(DataModel):
    """Skills a class lets the player choose."""

    number: int = Field(default=2, ge=0)
    choices: list[str] = Field(default_factory=list)
    value: list[str] = Field(default_factory=list)


class ClassData(SystemDataModel.compose(ItemDescriptionFields, AdvancementFields)):
    """Class item data.

    Attributes:
        identifier: Slug other items refer to this class by.
        levels: Current class level.
        hit_dice: Hit die denomination, e.g. "d8".
        hit_dice_used: Hit dice spent.
        saves: Saving throws the class grants proficiency in.
        skills: Skill choices.
        spellcasting: Spellcasting progression.
    """

    document_type: ClassVar[str] = "class"

    identifier: str = ""
    levels: int = Field(default=1, ge=0)
    hit_dice: str = "d6"
    hit_dice_used: int = Field(default=0, ge=0)
    saves: list[str] = Field(default_factory=list)
    skills: ClassSkillsData = Field(default_factory=ClassSkillsData)
    spellcasting: SpellcastingData = Field(default_factory=SpellcastingData)

    @classmethod
    def migrate_document_data(cls, source: dict[str, Any]) -> None:
        levels = source.get("levels")
        if isinstance(levels, str):
            if levels == "":
                source["levels"] = 1
            elif is_numeric(levels):
                source["levels"] = int(float(levels))
        _migrate_spellcasting(source)

    @field_validator("identifier")
    @classmethod
    def validate_identifier(cls, value: str) -> str:
        """Identifiers are lower-case slugs."""
        return _validate_identifier(value)

    @field_validator("levels")
    @classmethod
    def validate_levels(cls, value: int, info: ValidationInfo) -> int:
        """Class levels are bounded by the maximum character level."""
        rules: RulesConfig = rules_from_context(info)
        if value > rules.max_level:
            msg = f"Class levels must not exceed {rules.max_level}, got {value}"
            raise ValueError(msg)
        return value

    @field_validator("hit_dice")
    @classmethod
    def validate_hit_dice(cls, value: str) -> str:
        """Hit dice are written as d#."""
        if not HIT_DIE_PATTERN.match(value):
            msg = f"Hit dice must be a dice value in the format d#, got {value!r}"
            raise ValueError(msg)
        return value

    @property
    def hit_die_faces(self) -> int:
        """Number of faces on the class hit die."""
        return int(self.hit_dice[1:])


class SubclassData(SystemDataModel.compose(ItemDescriptionFields, AdvancementFields)):
    """Subclass item data, associated with its class by identifier."""

    document_type: ClassVar[str] = "subclass"

    identifier: str = ""
    class_identifier: str = ""
    spellcasting: SpellcastingData = Field(default_factory=SpellcastingData)

    @classmethod
    def migrate_document_data(cls, source: dict[str, Any]) -> None:
        _migrate_spellcasting(source)

    @field_validator("identifier", "class_identifier")
    @classmethod
    def validate_identifier(cls, value: str) -> str:
        """Identifiers are lower-case slugs."""
        return _validate_identifier(value)


# =============================================================================
# Features & Inventory
# =============================================================================


class FeatData(SystemDataModel.compose(ItemDescriptionFields, AdvancementFields)):
    """Feats and class features; their advancements key on character level."""

    document_type: ClassVar[str] = "feat"

    requirements: str = ""


class ArmorData(DataModel):
    """Armor value, type, and Dexterity cap.

    Attributes:
        value: Base armor class, or the bonus of a shield.
        type: Armor type key.
        dex: Maximum Dexterity modifier applied; None for no cap.
    """

    value: int | None = Field(default=None, ge=0)
    type: str = ""
    dex: int | None = Field(default=None, ge=0)


class EquipmentData(
    SystemDataModel.compose(ItemDescriptionFields, PhysicalItemFields, EquippableItemFields)
):
    """Armor, shields, and other wearable equipment."""

    document_type: ClassVar[str] = "equipment"

    armor: ArmorData = Field(default_factory=ArmorData)

    @property
    def is_armor(self) -> bool:
        """Body armor, i.e. an armor type other than shield."""
        return self.armor.type in tables.ARMOR_TYPES and self.armor.type != "shield"

    @property
    def is_shield(self) -> bool:
        return self.armor.type == "shield"


class LootData(SystemDataModel.compose(ItemDescriptionFields, PhysicalItemFields)):
    """Treasure and miscellaneous carried items."""

    document_type: ClassVar[str] = "loot"


class UsesData(DataModel):
    """Limited uses."""

    value: int | None = Field(default=None, ge=0)
    max: str = ""
    per: str | None = None


class ConsumableData(
    SystemDataModel.compose(ItemDescriptionFields, PhysicalItemFields, EquippableItemFields)
):
    """Potions, scrolls, ammunition, and other consumables."""

    document_type: ClassVar[str] = "consumable"

    consumable_type: str = "potion"
    uses: UsesData = Field(default_factory=UsesData)


class ToolItemData(
    SystemDataModel.compose(ItemDescriptionFields, PhysicalItemFields, EquippableItemFields)
):
    """Tool item with its check ability and proficiency."""

    document_type: ClassVar[str] = "tool"

    tool_type: str = ""
    base_item: str = ""
    ability: str = "int"
    proficient: float = Field(default=0, ge=0)

    @classmethod
    def migrate_document_data(cls, source: dict[str, Any]) -> None:
        ability = source.get("ability")
        if isinstance(ability, list):
            source["ability"] = ability[0] if ability else "int"


class PreparationData(DataModel):
    """How a spell is prepared."""

    mode: str = "prepared"
    prepared: bool = False


class SpellData(SystemDataModel.compose(ItemDescriptionFields)):
    """Spell level, school, and preparation."""

    document_type: ClassVar[str] = "spell"

    level: int = Field(default=1, ge=0, le=tables.SPELL_LEVELS)
    school: str = ""
    preparation: PreparationData = Field(default_factory=PreparationData)


ITEM_TYPES: dict[str, type[SystemDataModel]] = {
    model.document_type: model
    for model in (
        ClassData,
        SubclassData,
        FeatData,
        EquipmentData,
        LootData,
        ConsumableData,
        ToolItemData,
        SpellData,
    )
}

ADVANCEMENT_ITEM_TYPES = frozenset({"class", "subclass", "feat"})


__all__ = [
    # Field groups
    "ItemDescriptionFields",
    "PhysicalItemFields",
    "EquippableItemFields",
    "AdvancementFields",
    # Records
    "ArmorData",
    "PriceData",
    "SpellcastingData",
    # Documents
    "ClassData",
    "SubclassData",
    "FeatData",
    "EquipmentData",
    "LootData",
    "ConsumableData",
    "ToolItemData",
    "SpellData",
    "ITEM_TYPES",
    "ADVANCEMENT_ITEM_TYPES",
    "ATTUNEMENT_NONE",
    "ATTUNEMENT_REQUIRED",
    "ATTUNEMENT_ATTUNED",
]
