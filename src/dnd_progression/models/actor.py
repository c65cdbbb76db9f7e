"""Actor system data schemas.

Actor payloads are composed from two field groups:
- ``CommonFields``: abilities, attributes (AC, initiative, movement),
  currency, and traits shared by every actor type
- ``CreatureFields``: skills, tools, spell slots, and global bonuses shared
  by characters and NPCs

Abilities and skills are keyed mappings seeded from the rules snapshot:
every configured key gets a record, and keys absent from configuration are
dropped on validation.
"""

from __future__ import annotations

import re
import warnings
from typing import TYPE_CHECKING, Any, ClassVar

from pydantic import Field

from dnd_progression.core.constants import DEFAULT_ABILITY_SCORE, DEFAULT_MOVEMENT_SPEED
from dnd_progression.core.exceptions import MigrationWarning
from dnd_progression.core.logging import get_logger
from dnd_progression.models.base import DataModel, FieldGroup, SystemDataModel, is_numeric
from dnd_progression.rules import tables


if TYPE_CHECKING:
    from dnd_progression.rules.registry import RulesConfig


logger = get_logger(__name__)

CREATURE_TYPE_PATTERN = re.compile(
    r"^(?:swarm of (?P<size>[\w-]+) )?(?P<type>[^(]+?)(?:\((?P<subtype>[^)]+)\))?$",
    re.IGNORECASE,
)
SENSE_PATTERN = re.compile(r"([A-Za-z]+)\s?([0-9]+)\s?([A-Za-z]+)?")


# =============================================================================
# Shared Records
# =============================================================================


class AbilityBonuses(DataModel):
    """Formula bonuses to an ability's checks and saving throws."""

    check: str = ""
    save: str = ""


class AbilityData(DataModel):
    """Raw data for one ability score.

    Attributes:
        value: Ability score.
        proficient: Saving throw proficiency (0 or 1).
        max: Highest score improvements may reach.
        bonuses: Check and save bonus formulas.
    """

    value: int = Field(default=DEFAULT_ABILITY_SCORE, ge=0)
    proficient: int = Field(default=0, ge=0, le=1)
    max: int | None = Field(default=None, ge=0)
    bonuses: AbilityBonuses = Field(default_factory=AbilityBonuses)


class ArmorClassData(DataModel):
    """Armor class inputs.

    Attributes:
        flat: Flat value used by the ``flat`` and ``natural`` calculations.
        calc: Key of the armor class calculation in use.
        formula: Formula used by the ``custom`` calculation.
    """

    flat: int | None = Field(default=None, ge=0)
    calc: str = "default"
    formula: str = ""


class InitiativeData(DataModel):
    """Initiative ability override and bonus formula."""

    ability: str = ""
    bonus: str = ""


class MovementData(DataModel):
    """Movement speeds in the given units."""

    burrow: float = Field(default=0, ge=0)
    climb: float = Field(default=0, ge=0)
    fly: float = Field(default=0, ge=0)
    swim: float = Field(default=0, ge=0)
    walk: float = Field(default=DEFAULT_MOVEMENT_SPEED, ge=0)
    units: str = "ft"
    hover: bool = False


class SensesData(DataModel):
    """Sense ranges; ``special`` holds text that could not be parsed."""

    darkvision: float = Field(default=0, ge=0)
    blindsight: float = Field(default=0, ge=0)
    tremorsense: float = Field(default=0, ge=0)
    truesight: float = Field(default=0, ge=0)
    units: str = "ft"
    special: str = ""


class CommonAttributes(DataModel):
    """Attributes every actor type has."""

    ac: ArmorClassData = Field(default_factory=ArmorClassData)
    init: InitiativeData = Field(default_factory=InitiativeData)
    movement: MovementData = Field(default_factory=MovementData)


class AttunementData(DataModel):
    """Attunement slots."""

    max: int = Field(default=3, ge=0)


class CreatureAttributes(CommonAttributes):
    """Attributes shared by characters and NPCs."""

    senses: SensesData = Field(default_factory=SensesData)
    spellcasting: str = "int"
    attunement: AttunementData = Field(default_factory=AttunementData)


class CurrencyData(DataModel):
    """Carried coins by denomination."""

    pp: int = Field(default=0, ge=0)
    gp: int = Field(default=0, ge=0)
    ep: int = Field(default=0, ge=0)
    sp: int = Field(default=0, ge=0)
    cp: int = Field(default=0, ge=0)


class TraitsData(DataModel):
    """Creature traits."""

    size: str = "med"
    languages: list[str] = Field(default_factory=list)


class SkillBonuses(DataModel):
    """Skill check and passive bonus formulas."""

    check: str = ""
    passive: str = ""


class SkillData(DataModel):
    """Skill proficiency.

    Attributes:
        value: Proficiency multiplier (0, 0.5, 1, or 2).
        ability: Ability the skill is rolled with.
        bonuses: Check and passive bonus formulas.
    """

    value: float = Field(default=0, ge=0)
    ability: str = ""
    bonuses: SkillBonuses = Field(default_factory=SkillBonuses)


class ToolBonuses(DataModel):
    """Tool check bonus formula."""

    check: str = ""


class ToolData(DataModel):
    """Tool proficiency."""

    value: float = Field(default=1, ge=0)
    ability: str = "int"
    bonuses: ToolBonuses = Field(default_factory=ToolBonuses)


class SpellSlotData(DataModel):
    """Available spell slots and an optional maximum override."""

    value: int = Field(default=0, ge=0)
    override: int | None = Field(default=None, ge=0)


class AbilityGlobalBonuses(DataModel):
    """Bonuses applied to every ability check, save, or skill check."""

    check: str = ""
    save: str = ""
    skill: str = ""


class SpellGlobalBonuses(DataModel):
    """Bonus to the spell save DC."""

    dc: str = ""


class GlobalBonuses(DataModel):
    """Actor-wide bonus formulas."""

    abilities: AbilityGlobalBonuses = Field(default_factory=AbilityGlobalBonuses)
    spell: SpellGlobalBonuses = Field(default_factory=SpellGlobalBonuses)


# =============================================================================
# Field Groups
# =============================================================================


class CommonFields(FieldGroup):
    """Fields present on every actor type."""

    abilities: dict[str, AbilityData] = Field(default_factory=dict)
    attributes: CommonAttributes = Field(default_factory=CommonAttributes)
    currency: CurrencyData = Field(default_factory=CurrencyData)
    traits: TraitsData = Field(default_factory=TraitsData)

    @classmethod
    def migrate_data(cls, source: dict[str, Any], *, document_type: str) -> None:
        attributes = source.get("attributes")
        if not isinstance(attributes, dict):
            return
        cls._migrate_armor_class(attributes, document_type)
        cls._migrate_movement(attributes)
        cls._migrate_initiative(attributes)

    @staticmethod
    def _migrate_armor_class(attributes: dict[str, Any], document_type: str) -> None:
        ac = attributes.get("ac")
        if not isinstance(ac, dict):
            return

        # A numeric ac.value predates calculated armor class
        if is_numeric(ac.get("value")):
            ac["flat"] = int(float(ac.pop("value")))
            ac["calc"] = "natural" if document_type == "npc" else "flat"
            return

        formula = ac.get("formula")
        if isinstance(formula, str) and "@attributes.ac.base" in formula:
            ac["formula"] = formula.replace("@attributes.ac.base", "@attributes.ac.armor")

    @staticmethod
    def _migrate_movement(attributes: dict[str, Any]) -> None:
        speed = attributes.get("speed")
        original = speed.get("value") if isinstance(speed, dict) else speed
        movement = attributes.get("movement")
        if not isinstance(original, str):
            return
        if isinstance(movement, dict) and "walk" in movement:
            return
        movement = movement if isinstance(movement, dict) else {}
        first = original.split(" ")[0]
        movement["walk"] = int(float(first)) if is_numeric(first) else 0
        attributes["movement"] = movement
        attributes.pop("speed", None)

    @staticmethod
    def _migrate_initiative(attributes: dict[str, Any]) -> None:
        init = attributes.get("init")
        if not isinstance(init, dict):
            return
        value = init.pop("value", None)
        if not value or not is_numeric(value):
            return
        value = int(float(value))
        bonus = init.get("bonus")
        if bonus is not None and str(bonus).strip():
            init["bonus"] = f"{bonus} - {-value}" if value < 0 else f"{bonus} + {value}"
        else:
            init["bonus"] = str(value)

    @classmethod
    def prepare_data(
        cls,
        source: dict[str, Any],
        *,
        rules: RulesConfig,
        document_type: str,
    ) -> None:
        existing = source.get("abilities")
        existing = existing if isinstance(existing, dict) else {}
        abilities: dict[str, Any] = {}
        for key, config in rules.abilities.items():
            record = existing.get(key)
            record = dict(record) if isinstance(record, dict) else {}
            if "value" not in record:
                default = config.defaults.get(document_type, DEFAULT_ABILITY_SCORE)
                if isinstance(default, str):
                    default = abilities.get(default, {}).get("value", DEFAULT_ABILITY_SCORE)
                record["value"] = default
            if record.get("max") is None:
                record["max"] = rules.max_ability_score
            abilities[key] = record

        dropped = set(existing) - set(abilities)
        if dropped:
            logger.debug("Unconfigured abilities dropped", abilities=sorted(dropped))
        source["abilities"] = abilities


class CreatureFields(FieldGroup):
    """Fields present on characters and NPCs."""

    skills: dict[str, SkillData] = Field(default_factory=dict)
    tools: dict[str, ToolData] = Field(default_factory=dict)
    spells: dict[str, SpellSlotData] = Field(default_factory=dict)
    bonuses: GlobalBonuses = Field(default_factory=GlobalBonuses)

    @classmethod
    def migrate_data(cls, source: dict[str, Any], *, document_type: str) -> None:
        traits = source.get("traits")
        if not isinstance(traits, dict):
            return
        cls._migrate_senses(source, traits)
        cls._migrate_tools(source, traits)

    @staticmethod
    def _migrate_senses(source: dict[str, Any], traits: dict[str, Any]) -> None:
        original = traits.pop("senses", None)
        if not isinstance(original, str):
            return
        attributes = source.setdefault("attributes", {})
        senses = attributes.setdefault("senses", {})

        matched = False
        for term in original.split(","):
            match = SENSE_PATTERN.search(term.strip())
            if not match:
                continue
            sense = match.group(1).lower()
            if sense in tables.SENSES and sense not in senses:
                senses[sense] = round(float(match.group(2)) * 2) / 2
                matched = True

        if not matched and original:
            senses["special"] = original

    @staticmethod
    def _migrate_tools(source: dict[str, Any], traits: dict[str, Any]) -> None:
        original = traits.pop("toolProf", None)
        if not isinstance(original, dict) or not original.get("value"):
            return
        tools = source.setdefault("tools", {})
        for prof in original["value"]:
            known = prof in tables.TOOL_PROFICIENCIES or prof in tables.TOOL_IDS
            if not known or prof in tools:
                continue
            tools[prof] = {"value": 1, "ability": "int", "bonuses": {"check": ""}}

    @classmethod
    def prepare_data(
        cls,
        source: dict[str, Any],
        *,
        rules: RulesConfig,
        document_type: str,
    ) -> None:
        existing = source.get("skills")
        existing = existing if isinstance(existing, dict) else {}
        skills: dict[str, Any] = {}
        for key, config in rules.skills.items():
            record = existing.get(key)
            record = dict(record) if isinstance(record, dict) else {}
            if not record.get("ability"):
                record["ability"] = config.ability
            skills[key] = record
        source["skills"] = skills

        tools = source.get("tools")
        if isinstance(tools, dict):
            source["tools"] = {
                key: value
                for key, value in tools.items()
                if key in rules.tool_proficiencies or key in rules.tool_ids
            }

        spells = source.get("spells")
        spells = spells if isinstance(spells, dict) else {}
        slot_keys = [f"spell{level}" for level in range(1, rules.spell_levels + 1)] + ["pact"]
        source["spells"] = {key: spells.get(key) or {} for key in slot_keys}


# =============================================================================
# Character
# =============================================================================


class HitPointBonuses(DataModel):
    """Per-level and overall maximum hit point bonus formulas."""

    level: str = ""
    overall: str = ""


class CharacterHitPoints(DataModel):
    """Character hit points; ``max`` overrides the calculated maximum."""

    value: int = Field(default=0, ge=0)
    max: int | None = Field(default=None, ge=0)
    temp: int | None = Field(default=None, ge=0)
    tempmax: int | None = None
    bonuses: HitPointBonuses = Field(default_factory=HitPointBonuses)


class DeathSaves(DataModel):
    """Death saving throw tallies."""

    success: int = Field(default=0, ge=0, le=3)
    failure: int = Field(default=0, ge=0, le=3)


class CharacterAttributes(CreatureAttributes):
    """Character attributes."""

    hp: CharacterHitPoints = Field(default_factory=CharacterHitPoints)
    death: DeathSaves = Field(default_factory=DeathSaves)
    exhaustion: int = Field(default=0, ge=0, le=6)
    inspiration: bool = False


class ExperienceData(DataModel):
    """Experience points earned."""

    value: int = Field(default=0, ge=0)


class CharacterDetails(DataModel):
    """Character biography and progression details.

    Attributes:
        original_class: Id of the class item the character started with.
    """

    background: str = ""
    original_class: str = ""
    xp: ExperienceData = Field(default_factory=ExperienceData)
    race: str = ""
    alignment: str = ""


class ResourceData(DataModel):
    """A tracked character resource."""

    value: int | None = None
    max: int | None = None
    sr: bool = False
    lr: bool = False
    label: str = ""


class CharacterResources(DataModel):
    """The three generic character resources."""

    primary: ResourceData = Field(default_factory=ResourceData)
    secondary: ResourceData = Field(default_factory=ResourceData)
    tertiary: ResourceData = Field(default_factory=ResourceData)


class CharacterData(SystemDataModel.compose(CommonFields, CreatureFields)):
    """System data for player characters."""

    document_type: ClassVar[str] = "character"

    attributes: CharacterAttributes = Field(default_factory=CharacterAttributes)
    details: CharacterDetails = Field(default_factory=CharacterDetails)
    resources: CharacterResources = Field(default_factory=CharacterResources)


# =============================================================================
# NPC
# =============================================================================


class NPCHitPoints(DataModel):
    """NPC hit points with the formula used to roll them."""

    value: int = Field(default=10, ge=0)
    max: int = Field(default=10, ge=0)
    temp: int | None = Field(default=None, ge=0)
    tempmax: int | None = None
    formula: str = ""


class NPCAttributes(CreatureAttributes):
    """NPC attributes."""

    hp: NPCHitPoints = Field(default_factory=NPCHitPoints)


class CreatureTypeData(DataModel):
    """Structured creature type.

    Attributes:
        value: Creature type key, or ``custom``.
        subtype: Free-text subtype, e.g. "Goblinoid".
        swarm: Size key of each swarm member; empty when not a swarm.
        custom: Creature type text when ``value`` is ``custom``.
    """

    value: str = ""
    subtype: str = ""
    swarm: str = ""
    custom: str = ""


class NPCDetails(DataModel):
    """NPC type, challenge rating, and spellcasting level."""

    type: CreatureTypeData = Field(default_factory=CreatureTypeData)
    cr: float = Field(default=1, ge=0)
    spell_level: int = Field(default=0, ge=0)
    alignment: str = ""
    source: str = ""


class LegendaryData(DataModel):
    """Legendary action or resistance uses."""

    value: int = Field(default=0, ge=0)
    max: int = Field(default=0, ge=0)


class NPCResources(DataModel):
    """NPC legendary resources."""

    legact: LegendaryData = Field(default_factory=LegendaryData)
    legres: LegendaryData = Field(default_factory=LegendaryData)


class NPCData(SystemDataModel.compose(CommonFields, CreatureFields)):
    """System data for non-player characters."""

    document_type: ClassVar[str] = "npc"

    attributes: NPCAttributes = Field(default_factory=NPCAttributes)
    details: NPCDetails = Field(default_factory=NPCDetails)
    resources: NPCResources = Field(default_factory=NPCResources)

    @classmethod
    def migrate_document_data(cls, source: dict[str, Any]) -> None:
        details = source.get("details")
        if isinstance(details, dict):
            migrate_creature_type(details)
            if details.get("source") is None and "source" in details:
                details["source"] = ""


def _title_case(text: str) -> str:
    return " ".join(word[:1].upper() + word[1:].lower() for word in text.split())


def migrate_creature_type(details: dict[str, Any]) -> None:
    """Convert a free-text creature type into a structured record.

    Known types map to their key, "swarm of <size> <type>" sets the swarm
    size, and a parenthesized suffix becomes the subtype. Text that does
    not name a known type is stored as ``custom`` and reported with a
    ``MigrationWarning``.

    Args:
        details: NPC details data containing a legacy ``type`` string.
    """
    original = details.get("type")
    if not isinstance(original, str):
        return

    record = {"value": "", "subtype": "", "swarm": "", "custom": ""}
    details["type"] = record
    match = CREATURE_TYPE_PATTERN.match(original.strip())
    if not match:
        if original.strip():
            record["value"] = "custom"
            record["custom"] = original.strip()
            _warn_unmatched_type(original)
        return

    type_text = match.group("type").strip()
    lowered = type_text.lower()
    for key, config in tables.CREATURE_TYPES.items():
        if lowered in (key, config["label"].lower(), config["plural"].lower()):
            record["value"] = key
            break
    else:
        record["value"] = "custom"
        record["custom"] = _title_case(type_text)
        _warn_unmatched_type(original)

    subtype = match.group("subtype")
    record["subtype"] = _title_case(subtype.strip()) if subtype else ""

    size = match.group("size")
    if size:
        lowered_size = size.strip().lower()
        record["swarm"] = next(
            (
                key
                for key, config in tables.ACTOR_SIZES.items()
                if lowered_size in (key, config["label"].lower())
            ),
            "tiny",
        )


def _warn_unmatched_type(original: str) -> None:
    logger.warning("Creature type stored as custom", original=original)
    warnings.warn(
        f"Creature type {original!r} does not match a known type; stored as custom",
        MigrationWarning,
        stacklevel=3,
    )


# =============================================================================
# Vehicle
# =============================================================================


class VehicleArmorClass(ArmorClassData):
    """Vehicle armor class; vehicles default to a flat value."""

    calc: str = "flat"
    motionless: str = ""


class VehicleHitPoints(DataModel):
    """Vehicle hit points with damage and mishap thresholds."""

    value: int | None = Field(default=None, ge=0)
    max: int | None = Field(default=None, ge=0)
    dt: int | None = Field(default=None, ge=0)
    mt: int | None = Field(default=None, ge=0)


class VehicleCapacity(DataModel):
    """Vehicle carrying capacity; cargo is measured in tons."""

    creature: str = ""
    cargo: float = Field(default=0, ge=0)


class VehicleAttributes(CommonAttributes):
    """Vehicle attributes."""

    ac: VehicleArmorClass = Field(default_factory=VehicleArmorClass)
    hp: VehicleHitPoints = Field(default_factory=VehicleHitPoints)
    capacity: VehicleCapacity = Field(default_factory=VehicleCapacity)


class VehicleData(SystemDataModel.compose(CommonFields)):
    """System data for vehicles."""

    document_type: ClassVar[str] = "vehicle"

    attributes: VehicleAttributes = Field(default_factory=VehicleAttributes)
    vehicle_type: str = "water"


ACTOR_TYPES: dict[str, type[SystemDataModel]] = {
    CharacterData.document_type: CharacterData,
    NPCData.document_type: NPCData,
    VehicleData.document_type: VehicleData,
}


__all__ = [
    # Records
    "AbilityData",
    "ArmorClassData",
    "InitiativeData",
    "MovementData",
    "SensesData",
    "SkillData",
    "ToolData",
    "SpellSlotData",
    "CreatureTypeData",
    # Field groups
    "CommonFields",
    "CreatureFields",
    # Documents
    "CharacterData",
    "NPCData",
    "VehicleData",
    "ACTOR_TYPES",
    "migrate_creature_type",
]
