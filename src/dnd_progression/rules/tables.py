"""Static rules tables.

This module contains the base vocabulary and lookup tables consumed by the
rules registry, the calculators, and the migrations:
- Abilities, skills, tools, and proficiency levels
- Armor class formulas and armor types
- Spell slot and pact magic progression
- Encumbrance multipliers, creature types, and sizes
- XP thresholds and proficiency bonus breakpoints

These tables are never read directly by consumers; they are assembled,
together with the feature flags, into the immutable ``RulesConfig``.
"""

from __future__ import annotations

from typing import Any

# =============================================================================
# Abilities
# =============================================================================

# defaults: per actor type initial value; a string copies another ability's value
BASE_ABILITIES: dict[str, dict[str, Any]] = {
    "str": {"label": "Strength", "abbreviation": "str", "type": "physical"},
    "dex": {"label": "Dexterity", "abbreviation": "dex", "type": "physical"},
    "con": {"label": "Constitution", "abbreviation": "con", "type": "physical"},
    "int": {
        "label": "Intelligence",
        "abbreviation": "int",
        "type": "mental",
        "defaults": {"vehicle": 0},
    },
    "wis": {
        "label": "Wisdom",
        "abbreviation": "wis",
        "type": "mental",
        "defaults": {"vehicle": 0},
    },
    "cha": {
        "label": "Charisma",
        "abbreviation": "cha",
        "type": "mental",
        "defaults": {"vehicle": 0},
    },
}

OPTIONAL_ABILITIES: dict[str, dict[str, Any]] = {
    "hon": {
        "label": "Honor",
        "abbreviation": "hon",
        "type": "mental",
        "defaults": {"npc": "cha", "vehicle": 0},
        "improvement": False,
    },
    "san": {
        "label": "Sanity",
        "abbreviation": "san",
        "type": "mental",
        "defaults": {"npc": "wis", "vehicle": 0},
        "improvement": False,
    },
}

INITIATIVE_ABILITY = "dex"
HIT_POINTS_ABILITY = "con"
ENCUMBRANCE_ABILITY = "str"

# =============================================================================
# Skills & Tools
# =============================================================================

SKILLS: dict[str, dict[str, str]] = {
    "acr": {"label": "Acrobatics", "ability": "dex"},
    "ani": {"label": "Animal Handling", "ability": "wis"},
    "arc": {"label": "Arcana", "ability": "int"},
    "ath": {"label": "Athletics", "ability": "str"},
    "dec": {"label": "Deception", "ability": "cha"},
    "his": {"label": "History", "ability": "int"},
    "ins": {"label": "Insight", "ability": "wis"},
    "itm": {"label": "Intimidation", "ability": "cha"},
    "inv": {"label": "Investigation", "ability": "int"},
    "med": {"label": "Medicine", "ability": "wis"},
    "nat": {"label": "Nature", "ability": "int"},
    "prc": {"label": "Perception", "ability": "wis"},
    "prf": {"label": "Performance", "ability": "cha"},
    "per": {"label": "Persuasion", "ability": "cha"},
    "rel": {"label": "Religion", "ability": "int"},
    "slt": {"label": "Sleight of Hand", "ability": "dex"},
    "ste": {"label": "Stealth", "ability": "dex"},
    "sur": {"label": "Survival", "ability": "wis"},
}

TOOL_PROFICIENCIES: dict[str, str] = {
    "art": "Artisan's Tools",
    "disg": "Disguise Kit",
    "forg": "Forgery Kit",
    "game": "Gaming Set",
    "herb": "Herbalism Kit",
    "music": "Musical Instrument",
    "navg": "Navigator's Tools",
    "pois": "Poisoner's Kit",
    "thief": "Thieves' Tools",
    "vehicle": "Vehicle",
}

TOOL_IDS: dict[str, str] = {
    "alchemist": "Alchemist's Supplies",
    "brewer": "Brewer's Supplies",
    "calligrapher": "Calligrapher's Supplies",
    "cartographer": "Cartographer's Tools",
    "smith": "Smith's Tools",
    "tinker": "Tinker's Tools",
    "dice": "Dice Set",
    "lute": "Lute",
    "flute": "Flute",
}

# Keys are proficiency multipliers
PROFICIENCY_LEVELS: dict[float, str] = {
    0: "Not Proficient",
    1: "Proficient",
    0.5: "Half Proficient",
    2: "Expertise",
}

# =============================================================================
# Armor Class
# =============================================================================

ARMOR_CLASSES: dict[str, dict[str, str]] = {
    "flat": {"label": "Flat", "formula": "@attributes.ac.flat"},
    "natural": {"label": "Natural Armor", "formula": "@attributes.ac.flat"},
    "default": {"label": "Equipped Armor", "formula": "@attributes.ac.armor + @attributes.ac.dex"},
    "mage": {"label": "Mage Armor", "formula": "13 + @abilities.dex.mod"},
    "draconic": {"label": "Draconic Resilience", "formula": "13 + @abilities.dex.mod"},
    "unarmoredMonk": {
        "label": "Unarmored Defense (Monk)",
        "formula": "10 + @abilities.dex.mod + @abilities.wis.mod",
    },
    "unarmoredBarb": {
        "label": "Unarmored Defense (Barbarian)",
        "formula": "10 + @abilities.dex.mod + @abilities.con.mod",
    },
    "custom": {"label": "Custom Formula"},
}

ARMOR_TYPES: dict[str, str] = {
    "light": "Light Armor",
    "medium": "Medium Armor",
    "heavy": "Heavy Armor",
    "natural": "Natural Armor",
    "shield": "Shield",
}

# =============================================================================
# Spellcasting
# =============================================================================

# Row N-1 holds the slots for a full caster of spellcasting level N
SPELL_SLOT_TABLE: list[list[int]] = [
    [2],
    [3],
    [4, 2],
    [4, 3],
    [4, 3, 2],
    [4, 3, 3],
    [4, 3, 3, 1],
    [4, 3, 3, 2],
    [4, 3, 3, 3, 1],
    [4, 3, 3, 3, 2],
    [4, 3, 3, 3, 2, 1],
    [4, 3, 3, 3, 2, 1],
    [4, 3, 3, 3, 2, 1, 1],
    [4, 3, 3, 3, 2, 1, 1],
    [4, 3, 3, 3, 2, 1, 1, 1],
    [4, 3, 3, 3, 2, 1, 1, 1],
    [4, 3, 3, 3, 2, 1, 1, 1, 1],
    [4, 3, 3, 3, 3, 1, 1, 1, 1],
    [4, 3, 3, 3, 3, 2, 1, 1, 1],
    [4, 3, 3, 3, 3, 2, 2, 1, 1],
]

# Pact caster level: (slots, spell level); levels between keys use the lower key
PACT_CASTING_PROGRESSION: dict[int, tuple[int, int]] = {
    1: (1, 1),
    2: (2, 1),
    3: (2, 2),
    5: (2, 3),
    7: (2, 4),
    9: (2, 5),
    11: (3, 5),
    17: (4, 5),
}

LEVELED_PROGRESSIONS: dict[str, dict[str, Any]] = {
    "full": {"label": "Full Caster", "divisor": 1},
    "half": {"label": "Half Caster", "divisor": 2},
    "third": {"label": "Third Caster", "divisor": 3},
    "artificer": {"label": "Artificer", "divisor": 2, "round_up": True},
}

SPELL_PROGRESSION: dict[str, str] = {
    "none": "None",
    "full": "Full Caster",
    "half": "Half Caster",
    "third": "Third Caster",
    "pact": "Pact Magic",
    "artificer": "Artificer",
}

SPELL_LEVELS = 9

SPELL_PREPARATION_MODES: dict[str, str] = {
    "prepared": "Prepared",
    "pact": "Pact Magic",
    "always": "Always Prepared",
    "atwill": "At-Will",
    "innate": "Innate Spellcasting",
}

# =============================================================================
# Encumbrance
# =============================================================================

ENCUMBRANCE: dict[str, dict[str, float]] = {
    "currency_per_weight": {"imperial": 50, "metric": 110},
    "str_multiplier": {"imperial": 15, "metric": 6.8},
    "vehicle_weight_multiplier": {"imperial": 2000, "metric": 1000},
}

# Fractions of carrying capacity where encumbrance thresholds begin
ENCUMBRANCE_THRESHOLDS: dict[str, float] = {
    "encumbered": 1 / 3,
    "heavily_encumbered": 2 / 3,
}

# =============================================================================
# Creatures
# =============================================================================

ACTOR_SIZES: dict[str, dict[str, Any]] = {
    "tiny": {"label": "Tiny", "capacity_multiplier": 0.5},
    "sm": {"label": "Small", "capacity_multiplier": 1},
    "med": {"label": "Medium", "capacity_multiplier": 1},
    "lg": {"label": "Large", "capacity_multiplier": 2},
    "huge": {"label": "Huge", "capacity_multiplier": 4},
    "grg": {"label": "Gargantuan", "capacity_multiplier": 8},
}

CREATURE_TYPES: dict[str, dict[str, str]] = {
    "aberration": {"label": "Aberration", "plural": "Aberrations"},
    "beast": {"label": "Beast", "plural": "Beasts"},
    "celestial": {"label": "Celestial", "plural": "Celestials"},
    "construct": {"label": "Construct", "plural": "Constructs"},
    "dragon": {"label": "Dragon", "plural": "Dragons"},
    "elemental": {"label": "Elemental", "plural": "Elementals"},
    "fey": {"label": "Fey", "plural": "Fey"},
    "fiend": {"label": "Fiend", "plural": "Fiends"},
    "giant": {"label": "Giant", "plural": "Giants"},
    "humanoid": {"label": "Humanoid", "plural": "Humanoids"},
    "monstrosity": {"label": "Monstrosity", "plural": "Monstrosities"},
    "ooze": {"label": "Ooze", "plural": "Oozes"},
    "plant": {"label": "Plant", "plural": "Plants"},
    "undead": {"label": "Undead", "plural": "Undead"},
}

SENSES: dict[str, str] = {
    "blindsight": "Blindsight",
    "darkvision": "Darkvision",
    "tremorsense": "Tremorsense",
    "truesight": "Truesight",
}

DAMAGE_TYPES: dict[str, str] = {
    "acid": "Acid",
    "bludgeoning": "Bludgeoning",
    "cold": "Cold",
    "fire": "Fire",
    "force": "Force",
    "lightning": "Lightning",
    "necrotic": "Necrotic",
    "piercing": "Piercing",
    "poison": "Poison",
    "psychic": "Psychic",
    "radiant": "Radiant",
    "slashing": "Slashing",
    "thunder": "Thunder",
}

# =============================================================================
# Items
# =============================================================================

ITEM_RARITY: dict[str, str] = {
    "common": "Common",
    "uncommon": "Uncommon",
    "rare": "Rare",
    "veryRare": "Very Rare",
    "legendary": "Legendary",
    "artifact": "Artifact",
}

HIT_DIE_TYPES: list[str] = ["d4", "d6", "d8", "d10", "d12"]

CURRENCIES: dict[str, dict[str, Any]] = {
    "pp": {"label": "Platinum", "conversion": 0.1},
    "gp": {"label": "Gold", "conversion": 1},
    "ep": {"label": "Electrum", "conversion": 2},
    "sp": {"label": "Silver", "conversion": 10},
    "cp": {"label": "Copper", "conversion": 100},
}

# =============================================================================
# Progression
# =============================================================================

CHARACTER_EXP_LEVELS: list[int] = [
    0, 300, 900, 2700, 6500, 14000, 23000, 34000, 48000, 64000, 85000, 100000,
    120000, 140000, 165000, 195000, 225000, 265000, 305000, 355000,
]

# (minimum level or challenge rating, proficiency bonus)
PROFICIENCY_BREAKPOINTS: list[tuple[int, int]] = [
    (1, 2),
    (5, 3),
    (9, 4),
    (13, 5),
    (17, 6),
    (21, 7),
    (25, 8),
    (29, 9),
]


__all__ = [
    "BASE_ABILITIES",
    "OPTIONAL_ABILITIES",
    "INITIATIVE_ABILITY",
    "HIT_POINTS_ABILITY",
    "ENCUMBRANCE_ABILITY",
    "SKILLS",
    "TOOL_PROFICIENCIES",
    "TOOL_IDS",
    "PROFICIENCY_LEVELS",
    "ARMOR_CLASSES",
    "ARMOR_TYPES",
    "SPELL_SLOT_TABLE",
    "PACT_CASTING_PROGRESSION",
    "LEVELED_PROGRESSIONS",
    "SPELL_PROGRESSION",
    "SPELL_LEVELS",
    "SPELL_PREPARATION_MODES",
    "ENCUMBRANCE",
    "ENCUMBRANCE_THRESHOLDS",
    "ACTOR_SIZES",
    "CREATURE_TYPES",
    "SENSES",
    "DAMAGE_TYPES",
    "ITEM_RARITY",
    "HIT_DIE_TYPES",
    "CURRENCIES",
    "CHARACTER_EXP_LEVELS",
    "PROFICIENCY_BREAKPOINTS",
]
