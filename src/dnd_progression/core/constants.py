"""Application-wide constants for the character progression engine.

Rules constants that feature flags may override live in ``RulesSettings``;
the values here are their defaults and the fixed game-rule numbers.
"""

from __future__ import annotations

# =============================================================================
# Level & Ability Limits
# =============================================================================

MAX_CHARACTER_LEVEL = 20
"""Maximum character level."""

MIN_CHARACTER_LEVEL = 1
"""Minimum level a class item can have while owned by a character."""

MAX_ABILITY_SCORE = 20
"""Default maximum ability score reachable through improvements."""

DEFAULT_ABILITY_SCORE = 10
"""Initial ability score for newly created actors."""

# =============================================================================
# Derived Stat Constants
# =============================================================================

BASE_ARMOR_CLASS = 10
"""Armor value used by the equipment formula when no armor is worn."""

BASE_SPELL_DC = 8
"""Base of the spell save DC formula."""

PASSIVE_CHECK_BASE = 10
"""Base of passive skill checks."""

DEFAULT_MOVEMENT_SPEED = 30
"""Default walking speed in feet."""

DEFAULT_ASI_POINTS = 2
"""Default free points granted by an ability score improvement."""

ADVANCEMENT_ORIGIN_SEPARATOR = "."
"""Separator between item id and advancement id in origin tags."""


__all__ = [
    "MAX_CHARACTER_LEVEL",
    "MIN_CHARACTER_LEVEL",
    "MAX_ABILITY_SCORE",
    "DEFAULT_ABILITY_SCORE",
    "BASE_ARMOR_CLASS",
    "BASE_SPELL_DC",
    "PASSIVE_CHECK_BASE",
    "DEFAULT_MOVEMENT_SPEED",
    "DEFAULT_ASI_POINTS",
    "ADVANCEMENT_ORIGIN_SEPARATOR",
]
