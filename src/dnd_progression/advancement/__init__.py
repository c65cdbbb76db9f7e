"""Advancement behaviors and the level-change manager.

Importing this package registers the built-in kinds:
AbilityScoreImprovement, HitPoints, ItemGrant, ItemChoice, and ScaleValue.
"""

from __future__ import annotations

from dnd_progression.advancement.ability_score_improvement import AbilityScoreImprovementAdvancement
from dnd_progression.advancement.base import Advancement, ItemSource, ReversalRecord
from dnd_progression.advancement.hit_points import HitPointsAdvancement
from dnd_progression.advancement.item_choice import ItemChoiceAdvancement
from dnd_progression.advancement.item_grant import ItemGrantAdvancement
from dnd_progression.advancement.manager import (
    AdvancementManager,
    AdvancementStep,
    FlightState,
    StepDirection,
)
from dnd_progression.advancement.registry import AdvancementRegistry, advancement_registry
from dnd_progression.advancement.scale_value import ScaleValueAdvancement


__all__ = [
    # Interface
    "Advancement",
    "ItemSource",
    "ReversalRecord",
    # Registry
    "AdvancementRegistry",
    "advancement_registry",
    # Kinds
    "AbilityScoreImprovementAdvancement",
    "HitPointsAdvancement",
    "ItemGrantAdvancement",
    "ItemChoiceAdvancement",
    "ScaleValueAdvancement",
    # Manager
    "AdvancementManager",
    "AdvancementStep",
    "FlightState",
    "StepDirection",
]
