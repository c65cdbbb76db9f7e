"""Carried weight and encumbrance.

Carrying capacity is the encumbrance ability score times a per-unit
multiplier, scaled by creature size; vehicles carry their cargo capacity
in tons instead. The ratio of carried weight to capacity is clamped to
[0, 1] and mapped onto encumbrance states by the configured thresholds.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from dnd_progression.models.documents import Actor
    from dnd_progression.rules.registry import RulesConfig


class EncumbranceState(StrEnum):
    """Encumbrance threshold states."""

    NORMAL = "normal"
    ENCUMBERED = "encumbered"
    HEAVILY_ENCUMBERED = "heavily_encumbered"


@dataclass(frozen=True)
class Encumbrance:
    """Computed encumbrance.

    Attributes:
        value: Carried weight.
        max: Carrying capacity.
        ratio: Carried weight over capacity, clamped to [0, 1].
        state: Threshold state reached.
    """

    value: float
    max: float
    ratio: float
    state: EncumbranceState

    @property
    def pct(self) -> float:
        return round(self.ratio * 100, 2)

    @property
    def encumbered(self) -> bool:
        return self.state is not EncumbranceState.NORMAL


def coin_weight(actor: Actor, rules: RulesConfig) -> float:
    """Weight of carried coins, if coins count toward encumbrance."""
    if not rules.currency_weight:
        return 0
    coins = sum(actor.system.currency.model_dump().values())
    return coins / rules.encumbrance.currency_per_weight


def carried_weight(actor: Actor, rules: RulesConfig) -> float:
    """Total weight of physical items and coins."""
    weight = sum(
        item.system.quantity * item.system.weight
        for item in actor.items
        if hasattr(item.system, "weight") and hasattr(item.system, "quantity")
    )
    return round(weight + coin_weight(actor, rules), 2)


def carrying_capacity(actor: Actor, rules: RulesConfig) -> float:
    config = rules.encumbrance
    if actor.type == "vehicle":
        return actor.system.attributes.capacity.cargo * config.vehicle_weight_multiplier

    ability = actor.system.abilities.get(rules.encumbrance_ability)
    score = ability.value if ability is not None else 0
    size = rules.actor_sizes.get(actor.system.traits.size)
    multiplier = size.capacity_multiplier if size is not None else 1
    return round(score * config.str_multiplier * multiplier, 2)


def encumbrance_state(ratio: float, rules: RulesConfig) -> EncumbranceState:
    thresholds = rules.encumbrance.thresholds
    if ratio > thresholds["heavily_encumbered"]:
        return EncumbranceState.HEAVILY_ENCUMBERED
    if ratio > thresholds["encumbered"]:
        return EncumbranceState.ENCUMBERED
    return EncumbranceState.NORMAL


def encumbrance(actor: Actor, rules: RulesConfig) -> Encumbrance:
    """Compute the actor's encumbrance."""
    value = carried_weight(actor, rules)
    maximum = carrying_capacity(actor, rules)
    if maximum > 0:
        ratio = min(max(value / maximum, 0), 1)
    else:
        ratio = 1.0 if value > 0 else 0.0
    return Encumbrance(value=value, max=maximum, ratio=ratio, state=encumbrance_state(ratio, rules))


__all__ = [
    "EncumbranceState",
    "Encumbrance",
    "coin_weight",
    "carried_weight",
    "carrying_capacity",
    "encumbrance_state",
    "encumbrance",
]
