"""Tests for carried weight and encumbrance."""

from __future__ import annotations

import pytest

from dnd_progression.calculator.encumbrance import (
    EncumbranceState,
    carried_weight,
    carrying_capacity,
    coin_weight,
    encumbrance,
    encumbrance_state,
)
from dnd_progression.core.config import RulesSettings
from dnd_progression.models.documents import Actor
from dnd_progression.rules.registry import RulesConfig, build_rules_config


def add_gear(actor: Actor, weight: float, quantity: int = 1) -> None:
    actor.create_items([{"name": "Gear", "type": "loot", "system": {"weight": weight, "quantity": quantity}}])


class TestEncumbrance:
    """Tests for weight against capacity."""

    def test_unburdened(self, character: Actor, rules: RulesConfig) -> None:
        result = encumbrance(character, rules)

        assert result.value == 0
        assert result.max == 225
        assert result.state is EncumbranceState.NORMAL
        assert not result.encumbered

    def test_carried_weight(self, character: Actor, rules: RulesConfig) -> None:
        add_gear(character, 3, quantity=2)
        add_gear(character, 0.5)

        assert carried_weight(character, rules) == 6.5

    def test_coins_ignored_when_disabled(self, character: Actor) -> None:
        rules = build_rules_config(RulesSettings(currency_weight=False))
        character.update_source({"system.currency.gp": 500})

        assert coin_weight(character, rules) == 0
        assert carried_weight(character, rules) == 0

    def test_coin_weight(self, character: Actor, rules: RulesConfig) -> None:
        """Test coins count toward carried weight by default."""
        character.update_source({"system.currency.gp": 80, "system.currency.sp": 20})

        assert coin_weight(character, rules) == 2
        assert carried_weight(character, rules) == 2

    def test_metric_capacity(self, character: Actor) -> None:
        rules = build_rules_config(RulesSettings(metric_weight_units=True))
        assert carrying_capacity(character, rules) == 102

    def test_size_multiplier(self, character: Actor, rules: RulesConfig) -> None:
        character.update_source({"system.traits.size": "lg"})
        assert carrying_capacity(character, rules) == 450

    @pytest.mark.parametrize(
        ("ratio", "state"),
        [
            (0, EncumbranceState.NORMAL),
            (0.3, EncumbranceState.NORMAL),
            (0.5, EncumbranceState.ENCUMBERED),
            (0.9, EncumbranceState.HEAVILY_ENCUMBERED),
        ],
    )
    def test_states(self, rules: RulesConfig, ratio: float, state: EncumbranceState) -> None:
        assert encumbrance_state(ratio, rules) is state

    def test_ratio_clamped(self, character: Actor, rules: RulesConfig) -> None:
        add_gear(character, 100, quantity=5)

        result = encumbrance(character, rules)

        assert result.ratio == 1
        assert result.pct == 100
        assert result.state is EncumbranceState.HEAVILY_ENCUMBERED

    def test_zero_capacity(self, character: Actor, rules: RulesConfig) -> None:
        character.update_source({"system.abilities.str.value": 0})
        add_gear(character, 1)

        result = encumbrance(character, rules)

        assert result.max == 0
        assert result.ratio == 1

    def test_vehicle_cargo(self, rules: RulesConfig) -> None:
        vehicle = Actor(name="Galley", type="vehicle", system={"attributes": {"capacity": {"cargo": 2}}})
        assert carrying_capacity(vehicle, rules) == 4000
