"""Tests for the scale value advancement."""

from __future__ import annotations

import pytest

from dnd_progression.advancement import ScaleValueAdvancement, advancement_registry
from dnd_progression.core.exceptions import ConfigurationError
from dnd_progression.models.advancement import ScaleValueData
from dnd_progression.models.documents import Actor, Item
from dnd_progression.rules.registry import RulesConfig


@pytest.fixture
def action_surge(character: Actor, fighter: Item, rules: RulesConfig) -> ScaleValueAdvancement:
    return advancement_registry.create(
        fighter.get_advancement("actionsurge"), item=fighter, actor=character, rules=rules
    )


class TestScaleValue:
    """Tests for level-indexed values."""

    def test_levels(self, action_surge: ScaleValueAdvancement) -> None:
        assert action_surge.levels() == [2, 17]

    @pytest.mark.parametrize(("level", "expected"), [(1, None), (2, 1), (4, 1), (16, 1), (17, 2), (20, 2)])
    def test_value_for_level(self, action_surge: ScaleValueAdvancement, level: int, expected: int | None) -> None:
        assert action_surge.value_for_level(level) == expected

    def test_identifier(self, action_surge: ScaleValueAdvancement) -> None:
        assert action_surge.identifier == "action-surge"

    def test_identifier_from_title(self, character: Actor, fighter: Item, rules: RulesConfig) -> None:
        data = ScaleValueData(id="sneak", title="Sneak Attack", configuration={"scale": {1: "1d6"}})
        advancement = advancement_registry.create(data, item=fighter, actor=character, rules=rules)
        assert advancement.identifier == "sneak-attack"

    def test_distance_formatting(self, character: Actor, fighter: Item, rules: RulesConfig) -> None:
        data = ScaleValueData(
            id="movement",
            configuration={"identifier": "movement", "type": "distance", "scale": {2: 10, 6: 15}},
        )
        advancement = advancement_registry.create(data, item=fighter, actor=character, rules=rules)

        assert advancement.summary_for_level(7) == "15 ft."
        assert advancement.formatted_value(1) == ""

    def test_records_nothing(self, character: Actor, action_surge: ScaleValueAdvancement) -> None:
        """Test applying and reversing leave the actor untouched."""
        before = character.snapshot()

        action_surge.apply(2, {})
        record = action_surge.reverse(2)

        assert not action_surge.needs_input(2)
        assert not action_surge.records_value
        assert record.is_complete
        assert character.snapshot() == before

    def test_not_allowed_on_feats(self, character: Actor, rules: RulesConfig) -> None:
        (feat,) = character.create_items(
            [{"name": "Odd Feat", "type": "feat", "system": {"advancement": [{"id": "s", "type": "ScaleValue"}]}}]
        )

        with pytest.raises(ConfigurationError):
            advancement_registry.create(feat.get_advancement("s"), item=feat, actor=character, rules=rules)
