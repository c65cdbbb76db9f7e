"""Roll data: the mapping formulas resolve ``@path`` references against.

Roll data is a plain copy of the actor's system data with derived values
layered on top:

- ``abilities.<key>.mod``: ability modifiers
- ``prof``: proficiency bonus
- ``details.level``: character level
- ``classes.<identifier>``: class levels, hit dice, and subclass
- ``scale.<class>.<identifier>``: current scale values
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from dnd_progression.calculator.abilities import ability_modifier, character_level, proficiency_bonus


if TYPE_CHECKING:
    from dnd_progression.models.documents import Actor
    from dnd_progression.rules.registry import RulesConfig


def scale_values(actor: Actor, rules: RulesConfig) -> dict[str, dict[str, Any]]:
    """Current scale values keyed by class identifier, then scale identifier.

    Subclass scale values are listed under their class.
    """
    from dnd_progression.advancement.registry import advancement_registry
    from dnd_progression.advancement.scale_value import ScaleValueAdvancement

    subclasses = actor.subclasses
    scale: dict[str, dict[str, Any]] = {}
    for identifier, class_item in actor.classes.items():
        level = class_item.system.levels
        values: dict[str, Any] = {}
        for item in filter(None, (class_item, subclasses.get(identifier))):
            for data in item.advancement:
                if data.type != ScaleValueAdvancement.kind:
                    continue
                advancement = advancement_registry.create(data, item=item, actor=actor, rules=rules)
                value = advancement.value_for_level(level)
                if value is not None:
                    values[advancement.identifier] = value
        scale[identifier] = values
    return scale


def get_roll_data(actor: Actor, rules: RulesConfig | None = None) -> dict[str, Any]:
    """Build the roll data for ``actor``.

    Args:
        actor: Actor to read.
        rules: Rules snapshot; defaults to the process-wide one.

    Returns:
        A new mapping; changing it does not affect the actor.
    """
    if rules is None:
        from dnd_progression.rules.registry import get_rules_config

        rules = get_rules_config()

    data = actor.system.model_dump()
    for key, ability in data.get("abilities", {}).items():
        ability["mod"] = ability_modifier(ability["value"])
    data["prof"] = proficiency_bonus(actor, rules)

    details = data.setdefault("details", {})
    if actor.type == "character":
        details["level"] = character_level(actor)

    subclasses = actor.subclasses
    data["classes"] = {
        identifier: {
            "levels": item.system.levels,
            "hit_dice": item.system.hit_dice,
            "subclass": subclasses[identifier].identifier if identifier in subclasses else "",
        }
        for identifier, item in actor.classes.items()
    }
    data["scale"] = scale_values(actor, rules)
    return data


__all__ = [
    "get_roll_data",
    "scale_values",
]
