"""Armor class calculation.

The actor's ``attributes.ac.calc`` names one of the configured armor class
calculations. Each calculation is a deterministic formula over roll data,
with these extra references available:

- ``@attributes.ac.flat``: the stored flat value
- ``@attributes.ac.armor``: equipped armor value, or 10 unarmored
- ``@attributes.ac.dex``: Dexterity modifier capped by the armor
- ``@attributes.ac.shield``: equipped shield bonus

An unknown ``calc`` is computed as ``flat``; ``recompute`` stores that
correction on the actor.
"""

from __future__ import annotations

import copy
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from dnd_progression.calculator.abilities import ability_modifier
from dnd_progression.calculator.roll_data import get_roll_data
from dnd_progression.core.constants import BASE_ARMOR_CLASS
from dnd_progression.core.exceptions import FormulaError
from dnd_progression.core.logging import get_logger
from dnd_progression.rules.formula import evaluate_formula


if TYPE_CHECKING:
    from dnd_progression.models.documents import Actor, Item
    from dnd_progression.rules.registry import RulesConfig


logger = get_logger(__name__)

FALLBACK_CALCULATION = "flat"


@dataclass(frozen=True)
class ArmorClass:
    """Computed armor class.

    Attributes:
        calc: Calculation used.
        formula: Formula evaluated.
        armor: Armor value from equipment, or 10.
        dex: Dexterity contribution after the armor's cap.
        shield: Shield bonus.
        base: Formula result.
        value: Final armor class.
        fallback: Whether ``calc`` was unknown and ``flat`` was used instead.
    """

    calc: str
    formula: str
    armor: int
    dex: int
    shield: int
    base: int
    value: int
    fallback: bool = False


def equipped_armor(actor: Actor) -> Item | None:
    """First equipped body armor."""
    return next(
        (item for item in actor.items_of_type("equipment") if item.system.equipped and item.system.is_armor),
        None,
    )


def equipped_shield(actor: Actor) -> Item | None:
    return next(
        (item for item in actor.items_of_type("equipment") if item.system.equipped and item.system.is_shield),
        None,
    )


def armor_class(
    actor: Actor,
    rules: RulesConfig,
    roll_data: Mapping[str, Any] | None = None,
) -> ArmorClass:
    """Compute the actor's armor class.

    Args:
        actor: Actor to compute for.
        rules: Rules snapshot providing the calculations.
        roll_data: Prebuilt roll data; built from the actor when omitted.

    Returns:
        The computed ArmorClass.
    """
    ac = actor.system.attributes.ac
    calc = ac.calc
    fallback = calc not in rules.armor_classes
    if fallback:
        logger.warning("Unknown armor class calculation", calc=calc, fallback=FALLBACK_CALCULATION)
        calc = FALLBACK_CALCULATION

    dex_ability = actor.system.abilities.get("dex")
    dex_mod = ability_modifier(dex_ability.value) if dex_ability is not None else 0
    armor = equipped_armor(actor)
    shield = equipped_shield(actor)

    armor_value = BASE_ARMOR_CLASS
    dex = dex_mod
    if armor is not None:
        if armor.system.armor.value is not None:
            armor_value = armor.system.armor.value
        if armor.system.armor.dex is not None:
            dex = min(dex_mod, armor.system.armor.dex)
    shield_value = (shield.system.armor.value or 0) if shield is not None else 0
    flat = ac.flat if ac.flat is not None else BASE_ARMOR_CLASS

    data = copy.deepcopy(dict(roll_data)) if roll_data is not None else get_roll_data(actor, rules)
    data.setdefault("attributes", {})["ac"] = {
        **data.get("attributes", {}).get("ac", {}),
        "flat": flat,
        "armor": armor_value,
        "dex": dex,
        "shield": shield_value,
    }

    formula = ac.formula if calc == "custom" else (rules.armor_formula(calc) or "")
    try:
        base = evaluate_formula(formula, data) if formula else flat
    except FormulaError as exc:
        logger.warning("Armor class formula failed", calc=calc, formula=formula, reason=exc.message)
        base = BASE_ARMOR_CLASS

    # Flat values already include everything
    bonus = 0 if calc == "flat" else shield_value
    return ArmorClass(
        calc=calc,
        formula=formula,
        armor=armor_value,
        dex=dex,
        shield=shield_value,
        base=base,
        value=base + bonus,
        fallback=fallback,
    )


def preview_armor_class(
    actor: Actor,
    changes: Mapping[str, Any] | None = None,
    *,
    item_changes: Mapping[str, Mapping[str, Any]] | None = None,
    rules: RulesConfig | None = None,
) -> ArmorClass:
    """Armor class the actor would have after a candidate edit.

    The edit is applied to a copy that is discarded afterwards; ``actor``
    is not modified.

    Args:
        actor: Actor to preview.
        changes: Dotted-path changes to the actor.
        item_changes: Dotted-path changes keyed by embedded item id.
        rules: Rules snapshot; defaults to the process-wide one.

    Returns:
        The previewed ArmorClass.
    """
    if rules is None:
        from dnd_progression.rules.registry import get_rules_config

        rules = get_rules_config()

    preview = actor.clone()
    preview.update_source(changes or {}, rules=rules)
    for item_id, item_update in (item_changes or {}).items():
        item = preview.get_item(item_id)
        if item is not None:
            item.update_source(item_update, rules=rules)
    return armor_class(preview, rules)


__all__ = [
    "ArmorClass",
    "FALLBACK_CALCULATION",
    "armor_class",
    "equipped_armor",
    "equipped_shield",
    "preview_armor_class",
]
