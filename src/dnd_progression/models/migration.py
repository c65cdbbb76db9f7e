"""Document-level migrations of legacy actor data.

Schema migrations (``SystemDataModel.migrate_data``) run automatically on
every validation. The functions here cover what a single payload cannot
see on its own: numeric strings written by importers, corrupt formulas,
and changes that depend on the actor's embedded items.

``repair_armor_class`` is a one-shot data repair for bulk imports, not
part of the steady-state calculation.
"""

from __future__ import annotations

import copy
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from dnd_progression.core.logging import get_logger
from dnd_progression.core.paths import get_path, set_path
from dnd_progression.models.base import is_numeric
from dnd_progression.models.documents import Actor, Item
from dnd_progression.models.item import ITEM_TYPES
from dnd_progression.rules.formula import is_valid_formula


if TYPE_CHECKING:
    from dnd_progression.rules.registry import RulesConfig


logger = get_logger(__name__)


def _migrate_armor_class(source: Mapping[str, Any], update: dict[str, Any]) -> None:
    ac = get_path(source, "system.attributes.ac")
    if not isinstance(ac, Mapping):
        return

    # Numeric ac.value is upgraded by the schema migration on load
    if is_numeric(ac.get("value")):
        return

    flat = ac.get("flat")
    if isinstance(flat, str):
        update["system.attributes.ac.flat"] = int(float(flat)) if is_numeric(flat) else None

    formula = ac.get("formula")
    if isinstance(formula, str) and formula:
        formula = formula.replace("@attributes.ac.base", "@attributes.ac.armor")
        if not is_valid_formula(formula):
            logger.info("Invalid armor class formula removed", formula=formula)
            update["system.attributes.ac.formula"] = ""


def _migrate_item(
    actor_source: Mapping[str, Any],
    item: Mapping[str, Any],
    update: dict[str, Any],
) -> dict[str, Any]:
    item_update: dict[str, Any] = {}
    system = item.get("system") or {}

    # NPC spells and equipment that predate these fields start prepared and equipped
    if actor_source.get("type") == "npc":
        item_model = ITEM_TYPES.get(item.get("type"))
        fields = item_model.model_fields if item_model is not None else {}
        if "preparation" in fields and get_path(system, "preparation.prepared") is None:
            item_update["system.preparation.prepared"] = True
        if "equipped" in fields and system.get("equipped") is None:
            item_update["system.equipped"] = True

    tools = get_path(actor_source, "system.tools")
    base_item = system.get("base_item")
    if (
        item.get("type") == "tool"
        and isinstance(tools, Mapping)
        and base_item in tools
        and (system.get("proficient") or 0) > 1
        and get_path(tools, f"{base_item}.value") != system["proficient"]
    ):
        update[f"system.tools.{base_item}.value"] = system["proficient"]

    return item_update


def migrate_actor_data(source: Mapping[str, Any]) -> dict[str, Any]:
    """Compute the updates that bring a legacy actor up to date.

    Args:
        source: Raw actor document data.

    Returns:
        Dotted-path updates for the actor; embedded item updates are listed
        under ``"items"`` as ``{"id": ..., <path>: <value>}`` records. An
        up-to-date actor yields an empty mapping.
    """
    update: dict[str, Any] = {}
    _migrate_armor_class(source, update)

    item_updates: list[dict[str, Any]] = []
    for item in source.get("items") or []:
        item_data = item.model_dump() if isinstance(item, Item) else item
        item_update = _migrate_item(source, item_data, update)
        if item_update:
            item_updates.append({"id": item_data.get("id"), **item_update})
    if item_updates:
        update["items"] = item_updates

    if update:
        logger.debug("Actor migration computed", actor=source.get("name"), paths=sorted(update))
    return update


def migrate_actor(source: Mapping[str, Any], *, rules: RulesConfig | None = None) -> Actor:
    """Migrate legacy actor data and validate it into an ``Actor``.

    Args:
        source: Raw actor document data.
        rules: Rules snapshot for validation.

    Returns:
        The migrated actor.
    """
    data = copy.deepcopy(dict(source))
    update = migrate_actor_data(data)
    item_updates = {entry["id"]: entry for entry in update.pop("items", [])}
    for path, value in update.items():
        set_path(data, path, value)
    for item in data.get("items") or []:
        for path, value in item_updates.get(item.get("id"), {}).items():
            if path != "id":
                set_path(item, path, value)
    return Actor.model_validate(data, context={"rules": rules} if rules is not None else None)


def repair_armor_class(actor: Actor, *, rules: RulesConfig | None = None) -> dict[str, Any]:
    """One-shot armor class repair for imported actors.

    Actors wearing armor switch to the equipment calculation; otherwise
    NPCs switch to natural armor. The choice depends on the items equipped
    at repair time and is not re-evaluated afterwards.

    Args:
        actor: Actor to repair in place.
        rules: Rules snapshot providing the armor types.

    Returns:
        The applied update.
    """
    if rules is None:
        from dnd_progression.rules.registry import get_rules_config

        rules = get_rules_config()

    update: dict[str, Any] = {}
    has_armor_equipped = any(
        item.system.armor.type in rules.armor_types and item.system.equipped
        for item in actor.items_of_type("equipment")
    )
    if has_armor_equipped:
        update["system.attributes.ac.calc"] = "default"
    elif actor.type == "npc":
        update["system.attributes.ac.calc"] = "natural"

    if update:
        actor.update_source(update, rules=rules)
        logger.info("Armor class repaired", actor_id=actor.id, calc=update["system.attributes.ac.calc"])
    return update


__all__ = [
    "migrate_actor_data",
    "migrate_actor",
    "repair_armor_class",
]
