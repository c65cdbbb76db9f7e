"""Actor and Item documents.

Documents wrap a typed ``system`` payload chosen by the document ``type``.
All edits go through batch operations so that a single advancement step
can touch abilities, flags, and embedded items together:

- ``Actor.update_source`` applies dotted-path changes and re-validates
- ``Actor.create_items`` / ``Actor.delete_items`` manage embedded items
- ``Actor.clone`` deep-copies for preview and rollback workflows

Example:
    >>> actor = Actor(name="Tamsin", type="character")
    >>> actor.update_source({"system.abilities.str.value": 14})
    {'system.abilities.str.value': 14}
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from typing import TYPE_CHECKING, Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SerializeAsAny,
    ValidationInfo,
    model_validator,
)
from pydantic import ValidationError as PydanticValidationError

from dnd_progression.core.constants import ADVANCEMENT_ORIGIN_SEPARATOR
from dnd_progression.core.exceptions import ValidationError
from dnd_progression.core.paths import set_path
from dnd_progression.models.actor import ACTOR_TYPES
from dnd_progression.models.base import SystemDataModel, random_id
from dnd_progression.models.item import ADVANCEMENT_ITEM_TYPES, ITEM_TYPES


if TYPE_CHECKING:
    from dnd_progression.models.advancement import AdvancementData
    from dnd_progression.rules.registry import RulesConfig


def _dispatch_system(
    data: Any,
    types: Mapping[str, type[SystemDataModel]],
    info: ValidationInfo,
) -> Any:
    if not isinstance(data, dict):
        return data
    document_type = data.get("type")
    model = types.get(document_type)
    if model is None:
        msg = f"Unknown document type {document_type!r}; expected one of {sorted(types)}"
        raise ValueError(msg)
    system = data.get("system")
    if isinstance(system, model):
        return data
    if isinstance(system, BaseModel):
        system = system.model_dump()
    data = dict(data)
    data["system"] = model.model_validate(system or {}, context=info.context)
    return data


def _apply_changes(
    document: BaseModel,
    changes: Mapping[str, Any],
    roots: frozenset[str],
    rules: RulesConfig | None,
) -> None:
    """Apply dotted-path changes to a document's top-level fields and re-validate."""
    data = document.model_dump(include=set(roots))
    for path, value in changes.items():
        if path.split(".", 1)[0] not in roots:
            raise ValidationError(
                f"Cannot update path '{path}'",
                field_name=path,
                details={"allowed_roots": sorted(roots)},
            )
        set_path(data, path, value)

    data["id"] = document.id
    data["type"] = document.type
    if "items" in type(document).model_fields:
        # Embedded item instances pass through without re-validation
        data["items"] = document.items
    try:
        updated = type(document).model_validate(
            data,
            context={"rules": rules} if rules is not None else None,
        )
    except PydanticValidationError as exc:
        raise ValidationError(
            f"Update produced invalid {type(document).__name__} data",
            details={"errors": exc.errors(include_url=False)},
        ) from exc

    for root in roots:
        setattr(document, root, getattr(updated, root))


# =============================================================================
# Item
# =============================================================================


class ItemFlags(BaseModel):
    """Item flags.

    Attributes:
        source_id: Uuid of the source item this was created from.
        advancement_origin: ``<item id>.<advancement id>`` of the
            advancement that granted this item.
    """

    model_config = ConfigDict(extra="allow")

    source_id: str = ""
    advancement_origin: str = ""


class Item(BaseModel):
    """An item document: a class, subclass, feature, or piece of inventory.

    Attributes:
        id: Document id, unique within the owning actor.
        name: Display name.
        type: Item type key, selects the ``system`` schema.
        system: Type-specific data.
        flags: Item flags.
    """

    model_config = ConfigDict(extra="ignore")

    id: str = Field(default_factory=random_id)
    name: str
    type: str
    system: SerializeAsAny[SystemDataModel]
    flags: ItemFlags = Field(default_factory=ItemFlags)

    @model_validator(mode="before")
    @classmethod
    def dispatch_system(cls, data: Any, info: ValidationInfo) -> Any:
        """Validate ``system`` against the schema registered for ``type``."""
        return _dispatch_system(data, ITEM_TYPES, info)

    @property
    def advancement(self) -> list[AdvancementData]:
        """Advancements declared on this item, in declaration order."""
        if self.type not in ADVANCEMENT_ITEM_TYPES:
            return []
        return list(getattr(self.system, "advancement", []))

    def get_advancement(self, advancement_id: str) -> AdvancementData | None:
        """Find an advancement on this item by id."""
        return next((adv for adv in self.advancement if adv.id == advancement_id), None)

    @property
    def identifier(self) -> str:
        """Identifier slug, falling back to a slug of the name."""
        identifier = getattr(self.system, "identifier", "")
        return identifier or self.name.strip().lower().replace(" ", "-")

    def update_source(
        self,
        changes: Mapping[str, Any],
        *,
        rules: RulesConfig | None = None,
    ) -> dict[str, Any]:
        """Apply a batch of dotted-path changes under ``name``, ``system``, or ``flags``.

        Returns:
            The applied changes.

        Raises:
            ValidationError: If a path is outside the document or the result is invalid.
        """
        _apply_changes(self, changes, frozenset({"name", "system", "flags"}), rules)
        return dict(changes)

    def clone(self, **updates: Any) -> Item:
        """Deep copy with optional top-level field replacements."""
        return self.model_copy(update=updates, deep=True)


# =============================================================================
# Actor
# =============================================================================


class Actor(BaseModel):
    """An actor document with its embedded items.

    Attributes:
        id: Document id.
        name: Display name.
        type: Actor type key (character, npc, vehicle).
        system: Type-specific data.
        items: Embedded items.
        flags: Free-form flags.
    """

    model_config = ConfigDict(extra="ignore")

    id: str = Field(default_factory=random_id)
    name: str
    type: str
    system: SerializeAsAny[SystemDataModel]
    items: list[Item] = Field(default_factory=list)
    flags: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def dispatch_system(cls, data: Any, info: ValidationInfo) -> Any:
        """Validate ``system`` against the schema registered for ``type``."""
        if isinstance(data, dict) and "system" not in data:
            data = {**data, "system": {}}
        return _dispatch_system(data, ACTOR_TYPES, info)

    # -------------------------------------------------------------------------
    # Embedded items
    # -------------------------------------------------------------------------

    def get_item(self, item_id: str) -> Item | None:
        """Embedded item by id."""
        return next((item for item in self.items if item.id == item_id), None)

    def items_of_type(self, *types: str) -> Iterator[Item]:
        """Embedded items of the given types, in embedded order."""
        return (item for item in self.items if item.type in types)

    @property
    def classes(self) -> dict[str, Item]:
        """Class items keyed by identifier."""
        return {item.identifier: item for item in self.items_of_type("class")}

    @property
    def subclasses(self) -> dict[str, Item]:
        """Subclass items keyed by the identifier of their class."""
        return {
            item.system.class_identifier: item
            for item in self.items_of_type("subclass")
            if item.system.class_identifier
        }

    def items_with_origin(self, item_id: str, advancement_id: str) -> list[Item]:
        """Embedded items granted by the given advancement."""
        origin = f"{item_id}{ADVANCEMENT_ORIGIN_SEPARATOR}{advancement_id}"
        return [item for item in self.items if item.flags.advancement_origin == origin]

    def create_items(self, items: Iterable[Item | Mapping[str, Any]]) -> list[Item]:
        """Embed copies of ``items``, keeping their ids.

        Raises:
            ValidationError: If an id is already embedded.
        """
        created: list[Item] = []
        for data in items:
            item = data.clone() if isinstance(data, Item) else Item.model_validate(data)
            if self.get_item(item.id) is not None:
                raise ValidationError(
                    f"Item '{item.id}' is already embedded",
                    field_name="items",
                    invalid_value=item.id,
                )
            self.items.append(item)
            created.append(item)
        return created

    def delete_items(self, item_ids: Iterable[str]) -> list[Item]:
        """Remove embedded items; ids that are not embedded are ignored.

        Returns:
            The removed items.
        """
        ids = set(item_ids)
        removed = [item for item in self.items if item.id in ids]
        self.items = [item for item in self.items if item.id not in ids]
        return removed

    # -------------------------------------------------------------------------
    # Updates
    # -------------------------------------------------------------------------

    def update_source(
        self,
        changes: Mapping[str, Any],
        *,
        rules: RulesConfig | None = None,
    ) -> dict[str, Any]:
        """Apply a batch of dotted-path changes and re-validate ``system``.

        Paths must start with ``name``, ``system``, or ``flags``. Embedded
        items are left untouched.

        Args:
            changes: Mapping of dotted path to new value.
            rules: Rules snapshot for validation; defaults to the process-wide one.

        Returns:
            The applied changes.

        Raises:
            ValidationError: If a path is outside the document or the result is invalid.
        """
        if changes:
            _apply_changes(self, changes, frozenset({"name", "system", "flags"}), rules)
        return dict(changes)

    def clone(self) -> Actor:
        """Deep copy of this actor and its embedded items."""
        return self.model_copy(deep=True)

    def snapshot(self) -> dict[str, Any]:
        """Plain-data copy of all raw data, for comparisons."""
        return self.model_dump(mode="python")


__all__ = [
    "ItemFlags",
    "Item",
    "Actor",
]
