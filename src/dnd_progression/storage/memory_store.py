"""Document store contract and an in-memory implementation.

The engine never persists anything itself. It reads actors and source
items through a ``DocumentStore`` and commits each finished level change
as a single ``ActorUpdate`` batch:

- ``changes``: dotted-path updates under ``name``, ``system``, ``flags``
- ``create_items``: embedded items to add, with their ids
- ``update_items``: dotted-path updates per embedded item id
- ``delete_items``: embedded item ids to remove

Storage location: process memory only; ``InMemoryDocumentStore`` backs
tests and hosts that keep their own persistence.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from pydantic import BaseModel, Field

from dnd_progression.core.exceptions import DocumentNotFoundError, ValidationError
from dnd_progression.core.logging import get_logger
from dnd_progression.core.paths import diff_data
from dnd_progression.models.documents import Actor, Item


if TYPE_CHECKING:
    from dnd_progression.rules.registry import RulesConfig


logger = get_logger(__name__)

DOCUMENT_ROOTS = ("name", "system", "flags")


# =============================================================================
# Update Batch
# =============================================================================


class ActorUpdate(BaseModel):
    """Atomic batch of changes to one actor and its embedded items.

    Attributes:
        changes: Dotted-path updates to the actor.
        create_items: Data of embedded items to create.
        update_items: Dotted-path updates keyed by embedded item id.
        delete_items: Ids of embedded items to delete.
    """

    changes: dict[str, Any] = Field(default_factory=dict)
    create_items: list[dict[str, Any]] = Field(default_factory=list)
    update_items: dict[str, dict[str, Any]] = Field(default_factory=dict)
    delete_items: list[str] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.changes or self.create_items or self.update_items or self.delete_items)

    @staticmethod
    def _document_diff(before: BaseModel, after: BaseModel) -> dict[str, Any]:
        before_data = before.model_dump(include=set(DOCUMENT_ROOTS))
        after_data = after.model_dump(include=set(DOCUMENT_ROOTS))
        changes: dict[str, Any] = {}
        for root in DOCUMENT_ROOTS:
            changes.update(diff_data(before_data[root], after_data[root], root))
        return changes

    @classmethod
    def from_diff(cls, before: Actor, after: Actor) -> ActorUpdate:
        """Compute the batch that turns ``before`` into ``after``."""
        before_items = {item.id: item for item in before.items}
        after_items = {item.id: item for item in after.items}

        update_items: dict[str, dict[str, Any]] = {}
        for item_id, item in after_items.items():
            original = before_items.get(item_id)
            if original is None:
                continue
            changes = cls._document_diff(original, item)
            if changes:
                update_items[item_id] = changes

        return cls(
            changes=cls._document_diff(before, after),
            create_items=[item.model_dump() for item_id, item in after_items.items() if item_id not in before_items],
            update_items=update_items,
            delete_items=[item_id for item_id in before_items if item_id not in after_items],
        )

    def apply_to(self, actor: Actor, *, rules: RulesConfig | None = None) -> None:
        """Apply the batch in place: deletions, item updates, creations, then actor changes.

        Raises:
            ValidationError: If an updated item is not embedded or a change is invalid.
        """
        actor.delete_items(self.delete_items)
        for item_id, changes in self.update_items.items():
            item = actor.get_item(item_id)
            if item is None:
                raise ValidationError(
                    f"Cannot update missing item '{item_id}'",
                    field_name="update_items",
                    invalid_value=item_id,
                )
            item.update_source(changes, rules=rules)
        actor.create_items(self.create_items)
        actor.update_source(self.changes, rules=rules)


# =============================================================================
# Store Contract
# =============================================================================


@runtime_checkable
class DocumentStore(Protocol):
    """Host document store used by the advancement manager."""

    def get_actor(self, actor_id: str) -> Actor:
        """Current actor data.

        Raises:
            DocumentNotFoundError: If no actor has the id.
        """
        ...

    def apply_update(self, actor_id: str, update: ActorUpdate) -> Actor:
        """Apply a batch atomically and return the updated actor."""
        ...

    def get_source_item(self, uuid: str) -> Item | None:
        """Source item for ``uuid``, or None."""
        ...


class InMemoryDocumentStore:
    """Dictionary-backed ``DocumentStore`` with a source item compendium.

    Reads and writes exchange copies, so callers never share instances
    with the store.

    Attributes:
        update_count: Number of batches applied, per actor id.
    """

    def __init__(self, *, rules: RulesConfig | None = None) -> None:
        self._actors: dict[str, Actor] = {}
        self._sources: dict[str, Item] = {}
        self._rules = rules
        self.update_count: dict[str, int] = {}

    # -------------------------------------------------------------------------
    # Actors
    # -------------------------------------------------------------------------

    def add_actor(self, actor: Actor) -> Actor:
        self._actors[actor.id] = actor.clone()
        self.update_count.setdefault(actor.id, 0)
        logger.debug("Actor stored", actor_id=actor.id, name=actor.name)
        return actor

    def get_actor(self, actor_id: str) -> Actor:
        actor = self._actors.get(actor_id)
        if actor is None:
            raise DocumentNotFoundError(f"Actor '{actor_id}' not found", document_id=actor_id)
        return actor.clone()

    def delete_actor(self, actor_id: str) -> None:
        if self._actors.pop(actor_id, None) is None:
            raise DocumentNotFoundError(f"Actor '{actor_id}' not found", document_id=actor_id)
        self.update_count.pop(actor_id, None)

    def apply_update(self, actor_id: str, update: ActorUpdate) -> Actor:
        """Apply ``update`` to a working copy and store it only if every part succeeds."""
        working = self.get_actor(actor_id)
        update.apply_to(working, rules=self._rules)
        self._actors[actor_id] = working
        self.update_count[actor_id] = self.update_count.get(actor_id, 0) + 1
        logger.info(
            "Actor updated",
            actor_id=actor_id,
            changes=len(update.changes),
            created=len(update.create_items),
            updated=len(update.update_items),
            deleted=len(update.delete_items),
        )
        return working.clone()

    # -------------------------------------------------------------------------
    # Source items
    # -------------------------------------------------------------------------

    def add_source_item(self, uuid: str, item: Item) -> None:
        self._sources[uuid] = item.clone()

    def get_source_item(self, uuid: str) -> Item | None:
        item = self._sources.get(uuid)
        return item.clone() if item is not None else None


__all__ = [
    "ActorUpdate",
    "DocumentStore",
    "InMemoryDocumentStore",
]
