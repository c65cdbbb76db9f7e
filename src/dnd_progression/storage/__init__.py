"""Document store contract and in-memory implementation."""

from __future__ import annotations

from dnd_progression.storage.memory_store import ActorUpdate, DocumentStore, InMemoryDocumentStore


__all__ = [
    "ActorUpdate",
    "DocumentStore",
    "InMemoryDocumentStore",
]
