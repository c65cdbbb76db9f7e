"""Schema composition primitives for document system data.

A document's system data is the union of named field groups (for example
``PhysicalItemFields`` and ``EquippableItemFields``), combined once at
schema-build time by ``SystemDataModel.compose`` instead of through
multiple inheritance. Each group contributes its fields, a
``migrate_data`` hook for legacy shapes, and a ``prepare_data`` hook that
seeds configuration-driven mappings. On validation the hooks run group by
group, then the document's own, before pydantic validates the fields.

Example:
    >>> class LootData(SystemDataModel.compose(ItemDescriptionFields, PhysicalItemFields)):
    ...     document_type: ClassVar[str] = "loot"
"""

from __future__ import annotations

import copy
from typing import TYPE_CHECKING, Any, ClassVar
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, ValidationInfo, create_model, model_validator

from dnd_progression.core.exceptions import ConfigurationError


if TYPE_CHECKING:
    from dnd_progression.rules.registry import RulesConfig


def random_id() -> str:
    """Generate a 16 character document identifier."""
    return uuid4().hex[:16]


def is_numeric(value: Any) -> bool:
    """Whether a legacy value is a number or a numeric string."""
    if isinstance(value, bool):
        return False
    if isinstance(value, int | float):
        return True
    if isinstance(value, str):
        try:
            float(value)
        except ValueError:
            return False
        return True
    return False


def rules_from_context(info: ValidationInfo | None) -> RulesConfig:
    """Rules snapshot passed in the validation context, or the process-wide one."""
    context = info.context if info is not None else None
    if isinstance(context, dict) and context.get("rules") is not None:
        return context["rules"]

    from dnd_progression.rules.registry import get_rules_config

    return get_rules_config()


class DataModel(BaseModel):
    """Base for nested records inside system data."""

    model_config = ConfigDict(extra="ignore", validate_default=True)


# =============================================================================
# Field Groups
# =============================================================================


class FieldGroup(DataModel):
    """A named set of fields that documents compose into their schema.

    Field groups are never instantiated on their own; ``compose`` copies
    their field definitions into the document model.
    """

    @classmethod
    def migrate_data(cls, source: dict[str, Any], *, document_type: str) -> None:
        """Upgrade legacy shapes of this group's fields in place.

        Must be a no-op when the legacy shape is absent.
        """

    @classmethod
    def prepare_data(
        cls,
        source: dict[str, Any],
        *,
        rules: RulesConfig,
        document_type: str,
    ) -> None:
        """Seed configuration-driven values of this group's fields in place."""


# =============================================================================
# System Data
# =============================================================================


class SystemDataModel(DataModel):
    """Base for the ``system`` payload of actors and items.

    Attributes:
        document_type: Subtype key this schema is registered under.
    """

    document_type: ClassVar[str] = "base"
    __field_groups__: ClassVar[tuple[type[FieldGroup], ...]] = ()

    @classmethod
    def compose(cls, *groups: type[FieldGroup]) -> type[SystemDataModel]:
        """Build a schema base whose fields are the union of ``groups``.

        Args:
            *groups: Field groups in migration order.

        Returns:
            A new SystemDataModel subclass to derive documents from.

        Raises:
            ConfigurationError: If two groups declare the same field.
        """
        fields: dict[str, Any] = {}
        owners: dict[str, str] = {}
        for group in groups:
            for name, info in group.model_fields.items():
                if name in fields:
                    raise ConfigurationError(
                        f"Field '{name}' is declared by both {owners[name]} and {group.__name__}",
                        config_key=name,
                    )
                fields[name] = (info.annotation, copy.deepcopy(info))
                owners[name] = group.__name__

        name = "".join(group.__name__.removesuffix("Fields") for group in groups) or "Empty"
        model = create_model(f"{name}SystemData", __base__=cls, **fields)
        model.__field_groups__ = (*cls.__field_groups__, *groups)
        return model

    @classmethod
    def migrate_data(cls, source: dict[str, Any]) -> dict[str, Any]:
        """Run every legacy data upgrade for this document in place.

        Field group migrations run first, then ``migrate_document_data``.

        Args:
            source: Raw system data.

        Returns:
            The same dictionary, upgraded.
        """
        for group in cls.__field_groups__:
            group.migrate_data(source, document_type=cls.document_type)
        cls.migrate_document_data(source)
        return source

    @classmethod
    def migrate_document_data(cls, source: dict[str, Any]) -> None:
        """Document-specific legacy upgrades; runs after group migrations."""

    @classmethod
    def prepare_document_data(cls, source: dict[str, Any], *, rules: RulesConfig) -> None:
        """Document-specific seeding; runs after group preparation."""

    @model_validator(mode="before")
    @classmethod
    def _migrate_and_prepare(cls, data: Any, info: ValidationInfo) -> Any:
        if not isinstance(data, dict):
            return data
        source = copy.deepcopy(data)
        cls.migrate_data(source)
        rules = rules_from_context(info)
        for group in cls.__field_groups__:
            group.prepare_data(source, rules=rules, document_type=cls.document_type)
        cls.prepare_document_data(source, rules=rules)
        return source


__all__ = [
    "random_id",
    "is_numeric",
    "rules_from_context",
    "DataModel",
    "FieldGroup",
    "SystemDataModel",
]
