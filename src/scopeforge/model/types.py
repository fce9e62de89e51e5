"""Field and relation descriptors for ScopeForge models."""

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

# Getter: (record data) -> value; Setter: (record data, value) -> None
FieldGetter = Callable[[dict[str, Any]], Any]
FieldSetter = Callable[[dict[str, Any], Any], None]


class FieldKind(Enum):
    """How a field was declared on its model."""

    FIELD = "field"
    ATTRIBUTE = "attribute"
    RELATION = "relation"


@dataclass(frozen=True)
class FieldDescriptor:
    """Declared behaviour of a single model field.

    Attributes:
        get: Reads the field value from record data, or None if write-only
        set: Writes the field value into record data, or None if read-only
        scopes: Scope tags the field belongs to (used by scope expressions)
    """

    get: FieldGetter | None = None
    set: FieldSetter | None = None
    scopes: tuple[str, ...] = ()


@dataclass(frozen=True)
class RelationDescriptor:
    """A relation to another entity.

    Binding related records is left to the caller; the field value is the
    stored reference (e.g., "CMP-00001").
    """

    entity: str
    scopes: tuple[str, ...] = ()


@dataclass(frozen=True)
class FieldAccessor:
    """Attribute-style access rules for one field of a model instance."""

    name: str
    readable: bool
    writable: bool

    @classmethod
    def for_descriptor(cls, name: str, descriptor: FieldDescriptor) -> "FieldAccessor":
        return cls(
            name=name,
            readable=descriptor.get is not None,
            writable=descriptor.set is not None,
        )


def data_field(
    name: str,
    scopes: tuple[str, ...] | list[str] = (),
    read_only: bool = False,
) -> FieldDescriptor:
    """Descriptor for a field stored under ``name`` in the record data."""

    def getter(data: dict[str, Any]) -> Any:
        return data.get(name)

    def setter(data: dict[str, Any], value: Any) -> None:
        data[name] = value

    return FieldDescriptor(
        get=getter,
        set=None if read_only else setter,
        scopes=tuple(scopes),
    )


def relation_field(name: str, relation: RelationDescriptor) -> FieldDescriptor:
    """Descriptor exposing a relation's stored reference as a field."""
    return data_field(name, scopes=relation.scopes)


@dataclass
class SelectedField:
    """A field retained by a model view, as reported to callers."""

    name: str
    kind: FieldKind
    scopes: list[str] = field(default_factory=list)
    entity: str | None = None  # Related entity, for relations

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "name": self.name,
            "kind": self.kind.value,
            "scopes": self.scopes,
        }
        if self.entity:
            result["entity"] = self.entity
        return result
