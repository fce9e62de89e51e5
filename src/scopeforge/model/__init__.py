"""Model layer - declared fields and scope-restricted views."""

from scopeforge.model.model import Model, ModelInstance
from scopeforge.model.registry import AccessorRegistry
from scopeforge.model.types import (
    FieldAccessor,
    FieldDescriptor,
    FieldKind,
    RelationDescriptor,
    SelectedField,
    data_field,
    relation_field,
)

__all__ = [
    "AccessorRegistry",
    "FieldAccessor",
    "FieldDescriptor",
    "FieldKind",
    "Model",
    "ModelInstance",
    "RelationDescriptor",
    "SelectedField",
    "data_field",
    "relation_field",
]
