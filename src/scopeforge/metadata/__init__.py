"""Metadata - entity definitions loaded from YAML."""

from scopeforge.metadata.loader import (
    EntityModel,
    FieldDefinition,
    MetadataLoader,
    RelationConfig,
    describe_fields,
)
from scopeforge.metadata.validator import (
    ValidationIssue,
    validate_metadata_dir,
    validate_yaml_file,
)

__all__ = [
    "EntityModel",
    "FieldDefinition",
    "MetadataLoader",
    "RelationConfig",
    "ValidationIssue",
    "describe_fields",
    "validate_metadata_dir",
    "validate_yaml_file",
]
