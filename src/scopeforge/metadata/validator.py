"""
metadata/validator.py — JSON Schema validation for ScopeForge YAML metadata files.

Validates entity and block YAML files against JSON Schemas, then checks
that every named view of an entity is a well-formed scope expression.

Usage:
    from scopeforge.metadata.validator import validate_metadata_dir, validate_yaml_file

    issues = validate_metadata_dir(Path("metadata"))
    for issue in issues:
        print(issue)
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from jsonschema import Draft202012Validator
from jsonschema.exceptions import ValidationError
from referencing import Registry, Resource
from referencing.jsonschema import DRAFT202012

from scopeforge.scopes import ParseError, parse

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Public data types
# ---------------------------------------------------------------------------

_SCHEMAS_DIR = Path(__file__).parent / "schemas"

# Map subdirectory name → schema filename
_SUBDIR_SCHEMA: dict[str, str] = {
    "entities": "entity.schema.json",
    "blocks": "block.schema.json",
}


@dataclass
class ValidationIssue:
    """A single validation finding for a metadata YAML file."""

    file: Path
    message: str
    path: str = ""          # JSON pointer path within the document, e.g. "fields[0]"
    severity: str = "error" # "error" | "warning"

    def __str__(self) -> str:
        loc = f" at {self.path}" if self.path else ""
        return f"[{self.severity.upper()}] {self.file}{loc}: {self.message}"


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _load_schema(name: str) -> dict[str, Any]:
    schema_path = _SCHEMAS_DIR / name
    with schema_path.open() as fh:
        return json.load(fh)


def _load_registry() -> Registry:
    """Build a jsonschema Registry containing all ScopeForge schemas."""
    schema_names = [
        "_defs.schema.json",
        "entity.schema.json",
        "block.schema.json",
    ]
    resources = []
    for name in schema_names:
        schema = _load_schema(name)
        resources.append(
            (schema["$id"], Resource(contents=schema, specification=DRAFT202012))
        )
    return Registry().with_resources(resources)


def _json_path(error: ValidationError) -> str:
    """Convert a jsonschema ValidationError path to a readable string."""
    parts = []
    for p in error.absolute_path:
        if isinstance(p, int):
            parts.append(f"[{p}]")
        else:
            parts.append(str(p))
    return "/".join(parts).replace("/[", "[")


def _check_views(yaml_path: Path, doc: dict[str, Any]) -> list[ValidationIssue]:
    """Check that each named view compiles.

    Expressions that only compile in lenient mode (unmatched ')' or
    operands with no operator between them), or that lenient and strict
    mode group differently, are reported as warnings.
    """
    issues: list[ValidationIssue] = []
    views = doc.get("views")
    if not isinstance(views, dict):
        return issues

    for view_name, expression in views.items():
        if not isinstance(expression, str):
            continue
        path = f"views/{view_name}"

        try:
            lenient = parse(expression)
        except ParseError as e:
            issues.append(ValidationIssue(file=yaml_path, message=str(e), path=path))
            continue

        try:
            strict = parse(expression, strict=True)
        except ParseError as e:
            issues.append(
                ValidationIssue(
                    file=yaml_path,
                    message=f"{e} (accepted only in lenient mode)",
                    path=path,
                    severity="warning",
                )
            )
            continue

        if strict != lenient:
            issues.append(
                ValidationIssue(
                    file=yaml_path,
                    message=(
                        f"Lenient mode compiles this as {lenient} but strict mode as "
                        f"{strict}; add parentheses to make the grouping explicit"
                    ),
                    path=path,
                    severity="warning",
                )
            )
    return issues


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def validate_yaml_file(
    yaml_path: Path,
    schema_name: str,
    *,
    registry: Registry | None = None,
) -> list[ValidationIssue]:
    """
    Validate a single YAML file against the named schema.

    Args:
        yaml_path:   Path to the YAML file to validate.
        schema_name: Filename of the schema (e.g. ``"entity.schema.json"``).
        registry:    Pre-built schema registry.  Built automatically if omitted.

    Returns:
        A list of :class:`ValidationIssue` objects (empty on success).
    """
    issues: list[ValidationIssue] = []

    # 1. Parse YAML
    try:
        with yaml_path.open() as fh:
            doc = yaml.safe_load(fh)
    except yaml.YAMLError as exc:
        return [ValidationIssue(file=yaml_path, message=f"YAML parse error: {exc}")]

    if doc is None:
        return [
            ValidationIssue(file=yaml_path, message="File is empty or contains only whitespace")
        ]

    # 2. Load schema + registry
    if registry is None:
        registry = _load_registry()

    schema = _load_schema(schema_name)
    validator = Draft202012Validator(schema, registry=registry)

    # 3. Collect validation errors
    for error in sorted(validator.iter_errors(doc), key=lambda e: list(e.path)):
        issues.append(
            ValidationIssue(
                file=yaml_path,
                message=error.message,
                path=_json_path(error),
            )
        )

    # 4. Scope expressions of named views
    if isinstance(doc, dict):
        issues.extend(_check_views(yaml_path, doc))

    return issues


def validate_metadata_dir(
    metadata_dir: Path,
    *,
    strict: bool = False,
) -> list[ValidationIssue]:
    """
    Validate all YAML files under *metadata_dir*.

    Walks ``entities/`` and ``blocks/``, validating each ``.yaml`` file
    against the appropriate JSON Schema.

    Args:
        metadata_dir: Root metadata directory (contains ``entities/``, ``blocks/``).
        strict:       If ``True``, warnings are escalated to errors.

    Returns:
        A flat list of :class:`ValidationIssue` objects across all files.
        Empty list means all files are valid.
    """
    if not metadata_dir.is_dir():
        return [
            ValidationIssue(
                file=metadata_dir,
                message=f"Metadata directory does not exist: {metadata_dir}",
            )
        ]

    registry = _load_registry()
    issues: list[ValidationIssue] = []

    for subdir, schema_name in _SUBDIR_SCHEMA.items():
        subdir_path = metadata_dir / subdir
        if not subdir_path.is_dir():
            continue
        for yaml_path in sorted(subdir_path.glob("*.yaml")):
            logger.debug("Validating %s against %s", yaml_path, schema_name)
            issues.extend(validate_yaml_file(yaml_path, schema_name, registry=registry))

    if strict:
        for issue in issues:
            issue.severity = "error"

    return issues
