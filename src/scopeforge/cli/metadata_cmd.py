"""Metadata CLI commands — validate and view."""

import json
from pathlib import Path

import click

from scopeforge.config import ScopeforgeConfig
from scopeforge.metadata.loader import MetadataLoader, describe_fields
from scopeforge.metadata.validator import _SUBDIR_SCHEMA, validate_metadata_dir, validate_yaml_file
from scopeforge.scopes import ParseError


def _load(config: ScopeforgeConfig) -> MetadataLoader:
    if not config.metadata_path.exists():
        click.echo(f"Error: Metadata directory not found at {config.metadata_path}", err=True)
        raise SystemExit(1)
    loader = MetadataLoader(config.metadata_path, strict=config.strict)
    try:
        loader.load_all()
    except ValueError as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        raise SystemExit(1)
    return loader


@click.group()
def metadata():
    """Metadata commands."""
    pass


@metadata.command()
@click.option(
    "--strict",
    is_flag=True,
    default=False,
    help="Treat warnings as errors.",
)
@click.option(
    "--path",
    "target_path",
    default=None,
    type=click.Path(exists=True, path_type=Path),
    help="Validate a single YAML file instead of the whole metadata directory.",
)
@click.pass_obj
def validate(config: ScopeforgeConfig, strict: bool, target_path: Path | None):
    """Validate metadata YAML files against JSON Schemas."""
    metadata_path = config.metadata_path

    # ── Schema (JSON Schema) validation ─────────────────────────────────────
    if target_path is not None:
        # Single-file mode: infer schema from parent directory name
        parent = target_path.parent.name
        schema_name = _SUBDIR_SCHEMA.get(parent)
        if schema_name is None:
            click.echo(
                f"Warning: cannot determine schema for directory '{parent}'. "
                "Expected one of: entities, blocks.",
                err=True,
            )
            schema_issues = []
        else:
            schema_issues = validate_yaml_file(target_path, schema_name)
    else:
        if not metadata_path.exists():
            click.echo(f"Error: Metadata directory not found at {metadata_path}", err=True)
            raise SystemExit(1)
        schema_issues = validate_metadata_dir(metadata_path, strict=strict)

    errors = [i for i in schema_issues if i.severity == "error"]
    warnings = [i for i in schema_issues if i.severity == "warning"]

    for issue in schema_issues:
        colour = "red" if issue.severity == "error" else "yellow"
        click.echo(click.style(str(issue), fg=colour))

    if errors:
        click.echo(
            click.style(
                f"\n{len(errors)} schema error(s) found"
                + (f", {len(warnings)} warning(s)" if warnings else ""),
                fg="red",
                bold=True,
            )
        )
        raise SystemExit(1)

    if warnings:
        click.echo(
            click.style(f"{len(warnings)} warning(s) found.", fg="yellow")
        )

    # ── Semantic (loader) validation ─────────────────────────────────────────
    # Only runs when validating the full directory (target_path is None)
    if target_path is None:
        loader = _load(config)
        entities = loader.list_entities()
        click.echo(f"\nLoaded {len(entities)} entities:")
        for name in sorted(entities):
            entity = loader.get_entity(name)
            field_count = len(entity.fields) if entity else 0
            view_count = len(entity.views) if entity else 0
            click.echo(f"  ✓ {name} ({field_count} fields, {view_count} views)")

    click.echo(click.style("\nAll metadata is valid.", fg="green", bold=True))


@metadata.command("view")
@click.argument("entity")
@click.argument("expression", required=False)
@click.option("--view", "view_name", default=None, help="Use a named view declared on the entity.")
@click.option("--json", "as_json", is_flag=True, default=False, help="Print field descriptions as JSON.")
@click.pass_obj
def view_cmd(
    config: ScopeforgeConfig,
    entity: str,
    expression: str | None,
    view_name: str | None,
    as_json: bool,
):
    """List the fields of ENTITY selected by EXPRESSION (or --view)."""
    if (expression is None) == (view_name is None):
        click.echo("Error: give either a scope EXPRESSION or --view NAME.", err=True)
        raise SystemExit(2)

    loader = _load(config)
    if loader.get_entity(entity) is None:
        click.echo(f"Error: Unknown entity '{entity}'", err=True)
        raise SystemExit(1)

    try:
        if view_name is not None:
            model = loader.build_view(entity, view_name)
        else:
            model = loader.build_model(entity).view(expression, strict=config.strict)
    except KeyError as e:
        click.echo(f"Error: {e.args[0]}", err=True)
        raise SystemExit(1)
    except ParseError as e:
        click.echo(click.style(f"Parse error: {e}", fg="red"), err=True)
        raise SystemExit(1)

    if as_json:
        click.echo(json.dumps(describe_fields(model), indent=2))
        return

    for selected in model.describe():
        scopes = ", ".join(selected.scopes) or "-"
        click.echo(f"{selected.name}\t{selected.kind.value}\t{scopes}")
