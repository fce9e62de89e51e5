"""Scope expression CLI commands — parse and eval."""

import json

import click

from scopeforge.config import ScopeforgeConfig
from scopeforge.scopes import ParseError, parse, parse_stages


def _parse_field_option(value: str) -> tuple[str, list[str]]:
    """Split ``name=scope1,scope2`` into the field name and its scopes."""
    name, _, scopes = value.partition("=")
    name = name.strip()
    if not name:
        raise click.BadParameter(f"Missing field name in '{value}'", param_hint="--field")
    return name, [s.strip() for s in scopes.split(",") if s.strip()]


@click.group()
def scope():
    """Scope expression commands."""
    pass


@scope.command("parse")
@click.argument("expression")
@click.option("--strict", is_flag=True, default=False, help="Reject malformed input lenient mode tolerates.")
@click.option("--json", "as_json", is_flag=True, default=False, help="Print the compiled tree as JSON.")
@click.pass_obj
def parse_cmd(config: ScopeforgeConfig, expression: str, strict: bool, as_json: bool):
    """Show how EXPRESSION tokenizes, orders and compiles."""
    strict = strict or config.strict
    try:
        tokens, postfix, compiled = parse_stages(expression, strict=strict)
    except ParseError as e:
        click.echo(click.style(f"Parse error: {e}", fg="red"), err=True)
        raise SystemExit(1)

    if as_json:
        click.echo(json.dumps(compiled.to_dict(), indent=2))
        return

    click.echo(f"Tokens:    {' '.join(tokens)}")
    click.echo(f"Postfix:   {' '.join(postfix)}")
    click.echo(f"Canonical: {compiled}")
    click.echo(f"Scopes:    {', '.join(sorted(compiled.scopes())) or '(none)'}")


@scope.command("eval")
@click.argument("expression")
@click.option(
    "--field",
    "field_options",
    multiple=True,
    required=True,
    help="Field and its scopes as NAME=scope1,scope2 (repeatable, order kept).",
)
@click.option("--strict", is_flag=True, default=False, help="Reject malformed input lenient mode tolerates.")
@click.pass_obj
def eval_cmd(config: ScopeforgeConfig, expression: str, field_options: tuple[str, ...], strict: bool):
    """Print the fields EXPRESSION selects, one per line."""
    info: dict[str, list[str]] = {}
    for option in field_options:
        name, scopes = _parse_field_option(option)
        info.setdefault(name, scopes)

    try:
        compiled = parse(expression, strict=strict or config.strict)
    except ParseError as e:
        click.echo(click.style(f"Parse error: {e}", fg="red"), err=True)
        raise SystemExit(1)

    for name in compiled.evaluate(info, list(info)):
        click.echo(name)
