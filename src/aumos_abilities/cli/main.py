"""CLI entry point for aumos-abilities.

Invoked as::

    aumos-abilities [OPTIONS] COMMAND [ARGS]...

or during development::

    python -m aumos_abilities.cli.main

Commands
--------
- init       Write a starter role mapping from a bundled template
- templates  List bundled role mapping templates
- validate   Load a role mapping and summarise its roles
- rules      Show the rules a principal receives
- check      Evaluate one authorization check
- filter     Print the query predicate for a bulk read
- version    Show version information
"""
from __future__ import annotations

import json
import sys
from pathlib import Path

import click
from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from aumos_abilities.ability import Ability
from aumos_abilities.config.loader import RoleMappingLoader
from aumos_abilities.config.mapping import RoleMapping
from aumos_abilities.errors import (
    InvalidRuleDefinition,
    PolicyConfigError,
    UntranslatableRuleError,
)
from aumos_abilities.principal import Principal

console = Console()
err_console = Console(stderr=True)

_EXIT_DENIED = 1
_EXIT_USAGE = 2


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _load_mapping(policy_path: str) -> RoleMapping:
    try:
        return RoleMappingLoader().load(Path(policy_path))
    except PolicyConfigError as exc:
        err_console.print(f"[red]Invalid role mapping:[/red] {escape(str(exc))}")
        sys.exit(_EXIT_USAGE)


def _parse_json(raw: str, label: str) -> object:
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        err_console.print(f"[red]Invalid {label} JSON:[/red] {escape(str(exc))}")
        sys.exit(_EXIT_USAGE)


def _build_ability(policy_path: str, principal_json: str) -> Ability:
    mapping = _load_mapping(policy_path)
    raw = _parse_json(principal_json, "principal")
    try:
        principal = Principal.model_validate(raw)
    except ValueError as exc:
        err_console.print(f"[red]Invalid principal:[/red] {escape(str(exc))}")
        sys.exit(_EXIT_USAGE)
    try:
        return mapping.build_ability(principal)
    except InvalidRuleDefinition as exc:
        err_console.print(f"[red]Cannot build ability:[/red] {escape(str(exc))}")
        sys.exit(_EXIT_USAGE)


_policy_argument = click.argument("policy_path", type=click.Path(exists=True, dir_okay=False))
_principal_option = click.option(
    "--principal",
    "-p",
    "principal_json",
    required=True,
    help='Principal as JSON, e.g. \'{"id": "42", "roles": ["member"]}\'.',
)


# ---------------------------------------------------------------------------
# Root command group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="aumos-abilities")
def cli() -> None:
    """Ability CLI: inspect role mappings, run checks, and build filters."""


@cli.command(name="version")
def version_command() -> None:
    """Show detailed version information."""
    from aumos_abilities import __version__

    console.print(
        Panel(
            f"[bold]aumos-abilities[/bold]  v[cyan]{__version__}[/cyan]\n"
            "Rule-based ability checks and query filters.",
            title="Version",
            border_style="blue",
        )
    )


# ---------------------------------------------------------------------------
# init / templates
# ---------------------------------------------------------------------------


@cli.command(name="init")
@click.option(
    "--template",
    "-t",
    "template_name",
    type=click.Choice(["owner_scoped", "multi_tenant", "editorial"]),
    default="owner_scoped",
    show_default=True,
    help="Bundled template to start from.",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False),
    default="roles.yaml",
    show_default=True,
    help="Output role mapping file path.",
)
def init_command(template_name: str, output: str) -> None:
    """Write a starter role mapping file."""
    from aumos_abilities.templates.role_templates import write_template

    written = write_template(template_name, Path(output))
    console.print(
        f"[green]Initialised[/green] role mapping: [bold]{escape(str(written))}[/bold]"
    )
    console.print(f"  Template: [cyan]{escape(template_name)}[/cyan]")


@cli.command(name="templates")
def templates_command() -> None:
    """List bundled role mapping templates."""
    from aumos_abilities.templates.role_templates import list_templates

    for name in list_templates():
        console.print(f"  [cyan]{name}[/cyan]")


# ---------------------------------------------------------------------------
# validate / rules
# ---------------------------------------------------------------------------


@cli.command(name="validate")
@_policy_argument
def validate_command(policy_path: str) -> None:
    """Load a role mapping and summarise its roles."""
    mapping = _load_mapping(policy_path)
    summary = mapping.summary()

    table = Table(title=f"Roles in {escape(policy_path)}", box=box.SIMPLE)
    table.add_column("Role", style="cyan")
    table.add_column("Inherits", style="magenta")
    table.add_column("Own rules", justify="right")
    table.add_column("Effective rules", justify="right")
    roles: dict[str, dict[str, object]] = summary["roles"]  # type: ignore[assignment]
    for name, info in roles.items():
        table.add_row(
            name,
            ", ".join(info["inherits"]) or "-",  # type: ignore[arg-type]
            str(info["rules"]),
            str(info["effective_rules"]),
        )
    console.print(table)
    console.print("[green]Role mapping is valid.[/green]")


@cli.command(name="rules")
@_policy_argument
@_principal_option
def rules_command(policy_path: str, principal_json: str) -> None:
    """Show the rules a principal receives, in precedence order."""
    ability = _build_ability(policy_path, principal_json)

    table = Table(title="Rules (later rows win)", box=box.SIMPLE)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Effect")
    table.add_column("Actions", style="cyan")
    table.add_column("Subject", style="magenta")
    table.add_column("Conditional")
    table.add_column("Fields")
    table.add_column("Reason")
    for index, rule in enumerate(ability.rule_set, start=1):
        effect = "[green]allow[/green]" if rule.allows else "[red]deny[/red]"
        table.add_row(
            str(index),
            effect,
            ", ".join(sorted(rule.actions)),
            rule.subject_type,
            "yes" if rule.is_conditional else "no",
            ", ".join(sorted(rule.fields)) if rule.fields is not None else "all",
            escape(rule.reason or ""),
        )
    console.print(table)


# ---------------------------------------------------------------------------
# check / filter
# ---------------------------------------------------------------------------


@cli.command(name="check")
@_policy_argument
@_principal_option
@click.option("--action", "-a", required=True, help="Action to check, e.g. read.")
@click.option("--subject", "-s", required=True, help="Subject type, e.g. Article.")
@click.option(
    "--instance",
    "-i",
    "instance_json",
    default=None,
    help="Resource instance as JSON. Omit for a collection-level check.",
)
def check_command(
    policy_path: str,
    principal_json: str,
    action: str,
    subject: str,
    instance_json: str | None,
) -> None:
    """Evaluate one authorization check."""
    ability = _build_ability(policy_path, principal_json)
    instance = _parse_json(instance_json, "instance") if instance_json else None

    decision = ability.decide(action, subject, instance)
    fields = ability.permitted_fields(action, subject, instance)

    status_str = "[green]ALLOWED[/green]" if decision.allowed else "[red]DENIED[/red]"
    console.print(Panel(status_str, title="Ability Check Result", border_style="blue"))
    console.print(
        f"  Action: [cyan]{escape(action)}[/cyan]"
        f"  Subject: [magenta]{escape(subject)}[/magenta]"
    )
    console.print(f"  Decided by: {escape(decision.reason)}")
    if decision.allowed:
        field_str = "all" if fields.all else ", ".join(sorted(fields.fields)) or "none"
        console.print(f"  Permitted fields: {escape(field_str)}")

    sys.exit(0 if decision.allowed else _EXIT_DENIED)


@cli.command(name="filter")
@_policy_argument
@_principal_option
@click.option("--action", "-a", required=True, help="Action to filter for, e.g. read.")
@click.option("--subject", "-s", required=True, help="Subject type, e.g. Article.")
def filter_command(
    policy_path: str,
    principal_json: str,
    action: str,
    subject: str,
) -> None:
    """Print the query predicate selecting every permitted instance."""
    ability = _build_ability(policy_path, principal_json)
    try:
        predicate = ability.filter_for(action, subject)
    except UntranslatableRuleError as exc:
        err_console.print(f"[yellow]Untranslatable:[/yellow] {escape(str(exc))}")
        err_console.print("Fall back to per-instance checks.")
        sys.exit(_EXIT_USAGE)

    click.echo(json.dumps(predicate.to_dict(), indent=2, default=str))


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    cli()
