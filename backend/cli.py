#!/usr/bin/env python3
"""
CLI for the API contract registry

Commands:
    list      - List export groups, contracts and their versions
    export    - Print the JSON Schema export of one or more groups
    validate  - Validate a JSON file against a contract

Usage:
    python cli.py list
    python cli.py export users
    python cli.py validate users CreateUserRequest payload.json --version 1

Examples:
    # Export several groups merged into one client bundle
    python cli.py export users admin --name combined

    # Fail the shell step on invalid payloads
    python cli.py validate users CreateUserRequest payload.json || exit 1
"""

import json

import click

from api.contracts import (
    ContractError,
    ContractRegistry,
    export_group,
    validate,
)
from api.contracts.validate import format_path


def build_registry() -> ContractRegistry:
    """Registry holding every endpoint contract, as the app builds it."""
    from api.contracts.schemas import register_all
    return register_all(ContractRegistry())


@click.group()
@click.version_option(version="1.0.0", prog_name="contracts")
@click.pass_context
def cli(ctx):
    """API contract registry CLI - inspect, export and validate contracts."""
    ctx.ensure_object(dict)
    ctx.obj.setdefault("registry", build_registry())


@cli.command("list")
@click.pass_context
def list_contracts(ctx):
    """List export groups, contracts and versions."""
    registry = ctx.obj["registry"]
    for group in registry.groups():
        click.echo(group)
        for contract in registry.list_contracts(group):
            versions = ", ".join(f"v{v}" for v in registry.versions(group, contract.name))
            mode = " (coerce)" if contract.coerce else ""
            click.echo(f"  {contract.name}: {versions}{mode}")


@cli.command("export")
@click.argument("groups", nargs=-1, required=True)
@click.option("--name", "export_name", default=None, help="Export name for merged groups")
@click.option("--indent", default=2, show_default=True, help="JSON indent")
@click.pass_context
def export(ctx, groups, export_name, indent):
    """
    Print the JSON Schema export of GROUPS.

    Several groups are merged into one export (names must not collide).
    """
    registry = ctx.obj["registry"]
    try:
        merged = registry.merge(*groups, export_name=export_name)
    except ContractError as e:
        raise click.ClickException(str(e))
    click.echo(json.dumps(export_group(merged), indent=indent))


@cli.command("validate")
@click.argument("group")
@click.argument("name")
@click.argument("file_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--version", "version", type=int, default=None, help="Contract version (default: latest)")
@click.option("--json", "output_json", is_flag=True, help="Output errors as JSON")
@click.pass_context
def validate_file(ctx, group, name, file_path, version, output_json):
    """
    Validate the JSON document in FILE_PATH against GROUP/NAME.

    Exits 1 when the document does not satisfy the contract.
    """
    registry = ctx.obj["registry"]
    try:
        contract = registry.get(group, name, version)
    except ContractError as e:
        raise click.ClickException(str(e))

    try:
        with open(file_path, encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise click.ClickException(f"{file_path} is not valid JSON: {e}")

    result = validate(contract, data)
    label = f"{group}/{name} v{contract.version}"

    if output_json:
        click.echo(json.dumps({
            "contract": label,
            "valid": result.ok,
            "errors": [e.to_dict() for e in result.errors],
        }, indent=2))
    elif result.ok:
        click.echo(f"Validation PASSED for {label}")
    else:
        click.echo(f"Validation FAILED for {label}")
        for error in result.errors:
            click.echo(f"  - {format_path(error.path)}: {error.message} [{error.code}]")

    if not result.ok:
        ctx.exit(1)


if __name__ == "__main__":
    cli()
