"""Inspection commands: describe mappings and resolve value snapshots."""

from typing import Annotated

import typer

from exclusivearc.cli.context import CLIContext
from exclusivearc.cli.output import OutputFormatter
from exclusivearc.cli.parsing import parse_values, read_mapping_file
from exclusivearc.runtime.accessor import ExclusiveAssociation
from exclusivearc.runtime.validator import ExclusivityValidator

# Create arc subcommand group
app = typer.Typer(help="Inspect exclusive arc declarations and states")


@app.command("describe")
def arc_describe(
    ctx: typer.Context,
    mapping_file: Annotated[str, typer.Argument(help="Path to mapping JSON file")],
) -> None:
    """Show the declared keys and relation names of a mapping."""
    cli_ctx: CLIContext = ctx.obj
    formatter = OutputFormatter(cli_ctx.json_output)

    try:
        mapping = read_mapping_file(mapping_file)
        assoc = ExclusiveAssociation(mapping, {})
        formatter.print_mapping(mapping, assoc.declared_relation_names())
    except Exception as e:
        formatter.print_error(e)
        raise typer.Exit(code=1)


@app.command("resolve")
def arc_resolve(
    ctx: typer.Context,
    mapping_file: Annotated[str, typer.Argument(help="Path to mapping JSON file")],
    values: Annotated[
        str | None,
        typer.Option("--values", "-v", help='Column values as JSON, e.g. \'{"employee_id": 1}\''),
    ] = None,
) -> None:
    """Resolve the active key for a snapshot of column values.

    Exits with code 2 when the snapshot would fail validation.

    Examples:

        exclusivearc arc resolve assignments.json --values '{"employee_id": 1}'
    """
    cli_ctx: CLIContext = ctx.obj
    formatter = OutputFormatter(cli_ctx.json_output)

    try:
        mapping = read_mapping_file(mapping_file)
        snapshot = parse_values(values)
        assoc = ExclusiveAssociation(mapping, snapshot)
        result = ExclusivityValidator(mapping).validate(snapshot)
    except Exception as e:
        formatter.print_error(e)
        raise typer.Exit(code=1)

    data = {
        "state": assoc.state().to_dict(),
        "active_key": assoc.active_key(),
        "active_query_condition": assoc.active_query_condition(),
        "valid": result.valid,
        "errors": result.errors,
    }
    formatter.print_data(data)
    if not result.valid:
        raise typer.Exit(code=2)
