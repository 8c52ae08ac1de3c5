"""DDL commands: compile and apply exclusive arc constraints."""

from typing import Annotated

import typer

from exclusivearc.cli.context import CLIContext
from exclusivearc.cli.output import OutputFormatter
from exclusivearc.cli.parsing import read_mapping_file
from exclusivearc.ddl.compiler import compile_add, compile_remove, resolve_dialect
from exclusivearc.schema.migrations import downgrade, upgrade

# Create ddl subcommand group
app = typer.Typer(help="Compile and apply exclusive arc constraints")


@app.command("compile")
def ddl_compile(
    ctx: typer.Context,
    mapping_file: Annotated[str, typer.Argument(help="Path to mapping JSON file")],
    down: Annotated[
        bool,
        typer.Option("--down", help="Compile the remove statements instead"),
    ] = False,
) -> None:
    """Print the DDL for a mapping without touching any database.

    Examples:

        exclusivearc ddl compile assignments.json --dialect postgresql

        exclusivearc --json ddl compile assignments.json --down
    """
    cli_ctx: CLIContext = ctx.obj
    formatter = OutputFormatter(cli_ctx.json_output)

    try:
        mapping = read_mapping_file(mapping_file)
        dialect = resolve_dialect(cli_ctx.dialect, mapping.owner_table)
        compiler = compile_remove if down else compile_add
        formatter.print_statements(compiler(mapping, dialect), dialect.name)
    except Exception as e:
        formatter.print_error(e)
        raise typer.Exit(code=1)


@app.command("apply")
def ddl_apply(
    ctx: typer.Context,
    mapping_file: Annotated[str, typer.Argument(help="Path to mapping JSON file")],
    down: Annotated[
        bool,
        typer.Option("--down", help="Remove the constraints instead of adding them"),
    ] = False,
) -> None:
    """Apply the DDL for a mapping to --database in a single transaction.

    Examples:

        exclusivearc -d postgresql://localhost/app ddl apply assignments.json
    """
    cli_ctx: CLIContext = ctx.obj
    formatter = OutputFormatter(cli_ctx.json_output)

    try:
        mapping = read_mapping_file(mapping_file)
        engine = cli_ctx.get_engine()
        with engine.begin() as conn:
            applied = downgrade(conn, mapping) if down else upgrade(conn, mapping)

        action = "removed from" if down else "applied to"
        formatter.print_success(
            f"Exclusive arc '{mapping.role}' {action} '{mapping.owner_table}'",
            {"statements": applied, "dialect": engine.dialect.name},
        )
    except Exception as e:
        formatter.print_error(e)
        raise typer.Exit(code=1)
    finally:
        cli_ctx.close()
