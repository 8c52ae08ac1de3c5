"""exclusivearc CLI - Main entry point."""

import logging
import sys
from typing import Annotated

import typer

import exclusivearc
from exclusivearc.cli.context import CLIContext, get_database_url, get_dialect_name

# Create main Typer app
app = typer.Typer(
    name="exclusivearc",
    help="exclusivearc CLI - exactly-one-of-N polymorphic foreign keys",
    no_args_is_help=True,
)


@app.callback()
def main_callback(
    ctx: typer.Context,
    database: Annotated[
        str | None,
        typer.Option(
            "--database",
            "-d",
            envvar="EXCLUSIVEARC_URL",
            help="Database URL (PostgreSQL or SQLite), needed by 'ddl apply'",
        ),
    ] = None,
    dialect: Annotated[
        str | None,
        typer.Option(
            "--dialect",
            envvar="EXCLUSIVEARC_DIALECT",
            help="Target SQL dialect (default: from --database, else postgresql)",
        ),
    ] = None,
    echo: Annotated[
        bool,
        typer.Option("--echo", "-e", help="Echo SQL statements to console"),
    ] = False,
    json_output: Annotated[
        bool,
        typer.Option("--json", "-j", help="Output as JSON (machine-readable)"),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log progress to stderr"),
    ] = False,
) -> None:
    """Initialize CLI context with global options."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, stream=sys.stderr)

    database_url = get_database_url(database)
    ctx.obj = CLIContext(
        database_url=database_url,
        dialect=get_dialect_name(dialect, database_url),
        json_output=json_output,
        echo=echo,
    )


@app.command()
def version() -> None:
    """Show version information."""
    typer.echo(f"exclusivearc v{exclusivearc.__version__}")


# Register command groups
from exclusivearc.cli.commands import arc, ddl  # noqa: E402

app.add_typer(ddl.app, name="ddl")
app.add_typer(arc.app, name="arc")


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
