"""Output formatting for CLI commands."""

import json
from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from exclusivearc.core.types import DDLStatement, PolymorphicMapping
from exclusivearc.exceptions import ExclusiveArcError

console = Console()


class OutputFormatter:
    """Formats output for terminal or JSON mode."""

    def __init__(self, json_mode: bool = False) -> None:
        """Initialize formatter.

        Args:
            json_mode: If True, output JSON instead of Rich formatting
        """
        self.json_mode = json_mode

    def print_table(
        self,
        title: str,
        data: list[dict[str, Any]],
        columns: list[str],
    ) -> None:
        """Print rows as a Rich table, or as a JSON array in JSON mode."""
        if self.json_mode:
            print(json.dumps(data, default=str, indent=2))
            return
        table = Table(title=title, show_header=True, header_style="bold cyan")
        for column in columns:
            table.add_column(column)
        for row in data:
            table.add_row(*(str(row.get(column, "")) for column in columns))
        console.print(table)

    def print_statements(self, statements: list[DDLStatement], dialect: str) -> None:
        """Print compiled DDL as highlighted SQL or a JSON array."""
        if self.json_mode:
            print(json.dumps([s.model_dump(mode="json") for s in statements], indent=2))
            return
        console.print(f"[bold]{len(statements)} statements[/bold] ({dialect})")
        for statement in statements:
            console.print(f"\n[dim]-- {statement.kind}: {statement.name}[/dim]")
            console.print(Syntax(statement.sql + ";", "sql", word_wrap=True))

    def print_mapping(self, mapping: PolymorphicMapping, relation_names: list[str]) -> None:
        """Print a mapping's declared surface."""
        if self.json_mode:
            data = mapping.model_dump(mode="json")
            data["declared_keys"] = mapping.columns
            data["declared_relation_names"] = relation_names
            print(json.dumps(data, indent=2))
            return
        console.print(f"\n[bold]Exclusive arc:[/bold] {mapping.owner_table}.{mapping.role}")
        console.print(f"Primary key: {mapping.primary_key}")
        console.print(f"Unique across columns: {mapping.options.unique_across_columns}")

        rows = [
            {
                "Name": name,
                "Column": relation.column,
                "References": f"{relation.referenced_table}.{relation.referenced_column}",
                "On delete": str(relation.on_delete),
            }
            for name, relation in zip(mapping.relation_names, mapping.relations, strict=True)
        ]
        self.print_table("Relations", rows, ["Name", "Column", "References", "On delete"])

    def print_success(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Print success message."""
        if self.json_mode:
            output = {"success": True, "message": message}
            if details:
                output.update(details)
            print(json.dumps(output, default=str, indent=2))
        else:
            console.print(f"✓ {message}", style="green")
            if details:
                for key, value in details.items():
                    console.print(f"  {key}: {value}", style="dim")

    def print_error(self, error: Exception) -> None:
        """Print error message."""
        if self.json_mode:
            if isinstance(error, ExclusiveArcError):
                print(json.dumps(error.to_dict(), default=str, indent=2))
            else:
                print(json.dumps({"error": str(error)}, indent=2))
        else:
            error_text = str(error)
            if isinstance(error, ExclusiveArcError) and error.context:
                context_str = "\n".join(f"{k}: {v}" for k, v in error.context.items())
                error_text = f"{error_text}\n\n{context_str}"

            panel = Panel(
                error_text,
                title="[red]Error[/red]",
                border_style="red",
            )
            console.print(panel)

    def print_data(self, data: Any) -> None:
        """Print generic data (dict, list, etc.)."""
        if self.json_mode:
            print(json.dumps(data, default=str, indent=2))
        else:
            console.print(data)
