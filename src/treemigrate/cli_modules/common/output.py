"""Output formatting for CLI commands."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from treemigrate.cli_modules.common.errors import CLIError, ErrorCode
from treemigrate.migration import MigrationRegistry


def print_registry(registry: MigrationRegistry, console: Console | None = None) -> None:
    """Print registered chains as a table."""
    console = console or Console()

    if not len(registry):
        console.print("[yellow]No entity types registered[/yellow]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Entity", style="cyan")
    table.add_column("Version", justify="right")
    table.add_column("Chain", style="white")

    for entity_type in registry.list_entity_types():
        descriptor = registry.lookup(entity_type)
        chain = ", ".join(
            f"{step.from_version}->{step.to_version} "
            + ("[dim]identity[/dim]" if step.identity else str(step.name))
            for step in descriptor.steps()
        )
        table.add_row(entity_type, str(descriptor.target_version), chain or "[dim]-[/dim]")

    console.print(table)
    console.print(f"Summary: {len(registry)} entity types")


def dump_document(document: Any, indent: int | None = 2) -> str:
    """Serialize a document tree as JSON text."""
    return json.dumps(document, indent=indent, ensure_ascii=False)


def write_document(document: Any, output: Path | None, indent: int | None = 2) -> None:
    """Write a document to a file, or to stdout when no file is given."""
    text = dump_document(document, indent=indent)
    if output is None:
        typer.echo(text)
        return
    try:
        output.write_text(text + "\n", encoding="utf-8")
    except OSError as e:
        raise CLIError(
            f"Cannot write {output}: {e}",
            code=ErrorCode.FILE_NOT_WRITABLE,
            details={"path": str(output)},
        ) from e
    typer.echo(f"Document saved to {output}", err=True)
