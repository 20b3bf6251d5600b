"""Describe command - Show registered migration chains.

This module implements the `treemigrate describe` command.
"""

from __future__ import annotations

import json
from typing import Annotated

import typer

from treemigrate.cli_modules.common.errors import CLIError, ErrorCode, error_boundary
from treemigrate.cli_modules.common.options import RegistryOpt, resolve_registry
from treemigrate.cli_modules.common.output import print_registry


@error_boundary
def describe_cmd(
    registry_path: RegistryOpt = None,
    format: Annotated[
        str,
        typer.Option("--format", help="Output format (table, json)"),
    ] = "table",
) -> None:
    """Show every entity type, its supported version and its migrator chain.

    Examples:
        treemigrate describe --registry myapp.migrations:registry
        treemigrate describe -r myapp.migrations:registry --format json
    """
    if format not in ("table", "json"):
        raise CLIError(
            f"Unsupported format: {format}",
            code=ErrorCode.USAGE_ERROR,
            hint="Use 'table' or 'json'.",
        )

    registry = resolve_registry(registry_path)

    if format == "json":
        typer.echo(json.dumps(registry.describe(), indent=2))
    else:
        print_registry(registry)
