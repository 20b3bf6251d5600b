"""Reusable CLI options and arguments.

This module provides standardized, reusable CLI options using Typer's
Annotated type pattern for consistency across all commands.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Optional

import typer

from treemigrate.cli_modules.common.errors import ConfigurationError
from treemigrate.migration import MigrationConfig, MigrationRegistry, load_registry

# =============================================================================
# Options
# =============================================================================

DocumentArg = Annotated[
    Path,
    typer.Argument(help="Path to a JSON document file"),
]

RegistryOpt = Annotated[
    Optional[str],
    typer.Option(
        "--registry",
        "-r",
        help=(
            "Registry import path, e.g. 'myapp.migrations:registry' "
            "(falls back to TREEMIGRATE_REGISTRY)"
        ),
    ),
]

EntityOpt = Annotated[
    str,
    typer.Option("--entity", "-e", help="Entity type of the document"),
]

FromVersionOpt = Annotated[
    int,
    typer.Option("--from-version", "-f", min=0, help="Schema version stored with the document"),
]

OutputOpt = Annotated[
    Optional[Path],
    typer.Option("--output", "-o", help="Output file path"),
]


# =============================================================================
# Helpers
# =============================================================================


def resolve_registry(path: str | None) -> MigrationRegistry:
    """Load the registry named on the command line or in the environment.

    Falls back to the registry path of :meth:`MigrationConfig.from_env`.

    Raises:
        ConfigurationError: If no registry path was given
    """
    path = path or MigrationConfig.from_env().registry_path
    if not path:
        raise ConfigurationError(
            "No migration registry given",
            hint="Pass --registry or set TREEMIGRATE_REGISTRY.",
        )
    return load_registry(path)
