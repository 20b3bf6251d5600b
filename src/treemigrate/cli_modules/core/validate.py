"""Validate command - Dry-run a sample document through a migration chain.

This module implements the `treemigrate validate` command.
"""

from __future__ import annotations

import json
from typing import Annotated

import typer

from treemigrate.cli_modules.common.errors import (
    CLIError,
    ErrorCode,
    ValidationError,
    error_boundary,
    read_file,
)
from treemigrate.cli_modules.common.options import (
    DocumentArg,
    EntityOpt,
    RegistryOpt,
    resolve_registry,
)


@error_boundary
def validate_cmd(
    file: DocumentArg,
    entity: EntityOpt,
    registry_path: RegistryOpt = None,
    from_version: Annotated[
        int,
        typer.Option("--from-version", "-f", min=0, help="Schema version of the sample"),
    ] = 0,
) -> None:
    """Check that a sample document survives every step of a chain.

    Examples:
        treemigrate validate samples/client-v0.json -e client -r myapp.migrations:registry
    """
    raw = read_file(file)

    try:
        sample = json.loads(raw)
    except ValueError as e:
        raise CLIError(
            f"Invalid JSON in {file}: {e}",
            code=ErrorCode.INVALID_FILE_FORMAT,
        ) from e

    registry = resolve_registry(registry_path)
    success, errors = registry.validate_chain(entity, sample, from_version=from_version)

    if not success:
        raise ValidationError(f"Migration chain of '{entity}' failed", errors=errors)

    target = registry.lookup(entity).target_version
    if from_version >= target:
        message = (
            f"OK: {entity} sample at version {from_version} is already at or "
            f"ahead of supported version {target}; no steps to run"
        )
    else:
        message = f"OK: {entity} sample migrates from version {from_version} to {target}"
    typer.echo(typer.style(message, fg="green"))
