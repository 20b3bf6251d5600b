"""Migrate command - Rewrite a stored JSON document to the supported version.

This module implements the `treemigrate migrate` command.
"""

from __future__ import annotations

import logging
from typing import Annotated

import typer

from treemigrate.cli_modules.common.errors import error_boundary, read_file
from treemigrate.cli_modules.common.options import (
    DocumentArg,
    EntityOpt,
    FromVersionOpt,
    OutputOpt,
    RegistryOpt,
    resolve_registry,
)
from treemigrate.cli_modules.common.output import write_document
from treemigrate.migration import MigratingReader, MigrationConfig

logger = logging.getLogger(__name__)


@error_boundary
def migrate_cmd(
    file: DocumentArg,
    entity: EntityOpt,
    from_version: FromVersionOpt,
    registry_path: RegistryOpt = None,
    output: OutputOpt = None,
    indent: Annotated[
        int,
        typer.Option("--indent", min=0, help="JSON indentation (0 for compact)"),
    ] = 2,
) -> None:
    """Migrate a JSON document to the version the registry supports.

    The stored version is not written into the document; persisting the
    new version next to it is up to the caller.

    Examples:
        treemigrate migrate client.json -e client -f 0 -r myapp.migrations:registry
        treemigrate migrate realm.json -e realm -f 1 -o realm.v3.json
    """
    raw = read_file(file)
    reader = MigratingReader(
        resolve_registry(registry_path), config=MigrationConfig.from_env()
    )
    document = reader.read_json(entity, raw, from_version)
    logger.debug(f"Migrated {file} ({entity}) from version {from_version}")

    write_document(document, output, indent=indent or None)
