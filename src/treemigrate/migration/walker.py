"""Version walker that advances a document tree to the supported version."""

from __future__ import annotations

import logging

from treemigrate.migration.base import (
    IncompatibleVersionError,
    InvalidSchemaVersionError,
    MigrationDescriptor,
    Tree,
    is_schema_version,
)

logger = logging.getLogger(__name__)


def migrate_tree(
    stored_version: int,
    descriptor: MigrationDescriptor,
    document: Tree,
) -> Tree:
    """Migrate a document from its stored version to the descriptor's target.

    A document exactly one version ahead of the target is returned unchanged:
    during a rolling upgrade a newer writer and an older reader coexist, and
    reading that shape is a contract each entity's migrator authors keep.
    Anything further ahead is rejected.

    Migrators may mutate ``document`` in place or return a new tree. Callers
    must use the returned tree and drop their reference to the input. Errors
    raised by a migrator propagate unchanged and leave the input in an
    undefined state.

    Args:
        stored_version: Schema version recorded with the document.
        descriptor: Migration chain of the document's entity type.
        document: The document tree.

    Returns:
        The document in the shape of ``descriptor.target_version``.

    Raises:
        InvalidSchemaVersionError: If ``stored_version`` is not a
            non-negative integer.
        IncompatibleVersionError: If ``stored_version`` is more than one
            version ahead of the target.
    """
    if not is_schema_version(stored_version):
        raise InvalidSchemaVersionError(stored_version)

    target_version = descriptor.target_version

    if stored_version > target_version + 1:
        raise IncompatibleVersionError(
            stored_version, target_version, descriptor.entity_type
        )

    if stored_version >= target_version:
        return document

    version = stored_version
    while version < target_version:
        migrator = descriptor.migrators[version]
        if migrator is not None:
            document = migrator(document)
            logger.debug(
                f"Applied migration {version} -> {version + 1} "
                f"for {descriptor.entity_type or 'document'}"
            )
        version += 1

    return document
