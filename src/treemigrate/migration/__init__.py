"""Schema migration for versioned document trees.

Each entity type registers the schema version the running code supports and
an ordered chain of migrators. Documents loaded with an older stored version
are rewritten step by step before deserialization.

Example:
    >>> from treemigrate.migration import MigratingReader, RegistryBuilder
    >>>
    >>> def rename_secret(tree: dict) -> dict:
    ...     tree["clientSecret"] = tree.pop("secret", None)
    ...     return tree
    >>>
    >>> builder = RegistryBuilder()
    >>> builder.register_migrations("client", 2, [rename_secret, None])
    >>> registry = builder.build(required=["client"])
    >>>
    >>> # Version 0 documents are migrated on read
    >>> registry.migrate("client", 0, {"secret": "s3cr3t"})
    {'clientSecret': 's3cr3t'}
"""

from treemigrate.migration.base import (
    IncompatibleVersionError,
    InvalidSchemaVersionError,
    MigratableEntity,
    MigrationConfig,
    MigrationDescriptor,
    MigrationError,
    MigrationStep,
    Migrator,
    MigratorError,
    MissingMigrationPathError,
    RegistryConfigurationError,
    Tree,
)
from treemigrate.migration.reader import (
    DocumentDecodeError,
    DocumentNotFoundError,
    DocumentSource,
    MemoryDocumentSource,
    MigratingReader,
    StoredDocument,
)
from treemigrate.migration.registry import (
    MigrationRegistry,
    RegistryBuilder,
    load_registry,
)
from treemigrate.migration.walker import migrate_tree

__all__ = [
    # Base types
    "MigratableEntity",
    "MigrationConfig",
    "MigrationDescriptor",
    "MigrationStep",
    "Migrator",
    "Tree",
    # Errors
    "MigrationError",
    "IncompatibleVersionError",
    "InvalidSchemaVersionError",
    "MigratorError",
    "MissingMigrationPathError",
    "RegistryConfigurationError",
    "DocumentDecodeError",
    "DocumentNotFoundError",
    # Walker
    "migrate_tree",
    # Registry
    "MigrationRegistry",
    "RegistryBuilder",
    "load_registry",
    # Read path
    "DocumentSource",
    "MemoryDocumentSource",
    "MigratingReader",
    "StoredDocument",
]
