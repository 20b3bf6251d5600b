"""Treemigrate - per-entity schema migration for versioned JSON documents."""

from treemigrate.migration import (
    IncompatibleVersionError,
    MigratingReader,
    MigrationConfig,
    MigrationDescriptor,
    MigrationError,
    MigrationRegistry,
    MigratorError,
    MissingMigrationPathError,
    RegistryBuilder,
    load_registry,
    migrate_tree,
)

__version__ = "0.1.0"

__all__ = [
    "IncompatibleVersionError",
    "MigratingReader",
    "MigrationConfig",
    "MigrationDescriptor",
    "MigrationError",
    "MigrationRegistry",
    "MigratorError",
    "MissingMigrationPathError",
    "RegistryBuilder",
    "load_registry",
    "migrate_tree",
    "__version__",
]
