"""Base types, contracts and errors for document schema migration.

A document is an opaque tree (in practice a JSON value made of dicts and
lists). Each entity type has a :class:`MigrationDescriptor` holding the schema
version the running code supports and an ordered chain of migrators, where the
migrator at index ``i`` rewrites a version ``i`` tree into version ``i + 1``.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Callable, ClassVar, Iterable, Protocol, runtime_checkable


# =============================================================================
# Exceptions
# =============================================================================


class MigrationError(Exception):
    """Base exception for migration-related errors."""

    pass


class IncompatibleVersionError(MigrationError):
    """Raised when a document was written by code too far ahead of this one."""

    def __init__(
        self,
        stored_version: int,
        supported_version: int,
        entity_type: str | None = None,
    ) -> None:
        self.stored_version = stored_version
        self.supported_version = supported_version
        self.entity_type = entity_type
        subject = f"{entity_type} document" if entity_type else "Document"
        super().__init__(
            f"Incompatible entity version: {subject} has schema version "
            f"{stored_version}, supported version is {supported_version}"
        )


class MissingMigrationPathError(MigrationError):
    """Raised when no migration descriptor is registered for an entity type."""

    def __init__(self, entity_types: str | Iterable[str]) -> None:
        if isinstance(entity_types, str):
            entity_types = [entity_types]
        self.entity_types = sorted(entity_types)
        super().__init__(
            "No migration path configured for entity type(s): "
            + ", ".join(self.entity_types)
        )


class MigratorError(MigrationError):
    """Raised by a migrator that cannot rewrite an unexpected document.

    Migrator authors raise this (or any other exception) from a chain step.
    The walker propagates it unchanged.
    """

    def __init__(self, from_version: int, message: str) -> None:
        self.from_version = from_version
        self.to_version = from_version + 1
        super().__init__(
            f"Migration from version {from_version} to {self.to_version} "
            f"failed: {message}"
        )


class InvalidSchemaVersionError(MigrationError, ValueError):
    """Raised when a stored schema version is not a non-negative integer."""

    def __init__(self, version: Any) -> None:
        self.version = version
        super().__init__(
            f"Schema version must be a non-negative integer, got {version!r}"
        )


class RegistryConfigurationError(MigrationError):
    """Raised when migrations are registered or described incorrectly."""

    pass


# =============================================================================
# Type Aliases and Protocols
# =============================================================================


# A document tree; the engine never looks inside it.
Tree = Any

# A single step of a chain, rewriting a version N tree into version N + 1.
Migrator = Callable[[Tree], Tree]


@runtime_checkable
class MigratableEntity(Protocol):
    """Capability of an entity class that owns a migration chain.

    ``MIGRATORS`` is optional; a class without it has only identity steps.

    Example:
        >>> class Client:
        ...     ENTITY_TYPE = "client"
        ...     SCHEMA_VERSION = 2
        ...     MIGRATORS = (rename_secret, None)
    """

    ENTITY_TYPE: ClassVar[str]
    SCHEMA_VERSION: ClassVar[int]


# =============================================================================
# Data Classes
# =============================================================================


def is_schema_version(value: Any) -> bool:
    """Check that a value is a usable schema version (a non-negative int)."""
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


@dataclass(frozen=True)
class MigrationStep:
    """Information about one slot of a migrator chain.

    Attributes:
        from_version: Version the step reads.
        to_version: Version the step produces.
        name: Name of the migrator, or None for a hole.
    """

    from_version: int
    to_version: int
    name: str | None = None

    @property
    def identity(self) -> bool:
        """Whether the step leaves documents unchanged."""
        return self.name is None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "from_version": self.from_version,
            "to_version": self.to_version,
            "migrator": self.name,
            "identity": self.identity,
        }


@dataclass(frozen=True)
class MigrationDescriptor:
    """Migration chain of one entity type.

    The chain always has exactly ``target_version`` slots. A shorter sequence
    is padded with holes (``None``), which act as identity steps.

    Attributes:
        target_version: Schema version the running code reads and writes.
        migrators: Chain indexed by source version.
        entity_type: Entity type label used in errors and logs.
    """

    target_version: int
    migrators: tuple[Migrator | None, ...] = field(default_factory=tuple)
    entity_type: str | None = None

    def __post_init__(self) -> None:
        if not is_schema_version(self.target_version):
            raise RegistryConfigurationError(
                f"Target version of {self._label} must be a non-negative "
                f"integer, got {self.target_version!r}"
            )

        migrators = tuple(self.migrators)
        if len(migrators) > self.target_version:
            raise RegistryConfigurationError(
                f"{self._label} has {len(migrators)} migrators but target "
                f"version {self.target_version}; migrators past the target "
                f"would never run"
            )
        for index, migrator in enumerate(migrators):
            if migrator is not None and not callable(migrator):
                raise RegistryConfigurationError(
                    f"Migrator {index} of {self._label} is not callable: "
                    f"{migrator!r}"
                )

        padding = (None,) * (self.target_version - len(migrators))
        object.__setattr__(self, "migrators", migrators + padding)

    @property
    def _label(self) -> str:
        return f"entity type '{self.entity_type}'" if self.entity_type else "descriptor"

    def migrator_for(self, version: int) -> Migrator | None:
        """Get the migrator rewriting ``version`` into ``version + 1``.

        Returns:
            The migrator, or None if the step is a hole.

        Raises:
            IndexError: If ``version`` is outside ``0..target_version - 1``.
        """
        if not 0 <= version < self.target_version:
            raise IndexError(
                f"No chain slot {version} for target version {self.target_version}"
            )
        return self.migrators[version]

    def steps(self) -> list[MigrationStep]:
        """List every slot of the chain in ascending order."""
        return [
            MigrationStep(
                from_version=version,
                to_version=version + 1,
                name=_migrator_name(migrator),
            )
            for version, migrator in enumerate(self.migrators)
        ]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "entity_type": self.entity_type,
            "target_version": self.target_version,
            "steps": [step.to_dict() for step in self.steps()],
        }


def _migrator_name(migrator: Migrator | None) -> str | None:
    if migrator is None:
        return None
    return getattr(migrator, "__qualname__", None) or type(migrator).__name__


_TRUTHY = {"1", "true", "yes", "on"}


@dataclass
class MigrationConfig:
    """Configuration for the migrating read path.

    Attributes:
        copy_documents: Deep-copy document bodies before migrating them, so
            trees held by the storage layer are never mutated.
        registry_path: Import path ("package.module:attribute") of the
            application's registry.
    """

    copy_documents: bool = False
    registry_path: str | None = None

    @classmethod
    def from_env(cls) -> "MigrationConfig":
        """Build configuration from environment variables.

        Checks: TREEMIGRATE_REGISTRY, TREEMIGRATE_COPY_DOCUMENTS
        """
        copy_flag = os.getenv("TREEMIGRATE_COPY_DOCUMENTS", "")
        return cls(
            copy_documents=copy_flag.strip().lower() in _TRUTHY,
            registry_path=os.getenv("TREEMIGRATE_REGISTRY") or None,
        )
