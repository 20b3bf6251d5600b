"""Migration registry mapping entity types to their migration chains.

Registrations are collected by a :class:`RegistryBuilder` at startup and
frozen into an immutable :class:`MigrationRegistry`, which is then passed to
every reader. There is no global registry and no registration after build.
"""

from __future__ import annotations

import copy
import importlib
import logging
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any, Callable, Iterable, Iterator, Sequence

from treemigrate.migration.base import (
    IncompatibleVersionError,
    InvalidSchemaVersionError,
    MigratableEntity,
    MigrationDescriptor,
    Migrator,
    MissingMigrationPathError,
    RegistryConfigurationError,
    Tree,
    is_schema_version,
)
from treemigrate.migration.walker import migrate_tree

logger = logging.getLogger(__name__)


class RegistryBuilder:
    """Collects migration chains during startup.

    Example:
        >>> builder = RegistryBuilder()
        >>> builder.register_migrations("client", 2, [rename_secret])
        >>>
        >>> @builder.migrator("client", 1)
        ... def drop_legacy_flags(tree: dict) -> dict:
        ...     tree.pop("legacyFlags", None)
        ...     return tree
        >>>
        >>> registry = builder.build(required=["client"])
    """

    def __init__(self) -> None:
        """Initialize the builder."""
        self._target_versions: dict[str, int] = {}
        self._chains: dict[str, list[Migrator | None]] = {}
        self._built = False

    def register_migrations(
        self,
        entity_type: str,
        target_version: int,
        migrators: Sequence[Migrator | None] = (),
    ) -> "RegistryBuilder":
        """Register the migration chain of an entity type.

        Args:
            entity_type: Entity type identifier.
            target_version: Schema version the running code supports.
            migrators: Chain indexed by source version; ``None`` is a hole.

        Returns:
            This builder, for chaining.

        Raises:
            RegistryConfigurationError: If the entity type is already
                registered or the chain is malformed.
        """
        self._check_open()
        if not isinstance(entity_type, str) or not entity_type:
            raise RegistryConfigurationError(
                f"Entity type must be a non-empty string, got {entity_type!r}"
            )
        if entity_type in self._chains:
            raise RegistryConfigurationError(
                f"Migrations for entity type '{entity_type}' are already registered"
            )

        # Validates the target version and chain shape up front.
        descriptor = MigrationDescriptor(
            target_version=target_version,
            migrators=tuple(migrators),
            entity_type=entity_type,
        )
        self._target_versions[entity_type] = descriptor.target_version
        self._chains[entity_type] = list(descriptor.migrators)

        logger.debug(
            f"Registered migrations for {entity_type}: target version "
            f"{descriptor.target_version}"
        )
        return self

    def add(self, entity_type: str, descriptor: MigrationDescriptor) -> "RegistryBuilder":
        """Register a ready descriptor for an entity type.

        Args:
            entity_type: Entity type identifier.
            descriptor: The descriptor.

        Returns:
            This builder, for chaining.
        """
        return self.register_migrations(
            entity_type, descriptor.target_version, descriptor.migrators
        )

    def register_entity(self, entity_cls: type) -> type:
        """Register an entity class exposing its own migration chain.

        The class must define ``ENTITY_TYPE``, ``SCHEMA_VERSION`` and
        optionally ``MIGRATORS`` (see :class:`MigratableEntity`). Usable as a
        class decorator.

        Returns:
            The entity class, unchanged.
        """
        if not isinstance(entity_cls, MigratableEntity):
            missing = [
                name
                for name in ("ENTITY_TYPE", "SCHEMA_VERSION")
                if not hasattr(entity_cls, name)
            ]
            raise RegistryConfigurationError(
                f"{entity_cls.__name__} is not a migratable entity, missing: "
                + ", ".join(missing)
            )

        self.register_migrations(
            entity_cls.ENTITY_TYPE,
            entity_cls.SCHEMA_VERSION,
            getattr(entity_cls, "MIGRATORS", ()),
        )
        return entity_cls

    def migrator(
        self,
        entity_type: str,
        from_version: int,
    ) -> Callable[[Migrator], Migrator]:
        """Decorator to place a migrator into a registered chain slot.

        Args:
            entity_type: Entity type registered with ``register_migrations``.
            from_version: Version the migrator reads.

        Returns:
            Decorator function.

        Example:
            >>> @builder.migrator("realm", 0)
            ... def split_attributes(tree: dict) -> dict:
            ...     return tree
        """

        def decorator(func: Migrator) -> Migrator:
            self._check_open()
            if entity_type not in self._chains:
                raise MissingMigrationPathError(entity_type)

            chain = self._chains[entity_type]
            if not 0 <= from_version < len(chain):
                raise RegistryConfigurationError(
                    f"Migrator slot {from_version} is outside the chain of "
                    f"'{entity_type}' (target version {len(chain)})"
                )
            if chain[from_version] is not None:
                raise RegistryConfigurationError(
                    f"Migrator slot {from_version} of '{entity_type}' is "
                    f"already filled"
                )
            if not callable(func):
                raise RegistryConfigurationError(
                    f"Migrator for '{entity_type}' slot {from_version} is not callable"
                )

            chain[from_version] = func
            logger.debug(
                f"Registered migrator {entity_type}: {from_version} -> {from_version + 1}"
            )
            return func

        return decorator

    def build(self, required: Iterable[str] = ()) -> "MigrationRegistry":
        """Freeze the registrations into an immutable registry.

        Args:
            required: Entity types the application can load. All must be
                registered.

        Returns:
            The registry.

        Raises:
            MissingMigrationPathError: If a required entity type has no chain.
        """
        descriptors = {
            entity_type: MigrationDescriptor(
                target_version=self._target_versions[entity_type],
                migrators=tuple(chain),
                entity_type=entity_type,
            )
            for entity_type, chain in self._chains.items()
        }
        registry = MigrationRegistry(descriptors)
        registry.require(required)

        self._built = True
        logger.info(f"Built migration registry with {len(registry)} entity types")
        return registry

    def _check_open(self) -> None:
        if self._built:
            raise RegistryConfigurationError(
                "Registry was already built; register migrations before build()"
            )

    def __len__(self) -> int:
        """Get number of registered entity types."""
        return len(self._chains)

    def __contains__(self, entity_type: object) -> bool:
        """Check if an entity type is registered."""
        return entity_type in self._chains


class MigrationRegistry(Mapping[str, MigrationDescriptor]):
    """Immutable lookup from entity type to migration descriptor.

    Safe for any number of concurrent readers; nothing writes to it after
    construction.
    """

    def __init__(self, descriptors: Mapping[str, MigrationDescriptor]) -> None:
        """Initialize the registry.

        Args:
            descriptors: Descriptor per entity type. Copied.
        """
        self._descriptors: Mapping[str, MigrationDescriptor] = MappingProxyType(
            dict(descriptors)
        )

    def lookup(self, entity_type: str) -> MigrationDescriptor:
        """Get the descriptor of an entity type.

        Raises:
            MissingMigrationPathError: If the entity type is not registered.
        """
        try:
            return self._descriptors[entity_type]
        except KeyError:
            raise MissingMigrationPathError(entity_type) from None

    def migrate(self, entity_type: str, stored_version: int, document: Tree) -> Tree:
        """Migrate a loaded document to the supported version of its type.

        Args:
            entity_type: Entity type of the document.
            stored_version: Schema version stored with the document.
            document: The document tree.

        Returns:
            The migrated document. Callers must use it in place of the input.

        Raises:
            MissingMigrationPathError: If the entity type is not registered.
            IncompatibleVersionError: If the document is too far ahead.
        """
        return migrate_tree(stored_version, self.lookup(entity_type), document)

    def needs_migration(self, entity_type: str, stored_version: int) -> bool:
        """Check whether loading a document would apply any chain step.

        Raises:
            MissingMigrationPathError: If the entity type is not registered.
            InvalidSchemaVersionError: If ``stored_version`` is invalid.
            IncompatibleVersionError: If the document is too far ahead.
        """
        descriptor = self.lookup(entity_type)
        self._check_version(stored_version, descriptor)
        return stored_version < descriptor.target_version

    @staticmethod
    def _check_version(stored_version: int, descriptor: MigrationDescriptor) -> None:
        if not is_schema_version(stored_version):
            raise InvalidSchemaVersionError(stored_version)
        if stored_version > descriptor.target_version + 1:
            raise IncompatibleVersionError(
                stored_version, descriptor.target_version, descriptor.entity_type
            )

    def require(self, entity_types: Iterable[str]) -> None:
        """Ensure every given entity type is registered.

        Raises:
            MissingMigrationPathError: Naming every missing entity type.
        """
        missing = {t for t in entity_types if t not in self._descriptors}
        if missing:
            raise MissingMigrationPathError(missing)

    def list_entity_types(self) -> list[str]:
        """List registered entity types, sorted."""
        return sorted(self._descriptors)

    def describe(self) -> dict[str, dict[str, Any]]:
        """Describe every registered chain."""
        return {
            entity_type: self._descriptors[entity_type].to_dict()
            for entity_type in self.list_entity_types()
        }

    def validate_chain(
        self,
        entity_type: str,
        sample: Tree,
        from_version: int = 0,
    ) -> tuple[bool, list[str]]:
        """Dry-run a sample document through a chain.

        The sample is deep-copied and every step is applied individually, so
        a failing migrator is reported as a message instead of raised. Every
        other error (unknown entity type, invalid or over-skewed version)
        propagates as it does from :meth:`migrate`.

        Args:
            entity_type: Entity type of the sample.
            sample: Sample document at ``from_version``.
            from_version: Schema version of the sample.

        Returns:
            Tuple of (success, list of error messages).

        Raises:
            MissingMigrationPathError: If the entity type is not registered.
            InvalidSchemaVersionError: If ``from_version`` is not a
                non-negative integer.
            IncompatibleVersionError: If the sample is too far ahead.
        """
        descriptor = self.lookup(entity_type)
        self._check_version(from_version, descriptor)

        if from_version >= descriptor.target_version:
            return True, []

        errors: list[str] = []
        data = copy.deepcopy(sample)

        for step in descriptor.steps()[from_version:]:
            migrator = descriptor.migrators[step.from_version]
            if migrator is None:
                continue
            try:
                data = migrator(data)
            except Exception as e:
                errors.append(
                    f"Migration {step.from_version} -> {step.to_version} "
                    f"({step.name}) failed: {e}"
                )
                break

        return len(errors) == 0, errors

    def __getitem__(self, entity_type: str) -> MigrationDescriptor:
        return self._descriptors[entity_type]

    def __iter__(self) -> Iterator[str]:
        return iter(self._descriptors)

    def __len__(self) -> int:
        """Get number of registered entity types."""
        return len(self._descriptors)

    def __repr__(self) -> str:
        return f"MigrationRegistry({self.list_entity_types()!r})"


def load_registry(path: str) -> MigrationRegistry:
    """Load a registry from an import path.

    The attribute may be a :class:`MigrationRegistry`, a
    :class:`RegistryBuilder` (built on load), or a zero-argument callable
    returning either.

    Args:
        path: Import path in the form "package.module:attribute".

    Returns:
        The registry.

    Raises:
        RegistryConfigurationError: If the path cannot be resolved.
    """
    module_name, sep, attribute = path.partition(":")
    if not sep or not module_name or not attribute:
        raise RegistryConfigurationError(
            f"Registry path must look like 'package.module:attribute', got '{path}'"
        )

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise RegistryConfigurationError(
            f"Cannot import registry module '{module_name}': {e}"
        ) from e

    try:
        target = getattr(module, attribute)
    except AttributeError:
        raise RegistryConfigurationError(
            f"Module '{module_name}' has no attribute '{attribute}'"
        ) from None

    if callable(target) and not isinstance(target, type):
        target = target()

    if isinstance(target, RegistryBuilder):
        target = target.build()
    if not isinstance(target, MigrationRegistry):
        raise RegistryConfigurationError(
            f"'{path}' is not a migration registry: {type(target).__name__}"
        )

    logger.debug(f"Loaded migration registry from {path}")
    return target
