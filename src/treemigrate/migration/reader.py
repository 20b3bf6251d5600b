"""Migrating read path for stored documents.

This module connects the registry to the storage layer: whatever loads a
document and its stored schema version hands it to a :class:`MigratingReader`,
which returns the tree in the shape the running code expects.
"""

from __future__ import annotations

import copy
import json
import logging
import threading
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from treemigrate.migration.base import (
    IncompatibleVersionError,
    MigrationConfig,
    MigrationError,
    Tree,
)
from treemigrate.migration.registry import MigrationRegistry
from treemigrate.migration.walker import migrate_tree

logger = logging.getLogger(__name__)


# =============================================================================
# Exceptions
# =============================================================================


class DocumentNotFoundError(MigrationError):
    """Raised when a requested document is not in the source."""

    def __init__(self, entity_type: str, document_id: str) -> None:
        self.entity_type = entity_type
        self.document_id = document_id
        super().__init__(f"{entity_type} not found: {document_id}")


class DocumentDecodeError(MigrationError):
    """Raised when a raw document is not valid JSON."""

    def __init__(self, entity_type: str, message: str) -> None:
        self.entity_type = entity_type
        super().__init__(f"Cannot decode {entity_type} document: {message}")


# =============================================================================
# Stored Documents
# =============================================================================


@dataclass(frozen=True)
class StoredDocument:
    """A document as loaded from storage, before migration.

    Attributes:
        entity_type: Entity type of the document.
        document_id: Identifier within the entity type.
        schema_version: Schema version recorded when it was written.
        body: The document tree.
    """

    entity_type: str
    document_id: str
    schema_version: int
    body: Tree


@runtime_checkable
class DocumentSource(Protocol):
    """Protocol for storage backends that load stored documents."""

    def fetch(self, entity_type: str, document_id: str) -> StoredDocument:
        """Load a document.

        Raises:
            DocumentNotFoundError: If the document does not exist.
        """
        ...


class MemoryDocumentSource:
    """In-memory document source.

    Useful for testing and development. Data is not persisted.

    Example:
        >>> source = MemoryDocumentSource()
        >>> source.put("client", "c1", 0, {"secret": "s3cr3t"})
        >>> source.fetch("client", "c1").schema_version
        0
    """

    def __init__(self, deep_copy: bool = True) -> None:
        """Initialize the source.

        Args:
            deep_copy: Whether to deep copy bodies on put and fetch.
        """
        self._deep_copy = deep_copy
        self._documents: dict[tuple[str, str], StoredDocument] = {}

    def put(
        self,
        entity_type: str,
        document_id: str,
        schema_version: int,
        body: Tree,
    ) -> StoredDocument:
        """Store a document, replacing any previous one with the same id."""
        document = StoredDocument(
            entity_type=entity_type,
            document_id=document_id,
            schema_version=schema_version,
            body=self._copy(body),
        )
        self._documents[(entity_type, document_id)] = document
        return document

    def fetch(self, entity_type: str, document_id: str) -> StoredDocument:
        """Load a document."""
        try:
            document = self._documents[(entity_type, document_id)]
        except KeyError:
            raise DocumentNotFoundError(entity_type, document_id) from None

        if not self._deep_copy:
            return document
        return StoredDocument(
            entity_type=document.entity_type,
            document_id=document.document_id,
            schema_version=document.schema_version,
            body=self._copy(document.body),
        )

    def exists(self, entity_type: str, document_id: str) -> bool:
        """Check if a document exists."""
        return (entity_type, document_id) in self._documents

    def list_ids(self, entity_type: str) -> list[str]:
        """List document ids of an entity type, sorted."""
        return sorted(
            document_id for kind, document_id in self._documents if kind == entity_type
        )

    def _copy(self, body: Tree) -> Tree:
        return copy.deepcopy(body) if self._deep_copy else body

    def __len__(self) -> int:
        return len(self._documents)


# =============================================================================
# Migrating Reader
# =============================================================================


class MigratingReader:
    """Migrates every document it reads to the supported schema version.

    Example:
        >>> reader = MigratingReader(registry, source)
        >>> tree = reader.get("client", "c1")
        >>> tree = reader.read_json("client", raw_text, stored_version=1)
    """

    def __init__(
        self,
        registry: MigrationRegistry,
        source: DocumentSource | None = None,
        config: MigrationConfig | None = None,
    ) -> None:
        """Initialize the reader.

        Args:
            registry: Registry of migration chains.
            source: Optional storage backend used by ``get``.
            config: Migration configuration.
        """
        self._registry = registry
        self._source = source
        self._config = config or MigrationConfig()
        self._lock = threading.Lock()
        self._stats = {
            "documents_read": 0,
            "documents_migrated": 0,
            "documents_current": 0,
            "documents_rejected": 0,
        }

    @property
    def registry(self) -> MigrationRegistry:
        """The registry used by this reader."""
        return self._registry

    @property
    def stats(self) -> dict[str, int]:
        """Snapshot of read counters."""
        with self._lock:
            return dict(self._stats)

    def read(self, stored: StoredDocument) -> Tree:
        """Migrate a stored document.

        Args:
            stored: Document loaded by the storage layer.

        Returns:
            The migrated document tree.

        Raises:
            MissingMigrationPathError: If the entity type is not registered.
            IncompatibleVersionError: If the document is too far ahead.
        """
        return self._migrate(stored.entity_type, stored.schema_version, stored.body)

    def get(self, entity_type: str, document_id: str) -> Tree:
        """Fetch a document from the source and migrate it.

        Raises:
            MigrationError: If the reader has no source.
            DocumentNotFoundError: If the document does not exist.
        """
        if self._source is None:
            raise MigrationError("MigratingReader has no document source")
        return self.read(self._source.fetch(entity_type, document_id))

    def read_json(
        self,
        entity_type: str,
        raw: str | bytes,
        stored_version: int,
    ) -> Tree:
        """Parse a raw JSON document and migrate it.

        Raises:
            DocumentDecodeError: If ``raw`` is not valid JSON.
        """
        try:
            document = json.loads(raw)
        except (ValueError, TypeError) as e:
            raise DocumentDecodeError(entity_type, str(e)) from e
        return self._migrate(entity_type, stored_version, document)

    def _migrate(self, entity_type: str, stored_version: int, document: Any) -> Tree:
        descriptor = self._registry.lookup(entity_type)

        if self._config.copy_documents:
            document = copy.deepcopy(document)

        try:
            migrated = migrate_tree(stored_version, descriptor, document)
        except IncompatibleVersionError:
            self._count("documents_rejected")
            raise

        if stored_version < descriptor.target_version:
            self._count("documents_migrated")
            logger.debug(
                f"Migrated {entity_type} document from version {stored_version} "
                f"to {descriptor.target_version}"
            )
        else:
            self._count("documents_current")
        self._count("documents_read")
        return migrated

    def _count(self, key: str) -> None:
        with self._lock:
            self._stats[key] += 1
