"""Unit tests for the migrating read path."""

from __future__ import annotations

import json
from typing import Any

import pytest

from treemigrate.migration.base import (
    IncompatibleVersionError,
    MigrationConfig,
    MigrationError,
    MissingMigrationPathError,
)
from treemigrate.migration.reader import (
    DocumentDecodeError,
    DocumentNotFoundError,
    DocumentSource,
    MemoryDocumentSource,
    MigratingReader,
    StoredDocument,
)
from treemigrate.migration.registry import MigrationRegistry, RegistryBuilder


def rename_secret(tree: dict[str, Any]) -> dict[str, Any]:
    tree["clientSecret"] = tree.pop("secret")
    return tree


@pytest.fixture
def registry() -> MigrationRegistry:
    """Registry with a one-step client chain."""
    return RegistryBuilder().register_migrations("client", 1, [rename_secret]).build()


@pytest.fixture
def source() -> MemoryDocumentSource:
    """Source holding an old and a current client."""
    source = MemoryDocumentSource()
    source.put("client", "old", 0, {"secret": "s3cr3t"})
    source.put("client", "current", 1, {"clientSecret": "fresh"})
    source.put("client", "future", 3, {"clientSecret": "too new"})
    return source


class TestMemoryDocumentSource:
    """Tests for MemoryDocumentSource."""

    def test_put_and_fetch(self) -> None:
        """Test storing and loading a document."""
        source = MemoryDocumentSource()
        source.put("realm", "master", 2, {"name": "master"})

        stored = source.fetch("realm", "master")

        assert stored == StoredDocument("realm", "master", 2, {"name": "master"})

    def test_fetch_missing(self) -> None:
        """Test loading an unknown document."""
        source = MemoryDocumentSource()

        with pytest.raises(DocumentNotFoundError) as exc_info:
            source.fetch("realm", "nope")

        assert exc_info.value.entity_type == "realm"
        assert exc_info.value.document_id == "nope"

    def test_deep_copy_isolation(self) -> None:
        """Test callers never share trees with the source."""
        source = MemoryDocumentSource()
        body = {"roles": ["admin"]}
        source.put("user", "u1", 0, body)

        body["roles"].append("mutated")
        fetched = source.fetch("user", "u1")
        fetched.body["roles"].append("also mutated")

        assert source.fetch("user", "u1").body == {"roles": ["admin"]}

    def test_shared_trees_without_deep_copy(self) -> None:
        """Test deep copies can be turned off."""
        source = MemoryDocumentSource(deep_copy=False)
        body = {"roles": ["admin"]}
        source.put("user", "u1", 0, body)

        assert source.fetch("user", "u1").body is body

    def test_exists_and_list_ids(self, source: MemoryDocumentSource) -> None:
        """Test existence checks and listing."""
        assert source.exists("client", "old")
        assert not source.exists("realm", "old")
        assert source.list_ids("client") == ["current", "future", "old"]
        assert source.list_ids("realm") == []
        assert len(source) == 3

    def test_implements_protocol(self, source: MemoryDocumentSource) -> None:
        """Test the memory source satisfies DocumentSource."""
        assert isinstance(source, DocumentSource)


class TestMigratingReader:
    """Tests for MigratingReader."""

    def test_get_migrates_old_document(
        self, registry: MigrationRegistry, source: MemoryDocumentSource
    ) -> None:
        """Test old documents are migrated on read."""
        reader = MigratingReader(registry, source)

        assert reader.get("client", "old") == {"clientSecret": "s3cr3t"}

    def test_get_current_document(
        self, registry: MigrationRegistry, source: MemoryDocumentSource
    ) -> None:
        """Test current documents pass through."""
        reader = MigratingReader(registry, source)

        assert reader.get("client", "current") == {"clientSecret": "fresh"}

    def test_get_rejects_future_document(
        self, registry: MigrationRegistry, source: MemoryDocumentSource
    ) -> None:
        """Test rejected documents raise and are counted."""
        reader = MigratingReader(registry, source)

        with pytest.raises(IncompatibleVersionError):
            reader.get("client", "future")

        assert reader.stats["documents_rejected"] == 1
        assert reader.stats["documents_read"] == 0

    def test_get_missing_document(
        self, registry: MigrationRegistry, source: MemoryDocumentSource
    ) -> None:
        """Test missing documents propagate the source error."""
        reader = MigratingReader(registry, source)

        with pytest.raises(DocumentNotFoundError):
            reader.get("client", "nope")

    def test_get_without_source(self, registry: MigrationRegistry) -> None:
        """Test get requires a source."""
        reader = MigratingReader(registry)

        with pytest.raises(MigrationError, match="no document source"):
            reader.get("client", "old")

    def test_read_stored_document(self, registry: MigrationRegistry) -> None:
        """Test migrating a document handed over by a storage layer."""
        reader = MigratingReader(registry)
        stored = StoredDocument("client", "c1", 0, {"secret": "x"})

        assert reader.read(stored) == {"clientSecret": "x"}

    def test_read_unknown_entity(self, registry: MigrationRegistry) -> None:
        """Test unregistered entity types fail."""
        reader = MigratingReader(registry)

        with pytest.raises(MissingMigrationPathError):
            reader.read(StoredDocument("realm", "master", 0, {}))

    def test_read_json(self, registry: MigrationRegistry) -> None:
        """Test parsing and migrating raw JSON."""
        reader = MigratingReader(registry)

        result = reader.read_json("client", json.dumps({"secret": "x"}), 0)

        assert result == {"clientSecret": "x"}

    def test_read_json_bytes(self, registry: MigrationRegistry) -> None:
        """Test raw JSON may be bytes."""
        reader = MigratingReader(registry)

        result = reader.read_json("client", b'{"clientSecret": "y"}', 1)

        assert result == {"clientSecret": "y"}

    def test_read_json_invalid(self, registry: MigrationRegistry) -> None:
        """Test malformed JSON is reported as a decode error."""
        reader = MigratingReader(registry)

        with pytest.raises(DocumentDecodeError) as exc_info:
            reader.read_json("client", "{not json", 0)

        assert exc_info.value.entity_type == "client"

    def test_copy_documents(self, registry: MigrationRegistry) -> None:
        """Test the input tree is untouched when copying is enabled."""
        reader = MigratingReader(registry, config=MigrationConfig(copy_documents=True))
        body = {"secret": "x"}

        result = reader.read(StoredDocument("client", "c1", 0, body))

        assert result == {"clientSecret": "x"}
        assert body == {"secret": "x"}

    def test_in_place_without_copy(self, registry: MigrationRegistry) -> None:
        """Test migrators may mutate the input tree when copying is off."""
        reader = MigratingReader(registry)
        body = {"secret": "x"}

        result = reader.read(StoredDocument("client", "c1", 0, body))

        assert result is body

    def test_stats(
        self, registry: MigrationRegistry, source: MemoryDocumentSource
    ) -> None:
        """Test read counters."""
        reader = MigratingReader(registry, source)

        reader.get("client", "old")
        reader.get("client", "current")
        reader.get("client", "current")
        with pytest.raises(IncompatibleVersionError):
            reader.get("client", "future")

        assert reader.stats == {
            "documents_read": 3,
            "documents_migrated": 1,
            "documents_current": 2,
            "documents_rejected": 1,
        }

    def test_stats_snapshot(self, registry: MigrationRegistry) -> None:
        """Test stats returns a copy."""
        reader = MigratingReader(registry)

        reader.stats["documents_read"] = 99

        assert reader.stats["documents_read"] == 0

    def test_registry_property(self, registry: MigrationRegistry) -> None:
        """Test the reader exposes its registry."""
        assert MigratingReader(registry).registry is registry
