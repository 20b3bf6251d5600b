"""Unit tests for migration base types."""

from __future__ import annotations

from typing import Any

import pytest

from treemigrate.migration.base import (
    IncompatibleVersionError,
    MigratableEntity,
    MigrationConfig,
    MigrationDescriptor,
    MigrationError,
    MigrationStep,
    MigratorError,
    MissingMigrationPathError,
    RegistryConfigurationError,
)


def add_attributes(tree: dict[str, Any]) -> dict[str, Any]:
    tree.setdefault("attributes", {})
    return tree


class TestMigrationDescriptor:
    """Tests for MigrationDescriptor."""

    def test_descriptor_creation(self) -> None:
        """Test creating a descriptor."""
        descriptor = MigrationDescriptor(
            target_version=2,
            migrators=(add_attributes, None),
            entity_type="realm",
        )

        assert descriptor.target_version == 2
        assert descriptor.migrators == (add_attributes, None)
        assert descriptor.entity_type == "realm"

    def test_short_chain_is_padded(self) -> None:
        """Test a chain shorter than the target is padded with holes."""
        descriptor = MigrationDescriptor(target_version=3, migrators=[add_attributes])

        assert descriptor.migrators == (add_attributes, None, None)

    def test_zero_target(self) -> None:
        """Test a descriptor for a type that never changed."""
        descriptor = MigrationDescriptor(target_version=0)

        assert descriptor.migrators == ()
        assert descriptor.steps() == []

    def test_long_chain_rejected(self) -> None:
        """Test migrators past the target version are a configuration error."""
        with pytest.raises(RegistryConfigurationError, match="never run"):
            MigrationDescriptor(
                target_version=1,
                migrators=(add_attributes, add_attributes),
            )

    @pytest.mark.parametrize("target", [-1, "2", 1.5, None, False])
    def test_invalid_target_rejected(self, target: Any) -> None:
        """Test target version must be a non-negative integer."""
        with pytest.raises(RegistryConfigurationError):
            MigrationDescriptor(target_version=target)

    def test_non_callable_migrator_rejected(self) -> None:
        """Test chain entries must be callables or holes."""
        with pytest.raises(RegistryConfigurationError, match="not callable"):
            MigrationDescriptor(target_version=2, migrators=(add_attributes, "oops"))

    def test_descriptor_is_frozen(self) -> None:
        """Test descriptors cannot be reassigned."""
        descriptor = MigrationDescriptor(target_version=1)

        with pytest.raises(AttributeError):
            descriptor.target_version = 2  # type: ignore[misc]

    def test_migrator_for(self) -> None:
        """Test slot lookup."""
        descriptor = MigrationDescriptor(target_version=2, migrators=(None, add_attributes))

        assert descriptor.migrator_for(0) is None
        assert descriptor.migrator_for(1) is add_attributes

        with pytest.raises(IndexError):
            descriptor.migrator_for(2)
        with pytest.raises(IndexError):
            descriptor.migrator_for(-1)

    def test_steps(self) -> None:
        """Test listing chain steps."""
        descriptor = MigrationDescriptor(target_version=2, migrators=(add_attributes,))

        steps = descriptor.steps()

        assert steps == [
            MigrationStep(0, 1, "add_attributes"),
            MigrationStep(1, 2, None),
        ]
        assert steps[0].identity is False
        assert steps[1].identity is True

    def test_to_dict(self) -> None:
        """Test serializing a descriptor."""
        descriptor = MigrationDescriptor(
            target_version=1,
            migrators=(add_attributes,),
            entity_type="realm",
        )

        data = descriptor.to_dict()

        assert data["entity_type"] == "realm"
        assert data["target_version"] == 1
        assert data["steps"] == [
            {
                "from_version": 0,
                "to_version": 1,
                "migrator": "add_attributes",
                "identity": False,
            }
        ]


class TestMigratableEntity:
    """Tests for the MigratableEntity protocol."""

    def test_entity_class_matches_protocol(self) -> None:
        """Test a class with the chain attributes satisfies the protocol."""

        class Realm:
            ENTITY_TYPE = "realm"
            SCHEMA_VERSION = 1
            MIGRATORS = (add_attributes,)

        assert isinstance(Realm, MigratableEntity)

    def test_migrators_optional(self) -> None:
        """Test a class without MIGRATORS still satisfies the protocol."""

        class Group:
            ENTITY_TYPE = "group"
            SCHEMA_VERSION = 0

        assert isinstance(Group, MigratableEntity)

    def test_plain_class_does_not_match(self) -> None:
        """Test a class without chain attributes is rejected."""

        class Plain:
            pass

        assert not isinstance(Plain, MigratableEntity)


class TestMigrationConfig:
    """Tests for MigrationConfig."""

    def test_default_config(self) -> None:
        """Test default configuration."""
        config = MigrationConfig()

        assert config.copy_documents is False
        assert config.registry_path is None

    def test_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test reading configuration from the environment."""
        monkeypatch.setenv("TREEMIGRATE_REGISTRY", "app.migrations:registry")
        monkeypatch.setenv("TREEMIGRATE_COPY_DOCUMENTS", "Yes")

        config = MigrationConfig.from_env()

        assert config.registry_path == "app.migrations:registry"
        assert config.copy_documents is True

    def test_from_env_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test environment defaults."""
        monkeypatch.delenv("TREEMIGRATE_REGISTRY", raising=False)
        monkeypatch.setenv("TREEMIGRATE_COPY_DOCUMENTS", "0")

        config = MigrationConfig.from_env()

        assert config.registry_path is None
        assert config.copy_documents is False


class TestMigrationExceptions:
    """Tests for migration exceptions."""

    def test_incompatible_version_error(self) -> None:
        """Test IncompatibleVersionError."""
        error = IncompatibleVersionError(5, 3, "client")

        assert error.stored_version == 5
        assert error.supported_version == 3
        assert error.entity_type == "client"
        assert "client" in str(error)
        assert isinstance(error, MigrationError)

    def test_incompatible_version_without_entity(self) -> None:
        """Test IncompatibleVersionError without an entity type."""
        error = IncompatibleVersionError(5, 3)

        assert error.entity_type is None
        assert str(error).startswith("Incompatible entity version")

    def test_missing_migration_path_error(self) -> None:
        """Test MissingMigrationPathError."""
        single = MissingMigrationPathError("role")
        several = MissingMigrationPathError({"role", "group"})

        assert single.entity_types == ["role"]
        assert several.entity_types == ["group", "role"]
        assert "no migration path" in str(several).lower()
        assert "group, role" in str(several)

    def test_migrator_error(self) -> None:
        """Test MigratorError."""
        error = MigratorError(2, "unexpected list at 'attributes'")

        assert error.from_version == 2
        assert error.to_version == 3
        assert "unexpected list" in str(error)
