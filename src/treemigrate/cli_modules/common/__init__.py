"""Shared CLI infrastructure: errors, options and output."""

from treemigrate.cli_modules.common.errors import (
    CLIError,
    ConfigurationError,
    DataError,
    ErrorCode,
    ValidationError,
    error_boundary,
    from_migration_error,
    read_file,
    require_file,
)
from treemigrate.cli_modules.common.options import (
    DocumentArg,
    EntityOpt,
    FromVersionOpt,
    OutputOpt,
    RegistryOpt,
    resolve_registry,
)
from treemigrate.cli_modules.common.output import (
    dump_document,
    print_registry,
    write_document,
)

__all__ = [
    # Errors
    "CLIError",
    "ConfigurationError",
    "DataError",
    "ErrorCode",
    "ValidationError",
    "error_boundary",
    "from_migration_error",
    "read_file",
    "require_file",
    # Options
    "DocumentArg",
    "EntityOpt",
    "FromVersionOpt",
    "OutputOpt",
    "RegistryOpt",
    "resolve_registry",
    # Output
    "dump_document",
    "print_registry",
    "write_document",
]
