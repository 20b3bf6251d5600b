"""CLI error handling utilities.

This module provides standardized error handling for CLI commands.
"""

from __future__ import annotations

import functools
import logging
from enum import Enum
from pathlib import Path
from typing import Any, Callable, TypeVar

import typer

from treemigrate.migration import (
    DocumentDecodeError,
    IncompatibleVersionError,
    MigrationError,
    MissingMigrationPathError,
    RegistryConfigurationError,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Error Codes
# =============================================================================


class ErrorCode(Enum):
    """Standard CLI error codes."""

    # General errors (1-9)
    GENERAL_ERROR = 1
    USAGE_ERROR = 2

    # File errors (10-19)
    FILE_NOT_FOUND = 10
    FILE_NOT_READABLE = 11
    FILE_NOT_WRITABLE = 12
    INVALID_FILE_FORMAT = 13

    # Validation errors (20-29)
    VALIDATION_FAILED = 20

    # Configuration errors (30-39)
    CONFIG_INVALID = 31

    # Data errors (50-59)
    DATA_ERROR = 50


# =============================================================================
# Exception Classes
# =============================================================================


class CLIError(Exception):
    """Base exception for CLI errors.

    Attributes:
        message: Error message
        code: Error code
        details: Additional error details
        hint: Helpful hint for resolution
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.GENERAL_ERROR,
        details: dict[str, Any] | None = None,
        hint: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}
        self.hint = hint

    def __str__(self) -> str:
        """Get string representation."""
        parts = [self.message]
        if self.hint:
            parts.append(f"Hint: {self.hint}")
        return "\n".join(parts)


class FileNotFoundError(CLIError):
    """Error when a file is not found."""

    def __init__(self, path: Path | str, hint: str | None = None) -> None:
        super().__init__(
            message=f"File not found: {path}",
            code=ErrorCode.FILE_NOT_FOUND,
            details={"path": str(path)},
            hint=hint or "Check that the file exists and the path is correct.",
        )
        self.path = path


class ValidationError(CLIError):
    """Error when a migration chain fails on a sample document."""

    def __init__(
        self,
        message: str,
        errors: list[str] | None = None,
        hint: str | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code=ErrorCode.VALIDATION_FAILED,
            details={"errors": errors or []},
            hint=hint,
        )
        self.errors = errors or []


class ConfigurationError(CLIError):
    """Error with the registry configuration."""

    def __init__(self, message: str, hint: str | None = None) -> None:
        super().__init__(
            message=message,
            code=ErrorCode.CONFIG_INVALID,
            hint=hint or "Check the --registry path and the registered entity types.",
        )


class DataError(CLIError):
    """Error with document data."""

    def __init__(
        self,
        message: str,
        data_path: Path | str | None = None,
        hint: str | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code=ErrorCode.DATA_ERROR,
            details={"data_path": str(data_path) if data_path else None},
            hint=hint,
        )
        self.data_path = data_path


def from_migration_error(error: MigrationError) -> CLIError:
    """Convert a migration error into the matching CLI error."""
    if isinstance(error, (MissingMigrationPathError, RegistryConfigurationError)):
        return ConfigurationError(str(error))
    if isinstance(error, DocumentDecodeError):
        return CLIError(str(error), code=ErrorCode.INVALID_FILE_FORMAT)
    if isinstance(error, IncompatibleVersionError):
        return DataError(
            str(error),
            hint="The document was written by a newer release; upgrade before reading it.",
        )
    return DataError(str(error))


# =============================================================================
# Decorator
# =============================================================================


F = TypeVar("F", bound=Callable[..., Any])


def _report(error: CLIError) -> None:
    typer.echo(typer.style(f"Error: {error.message}", fg="red"), err=True)
    if error.hint:
        typer.echo(typer.style(f"Hint: {error.hint}", fg="yellow"), err=True)
    for message in error.details.get("errors", []):
        typer.echo(f"  - {message}", err=True)


def error_boundary(func: F) -> F:
    """Simple error boundary decorator.

    Converts CLI and migration errors into an error message and exit code.

    Args:
        func: Function to wrap

    Returns:
        Wrapped function
    """

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except typer.Exit:
            raise
        except CLIError as e:
            _report(e)
            raise typer.Exit(e.code.value)
        except MigrationError as e:
            cli_error = from_migration_error(e)
            _report(cli_error)
            raise typer.Exit(cli_error.code.value)
        except Exception as e:
            logger.exception("Unexpected error")
            typer.echo(typer.style(f"Error: {e}", fg="red"), err=True)
            raise typer.Exit(ErrorCode.GENERAL_ERROR.value)

    return wrapper  # type: ignore


# =============================================================================
# Validation Helpers
# =============================================================================


def require_file(path: Path, description: str = "File") -> Path:
    """Require that a file exists.

    Raises:
        FileNotFoundError: If file doesn't exist
    """
    if not path.is_file():
        raise FileNotFoundError(path, hint=f"{description} must be an existing file.")
    return path


def read_file(path: Path, description: str = "File") -> bytes:
    """Read an existing file.

    Raises:
        FileNotFoundError: If file doesn't exist
        CLIError: If file can't be read
    """
    require_file(path, description)
    try:
        return path.read_bytes()
    except OSError as e:
        raise CLIError(
            f"Cannot read {path}: {e}",
            code=ErrorCode.FILE_NOT_READABLE,
            details={"path": str(path)},
        ) from e
