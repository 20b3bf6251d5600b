"""CLI modules for Treemigrate.

This package provides the modular CLI architecture:
    - common: Shared infrastructure (errors, options, output)
    - core: Core commands (describe, migrate, validate)

Usage:
    from treemigrate.cli_modules import core

    app = typer.Typer()
    core.register_commands(app)
"""

from treemigrate.cli_modules import core
from treemigrate.cli_modules.common import CLIError, ErrorCode, error_boundary

__all__ = [
    "core",
    "CLIError",
    "ErrorCode",
    "error_boundary",
]
