"""Core CLI commands for Treemigrate.

This package contains the commands:
    - describe: Show registered migration chains
    - migrate: Migrate a JSON document file
    - validate: Dry-run a sample document through a chain
"""

import typer

from treemigrate.cli_modules.core.describe import describe_cmd
from treemigrate.cli_modules.core.migrate import migrate_cmd
from treemigrate.cli_modules.core.validate import validate_cmd


def register_commands(parent_app: typer.Typer) -> None:
    """Register core commands with the parent app.

    Args:
        parent_app: Parent Typer app to register commands to
    """
    parent_app.command(name="describe")(describe_cmd)
    parent_app.command(name="migrate")(migrate_cmd)
    parent_app.command(name="validate")(validate_cmd)


__all__ = [
    "register_commands",
    "describe_cmd",
    "migrate_cmd",
    "validate_cmd",
]
