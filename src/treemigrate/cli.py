"""Command-line interface for Treemigrate."""

import logging
from typing import Annotated

import typer

from treemigrate import __version__
from treemigrate.cli_modules import core

app = typer.Typer(
    name="treemigrate",
    help="Per-entity schema migration for versioned JSON documents",
    add_completion=False,
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"treemigrate {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging"),
    ] = False,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show the version and exit",
        ),
    ] = False,
) -> None:
    """Inspect migration registries and migrate stored documents."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


core.register_commands(app)


if __name__ == "__main__":
    app()
