"""Synapse CLI entry point."""

from __future__ import annotations

import importlib.metadata
import logging
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler

from synapse.cli.ask import ask_cmd
from synapse.cli.ingest import ingest_cmd
from synapse.cli.insights import insights_cmd
from synapse.cli.related import related_cmd
from synapse.cli.search import search_cmd
from synapse.cli.status import status_cmd


def _installed_version() -> str:
    try:
        return importlib.metadata.version("synapse-capture")
    except importlib.metadata.PackageNotFoundError:
        return "dev"


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"synapse {_installed_version()}")
        raise typer.Exit()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


app = typer.Typer(
    name="synapse",
    help=(
        "Synapse: save anything, find it again.\n\n"
        "  synapse ingest   Save a URL, note, todo list, quote, or image.\n"
        "  synapse search   Natural-language search over what you saved.\n"
        "  synapse ask      Chat with your knowledge base."
    ),
    add_completion=False,
)


@app.callback()
def main_callback(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log extraction and model activity."),
    ] = False,
) -> None:
    """Synapse: personal knowledge capture."""
    _configure_logging(verbose)


app.command("ingest")(ingest_cmd)
app.command("search")(search_cmd)
app.command("related")(related_cmd)
app.command("insights")(insights_cmd)
app.command("ask")(ask_cmd)
app.command("status")(status_cmd)


@app.command("version")
def version_cmd() -> None:
    """Show the installed Synapse version."""
    typer.echo(f"synapse {_installed_version()}")


if __name__ == "__main__":
    app()
