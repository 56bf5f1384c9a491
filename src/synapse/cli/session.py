"""Shared CLI plumbing: options, config loading, and service lifetime."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from synapse.cli.errors import err_config, err_no_db
from synapse.config import ConfigError, SynapseConfig, load_config
from synapse.db.connection import Database
from synapse.db.schema import initialize
from synapse.service import SynapseService, build_service

console = Console()

DEFAULT_DB = Path(".synapse.db")
DEFAULT_OWNER = "local"

DbOption = Annotated[
    Path,
    typer.Option("--db", help="Path to the item database (created on first save)."),
]
OwnerOption = Annotated[
    str,
    typer.Option(
        "--owner",
        envvar="SYNAPSE_OWNER",
        help="Owner whose items are read and written.",
    ),
]


def load_cli_config() -> SynapseConfig:
    """Load config from CWD, exiting with an actionable message on error."""
    try:
        return load_config()
    except ConfigError as exc:
        console.print(err_config(str(exc)))
        raise typer.Exit(1) from exc


@contextmanager
def open_service(db: Path, *, create: bool = False) -> Iterator[tuple[SynapseService, SynapseConfig]]:
    """Yield a ready service over *db*; the connection and OCR engine are closed after.

    Args:
        db: Database path.
        create: Create the database if missing; otherwise exit with an error.
    """
    if not create and not db.exists():
        console.print(err_no_db(str(db)))
        raise typer.Exit(1)

    cfg = load_cli_config()
    conn = Database(db).connect()
    try:
        initialize(conn)
        with build_service(cfg, conn) as service:
            yield service, cfg
    finally:
        conn.close()
