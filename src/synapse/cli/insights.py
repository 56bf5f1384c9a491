"""synapse insights: regenerate AI summaries for saved articles and notes."""

from __future__ import annotations

from typing import Annotated

import typer

from synapse.cli.errors import err_item_not_found, err_no_api_key
from synapse.cli.session import DEFAULT_DB, DEFAULT_OWNER, DbOption, OwnerOption, console, open_service
from synapse.errors import ItemNotFoundError
from synapse.rag.llm_client import validate_api_key


def insights_cmd(
    item_id: Annotated[
        int | None,
        typer.Option("--item", help="Only this item (default: every article and note)."),
    ] = None,
    db: DbOption = DEFAULT_DB,
    owner: OwnerOption = DEFAULT_OWNER,
) -> None:
    """Regenerate summaries, key points and topics."""
    with open_service(db) as (service, cfg):
        try:
            validate_api_key(cfg.generation.model)
        except EnvironmentError as exc:
            console.print(err_no_api_key(cfg.generation.model.split("/")[0]))
            raise typer.Exit(1) from exc

        try:
            with console.status("Generating insights..."):
                report = service.regenerate_insights(owner, item_id)
        except ItemNotFoundError as exc:
            console.print(err_item_not_found(exc.args[0]))
            raise typer.Exit(1) from exc

    colour = "yellow" if report.errors else "green"
    console.print(f"[{colour}]{report.message}[/]")
    if report.skipped:
        console.print(f"  [dim]{report.skipped} skipped (not an article or note, or too short)[/]")
