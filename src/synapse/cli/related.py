"""synapse related: items most similar to a saved item."""

from __future__ import annotations

from typing import Annotated

import typer
from rich.table import Table

from synapse.cli.errors import err_item_not_found
from synapse.cli.session import DEFAULT_DB, DEFAULT_OWNER, DbOption, OwnerOption, console, open_service
from synapse.errors import ItemNotFoundError


def related_cmd(
    item_id: Annotated[int, typer.Argument(help="Id of the saved item.")],
    db: DbOption = DEFAULT_DB,
    owner: OwnerOption = DEFAULT_OWNER,
) -> None:
    """Show items related to ITEM_ID."""
    with open_service(db) as (service, _cfg):
        try:
            related = service.find_related(owner, item_id)
        except ItemNotFoundError as exc:
            console.print(err_item_not_found(item_id))
            raise typer.Exit(1) from exc

    if not related:
        console.print("[yellow]No related items found.[/]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("ID", justify="right")
    table.add_column("Type")
    table.add_column("Title")
    table.add_column("Connection")
    for rel in related:
        table.add_row(
            str(rel.id),
            rel.kind.value,
            rel.title,
            f"{rel.strength} ({rel.similarity:.0%})",
        )
    console.print(table)
