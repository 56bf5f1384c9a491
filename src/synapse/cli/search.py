"""synapse search: natural-language search over saved items."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated

import typer
from rich.table import Table

from synapse.cli.session import DEFAULT_DB, DEFAULT_OWNER, DbOption, OwnerOption, console, open_service
from synapse.db.models import ContentKind
from synapse.rag.retriever import SearchFilters, SearchResponse


def search_cmd(
    query: Annotated[str, typer.Argument(help='e.g. "python videos from last week"')],
    kind: Annotated[
        ContentKind | None,
        typer.Option("--type", "-t", help="Only this kind (ignored if the query names one)."),
    ] = None,
    date_from: Annotated[
        datetime | None,
        typer.Option("--from", help="Saved at or after (ignored if the query names a date range)."),
    ] = None,
    date_to: Annotated[
        datetime | None,
        typer.Option("--to", help="Saved at or before."),
    ] = None,
    limit: Annotated[int, typer.Option("--limit", "-n", help="Maximum results shown.")] = 10,
    db: DbOption = DEFAULT_DB,
    owner: OwnerOption = DEFAULT_OWNER,
) -> None:
    """Search your knowledge base."""
    filters = SearchFilters(kind=kind, date_from=_aware(date_from), date_to=_aware(date_to))
    with open_service(db) as (service, _cfg):
        response = service.search(owner, query, filters)

    _print_filters(response)
    if not response.results:
        console.print("[yellow]No matching items.[/]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("ID", justify="right")
    table.add_column("Type")
    table.add_column("Title")
    table.add_column("Score", justify="right")
    for scored in response.results[:limit]:
        table.add_row(
            str(scored.item_id),
            scored.item.kind.value,
            scored.item.title,
            f"{scored.score:.2f}",
        )
    console.print(table)


def _print_filters(response: SearchResponse) -> None:
    applied = response.applied_filters
    parts = []
    if applied.content_types:
        parts.append("type: " + ", ".join(k.value for k in applied.content_types))
    if applied.date_range:
        parts.append(f"date: {applied.date_range}")
    if applied.keywords:
        parts.append("keywords: " + " ".join(applied.keywords))
    if parts:
        console.print(f"[dim]{' | '.join(parts)}[/]")


def _aware(value: datetime | None) -> datetime | None:
    """Interpret naive CLI dates in local time."""
    if value is None or value.tzinfo is not None:
        return value
    return value.astimezone()
