"""synapse status: database overview and recently saved items."""

from __future__ import annotations

from collections import Counter
from pathlib import Path
from typing import Annotated

import typer
from rich.panel import Panel
from rich.table import Table

from synapse.cli.session import DEFAULT_DB, DEFAULT_OWNER, DbOption, OwnerOption, console, open_service
from synapse.db.models import ContentItem


def status_cmd(
    recent: Annotated[int, typer.Option("--recent", "-n", help="Recent items to list.")] = 10,
    db: DbOption = DEFAULT_DB,
    owner: OwnerOption = DEFAULT_OWNER,
) -> None:
    """Show item counts per type and the most recent saves."""
    with open_service(db) as (service, cfg):
        items = service.list_items(owner)

    _show_summary_panel(db, owner, items, cfg.generation.model)
    if items:
        _show_recent_table(items[:recent])


# ---------------------------------------------------------------------------
# Panel renderers
# ---------------------------------------------------------------------------


def _show_summary_panel(db: Path, owner: str, items: list[ContentItem], model: str) -> None:
    size_mb = db.stat().st_size / (1024 * 1024) if db.exists() else 0.0
    counts = Counter(item.kind.value for item in items)

    lines = [
        f"Database:  {db} ({size_mb:.1f} MB)",
        f"Owner:     [bold]{owner}[/]",
        f"Model:     {model}",
        f"Items:     [bold]{len(items)}[/]",
    ]
    for kind, n in sorted(counts.items()):
        lines.append(f"  {kind:<8} {n}")
    if not items:
        lines.append("[dim]Nothing saved yet.[/]")

    console.print(Panel("\n".join(lines), title="[bold]Knowledge Base[/]", expand=False))


def _show_recent_table(items: list[ContentItem]) -> None:
    table = Table(show_header=True, header_style="bold", title="Recent")
    table.add_column("ID", justify="right")
    table.add_column("Type")
    table.add_column("Title")
    table.add_column("Saved", style="dim")
    for item in items:
        saved = item.created_at.astimezone().strftime("%Y-%m-%d %H:%M") if item.created_at else ""
        table.add_row(str(item.id), item.kind.value, item.title, saved)
    console.print(table)
