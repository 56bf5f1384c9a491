"""synapse ingest: save a URL, a piece of text, or an image.

Input dispatch:
  http(s):// URL      → YouTube / product / article extraction
  --image PATH        → encoded as a data URI, then OCR + vision analysis
  anything else       → todo list, quote, or classified free text
  "-"                 → read the text from stdin
"""

from __future__ import annotations

import base64
import mimetypes
import sys
from pathlib import Path
from typing import Annotated

import typer

from synapse.cli.errors import err_empty_input, err_image_unreadable, warn_degraded
from synapse.cli.session import DEFAULT_DB, DEFAULT_OWNER, DbOption, OwnerOption, console, open_service
from synapse.errors import IngestionError
from synapse.ingest.base import ExtractionStatus

_IMAGE_TYPES = {"image/png", "image/jpeg", "image/gif", "image/webp", "image/bmp"}


def ingest_cmd(
    content: Annotated[
        str | None,
        typer.Argument(help="URL or text to save. Use '-' to read from stdin."),
    ] = None,
    image: Annotated[
        Path | None,
        typer.Option("--image", "-i", help="Image file to save (OCR + description)."),
    ] = None,
    db: DbOption = DEFAULT_DB,
    owner: OwnerOption = DEFAULT_OWNER,
) -> None:
    """Save something to your knowledge base."""
    if image is not None:
        raw = _image_data_uri(image)
    elif content == "-":
        raw = sys.stdin.read()
    else:
        raw = content or ""

    if not raw.strip():
        console.print(err_empty_input())
        raise typer.Exit(1)

    with open_service(db, create=True) as (service, _cfg):
        try:
            result = service.ingest(owner, raw)
        except IngestionError as exc:
            console.print(f"[red]Error:[/] {exc}")
            raise typer.Exit(1) from exc

    item = result.item
    console.print(f"[green]✓ Saved[/] [bold]{item.title}[/] [dim]({item.kind.value}, id {item.id})[/]")
    if result.status is not ExtractionStatus.OK:
        console.print(warn_degraded(result.status.value, result.issues))

    summary = item.attributes.get("ai_summary")
    if summary:
        console.print(f"  [dim]{summary}[/]")


def _image_data_uri(path: Path) -> str:
    mime, _ = mimetypes.guess_type(path.name)
    if mime not in _IMAGE_TYPES or not path.is_file():
        console.print(err_image_unreadable(str(path)))
        raise typer.Exit(1)
    encoded = base64.b64encode(path.read_bytes()).decode("ascii")
    return f"data:{mime};base64,{encoded}"
