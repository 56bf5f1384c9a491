"""synapse ask: chat with your knowledge base."""

from __future__ import annotations

from typing import Annotated

import typer
from rich.markdown import Markdown

from synapse.cli.errors import err_no_api_key
from synapse.cli.session import DEFAULT_DB, DEFAULT_OWNER, DbOption, OwnerOption, console, open_service
from synapse.rag.assembler import ChatMessage, suggested_questions
from synapse.rag.llm_client import validate_api_key


def ask_cmd(
    question: Annotated[
        str | None,
        typer.Argument(help="Question to ask. Omit for an interactive session."),
    ] = None,
    db: DbOption = DEFAULT_DB,
    owner: OwnerOption = DEFAULT_OWNER,
) -> None:
    """Ask questions about what you have saved."""
    with open_service(db) as (service, cfg):
        try:
            validate_api_key(cfg.generation.model)
        except EnvironmentError as exc:
            console.print(err_no_api_key(cfg.generation.model.split("/")[0]))
            raise typer.Exit(1) from exc

        if question is not None:
            reply = service.ask(owner, question)
            _print_reply(reply.response, reply.cited_items)
            return

        console.print("[bold]Try asking:[/]")
        for suggestion in suggested_questions(service.list_items(owner)):
            console.print(f"  • {suggestion}")
        console.print("[dim]Empty line to quit.[/]\n")

        history: list[ChatMessage] = []
        while True:
            message = typer.prompt("you", default="", show_default=False).strip()
            if not message:
                break
            reply = service.ask(owner, message, history)
            _print_reply(reply.response, reply.cited_items)
            history.append(ChatMessage(role="user", content=message))
            history.append(ChatMessage(role="assistant", content=reply.response))


def _print_reply(response: str, cited: list[int]) -> None:
    console.print(Markdown(response))
    if cited:
        console.print(f"[dim]Cited: {', '.join(f'Item {n}' for n in cited)}[/]")
