"""Synapse rich error messages with actionable feedback.

Every error shown to the user must contain:
  1. What went wrong (clear cause)
  2. The exact action the user should take to fix it

Usage:
    from synapse.cli.errors import err_no_db
    console.print(err_no_db(".synapse.db"))
    raise typer.Exit(1)
"""

from __future__ import annotations


def err_no_api_key(provider: str) -> str:
    """No API key for *provider*.

    Example:
        No API key for 'groq'. Set:  export GROQ_API_KEY=...
    """
    env_map = {
        "openai": "OPENAI_API_KEY",
        "anthropic": "ANTHROPIC_API_KEY",
        "groq": "GROQ_API_KEY",
        "gemini": "GEMINI_API_KEY",
        "mistral": "MISTRAL_API_KEY",
        "together_ai": "TOGETHERAI_API_KEY",
    }
    env_var = env_map.get(provider.lower(), f"{provider.upper()}_API_KEY")
    return (
        f"[red]Error:[/] No API key for '{provider}'.\n"
        f"  Set:  export {env_var}=..."
    )


def err_no_db(db_path: str = ".synapse.db") -> str:
    """No database at *db_path*."""
    return (
        f"[red]Error:[/] No database found at '{db_path}'.\n"
        "  Save something first:  synapse ingest \"...\""
    )


def err_empty_input() -> str:
    return (
        "[red]Error:[/] Nothing to save.\n"
        "  Pass text or a URL:  synapse ingest \"https://...\"\n"
        "  Or an image file:    synapse ingest --image screenshot.png"
    )


def err_item_not_found(item_id: int) -> str:
    return (
        f"[red]Error:[/] Item {item_id} does not exist.\n"
        "  Run:  synapse status  to see saved item ids."
    )


def err_image_unreadable(path: str) -> str:
    return (
        f"[red]Error:[/] Cannot read image file: '{path}'\n"
        "  Supported formats: png, jpg, jpeg, gif, webp, bmp."
    )


def err_config(message: str) -> str:
    return (
        f"[red]Error:[/] Invalid configuration.\n"
        f"  {message}\n"
        "  Fix synapse.yaml or ~/.synapse/config.yaml and retry."
    )


def warn_degraded(status: str, issues: list[str]) -> str:
    """Item saved, but extraction lost data."""
    lines = "\n".join(f"    - {issue}" for issue in issues)
    return f"[yellow]⚠ Saved with {status} extraction:[/]\n{lines}"
