"""Resolve command — run the link pipeline on a piece of text."""

import asyncio
import json

import click
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from . import cli
from .shared import console, enable_debug_logging


async def _resolve(settings, text: str):
    from ghlines.core.pipeline import LineCore

    core = LineCore.from_settings(settings)
    try:
        return await core.resolve(text)
    finally:
        await core.aclose()


@cli.command()
@click.argument("text")
@click.option("--json", "as_json", is_flag=True, help="Print the raw result as JSON")
@click.option("--verbose", "-v", is_flag=True, help="Also list links that could not be resolved")
@click.option("--debug", is_flag=True, help="Enable debug logging")
def resolve(text, as_json, verbose, debug):
    """Resolve the permalinks in TEXT (use - to read stdin)."""
    from ghlines.config import load_settings
    from ghlines.core.errors import describe_failure
    from ghlines.core.pipeline import summarize

    if debug:
        enable_debug_logging()
    if text == "-":
        text = click.get_text_stream("stdin").read()

    settings = load_settings()
    outcomes = asyncio.run(_resolve(settings, text))
    result = summarize(outcomes)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
        return

    if not outcomes:
        console.print("[dim]No code links found.[/dim]")
        return

    for outcome in outcomes:
        if not outcome.ok:
            continue
        link = outcome.link
        syntax = Syntax(
            outcome.entry.to_display,
            outcome.entry.extension or "text",
            line_numbers=True,
            start_line=link.start_line,
        )
        console.print(Panel(syntax, title=f"{link.owner}/{link.repo} {link.path}", title_align="left"))

    style = "red" if result.total_lines > settings.max_lines else "green"
    console.print(f"[bold]Total lines:[/bold] [{style}]{result.total_lines}[/{style}] (limit {settings.max_lines})")

    failures = [o for o in outcomes if not o.ok]
    if verbose and failures:
        table = Table(title="Unresolved links")
        table.add_column("#", justify="right")
        table.add_column("Link", overflow="fold")
        table.add_column("Reason")
        for outcome in failures:
            table.add_row(str(outcome.index + 1), outcome.candidate, describe_failure(outcome.error))
        console.print(table)
