"""Start command."""

import asyncio
import logging

import click

from . import cli
from .shared import console


@cli.command()
@click.option("--debug", is_flag=True, help="Enable debug logging")
def start(debug):
    """Start the Telegram bot."""
    from ghlines.config import load_settings
    from ghlines.main import run, setup_logging

    settings = load_settings()
    setup_logging(settings, logging.DEBUG if debug else logging.INFO)

    if not settings.telegram_bot_token:
        console.print("[red]No Telegram bot token configured.[/red]")
        console.print("[dim]Set GHLINES_TELEGRAM_BOT_TOKEN in the environment or .env[/dim]")
        raise SystemExit(1)

    console.print("[bold blue]Starting GHLines...[/bold blue]")
    asyncio.run(run(settings))
