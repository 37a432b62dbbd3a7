"""GHLines CLI — command line interface."""

import click
from ghlines import __version__
from .shared import console


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="ghlines")
@click.pass_context
def cli(ctx):
    """GHLines — show the lines behind GitHub/GitLab permalinks"""
    if ctx.invoked_subcommand is None:
        _show_help()


def _show_help():
    """Show all available commands grouped by category."""
    console.print(f"[bold]GHLines v{__version__}[/bold] — the lines behind code permalinks\n")

    groups = {
        "Bot": [
            ("start", "Start the Telegram bot"),
        ],
        "Tools": [
            ("resolve", "Resolve the permalinks in a piece of text"),
        ],
    }

    for category, commands in groups.items():
        console.print(f"  [bold cyan]{category}[/bold cyan]")
        for name, desc in commands:
            console.print(f"    [bold]ghlines {name:10s}[/bold] {desc}")
        console.print()

    console.print("[dim]Run 'ghlines <command> --help' for details on a specific command.[/dim]")


# Import all command modules (registers commands onto cli group)
from . import cmd_start  # noqa: E402, F401
from . import cmd_resolve  # noqa: E402, F401


@cli.command(name="help", hidden=True)
def help_cmd():
    """Show all available commands."""
    _show_help()
