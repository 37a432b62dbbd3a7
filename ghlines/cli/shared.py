"""Shared utilities for GHLines CLI commands."""

import logging

from rich.console import Console

console = Console()


def enable_debug_logging():
    """Send ghlines DEBUG logs to stderr."""
    logging.basicConfig(format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    logging.getLogger("ghlines").setLevel(logging.DEBUG)
