"""GHLines — Main entry point."""

import asyncio
import logging
import os

from .config import GHLinesSettings, load_settings
from .channels.telegram import TelegramChannel
from .core.pipeline import LineCore
from .ratelimit import init_rate_limiter_from_settings

_log_format = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

logger = logging.getLogger("ghlines")


def setup_logging(settings: GHLinesSettings, level: int = logging.INFO):
    """Log to stderr and, if configured, to a file."""
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if settings.log_file:
        handlers.append(logging.FileHandler(os.path.expanduser(settings.log_file), encoding="utf-8"))
    logging.basicConfig(level=level, format=_log_format, handlers=handlers)


async def run(settings: GHLinesSettings | None = None):
    """Main run loop."""
    settings = settings or load_settings()
    core = LineCore.from_settings(settings)
    telegram = None

    try:
        if not settings.telegram_bot_token:
            logger.error("No Telegram bot token configured. Set GHLINES_TELEGRAM_BOT_TOKEN in .env.")
            return

        init_rate_limiter_from_settings(settings)
        telegram = TelegramChannel(core, settings.telegram_bot_token, settings)
        await telegram.start()

        # Keep alive
        logger.info("GHLines is running. Press Ctrl+C to stop.")
        while True:
            await asyncio.sleep(1)

    except KeyboardInterrupt:
        pass
    except Exception as e:
        logger.critical(f"Fatal error: {type(e).__name__}: {e}", exc_info=True)
    finally:
        if telegram:
            await telegram.stop()
        await core.aclose()


def main():
    """Entry point."""
    settings = load_settings()
    setup_logging(settings)
    asyncio.run(run(settings))


if __name__ == "__main__":
    main()
