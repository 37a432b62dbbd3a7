"""Message pipeline — scan, parse, fetch and extract every link in a message."""

import asyncio
import logging
from typing import Optional

from .cache import SingleFlightCache
from .errors import LinkError
from .extractor import extract
from .fetcher import ByteTransport, ContentFetcher, HttpxTransport
from .models import LinkOutcome, MessageResult
from .parser import parse_link
from .scanner import scan_links

logger = logging.getLogger("ghlines.core")


def summarize(outcomes: list[LinkOutcome]) -> MessageResult:
    """Keep successful outcomes, in order, and total their displayed lines."""
    result = MessageResult()
    for outcome in outcomes:
        if outcome.ok:
            result.msg_list.append(outcome.entry)
            result.total_lines += outcome.lines
    return result


class LineCore:
    """Resolves line permalinks found in chat messages.

    Per-link failures (any ``LinkError``) drop that link and nothing else.
    Other exceptions are real faults and propagate to the caller.
    """

    def __init__(self, fetcher: ContentFetcher):
        self.fetcher = fetcher

    @classmethod
    def from_settings(cls, settings, transport: Optional[ByteTransport] = None) -> "LineCore":
        """Build a core wired with an HTTP transport and a shared cache."""
        cache = SingleFlightCache(
            ttl_seconds=settings.cache_ttl_seconds,
            max_entries=settings.cache_max_entries,
        )
        fetcher = ContentFetcher(
            transport or HttpxTransport(user_agent=settings.user_agent),
            timeout=settings.fetch_timeout,
            max_bytes=settings.max_file_bytes,
            max_concurrent=settings.max_concurrent_fetches,
            cache=cache,
        )
        return cls(fetcher)

    async def resolve(self, text: str) -> list[LinkOutcome]:
        """Resolve every candidate link in text, failures included.

        Outcomes are returned in the order the candidates appear in the
        text, whatever order the fetches complete in.
        """
        outcomes: list[LinkOutcome] = []
        pending: list[LinkOutcome] = []

        for index, candidate in enumerate(scan_links(text)):
            outcome = LinkOutcome(index=index, candidate=candidate)
            outcomes.append(outcome)
            try:
                outcome.link = parse_link(candidate)
            except LinkError as e:
                self._record_failure(outcome, e)
                continue
            pending.append(outcome)

        if pending:
            await asyncio.gather(*(self._fetch_and_extract(o) for o in pending))
        return outcomes

    async def _fetch_and_extract(self, outcome: LinkOutcome):
        try:
            content = await self.fetcher.fetch(outcome.link)
            outcome.entry, outcome.lines = extract(content, outcome.link)
        except LinkError as e:
            self._record_failure(outcome, e)

    @staticmethod
    def _record_failure(outcome: LinkOutcome, error: LinkError):
        outcome.error = error
        logger.debug(
            f"Dropped link #{outcome.index} [{error.reason.value}] "
            f"{outcome.candidate[:200]}: {error}"
        )

    async def handle_message(self, text: str) -> MessageResult:
        """Resolve a message into display entries and a total line count.

        Args:
            text: Raw message text

        Returns:
            MessageResult with one entry per resolved link, in source order
        """
        outcomes = await self.resolve(text)
        result = summarize(outcomes)
        if outcomes:
            logger.debug(
                f"Resolved {len(result.msg_list)}/{len(outcomes)} links, "
                f"{result.total_lines} lines"
            )
        return result

    async def aclose(self):
        """Release network resources."""
        await self.fetcher.aclose()
