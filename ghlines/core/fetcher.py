"""Content fetcher — raw file bytes for a parsed link.

Network access goes through a ``ByteTransport`` so the pipeline can be
driven by a fake in tests. The default transport is httpx-based, streams
the body and enforces both a deadline and a size cap.
"""

import asyncio
import json
import logging
import re
from dataclasses import dataclass
from functools import partial
from typing import Optional, Protocol, runtime_checkable

import httpx

from .cache import SingleFlightCache
from .errors import FetchTimeout, NetworkFailure, NotFound, PayloadTooLarge
from .models import FetchedContent, HostKind, ParsedLink

logger = logging.getLogger("ghlines.fetcher")

DEFAULT_TIMEOUT = 5.0
DEFAULT_MAX_BYTES = 1_048_576  # 1 MiB
DEFAULT_MAX_CONCURRENT = 6
DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; GHLinesBot/0.4)"

_RAW_URL_TEMPLATES = {
    HostKind.GITHUB: "https://raw.githubusercontent.com/{owner}/{repo}/{ref}/{path}",
    HostKind.GITLAB: "https://gitlab.com/{owner}/{repo}/-/raw/{ref}/{path}",
}
_GIST_API_URL = "https://api.github.com/gists/{gist_id}"
_GIST_RAW_PREFIX = "https://gist.githubusercontent.com/"


@dataclass(frozen=True)
class RawResponse:
    status_code: int
    content: bytes = b""
    encoding: Optional[str] = None


@runtime_checkable
class ByteTransport(Protocol):
    """Fetch bytes at a URL with a deadline and a size cap.

    Implementations return the HTTP status as-is and raise ``FetchTimeout``,
    ``NetworkFailure`` or ``PayloadTooLarge`` for transport-level problems.
    """

    async def get(self, url: str, *, timeout: float, max_bytes: int) -> RawResponse:
        ...

    async def aclose(self) -> None:
        ...


class HttpxTransport:
    """ByteTransport backed by a shared httpx.AsyncClient."""

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        user_agent: str = DEFAULT_USER_AGENT,
    ):
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            follow_redirects=True,
            headers={"User-Agent": user_agent, "Accept": "*/*"},
        )

    async def get(self, url: str, *, timeout: float, max_bytes: int) -> RawResponse:
        # httpx timeouts are per phase; wait_for bounds the whole transfer
        # so a server dripping bytes cannot hold the link forever.
        try:
            return await asyncio.wait_for(self._download(url, timeout, max_bytes), timeout)
        except asyncio.TimeoutError as e:
            raise FetchTimeout(f"{url} took longer than {timeout}s") from e
        except httpx.TimeoutException as e:
            raise FetchTimeout(f"{url}: {type(e).__name__}") from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise NetworkFailure(f"{url}: {type(e).__name__}: {e}") from e

    async def _download(self, url: str, timeout: float, max_bytes: int) -> RawResponse:
        async with self._client.stream("GET", url, timeout=timeout) as response:
            if response.status_code >= 400:
                return RawResponse(status_code=response.status_code)

            declared = response.headers.get("content-length", "")
            if declared.isdigit() and int(declared) > max_bytes:
                raise PayloadTooLarge(f"{declared} bytes declared, limit is {max_bytes}")

            chunks: list[bytes] = []
            total = 0
            async for chunk in response.aiter_bytes():
                total += len(chunk)
                if total > max_bytes:
                    raise PayloadTooLarge(f"body exceeds {max_bytes} bytes")
                chunks.append(chunk)

            return RawResponse(
                status_code=response.status_code,
                content=b"".join(chunks),
                encoding=response.charset_encoding,
            )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


def raw_url(link: ParsedLink) -> str:
    """Raw-content endpoint for a GitHub or GitLab link."""
    template = _RAW_URL_TEMPLATES.get(link.host)
    if template is None:
        raise ValueError(f"No raw URL template for {link.host.value}")
    return template.format(owner=link.owner, repo=link.repo, ref=link.ref, path=link.path)


def gist_slug(filename: str) -> str:
    """Anchor slug GitHub generates for a gist file ("My File.py" → "my-file-py")."""
    return re.sub(r"[^\w-]", "-", filename.lower())


class ContentFetcher:
    """Fetches file content for parsed links.

    Usage:
        fetcher = ContentFetcher(HttpxTransport(), cache=SingleFlightCache())
        content = await fetcher.fetch(link)
    """

    def __init__(
        self,
        transport: ByteTransport,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        max_bytes: int = DEFAULT_MAX_BYTES,
        max_concurrent: int = DEFAULT_MAX_CONCURRENT,
        cache: Optional[SingleFlightCache] = None,
    ):
        """Initialize the fetcher.

        Args:
            transport: Byte transport used for every request
            timeout: Per-request deadline in seconds
            max_bytes: Maximum accepted file size
            max_concurrent: Maximum simultaneous outbound requests
            cache: Optional shared cache keyed by ParsedLink.cache_key
        """
        self.transport = transport
        self.timeout = timeout
        self.max_bytes = max_bytes
        self.cache = cache
        self._semaphore = asyncio.Semaphore(max(1, max_concurrent))

    async def fetch(self, link: ParsedLink) -> FetchedContent:
        """Fetch the file a link points to.

        Raises:
            NotFound, NetworkFailure, FetchTimeout, PayloadTooLarge
        """
        if self.cache is None:
            return await self._load(link)
        return await self.cache.get_or_load(link.cache_key, partial(self._load, link))

    async def _load(self, link: ParsedLink) -> FetchedContent:
        if link.host is HostKind.GIST:
            return await self._load_gist(link)

        response = await self._get(raw_url(link), self.max_bytes)
        return FetchedContent(data=response.content, path=link.path, encoding=response.encoding)

    async def _load_gist(self, link: ParsedLink) -> FetchedContent:
        api_url = _GIST_API_URL.format(gist_id=link.repo)
        if link.ref:
            api_url += f"/{link.ref}"

        # Metadata embeds (truncated) file bodies, so allow more room than one file.
        meta = await self._get(api_url, self.max_bytes * 4)
        try:
            files = json.loads(meta.content)["files"]
            candidates = [(name, info["raw_url"]) for name, info in files.items()]
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise NetworkFailure(f"unexpected gist API response for {link.repo}") from e

        slug = link.path.lower()
        for name, url in candidates:
            if gist_slug(name) == slug:
                if not isinstance(url, str) or not url.startswith(_GIST_RAW_PREFIX):
                    raise NetworkFailure(f"unexpected raw URL for gist file {name}")
                response = await self._get(url, self.max_bytes)
                return FetchedContent(data=response.content, path=name, encoding=response.encoding)

        raise NotFound(f"gist {link.repo} has no file matching {link.path}")

    async def _get(self, url: str, max_bytes: int) -> RawResponse:
        async with self._semaphore:
            logger.debug(f"Fetching {url}")
            response = await self.transport.get(url, timeout=self.timeout, max_bytes=max_bytes)

        if response.status_code in (404, 410):
            raise NotFound(url)
        if response.status_code >= 400:
            raise NetworkFailure(f"HTTP {response.status_code} from {url}")
        return response

    async def aclose(self):
        """Close the underlying transport."""
        await self.transport.aclose()
