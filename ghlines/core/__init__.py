"""Line-resolution core — permalink text in, display-ready snippets out.

- Scanner: candidate URLs in raw text
- Parser: candidate → ParsedLink (GitHub, GitLab, Gist)
- Fetcher: raw bytes via an injectable transport, single-flight cache
- Extractor: decoding and line-range slicing
- Pipeline: LineCore.handle_message, the entry point for channels
"""

from .cache import SingleFlightCache
from .errors import (
    FailureReason,
    FetchTimeout,
    InvalidRange,
    LinkError,
    MalformedLink,
    NetworkFailure,
    NotFound,
    OutOfRange,
    PayloadTooLarge,
    UnsupportedContent,
    describe_failure,
)
from .fetcher import ByteTransport, ContentFetcher, HttpxTransport, RawResponse
from .models import DisplayEntry, FetchedContent, HostKind, LinkOutcome, MessageResult, ParsedLink
from .parser import parse_link
from .pipeline import LineCore
from .scanner import scan_links

__all__ = [
    # Pipeline
    "LineCore",
    "scan_links",
    "parse_link",
    # Fetching
    "ByteTransport",
    "ContentFetcher",
    "HttpxTransport",
    "RawResponse",
    "SingleFlightCache",
    # Models
    "DisplayEntry",
    "FetchedContent",
    "HostKind",
    "LinkOutcome",
    "MessageResult",
    "ParsedLink",
    # Errors
    "FailureReason",
    "LinkError",
    "MalformedLink",
    "InvalidRange",
    "NotFound",
    "OutOfRange",
    "UnsupportedContent",
    "FetchTimeout",
    "NetworkFailure",
    "PayloadTooLarge",
    "describe_failure",
]
