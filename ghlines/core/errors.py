"""Per-link failure taxonomy.

Every failure that can happen while resolving ONE link is a ``LinkError``.
The pipeline catches these per link and drops the link from the result.
Anything that is not a ``LinkError`` is a real fault and propagates.
"""

from enum import Enum


class FailureReason(str, Enum):
    MALFORMED_LINK = "malformed_link"
    INVALID_RANGE = "invalid_range"
    NOT_FOUND = "not_found"
    OUT_OF_RANGE = "out_of_range"
    UNSUPPORTED_CONTENT = "unsupported_content"
    FETCH_TIMEOUT = "fetch_timeout"
    NETWORK_FAILURE = "network_failure"
    PAYLOAD_TOO_LARGE = "payload_too_large"


# ════════════════════════════════════════════════════════
# Link exception hierarchy — one class per FailureReason.
# ════════════════════════════════════════════════════════

class LinkError(Exception):
    """Base class for all recoverable per-link failures."""
    reason: FailureReason = FailureReason.MALFORMED_LINK

class MalformedLink(LinkError):
    """Candidate does not match any known host/path/anchor shape."""
    reason = FailureReason.MALFORMED_LINK

class InvalidRange(LinkError):
    """Line anchor present but non-numeric, reversed or non-positive."""
    reason = FailureReason.INVALID_RANGE

class NotFound(LinkError):
    """Repository, ref or path does not exist on the host."""
    reason = FailureReason.NOT_FOUND

class OutOfRange(LinkError):
    """Start line is beyond the end of the file."""
    reason = FailureReason.OUT_OF_RANGE

class UnsupportedContent(LinkError):
    """Binary or undecodable payload."""
    reason = FailureReason.UNSUPPORTED_CONTENT

class FetchTimeout(LinkError):
    """Fetch deadline exceeded."""
    reason = FailureReason.FETCH_TIMEOUT

class NetworkFailure(LinkError):
    """Transport-level failure or unexpected HTTP status."""
    reason = FailureReason.NETWORK_FAILURE

class PayloadTooLarge(LinkError):
    """File exceeds the configured size bound."""
    reason = FailureReason.PAYLOAD_TOO_LARGE


_DESCRIPTIONS = {
    FailureReason.MALFORMED_LINK: "Not a supported permalink with a line anchor.",
    FailureReason.INVALID_RANGE: "The line anchor is not a valid line range.",
    FailureReason.NOT_FOUND: "The repository, ref or file was not found.",
    FailureReason.OUT_OF_RANGE: "The first requested line is past the end of the file.",
    FailureReason.UNSUPPORTED_CONTENT: "The file is binary or not decodable as text.",
    FailureReason.FETCH_TIMEOUT: "The host took too long to respond.",
    FailureReason.NETWORK_FAILURE: "The host could not be reached.",
    FailureReason.PAYLOAD_TOO_LARGE: "The file is too large to display.",
}


def describe_failure(error: LinkError) -> str:
    """Short human-readable explanation of a per-link failure.

    The exception message is appended when it carries extra detail.
    """
    text = _DESCRIPTIONS.get(error.reason, "Unknown failure.")
    detail = str(error)
    if detail:
        return f"{text} ({detail})"
    return text
