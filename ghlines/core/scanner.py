"""Find code-host URL candidates in raw chat text."""

import re
from typing import Iterator

# scheme + known host + path; a candidate stops at whitespace, quotes,
# angle brackets, backticks, or where another URL starts.
_CANDIDATE_RE = re.compile(
    r"https?://(?:www\.|gist\.)?(?:github|gitlab)\.com/"
    r"(?:(?!https?://)[^\s<>\"'`])+",
    re.IGNORECASE,
)

_TRAILING_PUNCTUATION = ".,;:!?*_~"
_CLOSERS = {")": "(", "]": "["}


def _trim(candidate: str) -> str:
    """Strip sentence punctuation and unbalanced closing brackets from the end."""
    while candidate:
        last = candidate[-1]
        if last in _TRAILING_PUNCTUATION:
            candidate = candidate[:-1]
        elif last in _CLOSERS and candidate.count(_CLOSERS[last]) < candidate.count(last):
            candidate = candidate[:-1]
        else:
            break
    return candidate


def scan_links(text: str) -> Iterator[str]:
    """Yield candidate permalink substrings in left-to-right order.

    Only the URL shape is checked here; whether a candidate is a usable
    line permalink is decided by the parser.
    """
    if not text:
        return
    for match in _CANDIDATE_RE.finditer(text):
        candidate = _trim(match.group(0))
        if candidate:
            yield candidate
