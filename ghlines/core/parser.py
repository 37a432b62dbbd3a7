"""Permalink parser — decompose a candidate URL into a ParsedLink.

Supported shapes (one rule per HostKind, nothing is guessed):

  GitHub  https://github.com/<owner>/<repo>/blob/<ref>/<path>#L<a>[-L<b>]
          column suffixes (#L3C5-L9C2) are accepted and ignored
  GitLab  https://gitlab.com/<group>[/<sub>...]/<repo>/-/blob/<ref>/<path>#L<a>[-<b>]
          legacy form without the "/-/" segment is accepted too
  Gist    https://gist.github.com/<user>/<id>[/<revision>]#file-<slug>-L<a>[-L<b>]

Query strings such as ``?plain=1`` are ignored. The ``L`` anchor token is
case-sensitive. Rejections are raised as ``MalformedLink`` or ``InvalidRange``.
"""

import re
from typing import Callable
from urllib.parse import SplitResult, unquote, urlsplit

from .errors import InvalidRange, MalformedLink
from .models import HostKind, ParsedLink

# Anything above this is a typo or an attack, not a real line number.
MAX_LINE_NUMBER = 10_000_000
MAX_URL_LENGTH = 4096

_GITHUB_ANCHOR_RE = re.compile(r"L(\d{1,9})(?:C\d{1,9})?(?:-L(\d{1,9})(?:C\d{1,9})?)?")
_GITLAB_ANCHOR_RE = re.compile(r"L(\d{1,9})(?:-(\d{1,9}))?")
_GIST_FRAGMENT_RE = re.compile(r"file-(?P<slug>.+?)-(?P<anchor>L.*)")


def _line_range(fragment: str, anchor_re: re.Pattern) -> tuple[int, int]:
    """Turn a line anchor into a (start, end) pair.

    A fragment that does not start with the ``L`` token has no line anchor
    at all (MalformedLink); one that does but fails the grammar is an
    InvalidRange.
    """
    if not fragment.startswith("L"):
        raise MalformedLink("no line anchor")
    match = anchor_re.fullmatch(fragment)
    if not match:
        raise InvalidRange(f"malformed anchor #{fragment}")

    start = int(match.group(1))
    end = int(match.group(2)) if match.group(2) is not None else start

    if start < 1 or end < 1:
        raise InvalidRange("line numbers start at 1")
    if end < start:
        raise InvalidRange(f"range {start}-{end} is reversed")
    if end > MAX_LINE_NUMBER:
        raise InvalidRange(f"line {end} is out of bounds")
    return start, end


def _segments(parts: SplitResult) -> list[str]:
    segments = parts.path.split("/")[1:]
    if not segments or any(not s for s in segments):
        raise MalformedLink("empty path segment")
    # Dot segments get normalized away by the HTTP client and would
    # point the fetch outside the raw-file endpoint.
    if any(unquote(s) in (".", "..") for s in segments):
        raise MalformedLink("dot segment in path")
    return segments


# ── Host rules ──────────────────────────────────────────────

def _parse_github(parts: SplitResult, url: str) -> ParsedLink:
    segments = _segments(parts)
    if len(segments) < 5 or segments[2] != "blob":
        raise MalformedLink("not a GitHub blob URL")

    owner, repo, _, ref = segments[:4]
    start, end = _line_range(parts.fragment, _GITHUB_ANCHOR_RE)
    return ParsedLink(
        host=HostKind.GITHUB,
        owner=owner,
        repo=repo,
        ref=ref,
        path="/".join(segments[4:]),
        start_line=start,
        end_line=end,
        url=url,
    )


def _parse_gitlab(parts: SplitResult, url: str) -> ParsedLink:
    segments = _segments(parts)

    # <namespace...>/<repo>/-/blob/<ref>/<path...>
    blob_at, repo_at = None, 0
    for i in range(2, len(segments) - 3):
        if segments[i] == "-" and segments[i + 1] == "blob":
            blob_at = i + 1
            repo_at = i - 1
            break
    if blob_at is None:
        # Legacy: <namespace...>/<repo>/blob/<ref>/<path...>
        for i in range(2, len(segments) - 2):
            if segments[i] == "blob":
                blob_at = i
                repo_at = i - 1
                break
    if blob_at is None or len(segments) < blob_at + 3:
        raise MalformedLink("not a GitLab blob URL")

    start, end = _line_range(parts.fragment, _GITLAB_ANCHOR_RE)
    return ParsedLink(
        host=HostKind.GITLAB,
        owner="/".join(segments[:repo_at]),
        repo=segments[repo_at],
        ref=segments[blob_at + 1],
        path="/".join(segments[blob_at + 2:]),
        start_line=start,
        end_line=end,
        url=url,
    )


def _parse_gist(parts: SplitResult, url: str) -> ParsedLink:
    segments = _segments(parts)
    if len(segments) not in (2, 3):
        raise MalformedLink("not a gist URL")

    match = _GIST_FRAGMENT_RE.fullmatch(parts.fragment)
    if not match:
        raise MalformedLink("no gist file line anchor")

    start, end = _line_range(match.group("anchor"), _GITHUB_ANCHOR_RE)
    return ParsedLink(
        host=HostKind.GIST,
        owner=segments[0],
        repo=segments[1],
        ref=segments[2] if len(segments) == 3 else "",
        path=match.group("slug"),
        start_line=start,
        end_line=end,
        url=url,
    )


_HOST_RULES: dict[str, Callable[[SplitResult, str], ParsedLink]] = {
    "github.com": _parse_github,
    "www.github.com": _parse_github,
    "gitlab.com": _parse_gitlab,
    "www.gitlab.com": _parse_gitlab,
    "gist.github.com": _parse_gist,
}


def parse_link(candidate: str) -> ParsedLink:
    """Parse a candidate URL into a ParsedLink.

    Args:
        candidate: URL substring produced by the scanner

    Returns:
        The decomposed link

    Raises:
        MalformedLink: unknown host, unknown shape, or no line anchor
        InvalidRange: line anchor present but numerically invalid
    """
    if len(candidate) > MAX_URL_LENGTH:
        raise MalformedLink(f"URL longer than {MAX_URL_LENGTH} characters")
    if not candidate.isprintable():
        raise MalformedLink("non-printable character in URL")

    try:
        parts = urlsplit(candidate)
    except ValueError as e:
        raise MalformedLink(f"unparseable URL: {e}") from e

    if parts.scheme.lower() not in ("http", "https"):
        raise MalformedLink(f"unsupported scheme {parts.scheme!r}")

    rule = _HOST_RULES.get(parts.netloc.lower())
    if rule is None:
        raise MalformedLink(f"unsupported host {parts.netloc!r}")

    return rule(parts, candidate)
