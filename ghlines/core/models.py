"""Data shapes flowing through the line-resolution pipeline."""

from dataclasses import dataclass, field
from functools import cached_property
from enum import Enum
from typing import Optional

from .errors import LinkError


class HostKind(str, Enum):
    GITHUB = "github"
    GITLAB = "gitlab"
    GIST = "gist"


@dataclass(frozen=True)
class ParsedLink:
    host: HostKind
    owner: str
    repo: str          # gist id for HostKind.GIST
    ref: str           # commit SHA, branch or tag ("" = latest gist revision)
    path: str          # repo-relative path, or the "file-..." slug for gists
    start_line: int
    end_line: int
    url: str = ""

    def __post_init__(self):
        if self.start_line < 1 or self.end_line < self.start_line:
            raise ValueError(
                f"Invalid line range {self.start_line}-{self.end_line} for {self.url or self.path}"
            )

    @property
    def cache_key(self) -> tuple[str, str, str, str, str]:
        return (self.host.value, self.owner, self.repo, self.ref, self.path)

    @property
    def line_span(self) -> int:
        return self.end_line - self.start_line + 1


@dataclass(frozen=True)
class FetchedContent:
    data: bytes
    path: str                       # resolved file path, drives the extension hint
    encoding: Optional[str] = None  # charset declared by the server, if any

    @cached_property
    def lines(self) -> list[str]:
        """Decoded lines, computed on first use and kept with the cached file.

        Raises:
            UnsupportedContent: binary or undecodable payload
        """
        from .extractor import decode_content, split_lines

        return split_lines(decode_content(self))

    @property
    def line_count(self) -> int:
        return len(self.lines)


@dataclass(frozen=True)
class DisplayEntry:
    extension: str
    to_display: str

    def to_dict(self) -> dict:
        return {"extension": self.extension, "toDisplay": self.to_display}


@dataclass
class MessageResult:
    msg_list: list[DisplayEntry] = field(default_factory=list)
    total_lines: int = 0

    def to_dict(self) -> dict:
        return {
            "msgList": [entry.to_dict() for entry in self.msg_list],
            "totalLines": self.total_lines,
        }


@dataclass
class LinkOutcome:
    """Result of resolving one candidate: either an entry or a reason-coded error."""
    index: int
    candidate: str
    link: Optional[ParsedLink] = None
    entry: Optional[DisplayEntry] = None
    lines: int = 0
    error: Optional[LinkError] = None

    @property
    def ok(self) -> bool:
        return self.entry is not None and self.error is None
