"""Range extractor — decode fetched content and slice the requested lines."""

import codecs
from urllib.parse import unquote

from .errors import OutOfRange, UnsupportedContent
from .models import DisplayEntry, FetchedContent, ParsedLink

# Longest BOMs first: the UTF-32-LE BOM starts with the UTF-16-LE one.
_BOMS = (
    (codecs.BOM_UTF32_LE, "utf-32-le"),
    (codecs.BOM_UTF32_BE, "utf-32-be"),
    (codecs.BOM_UTF8, "utf-8"),
    (codecs.BOM_UTF16_LE, "utf-16-le"),
    (codecs.BOM_UTF16_BE, "utf-16-be"),
)
_SNIFF_BYTES = 8192


def decode_content(content: FetchedContent) -> str:
    """Decode fetched bytes to text.

    BOM-marked payloads use the BOM's codec. Otherwise a NUL byte near the
    start means binary; UTF-8 is tried, then the server-declared charset.

    Raises:
        UnsupportedContent: binary or undecodable payload
    """
    data = content.data
    for bom, codec in _BOMS:
        if data.startswith(bom):
            try:
                return data[len(bom):].decode(codec)
            except UnicodeDecodeError as e:
                raise UnsupportedContent(f"invalid {codec} after BOM") from e

    if b"\x00" in data[:_SNIFF_BYTES]:
        raise UnsupportedContent("binary content")

    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        pass

    declared = (content.encoding or "").lower()
    if declared and declared not in ("utf-8", "utf8"):
        try:
            return data.decode(declared)
        except (UnicodeDecodeError, LookupError):
            pass

    raise UnsupportedContent("not decodable as text")


def split_lines(text: str) -> list[str]:
    """Split text into lines, treating \\r\\n, \\r and \\n alike.

    A trailing newline terminates the last line rather than starting a new
    empty one, so "a\\nb\\n" has two lines and "" has none.
    """
    if not text:
        return []
    lines = text.replace("\r\n", "\n").replace("\r", "\n").split("\n")
    if lines[-1] == "":
        lines.pop()
    return lines


def extract_range(lines: list[str], start: int, end: int) -> tuple[str, int]:
    """Return (text, line_count) for the 1-based inclusive range start..end.

    An end past the last line is clamped; a start past it is an error.

    Raises:
        OutOfRange: start is beyond the last line
    """
    total = len(lines)
    if start > total:
        raise OutOfRange(f"line {start} requested, file has {total}")
    selected = lines[start - 1:min(end, total)]
    return "\n".join(selected), len(selected)


def extension_hint(path: str) -> str:
    """Lower-cased final dot-segment of the file name, or "" if there is none."""
    name = unquote(path.rsplit("/", 1)[-1])
    if "." not in name:
        return ""
    return name.rsplit(".", 1)[1].lower()


def extract(content: FetchedContent, link: ParsedLink) -> tuple[DisplayEntry, int]:
    """Build the display entry for a link from its fetched file."""
    lines = content.lines
    text, count = extract_range(lines, link.start_line, link.end_line)
    return DisplayEntry(extension=extension_hint(content.path), to_display=text), count
