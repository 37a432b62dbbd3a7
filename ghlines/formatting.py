"""Render a MessageResult as a Telegram reply.

Telegram supports a limited HTML subset; each snippet becomes
  <pre><code class="language-py">...</code></pre>
and everything inside is HTML-escaped. Spam and length policy also live
here, since they depend on the chat surface and not on the core.
"""

import html as _html
import re
from dataclasses import dataclass
from typing import Optional

from .core.models import DisplayEntry, MessageResult

SPAM_NOTICE = "Sorry, but to prevent spam, we limit the number of lines displayed at {max_lines}"
LENGTH_NOTICE = (
    "Sorry, but there is a {max_chars} character limit on Telegram, "
    "so we were unable to display the desired snippet"
)


@dataclass
class Reply:
    text: Optional[str]       # HTML, None = nothing to send
    to_delete: bool = False   # notices are removed after a short delay


def _escape(text: str) -> str:
    """Escape HTML special characters in plain text segments."""
    return _html.escape(text, quote=False)


def render_entry(entry: DisplayEntry) -> str:
    """Render one snippet as a Telegram HTML code block.

    Whitespace-only snippets get no language class, and an empty body is
    replaced by a single space because Telegram rejects empty entities.
    """
    body = _escape(entry.to_display) or " "
    language = re.sub(r"[^\w+#-]", "", entry.extension)
    if language and entry.to_display.strip():
        return f'<pre><code class="language-{language}">{body}</code></pre>'
    return f"<pre>{body}</pre>"


def build_reply(result: MessageResult, max_lines: int = 50, max_chars: int = 4096) -> Reply:
    """Turn a MessageResult into the reply the bot should send.

    Args:
        result: Output of LineCore.handle_message
        max_lines: Above this total, send a spam notice instead
        max_chars: Platform message length limit

    Returns:
        Reply with text=None when there is nothing to show
    """
    if result.total_lines > max_lines:
        return Reply(SPAM_NOTICE.format(max_lines=max_lines), to_delete=True)

    if not result.msg_list:
        return Reply(None)

    text = "\n".join(render_entry(entry) for entry in result.msg_list)
    if len(text) >= max_chars:
        return Reply(LENGTH_NOTICE.format(max_chars=max_chars), to_delete=True)

    return Reply(text)
