"""Reply directives embedded in generated reply text.

  [[reply_to_current]]       quote the triggering message
  [[reply_to:<message_id>]]  quote a specific message
  [[reply_to:none]]          never quote this reply
  MEDIA: <url>               trailing line, attach media instead of plain text
"""

from __future__ import annotations

import re

from .contracts import ReplyResult

_CURRENT_RE = re.compile(r"\[\[\s*reply_to_current\s*\]\]", re.IGNORECASE)
_NONE_RE = re.compile(r"\[\[\s*reply_to\s*:\s*none\s*\]\]", re.IGNORECASE)
_EXPLICIT_RE = re.compile(r"\[\[\s*reply_to\s*:\s*([^\]\s]+)\s*\]\]", re.IGNORECASE)
_MEDIA_RE = re.compile(r"(?:^|\n)\s*MEDIA:\s*(\S+)\s*$")


def _strip(pattern: re.Pattern[str], text: str) -> str:
    return pattern.sub("", text).strip()


def parse_reply_directives(
    text: str,
    current_message_id: str | None = None,
    *,
    allow_media: bool = True,
) -> ReplyResult:
    """Turn raw reply text into a ReplyResult, consuming any reply/media directives.

    With allow_media=False a MEDIA: line is left in the text as-is.
    """

    reply_to_id: str | None = None
    reply_to_tag: bool | None = None

    if _NONE_RE.search(text):
        text = _strip(_NONE_RE, text)
        reply_to_tag = False
    elif _CURRENT_RE.search(text):
        text = _strip(_CURRENT_RE, text)
        if current_message_id:
            reply_to_id = current_message_id
            reply_to_tag = True
    else:
        match = _EXPLICIT_RE.search(text)
        if match:
            text = _strip(_EXPLICIT_RE, text)
            reply_to_id = match.group(1)
            reply_to_tag = True

    media_url: str | None = None
    match = _MEDIA_RE.search(text) if allow_media else None
    if match:
        media_url = match.group(1)
        text = text[: match.start()].strip()

    return ReplyResult(
        text=text,
        media_url=media_url,
        reply_to_id=reply_to_id,
        reply_to_tag=reply_to_tag,
    )
