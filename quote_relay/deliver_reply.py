from __future__ import annotations

import logging

from .core.contracts import InboundMessage, NoQuote, Quote, ReplyResult, SendOptions
from .core.threading_policy import decide_threading


def chunk_text(text: str, limit: int) -> list[str]:
    """Split text into pieces of at most `limit` chars, preferring newline then space boundaries."""

    if limit < 1:
        raise ValueError(f"limit must be >= 1, got: {limit}")
    if len(text) <= limit:
        return [text] if text else []

    chunks: list[str] = []
    remaining = text
    while remaining:
        if len(remaining) <= limit:
            chunks.append(remaining)
            break
        split_at = remaining.rfind("\n", 0, limit)
        if split_at <= 0:
            split_at = remaining.rfind(" ", 0, limit)
        if split_at <= 0:
            split_at = limit
        chunks.append(remaining[:split_at].rstrip())
        remaining = remaining[split_at:].lstrip()
    return [c for c in chunks if c]


async def deliver_reply(
    *,
    reply_result: ReplyResult,
    msg: InboundMessage,
    max_media_bytes: int,
    text_limit: int,
    reply_logger: logging.Logger,
) -> None:
    decision = decide_threading(reply_result, msg)
    media_urls = reply_result.all_media_urls()
    text = (reply_result.text or "").strip()

    if media_urls:
        # Media replies are never quoted, whatever the decision.
        for index, url in enumerate(media_urls):
            caption = text if index == 0 and text else None
            try:
                await msg.send_media(url, caption=caption, max_bytes=max_media_bytes)
            except Exception:
                reply_logger.warning("reply_media_failed chat_id=%s msg_id=%s url=%s", msg.chat_id, msg.id, url)
                raise
            reply_logger.info(">> [media] %s%s", url, f" {caption}" if caption else "")
        return

    chunks = chunk_text(text, text_limit)
    if not chunks:
        reply_logger.info("reply_empty chat_id=%s msg_id=%s", msg.chat_id, msg.id)
        return

    for index, chunk in enumerate(chunks):
        try:
            if index == 0 and isinstance(decision, Quote):
                await msg.reply(chunk, SendOptions(reply_to_id=decision.message_id))
            else:
                await msg.reply(chunk)
        except Exception:
            reply_logger.warning("reply_failed chat_id=%s msg_id=%s chunk=%s", msg.chat_id, msg.id, index)
            raise

    if isinstance(decision, NoQuote):
        reply_logger.info(">> %s", text)
    else:
        reply_logger.info(">> %s (reply_to=%s)", text, decision.message_id)
