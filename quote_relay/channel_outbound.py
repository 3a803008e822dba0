"""Destination-string send surface for code outside the inbound reply loop.

The reply loop in app.py talks to SendApi directly through InboundMessage handles.
ChannelOutbound is the import surface for everything else (scripts, schedulers,
other services embedding quote_relay) that only has a chat string to send to:

    outbound = ChannelOutbound(send_api, max_media_bytes=config.max_media_bytes, media_root=config.media_root)
    await outbound.send_text("@someone", "hello")

Every call returns {"channel", "message_id", "to"} with "to" normalized.
"""

from __future__ import annotations

import functools
from collections.abc import Awaitable, Callable
from typing import Any

from .core.chat_ids import normalize_chat_id
from .core.contracts import SendOptions
from .media import LoadedMedia, load_media
from .send_api import SendApi

MediaLoader = Callable[[str, int], Awaitable[LoadedMedia]]


class ChannelOutbound:
    """Generic send_text/send_media surface for callers that only know a destination string."""

    channel = "telegram"

    def __init__(
        self,
        send_api: SendApi,
        *,
        max_media_bytes: int,
        media_root: str | None = None,
        loader: MediaLoader | None = None,
    ) -> None:
        self._send_api = send_api
        self._max_media_bytes = max_media_bytes
        self._loader = loader or functools.partial(load_media, media_root=media_root)

    def _result(self, to: str, message_id: str) -> dict[str, Any]:
        return {"channel": self.channel, "message_id": message_id, "to": normalize_chat_id(to)}

    async def send_text(
        self,
        to: str,
        text: str,
        *,
        reply_to_id: str | None = None,
        account_id: str | None = None,
    ) -> dict[str, Any]:
        options = SendOptions(reply_to_id=reply_to_id, account_id=account_id)
        result = await self._send_api.send_message(to, text, options=options)
        return self._result(to, result.message_id)

    async def send_media(
        self,
        to: str,
        text: str,
        media_url: str,
        *,
        reply_to_id: str | None = None,
        account_id: str | None = None,
        gif_playback: bool = False,
    ) -> dict[str, Any]:
        media = await self._loader(media_url, self._max_media_bytes)
        options = SendOptions(reply_to_id=reply_to_id, account_id=account_id, gif_playback=gif_playback)
        result = await self._send_api.send_message(
            to,
            text,
            media=media.data,
            media_type=media.mimetype,
            options=options,
        )
        return self._result(to, result.message_id)

    async def send_poll(
        self,
        to: str,
        question: str,
        options: list[str],
        *,
        max_selections: int | None = None,
    ) -> dict[str, Any]:
        result = await self._send_api.send_poll(to, question, options, max_selections)
        return self._result(to, result.message_id)
