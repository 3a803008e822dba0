from __future__ import annotations

import logging
from typing import Any

from .core.activity import ChannelActivity
from .core.chat_ids import normalize_chat_id
from .core.contracts import ActivityRecorder, Message, MessageKey, SendOptions, SendResult, Transport
from .core.payloads import PollPayload, ReactionPayload, build_media_payload
from .core.quote_cache import QuoteCache

UNKNOWN_MESSAGE_ID = "unknown"


def read_message_id(result: Any) -> str:
    if isinstance(result, dict):
        key = result.get("key")
        message_id = key.get("id") if isinstance(key, dict) else None
    else:
        message_id = getattr(getattr(result, "key", None), "id", None)
    if message_id is None or message_id == "":
        return UNKNOWN_MESSAGE_ID
    return str(message_id)


def as_message(result: Any) -> Message | None:
    """The transport result as a cacheable Message, or None when it is malformed."""

    if not isinstance(result, Message):
        return None
    if not result.key.id or not result.key.chat_id or not result.content:
        return None
    return result


class SendApi:
    """Outbound sends for one transport: payload shaping, quoting, envelope capture."""

    def __init__(
        self,
        transport: Transport,
        *,
        default_account_id: str,
        cache: QuoteCache | None = None,
        activity: ActivityRecorder | None = None,
        channel: str = "telegram",
        logger: logging.Logger | None = None,
    ) -> None:
        self._transport = transport
        self._default_account_id = default_account_id
        self._cache = cache if cache is not None else QuoteCache()
        self._activity = activity if activity is not None else ChannelActivity()
        self._channel = channel
        self._logger = logger or logging.getLogger("quote_relay.send")

    @property
    def cache(self) -> QuoteCache:
        return self._cache

    def remember_message(self, message: Message | None) -> None:
        self._cache.remember(message)

    async def send_content(self, to: str, payload: Any, options: SendOptions | None = None) -> SendResult:
        chat_id = normalize_chat_id(to)
        reply_to_id = options.reply_to_id if options else None
        quoted = self._cache.resolve(chat_id, reply_to_id)
        if reply_to_id and quoted is None:
            self._logger.debug("quote_miss chat_id=%s reply_to_id=%s", chat_id, reply_to_id)

        if quoted is not None:
            result = await self._transport.send_message(chat_id, payload, quoted=quoted)
        else:
            result = await self._transport.send_message(chat_id, payload)

        self._cache.remember(as_message(result))
        account_id = (options.account_id if options else None) or self._default_account_id
        self._activity.record(self._channel, account_id, "outbound")

        message_id = read_message_id(result)
        if message_id == UNKNOWN_MESSAGE_ID:
            self._logger.warning("send_result_without_id chat_id=%s payload=%s", chat_id, type(payload).__name__)
        return SendResult(message_id=message_id)

    async def send_message(
        self,
        to: str,
        text: str,
        media: bytes | None = None,
        media_type: str | None = None,
        options: SendOptions | None = None,
    ) -> SendResult:
        payload = build_media_payload(text, media, media_type, options)
        return await self.send_content(to, payload, options)

    async def send_poll(
        self,
        to: str,
        question: str,
        options: list[str] | tuple[str, ...],
        max_selections: int | None = None,
    ) -> SendResult:
        payload = PollPayload(
            question=question,
            options=tuple(options),
            selectable_count=max_selections if max_selections is not None else 1,
        )
        return await self.send_content(to, payload, SendOptions(account_id=self._default_account_id))

    async def send_reaction(
        self,
        chat_id: str,
        message_id: str,
        emoji: str,
        from_me: bool,
        participant: str | None = None,
    ) -> None:
        chat = normalize_chat_id(chat_id)
        key = MessageKey(
            chat_id=chat,
            id=message_id,
            from_me=from_me,
            participant=normalize_chat_id(participant) if participant else None,
        )
        await self._transport.send_message(chat, ReactionPayload(key=key, emoji=emoji))

    async def send_composing_to(self, to: str) -> None:
        await self._transport.send_presence_update("composing", normalize_chat_id(to))
