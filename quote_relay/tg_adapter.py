from __future__ import annotations

import io
import logging
import mimetypes
import random
from typing import Any

from telethon import TelegramClient, events
from telethon.tl import functions, types

from .config import Config
from .core.chat_ids import normalize_chat_id, to_peer
from .core.contracts import InboundMessage, Message, MessageKey, Presence, SendOptions
from .core.errors import InvalidMessageIdError, UnsupportedPayloadError
from .core.payloads import (
    AudioPayload,
    DocumentPayload,
    ImagePayload,
    PollPayload,
    ReactionPayload,
    TextPayload,
    VideoPayload,
)
from .media import load_media
from .send_api import SendApi


def _named_file(data: bytes, mimetype: str, stem: str = "file") -> io.BytesIO:
    # Telethon infers the mime type from the file name.
    fh = io.BytesIO(data)
    fh.name = stem + (mimetypes.guess_extension(mimetype) or "")
    return fh


def _describe_content(message: Any) -> str | None:
    text = getattr(message, "message", None) or getattr(message, "raw_text", None)
    if text:
        return text
    media = getattr(message, "media", None)
    if media is not None:
        return f"<media:{type(media).__name__}>"
    return None


class TGAdapter:
    """Telethon transport: encodes payloads, maps sent messages to envelopes, builds inbound handles."""

    def __init__(self, config: Config, logger: logging.Logger, client: TelegramClient | None = None) -> None:
        self._config = config
        self._logger = logger
        self._client = client or TelegramClient(config.tg_session_name, config.tg_api_id, config.tg_api_hash)
        self._me_id: int | None = None

    @property
    def me_id(self) -> int | None:
        return self._me_id

    def on_new_message(self, handler) -> None:
        @self._client.on(events.NewMessage(incoming=True))
        async def _wrapped(event) -> None:
            await handler(event)

    async def start(self) -> None:
        await self._client.start()
        me = await self._client.get_me()
        self._me_id = me.id
        self._logger.info("bound_user my_name=%s me_id=%s", self._config.my_name, me.id)

    async def run_forever(self) -> None:
        await self._client.run_until_disconnected()

    async def stop(self) -> None:
        await self._client.disconnect()

    def _to_envelope(self, sent: Any, chat_id: str) -> Any:
        if sent is None:
            return None
        msg_id = getattr(sent, "id", None)
        if not isinstance(msg_id, int) or msg_id <= 0:
            return sent
        sent_chat = getattr(sent, "chat_id", None)
        return Message(
            key=MessageKey(
                chat_id=normalize_chat_id(sent_chat) if isinstance(sent_chat, int) else chat_id,
                id=str(msg_id),
                from_me=True,
            ),
            content=_describe_content(sent),
            payload=sent,
        )

    async def send_message(self, chat_id: str, payload: Any, quoted: Message | None = None) -> Any:
        peer = to_peer(chat_id)
        reply_to = int(quoted.key.id) if quoted is not None and quoted.key.id.isdigit() else None

        if isinstance(payload, TextPayload):
            sent = await self._client.send_message(peer, payload.text, reply_to=reply_to)
        elif isinstance(payload, ImagePayload):
            sent = await self._client.send_file(
                peer,
                _named_file(payload.media, payload.mimetype, "image"),
                caption=payload.caption,
                reply_to=reply_to,
            )
        elif isinstance(payload, AudioPayload):
            sent = await self._client.send_file(
                peer,
                _named_file(payload.media, payload.mimetype, "voice"),
                voice_note=payload.voice_note,
                reply_to=reply_to,
            )
        elif isinstance(payload, VideoPayload):
            attributes = [types.DocumentAttributeAnimated()] if payload.gif_playback else None
            sent = await self._client.send_file(
                peer,
                _named_file(payload.media, payload.mimetype, "video"),
                caption=payload.caption,
                attributes=attributes,
                supports_streaming=True,
                reply_to=reply_to,
            )
        elif isinstance(payload, DocumentPayload):
            sent = await self._client.send_file(
                peer,
                _named_file(payload.media, payload.mimetype, payload.file_name),
                caption=payload.caption,
                force_document=True,
                attributes=[types.DocumentAttributeFilename(file_name=payload.file_name)],
                reply_to=reply_to,
            )
        elif isinstance(payload, PollPayload):
            sent = await self._client.send_message(peer, file=self._poll_media(payload), reply_to=reply_to)
        elif isinstance(payload, ReactionPayload):
            await self._send_reaction(peer, payload)
            return None
        else:
            raise UnsupportedPayloadError(payload)
        return self._to_envelope(sent, chat_id)

    def _poll_media(self, payload: PollPayload) -> types.InputMediaPoll:
        answers = [
            types.PollAnswer(
                text=types.TextWithEntities(text=option, entities=[]),
                option=str(index).encode(),
            )
            for index, option in enumerate(payload.options)
        ]
        poll = types.Poll(
            id=random.getrandbits(63),
            question=types.TextWithEntities(text=payload.question, entities=[]),
            answers=answers,
            multiple_choice=payload.selectable_count > 1,
            hash=0,
        )
        return types.InputMediaPoll(poll=poll)

    async def _send_reaction(self, peer: str | int, payload: ReactionPayload) -> None:
        if not payload.key.id.isdigit():
            raise InvalidMessageIdError(payload.key.id)
        entity = await self._client.get_input_entity(peer)
        reaction = [types.ReactionEmoji(emoticon=payload.emoji)] if payload.emoji else []
        await self._client(
            functions.messages.SendReactionRequest(
                peer=entity,
                msg_id=int(payload.key.id),
                reaction=reaction,
            )
        )

    async def send_presence_update(self, presence: Presence, chat_id: str) -> None:
        if presence in ("available", "unavailable"):
            await self._client(functions.account.UpdateStatusRequest(offline=presence == "unavailable"))
            return
        entity = await self._client.get_input_entity(to_peer(chat_id))
        action = types.SendMessageTypingAction() if presence == "composing" else types.SendMessageCancelAction()
        await self._client(functions.messages.SetTypingRequest(peer=entity, action=action))

    def _was_mentioned(self, event, text: str, is_reply_to_me: bool) -> bool:
        if bool(getattr(getattr(event, "message", None), "mentioned", False)):
            return True
        if self._config.my_name and self._config.my_name in text:
            return True
        return is_reply_to_me

    async def build_inbound(self, event, send_api: SendApi) -> tuple[InboundMessage, Message]:
        text = event.raw_text or ""
        chat_id = normalize_chat_id(event.chat_id)
        message_id = str(event.message.id)
        is_group = not bool(getattr(event, "is_private", False))

        is_reply_to_me = False
        if is_group and getattr(event, "is_reply", False):
            try:
                reply_msg = await event.get_reply_message()
            except Exception:
                self._logger.debug("reply_lookup_failed chat_id=%s msg_id=%s", chat_id, message_id, exc_info=True)
                reply_msg = None
            if reply_msg and self._me_id is not None and reply_msg.sender_id == self._me_id:
                is_reply_to_me = True

        sender = str(event.sender_id) if event.sender_id is not None else None
        observed = Message(
            key=MessageKey(
                chat_id=chat_id,
                id=message_id,
                from_me=bool(getattr(event, "out", False)),
                participant=sender if is_group else None,
            ),
            content=_describe_content(event.message),
            payload=event.message,
        )
        account_id = self._config.default_account_id
        max_media_bytes = self._config.max_media_bytes
        media_root = self._config.media_root

        async def reply(reply_text: str, options: SendOptions | None = None) -> None:
            await send_api.send_message(
                chat_id,
                reply_text,
                options=SendOptions(
                    reply_to_id=options.reply_to_id if options else None,
                    account_id=account_id,
                ),
            )

        async def send_media(media_url: str, caption: str | None = None, max_bytes: int | None = None) -> None:
            media = await load_media(media_url, max_bytes or max_media_bytes, media_root=media_root)
            await send_api.send_message(
                chat_id,
                caption or "",
                media=media.data,
                media_type=media.mimetype,
                options=SendOptions(account_id=account_id),
            )

        async def send_composing() -> None:
            await send_api.send_composing_to(chat_id)

        inbound = InboundMessage(
            id=message_id,
            chat_id=chat_id,
            chat_type="group" if is_group else "direct",
            sender=sender,
            body=text,
            account_id=account_id,
            reply=reply,
            send_media=send_media,
            send_composing=send_composing,
            was_mentioned=is_group and self._was_mentioned(event, text, is_reply_to_me),
        )
        return inbound, observed
