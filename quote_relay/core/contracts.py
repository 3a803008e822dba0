from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, Literal, Protocol, Union

ChatType = Literal["direct", "group"]
Direction = Literal["inbound", "outbound"]
Presence = Literal["composing", "paused", "available", "unavailable"]


@dataclass(frozen=True)
class MessageKey:
    chat_id: str
    id: str
    from_me: bool = False
    # Sender inside a group chat; None for direct chats and own messages.
    participant: str | None = None


@dataclass(frozen=True)
class Message:
    """A message observed on the transport (inbound, or the envelope of an outbound send)."""

    key: MessageKey
    # Text or a short media descriptor. Empty content means "not a real message".
    content: str | None
    # Transport-native object, opaque to the core.
    payload: Any = None


@dataclass(frozen=True)
class SendOptions:
    reply_to_id: str | None = None
    account_id: str | None = None
    # Loop the video like an animation (video payloads only).
    gif_playback: bool = False


@dataclass(frozen=True)
class SendResult:
    message_id: str


@dataclass(frozen=True)
class ReplyResult:
    text: str = ""
    media_url: str | None = None
    media_urls: tuple[str, ...] = ()
    reply_to_id: str | None = None
    # True: quote reply_to_id whatever the default policy says. False: never quote.
    reply_to_tag: bool | None = None

    def all_media_urls(self) -> list[str]:
        urls = list(self.media_urls)
        if self.media_url and self.media_url not in urls:
            urls.insert(0, self.media_url)
        return [u for u in urls if u]


@dataclass(frozen=True)
class NoQuote:
    pass


@dataclass(frozen=True)
class Quote:
    message_id: str


QuoteDecision = Union[NoQuote, Quote]

ReplyFn = Callable[..., Awaitable[None]]
SendMediaFn = Callable[..., Awaitable[None]]
ComposingFn = Callable[[], Awaitable[None]]


@dataclass(frozen=True)
class InboundMessage:
    """Read-only view of one inbound message plus operations bound to its chat."""

    id: str
    chat_id: str
    chat_type: ChatType
    sender: str | None
    body: str
    account_id: str
    reply: ReplyFn = field(repr=False)
    send_media: SendMediaFn = field(repr=False)
    send_composing: ComposingFn = field(repr=False)
    was_mentioned: bool = False


class Transport(Protocol):
    async def send_message(self, chat_id: str, payload: Any, quoted: Message | None = None) -> Any: ...

    async def send_presence_update(self, presence: Presence, chat_id: str) -> None: ...


class ActivityRecorder(Protocol):
    def record(self, channel: str, account_id: str, direction: Direction) -> None: ...


class ReplyPlugin(Protocol):
    name: str
    enabled: bool
    priority: int

    async def on_message(self, msg: InboundMessage) -> list[ReplyResult] | None: ...
