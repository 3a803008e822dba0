from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from .contracts import MessageKey, SendOptions


@dataclass(frozen=True)
class TextPayload:
    text: str


@dataclass(frozen=True)
class ImagePayload:
    media: bytes
    mimetype: str
    caption: str | None = None


@dataclass(frozen=True)
class AudioPayload:
    media: bytes
    mimetype: str
    # Always sent as a push-to-talk voice clip.
    voice_note: bool = True


@dataclass(frozen=True)
class VideoPayload:
    media: bytes
    mimetype: str
    caption: str | None = None
    gif_playback: bool = False


@dataclass(frozen=True)
class DocumentPayload:
    media: bytes
    mimetype: str
    file_name: str = "file"
    caption: str | None = None


@dataclass(frozen=True)
class PollPayload:
    question: str
    options: tuple[str, ...]
    selectable_count: int = 1


@dataclass(frozen=True)
class ReactionPayload:
    key: MessageKey
    emoji: str


Payload = Union[
    TextPayload,
    ImagePayload,
    AudioPayload,
    VideoPayload,
    DocumentPayload,
    PollPayload,
    ReactionPayload,
]


def build_media_payload(
    text: str,
    media: bytes | None = None,
    media_type: str | None = None,
    options: SendOptions | None = None,
) -> Payload:
    """Pick the payload shape for a send from the media MIME category."""

    if not media or not media_type:
        return TextPayload(text=text)

    caption = text or None
    if media_type.startswith("image/"):
        return ImagePayload(media=media, mimetype=media_type, caption=caption)
    if media_type.startswith("audio/"):
        return AudioPayload(media=media, mimetype=media_type)
    if media_type.startswith("video/"):
        gif_playback = bool(options and options.gif_playback)
        return VideoPayload(media=media, mimetype=media_type, caption=caption, gif_playback=gif_playback)
    return DocumentPayload(media=media, mimetype=media_type, caption=caption)
