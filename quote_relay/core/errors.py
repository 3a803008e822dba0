from __future__ import annotations


class QuoteRelayError(Exception):
    """Base class for errors raised by quote_relay itself.

    Transport failures are never wrapped: they reach the caller as raised by the client.
    """


class UnsupportedPayloadError(QuoteRelayError):
    def __init__(self, payload: object) -> None:
        super().__init__(f"unsupported payload type: {type(payload).__name__}")
        self.payload = payload


class MediaTooLargeError(QuoteRelayError):
    def __init__(self, size: int, limit: int) -> None:
        super().__init__(f"media is {size} bytes, limit is {limit} bytes")
        self.size = size
        self.limit = limit


class InvalidMessageIdError(QuoteRelayError):
    def __init__(self, message_id: str) -> None:
        super().__init__(f"message id must be a positive integer, got: {message_id!r}")
        self.message_id = message_id


class MediaNotAllowedError(QuoteRelayError):
    """A local media reference outside the configured media root (or with no root configured)."""

    def __init__(self, ref: str) -> None:
        super().__init__(f"local media not allowed: {ref!r}")
        self.ref = ref
