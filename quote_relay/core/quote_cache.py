from __future__ import annotations

import threading
from collections import OrderedDict

from .chat_ids import normalize_chat_id
from .contracts import Message

QUOTE_CACHE_LIMIT = 1000


class QuoteCache:
    """Bounded LRU of recently seen messages, keyed by normalized chat id + message id.

    Only writes refresh recency. Lookups never promote an entry, so a message that keeps
    getting quoted still ages out once newer traffic has pushed it to the old end.
    """

    def __init__(self, limit: int = QUOTE_CACHE_LIMIT) -> None:
        if limit < 1:
            raise ValueError(f"limit must be >= 1, got: {limit}")
        self._limit = limit
        self._entries: OrderedDict[tuple[str, str], Message] = OrderedDict()
        self._lock = threading.Lock()

    @property
    def limit(self) -> int:
        return self._limit

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, item: object) -> bool:
        if not isinstance(item, tuple) or len(item) != 2:
            return False
        chat_id, message_id = item
        return self.resolve(chat_id, message_id) is not None

    @staticmethod
    def _key(chat_id: str, message_id: str) -> tuple[str, str] | None:
        try:
            return normalize_chat_id(chat_id), message_id
        except ValueError:
            return None

    def remember(self, message: Message | None) -> None:
        if message is None or message.key is None:
            return
        message_id = (message.key.id or "").strip()
        chat_id = (message.key.chat_id or "").strip()
        if not message_id or not chat_id or not message.content:
            return

        key = self._key(chat_id, message_id)
        if key is None:
            return
        with self._lock:
            self._entries.pop(key, None)
            self._entries[key] = message
            self._prune()

    def _prune(self) -> None:
        while len(self._entries) > self._limit:
            self._entries.popitem(last=False)

    def resolve(self, chat_id: str, reply_to_id: str | None) -> Message | None:
        message_id = (reply_to_id or "").strip()
        if not message_id:
            return None
        key = self._key(chat_id, message_id)
        if key is None:
            return None
        with self._lock:
            return self._entries.get(key)
