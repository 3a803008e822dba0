from __future__ import annotations

import re

_PREFIX_RE = re.compile(r"^(?:telegram|tg):", re.IGNORECASE)
_LINK_RE = re.compile(r"^(?:https?://)?(?:www\.)?(?:t|telegram)\.me/([A-Za-z0-9_]+)/?$", re.IGNORECASE)
_NUMERIC_RE = re.compile(r"^-?\d+$")
_PHONE_RE = re.compile(r"^\+[\d\s\-()]+$")
_USERNAME_RE = re.compile(r"^@?([A-Za-z][A-Za-z0-9_]{2,})$")


def normalize_chat_id(raw: str | int) -> str:
    """Canonical form of a Telegram peer reference.

    '-100123' / -100123 -> '-100123', '@SomeUser' / 't.me/someuser' -> '@someuser',
    '+1 555-0100' -> '+15550100'. Prefixes 'telegram:' and 'tg:' are dropped.
    """

    if isinstance(raw, bool):
        raise ValueError(f"invalid chat id: {raw!r}")
    if isinstance(raw, int):
        return str(raw)

    value = _PREFIX_RE.sub("", str(raw).strip()).strip()
    if not value:
        raise ValueError("empty chat id")

    link = _LINK_RE.match(value)
    if link:
        value = link.group(1)

    if _NUMERIC_RE.match(value):
        return str(int(value))
    if _PHONE_RE.match(value):
        digits = re.sub(r"\D", "", value)
        if digits:
            return f"+{digits}"

    username = _USERNAME_RE.match(value)
    if username:
        return f"@{username.group(1).lower()}"

    # Unknown shape (e.g. a display name): keep it, case-folded, so insert and lookup still agree.
    return value.lower()


def to_peer(chat_id: str) -> str | int:
    """Entity argument Telethon accepts for a normalized chat id."""

    if _NUMERIC_RE.match(chat_id):
        return int(chat_id)
    return chat_id
