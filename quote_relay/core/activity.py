from __future__ import annotations

import time
from dataclasses import dataclass

from .contracts import Direction


@dataclass
class ActivitySnapshot:
    inbound_at: float | None = None
    outbound_at: float | None = None


class ChannelActivity:
    """Last inbound/outbound timestamps per (channel, account)."""

    def __init__(self, clock=time.time) -> None:
        self._clock = clock
        self._entries: dict[tuple[str, str], ActivitySnapshot] = {}

    def record(self, channel: str, account_id: str, direction: Direction) -> None:
        snapshot = self._entries.setdefault((channel, account_id), ActivitySnapshot())
        now = self._clock()
        if direction == "inbound":
            snapshot.inbound_at = now
        elif direction == "outbound":
            snapshot.outbound_at = now
        else:
            raise ValueError(f"unknown direction: {direction!r}")

    def get(self, channel: str, account_id: str) -> ActivitySnapshot:
        snapshot = self._entries.get((channel, account_id))
        if snapshot is None:
            return ActivitySnapshot()
        return ActivitySnapshot(inbound_at=snapshot.inbound_at, outbound_at=snapshot.outbound_at)

    def reset(self) -> None:
        self._entries.clear()
