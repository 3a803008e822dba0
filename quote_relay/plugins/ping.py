from __future__ import annotations

import logging

from ..config import Config
from ..core.contracts import InboundMessage, ReplyResult


class PingPlugin:
    """Liveness check: '/ping' -> 'pong', always threaded onto the ping."""

    name = "ping"
    priority = 100

    _COMMANDS = ("/ping", "ping")

    def __init__(self, config: Config, logger: logging.Logger) -> None:
        self._config = config
        self._logger = logger
        self.enabled = config.enable_ping

    async def on_message(self, msg: InboundMessage) -> list[ReplyResult] | None:
        text = msg.body.strip().lower()
        # '/ping@botname' is how group clients address a specific bot.
        command = text.split("@", 1)[0]
        if command not in self._COMMANDS:
            return None
        self._logger.debug("ping chat_id=%s msg_id=%s", msg.chat_id, msg.id)
        return [ReplyResult(text="pong", reply_to_id=msg.id, reply_to_tag=True)]
