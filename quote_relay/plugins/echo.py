from __future__ import annotations

import logging

from ..config import Config
from ..core.contracts import InboundMessage, ReplyResult
from ..core.tags import parse_reply_directives


class EchoPlugin:
    """Echo the inbound text back (debug aid, off by default).

    Reply directives in the text are honoured, so '[[reply_to_current]] hi' comes back quoted
    and '[[reply_to:none]] hi' never does. MEDIA: lines are echoed as text, never loaded.
    """

    name = "echo"
    priority = 10

    def __init__(self, config: Config, logger: logging.Logger) -> None:
        self._config = config
        self._logger = logger
        self.enabled = config.enable_echo

        if self.enabled:
            self._logger.warning("echo_plugin_enabled replies=every_message")

    async def on_message(self, msg: InboundMessage) -> list[ReplyResult] | None:
        if not msg.body.strip():
            return None
        # Groups only get an echo when the bot is addressed.
        if msg.chat_type == "group" and not msg.was_mentioned:
            return None
        result = parse_reply_directives(msg.body, current_message_id=msg.id, allow_media=False)
        if not result.text:
            return None
        return [result]
