from __future__ import annotations

import logging

from .contracts import InboundMessage, ReplyPlugin, ReplyResult


class Dispatcher:
    """Fans one inbound message out to the enabled plugins, highest priority first.

    Replies are concatenated in plugin order. A plugin that raises is logged and skipped.
    """

    def __init__(self, plugins: list[ReplyPlugin], logger: logging.Logger) -> None:
        self._logger = logger
        self._plugins = sorted(plugins, key=lambda p: getattr(p, "priority", 0), reverse=True)

    async def _collect(self, plugin: ReplyPlugin, msg: InboundMessage) -> list[ReplyResult]:
        name = getattr(plugin, "name", type(plugin).__name__)
        try:
            result = await plugin.on_message(msg)
        except Exception:
            self._logger.exception("plugin_error name=%s chat_id=%s msg_id=%s", name, msg.chat_id, msg.id)
            return []
        replies = [r for r in (result or []) if isinstance(r, ReplyResult)]
        if replies:
            self._logger.debug("plugin_replies name=%s count=%s msg_id=%s", name, len(replies), msg.id)
        return replies

    async def dispatch(self, msg: InboundMessage) -> list[ReplyResult]:
        replies: list[ReplyResult] = []
        for plugin in self._plugins:
            if not getattr(plugin, "enabled", True):
                continue
            replies.extend(await self._collect(plugin, msg))
        return replies
