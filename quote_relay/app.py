from __future__ import annotations

import asyncio
import logging
import re
from typing import Any

from .config import Config
from .core.activity import ChannelActivity
from .core.contracts import Message, Presence
from .core.dispatcher import Dispatcher
from .core.quote_cache import QuoteCache
from .deliver_reply import deliver_reply
from .plugins.echo import EchoPlugin
from .plugins.ping import PingPlugin
from .send_api import SendApi
from .tg_adapter import TGAdapter


class _FocusFilter(logging.Filter):
    """Only show 'interesting' info logs (replies + inbound messages).

    - INFO: allow only lines starting with ">>" (sent) or "<<" (received)
    - WARNING/ERROR: always allow

    Users can set LOG_LEVEL=DEBUG to see full logs.
    """

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        if record.levelno >= logging.WARNING:
            return True
        msg = record.getMessage()
        return msg.startswith(">>") or msg.startswith("<<")


def _setup_logging(level: str) -> logging.Logger:
    fmt = "%(asctime)s %(levelname)s %(message)s"

    # Keep third-party logs quiet by default; show warnings/errors only.
    logging.basicConfig(level=logging.WARNING, format=fmt)
    for noisy in ("telethon", "asyncio", "httpx"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    logger = logging.getLogger("quote_relay")
    numeric_level = getattr(logging, level, logging.INFO)
    logger.setLevel(numeric_level)
    logger.propagate = False

    handler = logging.StreamHandler()
    handler.setLevel(numeric_level)
    handler.setFormatter(logging.Formatter(fmt))
    if numeric_level >= logging.INFO and numeric_level != logging.DEBUG:
        handler.addFilter(_FocusFilter())
    logger.handlers.clear()
    logger.addHandler(handler)
    return logger


_WS_RE = re.compile(r"\s+")


def _short_text(text: str, max_chars: int = 160) -> str:
    text = _WS_RE.sub(" ", text).strip()
    if len(text) <= max_chars:
        return text
    return text[: max_chars - 1] + "…"


class DryRunTransport:
    """Stands in for the real transport when DRY_RUN=1: logs instead of sending."""

    def __init__(self, logger: logging.Logger) -> None:
        self._logger = logger

    async def send_message(self, chat_id: str, payload: Any, quoted: Message | None = None) -> Any:
        reply_to = quoted.key.id if quoted is not None else None
        self._logger.info(">> %s %r (dry-run reply_to=%s)", chat_id, payload, reply_to)
        return None

    async def send_presence_update(self, presence: Presence, chat_id: str) -> None:
        self._logger.debug("presence %s chat_id=%s (dry-run)", presence, chat_id)


async def run() -> None:
    config = Config.load()
    logger = _setup_logging(config.log_level)

    cache = QuoteCache(config.quote_cache_limit)
    activity = ChannelActivity()
    adapter = TGAdapter(config, logger)
    transport = DryRunTransport(logger) if config.dry_run else adapter
    send_api = SendApi(
        transport,
        default_account_id=config.default_account_id,
        cache=cache,
        activity=activity,
        logger=logger,
    )

    plugins = [
        PingPlugin(config, logger),
        EchoPlugin(config, logger),
    ]
    dispatcher = Dispatcher(plugins, logger)

    async def _on_event(event) -> None:
        msg, observed = await adapter.build_inbound(event, send_api)
        send_api.remember_message(observed)
        activity.record("telegram", msg.account_id, "inbound")
        logger.info("<< [%s %s] %s", msg.chat_type, msg.chat_id, _short_text(msg.body))

        replies = await dispatcher.dispatch(msg)
        if not replies:
            return
        logger.debug("rx msg_id=%s replies=%s mentioned=%s", msg.id, len(replies), msg.was_mentioned)
        try:
            await msg.send_composing()
        except Exception:
            logger.debug("composing_failed chat_id=%s", msg.chat_id, exc_info=True)
        for reply_result in replies:
            try:
                await deliver_reply(
                    reply_result=reply_result,
                    msg=msg,
                    max_media_bytes=config.max_media_bytes,
                    text_limit=config.text_limit,
                    reply_logger=logger,
                )
            except Exception:
                logger.exception("deliver_failed chat_id=%s msg_id=%s", msg.chat_id, msg.id)

    adapter.on_new_message(_on_event)

    await adapter.start()
    try:
        await adapter.run_forever()
    finally:
        await adapter.stop()


def main() -> None:
    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        print("\nbye.")
        raise SystemExit(0)
    except ValueError as exc:
        print(f"[config error] {exc}")
        print("Copy .env.example to .env, fill in the required values, then run again.")
        raise SystemExit(2) from exc
