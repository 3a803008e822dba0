import logging
import unittest

from quote_relay.app import DryRunTransport, _FocusFilter, _short_text
from quote_relay.core.contracts import Message, MessageKey, SendOptions
from quote_relay.core.payloads import TextPayload
from quote_relay.send_api import SendApi


def _record(level: int, msg: str) -> logging.LogRecord:
    return logging.LogRecord("quote_relay", level, __file__, 1, msg, None, None)


class TestLoggingHelpers(unittest.TestCase):
    def test_focus_filter(self) -> None:
        focus = _FocusFilter()
        self.assertTrue(focus.filter(_record(logging.INFO, ">> pong")))
        self.assertTrue(focus.filter(_record(logging.INFO, "<< ping")))
        self.assertFalse(focus.filter(_record(logging.INFO, "bound_user me_id=1")))
        self.assertTrue(focus.filter(_record(logging.WARNING, "send_result_without_id")))

    def test_short_text(self) -> None:
        self.assertEqual(_short_text("a\n\n b"), "a b")
        self.assertEqual(_short_text("x" * 10, max_chars=5), "xxxx…")


class TestDryRun(unittest.IsolatedAsyncioTestCase):
    async def test_dry_run_send_reports_unknown_and_caches_nothing(self) -> None:
        logger = logging.getLogger("test.dry_run")
        api = SendApi(DryRunTransport(logger), default_account_id="default", logger=logger)
        api.remember_message(Message(key=MessageKey(chat_id="555", id="1"), content="hi"))

        with self.assertLogs(logger, level="INFO") as logs:
            result = await api.send_content("555", TextPayload(text="pong"), SendOptions(reply_to_id="1"))

        self.assertEqual(result.message_id, "unknown")
        self.assertEqual(len(api.cache), 1)
        self.assertTrue(any("dry-run reply_to=1" in line for line in logs.output))


if __name__ == "__main__":
    unittest.main()
