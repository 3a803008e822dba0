import dataclasses
import logging
import unittest
from types import SimpleNamespace
from unittest.mock import AsyncMock

from telethon.tl import functions, types

from quote_relay.config import Config
from quote_relay.core.contracts import Message, MessageKey, SendOptions
from quote_relay.core.errors import InvalidMessageIdError, UnsupportedPayloadError
from quote_relay.core.payloads import (
    AudioPayload,
    DocumentPayload,
    PollPayload,
    ReactionPayload,
    TextPayload,
    VideoPayload,
)
from quote_relay.deliver_reply import deliver_reply
from quote_relay.plugins.echo import EchoPlugin
from quote_relay.send_api import SendApi
from quote_relay.tg_adapter import TGAdapter


def _dummy_config() -> Config:
    return Config(
        tg_api_id=1,
        tg_api_hash="hash",
        tg_session_name="session",
        default_account_id="default",
        my_name="Me",
        quote_cache_limit=1000,
        text_limit=4096,
        max_media_bytes=1024,
        dry_run=False,
        log_level="INFO",
        enable_ping=True,
        enable_echo=False,
    )


def _sent(msg_id: int | None = 7, chat_id: int = 555, text: str = "pong"):
    return SimpleNamespace(id=msg_id, chat_id=chat_id, message=text, media=None)


def _adapter(client: AsyncMock) -> TGAdapter:
    return TGAdapter(_dummy_config(), logging.getLogger("test"), client=client)


class TestTransport(unittest.IsolatedAsyncioTestCase):
    async def test_text_with_quote_maps_envelope(self) -> None:
        client = AsyncMock()
        client.send_message.return_value = _sent()
        quoted = Message(key=MessageKey(chat_id="555", id="42"), content="ping")

        envelope = await _adapter(client).send_message("555", TextPayload(text="pong"), quoted=quoted)

        client.send_message.assert_awaited_once_with(555, "pong", reply_to=42)
        self.assertEqual(envelope.key, MessageKey(chat_id="555", id="7", from_me=True))
        self.assertEqual(envelope.content, "pong")

    async def test_text_without_quote(self) -> None:
        client = AsyncMock()
        client.send_message.return_value = _sent()

        await _adapter(client).send_message("@someone", TextPayload(text="hi"))

        client.send_message.assert_awaited_once_with("@someone", "hi", reply_to=None)

    async def test_malformed_send_result_is_returned_raw(self) -> None:
        client = AsyncMock()
        raw = _sent(msg_id=None)
        client.send_message.return_value = raw

        envelope = await _adapter(client).send_message("555", TextPayload(text="hi"))

        self.assertIs(envelope, raw)

    async def test_audio_is_sent_as_voice_note(self) -> None:
        client = AsyncMock()
        client.send_file.return_value = _sent(text="")

        await _adapter(client).send_message("555", AudioPayload(media=b"OggS", mimetype="audio/ogg"))

        kwargs = client.send_file.await_args.kwargs
        self.assertTrue(kwargs["voice_note"])
        self.assertEqual(client.send_file.await_args.args[1].read(), b"OggS")

    async def test_looping_video_is_marked_animated(self) -> None:
        client = AsyncMock()
        client.send_file.return_value = _sent()

        await _adapter(client).send_message(
            "555", VideoPayload(media=b"v", mimetype="video/mp4", caption="loop", gif_playback=True)
        )

        kwargs = client.send_file.await_args.kwargs
        self.assertEqual(kwargs["caption"], "loop")
        self.assertIsInstance(kwargs["attributes"][0], types.DocumentAttributeAnimated)

    async def test_document_uses_placeholder_file_name(self) -> None:
        client = AsyncMock()
        client.send_file.return_value = _sent()

        await _adapter(client).send_message(
            "555", DocumentPayload(media=b"%PDF", mimetype="application/pdf", caption="doc")
        )

        kwargs = client.send_file.await_args.kwargs
        self.assertTrue(kwargs["force_document"])
        self.assertEqual(kwargs["attributes"][0].file_name, "file")
        self.assertEqual(client.send_file.await_args.args[1].name, "file.pdf")

    async def test_poll(self) -> None:
        client = AsyncMock()
        client.send_message.return_value = _sent(text="")

        await _adapter(client).send_message(
            "555", PollPayload(question="Lunch?", options=("pizza", "sushi"), selectable_count=1)
        )

        media = client.send_message.await_args.kwargs["file"]
        self.assertIsInstance(media, types.InputMediaPoll)
        self.assertFalse(media.poll.multiple_choice)
        self.assertEqual(media.poll.hash, 0)
        self.assertEqual([a.text.text for a in media.poll.answers], ["pizza", "sushi"])

    async def test_reaction(self) -> None:
        client = AsyncMock()
        client.get_input_entity.return_value = "peer"
        payload = ReactionPayload(key=MessageKey(chat_id="555", id="42"), emoji="👍")

        result = await _adapter(client).send_message("555", payload)

        self.assertIsNone(result)
        request = client.await_args.args[0]
        self.assertIsInstance(request, functions.messages.SendReactionRequest)
        self.assertEqual(request.msg_id, 42)
        self.assertEqual(request.reaction[0].emoticon, "👍")

    async def test_reaction_to_non_numeric_id_raises_typed_error(self) -> None:
        client = AsyncMock()
        payload = ReactionPayload(key=MessageKey(chat_id="555", id="ABC123"), emoji="👍")

        with self.assertRaises(InvalidMessageIdError):
            await _adapter(client).send_message("555", payload)
        client.assert_not_awaited()

    async def test_composing_presence(self) -> None:
        client = AsyncMock()
        client.get_input_entity.return_value = "peer"

        await _adapter(client).send_presence_update("composing", "555")

        client.get_input_entity.assert_awaited_once_with(555)
        request = client.await_args.args[0]
        self.assertIsInstance(request, functions.messages.SetTypingRequest)
        self.assertIsInstance(request.action, types.SendMessageTypingAction)

    async def test_unsupported_payload(self) -> None:
        with self.assertRaises(UnsupportedPayloadError):
            await _adapter(AsyncMock()).send_message("555", object())


def _event(*, text: str, is_private: bool, mentioned: bool = False, chat_id: int = -100123):
    return SimpleNamespace(
        raw_text=text,
        chat_id=chat_id,
        sender_id=77,
        out=False,
        is_private=is_private,
        is_reply=False,
        message=SimpleNamespace(id=9, message=text, media=None, mentioned=mentioned),
    )


class TestBuildInbound(unittest.IsolatedAsyncioTestCase):
    async def test_group_message_named_in_text_counts_as_mention(self) -> None:
        client = AsyncMock()
        adapter = _adapter(client)
        send_api = SendApi(adapter, default_account_id="default")

        msg, observed = await adapter.build_inbound(_event(text="hey Me", is_private=False), send_api)

        self.assertEqual(msg.chat_type, "group")
        self.assertTrue(msg.was_mentioned)
        self.assertEqual(msg.chat_id, "-100123")
        self.assertEqual(observed.key, MessageKey(chat_id="-100123", id="9", from_me=False, participant="77"))

    async def test_direct_message_is_never_a_mention(self) -> None:
        adapter = _adapter(AsyncMock())
        send_api = SendApi(adapter, default_account_id="default")

        msg, _ = await adapter.build_inbound(
            _event(text="hey Me", is_private=True, mentioned=True, chat_id=555), send_api
        )

        self.assertEqual(msg.chat_type, "direct")
        self.assertFalse(msg.was_mentioned)

    async def test_bound_reply_quotes_remembered_inbound(self) -> None:
        client = AsyncMock()
        client.send_message.return_value = _sent(msg_id=10, chat_id=-100123)
        adapter = _adapter(client)
        send_api = SendApi(adapter, default_account_id="default")

        msg, observed = await adapter.build_inbound(
            _event(text="hello", is_private=False, mentioned=True), send_api
        )
        send_api.remember_message(observed)
        await msg.reply("hi back", SendOptions(reply_to_id=msg.id))

        client.send_message.assert_awaited_once_with(-100123, "hi back", reply_to=9)
        self.assertIsNotNone(send_api.cache.resolve("-100123", "10"))

    async def test_bound_composing(self) -> None:
        client = AsyncMock()
        client.get_input_entity.return_value = "peer"
        adapter = _adapter(client)
        send_api = SendApi(adapter, default_account_id="default")

        msg, _ = await adapter.build_inbound(_event(text="hello", is_private=True, chat_id=555), send_api)
        await msg.send_composing()

        request = client.await_args.args[0]
        self.assertIsInstance(request, functions.messages.SetTypingRequest)

    async def test_echoed_media_line_never_uploads_local_file(self) -> None:
        client = AsyncMock()
        client.send_message.return_value = _sent(msg_id=10, chat_id=555)
        adapter = _adapter(client)
        send_api = SendApi(adapter, default_account_id="default")
        echo = EchoPlugin(dataclasses.replace(_dummy_config(), enable_echo=True), logging.getLogger("test"))
        body = "hi\nMEDIA: /tmp/quote_relay.session"

        msg, _ = await adapter.build_inbound(_event(text=body, is_private=True, chat_id=555), send_api)
        for reply_result in await echo.on_message(msg):
            await deliver_reply(
                reply_result=reply_result,
                msg=msg,
                max_media_bytes=100,
                text_limit=4096,
                reply_logger=logging.getLogger("test"),
            )

        client.send_file.assert_not_awaited()
        client.send_message.assert_awaited_once()
        self.assertEqual(client.send_message.await_args.args[1], body)


if __name__ == "__main__":
    unittest.main()
