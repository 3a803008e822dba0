from __future__ import annotations

from .contracts import InboundMessage, NoQuote, Quote, QuoteDecision, ReplyResult


def decide_threading(reply_result: ReplyResult, msg: InboundMessage) -> QuoteDecision:
    """Decide whether a reply is rendered as a quote of a prior message.

    An explicit reply tag from the reply layer always wins. Without one, direct chats are
    never quoted and group replies quote the inbound message only when the bot was mentioned.
    """

    reply_to_id = (reply_result.reply_to_id or "").strip()
    if reply_result.reply_to_tag is True and reply_to_id:
        return Quote(message_id=reply_to_id)
    if reply_result.reply_to_tag is False:
        return NoQuote()

    if msg.chat_type == "group" and msg.was_mentioned:
        return Quote(message_id=msg.id)
    return NoQuote()
