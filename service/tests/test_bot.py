"""
Tests for the Telegram update handler: which updates reach the dispatcher.
"""

import asyncio
from types import SimpleNamespace

from telegram import Update

from postbot.telegram_bot.bot import TEXT_MESSAGES, handle_text_message


class RecordingDispatcher:

    def __init__(self):
        self.messages = []

    async def handle_message(self, message):
        self.messages.append(message)


def make_update(text: str, kind: str = "message", thread_id: int | None = None) -> Update:
    message = {
        "message_id": 5,
        "date": 1768478400,
        "chat": {"id": -100500, "type": "supergroup", "is_forum": True},
        "from": {"id": 1001, "is_bot": False, "first_name": "Alice", "username": "alice"},
        "text": text,
    }
    if kind == "edited_message":
        message["edit_date"] = 1768478460
    if thread_id is not None:
        message["message_thread_id"] = thread_id
        message["is_topic_message"] = True
    return Update.de_json({"update_id": 1, kind: message}, None)


def make_context(dispatcher):
    return SimpleNamespace(application=SimpleNamespace(bot_data={"dispatcher": dispatcher}))


def deliver(update: Update) -> RecordingDispatcher:
    dispatcher = RecordingDispatcher()
    if TEXT_MESSAGES.check_update(update):
        asyncio.run(handle_text_message(update, make_context(dispatcher)))
    return dispatcher


class TestTextMessages:

    def test_new_message_is_dispatched(self):
        dispatcher = deliver(make_update("/post hello"))

        assert len(dispatcher.messages) == 1
        incoming = dispatcher.messages[0]
        assert incoming.text == "/post hello"
        assert incoming.chat_id == -100500
        assert incoming.chat_identity == 1001
        assert incoming.chat_handle == "alice"
        assert incoming.thread_id is None

    def test_edited_message_is_not_dispatched(self):
        update = make_update("/post hello", kind="edited_message")

        assert not TEXT_MESSAGES.check_update(update)
        assert deliver(update).messages == []

    def test_edited_message_ignored_by_handler(self):
        dispatcher = RecordingDispatcher()
        update = make_update("/post hello", kind="edited_message")

        asyncio.run(handle_text_message(update, make_context(dispatcher)))

        assert dispatcher.messages == []

    def test_topic_message_keeps_thread(self):
        dispatcher = deliver(make_update("hello", thread_id=77))
        assert dispatcher.messages[0].thread_id == 77
