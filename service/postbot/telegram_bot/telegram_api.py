"""
Outbound Telegram calls.

The dispatcher only sees the ChatSender interface; TelegramSender is the
real implementation on top of python-telegram-bot's Bot.
"""

from typing import Optional, Protocol

from telegram import Bot, LinkPreviewOptions
from telegram.constants import ChatAction, ParseMode


class ChatSender(Protocol):

    async def send_message(
        self,
        chat_id: int,
        text: str,
        thread_id: Optional[int] = None,
        disable_preview: bool = False,
    ) -> None:
        ...

    async def send_chat_action(
        self,
        chat_id: int,
        action: str = ChatAction.TYPING,
        thread_id: Optional[int] = None,
    ) -> None:
        ...


class TelegramSender:
    """Send HTML messages and chat actions through the Bot API."""

    def __init__(self, bot: Bot):
        self.bot = bot

    async def send_message(
        self,
        chat_id: int,
        text: str,
        thread_id: Optional[int] = None,
        disable_preview: bool = False,
    ) -> None:
        """
        Send message to Telegram user.

        Args:
            chat_id: Telegram chat ID
            text: Message text (HTML)
            thread_id: Forum topic to reply in, if any
            disable_preview: Suppress link previews
        """
        await self.bot.send_message(
            chat_id=chat_id,
            text=text,
            parse_mode=ParseMode.HTML,
            message_thread_id=thread_id,
            link_preview_options=LinkPreviewOptions(is_disabled=True) if disable_preview else None,
        )

    async def send_chat_action(
        self,
        chat_id: int,
        action: str = ChatAction.TYPING,
        thread_id: Optional[int] = None,
    ) -> None:
        await self.bot.send_chat_action(
            chat_id=chat_id,
            action=action,
            message_thread_id=thread_id,
        )
