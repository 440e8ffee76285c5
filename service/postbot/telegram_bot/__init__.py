"""
Telegram bot module.

ARCHITECTURE: thin transport layer around the Dispatcher.
- Receives webhook updates from Telegram (python-telegram-bot)
- Parses text into Command / CallbackUrl / FreeText
- Routes to command handlers, the OAuth2 callback, or the post generator
- Replies through the Bot API
"""

from .bot import handle_telegram_update, initialize_bot, shutdown_bot
from .dispatcher import Dispatcher, IncomingMessage
from .parser import CallbackUrl, Command, FreeText, parse_message

__all__ = [
    "handle_telegram_update",
    "initialize_bot",
    "shutdown_bot",
    "Dispatcher",
    "IncomingMessage",
    "CallbackUrl",
    "Command",
    "FreeText",
    "parse_message",
]
