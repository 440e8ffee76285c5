"""
Command dispatcher - routes a parsed message to its handler.

ARCHITECTURE: all collaborators are passed in, nothing is global.
- store: Account Store (MongoDB in production, in-memory in tests)
- correlator: OAuth2 begin/complete for X
- x_client: posting calls with a user's access token
- transformer: free text → generated posts
- sender: outbound Telegram messages

Each handler runs inside _run(), which turns any failure into a short
reply and a log line. Nothing escapes handle_message().
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Awaitable, Callable, Optional

from postbot.errors import (
    AuthorizationSessionNotFoundError,
    HandleUnavailableError,
    PostBotError,
    PostingApiError,
    StoreUnavailableError,
    TextTransformError,
)
from postbot.logging_config import bot_logger as logger
from postbot.models import Account, utcnow
from postbot.services import LinkStatus, OAuthCorrelator, TextTransformer, XClient, resolve_link_status
from postbot.storage import AccountStore, get_or_create

from . import messages
from .parser import CallbackUrl, Command, FreeText, parse_message
from .telegram_api import ChatSender


@dataclass
class IncomingMessage:
    chat_id: int
    chat_identity: int  # Telegram user id of the sender
    text: str
    chat_handle: Optional[str] = None
    thread_id: Optional[int] = None


class Dispatcher:

    def __init__(
        self,
        store: AccountStore,
        correlator: OAuthCorrelator,
        x_client: XClient,
        transformer: TextTransformer,
        sender: ChatSender,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.correlator = correlator
        self.x_client = x_client
        self.transformer = transformer
        self.sender = sender
        self.clock = clock

        self._commands: dict[str, Callable[[IncomingMessage, str], Awaitable[None]]] = {
            "start": self._handle_start,
            "connect": self._handle_connect,
            "post": self._handle_post,
            "state": self._handle_state,
            "disconnect": self._handle_disconnect,
            "help": self._handle_help,
            "test": self._handle_test,
        }

    async def handle_message(self, message: IncomingMessage) -> None:
        parsed = parse_message(message.text)
        logger.info(
            f"Message from chat_identity={message.chat_identity}, "
            f"username={message.chat_handle}, kind={type(parsed).__name__}, "
            f"text_len={len(message.text)}"
        )

        if isinstance(parsed, Command):
            if not parsed.known:
                logger.info(f"Unrecognized command: /{parsed.name}")
                await self._reply(message, messages.UNKNOWN_COMMAND_TEXT)
                return
            handler = self._commands[parsed.name]
            await self._run(parsed.name, message, handler(message, parsed.args))
        elif isinstance(parsed, CallbackUrl):
            await self._run("callback", message, self._handle_callback(message, parsed))
        elif isinstance(parsed, FreeText):
            await self._run("generate", message, self._handle_free_text(message, parsed))

    async def _run(self, name: str, message: IncomingMessage, handler: Awaitable[None]) -> None:
        try:
            await handler
        except StoreUnavailableError as e:
            logger.error(f"Store unavailable in {name} handler: {e.message}")
            await self._reply(message, messages.UNAVAILABLE_TEXT)
        except PostingApiError as e:
            logger.error(f"X API error in {name} handler: {e.message}")
            if e.status_code is None:
                await self._reply(message, messages.UNAVAILABLE_TEXT)
            else:
                await self._reply(message, messages.FAILURE_TEXTS[name])
        except TextTransformError as e:
            logger.error(f"Text generation error in {name} handler: {e.message}")
            if e.transient:
                await self._reply(message, messages.UNAVAILABLE_TEXT)
            else:
                await self._reply(message, messages.FAILURE_TEXTS[name])
        except PostBotError as e:
            logger.error(f"{name} handler failed: {e.message}")
            await self._reply(message, messages.FAILURE_TEXTS[name])
        except Exception as e:
            logger.error(f"Unexpected error in {name} handler: {e}", exc_info=True)
            await self._reply(message, messages.FAILURE_TEXTS[name])

    async def _reply(self, message: IncomingMessage, text: str, disable_preview: bool = False) -> None:
        try:
            await self.sender.send_message(
                message.chat_id,
                text,
                thread_id=message.thread_id,
                disable_preview=disable_preview,
            )
        except Exception as e:
            logger.error(f"Failed to send message to chat_id={message.chat_id}: {e}")

    async def _touch(self, account: Account) -> None:
        await self.store.update_fields(account.id, {"last_activity_at": self.clock()})

    # =========================================================================
    # COMMANDS
    # =========================================================================

    async def _handle_start(self, message: IncomingMessage, args: str) -> None:
        await self._reply(message, messages.WELCOME_TEXT)

    async def _handle_help(self, message: IncomingMessage, args: str) -> None:
        await self._reply(message, messages.HELP_TEXT)

    async def _handle_test(self, message: IncomingMessage, args: str) -> None:
        await self._reply(
            message,
            messages.test_text(message.chat_id, message.chat_identity, self.clock()),
        )

    async def _handle_connect(self, message: IncomingMessage, args: str) -> None:
        account, created = await get_or_create(
            self.store, message.chat_identity, message.chat_handle
        )

        if not created:
            status = await resolve_link_status(self.store, account, self.clock())
            if status == LinkStatus.LINKED:
                await self._reply(message, messages.already_connected_text(account.posting_handle))
                return

        link = await self.correlator.begin_authorization(account)
        await self._reply(message, messages.authorize_text(link.url), disable_preview=True)

    async def _handle_post(self, message: IncomingMessage, text: str) -> None:
        if not text.strip():
            await self._reply(message, messages.POST_USAGE_TEXT)
            return

        # Length check happens before any store or X call
        if len(text) > messages.MAX_POST_LENGTH:
            await self._reply(message, messages.too_long_text(len(text)))
            return

        account = await self.store.find_by_identity(message.chat_identity)
        status = await resolve_link_status(self.store, account, self.clock())

        if status == LinkStatus.EXPIRED:
            await self._reply(message, messages.EXPIRED_TEXT)
            return
        if status != LinkStatus.LINKED:
            await self._reply(message, messages.NOT_CONNECTED_TEXT)
            return

        post_id = await self.x_client.create_post(account.access_token, text)
        logger.info(f"Posted post_id={post_id} for chat_identity={account.chat_identity}")

        await self._touch(account)
        await self._reply(message, messages.posted_text(text, post_id, account.posting_handle))

    async def _handle_state(self, message: IncomingMessage, args: str) -> None:
        account = await self.store.find_by_identity(message.chat_identity)
        status = await resolve_link_status(self.store, account, self.clock())

        if status == LinkStatus.NO_ACCOUNT:
            await self._reply(message, messages.NO_ACCOUNT_TEXT)
            return
        if status == LinkStatus.NOT_LINKED:
            await self._reply(message, messages.NOT_CONNECTED_TEXT)
            return
        if status == LinkStatus.EXPIRED:
            await self._reply(message, messages.EXPIRED_TEXT)
            return

        await self._reply(
            message,
            messages.state_text(account.posting_handle, account.last_activity_at, account.joined_at),
        )
        await self._touch(account)

    async def _handle_disconnect(self, message: IncomingMessage, args: str) -> None:
        account = await self.store.find_by_identity(message.chat_identity)

        if account is None or not account.linked:
            await self._reply(message, messages.NOT_CONNECTED_TEXT)
            return

        await self.store.update_fields(account.id, {
            "linked": False,
            "access_token": None,
            "refresh_token": None,
            "token_expires_at": None,
            "last_activity_at": self.clock(),
        })
        logger.info(f"Disconnected chat_identity={account.chat_identity}")

        await self._reply(message, messages.disconnected_text(account.posting_handle))

    # =========================================================================
    # CALLBACK URL / FREE TEXT
    # =========================================================================

    async def _handle_callback(self, message: IncomingMessage, callback: CallbackUrl) -> None:
        if not callback.code or not callback.state:
            await self._reply(message, messages.INVALID_CALLBACK_TEXT)
            return

        # Scoped by sender so one user cannot complete another user's handshake
        account = await self.store.find_by_pending_state(
            callback.state, chat_identity=message.chat_identity
        )
        if account is None:
            await self._reply(message, messages.SESSION_NOT_FOUND_TEXT)
            return

        try:
            credentials = await self.correlator.complete_authorization(
                account, callback.code, callback.state
            )
        except AuthorizationSessionNotFoundError:
            await self._reply(message, messages.SESSION_NOT_FOUND_TEXT)
            return
        except HandleUnavailableError:
            await self._reply(message, messages.HANDLE_UNREADABLE_TEXT)
            return

        await self.correlator.link_account(account, credentials)
        await self._reply(message, messages.connected_text(credentials.posting_handle))

    async def _handle_free_text(self, message: IncomingMessage, free_text: FreeText) -> None:
        try:
            await self.sender.send_chat_action(message.chat_id, thread_id=message.thread_id)
        except Exception as e:
            logger.warning(f"Failed to send typing indicator: {e}")

        generated = await self.transformer.transform(free_text.raw)
        await self._reply(message, messages.generated_posts_text(generated))
