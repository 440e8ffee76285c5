"""
Main Telegram bot handler.

Uses python-telegram-bot library with webhook mode: updates arrive through
the FastAPI webhook and are fed to the application here. Every text
message goes to the Dispatcher, which does its own classification.
"""

from telegram import Update
from telegram.ext import Application, ContextTypes, MessageHandler, filters

from postbot.config import Settings, get_settings
from postbot.errors import StoreUnavailableError
from postbot.logging_config import bot_logger as logger
from postbot.services import OAuthCorrelator, TextTransformer, XClient
from postbot.storage import MongoAccountStore

from .dispatcher import Dispatcher, IncomingMessage
from .telegram_api import TelegramSender


# Global application instance (initialized once)
_application: Application | None = None

# New text messages only; an edited message must not run its command again
TEXT_MESSAGES = filters.UpdateType.MESSAGE & filters.TEXT


def build_dispatcher(application: Application, settings: Settings) -> Dispatcher:
    """Wire the dispatcher's collaborators from settings."""
    store = MongoAccountStore(
        settings.mongodb_uri,
        settings.mongodb_db_name,
        settings.mongodb_collection,
    )
    x_client = XClient(settings.x_client_id, settings.x_client_secret)
    correlator = OAuthCorrelator(x_client, store, settings.callback_url)
    transformer = TextTransformer.from_credentials(
        settings.deepseek_api_key,
        settings.deepseek_base_url,
        settings.deepseek_model,
    )

    return Dispatcher(
        store=store,
        correlator=correlator,
        x_client=x_client,
        transformer=transformer,
        sender=TelegramSender(application.bot),
    )


async def handle_text_message(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Convert a Telegram text message and pass it to the dispatcher."""
    message = update.message
    user = update.effective_user

    if message is None or not message.text or user is None:
        logger.debug("Update without text or sender, ignoring")
        return

    dispatcher: Dispatcher = context.application.bot_data["dispatcher"]
    await dispatcher.handle_message(IncomingMessage(
        chat_id=message.chat_id,
        chat_identity=user.id,
        text=message.text,
        chat_handle=user.username,
        thread_id=message.message_thread_id if message.is_topic_message else None,
    ))


async def handle_error(update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Log errors raised while processing an update."""
    logger.error(f"Update {update} caused error: {context.error}", exc_info=context.error)


def get_bot_application() -> Application:
    """Get or create telegram bot application."""
    global _application

    if _application is None:
        settings = get_settings()

        # No updater: updates come in through the webhook endpoint
        _application = (
            Application.builder()
            .token(settings.telegram_bot_token)
            .updater(None)
            .build()
        )

        _application.bot_data["dispatcher"] = build_dispatcher(_application, settings)

        _application.add_handler(MessageHandler(TEXT_MESSAGES, handle_text_message))
        _application.add_error_handler(handle_error)

        logger.info("Telegram bot application initialized")

    return _application


async def handle_telegram_update(update_data: dict) -> None:
    """
    Process incoming webhook update from Telegram.

    This is called by FastAPI webhook endpoint as a detached task,
    so it must never raise.
    """
    try:
        app = get_bot_application()

        # Convert dict to Update object
        update = Update.de_json(update_data, app.bot)

        if update:
            await app.process_update(update)
        else:
            logger.warning("Received invalid update data")

    except Exception as e:
        logger.error(f"Failed to process update: {e}", exc_info=True)


async def initialize_bot() -> None:
    """
    Initialize bot application (call on startup).

    The database connection is attempted here too; if it fails the store
    reconnects on the first request that needs it.
    """
    app = get_bot_application()
    await app.initialize()

    dispatcher: Dispatcher = app.bot_data["dispatcher"]
    if isinstance(dispatcher.store, MongoAccountStore):
        try:
            await dispatcher.store.connect()
        except StoreUnavailableError:
            logger.warning("Database not reachable at startup, will retry on demand")

    logger.info("Bot initialized successfully")


async def shutdown_bot() -> None:
    """
    Shutdown bot application (call on shutdown).
    """
    global _application
    if _application:
        dispatcher: Dispatcher = _application.bot_data["dispatcher"]
        await dispatcher.store.close()
        await dispatcher.x_client.close()
        await dispatcher.transformer.close()
        await _application.shutdown()
        _application = None
        logger.info("Bot shut down")
