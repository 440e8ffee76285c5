import asyncio
from html import escape

from fastapi import FastAPI, Header, HTTPException, Request
from fastapi.responses import HTMLResponse

from postbot.config import get_settings
from postbot.logging_config import bot_logger as logger
from postbot.telegram_bot.bot import handle_telegram_update, initialize_bot, shutdown_bot

VERSION = "0.1.0"

app = FastAPI(
    title="X Post Bot API",
    description="Telegram bot for linking an X account and publishing posts",
    version=VERSION
)

# Detached webhook tasks, kept referenced until they finish
_background_tasks: set[asyncio.Task] = set()


# Lifecycle events
@app.on_event("startup")
async def startup_event():
    """Initialize bot on startup. Missing configuration fails here."""
    logger.info("[STARTUP] Initializing Telegram bot...")
    get_settings()
    await initialize_bot()
    logger.info("[STARTUP] Bot ready")


@app.on_event("shutdown")
async def shutdown_event():
    """Shutdown bot on application shutdown."""
    logger.info("[SHUTDOWN] Shutting down Telegram bot...")
    await shutdown_bot()
    logger.info("[SHUTDOWN] Bot stopped")


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    settings = get_settings()
    return {
        "status": "ok",
        "environment": settings.environment,
        "version": VERSION
    }


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "service": "X Post Bot API",
        "docs": "/docs"
    }


def _log_task_result(task: asyncio.Task) -> None:
    _background_tasks.discard(task)
    if not task.cancelled() and task.exception() is not None:
        logger.error("Webhook task failed", exc_info=task.exception())


# Telegram webhook endpoint
@app.post("/telegram/webhook")
async def telegram_webhook(
    request: Request,
    x_telegram_bot_api_secret_token: str = Header(None)
):
    """
    Webhook endpoint for Telegram updates.

    Acknowledges immediately; the update is processed in a detached task
    whose failures are logged and never reach this response.
    """
    settings = get_settings()

    # Verify secret token if configured
    if settings.telegram_webhook_secret:
        if x_telegram_bot_api_secret_token != settings.telegram_webhook_secret:
            raise HTTPException(status_code=403, detail="Invalid secret token")

    try:
        update_data = await request.json()
    except ValueError:
        logger.warning("Webhook received a non-JSON body")
        return {"ok": True}

    # Handle update in background (fire-and-forget for fast 200 OK)
    task = asyncio.create_task(handle_telegram_update(update_data))
    _background_tasks.add(task)
    task.add_done_callback(_log_task_result)

    return {"ok": True}


AUTH_SUCCESS_PAGE = """<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <title>Almost done</title>
</head>
<body>
  <h1>Almost done!</h1>
  <p>Copy the full URL below (or from your browser's address bar) and send it to the bot in Telegram to finish connecting your X account.</p>
  <textarea readonly rows="4" cols="80" onclick="this.select()">{callback_url}</textarea>
</body>
</html>
"""


@app.get("/auth/x/callback", response_class=HTMLResponse)
async def x_oauth_callback(request: Request, code: str | None = None, state: str | None = None):
    """
    OAuth2 redirect target.

    The redirect lands in the browser, not the chat, so this page only asks
    the user to paste the URL back to the bot; the exchange happens there.
    """
    if not code or not state:
        raise HTTPException(status_code=400, detail="Missing code or state parameter")

    logger.info("OAuth callback received, showing URL to user")
    return HTMLResponse(AUTH_SUCCESS_PAGE.format(callback_url=escape(str(request.url))))


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
