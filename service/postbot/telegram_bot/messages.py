"""
Reply texts. All messages are sent with parse_mode=HTML, so anything
user-supplied must go through html.escape before formatting.
"""

from datetime import datetime
from html import escape

MAX_POST_LENGTH = 280

WELCOME_TEXT = """🐦 <b>Welcome to the X Post Bot with AI Post Generator!</b>

I can help you turn long-form text into posts and publish them to X.

<b>Available commands:</b>
🔗 /connect - Connect your X account
📝 /post &lt;text&gt; - Publish a post
📊 /state - Check connection status
🚫 /disconnect - Disconnect account

<b>AI Post Generator:</b>
💬 Send me any long-form text and I'll draft 3-4 posts for you:
   • Paste your article, blog post, or notes
   • I'll pick out the key ideas and write several options
   • Copy one and use /post to publish it

Start with /connect to authorize your X account, then send me your content!"""

HELP_TEXT = """📚 <b>X Post Bot Help</b>

<b>Commands:</b>
🔗 /connect - Start X OAuth2 authorization
📝 /post &lt;text&gt; - Publish a post (max 280 chars)
📊 /state - Check X connection status
🚫 /disconnect - Disconnect X account
🧪 /test - Check that the bot is responding

<b>AI Post Generator:</b>
💬 Send any long-form text to get 3-4 draft posts.

<b>How to connect:</b>
1. Use /connect to get an authorization link
2. Open the link and approve access
3. Copy the URL from your browser and send it back here
4. Use /post to publish, /state to check your connection"""

UNKNOWN_COMMAND_TEXT = "❌ Unknown command. Use /help to see available commands."

POST_USAGE_TEXT = "📝 Usage: /post &lt;text&gt;\n\nExample: /post Hello from Telegram!"

NOT_CONNECTED_TEXT = (
    "❌ <b>You're not connected to X!</b>\n\n"
    "Use /connect to connect your X account first."
)

NO_ACCOUNT_TEXT = (
    "❌ <b>No account found!</b>\n\n"
    "Use /connect to connect your X account."
)

EXPIRED_TEXT = (
    "❌ <b>Your X session has expired!</b>\n\n"
    "Use /connect to reconnect your account."
)

SESSION_NOT_FOUND_TEXT = "❌ Authorization session not found. Please try /connect again."

INVALID_CALLBACK_TEXT = "❌ Invalid authorization URL. Please try /connect again."

HANDLE_UNREADABLE_TEXT = "❌ Could not read your X handle. Please try again."

UNAVAILABLE_TEXT = (
    "⚠️ <b>Service temporarily unavailable</b>\n\n"
    "Unable to process your request right now.\n"
    "Please try again in a moment."
)

# Per-handler failure replies for unexpected errors
FAILURE_TEXTS = {
    "start": "❌ Unable to process your request right now. Please try again in a moment.",
    "connect": "❌ Failed to start X authorization. Please try again.",
    "post": "❌ Failed to publish your post. Please try again or use /connect to reconnect.",
    "state": "❌ Failed to check status. Please try again.",
    "disconnect": "❌ Failed to disconnect. Please try again.",
    "help": "❌ Unable to show help right now. Please try again.",
    "test": "❌ Test failed. Please try again.",
    "callback": "❌ Authorization failed. Please try again or use /connect to restart.",
    "generate": "❌ Sorry, I'm having trouble generating posts right now. Please try again later.",
}


def too_long_text(length: int) -> str:
    return (
        f"❌ Post too long! Maximum {MAX_POST_LENGTH} characters allowed.\n\n"
        f"Your post: {length} characters"
    )


def already_connected_text(handle: str | None) -> str:
    return (
        f"You're already connected as @{escape(handle or '')}! "
        "Use /post to publish or /state to check your status."
    )


def authorize_text(url: str) -> str:
    return (
        "🔗 <b>X Connection</b>\n\n"
        "Click the link below to authorize this bot to post on your behalf:\n\n"
        f"<a href=\"{escape(url)}\">🔐 Authorize X</a>\n\n"
        "⚠️ <b>Important:</b> After authorization you'll land on a page with a URL. "
        "Copy the full URL from your browser's address bar and send it back to me "
        "to finish connecting."
    )


def connected_text(handle: str) -> str:
    return (
        "✅ <b>Successfully connected!</b>\n\n"
        f"You're now connected as @{escape(handle)}\n"
        "You can now use:\n"
        "• /post &lt;text&gt; - to publish posts\n"
        "• /state - to check your status\n"
        "• /disconnect - to disconnect"
    )


def posted_text(text: str, post_id: str, handle: str | None) -> str:
    return (
        "✅ <b>Posted successfully!</b>\n\n"
        f"📝 <b>Text:</b> {escape(text)}\n"
        f"🆔 <b>Post ID:</b> {escape(post_id)}\n"
        f"🐦 <b>Posted as:</b> @{escape(handle or '')}"
    )


def state_text(handle: str | None, last_activity: datetime, joined: datetime) -> str:
    return (
        "✅ <b>Connected to X</b>\n\n"
        f"🐦 <b>Handle:</b> @{escape(handle or '')}\n"
        f"⏰ <b>Last Activity:</b> {_format_time(last_activity)}\n"
        f"📅 <b>Joined:</b> {_format_time(joined)}\n\n"
        "Use /post &lt;text&gt; to publish!"
    )


def disconnected_text(handle: str | None) -> str:
    return (
        "✅ <b>Disconnected from X</b>\n\n"
        f"You've been disconnected from @{escape(handle or '')}\n"
        "Use /connect to reconnect."
    )


def test_text(chat_id: int, chat_identity: int, now: datetime) -> str:
    return (
        "✅ <b>Bot is working!</b>\n\n"
        f"📱 <b>Chat ID:</b> {chat_id}\n"
        f"👤 <b>Telegram ID:</b> {chat_identity}\n"
        f"⏰ <b>Time:</b> {_format_time(now)}"
    )


def generated_posts_text(generated: str) -> str:
    return (
        "🐦 <b>Generated Posts</b>\n\n"
        f"{escape(generated)}\n\n"
        "💡 <b>Tip:</b> Copy any post and use /post to publish it!"
    )


def _format_time(value: datetime) -> str:
    return value.strftime("%Y-%m-%d %H:%M UTC")
