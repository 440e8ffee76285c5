"""
Link status resolution.

Expired credentials are noticed lazily: whichever handler reads the
account first flips `linked` to false before carrying on.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from postbot.logging_config import bot_logger as logger
from postbot.models import Account
from postbot.storage import AccountStore


class LinkStatus(str, Enum):
    NO_ACCOUNT = "no_account"
    NOT_LINKED = "not_linked"
    EXPIRED = "expired"
    LINKED = "linked"


async def resolve_link_status(
    store: AccountStore,
    account: Optional[Account],
    now: datetime,
) -> LinkStatus:
    if account is None:
        return LinkStatus.NO_ACCOUNT
    if not account.linked:
        return LinkStatus.NOT_LINKED
    if account.is_expired(now):
        logger.info(f"Credentials expired for chat_identity={account.chat_identity}")
        await store.update_fields(account.id, {"linked": False})
        account.linked = False
        return LinkStatus.EXPIRED
    return LinkStatus.LINKED
