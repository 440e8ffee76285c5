"""
Account Store interface.

Every operation is a single-document read or write; no transactions.
"""

from typing import Any, Iterable, Optional, Protocol

from postbot.errors import AccountExistsError
from postbot.models import Account


class AccountStore(Protocol):

    async def find_by_identity(self, chat_identity: int) -> Optional[Account]:
        ...

    async def create(self, chat_identity: int, chat_handle: Optional[str] = None) -> Account:
        """Insert a fresh unlinked account. Raises AccountExistsError on duplicates."""
        ...

    async def update_fields(
        self,
        account_id: str,
        fields: dict[str, Any],
        unset: Iterable[str] = (),
    ) -> None:
        """Set `fields` and remove the keys named in `unset` from the document."""
        ...

    async def find_by_pending_state(
        self,
        state: str,
        chat_identity: Optional[int] = None,
    ) -> Optional[Account]:
        ...

    async def close(self) -> None:
        ...


async def get_or_create(
    store: AccountStore,
    chat_identity: int,
    chat_handle: Optional[str] = None,
) -> tuple[Account, bool]:
    """
    Fetch the account for `chat_identity`, creating it if absent.

    A concurrent create that loses the race on the unique index is treated
    as "already exists": the winner's record is re-fetched.

    Returns:
        (account, created)
    """
    account = await store.find_by_identity(chat_identity)
    if account is not None:
        return account, False

    try:
        return await store.create(chat_identity, chat_handle), True
    except AccountExistsError:
        account = await store.find_by_identity(chat_identity)
        if account is None:
            raise
        return account, False
