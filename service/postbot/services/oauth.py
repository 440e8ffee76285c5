"""
OAuth2 account linking for X.

begin_authorization() stores the PKCE verifier and state on the account;
complete_authorization() checks an inbound (code, state) against them and
exchanges the code. Only the most recent /connect per account can be
completed, since each begin overwrites the pending pair.
"""

import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

from postbot.errors import AuthorizationSessionNotFoundError, HandleUnavailableError
from postbot.logging_config import bot_logger as logger
from postbot.models import Account, utcnow
from postbot.services.x_api import AuthorizationLink, XClient
from postbot.storage import AccountStore


@dataclass
class LinkedCredentials:
    posting_handle: str
    access_token: str
    refresh_token: Optional[str]
    expires_at: datetime


class OAuthCorrelator:

    def __init__(
        self,
        x_client: XClient,
        store: AccountStore,
        redirect_uri: str,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.x_client = x_client
        self.store = store
        self.redirect_uri = redirect_uri
        self.clock = clock

    async def begin_authorization(self, account: Account) -> AuthorizationLink:
        link = self.x_client.build_authorization_url(self.redirect_uri)

        await self.store.update_fields(account.id, {
            "pending_authorization": {"verifier": link.verifier, "state": link.state},
            "last_activity_at": self.clock(),
        })

        logger.info(f"Started authorization for chat_identity={account.chat_identity}")
        return link

    async def complete_authorization(
        self,
        account: Account,
        code: str,
        state: str,
    ) -> LinkedCredentials:
        """
        Exchange the code for tokens and read the linked handle.

        Does not touch the store; the caller persists the result with
        link_account().

        Raises:
            AuthorizationSessionNotFoundError: state does not match the pending handshake
            HandleUnavailableError: the handle could not be read
            PostingApiError: the token exchange or identity call failed
        """
        pending = account.pending_authorization
        if pending is None or not code or not state:
            raise AuthorizationSessionNotFoundError()
        if not secrets.compare_digest(pending.state.encode(), state.encode()):
            raise AuthorizationSessionNotFoundError()

        grant = await self.x_client.exchange_code(code, pending.verifier, self.redirect_uri)

        username = await self.x_client.get_username(grant.access_token)
        if not username:
            raise HandleUnavailableError()

        return LinkedCredentials(
            posting_handle=username.lower(),
            access_token=grant.access_token,
            refresh_token=grant.refresh_token,
            expires_at=self.clock() + timedelta(seconds=grant.expires_in),
        )

    async def link_account(self, account: Account, credentials: LinkedCredentials) -> None:
        """Store credentials, mark linked and drop the pending handshake in one write."""
        fields = {
            "posting_handle": credentials.posting_handle,
            "access_token": credentials.access_token,
            "refresh_token": credentials.refresh_token,
            "token_expires_at": credentials.expires_at,
            "linked": True,
            "last_activity_at": self.clock(),
        }
        await self.store.update_fields(account.id, fields, unset=["pending_authorization"])
        logger.info(
            f"Linked chat_identity={account.chat_identity} to @{credentials.posting_handle}"
        )
