"""
In-memory Account Store.

Same semantics as the MongoDB store (unique identity, unique pending state,
unset vs null), without an external database.
"""

import copy
import uuid
from typing import Any, Iterable, Optional

from postbot.errors import AccountExistsError, StoreUnavailableError
from postbot.logging_config import bot_logger as logger
from postbot.models import Account


class MemoryAccountStore:
    """Dictionary-backed account storage."""

    def __init__(self):
        self._documents: dict[str, dict[str, Any]] = {}
        logger.info("Initialized in-memory account store")

    def _find_one(self, criteria: dict[str, Any]) -> Optional[dict[str, Any]]:
        for doc in self._documents.values():
            if all(_get_path(doc, key) == value for key, value in criteria.items()):
                return doc
        return None

    async def find_by_identity(self, chat_identity: int) -> Optional[Account]:
        doc = self._find_one({"chat_identity": chat_identity})
        return Account.from_document(copy.deepcopy(doc)) if doc else None

    async def create(self, chat_identity: int, chat_handle: Optional[str] = None) -> Account:
        if self._find_one({"chat_identity": chat_identity}) is not None:
            raise AccountExistsError(chat_identity)

        account = Account(chat_identity=chat_identity, chat_handle=chat_handle)
        doc = account.to_document()
        doc["_id"] = uuid.uuid4().hex
        self._documents[doc["_id"]] = doc
        return Account.from_document(copy.deepcopy(doc))

    async def update_fields(
        self,
        account_id: str,
        fields: dict[str, Any],
        unset: Iterable[str] = (),
    ) -> None:
        doc = self._documents.get(account_id)
        if doc is None:
            return

        state = (fields.get("pending_authorization") or {}).get("state")
        if state is not None:
            other = self._find_one({"pending_authorization.state": state})
            if other is not None and other["_id"] != account_id:
                raise StoreUnavailableError("Duplicate pending authorization state")

        doc.update(copy.deepcopy(fields))
        for key in unset:
            doc.pop(key, None)

    async def find_by_pending_state(
        self,
        state: str,
        chat_identity: Optional[int] = None,
    ) -> Optional[Account]:
        criteria: dict[str, Any] = {"pending_authorization.state": state}
        if chat_identity is not None:
            criteria["chat_identity"] = chat_identity
        doc = self._find_one(criteria)
        return Account.from_document(copy.deepcopy(doc)) if doc else None

    def raw_document(self, chat_identity: int) -> Optional[dict[str, Any]]:
        """Stored document as-is, for inspecting which keys exist."""
        doc = self._find_one({"chat_identity": chat_identity})
        return copy.deepcopy(doc) if doc else None

    async def close(self) -> None:
        return None


_MISSING = object()


def _get_path(doc: dict[str, Any], dotted: str) -> Any:
    value: Any = doc
    for part in dotted.split("."):
        if not isinstance(value, dict) or part not in value:
            return _MISSING
        value = value[part]
    return value
