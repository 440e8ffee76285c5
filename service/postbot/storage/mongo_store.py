"""
MongoDB-backed Account Store.

Connection policy: reconnect on demand. Before each operation the store
checks that it holds a verified connection; if not (first use, or a
previous operation failed) it builds a fresh client, pings the server and
ensures indexes. There is no background reconnect loop.
"""

from typing import Any, Iterable, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING, AsyncMongoClient
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.errors import DuplicateKeyError, PyMongoError

from postbot.errors import AccountExistsError, StoreUnavailableError
from postbot.logging_config import bot_logger as logger
from postbot.models import Account

SERVER_SELECTION_TIMEOUT_MS = 5000


class MongoAccountStore:
    """Account storage in a single MongoDB collection."""

    def __init__(self, uri: str, db_name: str, collection_name: str):
        self._uri = uri
        self._db_name = db_name
        self._collection_name = collection_name
        self._client: AsyncMongoClient | None = None
        self._connected = False

    async def connect(self) -> None:
        """Create a client, verify it with a ping and ensure indexes."""
        if self._client is not None:
            await self._client.close()

        self._client = AsyncMongoClient(
            self._uri,
            tz_aware=True,
            serverSelectionTimeoutMS=SERVER_SELECTION_TIMEOUT_MS,
        )

        try:
            await self._client.admin.command("ping")
            collection = self._client[self._db_name][self._collection_name]
            await collection.create_index(
                [("chat_identity", ASCENDING)],
                unique=True,
            )
            await collection.create_index(
                [("pending_authorization.state", ASCENDING)],
                unique=True,
                partialFilterExpression={"pending_authorization.state": {"$exists": True}},
            )
        except PyMongoError as e:
            self._connected = False
            logger.error(f"MongoDB connection failed: {e}")
            raise StoreUnavailableError("Database unavailable") from e

        self._connected = True
        logger.info(f"Connected to MongoDB database={self._db_name}")

    async def _collection(self) -> AsyncCollection:
        if not self._connected or self._client is None:
            logger.warning("Database not connected, attempting to connect...")
            await self.connect()
        return self._client[self._db_name][self._collection_name]

    def _failed(self, operation: str, error: PyMongoError) -> StoreUnavailableError:
        # Force a reconnect before the next operation
        self._connected = False
        logger.error(f"MongoDB {operation} failed: {error}")
        return StoreUnavailableError(f"Database {operation} failed")

    async def find_by_identity(self, chat_identity: int) -> Optional[Account]:
        collection = await self._collection()
        try:
            doc = await collection.find_one({"chat_identity": chat_identity})
        except PyMongoError as e:
            raise self._failed("find", e) from e
        return Account.from_document(doc) if doc else None

    async def create(self, chat_identity: int, chat_handle: Optional[str] = None) -> Account:
        collection = await self._collection()
        account = Account(chat_identity=chat_identity, chat_handle=chat_handle)
        try:
            result = await collection.insert_one(account.to_document())
        except DuplicateKeyError as e:
            raise AccountExistsError(chat_identity) from e
        except PyMongoError as e:
            raise self._failed("insert", e) from e

        logger.info(f"Created account for chat_identity={chat_identity}")
        return account.model_copy(update={"id": str(result.inserted_id)})

    async def update_fields(
        self,
        account_id: str,
        fields: dict[str, Any],
        unset: Iterable[str] = (),
    ) -> None:
        update: dict[str, Any] = {}
        if fields:
            update["$set"] = fields
        unset_fields = {key: "" for key in unset}
        if unset_fields:
            update["$unset"] = unset_fields
        if not update:
            return

        try:
            object_id = ObjectId(account_id)
        except InvalidId as e:
            raise StoreUnavailableError(f"Invalid account id: {account_id}") from e

        collection = await self._collection()
        try:
            await collection.update_one({"_id": object_id}, update)
        except PyMongoError as e:
            raise self._failed("update", e) from e

    async def find_by_pending_state(
        self,
        state: str,
        chat_identity: Optional[int] = None,
    ) -> Optional[Account]:
        query: dict[str, Any] = {"pending_authorization.state": state}
        if chat_identity is not None:
            query["chat_identity"] = chat_identity

        collection = await self._collection()
        try:
            doc = await collection.find_one(query)
        except PyMongoError as e:
            raise self._failed("find", e) from e
        return Account.from_document(doc) if doc else None

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None
        self._connected = False
