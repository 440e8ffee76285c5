from .base import AccountStore, get_or_create
from .memory_store import MemoryAccountStore
from .mongo_store import MongoAccountStore

__all__ = ["AccountStore", "get_or_create", "MemoryAccountStore", "MongoAccountStore"]
