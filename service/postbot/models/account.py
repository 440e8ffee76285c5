"""
Account document: one per Telegram user.

Stored in a single MongoDB collection. `pending_authorization` only exists
on the document while an OAuth2 handshake is in flight; it is removed with
`$unset` rather than set to null.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PendingAuthorization(BaseModel):
    verifier: str
    state: str


class Account(BaseModel):
    id: Optional[str] = None  # MongoDB _id as string
    chat_identity: int
    chat_handle: Optional[str] = None
    posting_handle: Optional[str] = None  # lowercase X username
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    token_expires_at: Optional[datetime] = None
    linked: bool = False
    last_activity_at: datetime = Field(default_factory=utcnow)
    joined_at: datetime = Field(default_factory=utcnow)
    pending_authorization: Optional[PendingAuthorization] = None

    def is_expired(self, now: datetime) -> bool:
        return self.token_expires_at is not None and self.token_expires_at <= now

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> "Account":
        data = {k: v for k, v in doc.items() if k != "_id"}
        if "_id" in doc:
            data["id"] = str(doc["_id"])
        return cls.model_validate(data)

    def to_document(self) -> dict[str, Any]:
        """Document for insertion. Absent optional fields are left out entirely."""
        return self.model_dump(exclude={"id"}, exclude_none=True)
