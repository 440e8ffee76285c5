"""
Tests for the Account document model.
"""

from datetime import datetime, timedelta, timezone

from postbot.models import Account, PendingAuthorization

NOW = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)


def test_new_account_defaults():
    account = Account(chat_identity=42)
    assert account.linked is False
    assert account.access_token is None
    assert account.refresh_token is None
    assert account.pending_authorization is None


def test_to_document_leaves_out_absent_fields():
    doc = Account(chat_identity=42, chat_handle="alice").to_document()
    assert doc["chat_identity"] == 42
    assert doc["chat_handle"] == "alice"
    assert "pending_authorization" not in doc
    assert "access_token" not in doc
    assert "id" not in doc


def test_from_document_maps_object_id():
    doc = {
        "_id": "65a1f0c2e4b0a1b2c3d4e5f6",
        "chat_identity": 42,
        "linked": True,
        "access_token": "tok",
        "pending_authorization": {"verifier": "v", "state": "s"},
    }
    account = Account.from_document(doc)
    assert account.id == "65a1f0c2e4b0a1b2c3d4e5f6"
    assert account.pending_authorization == PendingAuthorization(verifier="v", state="s")


def test_from_document_accepts_nulled_credentials():
    doc = {"_id": "x", "chat_identity": 42, "access_token": None, "token_expires_at": None}
    account = Account.from_document(doc)
    assert account.access_token is None


def test_is_expired():
    account = Account(chat_identity=42, token_expires_at=NOW - timedelta(seconds=1))
    assert account.is_expired(NOW)

    account = Account(chat_identity=42, token_expires_at=NOW + timedelta(hours=1))
    assert not account.is_expired(NOW)


def test_no_expiry_never_expires():
    assert not Account(chat_identity=42).is_expired(NOW)
