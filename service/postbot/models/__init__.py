from .account import Account, PendingAuthorization, utcnow

__all__ = ["Account", "PendingAuthorization", "utcnow"]
