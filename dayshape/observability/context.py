"""
Owner context management with context-local storage.
"""

import contextvars
from typing import Optional

_owner_id_var: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "owner_id", default=None
)


def get_owner_id() -> Optional[str]:
    """Get the acting owner from context."""
    return _owner_id_var.get()


def set_owner_id(owner_id: str) -> contextvars.Token:
    """Set the acting owner in context. Returns token for reset."""
    return _owner_id_var.set(owner_id)


class OwnerContext:
    """
    Context manager for owner-scoped operations.

    Usage:
        with OwnerContext("alice"):
            service.set_date_override("alice", date(2026, 12, 24), "vacation")
            # every log line inside carries owner_id=alice
    """

    def __init__(self, owner_id: str):
        self.owner_id = owner_id
        self._token: Optional[contextvars.Token] = None

    def __enter__(self) -> "OwnerContext":
        self._token = set_owner_id(self.owner_id)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._token is not None:
            _owner_id_var.reset(self._token)
