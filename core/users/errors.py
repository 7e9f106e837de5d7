"""
core.users.errors — Failure taxonomy for user storage and request handling.

Every store failure carries the name of the operation that raised it
(e.g. ``storage.users.add_user``) so log lines can be traced back.
"""
from __future__ import annotations


class UserStoreError(Exception):
    """Base class for all user store failures."""

    def __init__(self, message: str, op: str | None = None):
        self.message = message
        self.op = op
        super().__init__(f'{op}: {message}' if op else message)


class ValidationError(UserStoreError):
    """Malformed input: unparsable id, page, page size or body."""


class NotFound(UserStoreError):
    """The targeted user does not exist."""

    def __init__(self, user_id: int, op: str | None = None):
        self.user_id = user_id
        super().__init__(f'user {user_id} not found', op)


class ConstraintViolation(UserStoreError):
    """A uniqueness or other backend constraint was violated."""


class BackendUnavailable(UserStoreError):
    """The backend call itself failed (connection, transport, driver)."""
