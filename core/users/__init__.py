"""
core.users — User storage domain.

Public API:
    UserStore              — abstract capability the routes depend on
    SQLAlchemyUserStore    — relational implementation
    UsersListFilter        — page / page_size window for listing
    UserStoreError         — base of the failure taxonomy
    ValidationError, NotFound, ConstraintViolation, BackendUnavailable
"""

from core.users.errors import (
    UserStoreError,
    ValidationError,
    NotFound,
    ConstraintViolation,
    BackendUnavailable,
)
from core.users.filters import UsersListFilter, DEFAULT_PAGE, DEFAULT_PAGE_SIZE, MAX_INT64
from core.users.store import UserStore, SQLAlchemyUserStore

__all__ = [
    'UserStore',
    'SQLAlchemyUserStore',
    'UsersListFilter',
    'DEFAULT_PAGE',
    'DEFAULT_PAGE_SIZE',
    'MAX_INT64',
    'UserStoreError',
    'ValidationError',
    'NotFound',
    'ConstraintViolation',
    'BackendUnavailable',
]
