"""
core.users.store — Durable CRUD for User records.

All DB writes happen here so routes stay thin. Routes depend on the
abstract ``UserStore``; ``SQLAlchemyUserStore`` is the relational backend
built on the shared Flask-SQLAlchemy session.

Store methods must run inside an application context. During a request
Flask provides one; startup code pushes it explicitly.
"""
from __future__ import annotations

from abc import ABC, abstractmethod

import structlog
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from core.users.errors import BackendUnavailable, ConstraintViolation, NotFound
from core.users.filters import MAX_INT64, UsersListFilter
from models import db as default_db, User

logger = structlog.get_logger(__name__)


class UserStore(ABC):
    """Capability interface the request handlers depend on."""

    @abstractmethod
    def add_user(self, name: str, email: str) -> int:
        """Insert a user and return the assigned id."""

    @abstractmethod
    def get_user(self, user_id: int) -> User:
        """Fetch exactly one user or raise NotFound."""

    @abstractmethod
    def get_users_list(self, users_filter: UsersListFilter) -> list[User]:
        """Return the users inside the filter's page window."""

    @abstractmethod
    def update_user(self, user_id: int, name: str, email: str) -> None:
        """Overwrite both name and email, or raise NotFound."""

    @abstractmethod
    def delete_user(self, user_id: int) -> None:
        """Remove a user, or raise NotFound."""


def _storable_id(user_id: int) -> bool:
    """No row can carry an id outside the signed 64-bit range."""
    return 0 <= user_id <= MAX_INT64


def _backend_error(op: str, exc: SQLAlchemyError):
    """Translate a SQLAlchemy failure into the store taxonomy."""
    if isinstance(exc, IntegrityError):
        return ConstraintViolation(f'constraint violated: {exc.orig}', op)
    logger.error('backend call failed', op=op, error=str(exc))
    return BackendUnavailable(f'failed to execute statement: {exc}', op)


class SQLAlchemyUserStore(UserStore):
    """User store over a pooled SQLAlchemy engine."""

    def __init__(self, database=None):
        self._db = database if database is not None else default_db

    @property
    def _session(self):
        return self._db.session

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def ping(self) -> None:
        """Check that the backend accepts connections."""
        op = 'storage.users.ping'
        try:
            with self._db.engine.connect() as conn:
                conn.execute(text('SELECT 1'))
        except SQLAlchemyError as exc:
            raise BackendUnavailable(f'failed to ping: {exc}', op) from exc

    def migrate(self) -> None:
        """Ensure the users table exists."""
        op = 'storage.users.migrate'
        try:
            self._db.create_all()
        except SQLAlchemyError as exc:
            raise BackendUnavailable(f'failed to create tables: {exc}', op) from exc
        logger.debug('users table ensured', op=op)

    def close(self) -> None:
        """Dispose of the connection pool."""
        self._session.remove()
        self._db.engine.dispose()

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    def add_user(self, name: str, email: str) -> int:
        op = 'storage.users.add_user'
        user = User(name=name, email=email)
        try:
            self._session.add(user)
            self._session.flush()
            user_id = user.id
            self._session.commit()
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise _backend_error(op, exc) from exc

        logger.debug('user added', op=op, user_id=user_id)
        return user_id

    def get_user(self, user_id: int) -> User:
        op = 'storage.users.get_user'
        if not _storable_id(user_id):
            raise NotFound(user_id, op)
        try:
            user = self._session.get(User, user_id)
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise _backend_error(op, exc) from exc

        if user is None:
            raise NotFound(user_id, op)
        return user

    def get_users_list(self, users_filter: UsersListFilter) -> list[User]:
        op = 'storage.users.get_users_list'
        try:
            return (
                self._session.query(User)
                .order_by(User.id.asc())
                .offset(users_filter.offset)
                .limit(users_filter.limit)
                .all()
            )
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise _backend_error(op, exc) from exc

    def update_user(self, user_id: int, name: str, email: str) -> None:
        op = 'storage.users.update_user'
        if not _storable_id(user_id):
            raise NotFound(user_id, op)
        try:
            affected = (
                self._session.query(User)
                .filter_by(id=user_id)
                .update({'name': name, 'email': email}, synchronize_session='evaluate')
            )
            if affected == 0:
                self._session.rollback()
                raise NotFound(user_id, op)
            self._session.commit()
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise _backend_error(op, exc) from exc

        logger.debug('user updated', op=op, user_id=user_id)

    def delete_user(self, user_id: int) -> None:
        op = 'storage.users.delete_user'
        if not _storable_id(user_id):
            raise NotFound(user_id, op)
        try:
            affected = (
                self._session.query(User)
                .filter_by(id=user_id)
                .delete(synchronize_session='evaluate')
            )
            if affected == 0:
                self._session.rollback()
                raise NotFound(user_id, op)
            self._session.commit()
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise _backend_error(op, exc) from exc

        logger.debug('user deleted', op=op, user_id=user_id)
