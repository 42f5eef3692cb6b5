"""Application error base and persistence errors."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import exc as sa_exc

__all__ = [
    "AppError",
    "RepositoryError",
    "NotFoundError",
    "IntegrityConstraintViolation",
    "DatabaseOperationError",
    "handle_sqlalchemy_errors",
]


class AppError(Exception):
    """Base class for Tubely errors."""


class RepositoryError(AppError):
    """A record could not be read or written."""


class NotFoundError(RepositoryError):
    """The requested record does not exist."""


class IntegrityConstraintViolation(RepositoryError):
    pass


class DatabaseOperationError(RepositoryError):
    """The driver failed (locked database, lost connection, bad SQL)."""


@contextmanager
def handle_sqlalchemy_errors(*, entity: str) -> Iterator[None]:
    """Re-raise SQLAlchemy failures as :class:`RepositoryError` subclasses.

    The message names ``entity`` but never echoes driver output, which can
    contain bound parameters.
    """
    try:
        yield
    except sa_exc.IntegrityError as exc:
        raise IntegrityConstraintViolation(f"{entity}: integrity constraint violated") from exc
    except sa_exc.DBAPIError as exc:
        raise DatabaseOperationError(f"{entity}: database operation failed") from exc
    except sa_exc.SQLAlchemyError as exc:
        raise RepositoryError(f"{entity}: {type(exc).__name__}") from exc
