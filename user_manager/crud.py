import re
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from . import models, schemas


class StoreError(RuntimeError):
    """Raised when the database cannot complete an operation."""


class UniqueConstraintViolation(StoreError):
    """A write collided with a unique index on ``field``."""

    def __init__(self, field: Optional[str], message: str = "") -> None:
        self.field = field
        super().__init__(message or f"Unique constraint failed on the field: {field}")


class RecordNotFound(StoreError):
    """The addressed record does not exist."""


# SQLite and PostgreSQL report the offending column differently.
_UNIQUE_PATTERNS = (
    re.compile(r"UNIQUE constraint failed: \w+\.(\w+)"),
    re.compile(r"Key \((\w+)\)=\(.*\) already exists"),
)


def _unique_field(exc: IntegrityError) -> Optional[str]:
    text = str(exc.orig)
    for pattern in _UNIQUE_PATTERNS:
        match = pattern.search(text)
        if match:
            return match.group(1)
    return None


def _commit(db: Session) -> None:
    """Commit the session, translating driver errors into store errors."""
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        field = _unique_field(exc)
        if field is not None:
            raise UniqueConstraintViolation(field) from exc
        raise StoreError(str(exc.orig)) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise StoreError(str(exc)) from exc
    except Exception as exc:
        # Some driver errors (e.g. sqlite3 OverflowError) are not wrapped by SQLAlchemy.
        db.rollback()
        raise StoreError(str(exc)) from exc


def get_users(db: Session) -> List[models.User]:
    """Return all users, newest first."""
    stmt = select(models.User).order_by(models.User.created_at.desc())
    try:
        return list(db.execute(stmt).scalars().all())
    except SQLAlchemyError as exc:
        db.rollback()
        raise StoreError(str(exc)) from exc


def get_user(db: Session, user_id: str) -> Optional[models.User]:
    return db.get(models.User, user_id)


def create_user(db: Session, user_in: schemas.UserCreate) -> models.User:
    """Insert a new user.

    Raises:
        InvalidAgeError: if ``age`` is not a whole number.
        UniqueConstraintViolation: if the email is already taken.
        StoreError: on any other database failure.
    """
    user = models.User(**user_in.to_record())
    db.add(user)
    _commit(db)
    db.refresh(user)
    return user


def update_user(db: Session, user_id: str, changes: Dict[str, Any]) -> models.User:
    """Apply ``changes`` to the user and return the refreshed row.

    Raises:
        RecordNotFound: if no user has ``user_id``.
        UniqueConstraintViolation: if the new email is already taken.
        StoreError: on any other database failure.
    """
    user = db.get(models.User, user_id)
    if user is None:
        raise RecordNotFound("User not found")

    for name, value in changes.items():
        setattr(user, name, value)

    _commit(db)
    db.refresh(user)
    return user


def delete_user(db: Session, user_id: str) -> None:
    user = db.get(models.User, user_id)
    if user is None:
        raise RecordNotFound("User not found")

    db.delete(user)
    _commit(db)


def delete_all_users(db: Session) -> int:
    """Delete every user and return how many rows were removed."""
    try:
        result = db.execute(delete(models.User))
    except SQLAlchemyError as exc:
        db.rollback()
        raise StoreError(str(exc)) from exc

    _commit(db)
    return result.rowcount
