import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from .. import crud, schemas
from ..database import get_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])

ERROR_RESPONSES = {
    400: {"model": schemas.ErrorResponse},
    404: {"model": schemas.ErrorResponse},
    409: {"model": schemas.ErrorResponse},
    500: {"model": schemas.ErrorResponse},
}


def _store_failure(exc: crud.StoreError, fallback: str) -> HTTPException:
    logger.warning("Store operation failed: %s", exc)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=str(exc) or fallback,
    )


def _email_conflict() -> HTTPException:
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already exists")


# Collection endpoints


@router.get("", response_model=List[schemas.UserOut], responses={500: ERROR_RESPONSES[500]})
def list_users(db: Session = Depends(get_db)):
    """Return all users, newest first."""
    try:
        return crud.get_users(db)
    except crud.StoreError as exc:
        logger.warning("Listing users failed: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch users",
        )


@router.post(
    "",
    response_model=schemas.UserOut,
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES,
)
def create_user(user_in: schemas.UserCreate, db: Session = Depends(get_db)):
    """Create a user.

    - 400 if username, fullname or email is missing or blank.
    - 409 if the email is already registered.
    """
    if user_in.missing_required():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Required fields missing",
        )

    try:
        user = crud.create_user(db, user_in)
    except schemas.InvalidAgeError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    except crud.UniqueConstraintViolation as exc:
        if exc.field == "email":
            raise _email_conflict()
        raise _store_failure(exc, "Failed to create user")
    except crud.StoreError as exc:
        raise _store_failure(exc, "Failed to create user")

    logger.info("Created user %s", user.id)
    return user


@router.delete("", response_model=schemas.Message, responses={500: ERROR_RESPONSES[500]})
def delete_all_users(db: Session = Depends(get_db)):
    try:
        removed = crud.delete_all_users(db)
    except crud.StoreError as exc:
        raise _store_failure(exc, "Failed to delete users")

    logger.info("Deleted all users (%s rows)", removed)
    return {"message": "All users deleted successfully"}


# Item endpoints


@router.get("/{user_id}", response_model=schemas.UserOut, responses={404: ERROR_RESPONSES[404]})
def get_user(user_id: str, db: Session = Depends(get_db)):
    user = crud.get_user(db, user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


@router.put("/{user_id}", response_model=schemas.UserOut, responses=ERROR_RESPONSES)
def update_user(user_id: str, patch: schemas.UserPatch, db: Session = Depends(get_db)):
    """Apply a partial update.

    Fields that are absent or blank are left untouched. The store is not
    called at all when nothing is left to change.
    """
    try:
        changes = patch.changes()
    except schemas.InvalidAgeError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))

    if not changes:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No fields to update",
        )

    try:
        user = crud.update_user(db, user_id, changes)
    except crud.UniqueConstraintViolation as exc:
        if exc.field == "email":
            raise _email_conflict()
        raise _store_failure(exc, "Failed to update user")
    except crud.StoreError as exc:
        # A missing id is reported like any other store failure here.
        raise _store_failure(exc, "Failed to update user")

    logger.info("Updated user %s (%s)", user.id, ", ".join(sorted(changes)))
    return user


@router.delete("/{user_id}", response_model=schemas.Message, responses=ERROR_RESPONSES)
def delete_user(user_id: str, db: Session = Depends(get_db)):
    try:
        crud.delete_user(db, user_id)
    except crud.RecordNotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    except crud.StoreError as exc:
        raise _store_failure(exc, "Failed to delete user")

    logger.info("Deleted user %s", user_id)
    return {"message": "User deleted successfully"}
