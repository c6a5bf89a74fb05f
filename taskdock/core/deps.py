import uuid
from typing import Optional

from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session

from taskdock.core.database import get_db
from taskdock.core.errors import UnauthenticatedError
from taskdock.core.security import decode_token
from taskdock.models.user import User
from taskdock.storage import StorageAdapter


def get_current_user(
    db: Session = Depends(get_db),
    authorization: Optional[str] = Header(None)
) -> User:
    """
    Resolve the user behind the bearer token.

    Missing, malformed, expired tokens and tokens of deleted users all give 401.
    """
    if not authorization or not authorization.startswith("Bearer "):
        raise UnauthenticatedError("Missing token")

    token = authorization[len("Bearer "):].strip()
    user_id = decode_token(token)
    if not user_id:
        raise UnauthenticatedError("Invalid token")

    try:
        user_uuid = uuid.UUID(user_id)
    except ValueError:
        raise UnauthenticatedError("Invalid token")

    user = db.query(User).filter(User.id == user_uuid).first()
    if not user:
        raise UnauthenticatedError("Invalid token")

    return user


def get_storage(request: Request) -> StorageAdapter:
    # built once in create_app
    return request.app.state.storage
