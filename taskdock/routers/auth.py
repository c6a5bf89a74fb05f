import uuid

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from taskdock.core.database import get_db
from taskdock.core.deps import get_current_user
from taskdock.core.errors import ConflictError, UnauthenticatedError
from taskdock.core.security import create_access_token, create_refresh_token, verify_token
from taskdock.models.user import User
from taskdock.schemas.user import UserCreate, UserResponse, LoginRequest, RefreshRequest, TokenResponse

router = APIRouter(prefix="/auth", tags=["auth"])

@router.post("/signup", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def signup(user_data: UserCreate, db: Session = Depends(get_db)):
    """Create a new user"""

    existing_user = db.query(User).filter(User.email == user_data.email).first()
    if existing_user:
        raise ConflictError("Email already registered")

    new_user = User(email=user_data.email, name=user_data.name)
    new_user.set_password(user_data.password)

    db.add(new_user)
    db.commit()
    db.refresh(new_user)

    return new_user

@router.post("/login", response_model=TokenResponse)
def login(credentials: LoginRequest, db: Session = Depends(get_db)):
    """Log in and receive an access/refresh token pair"""

    user = db.query(User).filter(User.email == credentials.email).first()
    # same message for unknown email and wrong password
    if not user or not user.verify_password(credentials.password):
        raise UnauthenticatedError("Invalid email or password")

    return {
        "access_token": create_access_token(user.id, user.email),
        "refresh_token": create_refresh_token(user.id, user.email),
        "token_type": "bearer"
    }

@router.post("/refresh", response_model=TokenResponse)
def refresh(body: RefreshRequest, db: Session = Depends(get_db)):
    """Exchange a refresh token for a new access token"""

    payload = verify_token(body.refresh_token)
    if not payload or payload.get("type") != "refresh":
        raise UnauthenticatedError("Invalid refresh token")

    try:
        user_id = uuid.UUID(payload.get("user_id") or "")
    except ValueError:
        raise UnauthenticatedError("Invalid refresh token")

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise UnauthenticatedError("Invalid refresh token")

    return {
        "access_token": create_access_token(user.id, user.email),
        "refresh_token": body.refresh_token,
        "token_type": "bearer"
    }

@router.get("/me", response_model=UserResponse)
def me(current_user: User = Depends(get_current_user)):
    return current_user
