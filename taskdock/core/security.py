from datetime import datetime, timedelta
from typing import Optional
from jose import JWTError, jwt
from taskdock.core.config import settings

def create_access_token(user_id, email: str) -> str:
    # access token, valid JWT_EXPIRE_MIN minutes
    payload = {
        "user_id": str(user_id),
        "email": email,
        "exp": datetime.utcnow() + timedelta(minutes=settings.JWT_EXPIRE_MIN),
        "type": "access"
    }
    token = jwt.encode(payload, settings.JWT_SECRET, algorithm="HS256")
    return token

def create_refresh_token(user_id, email: str) -> str:
    # refresh token, valid JWT_REFRESH_EXPIRE_MIN minutes
    payload = {
        "user_id": str(user_id),
        "email": email,
        "exp": datetime.utcnow() + timedelta(minutes=settings.JWT_REFRESH_EXPIRE_MIN),
        "type": "refresh"
    }
    token = jwt.encode(payload, settings.JWT_SECRET, algorithm="HS256")
    return token

def verify_token(token: str) -> Optional[dict]:
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=["HS256"])
        return payload
    except JWTError:
        return None

def decode_token(token: str) -> Optional[str]:
    """Return the user id of a valid access token, None otherwise."""
    payload = verify_token(token)
    if payload is None or payload.get("type") != "access":
        return None
    return payload.get("user_id")
