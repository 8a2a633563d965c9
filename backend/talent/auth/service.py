"""
Token issuing and verification
"""
from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import JWTError, jwt
import structlog

from talent.core.config import settings
from talent.core.exceptions import AuthenticationError

logger = structlog.get_logger()


def create_access_token(user_id: int, expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT access token for a user"""
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode = {"sub": str(user_id), "exp": expire, "type": "access"}
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> int:
    """Return the user id carried by a valid access token"""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        raise AuthenticationError("Invalid token")
    
    if payload.get("type") != "access":
        raise AuthenticationError("Invalid token type")
    
    subject = payload.get("sub")
    try:
        user_id = int(subject)
    except (TypeError, ValueError):
        raise AuthenticationError("Invalid token subject")
    if user_id <= 0:
        raise AuthenticationError("Invalid token subject")
    return user_id
