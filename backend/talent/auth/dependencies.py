"""
Authentication dependencies for FastAPI routes
"""
from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
import structlog

from talent.auth.service import decode_access_token
from talent.resumes.aggregate import UserId

logger = structlog.get_logger()

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/v1/auth/login")


def get_current_user_id(token: str = Depends(oauth2_scheme)) -> UserId:
    """
    Get the authenticated user's id from the JWT bearer token
    """
    user_id = UserId(decode_access_token(token))
    structlog.contextvars.bind_contextvars(user_id=user_id)
    return user_id
