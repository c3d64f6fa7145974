from typing import Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from ..database import get_db, get_supabase
from ..models.user import User
from supabase import Client
import logging

security = HTTPBearer()
optional_security = HTTPBearer(auto_error=False)
logger = logging.getLogger(__name__)


def _resolve_user(token: str, db: Session, supabase: Client) -> Optional[User]:
    """Verify a Supabase access token and map it to a local user"""
    auth_response = supabase.auth.get_user(token)
    if not auth_response or not auth_response.user:
        return None
    return User.sync_from_auth(db, auth_response.user)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
    supabase: Client = Depends(get_supabase),
) -> User:
    unauthorized = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        user = _resolve_user(credentials.credentials, db, supabase)
    except Exception as e:
        logger.warning(f"Rejected bearer token: {e}")
        raise unauthorized

    if user is None:
        raise unauthorized
    return user


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(optional_security),
    db: Session = Depends(get_db),
) -> Optional[User]:
    """Current user when a valid token is present; public endpoints never 401"""
    if credentials is None:
        return None

    try:
        return _resolve_user(credentials.credentials, db, get_supabase())
    except Exception as e:
        logger.info(f"Ignoring invalid optional credentials: {e}")
        return None
