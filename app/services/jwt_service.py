# app/services/jwt_service.py - Bearer tokens for learners, operators and the cron caller
from datetime import datetime, timedelta
from typing import Optional, Dict, Any
import hmac
import logging

from jose import JWTError, jwt
from fastapi import Depends, Header, HTTPException, Query, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from app.core.database import get_db
from app.core.config import settings
from app.models.user import User

logger = logging.getLogger(__name__)

# Security schemes
security = HTTPBearer()
optional_security = HTTPBearer(auto_error=False)

# JWT Configuration
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = 30


def create_access_token(
    data: Dict[str, Any], expires_delta: Optional[timedelta] = None
) -> str:
    """Create JWT access token"""
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode.update({"exp": expire, "type": "access"})
    return jwt.encode(to_encode, settings.secret_key, algorithm=ALGORITHM)


def create_user_token(user: User, expires_delta: Optional[timedelta] = None) -> str:
    return create_access_token(
        {"sub": user.email, "user_id": user.id}, expires_delta=expires_delta
    )


def verify_token(token: str) -> Dict[str, Any]:
    """Verify JWT token and return payload"""
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )


def _user_from_credentials(
    credentials: HTTPAuthorizationCredentials, db: Session
) -> User:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    payload = verify_token(credentials.credentials)
    if payload.get("type") != "access":
        raise credentials_exception

    user_email: str = payload.get("sub")
    user_id: int = payload.get("user_id")
    if user_email is None or user_id is None:
        raise credentials_exception

    user = db.query(User).filter(User.id == user_id, User.email == user_email).first()
    if user is None:
        # Token outlived the account
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User account no longer exists",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="User account is inactive"
        )

    return user


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """Get current authenticated user from JWT token"""
    user = _user_from_credentials(credentials, db)

    user.last_login = datetime.utcnow()
    db.commit()

    return user


async def get_current_operator(
    current_user: User = Depends(get_current_user),
) -> User:
    """Admin endpoints: front-desk staff and back-office operators"""
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required"
        )
    return current_user


async def verify_cron_caller(
    x_cron_secret: Optional[str] = Header(None),
    key: Optional[str] = Query(None),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(optional_security),
    db: Session = Depends(get_db),
) -> str:
    """
    Scheduled jobs present the shared cron secret in the X-Cron-Secret header
    or the ``key`` query parameter; an operator may also trigger them by hand.

    With no cron secret configured only operator tokens are accepted.
    Returns a label for the caller, used in logs.
    """
    provided = x_cron_secret or key
    if provided and settings.cron_secret:
        if hmac.compare_digest(provided, settings.cron_secret):
            return "cron"
        logger.warning("Rejected cron call with an invalid secret")

    if credentials:
        user = _user_from_credentials(credentials, db)
        if user.is_admin:
            return f"operator:{user.id}"
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required"
        )

    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized"
    )
