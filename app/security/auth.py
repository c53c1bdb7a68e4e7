from jose import jwt
from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import uuid4
from fastapi import HTTPException, Depends, status
from fastapi.security import OAuth2PasswordBearer
from app.config import (
    SECRET_KEY,
    ALGORITHM,
    ACCESS_TOKEN_EXPIRE_MINUTES,
    REFRESH_TOKEN_EXPIRE_DAYS,
)
from app.database import SupabaseClient, get_db
from app.models.user_model import UserProfile
from app.utils.exceptions import BackendError, to_http_exception
from app.logger import get_logger

logger = get_logger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/token")


def _create_token(data: dict, token_type: str, expires_delta: timedelta):
    to_encode = data.copy()
    now = datetime.now(timezone.utc)
    expire = now + expires_delta

    to_encode.update({
        "exp": expire,
        "jti": str(uuid4()),
        "iat": now,
        "type": token_type,
    })
    encoded_jwt = jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)
    return encoded_jwt, expire


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None):
    return _create_token(
        data, "access", expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    )


def create_refresh_token(data: dict, expires_delta: Optional[timedelta] = None):
    return _create_token(
        data, "refresh", expires_delta or timedelta(days=REFRESH_TOKEN_EXPIRE_DAYS)
    )


def create_token_pair(user: UserProfile):
    claims = {"sub": str(user.id), "role": user.role.value}
    access_token, _ = create_access_token(data=claims)
    refresh_token, _ = create_refresh_token(data=claims)
    return access_token, refresh_token


def _decode_token(token: str, expected_type: str, detail: str) -> str:
    """Return the user id carried by a valid token of ``expected_type``."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except jwt.JWTError:
        raise credentials_exception

    user_id: str = payload.get("sub")
    jti: str = payload.get("jti")
    token_type: str = payload.get("type")
    if user_id is None or jti is None or token_type != expected_type:
        raise credentials_exception
    return user_id


def _load_user(db: SupabaseClient, user_id: str, detail: str) -> UserProfile:
    try:
        row = db.select_one("users", filters={"id": f"eq.{user_id}"})
    except BackendError as e:
        logger.error(f"Error loading user {user_id}: {e.message}")
        raise to_http_exception(e)
    if row is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )
    return UserProfile.model_validate(row)


def verify_refresh_token(token: str, db: SupabaseClient) -> UserProfile:
    """Verify refresh token and return a fresh copy of the user"""
    user_id = _decode_token(token, "refresh", "Invalid refresh token")
    return _load_user(db, user_id, "Invalid refresh token")


def get_current_user(token: str = Depends(oauth2_scheme), db: SupabaseClient = Depends(get_db)):
    user_id = _decode_token(token, "access", "Could not validate credentials")
    return _load_user(db, user_id, "Could not validate credentials")


def get_current_active_user(current_user: UserProfile = Depends(get_current_user)):
    """Get current user and ensure they are not banned"""
    if current_user.is_banned:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is banned"
        )
    return current_user


def get_current_admin_user(current_user: UserProfile = Depends(get_current_active_user)):
    """Get current user and ensure they are admin"""
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required"
        )
    return current_user
