"""Bearer token verification"""
from datetime import datetime, timedelta
from typing import Optional, Dict, Any
from jose import JWTError, jwt
from pydantic import BaseModel

from app.core.config import settings


class Principal(BaseModel):
    """Caller identity taken from the auth service's JWT"""
    subject: str
    tenant_id: Optional[str] = None
    is_admin: bool = False


class InvalidTokenError(Exception):
    pass


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT access token (used by tooling and tests; the auth service issues real ones)"""
    to_encode = data.copy()
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=30))
    to_encode.update({"exp": expire, "type": "access"})
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> Principal:
    """Decode and verify JWT token"""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as e:
        raise InvalidTokenError(f"Could not validate credentials: {e}")

    if payload.get("type") != "access" or not payload.get("sub"):
        raise InvalidTokenError("Invalid token type")

    return Principal(
        subject=str(payload["sub"]),
        tenant_id=payload.get("tenant_id"),
        is_admin=bool(payload.get("is_admin", False)),
    )
