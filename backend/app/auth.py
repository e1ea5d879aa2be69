"""
Bearer-token authentication.

Tokens are issued by the platform's identity service and signed with the
shared ``SECRET_KEY``. The ledger only needs two claims: ``sub`` (the client
id) and ``role`` (``admin`` for back-office callers).
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
import logging
from typing import Any, Dict, Optional, cast

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
import jwt
from jwt import PyJWTError

from .core.config import settings

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/login", auto_error=False)


@dataclass(frozen=True)
class AuthenticatedClient:
    """Caller identity extracted from a verified token."""

    id: str
    role: str = "client"

    @property
    def is_admin(self) -> bool:
        return self.role == settings.admin_role_claim


def decode_access_token(token: str) -> Dict[str, Any]:
    """Decode and verify a JWT access token."""
    payload = jwt.decode(
        token,
        settings.secret_key.get_secret_value(),
        algorithms=[settings.algorithm],
        options={"verify_aud": False},
    )
    return cast(Dict[str, Any], payload)


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token.

    Args:
        data: The data to encode in the token
        expires_delta: Optional expiration time delta

    Returns:
        str: The encoded JWT token
    """
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.secret_key.get_secret_value(), algorithm=settings.algorithm)


async def get_current_client(token: Optional[str] = Depends(oauth2_scheme)) -> AuthenticatedClient:
    """
    Dependency resolving the authenticated caller.

    Raises:
        HTTPException: 401 if the token is missing, invalid or expired
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        payload = decode_access_token(token)
    except PyJWTError as e:
        logger.info(f"JWT decode failed: {str(e)}")
        raise credentials_exception

    subject = payload.get("sub")
    if not subject:
        raise credentials_exception
    return AuthenticatedClient(id=str(subject), role=str(payload.get("role") or "client"))


async def require_admin(
    client: AuthenticatedClient = Depends(get_current_client),
) -> AuthenticatedClient:
    """Dependency restricting an endpoint to admin tokens."""
    if not client.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return client
