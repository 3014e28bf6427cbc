"""
Security Module: Bearer Credential Verification

Provides the authentication boundary for the HTTP surface:
- JWT access token creation (for operators and tests)
- JWT validation with issuer and audience checks
- FastAPI dependency resolving the calling principal
- Security headers for responses

Credential issuance and session management live outside this service;
here a token is only verified.

Architectural Pattern: Security Utilities + Cross-Cutting Concerns
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from loguru import logger
from pydantic import BaseModel, Field

from config.settings import get_settings
from core.exceptions import Unauthenticated

bearer_scheme = HTTPBearer(auto_error=False)

ACCESS_TOKEN_EXPIRE_MINUTES = 30

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
}


class TokenData(BaseModel):
    """Claims extracted from a verified access token."""

    subject: str
    scopes: list[str] = Field(default_factory=list)
    expires_at: Optional[datetime] = None
    issued_at: Optional[datetime] = None
    jti: Optional[str] = None


def create_access_token(
    subject: str,
    *,
    scopes: Optional[list[str]] = None,
    expires_delta: Optional[timedelta] = None,
    extra_claims: Optional[Dict[str, Any]] = None,
) -> str:
    """
    Create a signed access token for ``subject``.

    Args:
        subject: Principal identifier stored in ``sub``
        scopes: Optional scope list
        expires_delta: Lifetime, defaults to ACCESS_TOKEN_EXPIRE_MINUTES
        extra_claims: Additional claims merged into the payload

    Returns:
        str: The encoded JWT
    """
    security = get_settings().security
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))

    to_encode: Dict[str, Any] = dict(extra_claims or {})
    to_encode.update(
        {
            "sub": subject,
            "scopes": scopes or [],
            "exp": expire,
            "iat": now,
            "iss": security.jwt_issuer,
            "aud": security.jwt_audience,
        }
    )
    return jwt.encode(
        to_encode, security.secret_key.get_secret_value(), algorithm=security.jwt_algorithm
    )


def decode_access_token(token: str) -> TokenData:
    """
    Decode and validate an access token.

    Signature, expiry, audience and issuer are all checked.

    Raises:
        Unauthenticated: If the token is invalid or expired
    """
    security = get_settings().security
    try:
        payload = jwt.decode(
            token,
            security.secret_key.get_secret_value(),
            algorithms=[security.jwt_algorithm],
            audience=security.jwt_audience,
            issuer=security.jwt_issuer,
        )
    except JWTError as e:
        logger.warning(f"Rejected bearer token: {e}")
        raise Unauthenticated("Could not validate credentials", cause=e) from e

    subject = payload.get("sub")
    if not subject:
        logger.warning("JWT token missing 'sub' claim")
        raise Unauthenticated("Could not validate credentials")

    exp = payload.get("exp")
    iat = payload.get("iat")
    return TokenData(
        subject=subject,
        scopes=payload.get("scopes") or [],
        expires_at=datetime.fromtimestamp(exp, tz=timezone.utc) if exp else None,
        issued_at=datetime.fromtimestamp(iat, tz=timezone.utc) if iat else None,
        jti=payload.get("jti"),
    )


async def get_current_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> TokenData:
    """
    FastAPI dependency returning the verified caller.

    Raises:
        Unauthenticated: Missing or invalid bearer credential
    """
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise Unauthenticated("Missing bearer credential")
    return decode_access_token(credentials.credentials)


__all__ = [
    "bearer_scheme",
    "SECURITY_HEADERS",
    "TokenData",
    "create_access_token",
    "decode_access_token",
    "get_current_principal",
]
