"""
JWT Handler Module
Manages JSON Web Token creation and verification for tenant sessions
"""

import uuid
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict, Optional

import jwt
from pydantic import BaseModel, ConfigDict, Field
from loguru import logger

from honeycert.config import settings


class TokenType(str, Enum):
    """Token type enumeration"""
    ACCESS = "access"


class TokenPayload(BaseModel):
    """
    JWT Token Payload Schema

    Every authenticated request is normalized into this one type before it
    reaches the tenant connection layer.
    """
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "sub": "42",
                "tenant_id": "3f1c0a4e-9a4d-4e36-9f53-2d0b8f7b6c11",
                "role": "admin",
                "type": "access"
            }
        }
    )

    sub: str = Field(..., description="Subject (user or admin ID)")
    tenant_id: str = Field(..., description="Tenant (database) ID")
    role: str = Field(default="user", description="Caller role")
    email: Optional[str] = Field(None, description="Caller email")
    database_url: Optional[str] = Field(None, repr=False, description="Cached tenant DSN")
    type: str = Field(..., description="Token type")
    exp: Optional[datetime] = Field(None, description="Expiration time")
    iat: Optional[datetime] = Field(None, description="Issued at time")
    jti: Optional[str] = Field(None, description="JWT ID (unique identifier)")

    @property
    def user_id(self) -> int:
        return int(self.sub)


def create_access_token(
    subject: Any,
    tenant_id: str,
    role: str = "user",
    email: Optional[str] = None,
    database_url: Optional[str] = None,
    expires_delta: Optional[timedelta] = None,
    additional_claims: Optional[Dict[str, Any]] = None
) -> str:
    """
    Create a JWT access token.

    Args:
        subject: User or admin ID
        tenant_id: Tenant the caller belongs to
        role: Caller role ("user", "admin", "super_admin")
        email: Caller email
        database_url: Tenant DSN to cache in the token, skipping catalog lookups
        expires_delta: Custom expiration time (default: from settings)
        additional_claims: Extra claims to include in token

    Returns:
        JWT token string
    """
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.jwt_access_token_expire_minutes)

    now = datetime.now(timezone.utc)

    payload = {
        "sub": str(subject),
        "tenant_id": tenant_id,
        "role": role,
        "type": TokenType.ACCESS.value,
        "iat": now,
        "exp": now + expires_delta,
        "jti": str(uuid.uuid4())
    }
    if email:
        payload["email"] = email
    if database_url:
        payload["database_url"] = database_url

    if additional_claims:
        payload.update(additional_claims)

    return jwt.encode(
        payload,
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm
    )


def verify_token(token: str, token_type: TokenType = TokenType.ACCESS) -> Optional[TokenPayload]:
    """
    Verify and decode a JWT token.

    Args:
        token: JWT token string
        token_type: Expected token type

    Returns:
        TokenPayload if valid, None if the token type does not match

    Raises:
        jwt.ExpiredSignatureError: If token is expired
        jwt.InvalidTokenError: If token is invalid
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm]
        )

        if payload.get("type") != token_type.value:
            logger.warning(f"Token type mismatch: expected {token_type.value}, got {payload.get('type')}")
            return None

        return TokenPayload(**payload)

    except jwt.ExpiredSignatureError:
        logger.debug("Token has expired")
        raise

    except jwt.InvalidTokenError as e:
        logger.warning(f"Invalid token: {str(e)}")
        raise
