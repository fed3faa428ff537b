"""
Security Module
Token handling for tenant sessions
"""

from honeycert.security.jwt_handler import (
    TokenType,
    TokenPayload,
    create_access_token,
    verify_token,
)

__all__ = [
    "TokenType",
    "TokenPayload",
    "create_access_token",
    "verify_token",
]
