"""
API Dependencies
FastAPI dependencies for authentication and tenant database access
"""

from typing import Annotated, AsyncIterator

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from loguru import logger
import jwt

from honeycert.database.routing import TenantRouting
from honeycert.middleware.tenant_context import TenantContext
from honeycert.models.master import AdminRole
from honeycert.security.jwt_handler import verify_token, TokenType, TokenPayload


# HTTP Bearer token scheme
security = HTTPBearer(
    scheme_name="JWT",
    description="Enter your JWT access token",
    auto_error=True
)


def get_routing(request: Request) -> TenantRouting:
    """Connection routing services built at startup."""
    return request.app.state.routing


async def get_token_payload(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> TokenPayload:
    """
    Validate the bearer token and set the tenant context.

    Usage:
        @router.get("/protected")
        async def protected_route(token: TokenDep):
            return {"tenant": token.tenant_id}
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = verify_token(credentials.credentials, TokenType.ACCESS)
    except jwt.ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except jwt.InvalidTokenError:
        raise credentials_exception

    if payload is None or not payload.tenant_id:
        raise credentials_exception

    TenantContext.set_current(tenant_id=payload.tenant_id, user_id=payload.sub)
    return payload


async def get_tenant_session(
    token: TokenPayload = Depends(get_token_payload),
    routing: TenantRouting = Depends(get_routing),
) -> AsyncIterator[AsyncSession]:
    """
    Session on the caller's tenant database.
    The engine stays pooled after the request.
    """
    async with routing.manager.session_scope(token.tenant_id, token.database_url) as session:
        yield session


def require_role(*allowed_roles: str):
    """
    Dependency factory for role-based access control.

    Usage:
        @router.get("/admin-only")
        async def admin_route(token: TokenPayload = Depends(require_role("admin"))):
            ...
    """
    async def role_checker(
        token: TokenPayload = Depends(get_token_payload)
    ) -> TokenPayload:
        if token.role not in allowed_roles:
            logger.warning(f"Role {token.role} denied, required: {allowed_roles}")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. Required role: {', '.join(allowed_roles)}"
            )
        return token

    return role_checker


# Type aliases for cleaner dependency injection
TokenDep = Annotated[TokenPayload, Depends(get_token_payload)]
RoutingDep = Annotated[TenantRouting, Depends(get_routing)]
TenantSessionDep = Annotated[AsyncSession, Depends(get_tenant_session)]
AdminDep = Annotated[
    TokenPayload,
    Depends(require_role(AdminRole.ADMIN.value, AdminRole.SUPER_ADMIN.value))
]
SuperAdminDep = Annotated[TokenPayload, Depends(require_role(AdminRole.SUPER_ADMIN.value))]
