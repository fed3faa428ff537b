"""
Tenant Context
Request-scoped tenant identity for multi-tenant operations
"""

from contextvars import ContextVar
from typing import Optional

from loguru import logger


_current_tenant_id: ContextVar[Optional[str]] = ContextVar(
    'current_tenant_id', default=None
)
_current_user_id: ContextVar[Optional[str]] = ContextVar(
    'current_user_id', default=None
)


class TenantContext:
    """
    Tenant context for the current request.

    Usage:
        # Set context (done by the auth dependency)
        TenantContext.set_current(tenant_id, user_id)

        # Read it anywhere downstream
        tenant_id = TenantContext.get_tenant_id()
    """

    @staticmethod
    def set_current(tenant_id: str, user_id: Optional[str] = None) -> None:
        _current_tenant_id.set(tenant_id)
        _current_user_id.set(user_id)
        logger.debug(f"Tenant context set: tenant={tenant_id}, user={user_id}")

    @staticmethod
    def get_tenant_id() -> Optional[str]:
        return _current_tenant_id.get()

    @staticmethod
    def get_user_id() -> Optional[str]:
        return _current_user_id.get()

    @staticmethod
    def require_tenant_id() -> str:
        """
        Get the current tenant ID, raising error if not set.

        Raises:
            RuntimeError: If tenant context is not set
        """
        tenant_id = _current_tenant_id.get()
        if tenant_id is None:
            raise RuntimeError("Tenant context not set. Authentication required.")
        return tenant_id

    @staticmethod
    def clear() -> None:
        _current_tenant_id.set(None)
        _current_user_id.set(None)

    @staticmethod
    def is_set() -> bool:
        return _current_tenant_id.get() is not None
