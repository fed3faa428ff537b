"""
Middleware Module
Request-scoped tenant context
"""

from honeycert.middleware.tenant_context import TenantContext

__all__ = ["TenantContext"]
