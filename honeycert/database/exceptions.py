"""
Tenant Routing Exception Classes

Custom exceptions for master catalog resolution and tenant connection management.
"""

from typing import Optional


class TenantRoutingException(Exception):
    """Base exception for tenant routing operations"""

    def __init__(self, message: str, details: dict = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ConfigurationError(TenantRoutingException):
    """Raised when required configuration is missing"""

    def __init__(self, message: str = "Master database URL is not configured", details: dict = None):
        super().__init__(message, details)


class TenantNotFoundError(TenantRoutingException):
    """Raised when a tenant is unknown to the master catalog"""

    def __init__(self, tenant_id: str, message: Optional[str] = None, details: dict = None):
        self.tenant_id = tenant_id
        details = {"tenant_id": tenant_id, **(details or {})}
        super().__init__(message or f"Tenant not found: {tenant_id}", details)


class TenantInactiveError(TenantNotFoundError):
    """Raised when a tenant exists but has been deactivated"""

    def __init__(self, tenant_id: str, details: dict = None):
        super().__init__(tenant_id, f"Tenant is not active: {tenant_id}", details)


class DatabaseTimeoutError(TenantRoutingException):
    """Raised when a bounded database operation exceeds its budget"""

    def __init__(self, operation: str, timeout: float, details: dict = None):
        self.operation = operation
        self.timeout = timeout
        details = {"operation": operation, "timeout": timeout, **(details or {})}
        super().__init__(f"{operation} timed out after {timeout} seconds", details)


class CatalogQueryError(TenantRoutingException):
    """Raised when a master catalog query fails"""

    def __init__(self, operation: str, cause: Exception, details: dict = None):
        self.operation = operation
        details = {"operation": operation, **(details or {})}
        super().__init__(f"Master database query failed ({operation}): {cause}", details)


class TenantConnectionFailedError(TenantRoutingException):
    """Raised when every connection attempt to a tenant database failed"""

    def __init__(self, tenant_id: str, attempts: int, last_error: Optional[str], details: dict = None):
        self.tenant_id = tenant_id
        self.attempts = attempts
        self.last_error = last_error
        details = {"tenant_id": tenant_id, "attempts": attempts, **(details or {})}
        message = f"Failed to connect to database {tenant_id} after {attempts} attempts: {last_error}"
        super().__init__(message, details)


class TenantAlreadyExistsError(TenantRoutingException):
    """Raised when registering a tenant whose name is already taken"""

    def __init__(self, name: str, details: dict = None):
        self.name = name
        super().__init__(f"Tenant database '{name}' already exists", details)
