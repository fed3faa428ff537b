"""
API Module
FastAPI routers for all endpoints
"""

from honeycert.api.batches import router as batches_router
from honeycert.api.admin import router as admin_router

__all__ = ["batches_router", "admin_router"]
