"""
Batch API Routes
Tenant-scoped batch listing
"""

from fastapi import APIRouter

from honeycert.api.deps import TenantSessionDep, TokenDep
from honeycert.schemas.batch import BatchListResponse
from honeycert.services import batch_service


router = APIRouter()


@router.get(
    "",
    response_model=BatchListResponse,
    summary="List my batches",
    description="Batches owned by the caller, read from their tenant database"
)
async def list_batches(token: TokenDep, session: TenantSessionDep):
    batches = await batch_service.list_batches_for_user(session, token.user_id)
    return BatchListResponse(batches=batches)
