"""
Batch Service
Tenant-scoped queries over honey batches and apiaries
"""

from typing import List

from loguru import logger
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from honeycert.models.tenant import Apiary, Batch
from honeycert.schemas.batch import BatchResponse, TenantBatchStats
from honeycert.schemas.tenant import TenantRecord


async def list_batches_for_user(session: AsyncSession, user_id: int) -> List[BatchResponse]:
    """
    Get a user's batches with their apiaries, newest first.

    Args:
        session: Session bound to the caller's tenant database
        user_id: Owner of the batches

    Returns:
        List of BatchResponse
    """
    result = await session.execute(
        select(Batch)
        .where(Batch.user_id == user_id)
        .order_by(Batch.created_at.desc())
    )
    batches = [BatchResponse.model_validate(b) for b in result.scalars().all()]
    logger.debug(f"Found {len(batches)} batches for user {user_id}")
    return batches


async def get_batch_stats(session: AsyncSession) -> TenantBatchStats:
    """Count batches per status and apiaries in one tenant database."""
    status_rows = await session.execute(
        select(Batch.status, func.count(Batch.id)).group_by(Batch.status)
    )
    by_status = {status: count for status, count in status_rows.all()}
    total_apiaries = await session.scalar(select(func.count(Apiary.id)))

    return TenantBatchStats(
        total_batches=sum(by_status.values()),
        by_status=by_status,
        total_apiaries=total_apiaries or 0,
    )


async def collect_batch_stats(engine: AsyncEngine, tenant: TenantRecord) -> dict:
    """Fan-out operation: batch statistics for one tenant."""
    async with AsyncSession(engine) as session:
        stats = await get_batch_stats(session)
    return stats.model_dump()
