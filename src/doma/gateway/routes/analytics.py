"""统计路由 -- GET /api/analytics/stats"""

from doma.core.analytics import task_stats
from doma.core.store import StoreGroup
from fastapi import APIRouter, Depends

from ..deps import get_store_group

router = APIRouter()


@router.get("/api/analytics/stats")
async def get_stats(store_group: StoreGroup = Depends(get_store_group)):
    stats = await task_stats(store_group.task_store)
    return stats.model_dump()
