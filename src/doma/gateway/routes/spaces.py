"""空间路由

GET   /api/spaces: 房态看板，可按 status 筛选
PATCH /api/spaces/{space_id}/status: 人工覆盖房态（READY 需先 INSPECTED）
GET   /api/inspections/queue: 验房队列
"""

from doma.core.models.enums import SpaceStatus
from doma.core.task_lifecycle import TaskLifecycle
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from ..deps import get_engine

router = APIRouter()


class SpaceStatusRequest(BaseModel):
    """房态覆盖请求体"""

    status: str
    actor_id: str | None = None
    expected_version: int | None = None


@router.get("/api/spaces")
async def list_spaces(
    status: SpaceStatus | None = Query(default=None, description="按房态筛选"),
    engine: TaskLifecycle = Depends(get_engine),
):
    """房态看板，按名称排序"""
    spaces = await engine.spaces.list_spaces(status)
    return {"spaces": [s.model_dump(mode="json") for s in spaces]}


@router.patch("/api/spaces/{space_id}/status")
async def override_space_status(
    space_id: str,
    body: SpaceStatusRequest,
    engine: TaskLifecycle = Depends(get_engine),
):
    space = await engine.manual_space_override(
        space_id,
        body.status,
        body.actor_id,
        body.expected_version,
    )
    return space.model_dump(mode="json")


@router.get("/api/inspections/queue")
async def inspection_queue(
    engine: TaskLifecycle = Depends(get_engine),
):
    """待验任务：已超时优先，其次 ready_at 最早优先"""
    items = await engine.inspection_queue()
    return {
        "items": [
            {
                "task": item.task.model_dump(mode="json"),
                "sla_status": item.sla.status.value,
                "minutes_remaining": item.sla.minutes_remaining,
            }
            for item in items
        ]
    }
