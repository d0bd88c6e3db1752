"""员工路由

GET   /api/users: 员工名册及在班状态
PATCH /api/users/{user_id}/shift: 上班/下班打卡
GET   /api/users/{user_id}/tasks: 工作清单
"""

from doma.core.assignment import ShiftManager
from doma.core.task_lifecycle import TaskLifecycle
from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ..deps import get_engine, get_shift_manager

router = APIRouter()


class ShiftRequest(BaseModel):
    is_on_shift: bool


@router.get("/api/users")
async def list_users(shift_manager: ShiftManager = Depends(get_shift_manager)):
    users = await shift_manager.list_roster()
    return {"users": [u.model_dump(mode="json") for u in users]}


@router.patch("/api/users/{user_id}/shift")
async def set_shift(
    user_id: str,
    body: ShiftRequest,
    shift_manager: ShiftManager = Depends(get_shift_manager),
):
    await shift_manager.set_on_shift(user_id, body.is_on_shift)
    return {"user_id": user_id, "is_on_shift": body.is_on_shift}


@router.get("/api/users/{user_id}/tasks")
async def list_user_tasks(
    user_id: str,
    engine: TaskLifecycle = Depends(get_engine),
):
    """指派给该用户的任务，P1 优先"""
    tasks = await engine.list_my_tasks(user_id)
    return {"tasks": [t.model_dump(mode="json") for t in tasks]}
