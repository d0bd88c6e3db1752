"""任务路由

POST  /api/tasks: 创建任务（可自动派单）
GET   /api/tasks: 任务列表，支持 assignee / reporter / 部门筛选
GET   /api/tasks/{task_id}: 任务详情，含审计历史与 SLA
PATCH /api/tasks/{task_id}: 状态流转 / 改派 / 编辑
POST  /api/tasks/{task_id}/comments: 追加评论
GET   /api/tasks/{task_id}/sla: SLA 状态
POST  /api/tasks/{task_id}/inspection/pass|fail: 验房结果
"""

from doma.core.exceptions import ValidationError
from doma.core.models.enums import SLABasis, TaskType
from doma.core.models.task import TaskDraft, TaskFilter, TaskPatch
from doma.core.task_lifecycle import TaskLifecycle
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from starlette.responses import JSONResponse

from ..deps import get_engine

router = APIRouter()


class CommentRequest(BaseModel):
    """评论请求体"""

    text: str
    actor_id: str | None = None


class InspectionRequest(BaseModel):
    """验房请求体"""

    inspector_id: str
    reason: str | None = None


@router.post("/api/tasks", status_code=201)
async def create_task(
    draft: TaskDraft,
    engine: TaskLifecycle = Depends(get_engine),
):
    """创建任务，未指定执行人时按部门在班员工随机派单"""
    task = await engine.create(draft)
    return JSONResponse(status_code=201, content=task.model_dump(mode="json"))


@router.get("/api/tasks")
async def list_tasks(
    assignee_id: str | None = Query(default=None, description="按执行人筛选"),
    reporter_id: str | None = Query(default=None, description="按报告人筛选"),
    reporter_department: TaskType | None = Query(default=None, description="按报告人部门筛选"),
    mine: str | None = Query(default=None, description="执行人工作清单（P1 优先）"),
    engine: TaskLifecycle = Depends(get_engine),
):
    """查询任务列表，按 created_at 倒序；传 mine 时返回该用户的工作清单"""
    if mine:
        tasks = await engine.list_my_tasks(mine)
    else:
        tasks = await engine.list_by_filter(
            TaskFilter(
                assignee_id=assignee_id,
                reporter_id=reporter_id,
                reporter_department=reporter_department,
            )
        )
    return {"tasks": [t.model_dump(mode="json") for t in tasks]}


@router.get("/api/tasks/{task_id}")
async def get_task_detail(
    task_id: str,
    engine: TaskLifecycle = Depends(get_engine),
):
    """查询任务详情，包含审计历史（倒序）和当前 SLA"""
    task = await engine.get(task_id)
    activity = await engine.list_activity(task_id)
    sla = engine.evaluate_sla(task, basis=SLABasis.CREATED)

    return {
        "task": task.model_dump(mode="json"),
        "activity": [e.model_dump(mode="json") for e in activity],
        "sla": _sla_data(sla),
    }


@router.patch("/api/tasks/{task_id}")
async def update_task(
    task_id: str,
    patch: TaskPatch,
    engine: TaskLifecycle = Depends(get_engine),
):
    """修改任务；只应用请求体中显式给出的字段"""
    task = await engine.transition(task_id, patch)
    return task.model_dump(mode="json")


@router.post("/api/tasks/{task_id}/comments", status_code=201)
async def add_comment(
    task_id: str,
    body: CommentRequest,
    engine: TaskLifecycle = Depends(get_engine),
):
    entry = await engine.append_comment(task_id, body.text, body.actor_id)
    return JSONResponse(status_code=201, content=entry.model_dump(mode="json"))


@router.get("/api/tasks/{task_id}/sla")
async def get_task_sla(
    task_id: str,
    basis: SLABasis = Query(default=SLABasis.CREATED, description="计时起点口径"),
    engine: TaskLifecycle = Depends(get_engine),
):
    task = await engine.get(task_id)
    return _sla_data(engine.evaluate_sla(task, basis=basis))


@router.post("/api/tasks/{task_id}/inspection/pass")
async def pass_inspection(
    task_id: str,
    body: InspectionRequest,
    engine: TaskLifecycle = Depends(get_engine),
):
    task = await engine.pass_inspection(task_id, body.inspector_id)
    return task.model_dump(mode="json")


@router.post("/api/tasks/{task_id}/inspection/fail")
async def fail_inspection(
    task_id: str,
    body: InspectionRequest,
    engine: TaskLifecycle = Depends(get_engine),
):
    """验房不通过，reason 必填"""
    if not body.reason or not body.reason.strip():
        raise ValidationError("reason is required when inspection fails")
    task = await engine.fail_inspection(task_id, body.inspector_id, body.reason.strip())
    return task.model_dump(mode="json")


def _sla_data(sla) -> dict:
    return {
        "status": sla.status.value,
        "due_at": sla.due_at.isoformat() if sla.due_at else None,
        "minutes_remaining": sla.minutes_remaining,
    }
