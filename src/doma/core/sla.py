"""SLAClock -- 任务 SLA 截止时间与紧急程度计算

纯函数，无副作用；在需要展示紧急程度时按需调用，不做后台推送。
"""

from datetime import datetime, timedelta

from .config import SLA_DUE_SOON_MINUTES
from .models.enums import SLA_CLOSED_STATES, SLABasis, SLAStatus, TaskPriority
from .models.sla import SLAResult, SLAThresholds
from .models.task import Task


def allowed_minutes(task: Task, thresholds: SLAThresholds) -> int | None:
    """返回任务允许的分钟数，None 表示不设 SLA

    P1/P2 使用全局阈值，P3 使用任务自带的 response_time_minutes；0 视同未设置。
    """
    if task.priority == TaskPriority.P1:
        minutes = thresholds.p1
    elif task.priority == TaskPriority.P2:
        minutes = thresholds.p2
    else:
        minutes = task.response_time_minutes
    return minutes or None


def basis_timestamp(task: Task, basis: SLABasis) -> datetime:
    """根据调用方选择的口径返回计时起点"""
    if basis == SLABasis.READY and task.ready_at is not None:
        return task.ready_at
    return task.created_at


def evaluate_sla(
    task: Task,
    now: datetime,
    thresholds: SLAThresholds,
    basis: SLABasis = SLABasis.READY,
) -> SLAResult:
    """计算任务的 SLA 状态

    Args:
        task: 任务
        now: 当前时间
        thresholds: 各优先级阈值
        basis: 计时起点口径（验房队列用 READY，通用任务用 CREATED）

    Returns:
        SLAResult: OVERDUE（remaining < 0）、DUE_SOON（0 <= remaining < 30 分钟）、
        SAFE、NONE（无 SLA）或 CLOSED（任务已结束）
    """
    if task.status in SLA_CLOSED_STATES:
        return SLAResult(status=SLAStatus.CLOSED)

    minutes = allowed_minutes(task, thresholds)
    if minutes is None:
        return SLAResult(status=SLAStatus.NONE)

    due_at = basis_timestamp(task, basis) + timedelta(minutes=minutes)
    remaining = due_at - now

    if remaining < timedelta(0):
        status = SLAStatus.OVERDUE
    elif remaining < timedelta(minutes=SLA_DUE_SOON_MINUTES):
        status = SLAStatus.DUE_SOON
    else:
        status = SLAStatus.SAFE

    return SLAResult(status=status, remaining=remaining, due_at=due_at)
