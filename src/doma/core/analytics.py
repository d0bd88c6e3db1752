"""任务统计 -- 看板汇总数据"""

import structlog
from pydantic import BaseModel, Field

from .models.enums import TaskPriority, TaskStatus
from .store.protocols import TaskStore

log = structlog.get_logger()


class TaskStats(BaseModel):
    """任务汇总统计"""

    total_tasks: int = 0
    completed_tasks: int = Field(default=0, description="DONE 状态任务数")
    pending_tasks: int = Field(default=0, description="非 DONE 状态任务数")
    high_priority: int = Field(default=0, description="未完成的 P1 任务数")
    by_type: dict[str, int] = Field(default_factory=dict)


async def task_stats(task_store: TaskStore) -> TaskStats:
    """汇总任务数量

    completed 仅统计 DONE；VERIFIED / CLOSED / CANCELLED 计入 pending。
    """
    stats = TaskStats(by_type=await task_store.count_by_type())
    for status, priority, count in await task_store.count_by_status_and_priority():
        stats.total_tasks += count
        if status == TaskStatus.DONE:
            stats.completed_tasks += count
            continue
        stats.pending_tasks += count
        if priority == TaskPriority.P1:
            stats.high_priority += count

    await log.adebug(
        "task_stats_computed",
        total_tasks=stats.total_tasks,
        completed_tasks=stats.completed_tasks,
    )
    return stats
