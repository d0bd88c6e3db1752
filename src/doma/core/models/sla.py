"""SLA 配置与计算结果"""

from datetime import datetime, timedelta

from pydantic import BaseModel, Field

from .enums import SLAStatus
from .task import Task


class SLAThresholds(BaseModel):
    """各优先级允许的响应时间（分钟），0 表示不设 SLA"""

    p1: int = Field(default=60, ge=0, description="P1 允许分钟数")
    p2: int = Field(default=240, ge=0, description="P2 允许分钟数")


class SLAResult(BaseModel):
    """SLA 计算结果

    status 为 NONE / CLOSED 时 remaining 与 due_at 为空。
    """

    status: SLAStatus
    remaining: timedelta | None = None
    due_at: datetime | None = None

    @property
    def minutes_remaining(self) -> float | None:
        if self.remaining is None:
            return None
        return self.remaining.total_seconds() / 60


class InspectionQueueItem(BaseModel):
    """验房队列条目：待验任务 + 其 SLA"""

    task: Task
    sla: SLAResult
