"""Task Domain Model

Task 只能通过 TaskLifecycle.create 创建、TaskLifecycle.transition 修改，
核心层从不删除 Task。位置二选一：space_id 或 custom_location。
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from .enums import InspectionResult, TaskPriority, TaskStatus, TaskType


class Task(BaseModel):
    """Task 数据模型

    started_at / ready_at / completed_at 只在首次进入对应状态时写入，之后不再覆盖。
    version 每次持久化修改自增，用于乐观并发控制。
    """

    task_id: str = Field(description="唯一标识，ULID 格式")
    title: str = Field(description="任务标题")
    description: str | None = Field(default=None, description="任务描述")
    type: TaskType = Field(description="任务类型 / 部门标签")
    priority: TaskPriority = Field(description="优先级")
    status: TaskStatus = Field(default=TaskStatus.NEW, description="当前状态")

    space_id: str | None = Field(default=None, description="关联空间 ID")
    custom_location: str | None = Field(default=None, description="自由文本位置")

    assignee_id: str | None = Field(default=None, description="执行人")
    reporter_id: str | None = Field(default=None, description="报告人")
    equipment_id: str | None = Field(default=None, description="关联设备")

    due_at: datetime | None = Field(default=None, description="期望完成时间（仅展示）")
    response_time_minutes: int | None = Field(
        default=None,
        ge=0,
        description="P3 任务自定义 SLA（分钟）",
    )
    is_guest_impact: bool = Field(default=False, description="是否影响住客")
    block_location_until: datetime | None = Field(
        default=None,
        description="封锁位置至该时间（空间强制 OUT_OF_ORDER）",
    )
    images: list[str] = Field(default_factory=list, description="附件引用列表")

    created_at: datetime = Field(description="创建时间")
    updated_at: datetime = Field(description="更新时间")
    started_at: datetime | None = Field(default=None, description="首次进入 IN_PROGRESS")
    ready_at: datetime | None = Field(
        default=None,
        description="首次进入 READY_FOR_INSPECTION",
    )
    completed_at: datetime | None = Field(default=None, description="首次进入 DONE")
    reopen_count: int = Field(default=0, ge=0, description="返工次数")

    # 验房
    inspector_id: str | None = Field(default=None, description="验房人")
    inspection_result: InspectionResult | None = Field(default=None, description="验房结果")
    inspection_notes: str | None = Field(default=None, description="验房备注")

    version: int = Field(default=1, description="乐观锁版本号")


class TaskDraft(BaseModel):
    """创建任务的输入"""

    model_config = ConfigDict(extra="forbid")

    title: str
    type: TaskType
    priority: TaskPriority
    description: str | None = None
    space_id: str | None = None
    custom_location: str | None = None
    assignee_id: str | None = None
    reporter_id: str | None = None
    equipment_id: str | None = None
    due_at: datetime | None = None
    response_time_minutes: int | None = Field(default=None, ge=0)
    is_guest_impact: bool = False
    block_location_until: datetime | None = None
    images: list[str] = Field(default_factory=list)


# TaskPatch 中不属于 Task 字段的控制参数
PATCH_CONTROL_FIELDS = frozenset({"actor_id", "expected_version"})


class TaskPatch(BaseModel):
    """修改任务的输入

    只有显式出现在 patch 中的字段才会被应用（model_fields_set），
    因此 assignee_id=None 表示取消指派，而缺省表示不修改。
    """

    model_config = ConfigDict(extra="forbid")

    title: str | None = None
    description: str | None = None
    priority: TaskPriority | None = None
    status: TaskStatus | None = None
    space_id: str | None = None
    custom_location: str | None = None
    assignee_id: str | None = None
    equipment_id: str | None = None
    due_at: datetime | None = None
    response_time_minutes: int | None = Field(default=None, ge=0)
    is_guest_impact: bool | None = None
    block_location_until: datetime | None = None
    images: list[str] | None = None
    inspector_id: str | None = None
    inspection_result: InspectionResult | None = None
    inspection_notes: str | None = None

    # 控制参数
    actor_id: str | None = None
    expected_version: int | None = None

    def applied_fields(self) -> dict:
        """返回显式设置的 Task 字段（不含控制参数）"""
        return {
            name: getattr(self, name)
            for name in self.model_fields_set
            if name not in PATCH_CONTROL_FIELDS
        }


class TaskFilter(BaseModel):
    """任务列表筛选条件，各条件 AND 组合"""

    assignee_id: str | None = None
    reporter_id: str | None = None
    reporter_department: TaskType | None = None
