"""Doma Core Domain Models -- 公共类型导出

所有公共模型类型从此入口导入。
"""

from .activity import ActivityLogEntry
from .enums import (
    SLA_CLOSED_STATES,
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    AuditAction,
    InspectionResult,
    SLABasis,
    SLAStatus,
    SpaceStatus,
    SpaceType,
    TaskPriority,
    TaskStatus,
    TaskType,
    UserRole,
    validate_transition,
)
from .payloads import AssignmentPayload, CommentPayload, CreatedPayload, EditedPayload
from .sla import InspectionQueueItem, SLAResult, SLAThresholds
from .space import Equipment, Space
from .task import Task, TaskDraft, TaskFilter, TaskPatch
from .user import User

__all__ = [
    # 枚举
    "TaskStatus",
    "TaskPriority",
    "TaskType",
    "SpaceStatus",
    "SpaceType",
    "UserRole",
    "AuditAction",
    "InspectionResult",
    "SLAStatus",
    "SLABasis",
    # 状态机
    "VALID_TRANSITIONS",
    "TERMINAL_STATES",
    "SLA_CLOSED_STATES",
    "validate_transition",
    # Task
    "Task",
    "TaskDraft",
    "TaskPatch",
    "TaskFilter",
    # Space / User
    "Space",
    "Equipment",
    "User",
    # 审计
    "ActivityLogEntry",
    "CreatedPayload",
    "AssignmentPayload",
    "EditedPayload",
    "CommentPayload",
    # SLA
    "SLAThresholds",
    "SLAResult",
    "InspectionQueueItem",
]
