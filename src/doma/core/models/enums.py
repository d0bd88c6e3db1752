"""枚举定义 -- Task / Space / User / 审计动作

包含 TaskStatus 状态机、SpaceStatus、TaskType、TaskPriority、UserRole、AuditAction、
SLAStatus 等枚举，以及 VALID_TRANSITIONS 合法流转映射和 TERMINAL_STATES 终态集合。
"""

from enum import StrEnum


class TaskStatus(StrEnum):
    """Task 状态机"""

    # 初始 / 分派
    NEW = "NEW"
    TRIAGED = "TRIAGED"
    ASSIGNED = "ASSIGNED"

    # 执行中
    IN_PROGRESS = "IN_PROGRESS"
    BLOCKED = "BLOCKED"
    READY_FOR_INSPECTION = "READY_FOR_INSPECTION"

    # 完成 / 返工
    DONE = "DONE"
    REOPENED = "REOPENED"
    VERIFIED = "VERIFIED"

    # 终态
    CLOSED = "CLOSED"
    CANCELLED = "CANCELLED"


# 合法状态流转（含看板/验房页面使用的快捷流转）
VALID_TRANSITIONS: dict[TaskStatus, set[TaskStatus]] = {
    TaskStatus.NEW: {
        TaskStatus.TRIAGED,
        TaskStatus.ASSIGNED,
        TaskStatus.IN_PROGRESS,
        TaskStatus.CANCELLED,
    },
    TaskStatus.TRIAGED: {
        TaskStatus.ASSIGNED,
        TaskStatus.IN_PROGRESS,
        TaskStatus.CANCELLED,
    },
    TaskStatus.ASSIGNED: {
        TaskStatus.TRIAGED,
        TaskStatus.IN_PROGRESS,
        TaskStatus.READY_FOR_INSPECTION,
        TaskStatus.DONE,
        TaskStatus.CANCELLED,
    },
    TaskStatus.IN_PROGRESS: {
        TaskStatus.BLOCKED,
        TaskStatus.READY_FOR_INSPECTION,
        TaskStatus.DONE,
        TaskStatus.CANCELLED,
    },
    TaskStatus.BLOCKED: {
        TaskStatus.IN_PROGRESS,
        TaskStatus.CANCELLED,
    },
    TaskStatus.READY_FOR_INSPECTION: {
        TaskStatus.DONE,
        TaskStatus.VERIFIED,
        TaskStatus.REOPENED,
        TaskStatus.CANCELLED,
    },
    TaskStatus.DONE: {
        TaskStatus.REOPENED,
        TaskStatus.VERIFIED,
        TaskStatus.CLOSED,
        TaskStatus.CANCELLED,
    },
    TaskStatus.REOPENED: {
        TaskStatus.ASSIGNED,
        TaskStatus.IN_PROGRESS,
        TaskStatus.CANCELLED,
    },
    TaskStatus.VERIFIED: {
        TaskStatus.REOPENED,
        TaskStatus.CLOSED,
        TaskStatus.CANCELLED,
    },
    # 终态不可再流转
    TaskStatus.CLOSED: set(),
    TaskStatus.CANCELLED: set(),
}

TERMINAL_STATES: set[TaskStatus] = {
    TaskStatus.CLOSED,
    TaskStatus.CANCELLED,
}

# SLA 视角下已结束的状态（不再计时）
SLA_CLOSED_STATES: set[TaskStatus] = {
    TaskStatus.DONE,
    TaskStatus.VERIFIED,
    TaskStatus.CLOSED,
    TaskStatus.CANCELLED,
}


class TaskPriority(StrEnum):
    """优先级：P1 紧急 / P2 高 / P3 常规"""

    P1 = "P1"
    P2 = "P2"
    P3 = "P3"


class TaskType(StrEnum):
    """任务类型，同时也是部门标签（自动派单的路由键）"""

    HK = "HK"
    MAINTENANCE = "MAINTENANCE"
    FRONT_DESK = "FRONT_DESK"
    WELLNESS = "WELLNESS"
    FNB = "FNB"
    INSPECTION = "INSPECTION"
    PREVENTIVE = "PREVENTIVE"
    OTHER = "OTHER"


class SpaceStatus(StrEnum):
    """空间客房状态，无固定初态/终态，随清扫轮次循环"""

    DIRTY = "DIRTY"
    CLEANING = "CLEANING"
    INSPECTED = "INSPECTED"
    READY = "READY"
    OCCUPIED = "OCCUPIED"
    OUT_OF_ORDER = "OUT_OF_ORDER"
    OUT_OF_SERVICE = "OUT_OF_SERVICE"


class SpaceType(StrEnum):
    """空间类型（仅展示用）"""

    ROOM = "ROOM"
    PUBLIC = "PUBLIC"
    OUTDOOR = "OUTDOOR"
    BOH = "BOH"
    VENUE = "VENUE"
    WELLNESS = "WELLNESS"
    ATMOS = "ATMOS"
    SERVICE = "SERVICE"


class UserRole(StrEnum):
    """用户角色"""

    ADMIN = "ADMIN"
    MANAGER = "MANAGER"
    STAFF = "STAFF"
    OWNER = "OWNER"
    PENDING = "PENDING"
    OBSERVER = "OBSERVER"


class AuditAction(StrEnum):
    """审计日志动作"""

    CREATED = "CREATED"
    ASSIGNED = "ASSIGNED"
    RE_ASSIGNED = "RE_ASSIGNED"
    EDITED = "EDITED"
    COMMENT = "COMMENT"


class InspectionResult(StrEnum):
    """验房结果"""

    PASS = "PASS"
    FAIL = "FAIL"


class SLAStatus(StrEnum):
    """SLA 紧急程度"""

    NONE = "NONE"
    SAFE = "SAFE"
    DUE_SOON = "DUE_SOON"
    OVERDUE = "OVERDUE"
    CLOSED = "CLOSED"


class SLABasis(StrEnum):
    """SLA 计时起点

    READY: 验房队列口径，ready_at 缺失时回退到 created_at
    CREATED: 通用任务口径，始终使用 created_at
    """

    READY = "ready"
    CREATED = "created"


def validate_transition(from_status: TaskStatus, to_status: TaskStatus) -> bool:
    """验证状态流转是否合法

    Args:
        from_status: 当前状态
        to_status: 目标状态

    Returns:
        True 如果流转合法，否则 False
    """
    allowed = VALID_TRANSITIONS.get(from_status, set())
    return to_status in allowed
