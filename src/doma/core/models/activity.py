"""ActivityLogEntry Domain Model

审计日志 append-only，不允许更新或删除。
entry_id 使用 ULID 格式，时间有序。
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from .enums import AuditAction


class ActivityLogEntry(BaseModel):
    """审计日志条目"""

    entry_id: str = Field(description="唯一标识，ULID 格式，时间有序")
    task_id: str = Field(description="关联的 Task ID")
    user_id: str = Field(description="操作者")
    action: AuditAction = Field(description="动作")
    metadata: dict[str, Any] = Field(default_factory=dict, description="结构化 payload")
    created_at: datetime = Field(description="写入时间")
