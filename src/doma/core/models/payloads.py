"""审计日志 metadata 子类型

所有审计条目的结构化 payload 定义。字段名沿用看板前端使用的 camelCase。
"""

from pydantic import BaseModel, ConfigDict, Field


class CreatedPayload(BaseModel):
    """CREATED 条目 payload"""

    model_config = ConfigDict(populate_by_name=True)

    title: str
    auto_assigned: bool = Field(alias="autoAssigned")


class AssignmentPayload(BaseModel):
    """ASSIGNED / RE_ASSIGNED 条目 payload"""

    model_config = ConfigDict(populate_by_name=True)

    old_assignee: str | None = Field(alias="oldAssignee")
    new_assignee: str | None = Field(alias="newAssignee")


class EditedPayload(BaseModel):
    """EDITED 条目 payload"""

    changes: list[str] = Field(default_factory=list, description="变更的字段名")


class CommentPayload(BaseModel):
    """COMMENT 条目 payload"""

    text: str
