"""User Domain Model"""

from pydantic import BaseModel, Field

from .enums import TaskType, UserRole


class User(BaseModel):
    """User 数据模型

    is_on_shift 由排班管理修改，AssignmentSelector 只读。
    """

    user_id: str = Field(description="唯一标识，ULID 格式")
    name: str = Field(description="姓名")
    role: UserRole = Field(default=UserRole.STAFF, description="角色")
    department: TaskType | None = Field(default=None, description="所属部门")
    is_on_shift: bool = Field(default=False, description="是否在班")
    telegram_id: str | None = Field(default=None, description="Telegram chat id")
