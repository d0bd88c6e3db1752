"""Space / Equipment Domain Model

Space 由外部开通流程创建；status 字段由 SpaceLifecycle（自动）和人工覆盖共同维护。
"""

from datetime import datetime

from pydantic import BaseModel, Field

from .enums import SpaceStatus, SpaceType


class Space(BaseModel):
    """Space 数据模型"""

    space_id: str = Field(description="唯一标识，ULID 格式")
    name: str = Field(description="空间名称，如房号")
    type: SpaceType = Field(default=SpaceType.ROOM, description="空间类型")
    status: SpaceStatus = Field(default=SpaceStatus.READY, description="客房状态")
    created_at: datetime = Field(description="创建时间")
    updated_at: datetime = Field(description="更新时间")
    version: int = Field(default=1, description="乐观锁版本号")


class Equipment(BaseModel):
    """设备资产"""

    equipment_id: str = Field(description="唯一标识，ULID 格式")
    name: str = Field(description="设备名称")
    space_id: str | None = Field(default=None, description="所在空间")
