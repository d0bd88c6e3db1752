"""配置模块 -- 可通过环境变量覆盖

包含数据库路径、系统操作者身份、SLA 阈值等可配置项。
"""

import os
from pathlib import Path

import structlog
from pydantic import BaseModel, Field

from .models.sla import SLAThresholds

log = structlog.get_logger()


def _get_base_dir() -> Path:
    """获取项目 data 基础目录"""
    return Path(os.environ.get("DOMA_DATA_DIR", "data"))


def get_db_path() -> str:
    """获取 SQLite 数据库路径"""
    return os.environ.get(
        "DOMA_DB_PATH",
        str(_get_base_dir() / "sqlite" / "doma.db"),
    )


def get_telegram_bot_token() -> str | None:
    """获取 Telegram Bot Token，未配置时返回 None（仅日志通知）"""
    return os.environ.get("DOMA_TELEGRAM_BOT_TOKEN") or None


# SLA「即将到期」窗口（分钟）
SLA_DUE_SOON_MINUTES: int = 30

# 默认系统操作者（审计日志中无 reporter 时使用）
DEFAULT_SYSTEM_ACTOR_ID: str = "system"


class EngineConfig(BaseModel):
    """生命周期引擎配置

    环境变量:
        DOMA_SYSTEM_ACTOR_ID: 审计日志的系统操作者 ID（默认 system）
        DOMA_SLA_P1_MINUTES: P1 SLA 分钟数（默认 60）
        DOMA_SLA_P2_MINUTES: P2 SLA 分钟数（默认 240）
    """

    system_actor_id: str = Field(
        default=DEFAULT_SYSTEM_ACTOR_ID,
        min_length=1,
        description="系统操作者 ID",
    )
    sla: SLAThresholds = Field(default_factory=SLAThresholds, description="SLA 阈值")


def _read_minutes(env_var: str) -> int | None:
    val = os.environ.get(env_var)
    if not val:
        return None
    try:
        minutes = int(val)
    except ValueError:
        log.warning("invalid_sla_config", env_var=env_var, value=val)
        return None
    if minutes < 0:
        log.warning("invalid_sla_config", env_var=env_var, value=val)
        return None
    return minutes


def load_engine_config() -> EngineConfig:
    """从环境变量加载引擎配置

    非法数值记录告警并回退到默认值，不阻塞启动。
    """
    kwargs: dict = {}

    if val := os.environ.get("DOMA_SYSTEM_ACTOR_ID"):
        kwargs["system_actor_id"] = val

    sla_kwargs: dict = {}
    if (p1 := _read_minutes("DOMA_SLA_P1_MINUTES")) is not None:
        sla_kwargs["p1"] = p1
    if (p2 := _read_minutes("DOMA_SLA_P2_MINUTES")) is not None:
        sla_kwargs["p2"] = p2
    kwargs["sla"] = SLAThresholds(**sla_kwargs)

    return EngineConfig(**kwargs)
