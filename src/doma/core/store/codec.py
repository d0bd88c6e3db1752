"""行编解码辅助函数"""

from datetime import datetime


def dt_to_db(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def dt_from_db(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def row_to_dict(columns: tuple[str, ...], row) -> dict:
    """按列名映射数据库行（兼容 tuple 与 aiosqlite.Row）"""
    return dict(zip(columns, tuple(row), strict=True))
