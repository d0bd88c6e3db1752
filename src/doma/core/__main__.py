"""CLI 入口模块 -- python -m doma.core <command>

支持的命令：
  init-db  创建数据库表结构
  seed     写入演示用的空间与员工（可重复执行）
"""

import asyncio
import sys
from datetime import UTC, datetime

from .config import get_db_path
from .models.enums import SpaceType, TaskType, UserRole
from .models.space import Space
from .models.user import User

# 演示数据：两层客房 + 公共区域
DEMO_ROOMS = [f"{floor}{num:02d}" for floor in (1, 2) for num in range(1, 6)]
DEMO_PUBLIC_SPACES = [
    ("lobby", "Lobby", SpaceType.PUBLIC),
    ("pool", "Pool", SpaceType.OUTDOOR),
    ("spa", "Spa", SpaceType.WELLNESS),
    ("kitchen", "Kitchen", SpaceType.BOH),
]
DEMO_USERS = [
    ("manager", "Duty Manager", UserRole.MANAGER, None, True),
    ("hk-1", "Housekeeper 1", UserRole.STAFF, TaskType.HK, True),
    ("hk-2", "Housekeeper 2", UserRole.STAFF, TaskType.HK, True),
    ("hk-3", "Housekeeper 3", UserRole.STAFF, TaskType.HK, False),
    ("eng-1", "Engineer 1", UserRole.STAFF, TaskType.MAINTENANCE, True),
    ("fd-1", "Front Desk 1", UserRole.STAFF, TaskType.FRONT_DESK, True),
]

COMMANDS = {
    "init-db": "创建数据库表结构",
    "seed": "写入演示用的空间与员工",
}


def _usage() -> None:
    print("用法: python -m doma.core <command>")
    print("命令:")
    for name, desc in COMMANDS.items():
        print(f"  {name:<8} {desc}")


def main() -> None:
    """CLI 主入口"""
    if len(sys.argv) < 2:
        _usage()
        sys.exit(1)

    command = sys.argv[1]

    if command == "init-db":
        asyncio.run(init_database())
    elif command == "seed":
        asyncio.run(seed_demo_data())
    else:
        print(f"未知命令: {command}")
        print(f"可用命令: {', '.join(COMMANDS)}")
        sys.exit(1)


async def init_database() -> None:
    """创建表结构（create_store_group 内部执行 DDL）"""
    from .store import create_store_group

    db_path = get_db_path()
    print(f"数据库路径: {db_path}")

    store_group = await create_store_group(db_path)
    await store_group.close()
    print("表结构已就绪")


async def seed_demo_data() -> int:
    """写入演示数据，已存在的记录跳过

    Returns:
        新写入的记录数
    """
    from .store import create_store_group

    db_path = get_db_path()
    print(f"数据库路径: {db_path}")

    store_group = await create_store_group(db_path)
    now = datetime.now(UTC)
    created = 0

    spaces = [(f"room-{name}", name, SpaceType.ROOM) for name in DEMO_ROOMS]
    spaces.extend(DEMO_PUBLIC_SPACES)

    try:
        async with store_group.unit_of_work():
            for space_id, name, space_type in spaces:
                if await store_group.space_store.get_space(space_id) is not None:
                    continue
                await store_group.space_store.create_space(
                    Space(
                        space_id=space_id,
                        name=name,
                        type=space_type,
                        created_at=now,
                        updated_at=now,
                    )
                )
                created += 1

            for user_id, name, role, department, on_shift in DEMO_USERS:
                if await store_group.user_store.get_user(user_id) is not None:
                    continue
                await store_group.user_store.create_user(
                    User(
                        user_id=user_id,
                        name=name,
                        role=role,
                        department=department,
                        is_on_shift=on_shift,
                    )
                )
                created += 1
        print(f"写入完成，新增 {created} 条记录")
    finally:
        await store_group.close()

    return created


if __name__ == "__main__":
    main()
