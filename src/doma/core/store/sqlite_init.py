"""SQLite 数据库初始化

PRAGMA 配置 + 五张表 DDL + 索引创建。
使用 aiosqlite 异步操作。
"""

import aiosqlite

# spaces 表 DDL
_SPACES_DDL = """
CREATE TABLE IF NOT EXISTS spaces (
    space_id    TEXT PRIMARY KEY,
    name        TEXT NOT NULL,
    type        TEXT NOT NULL DEFAULT 'ROOM',
    status      TEXT NOT NULL DEFAULT 'READY',
    created_at  TEXT NOT NULL,
    updated_at  TEXT NOT NULL,
    version     INTEGER NOT NULL DEFAULT 1
);
"""

_SPACES_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_spaces_status ON spaces(status);",
]

# users 表 DDL
_USERS_DDL = """
CREATE TABLE IF NOT EXISTS users (
    user_id      TEXT PRIMARY KEY,
    name         TEXT NOT NULL,
    role         TEXT NOT NULL DEFAULT 'STAFF',
    department   TEXT,
    is_on_shift  INTEGER NOT NULL DEFAULT 0,
    telegram_id  TEXT UNIQUE
);
"""

_USERS_INDEXES = [
    # 自动派单候选人查询
    "CREATE INDEX IF NOT EXISTS idx_users_shift ON users(role, department, is_on_shift);",
]

# equipment 表 DDL
_EQUIPMENT_DDL = """
CREATE TABLE IF NOT EXISTS equipment (
    equipment_id  TEXT PRIMARY KEY,
    name          TEXT NOT NULL,
    space_id      TEXT,

    FOREIGN KEY (space_id) REFERENCES spaces(space_id)
);
"""

# tasks 表 DDL
_TASKS_DDL = """
CREATE TABLE IF NOT EXISTS tasks (
    task_id                TEXT PRIMARY KEY,
    title                  TEXT NOT NULL,
    description            TEXT,
    type                   TEXT NOT NULL,
    priority               TEXT NOT NULL,
    status                 TEXT NOT NULL DEFAULT 'NEW',
    space_id               TEXT,
    custom_location        TEXT,
    assignee_id            TEXT,
    reporter_id            TEXT,
    equipment_id           TEXT,
    due_at                 TEXT,
    response_time_minutes  INTEGER,
    is_guest_impact        INTEGER NOT NULL DEFAULT 0,
    block_location_until   TEXT,
    images                 TEXT NOT NULL DEFAULT '[]',
    created_at             TEXT NOT NULL,
    updated_at             TEXT NOT NULL,
    started_at             TEXT,
    ready_at               TEXT,
    completed_at           TEXT,
    reopen_count           INTEGER NOT NULL DEFAULT 0,
    inspector_id           TEXT,
    inspection_result      TEXT,
    inspection_notes       TEXT,
    version                INTEGER NOT NULL DEFAULT 1,

    -- 位置二选一：space_id 与 custom_location 恰好一个非空
    CHECK ((space_id IS NULL) <> (custom_location IS NULL)),
    FOREIGN KEY (space_id) REFERENCES spaces(space_id),
    FOREIGN KEY (assignee_id) REFERENCES users(user_id),
    FOREIGN KEY (reporter_id) REFERENCES users(user_id),
    FOREIGN KEY (equipment_id) REFERENCES equipment(equipment_id)
);
"""

_TASKS_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_tasks_status ON tasks(status);",
    "CREATE INDEX IF NOT EXISTS idx_tasks_assignee ON tasks(assignee_id);",
    "CREATE INDEX IF NOT EXISTS idx_tasks_reporter ON tasks(reporter_id);",
    "CREATE INDEX IF NOT EXISTS idx_tasks_created_at ON tasks(created_at DESC);",
]

# activity_logs 表 DDL（user_id 不设外键：系统操作者不一定是 users 表中的用户）
_ACTIVITY_LOGS_DDL = """
CREATE TABLE IF NOT EXISTS activity_logs (
    entry_id    TEXT PRIMARY KEY,
    task_id     TEXT NOT NULL,
    user_id     TEXT NOT NULL,
    action      TEXT NOT NULL,
    metadata    TEXT NOT NULL DEFAULT '{}',
    created_at  TEXT NOT NULL,

    FOREIGN KEY (task_id) REFERENCES tasks(task_id)
);
"""

_ACTIVITY_LOGS_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_activity_task_ts ON activity_logs(task_id, created_at DESC);",
]


async def init_db(conn: aiosqlite.Connection) -> None:
    """初始化数据库：设置 PRAGMA + 创建表 + 创建索引

    Args:
        conn: aiosqlite 数据库连接
    """
    # 设置 PRAGMA
    await conn.execute("PRAGMA journal_mode = WAL;")
    await conn.execute("PRAGMA foreign_keys = ON;")
    await conn.execute("PRAGMA busy_timeout = 5000;")

    # 创建表（按外键依赖顺序）
    await conn.execute(_SPACES_DDL)
    await conn.execute(_USERS_DDL)
    await conn.execute(_EQUIPMENT_DDL)
    await conn.execute(_TASKS_DDL)
    await conn.execute(_ACTIVITY_LOGS_DDL)

    # 创建索引
    for idx_sql in (
        _SPACES_INDEXES + _USERS_INDEXES + _TASKS_INDEXES + _ACTIVITY_LOGS_INDEXES
    ):
        await conn.execute(idx_sql)

    await conn.commit()


async def verify_wal_mode(conn: aiosqlite.Connection) -> bool:
    """验证 WAL 模式是否生效

    Returns:
        True 如果 WAL 模式已启用
    """
    cursor = await conn.execute("PRAGMA journal_mode;")
    row = await cursor.fetchone()
    return row is not None and row[0].lower() == "wal"


async def init_read_connection(conn: aiosqlite.Connection) -> None:
    """配置只读连接

    WAL 模式下读连接只看到已提交的数据，不会读到写连接上进行中的事务。
    """
    await conn.execute("PRAGMA query_only = ON;")
    await conn.execute("PRAGMA busy_timeout = 5000;")
