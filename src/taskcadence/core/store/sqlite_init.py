"""SQLite 数据库初始化

PRAGMA 配置 + 两张表 DDL + 索引创建。
使用 aiosqlite 异步操作。
"""

import aiosqlite

# tasks 表 DDL
_TASKS_DDL = """
CREATE TABLE IF NOT EXISTS tasks (
    task_id         TEXT PRIMARY KEY,
    owner_id        TEXT NOT NULL,
    title           TEXT NOT NULL DEFAULT '',
    description     TEXT NOT NULL DEFAULT '',
    priority        TEXT NOT NULL DEFAULT 'medium',
    category        TEXT,
    assignee_id     TEXT,
    status          TEXT NOT NULL DEFAULT 'pending',
    progress        INTEGER NOT NULL DEFAULT 0,
    completed_at    TEXT,
    due_date        TEXT,
    source_rule_id  TEXT,
    created_at      TEXT NOT NULL,
    updated_at      TEXT NOT NULL
);
"""

_TASKS_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_tasks_owner_id ON tasks(owner_id);",
    "CREATE INDEX IF NOT EXISTS idx_tasks_due_date ON tasks(due_date);",
    # 同一规则同一日期最多一个生成实例（仅对非 NULL 来源生效）
    (
        "CREATE UNIQUE INDEX IF NOT EXISTS idx_tasks_rule_due "
        "ON tasks(source_rule_id, due_date) WHERE source_rule_id IS NOT NULL;"
    ),
]

# recurrence_rules 表 DDL
# template_task_id 不设外键：模板被删除时规则需保留并上报为 broken
_RULES_DDL = """
CREATE TABLE IF NOT EXISTS recurrence_rules (
    rule_id           TEXT PRIMARY KEY,
    owner_id          TEXT NOT NULL,
    template_task_id  TEXT NOT NULL,
    frequency         TEXT NOT NULL,
    interval          INTEGER NOT NULL DEFAULT 1 CHECK (interval >= 1),
    days_of_week      TEXT NOT NULL DEFAULT '[]',
    days_of_month     TEXT NOT NULL DEFAULT '[]',
    end_date          TEXT,
    anchor_date       TEXT NOT NULL,
    last_generated    TEXT NOT NULL,
    generated_count   INTEGER NOT NULL DEFAULT 0,
    skip_weekends     INTEGER NOT NULL DEFAULT 0,
    state             TEXT NOT NULL DEFAULT 'ACTIVE',
    version           INTEGER NOT NULL DEFAULT 1,
    created_at        TEXT NOT NULL,
    updated_at        TEXT NOT NULL
);
"""

_RULES_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_rules_owner_id ON recurrence_rules(owner_id);",
    "CREATE INDEX IF NOT EXISTS idx_rules_state ON recurrence_rules(state);",
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

    # 创建表
    await conn.execute(_TASKS_DDL)
    await conn.execute(_RULES_DDL)

    # 创建索引
    for idx_sql in _TASKS_INDEXES + _RULES_INDEXES:
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
