"""TaskStore SQLite 实现

写操作不自动提交事务，由调用方（或 transaction 模块）管理。
"""

from datetime import date, datetime

import aiosqlite

from ..models.task import Task

_TASK_COLUMNS = (
    "task_id, owner_id, title, description, priority, category, assignee_id, "
    "status, progress, completed_at, due_date, source_rule_id, created_at, updated_at"
)


class SqliteTaskStore:
    """TaskStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def create_task(self, task: Task) -> None:
        """创建任务记录"""
        await self._conn.execute(
            f"""
            INSERT INTO tasks ({_TASK_COLUMNS})
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                task.task_id,
                task.owner_id,
                task.title,
                task.description,
                task.priority.value,
                task.category,
                task.assignee_id,
                task.status.value,
                task.progress,
                task.completed_at.isoformat() if task.completed_at else None,
                task.due_date.isoformat() if task.due_date else None,
                task.source_rule_id,
                task.created_at.isoformat(),
                task.updated_at.isoformat(),
            ),
        )

    async def get_task(self, task_id: str) -> Task | None:
        """根据 task_id 查询任务"""
        cursor = await self._conn.execute(
            f"SELECT {_TASK_COLUMNS} FROM tasks WHERE task_id = ?",
            (task_id,),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_task(row)

    async def list_tasks_for_rule(self, rule_id: str) -> list[Task]:
        """查询某条规则生成的任务（溯源），按 due_date 正序"""
        cursor = await self._conn.execute(
            f"SELECT {_TASK_COLUMNS} FROM tasks WHERE source_rule_id = ? "
            "ORDER BY due_date ASC",
            (rule_id,),
        )
        rows = await cursor.fetchall()
        return [self._row_to_task(row) for row in rows]

    async def find_task_for_rule_on(self, rule_id: str, due_date: date) -> Task | None:
        """查询某条规则在指定截止日期已生成的任务"""
        cursor = await self._conn.execute(
            f"SELECT {_TASK_COLUMNS} FROM tasks "
            "WHERE source_rule_id = ? AND due_date = ?",
            (rule_id, due_date.isoformat()),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_task(row)

    async def delete_task(self, task_id: str) -> bool:
        """删除任务记录

        Returns:
            True 如果有记录被删除
        """
        cursor = await self._conn.execute(
            "DELETE FROM tasks WHERE task_id = ?",
            (task_id,),
        )
        return cursor.rowcount > 0

    @staticmethod
    def _row_to_task(row: aiosqlite.Row) -> Task:
        """将数据库行转换为 Task 模型"""
        return Task(
            task_id=row[0],
            owner_id=row[1],
            title=row[2],
            description=row[3],
            priority=row[4],
            category=row[5],
            assignee_id=row[6],
            status=row[7],
            progress=row[8],
            completed_at=datetime.fromisoformat(row[9]) if row[9] else None,
            due_date=date.fromisoformat(row[10]) if row[10] else None,
            source_rule_id=row[11],
            created_at=datetime.fromisoformat(row[12]),
            updated_at=datetime.fromisoformat(row[13]),
        )
