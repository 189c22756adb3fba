"""Store Protocol 接口定义

定义 TaskStore、RuleStore 的抽象接口，
使用 Python Protocol 实现结构化子类型（duck typing）。
"""

from datetime import date, datetime
from typing import Protocol

from ..models.rule import RecurrenceRule
from ..models.task import Task


class TaskStore(Protocol):
    """Task 存储接口"""

    async def create_task(self, task: Task) -> None:
        """创建任务记录"""
        ...

    async def get_task(self, task_id: str) -> Task | None:
        """根据 task_id 查询任务（模板读取边界，只读）"""
        ...

    async def list_tasks_for_rule(self, rule_id: str) -> list[Task]:
        """查询某条规则生成的任务"""
        ...

    async def find_task_for_rule_on(self, rule_id: str, due_date: date) -> Task | None:
        """查询某条规则在指定截止日期已生成的任务"""
        ...

    async def delete_task(self, task_id: str) -> bool:
        """删除任务记录"""
        ...


class RuleStore(Protocol):
    """重复规则存储接口

    批处理所需的三项能力：加载全部 ACTIVE 规则、推进游标、标记休眠。
    """

    async def create_rule(self, rule: RecurrenceRule) -> None:
        """创建规则记录"""
        ...

    async def get_rule(self, rule_id: str) -> RecurrenceRule | None:
        """根据 rule_id 查询规则"""
        ...

    async def list_active_rules(self) -> list[RecurrenceRule]:
        """查询所有 ACTIVE 规则"""
        ...

    async def list_rules_for_owner(self, owner_id: str) -> list[RecurrenceRule]:
        """查询某用户的所有规则"""
        ...

    async def update_rule(self, rule: RecurrenceRule, expected_version: int) -> bool:
        """更新用户可编辑字段（乐观锁）"""
        ...

    async def advance_cursor(
        self,
        rule_id: str,
        expected_version: int,
        last_generated: date,
        updated_at: datetime,
    ) -> bool:
        """推进生成游标（乐观锁）"""
        ...

    async def mark_dormant(
        self,
        rule_id: str,
        expected_version: int,
        updated_at: datetime,
    ) -> bool:
        """标记规则休眠（乐观锁）"""
        ...

    async def delete_rule(self, rule_id: str) -> bool:
        """删除规则"""
        ...
