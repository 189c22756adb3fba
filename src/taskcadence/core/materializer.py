"""任务实例化

将模板任务的描述性字段（title/description/priority/category/assignee）
复制为一个全新、独立的任务实例，截止日期为计算出的 occurrence。
状态/进度/完成时间重置为初始值。模板本身只读，不会被修改。
"""

from datetime import UTC, date, datetime

from ulid import ULID

from .exceptions import TemplateUnavailable
from .models.enums import TaskStatus
from .models.rule import RecurrenceRule
from .models.task import Task
from .store.protocols import TaskStore


def clone_task(
    template: Task,
    due_date: date,
    *,
    owner_id: str,
    source_rule_id: str | None,
    now: datetime,
) -> Task:
    """从模板克隆新任务（纯函数）"""
    return Task(
        task_id=str(ULID()),
        owner_id=owner_id,
        title=template.title,
        description=template.description,
        priority=template.priority,
        category=template.category,
        assignee_id=template.assignee_id,
        status=TaskStatus.PENDING,
        progress=0,
        completed_at=None,
        due_date=due_date,
        source_rule_id=source_rule_id,
        created_at=now,
        updated_at=now,
    )


class TaskMaterializer:
    """根据规则读取模板并生成任务实例（不负责持久化）"""

    def __init__(self, task_store: TaskStore) -> None:
        self._task_store = task_store

    async def materialize(
        self,
        rule: RecurrenceRule,
        due_date: date,
        now: datetime | None = None,
    ) -> Task:
        """生成任务实例

        Raises:
            TemplateUnavailable: 模板任务已不存在
        """
        template = await self._task_store.get_task(rule.template_task_id)
        if template is None:
            raise TemplateUnavailable(rule.rule_id, rule.template_task_id)

        return clone_task(
            template,
            due_date,
            owner_id=rule.owner_id,
            source_rule_id=rule.rule_id,
            now=now or datetime.now(UTC),
        )
