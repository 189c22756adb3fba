"""core 测试配置 -- 模板任务与规则工厂 fixture"""

from datetime import UTC, date, datetime

import pytest
from taskcadence.core.models import Frequency, RecurrenceRule, Task
from ulid import ULID


@pytest.fixture
def make_template(store_group):
    """创建并提交一个模板任务"""

    async def _create(
        title: str = "提交周报",
        owner_id: str = "owner-1",
        task_id: str | None = None,
        **fields,
    ) -> Task:
        now = datetime.now(UTC)
        task = Task(
            task_id=task_id or str(ULID()),
            owner_id=owner_id,
            title=title,
            created_at=now,
            updated_at=now,
            **fields,
        )
        await store_group.task_store.create_task(task)
        await store_group.conn.commit()
        return task

    return _create


@pytest.fixture
def make_rule(store_group):
    """创建并提交一条规则，anchor_date 默认等于 last_generated"""

    async def _create(
        template_task_id: str,
        frequency: Frequency = Frequency.DAILY,
        last_generated: date = date(2026, 2, 20),
        owner_id: str = "owner-1",
        anchor_date: date | None = None,
        **fields,
    ) -> RecurrenceRule:
        now = datetime.now(UTC)
        rule = RecurrenceRule(
            rule_id=str(ULID()),
            owner_id=owner_id,
            template_task_id=template_task_id,
            frequency=frequency,
            anchor_date=anchor_date or last_generated,
            last_generated=last_generated,
            created_at=now,
            updated_at=now,
            **fields,
        )
        await store_group.rule_store.create_rule(rule)
        await store_group.conn.commit()
        return rule

    return _create
