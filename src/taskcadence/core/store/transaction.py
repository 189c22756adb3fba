"""游标推进 + 任务写入原子事务封装

在同一 SQLite 事务内提交规则游标推进与新任务写入：
要么两者都生效，要么都不生效，保证重试/崩溃下的幂等性。
"""

import sqlite3
from datetime import date, datetime

import aiosqlite

from ..exceptions import PersistenceConflict
from ..models.enums import RuleState, validate_rule_transition
from ..models.rule import RecurrenceRule
from ..models.task import Task
from .rule_store import SqliteRuleStore
from .task_store import SqliteTaskStore


async def advance_rule_and_insert_task(
    conn: aiosqlite.Connection,
    rule_store: SqliteRuleStore,
    task_store: SqliteTaskStore,
    rule: RecurrenceRule,
    occurrence: date,
    task: Task | None,
    now: datetime,
) -> RecurrenceRule:
    """在同一事务内原子推进游标并写入生成的任务

    Args:
        conn: 数据库连接（需在同一连接上操作以保证事务性）
        rule_store: RuleStore 实例
        task_store: TaskStore 实例
        rule: 读取时的规则快照（其 version 作为乐观锁条件）
        occurrence: 新游标（原始 occurrence 日期）
        task: 要写入的任务；None 表示仅推进游标
        now: 更新时间

    Returns:
        推进后的规则快照

    Raises:
        PersistenceConflict: version 不匹配、规则已休眠/删除或同日任务已存在
    """
    try:
        advanced = await rule_store.advance_cursor(
            rule_id=rule.rule_id,
            expected_version=rule.version,
            last_generated=occurrence,
            updated_at=now,
        )
        if not advanced:
            raise PersistenceConflict(rule.rule_id)

        if task is not None:
            await task_store.create_task(task)

        # 原子提交
        await conn.commit()
    except sqlite3.IntegrityError as e:
        await conn.rollback()
        raise PersistenceConflict(
            rule.rule_id,
            f"规则 {rule.rule_id} 在 {occurrence} 的任务已存在",
        ) from e
    except Exception:
        await conn.rollback()
        raise

    return rule.model_copy(
        update={
            "last_generated": occurrence,
            "generated_count": rule.generated_count + 1,
            "version": rule.version + 1,
            "updated_at": now,
        }
    )


async def mark_rule_dormant(
    conn: aiosqlite.Connection,
    rule_store: SqliteRuleStore,
    rule: RecurrenceRule,
    now: datetime,
) -> RecurrenceRule:
    """将规则标记为 DORMANT 并提交

    Raises:
        PersistenceConflict: version 不匹配或规则已非 ACTIVE
    """
    if not validate_rule_transition(rule.state, RuleState.DORMANT):
        raise PersistenceConflict(rule.rule_id, f"规则 {rule.rule_id} 已处于 {rule.state}")

    try:
        updated = await rule_store.mark_dormant(
            rule_id=rule.rule_id,
            expected_version=rule.version,
            updated_at=now,
        )
        if not updated:
            raise PersistenceConflict(rule.rule_id)
        await conn.commit()
    except Exception:
        await conn.rollback()
        raise

    return rule.model_copy(
        update={
            "state": RuleState.DORMANT,
            "version": rule.version + 1,
            "updated_at": now,
        }
    )
