"""RuleStore SQLite 实现

所有写操作基于 version 乐观锁：WHERE version = ? 不命中时返回 False，
由调用方决定回滚或重试。此处不自动提交事务。
"""

import json
from datetime import date, datetime

import aiosqlite

from ..models.enums import RuleState
from ..models.rule import RecurrenceRule

_RULE_COLUMNS = (
    "rule_id, owner_id, template_task_id, frequency, interval, days_of_week, "
    "days_of_month, end_date, anchor_date, last_generated, generated_count, "
    "skip_weekends, state, version, created_at, updated_at"
)


def _dump_days(days: frozenset[int]) -> str:
    return json.dumps(sorted(days))


class SqliteRuleStore:
    """RuleStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def create_rule(self, rule: RecurrenceRule) -> None:
        """创建规则记录"""
        await self._conn.execute(
            f"""
            INSERT INTO recurrence_rules ({_RULE_COLUMNS})
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                rule.rule_id,
                rule.owner_id,
                rule.template_task_id,
                rule.frequency.value,
                rule.interval,
                _dump_days(rule.days_of_week),
                _dump_days(rule.days_of_month),
                rule.end_date.isoformat() if rule.end_date else None,
                rule.anchor_date.isoformat(),
                rule.last_generated.isoformat(),
                rule.generated_count,
                int(rule.skip_weekends),
                rule.state.value,
                rule.version,
                rule.created_at.isoformat(),
                rule.updated_at.isoformat(),
            ),
        )

    async def get_rule(self, rule_id: str) -> RecurrenceRule | None:
        """根据 rule_id 查询规则"""
        cursor = await self._conn.execute(
            f"SELECT {_RULE_COLUMNS} FROM recurrence_rules WHERE rule_id = ?",
            (rule_id,),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_rule(row)

    async def list_active_rules(self) -> list[RecurrenceRule]:
        """查询所有 ACTIVE 规则，按 created_at 正序"""
        cursor = await self._conn.execute(
            f"SELECT {_RULE_COLUMNS} FROM recurrence_rules WHERE state = ? "
            "ORDER BY created_at ASC, rule_id ASC",
            (RuleState.ACTIVE.value,),
        )
        rows = await cursor.fetchall()
        return [self._row_to_rule(row) for row in rows]

    async def list_rules_for_owner(self, owner_id: str) -> list[RecurrenceRule]:
        """查询某用户的所有规则（含休眠），按 created_at 倒序"""
        cursor = await self._conn.execute(
            f"SELECT {_RULE_COLUMNS} FROM recurrence_rules WHERE owner_id = ? "
            "ORDER BY created_at DESC",
            (owner_id,),
        )
        rows = await cursor.fetchall()
        return [self._row_to_rule(row) for row in rows]

    async def update_rule(self, rule: RecurrenceRule, expected_version: int) -> bool:
        """更新用户可编辑字段（游标、状态不在此处修改）

        Returns:
            True 如果 version 匹配且更新成功
        """
        cursor = await self._conn.execute(
            """
            UPDATE recurrence_rules
            SET frequency = ?, interval = ?, days_of_week = ?, days_of_month = ?,
                end_date = ?, skip_weekends = ?, updated_at = ?,
                version = version + 1
            WHERE rule_id = ? AND version = ?
            """,
            (
                rule.frequency.value,
                rule.interval,
                _dump_days(rule.days_of_week),
                _dump_days(rule.days_of_month),
                rule.end_date.isoformat() if rule.end_date else None,
                int(rule.skip_weekends),
                rule.updated_at.isoformat(),
                rule.rule_id,
                expected_version,
            ),
        )
        return cursor.rowcount == 1

    async def advance_cursor(
        self,
        rule_id: str,
        expected_version: int,
        last_generated: date,
        updated_at: datetime,
    ) -> bool:
        """推进生成游标

        仅当规则仍为 ACTIVE、version 匹配且新游标严格大于旧游标时生效，
        保证 last_generated 单调递增。

        Returns:
            True 如果推进成功
        """
        cursor = await self._conn.execute(
            """
            UPDATE recurrence_rules
            SET last_generated = ?, generated_count = generated_count + 1,
                updated_at = ?, version = version + 1
            WHERE rule_id = ? AND version = ? AND state = ?
              AND last_generated < ?
            """,
            (
                last_generated.isoformat(),
                updated_at.isoformat(),
                rule_id,
                expected_version,
                RuleState.ACTIVE.value,
                last_generated.isoformat(),
            ),
        )
        return cursor.rowcount == 1

    async def mark_dormant(
        self,
        rule_id: str,
        expected_version: int,
        updated_at: datetime,
    ) -> bool:
        """将规则标记为 DORMANT

        Returns:
            True 如果 version 匹配且状态更新成功
        """
        cursor = await self._conn.execute(
            """
            UPDATE recurrence_rules
            SET state = ?, updated_at = ?, version = version + 1
            WHERE rule_id = ? AND version = ? AND state = ?
            """,
            (
                RuleState.DORMANT.value,
                updated_at.isoformat(),
                rule_id,
                expected_version,
                RuleState.ACTIVE.value,
            ),
        )
        return cursor.rowcount == 1

    async def delete_rule(self, rule_id: str) -> bool:
        """删除规则（已生成的任务不受影响）

        Returns:
            True 如果有记录被删除
        """
        cursor = await self._conn.execute(
            "DELETE FROM recurrence_rules WHERE rule_id = ?",
            (rule_id,),
        )
        return cursor.rowcount > 0

    @staticmethod
    def _row_to_rule(row: aiosqlite.Row) -> RecurrenceRule:
        """将数据库行转换为 RecurrenceRule 模型"""
        return RecurrenceRule(
            rule_id=row[0],
            owner_id=row[1],
            template_task_id=row[2],
            frequency=row[3],
            interval=row[4],
            days_of_week=frozenset(json.loads(row[5])),
            days_of_month=frozenset(json.loads(row[6])),
            end_date=date.fromisoformat(row[7]) if row[7] else None,
            anchor_date=date.fromisoformat(row[8]),
            last_generated=date.fromisoformat(row[9]),
            generated_count=row[10],
            skip_weekends=bool(row[11]),
            state=row[12],
            version=row[13],
            created_at=datetime.fromisoformat(row[14]),
            updated_at=datetime.fromisoformat(row[15]),
        )
