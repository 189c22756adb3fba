"""RecurrenceService -- 重复规则管理业务逻辑

规则的创建/更新/删除、列表与统计查询、批处理触发，
以及规则表单所需的频率目录与日期选项。
"""

from collections.abc import Iterable
from datetime import UTC, date, datetime

import structlog
from taskcadence.core.config import EngineConfig
from taskcadence.core.exceptions import PersistenceConflict, TemplateUnavailable
from taskcadence.core.models import (
    BatchResult,
    Frequency,
    RecurrenceRule,
    RecurrenceStatistics,
    RuleHealth,
    UpcomingOccurrence,
    validate_rule_config,
)
from taskcadence.core.occurrence import ensure_schedulable, upcoming_occurrences
from taskcadence.core.processor import RecurrenceProcessor
from taskcadence.core.queries import describe_health, get_statistics, get_upcoming
from taskcadence.core.store import StoreGroup
from ulid import ULID

log = structlog.get_logger()

# 频率目录
RECURRENCE_PATTERNS: dict[Frequency, dict] = {
    Frequency.DAILY: {
        "name": "Daily",
        "description": "Create the task every day",
        "supports_interval": True,
        "supports_days_of_week": False,
        "supports_days_of_month": False,
    },
    Frequency.WEEKLY: {
        "name": "Weekly",
        "description": "Create the task every week",
        "supports_interval": True,
        "supports_days_of_week": True,
        "supports_days_of_month": False,
    },
    Frequency.MONTHLY: {
        "name": "Monthly",
        "description": "Create the task every month",
        "supports_interval": True,
        "supports_days_of_week": False,
        "supports_days_of_month": True,
    },
    Frequency.YEARLY: {
        "name": "Yearly",
        "description": "Create the task every year",
        "supports_interval": True,
        "supports_days_of_week": False,
        "supports_days_of_month": False,
    },
}

DAYS_OF_WEEK_OPTIONS: dict[int, str] = {
    1: "Monday",
    2: "Tuesday",
    3: "Wednesday",
    4: "Thursday",
    5: "Friday",
    6: "Saturday",
    7: "Sunday",
}

_UNSET = object()


class RecurrenceService:
    """重复规则业务服务"""

    def __init__(
        self,
        store_group: StoreGroup,
        config: EngineConfig | None = None,
    ) -> None:
        self._stores = store_group
        self._config = config or EngineConfig()

    async def create_rule(
        self,
        owner_id: str,
        template_task_id: str,
        frequency: Frequency | str,
        interval: int = 1,
        end_date: date | None = None,
        days_of_week: Iterable[int] | None = None,
        days_of_month: Iterable[int] | None = None,
        start_date: date | None = None,
        skip_weekends: bool = False,
    ) -> RecurrenceRule:
        """为模板任务创建重复规则

        start_date 作为 anchor 与初始游标，第一个 occurrence 严格晚于它。
        第一个 occurrence 必须落在可表示的日期范围内。

        Raises:
            InvalidRuleConfiguration: 配置非法
            TemplateUnavailable: 模板任务不存在
        """
        freq, weekdays, month_days = validate_rule_config(
            frequency, interval, days_of_week, days_of_month
        )

        template = await self._stores.task_store.get_task(template_task_id)
        if template is None:
            raise TemplateUnavailable(None, template_task_id)

        anchor = start_date or date.today()
        now = datetime.now(UTC)
        rule = RecurrenceRule(
            rule_id=str(ULID()),
            owner_id=owner_id,
            template_task_id=template_task_id,
            frequency=freq,
            interval=interval,
            days_of_week=weekdays,
            days_of_month=month_days,
            end_date=end_date,
            anchor_date=anchor,
            last_generated=anchor,
            skip_weekends=skip_weekends,
            created_at=now,
            updated_at=now,
        )
        ensure_schedulable(rule, field="start_date")

        async with self._stores.write_lock:
            try:
                await self._stores.rule_store.create_rule(rule)
                await self._stores.conn.commit()
            except Exception:
                await self._stores.conn.rollback()
                raise

        await log.ainfo(
            "recurrence_rule_created",
            rule_id=rule.rule_id,
            task_id=template_task_id,
            frequency=freq.value,
            owner_id=owner_id,
        )
        return rule

    async def update_rule(
        self,
        rule_id: str,
        frequency: Frequency | str | None = None,
        interval: int | None = None,
        end_date: date | None | object = _UNSET,
        days_of_week: Iterable[int] | None = None,
        days_of_month: Iterable[int] | None = None,
        skip_weekends: bool | None = None,
    ) -> RecurrenceRule | None:
        """部分更新规则，游标与状态保持不变

        end_date 显式传入 None 表示清除结束日期。

        Returns:
            更新后的规则；规则不存在时返回 None

        Raises:
            InvalidRuleConfiguration: 配置非法
            PersistenceConflict: 规则被并发修改
        """
        rule = await self._stores.rule_store.get_rule(rule_id)
        if rule is None:
            return None

        freq, weekdays, month_days = validate_rule_config(
            frequency if frequency is not None else rule.frequency,
            interval if interval is not None else rule.interval,
            days_of_week if days_of_week is not None else rule.days_of_week,
            days_of_month if days_of_month is not None else rule.days_of_month,
        )

        changes: dict = {
            "frequency": freq,
            "interval": interval if interval is not None else rule.interval,
            "days_of_week": weekdays,
            "days_of_month": month_days,
            "updated_at": datetime.now(UTC),
        }
        if end_date is not _UNSET:
            changes["end_date"] = end_date
        if skip_weekends is not None:
            changes["skip_weekends"] = skip_weekends
        updated = rule.model_copy(update=changes)
        ensure_schedulable(updated)

        async with self._stores.write_lock:
            try:
                ok = await self._stores.rule_store.update_rule(updated, rule.version)
                if not ok:
                    raise PersistenceConflict(rule_id)
                await self._stores.conn.commit()
            except Exception:
                await self._stores.conn.rollback()
                raise

        await log.ainfo(
            "recurrence_rule_updated",
            rule_id=rule_id,
            frequency=freq.value,
            interval=updated.interval,
        )
        return updated.model_copy(update={"version": rule.version + 1})

    async def delete_rule(self, rule_id: str) -> bool:
        """删除规则；已生成的任务不受影响"""
        async with self._stores.write_lock:
            try:
                deleted = await self._stores.rule_store.delete_rule(rule_id)
                await self._stores.conn.commit()
            except Exception:
                await self._stores.conn.rollback()
                raise

        if deleted:
            await log.ainfo("recurrence_rule_deleted", rule_id=rule_id)
        return deleted

    async def get_rule(self, rule_id: str) -> RecurrenceRule | None:
        return await self._stores.rule_store.get_rule(rule_id)

    async def list_rules(self, owner_id: str) -> list[RecurrenceRule]:
        return await self._stores.rule_store.list_rules_for_owner(owner_id)

    async def get_health(self, rule: RecurrenceRule) -> RuleHealth:
        return await describe_health(self._stores.task_store, rule)

    def preview(self, rule: RecurrenceRule, limit: int | None = None) -> list[date]:
        """预览规则接下来的截止日期"""
        return upcoming_occurrences(rule, limit or self._config.upcoming_limit)

    async def get_statistics(self, owner_id: str) -> RecurrenceStatistics:
        return await get_statistics(self._stores.rule_store, owner_id)

    async def get_upcoming(
        self,
        owner_id: str,
        limit: int | None = None,
    ) -> list[UpcomingOccurrence]:
        return await get_upcoming(
            self._stores.rule_store,
            owner_id,
            limit or self._config.upcoming_limit,
        )

    async def process_due(self, as_of: date | None = None) -> BatchResult:
        """触发一次批处理（管理端动作）"""
        processor = RecurrenceProcessor(self._stores, self._config)
        return await processor.process_due_recurrences(as_of)

    @staticmethod
    def get_patterns() -> dict[Frequency, dict]:
        return RECURRENCE_PATTERNS

    @staticmethod
    def get_days_of_week_options() -> dict[int, str]:
        return DAYS_OF_WEEK_OPTIONS

    @staticmethod
    def get_days_of_month_options() -> dict[int, str]:
        return {day: f"Day {day}" for day in range(1, 32)}
