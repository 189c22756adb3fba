"""重复任务批处理器

由外部调度（cron、任务队列、管理端 HTTP 动作）重复调用：
1. 加载所有 ACTIVE 规则
2. 计算下一 occurrence（可选周末调整）
3. 到达 end_date 的规则标记为 DORMANT
4. 尚未到期的规则跳过（幂等保护）
5. 到期则实例化任务，并在同一事务内推进游标
6. 单条规则失败（模板缺失、日期超出范围）不影响其余规则

补齐策略：默认一次运行补齐截至 as_of 的所有逾期 occurrence，
上限为 max_occurrences_per_rule；catch_up=False 时每条规则每次运行最多一个。
"""

import time
from collections.abc import Iterable
from datetime import UTC, date, datetime
from typing import Protocol

import structlog

from .config import EngineConfig
from .exceptions import PersistenceConflict, TemplateUnavailable
from .materializer import TaskMaterializer
from .models.batch import BatchResult
from .models.rule import RecurrenceRule
from .models.task import Task
from .occurrence import due_date_for, next_candidate
from .store import StoreGroup
from .store.transaction import advance_rule_and_insert_task, mark_rule_dormant

log = structlog.get_logger()


class GenerationListener(Protocol):
    """任务生成监听器（通知/Webhook 等外部副作用）

    仅在规则事务提交之后调用。
    """

    async def on_task_generated(self, rule: RecurrenceRule, task: Task) -> None:
        ...


class RecurrenceProcessor:
    """重复任务批处理器"""

    def __init__(
        self,
        store_group: StoreGroup,
        config: EngineConfig | None = None,
        listeners: Iterable[GenerationListener] | None = None,
    ) -> None:
        self._stores = store_group
        self._config = config or EngineConfig()
        self._materializer = TaskMaterializer(store_group.task_store)
        self._listeners: list[GenerationListener] = list(listeners or [])

    def add_listener(self, listener: GenerationListener) -> None:
        self._listeners.append(listener)

    async def process_due_recurrences(self, as_of: date | None = None) -> BatchResult:
        """处理截至 as_of（含）到期的所有 occurrence

        Args:
            as_of: 截止日期，默认今天

        Returns:
            BatchResult: 生成数、跳过数、失败规则 ID 等
        """
        as_of = as_of or date.today()
        start_time = time.monotonic()
        result = BatchResult()

        rules = await self._stores.rule_store.list_active_rules()
        await log.ainfo(
            "recurrence_batch_started",
            as_of=as_of.isoformat(),
            rule_count=len(rules),
        )

        for rule in rules:
            await self._process_rule(rule, as_of, result)

        elapsed_ms = int((time.monotonic() - start_time) * 1000)
        await log.ainfo(
            "recurrence_batch_completed",
            as_of=as_of.isoformat(),
            generated=result.generated,
            skipped=result.skipped,
            failed=len(result.failed),
            dormant=len(result.dormant),
            elapsed_ms=elapsed_ms,
        )
        return result

    async def _process_rule(
        self,
        rule: RecurrenceRule,
        as_of: date,
        result: BatchResult,
    ) -> None:
        """处理单条规则，直到其下一 occurrence 晚于 as_of 或达到本次上限"""
        produced = 0
        conflicts = 0

        while True:
            try:
                occurrence = next_candidate(rule, rule.last_generated)
                due = due_date_for(rule, occurrence)
            except (ValueError, OverflowError):
                # 超出 9999-12-31：单条规则失败，游标不变
                result.failed.append(rule.rule_id)
                await log.awarning(
                    "recurrence_occurrence_out_of_range",
                    rule_id=rule.rule_id,
                    last_generated=rule.last_generated.isoformat(),
                    frequency=rule.frequency.value,
                    interval=rule.interval,
                )
                return

            try:
                if rule.end_date is not None and due >= rule.end_date:
                    await self._retire_rule(rule, due, result)
                    return

                if due > as_of:
                    if produced == 0:
                        result.skipped += 1
                    return

                if produced >= self._config.occurrences_per_run:
                    await log.ainfo(
                        "recurrence_catch_up_limited",
                        rule_id=rule.rule_id,
                        produced=produced,
                        next_due=due.isoformat(),
                    )
                    return

                rule = await self._materialize_occurrence(rule, occurrence, due, result)
                produced += 1
            except TemplateUnavailable as e:
                # 单条规则失败：游标不变，下次运行重试
                result.failed.append(rule.rule_id)
                await log.awarning(
                    "recurrence_template_unavailable",
                    rule_id=rule.rule_id,
                    template_task_id=e.template_task_id,
                    due_date=due.isoformat(),
                )
                return
            except PersistenceConflict:
                conflicts += 1
                if conflicts > self._config.max_conflict_retries:
                    await log.awarning(
                        "recurrence_conflict_retries_exhausted",
                        rule_id=rule.rule_id,
                        attempts=conflicts,
                    )
                    return

                await log.ainfo(
                    "recurrence_conflict_retry",
                    rule_id=rule.rule_id,
                    attempt=conflicts,
                )
                refreshed = await self._stores.rule_store.get_rule(rule.rule_id)
                if refreshed is None or refreshed.is_dormant:
                    return
                rule = refreshed

    async def _materialize_occurrence(
        self,
        rule: RecurrenceRule,
        occurrence: date,
        due: date,
        result: BatchResult,
    ) -> RecurrenceRule:
        """生成一个 occurrence 并原子推进游标，返回推进后的规则"""
        now = datetime.now(UTC)

        if await self._is_merged_occurrence(rule, due):
            # 周末调整后与已生成日期重合：仅推进游标
            async with self._stores.write_lock:
                advanced = await advance_rule_and_insert_task(
                    self._stores.conn,
                    self._stores.rule_store,
                    self._stores.task_store,
                    rule,
                    occurrence,
                    None,
                    now,
                )
            await log.ainfo(
                "recurrence_occurrence_merged",
                rule_id=rule.rule_id,
                occurrence=occurrence.isoformat(),
                due_date=due.isoformat(),
            )
            return advanced

        task = await self._materializer.materialize(rule, due, now)
        async with self._stores.write_lock:
            advanced = await advance_rule_and_insert_task(
                self._stores.conn,
                self._stores.rule_store,
                self._stores.task_store,
                rule,
                occurrence,
                task,
                now,
            )

        result.generated += 1
        result.task_ids.append(task.task_id)
        await log.ainfo(
            "recurring_task_generated",
            rule_id=rule.rule_id,
            task_id=task.task_id,
            due_date=due.isoformat(),
        )

        await self._notify(advanced, task)
        return advanced

    async def _is_merged_occurrence(self, rule: RecurrenceRule, due: date) -> bool:
        if (
            rule.skip_weekends
            and rule.generated_count > 0
            and due <= due_date_for(rule, rule.last_generated)
        ):
            return True
        existing = await self._stores.task_store.find_task_for_rule_on(rule.rule_id, due)
        return existing is not None

    async def _retire_rule(
        self,
        rule: RecurrenceRule,
        next_due: date,
        result: BatchResult,
    ) -> None:
        """规则到达 end_date：标记 DORMANT（不删除，不报错）"""
        async with self._stores.write_lock:
            await mark_rule_dormant(
                self._stores.conn,
                self._stores.rule_store,
                rule,
                datetime.now(UTC),
            )
        result.dormant.append(rule.rule_id)
        await log.ainfo(
            "recurrence_rule_dormant",
            rule_id=rule.rule_id,
            end_date=rule.end_date.isoformat() if rule.end_date else None,
            next_due=next_due.isoformat(),
        )

    async def _notify(self, rule: RecurrenceRule, task: Task) -> None:
        """事务提交后通知监听器；监听器失败不影响批处理"""
        for listener in self._listeners:
            try:
                await listener.on_task_generated(rule, task)
            except Exception:
                await log.awarning(
                    "recurrence_listener_failed",
                    rule_id=rule.rule_id,
                    task_id=task.task_id,
                    listener=type(listener).__name__,
                    exc_info=True,
                )
