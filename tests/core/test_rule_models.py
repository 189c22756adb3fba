"""Domain Models 单元测试

测试内容：
1. 枚举取值与规则状态机
2. validate_rule_config 边界校验
3. RecurrenceRule / Task Pydantic 校验
"""

from datetime import UTC, date, datetime

import pytest
from pydantic import ValidationError
from taskcadence.core.exceptions import InvalidRuleConfiguration, RecurrenceError
from taskcadence.core.models import (
    Frequency,
    RecurrenceRule,
    RuleState,
    Task,
    TaskPriority,
    TaskStatus,
    validate_rule_config,
    validate_rule_transition,
)


class TestEnums:
    def test_frequency_values(self):
        assert [f.value for f in Frequency] == ["daily", "weekly", "monthly", "yearly"]

    def test_frequency_from_string(self):
        assert Frequency("monthly") == Frequency.MONTHLY

    def test_active_to_dormant_allowed(self):
        assert validate_rule_transition(RuleState.ACTIVE, RuleState.DORMANT)

    def test_dormant_is_final(self):
        assert not validate_rule_transition(RuleState.DORMANT, RuleState.ACTIVE)


class TestValidateRuleConfig:
    def test_normalizes_values(self):
        freq, weekdays, month_days = validate_rule_config("weekly", 2, [5, 1, 1], None)
        assert freq == Frequency.WEEKLY
        assert weekdays == frozenset({1, 5})
        assert month_days == frozenset()

    @pytest.mark.parametrize("interval", [0, -1, 366])
    def test_interval_out_of_range(self, interval: int):
        with pytest.raises(InvalidRuleConfiguration) as exc_info:
            validate_rule_config(Frequency.DAILY, interval)
        assert exc_info.value.field == "interval"

    @pytest.mark.parametrize("interval", [1, 365])
    def test_interval_bounds_accepted(self, interval: int):
        freq, _, _ = validate_rule_config(Frequency.DAILY, interval)
        assert freq == Frequency.DAILY

    def test_interval_bool_rejected(self):
        with pytest.raises(InvalidRuleConfiguration):
            validate_rule_config(Frequency.DAILY, True)

    def test_unknown_frequency(self):
        with pytest.raises(InvalidRuleConfiguration) as exc_info:
            validate_rule_config("hourly", 1)
        assert exc_info.value.field == "frequency"

    @pytest.mark.parametrize("days", [[0], [8], [1, 9]])
    def test_days_of_week_out_of_range(self, days):
        with pytest.raises(InvalidRuleConfiguration) as exc_info:
            validate_rule_config(Frequency.WEEKLY, 1, days_of_week=days)
        assert exc_info.value.field == "days_of_week"

    @pytest.mark.parametrize("days", [[0], [32]])
    def test_days_of_month_out_of_range(self, days):
        with pytest.raises(InvalidRuleConfiguration) as exc_info:
            validate_rule_config(Frequency.MONTHLY, 1, days_of_month=days)
        assert exc_info.value.field == "days_of_month"

    def test_non_integer_day_rejected(self):
        with pytest.raises(InvalidRuleConfiguration):
            validate_rule_config(Frequency.WEEKLY, 1, days_of_week=["1"])

    def test_not_recoverable(self):
        error = InvalidRuleConfiguration("bad")
        assert isinstance(error, RecurrenceError)
        assert error.recoverable is False


class TestRecurrenceRuleModel:
    def _kwargs(self, **overrides) -> dict:
        now = datetime.now(UTC)
        kwargs = {
            "rule_id": "01JRULE0000000000000000001",
            "owner_id": "owner-1",
            "template_task_id": "01JTPL00000000000000000001",
            "frequency": Frequency.DAILY,
            "anchor_date": date(2026, 2, 20),
            "last_generated": date(2026, 2, 20),
            "created_at": now,
            "updated_at": now,
        }
        kwargs.update(overrides)
        return kwargs

    def test_defaults(self):
        rule = RecurrenceRule(**self._kwargs())
        assert rule.interval == 1
        assert rule.state == RuleState.ACTIVE
        assert rule.version == 1
        assert rule.generated_count == 0
        assert not rule.skip_weekends
        assert not rule.is_dormant

    def test_zero_interval_rejected(self):
        with pytest.raises(ValidationError):
            RecurrenceRule(**self._kwargs(interval=0))

    def test_invalid_weekday_rejected(self):
        with pytest.raises(ValidationError):
            RecurrenceRule(**self._kwargs(days_of_week=frozenset({0})))

    def test_invalid_month_day_rejected(self):
        with pytest.raises(ValidationError):
            RecurrenceRule(**self._kwargs(days_of_month=frozenset({32})))


class TestTaskModel:
    def test_defaults(self):
        now = datetime.now(UTC)
        task = Task(
            task_id="01JTASK0000000000000000001",
            owner_id="owner-1",
            title="周报",
            created_at=now,
            updated_at=now,
        )
        assert task.status == TaskStatus.PENDING
        assert task.priority == TaskPriority.MEDIUM
        assert task.progress == 0
        assert task.source_rule_id is None

    def test_progress_range(self):
        now = datetime.now(UTC)
        with pytest.raises(ValidationError):
            Task(
                task_id="01JTASK0000000000000000001",
                owner_id="owner-1",
                title="周报",
                progress=101,
                created_at=now,
                updated_at=now,
            )
