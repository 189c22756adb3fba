"""Occurrence 日期计算单元测试

测试内容：
1. daily: 参考日期 + interval 天
2. weekly: 星期集合、间隔周、空集合回退到参考日星期
3. monthly: 月末 clamp、多日选择、不漂移
4. yearly: 2 月 29 日在平年落到 28 日
5. 所有频率严格晚于参考日期
6. upcoming_occurrences 预览
7. 日期上限 9999-12-31
"""

from datetime import UTC, date, datetime, timedelta

import pytest
from taskcadence.core.exceptions import InvalidRuleConfiguration
from taskcadence.core.models import Frequency, RecurrenceRule, RuleState
from taskcadence.core.occurrence import (
    add_months,
    clamp_day,
    due_date_for,
    ensure_schedulable,
    next_candidate,
    upcoming_occurrences,
)


def _rule(
    frequency: Frequency,
    last_generated: date,
    interval: int = 1,
    days_of_week=(),
    days_of_month=(),
    anchor_date: date | None = None,
    **fields,
) -> RecurrenceRule:
    now = datetime.now(UTC)
    return RecurrenceRule(
        rule_id="01JRULE0000000000000000001",
        owner_id="owner-1",
        template_task_id="01JTPL00000000000000000001",
        frequency=frequency,
        interval=interval,
        days_of_week=frozenset(days_of_week),
        days_of_month=frozenset(days_of_month),
        anchor_date=anchor_date or last_generated,
        last_generated=last_generated,
        created_at=now,
        updated_at=now,
        **fields,
    )


def _sequence(rule: RecurrenceRule, count: int) -> list[date]:
    dates = []
    cursor = rule.last_generated
    for _ in range(count):
        cursor = next_candidate(rule, cursor)
        dates.append(cursor)
    return dates


class TestDateHelpers:
    def test_clamp_day_to_month_end(self):
        assert clamp_day(2026, 4, 31) == date(2026, 4, 30)
        assert clamp_day(2026, 2, 30) == date(2026, 2, 28)
        assert clamp_day(2028, 2, 30) == date(2028, 2, 29)
        assert clamp_day(2026, 5, 15) == date(2026, 5, 15)

    def test_add_months_crosses_year(self):
        assert add_months(date(2026, 11, 15), 3) == date(2027, 2, 15)
        assert add_months(date(2026, 1, 31), 1) == date(2026, 2, 28)


class TestDaily:
    @pytest.mark.parametrize("interval", [1, 2, 3, 7, 30, 365])
    def test_reference_plus_interval(self, interval: int):
        """next_candidate == last_generated + n 天"""
        reference = date(2026, 2, 20)
        rule = _rule(Frequency.DAILY, reference, interval=interval)
        assert next_candidate(rule, reference) == reference + timedelta(days=interval)

    def test_crosses_year_boundary(self):
        rule = _rule(Frequency.DAILY, date(2026, 12, 31))
        assert next_candidate(rule, date(2026, 12, 31)) == date(2027, 1, 1)


class TestWeekly:
    def test_mon_wed_fri_sequence(self):
        """周一/三/五，从周五 2026-02-20 出发"""
        rule = _rule(Frequency.WEEKLY, date(2026, 2, 20), days_of_week={1, 3, 5})
        assert _sequence(rule, 4) == [
            date(2026, 2, 23),
            date(2026, 2, 25),
            date(2026, 2, 27),
            date(2026, 3, 2),
        ]

    def test_every_other_week(self):
        """interval=2 时跳过与 anchor 周相隔奇数周的日期"""
        rule = _rule(Frequency.WEEKLY, date(2026, 2, 20), interval=2, days_of_week={1})
        assert _sequence(rule, 3) == [
            date(2026, 3, 2),
            date(2026, 3, 16),
            date(2026, 3, 30),
        ]

    def test_empty_set_uses_reference_weekday(self):
        rule = _rule(Frequency.WEEKLY, date(2026, 2, 20))
        assert _sequence(rule, 2) == [date(2026, 2, 27), date(2026, 3, 6)]

    def test_strictly_after_matching_reference(self):
        """参考日本身命中星期集合时不会被再次返回"""
        rule = _rule(Frequency.WEEKLY, date(2026, 2, 23), days_of_week={1})
        assert next_candidate(rule, date(2026, 2, 23)) == date(2026, 3, 2)

    def test_result_weekday_in_selected_set(self):
        rule = _rule(Frequency.WEEKLY, date(2026, 1, 1), days_of_week={2, 6})
        for d in _sequence(rule, 20):
            assert d.isoweekday() in {2, 6}


class TestMonthly:
    def test_day_31_clamps_in_april(self):
        rule = _rule(Frequency.MONTHLY, date(2026, 3, 31), days_of_month={31})
        assert next_candidate(rule, date(2026, 3, 31)) == date(2026, 4, 30)

    def test_day_31_does_not_drift(self):
        """4 月落到 30 日后，5 月仍回到 31 日"""
        rule = _rule(Frequency.MONTHLY, date(2026, 3, 31), days_of_month={31})
        assert _sequence(rule, 3) == [
            date(2026, 4, 30),
            date(2026, 5, 31),
            date(2026, 6, 30),
        ]

    def test_multiple_days(self):
        rule = _rule(Frequency.MONTHLY, date(2026, 1, 10), days_of_month={1, 15})
        assert _sequence(rule, 3) == [
            date(2026, 1, 15),
            date(2026, 2, 1),
            date(2026, 2, 15),
        ]

    def test_empty_set_uses_anchor_day(self):
        rule = _rule(Frequency.MONTHLY, date(2026, 1, 31))
        assert _sequence(rule, 3) == [
            date(2026, 2, 28),
            date(2026, 3, 31),
            date(2026, 4, 30),
        ]

    def test_interval_skips_months(self):
        rule = _rule(Frequency.MONTHLY, date(2026, 1, 10), interval=3, days_of_month={10})
        assert _sequence(rule, 2) == [date(2026, 4, 10), date(2026, 7, 10)]

    def test_clamped_days_collapse_in_february(self):
        """29/30 日在平年 2 月都落到 28 日，只产生一个 occurrence"""
        rule = _rule(Frequency.MONTHLY, date(2026, 2, 1), days_of_month={29, 30})
        assert _sequence(rule, 3) == [
            date(2026, 2, 28),
            date(2026, 3, 29),
            date(2026, 3, 30),
        ]


class TestYearly:
    def test_feb_29_anchor(self):
        rule = _rule(Frequency.YEARLY, date(2024, 2, 29))
        assert _sequence(rule, 4) == [
            date(2025, 2, 28),
            date(2026, 2, 28),
            date(2027, 2, 28),
            date(2028, 2, 29),
        ]

    def test_interval(self):
        rule = _rule(Frequency.YEARLY, date(2026, 3, 15), interval=2)
        assert next_candidate(rule, date(2026, 3, 15)) == date(2028, 3, 15)


class TestStrictlyAfter:
    @pytest.mark.parametrize("frequency", list(Frequency))
    def test_always_after_reference(self, frequency: Frequency):
        rule = _rule(
            frequency,
            date(2026, 1, 31),
            days_of_week={3} if frequency == Frequency.WEEKLY else (),
            days_of_month={31} if frequency == Frequency.MONTHLY else (),
        )
        reference = date(2026, 1, 31)
        for _ in range(30):
            candidate = next_candidate(rule, reference)
            assert candidate > reference
            reference = candidate


class TestUpcoming:
    def test_respects_end_date(self):
        rule = _rule(Frequency.DAILY, date(2026, 2, 20), end_date=date(2026, 2, 23))
        assert upcoming_occurrences(rule, 5) == [date(2026, 2, 21), date(2026, 2, 22)]

    def test_dormant_rule_has_no_upcoming(self):
        rule = _rule(Frequency.DAILY, date(2026, 2, 20), state=RuleState.DORMANT)
        assert upcoming_occurrences(rule, 5) == []

    def test_weekend_adjusted_dates_are_unique(self):
        rule = _rule(Frequency.DAILY, date(2026, 2, 20), skip_weekends=True)
        dates = upcoming_occurrences(rule, 4)
        assert dates == [
            date(2026, 2, 20),
            date(2026, 2, 23),
            date(2026, 2, 24),
            date(2026, 2, 25),
        ]
        assert all(d.isoweekday() <= 5 for d in dates)

    def test_due_date_without_weekend_policy(self):
        rule = _rule(Frequency.DAILY, date(2026, 2, 20))
        assert due_date_for(rule, date(2026, 2, 21)) == date(2026, 2, 21)

    def test_stops_at_max_date(self):
        rule = _rule(Frequency.DAILY, date(9999, 12, 29))
        assert upcoming_occurrences(rule, 5) == [date(9999, 12, 30), date(9999, 12, 31)]


class TestDateRange:
    def test_unrepresentable_next_occurrence_rejected(self):
        rule = _rule(Frequency.YEARLY, date(9700, 1, 1), interval=365)
        with pytest.raises(InvalidRuleConfiguration) as exc_info:
            ensure_schedulable(rule, field="start_date")
        assert exc_info.value.field == "start_date"

    def test_last_representable_date_accepted(self):
        rule = _rule(Frequency.DAILY, date(9999, 12, 30))
        ensure_schedulable(rule)

    def test_overflow_after_max_date_rejected(self):
        rule = _rule(Frequency.DAILY, date(9999, 12, 31))
        with pytest.raises(InvalidRuleConfiguration):
            ensure_schedulable(rule)

    def test_nothing_to_preview_past_max_date(self):
        rule = _rule(Frequency.YEARLY, date(9700, 1, 1), interval=365)
        assert upcoming_occurrences(rule, 5) == []
