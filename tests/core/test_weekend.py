"""周末调整策略单元测试"""

from datetime import date, timedelta

import pytest
from taskcadence.core.weekend import skip_weekend


class TestSkipWeekend:
    def test_saturday_moves_to_friday(self):
        assert skip_weekend(date(2026, 2, 21)) == date(2026, 2, 20)

    def test_sunday_moves_to_monday(self):
        assert skip_weekend(date(2026, 2, 22)) == date(2026, 2, 23)

    @pytest.mark.parametrize("day", range(16, 21))
    def test_weekday_unchanged(self, day: int):
        d = date(2026, 2, day)
        assert skip_weekend(d) == d

    def test_idempotent(self):
        start = date(2026, 1, 1)
        for offset in range(60):
            d = start + timedelta(days=offset)
            assert skip_weekend(skip_weekend(d)) == skip_weekend(d)

    def test_monotonic_non_decreasing(self):
        start = date(2026, 1, 1)
        for offset in range(60):
            d = start + timedelta(days=offset)
            assert skip_weekend(d) <= skip_weekend(d + timedelta(days=1))

    def test_never_returns_weekend(self):
        start = date(2026, 1, 1)
        for offset in range(14):
            assert skip_weekend(start + timedelta(days=offset)).isoweekday() <= 5
