"""CLI 参数解析与命令测试"""

from datetime import date

import pytest
from taskcadence.core.__main__ import parse_as_of, print_statistics, process_due


class TestParseAsOf:
    def test_default_is_none(self):
        assert parse_as_of([]) is None

    def test_parses_iso_date(self):
        assert parse_as_of(["--as-of", "2026-02-21"]) == date(2026, 2, 21)

    def test_missing_value(self):
        with pytest.raises(ValueError):
            parse_as_of(["--as-of"])

    def test_invalid_date(self):
        with pytest.raises(ValueError):
            parse_as_of(["--as-of", "2026-13-01"])


class TestCommands:
    async def test_process_due_and_stats(self, tmp_path, monkeypatch, capsys):
        monkeypatch.setenv("TASKCADENCE_DB_PATH", str(tmp_path / "cli.db"))

        await process_due(date(2026, 2, 21))
        await print_statistics("owner-1")

        output = capsys.readouterr().out
        assert "生成 0 个任务" in output
        assert "总数: 0" in output
