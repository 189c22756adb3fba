"""structlog 配置测试"""

import logging

from taskcadence.core.logging_config import setup_logging


class TestSetupLogging:
    def test_explicit_level(self):
        setup_logging("json", "DEBUG")

        root_logger = logging.getLogger()
        assert root_logger.level == logging.DEBUG
        assert len(root_logger.handlers) == 1
        assert logging.getLogger("aiosqlite").level == logging.WARNING

    def test_env_fallback(self, monkeypatch):
        monkeypatch.setenv("TASKCADENCE_LOG_LEVEL", "warning")

        setup_logging()

        assert logging.getLogger().level == logging.WARNING

    def test_unknown_level_defaults_to_info(self):
        setup_logging("dev", "LOUD")
        assert logging.getLogger().level == logging.INFO
