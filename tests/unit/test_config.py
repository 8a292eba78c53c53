"""
tests/unit/test_config.py

Unit tests for environment-driven configuration.
"""

from pageprobe.config import Config


class TestConfig:
    def test_as_dict_contains_settings(self) -> None:
        settings = Config.as_dict()
        for key in ("LOG_LEVEL", "REMOTE_DEBUGGING_ADDRESS", "HTTP_TIMEOUT", "CDP_COMMAND_TIMEOUT", "DEFAULT_TIMEOUT_MS"):
            assert key in settings

    def test_as_dict_skips_methods(self) -> None:
        assert "as_dict" not in Config.as_dict()

    def test_default_timeout_is_positive(self) -> None:
        assert Config.DEFAULT_TIMEOUT_MS > 0
