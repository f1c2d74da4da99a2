"""
Tests for configuration loading and logging helpers.
"""

import logging

import pytest

from chat_automata.config import AutomataConfig, DEFAULT_ALPHABET
from chat_automata.utils.logging_config import (
    ROOT_LOGGER_NAME, PerformanceTimer, get_logger, get_performance_logger
)


class TestAutomataConfig:

    def test_defaults(self):
        config = AutomataConfig()
        assert config.default_alphabet == DEFAULT_ALPHABET
        assert config.max_stack_depth == 1024
        assert config.max_nesting_depth == 10
        assert config.default_max_edits == 2
        assert config.max_scan_window is None

    def test_default_alphabet_is_not_shared(self):
        first = AutomataConfig()
        first.default_alphabet.append('!')
        assert '!' not in AutomataConfig().default_alphabet

    @pytest.mark.parametrize("kwargs", [
        {'max_stack_depth': 0},
        {'max_scan_window': 0},
    ])
    def test_invalid_limits(self, kwargs):
        with pytest.raises(ValueError):
            AutomataConfig(**kwargs)

    def test_custom_settings(self):
        config = AutomataConfig(custom_settings={'channel': 'general'})
        assert config.get_setting('channel') == 'general'
        assert config.get_setting('missing', 'fallback') == 'fallback'

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv('CHAT_AUTOMATA_MAX_STACK_DEPTH', '64')
        monkeypatch.setenv('CHAT_AUTOMATA_MAX_NESTING_DEPTH', '4')
        monkeypatch.setenv('CHAT_AUTOMATA_DEFAULT_MAX_EDITS', '1')
        monkeypatch.setenv('CHAT_AUTOMATA_MAX_SCAN_WINDOW', '20')
        monkeypatch.setenv('CHAT_AUTOMATA_DEFAULT_ALPHABET', 'cba')

        config = AutomataConfig.from_env()
        assert config.max_stack_depth == 64
        assert config.max_nesting_depth == 4
        assert config.default_max_edits == 1
        assert config.max_scan_window == 20
        assert config.default_alphabet == ['a', 'b', 'c']

    def test_from_env_ignores_blank_values(self, monkeypatch):
        monkeypatch.setenv('CHAT_AUTOMATA_MAX_STACK_DEPTH', '  ')
        monkeypatch.delenv('CHAT_AUTOMATA_DEFAULT_ALPHABET', raising=False)
        config = AutomataConfig.from_env()
        assert config.max_stack_depth == 1024
        assert config.default_alphabet == DEFAULT_ALPHABET


class TestLogging:

    def test_get_logger_namespaces_names(self):
        assert get_logger("custom").name == f"{ROOT_LOGGER_NAME}.custom"
        assert get_logger("chat_automata.pda").name == "chat_automata.pda"
        assert get_performance_logger().name == "chat_automata.performance"

    def test_performance_timer_measures_duration(self, caplog):
        logger = logging.getLogger("timer_test")
        with caplog.at_level(logging.INFO, logger="timer_test"):
            with PerformanceTimer("unit_operation", logger) as timer:
                pass
        assert timer.duration >= 0.0
        assert any("unit_operation completed" in record.message for record in caplog.records)

    def test_performance_timer_reports_failure(self, caplog):
        logger = logging.getLogger("timer_test")
        with caplog.at_level(logging.WARNING, logger="timer_test"):
            with pytest.raises(RuntimeError):
                with PerformanceTimer("failing_operation", logger):
                    raise RuntimeError("boom")
        assert any("failing_operation failed" in record.message for record in caplog.records)
