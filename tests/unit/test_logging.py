"""Tests for logging helpers."""

from unittest.mock import Mock, patch

import pytest

from peakbot.logging.config import (
    configure_logging,
    get_execution_logger,
    get_signal_logger,
    log_execution_outcome,
    log_signal_decision,
)


@pytest.fixture
def mock_logger():
    logger = Mock()
    logger.bind.return_value = logger
    return logger


class TestLogSignalDecision:
    """Test signal decision logging."""

    def test_emitted_signal_logs_info(self, mock_logger):
        log_signal_decision(mock_logger, "SOL", "buy", 2.0, 2.0, True, {"price": 102.0})

        mock_logger.info.assert_called_once_with("Signal emitted")
        mock_logger.debug.assert_not_called()
        first_bind = mock_logger.bind.call_args_list[0].kwargs
        assert first_bind["symbol"] == "SOL"
        assert first_bind["signal_emitted"] is True

    def test_silent_evaluation_logs_debug(self, mock_logger):
        log_signal_decision(mock_logger, "SOL", "sell", 1.0, 3.0, False)

        mock_logger.debug.assert_called_once_with("Signal threshold not met")
        mock_logger.info.assert_not_called()
        assert mock_logger.bind.call_count == 1


class TestLogExecutionOutcome:
    """Test execution outcome levels."""

    def test_filled_logs_info(self, mock_logger):
        log_execution_outcome(mock_logger, "SOL", "buy", "filled", "reason")
        mock_logger.info.assert_called_once()

    @pytest.mark.parametrize("status", ["transport_fault", "ledger_rejected"])
    def test_attention_statuses_log_error(self, mock_logger, status):
        log_execution_outcome(mock_logger, "SOL", "buy", status, "reason")
        mock_logger.error.assert_called_once()

    @pytest.mark.parametrize("status", ["rejected", "exchange_rejected"])
    def test_rejections_log_warning(self, mock_logger, status):
        log_execution_outcome(mock_logger, "SOL", "sell", status, "reason", {"order_id": None})
        mock_logger.warning.assert_called_once()


class TestLoggerFactories:
    """Test bound subsystem loggers."""

    def test_subsystem_loggers_bind_context(self):
        with patch("peakbot.logging.config.get_logger") as get_logger:
            get_signal_logger("x")
            get_execution_logger("y")

        calls = get_logger.return_value.bind.call_args_list
        assert calls[0].kwargs["subsystem"] == "signals"
        assert calls[1].kwargs["subsystem"] == "execution"

    def test_configure_logging_json(self):
        with patch("structlog.configure") as configure, patch("logging.basicConfig"):
            configure_logging(level="DEBUG", format_json=True)

        processors = configure.call_args.kwargs["processors"]
        assert type(processors[-1]).__name__ == "JSONRenderer"
