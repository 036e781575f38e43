"""
Unit tests for error instrumentation module.

Tests log levels, request context propagation and error context capture.
"""

from __future__ import annotations

import json
from unittest.mock import patch

from move_forge.error_instrumentation import (
    ErrorContext,
    create_request_context,
    get_correlation_id,
    log_with_context,
    request_context,
)
from move_forge.exceptions import NoSourceError

LOGGER_PATH = "move_forge.error_instrumentation.logger"


class TestLogWithContext:
    """Tests for log_with_context function."""

    def test_log_critical_level(self) -> None:
        """Test CRITICAL log level is handled correctly."""
        with patch(LOGGER_PATH) as mock_logger:
            log_with_context("critical", "test_event", test_data="value")
            mock_logger.critical.assert_called_once()
            call_args = mock_logger.critical.call_args[0][0]
            assert "test_event" in call_args
            assert "test_data" in call_args

    def test_log_warning_level(self) -> None:
        with patch(LOGGER_PATH) as mock_logger:
            log_with_context("warning", "test_event")
            mock_logger.warning.assert_called_once()

    def test_log_debug_level(self) -> None:
        with patch(LOGGER_PATH) as mock_logger:
            log_with_context("debug", "test_event")
            mock_logger.debug.assert_called_once()

    def test_log_unknown_level_defaults_to_info(self) -> None:
        """Test unknown log level defaults to INFO."""
        with patch(LOGGER_PATH) as mock_logger:
            log_with_context("unknown_level", "test_event")
            mock_logger.info.assert_called_once()

    def test_payload_carries_request_context(self) -> None:
        token = request_context.set(create_request_context(simulation_id="sim_42"))
        try:
            with patch(LOGGER_PATH) as mock_logger:
                log_with_context("info", "simulation_created", artifact_type="token")
                payload = json.loads(mock_logger.info.call_args[0][0])
        finally:
            request_context.reset(token)

        assert payload["simulation_id"] == "sim_42"
        assert payload["artifact_type"] == "token"
        assert payload["message"] == "simulation_created"
        assert payload["level"] == "INFO"


class TestRequestContext:
    """Tests for correlation ids."""

    def test_context_ids_are_unique(self) -> None:
        first = create_request_context()
        second = create_request_context()

        assert first["request_id"] != second["request_id"]
        assert first["service_name"] == "move_forge"

    def test_correlation_id_matches_context(self) -> None:
        ctx = create_request_context(service_name="compile")
        token = request_context.set(ctx)
        try:
            assert get_correlation_id() == ctx["request_id"]
        finally:
            request_context.reset(token)


class TestErrorContext:
    """Tests for ErrorContext capture."""

    def test_to_dict(self) -> None:
        error = NoSourceError("sim_1")
        ctx = ErrorContext(operation="compile", error=error, context={"simulation_id": "sim_1"})

        data = ctx.to_dict()

        assert data["operation"] == "compile"
        assert data["error_type"] == "NoSourceError"
        assert data["context"] == {"simulation_id": "sim_1"}
        assert data["correlation_id"]

    def test_log_includes_error_code(self) -> None:
        error = NoSourceError("sim_1")

        with patch(LOGGER_PATH) as mock_logger:
            ErrorContext(operation="compile", error=error, context={}).log("warning")
            payload = json.loads(mock_logger.warning.call_args[0][0])

        assert payload["message"] == "compile_failed"
        assert payload["error_code"] == "NO_SOURCE"
