"""Tests for the error handler and its history."""

import pytest

from chat_commands.error_handling.classifier import ErrorCategory, ErrorContext
from chat_commands.error_handling.handler import ErrorHandler


class TestErrorHandler:
    """Test classification, history and statistics."""

    def test_handle_error_records_report(self):
        handler = ErrorHandler()

        report = handler.handle_error(RuntimeError("timeout"), ErrorContext(operation="fetch"))

        assert report.category is ErrorCategory.NETWORK
        assert len(handler) == 1
        assert handler.get_history() == [report]

    def test_history_is_bounded(self):
        handler = ErrorHandler(history_size=3)
        for i in range(5):
            handler.handle_error(RuntimeError(f"error {i}"))

        history = handler.get_history()
        assert len(history) == 3
        assert [r.error_message for r in history] == ["error 4", "error 3", "error 2"]

    def test_history_limit(self):
        handler = ErrorHandler()
        for i in range(4):
            handler.handle_error(RuntimeError(f"error {i}"))

        assert len(handler.get_history(limit=2)) == 2

    def test_statistics(self):
        handler = ErrorHandler()
        handler.handle_error(RuntimeError("timeout"), ErrorContext(operation="fetch"))
        handler.handle_error(RuntimeError("permission denied"), ErrorContext(operation="write"))
        handler.handle_error(RuntimeError("connection lost"), ErrorContext(operation="fetch"))

        stats = handler.get_error_statistics()

        assert stats["total_errors"] == 3
        assert stats["errors_by_severity"] == {"medium": 2, "high": 1}
        assert stats["errors_by_category"] == {"network": 2, "permission-denied": 1}
        assert stats["errors_by_operation"] == {"fetch": 2, "write": 1}
        assert len(stats["recent_errors"]) == 3

    def test_clear_history(self):
        handler = ErrorHandler()
        handler.handle_error(RuntimeError("x"))

        handler.clear_history()

        assert len(handler) == 0
        assert handler.get_error_statistics()["total_errors"] == 0

    def test_custom_classifier(self):
        calls = []

        def classifier(error, context):
            calls.append(error)
            from chat_commands.error_handling.classifier import classify_error

            return classify_error(error, context)

        handler = ErrorHandler(classifier=classifier)
        handler.handle_error(RuntimeError("x"))

        assert len(calls) == 1

    def test_invalid_history_size(self):
        with pytest.raises(ValueError):
            ErrorHandler(history_size=0)
