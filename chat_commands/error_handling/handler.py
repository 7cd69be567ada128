"""Error handling: classification plus a bounded history for statistics."""

import logging
from collections import Counter, deque
from typing import Any, Deque, Dict, List, Optional

from .classifier import Classifier, ErrorContext, ErrorReport, ErrorSeverity, classify_error


logger = logging.getLogger(__name__)

_LOG_LEVELS = {
    ErrorSeverity.LOW: logging.INFO,
    ErrorSeverity.MEDIUM: logging.WARNING,
    ErrorSeverity.HIGH: logging.ERROR,
    ErrorSeverity.CRITICAL: logging.CRITICAL,
}


class ErrorHandler:
    """Classifies errors and remembers the most recent reports.

    One instance is owned by each router; nothing here is process-global.
    """

    def __init__(self, history_size: int = 100, classifier: Classifier = classify_error):
        """Initialize the error handler.

        Args:
            history_size: Number of reports kept, oldest dropped first
            classifier: Function mapping (error, context) to an ErrorReport
        """
        if history_size < 1:
            raise ValueError("history_size must be positive")
        self.classifier = classifier
        self._history: Deque[ErrorReport] = deque(maxlen=history_size)

    @property
    def history_size(self) -> int:
        return self._history.maxlen or 0

    def handle_error(
        self, error: BaseException, context: Optional[ErrorContext] = None
    ) -> ErrorReport:
        """Classify an error, log it and record it in the history."""
        report = self.classifier(error, context)
        self._history.append(report)
        self._log(report, error)
        return report

    def _log(self, report: ErrorReport, error: BaseException) -> None:
        logger.log(
            _LOG_LEVELS[report.severity],
            f"[{report.category.value}] {report.context.operation}: {report.technical_message}",
        )
        logger.debug("Original exception", exc_info=error)

    def get_history(self, limit: Optional[int] = None) -> List[ErrorReport]:
        """Reports, most recent first."""
        reports = list(reversed(self._history))
        return reports[:limit] if limit is not None else reports

    def get_error_statistics(self) -> Dict[str, Any]:
        """Aggregate counts over the retained history."""
        by_severity = Counter(report.severity.value for report in self._history)
        by_category = Counter(report.category.value for report in self._history)
        by_operation = Counter(report.context.operation for report in self._history)
        return {
            "total_errors": len(self._history),
            "errors_by_severity": dict(by_severity),
            "errors_by_category": dict(by_category),
            "errors_by_operation": dict(by_operation),
            "recent_errors": self.get_history(limit=10),
        }

    def clear_history(self) -> None:
        """Drop all retained reports."""
        self._history.clear()
        logger.debug("Cleared error history")

    def __len__(self) -> int:
        return len(self._history)
