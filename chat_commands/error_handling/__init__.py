"""Error classification, history and automatic recovery."""

from .classifier import (
    ErrorCategory,
    ErrorContext,
    ErrorReport,
    ErrorSeverity,
    RecoveryIntent,
    build_report,
    classify_error,
)
from .handler import ErrorHandler
from .recovery import RecoveryEngine, RecoveryOutcome, RetryPolicy
from .sanitize import sanitize_error

__all__ = [
    'ErrorCategory',
    'ErrorContext',
    'ErrorHandler',
    'ErrorReport',
    'ErrorSeverity',
    'RecoveryEngine',
    'RecoveryIntent',
    'RecoveryOutcome',
    'RetryPolicy',
    'build_report',
    'classify_error',
    'sanitize_error',
]
