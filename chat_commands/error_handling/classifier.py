"""Table-driven classification of errors into categories and recovery intents.

:func:`classify_error` is pure: it reads only the error and the context it is
given. Rules are checked in order against the lower-cased error message and
the first match wins. Recovery intents are declarative; executing one is the
caller's business (see :mod:`chat_commands.error_handling.recovery`).
"""

from datetime import datetime
from enum import Enum
from typing import Callable, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from .sanitize import sanitize_error


class ErrorCategory(str, Enum):
    """Error categories, in classification order."""

    FILE_NOT_FOUND = "file-not-found"
    PERMISSION_DENIED = "permission-denied"
    FILE_ALREADY_EXISTS = "file-already-exists"
    NETWORK = "network"
    MODEL = "model"
    WORKSPACE_MISSING = "workspace-missing"
    CONFIGURATION = "configuration"
    TEMPLATE = "template"
    GENERIC = "generic"


class ErrorSeverity(str, Enum):
    """How serious an error is for the user."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class RecoveryIntent(BaseModel):
    """A suggested remediation, described but not executed."""

    model_config = ConfigDict(frozen=True)

    label: str
    description: str


class ErrorContext(BaseModel):
    """Where an error happened."""

    model_config = ConfigDict(frozen=True)

    operation: str = "unknown"
    command: Optional[str] = None
    file_path: Optional[str] = None
    user_input: Optional[str] = None
    session_id: Optional[str] = None
    timestamp: datetime = Field(default_factory=datetime.now)


class ErrorReport(BaseModel):
    """Immutable classification of a single failure."""

    model_config = ConfigDict(frozen=True)

    category: ErrorCategory
    severity: ErrorSeverity
    recoverable: bool
    recovery_intents: Tuple[RecoveryIntent, ...] = ()
    user_message: str
    technical_message: str
    error_type: str = "Exception"
    error_message: str = ""
    context: ErrorContext
    timestamp: datetime

    @property
    def intent_labels(self) -> List[str]:
        return [intent.label for intent in self.recovery_intents]

    @property
    def can_retry(self) -> bool:
        """Whether any intent suggests simply trying again."""
        return any("retry" in label.lower() for label in self.intent_labels)


class ClassificationRule(BaseModel):
    """One row of the classification table."""

    model_config = ConfigDict(frozen=True)

    category: ErrorCategory
    patterns: Tuple[str, ...]
    severity: ErrorSeverity
    intents: Tuple[RecoveryIntent, ...]
    file_intents: Tuple[RecoveryIntent, ...] = ()
    user_message: str

    def matches(self, message: str) -> bool:
        return any(pattern in message for pattern in self.patterns)


def _intent(label: str, description: str) -> RecoveryIntent:
    return RecoveryIntent(label=label, description=description)


CLASSIFICATION_RULES: Tuple[ClassificationRule, ...] = (
    ClassificationRule(
        category=ErrorCategory.FILE_NOT_FOUND,
        patterns=("enoent", "file not found", "no such file"),
        severity=ErrorSeverity.MEDIUM,
        file_intents=(
            _intent("create-file", "Create the missing file with default content"),
            _intent("choose-different-file", "Select a different file path"),
        ),
        intents=(_intent("verify-workspace", "Verify workspace folder is correctly set"),),
        user_message=(
            "File not found: {file}. The file may have been moved, deleted, "
            "or the path is incorrect."
        ),
    ),
    ClassificationRule(
        category=ErrorCategory.PERMISSION_DENIED,
        patterns=("eacces", "permission denied", "access denied"),
        severity=ErrorSeverity.HIGH,
        intents=(
            _intent("check-permissions", "Check file and directory permissions"),
            _intent(
                "choose-different-location",
                "Choose a different directory with write permissions",
            ),
        ),
        user_message=(
            "Permission denied accessing: {file}. You may not have sufficient "
            "permissions to read or write this file."
        ),
    ),
    ClassificationRule(
        category=ErrorCategory.FILE_ALREADY_EXISTS,
        patterns=("eexist", "already exists"),
        severity=ErrorSeverity.LOW,
        intents=(
            _intent("overwrite", "Replace the existing file with new content"),
            _intent("backup-then-create", "Backup existing file and create new one"),
            _intent("rename", "Choose a different filename"),
        ),
        user_message="File already exists: {file}. Choose how to proceed.",
    ),
    ClassificationRule(
        category=ErrorCategory.NETWORK,
        patterns=("network", "timeout", "timed out", "fetch", "connection"),
        severity=ErrorSeverity.MEDIUM,
        intents=(
            _intent("retry", "Try the operation again"),
            _intent("check-connection", "Verify internet connection and proxy settings"),
            _intent("work-offline", "Continue with offline functionality only"),
        ),
        user_message="Network error occurred. Check your internet connection and try again.",
    ),
    ClassificationRule(
        category=ErrorCategory.MODEL,
        patterns=("language model", "model", "copilot", "provider"),
        severity=ErrorSeverity.HIGH,
        intents=(
            _intent("check-provider-status", "Verify the model provider is reachable and authenticated"),
            _intent("retry-different-model", "Try using a different language model"),
            _intent("basic-mode", "Continue with basic functionality without AI assistance"),
        ),
        user_message="Language model error. Please check your model provider status and authentication.",
    ),
    ClassificationRule(
        category=ErrorCategory.WORKSPACE_MISSING,
        patterns=("workspace", "folder"),
        severity=ErrorSeverity.CRITICAL,
        intents=(
            _intent("open-workspace", "Open a workspace folder"),
            _intent("reload", "Reload the window to refresh the workspace"),
        ),
        user_message="Workspace error. Please ensure a workspace folder is open and accessible.",
    ),
    ClassificationRule(
        category=ErrorCategory.CONFIGURATION,
        patterns=("configuration", "settings"),
        severity=ErrorSeverity.MEDIUM,
        intents=(
            _intent("open-settings", "Open settings to fix configuration"),
            _intent("reset-to-defaults", "Reset configuration to default values"),
        ),
        user_message="Configuration error. Please check your settings.",
    ),
    ClassificationRule(
        category=ErrorCategory.TEMPLATE,
        patterns=("template", "variable"),
        severity=ErrorSeverity.LOW,
        intents=(
            _intent("use-default-template", "Fall back to the default template"),
            _intent("list-templates", "Show available templates"),
        ),
        user_message=(
            "Template error. The specified template may not exist or contain "
            "invalid syntax."
        ),
    ),
)

GENERIC_RULE = ClassificationRule(
    category=ErrorCategory.GENERIC,
    patterns=(),
    severity=ErrorSeverity.MEDIUM,
    intents=(
        _intent("retry", "Try the operation again"),
        _intent("report-issue", "Report this issue to the maintainers"),
    ),
    user_message=(
        "An unexpected error occurred. Please try again or report the issue "
        "if it persists."
    ),
)


def find_rule(message: str) -> ClassificationRule:
    """Return the first rule matching ``message`` (case-insensitive)."""
    lowered = message.lower()
    for rule in CLASSIFICATION_RULES:
        if rule.matches(lowered):
            return rule
    return GENERIC_RULE


def is_recoverable(category: ErrorCategory, severity: ErrorSeverity) -> bool:
    """Low/medium severity errors and network errors are worth retrying."""
    return category is ErrorCategory.NETWORK or severity in (
        ErrorSeverity.LOW,
        ErrorSeverity.MEDIUM,
    )


def classify_error(error: BaseException, context: Optional[ErrorContext] = None) -> ErrorReport:
    """Classify an error into an :class:`ErrorReport`.

    Args:
        error: The exception to classify
        context: Where it happened; a default context is used when omitted

    Returns:
        A new, immutable ErrorReport
    """
    context = context or ErrorContext()
    return build_report(error, context, find_rule(str(error) or type(error).__name__))


def build_report(
    error: BaseException, context: ErrorContext, rule: ClassificationRule
) -> ErrorReport:
    """Build the report for an error already matched to ``rule``."""
    error_message = str(error) or type(error).__name__
    intents = rule.intents
    if context.file_path:
        intents = rule.file_intents + intents

    technical = f"{type(error).__name__} during {context.operation}: {sanitize_error(error)}"
    if context.file_path:
        technical += f". File: {context.file_path}"

    return ErrorReport(
        category=rule.category,
        severity=rule.severity,
        recoverable=is_recoverable(rule.category, rule.severity),
        recovery_intents=intents,
        user_message=rule.user_message.format(file=context.file_path or "unknown file"),
        technical_message=technical,
        error_type=type(error).__name__,
        error_message=error_message,
        context=context,
        timestamp=context.timestamp,
    )


Classifier = Callable[[BaseException, Optional[ErrorContext]], ErrorReport]
