"""Session-scoped automatic recovery with exponential backoff."""

import asyncio
import logging
import random
from collections import OrderedDict
from dataclasses import dataclass
from typing import Awaitable, Callable, Mapping, Optional

from .classifier import ErrorCategory, ErrorContext, ErrorReport, ErrorSeverity
from .handler import ErrorHandler


logger = logging.getLogger(__name__)

RecoveryAction = Callable[[], Awaitable[None]]
Sleep = Callable[[float], Awaitable[None]]

DEFAULT_SESSION = "default"
AUTO_RECOVERED_SUFFIX = " (Automatically recovered)"


class RetryPolicy:
    """Exponential backoff: attempt ``n`` waits ``2**n * base_delay`` seconds."""

    def __init__(self, base_delay: float = 1.0, jitter: bool = False):
        """
        Initialize retry policy.

        Args:
            base_delay: Delay unit in seconds
            jitter: Add up to 10% on top of each delay
        """
        if base_delay < 0:
            raise ValueError("base_delay cannot be negative")
        self.base_delay = base_delay
        self.jitter = jitter

    def calculate_delay(self, attempt: int) -> float:
        """Calculate delay for given attempt number (1-based)."""
        delay = self.base_delay * (2 ** attempt)
        if self.jitter:
            delay *= 1 + 0.1 * random.random()
        return delay


@dataclass
class RetryState:
    """Retry bookkeeping for one session."""

    attempts: int = 0


@dataclass(frozen=True)
class RecoveryOutcome:
    """Result of a recovery attempt."""

    report: ErrorReport
    recovered: bool
    exhausted: bool
    attempts: int


class RecoveryEngine:
    """Wraps the error handler with per-session automatic retries.

    Retry counters are kept per session id in an LRU map capped at
    ``max_sessions``. They only reset through :meth:`clear_history`.
    """

    def __init__(
        self,
        error_handler: Optional[ErrorHandler] = None,
        retry_policy: Optional[RetryPolicy] = None,
        max_sessions: int = 1000,
        sleep: Sleep = asyncio.sleep,
    ):
        """Initialize the recovery engine.

        Args:
            error_handler: Handler used to classify and record errors
            retry_policy: Backoff policy between attempts
            max_sessions: Sessions tracked before the least recently used is evicted
            sleep: Coroutine used to wait, replaceable by a simulated clock
        """
        if max_sessions < 1:
            raise ValueError("max_sessions must be positive")
        self.error_handler = error_handler if error_handler is not None else ErrorHandler()
        self.retry_policy = retry_policy or RetryPolicy()
        self.max_sessions = max_sessions
        self._sleep = sleep
        self._sessions: "OrderedDict[str, RetryState]" = OrderedDict()

    def can_attempt_recovery(self, report: ErrorReport) -> bool:
        """Low/medium severity and network errors are retried."""
        return report.recoverable

    def get_retry_state(self, session_id: Optional[str] = None) -> RetryState:
        """Get or lazily create the retry state of a session."""
        key = session_id or DEFAULT_SESSION
        state = self._sessions.get(key)
        if state is None:
            state = RetryState()
            self._sessions[key] = state
            while len(self._sessions) > self.max_sessions:
                evicted, _ = self._sessions.popitem(last=False)
                logger.debug(f"Evicted retry state for session '{evicted}'")
        else:
            self._sessions.move_to_end(key)
        return state

    def tracked_sessions(self) -> int:
        return len(self._sessions)

    async def attempt_recovery(
        self,
        error: BaseException,
        context: Optional[ErrorContext] = None,
        session_id: Optional[str] = None,
        max_retries: int = 3,
        actions: Optional[Mapping[str, RecoveryAction]] = None,
    ) -> RecoveryOutcome:
        """Classify an error and try to recover from it automatically.

        Args:
            error: The failure to recover from
            context: Where it happened
            session_id: Session whose retry budget is used
            max_retries: Maximum attempts for the session
            actions: Executable actions keyed by recovery intent label

        Returns:
            RecoveryOutcome with the (possibly downgraded) report
        """
        report = self.error_handler.handle_error(error, context)
        return await self.recover_report(
            report,
            session_id=session_id or report.context.session_id,
            max_retries=max_retries,
            actions=actions,
        )

    async def recover_report(
        self,
        report: ErrorReport,
        session_id: Optional[str] = None,
        max_retries: int = 3,
        actions: Optional[Mapping[str, RecoveryAction]] = None,
    ) -> RecoveryOutcome:
        """Run the retry loop for an already classified report."""
        if not self.can_attempt_recovery(report):
            return RecoveryOutcome(report, recovered=False, exhausted=False, attempts=0)

        actions = actions or {}
        first_label = report.recovery_intents[0].label if report.recovery_intents else None
        action = actions.get(first_label) if first_label else None
        is_network = report.category is ErrorCategory.NETWORK

        if action is None and not is_network:
            logger.debug(f"No recovery action bound for '{first_label}', skipping retries")
            return RecoveryOutcome(report, recovered=False, exhausted=False, attempts=0)

        state = self.get_retry_state(session_id)
        attempts = 0

        while state.attempts < max_retries:
            state.attempts += 1
            attempts += 1
            delay = self.retry_policy.calculate_delay(state.attempts)
            logger.info(
                f"Recovery attempt {state.attempts}/{max_retries} for "
                f"{report.category.value} in {delay:.2f}s"
            )
            await self._sleep(delay)

            if action is None:
                # Network errors without an action: waiting is the recovery
                return self._recovered(report, attempts)

            try:
                await action()
                return self._recovered(report, attempts)
            except Exception as e:
                logger.warning(f"Recovery attempt {state.attempts} failed: {e}")

        logger.error(f"Recovery exhausted after {state.attempts} attempts")
        return RecoveryOutcome(report, recovered=False, exhausted=True, attempts=attempts)

    @staticmethod
    def _recovered(report: ErrorReport, attempts: int) -> RecoveryOutcome:
        downgraded = report.model_copy(
            update={
                "severity": ErrorSeverity.LOW,
                "user_message": report.user_message + AUTO_RECOVERED_SUFFIX,
            }
        )
        return RecoveryOutcome(downgraded, recovered=True, exhausted=False, attempts=attempts)

    def clear_history(self) -> None:
        """Clear error history and every session's retry counter."""
        self.error_handler.clear_history()
        self._sessions.clear()
