"""Collaborator contracts consumed by the command router.

Concrete implementations live elsewhere (``interactive.output`` and
``commands.tips``); the conversation bridge is supplied by the host.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Protocol

from .base import CommandContext, CommandResult, FlagValue


class OutputType(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"
    WARNING = "warning"


class FeedbackType(str, Enum):
    GUIDANCE = "guidance"
    SUGGESTION = "suggestion"
    WARNING = "warning"
    TIP = "tip"
    CONVERSATION = "conversation"


@dataclass
class OutputContent:
    """Primary output of a command: title, message, details and next steps."""

    type: OutputType
    title: str
    message: str
    details: List[str] = field(default_factory=list)
    next_steps: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class FeedbackContent:
    """Secondary feedback rendered after the primary output."""

    type: FeedbackType
    content: str
    priority: int = 0


@dataclass
class CommandTip:
    """A contextual hint shown after a successful command."""

    title: str
    content: str
    type: str = "info"
    examples: List[str] = field(default_factory=list)
    priority: int = 0


@dataclass
class TransitionResult:
    """Outcome of handing a command result to the conversation subsystem."""

    success: bool
    session_id: Optional[str] = None
    error: Optional[str] = None
    fallback_options: List[str] = field(default_factory=list)


class OutputSink(Protocol):
    """Where the router sends what the user should see."""

    def register_primary_output(self, source: str, content: OutputContent) -> None:
        ...  # pragma: no cover

    def add_secondary_feedback(self, source: str, content: FeedbackContent) -> None:
        ...  # pragma: no cover

    def has_primary_output(self) -> bool:
        ...  # pragma: no cover

    def render(self, target: Any = None) -> None:
        ...  # pragma: no cover

    def clear(self) -> None:
        ...  # pragma: no cover


class ConversationBridge(Protocol):
    """Turns a successful command into a multi-turn conversation."""

    async def handle_command_to_conversation_transition(
        self, result: CommandResult, command_name: str, context: CommandContext
    ) -> TransitionResult:
        ...  # pragma: no cover


class TipProvider(Protocol):
    """Source of completion tips for commands."""

    def get_tips_for_command(
        self,
        command_name: str,
        template_hint: Optional[str],
        flags: Mapping[str, FlagValue],
    ) -> List[CommandTip]:
        ...  # pragma: no cover
