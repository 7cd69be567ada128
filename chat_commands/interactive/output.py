"""Output coordination: collects one command's output and renders it once."""

import difflib
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from rich.console import Console, Group
from rich.markdown import Markdown
from rich.panel import Panel
from rich.text import Text

from ..commands.protocols import FeedbackContent, FeedbackType, OutputContent, OutputType


logger = logging.getLogger(__name__)

DUPLICATE_SIMILARITY = 0.8

OUTPUT_STYLES = {
    OutputType.SUCCESS: ("green", "✅"),
    OutputType.ERROR: ("red", "❌"),
    OutputType.INFO: ("blue", "ℹ️"),
    OutputType.WARNING: ("yellow", "⚠️"),
}

FEEDBACK_STYLES = {
    FeedbackType.WARNING: "yellow",
    FeedbackType.GUIDANCE: "cyan",
    FeedbackType.SUGGESTION: "cyan",
    FeedbackType.TIP: "magenta",
    FeedbackType.CONVERSATION: "green",
}


@dataclass
class OutputState:
    """Everything registered for the command currently being dispatched."""

    primary_source: Optional[str] = None
    primary_output: Optional[OutputContent] = None
    secondary_feedback: Dict[str, FeedbackContent] = field(default_factory=dict)
    duplicates_suppressed: List[str] = field(default_factory=list)
    rendered: bool = False


def _normalize(text: str) -> str:
    return re.sub(r"\s+", " ", text.lower()).strip()


def is_duplicate_content(existing: str, new_content: str) -> bool:
    """Exact or near-identical text (similarity above 0.8)."""
    existing_norm = _normalize(existing)
    new_norm = _normalize(new_content)
    if existing_norm == new_norm:
        return True
    ratio = difflib.SequenceMatcher(None, existing_norm, new_norm).ratio()
    return ratio > DUPLICATE_SIMILARITY


class OutputCoordinator:
    """Default output sink rendering with rich panels.

    Holds a single primary output plus secondary feedback keyed by source.
    ``render`` paints everything once; later calls are ignored until
    ``clear`` starts the next command.
    """

    def __init__(self, console: Optional[Console] = None, use_colors: bool = True):
        """Initialize the coordinator.

        Args:
            console: Console used when ``render`` gets no target
            use_colors: Disable to render plain text
        """
        self.console = console or Console(no_color=not use_colors, highlight=False)
        self.state = OutputState()

    def register_primary_output(self, source: str, content: OutputContent) -> None:
        """Register the primary output, replacing any earlier one."""
        if self.state.primary_output is not None:
            logger.warning(
                f"Primary output already registered by '{self.state.primary_source}', "
                f"replacing with '{source}'"
            )
        self.state.primary_source = source
        self.state.primary_output = content

    def has_primary_output(self) -> bool:
        return self.state.primary_output is not None

    def add_secondary_feedback(self, source: str, content: FeedbackContent) -> None:
        """Add secondary feedback unless a near-duplicate is already queued."""
        for existing in self.state.secondary_feedback.values():
            if is_duplicate_content(existing.content, content.content):
                self.state.duplicates_suppressed.append(f"{source}: {content.type.value}")
                logger.info(f"Suppressed duplicate feedback from '{source}'")
                return
        self.state.secondary_feedback[source] = content

    def get_feedback(self) -> List[FeedbackContent]:
        """Secondary feedback, highest priority first (stable for ties)."""
        return sorted(
            self.state.secondary_feedback.values(), key=lambda f: f.priority, reverse=True
        )

    def render(self, target: Any = None) -> None:
        """Render the collected output once.

        Args:
            target: A rich Console, a writable text stream, or None for the
                coordinator's own console
        """
        if self.state.rendered:
            logger.warning("Output already rendered, skipping")
            return

        console = self._resolve_console(target)
        if self.state.primary_output is not None:
            console.print(self._primary_panel(self.state.primary_output))
        for feedback in self.get_feedback():
            console.print(self._feedback_panel(feedback))

        if self.state.duplicates_suppressed:
            logger.debug(f"Duplicates suppressed: {self.state.duplicates_suppressed}")
        self.state.rendered = True

    def clear(self) -> None:
        """Reset all state for the next command."""
        self.state = OutputState()

    def _resolve_console(self, target: Any) -> Console:
        if target is None:
            return self.console
        if isinstance(target, Console):
            return target
        return Console(file=target, no_color=self.console.no_color, highlight=False)

    @staticmethod
    def _primary_panel(content: OutputContent) -> Panel:
        color, icon = OUTPUT_STYLES[content.type]
        parts: List[Any] = [Markdown(content.message)]
        if content.details:
            parts.append(Markdown("\n".join(f"- {detail}" for detail in content.details)))
        if content.next_steps:
            parts.append(Text("Next steps:", style="bold"))
            parts.append(Markdown("\n".join(f"- {step}" for step in content.next_steps)))
        return Panel(
            Group(*parts),
            title=f"{icon} {content.title}",
            title_align="left",
            border_style=color,
        )

    @staticmethod
    def _feedback_panel(feedback: FeedbackContent) -> Panel:
        return Panel(
            Markdown(feedback.content),
            title=feedback.type.value.capitalize(),
            title_align="left",
            border_style=FEEDBACK_STYLES.get(feedback.type, "white"),
        )
