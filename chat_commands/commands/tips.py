"""Completion tips shown after successful commands."""

import logging
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .base import FlagValue
from .protocols import CommandTip


logger = logging.getLogger(__name__)

GENERAL_TIPS = (
    CommandTip(
        title="Available Commands",
        content="Use `/help` to list every command and `/help <command>` for details.",
        examples=["/help", "/help errors"],
        priority=1,
    ),
)


class CommandTipProvider:
    """Catalogue of tips keyed by command name and template id.

    Commands without their own tips get the general tips.
    """

    def __init__(
        self,
        general_tips: Sequence[CommandTip] = GENERAL_TIPS,
    ):
        self.general_tips: List[CommandTip] = list(general_tips)
        self._command_tips: Dict[str, List[CommandTip]] = {}
        self._template_tips: Dict[str, List[CommandTip]] = {}

    def register_tips(self, command_name: str, tips: Iterable[CommandTip]) -> None:
        """Add tips for a command."""
        self._command_tips.setdefault(command_name, []).extend(tips)

    def register_template_tips(self, template_id: str, tips: Iterable[CommandTip]) -> None:
        """Add tips shown when a command is run with ``--template <id>``."""
        self._template_tips.setdefault(template_id, []).extend(tips)

    def get_tips_for_command(
        self,
        command_name: str,
        template_hint: Optional[str] = None,
        flags: Optional[Mapping[str, FlagValue]] = None,
    ) -> List[CommandTip]:
        """Tips for a command, its template hint, or the general ones."""
        tips = list(self._command_tips.get(command_name, []))
        if template_hint:
            tips.extend(self._template_tips.get(template_hint, []))
        if not tips:
            tips = list(self.general_tips)
        logger.debug(f"{len(tips)} tips for '{command_name}'")
        return tips


def prioritize_tips(tips: Iterable[CommandTip], limit: Optional[int] = None) -> List[CommandTip]:
    """Deduplicate tips and order them by descending priority.

    Tips are duplicates when title and content match. Among equal priorities
    the original order is kept.
    """
    seen: set = set()
    unique: List[Tuple[int, CommandTip]] = []
    for index, tip in enumerate(tips):
        key = (tip.title, tip.content)
        if key in seen:
            continue
        seen.add(key)
        unique.append((index, tip))

    unique.sort(key=lambda pair: (-pair[1].priority, pair[0]))
    ordered = [tip for _, tip in unique]
    return ordered[:limit] if limit is not None else ordered


def format_tips(tips: Sequence[CommandTip]) -> str:
    """Markdown bullet list for a tips feedback block."""
    lines = []
    for tip in tips:
        lines.append(f"- **{tip.title}:** {tip.content}")
        for example in tip.examples:
            lines.append(f"  - `{example}`")
    return "\n".join(lines)
