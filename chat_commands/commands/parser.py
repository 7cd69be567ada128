"""Slash-command parsing: text to :class:`ParsedCommand`."""

import logging
import re
from typing import Callable, Dict, List, Optional, Tuple, TYPE_CHECKING

from .base import BoolVal, FlagValue, ParsedCommand, StringVal
from .tokenizer import tokenize
from ..exceptions import CommandSyntaxError

if TYPE_CHECKING:
    from .registry import CommandRegistry


logger = logging.getLogger(__name__)

MENTION_PREFIX = re.compile(r"^@\w+\s+/")


class CommandParser:
    """Purely syntactic parser for slash commands.

    The registry is consulted only to recognise declared subcommands; flag
    types and required flags are left to the validator.
    """

    def __init__(self, registry: Optional["CommandRegistry"] = None):
        """Initialize the parser.

        Args:
            registry: Registry used for subcommand lookup; without one every
                command is treated as schema-free
        """
        self.registry = registry

    def parse(self, user_input: str) -> ParsedCommand:
        """Parse slash-command text into a structured command.

        Args:
            user_input: Raw user input

        Returns:
            ParsedCommand with command, optional subcommand, arguments and flags

        Raises:
            CommandSyntaxError: If the input does not start with ``/`` or
                contains nothing after it
        """
        trimmed = user_input.strip()

        if not trimmed.startswith("/"):
            raise CommandSyntaxError(
                "Commands must start with a forward slash (/)",
                hint="Try /help to see available commands",
            )

        tokens = tokenize(trimmed)
        if not tokens:
            raise CommandSyntaxError("Empty command", hint="Type a command name after '/'")

        command = tokens[0]
        subcommand = None
        argument_start = 1

        definition = self.registry.get_command(command) if self.registry is not None else None
        if definition is not None and definition.subcommands and len(tokens) > 1:
            if definition.get_subcommand(tokens[1]) is not None:
                subcommand = tokens[1]
                argument_start = 2

        flags, arguments = self.parse_flags(tokens[argument_start:])

        parsed = ParsedCommand(
            command=command,
            subcommand=subcommand,
            arguments=arguments,
            flags=flags,
            raw_input=trimmed,
        )
        logger.debug(f"Parsed '{trimmed}' -> {parsed}")
        return parsed

    @staticmethod
    def parse_flags(tokens: List[str]) -> Tuple[Dict[str, FlagValue], List[str]]:
        """Split tokens into flags and positional arguments.

        ``--name`` takes the following token as its value unless that token
        is missing or starts with ``-``. In a short group such as ``-ab``
        every character but the last is a boolean; the last one may consume
        the following token the same way. This greedy behaviour means
        ``-v file.md`` binds ``file.md`` to ``v`` even when ``v`` is declared
        boolean; the validator then reports the type mismatch.

        Args:
            tokens: Tokens following the command (and subcommand)

        Returns:
            Tuple of (flags, arguments)
        """
        flags: Dict[str, FlagValue] = {}
        arguments: List[str] = []

        i = 0
        while i < len(tokens):
            token = tokens[i]
            next_token = tokens[i + 1] if i + 1 < len(tokens) else None
            takes_value = next_token is not None and not next_token.startswith("-")

            if token.startswith("--"):
                name = token[2:]
                if takes_value:
                    flags[name] = StringVal(next_token)
                    i += 1
                else:
                    flags[name] = BoolVal(True)
            elif token.startswith("-") and len(token) > 1:
                group = token[1:]
                for char in group[:-1]:
                    flags[char] = BoolVal(True)
                last = group[-1]
                if takes_value:
                    flags[last] = StringVal(next_token)
                    i += 1
                else:
                    flags[last] = BoolVal(True)
            else:
                arguments.append(token)
            i += 1

        return flags, arguments


def is_command(user_input: str) -> bool:
    """Check whether input looks like a slash command.

    ``//`` is treated as a comment and a lone ``/`` is not a command.
    """
    trimmed = user_input.strip()
    if not trimmed.startswith("/") or trimmed.startswith("//"):
        return False
    return bool(trimmed[1:].strip())


def derive_command_input(
    prompt: str,
    request_command: Optional[str],
    is_known_command: Callable[[str], bool],
) -> str:
    """Rebuild slash-command text when the host passes the command separately.

    Some chat hosts deliver ``/new`` as a separate command field with only
    the arguments in the prompt.

    Args:
        prompt: Text the user typed
        request_command: Command name supplied by the host, with or without slash
        is_known_command: Predicate receiving the candidate ``/name``

    Returns:
        Slash-command text to route, or the trimmed prompt unchanged
    """
    trimmed_prompt = prompt.strip()

    if trimmed_prompt.startswith("/") or MENTION_PREFIX.match(trimmed_prompt):
        return trimmed_prompt

    raw_command = (request_command or "").strip()
    normalized = raw_command[1:] if raw_command.startswith("/") else raw_command
    if not normalized:
        return trimmed_prompt

    candidate = f"/{normalized}"
    if not is_known_command(candidate):
        return trimmed_prompt

    return f"{candidate} {trimmed_prompt}".strip()
