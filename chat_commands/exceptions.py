"""Exception hierarchy for the slash-command pipeline.

Syntax, validation and not-found errors are resolved at the dispatch
boundary and turned into failed results. Anything raised by a handler is
classified by message; a :class:`HandlerError` hint is shown to the user as
the first next step.
"""

from typing import List, Optional, Sequence


class CommandError(Exception):
    """Base exception for all command pipeline errors."""

    def __init__(self, message: str, *, hint: Optional[str] = None):
        super().__init__(message)
        self.hint = hint


class CommandSyntaxError(CommandError):
    """Raised when input is not a well-formed slash command."""


class CommandValidationError(CommandError):
    """Raised when a parsed command does not match its schema."""

    def __init__(self, errors: Sequence[str], *, hint: Optional[str] = None):
        self.errors: List[str] = list(errors)
        super().__init__(
            f"Command validation failed: {', '.join(self.errors)}", hint=hint
        )


class CommandNotFoundError(CommandError):
    """Raised when no definition is registered under a command name."""

    def __init__(self, command_name: str, suggestions: Optional[Sequence[str]] = None):
        self.command_name = command_name
        self.suggestions: List[str] = list(suggestions or [])
        hint = None
        if self.suggestions:
            hint = "Did you mean: " + ", ".join(f"/{s}" for s in self.suggestions)
        super().__init__(f"Command '{command_name}' not found", hint=hint)


class HandlerError(CommandError):
    """Raised by command handlers for expected execution failures.

    The message is classified like any other handler exception; ``hint``
    tells the user what to do about it.
    """
