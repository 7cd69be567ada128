"""Command system for slash-command input.

- Tokenizer and CommandParser: text to ParsedCommand
- CommandRegistry: registration, lookup and help text
- CommandValidator: schema checks against registered definitions
- CommandRouter: parse, validate, execute and post-process
- CommandTipProvider: completion tips after successful commands
"""

from .base import (
    BoolVal,
    CommandContext,
    CommandDefinition,
    CommandResult,
    ConversationConfig,
    FlagDefinition,
    FlagType,
    FlagValue,
    NumberVal,
    ParsedCommand,
    StringVal,
    SubcommandDefinition,
)
from .parser import CommandParser, derive_command_input, is_command
from .registry import CommandRegistry
from .router import CommandRouter, DispatchState
from .tips import CommandTipProvider
from .tokenizer import tokenize
from .validator import CommandValidator, ValidationResult

__all__ = [
    'BoolVal',
    'CommandContext',
    'CommandDefinition',
    'CommandParser',
    'CommandRegistry',
    'CommandResult',
    'CommandRouter',
    'CommandTipProvider',
    'CommandValidator',
    'ConversationConfig',
    'DispatchState',
    'FlagDefinition',
    'FlagType',
    'FlagValue',
    'NumberVal',
    'ParsedCommand',
    'StringVal',
    'SubcommandDefinition',
    'ValidationResult',
    'derive_command_input',
    'is_command',
    'tokenize',
]
