"""Command schema types, parsed command and result data structures."""

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, Union


class FlagType(str, Enum):
    """Declared value type of a flag."""

    STRING = "string"
    BOOLEAN = "boolean"
    NUMBER = "number"


@dataclass(frozen=True)
class StringVal:
    """Flag value carrying text."""

    value: str

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class BoolVal:
    """Flag value for presence-only flags."""

    value: bool = True

    def __str__(self) -> str:
        return "true" if self.value else "false"


@dataclass(frozen=True)
class NumberVal:
    """Flag value carrying a number."""

    value: float

    def __str__(self) -> str:
        if self.value == int(self.value):
            return str(int(self.value))
        return str(self.value)


FlagValue = Union[StringVal, BoolVal, NumberVal]


def to_native(value: FlagValue) -> Union[str, bool, float]:
    """Unwrap a tagged flag value into a plain Python value."""
    if isinstance(value, (StringVal, BoolVal, NumberVal)):
        return value.value
    raise TypeError(f"Unsupported flag value: {value!r}")


def flag_value(value: Union[str, bool, int, float, FlagValue]) -> FlagValue:
    """Wrap a plain Python value in the matching tagged flag value."""
    if isinstance(value, (StringVal, BoolVal, NumberVal)):
        return value
    # bool before number, bool is an int subclass
    if isinstance(value, bool):
        return BoolVal(value)
    if isinstance(value, (int, float)):
        return NumberVal(float(value))
    if isinstance(value, str):
        return StringVal(value)
    raise TypeError(f"Cannot convert {type(value).__name__} to a flag value")


@dataclass(frozen=True)
class FlagDefinition:
    """Declarative description of a long/short flag."""

    name: str
    description: str = ""
    type: FlagType = FlagType.STRING
    short_name: Optional[str] = None
    required: bool = False
    default_value: Any = None

    def __post_init__(self):
        object.__setattr__(self, "type", FlagType(self.type))

    def matches(self, key: str) -> bool:
        """Check whether a parsed flag key refers to this flag."""
        return key == self.name or (
            self.short_name is not None and key == self.short_name
        )


@dataclass(frozen=True)
class SubcommandDefinition:
    """Declarative description of a subcommand."""

    name: str
    description: str
    usage: str = ""
    examples: Tuple[str, ...] = ()
    flags: Tuple[FlagDefinition, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "examples", tuple(self.examples))
        object.__setattr__(self, "flags", tuple(self.flags))


@dataclass
class ParsedCommand:
    """Structured result of parsing slash-command text."""

    command: str
    subcommand: Optional[str] = None
    arguments: List[str] = field(default_factory=list)
    flags: Dict[str, FlagValue] = field(default_factory=dict)
    raw_input: str = ""

    def get_flag(self, *keys: str, default: Any = None) -> Any:
        """Return the native value of the first present flag among ``keys``."""
        for key in keys:
            if key in self.flags:
                return to_native(self.flags[key])
        return default

    def has_flag(self, *keys: str) -> bool:
        """Check whether any of ``keys`` was supplied."""
        return any(key in self.flags for key in keys)


@dataclass
class CommandContext:
    """Per-invocation context threaded through handlers and collaborators."""

    session_id: Optional[str] = None
    workspace_root: Optional[str] = None
    target: Any = None
    cancel_event: asyncio.Event = field(default_factory=asyncio.Event)
    extras: Dict[str, Any] = field(default_factory=dict)

    @property
    def cancelled(self) -> bool:
        """True once cancellation was requested by the host."""
        return self.cancel_event.is_set()


@dataclass
class ConversationConfig:
    """Description of a follow-up conversation a command wants to start."""

    agent_name: str
    title: str = ""
    template_id: Optional[str] = None
    document_path: Optional[str] = None


@dataclass
class CommandResult:
    """Result of command execution."""

    success: bool
    message: str = ""
    data: Any = None
    error: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    conversation_config: Optional[ConversationConfig] = None
    should_continue_conversation: Optional[bool] = None

    @classmethod
    def success_result(cls, data: Any = None, message: str = "") -> "CommandResult":
        """Create a successful result."""
        return cls(success=True, data=data, message=message)

    @classmethod
    def error_result(cls, error: str, data: Any = None) -> "CommandResult":
        """Create an error result."""
        return cls(success=False, error=error, data=data)

    def with_metadata(self, **metadata) -> "CommandResult":
        """Add metadata to the result."""
        self.metadata.update(metadata)
        return self

    def wants_conversation(self) -> bool:
        """Whether this result asks for a follow-up conversation."""
        if self.should_continue_conversation is False:
            return False
        return bool(self.should_continue_conversation or self.conversation_config)


CommandHandler = Callable[[ParsedCommand, CommandContext], Awaitable[CommandResult]]


@dataclass(frozen=True)
class CommandDefinition:
    """Declarative command schema plus its async handler."""

    name: str
    description: str
    usage: str
    handler: CommandHandler
    examples: Tuple[str, ...] = ()
    subcommands: Tuple[SubcommandDefinition, ...] = ()
    flags: Tuple[FlagDefinition, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "examples", tuple(self.examples))
        object.__setattr__(self, "subcommands", tuple(self.subcommands))
        object.__setattr__(self, "flags", tuple(self.flags))

    def get_subcommand(self, name: Optional[str]) -> Optional[SubcommandDefinition]:
        """Look up a declared subcommand by exact name."""
        if name is None:
            return None
        for subcommand in self.subcommands:
            if subcommand.name == name:
                return subcommand
        return None

    def applicable_flags(self, subcommand: Optional[str] = None) -> List[FlagDefinition]:
        """Command-level flags followed by the resolved subcommand's flags."""
        flags = list(self.flags)
        subcommand_def = self.get_subcommand(subcommand)
        if subcommand_def is not None:
            flags.extend(subcommand_def.flags)
        return flags

    def __repr__(self) -> str:
        return f"CommandDefinition(name='{self.name}', subcommands={len(self.subcommands)})"
