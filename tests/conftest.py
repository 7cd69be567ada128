"""Pytest configuration and shared fixtures."""

import io
import logging
import os

import pytest
from rich.console import Console

from chat_commands.commands.base import (
    CommandContext,
    CommandDefinition,
    CommandResult,
    FlagDefinition,
    FlagType,
    SubcommandDefinition,
)
from chat_commands.commands.registry import CommandRegistry

# Disable logging during tests to reduce noise
logging.disable(logging.CRITICAL)


@pytest.fixture(autouse=True)
def clean_env():
    """Clean environment variables before each test."""
    env_vars_to_clean = [
        "CHAT_COMMANDS_HISTORY_SIZE",
        "CHAT_COMMANDS_MAX_TIPS",
        "CHAT_COMMANDS_MAX_RETRIES",
        "CHAT_COMMANDS_BASE_DELAY",
        "CHAT_COMMANDS_MAX_SESSIONS",
        "CHAT_COMMANDS_USE_COLORS",
        "LOG_LEVEL",
    ]

    # Store original values
    original_values = {}
    for var in env_vars_to_clean:
        original_values[var] = os.environ.get(var)
        if var in os.environ:
            del os.environ[var]

    yield

    # Restore original values
    for var, value in original_values.items():
        if value is not None:
            os.environ[var] = value
        elif var in os.environ:
            del os.environ[var]


async def echo_handler(parsed, context):
    """Handler returning the parsed pieces it received."""
    return CommandResult.success_result(
        data={"arguments": parsed.arguments, "flags": dict(parsed.flags)},
        message=f"Ran /{parsed.command}",
    )


@pytest.fixture
def agent_command():
    """A command with subcommands, mirroring a typical agent manager."""
    return CommandDefinition(
        name="agent",
        description="Manage agents",
        usage="/agent <list|set> [name]",
        examples=("/agent list",),
        subcommands=(
            SubcommandDefinition(
                name="list",
                description="List agents",
                usage="/agent list",
                examples=("/agent list --verbose",),
                flags=(FlagDefinition(name="verbose", short_name="v", type=FlagType.BOOLEAN),),
            ),
            SubcommandDefinition(name="set", description="Select an agent", usage="/agent set <name>"),
        ),
        handler=echo_handler,
    )


@pytest.fixture
def new_command():
    """A command with typed and required flags."""
    return CommandDefinition(
        name="new",
        description="Create a document",
        usage="/new <title> --template <id> [--count <n>]",
        examples=('/new "My Doc" --template basic',),
        flags=(
            FlagDefinition(name="template", short_name="t", description="Template id", required=True),
            FlagDefinition(name="file", short_name="f", description="Output file", required=True),
            FlagDefinition(name="count", short_name="n", type=FlagType.NUMBER, default_value=1),
            FlagDefinition(name="force", type=FlagType.BOOLEAN),
        ),
        handler=echo_handler,
    )


@pytest.fixture
def registry(agent_command, new_command):
    """Registry with the sample commands registered."""
    return CommandRegistry().register(agent_command).register(new_command)


@pytest.fixture
def console_buffer():
    """Console writing into a string buffer."""
    buffer = io.StringIO()
    return Console(file=buffer, no_color=True, width=100), buffer


@pytest.fixture
def context():
    """Command context for the test session."""
    return CommandContext(session_id="test-session", workspace_root="/tmp/workspace")
