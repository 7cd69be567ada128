"""Command registry for managing available commands."""

import logging
from typing import Dict, List, Optional

from .base import CommandDefinition, FlagDefinition


class CommandRegistry:
    """Name-indexed store of command definitions.

    Registering a name that already exists replaces the previous definition
    in place, so a static command can be swapped for a richer one at startup.
    """

    def __init__(self):
        self._commands: Dict[str, CommandDefinition] = {}
        self.logger = logging.getLogger(__name__)

    def register(self, definition: CommandDefinition) -> "CommandRegistry":
        """Register or replace a command definition.

        Args:
            definition: Command definition to store under its name

        Returns:
            Self for method chaining
        """
        if definition.name in self._commands:
            self.logger.debug(f"Replacing command '{definition.name}'")
        else:
            self.logger.debug(f"Registered command '{definition.name}'")
        self._commands[definition.name] = definition
        return self

    def unregister(self, command_name: str) -> bool:
        """Unregister a command.

        Args:
            command_name: Name of command to unregister

        Returns:
            True if command was unregistered, False if not found
        """
        if command_name not in self._commands:
            return False
        del self._commands[command_name]
        self.logger.debug(f"Unregistered command '{command_name}'")
        return True

    def get_command(self, name: str) -> Optional[CommandDefinition]:
        """Get a command definition by exact name."""
        return self._commands.get(name)

    def has_command(self, name: str) -> bool:
        """Check if a command is registered under ``name``."""
        return name in self._commands

    def list_commands(self) -> List[CommandDefinition]:
        """All definitions in registration order.

        A replaced definition keeps the slot of the one it replaced.
        """
        return list(self._commands.values())

    def list_command_names(self) -> List[str]:
        """All command names in registration order."""
        return list(self._commands.keys())

    def find_similar_commands(self, name: str, max_suggestions: int = 3) -> List[str]:
        """Find commands with similar names for suggestions.

        Args:
            name: Command name to find similar matches for
            max_suggestions: Maximum number of suggestions to return

        Returns:
            List of similar command names
        """
        name_lower = name.lower()
        if not name_lower:
            return []
        all_names = self.list_command_names()

        starting = [cmd for cmd in all_names if cmd.lower().startswith(name_lower)]
        containing = [cmd for cmd in all_names if name_lower in cmd.lower()]
        contained = [cmd for cmd in all_names if cmd.lower() in name_lower]

        suggestions = list(dict.fromkeys(starting + containing + contained))
        return suggestions[:max_suggestions]

    def get_command_help(self, command_name: str, subcommand: Optional[str] = None) -> str:
        """Render markdown help for one command or one of its subcommands."""
        definition = self._commands.get(command_name)
        if definition is None:
            return f"Unknown command: {command_name}"

        help_text = f"**{command_name}** - {definition.description}\n\n"
        help_text += f"**Usage:** {definition.usage}\n\n"

        subcommand_def = definition.get_subcommand(subcommand)
        if subcommand_def is not None:
            help_text += f"**Subcommand:** {subcommand} - {subcommand_def.description}\n"
            help_text += f"**Usage:** {subcommand_def.usage}\n\n"

        flags = definition.applicable_flags(subcommand)
        if flags:
            help_text += "**Flags:**\n"
            for flag in flags:
                help_text += f"- {self._format_flag(flag)}\n"
            help_text += "\n"

        if subcommand is None and definition.subcommands:
            help_text += "**Subcommands:**\n"
            for sc in definition.subcommands:
                help_text += f"- **{sc.name}**: {sc.description}\n"
            help_text += "\n"

        if subcommand is not None and definition.subcommands:
            examples = subcommand_def.examples if subcommand_def else ()
        else:
            examples = definition.examples

        if examples:
            help_text += "**Examples:**\n"
            for example in examples:
                help_text += f"- {example}\n"

        return help_text

    def get_help(self) -> str:
        """Render the overview of all registered commands."""
        help_text = "# Available Commands\n\n"

        for definition in self._commands.values():
            help_text += f"## /{definition.name}\n"
            help_text += f"{definition.description}\n\n"
            help_text += f"**Usage:** {definition.usage}\n\n"

            if definition.subcommands:
                help_text += "**Subcommands:**\n"
                for sc in definition.subcommands:
                    help_text += f"- **{sc.name}**: {sc.description}\n"
                help_text += "\n"

            if definition.examples:
                help_text += "**Examples:**\n"
                for example in definition.examples:
                    help_text += f"- {example}\n"
                help_text += "\n"

            help_text += "---\n\n"

        return help_text

    @staticmethod
    def _format_flag(flag: FlagDefinition) -> str:
        short_name = f", -{flag.short_name}" if flag.short_name else ""
        required = " (required)" if flag.required else ""
        default = (
            f" [default: {flag.default_value}]" if flag.default_value is not None else ""
        )
        return (
            f"--{flag.name}{short_name} ({flag.type.value}){required}: "
            f"{flag.description}{default}"
        )

    def clear(self) -> None:
        """Clear all registered commands."""
        self._commands.clear()
        self.logger.debug("Cleared all registered commands")

    def __len__(self) -> int:
        """Return number of registered commands."""
        return len(self._commands)

    def __contains__(self, name: str) -> bool:
        """Check if command exists (supports 'in' operator)."""
        return self.has_command(name)

    def __repr__(self) -> str:
        return f"CommandRegistry(commands={len(self._commands)})"
