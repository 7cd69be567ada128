"""Built-in commands registered by every router."""

from .base import (
    CommandContext,
    CommandDefinition,
    CommandResult,
    FlagDefinition,
    FlagType,
    ParsedCommand,
)
from .protocols import OutputContent, OutputSink, OutputType
from .registry import CommandRegistry
from .validator import CommandValidator
from ..error_handling.recovery import RecoveryEngine


def create_help_command(registry: CommandRegistry, output: OutputSink) -> CommandDefinition:
    """``/help [command] [subcommand]`` rendered from the registry."""

    async def handle_help(parsed: ParsedCommand, context: CommandContext) -> CommandResult:
        command_name = parsed.arguments[0] if parsed.arguments else None
        subcommand = parsed.arguments[1] if len(parsed.arguments) > 1 else None

        if command_name is None:
            output.register_primary_output(
                "help-command",
                OutputContent(
                    type=OutputType.INFO,
                    title="Command Help",
                    message=registry.get_help(),
                    next_steps=["Use `/help <command>` for detailed help on a command"],
                ),
            )
            return CommandResult.success_result(message="Help displayed")

        command_name = command_name.lstrip("/")
        if not registry.has_command(command_name):
            suggestions = registry.find_similar_commands(command_name)
            next_steps = [f"Did you mean /{name}?" for name in suggestions]
            next_steps.append("Use `/help` to see available commands")
            output.register_primary_output(
                "help-command",
                OutputContent(
                    type=OutputType.ERROR,
                    title="Command Not Found",
                    message=f"Command '{command_name}' is not recognized.",
                    next_steps=next_steps,
                ),
            )
            return CommandResult.error_result(f"Command '{command_name}' not found")

        title = f"Help: /{command_name}" + (f" {subcommand}" if subcommand else "")
        output.register_primary_output(
            "help-command",
            OutputContent(
                type=OutputType.INFO,
                title=title,
                message=registry.get_command_help(command_name, subcommand),
            ),
        )
        return CommandResult.success_result(message="Help displayed")

    return CommandDefinition(
        name="help",
        description="Show help information for commands",
        usage="/help [command] [subcommand]",
        examples=("/help", "/help errors"),
        handler=handle_help,
    )


def create_errors_command(
    recovery: RecoveryEngine, output: OutputSink, validator: CommandValidator
) -> CommandDefinition:
    """``/errors`` shows recent error statistics; ``--clear`` resets them."""

    async def handle_errors(parsed: ParsedCommand, context: CommandContext) -> CommandResult:
        flags = validator.coerce_flags(parsed)
        if flags.get("clear"):
            recovery.clear_history()
            output.register_primary_output(
                "errors-command",
                OutputContent(
                    type=OutputType.SUCCESS,
                    title="Error History Cleared",
                    message="Error history and retry counters were reset.",
                ),
            )
            return CommandResult.success_result(message="Error history cleared")

        limit = max(int(flags.get("limit", 5)), 0)
        stats = recovery.error_handler.get_error_statistics()
        recent = recovery.error_handler.get_history(limit=limit)

        details = [
            f"**{severity}**: {count}"
            for severity, count in sorted(stats["errors_by_severity"].items())
        ]
        details.extend(
            f"`{report.timestamp:%H:%M:%S}` [{report.category.value}] {report.user_message}"
            for report in recent
        )

        output.register_primary_output(
            "errors-command",
            OutputContent(
                type=OutputType.INFO,
                title="Error Statistics",
                message=f"{stats['total_errors']} error(s) recorded.",
                details=details,
                next_steps=["Use `/errors --clear` to reset the history"],
            ),
        )
        return CommandResult.success_result(
            data=stats, message=f"{stats['total_errors']} error(s) recorded"
        )

    return CommandDefinition(
        name="errors",
        description="Show recent command errors",
        usage="/errors [--limit <n>] [--clear]",
        examples=("/errors", "/errors --limit 10", "/errors --clear"),
        flags=(
            FlagDefinition(
                name="limit",
                short_name="n",
                description="Number of recent errors to list",
                type=FlagType.NUMBER,
                default_value=5,
            ),
            FlagDefinition(
                name="clear",
                short_name="c",
                description="Clear error history and retry counters",
                type=FlagType.BOOLEAN,
            ),
        ),
        handler=handle_errors,
    )
