"""Command line entry point for the slash-command interpreter."""

import asyncio
import logging
from typing import Optional

import click
from rich.console import Console

from .commands.base import CommandContext
from .commands.router import CommandRouter
from .config import AppConfig, load_config
from .error_handling.handler import ErrorHandler
from .error_handling.recovery import RecoveryEngine, RetryPolicy
from .interactive.output import OutputCoordinator
from .interactive.session import InteractiveSession
from .logging_utils import setup_logging


logger = logging.getLogger(__name__)


class CLIContext:
    """Context object shared by CLI subcommands."""

    def __init__(self, config: AppConfig, router: CommandRouter):
        self.config = config
        self.router = router


def async_command(f):
    """Decorator to run async commands in the event loop."""

    def wrapper(*args, **kwargs):
        return asyncio.run(f(*args, **kwargs))

    wrapper.__name__ = f.__name__
    wrapper.__doc__ = f.__doc__
    return wrapper


def build_router(config: AppConfig, console: Optional[Console] = None) -> CommandRouter:
    """Wire a router and its collaborators from configuration."""
    error_handler = ErrorHandler(history_size=config.router.history_size)
    recovery_engine = RecoveryEngine(
        error_handler,
        RetryPolicy(base_delay=config.recovery.base_delay),
        max_sessions=config.recovery.max_sessions,
    )
    output = OutputCoordinator(console=console, use_colors=config.ui.use_colors)
    return CommandRouter(
        output=output,
        error_handler=error_handler,
        recovery_engine=recovery_engine,
        max_tips=config.router.max_tips,
    )


@click.group()
@click.option(
    "--config", "-c", type=click.Path(exists=True), help="Path to configuration file"
)
@click.option(
    "--log-level",
    "-l",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Set the logging level (overrides configuration)",
)
@click.option("--no-color", is_flag=True, help="Disable colored output")
@click.pass_context
def cli(ctx, config, log_level, no_color):
    """Slash-command interpreter CLI"""
    try:
        app_config = load_config(config)
    except Exception as e:
        raise click.ClickException(f"Failed to load configuration: {e}")

    setup_logging(log_level or app_config.log_level)

    if no_color:
        app_config.ui.use_colors = False

    ctx.obj = CLIContext(app_config, build_router(app_config))


@cli.command()
@click.argument("command_line")
@click.option("--session", "-s", "session_id", default=None, help="Session identifier")
@click.pass_context
def run(ctx, command_line, session_id):
    """Run a single slash command, e.g. run "/help errors"."""
    router = ctx.obj.router
    result = asyncio.run(router.route(command_line, CommandContext(session_id=session_id)))
    logger.debug(f"Command finished with success={result.success}")
    if not result.success:
        ctx.exit(1)


@cli.command()
@click.argument("initial_command", required=False)
@click.pass_context
@async_command
async def interactive(ctx, initial_command):
    """Start an interactive session (type 'exit' or 'quit' to leave)."""
    click.echo("Slash-command interpreter. Type /help for commands, 'exit' to quit.")
    session = InteractiveSession(ctx.obj.router)
    await session.run(initial_command)


@cli.command(name="commands")
@click.pass_context
def list_commands(ctx):
    """List registered commands."""
    for definition in ctx.obj.router.registry.list_commands():
        click.echo(f"/{definition.name:<12} {definition.description}")


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
