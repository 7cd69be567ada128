"""Interactive read-eval-print loop over a command router."""

import logging
import os
import uuid
from typing import Callable, Optional, TYPE_CHECKING

import click

from ..commands.base import CommandContext, CommandResult

if TYPE_CHECKING:
    from ..commands.router import CommandRouter


logger = logging.getLogger(__name__)

EXIT_COMMANDS = ("exit", "quit", "bye")
HELP_ALIASES = ("help", "?")


class InteractiveSession:
    """Interactive session feeding each line to the router."""

    def __init__(
        self,
        router: "CommandRouter",
        session_id: Optional[str] = None,
        workspace_root: Optional[str] = None,
        prompt: str = "chat> ",
        input_func: Callable[[str], str] = input,
    ):
        self.router = router
        self.session_id = session_id or uuid.uuid4().hex[:8]
        self.workspace_root = workspace_root or os.getcwd()
        self.prompt = prompt
        self._input = input_func
        self.commands_run = 0
        self.failures = 0

    def _context(self) -> CommandContext:
        return CommandContext(session_id=self.session_id, workspace_root=self.workspace_root)

    async def run(self, initial_command: Optional[str] = None) -> None:
        """Run the interactive session until exit or end of input."""
        if initial_command:
            await self.process_command(initial_command)

        while True:
            try:
                user_input = self._input(self.prompt)

                if not user_input.strip():
                    continue

                should_exit = await self.process_command(user_input.strip())
                if should_exit:
                    break

            except KeyboardInterrupt:
                click.echo("\nUse 'exit' to quit.")
            except EOFError:
                click.echo()
                break

        logger.info(
            f"Session {self.session_id} ended after {self.commands_run} commands "
            f"({self.failures} failed)"
        )
        click.echo("\nGoodbye!")

    async def process_command(self, command: str) -> bool:
        """Process a single line. Returns True if the session should end."""
        lowered = command.lower()
        if lowered in EXIT_COMMANDS:
            return True

        if lowered in HELP_ALIASES:
            command = "/help"

        result = await self.dispatch(command)
        if not result.success:
            self.failures += 1
        return False

    async def dispatch(self, command: str) -> CommandResult:
        self.commands_run += 1
        return await self.router.route(command, self._context())
