"""Command router: parse, validate, execute and post-process slash commands."""

import logging
from enum import Enum
from typing import Any, List, Optional

from .base import CommandContext, CommandDefinition, CommandResult, ParsedCommand
from .builtin import create_errors_command, create_help_command
from .parser import CommandParser, is_command
from .protocols import (
    ConversationBridge,
    FeedbackContent,
    FeedbackType,
    OutputContent,
    OutputSink,
    OutputType,
    TipProvider,
)
from .registry import CommandRegistry
from .tips import CommandTipProvider, format_tips, prioritize_tips
from .validator import CommandValidator
from ..error_handling.classifier import GENERIC_RULE, ErrorContext, ErrorSeverity, build_report
from ..error_handling.handler import ErrorHandler
from ..error_handling.recovery import RecoveryEngine
from ..exceptions import (
    CommandError,
    CommandNotFoundError,
    CommandSyntaxError,
    CommandValidationError,
)


class DispatchState(str, Enum):
    IDLE = "idle"
    PARSING = "parsing"
    VALIDATING = "validating"
    EXECUTING = "executing"
    POST_PROCESSING = "post-processing"
    SUCCESS = "success"
    FAILED = "failed"


class CommandRouter:
    """Routes slash-command input to registered handlers.

    Every collaborator is injected; missing ones get a default instance owned
    by this router. Concurrent ``route`` calls on one router are not ordered
    or locked against each other.
    """

    def __init__(
        self,
        registry: Optional[CommandRegistry] = None,
        output: Optional[OutputSink] = None,
        error_handler: Optional[ErrorHandler] = None,
        recovery_engine: Optional[RecoveryEngine] = None,
        tip_provider: Optional[TipProvider] = None,
        bridge: Optional[ConversationBridge] = None,
        max_tips: int = 3,
    ):
        """Initialize the router.

        Args:
            registry: Command registry; built-in commands are added to it
            output: Output sink receiving everything the user should see
            error_handler: Classifies and records handler failures
            recovery_engine: Retry bookkeeping, cleared by ``/errors --clear``
            tip_provider: Source of completion tips
            bridge: Optional conversation subsystem for follow-up chats
            max_tips: Maximum tips shown after a successful command
        """
        self.logger = logging.getLogger(__name__)
        self.registry = registry if registry is not None else CommandRegistry()
        if output is None:
            from ..interactive.output import OutputCoordinator

            output = OutputCoordinator()
        self.output = output
        if error_handler is None:
            error_handler = (
                recovery_engine.error_handler if recovery_engine is not None else ErrorHandler()
            )
        self.error_handler = error_handler
        if recovery_engine is None:
            recovery_engine = RecoveryEngine(error_handler)
        self.recovery_engine = recovery_engine
        self.tip_provider = tip_provider if tip_provider is not None else CommandTipProvider()
        self.bridge = bridge
        self.max_tips = max_tips

        self.parser = CommandParser(self.registry)
        self.validator = CommandValidator(self.registry)
        self.last_state = DispatchState.IDLE

        self._register_builtin_commands()
        self.logger.info(f"Initialized command router with {len(self.registry)} commands")

    def _register_builtin_commands(self) -> None:
        self.registry.register(create_help_command(self.registry, self.output))
        self.registry.register(
            create_errors_command(self.recovery_engine, self.output, self.validator)
        )

    def register_command(self, definition: CommandDefinition) -> None:
        """Register a command, replacing any existing one with the same name."""
        self.registry.register(definition)

    def set_conversation_bridge(self, bridge: Optional[ConversationBridge]) -> None:
        self.bridge = bridge

    def is_command(self, user_input: str) -> bool:
        return is_command(user_input)

    def get_help(self, command_name: Optional[str] = None) -> str:
        """Overview of all commands, or detailed help for one."""
        if command_name:
            return self.registry.get_command_help(command_name)
        return self.registry.get_help()

    def _transition(self, state: DispatchState, command: Optional[str] = None) -> DispatchState:
        self.logger.debug(f"Dispatch {command or '<unparsed>'}: -> {state.value}")
        if state in (DispatchState.SUCCESS, DispatchState.FAILED):
            self.last_state = state
        return state

    async def route(self, user_input: str, context: CommandContext) -> CommandResult:
        """Dispatch one line of slash-command input.

        Args:
            user_input: Raw text typed by the user
            context: Session, workspace and render target for this command

        Returns:
            CommandResult; failures carry an error message and, when an
            exception was classified, severity and recovery metadata
        """
        self.output.clear()
        command_name: Optional[str] = None

        try:
            self._transition(DispatchState.PARSING)
            try:
                parsed = self.parser.parse(user_input)
            except CommandSyntaxError as e:
                return self._syntax_failure(e, context)
            command_name = parsed.command

            self._transition(DispatchState.VALIDATING, command_name)
            if not self.registry.has_command(command_name):
                return self._not_found(
                    CommandNotFoundError(
                        command_name, self.registry.find_similar_commands(command_name)
                    ),
                    context,
                )

            validation = self.validator.validate(parsed)
            if not validation.valid:
                return self._validation_failure(
                    CommandValidationError(validation.errors), parsed, context
                )

            definition = self.registry.get_command(command_name)
            if definition is None:
                # Unregistered between validation and execution
                return self._not_found(CommandNotFoundError(command_name), context)

            self._transition(DispatchState.EXECUTING, command_name)
            result = await definition.handler(parsed, context)

            if not result.success:
                self._handler_failure(result, command_name)
                self.output.render(context.target)
                self._transition(DispatchState.FAILED, command_name)
                return result

            self._transition(DispatchState.POST_PROCESSING, command_name)
            if self.bridge is not None and result.wants_conversation():
                await self._start_conversation(result, command_name, context)
            else:
                self._add_tips(parsed)

            self.output.render(context.target)
            self._transition(DispatchState.SUCCESS, command_name)
            return result

        except Exception as e:
            return self._unexpected_failure(e, user_input, command_name, context)

    def _syntax_failure(self, error: CommandSyntaxError, context: CommandContext) -> CommandResult:
        next_steps = [error.hint] if error.hint else []
        next_steps.append("Use `/help` to see available commands")
        self.output.register_primary_output(
            "command-router",
            OutputContent(
                type=OutputType.ERROR,
                title="Invalid Command Syntax",
                message=str(error),
                next_steps=next_steps,
            ),
        )
        self.output.render(context.target)
        self._transition(DispatchState.FAILED)
        return CommandResult.error_result(str(error))

    def _validation_failure(
        self, error: CommandValidationError, parsed: ParsedCommand, context: CommandContext
    ) -> CommandResult:
        self.output.register_primary_output(
            "command-router",
            OutputContent(
                type=OutputType.ERROR,
                title="Command Validation Failed",
                message=f"The command `/{parsed.command}` has invalid parameters.",
                details=error.errors,
                next_steps=[
                    f"Use `/help {parsed.command}` to see correct usage",
                    "Check the flag names and values",
                ],
            ),
        )
        self.output.render(context.target)
        self._transition(DispatchState.FAILED, parsed.command)
        return CommandResult.error_result(str(error))

    def _not_found(self, error: CommandNotFoundError, context: CommandContext) -> CommandResult:
        next_steps = [f"Did you mean /{name}?" for name in error.suggestions]
        next_steps.append("Use `/help` to see available commands")
        self.output.register_primary_output(
            "command-router",
            OutputContent(
                type=OutputType.ERROR,
                title="Command Not Found",
                message=f"The command `/{error.command_name}` is not recognized.",
                next_steps=next_steps,
            ),
        )
        self.output.render(context.target)
        self._transition(DispatchState.FAILED, error.command_name)
        return CommandResult.error_result(str(error))

    def _handler_failure(self, result: CommandResult, command_name: str) -> None:
        """Register a generic error output unless the handler registered one."""
        if self.output.has_primary_output():
            return
        self.output.register_primary_output(
            "command-router",
            OutputContent(
                type=OutputType.ERROR,
                title="Command Failed",
                message=result.error or f"`/{command_name}` did not complete",
                next_steps=[f"Try '/help {command_name}' for usage"],
            ),
        )

    async def _start_conversation(
        self, result: CommandResult, command_name: str, context: CommandContext
    ) -> None:
        transition = await self.bridge.handle_command_to_conversation_transition(
            result, command_name, context
        )

        if not transition.success:
            if transition.error:
                self.output.add_secondary_feedback(
                    "conversation-transition",
                    FeedbackContent(
                        type=FeedbackType.WARNING,
                        content=f"Could not start conversation: {transition.error}",
                        priority=3,
                    ),
                )
            if transition.fallback_options:
                self.output.add_secondary_feedback(
                    "conversation-fallback",
                    FeedbackContent(
                        type=FeedbackType.GUIDANCE,
                        content="\n".join(f"- {option}" for option in transition.fallback_options),
                        priority=2,
                    ),
                )
        elif transition.session_id:
            self.output.add_secondary_feedback(
                "conversation-started",
                FeedbackContent(
                    type=FeedbackType.CONVERSATION,
                    content=f"Conversation started (session `{transition.session_id}`).",
                    priority=5,
                ),
            )

    def _add_tips(self, parsed: ParsedCommand) -> None:
        template_hint = parsed.get_flag("template", "t")
        tips = self.tip_provider.get_tips_for_command(
            parsed.command,
            str(template_hint) if template_hint is not None else None,
            parsed.flags,
        )
        tips = prioritize_tips(tips, self.max_tips)
        if not tips:
            return
        self.output.add_secondary_feedback(
            "command-tips",
            FeedbackContent(type=FeedbackType.TIP, content=format_tips(tips), priority=1),
        )

    def _unexpected_failure(
        self,
        error: Exception,
        user_input: str,
        command_name: Optional[str],
        context: CommandContext,
    ) -> CommandResult:
        error_context = ErrorContext(
            operation="command-execution",
            command=command_name,
            user_input=user_input,
            session_id=context.session_id,
        )
        try:
            report = self.error_handler.handle_error(error, error_context)
        except Exception as classification_error:
            self.logger.error(f"Failed to classify error: {classification_error}")
            report = build_report(error, error_context, GENERIC_RULE)

        next_steps: List[str] = [intent.description for intent in report.recovery_intents]
        if isinstance(error, CommandError) and error.hint:
            next_steps.insert(0, error.hint)
        next_steps.append(f"Try '/help {command_name}'" if command_name else "Try '/help'")

        title = "Critical Error" if report.severity is ErrorSeverity.CRITICAL else "Command Error"
        self.output.register_primary_output(
            "command-router",
            OutputContent(
                type=OutputType.ERROR,
                title=title,
                message=report.user_message,
                details=[report.technical_message],
                next_steps=next_steps,
            ),
        )
        self._safe_render(context.target)
        self._transition(DispatchState.FAILED, command_name)

        metadata: dict = {
            "severity": report.severity.value,
            "recovery_options": report.intent_labels,
            "can_retry": report.can_retry,
        }
        return CommandResult(success=False, error=report.user_message, metadata=metadata)

    def _safe_render(self, target: Any) -> None:
        # The failure may have come from rendering itself
        try:
            self.output.render(target)
        except Exception as e:
            self.logger.error(f"Failed to render error output: {e}")
