"""Tests for the command router."""

from unittest.mock import AsyncMock, Mock

import pytest

from chat_commands.commands.base import (
    CommandDefinition,
    CommandResult,
    ConversationConfig,
)
from chat_commands.commands.protocols import CommandTip, FeedbackType, TransitionResult
from chat_commands.commands.registry import CommandRegistry
from chat_commands.commands.router import CommandRouter, DispatchState
from chat_commands.commands.tips import CommandTipProvider
from chat_commands.error_handling.handler import ErrorHandler
from chat_commands.exceptions import HandlerError
from chat_commands.interactive.output import OutputCoordinator


@pytest.fixture
def output(console_buffer):
    console, _ = console_buffer
    return OutputCoordinator(console=console)


@pytest.fixture
def router(registry, output):
    return CommandRouter(registry=registry, output=output)


def command_with(handler, name="doc"):
    return CommandDefinition(name=name, description="Test command", usage=f"/{name}", handler=handler)


class TestBuiltinCommands:
    """Test the help and errors built-ins."""

    @pytest.mark.asyncio
    async def test_help_with_only_builtins(self, context, console_buffer):
        console, buffer = console_buffer
        router = CommandRouter(output=OutputCoordinator(console=console))

        result = await router.route("/help", context)

        assert result.success is True
        assert result.message
        assert "Available Commands" in buffer.getvalue()
        assert router.last_state is DispatchState.SUCCESS

    @pytest.mark.asyncio
    async def test_help_for_command(self, router, context, console_buffer):
        _, buffer = console_buffer

        result = await router.route("/help new", context)

        assert result.success is True
        assert "Create a document" in buffer.getvalue()

    @pytest.mark.asyncio
    async def test_help_for_unknown_command(self, router, context):
        result = await router.route("/help nope", context)

        assert result.success is False
        assert "not found" in result.error

    @pytest.mark.asyncio
    async def test_errors_statistics_and_clear(self, router, context):
        async def failing(parsed, ctx):
            raise RuntimeError("connection refused")

        router.register_command(command_with(failing))
        await router.route("/doc", context)

        stats = await router.route("/errors", context)
        assert stats.success is True
        assert stats.data["total_errors"] == 1

        cleared = await router.route("/errors --clear", context)
        assert cleared.success is True
        assert len(router.error_handler) == 0

    @pytest.mark.asyncio
    async def test_errors_limit_bounds_recent_list(self, router, context):
        async def failing(parsed, ctx):
            raise ValueError("bad")

        router.register_command(command_with(failing))
        await router.route("/doc", context)
        await router.route("/doc", context)

        result = await router.route("/errors --limit 1", context)

        assert result.success is True
        details = router.output.state.primary_output.details
        assert details[0] == "**medium**: 2"
        assert len(details) == 2

    @pytest.mark.asyncio
    async def test_errors_rejects_non_finite_limit(self, router, context, console_buffer):
        _, buffer = console_buffer

        result = await router.route("/errors --limit inf", context)

        assert result.success is False
        assert "should be a number" in result.error
        assert "can_retry" not in result.metadata
        assert "Command Validation Failed" in buffer.getvalue()
        assert len(router.error_handler) == 0
        assert router.last_state is DispatchState.FAILED

    def test_builtins_are_registered(self, router):
        assert router.registry.has_command("help")
        assert router.registry.has_command("errors")

    @pytest.mark.asyncio
    async def test_builtin_can_be_replaced(self, router, context):
        async def custom_help(parsed, ctx):
            return CommandResult.success_result(message="custom help")

        router.register_command(command_with(custom_help, name="help"))
        result = await router.route("/help", context)

        assert result.message == "custom help"


class TestRouteFailures:
    """Test the failure branches."""

    @pytest.mark.asyncio
    async def test_unknown_command(self, router, context, console_buffer):
        _, buffer = console_buffer

        result = await router.route("/nosuchcommand", context)

        assert result.success is False
        assert "not found" in result.error
        assert "Command Not Found" in buffer.getvalue()
        assert router.last_state is DispatchState.FAILED

    @pytest.mark.asyncio
    async def test_unknown_command_suggestions(self, router, context, console_buffer):
        _, buffer = console_buffer

        await router.route("/ne", context)

        assert "Did you mean /new?" in buffer.getvalue()

    @pytest.mark.asyncio
    async def test_syntax_error(self, router, context, console_buffer):
        _, buffer = console_buffer

        result = await router.route("hello", context)

        assert result.success is False
        assert "forward slash" in result.error
        assert "Invalid Command Syntax" in buffer.getvalue()

    @pytest.mark.asyncio
    async def test_validation_failure(self, router, context, console_buffer):
        _, buffer = console_buffer

        result = await router.route("/new Doc", context)

        assert result.success is False
        assert result.error == (
            "Command validation failed: Required flag --template is missing, "
            "Required flag --file is missing"
        )
        assert "Command Validation Failed" in buffer.getvalue()
        assert router.output.get_feedback() == []

    @pytest.mark.asyncio
    async def test_handler_exception_is_classified(self, router, context, console_buffer):
        _, buffer = console_buffer

        async def failing(parsed, ctx):
            raise RuntimeError("Request timed out")

        router.register_command(command_with(failing))
        result = await router.route("/doc", context)

        assert result.success is False
        assert result.error.startswith("Network error occurred")
        assert result.metadata == {
            "severity": "medium",
            "recovery_options": ["retry", "check-connection", "work-offline"],
            "can_retry": True,
        }
        rendered = buffer.getvalue()
        assert "Command Error" in rendered
        assert "Try '/help doc'" in rendered
        assert router.last_state is DispatchState.FAILED

    @pytest.mark.asyncio
    async def test_critical_error_title(self, router, context, console_buffer):
        _, buffer = console_buffer

        async def failing(parsed, ctx):
            raise RuntimeError("No workspace folder is open")

        router.register_command(command_with(failing))
        result = await router.route("/doc", context)

        assert result.metadata["severity"] == "critical"
        assert result.metadata["can_retry"] is False
        assert "Critical Error" in buffer.getvalue()

    @pytest.mark.asyncio
    async def test_handler_exception_recorded_once(self, registry, output, context):
        error_handler = ErrorHandler()
        router = CommandRouter(registry=registry, output=output, error_handler=error_handler)

        async def failing(parsed, ctx):
            raise ValueError("bad")

        router.register_command(command_with(failing))
        await router.route("/doc", context)

        assert len(error_handler) == 1
        assert error_handler.get_history()[0].context.command == "doc"
        assert error_handler.get_history()[0].context.session_id == "test-session"

    @pytest.mark.asyncio
    async def test_handler_failure_result_is_returned_unchanged(self, router, context, console_buffer):
        _, buffer = console_buffer
        failure = CommandResult.error_result("Document exists")

        async def handler(parsed, ctx):
            return failure

        router.register_command(command_with(handler))
        result = await router.route("/doc", context)

        assert result is failure
        assert "Document exists" in buffer.getvalue()
        assert router.last_state is DispatchState.FAILED

    @pytest.mark.asyncio
    async def test_handler_error_hint_comes_first(self, router, context):
        async def failing(parsed, ctx):
            raise HandlerError(
                "Template 'weekly' is missing", hint="Run /new --template basic instead"
            )

        router.register_command(command_with(failing))
        result = await router.route("/doc", context)

        assert result.success is False
        assert result.metadata["severity"] == "low"
        next_steps = router.output.state.primary_output.next_steps
        assert next_steps[0] == "Run /new --template basic instead"
        assert next_steps[-1] == "Try '/help doc'"

    @pytest.mark.asyncio
    async def test_failing_classifier_falls_back_to_generic(self, registry, output, context):
        error_handler = ErrorHandler(classifier=Mock(side_effect=RuntimeError("classifier broke")))
        router = CommandRouter(registry=registry, output=output, error_handler=error_handler)

        async def failing(parsed, ctx):
            raise RuntimeError("Request timed out")

        router.register_command(command_with(failing))
        result = await router.route("/doc", context)

        assert result.success is False
        assert result.error.startswith("An unexpected error occurred")
        assert result.metadata == {
            "severity": "medium",
            "recovery_options": ["retry", "report-issue"],
            "can_retry": True,
        }
        assert router.last_state is DispatchState.FAILED


class TestRouteSuccess:
    """Test the success path and post-processing."""

    @pytest.mark.asyncio
    async def test_handler_receives_parsed_command(self, router, context):
        result = await router.route('/new "My Doc" --template basic -f doc.md', context)

        assert result.success is True
        assert result.data["arguments"] == ["My Doc"]
        assert str(result.data["flags"]["template"]) == "basic"

    @pytest.mark.asyncio
    async def test_tips_are_prioritized_and_limited(self, registry, output, context):
        provider = CommandTipProvider()
        provider.register_tips(
            "agent",
            [
                CommandTip(title="Low", content="low tip", priority=1),
                CommandTip(title="High", content="high tip", priority=9),
                CommandTip(title="Mid", content="mid tip", priority=5),
                CommandTip(title="High", content="high tip", priority=9),
            ],
        )
        router = CommandRouter(registry=registry, output=output, tip_provider=provider, max_tips=2)

        await router.route("/agent list", context)

        feedback = output.get_feedback()
        assert len(feedback) == 1
        assert feedback[0].type is FeedbackType.TIP
        assert "High" in feedback[0].content
        assert "Mid" in feedback[0].content
        assert "Low" not in feedback[0].content

    @pytest.mark.asyncio
    async def test_template_hint_is_passed_to_tips(self, registry, output, context):
        provider = Mock()
        provider.get_tips_for_command.return_value = []
        router = CommandRouter(registry=registry, output=output, tip_provider=provider)

        await router.route("/new Doc --template basic -f doc.md", context)

        args = provider.get_tips_for_command.call_args[0]
        assert args[0] == "new"
        assert args[1] == "basic"

    @pytest.mark.asyncio
    async def test_render_called_once(self, registry, context):
        output = Mock()
        output.has_primary_output.return_value = False
        router = CommandRouter(registry=registry, output=output)

        await router.route("/agent list", context)

        output.clear.assert_called_once()
        output.render.assert_called_once_with(None)


class TestConversationBridge:
    """Test conversation hand-off after a command."""

    @staticmethod
    def conversation_command():
        async def handler(parsed, ctx):
            result = CommandResult.success_result(message="Created")
            result.conversation_config = ConversationConfig(agent_name="writer")
            return result

        return command_with(handler, name="write")

    @pytest.mark.asyncio
    async def test_bridge_success(self, router, context):
        bridge = Mock()
        bridge.handle_command_to_conversation_transition = AsyncMock(
            return_value=TransitionResult(success=True, session_id="conv-1")
        )
        router.set_conversation_bridge(bridge)
        router.register_command(self.conversation_command())

        result = await router.route("/write", context)

        assert result.success is True
        bridge.handle_command_to_conversation_transition.assert_awaited_once()
        feedback = router.output.get_feedback()
        assert [f.priority for f in feedback] == [5]
        assert "conv-1" in feedback[0].content

    @pytest.mark.asyncio
    async def test_bridge_failure_feedback(self, router, context):
        bridge = Mock()
        bridge.handle_command_to_conversation_transition = AsyncMock(
            return_value=TransitionResult(
                success=False,
                error="agent unavailable",
                fallback_options=["Edit the document manually"],
            )
        )
        router.set_conversation_bridge(bridge)
        router.register_command(self.conversation_command())

        await router.route("/write", context)

        feedback = router.output.get_feedback()
        assert [(f.type, f.priority) for f in feedback] == [
            (FeedbackType.WARNING, 3),
            (FeedbackType.GUIDANCE, 2),
        ]

    @pytest.mark.asyncio
    async def test_bridge_skipped_without_conversation(self, router, context):
        bridge = Mock()
        bridge.handle_command_to_conversation_transition = AsyncMock()
        router.set_conversation_bridge(bridge)

        await router.route("/agent list", context)

        bridge.handle_command_to_conversation_transition.assert_not_awaited()
        assert router.output.get_feedback()[0].type is FeedbackType.TIP

    @pytest.mark.asyncio
    async def test_explicit_opt_out(self, router, context):
        bridge = Mock()
        bridge.handle_command_to_conversation_transition = AsyncMock()
        router.set_conversation_bridge(bridge)

        async def handler(parsed, ctx):
            result = CommandResult.success_result()
            result.conversation_config = ConversationConfig(agent_name="writer")
            result.should_continue_conversation = False
            return result

        router.register_command(command_with(handler))
        await router.route("/doc", context)

        bridge.handle_command_to_conversation_transition.assert_not_awaited()


class TestRouterHelpers:
    def test_is_command(self, router):
        assert router.is_command("/help")
        assert not router.is_command("help")

    def test_get_help(self, router):
        assert router.get_help().startswith("# Available Commands")
        assert "**new**" in router.get_help("new")

    def test_initial_state(self):
        assert CommandRouter(registry=CommandRegistry()).last_state is DispatchState.IDLE
