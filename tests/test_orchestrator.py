"""Tests for the Orchestrator round loop.

Uses ScriptedProvider from conftest; no network. Covers both strategies,
the round and retry limits, cancellation, and setup message assembly.
"""

from __future__ import annotations

import pytest

from directive import (
    ConversationStore,
    Directive,
    ExchangeResult,
    FillInTheBlank,
    MessageFilter,
    Orchestrator,
    OrchestratorConfig,
    Parameter,
    Role,
    ToolRegistry,
    ToolResultAction,
    system_message,
    user_message,
)
from directive.exceptions import (
    ArgumentBindingError,
    ObjectiveCancelledError,
    RetryExhaustedError,
    RoundLimitExceededError,
    ToolExecutionError,
)
from directive.answer.formatting import FORMAT_MESSAGE_HEADER
from directive.llm.errors import ProviderError
from directive.parsing.coercion import INT, STRING
from directive.parsing.templates import MARKER
from directive.strategies.back_and_forth import RECALL_MESSAGE, SEEK_COMPLETION_MESSAGE
from directive.strategies.fill_in_the_blank import NO_TOOLS_MESSAGE

from tests.conftest import ScriptedProvider, Weather, make_call, make_response


def solve_directive(**kwargs) -> Directive:
    kwargs.setdefault("returns", INT)
    return Directive(name="solve", parameters=(Parameter("question", STRING),), **kwargs)


def make_orchestrator(provider, registry=None, tools=None, **config) -> Orchestrator:
    return Orchestrator(provider, registry, tools, config=OrchestratorConfig(**config))


# ---------------------------------------------------------------------------
# Back-and-forth
# ---------------------------------------------------------------------------


class TestBackAndForthExchange:
    def test_tool_round_then_answer(self, calc_registry, calculator):
        provider = ScriptedProvider(make_response("", make_call("add", a=2, b=3)), "5")
        orch = make_orchestrator(provider, calc_registry, calculator)

        result = orch.run(solve_directive().bind("What is 2 + 3?"))

        assert isinstance(result, ExchangeResult)
        assert result.text == "5"
        assert [r.action for r in result.rounds] == [ToolResultAction.UPDATE, ToolResultAction.COMPLETE]
        assert result.total_tool_calls == 1
        assert calculator.invocations == ["add(2, 3)"]

        second_request, declared = provider.requests[1]
        function_messages = [m for m in second_request if m.role is Role.FUNCTION]
        assert len(function_messages) == 1
        assert "5" in function_messages[0].content
        assert second_request[-1].content == SEEK_COMPLETION_MESSAGE
        assert {t.name for t in declared} == set(calc_registry.names())

    def test_conversation_is_stored(self, calc_registry, calculator):
        provider = ScriptedProvider(make_response("", make_call("add", a=2, b=3)), "5")
        orch = make_orchestrator(provider, calc_registry, calculator)
        orch.run(solve_directive().bind("What is 2 + 3?"))

        messages = orch.store.messages()
        assert messages[-1].role is Role.ASSISTANT
        assert messages[-1].content == "5"
        requesting = [m for m in messages if m.function_calls]
        assert len(requesting) == 1
        assert requesting[0].function_calls[0].name == "add"

    def test_repeated_call_is_recalled_with_intervention(self):
        weather = Weather()
        tokyo = make_call("get_weather", city="Tokyo")
        provider = ScriptedProvider(
            make_response("", tokyo),
            make_response("", tokyo),
            "Sunny",
        )
        orch = make_orchestrator(provider, ToolRegistry.from_type(Weather), weather)

        result = orch.run(solve_directive(returns=STRING).bind("Weather in Tokyo?"))

        assert result.text == "Sunny"
        assert weather.lookups == ["Tokyo"]
        assert [r.action for r in result.rounds] == [
            ToolResultAction.UPDATE,
            ToolResultAction.RETRY,
            ToolResultAction.COMPLETE,
        ]
        third_request, _ = provider.requests[2]
        assert third_request[-2].content == RECALL_MESSAGE
        intervention = third_request[-1]
        assert intervention.role is Role.USER
        assert 'get_weather("Tokyo") has result Sunny in Tokyo.' in intervention.content

    def test_tools_not_allowed(self, calc_registry, calculator):
        provider = ScriptedProvider("5")
        orch = make_orchestrator(provider, calc_registry, calculator, tools_allowed=False)
        orch.run(solve_directive().bind("2 + 3"))
        assert provider.requests[0][1] == []

    def test_parse_error_aborts(self, calc_registry, calculator):
        provider = ScriptedProvider(make_response("", make_call("add", a=2)))
        orch = make_orchestrator(provider, calc_registry, calculator)
        with pytest.raises(ArgumentBindingError):
            orch.run(solve_directive().bind("2 + ?"))

    def test_provider_error_propagates(self):
        def fail(conversation):
            raise ProviderError("upstream down")

        orch = make_orchestrator(ScriptedProvider(fail))
        with pytest.raises(ProviderError, match="upstream down"):
            orch.run(solve_directive().bind("?"))

    def test_on_round_callback(self, calc_registry, calculator):
        seen = []
        provider = ScriptedProvider(make_response("", make_call("add", a=1, b=1)), "2")
        orch = make_orchestrator(provider, calc_registry, calculator, on_round=seen.append)
        orch.run(solve_directive().bind("1 + 1"))
        assert [r.round for r in seen] == [1, 2]
        assert seen[0].requested_calls == ('add({"a": 1, "b": 1})',)


# ---------------------------------------------------------------------------
# Fill-in-the-blank
# ---------------------------------------------------------------------------


class TestFillInTheBlankExchange:
    def test_single_round(self, calc_registry, calculator):
        provider = ScriptedProvider("The answer is " + MARKER + "{add(2, 3)}")
        orch = make_orchestrator(provider, calc_registry, calculator, strategy=FillInTheBlank())

        result = orch.run(solve_directive().bind("What is 2 + 3?"))

        assert result.text == "The answer is 5"
        assert len(result.rounds) == 1
        assert provider.requests[0][1] == []
        assistant = [m for m in orch.store.messages() if m.role is Role.ASSISTANT]
        assert [m.content for m in assistant] == ["The answer is 5"]

    def test_tool_error_keeps_raw_reply(self, calc_registry, calculator):
        provider = ScriptedProvider(MARKER + "{explode()}")
        orch = make_orchestrator(provider, calc_registry, calculator, strategy=FillInTheBlank())
        with pytest.raises(ToolExecutionError):
            orch.run(solve_directive().bind("?"))
        assert orch.store.messages()[-1].content == MARKER + "{explode()}"

    def test_instructions_sent(self, calc_registry, calculator):
        provider = ScriptedProvider("5")
        orch = make_orchestrator(provider, calc_registry, calculator, strategy=FillInTheBlank())
        orch.run(solve_directive().bind("2 + 3"))
        sent = provider.requests[0][0]
        assert any("Declared Functions" in m.content for m in sent)

    def test_no_tools_message(self):
        provider = ScriptedProvider("5")
        orch = make_orchestrator(provider, strategy=FillInTheBlank())
        orch.run(solve_directive().bind("2 + 3"))
        assert any(m.content == NO_TOOLS_MESSAGE for m in provider.requests[0][0])


# ---------------------------------------------------------------------------
# Limits
# ---------------------------------------------------------------------------


class TestLimits:
    def test_retry_exhausted(self, calc_registry, calculator):
        provider = ScriptedProvider(*[make_response("", make_call("explode"))] * 5)
        orch = make_orchestrator(provider, calc_registry, calculator, max_retries=3)
        with pytest.raises(RetryExhaustedError) as exc_info:
            orch.run(solve_directive().bind("?"))
        assert exc_info.value.attempts == 4
        assert exc_info.value.last_diagnosis == "ValueError: boom"
        assert provider.call_count == 4

    def test_zero_retries(self, calc_registry, calculator):
        provider = ScriptedProvider(make_response("", make_call("explode")))
        orch = make_orchestrator(provider, calc_registry, calculator, max_retries=0)
        with pytest.raises(RetryExhaustedError):
            orch.run(solve_directive().bind("?"))

    def test_successful_round_resets_retries(self, calc_registry, calculator):
        explode = make_response("", make_call("explode"))
        provider = ScriptedProvider(
            explode,
            explode,
            make_response("", make_call("add", a=1, b=1)),
            explode,
            explode,
            "2",
        )
        orch = make_orchestrator(provider, calc_registry, calculator, max_retries=2)
        assert orch.run(solve_directive().bind("?")).text == "2"

    def test_round_limit(self, calc_registry, calculator):
        provider = ScriptedProvider(
            make_response("", make_call("add", a=1, b=1)),
            make_response("", make_call("add", a=2, b=2)),
        )
        orch = make_orchestrator(provider, calc_registry, calculator, max_rounds=2)
        with pytest.raises(RoundLimitExceededError) as exc_info:
            orch.run(solve_directive().bind("?"))
        assert exc_info.value.max_rounds == 2
        assert provider.call_count == 2

    @pytest.mark.parametrize("kwargs", [{"max_rounds": 0}, {"max_retries": -1}])
    def test_invalid_config(self, kwargs):
        with pytest.raises(ValueError):
            OrchestratorConfig(**kwargs)


# ---------------------------------------------------------------------------
# Cancellation
# ---------------------------------------------------------------------------


class TestCancellation:
    def test_cancelled_before_start(self):
        provider = ScriptedProvider("5")
        orch = make_orchestrator(provider)
        objective = solve_directive().bind("?")
        objective.cancel_event.set()

        with pytest.raises(ObjectiveCancelledError):
            orch.run(objective)
        assert provider.call_count == 0
        assert orch.store.messages() == []

    def test_cancelled_between_rounds(self, calc_registry, calculator):
        provider = ScriptedProvider(make_response("", make_call("add", a=1, b=1)), "2")
        objective = solve_directive().bind("?")
        orch = make_orchestrator(
            provider, calc_registry, calculator, on_round=lambda r: objective.cancel_event.set()
        )
        with pytest.raises(ObjectiveCancelledError, match="before round 2"):
            orch.run(objective)
        assert provider.call_count == 1
        assert calculator.invocations == ["add(1, 1)"]


# ---------------------------------------------------------------------------
# Setup messages
# ---------------------------------------------------------------------------


class TestSetupMessages:
    def test_order_and_primer(self):
        directive = solve_directive(
            messages=(user_message("Be brief."), system_message("You are a calculator.")),
        )
        provider = ScriptedProvider("5")
        make_orchestrator(provider).run(directive.bind("What is 2 + 3?"))

        sent = provider.requests[0][0]
        assert [m.role for m in sent] == [Role.SYSTEM, Role.USER, Role.SYSTEM, Role.USER]
        assert sent[0].content == "You are a calculator."
        assert sent[1].content == "Be brief."
        assert sent[2].content.startswith(FORMAT_MESSAGE_HEADER)
        assert sent[3].content == (
            "Your task is to answer question in question. question=`What is 2 + 3?`"
        )

    def test_without_primer_or_format(self):
        provider = ScriptedProvider("5")
        orch = make_orchestrator(provider, use_format_message=False, user_message_primer=False)
        orch.run(solve_directive().bind("What is 2 + 3?"))
        assert [m.content for m in provider.requests[0][0]] == ["What is 2 + 3?"]

    def test_only_user_messages(self):
        directive = solve_directive(messages=(system_message("You are a calculator."),))
        provider = ScriptedProvider("5")
        orch = make_orchestrator(provider, message_filter=MessageFilter.ONLY_USER_MESSAGES)
        orch.run(directive.bind("2 + 3"))
        assert all(m.role is Role.USER for m in provider.requests[0][0])

    def test_only_system_messages(self):
        provider = ScriptedProvider("5")
        orch = make_orchestrator(provider, message_filter=MessageFilter.ONLY_SYSTEM_MESSAGES)
        orch.run(solve_directive().bind("2 + 3"))
        assert all(m.role is Role.SYSTEM for m in provider.requests[0][0])

    def test_objective_runs_on_pinned_conversation(self):
        store = ConversationStore()
        store.new_conversation()
        provider = ScriptedProvider("5")
        orch = Orchestrator(provider, store=store)
        objective = solve_directive().bind("2 + 3")
        objective.conversation_index = 0

        result = orch.run(objective)

        assert result.conversation_index == 0
        assert store.current_index == 1
        assert store.messages(1) == []
        assert store.messages(0)[-1].content == "5"

    def test_conversation_carries_over(self):
        provider = ScriptedProvider("5", "6")
        orch = make_orchestrator(provider, use_format_message=False)
        orch.run(solve_directive().bind("2 + 3"))
        orch.run(solve_directive().bind("3 + 3"))
        second = provider.requests[1][0]
        assert [m.content for m in second] == [
            "Your task is to answer question in question. question=`2 + 3`",
            "5",
            "Your task is to answer question in question. question=`3 + 3`",
        ]
