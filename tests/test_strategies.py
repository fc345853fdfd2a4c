"""Tests for the BackAndForth and FillInTheBlank tool-use strategies."""

from __future__ import annotations

import pytest

from directive import (
    BackAndForth,
    FillInTheBlank,
    FunctionCall,
    Role,
    ToolResultAction,
    user_message,
)
from directive.exceptions import CallSyntaxError, TemplateSyntaxError, ToolExecutionError
from directive.parsing.templates import MARKER
from directive.strategies.back_and_forth import (
    RECALL_MESSAGE,
    SEEK_COMPLETION_MESSAGE,
    intervention_message,
)
from directive.strategies.base import ToolExchange
from directive.strategies.fill_in_the_blank import NO_TOOLS_MESSAGE

from tests.conftest import make_call, make_response


@pytest.fixture
def exchange(dispatcher, history) -> ToolExchange:
    return ToolExchange(
        dispatcher=dispatcher,
        history=history,
        conversation=(user_message("What is 2 + 3?"),),
    )


# ---------------------------------------------------------------------------
# BackAndForth
# ---------------------------------------------------------------------------


class TestBackAndForth:
    def test_no_request_message(self, calc_registry):
        assert BackAndForth().request_message(calc_registry.configs()) is None

    def test_declares_every_tool(self, calc_registry):
        assert BackAndForth().declared_tools(calc_registry.configs()) == calc_registry.configs()

    def test_plain_text_completes(self, exchange):
        outcome = BackAndForth().handle(exchange, make_response("5"))
        assert outcome.action is ToolResultAction.COMPLETE
        assert outcome.final_text == "5"
        assert outcome.messages == ()

    def test_success_appends_function_message_and_nudge(self, exchange):
        outcome = BackAndForth().handle(exchange, make_response("", make_call("add", a=2, b=3)))
        assert outcome.action is ToolResultAction.UPDATE
        result, nudge = outcome.messages
        assert result.role is Role.FUNCTION
        assert result.content == "5"
        assert result.name == "add"
        assert result.call_id == "call_add"
        assert nudge.role is Role.SYSTEM
        assert nudge.content == SEEK_COMPLETION_MESSAGE

    def test_nudge_only_after_last_call(self, exchange):
        response = make_response(
            "",
            make_call("add", "c1", a=1, b=1),
            make_call("multiply", "c2", a=2, b=2),
        )
        outcome = BackAndForth().handle(exchange, response)
        roles = [m.role for m in outcome.messages]
        assert roles == [Role.FUNCTION, Role.FUNCTION, Role.SYSTEM]
        assert [m.call_id for m in outcome.messages[:2]] == ["c1", "c2"]

    def test_nudge_can_be_disabled(self, exchange):
        exchange.include_seek_completion_message = False
        outcome = BackAndForth().handle(exchange, make_response("", make_call("add", a=2, b=3)))
        assert [m.role for m in outcome.messages] == [Role.FUNCTION]

    def test_repeated_call_intervenes(self, exchange, calculator):
        strategy = BackAndForth()
        strategy.handle(exchange, make_response("", make_call("add", a=2, b=3)))
        outcome = strategy.handle(exchange, make_response("", make_call("add", a=2, b=3)))

        assert outcome.action is ToolResultAction.RETRY
        recall, intervention = outcome.messages
        assert recall.content == RECALL_MESSAGE
        assert intervention.role is Role.USER
        assert intervention.content.startswith("What is 2 + 3? \nNote the following may contain the answer.")
        assert "[add(2, 3) has result 5.]" in intervention.content
        assert calculator.invocations == ["add(2, 3)"]

    def test_repeated_call_stops_the_round(self, exchange, calculator):
        strategy = BackAndForth()
        strategy.handle(exchange, make_response("", make_call("add", a=2, b=3)))
        strategy.handle(
            exchange,
            make_response("", make_call("add", a=2, b=3), make_call("multiply", a=4, b=4)),
        )
        assert calculator.invocations == ["add(2, 3)"]

    def test_error_retries_with_diagnosis(self, exchange):
        outcome = BackAndForth().handle(exchange, make_response("", make_call("explode")))
        assert outcome.action is ToolResultAction.RETRY
        assert outcome.diagnosis == "ValueError: boom"
        (diagnosis,) = outcome.messages
        assert diagnosis.role is Role.SYSTEM
        assert diagnosis.content == "ValueError: boom"

    def test_successes_before_error_are_kept(self, exchange):
        response = make_response("", make_call("add", a=1, b=2), make_call("explode"))
        outcome = BackAndForth().handle(exchange, response)
        assert [m.role for m in outcome.messages] == [Role.FUNCTION, Role.SYSTEM]
        assert outcome.messages[0].content == "3"

    def test_unknown_tool_retries(self, exchange):
        outcome = BackAndForth().handle(exchange, make_response("", make_call("divide", a=1, b=1)))
        assert outcome.action is ToolResultAction.RETRY
        assert "ToolNotFoundError" in outcome.diagnosis

    def test_intervention_message_keeps_role(self, history):
        history.record("add(2, 3)", "5", 5)
        message = intervention_message(user_message("Q"), history)
        assert message.content == (
            "Q \nNote the following may contain the answer.[add(2, 3) has result 5.]. "
            "If you see the answer, say it in the desired format."
        )


# ---------------------------------------------------------------------------
# FillInTheBlank
# ---------------------------------------------------------------------------


class TestFillInTheBlank:
    def test_declares_no_tools(self, calc_registry):
        assert FillInTheBlank().declared_tools(calc_registry.configs()) == []

    def test_request_message_lists_signatures(self, calc_registry):
        message = FillInTheBlank().request_message(calc_registry.configs())
        assert message.role is Role.SYSTEM
        assert "def add(a: int, b: int) -> int" in message.content
        assert "def total(*values: int) -> int" in message.content
        assert MARKER + "{add(b, c)}" in message.content

    def test_no_tools_message(self):
        message = FillInTheBlank().request_message([])
        assert message.content == NO_TOOLS_MESSAGE

    def test_fills_template(self, exchange):
        text = "The answer is " + MARKER + "{add(2, 3)}"
        outcome = FillInTheBlank().handle(exchange, make_response(text))
        assert outcome.action is ToolResultAction.COMPLETE
        assert outcome.final_text == "The answer is 5"
        (message,) = outcome.messages
        assert message.role is Role.ASSISTANT
        assert message.content == "The answer is 5"
        assert outcome.replaces_response

    def test_nested_and_multiple(self, exchange):
        text = MARKER + "{add(multiply(2, 3), 1)} and " + MARKER + "{total(1, 2, 3)}"
        outcome = FillInTheBlank().handle(exchange, make_response(text))
        assert outcome.final_text == "7 and 6"

    def test_repeated_template_uses_recalled_result(self, exchange, calculator):
        text = MARKER + "{add(2, 3)} " + MARKER + "{add(2, 3)}"
        outcome = FillInTheBlank().handle(exchange, make_response(text))
        assert outcome.final_text == "5 5"
        assert calculator.invocations == ["add(2, 3)"]

    def test_text_without_templates(self, exchange):
        outcome = FillInTheBlank().handle(exchange, make_response("just 5"))
        assert outcome.final_text == "just 5"

    def test_tool_failure_raises(self, exchange):
        with pytest.raises(ToolExecutionError):
            FillInTheBlank().handle(exchange, make_response(MARKER + "{explode()}"))

    def test_unknown_tool_raises(self, exchange):
        with pytest.raises(ToolExecutionError):
            FillInTheBlank().handle(exchange, make_response(MARKER + "{divide(1, 2)}"))

    def test_unmatched_template_raises(self, exchange):
        with pytest.raises(TemplateSyntaxError):
            FillInTheBlank().handle(exchange, make_response(MARKER + "{add(2, 3)"))

    def test_malformed_call_raises(self, exchange):
        with pytest.raises(CallSyntaxError):
            FillInTheBlank().handle(exchange, make_response(MARKER + "{11 * 71}"))

    def test_positional_call_not_json(self, exchange):
        FillInTheBlank().handle(exchange, make_response(MARKER + "{add(1, 1)}"))
        assert "add(1, 1)" in exchange.history
        assert not FunctionCall("add", "1, 1").is_json
