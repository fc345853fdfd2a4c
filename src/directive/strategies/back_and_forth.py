"""Back-and-forth strategy: structured tool calls over several rounds."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from directive.protocols import function_message, system_message
from directive.strategies.base import RoundOutcome, ToolResultAction, ToolUseStrategy
from directive.toolkit.models import Recalled, Success

if TYPE_CHECKING:
    from collections.abc import Sequence

    from directive.protocols import CommonResponse, Message
    from directive.strategies.base import ToolExchange
    from directive.toolkit.models import CallHistory, ToolConfig

logger = logging.getLogger(__name__)

SEEK_COMPLETION_MESSAGE = (
    "If you know the final answer after reading the result content from a "
    "function call, respond with ONLY the answer in the require format"
)
RECALL_MESSAGE = (
    "You must find the answer in the user message and format it to the required format."
)


def intervention_message(last_user: Message, history: CallHistory) -> Message:
    """Copy of the last user message with every known call result appended."""
    return last_user.with_content(
        last_user.content
        + " \nNote the following may contain the answer."
        + history.describe()
        + ". If you see the answer, say it in the desired format."
    )


class BackAndForth(ToolUseStrategy):
    """Run each requested call, feed results back, repeat until plain text.

    A repeated call or a failing tool stops the round and asks for a retry
    with an intervention message instead of the remaining calls.
    """

    name = "back_and_forth"

    def request_message(self, tools: Sequence[ToolConfig]) -> Message | None:
        return None

    def handle(self, exchange: ToolExchange, response: CommonResponse) -> RoundOutcome:
        calls = response.requested_calls
        if not calls:
            return RoundOutcome(ToolResultAction.COMPLETE, final_text=response.text)

        messages: list[Message] = []
        last = len(calls) - 1
        for index, call in enumerate(calls):
            result = exchange.dispatcher.dispatch(call, exchange.history)

            if isinstance(result, Success):
                messages.append(function_message(result.text, call.name, call.id))
                if index == last and exchange.include_seek_completion_message:
                    messages.append(system_message(SEEK_COMPLETION_MESSAGE))
                continue

            if isinstance(result, Recalled):
                logger.info("Repeated call %s; intervening", result.call)
                messages.append(system_message(RECALL_MESSAGE))
                last_user = exchange.last_user_message()
                if last_user is not None:
                    messages.append(intervention_message(last_user, exchange.history))
                return RoundOutcome(
                    ToolResultAction.RETRY, tuple(messages), diagnosis=f"Repeated call {result.call}"
                )

            logger.info("Tool call %s failed: %s", result.call, result.diagnosis)
            messages.append(system_message(result.diagnosis))
            return RoundOutcome(ToolResultAction.RETRY, tuple(messages), diagnosis=result.diagnosis)

        return RoundOutcome(ToolResultAction.UPDATE, tuple(messages))
