"""Fill-in-the-blank strategy: tool calls embedded in the answer text.

The model writes ``\\u200b{add(2, 3)}`` where a tool result belongs; each
template is evaluated and its result substituted in place. No tools are
declared to the provider and there is a single round. The filled text
replaces the templated reply in the conversation.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from directive.exceptions import ToolExecutionError
from directive.parsing.templates import MARKER, extract
from directive.protocols import assistant_message, system_message
from directive.strategies.base import RoundOutcome, ToolResultAction, ToolUseStrategy
from directive.toolkit.models import Error

if TYPE_CHECKING:
    from collections.abc import Sequence

    from directive.protocols import CommonResponse, Message
    from directive.strategies.base import ToolExchange
    from directive.toolkit.models import ToolConfig

logger = logging.getLogger(__name__)

NO_TOOLS_MESSAGE = "Answer to the best of your ability"


def _instructions(signatures: str) -> str:
    m = MARKER
    return (
        f"Declared Functions: [{signatures}]. "
        "These functions are already declared for you, you can just call them "
        "in your answer if available. "
        "#Example:\n"
        "If this question requires you to add, and an add function is available "
        "do not show the results. "
        f"You must write the call inside {m}{{...}}, a zero-width space followed by braces. "
        "For instance if the question was [can you add b + c?], you would say "
        f"something like [The answer is {m}{{add(b, c)}}]. "
        "If the function you want is not in Declared Functions, then just answer "
        "to your best ability what you know and show the results. "
        "Sometimes you need nested function calls. "
        "For instance if the question was [can you add a * b + c?], you can write "
        f"something like [The answer is {m}{{add(multiply(a, b), c)}}]. "
        "For instance if the question was [v + w * x / y - z], you can say "
        "something like [The answer to the equation is "
        f"{m}{{subtract(add(v, divide(multiply(w, x), y)), z)}}]. "
        "You must follow these instructions.\n"
        "1. If you knew the answer to a + b, but a function called `add` is in "
        "Declared Functions, you must always write the call in your answer. "
        f"I.e. [The answer to a + b is {m}{{add(a, b)}}].\n"
        "2. If you know the answer to something, but there is a function for that "
        "something, use that function in your answer.\n"
        "3. For a function that takes *values, pass every item as its own "
        f"argument, like {m}{{total(1, 2, 3)}}. Never write a [1, 2, 3] list literal.\n"
        "4. You are not allowed to use keyword arguments. For instance for "
        f"def z(a: int, b: int), you cannot write `We have {m}{{z(a=0, b=1)}}`. "
        f"You can write `We have {m}{{z(0, 1)}}`.\n"
        "5. Never write an arithmetic expression inside the braces "
        f"(e.g. {m}{{11 * 71}}); call the matching declared function instead "
        f"(e.g. {m}{{multiply(11, 71)}}).\n"
        "Remember: If a function is not in Declared Functions, do not make up a "
        "tool. For instance if asked `whats 2 - 1` and there is no subtract "
        "function, you would say `The answer is 1` by guessing and not templating. "
        "Strings passed to functions must be written in double quotes."
    )


class FillInTheBlank(ToolUseStrategy):
    """Evaluate embedded call templates and complete in one round."""

    name = "fill_in_the_blank"

    def request_message(self, tools: Sequence[ToolConfig]) -> Message | None:
        if not tools:
            return system_message(NO_TOOLS_MESSAGE)
        return system_message(_instructions(", ".join(t.signature() for t in tools)))

    def declared_tools(self, tools: Sequence[ToolConfig]) -> list[ToolConfig]:
        return []

    def handle(self, exchange: ToolExchange, response: CommonResponse) -> RoundOutcome:
        """Evaluate each template in the response text.

        Raises:
            ParseError: If a template or call expression is malformed.
            ToolExecutionError: If a tool is unknown or raises.
        """
        template = extract(response.text)
        results: list[str] = []
        for expression in template.expressions:
            result = exchange.dispatcher.evaluate(expression, exchange.history)
            if isinstance(result, Error):
                raise ToolExecutionError(result.call, result.cause)
            results.append(result.text)

        filled = template.fill(results)
        logger.debug("Filled %d template(s)", len(results))
        return RoundOutcome(
            ToolResultAction.COMPLETE,
            (assistant_message(filled),),
            final_text=filled,
            replaces_response=True,
        )
