"""Shared types for tool-use strategies.

A strategy decides how the model may use tools: what it is told up front,
which tools are declared to the provider, and how each response is folded
back into the conversation.
"""

from __future__ import annotations

import enum
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING

from directive.protocols import Role

if TYPE_CHECKING:
    from collections.abc import Sequence

    from directive.protocols import CommonResponse, Message
    from directive.toolkit.executor import ToolDispatcher
    from directive.toolkit.models import CallHistory, ToolConfig

logger = logging.getLogger(__name__)


class ToolResultAction(str, enum.Enum):
    """What the orchestrator does after a round.

    UPDATE: re-send the grown conversation.
    RETRY: re-send after an intervention; counts toward the retry limit.
    COMPLETE: the round produced the final text.
    """

    UPDATE = "update"
    RETRY = "retry"
    COMPLETE = "complete"


@dataclass(frozen=True)
class RoundOutcome:
    """Result of handling one provider response.

    Attributes:
        action: Next step for the orchestrator.
        messages: Messages to append to the conversation, in order.
        final_text: The answer text when ``action`` is COMPLETE.
        diagnosis: Why a RETRY was requested.
        replaces_response: ``messages`` stand in for the raw assistant
            turn, which is then not stored.
    """

    action: ToolResultAction
    messages: tuple[Message, ...] = ()
    final_text: str | None = None
    diagnosis: str = ""
    replaces_response: bool = False


@dataclass
class ToolExchange:
    """Per-objective state a strategy works against.

    Attributes:
        dispatcher: Executes calls against the tool instance.
        history: The objective's call history.
        conversation: Snapshot of the conversation so far.
        include_seek_completion_message: Nudge the model to answer after
            successful tool results.
    """

    dispatcher: ToolDispatcher
    history: CallHistory
    conversation: Sequence[Message] = ()
    include_seek_completion_message: bool = True

    def last_user_message(self) -> Message | None:
        for message in reversed(self.conversation):
            if message.role is Role.USER:
                return message
        return None


class ToolUseStrategy(ABC):
    """Policy for tool negotiation with the model."""

    name: str = "strategy"

    @abstractmethod
    def request_message(self, tools: Sequence[ToolConfig]) -> Message | None:
        """Instruction message added to every objective, if any."""

    def declared_tools(self, tools: Sequence[ToolConfig]) -> list[ToolConfig]:
        """Tools declared to the provider's structured tool-calling."""
        return list(tools)

    @abstractmethod
    def handle(self, exchange: ToolExchange, response: CommonResponse) -> RoundOutcome:
        """Fold one provider response into a round outcome."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"
