"""Orchestrator result models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from directive.toolkit.models import CallHistory

if TYPE_CHECKING:
    from directive.protocols import Message
    from directive.strategies.base import ToolResultAction


@dataclass(frozen=True)
class RoundRecord:
    """One provider round trip.

    Frozen: round records are immutable records of what happened.
    """

    round: int
    response_text: str
    requested_calls: tuple[str, ...]
    action: ToolResultAction
    messages: tuple[Message, ...] = ()
    diagnosis: str = ""


@dataclass(frozen=True)
class ExchangeResult:
    """Final result of fulfilling one objective.

    Attributes:
        text: Final answer text, before parsing.
        rounds: Every round, in order.
        history: Calls executed during the exchange.
        conversation_index: Conversation the exchange ran on.
        objective_id: Id of the fulfilled objective.
    """

    text: str
    rounds: tuple[RoundRecord, ...] = ()
    history: CallHistory = field(default_factory=CallHistory, compare=False)
    conversation_index: int = 0
    objective_id: str = ""

    @property
    def total_tool_calls(self) -> int:
        """Native invocations made (repeats excluded)."""
        return len(self.history)
