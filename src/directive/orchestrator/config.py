"""Orchestrator configuration."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable

from directive.messenger import MessageFilter
from directive.strategies.back_and_forth import BackAndForth
from directive.strategies.base import ToolUseStrategy

if TYPE_CHECKING:
    from directive.orchestrator.models import RoundRecord


@dataclass
class OrchestratorConfig:
    """Engine policy for fulfilling objectives.

    Mutable dataclass; callers may adjust settings between runs.

    Attributes:
        strategy: Tool-use strategy (back-and-forth by default).
        max_rounds: Maximum provider round trips per objective.
        max_retries: Maximum consecutive retry rounds (repeated or failed
            tool calls) before giving up.
        tools_allowed: Offer the registered tools at all.
        loop_detection: Short-circuit repeated identical calls.
        use_format_message: Send the answer formatting instructions.
        user_message_primer: Introduce each argument by name instead of
            sending the raw value.
        include_seek_completion_message: Nudge the model to answer after
            tool results.
        message_filter: Restrict which setup messages are stored.
        on_round: Callback invoked after each round.
    """

    strategy: ToolUseStrategy = field(default_factory=BackAndForth)
    max_rounds: int = 10
    max_retries: int = 3
    tools_allowed: bool = True
    loop_detection: bool = True
    use_format_message: bool = True
    user_message_primer: bool = True
    include_seek_completion_message: bool = True
    message_filter: MessageFilter = MessageFilter.NONE
    on_round: Callable[[RoundRecord], None] | None = None

    def __post_init__(self) -> None:
        if self.max_rounds < 1:
            raise ValueError(f"max_rounds must be >= 1, got {self.max_rounds}")
        if self.max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {self.max_retries}")
