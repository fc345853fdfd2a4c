"""Tool-use strategies."""

from directive.strategies.back_and_forth import BackAndForth
from directive.strategies.base import RoundOutcome, ToolExchange, ToolResultAction, ToolUseStrategy
from directive.strategies.fill_in_the_blank import FillInTheBlank

__all__ = [
    "BackAndForth",
    "FillInTheBlank",
    "RoundOutcome",
    "ToolExchange",
    "ToolResultAction",
    "ToolUseStrategy",
]
