"""Typed answers: the Answer handle and its formatting/parsing rules."""

from directive.answer.answer import Answer
from directive.answer.formatting import (
    examples,
    formatting_instructions,
    formatting_message,
    parse_answer,
    reinforce_range,
)

__all__ = [
    "Answer",
    "examples",
    "formatting_instructions",
    "formatting_message",
    "parse_answer",
    "reinforce_range",
]
