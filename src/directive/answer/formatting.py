"""Answer formatting instructions and their matching parser.

``formatting_instructions`` tells the model how to write a value of a given
kind; ``parse_answer`` turns text written that way back into the value.
The two are a matched pair: every example the instructions show parses.
"""

from __future__ import annotations

import logging
import random
import sys
from typing import Any

from directive.exceptions import AnswerParseError, CoercionError
from directive.parsing.coercion import Kind, TypeSpec, coerce
from directive.protocols import Message, system_message

logger = logging.getLogger(__name__)

EXAMPLE_COUNT = 5

INT_RANGE = (-(2**63), 2**63 - 1)
FLOAT_RANGE = (-sys.float_info.max, sys.float_info.max)

NUMBER_RULES_HEADER = (
    "Do not include any other words, symbols, or explanations. **No Words or "
    'Symbols:** Do not include any words, explanations, symbols, or letters (like "e", '
    '"PI", "euler", etc.).If you answer is a the result of some operation, write only '
    "the numeric answer. for instance a + b = c, write Only c.\n"
    "If you answer is a the result of some function, write only the numeric answer. "
    "for instance x + y = z, write Only z.\n"
    "The numbers must be in the format of "
)
INTEGER_RULES_HEADER = "* **Integer Only:** The answer must be a whole number (no decimals).* **Examples:**"
FLOATING_RULES_HEADER = "* **Floating-point Only:** The answer can contain decimals.* **Examples:**"

CHOICE_RULES = "You cannot say any thing more than that. Choose One. Only say what you chose"
CHOICE_RULES_HEADER = " Answer strictly in the following format: one of"

DATE_RULES = "Answer strictly in the following format `yyyy-MM-dd`. Write formatted answer only."
DATETIME_RULES = (
    "Answer strictly in the following format as yyyy-MM-ddTHH:mm:ss. Write formatted answer only."
)
TIME_RULES = "Answer strictly in the following format as HH:mm:ss. Write formatted answer only."
STRING_RULES = "A string of words answering the question."

COLLECTION_RULES = (
    "\nYou must use CSV format. Do not number lines. Put every item separated by "
    "newline character instead of comma. For each item: "
)
FORMAT_MESSAGE_HEADER = "[Required Format] You must format your answer as follows: \n\n# Format:  "


def guideline(example: str) -> str:
    return f"Do NOT write `the result is {example}`\n\n Write instead ONLY `{example}`"


def examples(spec: TypeSpec, rng: random.Random, count: int = EXAMPLE_COUNT) -> list[str]:
    """Distinct example answers for a numeric kind (empty for other kinds)."""
    if spec.kind not in (Kind.INT, Kind.FLOAT, Kind.DECIMAL):
        return []
    seen: list[str] = []
    while len(seen) < count:
        if spec.kind is Kind.INT:
            candidate = str(rng.randint(-1000, 1000))
        else:
            candidate = "%.5f" % rng.random()
        if candidate not in seen:
            seen.append(candidate)
    return seen


def reinforce_range(minimum: Any, maximum: Any, samples: list[str]) -> str:
    """Range statement followed by one guideline per example."""
    return (
        f"The answer must be >= {minimum}, The answer must be <= {maximum}. \n"
        + "\n".join(guideline(s) for s in samples)
    )


def formatting_instructions(spec: TypeSpec, rng: random.Random | None = None) -> str:
    """How the model must write a value of ``spec``.

    Raises:
        AnswerParseError: For a kind with no formatting rule.
    """
    rng = rng or random.Random()
    kind = spec.kind

    if spec.is_collection:
        assert spec.element is not None
        return COLLECTION_RULES + formatting_instructions(spec.element, rng)
    if kind is Kind.STRING:
        return STRING_RULES
    if kind is Kind.INT:
        return (
            NUMBER_RULES_HEADER
            + INTEGER_RULES_HEADER
            + reinforce_range(*INT_RANGE, examples(spec, rng))
        )
    if kind in (Kind.FLOAT, Kind.DECIMAL):
        return (
            NUMBER_RULES_HEADER
            + FLOATING_RULES_HEADER
            + reinforce_range(*FLOAT_RANGE, examples(spec, rng))
        )
    if kind is Kind.BOOL:
        return f"{CHOICE_RULES_HEADER} [true, false]. {CHOICE_RULES}"
    if kind is Kind.ENUM:
        return f"\n {CHOICE_RULES_HEADER} [{', '.join(spec.choices())}]. {CHOICE_RULES}"
    if kind is Kind.DATE:
        return DATE_RULES
    if kind is Kind.DATETIME:
        return DATETIME_RULES
    if kind is Kind.TIME:
        return TIME_RULES
    raise AnswerParseError(f"No formatting rule for {spec.label}")


def formatting_message(spec: TypeSpec, rng: random.Random | None = None) -> Message:
    """System message carrying the formatting instructions."""
    return system_message(FORMAT_MESSAGE_HEADER + formatting_instructions(spec, rng))


def _clean(text: str) -> str:
    cleaned = text.strip()
    while len(cleaned) >= 2 and cleaned[0] == "`" and cleaned[-1] == "`":
        cleaned = cleaned[1:-1].strip()
    return cleaned


def _parse_scalar(text: str, spec: TypeSpec) -> Any:
    if spec.kind is Kind.STRING:
        return text
    return coerce(_clean(text), spec)


def parse_answer(text: str, spec: TypeSpec) -> Any:
    """Parse final response text into the declared kind.

    Collections are split on newlines, blank lines skipped, and each line
    parsed as the element kind.

    Raises:
        AnswerParseError: If the text does not parse.
    """
    try:
        if spec.is_collection:
            assert spec.element is not None
            items = [
                _parse_scalar(line.strip(), spec.element)
                for line in text.splitlines()
                if line.strip()
            ]
            return set(items) if spec.kind is Kind.SET else items
        return _parse_scalar(text, spec)
    except CoercionError as exc:
        raise AnswerParseError(f"Cannot parse answer {text!r} as {spec.label}: {exc}") from exc
