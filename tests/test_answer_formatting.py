"""Tests for answer formatting instructions and the answer parser.

Every example the instructions show must parse back with parse_answer.
"""

from __future__ import annotations

import datetime as dt
import enum
import random
import re
import sys

import pytest

from directive import Role
from directive.answer.formatting import (
    COLLECTION_RULES,
    DATE_RULES,
    FORMAT_MESSAGE_HEADER,
    STRING_RULES,
    examples,
    formatting_instructions,
    formatting_message,
    parse_answer,
)
from directive.exceptions import AnswerParseError
from directive.parsing.coercion import type_spec


class Planet(enum.Enum):
    MERCURY = 1
    VENUS = 2
    EARTH = 3


_SHOWN = re.compile(r"Write instead ONLY `([^`]*)`")
_CHOICES = re.compile(r"one of \[([^\]]*)\]")


def shown_examples(instructions: str) -> list[str]:
    return _SHOWN.findall(instructions)


def shown_choices(instructions: str) -> list[str]:
    match = _CHOICES.search(instructions)
    assert match is not None
    return [c.strip() for c in match.group(1).split(",")]


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


# ---------------------------------------------------------------------------
# Instructions
# ---------------------------------------------------------------------------


class TestInstructions:
    def test_int_examples_are_distinct_whole_numbers(self, rng):
        samples = examples(type_spec(int), rng)
        assert len(samples) == 5
        assert len(set(samples)) == 5
        assert all(-1000 <= int(s) <= 1000 for s in samples)

    def test_float_examples_have_five_decimals(self, rng):
        for sample in examples(type_spec(float), rng):
            assert re.fullmatch(r"0\.\d{5}", sample)

    def test_non_numeric_kinds_have_no_examples(self, rng):
        assert examples(type_spec(str), rng) == []

    def test_int_instructions_mention_range(self, rng):
        text = formatting_instructions(type_spec(int), rng)
        assert "Integer Only" in text
        assert f">= {-(2**63)}" in text
        assert len(shown_examples(text)) == 5

    def test_float_instructions(self, rng):
        text = formatting_instructions(type_spec(float), rng)
        assert "Floating-point Only" in text
        assert f">= {-sys.float_info.max}," in text
        assert f"<= {sys.float_info.max}." in text
        assert parse_answer("0", type_spec(float)) == 0.0
        assert parse_answer("-2.5", type_spec(float)) == -2.5

    def test_bool_choices(self):
        assert shown_choices(formatting_instructions(type_spec(bool))) == ["true", "false"]

    def test_enum_choices(self):
        text = formatting_instructions(type_spec(Planet))
        assert shown_choices(text) == ["MERCURY", "VENUS", "EARTH"]
        assert "Choose One" in text

    def test_string_and_date(self):
        assert formatting_instructions(type_spec(str)) == STRING_RULES
        assert formatting_instructions(type_spec(dt.date)) == DATE_RULES

    def test_collection_wraps_element_rules(self):
        text = formatting_instructions(type_spec(list[dt.date]))
        assert text == COLLECTION_RULES + DATE_RULES

    def test_seeded_instructions_are_reproducible(self):
        a = formatting_instructions(type_spec(int), random.Random(7))
        b = formatting_instructions(type_spec(int), random.Random(7))
        assert a == b

    def test_formatting_message(self, rng):
        msg = formatting_message(type_spec(bool), rng)
        assert msg.role is Role.SYSTEM
        assert msg.content.startswith(FORMAT_MESSAGE_HEADER)


# ---------------------------------------------------------------------------
# Matched pairs: shown examples parse back
# ---------------------------------------------------------------------------


class TestMatchedPair:
    def test_int(self, rng):
        spec = type_spec(int)
        for sample in shown_examples(formatting_instructions(spec, rng)):
            assert parse_answer(sample, spec) == int(sample)

    def test_float(self, rng):
        spec = type_spec(float)
        for sample in shown_examples(formatting_instructions(spec, rng)):
            assert parse_answer(sample, spec) == pytest.approx(float(sample))

    def test_bool(self):
        spec = type_spec(bool)
        parsed = [parse_answer(c, spec) for c in shown_choices(formatting_instructions(spec))]
        assert parsed == [True, False]

    def test_enum(self):
        spec = type_spec(Planet)
        parsed = [parse_answer(c, spec) for c in shown_choices(formatting_instructions(spec))]
        assert parsed == list(Planet)

    def test_date_in_shown_format(self):
        assert "yyyy-MM-dd" in formatting_instructions(type_spec(dt.date))
        assert parse_answer("2024-01-31", type_spec(dt.date)) == dt.date(2024, 1, 31)

    def test_list_of_int(self, rng):
        spec = type_spec(list[int])
        samples = shown_examples(formatting_instructions(spec, rng))
        assert parse_answer("\n".join(samples), spec) == [int(s) for s in samples]


# ---------------------------------------------------------------------------
# parse_answer
# ---------------------------------------------------------------------------


class TestParseAnswer:
    def test_boolean_true(self):
        assert parse_answer("true", type_spec(bool)) is True

    def test_strips_whitespace_and_backticks(self):
        assert parse_answer("  `42`\n", type_spec(int)) == 42
        assert parse_answer("``VENUS``", type_spec(Planet)) is Planet.VENUS

    def test_string_is_verbatim(self):
        assert parse_answer(" Hello `world` ", type_spec(str)) == " Hello `world` "

    def test_collection_lines(self):
        assert parse_answer("1\n\n `2`\n3\n", type_spec(list[int])) == [1, 2, 3]
        assert parse_answer("a\nb\na", type_spec(set[str])) == {"a", "b"}

    def test_unparseable_int(self):
        with pytest.raises(AnswerParseError, match="as int"):
            parse_answer("The result is 5", type_spec(int))

    def test_unparseable_bool(self):
        with pytest.raises(AnswerParseError):
            parse_answer("maybe", type_spec(bool))

    def test_unparseable_collection_element(self):
        with pytest.raises(AnswerParseError):
            parse_answer("1\nfive", type_spec(list[int]))
