"""Tests for embedded template extraction (directive.parsing.templates)."""

from __future__ import annotations

import pytest
from hypothesis import given
from hypothesis import strategies as st

from directive.exceptions import TemplateFillError, TemplateSyntaxError
from directive.parsing.templates import MARKER, PLACEHOLDER, TemplateString, extract

from tests.strategies import call_expression, plain_text


def wrap(expression: str) -> str:
    return MARKER + "{" + expression + "}"


class TestExtract:
    def test_single_template(self):
        result = extract("The answer is " + wrap("add(2, 3)"))
        assert result.expressions == ("add(2, 3)",)
        assert result.template == "The answer is " + PLACEHOLDER

    def test_no_templates(self):
        result = extract("nothing to see")
        assert result.expressions == ()
        assert result.template == "nothing to see"

    def test_plain_braces_are_text(self):
        result = extract("a {b} c")
        assert result.expressions == ()
        assert result.template == "a {b} c"

    def test_multiple_templates(self):
        text = wrap("add(1, 2)") + " and " + wrap("multiply(3, 4)") + "."
        result = extract(text)
        assert result.expressions == ("add(1, 2)", "multiply(3, 4)")
        assert result.template == PLACEHOLDER + " and " + PLACEHOLDER + "."

    def test_nested_braces(self):
        result = extract(wrap("f({a: {b}})") + "!")
        assert result.expressions == ("f({a: {b}})",)

    def test_braces_inside_quotes_do_not_count(self):
        result = extract(wrap('echo("}")') + " done")
        assert result.expressions == ('echo("}")',)
        assert result.template == PLACEHOLDER + " done"

    def test_escape_inside_template_is_kept(self):
        result = extract(wrap(r'echo("a \" b")'))
        assert result.expressions == (r'echo("a \" b")',)

    def test_escaped_close_inside_template(self):
        result = extract(wrap(r"f(\})"))
        assert result.expressions == (r"f(\})",)

    def test_escape_outside_consumed_before_structural(self):
        result = extract(r"literal \{ and \}")
        assert result.template == "literal { and }"

    def test_escaped_marker_is_not_a_template(self):
        result = extract("\\" + MARKER + "{x}")
        assert result.expressions == ()
        assert result.template == MARKER + "{x}"

    def test_escape_outside_before_ordinary_char_is_literal(self):
        result = extract(r"C:\path")
        assert result.template == r"C:\path"

    def test_empty_template_dropped(self):
        result = extract("a " + wrap("") + "b")
        assert result.expressions == ()
        assert result.template == "a b"

    def test_unmatched_raises(self):
        with pytest.raises(TemplateSyntaxError):
            extract("oops " + MARKER + "{add(2, 3)")

    def test_unmatched_nested_raises(self):
        with pytest.raises(TemplateSyntaxError):
            extract(MARKER + "{f({a}")


class TestFill:
    def test_fill(self):
        result = extract("The answer is " + wrap("add(2, 3)"))
        assert result.fill(["5"]) == "The answer is 5"

    def test_fill_multiple_in_order(self):
        result = extract(wrap("a()") + "-" + wrap("b()"))
        assert result.fill(["1", "2"]) == "1-2"

    def test_fill_without_templates(self):
        assert extract("plain").fill([]) == "plain"

    def test_fill_count_mismatch(self):
        result = extract(wrap("a()") + wrap("b()"))
        with pytest.raises(TemplateFillError) as exc_info:
            result.fill(["1"])
        assert exc_info.value.expected == 2
        assert exc_info.value.received == 1

    def test_segments_must_match_expressions(self):
        with pytest.raises(ValueError):
            TemplateString(("a()",), ("only one",))


@given(
    st.lists(st.tuples(plain_text, call_expression), max_size=4),
    plain_text,
)
def test_extract_recovers_wrapped_expressions(pairs, tail):
    text = "".join(prefix + wrap(expr) for prefix, expr in pairs) + tail
    result = extract(text)
    assert list(result.expressions) == [expr for _, expr in pairs]
    assert result.fill(list(result.expressions)) == "".join(
        prefix + expr for prefix, expr in pairs
    ) + tail
