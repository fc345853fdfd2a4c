"""Template extraction for call expressions embedded in free text.

A template opens with a zero-width space followed by ``{`` and closes at
the matching ``}``::

    "The answer is \\u200b{add(2, 3)}"  ->  expressions ["add(2, 3)"]
                                          template "The answer is \\x1a"
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from directive.exceptions import TemplateFillError, TemplateSyntaxError

logger = logging.getLogger(__name__)

MARKER = "\u200b"
PLACEHOLDER = "\u001a"


@dataclass(frozen=True)
class TemplateString:
    """Extracted expressions plus the surrounding text.

    ``segments`` always holds ``len(expressions) + 1`` pieces of literal
    text; expression ``i`` sits between segment ``i`` and segment ``i + 1``.
    """

    expressions: tuple[str, ...]
    segments: tuple[str, ...]

    def __post_init__(self) -> None:
        if len(self.segments) != len(self.expressions) + 1:
            raise ValueError("segments must outnumber expressions by exactly one")

    @property
    def template(self) -> str:
        """Text with each expression replaced by the placeholder character."""
        return PLACEHOLDER.join(self.segments)

    def fill(self, results: list[str] | tuple[str, ...]) -> str:
        """Substitute results for placeholders, left to right.

        Raises:
            TemplateFillError: If the result count differs from the number
                of placeholders.
        """
        if len(results) != len(self.expressions):
            raise TemplateFillError(len(self.expressions), len(results))
        parts = [self.segments[0]]
        for result, segment in zip(results, self.segments[1:]):
            parts.append(str(result))
            parts.append(segment)
        return "".join(parts)


def extract(
    text: str,
    start: str = MARKER,
    open: str = "{",
    close: str = "}",
    escape: str = "\\",
) -> TemplateString:
    """Scan ``text`` for templates.

    Inside a template, braces nest except within double-quoted spans and an
    escaped character is kept together with its escape so string literals
    reach the call parser intact. Outside, an escape in front of a
    structural character is consumed; any other escape is literal text.
    Empty templates are dropped.

    Raises:
        TemplateSyntaxError: If a template is still open at end of text.
    """
    opener = start + open
    structural = {start, open, close, escape}
    expressions: list[str] = []
    segments: list[str] = []
    literal: list[str] = []
    i = 0
    n = len(text)

    while i < n:
        ch = text[i]
        if ch == escape and i + 1 < n and text[i + 1] in structural:
            literal.append(text[i + 1])
            i += 2
            continue
        if not text.startswith(opener, i):
            literal.append(ch)
            i += 1
            continue

        j = i + len(opener)
        depth = 1
        in_quote = False
        expression: list[str] = []
        while j < n:
            c = text[j]
            if c == escape and j + 1 < n:
                expression.append(text[j : j + 2])
                j += 2
                continue
            if c == '"':
                in_quote = not in_quote
            elif not in_quote:
                if c == open:
                    depth += 1
                elif c == close:
                    depth -= 1
                    if depth == 0:
                        break
            expression.append(c)
            j += 1
        else:
            raise TemplateSyntaxError(
                f"Unmatched {open!r} in template starting at position {i}"
            )

        body = "".join(expression)
        if body:
            segments.append("".join(literal))
            expressions.append(body)
            literal = []
        i = j + 1

    segments.append("".join(literal))
    return TemplateString(tuple(expressions), tuple(segments))
