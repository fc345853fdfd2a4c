"""Call-expression parser.

Turns text such as ``add(multiply(2, 3), "x,y")`` into a name plus
top-level argument substrings, classifies each argument, and renders
resolved calls back to a canonical string for loop detection.
"""

from __future__ import annotations

import datetime as _dt
import enum
import json
import logging
import re
from dataclasses import dataclass
from typing import Any

from directive.exceptions import CallSyntaxError

logger = logging.getLogger(__name__)

_NUMBER = re.compile(r"-?\d+(\.\d+)?")
_CALL_HEAD = re.compile(r"\s*([A-Za-z_]\w*)\s*\(")
_NESTED_CALL = re.compile(r"[A-Za-z_]\w*\s*\(.*\)", re.DOTALL)
_STRING_LITERAL = re.compile(r'"(?:[^"\\]|\\.)*"', re.DOTALL)

_ESCAPES = {"n": "\n", "t": "\t", "r": "\r"}


class ArgumentKind(str, enum.Enum):
    """Syntactic kind of one top-level argument."""

    NUMBER = "number"
    BOOLEAN = "boolean"
    STRING = "string"
    CALL = "call"
    VALUE = "value"

    @property
    def is_literal(self) -> bool:
        return self in (ArgumentKind.NUMBER, ArgumentKind.BOOLEAN, ArgumentKind.STRING)


@dataclass(frozen=True)
class CallExpression:
    """A parsed ``name(arguments)`` expression.

    Attributes:
        name: Function name.
        arguments_text: Raw text between the outer parentheses.
    """

    name: str
    arguments_text: str = ""

    @property
    def arguments(self) -> list[str]:
        """Top-level argument substrings."""
        return split_arguments(self.arguments_text)

    def __str__(self) -> str:
        return f"{self.name}({self.arguments_text})"


def split_arguments(text: str) -> list[str]:
    """Split an argument list on top-level commas.

    Commas inside parentheses or double-quoted literals do not separate
    arguments. Inside a literal a backslash escapes the next character.

    Raises:
        CallSyntaxError: On unbalanced parentheses, an unterminated literal,
            or an empty argument.
    """
    if not text.strip():
        return []

    arguments: list[str] = []
    current: list[str] = []
    depth = 0
    in_literal = False
    escaped = False

    for ch in text:
        if in_literal:
            current.append(ch)
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_literal = False
            continue

        if ch == '"':
            in_literal = True
        elif ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth < 0:
                raise CallSyntaxError(text, "unbalanced ')'")
        elif ch == "," and depth == 0:
            arguments.append("".join(current).strip())
            current = []
            continue
        current.append(ch)

    if in_literal:
        raise CallSyntaxError(text, "unterminated string literal")
    if depth:
        raise CallSyntaxError(text, "unbalanced '('")
    arguments.append("".join(current).strip())

    if any(not argument for argument in arguments):
        raise CallSyntaxError(text, "empty argument")
    return arguments


def classify_argument(text: str) -> ArgumentKind:
    """Classify one top-level argument substring."""
    stripped = text.strip()
    if _NUMBER.fullmatch(stripped):
        return ArgumentKind.NUMBER
    if stripped.lower() in ("true", "false"):
        return ArgumentKind.BOOLEAN
    if _STRING_LITERAL.fullmatch(stripped):
        return ArgumentKind.STRING
    if _NESTED_CALL.fullmatch(stripped):
        return ArgumentKind.CALL
    return ArgumentKind.VALUE


def parse_call(text: str) -> CallExpression:
    """Parse ``name(args)``.

    The closing parenthesis must be the one that matches the opening one
    and must end the expression.

    Raises:
        CallSyntaxError: If the name or either parenthesis is missing or
            misplaced.
    """
    match = _CALL_HEAD.match(text)
    if match is None:
        raise CallSyntaxError(text, "expected name(...)")
    body = text[match.end():].rstrip()
    if not body.endswith(")"):
        raise CallSyntaxError(text, "missing closing parenthesis")
    inner = body[:-1]
    try:
        split_arguments(inner)
    except CallSyntaxError as exc:
        raise CallSyntaxError(text, exc.reason) from None
    return CallExpression(match.group(1), inner.strip())


def unquote(literal: str) -> str:
    """Strip the surrounding quotes of a string literal and resolve escapes."""
    stripped = literal.strip()
    if len(stripped) < 2 or stripped[0] != '"' or stripped[-1] != '"':
        raise CallSyntaxError(literal, "not a string literal")
    out: list[str] = []
    chars = iter(stripped[1:-1])
    for ch in chars:
        if ch == "\\":
            nxt = next(chars, "\\")
            out.append(_ESCAPES.get(nxt, nxt))
        else:
            out.append(ch)
    return "".join(out)


def render_value(value: Any) -> str:
    """Canonical text form of a native argument or result value."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return json.dumps(value, ensure_ascii=False)
    if isinstance(value, enum.Enum):
        return value.name
    if isinstance(value, (_dt.date, _dt.time)):
        return value.isoformat()
    if isinstance(value, (set, frozenset)):
        return ", ".join(sorted(render_value(v) for v in value))
    if isinstance(value, (list, tuple)):
        return ", ".join(render_value(v) for v in value)
    return str(value)


def render_call(name: str, values: list[Any] | tuple[Any, ...]) -> str:
    """Canonical ``name(arg1, arg2)`` form of a resolved call."""
    return f"{name}({', '.join(render_value(v) for v in values)})"
