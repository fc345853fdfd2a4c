"""Text parsing: call expressions, embedded templates and value coercion."""

from directive.parsing.calls import (
    ArgumentKind,
    CallExpression,
    classify_argument,
    parse_call,
    render_call,
    render_value,
    split_arguments,
    unquote,
)
from directive.parsing.coercion import Kind, TypeSpec, coerce, coerce_value, type_spec
from directive.parsing.templates import MARKER, PLACEHOLDER, TemplateString, extract

__all__ = [
    "ArgumentKind",
    "CallExpression",
    "classify_argument",
    "parse_call",
    "render_call",
    "render_value",
    "split_arguments",
    "unquote",
    "Kind",
    "TypeSpec",
    "coerce",
    "coerce_value",
    "type_spec",
    "MARKER",
    "PLACEHOLDER",
    "TemplateString",
    "extract",
]
