"""Directive exception hierarchy.

All directive-specific exceptions inherit from DirectiveError.
"""

from __future__ import annotations


class DirectiveError(Exception):
    """Base exception for all directive errors."""


# ---------------------------------------------------------------------------
# Setup-time errors
# ---------------------------------------------------------------------------


class SetupError(DirectiveError):
    """Raised when directive or tool metadata is malformed.

    Setup errors are fatal and surface at registration time, before any
    provider request is made.
    """


class UnsupportedTypeError(SetupError):
    """Raised when an annotation has no registered conversion rule."""

    def __init__(self, annotation: object, context: str = "") -> None:
        self.annotation = annotation
        label = getattr(annotation, "__name__", None) or repr(annotation)
        msg = f"Unsupported type: {label}"
        if context:
            msg += f" ({context})"
        super().__init__(msg)


# ---------------------------------------------------------------------------
# Per-call parse errors
# ---------------------------------------------------------------------------


class ParseError(DirectiveError):
    """Base for malformed model output that aborts the current objective."""


class CallSyntaxError(ParseError):
    """Raised when a call expression is syntactically malformed."""

    def __init__(self, expression: str, reason: str) -> None:
        self.expression = expression
        self.reason = reason
        super().__init__(f"Malformed call expression {expression!r}: {reason}")


class UnsupportedArgumentError(ParseError):
    """Raised for bare identifiers or expressions that cannot be evaluated."""

    def __init__(self, argument: str) -> None:
        self.argument = argument
        super().__init__(
            f"Cannot evaluate argument {argument!r}: only literals and "
            f"function calls are supported"
        )


class ArgumentBindingError(ParseError):
    """Raised when call arguments do not fit the tool's parameter list."""


class CoercionError(ParseError):
    """Raised when a string cannot be converted to the target kind."""

    def __init__(self, value: object, kind: str, reason: str = "") -> None:
        self.value = value
        self.kind = kind
        msg = f"Cannot convert {value!r} to {kind}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class TemplateSyntaxError(ParseError):
    """Raised when template braces are unmatched at end of scan."""


class TemplateFillError(ParseError):
    """Raised when fill() receives a different number of results than placeholders."""

    def __init__(self, expected: int, received: int) -> None:
        self.expected = expected
        self.received = received
        super().__init__(
            f"Template has {expected} placeholder(s) but {received} result(s) "
            f"were supplied"
        )


class AnswerParseError(ParseError):
    """Raised when final response text does not parse into the return type."""


# ---------------------------------------------------------------------------
# Tool errors
# ---------------------------------------------------------------------------


class ToolNotFoundError(DirectiveError):
    """Raised when a tool name lookup fails."""

    def __init__(self, tool_name: str) -> None:
        self.tool_name = tool_name
        super().__init__(f"Tool not found: {tool_name}")


class ToolExecutionError(DirectiveError):
    """Raised when native tool code fails and no retry round is available."""

    def __init__(self, call: str, cause: BaseException) -> None:
        self.call = call
        self.cause = cause
        super().__init__(f"Tool call {call} failed: {type(cause).__name__}: {cause}")


# ---------------------------------------------------------------------------
# Exchange errors
# ---------------------------------------------------------------------------


class RetryExhaustedError(DirectiveError):
    """Consecutive retry rounds (recalled or failed tool calls) ran out."""

    def __init__(self, attempts: int, last_diagnosis: str) -> None:
        self.attempts = attempts
        self.last_diagnosis = last_diagnosis
        super().__init__(
            f"All {attempts} retry rounds failed. Last diagnosis: {last_diagnosis}"
        )


class RoundLimitExceededError(DirectiveError):
    """The provider was still requesting tools after the round limit."""

    def __init__(self, max_rounds: int) -> None:
        self.max_rounds = max_rounds
        super().__init__(
            f"Exchange did not complete within {max_rounds} provider round(s)"
        )


class ObjectiveCancelledError(DirectiveError):
    """Raised when an objective is cancelled between rounds."""


class ConversationIndexError(DirectiveError):
    """Raised when switching to a conversation index that does not exist."""

    def __init__(self, index: int, size: int) -> None:
        self.index = index
        self.size = size
        super().__init__(
            f"Invalid conversation index {index} (have {size} conversation(s))"
        )


class DirectiveNotFoundError(DirectiveError):
    """Raised when a directive name lookup fails."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Directive not found: {name}")
