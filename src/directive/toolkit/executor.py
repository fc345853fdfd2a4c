"""ToolDispatcher: executes model-requested calls against a live instance.

Provides ``dispatch()`` for structured or positional function calls and
``evaluate()`` for call expressions embedded in text. Both return a
CallResult by value; native exceptions never escape.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from directive.exceptions import ArgumentBindingError, ToolNotFoundError, UnsupportedArgumentError
from directive.parsing.calls import (
    ArgumentKind,
    classify_argument,
    parse_call,
    render_call,
    render_value,
    split_arguments,
    unquote,
)
from directive.parsing.coercion import TypeSpec, coerce, coerce_value
from directive.protocols import FunctionCall
from directive.toolkit.models import CallHistory, CallResult, Error, Recalled, Success
from directive.tracing import TraceContext

if TYPE_CHECKING:
    from directive.toolkit.models import ToolConfig
    from directive.toolkit.registry import ToolRegistry

logger = logging.getLogger(__name__)


class _NestedCallFailed(Exception):
    def __init__(self, error: Error) -> None:
        self.error = error
        super().__init__(error.diagnosis)


def _result_text(value: Any) -> str:
    return value if isinstance(value, str) else render_value(value)


class ToolDispatcher:
    """Dispatches tool calls and records results for loop detection.

    Usage::

        dispatcher = ToolDispatcher(registry, Calculator())
        history = CallHistory()
        result = dispatcher.dispatch(FunctionCall("add", '{"a": 2, "b": 3}'), history)
        if isinstance(result, Success):
            print(result.text)
    """

    def __init__(
        self,
        registry: ToolRegistry,
        instance: object,
        *,
        loop_detection: bool = True,
        trace: TraceContext | None = None,
    ) -> None:
        self._registry = registry
        self._instance = instance
        self.loop_detection = loop_detection
        self._trace = trace or TraceContext()

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    def bind(self, config: ToolConfig, call: FunctionCall, history: CallHistory) -> list[Any]:
        """Convert call arguments to native values, one per parameter.

        A vararg parameter receives a list. Nested call arguments are
        dispatched through ``history`` first.

        Raises:
            ParseError: If the arguments are malformed or do not convert.
        """
        if call.is_json:
            return self._bind_json(config, call)
        return self._bind_positional(config, split_arguments(call.arguments), history)

    def dispatch(self, call: FunctionCall, history: CallHistory) -> CallResult:
        """Run one call unless its canonical form is already in ``history``."""
        try:
            config = self._registry.resolve(call.name)
        except ToolNotFoundError as exc:
            return Error(str(call), exc)
        try:
            values = self.bind(config, call, history)
        except _NestedCallFailed as exc:
            return Error(str(call), exc.error.cause)

        canonical = render_call(config.name, values)
        if self.loop_detection and canonical in history:
            self._trace.debug("dispatcher", "recalled %s", canonical)
            return Recalled(canonical, history[canonical].text)

        args: list[Any] = []
        for param, value in zip(config.parameters, values):
            if param.vararg:
                args.extend(value)
            else:
                args.append(value)

        try:
            value = getattr(self._instance, config.attribute)(*args)
        except Exception as exc:
            logger.debug("Tool %s failed: %s", canonical, exc, exc_info=True)
            return Error(canonical, exc)

        text = _result_text(value)
        history.record(canonical, text, value)
        self._trace.debug("dispatcher", "%s -> %s", canonical, text)
        return Success(canonical, text, value)

    def evaluate(self, expression: str, history: CallHistory) -> CallResult:
        """Parse a call expression and dispatch it.

        Raises:
            CallSyntaxError: If the expression is not a well-formed call.
        """
        parsed = parse_call(expression)
        return self.dispatch(FunctionCall(parsed.name, parsed.arguments_text), history)

    # ------------------------------------------------------------------
    # Binding
    # ------------------------------------------------------------------

    def _bind_json(self, config: ToolConfig, call: FunctionCall) -> list[Any]:
        try:
            supplied = call.json_arguments()
        except ValueError as exc:
            raise ArgumentBindingError(f"{config.name}: arguments are not a JSON object ({exc})") from None

        known = {p.name for p in config.parameters}
        unknown = sorted(set(supplied) - known)
        if unknown:
            raise ArgumentBindingError(f"{config.name}: unexpected argument(s) {unknown}")

        values: list[Any] = []
        for param in config.parameters:
            if param.name in supplied:
                values.append(coerce_value(supplied[param.name], param.spec))
            elif param.vararg:
                values.append([])
            elif not param.required:
                values.append(param.default)
            else:
                raise ArgumentBindingError(f"{config.name}: missing argument {param.name!r}")
        return values

    def _bind_positional(
        self, config: ToolConfig, arguments: list[str], history: CallHistory
    ) -> list[Any]:
        values: list[Any] = []
        consumed = 0
        for index, param in enumerate(config.parameters):
            if param.vararg:
                element = param.spec.element
                assert element is not None
                values.append([self._resolve(a, element, history) for a in arguments[index:]])
                consumed = len(arguments)
                break
            if index < len(arguments):
                values.append(self._resolve(arguments[index], param.spec, history))
                consumed = index + 1
            elif not param.required:
                values.append(param.default)
            else:
                raise ArgumentBindingError(f"{config.name}: missing argument {param.name!r}")

        if consumed < len(arguments):
            raise ArgumentBindingError(
                f"{config.name} takes {len(config.parameters)} argument(s) "
                f"but {len(arguments)} were given"
            )
        return values

    def _resolve(self, argument: str, spec: TypeSpec, history: CallHistory) -> Any:
        kind = classify_argument(argument)
        if kind is ArgumentKind.STRING:
            return coerce(unquote(argument), spec)
        if kind.is_literal:
            return coerce(argument.strip(), spec)
        if kind is ArgumentKind.CALL:
            result = self.evaluate(argument, history)
            if isinstance(result, Error):
                raise _NestedCallFailed(result)
            value = result.value if isinstance(result, Success) else history[result.call].value
            return coerce_value(value, spec)
        raise UnsupportedArgumentError(argument)
