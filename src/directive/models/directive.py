"""Directives, objectives and the directive registry.

A Directive is the compiled, immutable description of one interface
method. An Objective binds a Directive to one call's arguments and owns
the per-call state (call history, pinned conversation, cancel flag).

Interfaces are plain classes whose methods declare ``Answer[T]``::

    class Math:
        @from_system("You are a calculator.")
        @parameters("the arithmetic question")
        def solve(self, question: str) -> Answer[int]: ...

    registry = DirectiveRegistry()
    registry.add_interface(Math)
"""

from __future__ import annotations

import enum
import inspect
import logging
import random
import threading
import typing
import uuid
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable

from directive.answer.answer import Answer
from directive.answer.formatting import formatting_message, parse_answer
from directive.exceptions import DirectiveNotFoundError, SetupError
from directive.messenger import MessageFilter
from directive.parsing.calls import render_value
from directive.parsing.coercion import TypeSpec, type_spec
from directive.protocols import Message, system_message, user_message
from directive.toolkit.models import CallHistory, Parameter
from directive.toolkit.registry import build_parameters

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Sequence

logger = logging.getLogger(__name__)

_META_ATTR = "__directive_meta__"


class Feature(str, enum.Enum):
    """Provider capability a directive needs."""

    CHAT = "chat"
    EMBEDDING = "embedding"
    MODERATION = "moderation"


# ---------------------------------------------------------------------------
# Decorators
# ---------------------------------------------------------------------------


@dataclass
class _DirectiveMeta:
    messages: list[Message] = field(default_factory=list)
    feature: Feature = Feature.CHAT
    descriptions: tuple[str, ...] = ()


def _meta(func: Callable) -> _DirectiveMeta:
    meta = func.__dict__.get(_META_ATTR)
    if meta is None:
        meta = _DirectiveMeta()
        setattr(func, _META_ATTR, meta)
    return meta


def from_system(text: str) -> Callable[[Callable], Callable]:
    """Attach a fixed system message to a directive method."""

    def decorate(func: Callable) -> Callable:
        # Decorators apply bottom-up; prepend so messages keep source order.
        _meta(func).messages.insert(0, system_message(text))
        return func

    return decorate


def from_user(text: str) -> Callable[[Callable], Callable]:
    """Attach a fixed user message to a directive method."""

    def decorate(func: Callable) -> Callable:
        _meta(func).messages.insert(0, user_message(text))
        return func

    return decorate


def use(feature: Feature) -> Callable[[Callable], Callable]:
    """Declare which provider feature a directive needs (default CHAT)."""

    def decorate(func: Callable) -> Callable:
        _meta(func).feature = feature
        return func

    return decorate


def parameters(*descriptions: str) -> Callable[[Callable], Callable]:
    """Describe a directive's parameters, in positional order."""

    def decorate(func: Callable) -> Callable:
        _meta(func).descriptions = descriptions
        return func

    return decorate


# ---------------------------------------------------------------------------
# Directive / Objective
# ---------------------------------------------------------------------------


def _display(value: Any) -> str:
    return value if isinstance(value, str) else render_value(value)


@dataclass(frozen=True)
class Directive:
    """Compiled description of one callable operation.

    Attributes:
        name: Symbolic operation name.
        parameters: Declared parameters, in positional order.
        returns: Kind of the answer value.
        messages: Fixed system/user messages.
        feature: Provider capability needed.
    """

    name: str
    parameters: tuple[Parameter, ...]
    returns: TypeSpec
    messages: tuple[Message, ...] = ()
    feature: Feature = Feature.CHAT

    def fixed_messages(self) -> list[Message]:
        """Fixed messages ordered by role (system first), stable within a role."""
        return sorted(self.messages, key=lambda m: m.role.rank)

    def argument_messages(self, arguments: Sequence[Any], primer: bool = True) -> list[Message]:
        """One user message per argument.

        With the primer each argument is introduced by name (or by its
        description, when one is set); without it the raw value is sent.
        """
        out: list[Message] = []
        for param, value in zip(self.parameters, arguments):
            if not primer:
                out.append(user_message(_display(value)))
                continue
            label = param.description or param.name
            out.append(
                user_message(
                    f"Your task is to answer question in {label}. {label}=`{_display(value)}`"
                )
            )
        return out

    def bind(self, *args: Any) -> Objective:
        """Bind call arguments, producing a fresh Objective.

        Raises:
            TypeError: If the arguments do not fit the parameter list.
        """
        values: list[Any] = []
        for index, param in enumerate(self.parameters):
            if param.vararg:
                values.append(list(args[index:]))
                break
            if index < len(args):
                values.append(args[index])
            elif not param.required:
                values.append(param.default)
            else:
                raise TypeError(f"{self.name}() missing argument {param.name!r}")
        else:
            if len(args) > len(self.parameters):
                raise TypeError(
                    f"{self.name}() takes {len(self.parameters)} argument(s) "
                    f"but {len(args)} were given"
                )
        return Objective(self, tuple(values))


@dataclass
class Objective:
    """A Directive bound to one invocation.

    Attributes:
        directive: The compiled directive.
        arguments: One value per parameter (a list for varargs).
        id: Unique id, used in logs.
        history: Calls executed while fulfilling this objective.
        conversation_index: Conversation pinned at submission; None means
            the store's current conversation at run time.
        cancel_event: Set to stop the objective before its next round.
    """

    directive: Directive
    arguments: tuple[Any, ...]
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    history: CallHistory = field(default_factory=CallHistory)
    conversation_index: int | None = None
    cancel_event: threading.Event = field(default_factory=threading.Event)

    @property
    def name(self) -> str:
        return self.directive.name

    def messages(
        self,
        strategy_message: Message | None = None,
        *,
        use_format_message: bool = True,
        user_message_primer: bool = True,
        message_filter: MessageFilter = MessageFilter.NONE,
        rng: random.Random | None = None,
    ) -> list[Message]:
        """Setup messages stored before the first provider round."""
        out = self.directive.fixed_messages()
        if use_format_message:
            out.append(formatting_message(self.directive.returns, rng))
        if strategy_message is not None:
            out.append(strategy_message)
        out.extend(self.directive.argument_messages(self.arguments, user_message_primer))
        return [m for m in out if message_filter.accepts(m)]

    def parse(self, text: str) -> Any:
        """Parse final text into the declared answer kind."""
        return parse_answer(text, self.directive.returns)


# ---------------------------------------------------------------------------
# Compilation
# ---------------------------------------------------------------------------


def compile_directive(func: Callable, name: str | None = None, *, method: bool = True) -> Directive:
    """Compile a method (or, with ``method=False``, a plain function).

    Raises:
        SetupError: If the return annotation is not ``Answer[T]`` with a
            supported ``T``, or a parameter is unsupported.
    """
    qualname = getattr(func, "__qualname__", repr(func))
    try:
        hints = typing.get_type_hints(func)
    except (NameError, TypeError) as exc:
        raise SetupError(f"Cannot resolve annotations of {qualname}: {exc}") from exc

    returns = hints.get("return", inspect.Signature.empty)
    args = typing.get_args(returns)
    if typing.get_origin(returns) is not Answer or len(args) != 1:
        raise SetupError(f"{qualname} must return Answer[T], got {returns!r}")

    meta: _DirectiveMeta = func.__dict__.get(_META_ATTR) or _DirectiveMeta()
    params, _ = build_parameters(func, meta.descriptions, skip_first=method)
    return Directive(
        name=name or func.__name__,
        parameters=params,
        returns=type_spec(args[0]),
        messages=tuple(meta.messages),
        feature=meta.feature,
    )


class DirectiveRegistry:
    """Explicit name -> Directive map, populated at startup.

    Usage::

        registry = DirectiveRegistry()
        registry.add_interface(Chat)
        registry.add(Directive("is_even", (Parameter("n", INT),), BOOL))
        directive = registry.get("chat")
    """

    def __init__(self, directives: Iterable[Directive] = ()) -> None:
        self._directives: dict[str, Directive] = {}
        for d in directives:
            self.add(d)

    def add(self, directive: Directive) -> Directive:
        if directive.name in self._directives:
            raise SetupError(f"Duplicate directive name: {directive.name}")
        self._directives[directive.name] = directive
        return directive

    def add_function(self, func: Callable, name: str | None = None) -> Directive:
        return self.add(compile_directive(func, name, method=False))

    def add_interface(self, interface: type) -> list[Directive]:
        """Compile every public method of ``interface``.

        Raises:
            SetupError: If any method is not a valid directive.
        """
        added = [
            self.add(compile_directive(member))
            for attr, member in inspect.getmembers(interface, inspect.isfunction)
            if not attr.startswith("_")
        ]
        logger.debug("Compiled %d directive(s) from %s", len(added), interface.__name__)
        return added

    def get(self, name: str) -> Directive:
        try:
            return self._directives[name]
        except KeyError:
            raise DirectiveNotFoundError(name) from None

    def names(self) -> list[str]:
        return list(self._directives)

    def __contains__(self, name: object) -> bool:
        return name in self._directives

    def __len__(self) -> int:
        return len(self._directives)

    def __iter__(self) -> Iterator[Directive]:
        return iter(list(self._directives.values()))
