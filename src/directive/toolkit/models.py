"""Toolkit data models.

Frozen dataclasses for tool parameters, tool configs, call history and the
CallResult union returned by the dispatcher.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Union

from directive.parsing.coercion import TypeSpec

if TYPE_CHECKING:
    from collections.abc import Iterator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Parameter:
    """One declared parameter of a tool or directive.

    Attributes:
        name: Parameter name.
        spec: Declared kind. Varargs carry a LIST spec over the element kind.
        description: Human-readable description sent to the provider.
        required: False when the parameter has a default.
        vararg: True for ``*args`` parameters.
        default: Default value used when an optional parameter is omitted.
    """

    name: str
    spec: TypeSpec
    description: str = ""
    required: bool = True
    vararg: bool = False
    default: Any = None

    def json_schema(self) -> dict:
        schema = self.spec.json_schema()
        if self.description:
            schema["description"] = self.description
        return schema

    def signature(self) -> str:
        """Python-style parameter declaration (``b: int``, ``*values: float``)."""
        if self.vararg and self.spec.element is not None:
            return f"*{self.name}: {self.spec.element.label}"
        return f"{self.name}: {self.spec.label}"


@dataclass(frozen=True)
class ToolConfig:
    """Registered metadata plus the native binding for one tool.

    Attributes:
        name: Tool name as the model sees it.
        description: When/why to use the tool.
        parameters: Declared parameters in positional order.
        attribute: Attribute name of the method on the implementation.
        returns: Label of the return annotation, for signatures.
    """

    name: str
    description: str
    parameters: tuple[Parameter, ...]
    attribute: str
    returns: str = ""

    def json_schema(self) -> dict:
        """JSON Schema object describing the parameters."""
        return {
            "type": "object",
            "properties": {p.name: p.json_schema() for p in self.parameters},
            "required": [p.name for p in self.parameters if p.required and not p.vararg],
        }

    def to_openai(self) -> dict:
        """Convert to OpenAI function-calling format."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.json_schema(),
            },
        }

    def to_anthropic(self) -> dict:
        """Convert to Anthropic tool-use format."""
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": self.json_schema(),
        }

    def signature(self) -> str:
        """Python-style declaration, e.g. ``def add(a: int, b: int) -> int``."""
        params = ", ".join(p.signature() for p in self.parameters)
        sig = f"def {self.name}({params})"
        if self.returns:
            sig += f" -> {self.returns}"
        return sig


# ---------------------------------------------------------------------------
# Call history
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CallRecord:
    """One executed call: canonical call string, result text, native value."""

    call: str
    text: str
    value: Any = None


class CallHistory:
    """Ordered canonical-call -> result map scoped to one objective."""

    def __init__(self) -> None:
        self._records: dict[str, CallRecord] = {}

    def __contains__(self, call: object) -> bool:
        return call in self._records

    def __getitem__(self, call: str) -> CallRecord:
        return self._records[call]

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[CallRecord]:
        return iter(list(self._records.values()))

    def record(self, call: str, text: str, value: Any = None) -> CallRecord:
        record = CallRecord(call, text, value)
        self._records[call] = record
        return record

    def describe(self) -> str:
        """Bracketed summary of every call and its result."""
        return "[" + ", ".join(f"{r.call} has result {r.text}." for r in self) + "]"


# ---------------------------------------------------------------------------
# Call results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Success:
    """The tool ran and returned ``value`` (rendered as ``text``)."""

    call: str
    text: str
    value: Any = None


@dataclass(frozen=True)
class Recalled:
    """The identical call already ran in this objective; nothing was invoked."""

    call: str
    text: str


@dataclass(frozen=True)
class Error:
    """The tool could not be run or raised."""

    call: str
    cause: BaseException = field(compare=False)

    @property
    def diagnosis(self) -> str:
        return f"{type(self.cause).__name__}: {self.cause}"


CallResult = Union[Success, Recalled, Error]
