"""Protocol-level value types for directive.

Defines the conversation primitives shared by every layer: Role, Message,
FunctionCall and CommonResponse. Provider adapters translate these to and
from their wire formats; the engine never sees provider JSON.

No provider or HTTP imports allowed in this module -- pure domain types.
"""

from __future__ import annotations

import enum
import json as _json
from dataclasses import dataclass, field, replace
from typing import Any


class Role(str, enum.Enum):
    """Author of a message. Declaration order is the fixed-message rank."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    FUNCTION = "function"

    @property
    def rank(self) -> int:
        return list(Role).index(self)


@dataclass(frozen=True)
class FunctionCall:
    """A tool invocation requested by the model.

    ``arguments`` is kept as text: either a JSON object string (structured
    tool calling) or a positional argument list taken from a call
    expression such as ``add(2, 3)``.
    """

    name: str
    arguments: str = ""
    id: str | None = None

    @property
    def is_json(self) -> bool:
        """Whether the arguments are a JSON object rather than positional text."""
        return self.arguments.lstrip().startswith("{")

    def json_arguments(self) -> dict[str, Any]:
        """Decode JSON-object arguments.

        Raises:
            ValueError: If the arguments are not a JSON object.
        """
        text = self.arguments.strip() or "{}"
        decoded = _json.loads(text)
        if not isinstance(decoded, dict):
            raise ValueError(f"Expected a JSON object, got {type(decoded).__name__}")
        return decoded

    @classmethod
    def from_openai(cls, tc: dict) -> FunctionCall:
        """Parse from an OpenAI/compatible ``tool_calls`` entry."""
        raw_args = tc["function"].get("arguments", "")
        if not isinstance(raw_args, str):
            raw_args = _json.dumps(raw_args)
        return cls(name=tc["function"]["name"], arguments=raw_args, id=tc.get("id"))

    @classmethod
    def from_anthropic(cls, block: dict) -> FunctionCall:
        """Parse from an Anthropic ``tool_use`` content block."""
        return cls(
            name=block["name"],
            arguments=_json.dumps(block.get("input", {})),
            id=block.get("id"),
        )

    def to_openai(self) -> dict:
        """Serialize to OpenAI wire format."""
        return {
            "id": self.id,
            "type": "function",
            "function": {"name": self.name, "arguments": self.arguments or "{}"},
        }

    def __str__(self) -> str:
        return f"{self.name}({self.arguments})"


@dataclass(frozen=True)
class Message:
    """A single message in a conversation. Immutable once created."""

    role: Role
    content: str
    name: str | None = None
    function_calls: tuple[FunctionCall, ...] = ()
    call_id: str | None = None

    def with_content(self, content: str) -> Message:
        """Return a copy with different content."""
        return replace(self, content=content)

    def to_dict(self) -> dict:
        """Plain dict form, used for logging and pretty-printing."""
        d: dict = {"role": self.role.value, "content": self.content}
        if self.name is not None:
            d["name"] = self.name
        if self.function_calls:
            d["function_calls"] = [str(fc) for fc in self.function_calls]
        if self.call_id is not None:
            d["call_id"] = self.call_id
        return d


def system_message(content: object, name: str | None = None) -> Message:
    """Wrap any object as a system message."""
    return Message(Role.SYSTEM, str(content), name)


def user_message(content: object, name: str | None = None) -> Message:
    """Wrap any object as a user message."""
    return Message(Role.USER, str(content), name)


def assistant_message(content: object, name: str | None = None) -> Message:
    """Wrap any object as an assistant message."""
    return Message(Role.ASSISTANT, str(content), name)


def function_message(result: str, name: str, call_id: str | None = None) -> Message:
    """Message carrying a tool result back to the model."""
    return Message(Role.FUNCTION, result, name, call_id=call_id)


@dataclass(frozen=True)
class CommonResponse:
    """Provider-agnostic response.

    Attributes:
        text: Assistant text (may be empty when only tools were requested).
        requested_calls: Native function calls requested by the model.
        raw: The provider's decoded response, kept for debugging.
    """

    text: str = ""
    requested_calls: tuple[FunctionCall, ...] = ()
    raw: dict = field(default_factory=dict, compare=False, repr=False)

    def to_message(self) -> Message:
        """Assistant message recording this response in the conversation."""
        return Message(Role.ASSISTANT, self.text, function_calls=self.requested_calls)
