"""Provider protocol.

Any object with ``send()``, ``close()`` and ``features`` matching these
signatures can fulfil directives. The built-in OpenAIProvider and
AnthropicProvider implement it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from directive.models.directive import Feature
    from directive.protocols import CommonResponse, Message
    from directive.toolkit.models import ToolConfig


@runtime_checkable
class Provider(Protocol):
    """Pluggable LLM backend."""

    @property
    def features(self) -> frozenset[Feature]:
        """Features this provider can execute."""
        ...

    def send(self, conversation: Sequence[Message], tools: Sequence[ToolConfig]) -> CommonResponse:
        """Send the conversation plus declared tools, return the response."""
        ...

    def close(self) -> None:
        """Release underlying resources."""
        ...
