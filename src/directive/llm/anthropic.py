"""Anthropic messages provider."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import httpx

from directive.llm.config import ANTHROPIC_DEFAULT_URL, ProviderSettings
from directive.llm.errors import ProviderResponseError
from directive.llm.transport import HttpTransport
from directive.models.directive import Feature
from directive.protocols import CommonResponse, FunctionCall, Role

if TYPE_CHECKING:
    from collections.abc import Sequence

    from directive.protocols import Message
    from directive.toolkit.models import ToolConfig

logger = logging.getLogger(__name__)

ANTHROPIC_VERSION = "2023-06-01"
DEFAULT_MODEL = "claude-3-5-haiku-latest"
DEFAULT_MAX_TOKENS = 1024


def _tool_input(call: FunctionCall) -> dict:
    try:
        return call.json_arguments()
    except ValueError:
        return {"arguments": call.arguments}


def to_anthropic_messages(conversation: Sequence[Message]) -> tuple[str, list[dict]]:
    """Split a conversation into the system prompt and alternating turns.

    Leading system messages form the system prompt; later ones become user
    text. Tool results become ``tool_result`` blocks. Adjacent turns of the
    same role are merged, and ``tool_use`` blocks without a result are
    dropped.
    """
    answered = {m.call_id for m in conversation if m.role is Role.FUNCTION and m.call_id}
    system: list[str] = []
    turns: list[dict] = []
    leading = True

    for message in conversation:
        if message.role is Role.SYSTEM and leading:
            system.append(message.content)
            continue
        leading = False

        blocks: list[dict] = []
        if message.role is Role.FUNCTION:
            role = "user"
            if message.call_id:
                blocks.append(
                    {"type": "tool_result", "tool_use_id": message.call_id, "content": message.content}
                )
            else:
                blocks.append({"type": "text", "text": f"{message.name} returned {message.content}"})
        elif message.role is Role.ASSISTANT:
            role = "assistant"
            if message.content:
                blocks.append({"type": "text", "text": message.content})
            for call in message.function_calls:
                if call.id in answered:
                    blocks.append(
                        {"type": "tool_use", "id": call.id, "name": call.name, "input": _tool_input(call)}
                    )
        else:
            role = "user"
            if message.content:
                blocks.append({"type": "text", "text": message.content})

        if not blocks:
            continue
        if turns and turns[-1]["role"] == role:
            turns[-1]["content"].extend(blocks)
        else:
            turns.append({"role": role, "content": blocks})

    return "\n\n".join(system), turns


def parse_anthropic_response(data: dict) -> CommonResponse:
    """Extract text and ``tool_use`` calls from a messages response.

    Raises:
        ProviderResponseError: If the response format is unexpected.
    """
    content = data.get("content")
    if not isinstance(content, list):
        raise ProviderResponseError(
            f"Unexpected response format: missing 'content' list. Response: {data}"
        )
    texts = [b.get("text", "") for b in content if b.get("type") == "text"]
    calls = tuple(FunctionCall.from_anthropic(b) for b in content if b.get("type") == "tool_use")
    return CommonResponse(text="".join(texts), requested_calls=calls, raw=data)


class AnthropicProvider:
    """Provider for the Anthropic messages API.

    Usage::

        provider = AnthropicProvider(api_key="sk-ant-...")
        response = provider.send([user_message("Hello")], [])
    """

    features = frozenset({Feature.CHAT})

    def __init__(
        self,
        settings: ProviderSettings | None = None,
        *,
        transport: httpx.BaseTransport | None = None,
        **overrides: Any,
    ) -> None:
        base = settings.model_dump(exclude_unset=True) if settings is not None else {}
        merged = {**base, **overrides}
        merged.setdefault("model", DEFAULT_MODEL)
        self.settings = ProviderSettings(**merged)
        api_key, base_url = self.settings.resolve("anthropic", ANTHROPIC_DEFAULT_URL)
        self._http = HttpTransport(
            base_url,
            {"x-api-key": api_key, "anthropic-version": ANTHROPIC_VERSION},
            timeout=self.settings.timeout,
            max_retries=self.settings.max_retries,
            transport=transport,
        )

    def build_payload(self, conversation: Sequence[Message], tools: Sequence[ToolConfig]) -> dict:
        s = self.settings
        system, turns = to_anthropic_messages(conversation)
        payload: dict[str, Any] = {
            "model": s.model,
            "max_tokens": s.max_tokens or DEFAULT_MAX_TOKENS,
            "messages": turns,
        }
        if system:
            payload["system"] = system
        if s.temperature is not None:
            payload["temperature"] = min(s.temperature, 1.0)
        if tools:
            payload["tools"] = [t.to_anthropic() for t in tools]
        payload.update(s.extra)
        return payload

    def send(self, conversation: Sequence[Message], tools: Sequence[ToolConfig]) -> CommonResponse:
        """Send one messages request (with HTTP-level retry)."""
        data = self._http.post("/messages", self.build_payload(conversation, tools))
        response = parse_anthropic_response(data)
        logger.debug(
            "Anthropic response: %d char(s), %d call(s)", len(response.text), len(response.requested_calls)
        )
        return response

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> AnthropicProvider:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
