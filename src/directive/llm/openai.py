"""OpenAI-compatible chat-completions provider.

Also covers Groq, Ollama and LocalAI, which expose the same
``/chat/completions`` endpoint; point ``base_url`` at them.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import httpx

from directive.llm.config import OPENAI_DEFAULT_URL, ProviderSettings
from directive.llm.errors import ProviderResponseError
from directive.llm.transport import HttpTransport
from directive.models.directive import Feature
from directive.protocols import CommonResponse, FunctionCall, Role

if TYPE_CHECKING:
    from collections.abc import Sequence

    from directive.protocols import Message
    from directive.toolkit.models import ToolConfig

logger = logging.getLogger(__name__)


def to_openai_messages(conversation: Sequence[Message]) -> list[dict]:
    """Serialize a conversation to OpenAI wire format.

    Requested calls that never received a result (skipped after a repeated
    or failed call) are left out, since the API rejects unanswered
    ``tool_calls``.
    """
    answered = {m.call_id for m in conversation if m.role is Role.FUNCTION and m.call_id}
    out: list[dict] = []
    for message in conversation:
        if message.role is Role.FUNCTION:
            if message.call_id:
                out.append({"role": "tool", "tool_call_id": message.call_id, "content": message.content})
            else:
                out.append({"role": "function", "name": message.name or "", "content": message.content})
            continue

        entry: dict[str, Any] = {"role": message.role.value, "content": message.content}
        if message.name is not None and message.role is not Role.ASSISTANT:
            entry["name"] = message.name
        if message.role is Role.ASSISTANT:
            calls = [fc.to_openai() for fc in message.function_calls if fc.id in answered]
            if calls:
                entry["tool_calls"] = calls
                entry["content"] = message.content or None
        out.append(entry)
    return out


def parse_openai_response(data: dict) -> CommonResponse:
    """Extract text and requested calls from a chat-completions response.

    Raises:
        ProviderResponseError: If the response format is unexpected.
    """
    try:
        message = data["choices"][0]["message"]
        calls = tuple(FunctionCall.from_openai(tc) for tc in message.get("tool_calls") or ())
    except (KeyError, IndexError, TypeError) as exc:
        raise ProviderResponseError(
            f"Cannot extract message from response: {exc}. Response: {data}"
        ) from exc
    return CommonResponse(text=message.get("content") or "", requested_calls=calls, raw=data)


class OpenAIProvider:
    """Provider for OpenAI-compatible chat completions.

    Usage::

        with OpenAIProvider(ProviderSettings(model="gpt-4o-mini")) as provider:
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
        """Initialize the provider.

        Args:
            settings: Provider settings. Keyword ``overrides`` replace
                individual fields.
            transport: Optional httpx transport (e.g. ``httpx.MockTransport``).

        Raises:
            ProviderConfigError: If no API key is provided or found in environment.
        """
        base = settings.model_dump() if settings is not None else {}
        self.settings = ProviderSettings(**{**base, **overrides})
        api_key, base_url = self.settings.resolve("openai", OPENAI_DEFAULT_URL)
        self._http = HttpTransport(
            base_url,
            {"Authorization": f"Bearer {api_key}"},
            timeout=self.settings.timeout,
            max_retries=self.settings.max_retries,
            transport=transport,
        )

    def build_payload(self, conversation: Sequence[Message], tools: Sequence[ToolConfig]) -> dict:
        s = self.settings
        payload: dict[str, Any] = {"model": s.model, "messages": to_openai_messages(conversation)}
        if s.temperature is not None:
            payload["temperature"] = s.temperature
        if s.max_tokens is not None:
            payload["max_tokens"] = s.max_tokens
        if tools:
            payload["tools"] = [t.to_openai() for t in tools]
        payload.update(s.extra)
        return payload

    def send(self, conversation: Sequence[Message], tools: Sequence[ToolConfig]) -> CommonResponse:
        """Send one chat-completions request (with HTTP-level retry)."""
        data = self._http.post("/chat/completions", self.build_payload(conversation, tools))
        response = parse_openai_response(data)
        logger.debug(
            "OpenAI response: %d char(s), %d call(s)", len(response.text), len(response.requested_calls)
        )
        return response

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> OpenAIProvider:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
