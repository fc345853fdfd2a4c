"""Provider infrastructure.

Provides the Provider protocol, settings, the provider error hierarchy and
httpx-based adapters for OpenAI-compatible and Anthropic APIs.
"""

from directive.llm.anthropic import AnthropicProvider
from directive.llm.config import ProviderSettings
from directive.llm.errors import (
    ProviderAuthError,
    ProviderConfigError,
    ProviderError,
    ProviderRateLimitError,
    ProviderResponseError,
)
from directive.llm.openai import OpenAIProvider
from directive.llm.protocols import Provider

__all__ = [
    "AnthropicProvider",
    "OpenAIProvider",
    "Provider",
    "ProviderSettings",
    "ProviderError",
    "ProviderConfigError",
    "ProviderRateLimitError",
    "ProviderAuthError",
    "ProviderResponseError",
]
