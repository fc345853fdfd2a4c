"""Provider settings.

ProviderSettings is the plain settings object the adapters consume. The
engine itself never reads it.
"""

from __future__ import annotations

import os
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from directive.llm.errors import ProviderConfigError

OPENAI_DEFAULT_URL = "https://api.openai.com/v1"
ANTHROPIC_DEFAULT_URL = "https://api.anthropic.com/v1"

_ENV_PREFIX = "DIRECTIVE_"


class ProviderSettings(BaseModel):
    """Connection and sampling settings for one provider."""

    model_config = {"arbitrary_types_allowed": True}

    api_key: Optional[str] = None
    base_url: Optional[str] = None
    model: str = "gpt-4o-mini"
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    timeout: float = 120.0
    max_retries: int = Field(default=3, ge=1)
    extra: dict[str, Any] = Field(default_factory=dict)

    @field_validator("temperature")
    @classmethod
    def _check_temperature(cls, value: Optional[float]) -> Optional[float]:
        if value is not None and not 0.0 <= value <= 2.0:
            raise ValueError(f"temperature must be within [0, 2], got {value}")
        return value

    def resolve(self, vendor: str, default_url: str) -> tuple[str, str]:
        """Return ``(api_key, base_url)`` with environment fallbacks.

        Looks up ``DIRECTIVE_<VENDOR>_API_KEY`` and
        ``DIRECTIVE_<VENDOR>_BASE_URL`` when the fields are unset.

        Raises:
            ProviderConfigError: If no API key is configured.
        """
        prefix = f"{_ENV_PREFIX}{vendor.upper()}"
        api_key = self.api_key or os.environ.get(f"{prefix}_API_KEY", "")
        if not api_key:
            raise ProviderConfigError(
                f"No API key provided. Pass api_key= or set {prefix}_API_KEY "
                "environment variable."
            )
        base_url = (self.base_url or os.environ.get(f"{prefix}_BASE_URL", default_url)).rstrip("/")
        return api_key, base_url
