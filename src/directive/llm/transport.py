"""Shared httpx transport with tenacity retry.

Both provider adapters post JSON through HttpTransport. It retries
transient failures (429, 5xx, connection errors) with exponential backoff
and fails immediately on authentication errors (401, 403).
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
import tenacity

from directive.llm.errors import ProviderAuthError, ProviderRateLimitError, ProviderResponseError

logger = logging.getLogger(__name__)

_AUTH_ERROR_STATUS_CODES = {401, 403}


def _is_retryable(exc: BaseException) -> bool:
    """Check if an exception is retryable.

    Retryable: 429, 5xx, connection errors.
    Not retryable: 401, 403, 400, other client errors.
    """
    if isinstance(exc, ProviderAuthError):
        return False
    if isinstance(exc, ProviderRateLimitError):
        return True
    if isinstance(exc, ProviderResponseError):
        return exc.transient
    return isinstance(exc, (httpx.ConnectError, httpx.ConnectTimeout))


def _retry_after(response: httpx.Response) -> float | None:
    raw = response.headers.get("Retry-After")
    if raw is None:
        return None
    try:
        return float(raw)
    except ValueError:
        logger.debug("Ignoring non-numeric Retry-After header %r", raw)
        return None


class HttpTransport:
    """Sync JSON-over-HTTP client with per-instance retry policy.

    Usage::

        with HttpTransport("https://api.openai.com/v1", {"Authorization": "Bearer sk-..."}) as t:
            data = t.post("/chat/completions", payload)
    """

    def __init__(
        self,
        base_url: str,
        headers: dict[str, str],
        *,
        timeout: float = 120.0,
        max_retries: int = 3,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._max_retries = max_retries
        self._client = httpx.Client(
            timeout=timeout,
            headers={"Content-Type": "application/json", **headers},
            transport=transport,
        )

    def post(self, path: str, payload: dict[str, Any]) -> dict:
        """POST ``payload`` with retry.

        Uses tenacity.Retrying programmatically (not as decorator) so that
        max_retries is configurable per-instance.

        Raises:
            ProviderAuthError: On 401/403 (no retry).
            ProviderRateLimitError: On 429 after all retries exhausted.
            ProviderResponseError: On any other error status, after retries
                when the status is 5xx.
        """
        retryer = tenacity.Retrying(
            retry=tenacity.retry_if_exception(_is_retryable),
            wait=(
                tenacity.wait_exponential(multiplier=1, min=1, max=30)
                + tenacity.wait_random(0, 2)
            ),
            stop=tenacity.stop_after_attempt(self._max_retries),
            before_sleep=tenacity.before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        return retryer(self._do_post, path, payload)

    def _do_post(self, path: str, payload: dict[str, Any]) -> dict:
        """Execute a single request (no retry)."""
        response = self._client.post(f"{self._base_url}{path}", json=payload)

        if response.status_code in _AUTH_ERROR_STATUS_CODES:
            raise ProviderAuthError(
                f"Authentication failed: HTTP {response.status_code} - {response.text}"
            )
        if response.status_code == 429:
            raise ProviderRateLimitError(
                f"Rate limited: HTTP 429 - {response.text}",
                retry_after=_retry_after(response),
            )

        if response.is_error:
            raise ProviderResponseError(
                f"HTTP {response.status_code} from {path}",
                status_code=response.status_code,
                body=response.text,
            )
        try:
            return response.json()
        except ValueError as exc:
            raise ProviderResponseError(
                f"Response from {path} is not JSON: {exc}", body=response.text
            ) from exc

    def close(self) -> None:
        """Close the underlying httpx client."""
        self._client.close()

    def __enter__(self) -> HttpTransport:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
