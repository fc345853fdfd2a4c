"""Provider error hierarchy.

Adapters raise these for failed HTTP exchanges and unreadable replies.
The orchestrator lets them propagate to the Answer unchanged; any retrying
happens in HttpTransport before an error gets this far.
"""

from __future__ import annotations

from directive.exceptions import DirectiveError


class ProviderError(DirectiveError):
    """Raised when a provider cannot produce a CommonResponse."""


class ProviderConfigError(ProviderError):
    """Settings are unusable, e.g. no API key in settings or environment."""


class ProviderRateLimitError(ProviderError):
    """HTTP 429 that persisted through every transport attempt.

    Attributes:
        retry_after: Delay the server asked for via ``Retry-After``, in
            seconds, or None when the header was absent or not numeric.
    """

    def __init__(self, message: str = "Rate limited", retry_after: float | None = None) -> None:
        self.retry_after = retry_after
        if retry_after is not None:
            message = f"{message} (retry after {retry_after}s)"
        super().__init__(message)


class ProviderAuthError(ProviderError):
    """The API key was rejected (HTTP 401 or 403); never retried."""


class ProviderResponseError(ProviderError):
    """The provider answered with an error status or an unreadable body.

    Attributes:
        status_code: HTTP status of the failed request, or None when the
            request succeeded but its JSON could not be read.
        body: Raw response text, when there was one.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body: str | None = None,
    ) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(message)

    @property
    def transient(self) -> bool:
        """True for gateway and server failures worth another attempt."""
        return self.status_code is not None and self.status_code >= 500
