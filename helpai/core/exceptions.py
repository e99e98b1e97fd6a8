"""
Application errors.

Each error carries the HTTP status and a short machine-readable code.
The app factory registers a handler that turns any HelpAIError into
`{"detail": ..., "error": ...}` with that status.
"""

from typing import Optional


class HelpAIError(Exception):
    """Base class for errors surfaced to the client."""

    status_code: int = 500
    error_code: str = "internal_error"

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        body = {"detail": self.message, "error": self.error_code}
        if self.details:
            body.update(self.details)
        return body


class NotFoundError(HelpAIError):
    status_code = 404
    error_code = "not_found"


class AccessDeniedError(HelpAIError):
    status_code = 403
    error_code = "access_denied"

    def __init__(self, message: str = "Access denied"):
        super().__init__(message)


class MissingCredentialError(HelpAIError):
    """No per-user key and no environment fallback for a provider."""

    status_code = 400
    error_code = "missing_api_key"

    def __init__(self, provider: str, message: Optional[str] = None):
        super().__init__(
            message or f"No {provider} API key found. Please add an API key in settings.",
            details={"missingApiKey": True},
        )
        self.provider = provider


# ── Upstream providers ───────────────────────────────────────────────

class ProviderError(HelpAIError):
    """An external API (completion, search, image) failed or answered garbage."""

    status_code = 500
    error_code = "provider_error"

    def __init__(self, provider: str, message: str, upstream_status: Optional[int] = None):
        super().__init__(message)
        self.provider = provider
        self.upstream_status = upstream_status


class InvalidCredentialError(ProviderError):
    status_code = 401
    error_code = "invalid_api_key"


class ProviderPermissionError(ProviderError):
    status_code = 403
    error_code = "provider_forbidden"


class RateLimitedError(ProviderError):
    status_code = 429
    error_code = "rate_limited"


def provider_error_for_status(provider: str, status: int, action: str) -> ProviderError:
    """Map a non-2xx upstream status to one of the user-facing categories."""
    if status == 401:
        return InvalidCredentialError(
            provider,
            f"Invalid {provider} API key. Please check your API key in settings.",
            status,
        )
    if status == 403:
        return ProviderPermissionError(
            provider,
            f"Your {provider} API key does not have permission to access this resource.",
            status,
        )
    if status == 429:
        return RateLimitedError(
            provider,
            f"You have reached your {provider} rate limit. Please try again later.",
            status,
        )
    return ProviderError(provider, f"Failed to {action}", status)
