"""Exception hierarchy shared by the CLI, services and HTTP layer."""

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .guards.rate_limit import RateLimitResult


class ScriptboardError(Exception):
    """Base class for all application errors."""


class ConfigurationError(ScriptboardError):
    """Required server configuration is missing or invalid."""


class InputValidationError(ScriptboardError):
    """Caller supplied a payload that failed validation."""


class AuthenticationError(ScriptboardError):
    """Request carried no valid credentials."""


class PermissionDeniedError(ScriptboardError):
    """Authenticated caller lacks the permission for an action."""


class NotFoundError(ScriptboardError):
    """Requested record does not exist or is not visible to the caller."""


class ShareExpiredError(NotFoundError):
    """Share token exists but its expiry date has passed."""


class RateLimitExceeded(ScriptboardError):
    """Caller exhausted the request allowance for the current window."""

    def __init__(self, result: "RateLimitResult", endpoint: str) -> None:
        retry = result.retry_after or 0
        super().__init__(f"Rate limit exceeded for {endpoint}. Try again in {retry}s.")
        self.result = result
        self.endpoint = endpoint


class UpstreamError(ScriptboardError):
    """An external AI gateway failed; the caller may try again."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class MalformedUpstreamResponse(ScriptboardError):
    """An external gateway answered, but with content we cannot use."""


class ImageLoadError(ScriptboardError):
    """A storyboard image could not be fetched or decoded."""
