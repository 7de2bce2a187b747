from typing import Any, Optional

from httpx import Response


class PlatformKernelError(Exception):
    """Base class for all errors raised by the platform kernel."""


class ApiError(PlatformKernelError):
    """Raised for 4xx/5xx responses when ``http.http_errors`` is enabled."""

    def __init__(
        self, message: str, status_code: int, body: Optional[str] = None
    ) -> None:
        self.message = message
        self.status_code = status_code
        self.body = body
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"{self.message} (status_code={self.status_code}, body={self.body!r})"


class MalformedResponseError(PlatformKernelError):
    """Raised when a response body cannot be turned into the requested shape."""

    def __init__(self, response: Response, message: Optional[str] = None) -> None:
        self.response = response
        self.message = (
            message
            or f"Unable to decode response body (status_code={response.status_code})."
        )
        super().__init__(self.message)


class CredentialRefreshError(PlatformKernelError):
    """Raised when an access token could not be fetched or refreshed."""

    def __init__(self, message: str = "Unable to refresh access token.", *args: Any):
        self.message = message
        super().__init__(self.message, *args)
