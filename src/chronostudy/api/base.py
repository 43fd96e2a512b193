"""Exceptions raised by the ChronoStudy REST client."""


class ApiError(Exception):
    """Base exception for all backend request failures."""

    def __init__(
        self,
        endpoint: str,
        message: str,
        status_code: int | None = None,
    ) -> None:
        self.endpoint = endpoint
        self.status_code = status_code
        self.message = message
        prefix = f"[{endpoint}]"
        if status_code is not None:
            prefix += f" HTTP {status_code}:"
        super().__init__(f"{prefix} {message}")


class ApiTimeoutError(ApiError):
    """Raised when a backend request times out."""

    def __init__(self, endpoint: str, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(endpoint, f"Request timed out after {timeout}s")


class AuthRequiredError(ApiError):
    """Raised on HTTP 401/403 or when an authenticated call has no token."""

    def __init__(
        self,
        endpoint: str,
        message: str = "Not authenticated",
        status_code: int | None = None,
    ) -> None:
        super().__init__(endpoint, message, status_code=status_code)
