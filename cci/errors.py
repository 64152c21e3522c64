from typing import Any


class CciError(Exception):
    """Base exception class for CircleCI client errors with structured error information."""

    def __init__(
        self,
        message: str,
        error_code: str,
        context: dict[str, Any] | None = None,
        original_exception: Exception | None = None,
    ):
        """
        Initialize structured client error.

        Args:
            message: Human-readable error message
            error_code: Structured error code for programmatic handling
            context: Additional context information about the error
            original_exception: The original exception that caused this error
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.context = context or {}
        self.original_exception = original_exception


class TransportError(CciError):
    """Exception for network-related failures (DNS, connection refused, TLS)."""

    def __init__(
        self,
        message: str = "Network error occurred",
        context: dict[str, Any] | None = None,
        original_exception: Exception | None = None,
        error_code: str = "CCI_TRANSPORT_ERROR",
    ):
        super().__init__(
            message=message,
            error_code=error_code,
            context=context,
            original_exception=original_exception,
        )


class RequestTimeoutError(TransportError):
    """Exception for requests that exceeded their deadline."""

    def __init__(
        self,
        message: str = "Request timed out",
        timeout_seconds: float | None = None,
        context: dict[str, Any] | None = None,
        original_exception: Exception | None = None,
    ):
        context = context or {}
        if timeout_seconds:
            context["timeout_seconds"] = timeout_seconds

        super().__init__(
            message=message,
            context=context,
            original_exception=original_exception,
            error_code="CCI_TIMEOUT",
        )
        self.timeout_seconds = timeout_seconds


class EncodingError(CciError):
    """Exception for request bodies that cannot be serialized to JSON."""

    def __init__(
        self,
        message: str = "Request body could not be encoded",
        context: dict[str, Any] | None = None,
        original_exception: Exception | None = None,
    ):
        super().__init__(
            message=message,
            error_code="CCI_ENCODING_ERROR",
            context=context,
            original_exception=original_exception,
        )


class DecodingError(CciError):
    """Exception for response bodies that do not match the expected shape."""

    def __init__(
        self,
        message: str = "Response body could not be decoded",
        body: str = "",
        context: dict[str, Any] | None = None,
        original_exception: Exception | None = None,
    ):
        super().__init__(
            message=message,
            error_code="CCI_DECODING_ERROR",
            context=context,
            original_exception=original_exception,
        )
        self.body = body


class DomainError(CciError):
    """Exception for non-2xx responses, carrying the server's message."""

    def __init__(
        self,
        message: str,
        status_code: int,
        body: str = "",
        context: dict[str, Any] | None = None,
    ):
        context = context or {}
        context["status_code"] = status_code

        super().__init__(
            message=message,
            error_code="CCI_DOMAIN_ERROR",
            context=context,
        )
        self.status_code = status_code
        self.body = body


class ConfigurationError(CciError):
    """Exception for configuration-related errors."""

    def __init__(
        self,
        message: str = "Configuration error",
        context: dict[str, Any] | None = None,
        original_exception: Exception | None = None,
    ):
        super().__init__(
            message=message,
            error_code="CCI_CONFIG_ERROR",
            context=context,
            original_exception=original_exception,
        )


class RemoteDetectionError(CciError):
    """Exception raised when the project cannot be inferred from git remotes."""

    def __init__(
        self,
        message: str = "Unable to detect project from git remotes",
        context: dict[str, Any] | None = None,
        original_exception: Exception | None = None,
    ):
        super().__init__(
            message=message,
            error_code="CCI_REMOTE_ERROR",
            context=context,
            original_exception=original_exception,
        )


class ContextNotFoundError(CciError):
    """Exception raised when a context lookup by name finds nothing."""

    def __init__(self, name: str, owner_slug: str):
        super().__init__(
            message=f"Could not find a context named '{name}' for {owner_slug}",
            error_code="CCI_CONTEXT_NOT_FOUND",
            context={"name": name, "owner_slug": owner_slug},
        )
