#!/usr/bin/env python3
"""Exception Hierarchy for the Catalyst Center (DNAC) API client.

Every failure the client can surface is one of the types below, so callers
can catch `DNACError` for "anything went wrong" or branch on a specific
subclass (e.g. `ApiError.code` to detect a controller-specific condition).

Design Principles:
    - All exceptions inherit from DNACError
    - Exceptions preserve context (original error, timestamp, details)
    - Lower layers translate raw aiohttp/JSON failures into these types;
      nothing is swallowed on the way up

Exception Hierarchy:
    DNACError (base)
    ├── ConfigurationError
    ├── AuthenticationError
    │   ├── TokenFetchError
    │   ├── InvalidCredentialsError
    │   └── TokenLoadError
    ├── TransportError
    │   ├── NetworkError
    │   │   ├── ConnectionError
    │   │   └── TimeoutError
    │   ├── HTTPStatusError
    │   ├── ServerError
    │   └── ResponseDecodeError
    ├── ApiError
    │   └── NotFoundError
    │       └── InvalidSiteError
    ├── IncompatibleVersionError
    └── TaskError
        ├── TaskFailure
        └── TaskTimeoutError
"""
from datetime import datetime, timezone
from typing import Any, Optional

# ============================================
# Base Exception
# ============================================

class DNACError(Exception):
    """Base exception for all DNAC client errors.

    Attributes:
        message: Human-readable error description
        code: Machine-readable error code (controller errorCode for ApiError)
        details: Additional context as a dictionary
        timestamp: When the error occurred
        cause: The original exception that caused this error
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__.upper()
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc)
        self.cause = cause

        if cause:
            self.__cause__ = cause

    def __str__(self) -> str:
        parts = [f"[{self.code}]", self.message]
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            parts.append(f"({detail_str})")
        return " ".join(parts)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"code={self.code!r}, "
            f"details={self.details!r})"
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "code": self.code,
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
            "cause": str(self.cause) if self.cause else None,
        }


# ============================================
# Configuration Errors
# ============================================

class ConfigurationError(DNACError):
    """Raised when configuration is missing or invalid."""

    def __init__(
        self,
        message: str,
        missing_keys: Optional[list[str]] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if missing_keys:
            details["missing_keys"] = missing_keys
        super().__init__(
            message,
            code="CONFIGURATION_ERROR",
            details=details,
            **kwargs,
        )


# ============================================
# Authentication Errors
# ============================================

class AuthenticationError(DNACError):
    """No usable token could be obtained. Fatal for session establishment."""


class TokenFetchError(AuthenticationError):
    """Raised when the authentication endpoint does not hand out a token."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if status_code:
            details["status_code"] = status_code
        super().__init__(
            message,
            code="TOKEN_FETCH_ERROR",
            details=details,
            **kwargs,
        )
        self.status_code = status_code


class InvalidCredentialsError(AuthenticationError):
    """Raised when the controller rejects the basic credentials (HTTP 401)."""

    def __init__(self, message: str = "Invalid username or password", **kwargs):
        super().__init__(message, code="INVALID_CREDENTIALS", **kwargs)


class TokenLoadError(AuthenticationError):
    """Raised when a token (cached or fresh) cannot be parsed for its expiry."""

    def __init__(self, message: str = "Token could not be parsed", **kwargs):
        super().__init__(message, code="TOKEN_LOAD_ERROR", **kwargs)


# ============================================
# Transport Errors
# ============================================

class TransportError(DNACError):
    """Generic failure talking to the controller (network, status, decoding)."""


class NetworkError(TransportError):
    """Base class for network-level failures."""


class ConnectionError(NetworkError):
    """Raised when connection to the controller fails."""

    def __init__(
        self,
        message: str = "Failed to connect to controller",
        host: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if host:
            details["host"] = host
        super().__init__(
            message,
            code="CONNECTION_ERROR",
            details=details,
            **kwargs,
        )


class TimeoutError(NetworkError):
    """Raised when a request or a bounded operation times out."""

    def __init__(
        self,
        message: str = "Request timed out",
        timeout_seconds: Optional[float] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if timeout_seconds:
            details["timeout_seconds"] = timeout_seconds
        super().__init__(
            message,
            code="TIMEOUT_ERROR",
            details=details,
            **kwargs,
        )


class HTTPStatusError(TransportError):
    """Raised for a non-success status other than the controller error status.

    Attributes:
        status_code: HTTP status code
        endpoint: API path that was called
        method: HTTP method
        response_body: Raw response body (truncated)
    """

    def __init__(
        self,
        message: str,
        status_code: int,
        endpoint: Optional[str] = None,
        method: str = "GET",
        response_body: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        details["status_code"] = status_code
        if endpoint:
            details["endpoint"] = endpoint
        details["method"] = method
        if response_body:
            details["response_body"] = response_body[:500]

        kwargs.setdefault("code", f"HTTP_{status_code}")
        super().__init__(message, details=details, **kwargs)
        self.status_code = status_code
        self.endpoint = endpoint
        self.method = method
        self.response_body = response_body


class ServerError(HTTPStatusError):
    """Raised when a 500 response does not carry a controller error body."""

    def __init__(self, message: str = "Server error", **kwargs):
        kwargs.setdefault("status_code", 500)
        super().__init__(message, code="SERVER_ERROR", **kwargs)


class ResponseDecodeError(TransportError):
    """Raised when a response body does not have the expected shape."""

    def __init__(self, message: str = "Unexpected response", **kwargs):
        super().__init__(message, code="RESPONSE_DECODE_ERROR", **kwargs)


# ============================================
# Controller API Errors
# ============================================

class ApiError(DNACError):
    """Structured error body returned by the controller with HTTP 500.

    Wire shape:
        {"message": [...], "response": {"errorCode", "message", "href"}}

    Attributes:
        messages: Top-level message list
        code: Controller error code (e.g. "NCGR10008")
        detail_message: response.message
        reference: response.href
    """

    def __init__(
        self,
        messages: list[str],
        code: str,
        detail_message: str,
        reference: str,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        details["reference"] = reference
        super().__init__(
            detail_message or "Error with the API request",
            code=code,
            details=details,
            **kwargs,
        )
        self.messages = list(messages)
        self.detail_message = detail_message
        self.reference = reference

    @classmethod
    def from_body(cls, body: dict[str, Any]) -> "ApiError":
        """Decode the controller error body.

        Raises:
            ResponseDecodeError: If the body is not an error body.
        """
        try:
            response = body["response"]
            messages = body.get("message") or []
            if isinstance(messages, str):
                messages = [messages]
            return cls(
                messages=messages,
                code=response["errorCode"],
                detail_message=response.get("message", ""),
                reference=response.get("href", ""),
            )
        except (KeyError, TypeError, AttributeError) as e:
            raise ResponseDecodeError(
                "Response is not a controller error body",
                cause=e,
            )


class NotFoundError(ApiError):
    """An ApiError whose code the caller maps to "resource does not exist"."""

    @classmethod
    def from_api_error(cls, error: ApiError) -> "NotFoundError":
        return cls(
            messages=error.messages,
            code=error.code,
            detail_message=error.detail_message,
            reference=error.reference,
            cause=error,
        )


class InvalidSiteError(NotFoundError):
    """The requested site does not exist (controller code NCGR10008)."""


# ============================================
# Version Gate
# ============================================

class IncompatibleVersionError(DNACError):
    """Raised when the controller version is not on the allow-list."""

    def __init__(
        self,
        installed_version: str,
        supported_versions: tuple[str, ...] = (),
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        details["supported_versions"] = list(supported_versions)
        super().__init__(
            f"Version {installed_version} not supported",
            code="INCOMPATIBLE_VERSION",
            details=details,
            **kwargs,
        )
        self.installed_version = installed_version
        self.supported_versions = supported_versions


# ============================================
# Task Errors
# ============================================

class TaskError(DNACError):
    """Base class for asynchronous task errors."""


class TaskFailure(TaskError):
    """Raised when a task tree terminates with at least one errored task.

    Attributes:
        task_id: Root task identifier
        tasks: Full task tree as observed on the final poll
    """

    def __init__(self, task_id: str, tasks: list, **kwargs):
        failed = [t for t in tasks if t.is_error]
        details = kwargs.pop("details", {})
        details["task_id"] = task_id
        details["failed_tasks"] = len(failed)
        reasons = [t.failure_reason for t in failed if t.failure_reason]
        if reasons:
            details["failure_reasons"] = reasons[:5]
        super().__init__(
            "Task failed",
            code="TASK_FAILED",
            details=details,
            **kwargs,
        )
        self.task_id = task_id
        self.tasks = tasks

    @property
    def failed_tasks(self) -> list:
        return [t for t in self.tasks if t.is_error]


class TaskTimeoutError(TaskError):
    """Raised when a task does not reach a terminal state before the deadline."""

    def __init__(
        self,
        task_id: str,
        timeout_seconds: float,
        tasks: Optional[list] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        details["task_id"] = task_id
        details["timeout_seconds"] = timeout_seconds
        super().__init__(
            f"Task {task_id} did not complete within {timeout_seconds} seconds",
            code="TASK_TIMEOUT",
            details=details,
            **kwargs,
        )
        self.task_id = task_id
        self.timeout_seconds = timeout_seconds
        self.tasks = tasks or []


__all__ = [
    "DNACError",
    "ConfigurationError",
    "AuthenticationError",
    "TokenFetchError",
    "InvalidCredentialsError",
    "TokenLoadError",
    "TransportError",
    "NetworkError",
    "ConnectionError",
    "TimeoutError",
    "HTTPStatusError",
    "ServerError",
    "ResponseDecodeError",
    "ApiError",
    "NotFoundError",
    "InvalidSiteError",
    "IncompatibleVersionError",
    "TaskError",
    "TaskFailure",
    "TaskTimeoutError",
]
