"""Catalyst Center (DNAC) API modules.

This package provides a session-aware async client for the controller's
management API and the resource modules built on it.

Classes:
    DNACClient: Authenticated transport; establishes the session on entry
    DNACConfig: Connection settings (arguments, environment, .env)
    TokenManager: Cached-token lifecycle with single-flight refresh
    TokenStore: On-disk token cache
    TaskPoller: Polls asynchronous task trees to completion
    DeviceAPI: Network device inventory (read + add)
    SiteAPI: Site hierarchy (read)

Functions:
    fetch_all: Exhaustive pagination over a single-page list function
    decode_envelope: Normalize the `{"response": ...}` envelope
    verify_version: Supported-version gate

Exceptions:
    DNACError: Base exception for all client errors
    AuthenticationError: No usable token could be obtained
    TransportError: Network, status or decoding failure
    ApiError: Structured controller error (branch on .code)
    IncompatibleVersionError: Controller version not supported
    TaskFailure: Task tree finished with an errored task
"""
from .auth import TOKEN_REFRESH_MARGIN_SECONDS, Token, TokenManager, parse_token_expiry
from .client import DNACClient
from .config import DNACConfig
from .devices import (
    AddDevice,
    Device,
    DeviceAPI,
    DeviceFamily,
    DeviceFilter,
    DeviceStatus,
    DeviceType,
)
from .envelope import Many, OneOrMany, Single, decode_envelope
from .exceptions import (
    ApiError,
    AuthenticationError,
    ConfigurationError,
    ConnectionError,
    DNACError,
    HTTPStatusError,
    IncompatibleVersionError,
    InvalidCredentialsError,
    InvalidSiteError,
    NetworkError,
    NotFoundError,
    ResponseDecodeError,
    ServerError,
    TaskError,
    TaskFailure,
    TaskTimeoutError,
    TimeoutError,
    TokenFetchError,
    TokenLoadError,
    TransportError,
)
from .pagination import PAGE_SIZE, Pagination, PaginationBuilder, fetch_all
from .platform import SUPPORTED_VERSIONS, ReleaseSummary, get_release_summary, verify_version
from .sites import Location, Site, SiteAPI, SiteFilter, SiteType
from .tasks import Task, TaskHandle, TaskPoller, TaskState, evaluate_task_tree
from .token_store import TokenStore

__all__ = [
    # Session
    "DNACClient",
    "DNACConfig",
    # Auth
    "Token",
    "TokenManager",
    "TokenStore",
    "TOKEN_REFRESH_MARGIN_SECONDS",
    "parse_token_expiry",
    # Envelope
    "Single",
    "Many",
    "OneOrMany",
    "decode_envelope",
    # Pagination
    "Pagination",
    "PaginationBuilder",
    "PAGE_SIZE",
    "fetch_all",
    # Tasks
    "Task",
    "TaskHandle",
    "TaskPoller",
    "TaskState",
    "evaluate_task_tree",
    # Platform
    "ReleaseSummary",
    "SUPPORTED_VERSIONS",
    "get_release_summary",
    "verify_version",
    # Devices
    "AddDevice",
    "Device",
    "DeviceAPI",
    "DeviceFamily",
    "DeviceFilter",
    "DeviceStatus",
    "DeviceType",
    # Sites
    "Location",
    "Site",
    "SiteAPI",
    "SiteFilter",
    "SiteType",
    # Exceptions
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
