#!/usr/bin/env python3
"""Async HTTP Client for Catalyst Center (DNAC) APIs.

This module provides the transport every resource module builds on:

    - Session establishment: token lifecycle, HTTP session, version gate
    - X-Auth-Token injection on every request
    - Controller error bodies (HTTP 500) decoded into ApiError
    - `{"response": ...}` envelopes normalized via decode_envelope
    - Write operations returning a TaskHandle, optionally awaited

Design Philosophy:
    This client knows HOW to talk to the controller, but not WHAT to fetch.
    Resource knowledge (paths, filters, schemas) lives in devices.py,
    sites.py and platform.py. There is no retry here: the task poller is the
    only component that re-issues requests.

Usage:
    async with DNACClient(DNACConfig.from_env()) as client:
        release = await client.get("/dna/intent/api/v1/dnac-release")
        devices = await DeviceAPI(client).fetch_all_devices()
"""
import asyncio
import json
import logging
from typing import Any, Callable, Optional

import aiohttp

from .auth import TokenManager
from .config import DNACConfig
from .envelope import OneOrMany, decode_envelope
from .exceptions import (
    ApiError,
    ConnectionError,
    HTTPStatusError,
    NetworkError,
    ResponseDecodeError,
    ServerError,
    TimeoutError,
)
from .pagination import Pagination
from .tasks import DEFAULT_POLL_INTERVAL, Task, TaskHandle, TaskPoller

logger = logging.getLogger(__name__)

AUTH_HEADER = "X-Auth-Token"

# The controller reports structured API errors with this status.
API_ERROR_STATUS = 500


class DNACClient:
    """Async client for one controller.

    Use as an async context manager. Entering the context establishes the
    session; if any step fails the HTTP session is closed and the error
    propagates, so a caller never holds a half-initialized client:

        async with DNACClient(config) as client:
            data = await client.get("/some/endpoint")

    Attributes:
        config: Controller connection settings
        token_manager: Owner of the session token
        verify_version_on_connect: Run the version gate on entry
    """

    def __init__(
        self,
        config: DNACConfig,
        token_manager: Optional[TokenManager] = None,
        *,
        verify_version_on_connect: bool = True,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
    ):
        self.config = config
        self.base_url = config.base_url
        self.token_manager = token_manager or TokenManager(config)
        self.verify_version_on_connect = verify_version_on_connect
        self.poll_interval = poll_interval
        self.version: Optional[str] = None

        # Session is created in __aenter__, closed in __aexit__
        self._session: Optional[aiohttp.ClientSession] = None

        if not config.verify_ssl:
            logger.warning(
                f"TLS certificate verification is disabled for {self.base_url}"
            )

    # ----------------------------------------
    # Context Manager Protocol
    # ----------------------------------------

    async def __aenter__(self) -> "DNACClient":
        """Establish the session: token, HTTP session, version gate."""
        await self.token_manager.establish()

        self._session = aiohttp.ClientSession(
            connector=aiohttp.TCPConnector(
                limit=10,
                ssl=self.config.verify_ssl,
            ),
            timeout=aiohttp.ClientTimeout(
                total=self.config.request_timeout,
                connect=10,
            ),
        )

        if self.verify_version_on_connect:
            from .platform import verify_version

            try:
                self.version = await verify_version(self)
            except BaseException:
                await self.close()
                raise

        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session:
            await self._session.close()
            self._session = None

    # ----------------------------------------
    # Low-Level Request Method
    # ----------------------------------------

    def _build_url(self, path: str) -> str:
        if path.startswith("http"):
            return path
        return f"{self.base_url}{path}"

    async def _get_auth_headers(self) -> dict[str, str]:
        token = await self.token_manager.get_token()
        return {
            AUTH_HEADER: token,
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    async def request(
        self,
        method: str,
        path: str,
        params: Optional[dict[str, str]] = None,
        json_body: Optional[Any] = None,
        pagination: Optional[Pagination] = None,
    ) -> Any:
        """Make a single authenticated HTTP request (no retry).

        Args:
            method: HTTP method (GET, POST)
            path: API path (e.g. "/dna/intent/api/v1/network-device") or full URL
            params: Flat string query parameters (filters)
            json_body: JSON request body
            pagination: Adds offset/limit query parameters

        Returns:
            Parsed JSON body, or None for an empty body

        Raises:
            ApiError: Controller error body with HTTP 500
            ServerError: HTTP 500 without a controller error body
            HTTPStatusError: Any other status >= 400
            ResponseDecodeError: Body is not valid JSON
            ConnectionError / TimeoutError / NetworkError: Network failures
            RuntimeError: If called outside of the async context manager
        """
        if not self._session:
            raise RuntimeError(
                "DNACClient must be used as async context manager: "
                "async with DNACClient(...) as client:"
            )

        query: dict[str, str] = {}
        if pagination is not None:
            query.update(pagination.to_params())
        if params:
            query.update({k: str(v) for k, v in params.items() if v is not None})

        url = self._build_url(path)
        headers = await self._get_auth_headers()

        try:
            async with self._session.request(
                method=method,
                url=url,
                headers=headers,
                params=query or None,
                json=json_body,
            ) as response:
                body = await response.text()

                if response.status == API_ERROR_STATUS:
                    raise self._decode_api_error(method, path, body)

                if response.status >= 400:
                    raise HTTPStatusError(
                        f"{method} {path} failed with HTTP {response.status}",
                        status_code=response.status,
                        endpoint=path,
                        method=method,
                        response_body=body,
                    )

        except aiohttp.ClientConnectionError as e:
            raise ConnectionError(
                f"Failed to connect to {self.base_url}",
                host=self.base_url,
                cause=e,
            )

        except asyncio.TimeoutError as e:
            raise TimeoutError(
                f"Request to {path} timed out",
                timeout_seconds=self.config.request_timeout,
                cause=e,
            )

        except aiohttp.ClientError as e:
            raise NetworkError(
                f"Network error during {method} {path}: {e}",
                cause=e,
            )

        if not body.strip():
            return None
        return self._parse_json(body, method, path)

    @staticmethod
    def _parse_json(body: str, method: str, path: str) -> Any:
        try:
            return json.loads(body)
        except ValueError as e:
            raise ResponseDecodeError(
                f"Invalid JSON from {method} {path}",
                details={"endpoint": path},
                cause=e,
            )

    def _decode_api_error(self, method: str, path: str, body: str) -> Exception:
        """Turn an HTTP 500 body into ApiError, or ServerError if it isn't one."""
        try:
            error = ApiError.from_body(self._parse_json(body, method, path))
        except ResponseDecodeError:
            return ServerError(
                f"Server error for {method} {path}",
                endpoint=path,
                method=method,
                response_body=body,
            )
        logger.debug(f"{method} {path} returned controller error {error.code}")
        return error

    # ----------------------------------------
    # High-Level Request Methods
    # ----------------------------------------

    async def get(
        self,
        path: str,
        params: Optional[dict[str, str]] = None,
        pagination: Optional[Pagination] = None,
    ) -> Any:
        """Make a GET request and return the parsed JSON body."""
        return await self.request("GET", path, params=params, pagination=pagination)

    async def get_envelope(
        self,
        path: str,
        params: Optional[dict[str, str]] = None,
        pagination: Optional[Pagination] = None,
        parser: Optional[Callable[[Any], Any]] = None,
    ) -> OneOrMany:
        """GET an endpoint using the shared `{"response": ...}` envelope.

        Returns:
            Single or Many; `.items` always gives a list
        """
        data = await self.get(path, params=params, pagination=pagination)
        return decode_envelope(data, parser)

    async def get_items(
        self,
        path: str,
        params: Optional[dict[str, str]] = None,
        pagination: Optional[Pagination] = None,
        parser: Optional[Callable[[Any], Any]] = None,
    ) -> list:
        """GET an enveloped endpoint and return its items as a list."""
        envelope = await self.get_envelope(path, params, pagination, parser)
        return envelope.items

    async def post(
        self,
        path: str,
        json_body: Any,
        *,
        wait: bool = False,
        timeout: Optional[float] = None,
    ) -> Optional[TaskHandle]:
        """POST a JSON body; return the task handle if the controller sent one.

        Args:
            path: API path
            json_body: Request body (JSON-serializable)
            wait: Poll the returned task until it finishes
            timeout: Deadline for the poll when wait=True

        Returns:
            TaskHandle, or None for a fire-and-forget response

        Raises:
            ResponseDecodeError: If wait=True but no task handle came back
            TaskFailure / TaskTimeoutError: From polling when wait=True
        """
        data = await self.request("POST", path, json_body=json_body)
        handle = self._extract_task_handle(data)

        if wait:
            if handle is None:
                raise ResponseDecodeError(
                    f"POST {path} did not return a task handle",
                    details={"endpoint": path},
                )
            await self.wait_for_task(handle, timeout=timeout)

        return handle

    @staticmethod
    def _extract_task_handle(data: Any) -> Optional[TaskHandle]:
        if not isinstance(data, dict) or not isinstance(data.get("response"), (dict, list)):
            return None
        envelope = decode_envelope(data)
        items = envelope.items
        if len(items) != 1:
            return None
        try:
            return TaskHandle.from_dict(items[0])
        except (KeyError, TypeError):
            return None

    async def wait_for_task(
        self,
        handle: TaskHandle,
        *,
        timeout: Optional[float] = None,
    ) -> list[Task]:
        """Poll a task tree to completion (see TaskPoller.await_completion)."""
        poller = TaskPoller(self, poll_interval=self.poll_interval)
        return await poller.await_completion(handle, timeout=timeout)


__all__ = ["API_ERROR_STATUS", "AUTH_HEADER", "DNACClient"]
