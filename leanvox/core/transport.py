"""
Transport layer for Leanvox HTTP communication.

This module provides the Transport class that executes exactly one network
attempt against the Leanvox API: it builds the URL and headers, attaches the
request body, applies the attempt deadline, and reports the raw outcome.
It never retries and never raises for HTTP or network failures; those
decisions belong to the request executor.
"""

from __future__ import annotations

import asyncio
import json
import uuid
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any
from typing import Optional
from typing import Union

import aiohttp

from .helpers import get_version
from .logging import get_logger
from .models import ConnectionConfig
from .models import FileField
from .models import RequestSpec


@dataclass
class Success:
    """
    An attempt that produced an HTTP response, whatever its status.

    Attributes:
        status: HTTP status code.
        headers: Response headers.
        response: The underlying response. Only left open for unbuffered
            2xx responses, where it is the caller's byte stream.
        body: Raw body bytes for buffered responses, None otherwise.
    """

    status: int
    headers: Mapping[str, str]
    response: Optional[aiohttp.ClientResponse] = None
    body: Optional[bytes] = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def json(self) -> Any:
        """
        Decode the buffered body as JSON.

        Raises:
            ValueError: If the body is missing or not valid JSON.
        """
        if self.body is None:
            raise ValueError("Response body was not buffered")
        return json.loads(self.body)


@dataclass
class TransportFailure:
    """An attempt that produced no HTTP status: deadline exceeded or connection fault."""

    reason: str
    error: Optional[BaseException] = None


class Transport:
    """
    HTTP transport for Leanvox API communication.

    Owns a lazily created ``aiohttp.ClientSession``. Each call to
    :meth:`send` is a single, independently timed attempt.

    Args:
        config: Connection configuration including URL and API key.
        request_id: Optional unique identifier for request tracking. Generated
                   automatically if not provided.

    Examples:
        >>> transport = Transport(ConnectionConfig(api_key="lv_test_..."))
        >>> outcome = await transport.send(RequestSpec("GET", "/v1/voices"), timeout=30.0)
        >>> await transport.close()
    """

    def __init__(self, config: ConnectionConfig, request_id: Optional[str] = None) -> None:
        self._config = config
        self._request_id = request_id or str(uuid.uuid4())
        self._session: Optional[aiohttp.ClientSession] = None
        self._closed = False
        self._logger = get_logger(__name__, self._request_id)

    async def __aenter__(self) -> Transport:
        self._ensure_session()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def send(
        self,
        spec: RequestSpec,
        timeout: float,
        *,
        buffered: bool = True,
    ) -> Union[Success, TransportFailure]:
        """
        Execute one attempt of ``spec`` under a fresh deadline.

        Args:
            spec: The request to send.
            timeout: Deadline in seconds for this attempt.
            buffered: Read the body of 2xx responses within the deadline.
                When False a 2xx response with content is returned open and
                unread. All other responses are read and released.

        Returns:
            Success for any HTTP response, TransportFailure otherwise.
        """
        session = self._ensure_session()
        url = f"{self._config.url.rstrip('/')}{spec.path}"

        kwargs: dict[str, Any] = {
            "headers": self._prepare_headers(multipart=spec.is_multipart),
            "params": spec.query(),
        }
        if spec.multipart is not None:
            kwargs["data"] = _build_form(spec.multipart)
        elif spec.json_data is not None:
            kwargs["json"] = spec.json_data

        self._logger.debug("request_attempt", method=spec.method, path=spec.path, timeout=timeout)

        try:
            return await asyncio.wait_for(self._dispatch(session, spec.method, url, buffered, kwargs), timeout=timeout)
        except asyncio.TimeoutError as e:
            self._logger.warning("request_timeout", method=spec.method, path=spec.path, timeout=timeout)
            return TransportFailure(f"Request timed out after {timeout}s", e)
        except aiohttp.ClientError as e:
            self._logger.warning("request_failed", method=spec.method, path=spec.path, error=str(e))
            return TransportFailure(str(e) or type(e).__name__, e)

    async def close(self) -> None:
        """
        Close the HTTP session and cleanup resources.

        Safe to call multiple times.
        """
        if self._session:
            try:
                await self._session.close()
            finally:
                self._session = None
                self._closed = True

    @property
    def is_connected(self) -> bool:
        return self._session is not None and not self._closed

    def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            # Deadlines are applied per attempt in send().
            self._session = aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=None))
            self._closed = False
        return self._session

    async def _dispatch(
        self,
        session: aiohttp.ClientSession,
        method: str,
        url: str,
        buffered: bool,
        kwargs: dict[str, Any],
    ) -> Success:
        response = await session.request(method, url, **kwargs)
        if not buffered and 200 <= response.status < 300 and response.status != 204:
            return Success(response.status, response.headers, response)

        try:
            body = await response.read()
        finally:
            response.release()
        return Success(response.status, response.headers, response, body)

    def _prepare_headers(self, *, multipart: bool) -> dict[str, str]:
        """
        Prepare HTTP headers for requests.

        Multipart requests carry no Content-Type here so that aiohttp can set
        the boundary itself.
        """
        headers = {
            "Authorization": f"Bearer {self._config.api_key}",
            "User-Agent": f"leanvox-python/{get_version()}",
            "X-Request-Id": self._request_id,
        }
        if not multipart:
            headers["Content-Type"] = "application/json"
        return headers


def _build_form(fields: Mapping[str, Union[str, FileField]]) -> aiohttp.FormData:
    # FormData can only be serialized once, so every attempt builds its own.
    form_data = aiohttp.FormData(default_to_multipart=True)
    for key, value in fields.items():
        if isinstance(value, FileField):
            form_data.add_field(key, value.data, filename=value.filename, content_type=value.content_type)
        else:
            form_data.add_field(key, value)
    return form_data
