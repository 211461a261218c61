"""
Request execution with retries.

The :class:`RequestExecutor` runs one shared retry loop for the three request
shapes the API needs: unary JSON calls, streaming calls, and multipart
uploads. Only the way a successful response is interpreted differs between
them, which is captured by a small response mode object.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from collections.abc import Mapping
from typing import Any
from typing import Callable
from typing import Optional
from typing import Union

import aiohttp

from .exceptions import LeanvoxError
from .exceptions import classify_error
from .exceptions import parse_error_body
from .logging import get_logger
from .models import ConnectionConfig
from .models import FileField
from .models import RequestSpec
from .retry import RetryPolicy
from .transport import Success
from .transport import Transport
from .transport import TransportFailure

Sleep = Callable[[float], Awaitable[Any]]


class ResponseMode:
    """How a 2xx response is turned into a return value."""

    buffered = True

    def accepts(self, outcome: Success) -> bool:
        return outcome.ok

    async def result(self, outcome: Success) -> Any:
        raise NotImplementedError


class JsonMode(ResponseMode):
    """Parsed JSON body, or None for 204 No Content."""

    async def result(self, outcome: Success) -> Any:
        if outcome.status == 204:
            return None
        return outcome.json()


class StreamMode(ResponseMode):
    """The open response, handed to the caller as a byte stream."""

    buffered = False

    def accepts(self, outcome: Success) -> bool:
        return outcome.ok and outcome.status != 204 and outcome.response is not None

    async def result(self, outcome: Success) -> aiohttp.ClientResponse:
        if outcome.response is None:
            raise ValueError("Streaming response was not left open")
        return outcome.response


JSON_MODE = JsonMode()
STREAM_MODE = StreamMode()


class RequestExecutor:
    """
    Run API requests through the transport, retrying per the retry policy.

    Retryable failures are absorbed; only the single final outcome reaches
    the caller, either as a return value or as a :class:`LeanvoxError`.

    Args:
        transport: Transport used for each attempt.
        config: Connection configuration providing default timeouts and
            the retry budget.
        retry_policy: Retry policy. Defaults to one built from
            ``config.max_retries``.
        sleep: Coroutine used to wait between attempts.

    Examples:
        >>> executor = RequestExecutor(transport, config)
        >>> voices = await executor.request("GET", "/v1/voices", params={"model": "pro"})
    """

    def __init__(
        self,
        transport: Transport,
        config: ConnectionConfig,
        *,
        retry_policy: Optional[RetryPolicy] = None,
        sleep: Sleep = asyncio.sleep,
        request_id: Optional[str] = None,
    ) -> None:
        self._transport = transport
        self._config = config
        self._retry_policy = retry_policy or RetryPolicy(max_retries=config.max_retries)
        self._sleep = sleep
        self._logger = get_logger(__name__, request_id)

    @property
    def retry_policy(self) -> RetryPolicy:
        return self._retry_policy

    async def request(
        self,
        method: str,
        path: str,
        *,
        json_data: Any = None,
        params: Optional[dict[str, Union[str, int, float]]] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        """
        Send a JSON request and return the parsed JSON response.

        Returns:
            The decoded response body, or None for 204 No Content.

        Raises:
            LeanvoxError: For API errors, network errors, and exhausted retries.
        """
        spec = RequestSpec(method, path, params=params, json_data=json_data, timeout=timeout)
        return await self.execute(spec, JSON_MODE)

    async def request_stream(
        self,
        method: str,
        path: str,
        *,
        json_data: Any = None,
        timeout: Optional[float] = None,
    ) -> aiohttp.ClientResponse:
        """
        Send a JSON request and return the open response for streaming.

        The caller owns the returned response and must close or release it,
        typically with ``async with``.

        Raises:
            LeanvoxError: For API errors, network errors, and exhausted retries.
        """
        spec = RequestSpec(method, path, json_data=json_data, timeout=timeout or self._config.stream_timeout)
        return await self.execute(spec, STREAM_MODE)  # type: ignore[no-any-return]

    async def upload(
        self,
        path: str,
        fields: Mapping[str, Union[str, FileField]],
        *,
        timeout: Optional[float] = None,
    ) -> Any:
        """
        POST a multipart form and return the parsed JSON response.

        Raises:
            LeanvoxError: For API errors, network errors, and exhausted retries.
        """
        spec = RequestSpec("POST", path, multipart=dict(fields), timeout=timeout)
        return await self.execute(spec, JSON_MODE)

    async def execute(self, spec: RequestSpec, mode: ResponseMode) -> Any:
        """Run ``spec`` for attempts 0..max_retries and return the mode's result."""
        timeout = spec.timeout or self._config.timeout
        policy = self._retry_policy

        for attempt in range(policy.max_retries + 1):
            outcome = await self._transport.send(spec, timeout, buffered=mode.buffered)

            if isinstance(outcome, Success) and mode.accepts(outcome):
                try:
                    return await mode.result(outcome)
                except ValueError as e:
                    outcome = TransportFailure(f"Invalid JSON response: {e}", e)

            if policy.should_retry(attempt, outcome):
                delay = policy.delay(attempt, outcome)
                self._logger.info(
                    "request_retry",
                    method=spec.method,
                    path=spec.path,
                    attempt=attempt,
                    status=outcome.status if isinstance(outcome, Success) else None,
                    delay=delay,
                )
                await self._sleep(delay)
                continue

            if isinstance(outcome, Success):
                error = classify_error(outcome.status, parse_error_body(outcome.body))
            else:
                error = LeanvoxError.network(outcome.reason)
            self._logger.warning(
                "request_failed",
                method=spec.method,
                path=spec.path,
                attempts=attempt + 1,
                kind=error.kind.value,
                status=error.status_code,
            )
            raise error

        raise LeanvoxError.retries_exhausted()
