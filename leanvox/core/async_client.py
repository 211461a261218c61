"""
Asynchronous client for the Leanvox text-to-speech API.

This module provides the main AsyncClient class covering synchronous
generation, streaming, dialogues, async jobs, and the voices, files,
generations and account resources.
"""

from __future__ import annotations

import os
import uuid
from typing import Any
from typing import Optional

import aiohttp

from .auth import ensure_api_key
from .auth import resolve_api_key
from .exceptions import LeanvoxError
from .exceptions import StreamingFormatError
from .executor import RequestExecutor
from .helpers import MODELS
from .helpers import build_generate_body
from .helpers import validate_generate_params
from .logging import get_logger
from .models import DEFAULT_BASE_URL
from .models import ConnectionConfig
from .models import DialogueLine
from .models import GenerateOptions
from .models import GenerateResult
from .models import Job
from .poller import DEFAULT_POLL_INTERVAL
from .poller import AsyncJobPoller
from .resources import AccountResource
from .resources import FilesResource
from .resources import GenerationsResource
from .resources import VoicesResource
from .retry import RetryPolicy
from .transport import Transport

BASE_URL_ENV = "LEANVOX_BASE_URL"
DEFAULT_TIMEOUT = 30.0
DEFAULT_MAX_RETRIES = 2
DEFAULT_AUTO_ASYNC_THRESHOLD = 5000


class AsyncClient:
    """
    Asynchronous client for the Leanvox text-to-speech API.

    Requests are retried on network failures and on 429/5xx responses with
    a fixed backoff schedule; every other failure is raised immediately as
    a :class:`LeanvoxError`. Texts longer than ``auto_async_threshold`` are
    generated as async jobs and polled to completion transparently.

    Args:
        api_key: Leanvox API key. If not provided, uses the LEANVOX_API_KEY
                environment variable, then ``~/.lvox/config.toml``.
        url: API base URL. If not provided, uses LEANVOX_BASE_URL or the
             production endpoint.
        timeout: Per-attempt timeout in seconds.
        max_retries: Retry attempts after the first one.
        auto_async_threshold: Text length above which ``generate`` uses an async job.
        poll_interval: Seconds between async job polls.
        max_polls: Optional cap on async job polls. Unbounded by default.
        retry_policy: Retry policy overriding the default backoff schedule.
            Its max_retries takes precedence over ``max_retries``.
        conn_config: Complete connection configuration object. If provided,
               overrides api_key, url, timeout and max_retries.

    Raises:
        LeanvoxError: With kind ``AUTHENTICATION`` if no valid API key is found.

    Examples:
        Basic usage:
            >>> async with AsyncClient(api_key="lv_live_...") as client:
            ...     result = await client.generate(text="Hello world", voice="af_heart")
            ...     await result.save("hello.mp3")

        Streaming:
            >>> async with AsyncClient() as client:
            ...     async with await client.stream(text="Hello world") as response:
            ...         async for chunk in response.content.iter_chunked(4096):
            ...             player.feed(chunk)
    """

    def __init__(
        self,
        *,
        api_key: Optional[str] = None,
        url: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        max_retries: int = DEFAULT_MAX_RETRIES,
        auto_async_threshold: int = DEFAULT_AUTO_ASYNC_THRESHOLD,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        max_polls: Optional[int] = None,
        retry_policy: Optional[RetryPolicy] = None,
        conn_config: Optional[ConnectionConfig] = None,
    ) -> None:
        if conn_config:
            ensure_api_key(conn_config.api_key)
            self._conn_config = conn_config
        else:
            final_url = url or os.environ.get(BASE_URL_ENV) or DEFAULT_BASE_URL
            self._conn_config = ConnectionConfig(
                url=final_url,
                api_key=ensure_api_key(resolve_api_key(api_key)),
                timeout=timeout,
                max_retries=max_retries,
            )

        self._auto_async_threshold = auto_async_threshold
        self._request_id = str(uuid.uuid4())
        self._transport = Transport(self._conn_config, self._request_id)
        self._executor = RequestExecutor(
            self._transport,
            self._conn_config,
            retry_policy=retry_policy,
            request_id=self._request_id,
        )
        self._poller = AsyncJobPoller(
            self._executor,
            poll_interval=poll_interval,
            max_polls=max_polls,
            request_id=self._request_id,
        )
        self._logger = get_logger(__name__, self._request_id)

        self.voices = VoicesResource(self._executor)
        self.files = FilesResource(self._executor)
        self.generations = GenerationsResource(self._executor)
        self.account = AccountResource(self._executor)

    async def __aenter__(self) -> AsyncClient:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    @property
    def conn_config(self) -> ConnectionConfig:
        return self._conn_config

    async def generate(
        self,
        *,
        text: str,
        model: str = "standard",
        voice: Optional[str] = None,
        voice_instructions: Optional[str] = None,
        language: Optional[str] = None,
        format: Optional[str] = None,
        speed: Optional[float] = None,
        exaggeration: Optional[float] = None,
    ) -> GenerateResult:
        """
        Convert text to speech.

        Texts longer than the client's ``auto_async_threshold`` are submitted
        as async jobs and polled until done; the returned result then reports
        a cost of zero.

        Returns:
            GenerateResult with the audio URL and generation metadata.

        Raises:
            LeanvoxError: ``INVALID_REQUEST`` for invalid parameters or a
                failed async job, or any API/network error.

        Examples:
            >>> result = await client.generate(text="Hello world", model="pro", exaggeration=0.7)
            >>> audio = await result.download()
        """
        options = GenerateOptions(
            text=text,
            model=model,
            voice=voice,
            voice_instructions=voice_instructions,
            language=language,
            format=format,
            speed=speed,
            exaggeration=exaggeration,
        )
        validate_generate_params(options)

        if len(text) > self._auto_async_threshold:
            self._logger.info("generate_auto_async", characters=len(text))
            return await self._poller.generate(options)

        response = await self._executor.request("POST", "/v1/tts/generate", json_data=build_generate_body(options))
        return GenerateResult.from_dict(response)

    async def stream(
        self,
        *,
        text: str,
        model: str = "standard",
        voice: Optional[str] = None,
        voice_instructions: Optional[str] = None,
        language: Optional[str] = None,
        format: str = "mp3",
        speed: Optional[float] = None,
        exaggeration: Optional[float] = None,
        timeout: Optional[float] = None,
    ) -> aiohttp.ClientResponse:
        """
        Convert text to speech and stream the MP3 audio as it is produced.

        The returned response is owned by the caller, who must close it,
        typically with ``async with``.

        Raises:
            StreamingFormatError: If a format other than MP3 is requested.
            LeanvoxError: For invalid parameters or any API/network error.
        """
        options = GenerateOptions(
            text=text,
            model=model,
            voice=voice,
            voice_instructions=voice_instructions,
            language=language,
            format=format,
            speed=speed,
            exaggeration=exaggeration,
        )
        validate_generate_params(options)
        if format.lower() != "mp3":
            raise StreamingFormatError()

        return await self._executor.request_stream(
            "POST", "/v1/tts/stream", json_data=build_generate_body(options), timeout=timeout
        )

    async def dialogue(
        self,
        lines: list[DialogueLine],
        *,
        model: str = "pro",
        gap_ms: int = 500,
    ) -> GenerateResult:
        """
        Generate a multi-speaker dialogue.

        Args:
            lines: At least two dialogue lines.
            model: One of "standard", "pro", "max".
            gap_ms: Silence between lines in milliseconds.

        Raises:
            LeanvoxError: ``INVALID_REQUEST`` for fewer than two lines or an
                unknown model, or any API/network error.
        """
        if len(lines) < 2:
            raise LeanvoxError.invalid_request("dialogue requires at least 2 lines")
        if model not in MODELS:
            raise LeanvoxError.invalid_request('model must be "standard", "pro", or "max"')

        body = {
            "model": model,
            "lines": [line.to_dict(model) for line in lines],
            "gap_ms": gap_ms,
        }
        response = await self._executor.request("POST", "/v1/tts/dialogue", json_data=body)
        return GenerateResult.from_dict(response)

    async def generate_async(
        self,
        *,
        text: str,
        model: str = "standard",
        voice: Optional[str] = None,
        voice_instructions: Optional[str] = None,
        language: Optional[str] = None,
        format: Optional[str] = None,
        speed: Optional[float] = None,
        exaggeration: Optional[float] = None,
        webhook_url: Optional[str] = None,
    ) -> Job:
        """
        Submit an async generation job without waiting for it.

        Returns:
            The job in its initial state. Use :meth:`get_job` or
            :meth:`wait_for_job` to follow it.
        """
        options = GenerateOptions(
            text=text,
            model=model,
            voice=voice,
            voice_instructions=voice_instructions,
            language=language,
            format=format,
            speed=speed,
            exaggeration=exaggeration,
            webhook_url=webhook_url,
        )
        validate_generate_params(options)
        return await self._poller.submit(options)

    async def get_job(self, job_id: str) -> Job:
        return await self._poller.get(job_id)

    async def wait_for_job(self, job_id: str) -> Job:
        """
        Poll a job until it completes.

        Raises:
            LeanvoxError: ``INVALID_REQUEST`` if the job failed.
        """
        return await self._poller.wait(await self.get_job(job_id))

    async def list_jobs(self) -> list[Job]:
        response = await self._executor.request("GET", "/v1/jobs")
        return [Job.from_dict(job) for job in response]

    async def close(self) -> None:
        """
        Close the client and its HTTP session.

        Safe to call multiple times.
        """
        await self._transport.close()
