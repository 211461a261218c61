"""
Submit-and-poll orchestration for long-running generation jobs.
"""

from __future__ import annotations

import asyncio
from typing import Optional

from .exceptions import LeanvoxError
from .executor import RequestExecutor
from .executor import Sleep
from .helpers import build_generate_body
from .logging import get_logger
from .models import GenerateOptions
from .models import GenerateResult
from .models import Job
from .models import JobStatus

DEFAULT_POLL_INTERVAL = 2.0


class AsyncJobPoller:
    """
    Submit an async generation job and poll it until it is terminal.

    The poll interval is fixed and independent of the executor's retry
    backoff; each poll is an ordinary executor request with its own retries.

    Args:
        executor: Request executor used for the submit and poll calls.
        poll_interval: Seconds to wait before each poll.
        max_polls: Maximum number of polls before giving up. None polls
            until the job reaches a terminal status.
        sleep: Coroutine used to wait between polls.

    Examples:
        >>> poller = AsyncJobPoller(executor)
        >>> result = await poller.generate(GenerateOptions(text=long_text))
        >>> print(result.audio_url)
    """

    def __init__(
        self,
        executor: RequestExecutor,
        *,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        max_polls: Optional[int] = None,
        sleep: Sleep = asyncio.sleep,
        request_id: Optional[str] = None,
    ) -> None:
        self._executor = executor
        self._poll_interval = poll_interval
        self._max_polls = max_polls
        self._sleep = sleep
        self._logger = get_logger(__name__, request_id)

    async def submit(self, options: GenerateOptions) -> Job:
        """Submit an async generation job and return its initial state."""
        body = build_generate_body(options)
        response = await self._executor.request("POST", "/v1/tts/generate-async", json_data=body)
        job = Job.from_dict(response)
        self._logger.info("job_submitted", job_id=job.id, status=job.status)
        return job

    async def get(self, job_id: str) -> Job:
        response = await self._executor.request("GET", f"/v1/jobs/{job_id}")
        return Job.from_dict(response)

    async def wait(self, job: Job) -> Job:
        """
        Poll ``job`` until it reaches a terminal status.

        Returns:
            The completed job.

        Raises:
            LeanvoxError: ``INVALID_REQUEST`` if the job failed,
                ``RETRIES_EXHAUSTED`` if ``max_polls`` was reached.
        """
        polls = 0
        while not job.is_terminal:
            if self._max_polls is not None and polls >= self._max_polls:
                raise LeanvoxError.retries_exhausted(
                    f"Job {job.id} did not finish after {polls} polls (status {job.status})",
                    code="poll_limit_exceeded",
                )
            await self._sleep(self._poll_interval)
            job = await self.get(job.id)
            polls += 1
            self._logger.debug("job_polling", job_id=job.id, status=job.status, polls=polls)

        if job.status == JobStatus.FAILED:
            self._logger.warning("job_failed", job_id=job.id, error=job.error)
            raise LeanvoxError.invalid_request(job.error or "Async job failed")

        self._logger.info("job_completed", job_id=job.id, polls=polls)
        return job

    async def generate(self, options: GenerateOptions) -> GenerateResult:
        """
        Submit ``options`` as an async job, wait for it, and build the result.

        Model, voice and character count come from the submitted request;
        the cost is not reported by the job API and is returned as zero.
        """
        job = await self.wait(await self.submit(options))
        return GenerateResult(
            audio_url=job.audio_url or "",
            model=options.model,
            voice=options.voice or "",
            characters=len(options.text),
            cost_cents=0,
        )
