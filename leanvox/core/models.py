"""
Models for the Leanvox client.

This module contains the data models, enums, and configuration classes used
throughout the Leanvox client: connection configuration, the immutable
request description shared by every retry attempt, async job state, and the
typed results of the API resources.
"""

from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field
from enum import Enum
from typing import Any
from typing import Optional
from typing import Union

import aiofiles
import aiohttp

from .exceptions import LeanvoxError
from .exceptions import classify_error
from .exceptions import parse_error_body

DEFAULT_BASE_URL = "https://api.leanvox.com"


@dataclass(frozen=True)
class ConnectionConfig:
    """
    Configuration for HTTP connection parameters.

    Immutable for the lifetime of a client and safe to share between
    concurrent calls.

    Attributes:
        url: Base URL for the Leanvox API.
        api_key: Leanvox API key used as a bearer credential.
        timeout: Default per-attempt timeout in seconds for JSON and upload calls.
        max_retries: Number of retry attempts after the first one.
        stream_timeout: Default per-attempt timeout in seconds for streaming calls.
    """

    url: str = DEFAULT_BASE_URL
    api_key: str = ""
    timeout: float = 30.0
    max_retries: int = 2
    stream_timeout: float = 120.0


@dataclass(frozen=True)
class FileField:
    """A file part of a multipart request body."""

    filename: str
    data: bytes
    content_type: str = "application/octet-stream"


@dataclass(frozen=True)
class RequestSpec:
    """
    Description of a single API call, reused unchanged across retry attempts.

    At most one of ``json_data`` and ``multipart`` is set. Multipart values
    are either plain strings or :class:`FileField` parts.

    Attributes:
        method: HTTP method.
        path: API path, starting with "/".
        params: Query parameters. None and empty-string values are omitted.
        json_data: JSON request body.
        multipart: Multipart form fields.
        timeout: Per-attempt timeout override in seconds.
    """

    method: str
    path: str
    params: Optional[dict[str, Union[str, int, float]]] = None
    json_data: Any = None
    multipart: Optional[dict[str, Union[str, FileField]]] = None
    timeout: Optional[float] = None

    @property
    def is_multipart(self) -> bool:
        return self.multipart is not None

    def query(self) -> dict[str, str]:
        """Query parameters ready to be appended to the URL."""
        if not self.params:
            return {}
        return {k: str(v) for k, v in self.params.items() if v is not None and v != ""}


class JobStatus(str, Enum):
    """
    Status values for async generation jobs.

    PENDING and PROCESSING are non-terminal; COMPLETED and FAILED are
    terminal and absorbing.
    """

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


TERMINAL_STATUSES = frozenset({JobStatus.COMPLETED.value, JobStatus.FAILED.value})


@dataclass
class Job:
    """
    State of an async generation job as last reported by the API.

    Attributes:
        id: Unique job identifier.
        status: Job status. Values outside :class:`JobStatus` are kept as-is
            and treated as non-terminal.
        estimated_seconds: Server estimate of the remaining processing time.
        audio_url: URL of the generated audio once completed.
        error: Failure description once failed.
    """

    id: str
    status: str
    estimated_seconds: Optional[float] = None
    audio_url: Optional[str] = None
    error: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Job:
        """Create Job from API response dictionary."""
        return cls(
            id=data["id"],
            status=data["status"],
            estimated_seconds=data.get("estimated_seconds"),
            audio_url=data.get("audio_url"),
            error=data.get("error"),
        )


@dataclass
class GenerateOptions:
    """
    Parameters of a text-to-speech generation.

    Attributes:
        text: Text to synthesize (1 to 10,000 characters).
        model: One of "standard", "pro", "max".
        voice: Voice ID. Not allowed with the "max" model.
        voice_instructions: Free-form voice description, required for "max".
        language: Language code.
        format: Output format, "mp3" or "wav".
        speed: Playback speed between 0.5 and 2.0.
        exaggeration: Emotion exaggeration, "pro" model only.
        webhook_url: Callback URL for async jobs.
    """

    text: str
    model: str = "standard"
    voice: Optional[str] = None
    voice_instructions: Optional[str] = None
    language: Optional[str] = None
    format: Optional[str] = None
    speed: Optional[float] = None
    exaggeration: Optional[float] = None
    webhook_url: Optional[str] = None


@dataclass
class DialogueLine:
    """A single line of a multi-speaker dialogue."""

    text: str
    voice: Optional[str] = None
    voice_instructions: Optional[str] = None
    language: str = "en"
    exaggeration: Optional[float] = None

    def to_dict(self, model: str) -> dict[str, Any]:
        line: dict[str, Any] = {"text": self.text}
        if self.voice:
            line["voice"] = self.voice
        if self.voice_instructions:
            line["voice_instructions"] = self.voice_instructions
        line["language"] = self.language
        if model == "pro" and self.exaggeration is not None:
            line["exaggeration"] = self.exaggeration
        return line


@dataclass
class GenerateResult:
    """
    Result of a completed generation.

    Attributes:
        audio_url: URL of the generated audio.
        model: Model used.
        voice: Voice used.
        characters: Number of characters billed.
        cost_cents: Cost of the generation. Zero for results assembled from
            polled async jobs, where the cost is not reported.
        generated_voice_id: Voice created on the fly by the "max" model.
        suggestion: Optional hint returned by the API.
    """

    audio_url: str
    model: str
    voice: str
    characters: int
    cost_cents: float
    generated_voice_id: Optional[str] = None
    suggestion: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> GenerateResult:
        """Create GenerateResult from API response dictionary."""
        return cls(
            audio_url=data["audio_url"],
            model=data.get("model", ""),
            voice=data.get("voice", ""),
            characters=data.get("characters", 0),
            cost_cents=data.get("cost_cents", 0),
            generated_voice_id=data.get("generated_voice_id"),
            suggestion=data.get("suggestion"),
        )

    async def download(self) -> bytes:
        """
        Fetch the generated audio.

        Returns:
            Audio bytes.

        Raises:
            LeanvoxError: If the audio cannot be fetched.
        """
        try:
            async with aiohttp.ClientSession() as session:
                async with session.get(self.audio_url) as response:
                    data = await response.read()
                    if not 200 <= response.status < 300:
                        raise classify_error(response.status, parse_error_body(data))
                    return data
        except aiohttp.ClientError as e:
            raise LeanvoxError.network(str(e)) from e

    async def save(self, path: str) -> None:
        """Download the generated audio and write it to ``path``."""
        data = await self.download()
        async with aiofiles.open(path, "wb") as f:
            await f.write(data)


@dataclass
class Voice:
    """A voice available to the account."""

    voice_id: str
    name: str
    model: Optional[str] = None
    language: Optional[str] = None
    status: Optional[str] = None
    description: Optional[str] = None
    preview_url: Optional[str] = None
    unlock_cost_cents: Optional[float] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Voice:
        return cls(
            voice_id=data["voice_id"],
            name=data["name"],
            model=data.get("model"),
            language=data.get("language"),
            status=data.get("status"),
            description=data.get("description"),
            preview_url=data.get("preview_url"),
            unlock_cost_cents=data.get("unlock_cost_cents"),
        )


@dataclass
class VoiceList:
    """Voices grouped by family."""

    standard_voices: list[Voice] = field(default_factory=list)
    pro_voices: list[Voice] = field(default_factory=list)
    cloned_voices: list[Voice] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> VoiceList:
        return cls(
            standard_voices=[Voice.from_dict(v) for v in data.get("standard_voices") or []],
            pro_voices=[Voice.from_dict(v) for v in data.get("pro_voices") or []],
            cloned_voices=[Voice.from_dict(v) for v in data.get("cloned_voices") or []],
        )


@dataclass
class VoiceDesign:
    """A voice designed from a text prompt."""

    id: str
    name: str
    status: Optional[str] = None
    cost_cents: Optional[float] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> VoiceDesign:
        return cls(
            id=data["id"],
            name=data["name"],
            status=data.get("status"),
            cost_cents=data.get("cost_cents"),
        )


@dataclass
class Generation:
    """A past generation from the account history."""

    id: str
    audio_url: Optional[str] = None
    model: Optional[str] = None
    voice: Optional[str] = None
    characters: Optional[int] = None
    cost_cents: Optional[float] = None
    created_at: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Generation:
        return cls(
            id=data["id"],
            audio_url=data.get("audio_url"),
            model=data.get("model"),
            voice=data.get("voice"),
            characters=data.get("characters"),
            cost_cents=data.get("cost_cents"),
            created_at=data.get("created_at"),
        )


@dataclass
class GenerationList:
    generations: list[Generation]
    total: int

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> GenerationList:
        return cls(
            generations=[Generation.from_dict(g) for g in data.get("generations") or []],
            total=data.get("total", 0),
        )


@dataclass
class FileExtractResult:
    """Text extracted from an uploaded document."""

    text: str
    filename: str
    char_count: int
    truncated: bool

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FileExtractResult:
        return cls(
            text=data["text"],
            filename=data["filename"],
            char_count=data["char_count"],
            truncated=data["truncated"],
        )


@dataclass
class AccountBalance:
    balance_cents: float
    total_spent_cents: float

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AccountBalance:
        return cls(balance_cents=data["balance_cents"], total_spent_cents=data["total_spent_cents"])


@dataclass
class AccountUsage:
    entries: list[dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AccountUsage:
        return cls(entries=data.get("entries") or [])
