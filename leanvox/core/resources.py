"""
API resources exposed by the Leanvox client.

Each resource is a thin mapping between client calls and API endpoints;
retries and error classification are handled by the request executor.
"""

from __future__ import annotations

from typing import Any
from typing import Optional
from typing import Union

from .exceptions import LeanvoxError
from .executor import RequestExecutor
from .helpers import UploadSource
from .helpers import prepare_upload
from .models import AccountBalance
from .models import AccountUsage
from .models import FileExtractResult
from .models import FileField
from .models import Generation
from .models import GenerationList
from .models import Voice
from .models import VoiceDesign
from .models import VoiceList


class VoicesResource:
    """Voice catalogue, cloning and design."""

    def __init__(self, executor: RequestExecutor) -> None:
        self._executor = executor

    async def list(self, model: Optional[str] = None) -> VoiceList:
        response = await self._executor.request("GET", "/v1/voices", params={"model": model or ""})
        return VoiceList.from_dict(response)

    async def list_curated(self) -> list[Voice]:
        response = await self._executor.request("GET", "/v1/voices/curated")
        return [Voice.from_dict(v) for v in response]

    async def clone(
        self,
        name: str,
        *,
        audio: Optional[UploadSource] = None,
        audio_base64: Optional[str] = None,
        description: Optional[str] = None,
        auto_unlock: bool = False,
    ) -> Voice:
        """
        Clone a voice from a reference recording.

        Args:
            name: Name of the new voice.
            audio: Reference audio as a path, bytes, or binary file object.
            audio_base64: Reference audio as a base64 string, instead of ``audio``.
            description: Optional description.
            auto_unlock: Unlock the voice immediately after cloning.

        Raises:
            LeanvoxError: ``INVALID_REQUEST`` unless exactly one audio source is given.
        """
        if (audio is None) == (audio_base64 is None):
            raise LeanvoxError.invalid_request("Provide exactly one of audio or audio_base64")

        fields: dict[str, Union[str, FileField]] = {"name": name}
        if description:
            fields["description"] = description
        if auto_unlock:
            fields["auto_unlock"] = "true"
        if audio is not None:
            fields["audio"] = await prepare_upload(audio, filename="audio.wav", content_type="audio/wav")
        elif audio_base64 is not None:
            fields["audio_base64"] = audio_base64

        response = await self._executor.upload("/v1/voices/clone", fields)
        return Voice.from_dict(response)

    async def unlock(self, voice_id: str) -> dict[str, Any]:
        return await self._executor.request("POST", f"/v1/voices/{voice_id}/unlock")  # type: ignore[no-any-return]

    async def design(
        self,
        name: str,
        prompt: str,
        *,
        language: str = "",
        description: str = "",
    ) -> VoiceDesign:
        body = {"name": name, "prompt": prompt, "language": language, "description": description}
        response = await self._executor.request("POST", "/v1/voices/design", json_data=body)
        return VoiceDesign.from_dict(response)

    async def list_designs(self) -> list[VoiceDesign]:
        response = await self._executor.request("GET", "/v1/voices/designs")
        return [VoiceDesign.from_dict(d) for d in response]

    async def delete(self, voice_id: str) -> None:
        await self._executor.request("DELETE", f"/v1/voices/{voice_id}")


class FilesResource:
    def __init__(self, executor: RequestExecutor) -> None:
        self._executor = executor

    async def extract_text(self, file: UploadSource, filename: str = "upload") -> FileExtractResult:
        """
        Extract text from a document for later synthesis.

        Args:
            file: Path to a document, its bytes, or a binary file object.
            filename: Name to report when it cannot be derived from ``file``.
        """
        part = await prepare_upload(file, filename=filename)
        response = await self._executor.upload("/v1/files/extract-text", {"file": part})
        return FileExtractResult.from_dict(response)


class GenerationsResource:
    """Generation history."""

    def __init__(self, executor: RequestExecutor) -> None:
        self._executor = executor

    async def list(self, *, limit: Optional[int] = None, offset: Optional[int] = None) -> GenerationList:
        params: dict[str, Union[str, int, float]] = {}
        if limit is not None:
            params["limit"] = limit
        if offset is not None:
            params["offset"] = offset
        response = await self._executor.request("GET", "/v1/generations", params=params)
        return GenerationList.from_dict(response)

    async def get_audio(self, generation_id: str) -> Generation:
        response = await self._executor.request("GET", f"/v1/generations/{generation_id}/audio")
        return Generation.from_dict(response)

    async def delete(self, generation_id: str) -> None:
        await self._executor.request("DELETE", f"/v1/generations/{generation_id}")


class AccountResource:
    """Balance, usage and billing."""

    def __init__(self, executor: RequestExecutor) -> None:
        self._executor = executor

    async def balance(self) -> AccountBalance:
        response = await self._executor.request("GET", "/v1/account/balance")
        return AccountBalance.from_dict(response)

    async def usage(
        self,
        *,
        days: Optional[int] = None,
        model: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> AccountUsage:
        params: dict[str, Union[str, int, float]] = {}
        if days is not None:
            params["days"] = days
        if model:
            params["model"] = model
        if limit is not None:
            params["limit"] = limit
        response = await self._executor.request("GET", "/v1/account/usage", params=params)
        return AccountUsage.from_dict(response)

    async def buy_credits(self, amount_cents: int) -> dict[str, Any]:
        response = await self._executor.request("POST", "/v1/billing/checkout", json_data={"amount_cents": amount_cents})
        return response  # type: ignore[no-any-return]
