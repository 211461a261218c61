"""
Utility functions for the Leanvox client.
"""

from __future__ import annotations

import importlib.metadata
import io
import os
from typing import Any
from typing import BinaryIO
from typing import Union

import aiofiles

from .exceptions import LeanvoxError
from .models import FileField
from .models import GenerateOptions

MAX_TEXT_LENGTH = 10_000
MAX_VOICE_INSTRUCTIONS_LENGTH = 300
MODELS = ("standard", "pro", "max")
FORMATS = ("mp3", "wav")

UploadSource = Union[str, bytes, BinaryIO]


def get_version() -> str:
    try:
        return importlib.metadata.version("leanvox")
    except importlib.metadata.PackageNotFoundError:
        try:
            from .. import __version__

            return __version__
        except ImportError:
            return "0.0.0"


async def prepare_upload(
    source: UploadSource,
    filename: str = "upload",
    content_type: str = "application/octet-stream",
) -> FileField:
    """
    Load an upload into memory so it can be resent on every retry attempt.

    Args:
        source: Path to a file, raw bytes, or a binary file-like object.
        filename: Name to report when it cannot be derived from ``source``.
        content_type: Content type of the part.

    Returns:
        FileField ready for a multipart request.

    Examples:
        >>> part = await prepare_upload("chapter1.pdf")
        >>> part.filename
        'chapter1.pdf'
    """
    if isinstance(source, str):
        async with aiofiles.open(source, "rb") as f:
            data = await f.read()
        return FileField(os.path.basename(source), data, content_type)
    if isinstance(source, (bytes, bytearray)):
        return FileField(filename, bytes(source), content_type)

    name = getattr(source, "name", None)
    if isinstance(name, str):
        filename = os.path.basename(name)
    if isinstance(source, io.BytesIO):
        return FileField(filename, source.getvalue(), content_type)
    return FileField(filename, source.read(), content_type)


def validate_generate_params(options: GenerateOptions) -> None:
    """
    Check generation parameters before anything is sent.

    Raises:
        LeanvoxError: With kind ``INVALID_REQUEST`` describing the first problem found.
    """
    if not options.text:
        raise LeanvoxError.invalid_request("text is required and cannot be empty")
    if len(options.text) > MAX_TEXT_LENGTH:
        raise LeanvoxError.invalid_request("text must be 10,000 characters or fewer")
    if options.model not in MODELS:
        raise LeanvoxError.invalid_request('model must be "standard", "pro", or "max"')
    if options.speed is not None and not 0.5 <= options.speed <= 2.0:
        raise LeanvoxError.invalid_request("speed must be between 0.5 and 2.0")
    if options.exaggeration is not None and options.exaggeration != 0.5 and options.model == "standard":
        raise LeanvoxError.invalid_request("exaggeration is only supported on the pro model")
    if options.format is not None and options.format.lower() not in FORMATS:
        raise LeanvoxError.invalid_request('format must be "mp3" or "wav"')


def build_generate_body(options: GenerateOptions) -> dict[str, Any]:
    """
    Build the JSON body of a generation request.

    Raises:
        LeanvoxError: If voice and voice_instructions are combined incorrectly.
    """
    model = options.model
    body: dict[str, Any] = {"text": options.text, "model": model}

    if model == "max":
        if not options.voice_instructions:
            raise LeanvoxError.invalid_request(
                'voice_instructions is required when model is "max". '
                'Example: voice_instructions="A warm, confident female narrator"'
            )
        if len(options.voice_instructions) > MAX_VOICE_INSTRUCTIONS_LENGTH:
            raise LeanvoxError.invalid_request(
                f"voice_instructions must be 300 characters or less (got {len(options.voice_instructions)})"
            )
        if options.voice:
            raise LeanvoxError.invalid_request("voice and voice_instructions are mutually exclusive")
        body["voice_instructions"] = options.voice_instructions
    else:
        if options.voice_instructions:
            raise LeanvoxError.invalid_request(f'voice_instructions is only supported with model "max", not "{model}"')
        if options.voice:
            body["voice"] = options.voice

    if options.language:
        body["language"] = options.language
    if options.format:
        body["format"] = options.format
    if options.speed is not None:
        body["speed"] = options.speed
    if model == "pro" and options.exaggeration is not None:
        body["exaggeration"] = options.exaggeration
    if options.webhook_url:
        body["webhook_url"] = options.webhook_url
    return body
