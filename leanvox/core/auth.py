"""
API key resolution for the Leanvox client.

Keys are looked up in order: explicit argument, the ``LEANVOX_API_KEY``
environment variable, then ``api_key`` in ``~/.lvox/config.toml``.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

import tomli

from .exceptions import LeanvoxError

API_KEY_ENV = "LEANVOX_API_KEY"
VALID_PREFIXES = ("lv_live_", "lv_test_")


def config_path() -> Path:
    return Path.home() / ".lvox" / "config.toml"


def read_config_file(path: Optional[Path] = None) -> Optional[str]:
    """Return ``api_key`` from the config file, or None if missing or unreadable."""
    path = path or config_path()
    try:
        with open(path, "rb") as f:
            data = tomli.load(f)
    except (OSError, tomli.TOMLDecodeError):
        return None
    api_key = data.get("api_key")
    return api_key if isinstance(api_key, str) and api_key else None


def resolve_api_key(explicit: Optional[str] = None) -> Optional[str]:
    if explicit:
        return explicit
    env_key = os.environ.get(API_KEY_ENV)
    if env_key:
        return env_key
    return read_config_file()


def validate_api_key(key: str) -> None:
    if not key:
        raise LeanvoxError.authentication("API key is required")
    if not key.startswith(VALID_PREFIXES):
        raise LeanvoxError.authentication(
            f"Invalid API key prefix. Key must start with one of: {', '.join(VALID_PREFIXES)}"
        )


def ensure_api_key(key: Optional[str]) -> str:
    """
    Validate a resolved key.

    Raises:
        LeanvoxError: With kind ``AUTHENTICATION`` if the key is missing or malformed.
    """
    if not key:
        raise LeanvoxError.authentication(
            "No API key found. Pass api_key to the client, set LEANVOX_API_KEY, or add it to ~/.lvox/config.toml"
        )
    validate_api_key(key)
    return key
