"""Provider client bootstrap for quiz generation."""

from __future__ import annotations

import os
from typing import Any, Mapping, Optional

from dotenv import load_dotenv
from openai import AsyncOpenAI

__all__ = ["API_KEY_ENV", "ConfigurationError", "load_client"]

API_KEY_ENV = "OPENAI_API_KEY"


class ConfigurationError(RuntimeError):
    """Raised when the provider credential is not available."""


def load_client(
    *,
    env: Optional[Mapping[str, str]] = None,
    timeout: Optional[float] = None,
) -> Any:
    """Create an ``AsyncOpenAI`` client from environment-derived credentials.

    ``.env`` files are honoured when ``env`` is not supplied. A missing key is
    a startup-time failure: callers should surface it before attempting to
    generate a quiz.
    """
    if env is None:
        load_dotenv()
        env = os.environ
    api_key = (env.get(API_KEY_ENV) or "").strip()
    if not api_key:
        raise ConfigurationError(
            f"{API_KEY_ENV} not found in environment. Set it or add to .env"
        )
    kwargs: dict[str, Any] = {"api_key": api_key}
    if timeout is not None:
        kwargs["timeout"] = timeout
    return AsyncOpenAI(**kwargs)
