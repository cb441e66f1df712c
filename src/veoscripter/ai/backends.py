"""Backend utilities for veoscripter.ai module."""

from __future__ import annotations

import os
from typing import Literal

from veoscripter.ai.exceptions import MissingAPIKeyError

AnalysisBackend = Literal["gemini", "openai"]

SUPPORTED_BACKENDS: list[str] = ["gemini", "openai"]

# Environment variable names per provider
API_KEY_ENV_VARS: dict[str, str] = {
    "openai": "OPENAI_API_KEY",
    "gemini": "GOOGLE_API_KEY",
}

DEFAULT_MODELS: dict[str, str] = {
    "gemini": "gemini-2.5-flash",
    "openai": "gpt-4o",
}


def get_api_key(provider: str, api_key: str | None = None) -> str:
    """Get API key for a provider.

    Args:
        provider: Provider name (e.g., 'gemini', 'openai')
        api_key: Optional explicit API key. If provided, returns this directly.

    Returns:
        The API key string.

    Raises:
        MissingAPIKeyError: If no API key is found.
    """
    if api_key:
        return api_key

    env_var = API_KEY_ENV_VARS.get(provider, f"{provider.upper()}_API_KEY")
    key = os.environ.get(env_var)
    if key:
        return key

    raise MissingAPIKeyError(provider, env_var)
