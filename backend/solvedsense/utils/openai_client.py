"""
Lazy-initialized async OpenAI client for the generative explainer.

The client is only built on first use, so importing the app never fails when
OPENAI_API_KEY is missing and the template explainer is in use.
"""

import os
from typing import Optional

import httpx
from openai import AsyncOpenAI

_client: Optional[AsyncOpenAI] = None

# Explanations are short; fail fast and fall back to templates
DEFAULT_TIMEOUT = httpx.Timeout(20.0, connect=5.0)

DEFAULT_MODEL = "gpt-4o-mini"


def get_explainer_model() -> str:
    return os.getenv("EXPLAINER_MODEL", DEFAULT_MODEL)


def get_async_openai_client() -> AsyncOpenAI:
    """
    Get the shared AsyncOpenAI client.

    Raises:
        ValueError: If OPENAI_API_KEY is not set
    """
    global _client

    if _client is None:
        api_key = os.getenv("OPENAI_API_KEY")
        if not api_key:
            raise ValueError(
                "OPENAI_API_KEY environment variable is not set. "
                "Set it or use EXPLAINER_BACKEND=template."
            )
        _client = AsyncOpenAI(api_key=api_key, timeout=DEFAULT_TIMEOUT, max_retries=1)

    return _client


def reset_client() -> None:
    """Drop the cached client (tests, key rotation)."""
    global _client
    _client = None
