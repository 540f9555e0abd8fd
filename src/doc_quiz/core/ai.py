"""OpenAI client factory used by the quiz generator."""

from __future__ import annotations

import os
from typing import Any, Optional

from dotenv import load_dotenv

try:  # Allow module import even when the OpenAI dependency is absent.
    from openai import OpenAI  # type: ignore
except Exception:  # pragma: no cover - optional dependency guard
    OpenAI = None  # type: ignore

API_KEY_ENV = "OPENAI_API_KEY"

__all__ = ["API_KEY_ENV", "load_client"]


def load_client(api_key: Optional[str] = None) -> Any:
    """Return an OpenAI client.

    ``api_key`` wins when given (the key entered from the error dialog);
    otherwise the key comes from the environment, after loading ``.env``.
    """
    if OpenAI is None:
        raise RuntimeError(
            "The 'openai' package is required to create a client. "
            "Install it and retry."
        )
    key = (api_key or "").strip()
    if not key:
        load_dotenv()
        key = (os.getenv(API_KEY_ENV) or "").strip()
    if not key:
        raise RuntimeError(
            f"{API_KEY_ENV} not found in environment. Set it or add to .env"
        )
    return OpenAI(api_key=key)
