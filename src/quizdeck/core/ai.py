"""Shared AI helper utilities."""

from __future__ import annotations

import json
import os
import re
from typing import Any, Mapping

from dotenv import load_dotenv
from openai import OpenAI

__all__ = ["AIResponseError", "load_client", "complete_json"]


class AIResponseError(RuntimeError):
    """Raised when a model reply cannot be decoded into a JSON object."""


def load_client(*, api_base: str | None = None) -> Any:
    """Initialize an OpenAI client using environment-derived credentials."""
    load_dotenv()
    api_key = os.getenv("OPENAI_API_KEY")
    if not api_key:
        raise RuntimeError(
            "OPENAI_API_KEY not found in environment. Set it or add to .env"
        )
    if api_base:
        return OpenAI(api_key=api_key, base_url=api_base)
    return OpenAI(api_key=api_key)


def complete_json(
    client: Any,
    *,
    model: str,
    system_prompt: str,
    user_prompt: str,
    temperature: float,
    max_tokens: int,
    timeout: int | None = None,
) -> Mapping[str, Any]:
    """Run a chat completion in JSON mode and return the decoded object.

    Client errors propagate unchanged; a reply that is empty or not a JSON
    object raises :class:`AIResponseError`.
    """

    kwargs: dict[str, Any] = {
        "model": model,
        "messages": [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ],
        "temperature": temperature,
        "max_tokens": max_tokens,
        "response_format": {"type": "json_object"},
    }
    if timeout is not None:
        kwargs["timeout"] = timeout
    response = client.chat.completions.create(**kwargs)
    content = (response.choices[0].message.content or "").strip()
    return _decode_object(content)


def _decode_object(content: str) -> Mapping[str, Any]:
    if not content:
        raise AIResponseError("Model returned an empty response.")
    fenced = re.search(r"```(?:json)?\s*(.+?)```", content, re.DOTALL)
    payload = fenced.group(1) if fenced else content
    try:
        data = json.loads(payload)
    except json.JSONDecodeError as exc:
        raise AIResponseError(f"Model response is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise AIResponseError(
            "Expected a JSON object, found {0}.".format(type(data).__name__)
        )
    return data
