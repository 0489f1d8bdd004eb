"""Hint adapter backed by an OpenAI chat model."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from ..core.ai import AIResponseError, complete_json, load_client
from ..core.logging import get_logger
from ..core.config import AIConfig
from .errors import HintGenerationError

__all__ = [
    "HINT_ERROR_MESSAGE",
    "HINT_UNHELPFUL_MESSAGE",
    "HintResponse",
    "HintService",
    "build_hint_prompts",
]

HINT_ERROR_MESSAGE = "Sorry, an error occurred while generating the hint."
HINT_UNHELPFUL_MESSAGE = (
    "I couldn't generate a helpful hint for this question. Try your best!"
)

_LOGGER = get_logger("quiz.hints")

_SYSTEM_PROMPT = (
    "You are an AI assistant designed to provide hints for quiz questions."
)


@dataclass(frozen=True)
class HintResponse:
    """Structured reply of the hint capability."""

    hint: str
    is_helpful: bool


def build_hint_prompts(question: str) -> tuple[str, str]:
    user_prompt = (
        "Given the following question, generate a concise and helpful hint "
        "that guides the user towards the answer without giving it away "
        "directly. Also, determine if the generated hint is actually helpful "
        "and relevant to the question.\n\n"
        'Respond with a JSON object: {"hint": string, "isHelpful": boolean}\n\n'
        f"Question: {question}"
    )
    return _SYSTEM_PROMPT, user_prompt


class HintService:
    """Turns a question text into a hint string for display.

    The OpenAI client is created on first use so the quiz still runs when no
    credentials are configured; every hint then falls back to the error text.
    """

    def __init__(
        self,
        *,
        client: Any | None = None,
        model: str = "gpt-4o-mini",
        temperature: float = 0.2,
        max_tokens: int = 300,
        request_timeout: Optional[int] = None,
        client_factory: Callable[[], Any] = load_client,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._client = client
        self._client_factory = client_factory
        self._model = model
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._timeout = request_timeout
        self._logger = logger or _LOGGER

    @classmethod
    def from_config(
        cls, config: AIConfig, *, client: Any | None = None
    ) -> "HintService":
        return cls(
            client=client,
            model=config.model,
            temperature=config.temperature,
            max_tokens=min(config.max_tokens, 300),
            request_timeout=config.request_timeout_seconds,
            client_factory=lambda: load_client(api_base=config.api_base),
        )

    def generate(self, question: str) -> HintResponse:
        """Ask the model for a hint; raise HintGenerationError on any failure."""

        system_prompt, user_prompt = build_hint_prompts(question)
        try:
            client = self._resolve_client()
            payload = complete_json(
                client,
                model=self._model,
                system_prompt=system_prompt,
                user_prompt=user_prompt,
                temperature=self._temperature,
                max_tokens=self._max_tokens,
                timeout=self._timeout,
            )
        except HintGenerationError:
            raise
        except AIResponseError as exc:
            raise HintGenerationError(str(exc)) from exc
        except Exception as exc:
            raise HintGenerationError(f"Hint request failed: {exc}") from exc

        hint = payload.get("hint")
        helpful = payload.get("isHelpful")
        if not isinstance(hint, str) or not isinstance(helpful, bool):
            raise HintGenerationError(
                "Hint response must contain 'hint' (string) and "
                "'isHelpful' (boolean)."
            )
        return HintResponse(hint=hint, is_helpful=helpful)

    def get_hint(self, question: str) -> str:
        """Return the hint text to display; never raises."""

        try:
            response = self.generate(question)
        except HintGenerationError:
            self._logger.exception(
                "Error generating hint",
                extra={"question": question, "model": self._model},
            )
            return HINT_ERROR_MESSAGE
        if not response.is_helpful:
            self._logger.info(
                "Model marked hint as unhelpful",
                extra={"question": question},
            )
            return HINT_UNHELPFUL_MESSAGE
        return response.hint

    def _resolve_client(self) -> Any:
        if self._client is None:
            try:
                self._client = self._client_factory()
            except RuntimeError as exc:
                raise HintGenerationError(str(exc)) from exc
        return self._client
