"""LLM provider interface and Gemini implementation."""

from __future__ import annotations

import logging
import time
from collections.abc import Iterator
from typing import Any, Protocol

from google import genai
from google.genai import types

from designseek import config
from designseek.streaming import CancellationToken

logger = logging.getLogger(__name__)


class GenerationProvider(Protocol):
    """Protocol for streaming text generation providers."""

    def stream(
        self,
        contents: list[dict[str, Any]],
        system: str | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> Iterator[str]:
        """Yield response text chunks.

        Implementations check ``cancel_token`` before every chunk and raise
        ``GenerationCancelled`` once it is set.
        """
        ...


class GeminiProvider:
    """Gemini implementation of streaming generation."""

    def __init__(
        self,
        api_key: str | None = None,
        generation_model: str | None = None,
    ) -> None:
        self._client = genai.Client(api_key=api_key or config.GEMINI_API_KEY)
        self._generation_model = generation_model or config.GEMINI_MODEL

    def stream(
        self,
        contents: list[dict[str, Any]],
        system: str | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> Iterator[str]:
        """Stream a response from Gemini.

        Args:
            contents: Conversation turns as ``{"role", "parts"}`` dicts.
            system: Optional system instruction.
            cancel_token: Checked before each chunk; the upstream stream is
                closed as soon as cancellation is observed.

        Yields:
            Non-empty text chunks in arrival order.
        """
        if cancel_token is not None:
            cancel_token.raise_if_cancelled()

        logger.debug("Stream via %s (%d turn(s))", self._generation_model, len(contents))
        t0 = time.perf_counter()
        gen_config = None
        if system:
            gen_config = types.GenerateContentConfig(
                system_instruction=system,
            )
        response_stream = self._client.models.generate_content_stream(
            model=self._generation_model,
            contents=contents,
            config=gen_config,
        )

        chars = 0
        try:
            for chunk in response_stream:
                if cancel_token is not None:
                    cancel_token.raise_if_cancelled()
                text = chunk.text
                if text:
                    chars += len(text)
                    yield text
        finally:
            close = getattr(response_stream, "close", None)
            if close is not None:
                close()
            logger.debug("Stream finished: %d chars, %.0fms", chars, (time.perf_counter() - t0) * 1000)
