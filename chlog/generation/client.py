"""Anthropic Messages API streaming client."""

from __future__ import annotations

from collections.abc import Iterator

import anthropic
import httpx

from chlog.core.config import DEFAULT_MAX_TOKENS, DEFAULT_MODEL
from chlog.generation.base import GenerationError
from chlog.generation.prompt import SYSTEM_PROMPT, build_user_prompt
from chlog.release.model import ReleaseRequest


class AnthropicGenerator:
    """Streams a changelog entry for a ReleaseRequest.

    No timeout is applied to the stream: a stalled connection blocks the run.
    """

    def __init__(
        self,
        *,
        api_key: str,
        model: str = DEFAULT_MODEL,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        client: anthropic.Anthropic | None = None,
    ) -> None:
        self.model = model
        self.max_tokens = max_tokens
        self._client = client if client is not None else anthropic.Anthropic(api_key=api_key)

    def stream(self, request: ReleaseRequest) -> Iterator[str]:
        prompt = build_user_prompt(request)
        try:
            with self._client.messages.stream(
                model=self.model,
                max_tokens=self.max_tokens,
                system=SYSTEM_PROMPT,
                messages=[{"role": "user", "content": prompt}],
            ) as stream:
                yield from stream.text_stream
        except anthropic.APIError as e:
            raise GenerationError(f"streaming error: {e}") from e
        # The SDK lets transport failures during the body read through unwrapped.
        except httpx.TransportError as e:
            raise GenerationError(f"streaming error: connection lost: {e}") from e
