"""Changelog text generation: prompts, the streaming client and its consumers."""

from chlog.generation.base import GenerationError, TextGenerator
from chlog.generation.client import AnthropicGenerator
from chlog.generation.prompt import SYSTEM_PROMPT, build_user_prompt
from chlog.generation.stream import collect_chunks, forward_chunks

__all__ = [
    "AnthropicGenerator",
    "GenerationError",
    "SYSTEM_PROMPT",
    "TextGenerator",
    "build_user_prompt",
    "collect_chunks",
    "forward_chunks",
]
