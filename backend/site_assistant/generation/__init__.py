"""Grounded answer generation."""

from .backends import ExtractiveBackend, GeminiGenerationBackend, GroundedPrompt
from .generator import AnswerGenerator, build_prompt

__all__ = [
    "AnswerGenerator",
    "build_prompt",
    "GroundedPrompt",
    "ExtractiveBackend",
    "GeminiGenerationBackend",
]
