"""Clients for external model services."""

from .gemini import GeminiAPIError, GeminiClient

__all__ = ["GeminiClient", "GeminiAPIError"]
