"""Gemini integration module."""
from .client import GeminiClient

__all__ = ["GeminiClient"]
