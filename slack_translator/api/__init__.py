"""OpenAI API client package: async HTTP interface to the completion service.

WHY: The translator needs one authenticated call to OpenAI per
invocation. This package keeps that call, its request shapes, and its
error type in one place.

HOW: Uses httpx.AsyncClient for non-blocking HTTP. OpenAIClient exposes
translate(text, lang). Response bodies are parsed into the dataclasses
defined in models.py.

RULES:
- All OpenAI HTTP calls go through OpenAIClient (no direct httpx usage elsewhere)
- Authentication is via Bearer token from TranslatorConfig
- Upstream failures surface as TranslationError
"""

from slack_translator.api.client import OpenAIClient, TranslationError
from slack_translator.api.models import CompletionChoice, CompletionResponse

__all__ = ["CompletionChoice", "CompletionResponse", "OpenAIClient", "TranslationError"]
