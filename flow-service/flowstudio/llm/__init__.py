"""
flowstudio/llm/__init__.py
Text-generation collaborator exports
"""
from .base import (
    TextGenerationClient,
    ServiceUnavailable,
    LLMResponse,
    LLMMessage,
    LLMProvider
)
from .openai_provider import OpenAITextClient, create_text_generator

__all__ = [
    "TextGenerationClient",
    "ServiceUnavailable",
    "LLMResponse",
    "LLMMessage",
    "LLMProvider",
    "OpenAITextClient",
    "create_text_generator",
]
