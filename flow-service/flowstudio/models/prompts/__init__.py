"""
Prompt templates for the flow service.
"""
from .templates import (
    PromptTemplate,
    PromptLibrary,
    PromptType,
)

# Create an instance of PromptLibrary
prompts = PromptLibrary()

__all__ = [
    'PromptTemplate',
    'PromptLibrary',
    'PromptType',
    'prompts'
]
