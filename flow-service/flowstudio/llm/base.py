"""
flowstudio/llm/base.py
Boundary of the external text-generation collaborator.

The core only ever sees ``generate_text(prompt) -> str``; whatever comes
back is untrusted and goes through response repair before use.
"""
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Any
from dataclasses import dataclass
from enum import Enum


class LLMProvider(str, Enum):
    """Supported text-generation providers"""
    OPENAI = "openai"


class ServiceUnavailable(Exception):
    """Network, authentication, timeout or empty-content failure talking to the service"""

    def __init__(self, message: str, provider: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code


@dataclass
class LLMResponse:
    """Standardized completion result"""
    content: str
    provider: LLMProvider
    tokens_used: Optional[int] = None
    finish_reason: Optional[str] = None
    model: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


@dataclass
class LLMMessage:
    """Standardized message format"""
    role: str  # "system", "user", "assistant"
    content: str


class TextGenerationClient(ABC):
    """Abstract text-generation collaborator"""

    def __init__(self, config: Dict[str, Any]):
        self.config = config
        self.provider_name: Optional[LLMProvider] = None
        self.request_timeout = config.get("request_timeout", 60.0)
        self.temperature = config.get("temperature", 0.7)
        self.max_tokens_default = config.get("max_tokens", 2000)

    @abstractmethod
    async def generate(
        self,
        messages: List[LLMMessage],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        **kwargs
    ) -> LLMResponse:
        """
        Generate a completion.

        Raises:
            ServiceUnavailable: on any transport, auth or provider failure
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        pass

    async def generate_text(
        self,
        prompt: str,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None
    ) -> str:
        """
        One request, one string back.

        Raises:
            ServiceUnavailable: when the service fails or returns no content
        """
        response = await self.generate(
            [LLMMessage(role="user", content=prompt)],
            temperature=temperature,
            max_tokens=max_tokens,
        )
        if not response.content or not response.content.strip():
            raise ServiceUnavailable(
                "Text-generation service returned empty content",
                provider=self.provider_name.value if self.provider_name else None,
            )
        return response.content

    def get_provider_type(self) -> Optional[LLMProvider]:
        return self.provider_name

    def get_stats(self) -> Dict[str, Any]:
        return {"provider": self.provider_name.value if self.provider_name else None}

    def format_messages(self, messages: List[LLMMessage]) -> List[Dict[str, str]]:
        """Convert LLMMessage to provider-specific format"""
        return [{"role": msg.role, "content": msg.content} for msg in messages]

    def validate_messages(self, messages: List[LLMMessage]) -> bool:
        """Validate message format"""
        if not messages:
            return False

        valid_roles = {"system", "user", "assistant"}
        for msg in messages:
            if msg.role not in valid_roles:
                return False
            if not isinstance(msg.content, str):
                return False

        return True
