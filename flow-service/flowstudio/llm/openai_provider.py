"""
flowstudio/llm/openai_provider.py
Text-generation client for any OpenAI-compatible chat-completions endpoint.
"""
from typing import List, Optional, Dict, Any
from datetime import datetime

from openai import AsyncOpenAI, APIStatusError, APITimeoutError, RateLimitError, AuthenticationError, APIConnectionError

from flowstudio.config import Settings
from flowstudio.utils.logging import get_logger
from .base import TextGenerationClient, LLMResponse, LLMMessage, LLMProvider, ServiceUnavailable

logger = get_logger(__name__)


class OpenAITextClient(TextGenerationClient):
    """
    Single-attempt client. The SDK's own retries are disabled: the
    generation pipeline's deterministic fallback is the retry strategy.
    """

    def __init__(self, config: Dict[str, Any]):
        super().__init__(config)
        self.provider_name = LLMProvider.OPENAI

        self.base_url = config.get("base_url")
        self.model = config.get("model", "gpt-4o-mini")
        self.api_key = config.get("api_key")

        # Circuit breaker
        self.failure_count = 0
        self.max_failures = config.get("max_failures", 5)
        self.circuit_reset_time = config.get("circuit_reset_seconds", 300)
        self.circuit_tripped_time: Optional[datetime] = None
        self.circuit_open = False

        # Stats
        self.total_requests = 0
        self.successful_requests = 0
        self.failed_requests = 0

        if not self.api_key:
            raise ValueError("Text-generation API key (FLOWSTUDIO_LLM_API_KEY) is required")

        base_url = self.base_url.rstrip("/") if self.base_url else None
        if base_url and base_url.endswith("/chat/completions"):
            base_url = base_url[: -len("/chat/completions")]

        self._client = AsyncOpenAI(
            api_key=self.api_key,
            base_url=base_url,
            timeout=self.request_timeout,
            max_retries=0,
        )

        logger.info(
            "llm.client.initialized",
            extra={
                "model": self.model,
                "base_url": base_url or "default",
                "timeout": self.request_timeout
            }
        )

    # ------------------------------------------------------------------ #
    # Circuit breaker helpers
    # ------------------------------------------------------------------ #

    def _check_circuit_breaker(self) -> bool:
        if not self.circuit_open:
            return True
        if self.circuit_tripped_time:
            elapsed = (datetime.now() - self.circuit_tripped_time).total_seconds()
            if elapsed > self.circuit_reset_time:
                logger.info("llm.circuit.reset")
                self.circuit_open = False
                self.failure_count = 0
                self.circuit_tripped_time = None
                return True
        return False

    def _trip_circuit_breaker(self):
        self.circuit_open = True
        self.circuit_tripped_time = datetime.now()
        logger.error(
            "llm.circuit.tripped",
            extra={"failure_count": self.failure_count}
        )

    def _record_failure(self):
        self.failed_requests += 1
        self.failure_count += 1
        if self.failure_count >= self.max_failures and not self.circuit_open:
            self._trip_circuit_breaker()

    # ------------------------------------------------------------------ #
    # Main generate
    # ------------------------------------------------------------------ #

    async def generate(
        self,
        messages: List[LLMMessage],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        **kwargs,
    ) -> LLMResponse:
        self.total_requests += 1

        if not self._check_circuit_breaker():
            raise ServiceUnavailable("Circuit breaker is open", provider=self.provider_name.value)

        if not self.validate_messages(messages):
            raise ValueError("Invalid messages format")

        temperature = self.temperature if temperature is None else temperature
        temperature = max(0.0, min(2.0, temperature))

        try:
            response = await self._make_request(
                self.format_messages(messages),
                temperature,
                max_tokens,
            )
        except AuthenticationError as e:
            self._record_failure()
            self._trip_circuit_breaker()
            raise ServiceUnavailable(
                "Authentication failed: check FLOWSTUDIO_LLM_API_KEY",
                provider=self.provider_name.value,
                status_code=e.status_code,
            ) from e
        except RateLimitError as e:
            self._record_failure()
            logger.warning("llm.request.rate_limited")
            raise ServiceUnavailable("Rate limited", provider=self.provider_name.value, status_code=429) from e
        except APITimeoutError as e:
            self._record_failure()
            logger.warning("llm.request.timeout", extra={"timeout": self.request_timeout})
            raise ServiceUnavailable("Request timed out", provider=self.provider_name.value) from e
        except APIConnectionError as e:
            self._record_failure()
            logger.warning("llm.request.connection_failed", extra={"error": str(e)})
            raise ServiceUnavailable(f"Connection failed: {e}", provider=self.provider_name.value) from e
        except APIStatusError as e:
            self._record_failure()
            logger.error(
                "llm.request.status_error",
                extra={"status": e.status_code, "error": e.message}
            )
            raise ServiceUnavailable(
                f"Provider error {e.status_code}: {e.message}",
                provider=self.provider_name.value,
                status_code=e.status_code,
            ) from e

        self.successful_requests += 1
        self.failure_count = 0
        return response

    # ------------------------------------------------------------------ #
    # Internal request
    # ------------------------------------------------------------------ #

    async def _make_request(
        self,
        formatted_messages: List[Dict[str, str]],
        temperature: float,
        max_tokens: Optional[int],
    ) -> LLMResponse:
        start = datetime.now()

        completion = await self._client.chat.completions.create(
            model=self.model,
            messages=formatted_messages,
            temperature=temperature,
            max_tokens=max_tokens or self.max_tokens_default,
        )

        response_time = (datetime.now() - start).total_seconds()
        choice = completion.choices[0]
        content = choice.message.content or ""
        usage = completion.usage

        logger.info(
            "✅ llm.request.success",
            extra={
                "tokens": usage.total_tokens if usage else None,
                "response_time": round(response_time, 3),
                "finish_reason": choice.finish_reason
            }
        )

        return LLMResponse(
            content=content,
            provider=self.provider_name,
            tokens_used=usage.total_tokens if usage else None,
            finish_reason=choice.finish_reason,
            model=completion.model,
            metadata={
                "response_time": response_time,
                "prompt_tokens": usage.prompt_tokens if usage else None,
                "completion_tokens": usage.completion_tokens if usage else None,
                "id": completion.id,
            },
        )

    # ------------------------------------------------------------------ #
    # Health check
    # ------------------------------------------------------------------ #

    async def health_check(self) -> bool:
        if self.circuit_open:
            return False
        try:
            completion = await self._client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": "Respond with 'OK'"}],
                max_tokens=5,
                temperature=0.0,
            )
        except Exception as e:
            logger.warning("llm.health.failed", extra={"error": str(e)})
            self._record_failure()
            return False

        result = completion.choices[0].message.content or ""
        return "OK" in result.upper()

    def get_stats(self) -> Dict[str, Any]:
        return {
            "provider": self.provider_name.value,
            "model": self.model,
            "total_requests": self.total_requests,
            "successful_requests": self.successful_requests,
            "failed_requests": self.failed_requests,
            "failure_count": self.failure_count,
            "circuit_open": self.circuit_open,
            "success_rate": (
                self.successful_requests / self.total_requests * 100
                if self.total_requests > 0 else 0
            ),
        }


def create_text_generator(settings: Settings) -> Optional[TextGenerationClient]:
    """
    Build the configured collaborator, or None when generation is disabled
    or no API key is set (pipelines then go straight to their fallback).
    """
    if not settings.llm_configured:
        logger.info(
            "llm.client.disabled",
            extra={
                "generation_enabled": settings.generation_enabled,
                "has_api_key": bool(settings.llm_api_key)
            }
        )
        return None

    return OpenAITextClient(settings.llm_config)
