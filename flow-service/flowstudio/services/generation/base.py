"""
Generic generation pipeline.

prompt -> one call to the text-generation service -> repair -> domain object,
with a deterministic fallback for every failure. Subclasses supply the
four hooks; the failure handling and statistics live here once.
"""
import asyncio
from abc import ABC, abstractmethod
from typing import Any, Dict, Generic, Optional, Tuple, TypeVar

from flowstudio.config import settings
from flowstudio.llm.base import ServiceUnavailable, TextGenerationClient
from flowstudio.services.generation.response_repair import MalformedResponse
from flowstudio.utils.logging import get_logger, log_context

logger = get_logger(__name__)

InputT = TypeVar("InputT")
OutputT = TypeVar("OutputT")


class GenerationError(Exception):
    """Base exception for generation errors"""
    pass


class EmptyGoalError(GenerationError, ValueError):
    """Raised upfront for an empty or whitespace-only goal (usage error)"""
    pass


class InvalidOutputError(GenerationError):
    """Raised by a postcondition check when repaired output is still unusable"""
    pass


class GenerationPipeline(ABC, Generic[InputT, OutputT]):
    """
    One attempt against the service per request, no retries.

    Flow:
    1. Validate input (usage errors propagate)
    2. Build prompt and call the service once
    3. Repair the untrusted text into a domain object
    4. On any failure, log it and return the deterministic fallback
    """

    event_prefix = "generation"

    def __init__(self, client: Optional[TextGenerationClient] = None):
        self.client = client
        self.generation_options = settings.generation_options(self.event_prefix)

        # Statistics
        self.stats = {
            'total_requests': 0,
            'service_successes': 0,
            'fallbacks': 0,
            'malformed_responses': 0,
            'service_errors': 0,
            'invalid_outputs': 0
        }

    # ------------------------------------------------------------------ #
    # Hooks
    # ------------------------------------------------------------------ #

    @abstractmethod
    def build_prompt(self, request: InputT) -> str:
        pass

    @abstractmethod
    def repair(self, raw_text: str, request: InputT) -> OutputT:
        """Raises MalformedResponse when no usable payload is found"""
        pass

    @abstractmethod
    def fallback(self, request: InputT) -> OutputT:
        """Must not fail for valid input"""
        pass

    def validate_input(self, request: InputT) -> None:
        """Raise a usage error for input that should not be attempted"""
        return None

    def check_output(self, output: OutputT) -> None:
        """Raise InvalidOutputError to reject repaired output"""
        return None

    # ------------------------------------------------------------------ #
    # Main entry
    # ------------------------------------------------------------------ #

    async def generate(self, request: InputT) -> OutputT:
        output, _ = await self.generate_with_metadata(request)
        return output

    async def generate_with_metadata(self, request: InputT) -> Tuple[OutputT, Dict[str, Any]]:
        """
        Returns:
            Tuple of (output, metadata) where metadata names the method used
            and, for fallbacks, the reason.
        """
        self.validate_input(request)
        self.stats['total_requests'] += 1

        with log_context(operation=f"{self.event_prefix}_generation"):
            loop = asyncio.get_running_loop()
            start_time = loop.time()

            if self.client is None:
                logger.info(
                    f"🛡️ {self.event_prefix}.fallback.used",
                    extra={"reason": "service_not_configured"}
                )
                return self._fallback(request, "service_not_configured", start_time)

            try:
                prompt = self.build_prompt(request)
                raw_text = await self.client.generate_text(prompt, **self.generation_options)
                output = self.repair(raw_text, request)
                self.check_output(output)

            except ServiceUnavailable as e:
                self.stats['service_errors'] += 1
                logger.warning(
                    f"⚠️ {self.event_prefix}.service.failed",
                    extra={"error": str(e), "status_code": e.status_code}
                )
                return self._fallback(request, f"service_unavailable: {e}", start_time)

            except MalformedResponse as e:
                self.stats['malformed_responses'] += 1
                logger.warning(
                    f"⚠️ {self.event_prefix}.response.malformed",
                    extra={"error": str(e)}
                )
                return self._fallback(request, f"malformed_response: {e}", start_time)

            except InvalidOutputError as e:
                self.stats['invalid_outputs'] += 1
                logger.warning(
                    f"⚠️ {self.event_prefix}.output.invalid",
                    extra={"error": str(e)}
                )
                return self._fallback(request, f"invalid_output: {e}", start_time)

            except Exception as e:
                self.stats['service_errors'] += 1
                logger.error(
                    f"❌ {self.event_prefix}.unexpected_error",
                    extra={"error": str(e), "error_type": type(e).__name__},
                    exc_info=e
                )
                return self._fallback(request, f"unexpected_error: {type(e).__name__}", start_time)

            self.stats['service_successes'] += 1
            duration_ms = (loop.time() - start_time) * 1000
            logger.performance(
                f"✅ {self.event_prefix}.service.success",
                duration_ms=duration_ms
            )
            return output, {
                'generation_method': 'llm',
                'provider': self._provider_name(),
                'duration_ms': round(duration_ms, 1)
            }

    def _fallback(self, request: InputT, reason: str, start_time: float) -> Tuple[OutputT, Dict[str, Any]]:
        self.stats['fallbacks'] += 1
        output = self.fallback(request)
        duration_ms = (asyncio.get_running_loop().time() - start_time) * 1000
        return output, {
            'generation_method': 'heuristic',
            'provider': 'heuristic',
            'fallback_reason': reason,
            'duration_ms': round(duration_ms, 1)
        }

    def _provider_name(self) -> str:
        provider = self.client.get_provider_type() if self.client else None
        return provider.value if provider else "unknown"

    def get_statistics(self) -> Dict[str, Any]:
        """Get generation statistics"""
        total = self.stats['total_requests']

        return {
            **self.stats,
            'service_configured': self.client is not None,
            'fallback_rate': (self.stats['fallbacks'] / total * 100) if total > 0 else 0,
            'service_success_rate': (self.stats['service_successes'] / total * 100) if total > 0 else 0
        }


def require_goal(goal: Any) -> str:
    """Return the stripped goal or raise EmptyGoalError"""
    if not isinstance(goal, str) or not goal.strip():
        raise EmptyGoalError("Goal must be a non-empty string")
    return goal.strip()
