"""
Architecture pipeline: goal -> Architecture.

Uses the text-generation service once, repairs its output, validates the
result, and falls back to the heuristic generator on any failure.
"""
from typing import Optional

from flowstudio.config import settings
from flowstudio.llm import TextGenerationClient, create_text_generator
from flowstudio.models.prompts import prompts
from flowstudio.models.schemas.architecture import Architecture
from flowstudio.services.generation.architecture_validator import (
    ArchitectureValidator,
    architecture_validator,
)
from flowstudio.services.generation.base import GenerationPipeline, InvalidOutputError, require_goal
from flowstudio.services.generation.heuristic_generator import (
    HeuristicArchitectureGenerator,
    heuristic_architecture_generator,
)
from flowstudio.services.generation.response_repair import ResponseRepair, response_repair
from flowstudio.utils.logging import get_logger, trace_async

logger = get_logger(__name__)


class InvalidArchitectureError(InvalidOutputError):
    """Raised when a repaired architecture still fails validation"""
    pass


class ArchitecturePipeline(GenerationPipeline[str, Architecture]):
    """
    Generation Flow:
    1. Reject empty goals upfront (EmptyGoalError)
    2. One call to the text-generation service
    3. Response repair (normalize, resolve, stitch)
    4. Validation as a postcondition
    5. Heuristic fallback on any failure in 2-4
    """

    event_prefix = "architecture"

    def __init__(
        self,
        client: Optional[TextGenerationClient] = None,
        repairer: Optional[ResponseRepair] = None,
        fallback_generator: Optional[HeuristicArchitectureGenerator] = None,
        validator: Optional[ArchitectureValidator] = None
    ):
        super().__init__(client)
        self.repairer = repairer or response_repair
        self.fallback_generator = fallback_generator or heuristic_architecture_generator
        self.validator = validator or architecture_validator

        logger.info(
            "architecture.pipeline.initialized",
            extra={"service_configured": client is not None}
        )

    def validate_input(self, request: str) -> None:
        require_goal(request)

    def build_prompt(self, request: str) -> str:
        return prompts.ARCHITECTURE_DESIGN.render(
            goal=request.strip(),
            screen_types=prompts.SCREEN_TYPES,
        )

    def repair(self, raw_text: str, request: str) -> Architecture:
        return self.repairer.repair(raw_text, request.strip())

    def check_output(self, output: Architecture) -> None:
        is_valid, warnings = self.validator.validate(output, source="llm")
        if not is_valid:
            errors = [w.message for w in warnings if w.level == "error"]
            raise InvalidArchitectureError(
                f"Generated architecture has {len(errors)} validation error(s): {errors[:3]}"
            )

    def fallback(self, request: str) -> Architecture:
        return self.fallback_generator.generate(request.strip())

    @trace_async("architecture.generation")
    async def generate(self, request: str) -> Architecture:
        return await super().generate(request)


# Global architecture pipeline instance
architecture_pipeline = ArchitecturePipeline(client=create_text_generator(settings))

__all__ = [
    'ArchitecturePipeline',
    'InvalidArchitectureError',
    'architecture_pipeline',
]
