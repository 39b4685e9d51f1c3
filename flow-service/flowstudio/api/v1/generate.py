"""
Generation endpoints.

POST /api/v1/generate-architecture - goal -> architecture + initial diagram
POST /api/v1/generate-questions    - goal -> clarifying questions
POST /api/v1/ai-thinking           - goal -> cosmetic thinking steps
POST /api/v1/generate-wireframes   - architecture -> wireframe project
POST /api/v1/layout                - architecture -> diagram
POST /api/v1/export                - architecture -> downloadable JSON
"""
from fastapi import APIRouter, HTTPException, Response, status
from pydantic import Field
from typing import Optional, Dict, Any
import uuid

from flowstudio.models.schemas.architecture import Architecture, CamelModel
from flowstudio.models.schemas.questions import QuestionSet
from flowstudio.models.schemas.thinking import ThinkingProcess
from flowstudio.models.schemas.wireframe import DeviceType, WireframeProject
from flowstudio.services.export import export_architecture, export_filename
from flowstudio.services.generation import (
    EmptyGoalError,
    QuestionsRequest,
    architecture_pipeline,
    build_contextual_goal,
    questions_pipeline,
    thinking_pipeline,
    wireframe_pipeline,
)
from flowstudio.services.layout import layout_engine
from flowstudio.utils.logging import get_logger, log_context

router = APIRouter()
logger = get_logger(__name__)


# ============================================================================
# REQUEST / RESPONSE MODELS
# ============================================================================

class ArchitectureRequest(CamelModel):
    """Free-text app description, plus answers to clarifying questions keyed by question id"""
    goal: str = ""
    answers: Dict[str, str] = Field(default_factory=dict)

    model_config = {
        "json_schema_extra": {
            "example": {
                "goal": "Build a todo app with login and dashboard",
                "answers": {"collaboration_scope": "Personal only - no sharing"}
            }
        }
    }


class ArchitectureResponse(CamelModel):
    architecture: Architecture
    diagram: Dict[str, Any]
    metadata: Dict[str, Any] = Field(default_factory=dict)


class ThinkingRequest(CamelModel):
    user_request: str = ""


class QuestionsGenerationRequest(CamelModel):
    user_prompt: str = ""
    app_type: Optional[str] = None


class WireframeGenerationRequest(CamelModel):
    architecture: Architecture
    device: DeviceType = DeviceType.MOBILE
    design_hints: Optional[str] = None


class ArchitecturePayload(CamelModel):
    architecture: Architecture


def _empty_goal(error: EmptyGoalError) -> HTTPException:
    logger.warning("api.request.empty_goal")
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail={
            "error": "empty_goal",
            "message": str(error)
        }
    )


# ============================================================================
# ENDPOINTS
# ============================================================================

@router.post(
    "/generate-architecture",
    response_model=ArchitectureResponse,
    tags=["Generation"],
    summary="Generate an app-flow architecture",
    description="Always returns a structurally valid architecture; falls back to heuristics when the text-generation service fails."
)
async def generate_architecture(request: ArchitectureRequest) -> ArchitectureResponse:
    with log_context(correlation_id=str(uuid.uuid4()), operation="generate_architecture"):
        logger.info(
            "api.architecture.received",
            extra={"goal_length": len(request.goal), "answers": len(request.answers)}
        )

        try:
            goal = build_contextual_goal(request.goal, request.answers)
            architecture, metadata = await architecture_pipeline.generate_with_metadata(goal)
        except EmptyGoalError as e:
            raise _empty_goal(e)

        diagram = layout_engine.layout(architecture)

        logger.info(
            "api.architecture.completed",
            extra={
                "architecture_id": architecture.id,
                "screens": len(architecture.screens),
                "generation_method": metadata.get("generation_method")
            }
        )

        return ArchitectureResponse(
            architecture=architecture,
            diagram=diagram.to_interchange(),
            metadata=metadata,
        )


@router.post(
    "/ai-thinking",
    response_model=ThinkingProcess,
    tags=["Generation"],
    summary="Generate thinking steps shown during generation"
)
async def generate_thinking(request: ThinkingRequest) -> ThinkingProcess:
    with log_context(correlation_id=str(uuid.uuid4()), operation="ai_thinking"):
        try:
            return await thinking_pipeline.generate(request.user_request)
        except EmptyGoalError as e:
            raise _empty_goal(e)


@router.post(
    "/generate-questions",
    response_model=QuestionSet,
    tags=["Generation"],
    summary="Generate clarifying questions for an app description",
    description="Answers can be sent back as `answers` with generate-architecture."
)
async def generate_questions(request: QuestionsGenerationRequest) -> QuestionSet:
    with log_context(correlation_id=str(uuid.uuid4()), operation="generate_questions"):
        try:
            question_set, metadata = await questions_pipeline.generate_with_metadata(
                QuestionsRequest(user_prompt=request.user_prompt, app_type=request.app_type)
            )
        except EmptyGoalError as e:
            raise _empty_goal(e)

        logger.info(
            "api.questions.completed",
            extra={
                "questions": len(question_set.questions),
                "app_type": question_set.app_type,
                "generation_method": metadata.get("generation_method")
            }
        )
        return question_set


@router.post(
    "/generate-wireframes",
    response_model=WireframeProject,
    tags=["Generation"],
    summary="Generate wireframes for every screen of an architecture"
)
async def generate_wireframes(request: WireframeGenerationRequest) -> WireframeProject:
    with log_context(correlation_id=str(uuid.uuid4()), operation="generate_wireframes"):
        logger.info(
            "api.wireframes.received",
            extra={
                "architecture_id": request.architecture.id,
                "screens": len(request.architecture.screens),
                "device": request.device.value
            }
        )
        return await wireframe_pipeline.generate_project(
            request.architecture,
            device=request.device,
            design_hints=request.design_hints,
        )


@router.post(
    "/layout",
    tags=["Diagram"],
    summary="Lay out an architecture as a diagram"
)
async def layout_architecture(request: ArchitecturePayload) -> Dict[str, Any]:
    return layout_engine.layout(request.architecture).to_interchange()


@router.post(
    "/export",
    tags=["Export"],
    summary="Download an architecture as a JSON file"
)
async def export(request: ArchitecturePayload) -> Response:
    filename = export_filename(request.architecture)
    return Response(
        content=export_architecture(request.architecture),
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )
