"""
Generation services: response repair, heuristic fallback, validation and
the architecture / thinking / wireframe / questions pipelines.
"""
from .response_repair import (
    MalformedResponse,
    ResponseRepair,
    extract_json_object,
    repair_connectivity,
    response_repair,
)
from .heuristic_generator import (
    HeuristicArchitectureGenerator,
    heuristic_architecture_generator,
)
from .architecture_validator import (
    ValidationWarning,
    ArchitectureValidator,
    architecture_validator,
)
from .base import (
    GenerationPipeline,
    GenerationError,
    EmptyGoalError,
    InvalidOutputError,
)
from .architecture_generator import (
    ArchitecturePipeline,
    InvalidArchitectureError,
    architecture_pipeline,
)
from .thinking_generator import (
    ThinkingPipeline,
    thinking_pipeline,
)
from .wireframe_generator import (
    WireframeRequest,
    WireframePipeline,
    wireframe_pipeline,
)
from .questions_generator import (
    QuestionsRequest,
    QuestionsPipeline,
    build_contextual_goal,
    questions_pipeline,
)

__all__ = [
    # Repair
    'MalformedResponse',
    'ResponseRepair',
    'extract_json_object',
    'repair_connectivity',
    'response_repair',

    # Fallback
    'HeuristicArchitectureGenerator',
    'heuristic_architecture_generator',

    # Validation
    'ValidationWarning',
    'ArchitectureValidator',
    'architecture_validator',

    # Pipelines
    'GenerationPipeline',
    'GenerationError',
    'EmptyGoalError',
    'InvalidOutputError',
    'ArchitecturePipeline',
    'InvalidArchitectureError',
    'architecture_pipeline',
    'ThinkingPipeline',
    'thinking_pipeline',
    'WireframeRequest',
    'WireframePipeline',
    'wireframe_pipeline',
    'QuestionsRequest',
    'QuestionsPipeline',
    'build_contextual_goal',
    'questions_pipeline',
]
