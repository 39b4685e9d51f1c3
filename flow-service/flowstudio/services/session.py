"""
Studio Session

One live architecture and one live diagram editor per session.

Generation is the only suspending step. Each call takes a ticket up front;
when the result arrives it replaces the architecture and the editor in a
single step, and only if no newer generation started in the meantime.
Results of abandoned calls are dropped.
"""
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from flowstudio.models.schemas.architecture import Architecture
from flowstudio.services.editor import DiagramEditor
from flowstudio.services.export import export_architecture, export_filename
from flowstudio.services.generation import ArchitecturePipeline, architecture_pipeline
from flowstudio.services.generation.base import require_goal
from flowstudio.services.layout import LayoutEngine, layout_engine
from flowstudio.utils.datetime_utils import Clock, utc_now
from flowstudio.utils.logging import get_logger

logger = get_logger(__name__)


class NoArchitectureError(LookupError):
    """Raised when an operation needs an architecture before one was accepted"""
    pass


@dataclass(frozen=True)
class GenerationTicket:
    number: int
    goal: str


class StudioSession:

    def __init__(
        self,
        pipeline: Optional[ArchitecturePipeline] = None,
        layout: Optional[LayoutEngine] = None,
        clock: Clock = utc_now,
        editable: bool = True
    ):
        self.pipeline = pipeline or architecture_pipeline
        self.layout = layout or layout_engine
        self.clock = clock
        self.editable = editable

        self.architecture: Optional[Architecture] = None
        self.editor: Optional[DiagramEditor] = None
        self.generation_metadata: Dict[str, Any] = {}
        self._latest_ticket = 0

    def begin_generation(self, goal: str) -> GenerationTicket:
        """Reserve the next generation slot; raises EmptyGoalError on blank goals"""
        clean_goal = require_goal(goal)
        self._latest_ticket += 1
        return GenerationTicket(number=self._latest_ticket, goal=clean_goal)

    def is_current(self, ticket: GenerationTicket) -> bool:
        return ticket.number == self._latest_ticket

    def accept(
        self,
        ticket: GenerationTicket,
        architecture: Architecture,
        metadata: Optional[Dict[str, Any]] = None
    ) -> bool:
        if not self.is_current(ticket):
            logger.info(
                "session.generation.discarded",
                extra={"ticket": ticket.number, "latest": self._latest_ticket}
            )
            return False

        diagram = self.layout.layout(architecture)
        self.architecture = architecture
        self.editor = DiagramEditor(diagram, editable=self.editable, clock=self.clock)
        self.generation_metadata = dict(metadata or {})

        logger.info(
            "session.generation.accepted",
            extra={
                "ticket": ticket.number,
                "architecture_id": architecture.id,
                "screens": len(architecture.screens)
            }
        )
        return True

    async def generate(self, goal: str) -> Optional[Architecture]:
        """
        Generate and accept an architecture.

        Returns None when a newer generation superseded this one while the
        service call was in flight.
        """
        ticket = self.begin_generation(goal)
        architecture, metadata = await self.pipeline.generate_with_metadata(ticket.goal)
        if not self.accept(ticket, architecture, metadata):
            return None
        return architecture

    def sync_architecture(self) -> Architecture:
        """Fold the editor's changes into the live architecture"""
        if self.architecture is None or self.editor is None:
            raise NoArchitectureError("No architecture has been generated in this session")
        self.architecture = self.editor.write_back(self.architecture)
        return self.architecture

    def export(self) -> Tuple[str, str]:
        """Return ``(payload, filename)`` for the current architecture"""
        architecture = self.sync_architecture()
        return export_architecture(architecture), export_filename(architecture)


__all__ = [
    'GenerationTicket',
    'NoArchitectureError',
    'StudioSession',
]
