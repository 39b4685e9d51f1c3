"""
Renderable projection of an architecture: positioned nodes and labelled edges.

All models here are frozen and their ``data`` is a read-only mapping.
Changing a node means replacing it with an updated copy, which keeps every
history snapshot immutable.
"""
from types import MappingProxyType
from typing import Annotated, Any, Dict, Mapping, Optional, Tuple
from enum import Enum

from pydantic import AfterValidator, ConfigDict, Field, PlainSerializer

from flowstudio.models.schemas.architecture import CamelModel, Position

START_NODE_ID = "start"


def _freeze(value: Mapping[str, Any]) -> Mapping[str, Any]:
    return MappingProxyType(dict(value))


def _thaw(value: Mapping[str, Any]) -> Dict[str, Any]:
    return dict(value)


# Read-only in memory, a plain dict when serialized
FrozenData = Annotated[
    Mapping[str, Any],
    AfterValidator(_freeze),
    PlainSerializer(_thaw, return_type=Dict[str, Any]),
]


class NodeKind(str, Enum):
    """Visual kind tag of a diagram node"""
    SCREEN = "screen"
    START = "start"
    END = "end"


class DiagramNode(CamelModel):
    model_config = ConfigDict(frozen=True)

    id: str
    type: NodeKind = NodeKind.SCREEN
    position: Position = Field(default_factory=Position)
    data: FrozenData = Field(default_factory=dict, validate_default=True)

    @property
    def label(self) -> str:
        return self.data.get("label", self.id)

    def moved_to(self, position: Position) -> "DiagramNode":
        return self.model_copy(update={"position": position})

    def with_data(self, **changes: Any) -> "DiagramNode":
        return DiagramNode(id=self.id, type=self.type, position=self.position, data={**self.data, **changes})


class DiagramEdge(CamelModel):
    model_config = ConfigDict(frozen=True)

    id: str
    source: str
    target: str
    label: Optional[str] = None
    data: Optional[FrozenData] = None

    def touches(self, node_id: str) -> bool:
        return self.source == node_id or self.target == node_id


class Diagram(CamelModel):
    """Node/edge collection exchanged with the rendering layer"""
    model_config = ConfigDict(frozen=True)

    nodes: Tuple[DiagramNode, ...] = ()
    edges: Tuple[DiagramEdge, ...] = ()

    def get_node(self, node_id: str) -> Optional[DiagramNode]:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def to_interchange(self) -> Dict[str, Any]:
        """
        Interchange format:
        ``{nodes: [{id, type, position: {x, y}, data}], edges: [{id, source, target, label?, data?}]}``
        """
        return {
            "nodes": [
                {
                    "id": n.id,
                    "type": n.type.value,
                    "position": {"x": n.position.x, "y": n.position.y},
                    "data": dict(n.data),
                }
                for n in self.nodes
            ],
            "edges": [
                self._edge_dict(e) for e in self.edges
            ],
        }

    @staticmethod
    def _edge_dict(edge: DiagramEdge) -> Dict[str, Any]:
        out: Dict[str, Any] = {"id": edge.id, "source": edge.source, "target": edge.target}
        if edge.label is not None:
            out["label"] = edge.label
        if edge.data is not None:
            out["data"] = dict(edge.data)
        return out

    @classmethod
    def from_interchange(cls, payload: Dict[str, Any]) -> "Diagram":
        return cls(
            nodes=tuple(DiagramNode.model_validate(n) for n in payload.get("nodes", [])),
            edges=tuple(DiagramEdge.model_validate(e) for e in payload.get("edges", [])),
        )
