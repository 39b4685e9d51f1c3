"""
Wireframe pipeline: one architecture screen -> WireframeScreen.

Same generate/repair/fallback contract as the architecture pipeline,
applied per screen. ``generate_project`` walks every screen of an
architecture; a failing screen gets the fallback wireframe while the
others keep their generated one.
"""
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from flowstudio.config import settings
from flowstudio.llm import TextGenerationClient, create_text_generator
from flowstudio.models.prompts import prompts
from flowstudio.models.schemas.architecture import Architecture, Screen
from flowstudio.models.schemas.wireframe import (
    ComponentType,
    DEVICE_VIEWPORTS,
    DeviceType,
    LayoutConfig,
    WireframeComponent,
    WireframeMetadata,
    WireframeProject,
    WireframeScreen,
)
from flowstudio.services.generation.base import GenerationPipeline
from flowstudio.services.generation.response_repair import MalformedResponse, extract_json_object
from flowstudio.utils.datetime_utils import Clock, utc_now
from flowstudio.utils.logging import get_logger

logger = get_logger(__name__)


DEVICE_CONTEXT = {
    DeviceType.MOBILE: "(320-480px width, touch interface, portrait orientation)",
    DeviceType.TABLET: "(768-1024px width, touch interface, can rotate)",
    DeviceType.DESKTOP: "(1200px+ width, mouse/keyboard interface, landscape)",
}

DEVICE_MAX_WIDTH = {
    DeviceType.MOBILE: "375px",
    DeviceType.TABLET: "768px",
    DeviceType.DESKTOP: "1200px",
}


@dataclass
class WireframeRequest:
    architecture: Architecture
    screen: Screen
    device: DeviceType = DeviceType.MOBILE
    design_hints: Optional[str] = None


class WireframePipeline(GenerationPipeline[WireframeRequest, WireframeScreen]):

    event_prefix = "wireframe"

    def __init__(self, client: Optional[TextGenerationClient] = None, clock: Clock = utc_now):
        super().__init__(client)
        self.clock = clock

    def build_prompt(self, request: WireframeRequest) -> str:
        screen = request.screen
        return prompts.WIREFRAME_SCREEN.render(
            screen_name=screen.name,
            screen_type=screen.type.value,
            app_name=request.architecture.name,
            screen_description=screen.description,
            device=request.device.value,
            device_context=DEVICE_CONTEXT[request.device],
            components=", ".join(screen.components) or "None specified",
            design_hints=f"DESIGN DIRECTION: {request.design_hints}" if request.design_hints else "",
            max_width=DEVICE_MAX_WIDTH[request.device],
        )

    def repair(self, raw_text: str, request: WireframeRequest) -> WireframeScreen:
        data = extract_json_object(raw_text)

        raw_components = data.get("components")
        if not isinstance(raw_components, list) or not raw_components:
            raise MalformedResponse("Wireframe payload has no 'components' list")

        counter = [0]
        components = [
            self._convert_component(raw, request.screen.id, counter)
            for raw in raw_components
            if isinstance(raw, dict)
        ]
        if not components:
            raise MalformedResponse("Wireframe 'components' contains no objects")

        raw_layout = data.get("layout")
        if isinstance(raw_layout, dict):
            layout = LayoutConfig.model_validate({
                k: v for k, v in raw_layout.items()
                if k in ("type", "direction", "gap", "padding", "maxWidth", "max_width") and isinstance(v, str)
            })
        else:
            layout = LayoutConfig(gap="16px", padding="20px")

        return self._screen(request, components, layout)

    def fallback(self, request: WireframeRequest) -> WireframeScreen:
        screen = request.screen
        components = [
            WireframeComponent(
                id="header-1",
                type=ComponentType.HEADER,
                tag="header",
                content=screen.name,
                styles={
                    "padding": "16px",
                    "backgroundColor": "#f8f9fa",
                    "borderBottom": "1px solid #dee2e6",
                    "fontWeight": "bold",
                    "fontSize": "18px",
                },
            ),
            WireframeComponent(
                id="main-content-1",
                type=ComponentType.CONTAINER,
                tag="main",
                styles={
                    "padding": "20px",
                    "display": "flex",
                    "flexDirection": "column",
                    "gap": "16px",
                    "minHeight": "300px",
                },
                children=[
                    WireframeComponent(
                        id="description-1",
                        type=ComponentType.PARAGRAPH,
                        tag="p",
                        content=screen.description or "This screen is part of your app flow.",
                        styles={"fontSize": "14px", "color": "#666", "lineHeight": "1.5"},
                    )
                ],
            ),
        ]
        return self._screen(request, components, LayoutConfig())

    async def generate_project(
        self,
        architecture: Architecture,
        device: DeviceType = DeviceType.MOBILE,
        design_hints: Optional[str] = None
    ) -> WireframeProject:
        """One generation per screen, in screen order"""
        screens: List[WireframeScreen] = []
        for screen in architecture.screens:
            screens.append(await self.generate(WireframeRequest(
                architecture=architecture,
                screen=screen,
                device=device,
                design_hints=design_hints,
            )))

        now = self.clock()
        project = WireframeProject(
            id=f"wireframe-{architecture.id}",
            name=f"{architecture.name} Wireframes",
            description=f"Wireframe designs for {architecture.name}",
            source_architecture=architecture,
            screens=screens,
            metadata=WireframeMetadata(
                created_at=now,
                updated_at=now,
                device=device,
                viewport=dict(DEVICE_VIEWPORTS[device]),
            ),
        )

        logger.info(
            "✅ wireframe.project.completed",
            extra={"screens": len(screens), "device": device.value}
        )
        return project

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    def _screen(
        self,
        request: WireframeRequest,
        components: List[WireframeComponent],
        layout: LayoutConfig
    ) -> WireframeScreen:
        screen = request.screen
        return WireframeScreen(
            id=screen.id,
            name=screen.name,
            type=screen.type,
            device=request.device,
            description=screen.description,
            components=components,
            layout=layout,
            source_screen_id=screen.id,
        )

    def _convert_component(self, raw: Dict[str, Any], screen_id: str, counter: List[int]) -> WireframeComponent:
        counter[0] += 1
        raw_type = raw.get("type")
        try:
            component_type = ComponentType(str(raw_type).strip().lower())
        except ValueError:
            component_type = ComponentType.CONTAINER

        children = raw.get("children") if isinstance(raw.get("children"), list) else []
        return WireframeComponent(
            id=str(raw.get("id") or f"comp-{screen_id}-{counter[0]}"),
            type=component_type,
            tag=str(raw.get("tag") or "div"),
            content=raw.get("content") if isinstance(raw.get("content"), str) else None,
            placeholder=raw.get("placeholder") if isinstance(raw.get("placeholder"), str) else None,
            styles=raw.get("styles") if isinstance(raw.get("styles"), dict) else {},
            children=[
                self._convert_component(child, screen_id, counter)
                for child in children
                if isinstance(child, dict)
            ],
            props=raw.get("props") if isinstance(raw.get("props"), dict) else None,
        )


# Global wireframe pipeline instance
wireframe_pipeline = WireframePipeline(client=create_text_generator(settings))

__all__ = [
    'WireframeRequest',
    'WireframePipeline',
    'wireframe_pipeline',
]
