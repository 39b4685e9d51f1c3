"""
Wireframe models: a component tree per screen, for one target device.
"""
from typing import Any, Dict, List, Optional
from datetime import datetime
from enum import Enum

from pydantic import Field

from flowstudio.models.schemas.architecture import Architecture, CamelModel, ScreenType
from flowstudio.utils.datetime_utils import utc_now


class DeviceType(str, Enum):
    MOBILE = "mobile"
    TABLET = "tablet"
    DESKTOP = "desktop"


class ComponentType(str, Enum):
    CONTAINER = "container"
    HEADER = "header"
    FOOTER = "footer"
    NAVBAR = "navbar"
    HEADING = "heading"
    PARAGRAPH = "paragraph"
    BUTTON = "button"
    SUBMIT_BUTTON = "submit_button"
    INPUT = "input"
    TEXTAREA = "textarea"
    FORM = "form"
    CARD = "card"
    LIST = "list"
    LIST_ITEM = "list_item"
    IMAGE = "image"
    BADGE = "badge"
    AVATAR = "avatar"
    TABS = "tabs"
    MODAL = "modal"
    LOADING_SPINNER = "loading_spinner"


DEVICE_VIEWPORTS: Dict[DeviceType, Dict[str, int]] = {
    DeviceType.MOBILE: {"width": 375, "height": 667},
    DeviceType.TABLET: {"width": 768, "height": 1024},
    DeviceType.DESKTOP: {"width": 1440, "height": 900},
}


class LayoutConfig(CamelModel):
    type: str = "flex"
    direction: str = "column"
    gap: str = "0px"
    padding: str = "0px"
    max_width: Optional[str] = None


class WireframeComponent(CamelModel):
    id: str
    type: ComponentType = ComponentType.CONTAINER
    tag: str = "div"
    content: Optional[str] = None
    placeholder: Optional[str] = None
    styles: Dict[str, Any] = Field(default_factory=dict)
    children: List["WireframeComponent"] = Field(default_factory=list)
    props: Optional[Dict[str, Any]] = None


class WireframeScreen(CamelModel):
    id: str
    name: str
    type: ScreenType
    device: DeviceType = DeviceType.MOBILE
    description: str = ""
    components: List[WireframeComponent] = Field(default_factory=list)
    layout: LayoutConfig = Field(default_factory=LayoutConfig)
    source_screen_id: str


class WireframeMetadata(CamelModel):
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    version: str = "1.0.0"
    device: DeviceType = DeviceType.MOBILE
    viewport: Dict[str, int] = Field(default_factory=lambda: dict(DEVICE_VIEWPORTS[DeviceType.MOBILE]))


class WireframeProject(CamelModel):
    id: str
    name: str
    description: str = ""
    source_architecture: Architecture
    screens: List[WireframeScreen] = Field(default_factory=list)
    metadata: WireframeMetadata = Field(default_factory=WireframeMetadata)


WireframeComponent.model_rebuild()
