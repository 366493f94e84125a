"""Document model for a venue layout.

Python attributes are snake_case; dumps with ``by_alias=True`` produce the
camelCase shape that save/load collaborators exchange.
"""
import json
import math
import os
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Literal, Mapping, Optional, Type

from pydantic import BaseModel, ConfigDict, Field, SerializeAsAny, field_validator
from pydantic.alias_generators import to_camel

from layout.constants import (
    CHAIR_OFFSET_DEFAULT,
    CHAIR_SPACING_DEFAULT,
    CURRENT_SCHEMA_VERSION,
    DEFAULT_GRID_SIZE,
    DEFAULT_PIXELS_PER_METER,
    DEFAULT_SNAP_THRESHOLD_PX,
    DEFAULT_VENUE_HEIGHT,
    DEFAULT_VENUE_WIDTH,
    DEFAULT_WALL_THICKNESS,
    DEFAULT_ZONE_BORDER,
    DEFAULT_ZONE_FILL,
    VERSION,
)


def new_id() -> str:
    return str(uuid.uuid4())


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class ElementKind(str, Enum):
    TABLE = "table"
    CHAIR = "chair"
    SEATING = "seating"
    ZONE = "zone"
    SERVICE = "service"
    DECORATION = "decoration"
    CUSTOM = "custom"


TABLE_TYPES = ("table-round", "table-rectangular", "table-oval", "table-square")
SEATING_TYPES = ("bench", "lounge")
ZONE_TYPES = ("dance-floor", "stage", "cocktail-area", "ceremony-area")
SERVICE_TYPES = ("bar", "buffet", "cake-table", "gift-table", "dj-booth")
DECORATION_TYPES = ("flower-arrangement", "photo-booth", "arch", "custom")
CUSTOM_PREFIX = "custom-"

TableType = Literal["table-round", "table-rectangular", "table-oval", "table-square"]


def element_kind(element_type: str) -> Optional[ElementKind]:
    """Map an element ``type`` string to its kind, or None when unknown."""
    if element_type in TABLE_TYPES:
        return ElementKind.TABLE
    if element_type == "chair":
        return ElementKind.CHAIR
    if element_type in SEATING_TYPES:
        return ElementKind.SEATING
    if element_type in ZONE_TYPES:
        return ElementKind.ZONE
    if element_type in SERVICE_TYPES:
        return ElementKind.SERVICE
    if element_type in DECORATION_TYPES:
        return ElementKind.DECORATION
    if element_type.startswith(CUSTOM_PREFIX) and len(element_type) > len(CUSTOM_PREFIX):
        return ElementKind.CUSTOM
    return None


class LayoutModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DietaryType(str, Enum):
    REGULAR = "regular"
    VEGETARIAN = "vegetarian"
    VEGAN = "vegan"
    HALAL = "halal"
    KOSHER = "kosher"
    OTHER = "other"


class Element(LayoutModel):
    id: str = Field(default_factory=new_id, min_length=1)
    type: str
    x: float
    y: float
    width: float = Field(gt=0)
    height: float = Field(gt=0)
    rotation: float = 0.0
    z_index: int = 0
    group_id: Optional[str] = None
    parent_id: Optional[str] = None
    locked: bool = False
    visible: bool = True
    label: str = ""
    notes: str = ""
    color: Optional[str] = None
    created_at: str = Field(default_factory=now_iso)
    updated_at: str = Field(default_factory=now_iso)

    @field_validator("x", "y", "width", "height", "rotation")
    @classmethod
    def _finite(cls, value: float) -> float:
        if not math.isfinite(value):
            raise ValueError("coordinates and sizes must be finite")
        return value

    @field_validator("rotation")
    @classmethod
    def _normalize_rotation(cls, value: float) -> float:
        value = math.fmod(value, 360.0)
        if value < 0:
            value += 360.0
        return 0.0 if value >= 360.0 else value

    @property
    def kind(self) -> ElementKind:
        kind = element_kind(self.type)
        if kind is None:
            raise ValueError(f"Unknown element type {self.type!r}")
        return kind


class ChairConfig(LayoutModel):
    auto_generate: bool = True
    chair_spacing: float = Field(default=CHAIR_SPACING_DEFAULT, ge=0)
    chair_offset: float = Field(default=CHAIR_OFFSET_DEFAULT, ge=0)


class TableElement(Element):
    type: TableType
    capacity: int = Field(ge=1)
    table_number: str = ""
    chair_config: ChairConfig = Field(default_factory=ChairConfig)
    chair_ids: List[str] = Field(default_factory=list)


class ChairElement(Element):
    type: Literal["chair"] = "chair"
    parent_table_id: Optional[str] = None
    seat_index: int = Field(default=0, ge=0)
    assigned_guest_id: Optional[str] = None
    assigned_guest_name: Optional[str] = None
    dietary_type: Optional[DietaryType] = None
    allergy_flags: List[str] = Field(default_factory=list)

    @property
    def is_assigned(self) -> bool:
        return self.assigned_guest_id is not None


class SeatingElement(Element):
    type: Literal["bench", "lounge"]
    capacity: int = Field(default=3, ge=1)


class ZoneElement(Element):
    type: Literal["dance-floor", "stage", "cocktail-area", "ceremony-area"]
    fill_color: str = DEFAULT_ZONE_FILL
    border_style: Literal["solid", "dashed", "dotted"] = "dashed"
    border_color: str = DEFAULT_ZONE_BORDER
    estimated_capacity: Optional[int] = Field(default=None, ge=0)


class ServiceElement(Element):
    type: Literal["bar", "buffet", "cake-table", "gift-table", "dj-booth"]


class DecorationElement(Element):
    type: Literal["flower-arrangement", "photo-booth", "arch", "custom"]
    custom_shape: Optional[str] = None


class CustomElement(Element):
    type: str = Field(pattern=r"^custom-.+")
    template_id: str = ""
    custom_shape: Optional[str] = None


ELEMENT_MODELS: Dict[ElementKind, Type[Element]] = {
    ElementKind.TABLE: TableElement,
    ElementKind.CHAIR: ChairElement,
    ElementKind.SEATING: SeatingElement,
    ElementKind.ZONE: ZoneElement,
    ElementKind.SERVICE: ServiceElement,
    ElementKind.DECORATION: DecorationElement,
    ElementKind.CUSTOM: CustomElement,
}


def parse_element(data: Mapping[str, Any]) -> Element:
    """Validate ``data`` into the element variant its ``type`` selects."""
    element_type = data.get("type")
    if not isinstance(element_type, str):
        raise ValueError("Element is missing a string 'type'")
    kind = element_kind(element_type)
    if kind is None:
        raise ValueError(f"Unknown element type {element_type!r}")
    return ELEMENT_MODELS[kind].model_validate(dict(data))


class Wall(LayoutModel):
    id: str = Field(default_factory=new_id)
    start_x: float
    start_y: float
    end_x: float
    end_y: float
    thickness: float = Field(default=DEFAULT_WALL_THICKNESS, gt=0)
    color: Optional[str] = None


class SpaceDimensions(LayoutModel):
    width: float = Field(default=DEFAULT_VENUE_WIDTH, gt=0)
    height: float = Field(default=DEFAULT_VENUE_HEIGHT, gt=0)


class VenueSpace(LayoutModel):
    walls: List[Wall] = Field(default_factory=list)
    dimensions: SpaceDimensions = Field(default_factory=SpaceDimensions)
    pixels_per_meter: float = Field(default=DEFAULT_PIXELS_PER_METER, gt=0)


class CalibrationPoint(LayoutModel):
    pixel_x: float
    pixel_y: float
    world_x: float
    world_y: float


class FloorPlanBackground(LayoutModel):
    id: str = Field(default_factory=new_id)
    image_url: str
    original_filename: str = ""
    x: float = 0.0
    y: float = 0.0
    pixels_per_meter: float = Field(default=DEFAULT_PIXELS_PER_METER, gt=0)
    width: float = Field(default=0.0, ge=0)
    height: float = Field(default=0.0, ge=0)
    rotation: float = 0.0
    opacity: float = Field(default=0.5, ge=0, le=1)
    locked: bool = True
    visible: bool = True
    calibration_points: List[CalibrationPoint] = Field(default_factory=list)


class ElementGroup(LayoutModel):
    id: str = Field(default_factory=new_id)
    name: str = ""
    element_ids: List[str] = Field(default_factory=list)
    locked: bool = False


class GuestAssignment(LayoutModel):
    chair_id: str
    guest_id: str
    guest_name: str = ""
    dietary_type: Optional[DietaryType] = None
    allergy_flags: List[str] = Field(default_factory=list)
    assigned_at: str = Field(default_factory=now_iso)
    assigned_by: Optional[str] = None


class LayoutSettings(LayoutModel):
    grid_visible: bool = True
    grid_size: float = Field(default=DEFAULT_GRID_SIZE, gt=0)
    snap_enabled: bool = True
    snap_threshold: float = Field(default=DEFAULT_SNAP_THRESHOLD_PX, ge=0)
    rulers_visible: bool = True
    unit: Literal["meters", "feet"] = "meters"


class LayoutStatus(str, Enum):
    DRAFT = "draft"
    IN_PROGRESS = "in_progress"
    READY = "ready"
    APPROVED = "approved"


class Layout(LayoutModel):
    id: str = Field(default_factory=new_id)
    project_id: Optional[str] = None
    event_id: Optional[str] = None
    name: str = "New Layout"
    description: str = ""
    status: LayoutStatus = LayoutStatus.DRAFT
    space: VenueSpace = Field(default_factory=VenueSpace)
    floor_plan: Optional[FloorPlanBackground] = None
    elements: Dict[str, SerializeAsAny[Element]] = Field(default_factory=dict)
    element_order: List[str] = Field(default_factory=list)
    groups: Dict[str, ElementGroup] = Field(default_factory=dict)
    assignments: Dict[str, GuestAssignment] = Field(default_factory=dict)
    settings: LayoutSettings = Field(default_factory=LayoutSettings)
    created_at: str = Field(default_factory=now_iso)
    updated_at: str = Field(default_factory=now_iso)
    created_by: Optional[str] = None
    schema_version: int = Field(default=CURRENT_SCHEMA_VERSION, ge=1)

    @field_validator("elements", mode="before")
    @classmethod
    def _parse_elements(cls, value: Any) -> Any:
        if not isinstance(value, Mapping):
            return value
        return {
            key: parse_element(item) if isinstance(item, Mapping) else item
            for key, item in value.items()
        }


class LayoutSummary(LayoutModel):
    element_count: int = 0
    table_count: int = 0
    chair_count: int = 0
    seat_capacity: int = 0
    assigned_count: int = 0
    zone_count: int = 0
    wall_count: int = 0


def emit_layout_schema(path: str) -> None:
    """Write the versioned JSON Schema for Layout to the given path."""
    schema = Layout.model_json_schema(by_alias=True)
    schema["$id"] = f"urn:seating-chart-editor:layout:{VERSION}"
    schema["$schema"] = "https://json-schema.org/draft/2020-12/schema"
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(schema, f, indent=2)
