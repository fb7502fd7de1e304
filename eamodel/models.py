"""
Core data models for the architecture model graph.

These models define the canonical shapes exchanged with collaborators:
- Elements: typed nodes of the model graph
- Relationships: typed, directed edges referencing elements by id
- Views: visual presentations referencing elements/relationships by id

Field Naming Convention:
- Python attributes are snake_case (`source_id`, `access_type`)
- JSON trees use camelCase (`sourceId`, `accessType`), both are accepted on input
- Timestamps are timezone-aware and serialize to ISO-8601 strings
"""

from datetime import datetime, timezone
from typing import Optional, Any, Union
from pydantic import (
    AwareDatetime,
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictFloat,
    StrictInt,
    StrictStr,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel
import re
import uuid

from .config import (
    ID_SEPARATOR,
    TYPE_ID_PATTERN,
    VIEW_ID_PREFIX,
    AccessType,
    LineStyle,
)


# Custom property values: a tagged union of scalar kinds, no coercion
PropertyValue = Union[StrictStr, StrictBool, StrictInt, StrictFloat]

# Strings pydantic would otherwise read as unix timestamps
_EPOCH_STRING = re.compile(r"^\s*[+-]?\d+(\.\d*)?\s*$")


def generate_id(prefix: Optional[str] = None) -> str:
    """Generate a unique id (UUID4), optionally prefixed, e.g. ``elem-<uuid>``."""
    value = str(uuid.uuid4())
    return f"{prefix}{ID_SEPARATOR}{value}" if prefix else value


def utc_now() -> datetime:
    """Current instant as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


class Shape(BaseModel):
    """Base for all JSON-exchanged shapes (camelCase on the wire)."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    @field_validator("properties", mode="before", check_fields=False)
    @classmethod
    def check_scalar_properties(cls, value: Any) -> Any:
        """Report non-scalar property values once, by name."""
        if isinstance(value, dict):
            for key, item in value.items():
                if item is None or not isinstance(item, (str, int, float, bool)):
                    raise ValueError(
                        f"Property '{key}' must be a string, number or boolean"
                    )
        return value

    def to_json_dict(self) -> dict:
        """Convert to a JSON-serializable dict with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    @classmethod
    def from_json_dict(cls, data: dict):
        """Create an instance from a JSON dict."""
        return cls.model_validate(data)


class Timestamped(Shape):
    """Shapes carrying `created`/`modified` instants (declared by subclasses)."""

    @field_validator("created", "modified", mode="before", check_fields=False)
    @classmethod
    def require_iso_timestamp(cls, value: Any) -> Any:
        # Reject unix epochs, including numeric strings; only ISO-8601 strings or datetimes are instants
        if isinstance(value, (int, float)) or (isinstance(value, str) and _EPOCH_STRING.match(value)):
            raise ValueError("Timestamp must be an ISO-8601 string")
        return value

    @model_validator(mode="after")
    def check_monotonic(self):
        if self.modified < self.created:
            raise ValueError("modified timestamp precedes created timestamp")
        return self


class Element(Timestamped):
    """A typed node in the model graph."""
    id: str = Field(min_length=1)
    type: str = Field(pattern=TYPE_ID_PATTERN)  # notation:TypeName
    name: str = Field(min_length=1)
    documentation: Optional[str] = None
    properties: dict[str, PropertyValue] = Field(default_factory=dict)
    tags: list[str] = Field(default_factory=list)
    created: AwareDatetime
    modified: AwareDatetime

    @field_validator("tags")
    @classmethod
    def dedupe_tags(cls, value: list[str]) -> list[str]:
        # Tags are a set; keep first occurrence order for stable output
        return list(dict.fromkeys(value))

    @property
    def notation(self) -> str:
        """Notation id, the part of the type before the colon."""
        return self.type.partition(":")[0]


class Relationship(Shape):
    """
    A typed, directed edge between two elements.

    Endpoints are referenced by element id, never embedded.
    """
    id: str = Field(min_length=1)
    type: str = Field(pattern=TYPE_ID_PATTERN)
    name: Optional[str] = None
    source_id: str = Field(min_length=1)
    target_id: str = Field(min_length=1)
    documentation: Optional[str] = None
    properties: dict[str, PropertyValue] = Field(default_factory=dict)
    # Only meaningful for access-style relationship types
    access_type: Optional[AccessType] = None
    # Only meaningful for influence-style relationship types
    influence_strength: Optional[str] = None

    def touches(self, element_id: str) -> bool:
        """True if the element is the source or the target."""
        return self.source_id == element_id or self.target_id == element_id


# --- Views (presentational; schema shape only) ---

class Point(Shape):
    x: float
    y: float


class ViewNodeStyle(Shape):
    fill_color: Optional[str] = None
    border_color: Optional[str] = None
    border_width: Optional[float] = None
    text_color: Optional[str] = None
    font_size: Optional[float] = None


class ViewNode(Shape):
    """A visual node on a view, referencing an element."""
    id: str = Field(min_length=1)
    element_id: str = Field(min_length=1)
    x: float
    y: float
    width: float = Field(gt=0)
    height: float = Field(gt=0)
    style: Optional[ViewNodeStyle] = None
    children: list[str] = Field(default_factory=list)  # Nested child node ids
    parent_id: Optional[str] = None


class ViewEdgeStyle(Shape):
    line_color: Optional[str] = None
    line_width: Optional[float] = None
    line_style: Optional[LineStyle] = None


class ViewEdge(Shape):
    """A visual edge on a view, referencing a relationship."""
    id: str = Field(min_length=1)
    relationship_id: str = Field(min_length=1)
    source_node_id: str = Field(min_length=1)
    target_node_id: str = Field(min_length=1)
    waypoints: list[Point] = Field(default_factory=list)
    style: Optional[ViewEdgeStyle] = None
    label_position: Optional[Point] = None


class ViewGroupStyle(Shape):
    fill_color: Optional[str] = None
    border_color: Optional[str] = None
    text_color: Optional[str] = None


class ViewGroup(Shape):
    """A grouping rectangle on a view."""
    id: str = Field(min_length=1)
    name: str
    x: float
    y: float
    width: float = Field(gt=0)
    height: float = Field(gt=0)
    node_ids: list[str] = Field(default_factory=list)
    style: Optional[ViewGroupStyle] = None


class View(Timestamped):
    """A view/diagram showing elements and relationships."""
    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    viewpoint: Optional[str] = None  # e.g. archimate:Layered
    documentation: Optional[str] = None
    nodes: list[ViewNode] = Field(default_factory=list)
    edges: list[ViewEdge] = Field(default_factory=list)
    groups: list[ViewGroup] = Field(default_factory=list)
    created: AwareDatetime
    modified: AwareDatetime

    def get_node(self, node_id: str) -> Optional[ViewNode]:
        """Get a node by id (O(n))."""
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None


def new_view(name: str, viewpoint: Optional[str] = None,
             documentation: Optional[str] = None) -> View:
    """Create an empty view with a fresh id and timestamps."""
    now = utc_now()
    return View(
        id=generate_id(VIEW_ID_PREFIX),
        name=name,
        viewpoint=viewpoint,
        documentation=documentation,
        created=now,
        modified=now,
    )
