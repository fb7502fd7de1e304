"""
Notation metamodels and the registry holding them.

A metamodel declares a notation's layers, element types, relationship types
(with the connections each one permits) and viewpoints. Definitions are frozen
once parsed; the registry indexes them by notation id, the prefix of every
compound type id (``archimate`` in ``archimate:ApplicationComponent``).
"""

import logging
from typing import Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .config import (
    ALL_TYPES,
    TYPE_ID_PATTERN,
    TYPE_SEPARATOR,
    Aspect,
    LineStyle,
    PropertyType,
    SourceArrow,
    TargetArrow,
)

logger = logging.getLogger(__name__)


def notation_of(type_id: str) -> str:
    """Notation id of a compound type id (the part before the colon)."""
    return type_id.partition(TYPE_SEPARATOR)[0]


class Definition(BaseModel):
    """Base for metamodel definition shapes: camelCase on the wire, read-only."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class MetamodelLayer(Definition):
    """A layer/category of elements (e.g. Business, Application, Technology)."""
    id: str
    name: str
    color: str  # Default fill for elements in this layer


class ElementTypeProperty(Definition):
    """A property declared on an element or relationship type."""
    name: str
    type: PropertyType
    required: bool = False
    values: Optional[tuple[str, ...]] = None  # Allowed values for enum properties


class ElementTypeDefinition(Definition):
    id: str = Field(pattern=TYPE_ID_PATTERN)
    name: str
    layer: str
    aspect: Aspect
    shape: str
    icon: Optional[str] = None
    documentation: str = ""
    properties: tuple[ElementTypeProperty, ...] = ()


class ValidConnection(Definition):
    """One permitted (source type, target type) pair."""
    source: str
    target: str


class RelationshipTypeDefinition(Definition):
    """
    Definition of a relationship type.

    `valid_connections` is either a finite table of permitted pairs or an
    opaque rule string. Rule strings are not interpreted: connections of such
    types are never checked structurally.
    """
    id: str = Field(pattern=TYPE_ID_PATTERN)
    name: str
    line_style: LineStyle = LineStyle.SOLID
    source_arrow: SourceArrow = SourceArrow.NONE
    target_arrow: TargetArrow = TargetArrow.NONE
    documentation: str = ""
    valid_connections: Union[tuple[ValidConnection, ...], str] = ()
    properties: tuple[ElementTypeProperty, ...] = ()

    @property
    def has_connection_table(self) -> bool:
        return not isinstance(self.valid_connections, str)

    @property
    def connection_rule(self) -> Optional[str]:
        """The rule string, or None when connections are a table."""
        return None if self.has_connection_table else self.valid_connections

    def permits(self, source_type: str, target_type: str) -> bool:
        """Check a pair against the connection table. Rule strings permit everything."""
        if not self.has_connection_table:
            return True
        return any(
            vc.source == source_type and vc.target == target_type
            for vc in self.valid_connections
        )


class ViewpointDefinition(Definition):
    """A named subset of a notation's types, or '*' for all of them."""
    id: str
    name: str
    allowed_elements: Union[Literal["*"], tuple[str, ...]] = ALL_TYPES
    allowed_relationships: Union[Literal["*"], tuple[str, ...]] = ALL_TYPES
    description: str = ""

    def allows_element(self, type_id: str) -> bool:
        return self.allowed_elements == ALL_TYPES or type_id in self.allowed_elements

    def allows_relationship(self, type_id: str) -> bool:
        return self.allowed_relationships == ALL_TYPES or type_id in self.allowed_relationships


class Metamodel(Definition):
    """
    A notation definition (e.g. ArchiMate, BPMN).

    This is the document shape external metamodel files must satisfy:
    ``id, name, version, layers[], elementTypes[], relationshipTypes[], viewpoints[]``.
    """
    id: str = Field(pattern=r"^[a-z]+$")
    name: str
    version: str
    layers: tuple[MetamodelLayer, ...] = ()
    element_types: tuple[ElementTypeDefinition, ...] = ()
    relationship_types: tuple[RelationshipTypeDefinition, ...] = ()
    viewpoints: tuple[ViewpointDefinition, ...] = ()

    def layer(self, layer_id: str) -> Optional[MetamodelLayer]:
        return next((ly for ly in self.layers if ly.id == layer_id), None)

    def element_type(self, type_id: str) -> Optional[ElementTypeDefinition]:
        return next((et for et in self.element_types if et.id == type_id), None)

    def relationship_type(self, type_id: str) -> Optional[RelationshipTypeDefinition]:
        return next((rt for rt in self.relationship_types if rt.id == type_id), None)

    def viewpoint(self, viewpoint_id: str) -> Optional[ViewpointDefinition]:
        return next((vp for vp in self.viewpoints if vp.id == viewpoint_id), None)

    def to_json_dict(self) -> dict:
        """Convert to the JSON metamodel document."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    @classmethod
    def from_json_dict(cls, data: dict) -> "Metamodel":
        """Parse a JSON metamodel document."""
        return cls.model_validate(data)


class MetamodelRegistry:
    """
    Holds the registered notations.

    Construct one per application (or per test) and pass it to collaborators;
    there is no module-level instance.
    """

    def __init__(self):
        self._metamodels: dict[str, Metamodel] = {}  # notation id -> Metamodel

    def register(self, metamodel: Union[Metamodel, dict]) -> Metamodel:
        """Register a metamodel (or its JSON document). Replaces any prior one with the same id."""
        if not isinstance(metamodel, Metamodel):
            metamodel = Metamodel.from_json_dict(metamodel)

        if metamodel.id in self._metamodels:
            logger.warning("Replacing registered metamodel %s", metamodel.id)
        self._metamodels[metamodel.id] = metamodel
        logger.debug(
            "Registered metamodel %s %s (%d element types, %d relationship types)",
            metamodel.id, metamodel.version,
            len(metamodel.element_types), len(metamodel.relationship_types),
        )
        return metamodel

    def get(self, metamodel_id: str) -> Optional[Metamodel]:
        return self._metamodels.get(metamodel_id)

    def has(self, metamodel_id: str) -> bool:
        return metamodel_id in self._metamodels

    def list_metamodels(self) -> list[Metamodel]:
        return list(self._metamodels.values())

    def list_ids(self) -> list[str]:
        return list(self._metamodels.keys())

    def __len__(self) -> int:
        return len(self._metamodels)

    def __contains__(self, metamodel_id: str) -> bool:
        return self.has(metamodel_id)

    # --- Type lookups ---

    def find_element_type_definition(self, type_id: str) -> Optional[ElementTypeDefinition]:
        """Find an element type definition across all registered metamodels."""
        for metamodel in self._metamodels.values():
            found = metamodel.element_type(type_id)
            if found is not None:
                return found
        return None

    def find_relationship_type_definition(self, type_id: str) -> Optional[RelationshipTypeDefinition]:
        """Find a relationship type definition across all registered metamodels."""
        for metamodel in self._metamodels.values():
            found = metamodel.relationship_type(type_id)
            if found is not None:
                return found
        return None

    def layer_for_type(self, type_id: str) -> Optional[MetamodelLayer]:
        """
        Resolve the layer owning an element type.

        The notation prefix selects the metamodel, whose element type definition
        names the layer. Returns None if any step finds nothing.
        """
        metamodel = self._metamodels.get(notation_of(type_id))
        if metamodel is None:
            return None
        definition = metamodel.element_type(type_id)
        if definition is None:
            return None
        return metamodel.layer(definition.layer)

    def layer_name_for_type(self, type_id: str) -> Optional[str]:
        layer = self.layer_for_type(type_id)
        return layer.name if layer else None

    def color_for_type(self, type_id: str) -> Optional[str]:
        layer = self.layer_for_type(type_id)
        return layer.color if layer else None

    def element_types_for_layer(self, metamodel_id: str, layer_id: str) -> list[ElementTypeDefinition]:
        metamodel = self._metamodels.get(metamodel_id)
        if metamodel is None:
            return []
        return [et for et in metamodel.element_types if et.layer == layer_id]

    # --- Viewpoints ---

    def find_viewpoint(self, viewpoint_id: str) -> Optional[ViewpointDefinition]:
        metamodel = self._metamodels.get(notation_of(viewpoint_id))
        if metamodel is None:
            return None
        return metamodel.viewpoint(viewpoint_id)

    def viewpoint_allows(self, viewpoint_id: str, type_id: str) -> bool:
        """
        Check whether a viewpoint shows an element or relationship type.

        Unknown viewpoints allow nothing.
        """
        viewpoint = self.find_viewpoint(viewpoint_id)
        if viewpoint is None:
            return False
        if self.find_relationship_type_definition(type_id) is not None:
            return viewpoint.allows_relationship(type_id)
        return viewpoint.allows_element(type_id)

    def clear(self):
        """Remove all registrations."""
        self._metamodels.clear()
