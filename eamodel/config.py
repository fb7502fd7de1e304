"""
Model-wide settings.

Identifier prefixes, the compound type id format and the enumerations shared
by the entity shapes and the metamodel definitions live here.
"""

from enum import Enum


# --- Identifiers ---

ELEMENT_ID_PREFIX = "elem"
RELATIONSHIP_ID_PREFIX = "rel"
VIEW_ID_PREFIX = "view"
ID_SEPARATOR = "-"

# --- Compound type ids (<notation>:<TypeName>) ---

TYPE_SEPARATOR = ":"
TYPE_ID_PATTERN = r"^[a-z]+:[A-Z][a-zA-Z]+$"

# Viewpoint wildcard for "every type of the notation"
ALL_TYPES = "*"


class AccessType(str, Enum):
    """Qualifier for access-style relationships."""
    READ = "read"
    WRITE = "write"
    READWRITE = "readwrite"
    ACCESS = "access"


class Aspect(str, Enum):
    """Semantic role of an element type."""
    ACTIVE = "active"
    BEHAVIOR = "behavior"
    PASSIVE = "passive"


class LineStyle(str, Enum):
    """Line styles for relationships and view edges."""
    SOLID = "solid"
    DASHED = "dashed"
    DOTTED = "dotted"


class SourceArrow(str, Enum):
    """Decorations at the source end of a relationship."""
    NONE = "none"
    DIAMOND_FILLED = "diamond-filled"
    DIAMOND_HOLLOW = "diamond-hollow"
    CIRCLE_FILLED = "circle-filled"
    CIRCLE_HOLLOW = "circle-hollow"


class TargetArrow(str, Enum):
    """Decorations at the target end of a relationship."""
    NONE = "none"
    OPEN = "open"
    FILLED = "filled"
    HOLLOW_TRIANGLE = "hollow-triangle"


class PropertyType(str, Enum):
    """Data types an element-type property may declare."""
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ENUM = "enum"
