"""
eamodel - Metamodel-constrained graph model for enterprise-architecture diagrams.

This package provides the entity shapes, schema validation, notation registry
and the element/relationship stores that UI, persistence and import tooling
build on. It performs no I/O.
"""

from .config import AccessType, Aspect, LineStyle, PropertyType, SourceArrow, TargetArrow

from .models import (
    # Identifiers
    generate_id,
    # Entities
    Element,
    Relationship,
    # Views
    View,
    ViewNode,
    ViewEdge,
    ViewGroup,
    new_view,
)

from .metamodel import (
    Metamodel,
    MetamodelLayer,
    ElementTypeDefinition,
    ElementTypeProperty,
    RelationshipTypeDefinition,
    ValidConnection,
    ViewpointDefinition,
    MetamodelRegistry,
)

from .errors import (
    ModelError,
    ShapeValidationError,
    RelationshipValidationError,
    ReferentialError,
    ConstraintError,
)

from .validation import (
    SchemaKind,
    ValidationIssue,
    validate,
    validate_element,
    validate_relationship,
    validate_view,
    IssueSeverity,
    ModelIssue,
    validate_model,
    validation_summary,
)

from .element_store import ElementStore
from .relationship_store import (
    RelationshipStore,
    RelationshipValidationResult,
    RelationshipViolation,
    ViolationKind,
)

__all__ = [
    # Enums
    "AccessType",
    "Aspect",
    "LineStyle",
    "PropertyType",
    "SourceArrow",
    "TargetArrow",
    # Models
    "generate_id",
    "Element",
    "Relationship",
    "View",
    "ViewNode",
    "ViewEdge",
    "ViewGroup",
    "new_view",
    # Metamodels
    "Metamodel",
    "MetamodelLayer",
    "ElementTypeDefinition",
    "ElementTypeProperty",
    "RelationshipTypeDefinition",
    "ValidConnection",
    "ViewpointDefinition",
    "MetamodelRegistry",
    # Errors
    "ModelError",
    "ShapeValidationError",
    "RelationshipValidationError",
    "ReferentialError",
    "ConstraintError",
    # Validation
    "SchemaKind",
    "ValidationIssue",
    "validate",
    "validate_element",
    "validate_relationship",
    "validate_view",
    "IssueSeverity",
    "ModelIssue",
    "validate_model",
    "validation_summary",
    # Stores
    "ElementStore",
    "RelationshipStore",
    "RelationshipValidationResult",
    "RelationshipViolation",
    "ViolationKind",
]
