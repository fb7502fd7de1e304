"""
Model validation.

Two levels of checking live here:
- Shape validation of single candidates (elements, relationships, views),
  run by the stores before every committed mutation
- Integrity checks over a whole model (elements + relationships, optionally
  against the registered metamodels), for review and import tooling
"""

from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Iterable, Optional, Union
from pydantic import BaseModel, ValidationError

from .config import PropertyType
from .errors import ShapeValidationError
from .models import Element, Relationship, Shape, View

if TYPE_CHECKING:
    from .metamodel import ElementTypeDefinition, MetamodelRegistry


class SchemaKind(str, Enum):
    """Entity shapes the schema validator knows."""
    ELEMENT = "element"
    RELATIONSHIP = "relationship"
    VIEW = "view"


SHAPES: dict[SchemaKind, type[Shape]] = {
    SchemaKind.ELEMENT: Element,
    SchemaKind.RELATIONSHIP: Relationship,
    SchemaKind.VIEW: View,
}


@dataclass
class ValidationIssue:
    """A single field-level schema violation."""
    field: str   # Dotted path, e.g. "properties.cost" or "nodes.0.width"
    reason: str

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {"field": self.field, "reason": self.reason}


def _field_path(loc: tuple) -> str:
    path = ".".join(str(part) for part in loc)
    return path or "(root)"


def _check(candidate: Any, kind: SchemaKind) -> tuple[Optional[Shape], list[ValidationIssue]]:
    """Parse a candidate into its shape, collecting every violation."""
    shape = SHAPES[SchemaKind(kind)]
    if isinstance(candidate, BaseModel):
        # Instances may have been mutated after construction; re-check their data
        candidate = candidate.model_dump(by_alias=True)
    try:
        return shape.model_validate(candidate), []
    except ValidationError as exc:
        issues = [
            ValidationIssue(field=_field_path(err["loc"]), reason=err["msg"])
            for err in exc.errors()
        ]
        return None, issues


def validate(candidate: Any, kind: Union[SchemaKind, str]) -> list[ValidationIssue]:
    """
    Validate a candidate entity against its schema.

    Args:
        candidate: JSON-shaped dict (camelCase or snake_case keys) or model instance
        kind: "element", "relationship" or "view"

    Returns:
        Every violation found; an empty list means the candidate is valid
    """
    return _check(candidate, SchemaKind(kind))[1]


def validate_element(candidate: Any) -> list[ValidationIssue]:
    return validate(candidate, SchemaKind.ELEMENT)


def validate_relationship(candidate: Any) -> list[ValidationIssue]:
    return validate(candidate, SchemaKind.RELATIONSHIP)


def validate_view(candidate: Any) -> list[ValidationIssue]:
    return validate(candidate, SchemaKind.VIEW)


def parse(candidate: Any, kind: Union[SchemaKind, str]) -> Shape:
    """Validate and build the entity, raising ShapeValidationError with all violations."""
    kind = SchemaKind(kind)
    entity, issues = _check(candidate, kind)
    if issues:
        raise ShapeValidationError(issues, kind=kind.value)
    return entity


# --- Whole-model integrity ---

class IssueSeverity(str, Enum):
    """Severity levels for model issues."""
    ERROR = "error"      # Invalid state, must be fixed
    WARNING = "warning"  # Potential problem, should review
    INFO = "info"        # Informational, may be intentional


@dataclass
class ModelIssue:
    """A single issue found in a model."""
    severity: IssueSeverity
    message: str
    element_id: Optional[str] = None
    relationship_id: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        result = {
            "type": self.severity.value,
            "message": self.message
        }
        if self.element_id:
            result["element_id"] = self.element_id
        if self.relationship_id:
            result["relationship_id"] = self.relationship_id
        return result


def _check_properties(element: Element, definition: "ElementTypeDefinition") -> list[ModelIssue]:
    issues: list[ModelIssue] = []
    for prop in definition.properties:
        value = element.properties.get(prop.name)
        if value is None:
            if prop.required:
                issues.append(ModelIssue(
                    severity=IssueSeverity.WARNING,
                    message=f"Missing required property '{prop.name}' for {element.type}",
                    element_id=element.id
                ))
            continue
        if prop.type == PropertyType.ENUM and prop.values and value not in prop.values:
            issues.append(ModelIssue(
                severity=IssueSeverity.WARNING,
                message=f"Property '{prop.name}' has value {value!r}, expected one of {', '.join(prop.values)}",
                element_id=element.id
            ))
    return issues


def validate_model(
    elements: Iterable[Element],
    relationships: Iterable[Relationship],
    registry: Optional["MetamodelRegistry"] = None,
) -> list[ModelIssue]:
    """
    Check a whole model and return a list of issues.

    Checks for:
    - Empty model - INFO
    - Relationships referencing missing elements - ERROR
    - Connections not permitted by the relationship type's table - ERROR
    - Types unknown to the registered metamodels - WARNING
    - Missing required / out-of-range enum properties - WARNING
    - Self-referencing and duplicate relationships - WARNING
    - Orphan elements (no relationships) - INFO

    Metamodel checks only run when a registry is given, and only for types
    whose notation is registered.

    Args:
        elements: Elements of the model
        relationships: Relationships of the model
        registry: Optional registry holding the notations in use

    Returns:
        List of ModelIssue objects
    """
    issues: list[ModelIssue] = []

    elements = list(elements)
    relationships = list(relationships)
    by_id = {e.id: e for e in elements}

    if not elements:
        issues.append(ModelIssue(
            severity=IssueSeverity.INFO,
            message="Model has no elements"
        ))
        if not relationships:
            return issues

    # Element types and properties against the metamodels
    if registry is not None:
        for element in elements:
            if not registry.has(element.notation):
                continue
            definition = registry.find_element_type_definition(element.type)
            if definition is None:
                issues.append(ModelIssue(
                    severity=IssueSeverity.WARNING,
                    message=f"Unknown element type: {element.type}",
                    element_id=element.id
                ))
                continue
            issues.extend(_check_properties(element, definition))

    connected: set[str] = set()
    seen: set[tuple[str, str, str]] = set()
    for rel in relationships:
        connected.add(rel.source_id)
        connected.add(rel.target_id)

        source = by_id.get(rel.source_id)
        target = by_id.get(rel.target_id)
        if source is None:
            issues.append(ModelIssue(
                severity=IssueSeverity.ERROR,
                message=f"Relationship references non-existent source element: {rel.source_id}",
                relationship_id=rel.id
            ))
        if target is None:
            issues.append(ModelIssue(
                severity=IssueSeverity.ERROR,
                message=f"Relationship references non-existent target element: {rel.target_id}",
                relationship_id=rel.id
            ))

        if registry is not None and registry.has(rel.type.partition(":")[0]):
            definition = registry.find_relationship_type_definition(rel.type)
            if definition is None:
                issues.append(ModelIssue(
                    severity=IssueSeverity.WARNING,
                    message=f"Unknown relationship type: {rel.type}",
                    relationship_id=rel.id
                ))
            elif (source and target and definition.has_connection_table
                    and not definition.permits(source.type, target.type)):
                issues.append(ModelIssue(
                    severity=IssueSeverity.ERROR,
                    message=f"Invalid connection: {source.type} cannot have "
                            f"{rel.type} relationship to {target.type}",
                    relationship_id=rel.id
                ))

        if rel.source_id == rel.target_id:
            issues.append(ModelIssue(
                severity=IssueSeverity.WARNING,
                message="Self-referencing relationship (element points to itself)",
                relationship_id=rel.id,
                element_id=rel.source_id
            ))

        key = (rel.type, rel.source_id, rel.target_id)
        if key in seen:
            issues.append(ModelIssue(
                severity=IssueSeverity.WARNING,
                message=f"Duplicate {rel.type} relationship from {rel.source_id} to {rel.target_id}",
                relationship_id=rel.id
            ))
        else:
            seen.add(key)

    orphans = [e for e in elements if e.id not in connected]
    if orphans:
        labels = ", ".join(f"{e.name} ({e.id})" for e in orphans)
        issues.append(ModelIssue(
            severity=IssueSeverity.INFO,
            message=f"Orphan elements (no relationships): {labels}"
        ))

    return issues


def validation_summary(issues: list[ModelIssue]) -> dict:
    """
    Create a summary of model issues.

    Args:
        issues: List of model issues

    Returns:
        Dictionary with counts by severity
    """
    counts = Counter(issue.severity for issue in issues)
    return {
        "total": len(issues),
        "errors": counts[IssueSeverity.ERROR],
        "warnings": counts[IssueSeverity.WARNING],
        "info": counts[IssueSeverity.INFO],
        "valid": counts[IssueSeverity.ERROR] == 0
    }
