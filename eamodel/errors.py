"""
Error taxonomy for rejected mutations.

Absence (unknown id on get/update/delete) is not an error: those operations
return None/False instead of raising.
"""

from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from .validation import ValidationIssue
    from .relationship_store import RelationshipViolation


class ModelError(Exception):
    """Base class for all model errors."""


class ShapeValidationError(ModelError, ValueError):
    """A candidate entity does not satisfy its schema. Carries every violation."""

    def __init__(self, issues: Sequence["ValidationIssue"], kind: str = "entity"):
        self.issues = list(issues)
        self.kind = kind
        details = "; ".join(f"{issue.field}: {issue.reason}" for issue in self.issues)
        super().__init__(f"Invalid {kind}: {details}")


class RelationshipValidationError(ModelError, ValueError):
    """A relationship was rejected by referential or metamodel checks."""

    def __init__(self, violations: Sequence["RelationshipViolation"]):
        self.violations = list(violations)
        messages = ", ".join(v.message for v in self.violations)
        super().__init__(f"Invalid relationship: {messages}")

    @property
    def errors(self) -> list[str]:
        return [v.message for v in self.violations]


class ReferentialError(RelationshipValidationError):
    """A relationship endpoint does not exist in the element store."""


class ConstraintError(RelationshipValidationError):
    """The relationship type is unknown to the metamodel, or the connection is not permitted."""
