"""
Relationship Store - owns the relationships of a model.

This module implements:
- Referential checks against a wired ElementStore (endpoints must exist)
- Structural checks against a wired Metamodel (type known, connection permitted)
- Directional queries backed by an element id -> relationship ids index
- Bulk import/export of JSON-shaped relationship arrays

Both collaborators are optional. Without an ElementStore, endpoints are not
checked; without a Metamodel, any type may connect any two elements.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Iterable, Optional

from .config import RELATIONSHIP_ID_PREFIX, AccessType
from .errors import ConstraintError, ReferentialError, ShapeValidationError
from .models import PropertyValue, Relationship, generate_id
from .validation import SchemaKind, ValidationIssue, parse

if TYPE_CHECKING:
    from .element_store import ElementStore
    from .metamodel import Metamodel

logger = logging.getLogger(__name__)


class ViolationKind(str, Enum):
    """Reasons a relationship can be rejected."""
    SOURCE_NOT_FOUND = "source_not_found"
    TARGET_NOT_FOUND = "target_not_found"
    UNKNOWN_TYPE = "unknown_type"
    INVALID_CONNECTION = "invalid_connection"

    @property
    def is_referential(self) -> bool:
        return self in (ViolationKind.SOURCE_NOT_FOUND, ViolationKind.TARGET_NOT_FOUND)


@dataclass
class RelationshipViolation:
    kind: ViolationKind
    message: str

    def to_dict(self) -> dict:
        return {"kind": self.kind.value, "message": self.message}


@dataclass
class RelationshipValidationResult:
    """
    Outcome of RelationshipStore.validate.

    `unchecked` lists checks that could not be performed, e.g. a relationship
    type whose valid connections are a rule string.
    """
    errors: list[RelationshipViolation] = field(default_factory=list)
    unchecked: list[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    @property
    def messages(self) -> list[str]:
        return [v.message for v in self.errors]

    def to_dict(self) -> dict:
        return {
            "valid": self.valid,
            "errors": self.messages,
            "unchecked": list(self.unchecked),
        }


class RelationshipStore:
    """
    Manages the relationships of a model.

    Type and endpoints are fixed at creation; updates only touch name,
    documentation, properties and the access/influence qualifiers.
    """

    def __init__(
        self,
        elements: Optional["ElementStore"] = None,
        metamodel: Optional["Metamodel"] = None,
        id_prefix: str = RELATIONSHIP_ID_PREFIX,
    ):
        self._element_store = elements
        self._metamodel = metamodel
        self._id_prefix = id_prefix
        self._on_change_callbacks: list[Callable] = []

        self._relationships: dict[str, Relationship] = {}  # relationship_id -> Relationship
        self._by_element: dict[str, set[str]] = {}         # element_id -> set of relationship_ids

    # --- Wiring ---

    def set_element_store(self, elements: Optional["ElementStore"]):
        """Set the element store used for endpoint checks."""
        self._element_store = elements

    def set_metamodel(self, metamodel: Optional["Metamodel"]):
        """Set the metamodel used for structural checks."""
        self._metamodel = metamodel

    @property
    def metamodel(self) -> Optional["Metamodel"]:
        return self._metamodel

    # --- Index Management ---

    def _index_relationship(self, rel: Relationship):
        self._relationships[rel.id] = rel
        self._by_element.setdefault(rel.source_id, set()).add(rel.id)
        self._by_element.setdefault(rel.target_id, set()).add(rel.id)

    def _unindex_relationship(self, rel: Relationship):
        for element_id in (rel.source_id, rel.target_id):
            ids = self._by_element.get(element_id)
            if ids is not None:
                ids.discard(rel.id)
                if not ids:
                    del self._by_element[element_id]

    def _snapshot(self, ids: Iterable[str]) -> list[Relationship]:
        return [self._relationships[rid].model_copy(deep=True) for rid in ids if rid in self._relationships]

    # --- Change Callbacks ---

    def on_change(self, callback: Callable):
        """Register a callback invoked after every committed mutation."""
        self._on_change_callbacks.append(callback)

    def _notify_change(self):
        for callback in self._on_change_callbacks:
            callback()

    # --- Validation ---

    def validate(self, type_id: str, source_id: str, target_id: str) -> RelationshipValidationResult:
        """
        Check a prospective relationship against the wired collaborators.

        Every applicable check runs and all violations are reported:
        - source / target element exists (needs an ElementStore)
        - relationship type is defined (needs a Metamodel)
        - (source type, target type) is in the type's connection table
          (needs both endpoints found and a table rather than a rule string)
        """
        result = RelationshipValidationResult()
        source = target = None

        if self._element_store is not None:
            source = self._element_store.get(source_id)
            if source is None:
                result.errors.append(RelationshipViolation(
                    ViolationKind.SOURCE_NOT_FOUND,
                    f"Source element '{source_id}' not found"
                ))
            target = self._element_store.get(target_id)
            if target is None:
                result.errors.append(RelationshipViolation(
                    ViolationKind.TARGET_NOT_FOUND,
                    f"Target element '{target_id}' not found"
                ))

        if self._metamodel is not None:
            definition = self._metamodel.relationship_type(type_id)
            if definition is None:
                result.errors.append(RelationshipViolation(
                    ViolationKind.UNKNOWN_TYPE,
                    f"Unknown relationship type: {type_id}"
                ))
            elif not definition.has_connection_table:
                result.unchecked.append(
                    f"Connections of {type_id} follow a rule that is not evaluated: "
                    f"{definition.connection_rule}"
                )
            elif self._element_store is None:
                result.unchecked.append(
                    f"Connection of {type_id} not checked: endpoint types are unknown "
                    f"without an element store"
                )
            elif source is not None and target is not None:
                if not definition.permits(source.type, target.type):
                    result.errors.append(RelationshipViolation(
                        ViolationKind.INVALID_CONNECTION,
                        f"Invalid connection: {source.type} cannot have "
                        f"{type_id} relationship to {target.type}"
                    ))

        return result

    # --- Mutations ---

    def _parse(self, candidate: dict) -> Relationship:
        try:
            return parse(candidate, SchemaKind.RELATIONSHIP)
        except ShapeValidationError as exc:
            logger.warning("Rejected relationship %s: %s", candidate.get("id"), exc)
            raise

    def create(
        self,
        type_id: str,
        source_id: str,
        target_id: str,
        name: Optional[str] = None,
        documentation: Optional[str] = None,
        properties: Optional[dict[str, PropertyValue]] = None,
        access_type: Optional[AccessType] = None,
        influence_strength: Optional[str] = None,
        skip_validation: bool = False,
    ) -> Relationship:
        """
        Create a new relationship.

        Args:
            skip_validation: Skip endpoint and metamodel checks (trusted bulk
                import only). Shape validation always runs.

        Raises:
            ReferentialError: an endpoint is missing (message lists all violations)
            ConstraintError: only metamodel checks failed
            ShapeValidationError: the relationship shape is invalid
        """
        if not skip_validation:
            result = self.validate(type_id, source_id, target_id)
            for note in result.unchecked:
                logger.info(note)
            if not result.valid:
                logger.warning("Rejected %s relationship %s -> %s: %s",
                               type_id, source_id, target_id, "; ".join(result.messages))
                if any(v.kind.is_referential for v in result.errors):
                    raise ReferentialError(result.errors)
                raise ConstraintError(result.errors)

        rel = self._parse({
            "id": generate_id(self._id_prefix),
            "type": type_id,
            "source_id": source_id,
            "target_id": target_id,
            "name": name,
            "documentation": documentation,
            "properties": properties if properties is not None else {},
            "access_type": access_type,
            "influence_strength": influence_strength,
        })

        self._index_relationship(rel)
        logger.debug("Created relationship %s (%s) %s -> %s", rel.id, rel.type, source_id, target_id)
        self._notify_change()
        return rel.model_copy(deep=True)

    def update(
        self,
        relationship_id: str,
        name: Optional[str] = None,
        documentation: Optional[str] = None,
        properties: Optional[dict[str, PropertyValue]] = None,
        access_type: Optional[AccessType] = None,
        influence_strength: Optional[str] = None,
    ) -> Optional[Relationship]:
        """
        Update an existing relationship (partial update).

        Qualifiers are accepted whatever the relationship type is.

        Returns:
            The updated relationship, or None if no relationship has this id
        """
        existing = self._relationships.get(relationship_id)
        if existing is None:
            return None

        changes = {
            "name": name,
            "documentation": documentation,
            "properties": properties,
            "access_type": access_type,
            "influence_strength": influence_strength,
        }
        candidate = existing.model_dump()
        candidate.update({key: value for key, value in changes.items() if value is not None})

        updated = self._parse(candidate)

        # Endpoints are immutable, so the element index is unaffected
        self._relationships[relationship_id] = updated
        logger.debug("Updated relationship %s", relationship_id)
        self._notify_change()
        return updated.model_copy(deep=True)

    def delete(self, relationship_id: str) -> bool:
        """Delete a relationship. Returns True if it existed."""
        rel = self._relationships.pop(relationship_id, None)
        if rel is None:
            return False

        self._unindex_relationship(rel)
        logger.debug("Deleted relationship %s", relationship_id)
        self._notify_change()
        return True

    def delete_for_element(self, element_id: str) -> int:
        """
        Delete all relationships touching an element (as source or target).

        This is the cascade callers run after deleting the element.

        Returns:
            Number of relationships deleted
        """
        rel_ids = list(self._by_element.get(element_id, ()))
        for rel_id in rel_ids:
            rel = self._relationships.pop(rel_id)
            self._unindex_relationship(rel)

        if rel_ids:
            logger.debug("Deleted %d relationships of element %s", len(rel_ids), element_id)
            self._notify_change()
        return len(rel_ids)

    def clear(self):
        """Remove all relationships."""
        self._relationships.clear()
        self._by_element.clear()
        self._notify_change()

    # --- Lookups ---

    def get(self, relationship_id: str) -> Optional[Relationship]:
        rel = self._relationships.get(relationship_id)
        return rel.model_copy(deep=True) if rel is not None else None

    def has(self, relationship_id: str) -> bool:
        return relationship_id in self._relationships

    def count(self) -> int:
        return len(self._relationships)

    def get_all(self) -> list[Relationship]:
        return self._snapshot(self._relationships)

    def get_by_type(self, type_id: str) -> list[Relationship]:
        return self._snapshot(rid for rid, rel in self._relationships.items() if rel.type == type_id)

    def get_from_element(self, element_id: str) -> list[Relationship]:
        """Relationships whose source is the element."""
        return [r for r in self.get_for_element(element_id) if r.source_id == element_id]

    def get_to_element(self, element_id: str) -> list[Relationship]:
        """Relationships whose target is the element."""
        return [r for r in self.get_for_element(element_id) if r.target_id == element_id]

    def get_for_element(self, element_id: str) -> list[Relationship]:
        """Relationships with the element as source or target (index lookup)."""
        return self._snapshot(self._by_element.get(element_id, ()))

    # --- Bulk Operations ---

    def load_from_array(self, items: Iterable[Any]) -> int:
        """
        Load relationships from an array (JSON dicts or Relationship instances).

        Only shape validation runs: imported data is trusted to reference
        existing elements. Stops at the first invalid item; earlier items stay
        committed.

        Returns:
            Number of relationships loaded

        Raises:
            ShapeValidationError: field paths prefixed with the item index
        """
        loaded = 0
        try:
            for index, item in enumerate(items):
                try:
                    rel = parse(item, SchemaKind.RELATIONSHIP)
                except ShapeValidationError as exc:
                    logger.warning("Relationship import stopped at item %d after %d loaded", index, loaded)
                    issues = [ValidationIssue(f"[{index}].{i.field}", i.reason) for i in exc.issues]
                    raise ShapeValidationError(issues, kind="relationship") from exc

                previous = self._relationships.get(rel.id)
                if previous is not None:
                    self._unindex_relationship(previous)
                self._index_relationship(rel)
                loaded += 1
        finally:
            if loaded:
                self._notify_change()

        logger.debug("Loaded %d relationships", loaded)
        return loaded

    def to_array(self) -> list[dict]:
        """Export all relationships as JSON dicts."""
        return [rel.to_json_dict() for rel in self._relationships.values()]
