"""
Element Store - owns the elements of a model.

This module implements:
- Validated creation and partial update of elements
- O(1) id lookups plus tag/type index dictionaries
- Snapshot queries (every returned element is an independent copy)
- Bulk import/export of JSON-shaped element arrays
"""

import logging
from typing import Any, Callable, Iterable, Optional

from .config import ELEMENT_ID_PREFIX
from .errors import ShapeValidationError
from .models import Element, PropertyValue, generate_id, utc_now
from .validation import SchemaKind, ValidationIssue, parse

logger = logging.getLogger(__name__)


class ElementStore:
    """
    Manages the elements of a model.

    Features:
    - Every mutation is shape-validated before it is committed; a rejected
      mutation leaves the store untouched
    - O(1) lookups by id, indexed lookups by tag and type
    - Change callbacks for collaborators (e.g. a UI state layer)

    Deleting an element does not touch relationships. Callers cascade with
    RelationshipStore.delete_for_element when they see fit.
    """

    def __init__(self, id_prefix: str = ELEMENT_ID_PREFIX):
        self._id_prefix = id_prefix
        self._on_change_callbacks: list[Callable] = []

        self._elements: dict[str, Element] = {}        # element_id -> Element
        self._tag_index: dict[str, set[str]] = {}      # tag -> set of element_ids
        self._type_index: dict[str, set[str]] = {}     # type -> set of element_ids

    # --- Index Management ---

    def _index_element(self, element: Element):
        """Add an element to the indexes."""
        self._elements[element.id] = element
        for tag in element.tags:
            self._tag_index.setdefault(tag, set()).add(element.id)
        self._type_index.setdefault(element.type, set()).add(element.id)

    def _unindex_element(self, element: Element):
        """Remove an element from the tag/type indexes (its id slot is kept)."""
        for tag in element.tags:
            self._discard(self._tag_index, tag, element.id)
        self._discard(self._type_index, element.type, element.id)

    @staticmethod
    def _discard(index: dict[str, set[str]], key: str, element_id: str):
        ids = index.get(key)
        if ids is not None:
            ids.discard(element_id)
            if not ids:
                del index[key]

    def _snapshot(self, ids: Iterable[str]) -> list[Element]:
        return [self._elements[eid].model_copy(deep=True) for eid in ids if eid in self._elements]

    # --- Change Callbacks ---

    def on_change(self, callback: Callable):
        """Register a callback invoked after every committed mutation."""
        self._on_change_callbacks.append(callback)

    def _notify_change(self):
        """Notify all registered callbacks of a change."""
        for callback in self._on_change_callbacks:
            callback()

    # --- Mutations ---

    def _parse(self, candidate: dict) -> Element:
        try:
            return parse(candidate, SchemaKind.ELEMENT)
        except ShapeValidationError as exc:
            logger.warning("Rejected element %s: %s", candidate.get("id"), exc)
            raise

    def create(
        self,
        type_id: str,
        name: str,
        documentation: Optional[str] = None,
        properties: Optional[dict[str, PropertyValue]] = None,
        tags: Optional[list[str]] = None,
    ) -> Element:
        """
        Create a new element.

        Assigns a fresh id and the created/modified timestamps.

        Raises:
            ShapeValidationError: with every violation; nothing is inserted
        """
        now = utc_now()
        element = self._parse({
            "id": generate_id(self._id_prefix),
            "type": type_id,
            "name": name,
            "documentation": documentation,
            "properties": properties if properties is not None else {},
            "tags": tags if tags is not None else [],
            "created": now,
            "modified": now,
        })

        self._index_element(element)
        logger.debug("Created element %s (%s)", element.id, element.type)
        self._notify_change()
        return element.model_copy(deep=True)

    def update(
        self,
        element_id: str,
        name: Optional[str] = None,
        documentation: Optional[str] = None,
        properties: Optional[dict[str, PropertyValue]] = None,
        tags: Optional[list[str]] = None,
    ) -> Optional[Element]:
        """
        Update an existing element (partial update).

        Only arguments that are not None are applied. Id, type and created
        timestamp never change; modified never moves backwards.

        Returns:
            The updated element, or None if no element has this id

        Raises:
            ShapeValidationError: the merged element is invalid; the prior
                state is kept
        """
        existing = self._elements.get(element_id)
        if existing is None:
            return None

        changes = {
            "name": name,
            "documentation": documentation,
            "properties": properties,
            "tags": tags,
        }
        candidate = existing.model_dump()
        candidate.update({key: value for key, value in changes.items() if value is not None})
        candidate["modified"] = max(utc_now(), existing.modified)

        updated = self._parse(candidate)

        self._unindex_element(existing)
        self._index_element(updated)
        logger.debug("Updated element %s", element_id)
        self._notify_change()
        return updated.model_copy(deep=True)

    def delete(self, element_id: str) -> bool:
        """
        Delete an element by id.

        Returns:
            True if the element existed
        """
        element = self._elements.get(element_id)
        if element is None:
            return False

        self._unindex_element(element)
        del self._elements[element_id]
        logger.debug("Deleted element %s", element_id)
        self._notify_change()
        return True

    def clear(self):
        """Remove all elements."""
        self._elements.clear()
        self._tag_index.clear()
        self._type_index.clear()
        self._notify_change()

    # --- Lookups ---

    def get(self, element_id: str) -> Optional[Element]:
        """Get an element by id (O(1) lookup)."""
        element = self._elements.get(element_id)
        return element.model_copy(deep=True) if element else None

    def has(self, element_id: str) -> bool:
        return element_id in self._elements

    def count(self) -> int:
        return len(self._elements)

    def get_all(self) -> list[Element]:
        return self._snapshot(self._elements)

    def get_by_type(self, type_id: str) -> list[Element]:
        """Get all elements of a type (index lookup)."""
        return self._snapshot(self._type_index.get(type_id, ()))

    def get_by_layer(self, layer: str) -> list[Element]:
        """Get all elements whose type starts with ``<layer>:`` (the notation portion)."""
        prefix = f"{layer}:"
        return self._snapshot(eid for eid, el in self._elements.items() if el.type.startswith(prefix))

    def get_by_tag(self, tag: str) -> list[Element]:
        """Get all elements with a tag (index lookup)."""
        return self._snapshot(self._tag_index.get(tag, ()))

    def search_by_name(self, query: str) -> list[Element]:
        """Search elements by name (case-insensitive substring)."""
        lowered = query.lower()
        return self._snapshot(eid for eid, el in self._elements.items() if lowered in el.name.lower())

    # --- Bulk Operations ---

    def load_from_array(self, items: Iterable[Any]) -> int:
        """
        Load elements from an array (JSON dicts or Element instances).

        Existing ids and timestamps are kept; an element whose id is already
        stored replaces it. Items are validated one by one and the batch stops
        at the first invalid item. Items loaded before it stay committed.

        Returns:
            Number of elements loaded

        Raises:
            ShapeValidationError: field paths prefixed with the item index, e.g. "[2].name"
        """
        loaded = 0
        try:
            for index, item in enumerate(items):
                try:
                    element = parse(item, SchemaKind.ELEMENT)
                except ShapeValidationError as exc:
                    logger.warning("Element import stopped at item %d after %d loaded", index, loaded)
                    issues = [ValidationIssue(f"[{index}].{i.field}", i.reason) for i in exc.issues]
                    raise ShapeValidationError(issues, kind="element") from exc

                previous = self._elements.get(element.id)
                if previous is not None:
                    self._unindex_element(previous)
                self._index_element(element)
                loaded += 1
        finally:
            if loaded:
                self._notify_change()

        logger.debug("Loaded %d elements", loaded)
        return loaded

    def to_array(self) -> list[dict]:
        """Export all elements as JSON dicts."""
        return [element.to_json_dict() for element in self._elements.values()]
