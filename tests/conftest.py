from __future__ import annotations

import copy

import pytest

from eamodel import ElementStore, Metamodel, MetamodelRegistry, RelationshipStore


WIDGET_METAMODEL = {
    "id": "n",
    "name": "Widgets",
    "version": "1.0",
    "layers": [
        {"id": "core", "name": "Core", "color": "#123456"},
        {"id": "edge", "name": "Edge", "color": "#abcdef"},
    ],
    "elementTypes": [
        {
            "id": "n:Widget",
            "name": "Widget",
            "layer": "core",
            "aspect": "active",
            "shape": "rectangle",
            "documentation": "",
            "properties": [],
        },
        {
            "id": "n:Gadget",
            "name": "Gadget",
            "layer": "edge",
            "aspect": "passive",
            "shape": "ellipse",
            "documentation": "",
            "properties": [
                {"name": "serial", "type": "string", "required": True},
                {"name": "size", "type": "enum", "values": ["s", "m", "l"]},
            ],
        },
    ],
    "relationshipTypes": [
        {
            "id": "n:Links",
            "name": "Links",
            "lineStyle": "solid",
            "sourceArrow": "none",
            "targetArrow": "open",
            "documentation": "",
            "validConnections": [{"source": "n:Widget", "target": "n:Widget"}],
        },
        {
            "id": "n:Relates",
            "name": "Relates",
            "lineStyle": "dashed",
            "sourceArrow": "none",
            "targetArrow": "none",
            "documentation": "",
            "validConnections": "any element to any element",
        },
    ],
    "viewpoints": [
        {
            "id": "n:Everything",
            "name": "Everything",
            "allowedElements": "*",
            "allowedRelationships": "*",
            "description": "",
        },
        {
            "id": "n:WidgetsOnly",
            "name": "Widgets only",
            "allowedElements": ["n:Widget"],
            "allowedRelationships": ["n:Links"],
            "description": "",
        },
    ],
}


@pytest.fixture
def metamodel_document() -> dict:
    return copy.deepcopy(WIDGET_METAMODEL)


@pytest.fixture
def registry(metamodel_document: dict) -> MetamodelRegistry:
    registry = MetamodelRegistry()
    registry.register(metamodel_document)
    return registry


@pytest.fixture
def metamodel(registry: MetamodelRegistry) -> Metamodel:
    return registry.get("n")


@pytest.fixture
def elements() -> ElementStore:
    return ElementStore()


@pytest.fixture
def relationships(elements: ElementStore, metamodel: Metamodel) -> RelationshipStore:
    return RelationshipStore(elements=elements, metamodel=metamodel)
