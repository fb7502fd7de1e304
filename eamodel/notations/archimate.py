"""
ArchiMate 3.2 metamodel (core subset).

Layers, element types and viewpoints follow the ArchiMate specification.
Connection tables are derived from the element aspects: relationships whose
legality depends on more than the two endpoint types (composition,
aggregation, specialization, association) carry a rule string instead.
"""

import copy
from itertools import product

from ..metamodel import Metamodel

NOTATION = "archimate"

LAYERS = [
    {"id": "strategy", "name": "Strategy", "color": "#F5E6A3"},
    {"id": "business", "name": "Business", "color": "#FFFFB5"},
    {"id": "application", "name": "Application", "color": "#B5FFFF"},
    {"id": "technology", "name": "Technology", "color": "#C9E7B7"},
    {"id": "physical", "name": "Physical", "color": "#C9E7B7"},
    {"id": "implementation", "name": "Implementation & Migration", "color": "#FFE0E0"},
    {"id": "composite", "name": "Composite", "color": "#E0E0E0"},
]

# (type name, layer, aspect, shape)
ELEMENT_TYPES = [
    ("BusinessActor", "business", "active", "actor"),
    ("BusinessRole", "business", "active", "role"),
    ("BusinessProcess", "business", "behavior", "process"),
    ("BusinessFunction", "business", "behavior", "function"),
    ("BusinessEvent", "business", "behavior", "event"),
    ("BusinessService", "business", "behavior", "service"),
    ("BusinessObject", "business", "passive", "object"),
    ("ApplicationComponent", "application", "active", "component"),
    ("ApplicationInterface", "application", "active", "interface"),
    ("ApplicationService", "application", "behavior", "service"),
    ("DataObject", "application", "passive", "object"),
    ("Node", "technology", "active", "node"),
    ("Device", "technology", "active", "device"),
    ("SystemSoftware", "technology", "active", "system-software"),
    ("TechnologyInterface", "technology", "active", "interface"),
    ("CommunicationNetwork", "technology", "active", "network"),
    ("TechnologyService", "technology", "behavior", "service"),
    ("Artifact", "technology", "passive", "artifact"),
    ("Grouping", "composite", "passive", "group"),
    ("Location", "composite", "passive", "location"),
]

EXTRA_PROPERTIES = {
    "ApplicationComponent": [
        {"name": "lifecycle", "type": "enum", "values": ["plan", "active", "retired"]},
        {"name": "owner", "type": "string"},
    ],
    "Node": [
        {"name": "environment", "type": "enum", "values": ["dev", "test", "prod"]},
    ],
}


def type_id(name: str) -> str:
    return f"{NOTATION}:{name}"


def _types(layer=None, aspect=None, shape=None) -> list[str]:
    return [
        type_id(name)
        for name, type_layer, type_aspect, type_shape in ELEMENT_TYPES
        if (layer is None or type_layer == layer)
        and (aspect is None or type_aspect == aspect)
        and (shape is None or type_shape == shape)
    ]


def _table(sources, targets) -> list[dict]:
    return [{"source": s, "target": t} for s, t in product(sources, targets)]


CORE_LAYERS = ("business", "application", "technology")
SERVICES = _types(shape="service")
INTERNAL_BEHAVIOR = [t for t in _types(aspect="behavior") if t not in SERVICES]


def _relationship_types() -> list[dict]:
    assignment = []
    realization = []
    for layer in CORE_LAYERS:
        actives = _types(layer=layer, aspect="active")
        assignment += _table(actives, _types(layer=layer, aspect="behavior"))
        realization += _table(
            [t for t in _types(layer=layer, aspect="behavior") if t not in SERVICES] + actives,
            _types(layer=layer, shape="service"),
        )
    # Cross-layer realization: data realizes business objects, artifacts realize both
    realization += _table([type_id("DataObject"), type_id("Artifact")], [type_id("BusinessObject")])
    realization += _table([type_id("Artifact")], [type_id("DataObject"), type_id("ApplicationComponent")])

    serving = _table(SERVICES, _types(aspect="behavior") + _types(aspect="active"))
    serving += _table(_types(shape="interface"), _types(aspect="active"))

    access = _table(
        _types(aspect="behavior") + _types(aspect="active"),
        [t for t in _types(aspect="passive") if t not in _types(layer="composite")],
    )

    dynamic = _table(INTERNAL_BEHAVIOR, INTERNAL_BEHAVIOR)

    return [
        {
            "id": type_id("Composition"), "name": "Composition",
            "lineStyle": "solid", "sourceArrow": "diamond-filled", "targetArrow": "none",
            "documentation": "Whole consists of the part; the part cannot exist on its own.",
            "validConnections": "same-type-or-same-layer-structural",
        },
        {
            "id": type_id("Aggregation"), "name": "Aggregation",
            "lineStyle": "solid", "sourceArrow": "diamond-hollow", "targetArrow": "none",
            "documentation": "Whole combines parts that may belong to other wholes.",
            "validConnections": "same-type-or-same-layer-structural",
        },
        {
            "id": type_id("Assignment"), "name": "Assignment",
            "lineStyle": "solid", "sourceArrow": "circle-filled", "targetArrow": "filled",
            "documentation": "Allocation of behavior to active structure.",
            "validConnections": assignment,
        },
        {
            "id": type_id("Realization"), "name": "Realization",
            "lineStyle": "dashed", "sourceArrow": "none", "targetArrow": "hollow-triangle",
            "documentation": "A more concrete element realizes a more abstract one.",
            "validConnections": realization,
        },
        {
            "id": type_id("Serving"), "name": "Serving",
            "lineStyle": "solid", "sourceArrow": "none", "targetArrow": "open",
            "documentation": "An element provides its functionality to another.",
            "validConnections": serving,
        },
        {
            "id": type_id("Access"), "name": "Access",
            "lineStyle": "dotted", "sourceArrow": "none", "targetArrow": "open",
            "documentation": "Behavior or active structure observes or acts on passive structure.",
            "validConnections": access,
            "properties": [
                {"name": "accessType", "type": "enum", "values": ["read", "write", "readwrite", "access"]},
            ],
        },
        {
            "id": type_id("Triggering"), "name": "Triggering",
            "lineStyle": "solid", "sourceArrow": "none", "targetArrow": "filled",
            "documentation": "Temporal or causal relationship between behavior.",
            "validConnections": dynamic,
        },
        {
            "id": type_id("Flow"), "name": "Flow",
            "lineStyle": "dashed", "sourceArrow": "none", "targetArrow": "filled",
            "documentation": "Transfer from one behavior element to another.",
            "validConnections": dynamic,
        },
        {
            "id": type_id("Specialization"), "name": "Specialization",
            "lineStyle": "solid", "sourceArrow": "none", "targetArrow": "hollow-triangle",
            "documentation": "An element is a particular kind of another element of the same type.",
            "validConnections": "same-type",
        },
        {
            "id": type_id("Association"), "name": "Association",
            "lineStyle": "solid", "sourceArrow": "none", "targetArrow": "none",
            "documentation": "Unspecified relationship between any two elements.",
            "validConnections": "any",
        },
    ]


def _viewpoints() -> list[dict]:
    return [
        {
            "id": type_id("Layered"), "name": "Layered",
            "allowedElements": "*", "allowedRelationships": "*",
            "description": "Overview of all layers.",
        },
        {
            "id": type_id("Organization"), "name": "Organization",
            "allowedElements": [type_id("BusinessActor"), type_id("BusinessRole"),
                                type_id("Location"), type_id("Grouping")],
            "allowedRelationships": [type_id("Composition"), type_id("Aggregation"), type_id("Assignment"),
                                     type_id("Specialization"), type_id("Association")],
            "description": "Structure of the enterprise in terms of actors and roles.",
        },
        {
            "id": type_id("BusinessProcessCooperation"), "name": "Business Process Cooperation",
            "allowedElements": _types(layer="business") + [type_id("ApplicationService")],
            "allowedRelationships": "*",
            "description": "Relationships of business processes with each other and their environment.",
        },
        {
            "id": type_id("ApplicationCooperation"), "name": "Application Cooperation",
            "allowedElements": _types(layer="application") + [type_id("Location"), type_id("Grouping")],
            "allowedRelationships": [type_id("Composition"), type_id("Aggregation"), type_id("Serving"),
                                     type_id("Flow"), type_id("Triggering"), type_id("Association")],
            "description": "Relationships of application components with each other.",
        },
        {
            "id": type_id("ApplicationUsage"), "name": "Application Usage",
            "allowedElements": _types(layer="business") + _types(layer="application"),
            "allowedRelationships": [type_id("Serving"), type_id("Access"), type_id("Realization"),
                                     type_id("Assignment"), type_id("Association")],
            "description": "How applications support business processes.",
        },
        {
            "id": type_id("Technology"), "name": "Technology",
            "allowedElements": _types(layer="technology") + [type_id("Location"), type_id("Grouping")],
            "allowedRelationships": "*",
            "description": "Software and hardware technology elements.",
        },
        {
            "id": type_id("TechnologyUsage"), "name": "Technology Usage",
            "allowedElements": _types(layer="application") + _types(layer="technology"),
            "allowedRelationships": [type_id("Serving"), type_id("Realization"), type_id("Access"), type_id("Association")],
            "description": "How applications are supported by technology.",
        },
    ]


def metamodel_document() -> dict:
    """The ArchiMate metamodel as a JSON-compatible document (a fresh copy on every call)."""
    return copy.deepcopy({
        "id": NOTATION,
        "name": "ArchiMate",
        "version": "3.2",
        "layers": LAYERS,
        "elementTypes": [
            {
                "id": type_id(name),
                "name": name,
                "layer": layer,
                "aspect": aspect,
                "shape": shape,
                "documentation": "",
                "properties": EXTRA_PROPERTIES.get(name, []),
            }
            for name, layer, aspect, shape in ELEMENT_TYPES
        ],
        "relationshipTypes": _relationship_types(),
        "viewpoints": _viewpoints(),
    })


def archimate_metamodel() -> Metamodel:
    """Parsed ArchiMate metamodel, ready for MetamodelRegistry.register."""
    return Metamodel.from_json_dict(metamodel_document())
