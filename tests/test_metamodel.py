from __future__ import annotations

import pytest
from pydantic import ValidationError

from eamodel import Metamodel, MetamodelRegistry


def test_register_accepts_document(registry: MetamodelRegistry) -> None:
    assert registry.has("n")
    assert "n" in registry
    assert registry.list_ids() == ["n"]
    assert [m.name for m in registry.list_metamodels()] == ["Widgets"]
    assert registry.get("n").version == "1.0"


def test_register_accepts_parsed_metamodel(metamodel_document: dict) -> None:
    registry = MetamodelRegistry()
    metamodel = Metamodel.from_json_dict(metamodel_document)
    assert registry.register(metamodel) is metamodel
    assert registry.get("n") is metamodel


def test_reregistering_replaces_definition(registry: MetamodelRegistry, metamodel_document: dict) -> None:
    registry.register({**metamodel_document, "version": "2.0"})
    assert len(registry) == 1
    assert registry.get("n").version == "2.0"


def test_get_unknown_returns_none(registry: MetamodelRegistry) -> None:
    assert registry.get("bpmn") is None
    assert not registry.has("bpmn")


def test_registries_are_independent(metamodel_document: dict) -> None:
    first = MetamodelRegistry()
    second = MetamodelRegistry()
    first.register(metamodel_document)
    assert first.has("n")
    assert not second.has("n")


def test_find_element_type_definition(registry: MetamodelRegistry) -> None:
    definition = registry.find_element_type_definition("n:Gadget")
    assert definition is not None
    assert definition.layer == "edge"
    assert definition.aspect == "passive"
    assert [p.name for p in definition.properties] == ["serial", "size"]
    assert registry.find_element_type_definition("n:Unknown") is None


def test_find_relationship_type_definition(registry: MetamodelRegistry) -> None:
    links = registry.find_relationship_type_definition("n:Links")
    assert links.has_connection_table
    assert links.connection_rule is None
    assert links.permits("n:Widget", "n:Widget")
    assert not links.permits("n:Widget", "n:Gadget")
    assert registry.find_relationship_type_definition("n:Widget") is None


def test_rule_string_connections(registry: MetamodelRegistry) -> None:
    relates = registry.find_relationship_type_definition("n:Relates")
    assert not relates.has_connection_table
    assert relates.connection_rule == "any element to any element"


def test_layer_and_color_for_type(registry: MetamodelRegistry) -> None:
    assert registry.layer_name_for_type("n:Widget") == "Core"
    assert registry.color_for_type("n:Widget") == "#123456"
    assert registry.layer_name_for_type("n:Gadget") == "Edge"
    assert registry.layer_for_type("n:Gadget").id == "edge"


@pytest.mark.parametrize("type_id", ["x:Thing", "n:Unknown", "Widget", ""])
def test_layer_lookup_for_unregistered_type_is_absent(registry: MetamodelRegistry, type_id: str) -> None:
    assert registry.layer_name_for_type(type_id) is None
    assert registry.color_for_type(type_id) is None


def test_layer_missing_from_layer_list_is_absent(metamodel_document: dict) -> None:
    metamodel_document["layers"] = [metamodel_document["layers"][0]]
    registry = MetamodelRegistry()
    registry.register(metamodel_document)
    assert registry.layer_name_for_type("n:Gadget") is None
    assert registry.layer_name_for_type("n:Widget") == "Core"


def test_element_types_for_layer(registry: MetamodelRegistry) -> None:
    assert [et.id for et in registry.element_types_for_layer("n", "core")] == ["n:Widget"]
    assert registry.element_types_for_layer("n", "missing") == []
    assert registry.element_types_for_layer("bpmn", "core") == []


def test_viewpoints(registry: MetamodelRegistry) -> None:
    assert registry.find_viewpoint("n:WidgetsOnly").name == "Widgets only"
    assert registry.viewpoint_allows("n:WidgetsOnly", "n:Widget")
    assert not registry.viewpoint_allows("n:WidgetsOnly", "n:Gadget")
    assert registry.viewpoint_allows("n:WidgetsOnly", "n:Links")
    assert not registry.viewpoint_allows("n:WidgetsOnly", "n:Relates")
    assert registry.viewpoint_allows("n:Everything", "n:Gadget")
    assert registry.viewpoint_allows("n:Everything", "n:Relates")
    assert not registry.viewpoint_allows("n:Nothing", "n:Widget")


def test_clear(registry: MetamodelRegistry) -> None:
    registry.clear()
    assert registry.list_ids() == []
    assert registry.layer_name_for_type("n:Widget") is None


def test_metamodel_is_read_only(metamodel: Metamodel) -> None:
    with pytest.raises(ValidationError):
        metamodel.name = "Changed"


def test_invalid_document_is_rejected(metamodel_document: dict) -> None:
    metamodel_document["elementTypes"][0]["id"] = "Widget"
    registry = MetamodelRegistry()
    with pytest.raises(ValidationError):
        registry.register(metamodel_document)
    assert registry.list_ids() == []


def test_document_round_trip(metamodel: Metamodel, metamodel_document: dict) -> None:
    data = metamodel.to_json_dict()
    assert data["elementTypes"][0]["id"] == "n:Widget"
    assert data["relationshipTypes"][0]["validConnections"] == [{"source": "n:Widget", "target": "n:Widget"}]
    assert data["relationshipTypes"][1]["validConnections"] == "any element to any element"
    assert Metamodel.from_json_dict(data) == metamodel
