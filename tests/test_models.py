from __future__ import annotations

import uuid

import pytest

from eamodel import (
    Element,
    Relationship,
    SchemaKind,
    generate_id,
    new_view,
    validate,
    validate_element,
    validate_relationship,
    validate_view,
)


def valid_element(**overrides) -> dict:
    data = {
        "id": "elem-1",
        "type": "n:Widget",
        "name": "Widget one",
        "properties": {},
        "tags": [],
        "created": "2024-05-01T10:00:00Z",
        "modified": "2024-05-01T10:00:00Z",
    }
    data.update(overrides)
    return data


def valid_relationship(**overrides) -> dict:
    data = {
        "id": "rel-1",
        "type": "n:Links",
        "sourceId": "elem-1",
        "targetId": "elem-2",
        "properties": {},
    }
    data.update(overrides)
    return data


def fields(issues) -> set[str]:
    return {issue.field for issue in issues}


def test_generate_id_with_prefix() -> None:
    value = generate_id("elem")
    assert value.startswith("elem-")
    assert uuid.UUID(value[len("elem-"):]).version == 4


def test_generate_id_without_prefix() -> None:
    value = generate_id()
    assert uuid.UUID(value).version == 4


def test_generate_id_is_unique() -> None:
    ids = {generate_id("rel") for _ in range(1000)}
    assert len(ids) == 1000


def test_valid_element_has_no_issues() -> None:
    assert validate_element(valid_element()) == []
    assert validate(valid_element(), "element") == []


def test_element_reports_every_violation() -> None:
    candidate = valid_element(
        id="",
        type="Widget",
        name="",
        properties={"nested": [1, 2]},
        tags=[1],
        created="yesterday",
    )
    issues = validate_element(candidate)
    assert {"id", "type", "name", "properties", "tags.0", "created"} <= fields(issues)
    assert all(issue.reason for issue in issues)


def test_type_must_be_notation_and_capitalized_name() -> None:
    for bad in ("n:widget", "N:Widget", "n-Widget", "n:Widget2", ":Widget"):
        assert "type" in fields(validate_element(valid_element(type=bad))), bad


def test_properties_accept_scalars_without_coercion() -> None:
    props = {"label": "x", "count": 3, "ratio": 0.5, "enabled": True}
    element = Element.from_json_dict(valid_element(properties=props))
    assert element.properties == props
    assert element.properties["enabled"] is True
    assert type(element.properties["count"]) is int


def test_properties_reject_null_values() -> None:
    issues = validate_element(valid_element(properties={"owner": None}))
    assert fields(issues) == {"properties"}
    assert "owner" in issues[0].reason


def test_timestamps_must_be_iso_instants() -> None:
    assert "created" in fields(validate_element(valid_element(created="2024-05-01T10:00:00")))
    assert "created" in fields(validate_element(valid_element(created=1714557600)))


@pytest.mark.parametrize("epoch", ["1700000000", "1700000000.5", " 1700000000 "])
def test_epoch_strings_are_not_instants(epoch: str) -> None:
    issues = validate_element(valid_element(created=epoch, modified=epoch))
    assert {"created", "modified"} <= fields(issues)


def test_view_timestamps_reject_epoch_strings() -> None:
    data = new_view("Main").to_json_dict()
    data["created"] = "1700000000"
    assert "created" in fields(validate_view(data))


def test_modified_must_not_precede_created() -> None:
    issues = validate_element(valid_element(modified="2024-04-30T10:00:00Z"))
    assert len(issues) == 1
    assert "precedes" in issues[0].reason


def test_element_tags_behave_as_a_set() -> None:
    element = Element.from_json_dict(valid_element(tags=["core", "core", "api"]))
    assert element.tags == ["core", "api"]


def test_relationship_access_type_is_enumerated() -> None:
    assert validate_relationship(valid_relationship(accessType="readwrite")) == []
    issues = validate_relationship(valid_relationship(accessType="delete"))
    assert fields(issues) == {"accessType"}


def test_relationship_endpoints_must_be_non_empty() -> None:
    issues = validate_relationship(valid_relationship(sourceId="", targetId=""))
    assert fields(issues) == {"sourceId", "targetId"}


def test_relationship_json_uses_camel_case() -> None:
    rel = Relationship(id="rel-1", type="n:Links", source_id="a", target_id="b")
    data = rel.to_json_dict()
    assert data["sourceId"] == "a"
    assert data["targetId"] == "b"
    assert "accessType" not in data
    assert Relationship.from_json_dict(data) == rel


def test_element_json_round_trip() -> None:
    element = Element.from_json_dict(valid_element(documentation="Docs", tags=["a"]))
    data = element.to_json_dict()
    assert data["created"].startswith("2024-05-01T10:00:00")
    assert Element.from_json_dict(data) == element


def test_view_shape_validation() -> None:
    view = new_view("Main", viewpoint="n:Everything")
    data = view.to_json_dict()
    data["nodes"] = [
        {"id": "node-1", "elementId": "elem-1", "x": 0, "y": 0, "width": 0, "height": 40, "children": []},
    ]
    issues = validate_view(data)
    assert fields(issues) == {"nodes.0.width"}
    assert validate(data, SchemaKind.VIEW) == issues


def test_new_view_assigns_id_and_timestamps() -> None:
    view = new_view("Landscape")
    assert view.id.startswith("view-")
    assert view.created == view.modified
    assert view.nodes == [] and view.edges == [] and view.groups == []


def test_unknown_schema_kind_is_rejected() -> None:
    with pytest.raises(ValueError):
        validate(valid_element(), "diagram")
