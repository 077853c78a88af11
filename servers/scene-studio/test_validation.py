"""Tests for scene/model/component/material schema validation."""

import os
import sys

import pytest

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from errors import SchemaValidationError
from models import MATERIAL_TYPES, PrimitiveGeometry
from solvers.validation import (
    check_material, check_model, check_scene, is_hex_color,
    validate_component, validate_material, validate_model, validate_scene,
)


def _component(comp_id="seat", **overrides):
    comp = {
        "id": comp_id,
        "geometry": {"type": "box", "dimensions": {"width": 0.5, "height": 0.05, "depth": 0.5}},
        "material": {"type": "wood", "color": "#a67c52"},
    }
    comp.update(overrides)
    return comp


def _model(**overrides):
    model = {"id": "chair_001", "name": "Chair", "type": "furniture", "components": [_component()]}
    model.update(overrides)
    return model


def _fields(exc_info):
    return [i.field for i in exc_info.value.issues]


# ---------------------------------------------------------------------------
# Hex colours
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("color", ["#fff", "#FFFFFF", "#a67c52"])
def test_valid_hex_colors(color):
    assert is_hex_color(color)


@pytest.mark.parametrize("color", ["#ff", "#fffffff", "fff000", "#ggg", "#fff\n", None])
def test_invalid_hex_colors(color):
    assert not is_hex_color(color)


def test_bad_color_is_reported_on_material_field():
    report = check_material({"type": "wood", "color": "brown"})
    assert report["valid"] is False
    assert report["issues"][0]["field"] == "color"


# ---------------------------------------------------------------------------
# Materials
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("kind", MATERIAL_TYPES)
def test_every_material_kind_validates(kind):
    assert validate_material({"type": kind, "color": "#ffffff"}).type == kind


def test_unknown_material_kind_names_type_field():
    with pytest.raises(SchemaValidationError) as exc_info:
        validate_material({"type": "unobtainium", "color": "#ffffff"})
    assert _fields(exc_info) == ["type"]


def test_unit_interval_fields_are_bounded():
    report = check_material({"type": "metal", "color": "#555", "metalness": 1.5, "roughness": -0.1})
    assert {i["field"] for i in report["issues"]} == {"metalness", "roughness"}


def test_texture_maps_must_be_urls():
    report = check_material({"type": "wood", "color": "#555", "textureMap": "not a url"})
    assert report["issues"] == [{"field": "textureMap", "message": "Invalid url"}]
    assert check_material({"type": "wood", "color": "#555", "textureMap": "https://cdn.example.com/oak.jpg"})["valid"]


def test_null_optional_field_is_rejected():
    report = check_material({"type": "wood", "color": "#555", "opacity": None})
    assert report["valid"] is False
    assert report["issues"][0]["field"] == "opacity"


def test_boolean_is_not_a_number():
    assert not check_material({"type": "wood", "color": "#555", "opacity": True})["valid"]


def test_integer_beyond_float_range_is_reported_not_raised():
    geometry = {"type": "box", "dimensions": {"width": 10 ** 400}}
    scene = {"name": "Huge", "objects": [_model(components=[_component(geometry=geometry)])]}
    report = check_scene(scene)
    assert report["valid"] is False
    assert report["issues"] == [{
        "field": "objects[0].components[0].geometry.dimensions.width",
        "message": "Number must be finite",
    }]


def test_non_finite_float_is_reported():
    report = check_material({"type": "wood", "color": "#555", "roughness": float("nan")})
    assert report["issues"] == [{"field": "roughness", "message": "Number must be finite"}]


# ---------------------------------------------------------------------------
# Components and geometry
# ---------------------------------------------------------------------------

def test_box_with_empty_dimensions_validates_as_unit_cube():
    comp = validate_component(_component(geometry={"type": "box", "dimensions": {}}))
    assert comp.geometry == PrimitiveGeometry("box", {})
    assert comp.geometry.resolved_dimensions() == {"width": 1, "height": 1, "depth": 1}


def test_dimensions_must_be_positive():
    with pytest.raises(SchemaValidationError) as exc_info:
        validate_component(_component(geometry={"type": "box", "dimensions": {"width": 0}}))
    assert _fields(exc_info) == ["geometry.dimensions.width"]


def test_segments_must_be_integer():
    with pytest.raises(SchemaValidationError) as exc_info:
        validate_component(_component(geometry={"type": "sphere", "dimensions": {"segments": 12.5}}))
    assert _fields(exc_info) == ["geometry.dimensions.segments"]


def test_custom_geometry_requires_known_format():
    ok = validate_component(_component(geometry={"path": "https://example.com/chair.glb", "format": "glb"}))
    assert ok.geometry.path == "https://example.com/chair.glb"
    with pytest.raises(SchemaValidationError) as exc_info:
        validate_component(_component(geometry={"path": "https://example.com/chair.stl", "format": "stl"}))
    assert _fields(exc_info) == ["geometry.format"]


def test_vector_accepts_both_encodings():
    comp = validate_component(_component(position=[0, 1, 2], rotation={"x": 0, "y": 1.57, "z": 0}))
    assert comp.position == (0.0, 1.0, 2.0)
    assert comp.rotation == (0.0, 1.57, 0.0)


def test_short_vector_is_rejected():
    with pytest.raises(SchemaValidationError) as exc_info:
        validate_component(_component(position=[0, 1]))
    assert _fields(exc_info) == ["position"]


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------

def test_valid_model_parses_with_groups():
    model = validate_model(_model(groups=[{"id": "legs", "name": "Legs", "components": [_component("leg_1")]}]))
    assert [c.id for c in model.all_components()] == ["seat", "leg_1"]


def test_model_needs_at_least_one_component():
    report = check_model(_model(components=[]))
    assert report["issues"] == [{"field": "components", "message": "Array must contain at least 1 element(s)"}]


def test_all_violations_are_reported_at_once():
    bad = _model(type="spaceship", components=[_component(material={"type": "wood", "color": "red"})])
    del bad["name"]
    with pytest.raises(SchemaValidationError) as exc_info:
        validate_model(bad)
    assert set(_fields(exc_info)) == {"name", "type", "components[0].material.color"}


def test_duplicate_component_ids_across_groups_are_flagged():
    report = check_model(_model(groups=[{"id": "legs", "components": [_component("seat")]}]))
    assert report["valid"] is False
    assert report["issues"][0]["field"] == "groups[0].components[0].id"


# ---------------------------------------------------------------------------
# Scenes
# ---------------------------------------------------------------------------

def test_bare_and_wrapped_scene_forms_are_accepted():
    bare = {"name": "Room", "objects": [_model()]}
    assert validate_scene(bare).name == "Room"
    assert validate_scene({"scene": bare}).objects[0].id == "chair_001"


def test_scene_errors_carry_nested_paths():
    with pytest.raises(SchemaValidationError) as exc_info:
        validate_scene({"name": "Room", "objects": [_model(components=[_component(castShadow="yes")])]})
    assert _fields(exc_info) == ["objects[0].components[0].castShadow"]


def test_scene_settings_are_checked():
    report = check_scene({
        "name": "Room",
        "objects": [],
        "settings": {"fog": {"type": "linear", "color": "#fff", "near": 0}, "ambientLight": {"intensity": 11}},
    })
    assert {i["field"] for i in report["issues"]} == {"settings.fog.near", "settings.ambientLight.intensity"}


def test_schema_error_message_summarises_issues():
    with pytest.raises(SchemaValidationError, match="Invalid scene: name: Required"):
        validate_scene({"objects": []})
