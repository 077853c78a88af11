"""Tests for simplified <-> canonical scene conversion and auto-grouping."""

import os
import sys

import pytest

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from errors import ConversionError
from models import scene_to_dict
from solvers.scene_converter import (
    convert_to_simplified_format, convert_to_standard_format,
    group_by_field_then_convention, group_by_id_convention, no_grouping,
)
from solvers.validation import validate_scene


def _canonical_scene():
    return {
        "name": "Desk Corner",
        "units": "meters",
        "objects": [
            {
                "id": "desk_01",
                "name": "Desk",
                "type": "furniture",
                "subtype": "table",
                "position": [1, 0, 2],
                "components": [
                    {
                        "id": "desk_top",
                        "geometry": {"type": "box", "dimensions": {"width": 1.2, "height": 0.04, "depth": 0.6}},
                        "position": [0, 0.74, 0],
                        "material": {"type": "wood", "color": "#8b5a2b", "roughness": 0.7},
                        "castShadow": True,
                        "receiveShadow": True,
                    },
                    {
                        "id": "desk_lamp_shade",
                        "geometry": {"type": "cylinder", "dimensions": {"radiusTop": 0.05, "radiusBottom": 0.1, "height": 0.12}},
                        "position": [0.4, 1.1, 0],
                        "material": {"type": "fabric", "color": "#ffffee", "emissive": "#ffffaa"},
                        "castShadow": False,
                        "receiveShadow": True,
                    },
                ],
            }
        ],
    }


# ---------------------------------------------------------------------------
# simplified -> canonical
# ---------------------------------------------------------------------------

def test_simplified_chair_is_grouped_by_id_convention(simple_chair):
    canonical = convert_to_standard_format(simple_chair)
    model = canonical["objects"][0]
    assert [c["id"] for c in model["components"]] == ["chair_seat", "chair_backrest"]
    assert [g["id"] for g in model["groups"]] == ["legs"]
    assert model["groups"][0]["name"] == "Legs"
    assert len(model["groups"][0]["components"]) == 4
    assert validate_scene(canonical).objects[0].subtype == "chair"


def test_primitive_fields_become_tagged_geometry(simple_chair):
    seat = convert_to_standard_format(simple_chair)["objects"][0]["components"][0]
    assert seat["geometry"] == {"type": "box", "dimensions": {"width": 0.5, "height": 0.05, "depth": 0.5}}
    assert seat["castShadow"] is True
    assert seat["receiveShadow"] is True


def test_null_texture_is_dropped_and_material_fields_pass_through(simple_chair):
    seat = convert_to_standard_format(simple_chair)["objects"][0]["components"][0]
    assert seat["material"] == {"type": "laminate", "color": "#a67c52", "metalness": 0.1, "roughness": 0.8}


def test_legacy_texture_becomes_texture_map():
    raw = {"scene": {"name": "T", "objects": [{"id": "o", "components": [
        {"id": "c", "primitive": "box", "material": {"type": "wood", "color": "#fff", "texture": "https://x.io/t.png"}},
    ]}]}}
    comp = convert_to_standard_format(raw)["objects"][0]["components"][0]
    assert comp["material"]["textureMap"] == "https://x.io/t.png"


def test_missing_fields_get_defaults():
    raw = {"scene": {"objects": [{"id": "o", "components": [{"id": "c"}]}]}}
    scene = convert_to_standard_format(raw)
    model = scene["objects"][0]
    assert scene["name"] == "Unnamed Scene"
    assert scene["units"] == "meters"
    assert model["name"] == "Unnamed Object"
    assert model["type"] == "furniture"
    comp = model["components"][0]
    assert comp["geometry"] == {"type": "box", "dimensions": {"width": 1, "height": 1, "depth": 1}}
    assert comp["material"] == {"type": "standard", "color": "#cccccc"}


def test_canonical_input_passes_through_unchanged():
    scene = _canonical_scene()
    assert convert_to_standard_format(scene) is scene


def test_unrecognised_input_raises():
    with pytest.raises(ConversionError):
        convert_to_standard_format({"foo": "bar"})
    with pytest.raises(ConversionError):
        convert_to_standard_format([1, 2, 3])


def test_lenient_mode_returns_empty_scene():
    assert convert_to_standard_format({"foo": "bar"}, lenient=True) == {"name": "Converted Scene", "objects": []}


# ---------------------------------------------------------------------------
# Grouping strategies
# ---------------------------------------------------------------------------

def test_id_convention_routes_known_markers():
    assert group_by_id_convention({"id": "chair_leg_front_left"}) == "legs"
    assert group_by_id_convention({"id": "cabinet_door_left"}) == "doors"
    assert group_by_id_convention({"id": "dresser_drawer_top"}) == "drawers"
    assert group_by_id_convention({"id": "chair_seat"}) is None
    assert group_by_id_convention({"id": "leg_a"}) is None


def test_explicit_group_field_wins():
    assert group_by_field_then_convention({"id": "chair_leg_1_", "group": "frame"}) == "frame"
    assert group_by_field_then_convention({"id": "chair_leg_front"}) == "legs"


def test_no_grouping_keeps_everything_direct(simple_chair):
    model = convert_to_standard_format(simple_chair, classify=no_grouping)["objects"][0]
    assert len(model["components"]) == 6
    assert model["groups"] == []


# ---------------------------------------------------------------------------
# canonical -> simplified and round trips
# ---------------------------------------------------------------------------

def test_export_flattens_groups_after_direct_components(simple_chair):
    scene = validate_scene(convert_to_standard_format(simple_chair))
    exported = convert_to_simplified_format(scene)["scene"]
    ids = [c["id"] for c in exported["objects"][0]["components"]]
    assert ids == [
        "chair_seat", "chair_backrest",
        "chair_leg_front_left", "chair_leg_front_right", "chair_leg_back_left", "chair_leg_back_right",
    ]
    assert exported["objects"][0]["components"][2]["primitive"] == "cylinder"


def test_export_prefers_nested_transform_when_no_direct_field():
    scene = _canonical_scene()
    comp = scene["objects"][0]["components"][0]
    del comp["position"]
    comp["transform"] = {"position": [0, 0.8, 0]}
    exported = convert_to_simplified_format(scene)["scene"]
    assert exported["objects"][0]["components"][0]["position"] == [0, 0.8, 0]


def test_round_trip_without_groups_is_lossless():
    original = validate_scene(_canonical_scene())
    simplified = convert_to_simplified_format(original)
    assert validate_scene(convert_to_standard_format(simplified)) == original


def test_regrouping_after_export_is_stable(simple_chair):
    first = validate_scene(convert_to_standard_format(simple_chair))
    second = validate_scene(convert_to_standard_format(convert_to_simplified_format(first)))
    assert second == first
    assert [g.id for g in second.objects[0].groups] == ["legs"]


def test_wrapped_canonical_scene_keeps_groups(simple_chair):
    scene = validate_scene(convert_to_standard_format(simple_chair))
    wrapped = {"scene": scene_to_dict(scene)}
    reloaded = validate_scene(convert_to_standard_format(wrapped))
    assert reloaded == scene
    assert len(reloaded.objects[0].groups[0].components) == 4


def test_wrapped_input_keeps_nested_transforms():
    wrapped = {"scene": {"name": "Nested", "objects": [{
        "id": "shelf", "name": "Shelf", "type": "furniture",
        "transformation": {"position": [2, 0, 0]},
        "components": [{
            "id": "board", "primitive": "box",
            "transform": {"position": [0, 1, 0], "rotation": [0, 0.5, 0]},
        }],
        "groups": [{"id": "brackets", "transform": {"position": [0, 0.5, 0]}, "components": [
            {"id": "bracket_a", "primitive": "box"},
        ]}],
    }]}}
    model = validate_scene(convert_to_standard_format(wrapped)).objects[0]
    assert model.transform.position == (2.0, 0.0, 0.0)
    assert model.components[0].transform.rotation == (0.0, 0.5, 0.0)
    assert model.groups[0].name == "Brackets"
    assert model.groups[0].transform.position == (0.0, 0.5, 0.0)
    assert [c.id for c in model.groups[0].components] == ["bracket_a"]
