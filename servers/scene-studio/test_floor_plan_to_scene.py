"""Tests for extruding a floor-plan analysis into a 3D structure scene."""

import math
import os
import sys

import pytest

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from models import scene_to_dict
from solvers.floor_plan_to_scene import clamp_wall_height, floor_plan_to_scene
from solvers.floor_plan_validation import validate_floor_plan_analysis
from solvers.validation import validate_scene


def _models_by_subtype(scene):
    return {m.subtype: m for m in scene.objects}


def test_minimal_plan_builds_floor_and_walls(minimal_floor_plan):
    scene = floor_plan_to_scene(validate_floor_plan_analysis(minimal_floor_plan))
    models = _models_by_subtype(scene)
    assert list(models) == ["floor", "wall"]
    assert all(m.type == "structure" for m in scene.objects)


def test_floor_plane_covers_room_bounds(minimal_floor_plan):
    scene = floor_plan_to_scene(validate_floor_plan_analysis(minimal_floor_plan))
    floor = _models_by_subtype(scene)["floor"].components[0]
    # 50 px/m default scale; room spans x 65..218 and y 175..320 of an 800x719 image
    assert floor.geometry.dimensions["width"] == pytest.approx(153 / 50)
    assert floor.geometry.dimensions["height"] == pytest.approx(145 / 50)
    assert floor.position[0] == pytest.approx((141.5 - 400) / 50)
    assert floor.position[2] == pytest.approx((247.5 - 359.5) / 50)
    assert floor.rotation == (-math.pi / 2, 0.0, 0.0)
    assert floor.name == "Bath"


def test_wall_box_dimensions_and_placement(minimal_floor_plan):
    scene = floor_plan_to_scene(validate_floor_plan_analysis(minimal_floor_plan), wall_height=3.0)
    wall = _models_by_subtype(scene)["wall"].components[0]
    dims = wall.geometry.dimensions
    assert dims["width"] == pytest.approx(670 / 50)
    assert dims["height"] == 3.0
    assert dims["depth"] == pytest.approx(8 / 50)
    assert wall.position[1] == pytest.approx(1.5)
    assert wall.rotation[1] == pytest.approx(0.0)


def test_vertical_wall_is_rotated_a_quarter_turn(minimal_floor_plan):
    minimal_floor_plan["walls"] = [{"id": "wall-v", "start": {"x": 100, "y": 100}, "end": {"x": 100, "y": 300}}]
    scene = floor_plan_to_scene(validate_floor_plan_analysis(minimal_floor_plan))
    wall = _models_by_subtype(scene)["wall"].components[0]
    assert abs(wall.rotation[1]) == pytest.approx(math.pi / 2)
    assert wall.geometry.dimensions["depth"] == pytest.approx(0.15)


def test_orphaned_openings_are_skipped(floor_plan_with_openings):
    scene = floor_plan_to_scene(validate_floor_plan_analysis(floor_plan_with_openings))
    models = _models_by_subtype(scene)
    assert [c.id for c in models["door"].components] == ["door_door-1"]
    assert [c.id for c in models["window"].components] == ["window_window-1"]


def test_door_and_window_heights(floor_plan_with_openings):
    scene = floor_plan_to_scene(validate_floor_plan_analysis(floor_plan_with_openings), wall_height=2.0)
    models = _models_by_subtype(scene)
    door = models["door"].components[0]
    window = models["window"].components[0]
    assert door.geometry.dimensions["height"] == pytest.approx(1.8)
    assert door.position[1] == pytest.approx(0.9)
    assert door.material.color == "#A5682A"
    assert window.geometry.dimensions["height"] == 1.2
    assert window.position[1] == pytest.approx(1.5)
    assert window.material.opacity == 0.7


@pytest.mark.parametrize("given, expected", [(0.2, 1.0), (2.5, 2.5), (9, 5.0)])
def test_wall_height_is_clamped(given, expected):
    assert clamp_wall_height(given) == expected


def test_empty_analysis_gives_empty_scene():
    analysis = validate_floor_plan_analysis(
        {"overallDimensions": {"width": 10, "height": 10}, "rooms": [], "walls": [], "doors": [], "windows": []}
    )
    scene = floor_plan_to_scene(analysis, name="Nothing")
    assert scene.objects == []
    assert scene.name == "Nothing"


def test_generated_scene_passes_schema_validation(floor_plan_with_openings):
    scene = floor_plan_to_scene(validate_floor_plan_analysis(floor_plan_with_openings))
    assert validate_scene(scene_to_dict(scene)) == scene


def test_repeated_analysis_ids_are_made_unique(minimal_floor_plan, caplog):
    room = minimal_floor_plan["rooms"][0]
    room["id"] = "r"
    second = dict(room, polygon=[{"x": 300, "y": 300}, {"x": 400, "y": 300}, {"x": 400, "y": 400}])
    third = dict(second, id="r_2")
    minimal_floor_plan["rooms"] += [second, third]
    minimal_floor_plan["walls"].append(dict(minimal_floor_plan["walls"][0]))

    scene = floor_plan_to_scene(validate_floor_plan_analysis(minimal_floor_plan))
    models = _models_by_subtype(scene)
    assert [c.id for c in models["floor"].components] == ["floor_r", "floor_r_2", "floor_r_2_2"]
    assert [c.id for c in models["wall"].components] == ["wall_wall-1", "wall_wall-1_2"]
    assert validate_scene(scene_to_dict(scene)) == scene
    assert "Duplicate component id floor_r renamed to floor_r_2" in caplog.text
