"""Shared pytest fixtures: a simplified chair export and a minimal floor plan."""

import copy
import os
import sys

import pytest

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))


def _metal_leg(comp_id, x, z):
    return {
        "id": comp_id,
        "primitive": "cylinder",
        "dimensions": {"radiusTop": 0.025, "radiusBottom": 0.025, "height": 0.4},
        "position": {"x": x, "y": 0.2, "z": z},
        "material": {"type": "metal", "color": "#555", "metalness": 0.9, "roughness": 0.2},
    }


SIMPLE_CHAIR = {
    "scene": {
        "name": "Simple Chair",
        "units": "meters",
        "objects": [
            {
                "id": "chair_001",
                "type": "furniture",
                "subtype": "chair",
                "name": "Modern Chair",
                "position": {"x": 1, "y": 0, "z": 1},
                "rotation": {"x": 0, "y": 0, "z": 0},
                "scale": {"x": 1, "y": 1, "z": 1},
                "components": [
                    {
                        "id": "chair_seat",
                        "primitive": "box",
                        "dimensions": {"width": 0.5, "height": 0.05, "depth": 0.5},
                        "position": {"x": 0, "y": 0.4, "z": 0},
                        "material": {
                            "type": "laminate", "color": "#a67c52", "texture": None,
                            "metalness": 0.1, "roughness": 0.8,
                        },
                    },
                    {
                        "id": "chair_backrest",
                        "primitive": "box",
                        "dimensions": {"width": 0.5, "height": 0.4, "depth": 0.05},
                        "position": {"x": 0, "y": 0.625, "z": -0.225},
                        "material": {"type": "laminate", "color": "#a67c52", "texture": None},
                    },
                    _metal_leg("chair_leg_front_left", -0.225, 0.225),
                    _metal_leg("chair_leg_front_right", 0.225, 0.225),
                    _metal_leg("chair_leg_back_left", -0.225, -0.225),
                    _metal_leg("chair_leg_back_right", 0.225, -0.225),
                ],
            }
        ],
    }
}

MINIMAL_FLOOR_PLAN = {
    "overallDimensions": {"width": 800, "height": 719},
    "rooms": [
        {
            "id": "room-1",
            "name": "Bath",
            "polygon": [
                {"x": 65, "y": 175}, {"x": 218, "y": 175},
                {"x": 218, "y": 320}, {"x": 65, "y": 320},
            ],
            "area": 22185,
            "center": {"x": 141, "y": 247},
        }
    ],
    "walls": [{"id": "wall-1", "start": {"x": 65, "y": 55}, "end": {"x": 735, "y": 55}, "thickness": 8}],
    "doors": [],
    "windows": [],
}


@pytest.fixture
def simple_chair():
    return copy.deepcopy(SIMPLE_CHAIR)


@pytest.fixture
def minimal_floor_plan():
    return copy.deepcopy(MINIMAL_FLOOR_PLAN)


@pytest.fixture
def floor_plan_with_openings(minimal_floor_plan):
    data = minimal_floor_plan
    data["scale"] = 50
    data["doors"] = [
        {"id": "door-1", "wallId": "wall-1", "position": {"x": 400, "y": 55}, "width": 45, "swingDirection": "inward"},
        {"id": "door-2", "wallId": "wall-999", "position": {"x": 100, "y": 55}, "width": 45},
    ]
    data["windows"] = [
        {"id": "window-1", "wallId": "wall-1", "position": {"x": 600, "y": 55}, "width": 60},
    ]
    return data
