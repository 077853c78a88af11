"""Tests for the 2D floor-plan analysis render."""

import os
import sys

import matplotlib.pyplot as plt
import pytest
from matplotlib.figure import Figure
from PIL import Image

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from rendering.floor_plan_render import render_floor_plan_analysis
from solvers.floor_plan_validation import validate_floor_plan_analysis


def test_render_writes_png(tmp_path, floor_plan_with_openings):
    floor_plan_with_openings["objects"] = [
        {"id": "obj-1", "label": "bathtub", "boundingBox": {"x": 70, "y": 180, "width": 40, "height": 90}},
    ]
    out = tmp_path / "renders" / "plan.png"
    path = render_floor_plan_analysis(validate_floor_plan_analysis(floor_plan_with_openings), str(out))
    assert path == str(out)
    with Image.open(path) as img:
        assert img.format == "PNG"


def test_free_form_room_colour_falls_back_to_palette(tmp_path, minimal_floor_plan):
    minimal_floor_plan["rooms"][0]["color"] = "light blue-ish"
    path = render_floor_plan_analysis(validate_floor_plan_analysis(minimal_floor_plan), str(tmp_path / "plan.png"))
    assert os.path.exists(path)


def test_figure_is_closed_when_saving_fails(tmp_path, minimal_floor_plan, monkeypatch):
    def fail(*args, **kwargs):
        raise OSError("disk full")

    monkeypatch.setattr(Figure, "savefig", fail)
    with pytest.raises(OSError):
        render_floor_plan_analysis(validate_floor_plan_analysis(minimal_floor_plan), str(tmp_path / "plan.png"))
    assert plt.get_fignums() == []
