"""Built-in template scenes for quick starting.

Templates are stored as raw JSON dicts (some simplified, some canonical) and
go through the same convert -> validate path as user-supplied scenes when
loaded. Templates flagged ``basic_materials`` have every material forced to
the ``basic`` kind, which renders on any device.
"""

import copy
import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from models import Scene
from solvers.scene_converter import GroupClassifier, convert_to_standard_format, group_by_id_convention
from solvers.validation import validate_scene

logger = logging.getLogger("scene-studio.scene_templates")


@dataclass(frozen=True)
class TemplateScene:
    id: str
    name: str
    raw: Dict[str, Any]
    basic_materials: bool = False


# ---------------------------------------------------------------------------
# Component builders (canonical shape)
# ---------------------------------------------------------------------------

def _vec(x: float, y: float, z: float) -> Dict[str, float]:
    return {"x": x, "y": y, "z": z}


def _material(kind: str, color: str, **extra) -> Dict[str, Any]:
    return {"type": kind, "color": color, **extra}


def _box(comp_id: str, width: float, height: float, depth: float, position, material, cast_shadow: bool = True):
    return {
        "id": comp_id,
        "geometry": {"type": "box", "dimensions": {"width": width, "height": height, "depth": depth}},
        "position": _vec(*position),
        "material": material,
        "castShadow": cast_shadow,
        "receiveShadow": True,
    }


def _leg(comp_id: str, radius: float, height: float, x: float, z: float, material):
    return {
        "id": comp_id,
        "geometry": {
            "type": "cylinder",
            "dimensions": {"radiusTop": radius, "radiusBottom": radius, "height": height},
        },
        "position": _vec(x, height / 2, z),
        "material": material,
        "castShadow": True,
        "receiveShadow": True,
    }


def _model(model_id: str, name: str, model_type: str, subtype: str, position, components, groups=None, rotation=(0, 0, 0)):
    return {
        "id": model_id,
        "name": name,
        "type": model_type,
        "subtype": subtype,
        "position": _vec(*position),
        "rotation": _vec(*rotation),
        "components": components,
        "groups": groups or [],
    }


def _settings(background: str, ambient: float, light_position, light_intensity: float) -> Dict[str, Any]:
    return {
        "backgroundColor": background,
        "shadows": True,
        "ambientLight": {"color": "#ffffff", "intensity": ambient},
        "directionalLight": [{
            "color": "#ffffff",
            "intensity": light_intensity,
            "position": _vec(*light_position),
            "castShadow": True,
        }],
    }


# ---------------------------------------------------------------------------
# Room furniture shared by the two room templates
# ---------------------------------------------------------------------------

def _room_floor(kind: str, roughness: float):
    return _model("floor_plane_001", "Room Floor", "structure", "floor", (0, -0.025, 0), [
        _box("floor_surface", 8.0, 0.05, 8.0, (0, 0, 0), _material(kind, "#b0a08a", roughness=roughness), cast_shadow=False),
    ])


def _rug(kind: str, thickness: float, roughness: float):
    return _model("rug_001", "Area Rug", "decor", "rug", (0, 0.01, 1.0), [
        _box("rug_surface", 2.5, thickness, 1.8, (0, 0, 0), _material(kind, "#6d5e50", roughness=roughness), cast_shadow=False),
    ])


def _sofa(kind: str, roughness: float):
    fabric = _material(kind, "#3a4a6d", roughness=roughness)
    return _model("sofa_instance_001", "Modern Sofa", "furniture", "sofa", (0, 0, -1.5), [
        _box("sofa_base_inst1", 1.8, 0.15, 0.8, (0, 0.075, 0), fabric),
        _box("sofa_seat_inst1", 1.8, 0.15, 0.7, (0, 0.225, 0.05), fabric),
        _box("sofa_back_inst1", 1.8, 0.5, 0.15, (0, 0.5, -0.325), fabric),
        _box("sofa_armrest_left_inst1", 0.15, 0.3, 0.8, (-0.825, 0.35, 0), fabric),
        _box("sofa_armrest_right_inst1", 0.15, 0.3, 0.8, (0.825, 0.35, 0), fabric),
    ])


def _coffee_table(kind: str, top_roughness: float, leg_roughness: float):
    steel = _material(kind, "#333333", metalness=0.8, roughness=leg_roughness)
    legs = [
        _leg(f"table_leg_{corner}_inst1", 0.02, 0.4, x, z, steel)
        for corner, x, z in (("fl", -0.55, 0.25), ("fr", 0.55, 0.25), ("bl", -0.55, -0.25), ("br", 0.55, -0.25))
    ]
    return _model(
        "coffeetable_instance_001", "Coffee Table", "furniture", "table", (0, 0, 0.8),
        [_box("table_top_inst1", 1.2, 0.05, 0.6, (0, 0.4, 0), _material(kind, "#5d4037", roughness=top_roughness))],
        groups=[{"id": "legs_group_inst1", "name": "Legs", "components": legs}],
    )


def _side_chair(seat_material, leg_material):
    legs = [
        _leg(f"chair_leg_{n}_inst1", 0.025, 0.4, x, z, leg_material)
        for n, x, z in ((1, -0.225, 0.225), (2, 0.225, 0.225), (3, -0.225, -0.225), (4, 0.225, -0.225))
    ]
    return _model(
        "chair_instance_001", "Safe Chair", "furniture", "chair", (-1.5, 0, 0.8),
        [
            _box("chair_seat_inst1", 0.5, 0.05, 0.5, (0, 0.4, 0), seat_material),
            _box("chair_backrest_inst1", 0.5, 0.4, 0.05, (0, 0.625, -0.225), seat_material),
        ],
        groups=[{"id": "legs_group_ch_inst1", "name": "Legs", "components": legs}],
        rotation=(0, math.pi / 6, 0),
    )


def _enclosing_walls():
    plaster = _material("standard", "#dcdcdc", roughness=0.95)
    walls = [
        _model("wall_back_001", "Back Wall", "structure", "wall", (0, 1.25, -4.0), [
            _box("wall_back_surface", 8.0, 2.5, 0.1, (0, 0, 0), plaster, cast_shadow=False),
        ]),
        _model("wall_left_001", "Left Wall", "structure", "wall", (-4.0, 1.25, 0), [
            _box("wall_left_surface", 0.1, 2.5, 8.0, (0, 0, 0), plaster, cast_shadow=False),
        ]),
        _model("wall_right_001", "Right Wall", "structure", "wall", (4.0, 1.25, 0), [
            _box("wall_right_surface", 0.1, 2.5, 8.0, (0, 0, 0), plaster, cast_shadow=False),
        ]),
    ]
    walls.append(_model("wall_front_001", "Front Wall", "structure", "wall", (0, 1.25, 4.0), [
        _box("wall_front_left", 3.0, 2.5, 0.1, (-2.5, 0, 0), plaster, cast_shadow=False),
        _box("wall_front_right", 3.0, 2.5, 0.1, (2.5, 0, 0), plaster, cast_shadow=False),
        _box("door_frame", 2.0, 2.2, 0.1, (0, -0.15, 0), _material("standard", "#8b4513", roughness=0.7)),
        _box("door", 1.8, 2.1, 0.05, (0, -0.15, 0.025), _material("standard", "#a0522d", roughness=0.6)),
    ]))
    return walls


def _complete_room() -> Dict[str, Any]:
    return {
        "name": "Enclosed Living Room Scene",
        "units": "meters",
        "settings": _settings("#1a1a1a", 0.4, (-6, 8, 5), 0.9),
        "objects": [
            _room_floor("standard", 0.9),
            *_enclosing_walls(),
            _rug("standard", 0.015, 0.95),
            _sofa("standard", 0.85),
            _coffee_table("standard", 0.6, 0.3),
            _side_chair(
                _material("standard", "#a67c52", roughness=0.7),
                _material("standard", "#555555", metalness=0.7, roughness=0.4),
            ),
        ],
    }


def _living_room() -> Dict[str, Any]:
    return {
        "name": "Cozy Living Room",
        "units": "meters",
        "settings": _settings("#e0e0e0", 0.6, (-5, 8, 6), 0.8),
        "objects": [
            _room_floor("basic", 0.8),
            _rug("basic", 0.01, 0.9),
            _sofa("basic", 0.9),
            _coffee_table("basic", 0.7, 0.2),
            _side_chair(_material("basic", "#a67c52"), _material("basic", "#555555")),
        ],
    }


# ---------------------------------------------------------------------------
# Single-piece templates (simplified export shape)
# ---------------------------------------------------------------------------

def _simple_part(comp_id: str, primitive: str, dimensions: Dict[str, float], position, material):
    return {
        "id": comp_id,
        "primitive": primitive,
        "dimensions": dimensions,
        "position": _vec(*position),
        "material": material,
    }


def _simple_legs(prefix: str, radius: float, spots, material):
    dims = {"radiusTop": radius, "radiusBottom": radius, "height": 0.4}
    return [_simple_part(f"{prefix}_{name}", "cylinder", dims, (x, 0.2, z), material) for name, x, z in spots]


def _simple_scene(name: str, obj: Dict[str, Any], settings: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    scene = {"name": name, "units": "meters", "objects": [obj]}
    if settings is not None:
        scene["settings"] = settings
    return {"scene": scene}


def _simple_chair() -> Dict[str, Any]:
    wood = _material("basic", "#a67c52")
    spots = (("1", -0.225, 0.225), ("2", 0.225, 0.225), ("3", -0.225, -0.225), ("4", 0.225, -0.225))
    return _simple_scene("Simple Safe Chair", {
        "id": "chair_001",
        "type": "furniture",
        "subtype": "chair",
        "name": "Safe Chair",
        "components": [
            _simple_part("chair_seat", "box", {"width": 0.5, "height": 0.05, "depth": 0.5}, (0, 0.4, 0), wood),
            _simple_part("chair_backrest", "box", {"width": 0.5, "height": 0.4, "depth": 0.05}, (0, 0.625, -0.225), wood),
            *_simple_legs("chair_leg", 0.025, spots, _material("basic", "#555555")),
        ],
    }, settings=_settings("#f8f9fa", 0.5, (5, 5, 5), 1))


def _modern_sofa() -> Dict[str, Any]:
    fabric = _material("fabric", "#3a4a6d", roughness=0.9)
    parts = (
        ("sofa_base", (1.8, 0.15, 0.8), (0, 0.075, 0)),
        ("sofa_seat", (1.8, 0.15, 0.7), (0, 0.225, 0.05)),
        ("sofa_back", (1.8, 0.5, 0.15), (0, 0.5, -0.325)),
        ("sofa_armrest_left", (0.15, 0.3, 0.8), (-0.825, 0.35, 0)),
        ("sofa_armrest_right", (0.15, 0.3, 0.8), (0.825, 0.35, 0)),
    )
    return _simple_scene("Modern Sofa", {
        "id": "sofa_001",
        "type": "furniture",
        "subtype": "sofa",
        "name": "Modern Sofa",
        "components": [
            _simple_part(comp_id, "box", {"width": w, "height": h, "depth": d}, position, fabric)
            for comp_id, (w, h, d), position in parts
        ],
    })


def _coffee_table_piece() -> Dict[str, Any]:
    spots = (
        ("front_left", -0.55, 0.25), ("front_right", 0.55, 0.25),
        ("back_left", -0.55, -0.25), ("back_right", 0.55, -0.25),
    )
    return _simple_scene("Coffee Table", {
        "id": "table_001",
        "type": "furniture",
        "subtype": "table",
        "name": "Coffee Table",
        "components": [
            _simple_part(
                "table_top", "box", {"width": 1.2, "height": 0.05, "depth": 0.6}, (0, 0.4, 0),
                _material("wood", "#5d4037", roughness=0.7),
            ),
            *_simple_legs("table_leg", 0.02, spots, _material("metal", "#333333", metalness=0.8, roughness=0.2)),
        ],
    })


TEMPLATES: List[TemplateScene] = [
    TemplateScene("scene-full", "Complete Room", _complete_room(), basic_materials=True),
    TemplateScene("living-room", "Cozy Living Room", _living_room()),
    TemplateScene("chair-simple", "Simple Chair", _simple_chair(), basic_materials=True),
    TemplateScene("sofa-modern", "Modern Sofa", _modern_sofa(), basic_materials=True),
    TemplateScene("table-coffee", "Coffee Table", _coffee_table_piece(), basic_materials=True),
]


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def get_template(template_id: str) -> TemplateScene:
    for template in TEMPLATES:
        if template.id == template_id:
            return template
    raise KeyError(f"Template {template_id} not found")


def list_templates() -> List[Dict[str, Any]]:
    return [{"id": t.id, "name": t.name} for t in TEMPLATES]


def with_basic_materials(scene: Dict[str, Any]) -> Dict[str, Any]:
    """Copy of a canonical scene dict with every material switched to ``basic``."""
    scene = copy.deepcopy(scene)
    for model in scene.get("objects") or []:
        components = list(model.get("components") or [])
        for group in model.get("groups") or []:
            components.extend(group.get("components") or [])
        for comp in components:
            comp["material"] = {**comp.get("material", {}), "type": "basic"}
    return scene


def load_template(template_id: str, classify: GroupClassifier = group_by_id_convention) -> Scene:
    """Convert and validate a built-in template.

    Raises:
        KeyError: Unknown template id.
        SchemaValidationError: The template data does not validate.
    """
    template = get_template(template_id)
    canonical = convert_to_standard_format(copy.deepcopy(template.raw), classify=classify)
    if template.basic_materials:
        canonical = with_basic_materials(canonical)
    scene = validate_scene(canonical)
    logger.info("Loaded template %s (%d models)", template.id, len(scene.objects))
    return scene
