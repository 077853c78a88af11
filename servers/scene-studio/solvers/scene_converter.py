"""Conversion between the simplified (legacy) scene JSON and the canonical shape.

Simplified shape::

    {"scene": {"name": ..., "units": ..., "objects": [
        {"id": ..., "components": [
            {"id": ..., "primitive": "box", "dimensions": {...},
             "position": ..., "material": {"type": ..., "color": ..., "texture": ...}}
        ]}
    ]}}

Canonical shape: a bare scene dict whose components carry a tagged
``geometry`` and whose models may hold ``groups``.

Export flattens groups into the component list, so a simplified round trip
keeps every component but not group membership. Re-importing regroups
components only as far as the grouping strategy can infer it from ids.
Objects inside the ``scene`` wrapper that already carry ``groups`` keep them.
"""

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from errors import ConversionError
from models import MATERIAL_FIELDS, PRIMITIVE_TYPES, Scene, scene_to_dict

logger = logging.getLogger("scene-studio.scene_converter")

GroupClassifier = Callable[[Mapping[str, Any]], Optional[str]]

DEFAULT_MATERIAL_TYPE = "standard"
DEFAULT_MATERIAL_COLOR = "#cccccc"

# Dimensions used when a simplified component names a primitive but gives none.
DEFAULT_DIMENSIONS = {
    "box": {"width": 1, "height": 1, "depth": 1},
    "cylinder": {"radiusTop": 0.5, "radiusBottom": 0.5, "height": 1},
    "sphere": {"radius": 0.5},
    "plane": {"width": 1, "height": 1},
}

# Substring of a component id -> auto-created group id, checked in order.
ID_GROUP_MARKERS = (
    ("_leg_", "legs"),
    ("_door_", "doors"),
    ("_drawer_", "drawers"),
)

# Transform-bearing keys copied through unchanged on models, groups and components.
TRANSFORM_KEYS = ("transform", "transformation", "position", "rotation", "scale")


# ---------------------------------------------------------------------------
# Grouping strategies
# ---------------------------------------------------------------------------

def group_by_id_convention(component: Mapping[str, Any]) -> Optional[str]:
    """Route ``*_leg_*`` / ``*_door_*`` / ``*_drawer_*`` ids into a group."""
    comp_id = component.get("id")
    if not isinstance(comp_id, str):
        return None
    for marker, group_id in ID_GROUP_MARKERS:
        if marker in comp_id:
            return group_id
    return None


def group_by_field_then_convention(component: Mapping[str, Any]) -> Optional[str]:
    """Honour an explicit ``group`` field, falling back to the id convention."""
    group = component.get("group")
    if isinstance(group, str) and group:
        return group
    return group_by_id_convention(component)


def no_grouping(component: Mapping[str, Any]) -> Optional[str]:
    return None


def _group_display_name(group_id: str) -> str:
    return group_id[:1].upper() + group_id[1:]


# ---------------------------------------------------------------------------
# simplified -> canonical
# ---------------------------------------------------------------------------

def _derive_geometry(comp: Mapping[str, Any]) -> Dict[str, Any]:
    geometry = comp.get("geometry")
    if isinstance(geometry, Mapping):
        return dict(geometry)
    primitive = comp.get("primitive")
    if primitive in PRIMITIVE_TYPES:
        dims = comp.get("dimensions")
        return {
            "type": primitive,
            "dimensions": dict(dims) if dims is not None else dict(DEFAULT_DIMENSIONS[primitive]),
        }
    if comp.get("path"):
        return {"path": comp["path"], "format": comp.get("format") or "gltf"}
    if primitive is not None:
        logger.debug("Unknown primitive %r on component %r, using unit box", primitive, comp.get("id"))
    return {"type": "box", "dimensions": dict(DEFAULT_DIMENSIONS["box"])}


def _derive_material(raw: Any) -> Dict[str, Any]:
    raw = raw if isinstance(raw, Mapping) else {}
    material = {
        "type": raw.get("type") or DEFAULT_MATERIAL_TYPE,
        "color": raw.get("color") or DEFAULT_MATERIAL_COLOR,
    }
    for wire, _ in MATERIAL_FIELDS:
        if raw.get(wire) is not None:
            material[wire] = raw[wire]
    if "textureMap" not in material and raw.get("texture") is not None:
        material["textureMap"] = raw["texture"]
    return material


def _convert_component(comp: Mapping[str, Any]) -> Dict[str, Any]:
    out: Dict[str, Any] = {"id": comp.get("id")}
    if comp.get("name") is not None:
        out["name"] = comp["name"]
    out["geometry"] = _derive_geometry(comp)
    for key in TRANSFORM_KEYS:
        if comp.get(key) is not None:
            out[key] = comp[key]
    out["material"] = _derive_material(comp.get("material"))
    out["castShadow"] = comp["castShadow"] if comp.get("castShadow") is not None else True
    out["receiveShadow"] = comp["receiveShadow"] if comp.get("receiveShadow") is not None else True
    if comp.get("visible") is not None:
        out["visible"] = comp["visible"]
    return out


def _new_group(group_id: str) -> Dict[str, Any]:
    return {"id": group_id, "name": _group_display_name(group_id), "components": []}


def _convert_groups(obj: Mapping[str, Any], groups: Dict[str, Dict[str, Any]]) -> None:
    """Carry over groups already present on the object (canonical exports)."""
    raw_groups = obj.get("groups")
    if not isinstance(raw_groups, list):
        return
    for group in raw_groups:
        if not isinstance(group, Mapping) or not isinstance(group.get("id"), str):
            logger.warning("Skipping malformed group in %r", obj.get("id"))
            continue
        entry = groups.setdefault(group["id"], _new_group(group["id"]))
        for key in ("name", *TRANSFORM_KEYS, "visible"):
            if group.get(key) is not None:
                entry[key] = group[key]
        for comp in group.get("components") or []:
            if isinstance(comp, Mapping):
                entry["components"].append(_convert_component(comp))
            else:
                logger.warning("Skipping non-object component in group %r", group["id"])


def _convert_object(obj: Mapping[str, Any], classify: GroupClassifier) -> Dict[str, Any]:
    components: List[Dict[str, Any]] = []
    groups: Dict[str, Dict[str, Any]] = {}  # insertion order = first-seen order
    _convert_groups(obj, groups)

    raw_components = obj.get("components")
    if isinstance(raw_components, list):
        for comp in raw_components:
            if not isinstance(comp, Mapping):
                logger.warning("Skipping non-object component in %r", obj.get("id"))
                continue
            converted = _convert_component(comp)
            group_id = classify(comp)
            if group_id:
                groups.setdefault(group_id, _new_group(group_id))["components"].append(converted)
            else:
                components.append(converted)

    model: Dict[str, Any] = {
        "id": obj.get("id"),
        "name": obj.get("name") or "Unnamed Object",
        "type": obj.get("type") or "furniture",
    }
    for key in ("subtype", "description", *TRANSFORM_KEYS, "tags", "metadata"):
        if obj.get(key) is not None:
            model[key] = obj[key]
    model["components"] = components
    model["groups"] = list(groups.values())
    if groups:
        logger.debug("Model %r auto-grouped into %s", model["id"], list(groups))
    return model


def convert_to_standard_format(
    raw: Any,
    classify: GroupClassifier = group_by_id_convention,
    lenient: bool = False,
) -> Dict[str, Any]:
    """Convert simplified scene JSON to the canonical scene dict.

    Input that already looks canonical (top-level ``objects`` and no
    ``scene`` key) is returned unchanged; no deep validation happens here.

    Args:
        raw: Decoded JSON.
        classify: Grouping strategy mapping a raw component dict to a group
            id, or ``None`` to keep it as a direct model component.
        lenient: Return an empty "Converted Scene" instead of raising when
            the input shape is not recognised.

    Raises:
        ConversionError: The input is neither shape and ``lenient`` is false.
    """
    if isinstance(raw, Mapping):
        if "scene" not in raw and isinstance(raw.get("objects"), list):
            return raw  # already canonical
        scene = raw.get("scene")
        if isinstance(scene, Mapping):
            objects = []
            raw_objects = scene.get("objects")
            if isinstance(raw_objects, list):
                for obj in raw_objects:
                    if isinstance(obj, Mapping):
                        objects.append(_convert_object(obj, classify))
                    else:
                        logger.warning("Skipping non-object scene entry: %r", obj)
            out: Dict[str, Any] = {}
            for key in ("id", "version"):
                if scene.get(key) is not None:
                    out[key] = scene[key]
            out["name"] = scene.get("name") or "Unnamed Scene"
            out["units"] = scene.get("units") or "meters"
            out["objects"] = objects
            if scene.get("settings") is not None:
                out["settings"] = scene["settings"]
            return out

    if lenient:
        logger.warning("Unrecognised scene format, falling back to an empty scene")
        return {"name": "Converted Scene", "objects": []}
    raise ConversionError(
        "Unrecognised scene format: expected a canonical scene with 'objects' "
        "or a simplified export with 'scene.objects'"
    )


# ---------------------------------------------------------------------------
# canonical -> simplified
# ---------------------------------------------------------------------------

def _pick_vector(entity: Mapping[str, Any], key: str) -> Any:
    """Direct field first, then the nested transform."""
    if entity.get(key) is not None:
        return entity[key]
    nested = entity.get("transform") or entity.get("transformation") or {}
    return nested.get(key)


def _component_to_simple(comp: Mapping[str, Any]) -> Dict[str, Any]:
    out: Dict[str, Any] = {"id": comp.get("id")}
    if comp.get("name") is not None:
        out["name"] = comp["name"]
    for key in ("position", "rotation", "scale"):
        value = _pick_vector(comp, key)
        if value is not None:
            out[key] = value
    geometry = comp.get("geometry") or {}
    if "type" in geometry:
        out["primitive"] = geometry["type"]
        out["dimensions"] = geometry.get("dimensions", {})
    else:
        out["path"] = geometry.get("path")
        out["format"] = geometry.get("format")
    out["material"] = comp.get("material")
    for key in ("castShadow", "receiveShadow", "visible"):
        if comp.get(key) is not None:
            out[key] = comp[key]
    return out


def convert_to_simplified_format(scene: Union[Scene, Mapping[str, Any]]) -> Dict[str, Any]:
    """Export a scene in the simplified ``{"scene": {...}}`` shape.

    Group components are appended after the direct components of their model
    and group membership is dropped.
    """
    data = scene_to_dict(scene) if isinstance(scene, Scene) else scene
    out_scene: Dict[str, Any] = {}
    for key in ("id", "version"):
        if data.get(key) is not None:
            out_scene[key] = data[key]
    out_scene["name"] = data.get("name")
    out_scene["units"] = data.get("units") or "meters"
    out_scene["objects"] = []

    for model in data.get("objects") or []:
        simple: Dict[str, Any] = {"id": model.get("id"), "name": model.get("name"), "type": model.get("type")}
        for key in ("subtype", "description"):
            if model.get(key) is not None:
                simple[key] = model[key]
        for key in ("position", "rotation", "scale"):
            value = _pick_vector(model, key)
            if value is not None:
                simple[key] = value
        for key in ("tags", "metadata"):
            if model.get(key):
                simple[key] = model[key]
        components = [_component_to_simple(c) for c in model.get("components") or []]
        for group in model.get("groups") or []:
            components.extend(_component_to_simple(c) for c in group.get("components") or [])
        simple["components"] = components
        out_scene["objects"].append(simple)

    if data.get("settings") is not None:
        out_scene["settings"] = data["settings"]
    return {"scene": out_scene}
