"""Schema validation for scenes, models, components and materials.

Every check walks the whole input and accumulates violations as
``ValidationIssue(field, message)`` pairs instead of stopping at the first
one. ``check_*`` functions return the report dict
``{"valid": bool, "issues": [...]}``; ``validate_*`` functions return typed
dataclasses or raise ``SchemaValidationError`` carrying every issue.
"""

import logging
import math
from typing import Any, Dict, List, Mapping
from urllib.parse import urlparse

from errors import SchemaValidationError, ValidationIssue
from models import (
    CUSTOM_FORMATS, FOG_TYPES, HEX_COLOR_RE, INTEGER_DIMENSIONS, MATERIAL_TYPES,
    MODEL_SUBTYPES, MODEL_TYPES, PRIMITIVE_DEFAULTS, PRIMITIVE_TYPES, UNITS,
    Component, Material, Model, Scene,
    dict_to_component, dict_to_material, dict_to_model, dict_to_scene,
)

logger = logging.getLogger("scene-studio.validation")

Issues = List[ValidationIssue]


# ---------------------------------------------------------------------------
# Leaf checks
# ---------------------------------------------------------------------------

def join_path(path: str, key: str) -> str:
    return f"{path}.{key}" if path else key


def type_name(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, Mapping):
        return "object"
    return type(value).__name__


def is_number(value: Any) -> bool:
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        # ints beyond float range
        return False


def check_number(
    issues: Issues,
    path: str,
    value: Any,
    minimum: float = None,
    maximum: float = None,
    positive: bool = False,
    integer: bool = False,
) -> None:
    """Numeric check with inclusive ``minimum``/``maximum`` bounds."""
    if not is_number(value):
        if type_name(value) == "number":
            issues.append(ValidationIssue(path, "Number must be finite"))
        else:
            issues.append(ValidationIssue(path, f"Expected number, received {type_name(value)}"))
        return
    if integer and not float(value).is_integer():
        issues.append(ValidationIssue(path, "Expected integer, received float"))
    if positive and value <= 0:
        issues.append(ValidationIssue(path, "Number must be greater than 0"))
    if minimum is not None and value < minimum:
        issues.append(ValidationIssue(path, f"Number must be greater than or equal to {minimum}"))
    if maximum is not None and value > maximum:
        issues.append(ValidationIssue(path, f"Number must be less than or equal to {maximum}"))


def check_string(issues: Issues, path: str, value: Any, non_empty: bool = False) -> None:
    if not isinstance(value, str):
        issues.append(ValidationIssue(path, f"Expected string, received {type_name(value)}"))
    elif non_empty and not value:
        issues.append(ValidationIssue(path, "String must contain at least 1 character(s)"))


def check_bool(issues: Issues, path: str, value: Any) -> None:
    if not isinstance(value, bool):
        issues.append(ValidationIssue(path, f"Expected boolean, received {type_name(value)}"))


def check_enum(issues: Issues, path: str, value: Any, allowed) -> None:
    if not isinstance(value, str) or value not in allowed:
        options = " | ".join(f"'{a}'" for a in allowed)
        issues.append(ValidationIssue(path, f"Invalid enum value. Expected {options}, received '{value}'"))


def is_hex_color(value: Any) -> bool:
    return isinstance(value, str) and HEX_COLOR_RE.fullmatch(value) is not None


def check_hex_color(issues: Issues, path: str, value: Any) -> None:
    if not is_hex_color(value):
        issues.append(ValidationIssue(path, "Color must be a valid hex color code (e.g., #FF0000)"))


def is_url(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    parsed = urlparse(value)
    return bool(parsed.scheme) and bool(parsed.netloc or parsed.path)


def check_url(issues: Issues, path: str, value: Any) -> None:
    if not is_url(value):
        issues.append(ValidationIssue(path, "Invalid url"))


def check_vector3(issues: Issues, path: str, value: Any) -> None:
    """Accept either an [x, y, z] array or an {x, y, z} object."""
    if isinstance(value, (list, tuple)):
        if len(value) != 3:
            issues.append(ValidationIssue(path, f"Expected array of 3 numbers, received {len(value)} items"))
            return
        for i, v in enumerate(value):
            check_number(issues, f"{path}[{i}]", v)
    elif isinstance(value, Mapping):
        for axis in ("x", "y", "z"):
            if axis not in value:
                issues.append(ValidationIssue(join_path(path, axis), "Required"))
            else:
                check_number(issues, join_path(path, axis), value[axis])
    else:
        issues.append(ValidationIssue(path, "Expected [x, y, z] array or {x, y, z} object"))


def require_object(issues: Issues, path: str, value: Any) -> bool:
    if not isinstance(value, Mapping):
        issues.append(ValidationIssue(path, f"Expected object, received {type_name(value)}"))
        return False
    return True


def require_key(issues: Issues, path: str, d: Mapping, key: str) -> bool:
    if key not in d:
        issues.append(ValidationIssue(join_path(path, key), "Required"))
        return False
    return True


# ---------------------------------------------------------------------------
# Structured checks
# ---------------------------------------------------------------------------

_UNIT_INTERVAL_FIELDS = (
    "opacity", "metalness", "roughness", "reflectivity",
    "refractionRatio", "clearcoat", "clearcoatRoughness",
)
_MAP_FIELDS = ("textureMap", "normalMap", "bumpMap", "envMap", "aoMap")


def _check_material(issues: Issues, path: str, d: Any) -> None:
    if not require_object(issues, path, d):
        return
    if require_key(issues, path, d, "type"):
        check_enum(issues, join_path(path, "type"), d["type"], MATERIAL_TYPES)
    if require_key(issues, path, d, "color"):
        check_hex_color(issues, join_path(path, "color"), d["color"])
    for key in _UNIT_INTERVAL_FIELDS:
        if key in d:
            check_number(issues, join_path(path, key), d[key], minimum=0, maximum=1)
    for key in _MAP_FIELDS:
        if key in d:
            check_url(issues, join_path(path, key), d[key])
    if "wireframe" in d:
        check_bool(issues, join_path(path, "wireframe"), d["wireframe"])
    if "emissive" in d:
        check_hex_color(issues, join_path(path, "emissive"), d["emissive"])
    for key in ("emissiveIntensity", "aoMapIntensity"):
        if key in d:
            check_number(issues, join_path(path, key), d[key], minimum=0)


def _check_geometry(issues: Issues, path: str, d: Any) -> None:
    if not require_object(issues, path, d):
        return
    if "type" in d:
        gtype = d["type"]
        if gtype not in PRIMITIVE_TYPES:
            check_enum(issues, join_path(path, "type"), gtype, PRIMITIVE_TYPES)
            return
        if not require_key(issues, path, d, "dimensions"):
            return
        dims_path = join_path(path, "dimensions")
        dims = d["dimensions"]
        if not require_object(issues, dims_path, dims):
            return
        for key in PRIMITIVE_DEFAULTS[gtype]:
            if key in dims:
                check_number(issues, join_path(dims_path, key), dims[key],
                             positive=True, integer=key in INTEGER_DIMENSIONS)
    elif "path" in d:
        check_url(issues, join_path(path, "path"), d["path"])
        if require_key(issues, path, d, "format"):
            check_enum(issues, join_path(path, "format"), d["format"], CUSTOM_FORMATS)
    else:
        issues.append(ValidationIssue(
            path, "Expected primitive {type, dimensions} or custom {path, format} geometry"))


def _check_transform_fields(issues: Issues, path: str, d: Mapping) -> None:
    for key in ("transform", "transformation"):
        if key not in d:
            continue
        t_path = join_path(path, key)
        t = d[key]
        if not require_object(issues, t_path, t):
            continue
        if require_key(issues, t_path, t, "position"):
            check_vector3(issues, join_path(t_path, "position"), t["position"])
        for vkey in ("rotation", "scale"):
            if vkey in t:
                check_vector3(issues, join_path(t_path, vkey), t[vkey])
    for key in ("position", "rotation", "scale"):
        if key in d:
            check_vector3(issues, join_path(path, key), d[key])


def _check_component(issues: Issues, path: str, d: Any) -> None:
    if not require_object(issues, path, d):
        return
    if require_key(issues, path, d, "id"):
        check_string(issues, join_path(path, "id"), d["id"], non_empty=True)
    if "name" in d:
        check_string(issues, join_path(path, "name"), d["name"])
    if require_key(issues, path, d, "geometry"):
        _check_geometry(issues, join_path(path, "geometry"), d["geometry"])
    if require_key(issues, path, d, "material"):
        _check_material(issues, join_path(path, "material"), d["material"])
    _check_transform_fields(issues, path, d)
    for key in ("castShadow", "receiveShadow", "visible"):
        if key in d:
            check_bool(issues, join_path(path, key), d[key])


def _check_component_list(issues: Issues, path: str, value: Any, non_empty: bool = False) -> None:
    if not isinstance(value, list):
        issues.append(ValidationIssue(path, f"Expected array, received {type_name(value)}"))
        return
    if non_empty and not value:
        issues.append(ValidationIssue(path, "Array must contain at least 1 element(s)"))
    for i, comp in enumerate(value):
        _check_component(issues, f"{path}[{i}]", comp)


def _check_group(issues: Issues, path: str, d: Any) -> None:
    if not require_object(issues, path, d):
        return
    if require_key(issues, path, d, "id"):
        check_string(issues, join_path(path, "id"), d["id"], non_empty=True)
    if "name" in d:
        check_string(issues, join_path(path, "name"), d["name"])
    if require_key(issues, path, d, "components"):
        _check_component_list(issues, join_path(path, "components"), d["components"])
    _check_transform_fields(issues, path, d)
    if "visible" in d:
        check_bool(issues, join_path(path, "visible"), d["visible"])


def _check_unique_component_ids(issues: Issues, path: str, d: Mapping) -> None:
    seen: Dict[str, str] = {}
    locations = [("components", d.get("components"))]
    groups = d.get("groups")
    if isinstance(groups, list):
        for gi, g in enumerate(groups):
            if isinstance(g, Mapping):
                locations.append((f"groups[{gi}].components", g.get("components")))
    for loc, comps in locations:
        if not isinstance(comps, list):
            continue
        for i, comp in enumerate(comps):
            if not isinstance(comp, Mapping) or not isinstance(comp.get("id"), str) or not comp["id"]:
                continue
            here = join_path(path, f"{loc}[{i}].id")
            if comp["id"] in seen:
                issues.append(ValidationIssue(
                    here, f"Duplicate component id '{comp['id']}' (first used at {seen[comp['id']]})"))
            else:
                seen[comp["id"]] = here


def _check_model(issues: Issues, path: str, d: Any) -> None:
    if not require_object(issues, path, d):
        return
    if require_key(issues, path, d, "id"):
        check_string(issues, join_path(path, "id"), d["id"], non_empty=True)
    if require_key(issues, path, d, "name"):
        check_string(issues, join_path(path, "name"), d["name"], non_empty=True)
    if require_key(issues, path, d, "type"):
        check_enum(issues, join_path(path, "type"), d["type"], MODEL_TYPES)
    if "subtype" in d:
        check_enum(issues, join_path(path, "subtype"), d["subtype"], MODEL_SUBTYPES)
    if "description" in d:
        check_string(issues, join_path(path, "description"), d["description"])
    _check_transform_fields(issues, path, d)
    if require_key(issues, path, d, "components"):
        _check_component_list(issues, join_path(path, "components"), d["components"], non_empty=True)
    if "groups" in d:
        groups = d["groups"]
        if not isinstance(groups, list):
            issues.append(ValidationIssue(join_path(path, "groups"), f"Expected array, received {type_name(groups)}"))
        else:
            for i, g in enumerate(groups):
                _check_group(issues, join_path(path, f"groups[{i}]"), g)
    if "tags" in d:
        tags = d["tags"]
        if not isinstance(tags, list):
            issues.append(ValidationIssue(join_path(path, "tags"), f"Expected array, received {type_name(tags)}"))
        else:
            for i, tag in enumerate(tags):
                check_string(issues, join_path(path, f"tags[{i}]"), tag)
    if "metadata" in d:
        require_object(issues, join_path(path, "metadata"), d["metadata"])
    _check_unique_component_ids(issues, path, d)


def _check_light_common(issues: Issues, path: str, d: Mapping) -> None:
    if "color" in d:
        check_hex_color(issues, join_path(path, "color"), d["color"])
    if "intensity" in d:
        check_number(issues, join_path(path, "intensity"), d["intensity"], minimum=0, maximum=10)


def _check_settings(issues: Issues, path: str, d: Any) -> None:
    if not require_object(issues, path, d):
        return
    if "backgroundColor" in d:
        check_hex_color(issues, join_path(path, "backgroundColor"), d["backgroundColor"])
    if "environmentMap" in d:
        check_url(issues, join_path(path, "environmentMap"), d["environmentMap"])
    if "shadows" in d:
        check_bool(issues, join_path(path, "shadows"), d["shadows"])
    if "ambientLight" in d:
        a_path = join_path(path, "ambientLight")
        if require_object(issues, a_path, d["ambientLight"]):
            _check_light_common(issues, a_path, d["ambientLight"])
    if "directionalLight" in d:
        lights = d["directionalLight"]
        l_path = join_path(path, "directionalLight")
        if not isinstance(lights, list):
            issues.append(ValidationIssue(l_path, f"Expected array, received {type_name(lights)}"))
        else:
            for i, light in enumerate(lights):
                item = f"{l_path}[{i}]"
                if not require_object(issues, item, light):
                    continue
                _check_light_common(issues, item, light)
                if "position" in light:
                    check_vector3(issues, join_path(item, "position"), light["position"])
                if "castShadow" in light:
                    check_bool(issues, join_path(item, "castShadow"), light["castShadow"])
    if "fog" in d:
        f_path = join_path(path, "fog")
        fog = d["fog"]
        if require_object(issues, f_path, fog):
            if require_key(issues, f_path, fog, "type"):
                check_enum(issues, join_path(f_path, "type"), fog["type"], FOG_TYPES)
            if require_key(issues, f_path, fog, "color"):
                check_hex_color(issues, join_path(f_path, "color"), fog["color"])
            for key in ("near", "far", "density"):
                if key in fog:
                    check_number(issues, join_path(f_path, key), fog[key], positive=True)


def _check_scene(issues: Issues, path: str, d: Any) -> None:
    if not require_object(issues, path, d):
        return
    for key in ("id", "version"):
        if key in d:
            check_string(issues, join_path(path, key), d[key])
    if require_key(issues, path, d, "name"):
        check_string(issues, join_path(path, "name"), d["name"], non_empty=True)
    if "units" in d:
        check_enum(issues, join_path(path, "units"), d["units"], UNITS)
    if require_key(issues, path, d, "objects"):
        objects = d["objects"]
        o_path = join_path(path, "objects")
        if not isinstance(objects, list):
            issues.append(ValidationIssue(o_path, f"Expected array, received {type_name(objects)}"))
        else:
            for i, model in enumerate(objects):
                _check_model(issues, f"{o_path}[{i}]", model)
    if "settings" in d:
        _check_settings(issues, join_path(path, "settings"), d["settings"])


def issue_report(issues: Issues) -> Dict[str, Any]:
    return {"valid": not issues, "issues": [i.to_dict() for i in issues]}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def check_material(data: Any) -> Dict[str, Any]:
    issues: Issues = []
    _check_material(issues, "", data)
    return issue_report(issues)


def check_component(data: Any) -> Dict[str, Any]:
    issues: Issues = []
    _check_component(issues, "", data)
    return issue_report(issues)


def check_model(data: Any) -> Dict[str, Any]:
    issues: Issues = []
    _check_model(issues, "", data)
    return issue_report(issues)


def _scene_issues(data: Any) -> Issues:
    issues: Issues = []
    _check_scene(issues, "", data)
    return issues


def _wrapped_scene_issues(data: Any) -> Issues:
    issues: Issues = []
    if require_object(issues, "", data) and require_key(issues, "", data, "scene"):
        _check_scene(issues, "scene", data["scene"])
    return issues


def check_scene(data: Any) -> Dict[str, Any]:
    """Report for a bare or ``{"scene": ...}``-wrapped scene (see ``validate_scene``)."""
    if isinstance(data, Mapping) and "scene" in data and not _wrapped_scene_issues(data):
        return issue_report([])
    return issue_report(_scene_issues(data))


def validate_material(data: Any) -> Material:
    issues: Issues = []
    _check_material(issues, "", data)
    if issues:
        raise SchemaValidationError(issues, "material")
    return dict_to_material(data)


def validate_component(data: Any) -> Component:
    issues: Issues = []
    _check_component(issues, "", data)
    if issues:
        raise SchemaValidationError(issues, "component")
    return dict_to_component(data)


def validate_model(data: Any) -> Model:
    """Strictly parse a Model, reporting every violated field on failure."""
    issues: Issues = []
    _check_model(issues, "", data)
    if issues:
        raise SchemaValidationError(issues, "model")
    return dict_to_model(data)


def validate_scene(data: Any) -> Scene:
    """Parse a scene given either bare or wrapped as ``{"scene": {...}}``.

    The wrapped form is tried first. When both forms fail, the errors of the
    direct parse are raised.
    """
    if isinstance(data, Mapping) and "scene" in data:
        if not _wrapped_scene_issues(data):
            return dict_to_scene(data["scene"])
        logger.debug("Wrapped scene parse failed; retrying as a bare scene")
    issues = _scene_issues(data)
    if issues:
        raise SchemaValidationError(issues, "scene")
    return dict_to_scene(data)
