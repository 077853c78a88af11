"""Data models for furniture scenes: geometry, materials, components, groups, models."""

import re
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

MATERIAL_TYPES = (
    "standard", "basic", "phong", "lambert", "metal", "wood", "glass",
    "laminate", "fabric", "plastic", "ceramic", "leather", "custom",
)
MODEL_TYPES = ("furniture", "structure", "decor", "fixture", "appliance", "custom")
MODEL_SUBTYPES = (
    "chair", "table", "sofa", "bed", "cabinet", "bookshelf", "wall", "floor",
    "ceiling", "door", "window", "light", "plant", "art", "rug", "curtain",
    "kitchen", "bathroom", "custom",
)
PRIMITIVE_TYPES = ("box", "cylinder", "sphere", "plane")
CUSTOM_FORMATS = ("gltf", "glb", "obj", "fbx", "json")
UNITS = ("meters", "centimeters", "inches", "feet")
FOG_TYPES = ("linear", "exponential")

HEX_COLOR_RE = re.compile(r"^#([0-9A-Fa-f]{6}|[0-9A-Fa-f]{3})$")

# Allowed dimension keys and their defaults, per primitive type.
PRIMITIVE_DEFAULTS: Dict[str, Dict[str, float]] = {
    "box": {"width": 1, "height": 1, "depth": 1},
    "cylinder": {"radiusTop": 0.5, "radiusBottom": 0.5, "radius": 0.5, "height": 1, "segments": 32},
    "sphere": {"radius": 0.5, "segments": 32},
    "plane": {"width": 1, "height": 1},
}
INTEGER_DIMENSIONS = ("segments",)

Vector3 = Tuple[float, float, float]
Vector3Like = Union[Sequence[float], Mapping[str, float]]

ORIGIN: Vector3 = (0.0, 0.0, 0.0)
UNIT_SCALE: Vector3 = (1.0, 1.0, 1.0)


def normalize_vector3(vec: Vector3Like) -> Vector3:
    """Collapse the [x, y, z] and {x, y, z} encodings to one canonical tuple."""
    if isinstance(vec, Mapping):
        return (float(vec["x"]), float(vec["y"]), float(vec["z"]))
    x, y, z = vec
    return (float(x), float(y), float(z))


def vector3_to_dict(vec: Vector3) -> Dict[str, float]:
    return {"x": vec[0], "y": vec[1], "z": vec[2]}


def _opt_vec(d: Mapping[str, Any], key: str) -> Optional[Vector3]:
    v = d.get(key)
    return normalize_vector3(v) if v is not None else None


# ---------------------------------------------------------------------------
# Transform
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Transform:
    """Position/rotation/scale. Rotation is Euler XYZ in radians."""
    position: Vector3
    rotation: Optional[Vector3] = None
    scale: Optional[Vector3] = None

    def resolved(self) -> "Transform":
        return Transform(
            position=self.position,
            rotation=self.rotation if self.rotation is not None else ORIGIN,
            scale=self.scale if self.scale is not None else UNIT_SCALE,
        )


IDENTITY = Transform(position=ORIGIN, rotation=ORIGIN, scale=UNIT_SCALE)


def effective_transform(entity) -> Transform:
    """Return the fully-populated transform of a Component, Group or Model.

    A nested ``transform`` wins over the legacy sibling
    ``position``/``rotation``/``scale`` fields; with neither, identity applies.
    """
    if entity.transform is not None:
        return entity.transform.resolved()
    return Transform(
        position=entity.position if entity.position is not None else ORIGIN,
        rotation=entity.rotation if entity.rotation is not None else ORIGIN,
        scale=entity.scale if entity.scale is not None else UNIT_SCALE,
    )


# ---------------------------------------------------------------------------
# Geometry
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PrimitiveGeometry:
    """Parametric shape. ``dimensions`` holds only the keys that were supplied."""
    type: str
    dimensions: Dict[str, float] = field(default_factory=dict)

    def resolved_dimensions(self) -> Dict[str, float]:
        """Dimensions with per-type defaults filled in.

        For cylinders an explicit ``radiusTop``/``radiusBottom`` wins over the
        ``radius`` shorthand, which in turn wins over the 0.5 default.
        """
        dims = dict(PRIMITIVE_DEFAULTS[self.type])
        dims.update(self.dimensions)
        if self.type == "cylinder":
            radius = self.dimensions.get("radius", dims["radius"])
            dims["radiusTop"] = self.dimensions.get("radiusTop", radius)
            dims["radiusBottom"] = self.dimensions.get("radiusBottom", radius)
            dims.pop("radius")
        return dims


@dataclass(frozen=True)
class CustomGeometry:
    """Externally loaded mesh, passed through by reference only."""
    path: str
    format: str = "gltf"


Geometry = Union[PrimitiveGeometry, CustomGeometry]


def dict_to_geometry(d: Mapping[str, Any]) -> Geometry:
    if "type" in d:
        return PrimitiveGeometry(type=d["type"], dimensions=dict(d.get("dimensions") or {}))
    return CustomGeometry(path=d["path"], format=d.get("format", "gltf"))


def geometry_to_dict(geometry: Geometry) -> dict:
    if isinstance(geometry, PrimitiveGeometry):
        return {"type": geometry.type, "dimensions": dict(geometry.dimensions)}
    return {"path": geometry.path, "format": geometry.format}


# ---------------------------------------------------------------------------
# Material
# ---------------------------------------------------------------------------

# (wire name, attribute name) for every optional material field
MATERIAL_FIELDS = (
    ("opacity", "opacity"),
    ("metalness", "metalness"),
    ("roughness", "roughness"),
    ("wireframe", "wireframe"),
    ("textureMap", "texture_map"),
    ("normalMap", "normal_map"),
    ("bumpMap", "bump_map"),
    ("envMap", "env_map"),
    ("aoMap", "ao_map"),
    ("aoMapIntensity", "ao_map_intensity"),
    ("reflectivity", "reflectivity"),
    ("refractionRatio", "refraction_ratio"),
    ("emissive", "emissive"),
    ("emissiveIntensity", "emissive_intensity"),
    ("clearcoat", "clearcoat"),
    ("clearcoatRoughness", "clearcoat_roughness"),
)


@dataclass(frozen=True)
class Material:
    type: str
    color: str
    opacity: Optional[float] = None
    metalness: Optional[float] = None
    roughness: Optional[float] = None
    wireframe: Optional[bool] = None
    texture_map: Optional[str] = None
    normal_map: Optional[str] = None
    bump_map: Optional[str] = None
    env_map: Optional[str] = None
    ao_map: Optional[str] = None
    ao_map_intensity: Optional[float] = None
    reflectivity: Optional[float] = None
    refraction_ratio: Optional[float] = None
    emissive: Optional[str] = None
    emissive_intensity: Optional[float] = None
    clearcoat: Optional[float] = None
    clearcoat_roughness: Optional[float] = None


# Kinds rendered with flat/non-PBR shading get no metalness/roughness at all.
NON_PBR_MATERIALS = ("basic", "phong", "lambert")

# (metalness, roughness) used when the material does not give its own.
MATERIAL_PRESETS: Dict[str, Tuple[float, float]] = {
    "metal": (0.9, 0.1),
    "wood": (0.0, 0.8),
    "glass": (0.0, 0.1),
    "laminate": (0.1, 0.7),
    "fabric": (0.0, 0.9),
    "plastic": (0.1, 0.5),
    "ceramic": (0.2, 0.2),
    "leather": (0.0, 0.6),
}
DEFAULT_PRESET = (0.5, 0.5)


def _clamp01(v: float) -> float:
    return max(0.0, min(1.0, v))


def resolve_material(material: Material) -> Dict[str, Any]:
    """Compute effective render parameters for a material.

    Type-derived defaults are applied first and explicit fields always win.
    Glass is forced transparent with opacity 0.5 unless an opacity is given.
    """
    props: Dict[str, Any] = {
        "color": material.color,
        "wireframe": bool(material.wireframe),
        "transparent": False,
        "opacity": 1.0,
    }
    if material.opacity is not None and material.opacity < 1:
        props["transparent"] = True
        props["opacity"] = max(0.01, min(1.0, material.opacity))

    if material.type not in NON_PBR_MATERIALS:
        metalness, roughness = MATERIAL_PRESETS.get(material.type, DEFAULT_PRESET)
        if material.type == "glass":
            props["transparent"] = True
            props["opacity"] = material.opacity if material.opacity is not None else 0.5
        if material.metalness is not None:
            metalness = _clamp01(material.metalness)
        if material.roughness is not None:
            roughness = _clamp01(material.roughness)
        props["metalness"] = metalness
        props["roughness"] = roughness
        if material.clearcoat is not None:
            props["clearcoat"] = _clamp01(material.clearcoat)
        if material.clearcoat_roughness is not None:
            props["clearcoatRoughness"] = _clamp01(material.clearcoat_roughness)

    for wire, attr in MATERIAL_FIELDS:
        value = getattr(material, attr)
        if wire.endswith("Map") and value is not None:
            props[wire] = value
    if material.emissive is not None:
        props["emissive"] = material.emissive
        props["emissiveIntensity"] = (
            material.emissive_intensity if material.emissive_intensity is not None else 1.0
        )
    return props


def dict_to_material(d: Mapping[str, Any]) -> Material:
    kwargs = {attr: d.get(wire) for wire, attr in MATERIAL_FIELDS}
    return Material(type=d["type"], color=d["color"], **kwargs)


def material_to_dict(m: Material) -> dict:
    out = {"type": m.type, "color": m.color}
    for wire, attr in MATERIAL_FIELDS:
        value = getattr(m, attr)
        if value is not None:
            out[wire] = value
    return out


# ---------------------------------------------------------------------------
# Component / Group / Model
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Component:
    """Atomic renderable unit: one geometry with one material."""
    id: str
    geometry: Geometry
    material: Material
    name: Optional[str] = None
    transform: Optional[Transform] = None
    position: Optional[Vector3] = None
    rotation: Optional[Vector3] = None
    scale: Optional[Vector3] = None
    cast_shadow: bool = True
    receive_shadow: bool = True
    visible: bool = True


@dataclass(frozen=True)
class Group:
    """Named sub-assembly of components sharing a transform (e.g. legs)."""
    id: str
    components: List[Component] = field(default_factory=list)
    name: Optional[str] = None
    transform: Optional[Transform] = None
    position: Optional[Vector3] = None
    rotation: Optional[Vector3] = None
    scale: Optional[Vector3] = None
    visible: bool = True


@dataclass(frozen=True)
class Model:
    id: str
    name: str
    type: str
    components: List[Component]
    subtype: Optional[str] = None
    description: Optional[str] = None
    transform: Optional[Transform] = None
    position: Optional[Vector3] = None
    rotation: Optional[Vector3] = None
    scale: Optional[Vector3] = None
    groups: List[Group] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    def all_components(self) -> List[Component]:
        """Direct components followed by each group's components, in order."""
        out = list(self.components)
        for g in self.groups:
            out.extend(g.components)
        return out


# ---------------------------------------------------------------------------
# Scene
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AmbientLight:
    color: Optional[str] = None
    intensity: Optional[float] = None


@dataclass(frozen=True)
class DirectionalLight:
    color: Optional[str] = None
    intensity: Optional[float] = None
    position: Optional[Vector3] = None
    cast_shadow: Optional[bool] = None


@dataclass(frozen=True)
class Fog:
    type: str
    color: str
    near: Optional[float] = None
    far: Optional[float] = None
    density: Optional[float] = None


@dataclass(frozen=True)
class SceneSettings:
    background_color: Optional[str] = None
    environment_map: Optional[str] = None
    shadows: Optional[bool] = None
    ambient_light: Optional[AmbientLight] = None
    directional_light: Optional[List[DirectionalLight]] = None
    fog: Optional[Fog] = None


@dataclass(frozen=True)
class Scene:
    name: str
    objects: List[Model] = field(default_factory=list)
    id: Optional[str] = None
    version: Optional[str] = None
    units: Optional[str] = None
    settings: Optional[SceneSettings] = None


# ---------------------------------------------------------------------------
# Copy-and-replace editing
# ---------------------------------------------------------------------------

def find_component(model: Model, component_id: str) -> Optional[Component]:
    """Look a component up in the direct components first, then in each group."""
    for comp in model.components:
        if comp.id == component_id:
            return comp
    for group in model.groups:
        for comp in group.components:
            if comp.id == component_id:
                return comp
    return None


def replace_component(model: Model, component: Component) -> Model:
    """Return a new Model with the component of the same id swapped in.

    Raises KeyError when no component with that id exists.
    """
    for i, comp in enumerate(model.components):
        if comp.id == component.id:
            components = list(model.components)
            components[i] = component
            return replace(model, components=components)
    for gi, group in enumerate(model.groups):
        for i, comp in enumerate(group.components):
            if comp.id == component.id:
                group_components = list(group.components)
                group_components[i] = component
                groups = list(model.groups)
                groups[gi] = replace(group, components=group_components)
                return replace(model, groups=groups)
    raise KeyError(component.id)


def replace_model(scene: Scene, model: Model) -> Scene:
    """Return a new Scene with the model of the same id swapped in."""
    for i, m in enumerate(scene.objects):
        if m.id == model.id:
            objects = list(scene.objects)
            objects[i] = model
            return replace(scene, objects=objects)
    raise KeyError(model.id)


# ---------------------------------------------------------------------------
# dict <-> dataclass (input is assumed to be schema-valid)
# ---------------------------------------------------------------------------

def _nested_transform(d: Mapping[str, Any]) -> Optional[Transform]:
    t = d.get("transform", d.get("transformation"))
    if t is None:
        return None
    return Transform(
        position=normalize_vector3(t["position"]),
        rotation=_opt_vec(t, "rotation"),
        scale=_opt_vec(t, "scale"),
    )


def _transform_fields(d: Mapping[str, Any]) -> Dict[str, Any]:
    return {
        "transform": _nested_transform(d),
        "position": _opt_vec(d, "position"),
        "rotation": _opt_vec(d, "rotation"),
        "scale": _opt_vec(d, "scale"),
    }


def _transform_fields_to_dict(entity, out: dict) -> None:
    if entity.transform is not None:
        t = {"position": list(entity.transform.position)}
        if entity.transform.rotation is not None:
            t["rotation"] = list(entity.transform.rotation)
        if entity.transform.scale is not None:
            t["scale"] = list(entity.transform.scale)
        out["transform"] = t
    for key in ("position", "rotation", "scale"):
        value = getattr(entity, key)
        if value is not None:
            out[key] = list(value)


def dict_to_component(d: Mapping[str, Any]) -> Component:
    return Component(
        id=d["id"],
        name=d.get("name"),
        geometry=dict_to_geometry(d["geometry"]),
        material=dict_to_material(d["material"]),
        cast_shadow=d.get("castShadow", True),
        receive_shadow=d.get("receiveShadow", True),
        visible=d.get("visible", True),
        **_transform_fields(d),
    )


def component_to_dict(c: Component) -> dict:
    out: Dict[str, Any] = {"id": c.id}
    if c.name is not None:
        out["name"] = c.name
    out["geometry"] = geometry_to_dict(c.geometry)
    _transform_fields_to_dict(c, out)
    out["material"] = material_to_dict(c.material)
    out["castShadow"] = c.cast_shadow
    out["receiveShadow"] = c.receive_shadow
    out["visible"] = c.visible
    return out


def dict_to_group(d: Mapping[str, Any]) -> Group:
    return Group(
        id=d["id"],
        name=d.get("name"),
        components=[dict_to_component(c) for c in d.get("components", [])],
        visible=d.get("visible", True),
        **_transform_fields(d),
    )


def group_to_dict(g: Group) -> dict:
    out: Dict[str, Any] = {"id": g.id}
    if g.name is not None:
        out["name"] = g.name
    out["components"] = [component_to_dict(c) for c in g.components]
    _transform_fields_to_dict(g, out)
    out["visible"] = g.visible
    return out


def dict_to_model(d: Mapping[str, Any]) -> Model:
    return Model(
        id=d["id"],
        name=d["name"],
        type=d["type"],
        subtype=d.get("subtype"),
        description=d.get("description"),
        components=[dict_to_component(c) for c in d.get("components", [])],
        groups=[dict_to_group(g) for g in d.get("groups") or []],
        tags=list(d.get("tags") or []),
        metadata=dict(d.get("metadata") or {}),
        **_transform_fields(d),
    )


def model_to_dict(m: Model) -> dict:
    out: Dict[str, Any] = {"id": m.id, "name": m.name, "type": m.type}
    if m.subtype is not None:
        out["subtype"] = m.subtype
    if m.description is not None:
        out["description"] = m.description
    _transform_fields_to_dict(m, out)
    out["components"] = [component_to_dict(c) for c in m.components]
    if m.groups:
        out["groups"] = [group_to_dict(g) for g in m.groups]
    if m.tags:
        out["tags"] = list(m.tags)
    if m.metadata:
        out["metadata"] = dict(m.metadata)
    return out


def dict_to_settings(d: Mapping[str, Any]) -> SceneSettings:
    ambient = d.get("ambientLight")
    fog = d.get("fog")
    lights = d.get("directionalLight")
    return SceneSettings(
        background_color=d.get("backgroundColor"),
        environment_map=d.get("environmentMap"),
        shadows=d.get("shadows"),
        ambient_light=AmbientLight(ambient.get("color"), ambient.get("intensity")) if ambient is not None else None,
        directional_light=[
            DirectionalLight(
                color=l.get("color"),
                intensity=l.get("intensity"),
                position=_opt_vec(l, "position"),
                cast_shadow=l.get("castShadow"),
            )
            for l in lights
        ] if lights is not None else None,
        fog=Fog(
            type=fog["type"], color=fog["color"],
            near=fog.get("near"), far=fog.get("far"), density=fog.get("density"),
        ) if fog is not None else None,
    )


def _drop_none(d: dict) -> dict:
    return {k: v for k, v in d.items() if v is not None}


def settings_to_dict(s: SceneSettings) -> dict:
    out = _drop_none({
        "backgroundColor": s.background_color,
        "environmentMap": s.environment_map,
        "shadows": s.shadows,
    })
    if s.ambient_light is not None:
        out["ambientLight"] = _drop_none({"color": s.ambient_light.color, "intensity": s.ambient_light.intensity})
    if s.directional_light is not None:
        out["directionalLight"] = [
            _drop_none({
                "color": l.color,
                "intensity": l.intensity,
                "position": list(l.position) if l.position is not None else None,
                "castShadow": l.cast_shadow,
            })
            for l in s.directional_light
        ]
    if s.fog is not None:
        out["fog"] = _drop_none({
            "type": s.fog.type, "color": s.fog.color,
            "near": s.fog.near, "far": s.fog.far, "density": s.fog.density,
        })
    return out


def dict_to_scene(d: Mapping[str, Any]) -> Scene:
    settings = d.get("settings")
    return Scene(
        id=d.get("id"),
        name=d["name"],
        version=d.get("version"),
        units=d.get("units"),
        objects=[dict_to_model(m) for m in d.get("objects", [])],
        settings=dict_to_settings(settings) if settings is not None else None,
    )


def scene_to_dict(scene: Scene) -> dict:
    out = _drop_none({"id": scene.id, "name": scene.name, "version": scene.version, "units": scene.units})
    out["objects"] = [model_to_dict(m) for m in scene.objects]
    if scene.settings is not None:
        out["settings"] = settings_to_dict(scene.settings)
    return out
