"""Standalone binary glTF (.glb) scene exporter.

Builds one trimesh mesh per primitive component, places it with the
component -> group -> model transform chain and writes everything into a
single GLB viewable in any glTF viewer. Custom-geometry components only
reference external files and are not loaded.
"""

import os
import sys
import logging
from typing import Dict, List, Optional, Tuple

import numpy as np
import trimesh
import trimesh.transformations

logger = logging.getLogger(__name__)

# Add parent dir so we can import models
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
from models import (
    Component, PrimitiveGeometry, Scene, Transform, effective_transform, resolve_material,
)

# ---------------------------------------------------------------------------
# Primitive mesh builders
# ---------------------------------------------------------------------------


def create_box_mesh(dims: dict) -> trimesh.Trimesh:
    return trimesh.creation.box(extents=[dims["width"], dims["height"], dims["depth"]])


def create_cylinder_mesh(dims: dict) -> trimesh.Trimesh:
    """Y-up cylinder (or frustum/cone) with independent top and bottom radii."""
    half = dims["height"] / 2
    profile = np.array([
        [0.0, -half],
        [dims["radiusBottom"], -half],
        [dims["radiusTop"], half],
        [0.0, half],
    ])
    mesh = trimesh.creation.revolve(profile, sections=int(dims["segments"]))
    # revolve() builds around +Z; turn the axis to +Y
    mesh.apply_transform(trimesh.transformations.rotation_matrix(-np.pi / 2, [1, 0, 0]))
    return mesh


def create_sphere_mesh(dims: dict) -> trimesh.Trimesh:
    segments = int(dims["segments"])
    return trimesh.creation.uv_sphere(radius=dims["radius"], count=[segments, segments])


def create_plane_mesh(dims: dict) -> trimesh.Trimesh:
    """Two-triangle plane in the local XY plane, facing +Z."""
    w, h = dims["width"] / 2, dims["height"] / 2
    vertices = np.array([[-w, -h, 0.0], [w, -h, 0.0], [w, h, 0.0], [-w, h, 0.0]])
    faces = np.array([[0, 1, 2], [0, 2, 3]])
    return trimesh.Trimesh(vertices=vertices, faces=faces, process=False)


PRIMITIVE_BUILDERS = {
    "box": create_box_mesh,
    "cylinder": create_cylinder_mesh,
    "sphere": create_sphere_mesh,
    "plane": create_plane_mesh,
}


# ---------------------------------------------------------------------------
# Transforms and colours
# ---------------------------------------------------------------------------

def transform_matrix(t: Transform) -> np.ndarray:
    """4x4 matrix applying scale, then Euler XYZ rotation (radians), then translation."""
    t = t.resolved()
    scale = np.diag([t.scale[0], t.scale[1], t.scale[2], 1.0])
    rotation = trimesh.transformations.euler_matrix(t.rotation[0], t.rotation[1], t.rotation[2], "rxyz")
    translation = trimesh.transformations.translation_matrix(t.position)
    return translation @ rotation @ scale


def hex_to_rgba(color: str, opacity: float = 1.0) -> List[int]:
    h = color.lstrip("#")
    if len(h) == 3:
        h = "".join(ch * 2 for ch in h)
    return [int(h[0:2], 16), int(h[2:4], 16), int(h[4:6], 16), int(round(opacity * 255))]


def component_mesh(component: Component) -> Optional[trimesh.Trimesh]:
    """Local-space coloured mesh for a primitive component; ``None`` for custom geometry."""
    if not isinstance(component.geometry, PrimitiveGeometry):
        return None
    mesh = PRIMITIVE_BUILDERS[component.geometry.type](component.geometry.resolved_dimensions())
    props = resolve_material(component.material)
    mesh.visual.face_colors = hex_to_rgba(props["color"], props["opacity"])
    mesh.apply_transform(transform_matrix(effective_transform(component)))
    return mesh


# ---------------------------------------------------------------------------
# Scene assembly
# ---------------------------------------------------------------------------

def build_scene_meshes(scene: Scene) -> Tuple[Dict[str, trimesh.Trimesh], List[str]]:
    """World-space meshes keyed by ``<model id>/<component id>``, plus skipped keys.

    Invisible components (or components of an invisible group) and custom
    geometry are skipped.
    """
    meshes: Dict[str, trimesh.Trimesh] = {}
    skipped: List[str] = []

    for model in scene.objects:
        model_matrix = transform_matrix(effective_transform(model))
        placements = [(model_matrix, True, c) for c in model.components]
        for group in model.groups:
            group_matrix = model_matrix @ transform_matrix(effective_transform(group))
            placements.extend((group_matrix, group.visible, c) for c in group.components)

        for parent_matrix, parent_visible, comp in placements:
            key = f"{model.id}/{comp.id}"
            if not (parent_visible and comp.visible):
                skipped.append(key)
                continue
            mesh = component_mesh(comp)
            if mesh is None:
                logger.debug("Skipping custom geometry %s (%s)", key, comp.geometry.path)
                skipped.append(key)
                continue
            mesh.apply_transform(parent_matrix)
            meshes[key] = mesh

    return meshes, skipped


def export_scene_glb(scene: Scene, output_path: str) -> dict:
    """Write the scene's primitive components to a binary glTF file.

    Returns dict with ``glb_path``, ``mesh_count``, ``meshes`` and ``skipped``.
    """
    os.makedirs(os.path.dirname(os.path.abspath(output_path)), exist_ok=True)
    meshes, skipped = build_scene_meshes(scene)

    tm_scene = trimesh.Scene()
    for key, mesh in meshes.items():
        tm_scene.add_geometry(mesh, node_name=key, geom_name=key)
    tm_scene.export(output_path, file_type="glb")

    if skipped:
        logger.warning("GLB export of %r skipped %d component(s): %s", scene.name, len(skipped), skipped)
    logger.info("Exported %d meshes to %s", len(meshes), output_path)
    return {
        "glb_path": output_path,
        "mesh_count": len(meshes),
        "meshes": list(meshes.keys()),
        "skipped": skipped,
    }
