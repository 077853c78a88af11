"""Build a canonical furniture Scene from a 2D floor-plan analysis.

Pixel coordinates are centred on the image and divided by the plan scale:
image x maps to world x, image y maps to world z, and world y is up.
Each structural category becomes one ``structure`` Model (floor, wall, door,
window) holding one primitive component per element.
"""

import logging
import math
from dataclasses import replace
from typing import List, Optional, Tuple

from floor_plan import FloorPlanAnalysis, Point, WallSegment, find_wall, room_area, room_center, room_polygon
from models import Component, Material, Model, PrimitiveGeometry, Scene, SceneSettings, AmbientLight, DirectionalLight

logger = logging.getLogger("scene-studio.floor_plan_to_scene")

PIXELS_PER_METER = 50.0
DEFAULT_WALL_THICKNESS_M = 0.15
DEFAULT_WALL_HEIGHT = 2.5
MIN_WALL_HEIGHT = 1.0
MAX_WALL_HEIGHT = 5.0

MAX_DOOR_HEIGHT = 2.1
WINDOW_HEIGHT = 1.2
WINDOW_SILL_HEIGHT = 0.9
OPENING_DEPTH_FACTOR = 1.2  # openings stick out of the wall so they stay visible

FLOOR_MATERIAL = Material(type="wood", color="#d4a77a", roughness=0.8, metalness=0.1)
WALL_MATERIAL = Material(type="standard", color="#f0f0f0", roughness=0.9, metalness=0.05)
DOOR_MATERIAL = Material(type="wood", color="#A5682A", emissive="#3D2314", roughness=0.7, metalness=0.2)
WINDOW_MATERIAL = Material(
    type="glass", color="#88CCEE", emissive="#003366", opacity=0.7, roughness=0.1, metalness=0.3,
)


def clamp_wall_height(wall_height: float) -> float:
    return max(MIN_WALL_HEIGHT, min(MAX_WALL_HEIGHT, float(wall_height)))


class _Projector:
    """Maps image-pixel points to world metres on the ground plane."""

    def __init__(self, analysis: FloorPlanAnalysis):
        self.scale = analysis.scale or PIXELS_PER_METER
        self.cx = analysis.overall_dimensions.width / 2
        self.cy = analysis.overall_dimensions.height / 2

    def to_world(self, p: Point) -> Tuple[float, float]:
        return (p.x - self.cx) / self.scale, (p.y - self.cy) / self.scale

    def wall_thickness(self, wall: WallSegment) -> float:
        if wall.thickness:
            return wall.thickness / self.scale
        return DEFAULT_WALL_THICKNESS_M

    def wall_angle(self, wall: WallSegment) -> float:
        x0, z0 = self.to_world(wall.start)
        x1, z1 = self.to_world(wall.end)
        # Y rotation by +a turns +x towards -z, so negate to follow the segment
        return -math.atan2(z1 - z0, x1 - x0)


def _floor_components(analysis: FloorPlanAnalysis, proj: _Projector) -> List[Component]:
    components = []
    for room in analysis.rooms:
        poly = room_polygon(room)
        if poly is None:
            logger.warning("Room %s has fewer than 3 polygon points, skipping floor", room.id)
            continue
        minx, miny, maxx, maxy = poly.bounds
        if maxx == minx or maxy == miny:
            logger.warning("Room %s polygon is degenerate, skipping floor", room.id)
            continue
        x0, z0 = proj.to_world(Point(minx, miny))
        x1, z1 = proj.to_world(Point(maxx, maxy))
        area = room_area(room)
        center = room_center(room)
        logger.debug("Room %s: area %.1f px^2, centre (%.1f, %.1f)", room.id, area, center.x, center.y)
        components.append(Component(
            id=f"floor_{room.id}",
            name=room.name or room.id,
            geometry=PrimitiveGeometry("plane", {"width": x1 - x0, "height": z1 - z0}),
            material=FLOOR_MATERIAL,
            position=((x0 + x1) / 2, 0.0, (z0 + z1) / 2),
            rotation=(-math.pi / 2, 0.0, 0.0),
            cast_shadow=False,
        ))
    return components


def _wall_components(analysis: FloorPlanAnalysis, proj: _Projector, wall_height: float) -> List[Component]:
    components = []
    for wall in analysis.walls:
        length = wall.length / proj.scale
        if length == 0:
            logger.warning("Wall %s has zero length, skipping", wall.id)
            continue
        x0, z0 = proj.to_world(wall.start)
        x1, z1 = proj.to_world(wall.end)
        components.append(Component(
            id=f"wall_{wall.id}",
            geometry=PrimitiveGeometry(
                "box", {"width": length, "height": wall_height, "depth": proj.wall_thickness(wall)},
            ),
            material=WALL_MATERIAL,
            position=((x0 + x1) / 2, wall_height / 2, (z0 + z1) / 2),
            rotation=(0.0, proj.wall_angle(wall), 0.0),
        ))
    return components


def _door_components(analysis: FloorPlanAnalysis, proj: _Projector, wall_height: float) -> List[Component]:
    door_height = min(MAX_DOOR_HEIGHT, wall_height * 0.9)
    components = []
    for door in analysis.doors:
        wall = find_wall(analysis, door.wall_id)
        if wall is None:
            logger.warning("Wall %s not found for door %s, skipping", door.wall_id, door.id)
            continue
        x, z = proj.to_world(door.position)
        components.append(Component(
            id=f"door_{door.id}",
            geometry=PrimitiveGeometry("box", {
                "width": door.width / proj.scale,
                "height": door_height,
                "depth": proj.wall_thickness(wall) * OPENING_DEPTH_FACTOR,
            }),
            material=DOOR_MATERIAL,
            position=(x, door_height / 2, z),
            rotation=(0.0, proj.wall_angle(wall), 0.0),
        ))
    return components


def _window_components(analysis: FloorPlanAnalysis, proj: _Projector, wall_height: float) -> List[Component]:
    components = []
    for window in analysis.windows:
        wall = find_wall(analysis, window.wall_id)
        if wall is None:
            logger.warning("Wall %s not found for window %s, skipping", window.wall_id, window.id)
            continue
        if WINDOW_SILL_HEIGHT + WINDOW_HEIGHT > wall_height:
            logger.warning("Window %s exceeds wall height %.2f m", window.id, wall_height)
        x, z = proj.to_world(window.position)
        components.append(Component(
            id=f"window_{window.id}",
            geometry=PrimitiveGeometry("box", {
                "width": window.width / proj.scale,
                "height": WINDOW_HEIGHT,
                "depth": proj.wall_thickness(wall) * OPENING_DEPTH_FACTOR,
            }),
            material=WINDOW_MATERIAL,
            position=(x, WINDOW_SILL_HEIGHT + WINDOW_HEIGHT / 2, z),
            rotation=(0.0, proj.wall_angle(wall), 0.0),
            cast_shadow=False,
        ))
    return components


def _unique_ids(components: List[Component]) -> List[Component]:
    """Suffix repeated component ids with _2, _3, ... (analysis ids can repeat)."""
    taken = set()
    unique = []
    for comp in components:
        comp_id, n = comp.id, 1
        while comp_id in taken:
            n += 1
            comp_id = f"{comp.id}_{n}"
        if comp_id != comp.id:
            logger.warning("Duplicate component id %s renamed to %s", comp.id, comp_id)
            comp = replace(comp, id=comp_id)
        taken.add(comp_id)
        unique.append(comp)
    return unique


def floor_plan_to_scene(
    analysis: FloorPlanAnalysis,
    wall_height: float = DEFAULT_WALL_HEIGHT,
    name: Optional[str] = None,
) -> Scene:
    """Extrude a floor-plan analysis into a Scene of structure models.

    Args:
        analysis: Ingested analysis in image pixels.
        wall_height: Wall height in metres, clamped to 1-5.
        name: Scene name; defaults to "Floor Plan".

    Returns:
        Scene whose models are, in order, floor, walls, doors and windows.
        Categories with no buildable element are left out.
    """
    wall_height = clamp_wall_height(wall_height)
    proj = _Projector(analysis)

    categories = (
        ("floor", "Floor", _floor_components(analysis, proj)),
        ("wall", "Walls", _wall_components(analysis, proj, wall_height)),
        ("door", "Doors", _door_components(analysis, proj, wall_height)),
        ("window", "Windows", _window_components(analysis, proj, wall_height)),
    )
    objects = [
        Model(
            id=f"floor_plan_{subtype}",
            name=label,
            type="structure",
            subtype=subtype,
            components=_unique_ids(components),
            tags=["floor-plan"],
        )
        for subtype, label, components in categories
        if components
    ]
    logger.info(
        "Built floor plan scene: %s",
        ", ".join(f"{m.subtype}={len(m.components)}" for m in objects) or "empty",
    )
    return Scene(
        name=name or "Floor Plan",
        units="meters",
        objects=objects,
        settings=SceneSettings(
            background_color="#f0f0f0",
            shadows=True,
            ambient_light=AmbientLight(color="#ffffff", intensity=0.5),
            directional_light=[DirectionalLight(color="#ffffff", intensity=1.0, position=(5.0, 10.0, 5.0), cast_shadow=True)],
        ),
    )
