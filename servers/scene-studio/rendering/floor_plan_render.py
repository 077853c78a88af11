"""2D floor-plan analysis visualization using matplotlib.

Generates annotated top-down PNG overlays of an analysis in image pixel
coordinates (origin top-left, y down) with:
- Room polygons filled per room colour, labelled with name and area
- Wall segments, line width proportional to thickness
- Doors (brown) and windows (blue) centred on their positions
- Detected objects as dashed bounding boxes
"""

import os
import logging

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import matplotlib.patches as patches

from floor_plan import FloorPlanAnalysis, Room, find_wall, room_area, room_center
from solvers.validation import is_hex_color

logger = logging.getLogger("scene-studio.floor_plan_render")

# Room fill colours when the analysis gives none or an unusable one (cycles)
_PALETTE = [
    "#e6194b", "#3cb44b", "#4363d8", "#f58231", "#911eb4",
    "#42d4f4", "#f032e6", "#bfef45", "#fabed4", "#469990",
]
_DEFAULT_WALL_THICKNESS_PX = 7.5  # 0.15 m at 50 px/m


def render_floor_plan_analysis(analysis: FloorPlanAnalysis, output_path: str, dpi: int = 150) -> str:
    """Render the analysis as a top-down 2D PNG and return the output path."""
    fig, ax = plt.subplots(1, 1, figsize=(12, 10))
    try:
        _draw_analysis(ax, analysis)
        os.makedirs(os.path.dirname(output_path) or ".", exist_ok=True)
        fig.savefig(output_path, dpi=dpi, bbox_inches="tight")
    finally:
        plt.close(fig)
    logger.info("Floor plan analysis rendered to %s", output_path)
    return output_path


def _draw_analysis(ax, analysis: FloorPlanAnalysis):
    for idx, room in enumerate(analysis.rooms):
        _draw_room(ax, room, _PALETTE[idx % len(_PALETTE)])
    for wall in analysis.walls:
        thickness = wall.thickness or _DEFAULT_WALL_THICKNESS_PX
        ax.plot(
            [wall.start.x, wall.end.x], [wall.start.y, wall.end.y],
            color="black", linewidth=max(1.0, thickness / 3), solid_capstyle="butt",
        )
    for door in analysis.doors:
        _draw_opening(ax, analysis, door.wall_id, door.position, door.width, "brown", 4)
    for window in analysis.windows:
        _draw_opening(ax, analysis, window.wall_id, window.position, window.width, "deepskyblue", 3)
    for obj in analysis.objects or []:
        bb = obj.bounding_box
        ax.add_patch(patches.Rectangle(
            (bb.x, bb.y), bb.width, bb.height,
            linewidth=0.8, edgecolor="dimgray", facecolor="none", linestyle="--",
        ))
        ax.text(bb.x + bb.width / 2, bb.y + bb.height / 2, obj.label, ha="center", va="center", fontsize=6)

    dims = analysis.overall_dimensions
    ax.set_xlim(0, dims.width)
    ax.set_ylim(dims.height, 0)
    ax.set_aspect("equal")
    title = f"Floor Plan Analysis: {len(analysis.rooms)} rooms, {len(analysis.walls)} walls"
    if analysis.scale:
        title += f" ({analysis.scale:g} px/m)"
    ax.set_title(title)
    ax.set_xlabel("X (px)")
    ax.set_ylabel("Y (px)")
    ax.grid(True, alpha=0.2)


def _room_color(room: Room, fallback_color: str) -> str:
    if room.color is None:
        return fallback_color
    if not is_hex_color(room.color):
        # free-form model output such as "light blue-ish"
        logger.debug("Room %s has unusable colour %r, using palette", room.id, room.color)
        return fallback_color
    return room.color


def _draw_room(ax, room: Room, fallback_color: str):
    if len(room.polygon) >= 3:
        ax.add_patch(patches.Polygon(
            [(p.x, p.y) for p in room.polygon], closed=True,
            facecolor=_room_color(room, fallback_color), edgecolor="none", alpha=0.25,
        ))
    center = room_center(room)
    if center is None:
        return
    label = room.name or room.id
    area = room_area(room)
    if area is not None:
        label += f"\n{area:.0f} px²"
    ax.text(center.x, center.y, label, ha="center", va="center", fontsize=8, fontweight="bold", alpha=0.7)


def _draw_opening(ax, analysis: FloorPlanAnalysis, wall_id: str, position, width: float, color: str, lw: float):
    """Draw a door/window as a short segment along its wall, centred on its position."""
    wall = find_wall(analysis, wall_id)
    if wall is None or wall.length == 0:
        ax.plot([position.x], [position.y], marker="x", color=color)
        return
    ux = (wall.end.x - wall.start.x) / wall.length
    uy = (wall.end.y - wall.start.y) / wall.length
    half = width / 2
    ax.plot(
        [position.x - ux * half, position.x + ux * half],
        [position.y - uy * half, position.y + uy * half],
        color=color, linewidth=lw, solid_capstyle="butt",
    )
