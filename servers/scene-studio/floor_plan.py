"""Data models for a 2D floor-plan analysis (rooms, walls, doors, windows).

All coordinates are image pixels relative to the top-left corner.
"""

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from shapely.geometry import Polygon

SWING_DIRECTIONS = ("inward", "outward", "sliding", "none")


@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class WallSegment:
    id: str
    start: Point
    end: Point
    thickness: Optional[float] = None

    @property
    def length(self) -> float:
        return math.hypot(self.end.x - self.start.x, self.end.y - self.start.y)


@dataclass(frozen=True)
class Door:
    id: str
    wall_id: str  # soft reference into FloorPlanAnalysis.walls
    position: Point
    width: float
    swing_direction: Optional[str] = None


@dataclass(frozen=True)
class Window:
    id: str
    wall_id: str
    position: Point
    width: float
    height: Optional[float] = None
    sill_height: Optional[float] = None


@dataclass(frozen=True)
class Room:
    id: str
    polygon: List[Point]
    name: Optional[str] = None
    area: Optional[float] = None
    center: Optional[Point] = None
    color: Optional[str] = None


@dataclass(frozen=True)
class BoundingBox:
    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True)
class FloorPlanObject:
    id: str
    label: str
    bounding_box: BoundingBox


@dataclass(frozen=True)
class OverallDimensions:
    width: float
    height: float


@dataclass(frozen=True)
class FloorPlanAnalysis:
    overall_dimensions: OverallDimensions
    rooms: List[Room] = field(default_factory=list)
    walls: List[WallSegment] = field(default_factory=list)
    doors: List[Door] = field(default_factory=list)
    windows: List[Window] = field(default_factory=list)
    scale: Optional[float] = None  # pixels per metre
    objects: Optional[List[FloorPlanObject]] = None


# ---------------------------------------------------------------------------
# Lookups and derived geometry
# ---------------------------------------------------------------------------

def find_wall(analysis: FloorPlanAnalysis, wall_id: str) -> Optional[WallSegment]:
    """Join an opening's ``wall_id`` to its wall; ``None`` when it dangles."""
    for wall in analysis.walls:
        if wall.id == wall_id:
            return wall
    return None


def orphaned_openings(analysis: FloorPlanAnalysis) -> List[str]:
    """IDs of doors and windows whose ``wall_id`` matches no wall."""
    wall_ids = {w.id for w in analysis.walls}
    out = [d.id for d in analysis.doors if d.wall_id not in wall_ids]
    out.extend(w.id for w in analysis.windows if w.wall_id not in wall_ids)
    return out


def room_polygon(room: Room) -> Optional[Polygon]:
    if len(room.polygon) < 3:
        return None
    return Polygon([(p.x, p.y) for p in room.polygon])


def room_area(room: Room) -> Optional[float]:
    """Area in square pixels, preferring the reported value."""
    if room.area is not None:
        return room.area
    poly = room_polygon(room)
    return poly.area if poly is not None else None


def room_center(room: Room) -> Optional[Point]:
    """Centre point, preferring the reported value over the polygon centroid."""
    if room.center is not None:
        return room.center
    poly = room_polygon(room)
    if poly is None:
        return None
    c = poly.centroid
    return Point(c.x, c.y)


# ---------------------------------------------------------------------------
# dict <-> dataclass (input is assumed to be schema-valid)
# ---------------------------------------------------------------------------

def dict_to_point(d: Mapping[str, Any]) -> Point:
    return Point(x=d["x"], y=d["y"])


def point_to_dict(p: Point) -> Dict[str, float]:
    return {"x": p.x, "y": p.y}


def dict_to_wall(d: Mapping[str, Any]) -> WallSegment:
    return WallSegment(
        id=d["id"],
        start=dict_to_point(d["start"]),
        end=dict_to_point(d["end"]),
        thickness=d.get("thickness"),
    )


def dict_to_door(d: Mapping[str, Any]) -> Door:
    return Door(
        id=d["id"],
        wall_id=d["wallId"],
        position=dict_to_point(d["position"]),
        width=d["width"],
        swing_direction=d.get("swingDirection"),
    )


def dict_to_window(d: Mapping[str, Any]) -> Window:
    return Window(
        id=d["id"],
        wall_id=d["wallId"],
        position=dict_to_point(d["position"]),
        width=d["width"],
        height=d.get("height"),
        sill_height=d.get("sillHeight"),
    )


def dict_to_room(d: Mapping[str, Any]) -> Room:
    center = d.get("center")
    return Room(
        id=d["id"],
        name=d.get("name"),
        polygon=[dict_to_point(p) for p in d["polygon"]],
        area=d.get("area"),
        center=dict_to_point(center) if center is not None else None,
        color=d.get("color"),
    )


def dict_to_object(d: Mapping[str, Any]) -> FloorPlanObject:
    bb = d["boundingBox"]
    return FloorPlanObject(
        id=d["id"],
        label=d["label"],
        bounding_box=BoundingBox(x=bb["x"], y=bb["y"], width=bb["width"], height=bb["height"]),
    )


def dict_to_analysis(d: Mapping[str, Any]) -> FloorPlanAnalysis:
    dims = d["overallDimensions"]
    objects = d.get("objects")
    return FloorPlanAnalysis(
        overall_dimensions=OverallDimensions(width=dims["width"], height=dims["height"]),
        scale=d.get("scale"),
        rooms=[dict_to_room(r) for r in d["rooms"]],
        walls=[dict_to_wall(w) for w in d["walls"]],
        doors=[dict_to_door(dr) for dr in d["doors"]],
        windows=[dict_to_window(w) for w in d["windows"]],
        objects=[dict_to_object(o) for o in objects] if objects is not None else None,
    )


def analysis_to_dict(a: FloorPlanAnalysis) -> dict:
    out: Dict[str, Any] = {
        "overallDimensions": {"width": a.overall_dimensions.width, "height": a.overall_dimensions.height},
    }
    if a.scale is not None:
        out["scale"] = a.scale
    rooms = []
    for r in a.rooms:
        rd: Dict[str, Any] = {"id": r.id}
        if r.name is not None:
            rd["name"] = r.name
        rd["polygon"] = [point_to_dict(p) for p in r.polygon]
        if r.area is not None:
            rd["area"] = r.area
        if r.center is not None:
            rd["center"] = point_to_dict(r.center)
        if r.color is not None:
            rd["color"] = r.color
        rooms.append(rd)
    out["rooms"] = rooms
    walls = []
    for w in a.walls:
        wd: Dict[str, Any] = {"id": w.id, "start": point_to_dict(w.start), "end": point_to_dict(w.end)}
        if w.thickness is not None:
            wd["thickness"] = w.thickness
        walls.append(wd)
    out["walls"] = walls
    doors = []
    for d in a.doors:
        dd: Dict[str, Any] = {"id": d.id, "wallId": d.wall_id, "position": point_to_dict(d.position), "width": d.width}
        if d.swing_direction is not None:
            dd["swingDirection"] = d.swing_direction
        doors.append(dd)
    out["doors"] = doors
    windows = []
    for w in a.windows:
        wd = {"id": w.id, "wallId": w.wall_id, "position": point_to_dict(w.position), "width": w.width}
        if w.height is not None:
            wd["height"] = w.height
        if w.sill_height is not None:
            wd["sillHeight"] = w.sill_height
        windows.append(wd)
    out["windows"] = windows
    if a.objects is not None:
        out["objects"] = [
            {
                "id": o.id,
                "label": o.label,
                "boundingBox": {
                    "x": o.bounding_box.x, "y": o.bounding_box.y,
                    "width": o.bounding_box.width, "height": o.bounding_box.height,
                },
            }
            for o in a.objects
        ]
    return out
