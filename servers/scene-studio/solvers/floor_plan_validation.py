"""Validation and ingestion of floor-plan analyses.

Schema checks follow the same accumulate-then-report policy as the scene
validator. On top of the schema, ``check_floor_plan_structure`` flags results
that are well-formed but degenerate (no rooms, no walls, doors or windows on
unknown walls). Those are warnings for the caller, never errors.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List

from errors import SchemaValidationError
from floor_plan import SWING_DIRECTIONS, FloorPlanAnalysis, dict_to_analysis
from solvers.validation import (
    Issues, ValidationIssue, check_enum, check_number, check_string,
    issue_report, join_path, require_key, require_object, type_name,
)

logger = logging.getLogger("scene-studio.floor_plan_validation")


def _check_point(issues: Issues, path: str, d: Any) -> None:
    if not require_object(issues, path, d):
        return
    for axis in ("x", "y"):
        if require_key(issues, path, d, axis):
            check_number(issues, join_path(path, axis), d[axis])


def _check_array(issues: Issues, path: str, value: Any, item_check) -> None:
    if not isinstance(value, list):
        issues.append(ValidationIssue(path, f"Expected array, received {type_name(value)}"))
        return
    for i, item in enumerate(value):
        item_check(issues, f"{path}[{i}]", item)


def _check_ids(issues: Issues, path: str, d: Any) -> bool:
    if not require_object(issues, path, d):
        return False
    if require_key(issues, path, d, "id"):
        check_string(issues, join_path(path, "id"), d["id"])
    return True


def _check_optional_numbers(issues: Issues, path: str, d: Any, keys) -> None:
    for key in keys:
        if key in d:
            check_number(issues, join_path(path, key), d[key])


def _check_required_numbers(issues: Issues, path: str, d: Any, keys) -> None:
    for key in keys:
        if require_key(issues, path, d, key):
            check_number(issues, join_path(path, key), d[key])


def _check_wall(issues: Issues, path: str, d: Any) -> None:
    if not _check_ids(issues, path, d):
        return
    for key in ("start", "end"):
        if require_key(issues, path, d, key):
            _check_point(issues, join_path(path, key), d[key])
    _check_optional_numbers(issues, path, d, ("thickness",))


def _check_opening(issues: Issues, path: str, d: Any) -> bool:
    if not _check_ids(issues, path, d):
        return False
    if require_key(issues, path, d, "wallId"):
        check_string(issues, join_path(path, "wallId"), d["wallId"])
    if require_key(issues, path, d, "position"):
        _check_point(issues, join_path(path, "position"), d["position"])
    _check_required_numbers(issues, path, d, ("width",))
    return True


def _check_door(issues: Issues, path: str, d: Any) -> None:
    if _check_opening(issues, path, d) and "swingDirection" in d:
        check_enum(issues, join_path(path, "swingDirection"), d["swingDirection"], SWING_DIRECTIONS)


def _check_window(issues: Issues, path: str, d: Any) -> None:
    if _check_opening(issues, path, d):
        _check_optional_numbers(issues, path, d, ("height", "sillHeight"))


def _check_room(issues: Issues, path: str, d: Any) -> None:
    if not _check_ids(issues, path, d):
        return
    for key in ("name", "color"):
        if key in d:
            check_string(issues, join_path(path, key), d[key])
    if require_key(issues, path, d, "polygon"):
        _check_array(issues, join_path(path, "polygon"), d["polygon"], _check_point)
    _check_optional_numbers(issues, path, d, ("area",))
    if "center" in d:
        _check_point(issues, join_path(path, "center"), d["center"])


def _check_object(issues: Issues, path: str, d: Any) -> None:
    if not _check_ids(issues, path, d):
        return
    if require_key(issues, path, d, "label"):
        check_string(issues, join_path(path, "label"), d["label"])
    if require_key(issues, path, d, "boundingBox"):
        bb_path = join_path(path, "boundingBox")
        if require_object(issues, bb_path, d["boundingBox"]):
            _check_required_numbers(issues, bb_path, d["boundingBox"], ("x", "y", "width", "height"))


def _analysis_issues(data: Any) -> Issues:
    issues: Issues = []
    if not require_object(issues, "", data):
        return issues
    if require_key(issues, "", data, "overallDimensions"):
        if require_object(issues, "overallDimensions", data["overallDimensions"]):
            _check_required_numbers(issues, "overallDimensions", data["overallDimensions"], ("width", "height"))
    _check_optional_numbers(issues, "", data, ("scale",))
    for key, item_check in (
        ("rooms", _check_room),
        ("walls", _check_wall),
        ("doors", _check_door),
        ("windows", _check_window),
    ):
        if require_key(issues, "", data, key):
            _check_array(issues, key, data[key], item_check)
    if "objects" in data:
        _check_array(issues, "objects", data["objects"], _check_object)
    return issues


def check_floor_plan_analysis(data: Any) -> Dict[str, Any]:
    return issue_report(_analysis_issues(data))


def validate_floor_plan_analysis(data: Any) -> FloorPlanAnalysis:
    issues = _analysis_issues(data)
    if issues:
        raise SchemaValidationError(issues, "floor plan analysis")
    return dict_to_analysis(data)


# ---------------------------------------------------------------------------
# Structural checks
# ---------------------------------------------------------------------------

def check_floor_plan_structure(analysis: FloorPlanAnalysis) -> List[str]:
    """Return human-readable warnings for a schema-valid but degenerate analysis."""
    warnings = []
    if not analysis.rooms:
        warnings.append("No rooms detected")
    if not analysis.walls:
        warnings.append("No walls detected")

    wall_ids = {w.id for w in analysis.walls}
    for door in analysis.doors:
        if door.wall_id not in wall_ids:
            warnings.append(f"Door {door.id} references unknown wall {door.wall_id}")
    for window in analysis.windows:
        if window.wall_id not in wall_ids:
            warnings.append(f"Window {window.id} references unknown wall {window.wall_id}")
    for wall in analysis.walls:
        if wall.length == 0:
            warnings.append(f"Wall {wall.id} has zero length")
    for room in analysis.rooms:
        if len(room.polygon) < 3:
            warnings.append(f"Room {room.id} polygon has fewer than 3 points")
    return warnings


@dataclass
class FloorPlanIngestResult:
    analysis: FloorPlanAnalysis
    warnings: List[str] = field(default_factory=list)

    @property
    def degraded(self) -> bool:
        """True when the analysis has no rooms or no walls to build from."""
        return not self.analysis.rooms or not self.analysis.walls


def ingest_floor_plan_analysis(data: Any) -> FloorPlanIngestResult:
    """Validate an untrusted analysis payload and attach structural warnings.

    Raises:
        SchemaValidationError: The payload does not match the schema.
    """
    analysis = validate_floor_plan_analysis(data)
    result = FloorPlanIngestResult(analysis=analysis, warnings=check_floor_plan_structure(analysis))
    if result.degraded:
        logger.warning("Degraded floor plan analysis: %s", "; ".join(result.warnings))
    elif result.warnings:
        logger.info("Floor plan analysis warnings: %s", "; ".join(result.warnings))
    return result
