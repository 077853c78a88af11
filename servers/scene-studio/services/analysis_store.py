"""Persist the last floor-plan analysis as a single JSON file.

The file lives at ``<RESULTS_DIR>/<SAVED_FLOOR_PLAN_KEY>.json`` and holds
``{"timestamp": <ISO-8601 UTC>, "image": <data URL or null>, "analysis": {...}}``.
Saving overwrites the previous entry.
"""

import json
import logging
import os
import tempfile
from datetime import datetime, timezone
from typing import Optional

from floor_plan import FloorPlanAnalysis, analysis_to_dict
from solvers.floor_plan_validation import FloorPlanIngestResult, ingest_floor_plan_analysis

logger = logging.getLogger("scene-studio.analysis_store")


def _results_dir() -> str:
    return os.environ.get("RESULTS_DIR", os.path.join(tempfile.gettempdir(), "scene-studio-results"))


def saved_analysis_path(results_dir: Optional[str] = None) -> str:
    key = os.environ.get("SAVED_FLOOR_PLAN_KEY", "savedFloorPlan")
    return os.path.join(results_dir or _results_dir(), f"{key}.json")


def save_analysis(
    analysis: FloorPlanAnalysis,
    image: Optional[str] = None,
    results_dir: Optional[str] = None,
) -> dict:
    """Write the analysis (and optionally its source image) as the saved entry."""
    path = saved_analysis_path(results_dir)
    os.makedirs(os.path.dirname(path), exist_ok=True)
    record = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "image": image,
        "analysis": analysis_to_dict(analysis),
    }
    with open(path, "w") as f:
        json.dump(record, f)
    logger.info("Saved floor plan analysis to %s", path)
    return {"path": path, "timestamp": record["timestamp"]}


def load_saved_analysis(results_dir: Optional[str] = None) -> Optional[dict]:
    """Load the saved entry, re-validating its analysis.

    Returns ``None`` when nothing has been saved, otherwise a dict with
    ``timestamp``, ``image`` and ``result`` (a ``FloorPlanIngestResult``).

    Raises:
        json.JSONDecodeError: The file is not valid JSON.
        SchemaValidationError: The stored analysis no longer validates.
    """
    path = saved_analysis_path(results_dir)
    if not os.path.exists(path):
        return None
    with open(path) as f:
        record = json.load(f)
    if not isinstance(record, dict):
        raise ValueError(f"Saved floor plan at {path} is not a JSON object")
    result: FloorPlanIngestResult = ingest_floor_plan_analysis(record.get("analysis"))
    logger.info("Loaded saved floor plan analysis from %s", path)
    return {"timestamp": record.get("timestamp"), "image": record.get("image"), "result": result}
