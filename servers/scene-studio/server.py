"""Scene Studio MCP Server.

Exposes tools for loading, validating, editing and exporting furniture scenes,
and for turning floor-plan images into structured analyses and 3D scenes.
"""

import asyncio
import json
import os
import sys
import logging
import tempfile

from mcp.server.fastmcp import FastMCP

# Ensure package root is on path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from errors import ConversionError, FloorPlanAnalysisError, SchemaValidationError
from floor_plan import analysis_to_dict
from state import SceneState
from scene_templates import list_templates as list_scene_templates, load_template as load_scene_template
from solvers.validation import check_model, check_scene, validate_component, validate_scene
from solvers.scene_converter import (
    convert_to_simplified_format, convert_to_standard_format,
    group_by_field_then_convention, group_by_id_convention, no_grouping,
)
from solvers.floor_plan_validation import FloorPlanIngestResult, ingest_floor_plan_analysis
from solvers.floor_plan_to_scene import DEFAULT_WALL_HEIGHT, floor_plan_to_scene as build_floor_plan_scene
from rendering.floor_plan_render import render_floor_plan_analysis
from services.analysis_store import load_saved_analysis, save_analysis
from services.scene_export import export_scene_glb as write_scene_glb
from services.vision import analyze_floor_plan_data_url as request_data_url_analysis, analyze_floor_plan_image

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")
logger = logging.getLogger("scene-studio")

RESULTS_DIR = os.environ.get("RESULTS_DIR", os.path.join(tempfile.gettempdir(), "scene-studio-results"))
os.makedirs(RESULTS_DIR, exist_ok=True)

# --- Globals ---
state = SceneState()
mcp = FastMCP("scene-studio")

GROUPING_STRATEGIES = {
    "id": group_by_id_convention,
    "field": group_by_field_then_convention,
    "none": no_grouping,
}


def _scene_summary(scene_id: str) -> dict:
    scene = state.get_scene(scene_id)
    return {
        "scene_id": scene_id,
        "name": scene.name,
        "models": [
            {
                "id": m.id,
                "name": m.name,
                "type": m.type,
                "component_count": len(m.all_components()),
                "group_ids": [g.id for g in m.groups],
            }
            for m in scene.objects
        ],
    }


def _ingest_response(analysis_id: str, result: FloorPlanIngestResult) -> dict:
    return {
        "analysis_id": analysis_id,
        "analysis": analysis_to_dict(result.analysis),
        "warnings": result.warnings,
        "degraded": result.degraded,
    }


# ============================================================
# Scene Tools
# ============================================================

@mcp.tool()
def load_scene(scene_json: str, group_by: str = "id") -> str:
    """Load a scene from canonical or simplified (exported) JSON.

    Simplified input is converted first; components are auto-grouped with the
    chosen strategy: "id" (``*_leg_*``/``*_door_*``/``*_drawer_*`` ids),
    "field" (explicit ``group`` field, then ids) or "none".

    Returns a JSON string with scene_id and a per-model summary.
    """
    classify = GROUPING_STRATEGIES.get(group_by)
    if classify is None:
        return json.dumps({"error": f"Unknown grouping strategy {group_by!r}", "choices": list(GROUPING_STRATEGIES)})
    try:
        data = json.loads(scene_json)
    except json.JSONDecodeError as e:
        return json.dumps({"error": f"Invalid JSON: {e}"})

    try:
        canonical = convert_to_standard_format(data, classify=classify)
        scene = validate_scene(canonical)
    except ConversionError as e:
        return json.dumps({"error": str(e)})
    except SchemaValidationError as e:
        return json.dumps({"error": "Invalid scene", "issues": e.to_dict()["issues"]})

    scene_id = state.add_scene(scene)
    logger.info("Loaded scene %s (%s) with %d models", scene_id, scene.name, len(scene.objects))
    return json.dumps(_scene_summary(scene_id))


@mcp.tool()
def list_templates() -> str:
    """List the built-in template scenes as [{id, name}]."""
    return json.dumps(list_scene_templates())


@mcp.tool()
def load_template(template_id: str) -> str:
    """Load a built-in template scene (e.g. "chair-simple", "living-room").

    Returns the same summary as load_scene.
    """
    try:
        scene = load_scene_template(template_id)
    except KeyError as e:
        return json.dumps({"error": e.args[0], "choices": [t["id"] for t in list_scene_templates()]})
    except SchemaValidationError as e:
        return json.dumps({"error": "Invalid template", "issues": e.to_dict()["issues"]})
    scene_id = state.add_scene(scene)
    logger.info("Loaded template %s as scene %s", template_id, scene_id)
    return json.dumps(_scene_summary(scene_id))


@mcp.tool()
def validate_scene_json(scene_json: str) -> str:
    """Dry-run validation of scene JSON (canonical or simplified).

    Returns {"valid": bool, "issues": [{"field", "message"}...]}.
    """
    try:
        data = json.loads(scene_json)
    except json.JSONDecodeError as e:
        return json.dumps({"error": f"Invalid JSON: {e}"})
    try:
        canonical = convert_to_standard_format(data)
    except ConversionError as e:
        return json.dumps({"valid": False, "issues": [{"field": "", "message": str(e)}]})
    return json.dumps(check_scene(canonical))


@mcp.tool()
def validate_model_json(model_json: str) -> str:
    """Dry-run validation of a single Model's JSON."""
    try:
        data = json.loads(model_json)
    except json.JSONDecodeError as e:
        return json.dumps({"error": f"Invalid JSON: {e}"})
    return json.dumps(check_model(data))


@mcp.tool()
def get_scene(scene_id: str) -> str:
    """Get the canonical Scene JSON for a loaded scene."""
    data = state.get_scene_dict(scene_id)
    if data is None:
        return json.dumps({"error": f"Scene {scene_id} not found"})
    return json.dumps(data)


@mcp.tool()
def export_scene(scene_id: str) -> str:
    """Export a loaded scene in the simplified {"scene": {...}} format.

    Group membership is flattened into each object's component list.
    """
    scene = state.get_scene(scene_id)
    if scene is None:
        return json.dumps({"error": f"Scene {scene_id} not found"})
    return json.dumps(convert_to_simplified_format(scene))


@mcp.tool()
def update_component(scene_id: str, model_id: str, component_json: str) -> str:
    """Replace one component (matched by id) inside a model of a loaded scene.

    The component is looked up among the model's direct components first,
    then inside each of its groups.
    """
    try:
        data = json.loads(component_json)
    except json.JSONDecodeError as e:
        return json.dumps({"error": f"Invalid JSON: {e}"})
    try:
        component = validate_component(data)
    except SchemaValidationError as e:
        return json.dumps({"error": "Invalid component", "issues": e.to_dict()["issues"]})
    try:
        state.update_component(scene_id, model_id, component)
    except KeyError as e:
        return json.dumps({"error": e.args[0]})
    logger.info("Updated component %s in %s/%s", component.id, scene_id, model_id)
    return json.dumps({"status": "success", "scene_id": scene_id, "model_id": model_id, "component_id": component.id})


@mcp.tool()
def list_scenes() -> str:
    """List loaded scenes with their names."""
    return json.dumps([
        {"scene_id": sid, "name": state.get_scene(sid).name} for sid in state.list_scenes()
    ])


@mcp.tool()
async def export_scene_glb(scene_id: str) -> str:
    """Export a loaded scene's primitive components as a binary glTF (.glb).

    Returns: JSON with glb_path, mesh_count, meshes and skipped component keys.
    """
    scene = state.get_scene(scene_id)
    if scene is None:
        return json.dumps({"error": f"Scene {scene_id} not found"})

    output_path = os.path.join(RESULTS_DIR, scene_id, "scene.glb")

    # Run in thread; mesh building and GLB writing are CPU-bound.
    try:
        result = await asyncio.to_thread(write_scene_glb, scene, output_path)
    except Exception as e:
        logger.error("GLB export failed: %s", e, exc_info=True)
        return json.dumps({"status": "error", "message": str(e)})
    result["status"] = "success"
    return json.dumps(result)


# ============================================================
# Floor Plan Tools
# ============================================================

async def _analyze(fn, arg: str, image_for_state) -> str:
    try:
        result = await asyncio.to_thread(fn, arg)
    except FloorPlanAnalysisError as e:
        return json.dumps({"error": str(e)})
    except SchemaValidationError as e:
        return json.dumps({"error": "AI returned invalid data structure", "issues": e.to_dict()["issues"]})
    analysis_id = state.add_analysis(result.analysis, image=image_for_state)
    return json.dumps(_ingest_response(analysis_id, result))


@mcp.tool()
async def analyze_floor_plan(image_path: str) -> str:
    """Analyze a floor-plan image file with the hosted vision model.

    Returns: JSON with analysis_id, analysis, warnings and degraded
    (true when no rooms or no walls were detected).
    """
    if not os.path.exists(image_path):
        return json.dumps({"error": f"Image {image_path} not found"})
    return await _analyze(analyze_floor_plan_image, image_path, None)


@mcp.tool()
async def analyze_floor_plan_data_url(image_data_url: str) -> str:
    """Analyze a floor-plan image given as a ``data:image/...;base64,...`` URL."""
    return await _analyze(request_data_url_analysis, image_data_url, image_data_url)


@mcp.tool()
def load_floor_plan_analysis(analysis_json: str) -> str:
    """Ingest a hand-authored or previously exported floor-plan analysis JSON."""
    try:
        data = json.loads(analysis_json)
    except json.JSONDecodeError as e:
        return json.dumps({"error": f"Invalid JSON: {e}"})
    try:
        result = ingest_floor_plan_analysis(data)
    except SchemaValidationError as e:
        return json.dumps({"error": "Invalid floor plan analysis", "issues": e.to_dict()["issues"]})
    analysis_id = state.add_analysis(result.analysis)
    return json.dumps(_ingest_response(analysis_id, result))


@mcp.tool()
def save_floor_plan_analysis(analysis_id: str, image: str = "") -> str:
    """Save an analysis as the single "last analysis" entry.

    ``image`` overrides the data URL remembered from analyze_floor_plan_data_url.
    """
    analysis = state.get_analysis(analysis_id)
    if analysis is None:
        return json.dumps({"error": f"Analysis {analysis_id} not found"})
    image = image or state.get_analysis_image(analysis_id)
    result = save_analysis(analysis, image=image, results_dir=RESULTS_DIR)
    result["status"] = "success"
    return json.dumps(result)


@mcp.tool()
def load_saved_floor_plan() -> str:
    """Load the saved "last analysis" entry back into memory."""
    try:
        saved = load_saved_analysis(results_dir=RESULTS_DIR)
    except SchemaValidationError as e:
        # a ValueError subclass, so it must be caught first
        return json.dumps({"error": "Saved floor plan is invalid", "issues": e.to_dict()["issues"]})
    except (OSError, ValueError) as e:
        return json.dumps({"error": f"Could not read saved floor plan: {e}"})
    if saved is None:
        return json.dumps({"error": "No saved floor plan"})
    result = saved["result"]
    analysis_id = state.add_analysis(result.analysis, image=saved["image"])
    response = _ingest_response(analysis_id, result)
    response["timestamp"] = saved["timestamp"]
    response["has_image"] = saved["image"] is not None
    return json.dumps(response)


@mcp.tool()
async def render_floor_plan(analysis_id: str) -> str:
    """Render an analysis as an annotated 2D PNG and return its path."""
    analysis = state.get_analysis(analysis_id)
    if analysis is None:
        return json.dumps({"error": f"Analysis {analysis_id} not found"})

    render_path = os.path.join(RESULTS_DIR, analysis_id, "floor_plan.png")
    try:
        await asyncio.to_thread(render_floor_plan_analysis, analysis, render_path)
    except Exception as e:
        logger.warning("Failed to render floor plan %s: %s", analysis_id, e)
        return json.dumps({"status": "error", "message": str(e)})
    return json.dumps({"status": "success", "render_path": render_path})


@mcp.tool()
def floor_plan_to_scene(analysis_id: str, wall_height: float = DEFAULT_WALL_HEIGHT, name: str = "") -> str:
    """Build a 3D scene (floor, walls, doors, windows) from an analysis and load it.

    wall_height is in metres and clamped to 1-5.
    """
    analysis = state.get_analysis(analysis_id)
    if analysis is None:
        return json.dumps({"error": f"Analysis {analysis_id} not found"})
    scene = build_floor_plan_scene(analysis, wall_height=wall_height, name=name or None)
    scene_id = state.add_scene(scene)
    return json.dumps(_scene_summary(scene_id))


# ============================================================
# Entry point
# ============================================================

if __name__ == "__main__":
    logger.info("Scene-studio MCP server starting...")
    mcp.run()
