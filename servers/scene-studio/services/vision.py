"""Client for the hosted multimodal model that analyses floor-plan images.

Talks to an OpenAI-compatible chat-completions endpoint (Gemini's by default).
The model is forced to answer through a single function tool,
``floorPlanAnalysis``, whose arguments are the analysis JSON.
"""

import base64
import io
import json
import logging
import os
import re
from typing import Any, Dict, Optional, Tuple

from openai import OpenAI
from PIL import Image

from errors import FloorPlanAnalysisError
from prompts.floor_plan import FLOOR_PLAN_SYSTEM_PROMPT, FLOOR_PLAN_USER_PROMPT, floor_plan_tool
from solvers.floor_plan_validation import FloorPlanIngestResult, ingest_floor_plan_analysis

logger = logging.getLogger("scene-studio.vision")

DATA_URL_RE = re.compile(r"^data:(image/\w+);base64,(.*)$", re.DOTALL)
TOOL_NAME = "floorPlanAnalysis"


def _get_client() -> OpenAI:
    api_key = os.environ.get("FLOOR_PLAN_VLM_API_KEY") or os.environ.get("GOOGLE_GENERATIVE_AI_API_KEY")
    if not api_key:
        raise FloorPlanAnalysisError(
            "No API key configured (set FLOOR_PLAN_VLM_API_KEY or GOOGLE_GENERATIVE_AI_API_KEY)"
        )
    return OpenAI(
        base_url=os.environ.get("FLOOR_PLAN_VLM_URL", "https://generativelanguage.googleapis.com/v1beta/openai/"),
        api_key=api_key,
    )


def _get_model() -> str:
    return os.environ.get("FLOOR_PLAN_VLM_MODEL", "gemini-2.0-flash")


# ---------------------------------------------------------------------------
# Image encoding
# ---------------------------------------------------------------------------

def detect_mime_type(data: bytes) -> str:
    """Sniff the image format with Pillow, e.g. ``image/png``."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            fmt = img.format
    except (OSError, ValueError) as e:
        raise FloorPlanAnalysisError(f"Unreadable image: {e}") from e
    mime = Image.MIME.get(fmt or "")
    if mime is None:
        raise FloorPlanAnalysisError(f"Unsupported image format: {fmt}")
    return mime


def image_file_to_data_url(image_path: str) -> str:
    with open(image_path, "rb") as f:
        data = f.read()
    mime = detect_mime_type(data)
    return f"data:{mime};base64,{base64.b64encode(data).decode('utf-8')}"


def parse_data_url(data_url: str) -> Tuple[str, bytes]:
    """Split ``data:image/png;base64,...`` into (mime type, raw bytes)."""
    match = DATA_URL_RE.match(data_url or "")
    if not match:
        raise FloorPlanAnalysisError("Invalid image data URL: expected data:image/<type>;base64,<data>")
    try:
        raw = base64.b64decode(match.group(2), validate=True)
    except ValueError as e:
        raise FloorPlanAnalysisError(f"Invalid base64 image data: {e}") from e
    return match.group(1), raw


# ---------------------------------------------------------------------------
# Model call
# ---------------------------------------------------------------------------

def extract_tool_arguments(response: Any) -> Dict[str, Any]:
    """Pull the ``floorPlanAnalysis`` arguments out of a chat completion.

    Accepts the arguments either wrapped as ``{"analysis": {...}}`` (the tool's
    declared parameter shape) or as the bare analysis object.
    """
    try:
        message = response.choices[0].message
    except (AttributeError, IndexError) as e:
        raise FloorPlanAnalysisError("Empty response from floor plan model") from e

    for call in message.tool_calls or []:
        if call.function.name != TOOL_NAME:
            continue
        try:
            args = json.loads(call.function.arguments)
        except (TypeError, json.JSONDecodeError) as e:
            raise FloorPlanAnalysisError(f"Could not decode {TOOL_NAME} arguments: {e}") from e
        if isinstance(args, dict) and isinstance(args.get("analysis"), dict):
            return args["analysis"]
        if isinstance(args, dict):
            return args
        raise FloorPlanAnalysisError(f"{TOOL_NAME} arguments are not an object")

    raise FloorPlanAnalysisError(f"Model did not call the {TOOL_NAME} tool")


def request_floor_plan_analysis(image_data_url: str, client: Optional[OpenAI] = None) -> Dict[str, Any]:
    """Send one image to the model and return the raw (unvalidated) analysis dict."""
    mime, _ = parse_data_url(image_data_url)
    client = client or _get_client()
    model = _get_model()
    logger.info("Requesting floor plan analysis from %s (%s)", model, mime)

    try:
        response = client.chat.completions.create(
            model=model,
            messages=[
                {"role": "system", "content": FLOOR_PLAN_SYSTEM_PROMPT},
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": FLOOR_PLAN_USER_PROMPT},
                        {"type": "image_url", "image_url": {"url": image_data_url}},
                    ],
                },
            ],
            tools=[floor_plan_tool()],
            tool_choice={"type": "function", "function": {"name": TOOL_NAME}},
        )
    except Exception as e:
        logger.error("Floor plan model request failed: %s", e)
        raise FloorPlanAnalysisError(f"Floor plan model request failed: {e}") from e

    analysis = extract_tool_arguments(response)
    logger.info("Extracted %s tool output", TOOL_NAME)
    return analysis


def analyze_floor_plan_data_url(image_data_url: str, client: Optional[OpenAI] = None) -> FloorPlanIngestResult:
    """Analyse a floor-plan image given as a data URL.

    Raises:
        FloorPlanAnalysisError: The request failed or returned no tool output.
        SchemaValidationError: The tool output does not match the analysis schema.
    """
    raw = request_floor_plan_analysis(image_data_url, client=client)
    return ingest_floor_plan_analysis(raw)


def analyze_floor_plan_image(image_path: str, client: Optional[OpenAI] = None) -> FloorPlanIngestResult:
    return analyze_floor_plan_data_url(image_file_to_data_url(image_path), client=client)
