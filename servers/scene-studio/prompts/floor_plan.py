"""Prompt and tool schema for floor-plan image analysis.

The JSON Schema mirrors the analysis wire format accepted by
``solvers.floor_plan_validation``; the model must answer by calling the
``floorPlanAnalysis`` function with ``{"analysis": <FloorPlanAnalysis>}``.
"""

FLOOR_PLAN_SYSTEM_PROMPT = """You are an expert architect specializing in analyzing 2D floor plan images.
Analyze the provided floor plan image and extract detailed information.

Identify:
1. OVERALL DIMENSIONS: width and height of the whole floor plan area in the image, in pixels.
2. SCALE: pixels per meter if it can be estimated from labels or standard door widths. Omit it otherwise.
3. ROOMS: every distinct room or area, with
   - a unique id ("room-1", "room-2", ...)
   - a name if identifiable ("Living Room", "Bedroom 1")
   - the floor polygon as a list of {x, y} pixel coordinates
   - the area in square pixels
   - the center point {x, y}
4. WALLS: every structural wall segment, with a unique id ("wall-1"), start {x, y}, end {x, y},
   and thickness in pixels if it can be estimated.
5. DOORS: every door, with a unique id ("door-1"), the id of the wall it sits on ("wallId"),
   its center position {x, y} on the wall line, its width in pixels, and swingDirection
   (inward, outward, sliding, none) if discernible.
6. WINDOWS: every window, with a unique id ("window-1"), "wallId", center position {x, y},
   width in pixels, and height / sillHeight only if they can be inferred.
7. OBJECTS (optional): large furniture or fixed objects that are clearly visible, with a
   label and a pixel bounding box.

RULES:
- All coordinates are relative to the top-left corner (0, 0) of the image.
- Every door and window wallId must be the id of one of the walls you return.
- Assume standard architectural conventions where the drawing gives no detail.
- Answer strictly through the floorPlanAnalysis tool."""

FLOOR_PLAN_USER_PROMPT = (
    "Please analyze the floor plan in the image and provide detailed structural "
    "information using the floorPlanAnalysis tool."
)

_POINT = {
    "type": "object",
    "properties": {"x": {"type": "number"}, "y": {"type": "number"}},
    "required": ["x", "y"],
}

FLOOR_PLAN_ANALYSIS_SCHEMA = {
    "type": "object",
    "properties": {
        "overallDimensions": {
            "type": "object",
            "properties": {"width": {"type": "number"}, "height": {"type": "number"}},
            "required": ["width", "height"],
        },
        "scale": {"type": "number", "description": "Pixels per meter"},
        "rooms": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "id": {"type": "string"},
                    "name": {"type": "string"},
                    "polygon": {"type": "array", "items": _POINT},
                    "area": {"type": "number"},
                    "center": _POINT,
                    "color": {"type": "string"},
                },
                "required": ["id", "polygon"],
            },
        },
        "walls": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "id": {"type": "string"},
                    "start": _POINT,
                    "end": _POINT,
                    "thickness": {"type": "number"},
                },
                "required": ["id", "start", "end"],
            },
        },
        "doors": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "id": {"type": "string"},
                    "wallId": {"type": "string"},
                    "position": _POINT,
                    "width": {"type": "number"},
                    "swingDirection": {"type": "string", "enum": ["inward", "outward", "sliding", "none"]},
                },
                "required": ["id", "wallId", "position", "width"],
            },
        },
        "windows": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "id": {"type": "string"},
                    "wallId": {"type": "string"},
                    "position": _POINT,
                    "width": {"type": "number"},
                    "height": {"type": "number"},
                    "sillHeight": {"type": "number"},
                },
                "required": ["id", "wallId", "position", "width"],
            },
        },
        "objects": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "id": {"type": "string"},
                    "label": {"type": "string"},
                    "boundingBox": {
                        "type": "object",
                        "properties": {
                            "x": {"type": "number"},
                            "y": {"type": "number"},
                            "width": {"type": "number"},
                            "height": {"type": "number"},
                        },
                        "required": ["x", "y", "width", "height"],
                    },
                },
                "required": ["id", "label", "boundingBox"],
            },
        },
    },
    "required": ["overallDimensions", "rooms", "walls", "doors", "windows"],
}


def floor_plan_tool() -> dict:
    """Chat-completions tool definition for the forced ``floorPlanAnalysis`` call."""
    return {
        "type": "function",
        "function": {
            "name": "floorPlanAnalysis",
            "description": "Analyzes a floor plan image and returns structured data about rooms, walls, doors and windows.",
            "parameters": {
                "type": "object",
                "properties": {"analysis": FLOOR_PLAN_ANALYSIS_SCHEMA},
                "required": ["analysis"],
            },
        },
    }
