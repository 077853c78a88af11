"""Tests for the floor-plan vision client, using a stub in place of the OpenAI client."""

import base64
import io
import json
import os
import sys
from types import SimpleNamespace

import pytest
from PIL import Image

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from errors import FloorPlanAnalysisError, SchemaValidationError
from services.vision import (
    analyze_floor_plan_data_url, analyze_floor_plan_image, detect_mime_type,
    extract_tool_arguments, image_file_to_data_url, parse_data_url,
)


def _png_bytes():
    buf = io.BytesIO()
    Image.new("RGB", (8, 8), "white").save(buf, format="PNG")
    return buf.getvalue()


def _data_url():
    return "data:image/png;base64," + base64.b64encode(_png_bytes()).decode()


def _response(arguments, name="floorPlanAnalysis"):
    call = SimpleNamespace(function=SimpleNamespace(name=name, arguments=arguments))
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(tool_calls=[call]))])


class StubClient:
    """Records the request and replays a canned chat completion."""

    def __init__(self, response=None, error=None):
        self.requests = []
        self._response = response
        self._error = error
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._create))

    def _create(self, **kwargs):
        self.requests.append(kwargs)
        if self._error is not None:
            raise self._error
        return self._response


# ---------------------------------------------------------------------------
# Image encoding
# ---------------------------------------------------------------------------

def test_detect_mime_type_from_content():
    assert detect_mime_type(_png_bytes()) == "image/png"
    with pytest.raises(FloorPlanAnalysisError):
        detect_mime_type(b"not an image")


def test_image_file_to_data_url(tmp_path):
    path = tmp_path / "plan.png"
    path.write_bytes(_png_bytes())
    mime, raw = parse_data_url(image_file_to_data_url(str(path)))
    assert mime == "image/png"
    assert raw == _png_bytes()


@pytest.mark.parametrize("url", ["", "data:text/plain;base64,AAAA", "image/png;base64,AAAA", "data:image/png;base64,@@@"])
def test_bad_data_urls_are_rejected(url):
    with pytest.raises(FloorPlanAnalysisError):
        parse_data_url(url)


# ---------------------------------------------------------------------------
# Tool output extraction
# ---------------------------------------------------------------------------

def test_wrapped_and_bare_arguments_are_unwrapped(minimal_floor_plan):
    wrapped = _response(json.dumps({"analysis": minimal_floor_plan}))
    bare = _response(json.dumps(minimal_floor_plan))
    assert extract_tool_arguments(wrapped) == minimal_floor_plan
    assert extract_tool_arguments(bare) == minimal_floor_plan


def test_missing_tool_call_raises():
    with pytest.raises(FloorPlanAnalysisError, match="did not call"):
        extract_tool_arguments(_response("{}", name="somethingElse"))


def test_undecodable_arguments_raise():
    with pytest.raises(FloorPlanAnalysisError, match="Could not decode"):
        extract_tool_arguments(_response("{not json"))


# ---------------------------------------------------------------------------
# End to end with a stub client
# ---------------------------------------------------------------------------

def test_analysis_request_forces_the_tool(minimal_floor_plan):
    client = StubClient(_response(json.dumps({"analysis": minimal_floor_plan})))
    result = analyze_floor_plan_data_url(_data_url(), client=client)
    assert result.degraded is False
    assert result.analysis.walls[0].id == "wall-1"

    request = client.requests[0]
    assert request["tool_choice"] == {"type": "function", "function": {"name": "floorPlanAnalysis"}}
    assert request["tools"][0]["function"]["parameters"]["required"] == ["analysis"]
    image_part = request["messages"][1]["content"][1]
    assert image_part["image_url"]["url"].startswith("data:image/png;base64,")


def test_image_path_entry_point(tmp_path, minimal_floor_plan):
    path = tmp_path / "plan.png"
    path.write_bytes(_png_bytes())
    client = StubClient(_response(json.dumps({"analysis": minimal_floor_plan})))
    assert analyze_floor_plan_image(str(path), client=client).analysis.rooms[0].id == "room-1"


def test_invalid_tool_output_raises_schema_error():
    client = StubClient(_response(json.dumps({"analysis": {"rooms": []}})))
    with pytest.raises(SchemaValidationError):
        analyze_floor_plan_data_url(_data_url(), client=client)


def test_transport_failure_is_wrapped():
    client = StubClient(error=ConnectionError("boom"))
    with pytest.raises(FloorPlanAnalysisError, match="boom"):
        analyze_floor_plan_data_url(_data_url(), client=client)


def test_missing_api_key_raises(monkeypatch):
    monkeypatch.delenv("FLOOR_PLAN_VLM_API_KEY", raising=False)
    monkeypatch.delenv("GOOGLE_GENERATIVE_AI_API_KEY", raising=False)
    with pytest.raises(FloorPlanAnalysisError, match="No API key"):
        analyze_floor_plan_data_url(_data_url())
