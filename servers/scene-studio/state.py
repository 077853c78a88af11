"""Scene state management: holds scenes and floor-plan analyses in memory."""

from dataclasses import replace
from typing import Dict, List, Optional
import uuid

from floor_plan import FloorPlanAnalysis
from models import Component, Model, Scene, replace_component, replace_model, scene_to_dict


def _new_id() -> str:
    return str(uuid.uuid4())[:8]


class SceneState:
    """In-memory store for loaded scenes and ingested floor-plan analyses.

    Scenes are immutable; edits swap in a new Scene under the same id.
    """

    def __init__(self):
        self._scenes: Dict[str, Scene] = {}
        self._analyses: Dict[str, FloorPlanAnalysis] = {}
        self._analysis_images: Dict[str, str] = {}

    # -- scenes ------------------------------------------------------------

    def add_scene(self, scene: Scene) -> str:
        """Store a scene and return its ID (the scene's own id when it has one)."""
        scene_id = scene.id or _new_id()
        if scene.id is None:
            scene = replace(scene, id=scene_id)
        self._scenes[scene_id] = scene
        return scene_id

    def get_scene(self, scene_id: str) -> Optional[Scene]:
        return self._scenes.get(scene_id)

    def get_scene_dict(self, scene_id: str) -> Optional[dict]:
        scene = self.get_scene(scene_id)
        if scene is None:
            return None
        return scene_to_dict(scene)

    def get_model(self, scene_id: str, model_id: str) -> Optional[Model]:
        scene = self.get_scene(scene_id)
        if scene is None:
            return None
        for model in scene.objects:
            if model.id == model_id:
                return model
        return None

    def update_component(self, scene_id: str, model_id: str, component: Component) -> Scene:
        """Replace the component with ``component.id`` inside one model.

        Raises KeyError naming the scene, model or component that was not found.
        """
        scene = self.get_scene(scene_id)
        if scene is None:
            raise KeyError(f"Scene {scene_id} not found")
        model = self.get_model(scene_id, model_id)
        if model is None:
            raise KeyError(f"Model {model_id} not found")
        try:
            new_model = replace_component(model, component)
        except KeyError:
            raise KeyError(f"Component {component.id} not found in model {model_id}") from None
        new_scene = replace_model(scene, new_model)
        self._scenes[scene_id] = new_scene
        return new_scene

    def list_scenes(self) -> List[str]:
        return list(self._scenes.keys())

    def delete_scene(self, scene_id: str) -> bool:
        if scene_id in self._scenes:
            del self._scenes[scene_id]
            return True
        return False

    # -- floor-plan analyses -------------------------------------------------

    def add_analysis(self, analysis: FloorPlanAnalysis, image: Optional[str] = None) -> str:
        """Store an analysis, optionally with the image data URL it came from."""
        analysis_id = _new_id()
        self._analyses[analysis_id] = analysis
        if image is not None:
            self._analysis_images[analysis_id] = image
        return analysis_id

    def get_analysis(self, analysis_id: str) -> Optional[FloorPlanAnalysis]:
        return self._analyses.get(analysis_id)

    def get_analysis_image(self, analysis_id: str) -> Optional[str]:
        return self._analysis_images.get(analysis_id)

    def list_analyses(self) -> List[str]:
        return list(self._analyses.keys())
