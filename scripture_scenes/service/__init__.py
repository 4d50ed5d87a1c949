from .base import SceneService
from .gemini import GeminiSceneService, parse_scene_response
from .prompts import STYLE_SUFFIX, VERSE_NOT_FOUND

__all__ = [
    "SceneService",
    "GeminiSceneService",
    "parse_scene_response",
    "STYLE_SUFFIX",
    "VERSE_NOT_FOUND",
]
