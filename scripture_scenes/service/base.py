"""Capability contract consumed by the orchestrator."""

from typing import Protocol

from ..continuity import ContinuityConstraint
from ..models import AspectRatio, SceneGenerationResult


class SceneService(Protocol):
    """The network-facing generative service.

    Implementations raise the classified errors from ``scripture_scenes.errors``.
    """

    async def generate_scene_description(
        self, reference_text: str, constraint: ContinuityConstraint
    ) -> SceneGenerationResult:
        """Raises VerseNotFound, ServiceError, TransientServiceError or MalformedResponse."""
        ...

    async def generate_image(self, prompt: str, aspect_ratio: AspectRatio) -> bytes:
        """Raises NoImageProduced, ServiceError or TransientServiceError."""
        ...

    async def retrieve_verse_text(self, reference_text: str, language_code: str) -> str:
        """Raises EmptyResult, ServiceError or TransientServiceError."""
        ...

    async def generate_speech(self, text: str, voice_name: str) -> bytes:
        """Returns raw 16-bit mono PCM at 24 kHz."""
        ...
