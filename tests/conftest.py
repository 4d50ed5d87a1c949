"""Shared fixtures: an in-memory scene service and sessions built on it."""

import pytest

from scripture_scenes.config import GenerationConfig
from scripture_scenes.models import SceneGenerationResult
from scripture_scenes.orchestrator import SceneSession


GENESIS_CAST = {
    "Deus": "Presença de luz dourada e suave, sem forma humana definida.",
    "Narrador": "Ancião do Oriente Médio, pele morena, barba grisalha, túnica de linho bege.",
}

FAKE_JPEG = b"\xff\xd8\xff\xe0fake-jpeg\xff\xd9"
FAKE_PCM = b"\x01\x00\x02\x00\x03\x00\x04\x00"


class FakeSceneService:
    """Scripted stand-in for the Gemini adapter.

    Each capability pops the next scripted response; exceptions are raised.
    ``before_call`` is awaited at the start of every call so tests can
    inspect the session while an operation is in flight.
    """

    def __init__(self):
        self.scenes: list = []
        self.images: list = []
        self.verses: list = []
        self.speech: list = []
        self.calls: list[tuple] = []
        self.before_call = None

    async def _next(self, queue: list, call: tuple):
        self.calls.append(call)
        if self.before_call is not None:
            await self.before_call(call)
        if not queue:
            raise AssertionError(f"No scripted response for {call[0]}")
        response = queue.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    async def generate_scene_description(self, reference_text, constraint):
        return await self._next(self.scenes, ("scene", reference_text, constraint))

    async def generate_image(self, prompt, aspect_ratio):
        return await self._next(self.images, ("image", prompt, aspect_ratio))

    async def retrieve_verse_text(self, reference_text, language_code):
        return await self._next(self.verses, ("verse", reference_text, language_code))

    async def generate_speech(self, text, voice_name):
        return await self._next(self.speech, ("speech", text, voice_name))

    def calls_to(self, name: str) -> list[tuple]:
        return [c for c in self.calls if c[0] == name]


def scene(prompt: str, characters: dict | None = None) -> SceneGenerationResult:
    return SceneGenerationResult(
        scene_prompt=prompt,
        character_descriptions=dict(GENESIS_CAST if characters is None else characters),
    )


@pytest.fixture
def service():
    return FakeSceneService()


@pytest.fixture
def session(service, tmp_path):
    s = SceneSession(service, GenerationConfig(), audio_dir=tmp_path)
    yield s
    s.close()
