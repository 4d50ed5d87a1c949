"""Gemini implementation of the scene service (text, Imagen and TTS)."""

import base64
import time
from contextlib import contextmanager
from typing import Optional

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types
from loguru import logger
from pydantic import BaseModel, Field, ValidationError

from ..config import Config, GeminiConfig
from ..continuity import ContinuityConstraint
from ..errors import (
    EmptyResult,
    MalformedResponse,
    NoAudioProduced,
    NoImageProduced,
    ServiceError,
    TransientServiceError,
    VerseNotFound,
)
from ..models import AspectRatio, SceneGenerationResult
from ..utils.text import parse_json_object
from .prompts import (
    STYLE_SUFFIX,
    VERSE_NOT_FOUND,
    build_scene_prompt,
    build_verse_text_prompt,
)


class CharacterRecord(BaseModel):
    name: str
    description: str


class ScenePayload(BaseModel):
    """Structured scene payload returned by the text model."""
    error: Optional[str] = None
    scene_prompt: Optional[str] = Field(default=None, alias="scenePrompt")
    character_descriptions: Optional[list[CharacterRecord]] = Field(
        default=None, alias="characterDescriptions"
    )


SCENE_RESPONSE_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={
        "error": types.Schema(
            type=types.Type.STRING,
            description="Optional error field.",
            nullable=True,
        ),
        "scenePrompt": types.Schema(
            type=types.Type.STRING,
            description="Detailed prompt used to generate the image.",
        ),
        "characterDescriptions": types.Schema(
            type=types.Type.ARRAY,
            description="One entry per character with its reusable visual description.",
            items=types.Schema(
                type=types.Type.OBJECT,
                properties={
                    "name": types.Schema(type=types.Type.STRING),
                    "description": types.Schema(type=types.Type.STRING),
                },
                required=["name", "description"],
            ),
        ),
    },
)


def parse_scene_response(raw_text: Optional[str]) -> SceneGenerationResult:
    """Validate a raw scene response into a SceneGenerationResult.

    Raises VerseNotFound for the boundary signal and MalformedResponse when
    the object cannot be extracted or misses a required field.
    """
    try:
        data = parse_json_object((raw_text or "").strip())
        payload = ScenePayload.model_validate(data)
    except (ValueError, ValidationError) as e:
        logger.error(f"Failed to parse scene response: {(raw_text or '')[:200]}")
        raise MalformedResponse("Scene response is not a valid scene object") from e

    if payload.error == VERSE_NOT_FOUND:
        raise VerseNotFound(VERSE_NOT_FOUND)

    if not payload.scene_prompt or not payload.scene_prompt.strip() or payload.character_descriptions is None:
        raise MalformedResponse("Scene response is missing scenePrompt or characterDescriptions")

    characters = {c.name: c.description for c in payload.character_descriptions}
    return SceneGenerationResult(
        scene_prompt=payload.scene_prompt.strip(),
        character_descriptions=characters,
    )


@contextmanager
def _translate_errors(action: str):
    """Reclassify SDK and transport failures into the generation error taxonomy."""
    try:
        yield
    except genai_errors.ServerError as e:
        logger.error(f"{action} failed with server error: {e}")
        raise TransientServiceError(str(e)) from e
    except httpx.TransportError as e:
        logger.error(f"{action} failed with transport error: {e}")
        raise TransientServiceError(str(e)) from e
    except genai_errors.APIError as e:
        logger.error(f"{action} failed: {e}")
        raise ServiceError(str(e)) from e


class GeminiSceneService:
    """Async Gemini adapter. The client is injected so tests can swap it."""

    def __init__(self, client: genai.Client, config: Optional[GeminiConfig] = None):
        self.client = client
        self.config = config or GeminiConfig()

    @classmethod
    def from_config(cls, config: Config) -> "GeminiSceneService":
        client = genai.Client(api_key=config.resolve_api_key())
        return cls(client, config.gemini)

    async def generate_scene_description(
        self, reference_text: str, constraint: ContinuityConstraint
    ) -> SceneGenerationResult:
        prompt = build_scene_prompt(reference_text, constraint)
        logger.debug(f"Requesting {constraint.mode} scene for {reference_text}")

        start = time.time()
        with _translate_errors("Scene description"):
            response = await self.client.aio.models.generate_content(
                model=self.config.text_model,
                contents=prompt,
                config=types.GenerateContentConfig(
                    response_mime_type="application/json",
                    response_schema=SCENE_RESPONSE_SCHEMA,
                ),
            )
        logger.debug(f"Scene description for {reference_text} took {time.time() - start:.2f}s")
        return parse_scene_response(response.text)

    async def generate_image(self, prompt: str, aspect_ratio: AspectRatio) -> bytes:
        full_prompt = prompt + STYLE_SUFFIX

        start = time.time()
        with _translate_errors("Image generation"):
            response = await self.client.aio.models.generate_images(
                model=self.config.image_model,
                prompt=full_prompt,
                config=types.GenerateImagesConfig(
                    number_of_images=1,
                    output_mime_type="image/jpeg",
                    aspect_ratio=AspectRatio(aspect_ratio).value,
                ),
            )
        logger.debug(f"Image generation took {time.time() - start:.2f}s")

        images = response.generated_images or []
        if not images or images[0].image is None or not images[0].image.image_bytes:
            # Usually the safety filter suppressed the output
            raise NoImageProduced("The model returned no image")
        return images[0].image.image_bytes

    async def retrieve_verse_text(self, reference_text: str, language_code: str) -> str:
        prompt = build_verse_text_prompt(reference_text, language_code)

        with _translate_errors("Verse text"):
            response = await self.client.aio.models.generate_content(
                model=self.config.text_model,
                contents=prompt,
            )

        text = (response.text or "").strip()
        if not text:
            raise EmptyResult(f"No text returned for {reference_text}")
        return text

    async def generate_speech(self, text: str, voice_name: str) -> bytes:
        with _translate_errors("Speech generation"):
            response = await self.client.aio.models.generate_content(
                model=self.config.speech_model,
                contents=text,
                config=types.GenerateContentConfig(
                    response_modalities=["AUDIO"],
                    speech_config=types.SpeechConfig(
                        voice_config=types.VoiceConfig(
                            prebuilt_voice_config=types.PrebuiltVoiceConfig(voice_name=voice_name),
                        ),
                    ),
                ),
            )

        data = _inline_audio(response)
        if not data:
            raise NoAudioProduced("The model returned no audio")
        return data


def _inline_audio(response) -> Optional[bytes]:
    try:
        data = response.candidates[0].content.parts[0].inline_data.data
    except (AttributeError, IndexError, TypeError):
        return None
    if isinstance(data, str):
        data = base64.b64decode(data)
    return data
