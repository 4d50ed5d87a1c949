"""Tests for the Gemini adapter with a mocked google-genai client."""

import asyncio
import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from google.genai import errors as genai_errors

from scripture_scenes.config import Config, GeminiConfig
from scripture_scenes.continuity import ContinuityConstraint
from scripture_scenes.errors import (
    EmptyResult,
    MalformedResponse,
    NoAudioProduced,
    NoImageProduced,
    ServiceError,
    TransientServiceError,
    VerseNotFound,
)
from scripture_scenes.models import AspectRatio
from scripture_scenes.service.gemini import GeminiSceneService, parse_scene_response
from scripture_scenes.service.prompts import STYLE_SUFFIX


SCENE_JSON = json.dumps({
    "scenePrompt": "Uma vasta escuridão sobre as águas, com uma luz suave surgindo.",
    "characterDescriptions": [
        {"name": "Deus", "description": "Luz dourada sem forma humana."},
        {"name": "Anjo", "description": "Figura luminosa com túnica branca."},
    ],
}, ensure_ascii=False)


@pytest.fixture
def client():
    mock = MagicMock()
    mock.aio.models.generate_content = AsyncMock()
    mock.aio.models.generate_images = AsyncMock()
    return mock


@pytest.fixture
def gemini(client):
    return GeminiSceneService(client, GeminiConfig())


def _text_response(text):
    return SimpleNamespace(text=text)


def _audio_response(data):
    part = SimpleNamespace(inline_data=SimpleNamespace(data=data))
    return SimpleNamespace(candidates=[SimpleNamespace(content=SimpleNamespace(parts=[part]))])


# ---------------------------------------------------------------------------
# Scene payload parsing
# ---------------------------------------------------------------------------


class TestParseSceneResponse:

    def test_plain_json(self):
        result = parse_scene_response(SCENE_JSON)
        assert result.scene_prompt.startswith("Uma vasta escuridão")
        assert list(result.character_descriptions) == ["Deus", "Anjo"]

    def test_json_wrapped_in_fence_and_prose(self):
        raw = f"Aqui está a cena:\n```json\n{SCENE_JSON}\n```\nEspero que ajude."
        result = parse_scene_response(raw)
        assert result.character_descriptions["Anjo"] == "Figura luminosa com túnica branca."

    def test_json_with_leading_text(self):
        result = parse_scene_response(f"Resposta: {SCENE_JSON} fim")
        assert len(result.character_descriptions) == 2

    def test_empty_character_list_is_valid(self):
        result = parse_scene_response('{"scenePrompt": "céu estrelado", "characterDescriptions": []}')
        assert result.character_descriptions == {}

    def test_verse_not_found(self):
        with pytest.raises(VerseNotFound):
            parse_scene_response('{ "error": "VERSE_NOT_FOUND" }')

    @pytest.mark.parametrize("raw", [
        '{"characterDescriptions": []}',
        '{"scenePrompt": "cena"}',
        '{"scenePrompt": "   ", "characterDescriptions": []}',
        '{"scenePrompt": "cena", "characterDescriptions": [{"name": "Eli"}]}',
        '{"error": "OTHER"}',
        "not json at all",
        "",
        None,
    ])
    def test_malformed(self, raw):
        with pytest.raises(MalformedResponse):
            parse_scene_response(raw)


# ---------------------------------------------------------------------------
# Scene description
# ---------------------------------------------------------------------------


class TestSceneDescription:

    def test_fresh_request(self, gemini, client):
        client.aio.models.generate_content.return_value = _text_response(SCENE_JSON)

        result = asyncio.run(gemini.generate_scene_description("Gênesis 1:2", ContinuityConstraint()))

        assert len(result.character_descriptions) == 2
        kwargs = client.aio.models.generate_content.call_args.kwargs
        assert kwargs["model"] == "gemini-2.5-flash"
        assert "'Gênesis 1:2'" in kwargs["contents"]
        assert "criar descrições detalhadas" in kwargs["contents"]
        assert kwargs["config"].response_mime_type == "application/json"

    def test_continuation_request_lists_characters(self, gemini, client):
        client.aio.models.generate_content.return_value = _text_response(SCENE_JSON)
        constraint = ContinuityConstraint(
            mode="continuation",
            characters=(("Eli", "Idoso e pesado, de baixa estatura."),),
        )

        asyncio.run(gemini.generate_scene_description("1 Samuel 4:18", constraint))

        prompt = client.aio.models.generate_content.call_args.kwargs["contents"]
        assert "Você DEVE usar as seguintes descrições" in prompt
        assert '"name": "Eli"' in prompt
        assert "Idoso e pesado, de baixa estatura." in prompt

    def test_server_error_is_transient(self, gemini, client):
        client.aio.models.generate_content.side_effect = genai_errors.ServerError(
            500, {"error": {"code": 500, "message": "internal", "status": "INTERNAL"}}
        )
        with pytest.raises(TransientServiceError):
            asyncio.run(gemini.generate_scene_description("Gênesis 1:1", ContinuityConstraint()))

    def test_transport_error_is_transient(self, gemini, client):
        client.aio.models.generate_content.side_effect = httpx.ConnectError("connection refused")
        with pytest.raises(TransientServiceError):
            asyncio.run(gemini.generate_scene_description("Gênesis 1:1", ContinuityConstraint()))

    def test_client_error_is_service_error(self, gemini, client):
        client.aio.models.generate_content.side_effect = genai_errors.ClientError(
            400, {"error": {"code": 400, "message": "bad request", "status": "INVALID_ARGUMENT"}}
        )
        with pytest.raises(ServiceError):
            asyncio.run(gemini.generate_scene_description("Gênesis 1:1", ContinuityConstraint()))


# ---------------------------------------------------------------------------
# Images, verse text and speech
# ---------------------------------------------------------------------------


class TestImage:

    def test_generate_image_appends_style(self, gemini, client):
        image = SimpleNamespace(image=SimpleNamespace(image_bytes=b"jpeg"))
        client.aio.models.generate_images.return_value = SimpleNamespace(generated_images=[image])

        data = asyncio.run(gemini.generate_image("Moisés diante da sarça", AspectRatio.LANDSCAPE))

        assert data == b"jpeg"
        kwargs = client.aio.models.generate_images.call_args.kwargs
        assert kwargs["model"] == "imagen-4.0-generate-001"
        assert kwargs["prompt"] == "Moisés diante da sarça" + STYLE_SUFFIX
        assert kwargs["config"].aspect_ratio == "16:9"
        assert kwargs["config"].number_of_images == 1

    @pytest.mark.parametrize("images", [None, []])
    def test_no_image(self, gemini, client, images):
        client.aio.models.generate_images.return_value = SimpleNamespace(generated_images=images)
        with pytest.raises(NoImageProduced):
            asyncio.run(gemini.generate_image("cena", AspectRatio.PORTRAIT))


class TestVerseText:

    def test_language_name_in_prompt(self, gemini, client):
        client.aio.models.generate_content.return_value = _text_response("  In the beginning...  ")

        text = asyncio.run(gemini.retrieve_verse_text("Gênesis 1:1", "en-US"))

        assert text == "In the beginning..."
        assert "Inglês (EUA)" in client.aio.models.generate_content.call_args.kwargs["contents"]

    def test_unknown_language_falls_back(self, gemini, client):
        client.aio.models.generate_content.return_value = _text_response("No princípio...")
        asyncio.run(gemini.retrieve_verse_text("Gênesis 1:1", "xx-XX"))
        assert "Português (Brasil)" in client.aio.models.generate_content.call_args.kwargs["contents"]

    @pytest.mark.parametrize("text", ["", "   ", None])
    def test_empty_result(self, gemini, client, text):
        client.aio.models.generate_content.return_value = _text_response(text)
        with pytest.raises(EmptyResult):
            asyncio.run(gemini.retrieve_verse_text("Gênesis 1:1", "pt-BR"))


class TestSpeech:

    def test_returns_inline_pcm(self, gemini, client):
        client.aio.models.generate_content.return_value = _audio_response(b"\x00\x01")

        data = asyncio.run(gemini.generate_speech("Haja luz.", "Kore"))

        assert data == b"\x00\x01"
        kwargs = client.aio.models.generate_content.call_args.kwargs
        assert kwargs["model"] == "gemini-2.5-flash-preview-tts"
        assert kwargs["config"].speech_config.voice_config.prebuilt_voice_config.voice_name == "Kore"

    def test_base64_payload_is_decoded(self, gemini, client):
        client.aio.models.generate_content.return_value = _audio_response("AAE=")
        assert asyncio.run(gemini.generate_speech("texto", "Puck")) == b"\x00\x01"

    @pytest.mark.parametrize("response", [
        SimpleNamespace(candidates=[]),
        SimpleNamespace(candidates=None),
        _audio_response(None),
    ])
    def test_no_audio(self, gemini, client, response):
        client.aio.models.generate_content.return_value = response
        with pytest.raises(NoAudioProduced):
            asyncio.run(gemini.generate_speech("texto", "Puck"))


def test_from_config_uses_resolved_key(monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "env-key")
    with patch("scripture_scenes.service.gemini.genai.Client") as mock_client:
        service = GeminiSceneService.from_config(Config())
    mock_client.assert_called_once_with(api_key="env-key")
    assert service.config.image_model == "imagen-4.0-generate-001"
