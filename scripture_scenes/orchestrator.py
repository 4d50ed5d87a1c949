"""Sequencing engine for scene generation, chapter traversal and narration.

A ``SceneSession`` owns the sequence state for one user. Every operation is
async and at most one may be in flight at a time; a second call while one is
running is rejected with ``PreconditionViolation`` before any network call.

Failures from the service are classified at this boundary and stored as a
localized ``OperationError`` per operation, so surfaces never see raw SDK or
transport errors. The confirmed reference only moves forward once both the
scene description and the image for the next verse have been generated.
"""

from contextlib import contextmanager
from pathlib import Path
from typing import Optional

from loguru import logger

from .audio import AudioHandle, encode_wav
from .config import GenerationConfig
from .continuity import ContinuityManager
from .errors import ErrorKind, PreconditionViolation, VerseNotFound, classify
from .messages import localized_message
from .models import (
    AdvanceOutcome,
    AspectRatio,
    NarrationResult,
    Operation,
    OperationError,
    SceneGenerationResult,
    SequenceState,
    VoiceProfile,
)
from .reference import (
    ScriptureReference,
    format_reference,
    next_verse,
    normalize_reference,
    parse_reference,
)
from .service.base import SceneService
from .service.prompts import narration_input, voice_for


class SceneSession:
    """Orchestrates the generative service for one scene sequence."""

    def __init__(
        self,
        service: SceneService,
        config: Optional[GenerationConfig] = None,
        audio_dir: Optional[Path] = None,
    ):
        self.service = service
        self.config = config or GenerationConfig()
        self.audio_dir = audio_dir
        self.continuity = ContinuityManager()
        self.state = SequenceState(aspect_ratio=self.config.aspect_ratio)

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------

    @property
    def current_reference(self) -> Optional[ScriptureReference]:
        """The proposed reference while an advance is in flight, else the confirmed one."""
        if self.state.pending_reference is not None:
            return self.state.pending_reference
        return self.state.reference

    @property
    def current_reference_text(self) -> str:
        ref = self.current_reference
        return format_reference(ref) if ref else self.state.reference_text

    @property
    def busy(self) -> bool:
        return self.state.in_flight is not None

    def error_for(self, operation: Operation) -> Optional[OperationError]:
        return self.state.errors.get(Operation(operation))

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def generate_prompt(self, reference_text: str) -> Optional[SceneGenerationResult]:
        """Start a fresh scene for ``reference_text``.

        Continuity is reset before the call, so the service is asked to
        invent the cast. Returns None when the call fails.
        """
        self._require_idle()
        self._require(bool(reference_text and reference_text.strip()), "reference is blank")
        self._require(not self.state.active, "a sequence is already active")

        with self._operation(Operation.PROMPT):
            self._clear_scene()
            ref = parse_reference(reference_text)
            self.state.reference = ref
            self.state.reference_text = format_reference(ref) if ref else reference_text.strip()

            logger.info(f"Generating scene prompt for {self.state.reference_text}")
            try:
                result = await self.service.generate_scene_description(
                    self.state.reference_text, self.continuity.build_constraint()
                )
            except Exception as e:
                self._fail(Operation.PROMPT, e)
                return None

            self.state.prompt_text = result.scene_prompt
            self.continuity.merge(result)
            self._sync_characters()
            logger.info(f"Scene prompt ready with {len(result.character_descriptions)} character(s)")
            return result

    async def generate_image(
        self, prompt_text: str, aspect_ratio: Optional[AspectRatio] = None
    ) -> Optional[bytes]:
        """Illustrate ``prompt_text`` and activate the sequence on success."""
        self._require_idle()
        self._require(bool(prompt_text and prompt_text.strip()), "prompt is blank")
        ratio = self._coerce(AspectRatio, aspect_ratio or self.config.aspect_ratio, "aspect ratio")

        with self._operation(Operation.IMAGE):
            logger.info(f"Generating {ratio.value} image for {self.current_reference_text or 'prompt'}")
            try:
                image = await self.service.generate_image(prompt_text.strip(), ratio)
            except Exception as e:
                self._fail(Operation.IMAGE, e)
                return None

            self.state.image = image
            self.state.prompt_text = prompt_text
            self.state.aspect_ratio = ratio
            self.state.active = True
            logger.success(f"Image generated ({len(image)} bytes), sequence active")
            return image

    async def advance(self) -> AdvanceOutcome:
        """Generate the scene and image for the next verse of the sequence."""
        self._require_idle()
        self._require(self.state.active, "no active sequence")
        self._require(not self.continuity.is_empty, "no characters to continue from")
        self._require(self.state.reference is not None, "reference cannot be advanced")

        with self._operation(Operation.ADVANCE):
            next_ref = next_verse(self.state.reference)
            next_text = format_reference(next_ref)
            last_characters = self.continuity.snapshot()
            last_prompt = self.state.prompt_text

            self.state.pending_reference = next_ref
            logger.info(f"Advancing sequence to {next_text}")
            try:
                result = await self.service.generate_scene_description(
                    next_text, self.continuity.build_constraint()
                )
                self.continuity.merge(result)
                self.state.prompt_text = result.scene_prompt
                image = await self.service.generate_image(result.scene_prompt, self.state.aspect_ratio)
            except VerseNotFound as e:
                self.state.active = False
                self.state.prompt_text = last_prompt
                self.continuity.reset()
                self._sync_characters()
                self._fail(Operation.ADVANCE, e)
                return AdvanceOutcome.CHAPTER_ENDED
            except Exception as e:
                self.continuity.restore(last_characters)
                self.state.prompt_text = last_prompt
                self._sync_characters()
                self._fail(Operation.ADVANCE, e)
                return AdvanceOutcome.FAILED
            finally:
                self.state.pending_reference = None

            self.state.image = image
            self.state.reference = next_ref
            self.state.reference_text = next_text
            self._sync_characters()
            logger.success(f"Sequence advanced to {next_text}")
            return AdvanceOutcome.ADVANCED

    async def fetch_verse_text(
        self, reference_text: Optional[str] = None, language: Optional[str] = None
    ) -> Optional[str]:
        """Retrieve the verse text; it becomes the default narration text."""
        if reference_text is None:
            reference_text = self.current_reference_text
        self._require_idle()
        self._require(bool(reference_text and reference_text.strip()), "reference is blank")
        language = language or self.config.language

        with self._operation(Operation.VERSE):
            self.state.verse_text = ""
            query = normalize_reference(reference_text) or reference_text.strip()
            logger.info(f"Fetching verse text for {query} ({language})")
            try:
                text = await self.service.retrieve_verse_text(query, language)
            except Exception as e:
                self._fail(Operation.VERSE, e)
                return None

            self.state.verse_text = text
            return text

    async def generate_narration(
        self, text: Optional[str] = None, voice: Optional[VoiceProfile] = None
    ) -> Optional[NarrationResult]:
        """Narrate ``text`` (default: the fetched verse text) as a WAV handle.

        The previous handle is released before the new one is requested.
        """
        if text is None:
            text = self.state.verse_text
        self._require_idle()
        self._require(bool(text and text.strip()), "narration text is blank")
        profile = self._coerce(VoiceProfile, voice or self.config.voice, "voice")

        with self._operation(Operation.NARRATION):
            self._release_narration()
            logger.info(f"Generating narration with the {profile.value} voice")
            try:
                pcm = await self.service.generate_speech(
                    narration_input(text, profile), voice_for(profile)
                )
                handle = AudioHandle.create(encode_wav(pcm), directory=self.audio_dir)
            except Exception as e:
                self._fail(Operation.NARRATION, e)
                return None

            self.state.narration = NarrationResult(handle=handle, text=text)
            return self.state.narration

    def reset(self) -> None:
        """Drop the current sequence and start over."""
        self._require_idle()
        self._release_narration()
        self.continuity.reset()
        self.state = SequenceState(aspect_ratio=self.state.aspect_ratio)
        logger.info("Session reset")

    def close(self) -> None:
        self._release_narration()

    async def __aenter__(self) -> "SceneSession":
        return self

    async def __aexit__(self, *exc) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require_idle(self) -> None:
        if self.busy:
            self._require(False, f"{self.state.in_flight.value} already in flight")

    def _require(self, condition: bool, reason: str) -> None:
        if not condition:
            logger.debug(f"Rejected operation: {reason}")
            raise PreconditionViolation(reason)

    def _coerce(self, enum_cls, value, label: str):
        try:
            return enum_cls(value)
        except ValueError:
            self._require(False, f"unsupported {label}: {value!r}")

    @contextmanager
    def _operation(self, operation: Operation):
        self.state.in_flight = operation
        self.state.errors.pop(operation, None)
        try:
            yield
        finally:
            self.state.in_flight = None

    def _fail(self, operation: Operation, exc: Exception) -> None:
        kind = classify(exc)
        message = localized_message(kind, operation, self.config.locale)
        self.state.errors[operation] = OperationError(kind=kind, message=message)
        if kind is ErrorKind.VERSE_NOT_FOUND:
            logger.info(f"Chapter ended after {self.state.reference_text}")
        else:
            logger.error(f"{operation.value} failed ({kind.value}): {exc}")

    def _clear_scene(self) -> None:
        self.state.active = False
        self.state.image = None
        self.state.prompt_text = ""
        self.state.verse_text = ""
        self.state.errors.clear()
        self._release_narration()
        self.continuity.reset()
        self._sync_characters()

    def _release_narration(self) -> None:
        if self.state.narration is not None:
            self.state.narration.handle.release()
            self.state.narration = None

    def _sync_characters(self) -> None:
        self.state.characters = self.continuity.characters
