"""Data models for scene sequences, generation results and narration."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from .audio import AudioHandle
from .errors import ErrorKind
from .reference import ScriptureReference


class AspectRatio(str, Enum):
    PORTRAIT = "9:16"
    LANDSCAPE = "16:9"


class VoiceProfile(str, Enum):
    STANDARD_ADULT = "standard-adult"
    CHILD = "child"


class Operation(str, Enum):
    PROMPT = "prompt"
    IMAGE = "image"
    ADVANCE = "advance"
    VERSE = "verse"
    NARRATION = "narration"


class AdvanceOutcome(str, Enum):
    ADVANCED = "advanced"
    CHAPTER_ENDED = "chapter_ended"
    FAILED = "failed"


@dataclass
class SceneGenerationResult:
    scene_prompt: str = ""
    character_descriptions: dict[str, str] = field(default_factory=dict)


@dataclass
class OperationError:
    kind: ErrorKind
    message: str


@dataclass
class NarrationResult:
    handle: AudioHandle
    text: str


@dataclass
class SequenceState:
    active: bool = False
    reference: Optional[ScriptureReference] = None  # confirmed
    pending_reference: Optional[ScriptureReference] = None  # proposed, in flight only
    reference_text: str = ""
    prompt_text: str = ""
    characters: dict[str, str] = field(default_factory=dict)
    image: Optional[bytes] = None
    aspect_ratio: AspectRatio = AspectRatio.PORTRAIT
    verse_text: str = ""
    narration: Optional[NarrationResult] = None
    errors: dict[Operation, OperationError] = field(default_factory=dict)
    in_flight: Optional[Operation] = None
