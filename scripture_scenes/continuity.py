"""Character continuity across the scenes of a sequence."""

from dataclasses import dataclass, field
from typing import Literal

from .models import SceneGenerationResult

ContinuityMode = Literal["fresh", "continuation"]


@dataclass(frozen=True)
class ContinuityConstraint:
    """Instruction mode for the scene-description call.

    In "fresh" mode the service invents and fixes character appearances;
    in "continuation" mode it must reuse ``characters`` verbatim and may
    only add new ones.
    """
    mode: ContinuityMode = "fresh"
    characters: tuple[tuple[str, str], ...] = field(default_factory=tuple)

    @property
    def is_continuation(self) -> bool:
        return self.mode == "continuation"

    def as_records(self) -> list[dict[str, str]]:
        return [{"name": name, "description": desc} for name, desc in self.characters]


class ContinuityManager:
    """Owns the evolving name -> visual description map for one sequence."""

    def __init__(self, characters: dict[str, str] | None = None):
        self._characters: dict[str, str] = dict(characters or {})

    @property
    def characters(self) -> dict[str, str]:
        return dict(self._characters)

    @property
    def is_empty(self) -> bool:
        return not self._characters

    def build_constraint(self) -> ContinuityConstraint:
        if self.is_empty:
            return ContinuityConstraint()
        return ContinuityConstraint(
            mode="continuation",
            characters=tuple(self._characters.items()),
        )

    def merge(self, result: SceneGenerationResult) -> None:
        # The service returns the full cast; characters it omits are dropped.
        self._characters = dict(result.character_descriptions)

    def reset(self) -> None:
        self._characters = {}

    def snapshot(self) -> dict[str, str]:
        return dict(self._characters)

    def restore(self, snapshot: dict[str, str]) -> None:
        self._characters = dict(snapshot)
