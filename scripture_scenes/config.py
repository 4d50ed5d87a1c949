import os
from pathlib import Path
from pydantic import BaseModel, Field
import yaml

from .models import AspectRatio, VoiceProfile

API_KEY_ENV_VARS = ("GEMINI_API_KEY", "API_KEY")


class GeminiConfig(BaseModel):
    api_key: str = Field(default="")
    text_model: str = Field(default="gemini-2.5-flash")
    image_model: str = Field(default="imagen-4.0-generate-001")
    speech_model: str = Field(default="gemini-2.5-flash-preview-tts")


class GenerationConfig(BaseModel):
    aspect_ratio: AspectRatio = Field(default=AspectRatio.PORTRAIT)
    language: str = Field(default="pt-BR")
    voice: VoiceProfile = Field(default=VoiceProfile.STANDARD_ADULT)
    locale: str = Field(default="pt-BR")
    output_dir: Path = Field(default=Path("output"))
    max_verses: int = Field(default=200, gt=0)


class Config(BaseModel):
    gemini: GeminiConfig = Field(default_factory=GeminiConfig)
    generation: GenerationConfig = Field(default_factory=GenerationConfig)
    log_level: str = Field(default="INFO")

    @classmethod
    def from_yaml(cls, path: Path) -> "Config":
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        return cls(**data)

    def to_yaml(self, path: Path):
        with open(path, "w", encoding="utf-8") as f:
            yaml.dump(self.model_dump(mode="json"), f, default_flow_style=False, allow_unicode=True)

    def resolve_api_key(self) -> str:
        """Return the configured key, falling back to the environment."""
        if self.gemini.api_key:
            return self.gemini.api_key
        for name in API_KEY_ENV_VARS:
            value = os.getenv(name, "")
            if value:
                return value
        raise ValueError(
            f"Gemini API key not found. Set gemini.api_key in the config or one of: {', '.join(API_KEY_ENV_VARS)}"
        )
