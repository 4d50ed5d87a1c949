"""Save generated scene images and narration to disk."""

from pathlib import Path

from loguru import logger

from .utils.text import image_slug


def image_filename(reference_text: str, suffix: str) -> str:
    """
    Build the download name for a scene image.

    "Gênesis 1:5" with suffix "scene" becomes "gênesis_1_5_scene.jpg".
    """
    return f"{image_slug(reference_text)}_{suffix}.jpg"


def save_image(image: bytes, directory: Path, reference_text: str, suffix: str = "scene") -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / image_filename(reference_text, suffix)
    path.write_bytes(image)
    logger.info(f"Saved image to {path}")
    return path


def save_audio(wav_data: bytes, path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(wav_data)
    logger.info(f"Saved narration to {path}")
    return path
