from .logger import setup_logger
from .text import parse_json_object, image_slug

__all__ = ["setup_logger", "parse_json_object", "image_slug"]
