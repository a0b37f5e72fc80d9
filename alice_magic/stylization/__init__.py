"""
Stylization - client for the external image model.

The module provides:
- a generateContent client for the Gemini image model
- tagged response parts and their resolution
"""

from .image_client import StylizationClient, STYLE_PROMPT
from .parts import ImagePart, TextPart, Part, Resolution, parse_parts, resolve_parts

__all__ = [
    # Client
    "StylizationClient",
    "STYLE_PROMPT",
    # Parts
    "ImagePart",
    "TextPart",
    "Part",
    "Resolution",
    "parse_parts",
    "resolve_parts",
]
