from dataclasses import dataclass
from typing import List, Optional, Sequence, Union

from alice_magic.images import ImageData


@dataclass(frozen=True)
class ImagePart:
    image: ImageData


@dataclass(frozen=True)
class TextPart:
    text: str


Part = Union[ImagePart, TextPart]


@dataclass(frozen=True)
class Resolution:
    """Outcome of a service response: an image, or the reason there is none."""
    image: Optional[ImageData] = None
    text: Optional[str] = None


def parse_parts(raw_parts: Sequence[dict]) -> List[Part]:
    """
    Turn generateContent parts into tagged parts.
    Accepts both camelCase and snake_case keys.
    """
    parts: List[Part] = []
    for raw in raw_parts:
        inline = raw.get("inlineData") or raw.get("inline_data")
        if inline and inline.get("data"):
            mime = inline.get("mimeType") or inline.get("mime_type") or "image/png"
            parts.append(ImagePart(ImageData(mime_type=mime, data=inline["data"])))
        elif raw.get("text"):
            parts.append(TextPart(raw["text"]))
    return parts


def resolve_parts(parts: Sequence[Part]) -> Resolution:
    """First image wins; otherwise the first text explains why there is none."""
    for part in parts:
        if isinstance(part, ImagePart):
            return Resolution(image=part.image)
    for part in parts:
        if isinstance(part, TextPart) and part.text.strip():
            return Resolution(text=part.text.strip())
    return Resolution()
