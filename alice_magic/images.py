import base64
import binascii
import io
import logging
from dataclasses import dataclass

from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)

DOWNLOAD_FILENAME = "alice-magie.png"

# Formats the image model accepts as inline data. MPO is the multi-frame
# JPEG many phone cameras write; its first frame is a plain JPEG.
SERVICE_MIME_TYPES = {
    "PNG": "image/png",
    "JPEG": "image/jpeg",
    "MPO": "image/jpeg",
    "WEBP": "image/webp",
}


class ImageDecodeError(ValueError):
    """Raised when bytes or a data URL cannot be read as an image."""
    pass


def _encode_png(img: Image.Image) -> bytes:
    if img.mode not in ("RGB", "RGBA", "L", "LA", "P"):
        img = img.convert("RGBA")
    out = io.BytesIO()
    img.save(out, format="PNG")
    return out.getvalue()


@dataclass(frozen=True)
class ImageData:
    """
    An image as a self-describing encoded string: media type + base64 payload.

    Renders as ``data:<mime>;base64,<payload>``, the same representation
    used for the source photo and for the stylized result.
    """

    mime_type: str
    data: str

    @classmethod
    def from_bytes(cls, raw: bytes) -> "ImageData":
        """
        Sniff and verify raw file bytes, return them encoded.

        Formats the model does not take (GIF, BMP, TIFF, ...) are
        transcoded to PNG first.
        """
        if not raw:
            raise ImageDecodeError("Empty file")
        try:
            with Image.open(io.BytesIO(raw)) as img:
                image_format = img.format
                img.verify()
            mime_type = SERVICE_MIME_TYPES.get(image_format)
            if mime_type is None:
                with Image.open(io.BytesIO(raw)) as img:
                    raw = _encode_png(img)
                logger.debug("Transcoded %s upload to PNG", image_format)
                mime_type = "image/png"
        except (UnidentifiedImageError, OSError, SyntaxError) as e:
            raise ImageDecodeError(f"Not a readable image: {e}") from e

        logger.debug("Decoded image mime: %s, size: %d bytes", mime_type, len(raw))
        return cls(mime_type=mime_type, data=base64.b64encode(raw).decode("utf-8"))

    @classmethod
    def from_data_url(cls, data_url: str) -> "ImageData":
        header, sep, payload = data_url.partition(",")
        if not sep or not header.startswith("data:") or not header.endswith(";base64"):
            raise ImageDecodeError("Not a base64 data URL")
        mime_type = header[len("data:"):-len(";base64")] or "image/png"
        return cls(mime_type=mime_type, data=payload)

    def to_data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.data}"

    def to_bytes(self) -> bytes:
        try:
            return base64.b64decode(self.data, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ImageDecodeError(f"Invalid base64 payload: {e}") from e

    def to_png(self) -> bytes:
        """Return the image in a PNG container, transcoding when needed."""
        raw = self.to_bytes()
        if self.mime_type == "image/png":
            return raw
        try:
            with Image.open(io.BytesIO(raw)) as img:
                return _encode_png(img)
        except (UnidentifiedImageError, OSError) as e:
            raise ImageDecodeError(f"Cannot convert {self.mime_type} to PNG: {e}") from e

    def __repr__(self) -> str:
        return f"<ImageData(mime_type='{self.mime_type}', size={len(self.data)})>"
