import logging
import time
from typing import List, Optional

import httpx

from alice_magic.errors import StylizationError
from alice_magic.images import ImageData
from alice_magic.stylization.parts import Part, TextPart, parse_parts

logger = logging.getLogger(__name__)

STYLE_PROMPT = (
    "Transform this image into a vibrant, high-quality 3D Disney/Pixar style cartoon. "
    "Use magical lighting, smooth textures, and bold cinematic colors. "
    "If it's a person, make them a hero character. "
    "If it's a house or object, make it look like a magical location from a movie. "
    "Keep the original structure recognizable but stylize everything to look premium and cute."
)


class StylizationClient:
    """
    Gemini image model via generateContent.

    - one inline image + one instruction per request
    - returns the response as tagged parts (ImagePart | TextPart)
    - single attempt, no retries
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.5-flash-image",
        base_url: str = "https://generativelanguage.googleapis.com",
        timeout: float = 120.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

        self.client = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            transport=transport,
            headers={
                "x-goog-api-key": self.api_key,
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
        )

    async def close(self):
        """Explicit client shutdown."""
        await self.client.aclose()

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/v1beta/models/{self.model}:generateContent"

    @staticmethod
    def build_body(image: ImageData, prompt: str) -> dict:
        return {
            "contents": [
                {
                    "role": "user",
                    "parts": [
                        {"inline_data": {"mime_type": image.mime_type, "data": image.data}},
                        {"text": prompt},
                    ],
                }
            ],
            "generationConfig": {
                "responseModalities": ["TEXT", "IMAGE"]
            },
        }

    @staticmethod
    def _error_message(resp: httpx.Response) -> str:
        try:
            error = resp.json().get("error") or {}
            message = error.get("message") or resp.text
        except ValueError:
            message = resp.text
        return f"Gemini API error {resp.status_code}: {message}"

    async def stylize(self, image: ImageData, prompt: str = STYLE_PROMPT) -> List[Part]:
        start = time.monotonic()

        logger.debug("Sending request to Gemini model=%s, input mime=%s", self.model, image.mime_type)

        resp = await self.client.post(self.endpoint, json=self.build_body(image, prompt))
        if resp.status_code >= 400:
            message = self._error_message(resp)
            logger.error(message)
            raise StylizationError(message, status_code=resp.status_code)

        data = resp.json()
        candidates = data.get("candidates") or []
        if not candidates:
            block_reason = (data.get("promptFeedback") or {}).get("blockReason")
            logger.warning("Gemini returned no candidates (blockReason=%s)", block_reason)
            return [TextPart(f"Anfrage blockiert: {block_reason}")] if block_reason else []

        content = candidates[0].get("content") or {}
        parts = parse_parts(content.get("parts") or [])

        elapsed = time.monotonic() - start
        logger.info("Gemini execution time: %.2fs, %d part(s)", elapsed, len(parts))
        return parts
