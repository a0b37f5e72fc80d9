import io
from typing import List, Optional

import pytest
from PIL import Image

from alice_magic.controller import SessionRegistry, TransformationController
from alice_magic.images import ImageData
from alice_magic.stylization import ImagePart

VALID_KEY = "AIzaSy-test-key-0123456789"


def make_image_bytes(color="red", image_format="PNG", size=(4, 4)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format=image_format)
    return buffer.getvalue()


class FakeClient:
    """Stands in for StylizationClient; optionally blocks until `gate` is set."""

    def __init__(self, parts: Optional[List] = None, error: Optional[Exception] = None, gate=None):
        self.parts = parts if parts is not None else []
        self.error = error
        self.gate = gate
        self.calls = []
        self.closed = False

    async def stylize(self, image, prompt):
        self.calls.append((image, prompt))
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.parts

    async def close(self):
        self.closed = True


class FakeClientFactory:
    def __init__(self, **client_kwargs):
        self.client_kwargs = client_kwargs
        self.clients: List[FakeClient] = []
        self.keys: List[str] = []

    def __call__(self, api_key: str) -> FakeClient:
        self.keys.append(api_key)
        client = FakeClient(**self.client_kwargs)
        self.clients.append(client)
        return client


@pytest.fixture
def png_bytes() -> bytes:
    return make_image_bytes("red")


@pytest.fixture
def jpeg_bytes() -> bytes:
    return make_image_bytes("blue", "JPEG")


@pytest.fixture
def result_image() -> ImageData:
    return ImageData.from_bytes(make_image_bytes("green"))


@pytest.fixture
def image_part(result_image) -> ImagePart:
    return ImagePart(result_image)


@pytest.fixture
def make_controller():
    def _make(api_key: Optional[str] = VALID_KEY, **client_kwargs):
        factory = FakeClientFactory(**client_kwargs)
        controller = TransformationController(api_key=api_key, client_factory=factory, session_id="test")
        return controller, factory
    return _make


@pytest.fixture
def make_registry():
    def _make(api_key: Optional[str] = VALID_KEY, **client_kwargs):
        factory = FakeClientFactory(**client_kwargs)
        registry = SessionRegistry(
            lambda session_id: TransformationController(
                api_key=api_key, client_factory=factory, session_id=session_id
            )
        )
        return registry, factory
    return _make
