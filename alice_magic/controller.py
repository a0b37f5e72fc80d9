"""
Transformation controller - lifecycle of one photo-to-cartoon request.

States: idle -> ready -> in_flight -> succeeded | failed.
All mutations go through the methods below; one controller per session.
"""

import asyncio
import logging
from collections import OrderedDict
from typing import Callable, Optional

from alice_magic.config import MagicConfig
from alice_magic.errors import (
    ErrorInfo,
    ErrorKind,
    MSG_DECODE_FAILED,
    MSG_NO_IMAGE,
    classify_error,
    is_credential_plausible,
    missing_credential,
)
from alice_magic.images import ImageData, ImageDecodeError
from alice_magic.states import ControllerSnapshot, ErrorView, RequestState
from alice_magic.stylization import STYLE_PROMPT, StylizationClient, resolve_parts

logger = logging.getLogger(__name__)

ClientFactory = Callable[[str], StylizationClient]


def client_factory_from_config(cfg: MagicConfig) -> ClientFactory:
    """A fresh client per request, built from the service configuration."""
    def factory(api_key: str) -> StylizationClient:
        return StylizationClient(
            api_key=api_key,
            model=cfg.model,
            base_url=cfg.base_url,
            timeout=cfg.request_timeout,
        )
    return factory


class TransformationController:
    def __init__(
        self,
        api_key: Optional[str],
        client_factory: ClientFactory,
        prompt: str = STYLE_PROMPT,
        session_id: str = "-",
    ):
        self._api_key = api_key
        self._client_factory = client_factory
        self.prompt = prompt
        self.session_id = session_id

        self._state = RequestState.IDLE
        self._source: Optional[ImageData] = None
        self._result: Optional[ImageData] = None
        self._error: Optional[ErrorInfo] = None
        self._pending: Optional[asyncio.Task] = None

    @property
    def state(self) -> RequestState:
        return self._state

    @property
    def source(self) -> Optional[ImageData]:
        return self._source

    @property
    def result(self) -> Optional[ImageData]:
        return self._result

    @property
    def error(self) -> Optional[ErrorInfo]:
        return self._error

    @property
    def in_flight(self) -> bool:
        return self._state is RequestState.IN_FLIGHT

    def _set(self, state: RequestState, result: Optional[ImageData] = None, error: Optional[ErrorInfo] = None):
        # result only in SUCCEEDED, error only in FAILED
        self._state = state
        self._result = result if state is RequestState.SUCCEEDED else None
        self._error = error if state is RequestState.FAILED else None

    def _cancel_pending(self):
        if self._pending is not None and not self._pending.done():
            logger.info(f"🛑 Cancelling in-flight request for session {self.session_id}")
            self._pending.cancel()
        self._pending = None

    def snapshot(self) -> ControllerSnapshot:
        return ControllerSnapshot(
            state=self._state,
            source=self._source.to_data_url() if self._source else None,
            result=self._result.to_data_url() if self._result else None,
            error=ErrorView(message=self._error.message, remediate=self._error.remediate) if self._error else None,
        )

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    async def load_image(self, raw: bytes, content_type: Optional[str] = None) -> RequestState:
        """Decode a user-selected file into the source image."""
        self._cancel_pending()

        if content_type and not content_type.lower().startswith("image/"):
            logger.warning(f"⚠️ Rejected upload with content type {content_type} (session {self.session_id})")
            self._set(RequestState.FAILED, error=ErrorInfo(MSG_DECODE_FAILED, kind=ErrorKind.DECODE_FAILED))
            return self._state

        try:
            image = await asyncio.to_thread(ImageData.from_bytes, raw)
        except ImageDecodeError as e:
            logger.warning(f"⚠️ Could not decode upload (session {self.session_id}): {e}")
            # drop a transform started on the old source while decoding
            self._cancel_pending()
            self._set(RequestState.FAILED, error=ErrorInfo(MSG_DECODE_FAILED, kind=ErrorKind.DECODE_FAILED))
            return self._state

        # a transform may have started while decoding
        self._cancel_pending()
        self._source = image
        self._set(RequestState.READY)
        logger.info(f"📸 Source image loaded for session {self.session_id}: {image.mime_type}")
        return self._state

    async def transform(self) -> bool:
        """
        Send the source image to the stylization service.

        Returns True if a request was issued. A call while another request
        is in flight, or without a source image, is ignored.
        """
        if self.in_flight:
            logger.info(f"⏳ Transform ignored, request already in flight (session {self.session_id})")
            return False

        if self._source is None:
            logger.info(f"Transform ignored, no source image (session {self.session_id})")
            return False

        if not is_credential_plausible(self._api_key):
            logger.error("❌ API key missing or malformed, request not sent")
            self._set(RequestState.FAILED, error=missing_credential())
            return False

        source = self._source
        self._set(RequestState.IN_FLIGHT)
        logger.info(f"🎨 Transforming image for session {self.session_id}")

        client = None
        pending = None
        try:
            client = self._client_factory(self._api_key)
            pending = asyncio.ensure_future(client.stylize(source, self.prompt))
            self._pending = pending
            parts = await pending

        except asyncio.CancelledError:
            if self._pending is not pending:
                # Superseded by reset() or a new photo; the new state stays.
                logger.info(f"Request for session {self.session_id} was cancelled by the user")
                return True
            self._pending = None
            self._set(RequestState.READY)
            raise

        except Exception as e:
            if pending is not None and self._pending is not pending:
                return True
            self._pending = None
            error = classify_error(e)
            logger.error(f"❌ Stylization failed for session {self.session_id} ({error.kind.value}): {e}")
            self._set(RequestState.FAILED, error=error)
            return True

        finally:
            if client:
                await client.close()

        if self._pending is not pending:
            logger.info(f"Discarding stale result for session {self.session_id}")
            return True
        self._pending = None

        resolution = resolve_parts(parts)
        if resolution.image is not None:
            logger.info(f"✅ Image transformed for session {self.session_id}")
            self._set(RequestState.SUCCEEDED, result=resolution.image)
        else:
            # The service answered, but without an image (e.g. content policy).
            message = resolution.text or MSG_NO_IMAGE
            logger.warning(f"⚠️ Service returned no image ({ErrorKind.NO_IMAGE.value}) for session {self.session_id}: {message[:200]}")
            self._set(RequestState.FAILED, error=ErrorInfo(message, remediate=False, kind=ErrorKind.NO_IMAGE))
        return True

    def retry(self) -> RequestState:
        """Try again: keep the source image, drop result and error."""
        if self.in_flight:
            return self._state
        self._set(RequestState.READY if self._source else RequestState.IDLE)
        return self._state

    def reset(self) -> RequestState:
        """Choose a different photo: clear everything."""
        self._cancel_pending()
        self._source = None
        self._set(RequestState.IDLE)
        return self._state

    def download(self) -> Optional[bytes]:
        """PNG bytes of the result, or None if there is nothing to save."""
        if self._result is None:
            return None
        try:
            return self._result.to_png()
        except ImageDecodeError as e:
            logger.error(f"❌ Result image for session {self.session_id} is not readable: {e}")
            return None


class SessionRegistry:
    """In-memory map of session key -> controller, least recently used evicted first."""

    def __init__(self, factory: Callable[[str], TransformationController], max_sessions: int = 1000):
        self._factory = factory
        self._max_sessions = max_sessions
        self._controllers: "OrderedDict[str, TransformationController]" = OrderedDict()

    def get(self, session_id: str) -> TransformationController:
        controller = self._controllers.get(session_id)
        if controller is None:
            controller = self._factory(session_id)
            self._controllers[session_id] = controller
            if len(self._controllers) > self._max_sessions:
                evicted, _ = self._controllers.popitem(last=False)
                logger.debug("Evicted session %s", evicted)
        else:
            self._controllers.move_to_end(session_id)
        return controller

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._controllers

    def __len__(self) -> int:
        return len(self._controllers)


def build_registry(cfg: MagicConfig, max_sessions: int = 1000) -> SessionRegistry:
    client_factory = client_factory_from_config(cfg)

    def factory(session_id: str) -> TransformationController:
        return TransformationController(
            api_key=cfg.api_key,
            client_factory=client_factory,
            session_id=session_id,
        )

    return SessionRegistry(factory, max_sessions=max_sessions)
