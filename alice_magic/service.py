"""
Alice Magic web service - the single page and the JSON API behind it.

Endpoints:
- GET  /              the page
- GET  /api/state     current snapshot
- POST /api/image     load a photo
- POST /api/transform send it to the image model
- POST /api/retry     try again with the same photo
- POST /api/reset     choose a different photo
- GET  /api/download  the result as alice-magie.png
"""

import logging
import time
import uuid
from pathlib import Path
from typing import Dict

from fastapi import Depends, FastAPI, File, HTTPException, Request, Response, UploadFile
from fastapi.responses import FileResponse, JSONResponse
from starlette.middleware import Middleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from alice_magic.config import config
from alice_magic.controller import SessionRegistry, TransformationController, build_registry
from alice_magic.images import DOWNLOAD_FILENAME
from alice_magic.states import ControllerSnapshot

logger = logging.getLogger(__name__)

SESSION_COOKIE = "alice_session"
STATIC_DIR = Path(__file__).parent / "static"

# Disable the default uvicorn.access logger
uvicorn_access_logger = logging.getLogger("uvicorn.access")
uvicorn_access_logger.handlers = []
uvicorn_access_logger.propagate = False


class CustomAccessLogMiddleware(BaseHTTPMiddleware):
    """
    Request logging middleware, skipping /health.
    """
    def __init__(self, app: ASGIApp):
        super().__init__(app)
        self.access_logger = logging.getLogger("alice_magic.access")

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()

        response = await call_next(request)

        process_time = time.time() - start_time
        formatted_process_time = f"{process_time:.4f}s"

        if request.url.path != "/health":
            client = f"{request.client.host}:{request.client.port}" if request.client else "-"
            self.access_logger.info(
                f'{client} - "{request.method} {request.url.path} HTTP/{request.scope["http_version"]}" '
                f'{response.status_code} {formatted_process_time}'
            )

        return response


app = FastAPI(
    title="Alice Magic",
    version="1.0.0",
    middleware=[Middleware(CustomAccessLogMiddleware)]
)

registry = build_registry(config)


# ============================================================================
# Dependencies
# ============================================================================

def get_registry() -> SessionRegistry:
    return registry


async def get_controller(
    request: Request,
    response: Response,
    sessions: SessionRegistry = Depends(get_registry),
) -> TransformationController:
    """Controller bound to the page session cookie; issues a cookie on first visit.

    Runs on the event loop; controllers are not thread-safe.
    """
    session_id = request.cookies.get(SESSION_COOKIE)
    if not session_id:
        session_id = uuid.uuid4().hex
        response.set_cookie(SESSION_COOKIE, session_id, httponly=True, samesite="lax")
    return sessions.get(session_id)


# ============================================================================
# Page & Health Check
# ============================================================================

@app.get("/", include_in_schema=False)
def index() -> FileResponse:
    return FileResponse(STATIC_DIR / "index.html", media_type="text/html")


@app.get("/health")
def health() -> Dict[str, str]:
    return {"status": "ok"}


# ============================================================================
# Transformation Endpoints
# ============================================================================

@app.get("/api/state", response_model=ControllerSnapshot)
async def get_state(controller: TransformationController = Depends(get_controller)) -> ControllerSnapshot:
    return controller.snapshot()


@app.post("/api/image", response_model=ControllerSnapshot)
async def load_image(
    file: UploadFile = File(...),
    controller: TransformationController = Depends(get_controller),
) -> ControllerSnapshot:
    """
    Load the photo chosen in the file picker.
    """
    if file.content_type and not file.content_type.startswith("image/"):
        raise HTTPException(status_code=415, detail="Bitte wähle eine Bilddatei aus.")

    raw = await file.read(config.max_upload_bytes + 1)
    if len(raw) > config.max_upload_bytes:
        raise HTTPException(status_code=413, detail=f"Das Bild ist größer als {config.max_upload_mb} MB.")

    await controller.load_image(raw, file.content_type)
    return controller.snapshot()


@app.post("/api/transform", response_model=ControllerSnapshot)
async def transform(controller: TransformationController = Depends(get_controller)):
    """
    Send the loaded photo to the image model. Rejected while a request is running.
    """
    if controller.in_flight:
        return JSONResponse(status_code=409, content=controller.snapshot().model_dump(mode="json"))

    if controller.source is None:
        raise HTTPException(status_code=400, detail="Bitte zuerst ein Foto auswählen.")

    await controller.transform()
    return controller.snapshot()


@app.post("/api/retry", response_model=ControllerSnapshot)
async def retry(controller: TransformationController = Depends(get_controller)) -> ControllerSnapshot:
    controller.retry()
    return controller.snapshot()


@app.post("/api/reset", response_model=ControllerSnapshot)
async def reset(controller: TransformationController = Depends(get_controller)) -> ControllerSnapshot:
    controller.reset()
    return controller.snapshot()


@app.get("/api/download")
async def download(controller: TransformationController = Depends(get_controller)) -> Response:
    """
    The result as a PNG attachment, or 204 when there is nothing to save.
    """
    png = controller.download()
    if png is None:
        return Response(status_code=204)
    return Response(
        content=png,
        media_type="image/png",
        headers={"Content-Disposition": f'attachment; filename="{DOWNLOAD_FILENAME}"'},
    )


# ============================================================================
# Main Entry Point
# ============================================================================

def main():
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    logger.info("Starting Alice Magic web service")

    import uvicorn
    uvicorn.run("alice_magic.service:app", host=config.host, port=config.port)


if __name__ == "__main__":
    main()
