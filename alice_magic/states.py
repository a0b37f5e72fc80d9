import enum
from typing import Optional

from pydantic import BaseModel


class RequestState(str, enum.Enum):
    IDLE = "idle"
    READY = "ready"
    IN_FLIGHT = "in_flight"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class ErrorView(BaseModel):
    message: str
    remediate: bool = False


class ControllerSnapshot(BaseModel):
    """Read-only view of a controller, as sent to the page."""
    state: RequestState
    source: Optional[str] = None   # data URL
    result: Optional[str] = None   # data URL
    error: Optional[ErrorView] = None
