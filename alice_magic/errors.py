"""
Error taxonomy for the transformation flow.

Failures are classified by HTTP status where the client exposes one.
Matching on the error text ("429", "API key") is kept only as a fallback
for errors that carry no status code.
"""

import enum
import logging
from dataclasses import dataclass
from typing import Optional

import httpx

logger = logging.getLogger(__name__)

PLACEHOLDER_CREDENTIAL = "undefined"
MIN_CREDENTIAL_LENGTH = 10


class ErrorKind(str, enum.Enum):
    MISSING_CREDENTIAL = "missing_credential"
    INVALID_CREDENTIAL = "invalid_credential"
    RATE_LIMITED = "rate_limited"
    NO_IMAGE = "no_image"
    DECODE_FAILED = "decode_failed"
    TIMEOUT = "timeout"
    UNKNOWN = "unknown"


# User-facing messages
MSG_MISSING_CREDENTIAL = "API-Key fehlt in der Konfiguration."
MSG_INVALID_CREDENTIAL = "API-Schlüssel ungültig oder nicht gefunden."
MSG_RATE_LIMITED = "Zu viele Anfragen. Bitte kurz warten."
MSG_NO_IMAGE = "Die KI konnte das Bild nicht umwandeln."
MSG_DECODE_FAILED = "Das Foto konnte nicht gelesen werden. Bitte wähle ein anderes Bild."
MSG_GENERIC = "Ein Fehler ist aufgetreten. Bitte versuch es nochmal."

REMEDIATION_STEPS = (
    "1. API-Key im Google AI Studio erstellen\n"
    "2. In der .env-Datei oder der Server-Umgebung API_KEY=... setzen\n"
    "3. Den Dienst neu starten"
)


@dataclass(frozen=True)
class ErrorInfo:
    message: str
    remediate: bool = False
    kind: ErrorKind = ErrorKind.UNKNOWN


class StylizationError(Exception):
    """Error returned by the stylization service."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


def is_credential_plausible(api_key: Optional[str]) -> bool:
    """
    Sanity check for the configured credential.

    This is advisory only: a key that passes can still be rejected by the service.
    """
    if not api_key:
        return False
    api_key = api_key.strip()
    if not api_key or api_key == PLACEHOLDER_CREDENTIAL:
        return False
    return len(api_key) >= MIN_CREDENTIAL_LENGTH


def missing_credential() -> ErrorInfo:
    return ErrorInfo(MSG_MISSING_CREDENTIAL, remediate=True, kind=ErrorKind.MISSING_CREDENTIAL)


def _status_code(exc: BaseException) -> Optional[int]:
    if isinstance(exc, StylizationError):
        return exc.status_code
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code
    return None


def classify_error(exc: BaseException) -> ErrorInfo:
    """Map an exception raised around the service call to a user-facing ErrorInfo."""
    status = _status_code(exc)
    text = str(exc)

    if status == 429 or (status is None and "429" in text):
        return ErrorInfo(MSG_RATE_LIMITED, remediate=False, kind=ErrorKind.RATE_LIMITED)

    if status in (401, 403) or "API key" in text:
        return ErrorInfo(MSG_INVALID_CREDENTIAL, remediate=True, kind=ErrorKind.INVALID_CREDENTIAL)

    if isinstance(exc, httpx.TimeoutException):
        return ErrorInfo(MSG_GENERIC, remediate=False, kind=ErrorKind.TIMEOUT)

    return ErrorInfo(MSG_GENERIC, remediate=False, kind=ErrorKind.UNKNOWN)
