import httpx
import pytest

from alice_magic.errors import (
    MSG_GENERIC,
    MSG_INVALID_CREDENTIAL,
    MSG_RATE_LIMITED,
    ErrorKind,
    StylizationError,
    classify_error,
    is_credential_plausible,
    missing_credential,
)


@pytest.mark.parametrize("api_key", [None, "", "   ", "undefined", "short", "123456789"])
def test_implausible_credentials(api_key):
    assert not is_credential_plausible(api_key)


@pytest.mark.parametrize("api_key", ["1234567890", "AIzaSy-test-key-0123456789"])
def test_plausible_credentials(api_key):
    assert is_credential_plausible(api_key)


def test_missing_credential_asks_for_remediation():
    error = missing_credential()

    assert error.remediate
    assert error.kind is ErrorKind.MISSING_CREDENTIAL


def test_rate_limit_from_error_text():
    error = classify_error(Exception("got status 429 Too Many Requests"))

    assert error.message == MSG_RATE_LIMITED
    assert not error.remediate
    assert error.kind is ErrorKind.RATE_LIMITED


def test_credential_from_error_text():
    error = classify_error(Exception("API key not valid. Please pass a valid API key."))

    assert error.message == MSG_INVALID_CREDENTIAL
    assert error.remediate
    assert error.kind is ErrorKind.INVALID_CREDENTIAL


def test_rate_limit_from_status_code():
    error = classify_error(StylizationError("Resource has been exhausted", status_code=429))

    assert error.kind is ErrorKind.RATE_LIMITED


@pytest.mark.parametrize("status", [401, 403])
def test_credential_from_status_code(status):
    error = classify_error(StylizationError("Permission denied", status_code=status))

    assert error.kind is ErrorKind.INVALID_CREDENTIAL
    assert error.remediate


def test_gemini_bad_key_is_a_400_with_key_in_message():
    error = classify_error(StylizationError("Gemini API error 400: API key not valid.", status_code=400))

    assert error.kind is ErrorKind.INVALID_CREDENTIAL


def test_status_code_beats_text_for_rate_limit():
    # "429" inside a 500 body is not a rate limit
    error = classify_error(StylizationError("Gemini API error 500: request 4290 failed", status_code=500))

    assert error.kind is ErrorKind.UNKNOWN


def test_httpx_status_error_is_structured():
    request = httpx.Request("POST", "https://example.com")
    response = httpx.Response(429, request=request)
    exc = httpx.HTTPStatusError("rate limited", request=request, response=response)

    assert classify_error(exc).kind is ErrorKind.RATE_LIMITED


def test_timeout_shows_generic_message():
    error = classify_error(httpx.ReadTimeout("timed out"))

    assert error.message == MSG_GENERIC
    assert not error.remediate
    assert error.kind is ErrorKind.TIMEOUT


def test_anything_else_is_generic():
    error = classify_error(RuntimeError("boom"))

    assert error.message == MSG_GENERIC
    assert not error.remediate
    assert error.kind is ErrorKind.UNKNOWN
