"""
Error types and error-message normalization for the Veo job client.

Remote failures arrive in many shapes: SDK exceptions, plain strings,
``{"error": {"code": ..., "message": ...}}`` payloads, bare objects.
Everything is reduced to one message string, and that string (plus any
structured code the error exposes) decides the error kind.
"""

import json
from collections.abc import Mapping
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel

UNKNOWN_ERROR_MESSAGE = "Unknown error occurred"

# Submission errors carrying these markers are never retried
AUTH_MARKERS = ("404", "NOT_FOUND")
BAD_REQUEST_MARKERS = ("400", "INVALID_ARGUMENT")

# Lower-cased markers meaning the key is missing the Veo entitlement
CREDENTIAL_MESSAGE_MARKERS = (
    "requested entity was not found",
    "status: 404",
    "not_found",
    "[404]",
    " 404 ",
)


class ErrorKind(str, Enum):
    """What the caller should do about a failure."""
    AUTH_INVALID = "auth_invalid"  # Re-acquire the credential
    BAD_REQUEST = "bad_request"
    TRANSIENT = "transient"
    UNKNOWN = "unknown"


class VideoGenerationError(Exception):
    """Raised when a submit-and-await run fails."""

    kind: ErrorKind = ErrorKind.UNKNOWN

    def __init__(self, message: str, error_code: Optional[str] = None):
        self.message = message
        self.error_code = error_code or self.kind.name
        super().__init__(message)

    @property
    def requires_new_credential(self) -> bool:
        return self.kind == ErrorKind.AUTH_INVALID


class AuthInvalidError(VideoGenerationError):
    """Credential missing, or rejected by the remote API."""
    kind = ErrorKind.AUTH_INVALID


class BadRequestError(VideoGenerationError):
    """Malformed request; retrying will not help."""
    kind = ErrorKind.BAD_REQUEST


class TransientError(VideoGenerationError):
    """Submission retries exhausted."""
    kind = ErrorKind.TRANSIENT


class UnknownError(VideoGenerationError):
    """Job-level failure or failure resolving the finished job."""
    kind = ErrorKind.UNKNOWN


ERRORS_BY_KIND = {
    ErrorKind.AUTH_INVALID: AuthInvalidError,
    ErrorKind.BAD_REQUEST: BadRequestError,
    ErrorKind.TRANSIENT: TransientError,
    ErrorKind.UNKNOWN: UnknownError,
}


def error_for_kind(kind: ErrorKind, message: str) -> VideoGenerationError:
    """Build the exception matching an error kind."""
    return ERRORS_BY_KIND[kind](message)


def _as_mapping(value: Any) -> Optional[Mapping]:
    if isinstance(value, Mapping):
        return value
    if isinstance(value, BaseModel):
        return value.model_dump()
    return None


def normalize_error_message(error: Any) -> str:
    """
    Reduce any raised value to a single human-readable message.

    Precedence:
        1. Plain strings, and exceptions with a non-empty message
        2. Nested {"error": {"code", "message"}} -> "[code] message"
        3. Top-level {"message": ...}
        4. JSON serialization of the whole value
        5. "Unknown error occurred"
    """
    if isinstance(error, str):
        return error

    if isinstance(error, BaseException):
        message = str(error)
        return message if message else type(error).__name__

    structured = _as_mapping(error)
    if structured is not None:
        inner = _as_mapping(structured.get("error"))
        if inner is not None and inner.get("message"):
            code = inner.get("code")
            if code is not None and code != "":
                return f"[{code}] {inner['message']}"
            return str(inner["message"])

        if structured.get("message"):
            return str(structured["message"])

    if error is None:
        return UNKNOWN_ERROR_MESSAGE

    try:
        return json.dumps(structured if structured is not None else error)
    except (TypeError, ValueError):
        return UNKNOWN_ERROR_MESSAGE


def classify_submission_error(error: Any) -> Optional[ErrorKind]:
    """
    Decide whether a failed create-job call is worth retrying.

    Returns AUTH_INVALID or BAD_REQUEST for non-retryable failures and None
    for everything else. Structured ``code``/``status`` attributes (as on
    google.genai APIError) are consulted before the message markers.
    """
    code = getattr(error, "code", None)
    status = getattr(error, "status", None)

    if code == 404 or status == "NOT_FOUND":
        return ErrorKind.AUTH_INVALID
    if code == 400 or status == "INVALID_ARGUMENT":
        return ErrorKind.BAD_REQUEST

    message = normalize_error_message(error)
    if any(marker in message for marker in AUTH_MARKERS):
        return ErrorKind.AUTH_INVALID
    if any(marker in message for marker in BAD_REQUEST_MARKERS):
        return ErrorKind.BAD_REQUEST
    return None


def is_retryable_submission_error(error: BaseException) -> bool:
    # Cancellation and interpreter exits are never retried
    if not isinstance(error, Exception):
        return False
    return classify_submission_error(error) is None


def looks_like_credential_error(message: str) -> bool:
    """True when a message says the key cannot reach the video model."""
    lowered = message.lower()
    return any(marker in lowered for marker in CREDENTIAL_MESSAGE_MARKERS)


def coerce_error(error: Any) -> VideoGenerationError:
    """Wrap an unexpected failure in the client's error hierarchy."""
    if isinstance(error, VideoGenerationError):
        return error

    message = normalize_error_message(error)
    if looks_like_credential_error(message):
        return AuthInvalidError(message)
    return UnknownError(message)
