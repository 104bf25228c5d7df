"""
Video Generation Service

Submits a prompt and/or image to Veo, polls the job until it finishes and
downloads the resulting video. Errors are normalized into a small
hierarchy so callers can tell a bad credential from everything else.
"""

from .backend import JobBackend, VeoJobBackend
from .client import JobClient, ProgressSink, CredentialProvider
from .errors import (
    AuthInvalidError,
    BadRequestError,
    ErrorKind,
    TransientError,
    UnknownError,
    VideoGenerationError,
    normalize_error_message,
)
from .models import (
    GeneratedVideo,
    GenerationRequest,
    ImageInput,
    JobHandle,
    JobStatus,
    ProgressTick,
)

__all__ = [
    "JobClient",
    "JobBackend",
    "VeoJobBackend",
    "ProgressSink",
    "CredentialProvider",
    "VideoGenerationError",
    "AuthInvalidError",
    "BadRequestError",
    "TransientError",
    "UnknownError",
    "ErrorKind",
    "normalize_error_message",
    "GeneratedVideo",
    "GenerationRequest",
    "ImageInput",
    "JobHandle",
    "JobStatus",
    "ProgressTick",
]
