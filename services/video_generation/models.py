"""
Data models for a single submit-and-await run.

Nothing here outlives one call: requests come from the caller, handles and
status snapshots come from the remote job API, and the generated video is
handed back to the caller.
"""

import mimetypes
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Optional, Union

from pydantic import BaseModel, Field

from .errors import BadRequestError, UnknownError

SUPPORTED_IMAGE_TYPES = ("image/png", "image/jpeg", "image/webp")
DEFAULT_VIDEO_MIME_TYPE = "video/mp4"

# Not in the default mimetypes map before Python 3.11
mimetypes.add_type("image/webp", ".webp")


@dataclass
class ImageInput:
    """Reference image sent alongside (or instead of) the prompt."""

    data: bytes
    mime_type: str

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "ImageInput":
        """
        Load an image file, guessing its mime type from the extension.

        Raises:
            BadRequestError: If the file type is not png, jpeg or webp, or the
                file cannot be read
        """
        path = Path(path)
        mime_type = mimetypes.guess_type(path.name)[0]
        if mime_type not in SUPPORTED_IMAGE_TYPES:
            raise BadRequestError(
                f"Unsupported image type for {path.name}: {mime_type or 'unknown'} "
                f"(expected one of {', '.join(SUPPORTED_IMAGE_TYPES)})"
            )
        try:
            data = path.read_bytes()
        except OSError as e:
            raise BadRequestError(f"Could not read image {path}: {e.strerror or e}") from e
        return cls(data=data, mime_type=mime_type)


@dataclass
class GenerationRequest:
    """Prompt and/or image for one generation job."""

    prompt: Optional[str] = None
    image: Optional[ImageInput] = None

    @property
    def has_prompt(self) -> bool:
        return bool(self.prompt and self.prompt.strip())

    @property
    def has_input(self) -> bool:
        return self.has_prompt or self.image is not None


class JobState(str, Enum):
    """Remote job state as seen by one poll."""
    PENDING = "pending"
    DONE = "done"


class AssetRef(BaseModel):
    """Locator of the finished video; fetching it requires the credential."""
    uri: str


class JobFailure(BaseModel):
    """Job-level error reported by a finished job."""
    code: Optional[Union[int, str]] = None
    message: Optional[str] = None


class JobStatus(BaseModel):
    """A fresh status snapshot, not a diff against the previous one."""

    state: JobState = JobState.PENDING
    asset: Optional[AssetRef] = None
    failure: Optional[JobFailure] = None

    @property
    def done(self) -> bool:
        return self.state == JobState.DONE

    @classmethod
    def pending(cls) -> "JobStatus":
        return cls(state=JobState.PENDING)

    @classmethod
    def succeeded(cls, asset: Optional[AssetRef] = None) -> "JobStatus":
        return cls(state=JobState.DONE, asset=asset)

    @classmethod
    def failed(cls, failure: JobFailure) -> "JobStatus":
        return cls(state=JobState.DONE, failure=failure)


class ProgressTick(BaseModel):
    """Whole seconds elapsed since polling started."""
    elapsed_seconds: int = Field(ge=0)


@dataclass
class JobHandle:
    """
    Opaque reference to a submitted job.

    `status` is the snapshot returned with this handle; `operation` is the
    backend's raw object and is only meaningful to the backend that made it.
    """

    name: Optional[str]
    status: JobStatus = field(default_factory=JobStatus.pending)
    operation: Any = None


@dataclass
class GeneratedVideo:
    """Downloaded video bytes plus where they came from."""

    data: bytes
    mime_type: str = DEFAULT_VIDEO_MIME_TYPE
    source_uri: Optional[str] = None  # Never includes the credential
    job_name: Optional[str] = None
    elapsed_seconds: int = 0

    @property
    def size_bytes(self) -> int:
        return len(self.data)

    def save(self, output_dir: Union[str, Path] = "output", filename: Optional[str] = None) -> Path:
        """
        Write the video to disk.

        Args:
            output_dir: Directory to write into (created if missing)
            filename: Custom filename (veo-video-<epoch ms>.mp4 if not provided)

        Returns:
            Path of the written file

        Raises:
            UnknownError: If the directory or file cannot be written
        """
        base_dir = Path(output_dir)
        if not filename:
            filename = f"veo-video-{int(time.time() * 1000)}.mp4"
        output_path = base_dir / filename

        try:
            base_dir.mkdir(parents=True, exist_ok=True)
            output_path.write_bytes(self.data)
        except OSError as e:
            raise UnknownError(f"Failed to save video to {output_path}: {e.strerror or e}") from e
        return output_path
