"""
Remote job API for Veo video generation.

The job client only talks to a `JobBackend`: create a job, refresh a job.
`VeoJobBackend` is the google-genai implementation; it is built per run
from the credential read at the start of that run.
"""

import logging
from typing import Any, Optional, Protocol

from google import genai
from google.genai import types

from core.config import VeoConfig

from .models import AssetRef, JobFailure, JobHandle, JobStatus

logger = logging.getLogger(__name__)


class JobBackend(Protocol):
    """Remote job API consumed by the job client."""

    async def create_job(self, payload: dict[str, Any]) -> JobHandle:
        """Submit a generation job; the handle carries the first status snapshot."""
        ...

    async def get_job(self, handle: JobHandle) -> JobHandle:
        """Fetch a fresh snapshot of the job behind `handle`."""
        ...


def _field(value: Any, name: str) -> Any:
    """Read `name` from either a mapping or an object."""
    if value is None:
        return None
    if isinstance(value, dict):
        return value.get(name)
    return getattr(value, name, None)


def status_from_operation(operation: Any) -> JobStatus:
    """Map a GenerateVideosOperation onto a JobStatus snapshot."""
    if not _field(operation, "done"):
        return JobStatus.pending()

    error = _field(operation, "error")
    if error:
        return JobStatus.failed(
            JobFailure(code=_field(error, "code"), message=_field(error, "message"))
        )

    response = _field(operation, "response") or _field(operation, "result")
    videos = _field(response, "generated_videos") or []
    video = _field(videos[0], "video") if videos else None
    uri = _field(video, "uri")

    return JobStatus.succeeded(AssetRef(uri=uri) if uri else None)


class VeoJobBackend:
    """
    Veo job API via google-genai.

    Usage:
        backend = VeoJobBackend.for_credential(api_key, config.veo)
        handle = await backend.create_job({"prompt": "a cat"})
        handle = await backend.get_job(handle)
    """

    def __init__(self, client: genai.Client, config: Optional[VeoConfig] = None):
        self.client = client
        self.config = config or VeoConfig()

    @classmethod
    def for_credential(cls, credential: str, config: Optional[VeoConfig] = None) -> "VeoJobBackend":
        return cls(genai.Client(api_key=credential), config)

    def _request_kwargs(self, payload: dict[str, Any]) -> dict[str, Any]:
        kwargs: dict[str, Any] = {
            "model": self.config.model,
            "config": types.GenerateVideosConfig(
                number_of_videos=self.config.number_of_videos,
                resolution=self.config.resolution,
                aspect_ratio=self.config.aspect_ratio,
            ),
        }

        if payload.get("prompt"):
            kwargs["prompt"] = payload["prompt"]

        image = payload.get("image")
        if image:
            kwargs["image"] = types.Image(
                image_bytes=image["image_bytes"],
                mime_type=image["mime_type"],
            )

        return kwargs

    async def create_job(self, payload: dict[str, Any]) -> JobHandle:
        operation = await self.client.aio.models.generate_videos(**self._request_kwargs(payload))
        name = _field(operation, "name")
        logger.info(f"Veo job created: {name} (model={self.config.model})")
        return JobHandle(name=name, status=status_from_operation(operation), operation=operation)

    async def get_job(self, handle: JobHandle) -> JobHandle:
        operation = await self.client.aio.operations.get(operation=handle.operation)
        return JobHandle(
            name=_field(operation, "name") or handle.name,
            status=status_from_operation(operation),
            operation=operation,
        )
