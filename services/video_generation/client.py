"""
Veo Job Client

Drives one video generation job from prompt to bytes:
- Submission with bounded exponential-backoff retry
- Fixed-interval status polling with elapsed-time progress ticks
- Resolution of the finished job and download of the video

Usage:
    client = JobClient(credential_provider=lambda: os.getenv("GEMINI_API_KEY"))
    video = await client.submit_and_await(
        GenerationRequest(prompt="A golden retriever running through a field"),
        on_progress=lambda tick: print(f"{tick.elapsed_seconds}s"),
    )
    video.save("output")
"""

import asyncio
import logging
import math
import time
from typing import Any, Awaitable, Callable, Optional

import httpx
from tenacity import (
    AsyncRetrying,
    RetryError,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from core.config import Config, get_config

from .backend import JobBackend, VeoJobBackend
from .errors import (
    AuthInvalidError,
    BadRequestError,
    ErrorKind,
    TransientError,
    UnknownError,
    VideoGenerationError,
    classify_submission_error,
    coerce_error,
    error_for_kind,
    is_retryable_submission_error,
    normalize_error_message,
)
from .models import (
    DEFAULT_VIDEO_MIME_TYPE,
    AssetRef,
    GeneratedVideo,
    GenerationRequest,
    JobHandle,
    ProgressTick,
)

logger = logging.getLogger(__name__)

CredentialProvider = Callable[[], Optional[str]]
ProgressSink = Callable[[ProgressTick], None]
BackendFactory = Callable[[str], JobBackend]

MISSING_CREDENTIAL_MESSAGE = "API Key is missing. Please select a valid key."
EMPTY_REQUEST_MESSAGE = "Please provide a text prompt or an image to generate a video."
SUBMIT_EXHAUSTED_MESSAGE = (
    "Failed to connect to the video API after multiple attempts. "
    "Please check your internet connection and try again."
)
JOB_FAILED_FALLBACK_MESSAGE = "Unknown error during video generation operation"
NO_ASSET_MESSAGE = "No video URI returned from operation (no asset reference returned)"


def build_payload(request: GenerationRequest) -> dict[str, Any]:
    """
    Build the create-job payload.

    Raises:
        BadRequestError: If the request has neither prompt nor image
    """
    if not request.has_input:
        raise BadRequestError(EMPTY_REQUEST_MESSAGE)

    payload: dict[str, Any] = {}
    if request.has_prompt:
        payload["prompt"] = request.prompt
    if request.image is not None:
        payload["image"] = {
            "image_bytes": request.image.data,
            "mime_type": request.image.mime_type,
        }
    return payload


def download_url(asset: AssetRef, credential: str) -> httpx.URL:
    """Asset URI with the credential appended as the `key` query parameter."""
    return httpx.URL(asset.uri).copy_add_param("key", credential)


class JobClient:
    """
    Runs one generation job at a time, end to end.

    The credential is read once per `submit_and_await` call and reused for
    every request of that call, including the download. Cancelling the
    awaiting task aborts the run at the next sleep or network await.
    """

    def __init__(
        self,
        credential_provider: CredentialProvider,
        config: Optional[Config] = None,
        backend_factory: Optional[BackendFactory] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the job client.

        Args:
            credential_provider: Returns the current API key, or None/"" if unset
            config: Optional config override
            backend_factory: Builds the remote job backend for a credential
            http_client: Optional HTTP client for the asset download
            sleep: Awaitable sleep used for backoff and poll waits
            clock: Monotonic clock in seconds, used for progress ticks
        """
        self.config = config or get_config()
        self.credential_provider = credential_provider
        self.backend_factory = backend_factory or (
            lambda credential: VeoJobBackend.for_credential(credential, self.config.veo)
        )

        self._http_client = http_client
        self._owns_http_client = http_client is None
        self._sleep = sleep
        self._clock = clock

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=self.config.client.download_timeout_seconds,
                follow_redirects=True,
            )
        return self._http_client

    async def close(self):
        """Close the HTTP client if this client created it."""
        if self._http_client and self._owns_http_client:
            await self._http_client.aclose()
            self._http_client = None

    async def __aenter__(self) -> "JobClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
        return False

    def _read_credential(self) -> str:
        credential = self.credential_provider()
        if not credential:
            raise AuthInvalidError(MISSING_CREDENTIAL_MESSAGE)
        return credential

    def _emit_progress(self, on_progress: Optional[ProgressSink], tick: ProgressTick):
        """Emit a progress tick via callback."""
        if on_progress:
            try:
                on_progress(tick)
            except Exception as e:
                logger.warning(f"Progress callback failed: {e}")

    async def submit_and_await(
        self,
        request: GenerationRequest,
        on_progress: Optional[ProgressSink] = None,
    ) -> GeneratedVideo:
        """
        Submit a generation job, wait for it to finish and download the video.

        Args:
            request: Prompt and/or reference image
            on_progress: Called with a ProgressTick once per poll cycle

        Returns:
            The downloaded video

        Raises:
            AuthInvalidError: Credential missing or not entitled to the model
            BadRequestError: Empty or malformed request
            TransientError: Submission retries exhausted
            UnknownError: Job failed, or its result could not be retrieved
        """
        try:
            credential = self._read_credential()
            payload = build_payload(request)
            backend = self.backend_factory(credential)

            handle = await self._submit(backend, payload)
            started = self._clock()
            handle = await self._poll(backend, handle, on_progress, started)
            asset = self._resolve(handle)
            video = await self._download(asset, credential)

            video.job_name = handle.name
            video.elapsed_seconds = self._elapsed_since(started)
            return video

        except VideoGenerationError as e:
            if e.requires_new_credential:
                logger.warning(f"Video generation rejected credential: {e}")
            else:
                logger.error(f"Video generation failed: {e}")
            raise

        except Exception as e:
            error = coerce_error(e)
            logger.error(f"Video generation failed: {error}")
            raise error from e

    async def _submit(self, backend: JobBackend, payload: dict[str, Any]) -> JobHandle:
        """Create the job, retrying transient failures with exponential backoff."""
        settings = self.config.client

        retrying = AsyncRetrying(
            stop=stop_after_attempt(settings.max_submit_attempts),
            # Delay after failed attempt n: base * 2**n -> 2s, 4s, ...
            wait=wait_exponential(multiplier=2 * settings.backoff_base_seconds),
            retry=retry_if_exception(is_retryable_submission_error),
            sleep=self._sleep,
            before_sleep=before_sleep_log(logger, logging.WARNING),
        )

        handle: Optional[JobHandle] = None
        try:
            async for attempt in retrying:
                with attempt:
                    handle = await backend.create_job(payload)

        except RetryError as e:
            last_error = e.last_attempt.exception()
            logger.debug(
                f"Job submission failed after {settings.max_submit_attempts} attempts: "
                f"{normalize_error_message(last_error)}"
            )
            raise TransientError(SUBMIT_EXHAUSTED_MESSAGE) from last_error

        except Exception as e:
            kind = classify_submission_error(e) or ErrorKind.UNKNOWN
            raise error_for_kind(kind, normalize_error_message(e)) from e

        logger.info(f"Job submitted: {handle.name}")
        return handle

    def _elapsed_since(self, started: float) -> int:
        return max(0, math.floor(self._clock() - started))

    async def _poll(
        self,
        backend: JobBackend,
        handle: JobHandle,
        on_progress: Optional[ProgressSink],
        started: float,
    ) -> JobHandle:
        """Refresh the job every poll interval until it reaches a terminal state."""
        settings = self.config.client
        consecutive_errors = 0

        while not handle.status.done:
            await self._sleep(settings.poll_interval_seconds)
            self._emit_progress(on_progress, ProgressTick(elapsed_seconds=self._elapsed_since(started)))

            try:
                handle = await backend.get_job(handle)
            except Exception as e:
                consecutive_errors += 1
                message = normalize_error_message(e)
                logger.warning(
                    f"Polling failed (attempt {consecutive_errors}), retrying next cycle: {message}"
                )
                limit = settings.max_consecutive_poll_failures
                if limit is not None and consecutive_errors >= limit:
                    raise UnknownError(
                        f"Lost track of job {handle.name} after {consecutive_errors} "
                        f"consecutive polling failures: {message}"
                    ) from e
                continue

            consecutive_errors = 0

        logger.info(f"Job finished: {handle.name}")
        return handle

    def _resolve(self, handle: JobHandle) -> AssetRef:
        """Turn a finished job into the asset to download."""
        status = handle.status

        if status.failure is not None:
            raise UnknownError(status.failure.message or JOB_FAILED_FALLBACK_MESSAGE)

        if status.asset is None:
            raise UnknownError(NO_ASSET_MESSAGE)

        return status.asset

    async def _download(self, asset: AssetRef, credential: str) -> GeneratedVideo:
        """Fetch the finished video's bytes."""
        client = await self._get_client()
        response = await client.get(download_url(asset, credential))

        if not response.is_success:
            detail = response.text or response.reason_phrase
            raise UnknownError(f"Failed to download video: {response.status_code} - {detail}")

        mime_type = response.headers.get("content-type", "").split(";")[0].strip()
        video = GeneratedVideo(
            data=response.content,
            mime_type=mime_type or DEFAULT_VIDEO_MIME_TYPE,
            source_uri=asset.uri,
        )
        logger.info(f"Video downloaded from {asset.uri} ({video.size_bytes / 1024 / 1024:.1f} MB)")
        return video
