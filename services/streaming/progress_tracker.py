"""
Progress Tracker for a single Veo generation run.

Mirrors what a front-end shows while a job runs:
IDLE -> GENERATING -> POLLING -> COMPLETED | FAILED, plus the elapsed
seconds reported by the job client. Formats events as CLI lines.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

from services.video_generation.models import ProgressTick

logger = logging.getLogger(__name__)


class GenerationStatus(str, Enum):
    """Front-end view of a generation run."""
    IDLE = "idle"
    GENERATING = "generating"  # Sending request
    POLLING = "polling"        # Waiting for the video to render
    COMPLETED = "completed"
    FAILED = "failed"


class EventType(str, Enum):
    """Types of progress events."""
    STARTED = "started"
    PROGRESS = "progress"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class VideoGenerationState:
    """Snapshot of the run as the user sees it."""
    status: GenerationStatus = GenerationStatus.IDLE
    video_path: Optional[str] = None
    error: Optional[str] = None
    elapsed_seconds: int = 0


@dataclass
class ProgressEvent:
    """A state change worth showing to the user."""

    event_type: EventType
    state: VideoGenerationState
    message: str = ""
    timestamp: datetime = field(default_factory=datetime.utcnow)

    def to_cli_line(self) -> str:
        """Format as single CLI line."""
        icons = {
            EventType.STARTED: "🚀",
            EventType.PROGRESS: "⏳",
            EventType.COMPLETED: "✅",
            EventType.FAILED: "❌",
        }
        icon = icons.get(self.event_type, "•")

        if self.event_type == EventType.STARTED:
            return f"{icon} Initializing..."
        if self.event_type == EventType.PROGRESS:
            return f"{icon} Generating ({self.state.elapsed_seconds}s)"
        return f"{icon} {self.message}"


class ProgressTracker:
    """
    Tracks one generation run and notifies listeners on every change.

    Usage:
        tracker = ProgressTracker()
        tracker.on_event(lambda e: print(e.to_cli_line()))

        tracker.started()
        video = await client.submit_and_await(request, on_progress=tracker.update)
        tracker.completed(video.save())
    """

    def __init__(self):
        self.state = VideoGenerationState()
        self._callbacks: list[Callable[[ProgressEvent], None]] = []
        self._event_history: list[ProgressEvent] = []

    def on_event(self, callback: Callable[[ProgressEvent], None]):
        """Register callback for progress events."""
        self._callbacks.append(callback)

    def _emit(self, event_type: EventType, message: str = ""):
        """Emit event to all callbacks."""
        event = ProgressEvent(
            event_type=event_type,
            # Copy so history keeps each state as it was
            state=VideoGenerationState(**vars(self.state)),
            message=message,
        )
        self._event_history.append(event)

        for callback in self._callbacks:
            try:
                callback(event)
            except Exception as e:
                logger.error(f"Progress callback error: {e}")

    @property
    def is_loading(self) -> bool:
        return self.state.status in (GenerationStatus.GENERATING, GenerationStatus.POLLING)

    def started(self):
        """A new run is being submitted."""
        self.state = VideoGenerationState(status=GenerationStatus.GENERATING)
        self._emit(EventType.STARTED, "Initializing...")

    def update(self, tick: ProgressTick):
        """Record a progress tick from the job client."""
        self.state.status = GenerationStatus.POLLING
        self.state.elapsed_seconds = tick.elapsed_seconds
        self._emit(EventType.PROGRESS, f"Generating ({tick.elapsed_seconds}s)")

    __call__ = update

    def completed(self, video_path: Optional[Path] = None):
        """The run produced a video."""
        self.state = VideoGenerationState(
            status=GenerationStatus.COMPLETED,
            video_path=str(video_path) if video_path else None,
        )
        suffix = f": {video_path}" if video_path else ""
        self._emit(EventType.COMPLETED, f"Video ready{suffix}")

    def failed(self, error: str):
        """The run ended with an error."""
        self.state = VideoGenerationState(status=GenerationStatus.FAILED, error=error)
        self._emit(EventType.FAILED, f"Generation failed: {error}")

    def reset(self):
        """Back to idle, e.g. after the user has to pick a new key."""
        self.state = VideoGenerationState()

    def get_history(self) -> list[ProgressEvent]:
        """Get all events emitted so far."""
        return self._event_history.copy()
