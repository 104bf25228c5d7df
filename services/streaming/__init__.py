"""
Progress Streaming

Turns the job client's elapsed-time ticks into something a front-end can
render: a bounded channel for task-to-task delivery and a tracker holding
the user-visible generation state.
"""

from .channel import ProgressChannel
from .progress_tracker import (
    EventType,
    GenerationStatus,
    ProgressEvent,
    ProgressTracker,
    VideoGenerationState,
)

__all__ = [
    "ProgressChannel",
    "ProgressTracker",
    "ProgressEvent",
    "EventType",
    "GenerationStatus",
    "VideoGenerationState",
]
