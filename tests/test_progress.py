"""
Progress streaming tests - tracker state machine and bounded channel.

Run with:
    python -m pytest tests/test_progress.py -v
"""

import asyncio
import os
import sys

import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from services.streaming import (
    EventType,
    GenerationStatus,
    ProgressChannel,
    ProgressTracker,
)
from services.video_generation.models import ProgressTick


def tick(seconds: int) -> ProgressTick:
    return ProgressTick(elapsed_seconds=seconds)


class TestProgressTracker:
    """User-visible generation state."""

    def test_starts_idle(self):
        tracker = ProgressTracker()
        assert tracker.state.status == GenerationStatus.IDLE
        assert not tracker.is_loading
        assert tracker.get_history() == []

    def test_successful_run(self):
        tracker = ProgressTracker()
        events = []
        tracker.on_event(events.append)

        tracker.started()
        assert tracker.state.status == GenerationStatus.GENERATING
        assert tracker.is_loading

        tracker.update(tick(5))
        tracker(tick(10))
        assert tracker.state.status == GenerationStatus.POLLING
        assert tracker.state.elapsed_seconds == 10

        tracker.completed("output/veo-video-1.mp4")
        assert tracker.state.status == GenerationStatus.COMPLETED
        assert tracker.state.video_path == "output/veo-video-1.mp4"
        assert not tracker.is_loading

        assert [e.event_type for e in events] == [
            EventType.STARTED,
            EventType.PROGRESS,
            EventType.PROGRESS,
            EventType.COMPLETED,
        ]

    def test_history_keeps_each_state(self):
        tracker = ProgressTracker()
        tracker.started()
        tracker.update(tick(5))
        tracker.update(tick(10))

        history = tracker.get_history()
        assert [e.state.elapsed_seconds for e in history] == [0, 5, 10]
        assert history[0].state.status == GenerationStatus.GENERATING

    def test_failed_run(self):
        tracker = ProgressTracker()
        tracker.started()
        tracker.failed("quota exceeded")

        assert tracker.state.status == GenerationStatus.FAILED
        assert tracker.state.error == "quota exceeded"
        assert tracker.get_history()[-1].message == "Generation failed: quota exceeded"

    def test_new_run_clears_previous_result(self):
        tracker = ProgressTracker()
        tracker.started()
        tracker.failed("boom")

        tracker.started()

        assert tracker.state.error is None
        assert tracker.state.elapsed_seconds == 0

    def test_reset_returns_to_idle(self):
        tracker = ProgressTracker()
        tracker.started()
        tracker.failed("Requested entity was not found.")

        tracker.reset()

        assert tracker.state.status == GenerationStatus.IDLE
        assert tracker.state.error is None

    def test_callback_errors_are_contained(self):
        tracker = ProgressTracker()
        received = []

        def broken(event):
            raise RuntimeError("terminal gone")

        tracker.on_event(broken)
        tracker.on_event(received.append)

        tracker.started()

        assert len(received) == 1

    def test_cli_lines(self):
        tracker = ProgressTracker()
        tracker.started()
        tracker.update(tick(15))
        tracker.completed("out.mp4")
        tracker.failed("boom")

        lines = [e.to_cli_line() for e in tracker.get_history()]
        assert lines == [
            "🚀 Initializing...",
            "⏳ Generating (15s)",
            "✅ Video ready: out.mp4",
            "❌ Generation failed: boom",
        ]


class TestProgressChannel:
    """Bounded, non-blocking tick delivery."""

    def test_rejects_empty_buffer(self):
        with pytest.raises(ValueError):
            ProgressChannel(maxsize=0)

    @pytest.mark.asyncio
    async def test_delivers_in_order_until_closed(self):
        channel = ProgressChannel()
        channel.send(tick(5))
        channel(tick(10))
        channel.close()

        received = [t.elapsed_seconds async for t in channel]

        assert received == [5, 10]
        assert channel.closed

    @pytest.mark.asyncio
    async def test_full_buffer_drops_oldest(self):
        channel = ProgressChannel(maxsize=2)
        for seconds in (5, 10, 15):
            channel.send(tick(seconds))
        channel.close()

        received = [t.elapsed_seconds async for t in channel]

        assert received == [15]
        assert channel.dropped == 2

    @pytest.mark.asyncio
    async def test_ticks_after_close_are_ignored(self):
        channel = ProgressChannel()
        channel.close()
        channel.close()
        channel.send(tick(5))

        received = [t async for t in channel]

        assert received == []
        assert channel.dropped == 0

    @pytest.mark.asyncio
    async def test_consumer_waits_for_producer(self):
        channel = ProgressChannel()

        async def produce():
            for seconds in (5, 10, 15):
                await asyncio.sleep(0)
                channel.send(tick(seconds))
            channel.close()

        producer = asyncio.create_task(produce())
        received = [t.elapsed_seconds async for t in channel]
        await producer

        assert received == [5, 10, 15]
