#!/usr/bin/env python3
"""
CLI Video Generator

Generates one Veo video from a prompt and/or reference image, showing
elapsed time while the job renders, and saves the result as an mp4.

Usage:
    python -m cli.generate "A cat surfing a wave at sunset"
    python -m cli.generate --image cat.png --output-dir ./videos
    python -m cli.generate "Make it dance" --image cat.png --filename dance.mp4

The API key is read from GEMINI_API_KEY, GOOGLE_API_KEY or API_KEY.
"""

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import Optional, Sequence

from core.config import Config, get_config
from services.streaming import EventType, ProgressChannel, ProgressEvent, ProgressTracker
from services.video_generation import (
    BadRequestError,
    CredentialProvider,
    GenerationRequest,
    ImageInput,
    JobClient,
    VideoGenerationError,
)

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CREDENTIAL = 2

CREDENTIAL_HINT = (
    "The API key was missing, invalid, or not associated with a paid project "
    "required for Veo. Please set a valid paid key."
)


# ANSI color codes
class Colors:
    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    CYAN = "\033[36m"

    # Clear line
    CLEAR_LINE = "\033[2K\r"


def colored(text: str, color: str) -> str:
    """Apply color to text."""
    return f"{color}{text}{Colors.RESET}"


def format_duration(seconds: float) -> str:
    """Format duration as HH:MM:SS or MM:SS."""
    if seconds < 0:
        return "--:--"

    minutes, secs = divmod(int(seconds), 60)
    hours, minutes = divmod(minutes, 60)

    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes:02d}:{secs:02d}"


def credential_from_env(names: Sequence[str]) -> CredentialProvider:
    """Credential provider re-reading the environment on every call."""

    def read() -> Optional[str]:
        for name in names:
            value = os.getenv(name)
            if value:
                return value
        return None

    return read


def format_event(event: ProgressEvent) -> str:
    """Format a tracker event for the terminal."""
    line = event.to_cli_line()
    if event.event_type == EventType.PROGRESS:
        elapsed = colored(format_duration(event.state.elapsed_seconds), Colors.DIM)
        return f"{Colors.CLEAR_LINE}{line} {elapsed}"
    if event.event_type == EventType.COMPLETED:
        return "\n" + colored(line, Colors.GREEN)
    if event.event_type == EventType.FAILED:
        return "\n" + colored(line, Colors.RED)
    return colored(line, Colors.CYAN)


def print_event(event: ProgressEvent):
    # Progress lines overwrite each other in place
    end = "" if event.event_type == EventType.PROGRESS else "\n"
    print(format_event(event), end=end, flush=True)


def build_request(prompt: Optional[str], image_path: Optional[str]) -> GenerationRequest:
    """
    Collect CLI input into a request.

    Raises:
        BadRequestError: If neither prompt nor image is given, or the image type is unsupported
    """
    image = ImageInput.from_path(image_path) if image_path else None
    request = GenerationRequest(prompt=prompt, image=image)
    if not request.has_input:
        raise BadRequestError("Please provide a text prompt or an image to generate a video.")
    return request


async def run_generation(
    client: JobClient,
    request: GenerationRequest,
    tracker: ProgressTracker,
    output_dir: str,
    filename: Optional[str] = None,
) -> Path:
    """
    Run one job, feeding ticks through a channel into the tracker.

    Returns:
        Path of the saved video
    """
    channel = ProgressChannel()
    tracker.started()

    job = asyncio.create_task(client.submit_and_await(request, on_progress=channel))
    job.add_done_callback(lambda _: channel.close())

    try:
        async for tick in channel:
            tracker.update(tick)
        video = await job
        output_path = video.save(output_dir, filename)
    except VideoGenerationError as e:
        tracker.failed(e.message)
        raise
    finally:
        if not job.done():
            job.cancel()

    tracker.completed(output_path)
    return output_path


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate a video with Veo from a prompt and/or reference image",
    )
    parser.add_argument("prompt", nargs="?", default=None, help="Describe the video to generate")
    parser.add_argument("--image", "-i", help="Reference image (png, jpeg or webp)")
    parser.add_argument("--output-dir", "-o", help="Directory for the generated video")
    parser.add_argument("--filename", "-f", help="Output filename (default: veo-video-<ms>.mp4)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose logging")
    return parser


async def generate(args: argparse.Namespace, config: Optional[Config] = None) -> int:
    """Run the CLI command and return the process exit code."""
    config = config or get_config()

    try:
        request = build_request(args.prompt, args.image)
    except VideoGenerationError as e:
        print(colored(f"❌ {e.message}", Colors.RED), file=sys.stderr)
        return EXIT_FAILED

    tracker = ProgressTracker()
    tracker.on_event(print_event)

    client = JobClient(
        credential_provider=credential_from_env(config.credential_env_vars),
        config=config,
    )
    try:
        await run_generation(
            client,
            request,
            tracker,
            output_dir=args.output_dir or config.output_dir,
            filename=args.filename,
        )
    except VideoGenerationError as e:
        if e.requires_new_credential:
            tracker.reset()
            print(colored(CREDENTIAL_HINT, Colors.YELLOW + Colors.BOLD), file=sys.stderr)
            return EXIT_CREDENTIAL
        return EXIT_FAILED
    finally:
        await client.close()

    return EXIT_OK


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%H:%M:%S",
    )

    try:
        return asyncio.run(generate(args))
    except KeyboardInterrupt:
        print("\nCancelled")
        return EXIT_FAILED


if __name__ == "__main__":
    sys.exit(main())
