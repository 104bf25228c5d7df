#!/usr/bin/env python3
"""
Veo Job Client - Main Entry Point

Usage:
    # Generate a video from a prompt
    python main.py generate "A golden retriever running through a field"

    # Animate a reference image
    python main.py generate --image dog.png --output-dir ./videos

    # Check configuration and credential availability
    python main.py check
"""

import argparse
import asyncio
import logging
import os
import sys

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("veojobs")


def check_config() -> int:
    """Report configuration issues and which credential variable is set."""
    from core.config import get_config

    config = get_config()
    issues = config.validate()

    print(f"Model: {config.veo.model} ({config.veo.resolution}, {config.veo.aspect_ratio})")
    print(f"Poll interval: {config.client.poll_interval_seconds}s")
    limit = config.client.max_consecutive_poll_failures
    print(f"Max consecutive poll failures: {limit if limit is not None else 'unlimited'}")
    print(f"Output directory: {config.output_dir}")

    key_source = next((name for name in config.credential_env_vars if os.getenv(name)), None)
    if key_source:
        print(f"API key: found in {key_source}")
    else:
        issues.append(f"No API key set (tried {', '.join(config.credential_env_vars)})")

    for issue in issues:
        print(f"  - {issue}")
    return 1 if issues else 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Veo Job Client - prompt/image to video",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Generate a video
    python main.py generate "Timelapse of a city at night"

    # Generate from a reference image with a custom filename
    python main.py generate "Make it snow" --image street.jpg --filename snow.mp4

    # Validate configuration
    python main.py check
        """,
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Generate command (same arguments as the standalone CLI)
    from cli.generate import build_parser as build_generate_parser

    subparsers.add_parser(
        "generate",
        parents=[build_generate_parser()],
        add_help=False,
        help="Generate a video",
    )

    # Check command
    subparsers.add_parser("check", help="Validate configuration")
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    if args.command == "generate":
        from cli.generate import generate

        if args.verbose:
            logging.getLogger().setLevel(logging.DEBUG)

        try:
            sys.exit(asyncio.run(generate(args)))
        except KeyboardInterrupt:
            logger.info("Generation cancelled")
            sys.exit(1)

    elif args.command == "check":
        sys.exit(check_config())


if __name__ == "__main__":
    main()
