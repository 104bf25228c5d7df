"""
Configuration management for the Veo job client.

Centralizes:
- Veo model and output settings
- Submission retry and polling timing
- Output location and credential lookup for the CLI
"""

import os
from dataclasses import dataclass, field
from typing import Optional


def _optional_int(name: str) -> Optional[int]:
    value = os.getenv(name, "").strip()
    return int(value) if value else None


@dataclass
class VeoConfig:
    """Video model settings sent with every generation request."""

    model: str = field(
        default_factory=lambda: os.getenv("VEO_MODEL", "veo-3.1-fast-generate-preview")
    )
    resolution: str = "720p"
    aspect_ratio: str = "16:9"
    number_of_videos: int = 1


@dataclass
class JobClientConfig:
    """Timing for the submit / poll / download lifecycle."""

    # Submission: delay after failed attempt n is backoff_base_seconds * 2**n
    max_submit_attempts: int = 3
    backoff_base_seconds: float = 1.0

    # Polling
    poll_interval_seconds: float = 5.0
    max_consecutive_poll_failures: Optional[int] = field(
        default_factory=lambda: _optional_int("VEO_MAX_POLL_FAILURES")
    )  # None = keep polling through any number of refresh failures

    # Download
    download_timeout_seconds: float = 300.0


@dataclass
class Config:
    """Main configuration class."""

    veo: VeoConfig = field(default_factory=VeoConfig)
    client: JobClientConfig = field(default_factory=JobClientConfig)

    output_dir: str = field(default_factory=lambda: os.getenv("VEO_OUTPUT_DIR", "output"))

    # Checked in order by the CLI credential provider
    credential_env_vars: tuple[str, ...] = ("GEMINI_API_KEY", "GOOGLE_API_KEY", "API_KEY")

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        return cls()

    def validate(self) -> list[str]:
        """Validate configuration and return list of issues."""
        issues = []

        if self.client.max_submit_attempts < 1:
            issues.append("max_submit_attempts must be at least 1")

        if self.client.poll_interval_seconds <= 0:
            issues.append("poll_interval_seconds must be positive")

        limit = self.client.max_consecutive_poll_failures
        if limit is not None and limit < 1:
            issues.append("max_consecutive_poll_failures must be at least 1 when set")

        if not self.veo.model:
            issues.append("VEO_MODEL is empty")

        return issues


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = Config.from_env()
    return _config


def reload_config():
    """Reload configuration from environment."""
    global _config
    _config = Config.from_env()
