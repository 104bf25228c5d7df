"""
Veo Job Client Core Components

Shared configuration for the job client, streaming helpers and CLI.
"""

from .config import Config, JobClientConfig, VeoConfig, get_config, reload_config

__all__ = ["Config", "JobClientConfig", "VeoConfig", "get_config", "reload_config"]
