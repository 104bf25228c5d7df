"""
Configuration tests.

Run with:
    python -m pytest tests/test_config.py -v
"""

import os
import sys

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core import config as config_module
from core.config import Config, JobClientConfig, VeoConfig


class TestDefaults:

    def test_client_timing(self, monkeypatch):
        monkeypatch.delenv("VEO_MAX_POLL_FAILURES", raising=False)
        settings = JobClientConfig()

        assert settings.max_submit_attempts == 3
        assert settings.backoff_base_seconds == 1.0
        assert settings.poll_interval_seconds == 5.0
        assert settings.max_consecutive_poll_failures is None

    def test_veo_request_settings(self, monkeypatch):
        monkeypatch.delenv("VEO_MODEL", raising=False)
        veo = VeoConfig()

        assert veo.model == "veo-3.1-fast-generate-preview"
        assert veo.resolution == "720p"
        assert veo.aspect_ratio == "16:9"
        assert veo.number_of_videos == 1

    def test_credential_lookup_order(self):
        assert Config().credential_env_vars == ("GEMINI_API_KEY", "GOOGLE_API_KEY", "API_KEY")


class TestEnvironment:

    def test_overrides(self, monkeypatch):
        monkeypatch.setenv("VEO_MODEL", "veo-3.0-generate-001")
        monkeypatch.setenv("VEO_MAX_POLL_FAILURES", "12")
        monkeypatch.setenv("VEO_OUTPUT_DIR", "/tmp/videos")

        config = Config.from_env()

        assert config.veo.model == "veo-3.0-generate-001"
        assert config.client.max_consecutive_poll_failures == 12
        assert config.output_dir == "/tmp/videos"

    def test_blank_poll_limit_means_unlimited(self, monkeypatch):
        monkeypatch.setenv("VEO_MAX_POLL_FAILURES", "  ")
        assert JobClientConfig().max_consecutive_poll_failures is None

    def test_reload(self, monkeypatch):
        monkeypatch.setenv("VEO_MODEL", "first-model")
        config_module.reload_config()
        assert config_module.get_config().veo.model == "first-model"

        monkeypatch.setenv("VEO_MODEL", "second-model")
        assert config_module.get_config().veo.model == "first-model"
        config_module.reload_config()
        assert config_module.get_config().veo.model == "second-model"

        monkeypatch.delenv("VEO_MODEL")
        config_module.reload_config()


class TestValidate:

    def test_defaults_are_valid(self, monkeypatch):
        monkeypatch.delenv("VEO_MAX_POLL_FAILURES", raising=False)
        assert Config().validate() == []

    def test_reports_each_issue(self):
        config = Config(
            veo=VeoConfig(model=""),
            client=JobClientConfig(
                max_submit_attempts=0,
                poll_interval_seconds=0,
                max_consecutive_poll_failures=0,
            ),
        )

        issues = config.validate()

        assert len(issues) == 4
        assert any("max_submit_attempts" in issue for issue in issues)
        assert any("poll_interval_seconds" in issue for issue in issues)
        assert any("max_consecutive_poll_failures" in issue for issue in issues)
        assert any("VEO_MODEL" in issue for issue in issues)
