"""Tests for settings validation."""

import pytest
from pydantic import ValidationError

from bhxh_gateway.config import Config


class TestConfig:
    """Tests for Config bounds."""

    def test_defaults(self):
        """Test the default retry count and session ceiling."""
        config = Config(_env_file=None)

        assert config.max_captcha_retries == 3
        assert config.session_ttl_seconds == 3600

    @pytest.mark.parametrize("field", ["max_captcha_retries", "session_ttl_seconds"])
    @pytest.mark.parametrize("value", [0, -1])
    def test_rejects_non_positive(self, field, value):
        """Test that retry count and session ceiling must be positive."""
        with pytest.raises(ValidationError):
            Config(_env_file=None, **{field: value})

    def test_reads_environment(self, monkeypatch):
        """Test that BHXH_-prefixed variables are validated too."""
        monkeypatch.setenv("BHXH_MAX_CAPTCHA_RETRIES", "0")

        with pytest.raises(ValidationError):
            Config(_env_file=None)
