"""Tests for secret masking in log events."""

from bhxh_gateway.logging import MASK, redact_secrets


class TestRedactSecrets:
    """Tests for the redact_secrets processor."""

    def test_masks_secrets(self):
        """Test that secret keys are masked and other keys kept."""
        event = redact_secrets(None, "info", {"event": "login_started", "username": "0101", "password": "pw", "token": "T"})

        assert event == {"event": "login_started", "username": "0101", "password": MASK, "token": MASK}

    def test_empty_values_untouched(self):
        """Test that absent secrets are not turned into a mask."""
        event = redact_secrets(None, "info", {"event": "x", "api_key": None})

        assert event["api_key"] is None
