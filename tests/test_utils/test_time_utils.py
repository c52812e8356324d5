"""Tests for duration formatting"""

import pytest

from bark_responder.utils.time_utils import format_duration


class TestFormatDuration:
    """Test compact duration formatting"""

    @pytest.mark.parametrize("seconds,expected", [
        (0, "0s"), (45, "45s"), (60, "1m 0s"), (200, "3m 20s"), (3900, "1h 5m"), (7200, "2h 0m")
    ])
    def test_format_duration(self, seconds, expected):
        assert format_duration(seconds) == expected

    def test_float_seconds_are_truncated(self):
        assert format_duration(59.9) == "59s"
