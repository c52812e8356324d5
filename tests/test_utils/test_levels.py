"""Tests for loudness unit conversions"""

import numpy as np
import pytest

from bark_responder.utils.levels import (
    SILENCE_DBFS, dbfs_to_percent, dbfs_to_rms, rms_dbfs
)


class TestRmsDbfs:
    def test_full_scale_square_wave_is_zero_dbfs(self):
        samples = np.array([1.0, -1.0] * 512, dtype=np.float32)
        assert rms_dbfs(samples) == pytest.approx(0.0, abs=1e-6)

    def test_half_amplitude_is_minus_six(self):
        samples = np.full(1024, 0.5, dtype=np.float32)
        assert rms_dbfs(samples) == pytest.approx(-6.02, abs=0.01)

    def test_silence_and_empty_hit_floor(self):
        assert rms_dbfs(np.zeros(256)) == SILENCE_DBFS
        assert rms_dbfs(np.array([])) == SILENCE_DBFS

    def test_returns_plain_float(self):
        assert type(rms_dbfs(np.full(8, 0.1))) is float


class TestDisplayConversions:
    @pytest.mark.parametrize("dbfs,percent", [
        (-160.0, 0), (-60.0, 0), (-45.0, 25), (-30.0, 50), (-15.0, 75), (0.0, 100), (3.0, 100)
    ])
    def test_dbfs_to_percent(self, dbfs, percent):
        assert dbfs_to_percent(dbfs) == percent

    def test_dbfs_to_rms(self):
        assert dbfs_to_rms(0.0) == 32767
        assert dbfs_to_rms(-20.0) == 3277
