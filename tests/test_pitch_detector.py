"""Tests for YIN pitch detection."""

from decimal import Decimal

import numpy as np
import pytest
import librosa

from autotune.analysis import PitchDetector, DetectorConfig, detect
from autotune.core import UNVOICED, DetectionResult


def generate_sine_wave(freq: float, n_samples: int, sr: int, amplitude: float = 0.5,
                       phase: float = 0.0) -> np.ndarray:
    """Generate a sine wave at given frequency."""
    t = np.arange(n_samples) / sr
    return (amplitude * np.sin(2 * np.pi * freq * t + phase)).astype(np.float32)


class TestSineDetection:
    """Pure tones inside the band are found within 1% with high confidence."""

    @pytest.mark.parametrize("freq", [110.0, 196.0, 261.63, 440.0, 523.25, 880.0])
    def test_detects_sine_at_44100(self, freq):
        frame = generate_sine_wave(freq, 2048, 44100)
        result = detect(frame, 44100, fmin=80.0, fmax=1000.0)

        assert result.voiced
        assert abs(result.frequency_hz - freq) / freq < 0.01
        assert result.confidence > 0.5

    @pytest.mark.parametrize("sr", [22050, 48000])
    def test_detects_sine_at_other_rates(self, sr):
        frame = generate_sine_wave(330.0, 2048, sr, phase=1.3)
        result = detect(frame, sr, fmin=80.0, fmax=1000.0)

        assert result.voiced
        assert result.frequency_hz == pytest.approx(330.0, rel=0.01)
        assert result.confidence > 0.5

    @pytest.mark.parametrize("freq", [80.0, 1000.0])
    def test_band_edges_are_inclusive(self, freq):
        frame = generate_sine_wave(freq, 2048, 44100)
        result = detect(frame, 44100, fmin=80.0, fmax=1000.0)

        assert result.voiced
        assert result.frequency_hz == pytest.approx(freq, rel=0.01)

    def test_default_frame_size(self):
        """The engine's 1024-sample analyser frame is enough for A4."""
        frame = generate_sine_wave(440.0, 1024, 44100)
        result = PitchDetector().detect(frame, 44100)

        assert result.frequency_hz == pytest.approx(440.0, rel=0.01)

    def test_dc_offset_is_removed(self):
        frame = generate_sine_wave(440.0, 2048, 44100) + 0.3
        result = detect(frame, 44100)

        assert result.frequency_hz == pytest.approx(440.0, rel=0.01)

    def test_agrees_with_librosa_yin(self):
        sr = 22050
        y = librosa.tone(247.0, sr=sr, duration=0.5) * 0.5
        f0 = librosa.yin(y, fmin=80, fmax=1000, sr=sr, frame_length=2048)
        reference = float(np.median(f0))

        result = detect(y[4096:4096 + 2048], sr, fmin=80.0, fmax=1000.0)

        assert result.voiced
        assert result.frequency_hz == pytest.approx(reference, rel=0.02)

    def test_midi_property(self):
        frame = generate_sine_wave(440.0, 2048, 44100)
        result = detect(frame, 44100)

        assert result.midi == pytest.approx(69.0, abs=0.1)


class TestUnvoiced:
    """Silence, noise floor and degenerate input yield UNVOICED."""

    @pytest.mark.parametrize("sr", [8000, 22050, 44100, 96000])
    @pytest.mark.parametrize("band", [(80.0, 1000.0), (50.0, 400.0), (200.0, 2000.0)])
    def test_silence(self, sr, band):
        result = detect(np.zeros(2048, dtype=np.float32), sr, *band)

        assert result == UNVOICED
        assert result.frequency_hz is None
        assert result.confidence == 0.0

    def test_below_silence_floor(self):
        # RMS ~0.0035, under the 0.008 floor
        frame = generate_sine_wave(440.0, 2048, 44100, amplitude=0.005)
        assert detect(frame, 44100) == UNVOICED

    def test_silence_floor_is_configurable(self):
        frame = generate_sine_wave(440.0, 2048, 44100, amplitude=0.005)
        detector = PitchDetector(DetectorConfig(silence_floor=0.001))

        result = detector.detect(frame, 44100)
        assert result.frequency_hz == pytest.approx(440.0, rel=0.01)

    def test_constant_signal(self):
        frame = np.full(2048, 0.5, dtype=np.float32)
        assert detect(frame, 44100) == UNVOICED

    def test_lag_range_collapses(self):
        """A frame too short for the band cannot be analysed."""
        frame = generate_sine_wave(440.0, 64, 44100)
        assert detect(frame, 44100, fmin=80.0, fmax=1000.0) == UNVOICED

    def test_tone_below_band(self):
        frame = generate_sine_wave(60.0, 2048, 44100)
        assert detect(frame, 44100, fmin=80.0, fmax=1000.0) == UNVOICED

    @pytest.mark.parametrize("frame,sr,fmin,fmax", [
        (np.array([], dtype=np.float32), 44100, 80.0, 1000.0),
        (np.full(2048, np.nan), 44100, 80.0, 1000.0),
        (generate_sine_wave(440.0, 2048, 44100), 0, 80.0, 1000.0),
        (generate_sine_wave(440.0, 2048, 44100), 44100, 1000.0, 80.0),
        (generate_sine_wave(440.0, 2048, 44100), 44100, 0.0, 1000.0),
        (None, 44100, 80.0, 1000.0),
        ("not audio", 44100, 80.0, 1000.0),
        (generate_sine_wave(440.0, 2048, 44100), "fast", 80.0, 1000.0),
        (generate_sine_wave(440.0, 2048, 44100), 44100, float("nan"), 1000.0),
    ])
    def test_malformed_input_never_raises(self, frame, sr, fmin, fmax):
        assert detect(frame, sr, fmin, fmax) == UNVOICED

    @pytest.mark.parametrize("sr,fmin,fmax", [
        ("44100", 80.0, 1000.0),
        (44100, "80", "1000"),
        (Decimal("44100"), Decimal("80"), Decimal("1000")),
        (np.int64(44100), np.float32(80.0), np.float32(1000.0)),
    ])
    def test_numeric_like_arguments_are_accepted(self, sr, fmin, fmax):
        frame = generate_sine_wave(440.0, 2048, 44100)
        result = detect(frame, sr, fmin, fmax)

        assert result.voiced
        assert result.frequency_hz == pytest.approx(440.0, rel=0.01)

    def test_noise_results_are_well_formed(self):
        rng = np.random.default_rng(1234)
        detector = PitchDetector()

        for _ in range(20):
            frame = (rng.standard_normal(1024) * 0.1).astype(np.float32)
            result = detector.detect(frame, 44100, 80.0, 1000.0)

            assert isinstance(result, DetectionResult)
            assert 0.0 <= result.confidence <= 1.0
            if result.voiced:
                assert 80.0 * 0.995 <= result.frequency_hz <= 1000.0 * 1.005
            else:
                assert result.confidence == 0.0


class TestDifferenceFunctions:
    """Tests for the YIN building blocks."""

    def test_cmnd_starts_at_one(self):
        d = np.array([0.0, 1.0, 1.0, 1.0])
        cmnd = PitchDetector.cumulative_mean_normalized_difference(d)

        assert cmnd[0] == 1.0
        np.testing.assert_allclose(cmnd, [1.0, 1.0, 1.0, 1.0])

    def test_cmnd_guards_zero_divisor(self):
        cmnd = PitchDetector.cumulative_mean_normalized_difference(np.zeros(5))
        np.testing.assert_allclose(cmnd, np.ones(5))

    def test_cmnd_normalization(self):
        d = np.array([0.0, 2.0, 4.0, 0.5])
        cmnd = PitchDetector.cumulative_mean_normalized_difference(d)

        # d(tau) * tau / sum(d[1..tau])
        assert cmnd[1] == pytest.approx(2.0 * 1 / 2.0)
        assert cmnd[2] == pytest.approx(4.0 * 2 / 6.0)
        assert cmnd[3] == pytest.approx(0.5 * 3 / 6.5)

    def test_difference_function_dips_at_period(self):
        sr = 8000
        frame = generate_sine_wave(200.0, 1024, sr).astype(np.float64)
        d = PitchDetector.difference_function(frame, 60)

        assert d[0] == 0.0
        assert len(d) == 61
        # Period is exactly 40 samples
        assert d[40] < 1e-6
        assert d[20] > d[40]
