"""Pitch detection - YIN fundamental-frequency estimation on a single frame.

Implements the time-domain YIN estimator:
- DC removal and a silence floor acting as a detection noise gate
- Squared-difference function over the candidate lag range
- Cumulative-mean-normalized difference (CMND)
- Absolute threshold with local-minimum walk
- Parabolic interpolation of the period estimate
"""

from dataclasses import dataclass
from typing import Optional, Tuple
import numpy as np

from ..core import DetectionResult, UNVOICED
from ..core.constants import (
    DEFAULT_FMIN,
    DEFAULT_FMAX,
    DEFAULT_SILENCE_FLOOR,
    DEFAULT_YIN_THRESHOLD,
)


@dataclass
class DetectorConfig:
    """Configuration for YIN pitch detection.

    Attributes:
        silence_floor: RMS below which a frame is treated as silence (default: 0.008)
        threshold: CMND dip threshold for accepting a period (default: 0.15)
        fmin: Lowest detectable frequency in Hz (default: 80)
        fmax: Highest detectable frequency in Hz (default: 1000)
        interpolation_epsilon: Smallest parabola denominator used for refinement
        band_tolerance: Relative slack on the band check, so a tone at
            exactly fmin or fmax survives interpolation error (default: 0.005)
    """

    silence_floor: float = DEFAULT_SILENCE_FLOOR
    threshold: float = DEFAULT_YIN_THRESHOLD
    fmin: float = DEFAULT_FMIN
    fmax: float = DEFAULT_FMAX
    interpolation_epsilon: float = 1e-12
    band_tolerance: float = 0.005


class PitchDetector:
    """Monophonic YIN pitch detector for short analysis frames.

    Stateless apart from its configuration; one detector may be shared by
    any number of engines.
    """

    def __init__(self, config: Optional[DetectorConfig] = None):
        self.config = config if config is not None else DetectorConfig()

    def detect(
        self,
        frame: np.ndarray,
        sample_rate: float,
        fmin: Optional[float] = None,
        fmax: Optional[float] = None,
    ) -> DetectionResult:
        """
        Estimate the fundamental frequency of one frame.

        Args:
            frame: Time-domain samples, nominally in [-1, 1]
            sample_rate: Sample rate in Hz
            fmin: Lowest accepted frequency (defaults to config)
            fmax: Highest accepted frequency (defaults to config)

        Returns:
            DetectionResult; UNVOICED for silence, noise or anything
            that cannot be analyzed. Never raises.
        """
        fmin = self.config.fmin if fmin is None else fmin
        fmax = self.config.fmax if fmax is None else fmax

        prepared = self._prepare(frame, sample_rate, fmin, fmax)
        if prepared is None:
            return UNVOICED
        x, sample_rate, fmin, fmax = prepared

        n = len(x)
        tau_min = int(np.floor(sample_rate / fmax))
        tau_max = min(int(np.floor(sample_rate / fmin)), n // 2 - 1)
        if tau_max <= tau_min + 2:
            return UNVOICED

        cmnd = self.cumulative_mean_normalized_difference(
            self.difference_function(x, tau_max)
        )

        tau = self._absolute_threshold(cmnd, max(tau_min, 1), tau_max)
        if tau is None:
            return UNVOICED

        refined_tau = self._parabolic_interpolation(cmnd, tau)
        if refined_tau <= 0:
            return UNVOICED

        frequency = float(sample_rate / refined_tau)
        slack = self.config.band_tolerance
        if not (fmin * (1.0 - slack) <= frequency <= fmax * (1.0 + slack)):
            return UNVOICED

        confidence = float(np.clip(1.0 - cmnd[tau], 0.0, 1.0))
        return DetectionResult(frequency_hz=frequency, confidence=confidence)

    def _prepare(
        self,
        frame: np.ndarray,
        sample_rate: float,
        fmin: float,
        fmax: float,
    ) -> Optional[Tuple[np.ndarray, float, float, float]]:
        """Validate inputs.

        Returns:
            (DC-free frame, sample_rate, fmin, fmax) as float64/float, or
            None to bail out
        """
        try:
            x = np.asarray(frame, dtype=np.float64).ravel()
            sample_rate = float(sample_rate)
            fmin = float(fmin)
            fmax = float(fmax)
        except (TypeError, ValueError):
            return None

        if x.size == 0 or not np.all(np.isfinite(x)):
            return None
        if not (np.isfinite(sample_rate) and sample_rate > 0):
            return None
        if not (np.isfinite(fmin) and np.isfinite(fmax) and 0 < fmin < fmax):
            return None

        x = x - x.mean()

        # Detection noise gate, independent of the audio-path gate
        rms = float(np.sqrt(np.mean(x * x)))
        if rms < self.config.silence_floor:
            return None

        return x, sample_rate, fmin, fmax

    @staticmethod
    def difference_function(x: np.ndarray, tau_max: int) -> np.ndarray:
        """
        Squared-difference function d(tau) for tau in [0, tau_max].

        Returns:
            Array of length tau_max + 1 with d[0] = 0
        """
        d = np.zeros(tau_max + 1, dtype=np.float64)
        for tau in range(1, tau_max + 1):
            diff = x[:-tau] - x[tau:]
            d[tau] = np.dot(diff, diff)
        return d

    @staticmethod
    def cumulative_mean_normalized_difference(d: np.ndarray) -> np.ndarray:
        """CMND: d(tau) * tau / sum(d[1..tau]), with cmnd(0) = 1."""
        cmnd = np.ones_like(d)
        if len(d) < 2:
            return cmnd

        running = np.cumsum(d[1:])
        taus = np.arange(1, len(d), dtype=np.float64)
        with np.errstate(divide="ignore", invalid="ignore"):
            normalized = d[1:] * taus / running
        cmnd[1:] = np.where(running > 0, normalized, 1.0)
        return cmnd

    def _absolute_threshold(
        self, cmnd: np.ndarray, tau_min: int, tau_max: int
    ) -> Optional[int]:
        """First lag under the threshold, walked forward to its local minimum."""
        below = np.nonzero(cmnd[tau_min:tau_max + 1] < self.config.threshold)[0]
        if below.size == 0:
            return None

        tau = tau_min + int(below[0])
        while tau + 1 <= tau_max and cmnd[tau + 1] < cmnd[tau]:
            tau += 1
        return tau

    def _parabolic_interpolation(self, cmnd: np.ndarray, tau: int) -> float:
        """Refine the lag using the two neighbouring CMND values."""
        if tau < 1 or tau + 1 >= len(cmnd):
            return float(tau)

        s0, s1, s2 = cmnd[tau - 1], cmnd[tau], cmnd[tau + 1]
        denom = s0 + s2 - 2.0 * s1
        if abs(denom) < self.config.interpolation_epsilon:
            return float(tau)

        shift = (s0 - s2) / (2.0 * denom)
        # A vertex more than one lag away means the parabola fit is meaningless
        if abs(shift) > 1.0:
            return float(tau)
        return float(tau + shift)


_DEFAULT_DETECTOR = PitchDetector()


def detect(
    frame: np.ndarray,
    sample_rate: float,
    fmin: float = DEFAULT_FMIN,
    fmax: float = DEFAULT_FMAX,
) -> DetectionResult:
    """Detect pitch with the default detector configuration."""
    return _DEFAULT_DETECTOR.detect(frame, sample_rate, fmin, fmax)
