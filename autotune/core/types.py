"""Data types shared by the detection, quantization and engine layers."""

from dataclasses import dataclass
from typing import Any, Dict, Optional
import numpy as np

from .constants import PITCH_NAMES, A4_FREQUENCY, A4_MIDI


@dataclass(frozen=True)
class DetectionResult:
    """Result of running pitch detection on one audio frame."""

    frequency_hz: Optional[float]  # None when unvoiced
    confidence: float  # 0.0 - 1.0

    @property
    def voiced(self) -> bool:
        """Whether a fundamental frequency was found."""
        return self.frequency_hz is not None

    @property
    def midi(self) -> Optional[float]:
        """Continuous MIDI pitch of the detected frequency."""
        if self.frequency_hz is None:
            return None
        return freq_to_midi(self.frequency_hz)


UNVOICED = DetectionResult(frequency_hz=None, confidence=0.0)


@dataclass(frozen=True)
class CorrectionState:
    """Read-only snapshot of an engine's configuration and running state."""

    key_pitch_class: int = 0
    scale_name: str = "Chromatic"
    retune_seconds: float = 0.1
    humanize: float = 0.0
    gate_threshold_db: float = -50.0
    enabled: bool = True
    target_midi: Optional[int] = None
    last_shift_semitones: float = 0.0

    @property
    def key_name(self) -> str:
        """Note name of the key root (e.g., 'C', 'F#')."""
        return PITCH_NAMES[self.key_pitch_class % 12]

    def to_config(self) -> Dict[str, Any]:
        """Persistable configuration shape (running state excluded)."""
        return {
            "key": self.key_name,
            "scale": self.scale_name,
            "retune": self.retune_seconds,
            "humanize": self.humanize,
            "gateDb": self.gate_threshold_db,
            "enabled": self.enabled,
        }


def freq_to_midi(freq: float) -> float:
    """Convert frequency (Hz) to a continuous MIDI pitch."""
    if freq <= 0:
        raise ValueError(f"Frequency must be positive, got {freq}")
    return float(A4_MIDI + 12 * np.log2(freq / A4_FREQUENCY))


def midi_to_freq(midi: float) -> float:
    """Convert MIDI pitch to frequency (Hz)."""
    return A4_FREQUENCY * (2 ** ((midi - A4_MIDI) / 12.0))


def pitch_class(midi: int) -> int:
    """Get pitch class (0-11, where 0=C)."""
    return int(midi) % 12


def midi_to_name(midi: int) -> str:
    """Get note name with octave (e.g., 'C4', 'A#3')."""
    octave = (int(midi) // 12) - 1
    return f"{PITCH_NAMES[pitch_class(midi)]}{octave}"
