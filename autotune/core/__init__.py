"""Core types and constants for the autotune engine."""

from .types import (
    DetectionResult,
    UNVOICED,
    CorrectionState,
    freq_to_midi,
    midi_to_freq,
    pitch_class,
    midi_to_name,
)
from .constants import (
    PITCH_NAMES,
    DEFAULT_SR,
    DEFAULT_FRAME_SIZE,
    DEFAULT_FMIN,
    DEFAULT_FMAX,
)

__all__ = [
    "DetectionResult",
    "UNVOICED",
    "CorrectionState",
    "freq_to_midi",
    "midi_to_freq",
    "pitch_class",
    "midi_to_name",
    "PITCH_NAMES",
    "DEFAULT_SR",
    "DEFAULT_FRAME_SIZE",
    "DEFAULT_FMIN",
    "DEFAULT_FMAX",
]
