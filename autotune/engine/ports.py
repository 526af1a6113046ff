"""Boundary types for the host audio graph.

The engine never performs DSP itself. It asks the host graph for nodes
(gain endpoints, a gate, a pitch shifter, an analyser), wires them, and
from then on only reads analysis frames and sends commands.
"""

from typing import Any, Protocol
import numpy as np


class AudioNode(Protocol):
    """Any node owned by an effect."""

    def dispose(self) -> None:
        ...


class FrameSource(AudioNode, Protocol):
    """Continuously refreshed fixed-size snapshot of the pre-effect signal."""

    def read(self) -> np.ndarray:
        ...


class PitchShifter(AudioNode, Protocol):
    """Pitch-shift command surface (fire-and-forget)."""

    def ramp_to(self, shift_semitones: float, duration_seconds: float) -> None:
        ...


class Gate(AudioNode, Protocol):
    """Amplitude gate placed before the shifter."""

    def set_threshold(self, db: float) -> None:
        ...


class AudioGraph(Protocol):
    """Factory for the nodes an effect splices into the host's routing."""

    sample_rate: float

    def create_gain(self) -> AudioNode:
        ...

    def create_gate(self, threshold_db: float) -> Gate:
        ...

    def create_pitch_shifter(self, window_size: float) -> PitchShifter:
        ...

    def create_analyser(self, size: int) -> FrameSource:
        ...

    def connect(self, source: Any, destination: Any) -> None:
        ...
