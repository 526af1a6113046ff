"""In-memory host audio graph.

Stands in for a real audio backend: nodes record the commands they
receive instead of processing sound, and the analyser is fed synthetic
tones generated with librosa. Used by the CLI and the test suite.
"""

from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple
import numpy as np
import librosa

from .core.constants import DEFAULT_SR


@dataclass(frozen=True)
class RampCommand:
    """One ramp_to() call received by a pitch shifter."""
    shift: float
    duration: float


class SimulatedNode:
    """Base node; tracks disposal."""

    kind = "node"

    def __init__(self):
        self.disposed = False

    def dispose(self) -> None:
        self.disposed = True

    def _check_alive(self) -> None:
        if self.disposed:
            raise RuntimeError(f"{self.kind} node used after dispose()")

    def __repr__(self) -> str:
        state = "disposed" if self.disposed else "live"
        return f"<{type(self).__name__} {state}>"


class SimulatedGain(SimulatedNode):
    kind = "gain"


class SimulatedGate(SimulatedNode):
    """Gate that remembers every threshold it was given."""

    kind = "gate"

    def __init__(self, threshold_db: float):
        super().__init__()
        self.threshold_db = threshold_db
        self.history: List[float] = [threshold_db]

    def set_threshold(self, db: float) -> None:
        self._check_alive()
        self.threshold_db = db
        self.history.append(db)


class SimulatedPitchShifter(SimulatedNode):
    """Pitch shifter that records ramp commands."""

    kind = "pitch_shifter"

    def __init__(self, window_size: float = 0.1):
        super().__init__()
        self.window_size = window_size
        self.commands: List[RampCommand] = []

    @property
    def pitch(self) -> float:
        """Shift the most recent ramp is heading toward."""
        if not self.commands:
            return 0.0
        return self.commands[-1].shift

    def ramp_to(self, shift_semitones: float, duration_seconds: float) -> None:
        self._check_alive()
        self.commands.append(RampCommand(float(shift_semitones), float(duration_seconds)))


class SimulatedAnalyser(SimulatedNode):
    """Fixed-size waveform snapshot, refreshed by ``feed``."""

    kind = "analyser"

    def __init__(self, size: int):
        super().__init__()
        self.size = int(size)
        self._buffer = np.zeros(self.size, dtype=np.float32)

    def feed(self, samples: np.ndarray) -> None:
        """Push new samples in; the snapshot keeps the latest ``size``."""
        samples = np.asarray(samples, dtype=np.float32).ravel()
        if samples.size >= self.size:
            self._buffer = samples[-self.size:].copy()
        else:
            self._buffer = np.concatenate([self._buffer[samples.size:], samples])

    def read(self) -> np.ndarray:
        self._check_alive()
        return self._buffer.copy()


@dataclass
class SimulatedGraph:
    """Creates simulated nodes and records how they are wired."""

    sample_rate: float = DEFAULT_SR
    nodes: List[SimulatedNode] = field(default_factory=list)
    connections: List[Tuple[Any, Any]] = field(default_factory=list)

    def _track(self, node):
        self.nodes.append(node)
        return node

    def create_gain(self) -> SimulatedGain:
        return self._track(SimulatedGain())

    def create_gate(self, threshold_db: float) -> SimulatedGate:
        return self._track(SimulatedGate(threshold_db))

    def create_pitch_shifter(self, window_size: float) -> SimulatedPitchShifter:
        return self._track(SimulatedPitchShifter(window_size))

    def create_analyser(self, size: int) -> SimulatedAnalyser:
        return self._track(SimulatedAnalyser(size))

    def connect(self, source: Any, destination: Any) -> None:
        self.connections.append((source, destination))

    def find(self, node_type: type) -> List[SimulatedNode]:
        """All nodes of a given type, in creation order."""
        return [n for n in self.nodes if isinstance(n, node_type)]


def synthesize_tone(
    frequency: float,
    sample_rate: float,
    length: int,
    end_frequency: Optional[float] = None,
    amplitude: float = 0.5,
) -> np.ndarray:
    """
    Generate a steady tone, or a glide when ``end_frequency`` is given.

    Args:
        frequency: Start frequency in Hz
        sample_rate: Sample rate in Hz
        length: Number of samples
        end_frequency: Optional end frequency for an exponential glide
        amplitude: Peak amplitude

    Returns:
        float32 signal of ``length`` samples
    """
    if end_frequency is None or end_frequency == frequency:
        y = librosa.tone(frequency, sr=int(sample_rate), length=length)
    else:
        y = librosa.chirp(
            fmin=frequency,
            fmax=end_frequency,
            sr=int(sample_rate),
            length=length,
            linear=False,
        )
    return (amplitude * y).astype(np.float32)


class ToneFeeder:
    """Feeds consecutive hops of a synthetic signal into an analyser."""

    def __init__(
        self,
        analyser: SimulatedAnalyser,
        signal: np.ndarray,
        hop: int,
    ):
        self.analyser = analyser
        self.signal = np.asarray(signal, dtype=np.float32)
        self.hop = int(hop)
        self.position = 0

    @classmethod
    def for_tone(
        cls,
        analyser: SimulatedAnalyser,
        frequency: float,
        sample_rate: float,
        hop_seconds: float,
        hops: int,
        end_frequency: Optional[float] = None,
        amplitude: float = 0.5,
    ) -> "ToneFeeder":
        """Build a feeder with enough signal for ``hops`` hops."""
        hop = max(1, int(round(hop_seconds * sample_rate)))
        length = analyser.size + hop * max(hops, 1)
        signal = synthesize_tone(frequency, sample_rate, length, end_frequency, amplitude)
        feeder = cls(analyser, signal, hop)
        # Prime the analyser with a full first frame
        feeder.analyser.feed(signal[:analyser.size])
        feeder.position = analyser.size
        return feeder

    def advance(self) -> bool:
        """Feed the next hop. Returns False once the signal is exhausted."""
        if self.position >= len(self.signal):
            return False
        end = min(self.position + self.hop, len(self.signal))
        self.analyser.feed(self.signal[self.position:end])
        self.position = end
        return True
