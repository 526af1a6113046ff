"""AutoTune - Real-time pitch correction toward a key and scale.

On every tick the engine:
1. Reads the current analysis frame from the host graph
2. Detects the fundamental frequency (YIN)
3. Relaxes the shift to zero when the frame is unvoiced or uncertain
4. Otherwise quantizes the pitch to the key/scale (with hysteresis)
5. Ramps the pitch shifter toward the clamped correction

Signal path owned by each instance::

    input ──→ gate ──→ pitch shifter ──→ output
      └──→ analyser (pre-effect snapshot)
"""

import logging
import math
import threading
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Mapping, Optional

from ..analysis import PitchDetector, DetectorConfig
from ..core import CorrectionState, DetectionResult, UNVOICED, freq_to_midi
from ..core.constants import (
    DEFAULT_TICK_INTERVAL,
    DEFAULT_FRAME_SIZE,
    DEFAULT_CONFIDENCE_THRESHOLD,
    DEFAULT_UNVOICED_RELEASE,
    DEFAULT_STOP_RELEASE,
    DEFAULT_RETUNE,
    DEFAULT_GATE_DB,
    MIN_RETUNE,
    MAX_RETUNE,
    MAX_SHIFT_SEMITONES,
)
from ..inference.scales import CHROMATIC, get_scale, key_name_to_pitch_class
from ..processing import ScaleQuantizer, QuantizerConfig
from .base import Effect, EffectStatus
from .ports import AudioGraph
from .scheduler import TickScheduler, IntervalScheduler

logger = logging.getLogger(__name__)


@dataclass
class CorrectionConfig:
    """Tuning constants for an AutoTune engine.

    Attributes:
        tick_interval: Seconds between ticks (default: 0.03)
        frame_size: Analyser snapshot length in samples (default: 1024)
        confidence_threshold: Detections below this are treated as unvoiced (default: 0.4)
        unvoiced_release: Ramp time back to zero when voicing drops out (default: 0.2)
        stop_release: Ramp time back to zero on stop (default: 0.1)
        max_shift: Largest correction in semitones, either direction (default: 12)
        min_retune: Lower clamp for retune speed in seconds (default: 0.01)
        max_retune: Upper clamp for retune speed in seconds (default: 0.4); also
            the ramp length humanize stretches held notes toward
        shifter_window: Window size requested for the pitch shifter (default: 0.1)
        detector: YIN detector settings, including the frequency band
        quantizer: Scale quantizer settings, including the hysteresis buffer
    """

    tick_interval: float = DEFAULT_TICK_INTERVAL
    frame_size: int = DEFAULT_FRAME_SIZE
    confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD
    unvoiced_release: float = DEFAULT_UNVOICED_RELEASE
    stop_release: float = DEFAULT_STOP_RELEASE
    max_shift: float = MAX_SHIFT_SEMITONES
    min_retune: float = MIN_RETUNE
    max_retune: float = MAX_RETUNE
    shifter_window: float = 0.1
    detector: DetectorConfig = field(default_factory=DetectorConfig)
    quantizer: QuantizerConfig = field(default_factory=QuantizerConfig)


class TickOutcome(Enum):
    """What a tick did to the shifter."""
    CORRECTED = "corrected"
    RELAXED = "relaxed"
    FAILED = "failed"


@dataclass(frozen=True)
class TickReport:
    """Summary of one processed tick."""

    outcome: TickOutcome
    detection: DetectionResult = UNVOICED
    continuous_pitch: Optional[float] = None
    target_midi: Optional[int] = None
    shift: float = 0.0
    duration: float = 0.0
    error: Optional[str] = None


@dataclass
class TickStats:
    """Running counters for an engine instance."""

    ticks: int = 0
    corrected: int = 0
    relaxed: int = 0
    failures: int = 0
    skipped: int = 0  # disabled, stopped or overlapping

    @property
    def voiced_rate(self) -> float:
        if self.ticks == 0:
            return 0.0
        return self.corrected / self.ticks


def _as_number(value: Any) -> Optional[float]:
    """Accept real numbers only (bools and non-finite values rejected)."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    value = float(value)
    if not math.isfinite(value):
        return None
    return value


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


class AutoTune(Effect):
    """Monophonic pitch-correction engine for one voice.

    Each instance owns its graph nodes and state exclusively; nothing is
    shared between instances.
    """

    effect_id = "autotune"
    name = "AutoTune"

    def __init__(
        self,
        graph: AudioGraph,
        scheduler: Optional[TickScheduler] = None,
        config: Optional[CorrectionConfig] = None,
        detector: Optional[PitchDetector] = None,
        quantizer: Optional[ScaleQuantizer] = None,
        initial_state: Optional[Mapping[str, Any]] = None,
    ):
        """
        Initialize AutoTune.

        Args:
            graph: Host audio graph that creates and connects nodes
            scheduler: Tick scheduler (default: IntervalScheduler)
            config: Optional CorrectionConfig for tuning constants
            detector: Pitch detector (default: built from config.detector)
            quantizer: Scale quantizer (default: built from config.quantizer)
            initial_state: Optional persisted configuration to apply
        """
        self.graph = graph
        self.config = config if config is not None else CorrectionConfig()
        self.detector = detector if detector is not None else PitchDetector(self.config.detector)
        self.quantizer = quantizer if quantizer is not None else ScaleQuantizer(self.config.quantizer)
        self.stats = TickStats()

        self._scheduler = scheduler if scheduler is not None else IntervalScheduler()
        self._status = EffectStatus.IDLE
        self._tick_lock = threading.Lock()
        self._state_lock = threading.RLock()
        self._failure_streak = 0

        self._state = CorrectionState(
            key_pitch_class=0,
            scale_name=CHROMATIC,
            retune_seconds=DEFAULT_RETUNE,
            humanize=0.0,
            gate_threshold_db=DEFAULT_GATE_DB,
            enabled=True,
        )
        self._scale = get_scale(CHROMATIC)

        self._input = graph.create_gain()
        self._output = graph.create_gain()
        self._gate = graph.create_gate(self._state.gate_threshold_db)
        self._shifter = graph.create_pitch_shifter(self.config.shifter_window)
        self._analyser = graph.create_analyser(self.config.frame_size)

        graph.connect(self._input, self._gate)
        graph.connect(self._gate, self._shifter)
        graph.connect(self._shifter, self._output)
        graph.connect(self._input, self._analyser)

        if initial_state:
            self.set_state(initial_state)

    # --- Endpoints -------------------------------------------------------

    @property
    def input(self) -> Any:
        return self._input

    @property
    def output(self) -> Any:
        return self._output

    @property
    def status(self) -> EffectStatus:
        return self._status

    # --- Lifecycle -------------------------------------------------------

    def start(self) -> None:
        """Schedule ticks. No-op if already running."""
        if self._status is EffectStatus.DISPOSED:
            logger.warning("start() called on a disposed %s; ignoring", self.name)
            return
        if self._status is EffectStatus.RUNNING:
            return

        self._status = EffectStatus.RUNNING
        self._scheduler.start(self.tick, self.config.tick_interval)
        logger.debug("%s started (tick every %.3fs)", self.name, self.config.tick_interval)

    def stop(self) -> None:
        """Cancel ticks and ramp the shift back to zero.

        Safe to call from any state. Once this returns no further tick
        runs, and the shifter has received exactly one zero-ramp command
        from this call.
        """
        if self._status is EffectStatus.DISPOSED:
            return

        self._status = EffectStatus.STOPPED
        self._scheduler.cancel()
        self._set_target(None)

        try:
            self._shifter.ramp_to(0.0, self.config.stop_release)
            self._set_last_shift(0.0)
        except Exception:
            logger.warning("%s could not ramp shift to zero on stop", self.name, exc_info=True)

        logger.debug("%s stopped", self.name)

    def dispose(self) -> None:
        """Stop and release every owned node. Idempotent."""
        if self._status is EffectStatus.DISPOSED:
            return

        self.stop()
        self._status = EffectStatus.DISPOSED

        for node in (self._analyser, self._shifter, self._gate, self._input, self._output):
            try:
                node.dispose()
            except Exception:
                logger.warning("Failed to dispose %r", node, exc_info=True)

    # --- Configuration ---------------------------------------------------

    def get_state(self) -> CorrectionState:
        return self._state

    def set_state(self, partial: Mapping[str, Any]) -> None:
        """
        Apply a partial configuration update.

        Recognized fields: ``key``, ``scale``, ``retune``, ``humanize``,
        ``gateDb`` (or ``gateThresholdDb``) and ``enabled``. Fields with
        the wrong type are ignored individually.

        ``humanize`` changes the ramp duration: while the target note is
        held, each ramp lasts ``retune + humanize * (max_retune - retune)``
        instead of ``retune``.
        """
        if not isinstance(partial, Mapping):
            return

        updates = {}

        key_pc = key_name_to_pitch_class(partial.get("key"))
        if key_pc is not None:
            updates["key_pitch_class"] = key_pc

        scale = partial.get("scale")
        if isinstance(scale, str):
            # Unrecognized names fall back to the chromatic scale
            updates["scale_name"] = get_scale(scale).name

        retune = _as_number(partial.get("retune"))
        if retune is not None:
            updates["retune_seconds"] = _clamp(
                retune, self.config.min_retune, self.config.max_retune
            )

        humanize = _as_number(partial.get("humanize"))
        if humanize is not None:
            updates["humanize"] = _clamp(humanize, 0.0, 1.0)

        for field_name in ("gateDb", "gateThresholdDb"):
            gate_db = _as_number(partial.get(field_name))
            if gate_db is not None:
                updates["gate_threshold_db"] = gate_db

        enabled = partial.get("enabled")
        if isinstance(enabled, bool):
            updates["enabled"] = enabled

        if not updates:
            return

        with self._state_lock:
            current = self._state
            if (
                updates.get("key_pitch_class", current.key_pitch_class) != current.key_pitch_class
                or updates.get("scale_name", current.scale_name) != current.scale_name
            ):
                # Hysteresis must not hold a note from the old key/scale
                updates["target_midi"] = None
            self._state = replace(current, **updates)
            self._scale = get_scale(self._state.scale_name)
            disabled = current.enabled and not self._state.enabled

        if "gate_threshold_db" in updates:
            try:
                self._gate.set_threshold(updates["gate_threshold_db"])
            except Exception:
                logger.warning("Failed to apply gate threshold", exc_info=True)

        if disabled and self._status is EffectStatus.RUNNING:
            self._relax(self.config.stop_release)

    # --- Tick ------------------------------------------------------------

    def tick(self) -> Optional[TickReport]:
        """
        Run one detection/correction step.

        Returns:
            TickReport, or None when the tick was skipped (disabled,
            stopped, or another tick still in progress)
        """
        if not self._tick_lock.acquire(blocking=False):
            self.stats.skipped += 1
            return None

        try:
            if self._status in (EffectStatus.STOPPED, EffectStatus.DISPOSED):
                self.stats.skipped += 1
                return None

            state = self._state
            if not state.enabled:
                self.stats.skipped += 1
                return None

            self.stats.ticks += 1
            return self._process(state)
        finally:
            self._tick_lock.release()

    def _process(self, state: CorrectionState) -> TickReport:
        detection = UNVOICED
        try:
            frame = self._analyser.read()
            detector_cfg = self.detector.config
            detection = self.detector.detect(
                frame, self.graph.sample_rate, detector_cfg.fmin, detector_cfg.fmax
            )

            if not detection.voiced or detection.confidence < self.config.confidence_threshold:
                self._set_target(None)
                self._command(0.0, self.config.unvoiced_release)
                self.stats.relaxed += 1
                self._recovered()
                return TickReport(
                    outcome=TickOutcome.RELAXED,
                    detection=detection,
                    duration=self.config.unvoiced_release,
                )

            continuous = freq_to_midi(detection.frequency_hz)
            previous = state.target_midi
            target = self.quantizer.quantize(
                continuous, state.key_pitch_class, self._scale.offsets, previous
            )
            shift = _clamp(target - continuous, -self.config.max_shift, self.config.max_shift)
            duration = self._ramp_duration(state, sustained=(previous == target))

            self._set_target(target, expected=state)
            self._command(shift, duration)
            self.stats.corrected += 1
            self._recovered()

            return TickReport(
                outcome=TickOutcome.CORRECTED,
                detection=detection,
                continuous_pitch=continuous,
                target_midi=target,
                shift=shift,
                duration=duration,
            )

        except Exception as exc:
            self._handle_failure(exc)
            return TickReport(outcome=TickOutcome.FAILED, detection=detection, error=repr(exc))

    def _ramp_duration(self, state: CorrectionState, sustained: bool) -> float:
        """Retune time; humanize stretches it while a note is held."""
        duration = max(self.config.min_retune, state.retune_seconds)
        if sustained and state.humanize > 0:
            duration += state.humanize * (self.config.max_retune - duration)
        return duration

    def _command(self, shift: float, duration: float) -> None:
        # stop() may run from inside a tick; never ramp after its zero command
        if self._status in (EffectStatus.STOPPED, EffectStatus.DISPOSED):
            return
        with self._state_lock:
            # A correction racing set_state(enabled=False) must not land
            # after the disable's zero ramp
            if shift != 0.0 and not self._state.enabled:
                return
            self._shifter.ramp_to(shift, duration)
            self._set_last_shift(shift)

    def _relax(self, duration: float) -> None:
        self._set_target(None)
        try:
            self._command(0.0, duration)
        except Exception:
            logger.debug("Relax-to-zero failed", exc_info=True)

    def _handle_failure(self, exc: Exception) -> None:
        self.stats.failures += 1
        self._failure_streak += 1
        if self._failure_streak == 1:
            logger.warning("%s tick failed: %s", self.name, exc, exc_info=True)
        else:
            logger.debug("%s tick failed (%d in a row): %s", self.name, self._failure_streak, exc)
        # Degrade to bypass until ticks succeed again
        self._relax(self.config.unvoiced_release)

    def _recovered(self) -> None:
        if self._failure_streak:
            logger.info("%s recovered after %d failed ticks", self.name, self._failure_streak)
            self._failure_streak = 0

    def _set_target(self, target: Optional[int], expected: Optional[CorrectionState] = None) -> None:
        if target is not None and self._status in (EffectStatus.STOPPED, EffectStatus.DISPOSED):
            target = None

        with self._state_lock:
            current = self._state
            if expected is not None and (
                current.key_pitch_class != expected.key_pitch_class
                or current.scale_name != expected.scale_name
                or not current.enabled
            ):
                # Key/scale changed or engine disabled mid-tick; drop the target
                target = None
            self._state = replace(current, target_midi=target)

    def _set_last_shift(self, shift: float) -> None:
        with self._state_lock:
            self._state = replace(self._state, last_shift_semitones=float(shift))
