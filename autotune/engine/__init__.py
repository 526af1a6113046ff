"""Engine layer - Real-time effects driven by a tick scheduler.

This layer turns detection and quantization into commands for the host:
- Effect capability interface and lifecycle
- AutoTune correction controller
- Tick schedulers (threaded and manual)
- Host audio-graph boundary types
- Registry of effect variants
"""

from .base import Effect, EffectStatus
from .autotune import AutoTune, CorrectionConfig, TickOutcome, TickReport, TickStats
from .scheduler import TickScheduler, IntervalScheduler, ManualScheduler
from .ports import AudioGraph, AudioNode, FrameSource, Gate, PitchShifter
from .registry import EffectKind, EFFECT_REGISTRY, create_effect, list_effects

__all__ = [
    # Interface
    "Effect",
    "EffectStatus",
    # AutoTune
    "AutoTune",
    "CorrectionConfig",
    "TickOutcome",
    "TickReport",
    "TickStats",
    # Scheduling
    "TickScheduler",
    "IntervalScheduler",
    "ManualScheduler",
    # Host boundary
    "AudioGraph",
    "AudioNode",
    "FrameSource",
    "Gate",
    "PitchShifter",
    # Registry
    "EffectKind",
    "EFFECT_REGISTRY",
    "create_effect",
    "list_effects",
]
