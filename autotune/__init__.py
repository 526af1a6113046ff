"""AutoTune - Real-time monophonic pitch detection and correction.

Architecture Layers:
    1. core/       - Shared types, constants and pitch conversions
    2. inference/  - Musical context (scale table, key names)
    3. analysis/   - Signal analysis (YIN pitch detection)
    4. processing/ - Pitch post-processing (scale quantization)
    5. engine/     - Real-time effects (AutoTune controller, scheduling, host boundary)
"""

__version__ = "0.1.0"

# Core types
from .core import DetectionResult, UNVOICED, CorrectionState

# Inference layer
from .inference import ScaleDefinition, SCALE_TABLE, get_scale

# Analysis layer
from .analysis import PitchDetector, DetectorConfig

# Processing layer
from .processing import ScaleQuantizer, QuantizerConfig

# Engine layer
from .engine import (
    Effect,
    EffectStatus,
    AutoTune,
    CorrectionConfig,
    IntervalScheduler,
    ManualScheduler,
    EffectKind,
    create_effect,
)

__all__ = [
    # Core
    "DetectionResult",
    "UNVOICED",
    "CorrectionState",
    # Inference
    "ScaleDefinition",
    "SCALE_TABLE",
    "get_scale",
    # Analysis
    "PitchDetector",
    "DetectorConfig",
    # Processing
    "ScaleQuantizer",
    "QuantizerConfig",
    # Engine
    "Effect",
    "EffectStatus",
    "AutoTune",
    "CorrectionConfig",
    "IntervalScheduler",
    "ManualScheduler",
    "EffectKind",
    "create_effect",
]
