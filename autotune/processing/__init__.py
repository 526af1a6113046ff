"""Processing layer - Pitch-level post-processing.

This layer refines detected pitches into correction targets:
- Scale quantization (snap to nearest allowed note)
- Hysteresis against flicker between neighbouring notes
"""

from .quantize import ScaleQuantizer, QuantizerConfig, quantize

__all__ = [
    "ScaleQuantizer",
    "QuantizerConfig",
    "quantize",
]
