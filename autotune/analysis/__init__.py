"""Analysis layer - Low-level signal analysis.

This layer turns a raw audio frame into a pitch estimate:
- YIN fundamental-frequency detection
- Silence floor (detection noise gate)
"""

from .pitch import PitchDetector, DetectorConfig, detect

__all__ = [
    "PitchDetector",
    "DetectorConfig",
    "detect",
]
