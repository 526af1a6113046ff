"""Inference layer - Musical context for correction.

Maps key and scale names to the pitch classes a corrected note may use:
- Scale table (chromatic, diatonic, modal, pentatonic, blues)
- Key name parsing (sharp and flat spellings)
- Allowed pitch-class sets
"""

from .scales import (
    ScaleDefinition,
    SCALE_TABLE,
    CHROMATIC,
    scale_names,
    resolve_scale_name,
    get_scale,
    key_name_to_pitch_class,
    allowed_pitch_classes,
)

__all__ = [
    "ScaleDefinition",
    "SCALE_TABLE",
    "CHROMATIC",
    "scale_names",
    "resolve_scale_name",
    "get_scale",
    "key_name_to_pitch_class",
    "allowed_pitch_classes",
]
