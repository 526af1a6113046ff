"""Pitch quantization - Snap a continuous pitch to the nearest scale note."""

import math
from dataclasses import dataclass
from typing import Iterable, Optional

from ..core.constants import A4_MIDI, DEFAULT_HYSTERESIS
from ..inference.scales import allowed_pitch_classes


@dataclass
class QuantizerConfig:
    """Configuration for scale quantization.

    Attributes:
        hysteresis: Semitones a new candidate must beat the previous
            target by before the target switches (default: 0.2)
        max_radius: Widest search radius in semitones (default: 12)
    """

    hysteresis: float = DEFAULT_HYSTERESIS
    max_radius: int = 12


class ScaleQuantizer:
    """Quantize continuous MIDI pitches to the notes of a key/scale."""

    def __init__(self, config: Optional[QuantizerConfig] = None):
        """
        Initialize ScaleQuantizer.

        Args:
            config: Optional QuantizerConfig (hysteresis buffer, search radius)
        """
        self.config = config if config is not None else QuantizerConfig()

    def quantize(
        self,
        continuous_pitch: float,
        key_pitch_class: int,
        scale_offsets: Iterable[int],
        previous_target: Optional[int] = None,
    ) -> int:
        """
        Snap a pitch to the nearest allowed note.

        Args:
            continuous_pitch: Pitch as a fractional MIDI number
            key_pitch_class: Key root (0-11)
            scale_offsets: Scale offsets relative to the root
            previous_target: Target chosen on the previous frame, if any

        Returns:
            Target MIDI note whose pitch class is in the key/scale
        """
        allowed = allowed_pitch_classes(key_pitch_class, scale_offsets)

        if not math.isfinite(continuous_pitch):
            if previous_target is not None:
                return int(previous_target)
            continuous_pitch = float(A4_MIDI)

        candidate = self.nearest_allowed(continuous_pitch, allowed)

        if previous_target is None or candidate == previous_target:
            return candidate

        # Switch only when the new note is clearly closer, not marginally
        new_dist = abs(continuous_pitch - candidate)
        old_dist = abs(continuous_pitch - previous_target)
        if new_dist < old_dist - self.config.hysteresis:
            return candidate
        return int(previous_target)

    def nearest_allowed(self, continuous_pitch: float, allowed) -> int:
        """Nearest MIDI note with an allowed pitch class, searching outward."""
        base = int(math.floor(continuous_pitch + 0.5))
        best = base
        best_dist = math.inf

        for delta in range(self.config.max_radius + 1):
            for cand in (base - delta, base + delta):
                if cand % 12 in allowed:
                    dist = abs(cand - continuous_pitch)
                    if dist < best_dist:
                        best_dist = dist
                        best = cand
            if best_dist != math.inf:
                break

        return best


_DEFAULT_QUANTIZER = ScaleQuantizer()


def quantize(
    continuous_pitch: float,
    key_pitch_class: int,
    scale_offsets: Iterable[int],
    previous_target: Optional[int] = None,
) -> int:
    """Quantize with the default hysteresis buffer."""
    return _DEFAULT_QUANTIZER.quantize(
        continuous_pitch, key_pitch_class, scale_offsets, previous_target
    )
