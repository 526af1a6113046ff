"""Scale table - Named scales and the pitch classes they allow.

A scale is a set of semitone offsets relative to a key root. Combined
with a key pitch class it yields the set of pitch classes a corrected
note may land on.
"""

from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, List, Optional

from ..core import PITCH_NAMES


@dataclass(frozen=True)
class ScaleDefinition:
    """A named scale as semitone offsets (0-11) from its root."""

    name: str
    offsets: FrozenSet[int]

    def __post_init__(self):
        bad = [o for o in self.offsets if not 0 <= o <= 11]
        if bad:
            raise ValueError(f"Scale offsets must be in [0, 11], got {sorted(bad)}")

    def pitch_classes(self, key_pitch_class: int) -> FrozenSet[int]:
        """Pitch classes allowed when rooted at ``key_pitch_class``."""
        return allowed_pitch_classes(key_pitch_class, self.offsets)


CHROMATIC = "Chromatic"

_SCALE_INTERVALS = {
    "Chromatic": [0, 1, 2, 3, 4, 5, 6, 7, 8, 9, 10, 11],
    "Major": [0, 2, 4, 5, 7, 9, 11],
    "Minor": [0, 2, 3, 5, 7, 8, 10],  # Natural minor
    "Pentatonic": [0, 2, 4, 7, 9],
    "Harmonic Minor": [0, 2, 3, 5, 7, 8, 11],
    "Melodic Minor": [0, 2, 3, 5, 7, 9, 11],
    "Dorian": [0, 2, 3, 5, 7, 9, 10],
    "Phrygian": [0, 1, 3, 5, 7, 8, 10],
    "Lydian": [0, 2, 4, 6, 7, 9, 11],
    "Mixolydian": [0, 2, 4, 5, 7, 9, 10],
    "Locrian": [0, 1, 3, 5, 6, 8, 10],
    "Minor Pentatonic": [0, 3, 5, 7, 10],
    "Blues": [0, 3, 5, 6, 7, 10],
}

SCALE_TABLE: Dict[str, ScaleDefinition] = {
    name: ScaleDefinition(name=name, offsets=frozenset(intervals))
    for name, intervals in _SCALE_INTERVALS.items()
}

# Enharmonic spellings accepted for key names
_FLAT_ALIASES = {
    "Db": 1,
    "Eb": 3,
    "Gb": 6,
    "Ab": 8,
    "Bb": 10,
    "Cb": 11,
    "Fb": 4,
    "E#": 5,
    "B#": 0,
}


def _normalize(name: str) -> str:
    return "".join(ch for ch in name.lower() if ch not in " _-")


_LOOKUP = {_normalize(name): name for name in SCALE_TABLE}


def scale_names() -> List[str]:
    """Canonical scale names, in table order."""
    return list(SCALE_TABLE)


def resolve_scale_name(name) -> Optional[str]:
    """Return the canonical scale name, or None if unrecognized."""
    if not isinstance(name, str):
        return None
    return _LOOKUP.get(_normalize(name))


def get_scale(name) -> ScaleDefinition:
    """Look up a scale by name, falling back to the chromatic scale."""
    canonical = resolve_scale_name(name)
    if canonical is None:
        return SCALE_TABLE[CHROMATIC]
    return SCALE_TABLE[canonical]


def key_name_to_pitch_class(name) -> Optional[int]:
    """Convert a key name ('C', 'F#', 'Bb') to its pitch class."""
    if not isinstance(name, str):
        return None
    name = name.strip()
    if not name:
        return None
    # Accept lowercase roots ("f#") but keep accidentals as written
    name = name[0].upper() + name[1:]
    if name in PITCH_NAMES:
        return PITCH_NAMES.index(name)
    return _FLAT_ALIASES.get(name)


def allowed_pitch_classes(key_pitch_class: int, offsets: Iterable[int]) -> FrozenSet[int]:
    """
    Build the set of allowed pitch classes for a key and scale.

    Args:
        key_pitch_class: Key root (0-11, where 0=C)
        offsets: Scale offsets relative to the root

    Returns:
        Allowed pitch classes. An empty scale falls back to chromatic so
        the result is never empty.
    """
    allowed = frozenset((int(key_pitch_class) + int(o)) % 12 for o in offsets)
    if not allowed:
        return SCALE_TABLE[CHROMATIC].offsets
    return allowed
