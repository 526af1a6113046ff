"""Effect registry - The closed set of effect variants a host can create."""

from enum import Enum
from typing import Any, Dict, List, Tuple, Type, Union

from .autotune import AutoTune
from .base import Effect
from .ports import AudioGraph


class EffectKind(Enum):
    """Effect variants, tagged by their stable id."""
    AUTOTUNE = "autotune"


EFFECT_REGISTRY: Dict[EffectKind, Type[Effect]] = {
    EffectKind.AUTOTUNE: AutoTune,
}


def list_effects() -> List[Tuple[str, str]]:
    """Return (id, display name) pairs for every registered effect."""
    return [(kind.value, cls.name) for kind, cls in EFFECT_REGISTRY.items()]


def create_effect(
    kind: Union[EffectKind, str],
    graph: AudioGraph,
    autostart: bool = False,
    **kwargs: Any,
) -> Effect:
    """
    Instantiate an effect for one voice.

    Args:
        kind: EffectKind or its string id (e.g., "autotune")
        graph: Host audio graph the effect builds its nodes in
        autostart: Start ticking immediately after construction
        **kwargs: Passed to the effect's constructor

    Returns:
        The new effect instance

    Raises:
        KeyError: If ``kind`` does not name a registered effect
    """
    if not isinstance(kind, EffectKind):
        try:
            kind = EffectKind(kind)
        except ValueError:
            raise KeyError(f"Unknown effect: {kind!r}") from None

    effect = EFFECT_REGISTRY[kind](graph, **kwargs)
    if autostart:
        effect.start()
    return effect
