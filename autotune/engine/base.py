"""Base classes for real-time effects."""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Mapping


class EffectStatus(Enum):
    """Lifecycle of an effect instance."""
    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"
    DISPOSED = "disposed"


class Effect(ABC):
    """Capability interface every effect variant implements.

    An effect owns its nodes in the host graph and exposes two opaque
    endpoints, ``input`` and ``output``, for the host to splice into its
    routing.
    """

    effect_id: str = ""
    name: str = ""

    @property
    @abstractmethod
    def input(self) -> Any:
        """Signal-path entry endpoint."""
        pass

    @property
    @abstractmethod
    def output(self) -> Any:
        """Signal-path exit endpoint."""
        pass

    @property
    @abstractmethod
    def status(self) -> EffectStatus:
        pass

    @abstractmethod
    def start(self) -> None:
        pass

    @abstractmethod
    def stop(self) -> None:
        pass

    @abstractmethod
    def get_state(self) -> Any:
        """Read-only snapshot of the effect's state."""
        pass

    @abstractmethod
    def set_state(self, partial: Mapping[str, Any]) -> None:
        """
        Apply a partial configuration update.

        Args:
            partial: Field name to value; unknown or malformed fields are ignored
        """
        pass

    @abstractmethod
    def dispose(self) -> None:
        """Stop the effect and release every node it owns."""
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.dispose()
        return False
