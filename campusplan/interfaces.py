"""
Abstract interfaces for the pieces that can be swapped out: the campus model
cache and the servers that expose the engine.
"""
from abc import ABC, abstractmethod
from typing import Any, Optional


class ModelCache(ABC):
    """Interface for caches of computed campus models keyed by campus object."""

    @abstractmethod
    def get(self, campus: Any, key: str) -> Optional[Any]:
        """Return the cached model for (campus, key) or None."""
        pass

    @abstractmethod
    def put(self, campus: Any, key: str, model: Any) -> Any:
        """Store a model and return the model now cached for (campus, key)."""
        pass

    @abstractmethod
    def clear(self) -> None:
        """Drop every cached entry."""
        pass


class Server(ABC):
    """Interface for servers that expose the campus engine."""

    @abstractmethod
    def start(self) -> None:
        """Start the server."""
        pass

    @abstractmethod
    def stop(self) -> None:
        """Stop the server."""
        pass
