"""
Backend protocol and abstract classes.

A backend supplies the two capabilities that depend on a PDF codec: parsing
bytes into a Document and rasterizing a Page. The orchestrator only talks to
the PDFEngine, which delegates to whichever backend the configuration names,
so the codec can be swapped without touching the operations.
"""

from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Optional, Protocol
import logging

from models.document import Document, Page, PixelBuffer

logger = logging.getLogger(__name__)


class BaseBackend(ABC):
    """
    Abstract base class for decode/render backends.

    Subclasses set ``name`` and implement decode() and render().
    """

    name: str = "base"

    @abstractmethod
    def decode(self, data: bytes, password: Optional[str] = None) -> Document:
        """
        Parse PDF bytes into a Document.

        Raises:
            IncorrectPassword: Encrypted input with missing or wrong password
            MalformedDocument: Structurally invalid input
        """

    @abstractmethod
    def render(self, page: Page, scale: float) -> PixelBuffer:
        """
        Rasterize a page at ``scale`` pixels per point.

        Raises:
            ValueError: If scale is not positive
            RenderError: If the page cannot be drawn
        """

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name})"


class BackendProtocol(Protocol):
    """
    Structural interface for backends.

    Any object with these members can be registered, even without inheriting
    from BaseBackend.
    """

    name: str

    def decode(self, data: bytes, password: Optional[str] = None) -> Document:
        ...

    def render(self, page: Page, scale: float) -> PixelBuffer:
        ...


class BackendRegistry:
    """
    Registry of backend factories keyed by name.

    Factories are called on each lookup so every PDFEngine gets its own
    backend instance.
    """

    def __init__(self):
        self._factories: Dict[str, Callable[[], BackendProtocol]] = {}

    def register(self, name: str, factory: Callable[[], BackendProtocol]) -> None:
        """
        Register a backend factory.

        Args:
            name: Unique backend name (e.g., "default")
            factory: Zero-argument callable returning a backend
        """
        if name in self._factories:
            logger.warning(f"Backend '{name}' already registered, replacing")

        self._factories[name] = factory
        logger.debug(f"Registered backend: {name}")

    def create(self, name: str) -> BackendProtocol:
        """
        Instantiate the backend registered under ``name``.

        Raises:
            KeyError: If no backend has that name
        """
        factory = self._factories.get(name)
        if factory is None:
            raise KeyError(f"Unknown backend '{name}' (available: {self.backend_names})")
        return factory()

    def __contains__(self, name: str) -> bool:
        return name in self._factories

    @property
    def backend_names(self) -> List[str]:
        return list(self._factories.keys())

    def __repr__(self) -> str:
        return f"BackendRegistry({len(self._factories)} backends: {self.backend_names})"
