"""
Built-in backends.

The default backend parses and decrypts with pikepdf (qpdf) and rasterizes
with PyMuPDF.
"""

import logging
from typing import Optional

from engine import decoder, rasterizer
from engine.base_backend import BaseBackend, BackendRegistry
from models.document import Document, Page, PixelBuffer

logger = logging.getLogger(__name__)


class DefaultBackend(BaseBackend):
    """pikepdf decoder + PyMuPDF rasterizer"""

    name = "default"

    def decode(self, data: bytes, password: Optional[str] = None) -> Document:
        return decoder.decode(data, password=password)

    def render(self, page: Page, scale: float) -> PixelBuffer:
        return rasterizer.render(page, scale=scale)


registry = BackendRegistry()
registry.register(DefaultBackend.name, DefaultBackend)


def create_backend(name: str) -> BaseBackend:
    """Instantiate a registered backend by name."""
    backend = registry.create(name)
    logger.debug(f"Created backend {backend!r}")
    return backend
