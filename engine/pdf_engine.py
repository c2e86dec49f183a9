"""
PDF Processing Engine - Core Coordinator

The PDFEngine is the central coordinator for all document operations. It owns
the configuration and the selected decode/render backend, validates input
bytes, and tracks every Document it hands out so they are released together
when the engine closes.

Usage:
    >>> from engine.pdf_engine import PDFEngine
    >>> from engine.config import EngineConfig
    >>>
    >>> with PDFEngine(EngineConfig(max_file_size_mb=100)) as engine:
    ...     doc = engine.decode(pdf_bytes)
    ...     print(f"Document has {doc.page_count} pages")
"""

import logging
from typing import List, Optional

from constants.engine_defaults import DEFAULT_RENDER_SCALE
from engine import composer, image_codec
from engine.backends import create_backend
from engine.config import EngineConfig
from engine.errors import InputTooLarge
from models.document import Document, ImageFormat, Page, PixelBuffer
from utils.validation import validate_content_size

logger = logging.getLogger(__name__)


class PDFEngine:
    """
    Unified engine over decoding, rendering, image coding and composition.

    The engine itself performs no file I/O: every method takes and returns
    bytes or model objects.

    Example:
        >>> with PDFEngine() as engine:
        ...     merged = engine.new_document()
        ...     for page in engine.decode(data):
        ...         engine.append_page(merged, page)
        ...     output = engine.serialize(merged)
    """

    def __init__(self, config: Optional[EngineConfig] = None):
        """
        Initialize engine with optional configuration.

        Args:
            config: Engine configuration (uses defaults if None)

        Raises:
            ValueError: If configuration is invalid
            KeyError: If the configured backend is not registered
        """
        self.config = config or EngineConfig.default()

        if not self.config.validate():
            raise ValueError("Invalid engine configuration")

        self.backend = create_backend(self.config.backend)
        self._documents: List[Document] = []
        self._is_open = True

        logger.debug(f"PDFEngine initialized with {self.config!r}")

    def __enter__(self) -> 'PDFEngine':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """
        Exit context manager - close every Document this engine created.

        Resources are cleaned up even if an exception occurred.
        """
        self.close()

        if exc_type is not None:
            logger.debug(f"Engine closed after {exc_type.__name__}: {exc_val}")

        # Don't suppress exceptions
        return False

    def close(self) -> None:
        """
        Release all tracked documents.

        This method is idempotent and safe to call multiple times.
        """
        documents, self._documents = self._documents, []
        # Composed documents first so their sources are released last
        for document in reversed(documents):
            document.close()
        self._is_open = False

    def _track(self, document: Document) -> Document:
        if not self._is_open:
            document.close()
            raise RuntimeError("Engine is closed")
        self._documents.append(document)
        return document

    # Input validation

    def _check_size(self, data: bytes) -> None:
        """
        Reject input over max_file_size_mb before it reaches the backend.

        Raises:
            InputTooLarge: If data exceeds max_file_size_mb
        """
        size_valid, size_error = validate_content_size(data, self.config.max_file_size_mb)
        if not size_valid:
            raise InputTooLarge(size_error)

    # Public API - Decoding and rendering

    def decode(self, data: bytes, password: Optional[str] = None) -> Document:
        """
        Parse PDF bytes into a Document owned by this engine.

        Args:
            data: Raw PDF bytes
            password: Credential for encrypted documents (never stored)

        Returns:
            Decoded Document

        Raises:
            InputTooLarge: If validation is on and data is too large
            MalformedDocument: If data is not a valid PDF (checked by the decoder)
            IncorrectPassword: If data is encrypted and password is missing or wrong
        """
        if self.config.validate_on_open:
            self._check_size(data)

        document = self.backend.decode(data, password=password)
        return self._track(document)

    def render(self, page: Page, scale: float = DEFAULT_RENDER_SCALE) -> PixelBuffer:
        """Rasterize ``page`` at ``scale`` pixels per point."""
        return self.backend.render(page, scale)

    # Public API - Image coding

    def decode_image(self, data: bytes, fmt: ImageFormat) -> PixelBuffer:
        """
        Decode image bytes of a declared format.

        Raises:
            InputTooLarge: If validation is on and data is too large
            UnsupportedImageFormat: If bytes are not a valid ``fmt`` image
        """
        if self.config.validate_on_open:
            self._check_size(data)
        return image_codec.decode_image(data, fmt)

    def encode_image(self, buffer: PixelBuffer, fmt: ImageFormat, quality: Optional[float] = None) -> bytes:
        return image_codec.encode_image(buffer, fmt, quality=quality)

    # Public API - Composition

    def new_document(self) -> Document:
        """Create an empty Document owned by this engine."""
        return self._track(composer.new_document())

    def append_page(self, doc: Document, source_page: Page) -> Page:
        return composer.append_page(doc, source_page)

    def append_image_page(self, doc: Document, image: PixelBuffer, fmt: ImageFormat, **kwargs) -> Page:
        return composer.append_image_page(doc, image, fmt, **kwargs)

    def serialize(self, doc: Document) -> bytes:
        return composer.serialize(doc)

    # Status and Debugging

    @property
    def is_open(self) -> bool:
        """Check if engine is currently open."""
        return self._is_open

    @property
    def document_count(self) -> int:
        """Number of documents currently tracked."""
        return len(self._documents)

    def __repr__(self) -> str:
        status = "open" if self._is_open else "closed"
        return f"PDFEngine({self.backend.name}, {status}, {len(self._documents)} documents)"
