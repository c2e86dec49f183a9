"""
In-memory document model shared by the decoder, rasterizer and composer.

A Document wraps one pikepdf object graph and exposes its pages in order.
Pages carry their geometry in points plus a handle to the page object that
holds the content stream and resources, so the same Page can be copied into
a new Document or rendered to pixels.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, List, Optional

import numpy as np
import pikepdf

from constants.engine_defaults import MEDIA_TYPE_JPEG, MEDIA_TYPE_PNG


class ImageFormat(str, Enum):
    """Raster formats understood by the image codec"""
    JPEG = "JPEG"
    PNG = "PNG"

    @property
    def extension(self) -> str:
        return ".png" if self is ImageFormat.PNG else ".jpg"

    @property
    def media_type(self) -> str:
        return MEDIA_TYPE_PNG if self is ImageFormat.PNG else MEDIA_TYPE_JPEG


@dataclass(frozen=True)
class PixelBuffer:
    """
    Rectangular grid of 8-bit pixels.

    ``data`` has shape (height, width, channels) where channels is 3 (RGB)
    or 4 (RGBA).
    """
    data: np.ndarray

    def __post_init__(self):
        data = self.data
        if not isinstance(data, np.ndarray):
            raise ValueError("PixelBuffer data must be a numpy array")
        if data.dtype != np.uint8:
            raise ValueError(f"PixelBuffer data must be uint8, got {data.dtype}")
        if data.ndim != 3 or data.shape[2] not in (3, 4):
            raise ValueError(f"PixelBuffer data must have shape (h, w, 3|4), got {data.shape}")
        if data.shape[0] == 0 or data.shape[1] == 0:
            raise ValueError(f"PixelBuffer dimensions must be non-zero, got {data.shape[1]}x{data.shape[0]}")
        if not data.flags['C_CONTIGUOUS']:
            object.__setattr__(self, 'data', np.ascontiguousarray(data))

    @property
    def width(self) -> int:
        return int(self.data.shape[1])

    @property
    def height(self) -> int:
        return int(self.data.shape[0])

    @property
    def channels(self) -> int:
        return int(self.data.shape[2])

    @property
    def mode(self) -> str:
        """Pillow mode name for this channel layout."""
        return "RGBA" if self.channels == 4 else "RGB"

    @property
    def has_alpha(self) -> bool:
        return self.channels == 4

    def tobytes(self) -> bytes:
        return self.data.tobytes()

    def __len__(self) -> int:
        return self.width * self.height * self.channels

    def __repr__(self) -> str:
        return f"PixelBuffer({self.width}x{self.height} {self.mode})"


@dataclass
class Page:
    """
    One page of a Document.

    Attributes:
        index: 0-based position in the owning document
        width: Visible width in points (after /Rotate)
        height: Visible height in points (after /Rotate)
        source: pikepdf page holding content stream and resources
        image: Pixels drawn on this page when it was fabricated from an image
        owner: Document whose object graph holds ``source``
    """
    index: int
    width: float
    height: float
    source: pikepdf.Page = field(repr=False)
    image: Optional[PixelBuffer] = field(default=None, repr=False)
    owner: Optional['Document'] = field(default=None, repr=False, compare=False)

    @property
    def number(self) -> int:
        """1-based page number for names and messages."""
        return self.index + 1

    @property
    def size(self) -> tuple:
        return (self.width, self.height)


class Document:
    """
    Ordered pages over a single pikepdf object graph.

    Documents returned by the decoder are read-only; the composer builds new
    documents and appends to them. Use as a context manager to release the
    object graph deterministically.

    pikepdf copies stream data of foreign pages lazily, when the destination
    is saved. A composed document therefore retains every document it copied
    pages from, and closing such a source only releases its object graph once
    no open composed document depends on it.
    """

    def __init__(self, pdf: pikepdf.Pdf, pages: Optional[List[Page]] = None, is_encrypted: bool = False):
        self._pdf = pdf
        self._pages: List[Page] = []
        self.is_encrypted = is_encrypted
        self._closed = False
        self._retained: List['Document'] = []
        self._dependents = 0
        for page in pages or []:
            self._add_page(page)

    def __enter__(self) -> 'Document':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def __len__(self) -> int:
        return len(self._pages)

    def __iter__(self) -> Iterator[Page]:
        return iter(self._pages)

    @property
    def pdf(self) -> pikepdf.Pdf:
        """Underlying object graph (for the composer and backends)."""
        if self._closed:
            raise RuntimeError("Document is closed")
        return self._pdf

    @property
    def page_count(self) -> int:
        return len(self._pages)

    @property
    def pages(self) -> List[Page]:
        return list(self._pages)

    def page(self, index: int) -> Page:
        """
        Get page by 0-based index.

        Raises:
            IndexError: If index is out of bounds
        """
        if index < 0 or index >= len(self._pages):
            raise IndexError(f"Page index {index} out of bounds (0-{len(self._pages) - 1})")
        return self._pages[index]

    def _add_page(self, page: Page) -> None:
        page.owner = self
        self._pages.append(page)

    def _retain(self, source: 'Document') -> None:
        """Keep ``source`` alive until this document is closed."""
        if source is self or any(doc is source for doc in self._retained):
            return
        source._dependents += 1
        self._retained.append(source)

    def _release(self) -> None:
        self._dependents -= 1
        if self._closed and self._dependents == 0:
            self._pdf.close()

    def close(self) -> None:
        """Release the object graph. Idempotent."""
        if self._closed:
            return
        self._closed = True
        retained, self._retained = self._retained, []
        if self._dependents == 0:
            self._pdf.close()
        for source in retained:
            source._release()

    @property
    def closed(self) -> bool:
        return self._closed

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"Document({self.page_count} pages, encrypted={self.is_encrypted}, {state})"


@dataclass
class OutputFile:
    """A finished byte stream with its suggested file name"""
    name: str
    data: bytes = field(repr=False)
    media_type: str = "application/octet-stream"

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass
class OperationResult:
    """
    Outcome of one orchestrated operation.

    Either ``outputs`` holds the finished files (``error`` is None) or
    ``error`` holds the typed failure and ``outputs`` is empty. Multi-file
    results suggest a folder name in ``directory``.
    """
    operation: str
    outputs: List[OutputFile] = field(default_factory=list)
    directory: Optional[str] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def output_names(self) -> List[str]:
        return [output.name for output in self.outputs]

    @classmethod
    def success(cls, operation: str, outputs: List[OutputFile], directory: Optional[str] = None) -> 'OperationResult':
        return cls(operation=operation, outputs=list(outputs), directory=directory)

    @classmethod
    def failure(cls, operation: str, error: Exception) -> 'OperationResult':
        return cls(operation=operation, outputs=[], error=error)
