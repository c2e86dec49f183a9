"""
PDF Processing Engine

Core engine module for decoding, rendering, image coding and composing PDF
documents. Contains the unified PDFEngine class and its pluggable backends.
"""

__version__ = "1.0.0"

from engine.pdf_engine import PDFEngine
from engine.config import EngineConfig, PageRange
from engine.base_backend import BaseBackend, BackendProtocol, BackendRegistry
from engine.errors import (
    PdfToolsError,
    MalformedDocument,
    IncorrectPassword,
    UnsupportedImageFormat,
    RenderError,
    InputTooLarge,
    InsufficientInput,
    EmptyInput,
)

__all__ = [
    'PDFEngine',
    'EngineConfig',
    'PageRange',
    'BaseBackend',
    'BackendProtocol',
    'BackendRegistry',
    'PdfToolsError',
    'MalformedDocument',
    'IncorrectPassword',
    'UnsupportedImageFormat',
    'RenderError',
    'InputTooLarge',
    'InsufficientInput',
    'EmptyInput',
]
