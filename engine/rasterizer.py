"""
Page Rasterizer

Renders a single Document page to an RGB PixelBuffer with PyMuPDF.

The page is first lifted into a standalone one-page PDF (pikepdf copies the
page with everything it references), so rendering depends only on the Page
and never on the rest of its source document. Output size is
ceil(width * scale) x ceil(height * scale) pixels.
"""

import io
import logging
import math

import pymupdf
import numpy as np
import pikepdf

from constants.engine_defaults import DEFAULT_RENDER_SCALE, RENDER_BACKGROUND
from engine.errors import RenderError
from models.document import Page, PixelBuffer

logger = logging.getLogger(__name__)

# Decimal places kept before rounding the scaled page size up
SIZE_PRECISION = 6


def rendered_size(width: float, height: float, scale: float) -> tuple:
    """
    Pixel dimensions of a page rendered at ``scale``.

    Returns:
        (pixel_width, pixel_height)
    """
    return (
        math.ceil(round(width * scale, SIZE_PRECISION)),
        math.ceil(round(height * scale, SIZE_PRECISION)),
    )


def render(page: Page, scale: float = DEFAULT_RENDER_SCALE) -> PixelBuffer:
    """
    Rasterize a page.

    Args:
        page: Page from a decoded or composed Document (document must be open)
        scale: Pixels per point, must be > 0

    Returns:
        RGB PixelBuffer; identical inputs give byte-identical output

    Raises:
        ValueError: If scale is not a positive finite number
        RenderError: If the page content cannot be rasterized
    """
    if not isinstance(scale, (int, float)) or not math.isfinite(scale) or scale <= 0:
        raise ValueError(f"scale must be a positive number, got {scale!r}")

    target_width, target_height = rendered_size(page.width, page.height, scale)
    if target_width < 1 or target_height < 1:
        raise RenderError(f"Page {page.number} is too small to render at scale {scale}")

    page_bytes = _standalone_page_bytes(page)

    try:
        with pymupdf.open(stream=page_bytes, filetype="pdf") as doc:
            mupdf_page = doc.load_page(0)
            rect = mupdf_page.rect
            if rect.width <= 0 or rect.height <= 0:
                raise RenderError(f"Page {page.number} has an empty page box")

            matrix = pymupdf.Matrix(target_width / rect.width, target_height / rect.height)
            pix = mupdf_page.get_pixmap(matrix=matrix, colorspace=pymupdf.csRGB, alpha=False)
            pixels = _pixmap_to_array(pix)
    except RenderError:
        raise
    except (RuntimeError, ValueError) as e:
        logger.warning(f"Rendering failed for page {page.number}: {e}")
        raise RenderError(f"Page {page.number} could not be rendered", detail=str(e)) from e

    pixels = _fit_to_size(pixels, target_width, target_height)
    logger.debug(f"Rendered page {page.number} at scale {scale}: {target_width}x{target_height}px")
    return PixelBuffer(pixels)


def _standalone_page_bytes(page: Page) -> bytes:
    """Serialize ``page`` as the only page of a fresh PDF."""
    try:
        with pikepdf.Pdf.new() as single:
            single.pages.append(page.source)
            buffer = io.BytesIO()
            single.save(buffer)
            return buffer.getvalue()
    except pikepdf.PdfError as e:
        logger.warning(f"Could not isolate page {page.number} for rendering: {e}")
        raise RenderError(f"Page {page.number} content could not be read", detail=str(e)) from e


def _pixmap_to_array(pix: "pymupdf.Pixmap") -> np.ndarray:
    rows = np.frombuffer(pix.samples, dtype=np.uint8).reshape(pix.height, pix.stride)
    pixels = rows[:, :pix.width * pix.n].reshape(pix.height, pix.width, pix.n)
    return np.array(pixels[:, :, :3], dtype=np.uint8, copy=True)


def _fit_to_size(pixels: np.ndarray, width: int, height: int) -> np.ndarray:
    """Crop or pad (with background) to exactly width x height."""
    current_height, current_width = pixels.shape[:2]
    if current_width == width and current_height == height:
        return pixels

    logger.debug(f"Adjusting raster from {current_width}x{current_height} to {width}x{height}")
    canvas = np.empty((height, width, 3), dtype=np.uint8)
    canvas[:, :] = RENDER_BACKGROUND
    copy_height = min(height, current_height)
    copy_width = min(width, current_width)
    canvas[:copy_height, :copy_width] = pixels[:copy_height, :copy_width]
    return canvas
