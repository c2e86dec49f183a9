"""
Image Codec Bridge

Decodes JPEG/PNG bytes into PixelBuffers and encodes PixelBuffers back to
JPEG/PNG using Pillow. The format is always declared by the caller (from the
file name), never sniffed from content.
"""

import io
import logging
import os
from typing import Optional

import numpy as np
from PIL import Image, UnidentifiedImageError

from constants.engine_defaults import DEFAULT_JPEG_QUALITY, RENDER_BACKGROUND
from engine.errors import UnsupportedImageFormat
from models.document import ImageFormat, PixelBuffer

logger = logging.getLogger(__name__)

# Pillow modes that carry transparency information
ALPHA_MODES = {"RGBA", "LA", "PA", "RGBa", "La"}


def image_format_for_name(name: str) -> ImageFormat:
    """
    Declared format for a file name: ``.png`` is PNG, anything else JPEG.
    """
    extension = os.path.splitext(name)[1].lower()
    return ImageFormat.PNG if extension == ".png" else ImageFormat.JPEG


def decode_image(data: bytes, fmt: ImageFormat) -> PixelBuffer:
    """
    Decode image bytes of the declared format.

    Args:
        data: Encoded image bytes
        fmt: Declared format; bytes of any other format are rejected

    Returns:
        RGB PixelBuffer, or RGBA when the image has transparency

    Raises:
        UnsupportedImageFormat: If the bytes do not decode as ``fmt``
    """
    fmt = ImageFormat(fmt)
    try:
        with Image.open(io.BytesIO(data), formats=[fmt.value]) as image:
            image.load()
            converted = _to_rgb_or_rgba(image)
    except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError) as e:
        logger.warning(f"Could not decode {len(data)} bytes as {fmt.value}: {e}")
        raise UnsupportedImageFormat(
            f"Image data is not a valid {fmt.value} image", detail=str(e)
        ) from e

    pixels = np.asarray(converted, dtype=np.uint8)
    logger.debug(f"Decoded {fmt.value} image: {converted.width}x{converted.height} {converted.mode}")
    return PixelBuffer(np.ascontiguousarray(pixels))


def encode_image(buffer: PixelBuffer, fmt: ImageFormat, quality: Optional[float] = None) -> bytes:
    """
    Encode a PixelBuffer.

    Args:
        buffer: Pixels to encode
        fmt: Target format
        quality: JPEG quality in (0, 1]; defaults to 0.95. Ignored for PNG.

    Returns:
        Encoded image bytes
    """
    fmt = ImageFormat(fmt)
    image = Image.fromarray(buffer.data)
    output = io.BytesIO()

    if fmt is ImageFormat.JPEG:
        if quality is None:
            quality = DEFAULT_JPEG_QUALITY
        if not 0 < quality <= 1:
            raise ValueError(f"JPEG quality must be in (0, 1], got {quality}")
        if buffer.has_alpha:
            image = _flatten_alpha(image)
        image.save(output, format="JPEG", quality=max(1, round(quality * 100)))
    else:
        image.save(output, format="PNG")

    encoded = output.getvalue()
    logger.debug(f"Encoded {buffer!r} as {fmt.value}: {len(encoded)} bytes")
    return encoded


def _to_rgb_or_rgba(image: Image.Image) -> Image.Image:
    has_alpha = image.mode in ALPHA_MODES or (
        image.mode == "P" and "transparency" in image.info
    )
    if has_alpha:
        return image.convert("RGBA")
    if image.mode == "RGB":
        return image.copy()
    return image.convert("RGB")


def _flatten_alpha(image: Image.Image) -> Image.Image:
    """Composite an RGBA image onto the page background."""
    background = Image.new("RGB", image.size, RENDER_BACKGROUND)
    background.paste(image, mask=image.getchannel("A"))
    return background
