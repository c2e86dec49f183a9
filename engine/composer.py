"""
Document Composer and Serializer

Builds new Documents from pages of existing documents or from images, and
serializes them to PDF bytes. Composition is append-only: page order in the
output is the order of append calls.
"""

import io
import logging
import zlib
from typing import Optional

import pikepdf
from PIL import Image

from constants.pdf_keys import (
    KEY_BITS_PER_COMPONENT,
    KEY_COLOR_SPACE,
    KEY_CONTENTS,
    KEY_HEIGHT,
    KEY_MEDIA_BOX,
    KEY_RESOURCES,
    KEY_SOFT_MASK,
    KEY_SUBTYPE,
    KEY_TYPE,
    KEY_WIDTH,
    KEY_XOBJECT,
    VAL_DCT_DECODE,
    VAL_DEVICE_GRAY,
    VAL_DEVICE_RGB,
    VAL_FLATE_DECODE,
    VAL_IMAGE,
    VAL_PAGE,
    VAL_XOBJECT,
)
from constants.pdf_operators import IMAGE_RESOURCE_NAME, OP_CTM, OP_DO, OP_RESTORE_STATE, OP_SAVE_STATE
from engine.image_codec import encode_image
from models.document import Document, ImageFormat, Page, PixelBuffer

logger = logging.getLogger(__name__)

# JPEG modes that can be embedded without re-encoding, mapped to their color space
PASSTHROUGH_JPEG_MODES = {
    "RGB": VAL_DEVICE_RGB,
    "L": VAL_DEVICE_GRAY,
}


def new_document() -> Document:
    """Create an empty Document ready for composition."""
    return Document(pikepdf.Pdf.new())


def append_page(doc: Document, source_page: Page) -> Page:
    """
    Copy a page (content, resources and geometry) to the end of ``doc``.

    The copy stays valid after the source document is closed.

    Returns:
        The new Page in ``doc``
    """
    pdf = doc.pdf
    pdf.pages.append(source_page.source)
    if source_page.owner is not None:
        doc._retain(source_page.owner)

    page = Page(
        index=doc.page_count,
        width=source_page.width,
        height=source_page.height,
        source=pdf.pages[-1],
        image=source_page.image,
    )
    doc._add_page(page)
    logger.debug(f"Copied page {source_page.number} as page {page.number}")
    return page


def append_image_page(
    doc: Document,
    image: PixelBuffer,
    fmt: ImageFormat,
    *,
    width: Optional[float] = None,
    height: Optional[float] = None,
    encoded: Optional[bytes] = None,
) -> Page:
    """
    Append a page that shows ``image`` filling the whole page.

    Args:
        doc: Document being composed
        image: Pixels to draw
        fmt: How to embed: JPEG uses DCTDecode, PNG is lossless with alpha
        width: Page width in points (defaults to image width, 1 px = 1 pt)
        height: Page height in points (defaults to image height)
        encoded: Original JPEG bytes of ``image``, embedded without re-encoding

    Returns:
        The new Page in ``doc``
    """
    fmt = ImageFormat(fmt)
    page_width = float(image.width if width is None else width)
    page_height = float(image.height if height is None else height)
    if page_width <= 0 or page_height <= 0:
        raise ValueError(f"Page size must be positive, got {page_width}x{page_height}")

    pdf = doc.pdf
    if fmt is ImageFormat.JPEG:
        xobject = _jpeg_xobject(pdf, image, encoded)
    else:
        xobject = _flate_xobject(pdf, image)

    content = b" ".join([
        OP_SAVE_STATE,
        f"{_pdf_number(page_width)} 0 0 {_pdf_number(page_height)} 0 0".encode("ascii"),
        OP_CTM,
        IMAGE_RESOURCE_NAME.encode("ascii"),
        OP_DO,
        OP_RESTORE_STATE,
    ])

    page_dict = pdf.make_indirect(pikepdf.Dictionary({
        KEY_TYPE: pikepdf.Name(VAL_PAGE),
        KEY_MEDIA_BOX: pikepdf.Array([0, 0, page_width, page_height]),
        KEY_RESOURCES: pikepdf.Dictionary({
            KEY_XOBJECT: pikepdf.Dictionary({IMAGE_RESOURCE_NAME: xobject}),
        }),
        KEY_CONTENTS: pdf.make_stream(content),
    }))
    pdf.pages.append(pikepdf.Page(page_dict))

    page = Page(
        index=doc.page_count,
        width=page_width,
        height=page_height,
        source=pdf.pages[-1],
        image=image,
    )
    doc._add_page(page)
    logger.debug(f"Added {fmt.value} image page {page.number}: {image!r} on {page_width}x{page_height}pt")
    return page


def serialize(doc: Document) -> bytes:
    """
    Write ``doc`` as an unencrypted PDF byte stream.

    Output is deterministic for identical content and always decodable.
    """
    buffer = io.BytesIO()
    doc.pdf.save(buffer, encryption=False, deterministic_id=True)
    data = buffer.getvalue()
    logger.debug(f"Serialized {doc.page_count} page(s) to {len(data)} bytes")
    return data


# --- Image XObjects ---

def _image_stream(pdf: pikepdf.Pdf, data: bytes, filter_name: str, width: int, height: int, color_space: str) -> pikepdf.Stream:
    stream = pdf.make_stream(b"")
    stream.write(data, filter=pikepdf.Name(filter_name))
    stream[KEY_TYPE] = pikepdf.Name(VAL_XOBJECT)
    stream[KEY_SUBTYPE] = pikepdf.Name(VAL_IMAGE)
    stream[KEY_WIDTH] = width
    stream[KEY_HEIGHT] = height
    stream[KEY_COLOR_SPACE] = pikepdf.Name(color_space)
    stream[KEY_BITS_PER_COMPONENT] = 8
    return stream


def _jpeg_xobject(pdf: pikepdf.Pdf, image: PixelBuffer, encoded: Optional[bytes]) -> pikepdf.Stream:
    color_space = _passthrough_color_space(encoded, image) if encoded else None
    if color_space is None:
        encoded = encode_image(image, ImageFormat.JPEG)
        color_space = VAL_DEVICE_RGB
    return _image_stream(pdf, encoded, VAL_DCT_DECODE, image.width, image.height, color_space)


def _passthrough_color_space(encoded: bytes, image: PixelBuffer) -> Optional[str]:
    """Color space for embedding ``encoded`` as-is, or None if it must be re-encoded."""
    try:
        with Image.open(io.BytesIO(encoded), formats=["JPEG"]) as probe:
            mode, size = probe.mode, probe.size
    except (OSError, ValueError) as e:
        logger.debug(f"JPEG passthrough not possible: {e}")
        return None
    if size != (image.width, image.height):
        logger.warning(f"JPEG bytes are {size[0]}x{size[1]} but pixels are {image.width}x{image.height}, re-encoding")
        return None
    return PASSTHROUGH_JPEG_MODES.get(mode)


def _flate_xobject(pdf: pikepdf.Pdf, image: PixelBuffer) -> pikepdf.Stream:
    pixels = image.data
    rgb = pixels[:, :, :3].tobytes()
    stream = _image_stream(pdf, zlib.compress(rgb), VAL_FLATE_DECODE, image.width, image.height, VAL_DEVICE_RGB)
    if image.has_alpha:
        alpha = pixels[:, :, 3].tobytes()
        stream[KEY_SOFT_MASK] = _image_stream(
            pdf, zlib.compress(alpha), VAL_FLATE_DECODE, image.width, image.height, VAL_DEVICE_GRAY
        )
    return stream


def _pdf_number(value: float) -> str:
    """Format a number for a content stream (no exponent notation)."""
    text = f"{value:.4f}".rstrip("0").rstrip(".")
    return text or "0"
