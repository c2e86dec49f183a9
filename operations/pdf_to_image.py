"""
PDF to images: render every page and encode it as JPEG.
"""

import logging
from typing import Optional, Sequence

from constants.engine_defaults import DEFAULT_JPEG_QUALITY, DEFAULT_RENDER_SCALE, IMAGES_FOLDER_NAME
from engine.config import EngineConfig, PageRange
from engine.pdf_engine import PDFEngine
from models.document import ImageFormat, OperationResult, OutputFile
from operations.common import InputFile, capture_operation_errors, page_file_name, require_inputs, selected_indices
from utils.validation import ResourceManager

logger = logging.getLogger(__name__)

OPERATION = "pdf_to_images"


@capture_operation_errors(OPERATION)
def pdf_to_images(
    inputs: Sequence[InputFile],
    config: Optional[EngineConfig] = None,
    page_range: Optional[PageRange] = None,
) -> OperationResult:
    """
    Rasterize each page of a PDF to a JPEG image.

    Pages are rendered at scale 2.0 and encoded at quality 0.95. A page that
    fails to render aborts the whole conversion.

    Args:
        inputs: Exactly one PDF file
        config: Engine configuration
        page_range: Optional 1-based pages to convert (all pages if None)

    Returns:
        OperationResult with ``page_NNN.jpg`` files in folder ``pdf_images``
    """
    config = config or EngineConfig.default()
    require_inputs(inputs, minimum=1, maximum=1)

    fmt = ImageFormat.JPEG
    outputs = []
    with ResourceManager(OPERATION, max_time_seconds=config.timeout_seconds) as resources, \
            PDFEngine(config) as engine:
        source = engine.decode(inputs[0].data)
        for index in selected_indices(source, page_range):
            pixels = engine.render(source.page(index), DEFAULT_RENDER_SCALE)
            encoded = engine.encode_image(pixels, fmt, quality=DEFAULT_JPEG_QUALITY)
            outputs.append(OutputFile(page_file_name(index, fmt.extension), encoded, fmt.media_type))
            logger.debug(f"Page {index + 1}: {pixels!r} -> {len(encoded)} bytes")
            resources.check_limits()

    return OperationResult.success(OPERATION, outputs, directory=IMAGES_FOLDER_NAME)
