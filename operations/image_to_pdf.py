"""
Images to PDF: one page per image, each page exactly the image's size.
"""

import logging
from typing import Optional, Sequence

from constants.engine_defaults import IMAGES_PDF_FILE_NAME, MEDIA_TYPE_PDF
from engine.config import EngineConfig
from engine.image_codec import image_format_for_name
from engine.pdf_engine import PDFEngine
from models.document import ImageFormat, OperationResult, OutputFile
from operations.common import InputFile, capture_operation_errors, check_input_limit, require_inputs
from utils.validation import ResourceManager

logger = logging.getLogger(__name__)

OPERATION = "images_to_pdf"


@capture_operation_errors(OPERATION)
def images_to_pdf(inputs: Sequence[InputFile], config: Optional[EngineConfig] = None) -> OperationResult:
    """
    Compose JPEG/PNG images into one PDF, in input order.

    The format of each image comes from its file name: ``.png`` is PNG,
    anything else is read as JPEG. Pages measure one point per pixel.

    Args:
        inputs: One or more image files
        config: Engine configuration

    Returns:
        OperationResult with a single ``images.pdf``
    """
    config = config or EngineConfig.default()
    require_inputs(inputs, minimum=1, kind="image")
    check_input_limit(inputs, config)

    with ResourceManager(OPERATION, max_time_seconds=config.timeout_seconds) as resources, \
            PDFEngine(config) as engine:
        document = engine.new_document()
        for item in inputs:
            fmt = image_format_for_name(item.name)
            pixels = engine.decode_image(item.data, fmt)
            encoded = item.data if fmt is ImageFormat.JPEG else None
            engine.append_image_page(document, pixels, fmt, encoded=encoded)
            logger.debug(f"Added {item.name} as {fmt.value} page {document.page_count}")
            resources.check_limits()

        data = engine.serialize(document)

    return OperationResult.success(OPERATION, [OutputFile(IMAGES_PDF_FILE_NAME, data, MEDIA_TYPE_PDF)])
