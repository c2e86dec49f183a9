"""
Unlock: remove password protection by re-authoring every page as an image.

The output is a freshly composed document, so it carries no encryption
dictionary. Text is no longer selectable afterwards.
"""

import logging
from typing import Optional, Sequence

from constants.engine_defaults import DEFAULT_RENDER_SCALE, MEDIA_TYPE_PDF, UNLOCKED_FILE_NAME
from engine.config import EngineConfig
from engine.errors import IncorrectPassword
from engine.pdf_engine import PDFEngine
from models.document import ImageFormat, OperationResult, OutputFile
from operations.common import InputFile, capture_operation_errors, require_inputs
from utils.validation import ResourceManager

logger = logging.getLogger(__name__)

OPERATION = "unlock"


@capture_operation_errors(OPERATION)
def unlock_pdf(inputs: Sequence[InputFile], password: str, config: Optional[EngineConfig] = None) -> OperationResult:
    """
    Produce an unencrypted copy of a password-protected PDF.

    Each page is rendered at scale 2.0, round-tripped through PNG and drawn
    on a page of the original point size.

    Args:
        inputs: Exactly one PDF file
        password: Password of the document (must not be empty)
        config: Engine configuration

    Returns:
        OperationResult with a single ``unlocked.pdf``, or a failed result
        carrying IncorrectPassword when the password is empty or wrong
    """
    config = config or EngineConfig.default()
    require_inputs(inputs, minimum=1, maximum=1)
    if not password:
        raise IncorrectPassword("A password is required to unlock a document")

    fmt = ImageFormat.PNG
    scale = DEFAULT_RENDER_SCALE
    with ResourceManager(OPERATION, max_time_seconds=config.timeout_seconds) as resources, \
            PDFEngine(config) as engine:
        source = engine.decode(inputs[0].data, password=password)
        if not source.is_encrypted:
            logger.info(f"{inputs[0].name} is not encrypted, re-authoring anyway")

        unlocked = engine.new_document()
        for page in source:
            rendered = engine.render(page, scale)
            pixels = engine.decode_image(engine.encode_image(rendered, fmt), fmt)
            engine.append_image_page(
                unlocked, pixels, fmt,
                width=pixels.width / scale,
                height=pixels.height / scale,
            )
            resources.check_limits()

        data = engine.serialize(unlocked)
        logger.info(f"Unlocked {inputs[0].name}: {unlocked.page_count} pages re-authored")

    return OperationResult.success(OPERATION, [OutputFile(UNLOCKED_FILE_NAME, data, MEDIA_TYPE_PDF)])
