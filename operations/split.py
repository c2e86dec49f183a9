"""
Split: one single-page PDF per page of the input.
"""

import logging
from typing import Optional, Sequence

from constants.engine_defaults import MEDIA_TYPE_PDF, SPLIT_FOLDER_NAME
from engine.config import EngineConfig, PageRange
from engine.pdf_engine import PDFEngine
from models.document import OperationResult, OutputFile
from operations.common import InputFile, capture_operation_errors, page_file_name, require_inputs, selected_indices
from utils.validation import ResourceManager

logger = logging.getLogger(__name__)

OPERATION = "split"


@capture_operation_errors(OPERATION)
def split_pdf(
    inputs: Sequence[InputFile],
    config: Optional[EngineConfig] = None,
    page_range: Optional[PageRange] = None,
) -> OperationResult:
    """
    Split a PDF into single-page documents.

    Args:
        inputs: Exactly one PDF file
        config: Engine configuration
        page_range: Optional 1-based pages to extract (all pages if None)

    Returns:
        OperationResult with ``page_NNN.pdf`` files in folder ``split_pages``;
        NNN is the page number in the source document
    """
    config = config or EngineConfig.default()
    require_inputs(inputs, minimum=1, maximum=1)

    outputs = []
    with ResourceManager(OPERATION, max_time_seconds=config.timeout_seconds) as resources, \
            PDFEngine(config) as engine:
        source = engine.decode(inputs[0].data)
        for index in selected_indices(source, page_range):
            single = engine.new_document()
            engine.append_page(single, source.page(index))
            outputs.append(OutputFile(page_file_name(index, ".pdf"), engine.serialize(single), MEDIA_TYPE_PDF))
            single.close()
            resources.check_limits()

        logger.info(f"Split {inputs[0].name} into {len(outputs)} of {source.page_count} pages")

    return OperationResult.success(OPERATION, outputs, directory=SPLIT_FOLDER_NAME)
