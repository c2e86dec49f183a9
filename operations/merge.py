"""
Merge: combine several PDFs into one, in input order.
"""

import logging
from typing import Optional, Sequence

from constants.engine_defaults import MEDIA_TYPE_PDF, MERGED_FILE_NAME
from engine.config import EngineConfig
from engine.pdf_engine import PDFEngine
from models.document import OperationResult, OutputFile
from operations.common import InputFile, capture_operation_errors, check_input_limit, require_inputs
from utils.validation import ResourceManager

logger = logging.getLogger(__name__)

OPERATION = "merge"


@capture_operation_errors(OPERATION)
def merge_pdfs(inputs: Sequence[InputFile], config: Optional[EngineConfig] = None) -> OperationResult:
    """
    Merge two or more PDF documents.

    Every page of every input is copied, inputs in the given order and pages
    within each input in their original order.

    Args:
        inputs: PDF files to merge (at least two)
        config: Engine configuration

    Returns:
        OperationResult with a single ``merged.pdf``
    """
    config = config or EngineConfig.default()
    require_inputs(inputs, minimum=2)
    check_input_limit(inputs, config)

    with ResourceManager(OPERATION, max_time_seconds=config.timeout_seconds) as resources, \
            PDFEngine(config) as engine:
        merged = engine.new_document()
        for item in inputs:
            source = engine.decode(item.data)
            logger.debug(f"Merging {item.name}: {source.page_count} page(s)")
            for page in source:
                engine.append_page(merged, page)
            resources.check_limits()

        data = engine.serialize(merged)
        logger.info(f"Merged {len(inputs)} documents into {merged.page_count} pages")

    return OperationResult.success(OPERATION, [OutputFile(MERGED_FILE_NAME, data, MEDIA_TYPE_PDF)])
