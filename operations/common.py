"""
Shared plumbing for the five document operations.
"""

import logging
from dataclasses import dataclass, field
from functools import wraps
from typing import Callable, Optional, Sequence

from constants.engine_defaults import PAGE_NAME_TEMPLATE
from engine.config import EngineConfig, PageRange
from engine.errors import EmptyInput, InputTooLarge, InsufficientInput, PdfToolsError
from models.document import Document, OperationResult

logger = logging.getLogger(__name__)


@dataclass
class InputFile:
    """A named byte stream handed to an operation"""
    name: str
    data: bytes = field(repr=False)

    @property
    def size(self) -> int:
        return len(self.data)


def page_file_name(index: int, suffix: str) -> str:
    """
    Output name for the page at 0-based ``index``.

    Example:
        >>> page_file_name(0, ".pdf")
        'page_001.pdf'
    """
    return PAGE_NAME_TEMPLATE.format(number=index + 1, suffix=suffix)


def capture_operation_errors(operation: str) -> Callable:
    """
    Decorator turning typed engine failures into a failed OperationResult.

    Only PdfToolsError subclasses are captured; anything else (timeouts,
    memory limits, programming errors) propagates to the caller.
    """
    def decorator(func: Callable[..., OperationResult]) -> Callable[..., OperationResult]:
        @wraps(func)
        def wrapper(*args, **kwargs) -> OperationResult:
            try:
                result = func(*args, **kwargs)
            except PdfToolsError as e:
                logger.warning(f"{operation} failed: [{e.code}] {e.message}")
                return OperationResult.failure(operation, e)

            logger.info(f"{operation} produced {len(result.outputs)} file(s)")
            return result
        return wrapper
    return decorator


def require_inputs(inputs: Sequence[InputFile], minimum: int, maximum: Optional[int] = None, kind: str = "document") -> None:
    """
    Enforce the number of inputs an operation accepts.

    Raises:
        EmptyInput: If there are no inputs
        InsufficientInput: If the count is outside [minimum, maximum]
    """
    count = len(inputs)
    if count == 0:
        raise EmptyInput(f"No input {kind}s were provided")
    if count < minimum:
        raise InsufficientInput(f"At least {minimum} input {kind}s are required, got {count}")
    if maximum is not None and count > maximum:
        expected = f"exactly {maximum}" if maximum == minimum else f"at most {maximum}"
        raise InsufficientInput(f"{expected.capitalize()} input {kind}(s) expected, got {count}")


def check_input_limit(inputs: Sequence[InputFile], config: EngineConfig) -> None:
    if len(inputs) > config.max_inputs:
        raise InputTooLarge(f"Too many inputs: {len(inputs)} (max: {config.max_inputs})")


def selected_indices(document: Document, page_range: Optional[PageRange]) -> list:
    """
    0-based indices of the pages to process.

    Raises:
        InsufficientInput: If a page range was given and selects no page
    """
    if page_range is None:
        return list(range(document.page_count))

    indices = page_range.to_indices(document.page_count)
    if not indices:
        raise InsufficientInput(
            f"{page_range!r} selects no pages in a {document.page_count}-page document"
        )
    return indices
