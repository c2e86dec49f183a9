"""
Decorators for FastAPI endpoint error handling and upload reading.

Engine errors carry a stable ``code``; this module maps each error type to an
HTTP status and wraps endpoints with the processing timeout.
"""

import logging
import asyncio
from functools import wraps
from typing import Callable, Dict, List, Optional, Sequence, Type

from fastapi import HTTPException, UploadFile

from engine.errors import (
    IncorrectPassword,
    InputTooLarge,
    InsufficientInput,
    MalformedDocument,
    PdfToolsError,
    RenderError,
    UnsupportedImageFormat,
)
from models.document import OperationResult
from operations.common import InputFile
from utils.validation import (
    ProcessingTimeoutError,
    MemoryLimitError,
    VALIDATION_CONSTANTS
)

logger = logging.getLogger(__name__)

# Most specific class first; EmptyInput is covered by InsufficientInput
ERROR_STATUS_CODES: Dict[Type[PdfToolsError], int] = {
    IncorrectPassword: 401,
    MalformedDocument: 400,
    InsufficientInput: 400,
    InputTooLarge: 413,
    UnsupportedImageFormat: 415,
    RenderError: 422,
}


def status_code_for(error: PdfToolsError) -> int:
    """HTTP status for a typed engine error (500 for unknown kinds)."""
    for error_type, status_code in ERROR_STATUS_CODES.items():
        if isinstance(error, error_type):
            return status_code
    return 500


def raise_for_result(result: OperationResult) -> OperationResult:
    """Re-raise the typed failure of a failed result, return it otherwise."""
    if not result.ok:
        raise result.error
    return result


async def read_uploads(files: Sequence[UploadFile]) -> List[InputFile]:
    """
    Read uploaded files into InputFile pairs, preserving upload order.

    Raises:
        HTTPException: 400 if an upload cannot be read
    """
    inputs = []
    for index, upload in enumerate(files):
        name = upload.filename or f"upload_{index + 1}"
        try:
            content = await upload.read()
        except Exception as e:
            logger.error(f"Error reading uploaded file {name}: {e}")
            raise HTTPException(
                status_code=400,
                detail=f"Error reading uploaded file: {str(e)}"
            )
        inputs.append(InputFile(name=name, data=content))
    return inputs


def handle_operation(func: Callable) -> Callable:
    """
    Decorator to handle common operation endpoint patterns:
    - Processing timeout management
    - Typed engine error to HTTP status translation
    - Standardized error handling

    The decorated endpoint may accept a ``processing_timeout`` keyword
    argument (seconds); the configured maximum is used otherwise.
    """
    @wraps(func)
    async def wrapper(*args, **kwargs):
        processing_timeout: Optional[int] = kwargs.get('processing_timeout')
        timeout_seconds = processing_timeout or VALIDATION_CONSTANTS['MAX_PROCESSING_TIME_SECONDS']
        endpoint = func.__name__

        try:
            return await asyncio.wait_for(
                func(*args, **kwargs),
                timeout=timeout_seconds
            )

        except asyncio.TimeoutError:
            logger.error(f"{endpoint} timed out after {timeout_seconds}s")
            raise HTTPException(
                status_code=408,
                detail=f"Processing timed out after {timeout_seconds} seconds."
            )
        except PdfToolsError as e:
            status_code = status_code_for(e)
            logger.warning(f"{endpoint} failed with {status_code}: [{e.code}] {e.message}")
            raise HTTPException(status_code=status_code, detail=e.to_dict())
        except ProcessingTimeoutError as e:
            logger.error(f"Processing timeout in {endpoint}: {e}")
            raise HTTPException(
                status_code=408,
                detail=f"Processing timeout: {str(e)}"
            )
        except MemoryLimitError as e:
            logger.error(f"Memory limit exceeded in {endpoint}: {e}")
            raise HTTPException(
                status_code=507,
                detail=f"Memory limit exceeded: {str(e)}"
            )
        except HTTPException:
            # Re-raise HTTP exceptions as-is
            raise
        except Exception as e:
            logger.error(f"Unexpected error in {endpoint}: {e}")
            logger.exception("Full exception details:")
            raise HTTPException(
                status_code=500,
                detail=f"Internal server error during processing: {str(e)}"
            )

    return wrapper
