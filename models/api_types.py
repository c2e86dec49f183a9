"""
Pydantic models for the PDF Tools HTTP API
"""

import base64
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from models.document import OperationResult, OutputFile


class ResponseFormat(str, Enum):
    """How an endpoint returns its output files"""
    FILE = "file"   # Raw file, or a ZIP archive for multi-file results
    JSON = "json"   # OperationResponse with base64-encoded files


class ErrorResponse(BaseModel):
    """Body of every non-2xx response raised by the engine"""
    error: str = Field(..., description="Stable error code, e.g. 'incorrect_password'")
    message: str
    detail: Optional[str] = None


class OutputFilePayload(BaseModel):
    """One produced file"""
    name: str
    media_type: str
    size: int
    data: str = Field(..., description="Base64-encoded file content")

    @classmethod
    def from_output(cls, output: OutputFile) -> 'OutputFilePayload':
        return cls(
            name=output.name,
            media_type=output.media_type,
            size=output.size,
            data=base64.b64encode(output.data).decode('utf-8'),
        )


class OperationResponse(BaseModel):
    """Successful operation result in JSON form"""
    operation: str
    directory: Optional[str] = Field(None, description="Suggested folder for multi-file results")
    files: List[OutputFilePayload]

    @classmethod
    def from_result(cls, result: OperationResult) -> 'OperationResponse':
        return cls(
            operation=result.operation,
            directory=result.directory,
            files=[OutputFilePayload.from_output(output) for output in result.outputs],
        )
